import os
from typing import List

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


# --------------------------------------------------
# Node Pool Configuration
# --------------------------------------------------
# Public FIO API nodes queried in rotation. Override with a comma separated
# FIO_API_SERVERS list.
DEFAULT_API_SERVERS = [
    "https://fio.acherontrading.com",
    "https://fio.eosdac.io",
    "https://fio.eosdublin.io",
    "https://fio.greymass.com",
    "https://api.fio.services",
    "https://api.fio.detroitledger.tech",
    "https://api.fio.alohaeos.com",
    "https://fio.eos.barcelona",
    "https://api.fiosweden.org",
    "https://fio.eosusa.io",
    "https://fio.eu.eosamsterdam.net",
    "https://api.fio.currencyhub.io",
    "https://fio.eosrio.io",
    "https://fio.blockpane.com",
    "https://api.fio.greeneosio.com",
    "https://api-fio.nodeone.network:8344",
    "https://fio.cryptolions.io",
    "https://fio.eosphere.io",
    "https://fio.eosargentina.io",
]


def get_api_servers() -> List[str]:
    """Return the configured node list, falling back to the public defaults."""
    raw = os.environ.get("FIO_API_SERVERS")
    if raw is None:
        return list(DEFAULT_API_SERVERS)
    servers = [server.strip() for server in raw.split(",") if server.strip()]
    if not servers:
        raise ValueError("FIO_API_SERVERS is set but contains no servers")
    return servers


# --------------------------------------------------
# Retry / Timeout Configuration
# --------------------------------------------------
MAX_RETRIES = _env_int("SNAPSHOT_MAX_RETRIES", 5)
INITIAL_BACKOFF_SECONDS = _env_float("SNAPSHOT_INITIAL_BACKOFF", 1.0)
MAX_BACKOFF_SECONDS = _env_float("SNAPSHOT_MAX_BACKOFF", 5.0)
BACKOFF_MULTIPLIER = _env_float("SNAPSHOT_BACKOFF_MULTIPLIER", 2.0)
REQUEST_TIMEOUT_SECONDS = _env_float("SNAPSHOT_REQUEST_TIMEOUT", 5.0)

# --------------------------------------------------
# Chain Query Configuration
# --------------------------------------------------
VOTERS_PAGE_LIMIT = _env_int("SNAPSHOT_VOTERS_PAGE_LIMIT", 1000)
PRODUCERS_LIMIT = _env_int("SNAPSHOT_PRODUCERS_LIMIT", 1000)
# Grant type whose remaining locked amount does not count toward vote weight
LOCKED_GRANT_TYPE = _env_int("SNAPSHOT_LOCKED_GRANT_TYPE", 4)

# --------------------------------------------------
# Review Configuration
# --------------------------------------------------
# Computed weights further than this from the chain value get flagged
DISCREPANCY_THRESHOLD = _env_float("SNAPSHOT_DISCREPANCY_THRESHOLD", 1.0)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
