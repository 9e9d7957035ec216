"""
Per-record enrichment operations run by the EnrichmentEngine.

Each factory binds a ChainAPIClient and returns a coroutine function
``(record, node)`` that performs one lookup against ``node`` and writes its
fields into the record. Raising marks the attempt as failed.
"""
from decimal import Decimal

from src.config.snapshot_settings import LOCKED_GRANT_TYPE

from .chain_client import ChainAPIClient
from .enrichment import EnrichmentOperation
from .exceptions import RecordLookupError
from .types import EnrichmentStage, VoterRecord, suf_to_fio


def make_public_key_lookup(client: ChainAPIClient) -> EnrichmentOperation:
    """Owner account -> public key. A missing account mapping is a failure."""

    async def lookup_public_key(record: VoterRecord, node: str) -> None:
        public_key = await client.get_account_public_key(node, record.owner)
        if not public_key:
            raise RecordLookupError(f"No public key found for account {record.owner}", owner=record.owner)
        record.public_key = public_key
        record.mark_enriched(EnrichmentStage.PUBLIC_KEY)

    return lookup_public_key


def make_balance_lookup(client: ChainAPIClient) -> EnrichmentOperation:
    """Public key -> balance and available funds. Requires the public key stage."""

    async def lookup_balance(record: VoterRecord, node: str) -> None:
        if not record.public_key:
            raise RecordLookupError(
                f"Balance lookup for {record.owner} needs a public key; run the public key stage first",
                owner=record.owner,
                retryable=False,
            )
        result = await client.get_fio_balance(node, record.public_key)
        record.balance = suf_to_fio(result.balance)
        available = result.available if result.available is not None else result.balance
        record.available = suf_to_fio(available)
        record.mark_enriched(EnrichmentStage.BALANCE)

    return lookup_balance


def make_locked_tokens_lookup(
    client: ChainAPIClient,
    grant_type: int = LOCKED_GRANT_TYPE,
) -> EnrichmentOperation:
    """Owner account -> remaining locked amount of ``grant_type``. No grant means zero."""

    async def lookup_locked_tokens(record: VoterRecord, node: str) -> None:
        row = await client.get_locked_tokens(node, record.owner)
        if row is not None and row.grant_type == grant_type:
            record.locked_amount = suf_to_fio(row.remaining_locked_amount)
        else:
            record.locked_amount = Decimal(0)
        record.mark_enriched(EnrichmentStage.LOCKED_TOKENS)

    return lookup_locked_tokens
