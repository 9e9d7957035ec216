"""
Custom exceptions for the vote snapshot engine.

Provides a hierarchy of exceptions with HTTP-like error codes so the
pipeline driver can tell transient node failures apart from run-fatal ones.
"""
from typing import Any, Dict, List, Optional

import httpx


class VoteSnapshotError(Exception):
    """Base exception for all vote snapshot errors."""

    def __init__(
        self,
        message: str,
        code: int = 500,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable


# ============================================
# Transient (node-level) errors
# ============================================

class ChainAPIError(VoteSnapshotError):
    """A single chain API call failed: HTTP error, timeout, bad body."""

    def __init__(
        self,
        message: str,
        status_code: int,
        node: str = "",
        response: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.node = node
        self.response = response
        prefix = f"Chain API Error {status_code}"
        if node:
            prefix += f" from {node}"
        super().__init__(f"{prefix}: {message}", code=status_code, retryable=True)


class RecordLookupError(VoteSnapshotError):
    """A point lookup returned no usable row for a voter."""

    def __init__(self, message: str, owner: str = "", retryable: bool = True):
        self.owner = owner
        super().__init__(message, code=404, retryable=retryable)


# ============================================
# Run-fatal errors
# ============================================

class EnrichmentExhaustedError(VoteSnapshotError):
    """One or more records failed every attempt of an enrichment stage."""

    def __init__(self, stage: str, failed_owners: List[str]):
        self.stage = stage
        self.failed_owners = list(failed_owners)
        preview = ", ".join(self.failed_owners[:10])
        if len(self.failed_owners) > 10:
            preview += ", ..."
        super().__init__(
            f"Enrichment stage '{stage}' exhausted retries for "
            f"{len(self.failed_owners)} record(s): {preview}",
            code=502,
            retryable=False,
        )


class ProducerFetchError(VoteSnapshotError):
    """Every node in the pool failed to return the producer list."""

    def __init__(self, message: str = "Failed to fetch producers from all servers"):
        super().__init__(message, code=503, retryable=False)


class IncompleteEnrichmentError(VoteSnapshotError):
    """Aggregation was attempted on voters missing an enrichment stage."""

    def __init__(self, missing: Dict[str, List[str]]):
        self.missing = missing
        stages = ", ".join(f"{stage} ({len(owners)})" for stage, owners in missing.items())
        super().__init__(
            f"Voters are not fully enriched; missing stages: {stages}",
            code=500,
            retryable=False,
        )


class PipelineBusyError(VoteSnapshotError):
    """409 Conflict - a snapshot run is already in progress."""

    def __init__(self, message: str = "Processing already in progress"):
        super().__init__(message, code=409, retryable=False)


# ============================================
# Exception Classification Helpers
# ============================================

def is_retryable_exception(error: Exception) -> bool:
    """Check if an exception should trigger a retry."""
    if isinstance(error, VoteSnapshotError):
        return error.retryable

    if isinstance(error, (httpx.TransportError, TimeoutError, ConnectionError)):
        return True

    return False
