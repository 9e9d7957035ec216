"""Shared fixtures: fast retry policy, record builders and an in-memory chain."""
from decimal import Decimal
from typing import Dict, List, Optional, Set, Tuple

import pytest

from ..exceptions import ChainAPIError
from ..resilience import RetryPolicy
from ..schemas import FioBalance, LockedTokensRow, ProducerRow, VoterRow, VotersPage
from ..types import EnrichmentStage, ProducerRecord, VoterRecord


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Two retries with no waiting."""
    return RetryPolicy(max_retries=2, initial_delay=0.0, max_delay=0.0, multiplier=2.0)


def make_voter(
    owner: str,
    balance: str = "0",
    locked: str = "0",
    proxy: str = "",
    is_proxy: bool = False,
    producers: Optional[List[str]] = None,
    voter_id: int = 0,
    enriched: bool = True,
) -> VoterRecord:
    voter = VoterRecord(
        id=voter_id,
        owner=owner,
        proxy=proxy,
        is_proxy=is_proxy,
        producers=producers or [],
        balance=Decimal(balance),
        locked_amount=Decimal(locked),
    )
    if enriched:
        for stage in EnrichmentStage:
            voter.mark_enriched(stage)
    return voter


def make_producer(owner: str, total_votes: str = "0") -> ProducerRecord:
    return ProducerRecord(owner=owner, total_votes=Decimal(total_votes))


class FakeChain:
    """
    In-memory stand-in for ChainAPIClient.

    Nodes listed in ``down_nodes`` fail every call. Every call is recorded
    in ``calls`` as ``(method, node, key)``.
    """

    def __init__(
        self,
        voter_rows: Optional[List[dict]] = None,
        page_size: int = 1000,
        accounts: Optional[Dict[str, str]] = None,
        balances: Optional[Dict[str, Tuple[int, int]]] = None,
        locks: Optional[Dict[str, Tuple[int, int]]] = None,
        producer_rows: Optional[List[dict]] = None,
    ):
        self.voter_rows = [VoterRow(**row) for row in (voter_rows or [])]
        self.page_size = page_size
        self.accounts = accounts or {}
        self.balances = balances or {}
        self.locks = locks or {}
        self.producer_rows = [ProducerRow(**row) for row in (producer_rows or [])]
        self.down_nodes: Set[str] = set()
        self.calls: List[Tuple[str, str, object]] = []

    def _check(self, method: str, node: str, key: object) -> None:
        self.calls.append((method, node, key))
        if node in self.down_nodes:
            raise ChainAPIError("node unavailable", 503, node)

    async def get_voters_page(self, node: str, lower_bound: int, limit: int) -> VotersPage:
        self._check("voters", node, lower_bound)
        limit = min(limit, self.page_size)
        remaining = [row for row in self.voter_rows if row.id >= lower_bound]
        return VotersPage(rows=remaining[:limit], more=len(remaining) > limit)

    async def get_producers(self, node: str, limit: int) -> List[ProducerRow]:
        self._check("producers", node, limit)
        return self.producer_rows[:limit]

    async def get_account_public_key(self, node: str, owner: str) -> Optional[str]:
        self._check("public_key", node, owner)
        return self.accounts.get(owner)

    async def get_fio_balance(self, node: str, public_key: str) -> FioBalance:
        self._check("balance", node, public_key)
        balance, available = self.balances.get(public_key, (0, 0))
        return FioBalance(balance=balance, available=available)

    async def get_locked_tokens(self, node: str, owner: str) -> Optional[LockedTokensRow]:
        self._check("locked", node, owner)
        if owner not in self.locks:
            return None
        grant_type, remaining = self.locks[owner]
        return LockedTokensRow(owner=owner, grant_type=grant_type, remaining_locked_amount=remaining)


@pytest.fixture
def fake_chain_factory():
    return FakeChain
