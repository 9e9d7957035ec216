"""Tests for the public key, balance and locked-token operations."""
from decimal import Decimal

import pytest

from ..enrichers import make_balance_lookup, make_locked_tokens_lookup, make_public_key_lookup
from ..exceptions import RecordLookupError
from ..types import EnrichmentStage
from .conftest import FakeChain, make_voter

NODE = "https://a"


class TestPublicKeyLookup:

    @pytest.mark.asyncio
    async def test_writes_public_key(self):
        chain = FakeChain(accounts={"alice": "FIO6alice"})
        voter = make_voter("alice", enriched=False)

        await make_public_key_lookup(chain)(voter, NODE)

        assert voter.public_key == "FIO6alice"
        assert EnrichmentStage.PUBLIC_KEY in voter.enriched_stages

    @pytest.mark.asyncio
    async def test_missing_account_is_a_failure(self):
        """No matching account is treated as a failed attempt, not a soft zero."""
        chain = FakeChain(accounts={})
        voter = make_voter("ghost", enriched=False)

        with pytest.raises(RecordLookupError) as exc_info:
            await make_public_key_lookup(chain)(voter, NODE)

        assert exc_info.value.retryable is True
        assert voter.enriched_stages == set()


class TestBalanceLookup:

    @pytest.mark.asyncio
    async def test_writes_balance_and_available(self):
        chain = FakeChain(balances={"FIO6alice": (12_500_000_000, 10_000_000_000)})
        voter = make_voter("alice", enriched=False)
        voter.public_key = "FIO6alice"

        await make_balance_lookup(chain)(voter, NODE)

        assert voter.balance == Decimal("12.5")
        assert voter.available == Decimal(10)
        assert EnrichmentStage.BALANCE in voter.enriched_stages

    @pytest.mark.asyncio
    async def test_requires_public_key(self):
        chain = FakeChain()
        voter = make_voter("alice", enriched=False)

        with pytest.raises(RecordLookupError) as exc_info:
            await make_balance_lookup(chain)(voter, NODE)

        assert exc_info.value.retryable is False
        assert chain.calls == []


class TestLockedTokensLookup:

    @pytest.mark.asyncio
    async def test_matching_grant_type_sets_locked_amount(self):
        chain = FakeChain(locks={"alice": (4, 3_000_000_000)})
        voter = make_voter("alice", enriched=False)

        await make_locked_tokens_lookup(chain, grant_type=4)(voter, NODE)

        assert voter.locked_amount == Decimal(3)
        assert EnrichmentStage.LOCKED_TOKENS in voter.enriched_stages

    @pytest.mark.asyncio
    async def test_other_grant_type_counts_as_zero(self):
        chain = FakeChain(locks={"alice": (2, 3_000_000_000)})
        voter = make_voter("alice", enriched=False)

        await make_locked_tokens_lookup(chain, grant_type=4)(voter, NODE)

        assert voter.locked_amount == Decimal(0)
        assert EnrichmentStage.LOCKED_TOKENS in voter.enriched_stages

    @pytest.mark.asyncio
    async def test_no_grant_is_success(self):
        chain = FakeChain()
        voter = make_voter("alice", enriched=False)

        await make_locked_tokens_lookup(chain)(voter, NODE)

        assert voter.locked_amount == Decimal(0)
        assert EnrichmentStage.LOCKED_TOKENS in voter.enriched_stages
