"""Tests for record normalization."""
from decimal import Decimal

from ..schemas import ProducerRow, VoterRow
from ..types import EnrichmentStage, ProducerRecord, VoterRecord, suf_to_fio


class TestVoterRecord:

    def test_from_chain_row(self):
        row = VoterRow(
            id=3,
            fioaddress="bob@fio",
            owner="bob",
            proxy="alice",
            producers=["bp1", "bp2", "bp1"],
            last_vote_weight="123456789012.5",
            proxied_vote_weight="1000000000",
            is_proxy=1,
            is_auto_proxy=0,
        )
        voter = VoterRecord.from_chain_row(row)

        assert voter.producers == ["bp1", "bp2"]
        assert voter.last_vote_weight == Decimal("123.4567890125")
        assert voter.proxied_vote_weight == Decimal(1)
        assert voter.is_proxy is True
        assert voter.balance == voter.locked_amount == voter.own_weight == Decimal(0)
        assert not voter.is_fully_enriched

    def test_fully_enriched_after_all_stages(self):
        voter = VoterRecord(id=1, owner="bob")
        voter.mark_enriched(EnrichmentStage.PUBLIC_KEY)
        voter.mark_enriched(EnrichmentStage.BALANCE)
        assert not voter.is_fully_enriched
        voter.mark_enriched(EnrichmentStage.LOCKED_TOKENS)
        assert voter.is_fully_enriched


class TestProducerRecord:

    def test_from_chain_row(self):
        producer = ProducerRecord.from_chain_row(
            ProducerRow(owner="bp1", fio_address="bp1@fio", total_votes="42000000000.00000000000")
        )
        assert producer.total_votes == Decimal(42)
        assert producer.computed_total_votes == Decimal(0)


def test_suf_to_fio():
    assert suf_to_fio(1) == Decimal("0.000000001")
    assert suf_to_fio("5000000000") == Decimal(5)
