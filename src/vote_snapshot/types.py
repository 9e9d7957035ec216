"""
Domain records for the vote snapshot engine.

A VoterRecord is created once from a chain row, then mutated in place by
the enrichment stages (public key, balance, locked tokens) and finally by
the aggregator. Stage ordering is an explicit precondition: the balance
lookup needs ``public_key``, and aggregation needs all three stages, which
each record tracks in ``enriched_stages``.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Set, Tuple, Union

from pydantic import BaseModel, Field

from .schemas import ProducerRow, VoterRow

# Smallest units per FIO token
SUF_PER_FIO = Decimal(10) ** 9


def suf_to_fio(amount: Union[int, str, Decimal]) -> Decimal:
    """Convert a fixed-point chain amount into a decimal token amount."""
    return Decimal(amount) / SUF_PER_FIO


class EnrichmentStage(str, Enum):
    """Enrichment passes a voter must complete before aggregation."""
    PUBLIC_KEY = "public_key"
    BALANCE = "balance"
    LOCKED_TOKENS = "locked_tokens"


class VoterRecord(BaseModel):
    """
    On-chain voting state of one account plus enrichment and derived fields.

    Attributes:
        id: Row id in the voters table
        fioaddress: FIO address registered for voting, may be empty
        owner: Account name, unique across voters
        proxy: Owner account of the proxy this voter delegates to, or empty
        producers: Producers voted for directly, in chain order, no duplicates
        is_proxy: Whether this voter is registered as an active proxy
        is_auto_proxy: Informational chain flag
        last_vote_weight: Chain-reported vote weight, in FIO
        proxied_vote_weight: Chain-reported weight delegated to this voter, in FIO
        public_key: FIO public key mapped to ``owner``
        balance: Total token balance, in FIO
        available: Spendable balance, in FIO
        locked_amount: Remaining locked amount of the excluded grant type, in FIO
        own_weight: Computed effective weight (includes delegation for active proxies)
        proxied_weight: Computed weight delegated to this voter
        enriched_stages: Enrichment stages already written to this record
    """
    id: int
    fioaddress: str = ""
    owner: str
    proxy: str = ""
    producers: List[str] = Field(default_factory=list)
    is_proxy: bool = False
    is_auto_proxy: bool = False
    last_vote_weight: Decimal = Decimal(0)
    proxied_vote_weight: Decimal = Decimal(0)

    public_key: str = ""
    balance: Decimal = Decimal(0)
    available: Decimal = Decimal(0)
    locked_amount: Decimal = Decimal(0)

    own_weight: Decimal = Decimal(0)
    proxied_weight: Decimal = Decimal(0)

    enriched_stages: Set[EnrichmentStage] = Field(default_factory=set)

    @classmethod
    def from_chain_row(cls, row: VoterRow) -> "VoterRecord":
        """Normalize a voters table row; the only place fixed-point weights are scaled."""
        return cls(
            id=row.id,
            fioaddress=row.fioaddress,
            owner=row.owner,
            proxy=row.proxy,
            producers=list(dict.fromkeys(row.producers)),
            is_proxy=row.is_proxy,
            is_auto_proxy=row.is_auto_proxy,
            last_vote_weight=suf_to_fio(row.last_vote_weight),
            proxied_vote_weight=suf_to_fio(row.proxied_vote_weight),
        )

    def mark_enriched(self, stage: EnrichmentStage) -> None:
        self.enriched_stages.add(stage)

    @property
    def is_fully_enriched(self) -> bool:
        return all(stage in self.enriched_stages for stage in EnrichmentStage)


class ProducerRecord(BaseModel):
    """Block producer with its chain-reported and recomputed vote totals."""
    owner: str
    fio_address: str = ""
    total_votes: Decimal = Decimal(0)
    computed_total_votes: Decimal = Decimal(0)

    @classmethod
    def from_chain_row(cls, row: ProducerRow) -> "ProducerRecord":
        return cls(
            owner=row.owner,
            fio_address=row.fio_address,
            total_votes=suf_to_fio(row.total_votes),
        )


class SnapshotResult(BaseModel):
    """Terminal output of one pipeline run, handed to the consumer as-is."""
    voters: Tuple[VoterRecord, ...]
    producers: Tuple[ProducerRecord, ...]
    flagged_voter_owners: Tuple[str, ...] = ()
    flagged_producer_owners: Tuple[str, ...] = ()
    completed_at: datetime

    model_config = {"frozen": True}
