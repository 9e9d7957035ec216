"""
Proxy-weight aggregation over fully enriched voters.

All functions are synchronous and mutate the records they are given.

Delegation is a single linear pass in voter input order, not a transitive
closure. For a chain A -> B -> C, A's weight only reaches C if B's edge is
processed after B has already received A's weight, which depends on the
order of the voter list.
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence, Union

from src.config.snapshot_settings import DISCREPANCY_THRESHOLD
from src.utils.logger import logger

from .exceptions import IncompleteEnrichmentError
from .types import EnrichmentStage, ProducerRecord, VoterRecord

Threshold = Union[Decimal, int, float, str]


def _as_decimal(value: Threshold) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def ensure_fully_enriched(voters: Iterable[VoterRecord]) -> None:
    """
    Raises:
        IncompleteEnrichmentError: If any voter is missing an enrichment stage
    """
    missing: Dict[str, List[str]] = {}
    for voter in voters:
        for stage in EnrichmentStage:
            if stage not in voter.enriched_stages:
                missing.setdefault(stage.value, []).append(voter.owner)
    if missing:
        raise IncompleteEnrichmentError(missing)


def compute_own_weights(voters: Iterable[VoterRecord]) -> None:
    """Base weight from stake alone: balance minus the excluded locked amount."""
    for voter in voters:
        voter.own_weight = voter.balance - voter.locked_amount
        voter.proxied_weight = Decimal(0)


def apply_proxy_delegation(voters: Sequence[VoterRecord]) -> None:
    """
    Single pass over ``voters`` in order, crediting each voter's own weight to its proxy.

    ``proxied_weight`` is always credited. ``own_weight`` of the proxy grows
    only when the proxy is an active proxy (``is_proxy``). Proxies that are
    not in the voter set are ignored.
    """
    by_owner = {voter.owner: voter for voter in voters}
    unresolved = 0

    for voter in voters:
        if not voter.proxy:
            continue
        proxy = by_owner.get(voter.proxy)
        if proxy is None:
            unresolved += 1
            continue

        proxy.proxied_weight += voter.own_weight
        # Only an active proxy carries delegated weight as its own
        if proxy.is_proxy:
            proxy.own_weight += voter.own_weight

    if unresolved:
        logger.debug(f"[Aggregator] Ignored {unresolved} delegation(s) to proxies outside the voter set")


def tally_producer_votes(voters: Iterable[VoterRecord], producers: Iterable[ProducerRecord]) -> None:
    """Recompute each producer's total from scratch from its direct voters."""
    by_owner = {producer.owner: producer for producer in producers}
    for producer in by_owner.values():
        producer.computed_total_votes = Decimal(0)

    for voter in voters:
        for producer_owner in voter.producers:
            producer = by_owner.get(producer_owner)
            if producer is not None:
                producer.computed_total_votes += voter.own_weight


def aggregate(voters: Sequence[VoterRecord], producers: Sequence[ProducerRecord]) -> None:
    """Run the full aggregation on fully enriched voters."""
    ensure_fully_enriched(voters)
    compute_own_weights(voters)
    apply_proxy_delegation(voters)
    tally_producer_votes(voters, producers)


# ============================================
# Discrepancy detection
# ============================================

def is_voter_flagged(voter: VoterRecord, threshold: Threshold = DISCREPANCY_THRESHOLD) -> bool:
    limit = _as_decimal(threshold)
    return (
        abs(voter.own_weight - voter.last_vote_weight) > limit
        or abs(voter.proxied_weight - voter.proxied_vote_weight) > limit
    )


def is_producer_flagged(producer: ProducerRecord, threshold: Threshold = DISCREPANCY_THRESHOLD) -> bool:
    return abs(producer.computed_total_votes - producer.total_votes) > _as_decimal(threshold)


def flagged_voters(voters: Iterable[VoterRecord], threshold: Threshold = DISCREPANCY_THRESHOLD) -> List[VoterRecord]:
    return [voter for voter in voters if is_voter_flagged(voter, threshold)]


def flagged_producers(
    producers: Iterable[ProducerRecord],
    threshold: Threshold = DISCREPANCY_THRESHOLD,
) -> List[ProducerRecord]:
    return [producer for producer in producers if is_producer_flagged(producer, threshold)]
