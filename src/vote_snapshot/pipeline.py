"""
Snapshot pipeline driver.

Runs the stages strictly in order:

1. Fetch every voter (paginated, node rotation)
2. Enrich public keys, then balances, then locked tokens
3. Compute own and proxied weights
4. Fetch producers
5. Tally producer votes and flag discrepancies

A run either completes and publishes a new SnapshotResult, or ends in the
Error stage and leaves the previously published result untouched.
"""
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from src.config.snapshot_settings import (
    DISCREPANCY_THRESHOLD,
    PRODUCERS_LIMIT,
    VOTERS_PAGE_LIMIT,
)
from src.utils.logger import logger

from .aggregator import (
    apply_proxy_delegation,
    compute_own_weights,
    ensure_fully_enriched,
    flagged_producers,
    flagged_voters,
    tally_producer_votes,
)
from .chain_client import ChainAPIClient
from .enrichers import (
    make_balance_lookup,
    make_locked_tokens_lookup,
    make_public_key_lookup,
)
from .enrichment import EnrichmentEngine, EnrichmentOperation
from .exceptions import PipelineBusyError, VoteSnapshotError
from .fetcher import fetch_all_voters, fetch_producers
from .node_pool import NodePool
from .progress import PipelineStage, ProgressSnapshot, ProgressTracker
from .resilience import RetryPolicy
from .types import ProducerRecord, SnapshotResult, VoterRecord


class SnapshotPipeline:
    """
    Drives one voting-power snapshot at a time.

    Usage:
        async with ChainAPIClient() as client:
            pipeline = SnapshotPipeline(client, NodePool.from_settings())
            result = await pipeline.run()
    """

    def __init__(
        self,
        client: ChainAPIClient,
        pool: NodePool,
        policy: Optional[RetryPolicy] = None,
        page_limit: int = VOTERS_PAGE_LIMIT,
        producers_limit: int = PRODUCERS_LIMIT,
        discrepancy_threshold: float = DISCREPANCY_THRESHOLD,
    ):
        self.client = client
        self.pool = pool
        self.policy = policy or RetryPolicy.from_settings()
        self.page_limit = page_limit
        self.producers_limit = producers_limit
        self.discrepancy_threshold = discrepancy_threshold
        self.engine = EnrichmentEngine(pool, self.policy)

        self._progress = ProgressTracker()
        self._running = False
        self._latest: Optional[SnapshotResult] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def latest_result(self) -> Optional[SnapshotResult]:
        """Result of the last completed run, if any."""
        return self._latest

    def progress(self) -> ProgressSnapshot:
        return self._progress.snapshot()

    async def run(self) -> SnapshotResult:
        """
        Execute a full snapshot.

        Returns:
            The newly published SnapshotResult

        Raises:
            PipelineBusyError: If a run is already in progress
            VoteSnapshotError: If a stage fails; progress ends in the Error stage
        """
        if self._running:
            raise PipelineBusyError()

        self._running = True
        self._progress.reset()
        try:
            result = await self._execute()
        except VoteSnapshotError as e:
            self._progress.set_stage(PipelineStage.ERROR)
            logger.error(f"[Pipeline] Error during data processing: {e}")
            raise
        except Exception:
            self._progress.set_stage(PipelineStage.ERROR)
            logger.exception("[Pipeline] Unexpected error during data processing")
            raise
        finally:
            self._running = False

        self._latest = result
        self._progress.set_stage(PipelineStage.COMPLETE)
        logger.info("[Pipeline] Data processing complete.")
        return result

    async def _execute(self) -> SnapshotResult:
        self._progress.set_stage(PipelineStage.FETCHING_VOTERS)
        logger.info("[Pipeline] Fetching voters...")
        voters = await fetch_all_voters(self.client, self.pool, self.policy, self.page_limit)

        await self._enrich_stage(
            voters,
            PipelineStage.FETCHING_PUBLIC_KEYS,
            make_public_key_lookup(self.client),
        )
        await self._enrich_stage(
            voters,
            PipelineStage.UPDATING_BALANCES,
            make_balance_lookup(self.client),
        )
        await self._enrich_stage(
            voters,
            PipelineStage.UPDATING_LOCKED_TOKENS,
            make_locked_tokens_lookup(self.client),
        )

        self._progress.set_stage(PipelineStage.UPDATING_PROXIED_VOTES)
        logger.info("[Pipeline] Updating proxied votes...")
        ensure_fully_enriched(voters)
        compute_own_weights(voters)
        apply_proxy_delegation(voters)

        self._progress.set_stage(PipelineStage.FETCHING_PRODUCERS)
        logger.info("[Pipeline] Fetching producers...")
        producers = await fetch_producers(self.client, self.pool, self.policy, self.producers_limit)

        self._progress.set_stage(PipelineStage.CALCULATING_PRODUCER_VOTES)
        logger.info("[Pipeline] Calculating producer votes...")
        tally_producer_votes(voters, producers)

        return self._build_result(voters, producers)

    async def _enrich_stage(
        self,
        voters: List[VoterRecord],
        stage: PipelineStage,
        operation: EnrichmentOperation,
    ) -> None:
        self._progress.set_stage(stage)
        self._progress.start_counter(stage, len(voters))
        logger.info(f"[Pipeline] {stage.value}...")

        def on_progress(current: int, total: int) -> None:
            self._progress.advance(stage, current, total)
            logger.debug(f"[Pipeline] {stage.value} progress: {current}/{total}")

        await self.engine.enrich(voters, operation, on_progress, stage=stage.value)
        logger.info(f"[Pipeline] Finished {stage.value.lower()}")

    def _build_result(
        self,
        voters: Sequence[VoterRecord],
        producers: Sequence[ProducerRecord],
    ) -> SnapshotResult:
        flagged_voter_owners = tuple(v.owner for v in flagged_voters(voters, self.discrepancy_threshold))
        flagged_producer_owners = tuple(
            p.owner for p in flagged_producers(producers, self.discrepancy_threshold)
        )
        logger.info(
            f"[Pipeline] {len(voters)} voters, {len(producers)} producers; flagged "
            f"{len(flagged_voter_owners)} voter(s) and {len(flagged_producer_owners)} producer(s)"
        )
        return SnapshotResult(
            voters=tuple(voters),
            producers=tuple(producers),
            flagged_voter_owners=flagged_voter_owners,
            flagged_producer_owners=flagged_producer_owners,
            completed_at=datetime.now(timezone.utc),
        )
