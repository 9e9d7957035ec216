"""
Vote Snapshot Engine.

Rebuilds FIO voting power from a pool of public API nodes:
- fetcher: paginated voter scan and producer list
- enrichment: concurrent per-record lookups with node failover
- aggregator: proxy delegation and producer vote tallies
- pipeline: sequential stage driver with progress snapshots
"""
from src.vote_snapshot.aggregator import aggregate, flagged_producers, flagged_voters
from src.vote_snapshot.chain_client import ChainAPIClient
from src.vote_snapshot.enrichment import EnrichmentEngine, TaskState
from src.vote_snapshot.exceptions import (
    ChainAPIError,
    EnrichmentExhaustedError,
    PipelineBusyError,
    ProducerFetchError,
    VoteSnapshotError,
)
from src.vote_snapshot.fetcher import fetch_all_voters, fetch_producers
from src.vote_snapshot.node_pool import NodePool
from src.vote_snapshot.pipeline import SnapshotPipeline
from src.vote_snapshot.progress import PipelineStage, ProgressSnapshot
from src.vote_snapshot.resilience import RetryPolicy, retry_request
from src.vote_snapshot.types import ProducerRecord, SnapshotResult, VoterRecord

__all__ = [
    "SnapshotPipeline",
    "SnapshotResult",
    "ProgressSnapshot",
    "PipelineStage",
    "NodePool",
    "RetryPolicy",
    "retry_request",
    "ChainAPIClient",
    "EnrichmentEngine",
    "TaskState",
    "fetch_all_voters",
    "fetch_producers",
    "aggregate",
    "flagged_voters",
    "flagged_producers",
    "VoterRecord",
    "ProducerRecord",
    "VoteSnapshotError",
    "ChainAPIError",
    "EnrichmentExhaustedError",
    "ProducerFetchError",
    "PipelineBusyError",
]
