"""
Command-line entry point: run one snapshot and log a summary.

    python -m src.vote_snapshot.main --show-flagged
"""
import argparse
import asyncio
import logging
from typing import List, Optional

from src.config.snapshot_settings import DISCREPANCY_THRESHOLD, REQUEST_TIMEOUT_SECONDS
from src.utils.logger import logger

from .chain_client import ChainAPIClient
from .exceptions import VoteSnapshotError
from .node_pool import NodePool
from .pipeline import SnapshotPipeline
from .resilience import RetryPolicy
from .types import SnapshotResult


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rebuild FIO voting power from public API nodes")
    parser.add_argument(
        "--servers",
        help="Comma separated node URLs (defaults to FIO_API_SERVERS or the public node list)",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL, e.g. DEBUG")
    parser.add_argument(
        "--show-flagged",
        action="store_true",
        help="Log every voter and producer whose computed weight differs from the chain",
    )
    return parser.parse_args(argv)


def _log_flagged(result: SnapshotResult) -> None:
    flagged_voters = set(result.flagged_voter_owners)
    for voter in result.voters:
        if voter.owner in flagged_voters:
            logger.info(
                f"[Review] voter {voter.owner}: last_vote_weight={voter.last_vote_weight:.9f} "
                f"computed={voter.own_weight:.9f} proxied_vote_weight={voter.proxied_vote_weight:.9f} "
                f"computed_proxied={voter.proxied_weight:.9f}"
            )
    flagged_producers = set(result.flagged_producer_owners)
    for producer in result.producers:
        if producer.owner in flagged_producers:
            logger.info(
                f"[Review] producer {producer.owner}: total_votes={producer.total_votes:.9f} "
                f"computed={producer.computed_total_votes:.9f}"
            )


async def run_snapshot(servers: Optional[List[str]] = None, show_flagged: bool = False) -> SnapshotResult:
    pool = NodePool.from_settings(servers)
    async with ChainAPIClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
        pipeline = SnapshotPipeline(
            client,
            pool,
            RetryPolicy.from_settings(),
            discrepancy_threshold=DISCREPANCY_THRESHOLD,
        )
        result = await pipeline.run()
    if show_flagged:
        _log_flagged(result)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.log_level:
        logger.setLevel(getattr(logging, args.log_level.upper(), logging.INFO))

    servers = None
    if args.servers:
        servers = [server.strip() for server in args.servers.split(",") if server.strip()]

    try:
        asyncio.run(run_snapshot(servers, args.show_flagged))
    except VoteSnapshotError as e:
        logger.error(f"Snapshot failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
