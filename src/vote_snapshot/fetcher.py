"""
Bulk retrieval of the voter set and the producer list.
"""
import asyncio
from typing import List

from src.config.snapshot_settings import PRODUCERS_LIMIT, VOTERS_PAGE_LIMIT
from src.utils.logger import logger

from .chain_client import ChainAPIClient
from .exceptions import ProducerFetchError, VoteSnapshotError
from .node_pool import NodePool
from .resilience import RetryPolicy, retry_request
from .types import ProducerRecord, VoterRecord


async def fetch_all_voters(
    client: ChainAPIClient,
    pool: NodePool,
    policy: RetryPolicy,
    page_limit: int = VOTERS_PAGE_LIMIT,
) -> List[VoterRecord]:
    """
    Scan the voters table from id 0 until a page reports no more rows.

    Each page attempt goes to the next node in rotation and is retried on
    that node by ``retry_request``. A page that exhausts its retries is
    logged and attempted again at the same lower bound on the next node.
    Only a successful ``more == False`` page ends the loop, so a pool that
    never answers keeps this coroutine running.

    Returns:
        Normalized voters in the order the chain returned them
    """
    voters: List[VoterRecord] = []
    lower_bound = 0
    more = True

    while more:
        node = pool.next()
        try:
            page = await retry_request(
                lambda: client.get_voters_page(node, lower_bound, page_limit),
                policy,
                description=f"voters page lower_bound={lower_bound} on {node}",
            )
        except VoteSnapshotError as e:
            logger.error(f"[Fetcher] Failed to fetch voters from server {node}: {e}")
            continue

        voters.extend(VoterRecord.from_chain_row(row) for row in page.rows)
        logger.info(
            f"[Fetcher] Page lower_bound={lower_bound} from {node}: "
            f"{len(page.rows)} rows, more={page.more}"
        )

        more = page.more
        if more and page.rows:
            lower_bound = max(row.id for row in page.rows) + 1
        elif more:
            # Empty page that still reports more rows: same bound, after a pause
            delay = policy.delay_for(0)
            logger.warning(
                f"[Fetcher] Empty page with more=true at lower_bound={lower_bound} from {node}. "
                f"Retrying in {delay:.2f}s..."
            )
            await asyncio.sleep(delay)

    logger.info(f"[Fetcher] Fetched {len(voters)} voters")
    return voters


async def fetch_producers(
    client: ChainAPIClient,
    pool: NodePool,
    policy: RetryPolicy,
    limit: int = PRODUCERS_LIMIT,
) -> List[ProducerRecord]:
    """
    Fetch the producer list from the first node that answers.

    Nodes are tried in pool order, each through ``retry_request``.

    Raises:
        ProducerFetchError: If every node fails
    """
    for node in pool:
        try:
            rows = await retry_request(
                lambda: client.get_producers(node, limit),
                policy,
                description=f"producers on {node}",
            )
        except VoteSnapshotError as e:
            logger.error(f"[Fetcher] Failed to fetch producers from server {node}: {e}")
            continue

        producers = [ProducerRecord.from_chain_row(row) for row in rows]
        logger.info(f"[Fetcher] Fetched {len(producers)} producers from {node}")
        return producers

    raise ProducerFetchError()
