"""
Concurrent Enrichment Engine

Runs one enrichment operation against every voter record, spreading the
records across the node pool and retrying failed records on a different
node after a backoff delay.

Records are processed in batches no larger than the pool, one node per
record on the first attempt, so at most ``pool.size`` records are in flight
at once. Inside a batch a small dispatcher drives each record through:

- PENDING: queued for its first attempt
- IN_FLIGHT: operation running against ``node``
- RETRY_SCHEDULED: failed, re-queued with ``attempt + 1`` and a ``not_before`` gate
- SUCCEEDED: operation completed; progress advanced by one
- FAILED_PERMANENTLY: retry budget spent (or a non-retryable error)

A batch resolves only when every record has settled. Any permanent failure
stops the whole operation before the next batch starts.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional

from src.utils.logger import logger

from .exceptions import EnrichmentExhaustedError, is_retryable_exception
from .node_pool import NodePool
from .resilience import RetryPolicy
from .types import VoterRecord

EnrichmentOperation = Callable[[VoterRecord, str], Awaitable[None]]
ProgressCallback = Callable[[int, int], None]


class TaskState(Enum):
    """Lifecycle of one record inside an enrichment batch."""
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RETRY_SCHEDULED = "retry_scheduled"
    SUCCEEDED = "succeeded"
    FAILED_PERMANENTLY = "failed_permanently"


@dataclass
class EnrichmentTask:
    """Dispatch state for one record."""
    record: VoterRecord
    # Position inside the batch; fixes the node of the first attempt
    position: int
    attempt: int = 0
    state: TaskState = TaskState.PENDING
    # Event-loop time before which the task must not be dispatched
    not_before: float = 0.0
    node: Optional[str] = None
    last_error: Optional[Exception] = None
    nodes_tried: List[str] = field(default_factory=list)


class EnrichmentEngine:
    """
    Batch-by-batch concurrent executor for per-record enrichment.

    Usage:
        engine = EnrichmentEngine(pool, RetryPolicy.from_settings())
        await engine.enrich(voters, make_balance_lookup(client), on_progress, stage="balance")
    """

    def __init__(self, pool: NodePool, policy: Optional[RetryPolicy] = None):
        self.pool = pool
        self.policy = policy or RetryPolicy.from_settings()

    @property
    def batch_size(self) -> int:
        return self.pool.size

    def node_for(self, position: int, attempt: int) -> str:
        """Node for ``attempt`` of the record at ``position``; each retry moves one node on."""
        return self.pool.pick(position + attempt)

    async def enrich(
        self,
        records: Iterable[VoterRecord],
        operation: EnrichmentOperation,
        on_progress: Optional[ProgressCallback] = None,
        stage: str = "enrichment",
    ) -> List[EnrichmentTask]:
        """
        Apply ``operation`` to every record.

        Args:
            records: Records to enrich, mutated in place by ``operation``
            operation: Coroutine function ``(record, node)`` performing one lookup
            on_progress: Called as ``(successes_so_far, total_records)`` after each success
            stage: Stage label for logs and errors

        Returns:
            Settled tasks of every batch, in input order

        Raises:
            EnrichmentExhaustedError: When a batch ends with permanently failed records
        """
        records = list(records)
        total = len(records)
        succeeded = 0
        settled: List[EnrichmentTask] = []

        def record_success() -> None:
            nonlocal succeeded
            succeeded += 1
            if on_progress is not None:
                on_progress(succeeded, total)

        logger.info(f"[Enrichment:{stage}] Starting for {total} records in batches of {self.batch_size}")

        for start in range(0, total, self.batch_size):
            batch = [
                EnrichmentTask(record=record, position=position)
                for position, record in enumerate(records[start:start + self.batch_size])
            ]
            logger.debug(f"[Enrichment:{stage}] Processing batch of {len(batch)} records at offset {start}")
            await self._run_batch(batch, operation, record_success, stage)
            settled.extend(batch)

            failed = [task for task in batch if task.state is TaskState.FAILED_PERMANENTLY]
            if failed:
                logger.error(
                    f"[Enrichment:{stage}] {len(failed)} record(s) failed permanently at offset {start}; "
                    f"aborting after {succeeded}/{total}"
                )
                raise EnrichmentExhaustedError(stage, [task.record.owner for task in failed]) from failed[0].last_error

        logger.info(f"[Enrichment:{stage}] Finished {succeeded}/{total}")
        return settled

    async def _run_batch(
        self,
        batch: List[EnrichmentTask],
        operation: EnrichmentOperation,
        on_success: Callable[[], None],
        stage: str,
    ) -> None:
        queue: asyncio.Queue = asyncio.Queue()
        for task in batch:
            queue.put_nowait(task)

        # One worker per record; each record has at most one queue entry
        workers = [
            asyncio.create_task(self._worker(queue, operation, on_success, stage))
            for _ in batch
        ]
        try:
            await queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(
        self,
        queue: asyncio.Queue,
        operation: EnrichmentOperation,
        on_success: Callable[[], None],
        stage: str,
    ) -> None:
        loop = asyncio.get_running_loop()
        while True:
            task: EnrichmentTask = await queue.get()
            try:
                wait = task.not_before - loop.time()
                if wait > 0:
                    await asyncio.sleep(wait)
                await self._dispatch(task, queue, operation, on_success, stage)
            finally:
                queue.task_done()

    async def _dispatch(
        self,
        task: EnrichmentTask,
        queue: asyncio.Queue,
        operation: EnrichmentOperation,
        on_success: Callable[[], None],
        stage: str,
    ) -> None:
        task.node = self.node_for(task.position, task.attempt)
        task.nodes_tried.append(task.node)
        task.state = TaskState.IN_FLIGHT

        try:
            await operation(task.record, task.node)
        except Exception as e:
            task.last_error = e
            if not is_retryable_exception(e):
                task.state = TaskState.FAILED_PERMANENTLY
                logger.error(
                    f"[Enrichment:{stage}] {task.record.owner} failed on {task.node} with a "
                    f"non-retryable error: {e}",
                    exc_info=True,
                )
                return
            if task.attempt >= self.policy.max_retries:
                task.state = TaskState.FAILED_PERMANENTLY
                logger.error(
                    f"[Enrichment:{stage}] {task.record.owner} exhausted "
                    f"{self.policy.max_attempts} attempts; last error on {task.node}: {e}"
                )
                return

            delay = self.policy.delay_for(task.attempt)
            task.attempt += 1
            task.state = TaskState.RETRY_SCHEDULED
            task.not_before = asyncio.get_running_loop().time() + delay
            logger.warning(
                f"[Enrichment:{stage}] {task.node} errored for {task.record.owner}: {e}. "
                f"Retrying on {self.node_for(task.position, task.attempt)} in {delay:.2f}s "
                f"({task.attempt}/{self.policy.max_retries})"
            )
            # Re-queue before the worker acknowledges this dispatch so the
            # batch's queue.join() cannot return while a retry is pending.
            queue.put_nowait(task)
            return

        task.state = TaskState.SUCCEEDED
        on_success()
