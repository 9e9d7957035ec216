"""
Pipeline progress state.

The ProgressTracker is owned by the pipeline driver and is its only writer.
Everyone else reads frozen ProgressSnapshot copies.
"""
import threading
from enum import Enum
from typing import Dict

from pydantic import BaseModel


class PipelineStage(str, Enum):
    """Ordered pipeline positions plus the idle and terminal states."""
    IDLE = ""
    FETCHING_VOTERS = "Fetching voters"
    FETCHING_PUBLIC_KEYS = "Fetching public keys"
    UPDATING_BALANCES = "Updating balances"
    UPDATING_LOCKED_TOKENS = "Updating locked tokens"
    UPDATING_PROXIED_VOTES = "Updating proxied votes"
    FETCHING_PRODUCERS = "Fetching producers"
    CALCULATING_PRODUCER_VOTES = "Calculating producer votes"
    COMPLETE = "Complete"
    ERROR = "Error"

    @property
    def terminal(self) -> bool:
        """True when no run is in progress."""
        return self in (PipelineStage.IDLE, PipelineStage.COMPLETE, PipelineStage.ERROR)


# Stages that report a per-record counter
COUNTED_STAGES = (
    PipelineStage.FETCHING_PUBLIC_KEYS,
    PipelineStage.UPDATING_BALANCES,
    PipelineStage.UPDATING_LOCKED_TOKENS,
)


class StageCounter(BaseModel):
    current: int = 0
    total: int = 0

    model_config = {"frozen": True}


class ProgressSnapshot(BaseModel):
    """Point-in-time view of pipeline progress."""
    stage: PipelineStage = PipelineStage.IDLE
    public_key_status: StageCounter = StageCounter()
    balance_status: StageCounter = StageCounter()
    locked_tokens_status: StageCounter = StageCounter()

    model_config = {"frozen": True}


class ProgressTracker:
    """Mutable progress owned by a single pipeline driver."""

    def __init__(self):
        self._lock = threading.Lock()
        self._stage = PipelineStage.IDLE
        self._counters: Dict[PipelineStage, StageCounter] = {}
        self.reset()

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    def reset(self) -> None:
        with self._lock:
            self._stage = PipelineStage.IDLE
            self._counters = {stage: StageCounter() for stage in COUNTED_STAGES}

    def set_stage(self, stage: PipelineStage) -> None:
        with self._lock:
            self._stage = stage

    def start_counter(self, stage: PipelineStage, total: int) -> None:
        """Reset ``stage``'s counter to 0/total on stage entry."""
        self._require_counted(stage)
        with self._lock:
            self._counters[stage] = StageCounter(current=0, total=total)

    def advance(self, stage: PipelineStage, current: int, total: int) -> None:
        """Record ``current`` successes of ``total``; never moves a counter backwards."""
        self._require_counted(stage)
        with self._lock:
            previous = self._counters[stage]
            self._counters[stage] = StageCounter(current=max(previous.current, current), total=total)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                stage=self._stage,
                public_key_status=self._counters[PipelineStage.FETCHING_PUBLIC_KEYS],
                balance_status=self._counters[PipelineStage.UPDATING_BALANCES],
                locked_tokens_status=self._counters[PipelineStage.UPDATING_LOCKED_TOKENS],
            )

    @staticmethod
    def _require_counted(stage: PipelineStage) -> None:
        if stage not in COUNTED_STAGES:
            raise ValueError(f"Stage '{stage.value}' has no progress counter")
