"""Tests for progress tracking and snapshots."""
import pytest
from pydantic import ValidationError

from ..progress import PipelineStage, ProgressTracker, StageCounter


class TestPipelineStage:

    def test_terminal_stages(self):
        assert PipelineStage.IDLE.terminal
        assert PipelineStage.COMPLETE.terminal
        assert PipelineStage.ERROR.terminal
        assert not PipelineStage.UPDATING_BALANCES.terminal

    def test_labels(self):
        assert PipelineStage.IDLE.value == ""
        assert PipelineStage.UPDATING_LOCKED_TOKENS.value == "Updating locked tokens"


class TestProgressTracker:

    def test_counters_reset_on_stage_entry(self):
        tracker = ProgressTracker()
        tracker.start_counter(PipelineStage.UPDATING_BALANCES, 10)
        tracker.advance(PipelineStage.UPDATING_BALANCES, 4, 10)
        tracker.start_counter(PipelineStage.UPDATING_BALANCES, 12)
        assert tracker.snapshot().balance_status == StageCounter(current=0, total=12)

    def test_advance_is_monotonic(self):
        """Out-of-order callbacks never move the counter backwards."""
        tracker = ProgressTracker()
        tracker.start_counter(PipelineStage.FETCHING_PUBLIC_KEYS, 5)
        tracker.advance(PipelineStage.FETCHING_PUBLIC_KEYS, 3, 5)
        tracker.advance(PipelineStage.FETCHING_PUBLIC_KEYS, 2, 5)
        assert tracker.snapshot().public_key_status.current == 3

    def test_snapshot_is_detached_and_frozen(self):
        tracker = ProgressTracker()
        tracker.set_stage(PipelineStage.UPDATING_LOCKED_TOKENS)
        tracker.start_counter(PipelineStage.UPDATING_LOCKED_TOKENS, 2)
        snapshot = tracker.snapshot()

        tracker.advance(PipelineStage.UPDATING_LOCKED_TOKENS, 2, 2)
        tracker.set_stage(PipelineStage.COMPLETE)

        assert snapshot.stage is PipelineStage.UPDATING_LOCKED_TOKENS
        assert snapshot.locked_tokens_status.current == 0
        with pytest.raises(ValidationError):
            snapshot.stage = PipelineStage.ERROR

    def test_reset(self):
        tracker = ProgressTracker()
        tracker.set_stage(PipelineStage.ERROR)
        tracker.start_counter(PipelineStage.UPDATING_BALANCES, 3)
        tracker.reset()
        snapshot = tracker.snapshot()
        assert snapshot.stage is PipelineStage.IDLE
        assert snapshot.balance_status == StageCounter()

    def test_uncounted_stage_rejected(self):
        tracker = ProgressTracker()
        with pytest.raises(ValueError):
            tracker.advance(PipelineStage.FETCHING_VOTERS, 1, 1)
