"""Unit tests for ProgressTracker."""

from unittest.mock import MagicMock, patch

from verdict_core.evals.progress import ProgressEventType, ProgressTracker


class TestProgressTracker:
    """Tests for progress accounting and callback fan-out."""

    def test_progress_percentage(self):
        tracker = ProgressTracker([], total_configurations=2, total_fields=2)

        assert tracker.progress == 0.0
        tracker.advance()
        assert tracker.progress == 25.0
        for _ in range(5):
            tracker.advance()
        assert tracker.progress == 100.0

    def test_no_steps_is_complete(self):
        assert ProgressTracker([], 0, 3).progress == 100.0

    def test_emit_calls_every_callback(self):
        first, second = MagicMock(), MagicMock()
        tracker = ProgressTracker([first, second], 1, 1)

        tracker.emit(ProgressEventType.CONFIG_START, configuration="default", params={})

        event = first.call_args[0][0]
        assert event.event_type == ProgressEventType.CONFIG_START
        assert event.configuration == "default"
        assert event.data == {"params": {}}
        second.assert_called_once_with(event)

    def test_failing_callback_is_logged_and_skipped(self):
        failing = MagicMock(side_effect=RuntimeError("callback broke"))
        working = MagicMock()
        tracker = ProgressTracker([failing, working], 1, 1)

        with patch("verdict_core.evals.progress.logger") as mock_logger:
            tracker.emit(ProgressEventType.START)

        working.assert_called_once()
        mock_logger.warning.assert_called_once()
