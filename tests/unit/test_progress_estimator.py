"""
Unit Tests for Progress Estimator
"""

import pytest

from runreel.core.progress_estimator import (
    ProgressTracker,
    detect_peak_load,
    estimate,
    estimate_remaining_seconds,
    format_elapsed,
    format_remaining,
)
from runreel.models.generation import SessionState


ACTIVE_PHASES = [
    SessionState.INITIALIZING,
    SessionState.SUBMITTING,
    SessionState.QUEUED,
    SessionState.PROCESSING,
    SessionState.FINALIZING,
]


class TestEstimate:
    """Test progress estimation"""

    @pytest.mark.parametrize("phase", ACTIVE_PHASES)
    @pytest.mark.parametrize("is_peak_load", [False, True])
    def test_percentage_monotonic_and_capped(self, phase, is_peak_load):
        """Test percentage never decreases with time and stays below completion"""
        previous = 0.0
        for elapsed in range(0, 1200, 7):
            current = estimate(elapsed, phase, is_peak_load).percentage
            assert current >= previous
            assert current <= 95.0
            previous = current

    def test_phase_floors(self):
        assert estimate(0, SessionState.INITIALIZING, False).percentage == 5.0
        assert estimate(0, SessionState.QUEUED, False).percentage == 15.0
        assert estimate(0, SessionState.FINALIZING, False).percentage == 85.0

    def test_peak_load_slows_progress(self):
        normal = estimate(200, SessionState.PROCESSING, False).percentage
        peak = estimate(200, SessionState.PROCESSING, True).percentage
        assert peak < normal

    @pytest.mark.parametrize("phase", [SessionState.IDLE, SessionState.COMPLETED, SessionState.FAILED])
    def test_non_active_phases_report_zero(self, phase):
        assert estimate(300, phase, False).percentage == 0.0

    def test_negative_elapsed_treated_as_zero(self):
        assert estimate(-5, SessionState.QUEUED, False) == estimate(0, SessionState.QUEUED, False)

    def test_queued_messages(self):
        """Test queued message ladder"""
        assert estimate(10, SessionState.QUEUED, False).message == "Starting video generation..."
        assert estimate(60, SessionState.QUEUED, False).message == "Added to processing queue..."
        assert "peak hours" in estimate(100, SessionState.QUEUED, False).message
        assert "high demand" in estimate(200, SessionState.QUEUED, True).message
        assert "rendering will begin shortly" in estimate(200, SessionState.QUEUED, False).message

    def test_processing_messages(self):
        """Test processing message ladder"""
        assert "high demand" in estimate(150, SessionState.PROCESSING, True).message
        assert "AI generation in progress" in estimate(150, SessionState.PROCESSING, False).message
        assert "AI generation in progress" in estimate(300, SessionState.PROCESSING, True).message
        assert estimate(400, SessionState.PROCESSING, False).message.startswith("Almost complete")


class TestPeakLoad:
    """Test peak-load heuristic"""

    @pytest.mark.parametrize("elapsed,expected", [
        (0, False),
        (119.9, False),
        (120, False),
        (120.1, True),
        (600, True),
    ])
    def test_threshold(self, elapsed, expected):
        assert detect_peak_load(elapsed) is expected

    def test_custom_threshold(self):
        assert detect_peak_load(31, threshold_s=30) is True


class TestProgressTracker:
    """Test per-session progress state"""

    def test_percentage_survives_peak_flip(self):
        """Test the peak flag tripping does not pull the percentage back"""
        tracker = ProgressTracker()
        before = tracker.update(119, SessionState.PROCESSING).percentage
        after = tracker.update(121, SessionState.PROCESSING).percentage

        assert tracker.is_peak_load is True
        assert estimate(121, SessionState.PROCESSING, True).percentage < before
        assert after == before

    def test_percentage_survives_phase_change(self):
        tracker = ProgressTracker()
        tracker.update(100, SessionState.QUEUED)
        queued = tracker.percentage
        tracker.update(101, SessionState.PROCESSING)
        assert tracker.percentage >= queued

    def test_peak_flag_latches(self):
        tracker = ProgressTracker()
        tracker.update(130, SessionState.QUEUED)
        tracker.update(10, SessionState.PROCESSING)
        assert tracker.is_peak_load is True
        assert tracker.elapsed_seconds == 130

    def test_finish(self):
        tracker = ProgressTracker()
        tracker.update(60, SessionState.PROCESSING)

        assert tracker.finish(completed=True).percentage == 100.0
        assert tracker.estimated_remaining_seconds == 0.0

        failed = tracker.finish(completed=False, message="Network error occurred")
        assert failed.percentage == 0.0
        assert failed.message == "Network error occurred"


class TestFormatting:
    """Test display helpers"""

    def test_format_elapsed(self):
        assert format_elapsed(0) == "0:00"
        assert format_elapsed(65) == "1:05"
        assert format_elapsed(600) == "10:00"

    def test_format_remaining(self):
        assert format_remaining(0, False) == "Almost done..."
        assert format_remaining(90, False) == "~1:30 remaining"
        assert format_remaining(300, True) == "Peak usage - may take 3-6 minutes"

    def test_remaining_uses_peak_horizon(self):
        assert estimate_remaining_seconds(100, False) == 140
        assert estimate_remaining_seconds(100, True) == 380
        assert estimate_remaining_seconds(500, False) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
