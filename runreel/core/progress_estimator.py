"""
Progress Estimator - user-facing progress without a provider progress signal

The provider exposes no queue depth or render progress, so both the
percentage and the peak-load flag are heuristics over elapsed time.
"""

from typing import Optional
from pydantic import BaseModel

from runreel.config.constants import (
    PEAK_LOAD_THRESHOLD_S,
    PEAK_PROGRESS_HORIZON_S,
    PHASE_PROGRESS_SHAPE,
    PROGRESS_BUCKETS_S,
    PROGRESS_CAP_PERCENT,
    PROGRESS_HORIZON_S,
)
from runreel.models.generation import SessionState


class ProgressEstimate(BaseModel):
    """Progress message and completion estimate"""

    message: str
    percentage: float


_STATIC_MESSAGES = {
    SessionState.IDLE: "",
    SessionState.INITIALIZING: "Initializing video generation...",
    SessionState.SUBMITTING: "Requesting video generation from Tavus...",
    SessionState.FINALIZING: "Finalizing your video...",
    SessionState.COMPLETED: "Video generation completed!",
    SessionState.FAILED: "Video generation failed",
}


def detect_peak_load(elapsed_seconds: float, threshold_s: float = PEAK_LOAD_THRESHOLD_S) -> bool:
    """Heuristic: sessions running past the threshold imply a busy provider"""
    return elapsed_seconds > threshold_s


def _progress_horizon(is_peak_load: bool) -> float:
    return PEAK_PROGRESS_HORIZON_S if is_peak_load else PROGRESS_HORIZON_S


def _queued_message(elapsed: float, is_peak_load: bool) -> str:
    if elapsed < PROGRESS_BUCKETS_S["starting"]:
        return "Starting video generation..."
    if elapsed < PROGRESS_BUCKETS_S["queued"]:
        return "Added to processing queue..."
    if elapsed < PROGRESS_BUCKETS_S["peak_hours"]:
        return "Waiting in queue - this is normal during peak hours..."
    if elapsed < PROGRESS_BUCKETS_S["rendering"]:
        if is_peak_load:
            return "Still queued - experiencing high demand..."
        return "Still in queue - rendering will begin shortly..."
    return "Still queued - your video will start rendering soon..."


def _processing_message(elapsed: float, is_peak_load: bool) -> str:
    if elapsed < PROGRESS_BUCKETS_S["starting"]:
        return "Starting video generation..."
    if elapsed < PROGRESS_BUCKETS_S["high_demand"]:
        if is_peak_load:
            return "Processing your video - high demand may slow things down..."
        return "Processing your video - AI generation in progress..."
    if elapsed < PROGRESS_BUCKETS_S["rendering"]:
        return "Processing your video - AI generation in progress..."
    return "Almost complete - finalizing your achievement video..."


def estimate(elapsed_seconds: float, current_phase: SessionState, is_peak_load: bool) -> ProgressEstimate:
    """
    Estimate progress for an active session

    Args:
        elapsed_seconds: Seconds since the session started
        current_phase: Current session state
        is_peak_load: Whether the peak-load heuristic has tripped

    Returns:
        ProgressEstimate; percentage never exceeds the pre-terminal cap and,
        for a fixed phase and peak flag, never decreases as time grows
    """
    elapsed = max(0.0, float(elapsed_seconds))

    if current_phase == SessionState.QUEUED:
        message = _queued_message(elapsed, is_peak_load)
    elif current_phase == SessionState.PROCESSING:
        message = _processing_message(elapsed, is_peak_load)
    else:
        message = _STATIC_MESSAGES[current_phase]

    shape = PHASE_PROGRESS_SHAPE.get(current_phase.value)
    if shape is None:
        # Idle and terminal percentages are set by the orchestrator
        return ProgressEstimate(message=message, percentage=0.0)

    time_progress = min(elapsed / _progress_horizon(is_peak_load) * 100, PROGRESS_CAP_PERCENT)
    percentage = min(max(shape["floor"], time_progress * shape["scale"]), PROGRESS_CAP_PERCENT)
    return ProgressEstimate(message=message, percentage=round(percentage, 1))


def estimate_remaining_seconds(elapsed_seconds: float, is_peak_load: bool) -> float:
    return max(0.0, _progress_horizon(is_peak_load) - elapsed_seconds)


def format_elapsed(seconds: float) -> str:
    """Format seconds as m:ss"""
    total = int(max(0, seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def format_remaining(remaining_seconds: float, is_peak_load: bool) -> str:
    if remaining_seconds <= 0:
        return "Almost done..."
    if is_peak_load and remaining_seconds > PROGRESS_HORIZON_S:
        return "Peak usage - may take 3-6 minutes"
    return f"~{format_elapsed(remaining_seconds)} remaining"


class ProgressTracker:
    """
    Per-session progress state.

    Keeps the percentage non-decreasing across phase changes and peak-flag
    flips, and latches the peak flag once it trips.
    """

    def __init__(self, peak_threshold_s: float = PEAK_LOAD_THRESHOLD_S):
        self.peak_threshold_s = peak_threshold_s
        self.is_peak_load = False
        self.percentage = 0.0
        self.message = ""
        self.elapsed_seconds = 0.0
        self.estimated_remaining_seconds = float(PROGRESS_HORIZON_S)

    def update(self, elapsed_seconds: float, phase: SessionState) -> ProgressEstimate:
        self.elapsed_seconds = max(self.elapsed_seconds, elapsed_seconds)
        if not self.is_peak_load and detect_peak_load(self.elapsed_seconds, self.peak_threshold_s):
            self.is_peak_load = True

        current = estimate(self.elapsed_seconds, phase, self.is_peak_load)
        self.percentage = max(self.percentage, current.percentage)
        self.message = current.message
        self.estimated_remaining_seconds = estimate_remaining_seconds(self.elapsed_seconds, self.is_peak_load)
        return ProgressEstimate(message=self.message, percentage=self.percentage)

    def finish(self, completed: bool, message: Optional[str] = None) -> ProgressEstimate:
        self.percentage = 100.0 if completed else 0.0
        self.estimated_remaining_seconds = 0.0
        self.message = message or _STATIC_MESSAGES[SessionState.COMPLETED if completed else SessionState.FAILED]
        return ProgressEstimate(message=self.message, percentage=self.percentage)
