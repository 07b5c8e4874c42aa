"""
Application Constants Configuration
"""

from typing import Dict, FrozenSet


# Status Polling Configuration
POLLING_CONFIG: Dict[str, float] = {
    "max_attempts": 60,
    "initial_interval_s": 5.0,
    "max_interval_s": 20.0,
    "backoff_multiplier": 1.3,
    # Queue waits run longer, so the queued phase polls more slowly
    "queue_interval_multiplier": 1.5,
    "max_queue_interval_s": 30.0,
    "total_timeout_s": 600.0,
    # Queue waits beyond this are logged as likely peak usage
    "queue_warning_threshold_s": 180.0,
}

# Provider status vocabulary
PROVIDER_QUEUED_STATUSES: FrozenSet[str] = frozenset({"queued", "pending"})
PROVIDER_PROCESSING_STATUSES: FrozenSet[str] = frozenset({"processing", "generating", "rendering"})
PROVIDER_COMPLETED_STATUSES: FrozenSet[str] = frozenset({"completed", "ready"})
PROVIDER_FAILED_STATUSES: FrozenSet[str] = frozenset({"failed", "error", "deleted"})

# Progress Estimation
PEAK_LOAD_THRESHOLD_S = 120
PROGRESS_HORIZON_S = 240
PEAK_PROGRESS_HORIZON_S = 480
PROGRESS_CAP_PERCENT = 95.0

# Per-phase progress shaping: (floor percent, share of time progress)
PHASE_PROGRESS_SHAPE: Dict[str, Dict[str, float]] = {
    "initializing": {"floor": 5.0, "scale": 0.2},
    "submitting": {"floor": 10.0, "scale": 0.2},
    "queued": {"floor": 15.0, "scale": 0.6},
    "processing": {"floor": 20.0, "scale": 0.8},
    "finalizing": {"floor": 85.0, "scale": 1.0},
}

# Message buckets for the queued/processing ladder (upper bound, exclusive)
PROGRESS_BUCKETS_S = {
    "starting": 30,
    "queued": 90,
    "peak_hours": 120,
    "high_demand": 240,
    "rendering": 360,
}

# Job Record statuses
RECORD_STATUS_PENDING = "pending"
RECORD_STATUS_PROCESSING = "processing"
RECORD_STATUS_COMPLETED = "completed"
RECORD_STATUS_FAILED = "failed"

# Usage limits
DEFAULT_MAX_VIDEO_GENERATIONS = 3

# Narration
DEFAULT_VIDEO_NAME_PREFIX = "activity"
