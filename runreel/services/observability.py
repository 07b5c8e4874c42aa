"""
Observability and Logging Service
"""

import logging
import structlog
from typing import Optional

from runreel.config.settings import settings


logging.basicConfig(format="%(message)s", level=settings.log_level)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

# Get logger
logger = structlog.get_logger("runreel")


def log_session_transition(
    from_state: str,
    to_state: str,
    record_id: Optional[str] = None,
) -> None:
    """
    Log generation session state change

    Args:
        from_state: Previous session state
        to_state: New session state
        record_id: Optional Job Record ID for context
    """
    log_data = {
        "from_state": from_state,
        "to_state": to_state,
    }
    if record_id:
        log_data["record_id"] = record_id

    logger.info("session_transition", **log_data)


def log_poll_attempt(
    provider_job_id: str,
    attempt: int,
    max_attempts: int,
    elapsed_s: float,
    status: Optional[str] = None,
) -> None:
    """
    Log a single provider status check

    Args:
        provider_job_id: Provider video ID
        attempt: 1-based attempt number
        max_attempts: Attempt ceiling
        elapsed_s: Seconds since the first submission
        status: Provider status, None when the check failed
    """
    logger.info(
        "poll_attempt",
        provider_job_id=provider_job_id,
        attempt=attempt,
        max_attempts=max_attempts,
        elapsed_s=round(elapsed_s, 1),
        status=status,
    )


def log_peak_load_detected(
    elapsed_s: float,
    record_id: Optional[str] = None,
) -> None:
    """
    Log peak-load heuristic tripping for a session

    Args:
        elapsed_s: Seconds since the session started
        record_id: Optional Job Record ID for context
    """
    log_data = {"elapsed_s": round(elapsed_s, 1)}
    if record_id:
        log_data["record_id"] = record_id

    logger.warning("peak_load_detected", **log_data)


def log_failure_classification(
    error_code: str,
    classification: str,
    retryable: bool,
    record_id: Optional[str] = None,
) -> None:
    """
    Log failure classification event

    Args:
        error_code: Error code (e.g., "POLL_TIMEOUT", "SUBMISSION_INVALID_REQUEST")
        classification: Error classification ("wait_and_retry" or "non_retryable")
        retryable: Whether error is retryable
        record_id: Optional Job Record ID for context
    """
    log_data = {
        "error_code": error_code,
        "classification": classification,
        "retryable": retryable,
    }
    if record_id:
        log_data["record_id"] = record_id

    logger.error("failure_classified", **log_data)


def log_generation_duration(
    record_id: str,
    duration_s: float,
    attempts_made: int,
    queue_s: Optional[float],
) -> None:
    """
    Log video generation duration

    Args:
        record_id: Job Record ID
        duration_s: Total duration in seconds
        attempts_made: Number of status polls
        queue_s: Seconds spent queued before rendering began
    """
    logger.info(
        "generation_completed",
        record_id=record_id,
        duration_s=round(duration_s, 1),
        attempts_made=attempts_made,
        queue_s=round(queue_s, 1) if queue_s is not None else None,
    )
