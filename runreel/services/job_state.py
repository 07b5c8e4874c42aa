"""
Job State Management Service
"""

from typing import Optional
from sqlalchemy.orm import Session

from runreel.core.errors import InvalidSessionTransition
from runreel.models.generation import SessionState
from runreel.models.video_generation import VideoGenerationModel
from runreel.services.storage import VideoGenerationDB


class JobRecordStateError(Exception):
    """Exception raised for invalid record status transitions"""

    pass


# Valid Job Record transitions
VALID_TRANSITIONS = {
    "pending": ["processing", "failed"],
    "processing": ["completed", "failed"],
    "completed": [],  # Terminal state
    "failed": [],  # Terminal state
}

# Valid session transitions; only terminal states may return to IDLE
VALID_SESSION_TRANSITIONS = {
    SessionState.IDLE: [SessionState.INITIALIZING],
    # PROCESSING/QUEUED directly from INITIALIZING when resuming a submitted job
    SessionState.INITIALIZING: [
        SessionState.SUBMITTING,
        SessionState.QUEUED,
        SessionState.PROCESSING,
        SessionState.FAILED,
    ],
    SessionState.SUBMITTING: [SessionState.QUEUED, SessionState.PROCESSING, SessionState.FAILED],
    SessionState.QUEUED: [SessionState.PROCESSING, SessionState.FINALIZING, SessionState.FAILED],
    SessionState.PROCESSING: [SessionState.FINALIZING, SessionState.FAILED],
    SessionState.FINALIZING: [SessionState.COMPLETED, SessionState.FAILED],
    SessionState.COMPLETED: [SessionState.IDLE],
    SessionState.FAILED: [SessionState.IDLE],
}


def transition_record(
    db: Session,
    record_id: str,
    new_status: str,
    event: str,
    **fields,
) -> Optional[VideoGenerationModel]:
    """
    Transition Job Record to new status with validation

    Args:
        db: Database session
        record_id: Job Record identifier
        new_status: Target status (pending, processing, completed, failed)
        event: Event triggering the transition
        **fields: Column values written alongside the status

    Returns:
        Updated record or None if record not found

    Raises:
        JobRecordStateError: If transition is invalid
    """
    record = VideoGenerationDB.get_record(db, record_id)
    if not record:
        return None

    current_status = record.status

    if new_status not in VALID_TRANSITIONS.get(current_status, []):
        raise JobRecordStateError(
            f"Invalid record transition: {current_status} -> {new_status}. "
            f"Valid transitions from {current_status}: {VALID_TRANSITIONS.get(current_status, [])}"
        )

    return VideoGenerationDB.update_record_status(
        db=db,
        record_id=record_id,
        new_status=new_status,
        event=event,
        **fields,
    )


def validate_session_transition(current: SessionState, target: SessionState) -> None:
    """
    Check a session state change against the forward-only table

    Raises:
        InvalidSessionTransition: If the change would move backwards or skip
    """
    if target not in VALID_SESSION_TRANSITIONS.get(current, []):
        raise InvalidSessionTransition(
            f"Invalid session transition: {current.value} -> {target.value}"
        )


def is_terminal_status(status: str) -> bool:
    """
    Check if record status is terminal

    Args:
        status: Job Record status

    Returns:
        True if status is completed or failed
    """
    return status in ["completed", "failed"]


def is_terminal_session_state(state: SessionState) -> bool:
    return state in (SessionState.COMPLETED, SessionState.FAILED)
