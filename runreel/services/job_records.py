"""
Job Record Store - durable record of each generation attempt
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from runreel.config.constants import (
    DEFAULT_MAX_VIDEO_GENERATIONS,
    RECORD_STATUS_COMPLETED,
    RECORD_STATUS_FAILED,
    RECORD_STATUS_PENDING,
    RECORD_STATUS_PROCESSING,
)
from runreel.models.video_generation import VideoGenerationModel
from runreel.services.job_state import transition_record
from runreel.services.observability import logger
from runreel.services.storage import VideoGenerationDB


class JobRecordNotFound(Exception):
    """Exception raised when a record id does not exist"""

    pass


class JobRecordStore:
    """
    The five record operations the orchestrator consumes, plus library reads.

    Every write commits immediately so a reader never observes a skipped
    transition, even if the process dies mid-generation.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_pending(self, owner_id: str, subject_id: str, script: str) -> str:
        record = VideoGenerationDB.create_record(
            db=self.db,
            owner_id=owner_id,
            subject_id=subject_id,
            script_content=script,
        )
        logger.info(
            "job_record_created",
            record_id=record.record_id,
            owner_id=owner_id,
            subject_id=subject_id,
        )
        return record.record_id

    def mark_processing(self, record_id: str, provider_job_id: str) -> VideoGenerationModel:
        return self._transition(
            record_id,
            RECORD_STATUS_PROCESSING,
            "provider_job_assigned",
            provider_job_id=provider_job_id,
        )

    def mark_completed(
        self,
        record_id: str,
        media_url: str,
        thumbnail_url: Optional[str] = None,
    ) -> VideoGenerationModel:
        return self._transition(
            record_id,
            RECORD_STATUS_COMPLETED,
            "generation_complete",
            video_url=media_url,
            thumbnail_url=thumbnail_url,
        )

    def mark_failed(self, record_id: str, message: str) -> VideoGenerationModel:
        return self._transition(
            record_id,
            RECORD_STATUS_FAILED,
            "generation_failed",
            error_message=message,
        )

    def find_latest_pending_or_processing(
        self,
        owner_id: str,
        subject_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Most recent non-terminal record for an owner

        Args:
            owner_id: Record owner
            subject_id: Narrow to one activity/achievement when known

        Returns:
            Record id or None
        """
        record = VideoGenerationDB.find_latest_with_status(
            self.db,
            owner_id,
            [RECORD_STATUS_PENDING, RECORD_STATUS_PROCESSING],
            subject_id=subject_id,
        )
        return record.record_id if record else None

    def find_resumable(self, owner_id: str) -> Optional[VideoGenerationModel]:
        return VideoGenerationDB.find_latest_with_status(
            self.db,
            owner_id,
            [RECORD_STATUS_PENDING, RECORD_STATUS_PROCESSING],
        )

    def get(self, record_id: str) -> Optional[VideoGenerationModel]:
        return VideoGenerationDB.get_record(self.db, record_id)

    def list_for_owner(
        self,
        owner_id: str,
        status: Optional[str] = None,
    ) -> List[VideoGenerationModel]:
        return VideoGenerationDB.list_records(self.db, owner_id, status=status)

    def delete(self, owner_id: str, record_id: str) -> bool:
        """Remove one of the owner's records; other owners' records are left alone"""
        record = self.get(record_id)
        if record is None or record.owner_id != owner_id:
            return False
        deleted = VideoGenerationDB.delete_record(self.db, record_id)
        logger.info("job_record_deleted", record_id=record_id, owner_id=owner_id)
        return deleted

    def library_stats(self, owner_id: str) -> Dict[str, int]:
        """
        Summary counts for an owner's video library

        Returns:
            Dict with total, completed, in_progress and failed counts
        """
        counts = VideoGenerationDB.count_by_status(self.db, owner_id)
        return {
            "total": sum(counts.values()),
            "completed": counts.get(RECORD_STATUS_COMPLETED, 0),
            "in_progress": counts.get(RECORD_STATUS_PENDING, 0) + counts.get(RECORD_STATUS_PROCESSING, 0),
            "failed": counts.get(RECORD_STATUS_FAILED, 0),
        }

    def usage_limits(
        self,
        owner_id: str,
        max_generations: int = DEFAULT_MAX_VIDEO_GENERATIONS,
    ) -> Dict[str, Any]:
        """
        Completed-generation quota for an owner

        Returns:
            Dict with {
                "max_video_generations": int,
                "current_count": int,
                "remaining_count": int,
                "can_generate": bool
            }
        """
        current = VideoGenerationDB.count_by_status(self.db, owner_id).get(RECORD_STATUS_COMPLETED, 0)
        remaining = max(0, max_generations - current)
        return {
            "max_video_generations": max_generations,
            "current_count": current,
            "remaining_count": remaining,
            "can_generate": remaining > 0,
        }

    def _transition(self, record_id: str, status: str, event: str, **fields) -> VideoGenerationModel:
        record = transition_record(self.db, record_id, status, event, **fields)
        if record is None:
            raise JobRecordNotFound(f"Job record not found: {record_id}")
        logger.info("job_record_transition", record_id=record_id, status=status, transition_event=event)
        return record
