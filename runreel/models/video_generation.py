"""
Video Generation Model
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import Column, Integer, String, Text, JSON, DateTime, Index

from runreel.models import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobRecordStatus(str, Enum):
    """Durable generation record statuses"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class VideoGenerationModel(Base):
    """
    Video Generation - durable record of one achievement video attempt

    The record outlives the in-memory session, so it is written at every
    phase boundary and is the source of truth after an app restart.
    """

    __tablename__ = "video_generations"

    id = Column(Integer, primary_key=True, index=True)

    # Public record identifier
    record_id = Column(String, unique=True, nullable=False, index=True)

    # Owner and the activity/achievement being celebrated
    owner_id = Column(String, nullable=False, index=True)
    subject_id = Column(String, nullable=False, index=True)

    status = Column(String, nullable=False, index=True)  # pending, processing, completed, failed
    script_content = Column(Text, nullable=True)

    # Provider job reference
    provider_job_id = Column(String, nullable=True, index=True)

    # Results
    video_url = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    error_message = Column(Text, nullable=True)

    # [{"status": "pending", "timestamp": "...", "event": "record_created"}]
    state_transitions = Column(JSON, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_video_generations_owner_status", "owner_id", "status"),
        Index("idx_video_generations_created_at", "created_at"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobRecordStatus.COMPLETED.value, JobRecordStatus.FAILED.value)

    def to_dict(self) -> dict:
        """Convert record to dictionary"""
        return {
            "id": self.id,
            "record_id": self.record_id,
            "owner_id": self.owner_id,
            "subject_id": self.subject_id,
            "status": self.status,
            "script_content": self.script_content,
            "provider_job_id": self.provider_job_id,
            "video_url": self.video_url,
            "thumbnail_url": self.thumbnail_url,
            "error_message": self.error_message,
            "state_transitions": self.state_transitions,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "failed_at": self.failed_at.isoformat() if self.failed_at else None,
        }

    @staticmethod
    def generate_record_id() -> str:
        """Generate a unique record ID"""
        return str(uuid.uuid4())
