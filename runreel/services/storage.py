"""
Storage Service - Database operations for Video Generation records
"""

from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Sequence

from runreel.models.video_generation import VideoGenerationModel, utcnow


class VideoGenerationDB:
    """Video generation record database operations"""

    @staticmethod
    def create_record(
        db: Session,
        owner_id: str,
        subject_id: str,
        script_content: Optional[str] = None,
    ) -> VideoGenerationModel:
        """Create a new pending record"""
        now = utcnow()
        record = VideoGenerationModel(
            record_id=VideoGenerationModel.generate_record_id(),
            owner_id=owner_id,
            subject_id=subject_id,
            status="pending",
            script_content=script_content,
            state_transitions=[
                {
                    "status": "pending",
                    "timestamp": now.isoformat(),
                    "event": "record_created",
                }
            ],
            created_at=now,
            updated_at=now,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def get_record(db: Session, record_id: str) -> Optional[VideoGenerationModel]:
        """Get record by public ID"""
        return (
            db.query(VideoGenerationModel)
            .filter(VideoGenerationModel.record_id == record_id)
            .first()
        )

    @staticmethod
    def update_record_status(
        db: Session,
        record_id: str,
        new_status: str,
        event: Optional[str] = None,
        **fields: Any,
    ) -> Optional[VideoGenerationModel]:
        """Update record status, extra columns and transition log"""
        record = VideoGenerationDB.get_record(db, record_id)
        if record:
            ts = utcnow()
            record.status = new_status
            for key, value in fields.items():
                setattr(record, key, value)

            transitions = list(record.state_transitions or [])
            transitions.append(
                {
                    "status": new_status,
                    "timestamp": ts.isoformat(),
                    "event": event or "status_updated",
                }
            )
            record.state_transitions = transitions
            record.updated_at = ts

            if new_status == "completed":
                record.completed_at = ts
            elif new_status == "failed":
                record.failed_at = ts

            db.commit()
            db.refresh(record)
        return record

    @staticmethod
    def find_latest_with_status(
        db: Session,
        owner_id: str,
        statuses: Sequence[str],
        subject_id: Optional[str] = None,
    ) -> Optional[VideoGenerationModel]:
        """Most recent record for an owner in one of the given statuses"""
        query = db.query(VideoGenerationModel).filter(
            VideoGenerationModel.owner_id == owner_id,
            VideoGenerationModel.status.in_(list(statuses)),
        )
        if subject_id:
            query = query.filter(VideoGenerationModel.subject_id == subject_id)
        return query.order_by(
            VideoGenerationModel.created_at.desc(),
            VideoGenerationModel.id.desc(),
        ).first()

    @staticmethod
    def list_records(
        db: Session,
        owner_id: str,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[VideoGenerationModel]:
        """List an owner's records, newest first, with optional status filter"""
        query = db.query(VideoGenerationModel).filter(VideoGenerationModel.owner_id == owner_id)
        if status:
            query = query.filter(VideoGenerationModel.status == status)
        return (
            query.order_by(VideoGenerationModel.created_at.desc(), VideoGenerationModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    @staticmethod
    def count_by_status(db: Session, owner_id: str) -> Dict[str, int]:
        """Record counts per status for an owner"""
        rows = (
            db.query(VideoGenerationModel.status, func.count(VideoGenerationModel.id))
            .filter(VideoGenerationModel.owner_id == owner_id)
            .group_by(VideoGenerationModel.status)
            .all()
        )
        return {status: count for status, count in rows}

    @staticmethod
    def delete_record(db: Session, record_id: str) -> bool:
        """Delete a record"""
        record = VideoGenerationDB.get_record(db, record_id)
        if record:
            db.delete(record)
            db.commit()
            return True
        return False
