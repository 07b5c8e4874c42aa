"""
Unit Tests for Job Record Store
"""

import pytest
from unittest.mock import patch

from runreel.services.job_records import JobRecordNotFound
from runreel.services.job_state import JobRecordStateError


class TestLifecycle:
    """Test record writes"""

    def test_create_pending(self, record_store):
        record_id = record_store.create_pending("user-1", "workout-42", "Great run!")

        record = record_store.get(record_id)
        assert record.status == "pending"
        assert record.owner_id == "user-1"
        assert record.script_content == "Great run!"
        assert record.provider_job_id is None

    def test_full_success_path(self, record_store):
        """Test pending -> processing -> completed keeps every transition"""
        record_id = record_store.create_pending("user-1", "workout-42", "script")

        record_store.mark_processing(record_id, "v-abc123")
        record = record_store.mark_completed(record_id, "https://videos.tavus.io/v", "https://cdn/thumb.jpg")

        assert record.status == "completed"
        assert record.provider_job_id == "v-abc123"
        assert record.video_url == "https://videos.tavus.io/v"
        assert record.thumbnail_url == "https://cdn/thumb.jpg"
        assert record.completed_at is not None
        assert [t["status"] for t in record.state_transitions] == ["pending", "processing", "completed"]
        assert record.to_dict()["completed_at"] is not None

    def test_mark_failed_stores_message(self, record_store):
        record_id = record_store.create_pending("user-1", "workout-42", "script")

        record = record_store.mark_failed(record_id, "Rate limit exceeded")

        assert record.status == "failed"
        assert record.error_message == "Rate limit exceeded"
        assert record.is_terminal

    def test_cannot_complete_pending_record(self, record_store):
        record_id = record_store.create_pending("user-1", "workout-42", "script")

        with pytest.raises(JobRecordStateError):
            record_store.mark_completed(record_id, "https://videos.tavus.io/v")

    def test_each_transition_is_logged(self, record_store):
        """Test every mark_* call logs the transition and returns the record"""
        record_id = record_store.create_pending("user-1", "workout-42", "script")

        with patch("runreel.services.job_records.logger") as mock_logger:
            processing = record_store.mark_processing(record_id, "v-abc123")
            failed = record_store.mark_failed(record_id, "error")

        assert processing.status == "processing"
        assert failed.status == "failed"
        events = [c.kwargs["transition_event"] for c in mock_logger.info.call_args_list]
        assert events == ["provider_job_assigned", "generation_failed"]
        for call in mock_logger.info.call_args_list:
            assert call.args == ("job_record_transition",)
            assert "event" not in call.kwargs

    def test_unknown_record(self, record_store):
        with pytest.raises(JobRecordNotFound):
            record_store.mark_failed("missing", "error")


class TestLookups:
    """Test record reads"""

    def test_find_latest_pending_or_processing(self, record_store):
        """Test fallback lookup returns the newest non-terminal record"""
        older = record_store.create_pending("user-1", "workout-1", "script")
        record_store.mark_processing(older, "v-1")
        newer = record_store.create_pending("user-1", "workout-2", "script")

        assert record_store.find_latest_pending_or_processing("user-1") == newer
        assert record_store.find_latest_pending_or_processing("user-1", "workout-1") == older

    def test_find_latest_ignores_terminal_and_other_owners(self, record_store):
        done = record_store.create_pending("user-1", "workout-1", "script")
        record_store.mark_failed(done, "error")
        record_store.create_pending("user-2", "workout-1", "script")

        assert record_store.find_latest_pending_or_processing("user-1") is None

    def test_find_resumable_returns_model(self, record_store):
        record_id = record_store.create_pending("user-1", "workout-1", "script")
        record_store.mark_processing(record_id, "v-1")

        record = record_store.find_resumable("user-1")

        assert record.record_id == record_id
        assert record.provider_job_id == "v-1"

    def test_list_for_owner(self, record_store):
        first = record_store.create_pending("user-1", "workout-1", "script")
        record_store.mark_failed(first, "error")
        second = record_store.create_pending("user-1", "workout-2", "script")

        assert [r.record_id for r in record_store.list_for_owner("user-1")] == [second, first]
        assert [r.record_id for r in record_store.list_for_owner("user-1", status="failed")] == [first]

    def test_delete_is_owner_scoped(self, record_store):
        record_id = record_store.create_pending("user-1", "workout-1", "script")

        assert record_store.delete("user-2", record_id) is False
        assert record_store.get(record_id) is not None

        assert record_store.delete("user-1", record_id) is True
        assert record_store.get(record_id) is None
        assert record_store.delete("user-1", record_id) is False

    def test_library_stats(self, record_store):
        completed = record_store.create_pending("user-1", "a", "script")
        record_store.mark_processing(completed, "v-1")
        record_store.mark_completed(completed, "https://videos.tavus.io/1")
        failed = record_store.create_pending("user-1", "b", "script")
        record_store.mark_failed(failed, "error")
        record_store.create_pending("user-1", "c", "script")

        assert record_store.library_stats("user-1") == {
            "total": 3,
            "completed": 1,
            "in_progress": 1,
            "failed": 1,
        }

    def test_usage_limits(self, record_store):
        for subject in ("a", "b"):
            record_id = record_store.create_pending("user-1", subject, "script")
            record_store.mark_processing(record_id, f"v-{subject}")
            record_store.mark_completed(record_id, f"https://videos.tavus.io/{subject}")

        limits = record_store.usage_limits("user-1", max_generations=2)

        assert limits == {
            "max_video_generations": 2,
            "current_count": 2,
            "remaining_count": 0,
            "can_generate": False,
        }
        assert record_store.usage_limits("user-2")["can_generate"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
