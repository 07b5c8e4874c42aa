"""
Job Submission Client - submit a generation job and open its Job Record
"""

from pydantic import BaseModel

from runreel.core.tavus_adapter import TavusAdapter
from runreel.models.generation import GenerationInput
from runreel.services.job_records import JobRecordStore
from runreel.services.observability import logger


class SubmissionResult(BaseModel):
    """Identifiers assigned by a successful submission"""

    provider_job_id: str
    record_id: str
    provider_status: str


class JobSubmissionClient:
    """
    One provider submission plus one record create and one record update.

    No retries happen here; a SubmissionError leaves the record pending and
    the orchestrator marks it failed.
    """

    def __init__(self, adapter: TavusAdapter, records: JobRecordStore):
        self.adapter = adapter
        self.records = records

    async def submit(self, generation_input: GenerationInput, owner_id: str) -> SubmissionResult:
        """
        Submit a generation job

        Args:
            generation_input: Caller request; customization stays local
            owner_id: Authenticated caller

        Returns:
            SubmissionResult

        Raises:
            SubmissionError: If the provider rejects or cannot be reached
        """
        request = self.adapter.build_request(
            subject_id=generation_input.subject_id,
            script=generation_input.script_text,
        )

        record_id = self.records.create_pending(
            owner_id=owner_id,
            subject_id=generation_input.subject_id,
            script=generation_input.script_text,
        )

        response = await self.adapter.submit_video(request)

        self.records.mark_processing(record_id, response.video_id)
        logger.info(
            "generation_submitted",
            record_id=record_id,
            provider_job_id=response.video_id,
            provider_status=response.status,
            output_format=generation_input.output_format.value,
        )

        return SubmissionResult(
            provider_job_id=response.video_id,
            record_id=record_id,
            provider_status=response.status,
        )
