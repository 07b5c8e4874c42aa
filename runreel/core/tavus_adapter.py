"""
Tavus Adapter - Tavus video generation API integration
"""

import time
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from runreel.config.constants import DEFAULT_VIDEO_NAME_PREFIX
from runreel.config.settings import Settings, settings as default_settings
from runreel.core.errors import SubmissionError
from runreel.services.observability import logger


class VideoSubmissionRequest(BaseModel):
    """
    Request body for POST /videos.

    Tavus returns HTTP 400 for any unrecognized field and for null optional
    fields, so the wire payload carries only these fields with None omitted.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    identity_ref: str = Field(serialization_alias="replica_id")
    script: str
    name: str = Field(serialization_alias="video_name")
    fast: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class VideoSubmissionResponse(BaseModel):
    """Response from video submission"""

    video_id: str
    status: str = "pending"


class VideoStatusResponse(BaseModel):
    """Response from GET /videos/{id}"""

    model_config = ConfigDict(extra="ignore")

    video_id: str = ""
    status: str = ""
    hosted_url: Optional[str] = None
    download_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @property
    def normalized_status(self) -> str:
        return (self.status or "").strip().lower()

    @property
    def media_url(self) -> Optional[str]:
        return self.hosted_url or self.download_url or None


class TavusAdapter:
    """
    Adapter for the Tavus v2 videos API
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Tavus adapter"""
        self.settings = settings or default_settings
        self.api_key = self.settings.tavus_api_key
        self.replica_id = self.settings.tavus_replica_id
        self.base_url = self.settings.tavus_base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=self.settings.tavus_request_timeout_s)

    def _headers(self) -> Dict[str, str]:
        return {"x-api-key": self.api_key}

    def build_request(self, subject_id: str, script: str) -> VideoSubmissionRequest:
        """
        Build the minimal provider request for a narration script

        Args:
            subject_id: Activity or achievement being celebrated
            script: Narration text

        Returns:
            VideoSubmissionRequest with a unique video name
        """
        return VideoSubmissionRequest(
            identity_ref=self.replica_id,
            script=script,
            name=f"{DEFAULT_VIDEO_NAME_PREFIX}_{subject_id}_{int(time.time() * 1000)}",
            fast=True if self.settings.tavus_fast_generation else None,
        )

    async def submit_video(self, request: VideoSubmissionRequest) -> VideoSubmissionResponse:
        """
        Submit video generation request to Tavus

        Args:
            request: Video submission request

        Returns:
            VideoSubmissionResponse with provider video_id

        Raises:
            SubmissionError: On transport failure or non-2xx response
        """
        payload = request.to_payload()
        logger.info(
            "submit_video_request",
            fields=sorted(payload.keys()),
            script_length=len(request.script),
            video_name=request.name,
            fast=request.fast,
        )

        try:
            response = await self.client.post(
                f"{self.base_url}/videos",
                headers=self._headers(),
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.error("video_request_failed", error=str(e))
            raise SubmissionError(f"Tavus API request failed: {e}") from e

        if not response.is_success:
            raw_body = response.text
            logger.error(
                "video_request_rejected",
                status_code=response.status_code,
                body=raw_body,
            )
            raise SubmissionError(
                f"Tavus API error: {response.status_code} - {raw_body}",
                http_status=response.status_code,
                raw_body=raw_body,
            )

        try:
            data = response.json()
            result = VideoSubmissionResponse(
                video_id=data["video_id"],
                status=data.get("status") or "pending",
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.error("video_request_unreadable", status_code=response.status_code, error=str(e))
            raise SubmissionError(
                "Tavus API returned an unreadable submission response",
                http_status=response.status_code,
                raw_body=response.text,
            ) from e

        logger.info(
            "video_request_submitted",
            provider_job_id=result.video_id,
            status=result.status,
        )
        return result

    async def get_video_status(self, video_id: str) -> VideoStatusResponse:
        """
        Fetch current status of a video

        Args:
            video_id: Provider video ID

        Returns:
            VideoStatusResponse

        Raises:
            httpx.HTTPError: On transport failure or non-2xx response
            ValueError: If the response body is not JSON
        """
        response = await self.client.get(
            f"{self.base_url}/videos/{video_id}",
            headers=self._headers(),
        )
        response.raise_for_status()
        data = response.json()
        status = VideoStatusResponse.model_validate(data)
        if not status.video_id:
            status = status.model_copy(update={"video_id": video_id})
        return status

    async def check_connection(self) -> Dict[str, Any]:
        """
        Verify the API key against the provider without creating a video

        Returns:
            Dict with success flag and either status_code or error
        """
        issues = self.settings.provider_configuration_issues()
        if issues:
            return {"success": False, "error": "; ".join(issues)}

        try:
            response = await self.client.get(
                f"{self.base_url}/videos",
                headers=self._headers(),
                params={"limit": 1},
            )
        except httpx.HTTPError as e:
            logger.error("tavus_connection_check_failed", error=str(e))
            return {"success": False, "error": str(e)}

        if not response.is_success:
            logger.warning("tavus_connection_check_rejected", status_code=response.status_code)
            return {
                "success": False,
                "status_code": response.status_code,
                "error": f"HTTP {response.status_code}: {response.text}",
            }

        logger.info("tavus_connection_check_ok")
        return {"success": True, "status_code": response.status_code}

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()
