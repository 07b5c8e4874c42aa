"""
Status Poller - track a provider job to a terminal status with adaptive backoff
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx
from pydantic import BaseModel

from runreel.config.constants import (
    POLLING_CONFIG,
    PROVIDER_COMPLETED_STATUSES,
    PROVIDER_FAILED_STATUSES,
    PROVIDER_PROCESSING_STATUSES,
    PROVIDER_QUEUED_STATUSES,
)
from runreel.core.errors import (
    GenerationCancelledError,
    MissingResultError,
    PollError,
    PollTimeout,
    ProviderReportedFailure,
)
from runreel.core.tavus_adapter import TavusAdapter
from runreel.services.observability import logger, log_poll_attempt


class PollPhase(str, Enum):
    """Provider-side phase of a submitted job"""

    QUEUED = "queued"
    PROCESSING = "processing"


class PollingPolicy(BaseModel):
    """Interval, backoff and ceiling configuration for status polling"""

    max_attempts: int = int(POLLING_CONFIG["max_attempts"])
    initial_interval_s: float = POLLING_CONFIG["initial_interval_s"]
    max_interval_s: float = POLLING_CONFIG["max_interval_s"]
    backoff_multiplier: float = POLLING_CONFIG["backoff_multiplier"]
    queue_interval_multiplier: float = POLLING_CONFIG["queue_interval_multiplier"]
    max_queue_interval_s: float = POLLING_CONFIG["max_queue_interval_s"]
    total_timeout_s: float = POLLING_CONFIG["total_timeout_s"]
    queue_warning_threshold_s: float = POLLING_CONFIG["queue_warning_threshold_s"]


class TerminalStatus(BaseModel):
    """Successful terminal poll result"""

    provider_job_id: str
    status: str
    media_url: str
    thumbnail_url: Optional[str] = None
    attempts_made: int
    total_seconds: float
    queue_seconds: Optional[float] = None


def next_base_interval(current: float, policy: PollingPolicy) -> float:
    """Backoff step applied after each non-terminal poll"""
    return min(current * policy.backoff_multiplier, policy.max_interval_s)


def compute_poll_interval(base: float, queued: bool, policy: PollingPolicy) -> float:
    """
    Wait before the next poll

    Queued jobs wait longer, capped independently, and never less than the
    processing-phase wait for the same base interval.
    """
    processing_interval = min(base, policy.max_interval_s)
    if not queued:
        return processing_interval
    widened = min(base * policy.queue_interval_multiplier, policy.max_queue_interval_s)
    return max(widened, processing_interval)


class StatusPoller:
    """
    Poll GET /videos/{id} until the job completes, fails or times out
    """

    def __init__(
        self,
        adapter: TavusAdapter,
        policy: Optional[PollingPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.adapter = adapter
        self.policy = policy or PollingPolicy()
        self.clock = clock
        self.sleep = sleep

    async def poll_until_terminal(
        self,
        provider_job_id: str,
        started_at: Optional[float] = None,
        initial_phase: PollPhase = PollPhase.QUEUED,
        on_phase_change: Optional[Callable[[PollPhase], None]] = None,
        is_cancelled: Optional[Callable[[], bool]] = None,
    ) -> TerminalStatus:
        """
        Poll until the provider reports a terminal status

        Args:
            provider_job_id: Provider video ID
            started_at: Clock value of the first submission; defaults to now
            initial_phase: Phase reported by the submission response
            on_phase_change: Called once when the queued phase ends
            is_cancelled: Checked before each poll and after each response

        Returns:
            TerminalStatus with a usable media URL

        Raises:
            PollTimeout: Total timeout or attempt ceiling reached
            PollError: The final allowed status check failed
            MissingResultError: Completed without a media URL
            ProviderReportedFailure: Provider reported failed/error
            GenerationCancelledError: Cancellation observed
        """
        policy = self.policy
        start = self.clock() if started_at is None else started_at
        phase = initial_phase
        queue_seconds: Optional[float] = 0.0 if phase == PollPhase.PROCESSING else None
        base_interval = policy.initial_interval_s
        queue_warning_logged = False
        attempts = 0

        logger.info(
            "polling_started",
            provider_job_id=provider_job_id,
            phase=phase.value,
            max_attempts=policy.max_attempts,
            total_timeout_s=policy.total_timeout_s,
        )

        while attempts < policy.max_attempts:
            self._check_cancelled(is_cancelled, provider_job_id)

            elapsed = self.clock() - start
            if elapsed > policy.total_timeout_s:
                logger.error(
                    "polling_timeout",
                    provider_job_id=provider_job_id,
                    elapsed_s=round(elapsed, 1),
                    attempts_made=attempts,
                )
                raise PollTimeout(
                    f"Video generation timeout after {round(elapsed)} seconds. "
                    "This can happen during peak usage periods.",
                    elapsed_seconds=elapsed,
                    attempts_made=attempts,
                    suggestion="Check your Tavus dashboard or try again during off-peak hours "
                    "(early morning/late evening)",
                )

            attempts += 1
            try:
                status = await self.adapter.get_video_status(provider_job_id)
            except (httpx.HTTPError, ValueError) as e:
                log_poll_attempt(provider_job_id, attempts, policy.max_attempts, elapsed)
                logger.warning(
                    "poll_attempt_failed",
                    provider_job_id=provider_job_id,
                    attempt=attempts,
                    error=str(e),
                )
                if attempts >= policy.max_attempts:
                    raise PollError(
                        f"Polling failed after {attempts} attempts: {e}",
                        attempts_made=attempts,
                        cause=e,
                    ) from e
                await self.sleep(compute_poll_interval(base_interval, phase == PollPhase.QUEUED, policy))
                continue

            # A response that lands after cancel() is discarded
            self._check_cancelled(is_cancelled, provider_job_id)

            provider_status = status.normalized_status
            log_poll_attempt(provider_job_id, attempts, policy.max_attempts, elapsed, provider_status)

            if provider_status in PROVIDER_COMPLETED_STATUSES:
                media_url = status.media_url
                if not media_url:
                    logger.error(
                        "completed_without_media_url",
                        provider_job_id=provider_job_id,
                        attempts_made=attempts,
                    )
                    raise MissingResultError(
                        "Video generation completed but no video URL was returned",
                        provider_job_id=provider_job_id,
                    )
                now_elapsed = self.clock() - start
                return TerminalStatus(
                    provider_job_id=provider_job_id,
                    status=provider_status,
                    media_url=media_url,
                    thumbnail_url=status.thumbnail_url,
                    attempts_made=attempts,
                    total_seconds=now_elapsed,
                    queue_seconds=now_elapsed if queue_seconds is None else queue_seconds,
                )

            if provider_status in PROVIDER_FAILED_STATUSES:
                logger.error(
                    "provider_reported_failure",
                    provider_job_id=provider_job_id,
                    provider_status=provider_status,
                )
                raise ProviderReportedFailure(
                    f"Video generation failed with status: {provider_status}",
                    provider_status=provider_status,
                )

            if provider_status in PROVIDER_PROCESSING_STATUSES:
                if phase == PollPhase.QUEUED:
                    phase = PollPhase.PROCESSING
                    queue_seconds = elapsed
                    logger.info(
                        "queue_phase_ended",
                        provider_job_id=provider_job_id,
                        queue_s=round(queue_seconds, 1),
                    )
                    if on_phase_change:
                        on_phase_change(phase)
            elif provider_status in PROVIDER_QUEUED_STATUSES:
                if (
                    phase == PollPhase.QUEUED
                    and not queue_warning_logged
                    and elapsed > policy.queue_warning_threshold_s
                ):
                    queue_warning_logged = True
                    logger.warning(
                        "queue_wait_extended",
                        provider_job_id=provider_job_id,
                        queue_s=round(elapsed, 1),
                    )
            else:
                logger.warning(
                    "unknown_provider_status",
                    provider_job_id=provider_job_id,
                    provider_status=provider_status,
                )

            if attempts < policy.max_attempts:
                interval = compute_poll_interval(base_interval, phase == PollPhase.QUEUED, policy)
                await self.sleep(interval)
                base_interval = next_base_interval(base_interval, policy)

        elapsed = self.clock() - start
        logger.error(
            "polling_attempts_exhausted",
            provider_job_id=provider_job_id,
            attempts_made=attempts,
            elapsed_s=round(elapsed, 1),
        )
        raise PollTimeout(
            f"Video generation timeout - exceeded maximum polling attempts ({policy.max_attempts}). "
            "Video may still be processing.",
            elapsed_seconds=elapsed,
            attempts_made=attempts,
            suggestion="Video may still be processing. Check your Tavus dashboard or try again in a few minutes.",
        )

    def _check_cancelled(self, is_cancelled: Optional[Callable[[], bool]], provider_job_id: str) -> None:
        if is_cancelled and is_cancelled():
            logger.info("polling_cancelled", provider_job_id=provider_job_id)
            raise GenerationCancelledError("Video generation was cancelled")
