"""
Generation Orchestrator - drive one achievement video from request to result
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from runreel.config.constants import PROVIDER_QUEUED_STATUSES
from runreel.config.settings import Settings, settings as default_settings
from runreel.core.errors import (
    AuthError,
    ConcurrentGenerationError,
    ConfigurationError,
    ErrorKind,
    GenerationCancelledError,
    SubmissionError,
    VideoGenerationError,
)
from runreel.core.progress_estimator import ProgressTracker
from runreel.core.status_poller import PollingPolicy, PollPhase, StatusPoller, TerminalStatus
from runreel.core.submission import JobSubmissionClient
from runreel.core.tavus_adapter import TavusAdapter
from runreel.models.generation import (
    GenerationInput,
    GenerationResult,
    SessionSnapshot,
    SessionState,
)
from runreel.services.error_classifier import ErrorClassifier
from runreel.services.job_records import JobRecordStore
from runreel.services.job_state import is_terminal_session_state, validate_session_transition
from runreel.services.observability import (
    logger,
    log_failure_classification,
    log_generation_duration,
    log_peak_load_detected,
    log_session_transition,
)


SnapshotListener = Callable[[SessionSnapshot], None]


class GenerationSession:
    """
    Mutable state of one generation attempt, owned by a single orchestrator
    """

    def __init__(self):
        self.state = SessionState.IDLE
        self.provider_job_id: Optional[str] = None
        self.record_id: Optional[str] = None
        self.started_at: Optional[datetime] = None
        self.started_clock: Optional[float] = None
        self.queue_seconds: Optional[float] = None
        self.result_media_url: Optional[str] = None
        self.result_thumbnail_url: Optional[str] = None
        self.error_message: Optional[str] = None
        self.error_kind: Optional[ErrorKind] = None
        self.cancel_requested = False
        self.progress = ProgressTracker()

    @property
    def is_active(self) -> bool:
        return self.state != SessionState.IDLE and not is_terminal_session_state(self.state)

    @property
    def is_peak_load(self) -> bool:
        return self.progress.is_peak_load

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            progress_message=self.progress.message,
            progress_percentage=self.progress.percentage,
            is_peak_load=self.progress.is_peak_load,
            elapsed_seconds=self.progress.elapsed_seconds,
            estimated_remaining_seconds=self.progress.estimated_remaining_seconds,
            provider_job_id=self.provider_job_id,
            record_id=self.record_id,
            result_media_url=self.result_media_url,
            result_thumbnail_url=self.result_thumbnail_url,
            error_message=self.error_message,
            error_kind=self.error_kind.value if self.error_kind else None,
        )


class ProgressTicker:
    """Cancellable repeating timer that drives progress updates"""

    def __init__(self, interval_s: float, callback: Callable[[], None]):
        self.interval_s = interval_s
        self.callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            self.callback()


class GenerationOrchestrator:
    """
    Finite-state generation session: submit, poll, persist, return.

    One generate() may be in flight per instance. The Job Record is written
    at every phase boundary; the in-memory session only projects it.
    """

    def __init__(
        self,
        records: JobRecordStore,
        current_user: Callable[[], Optional[str]],
        settings: Optional[Settings] = None,
        adapter: Optional[TavusAdapter] = None,
        policy: Optional[PollingPolicy] = None,
        classifier: Optional[ErrorClassifier] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        progress_interval_s: Optional[float] = None,
    ):
        """
        Initialize orchestrator

        Args:
            records: Job Record Store
            current_user: Returns the authenticated owner id, or None
            settings: Provider settings (defaults to the module instance)
            adapter: Provider adapter (built from settings when omitted)
            policy: Polling policy
            classifier: Error classifier
            clock: Monotonic clock in seconds
            sleep: Async sleep used between polls
            progress_interval_s: Progress tick cadence; <= 0 disables the ticker
        """
        self.settings = settings or default_settings
        self.records = records
        self.current_user = current_user
        self.adapter = adapter or TavusAdapter(settings=self.settings)
        self.classifier = classifier or ErrorClassifier(settings=self.settings)
        self.clock = clock
        self.sleep = sleep
        self.submitter = JobSubmissionClient(self.adapter, records)
        self.poller = StatusPoller(
            self.adapter,
            policy=policy,
            clock=clock,
            sleep=self._sleep_unless_cancelled,
        )
        if progress_interval_s is None:
            progress_interval_s = self.settings.progress_tick_interval_s
        self.progress_interval_s = progress_interval_s

        self.session = GenerationSession()
        self._listeners: List[SnapshotListener] = []
        self._ticker: Optional[ProgressTicker] = None
        self._cancel_event: Optional[asyncio.Event] = None

    # ------------------------------------------------------------------
    # Caller-facing surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self.session.state

    def snapshot(self) -> SessionSnapshot:
        return self.session.snapshot()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a snapshot listener

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def generate(self, generation_input: GenerationInput) -> GenerationResult:
        """
        Generate an achievement video

        Args:
            generation_input: Subject, narration script and local options

        Returns:
            GenerationResult with the hosted video URL

        Raises:
            ConcurrentGenerationError: Another generation is in flight
            ConfigurationError: Provider credentials missing
            AuthError: Caller not authenticated
            SubmissionError: Provider rejected the job
            PollTimeout: Job did not finish in time
            PollError: Final status check failed
            MissingResultError: Completed without a video URL
            ProviderReportedFailure: Provider reported failure
            GenerationCancelledError: cancel() was called
            asyncio.CancelledError: The calling task was cancelled
        """
        self._ensure_not_in_flight()
        if is_terminal_session_state(self.session.state):
            self.reset()

        owner_id: Optional[str] = None
        self._begin()
        try:
            owner_id = self._check_preconditions()

            self._transition(SessionState.SUBMITTING)
            submission = await self.submitter.submit(generation_input, owner_id)
            self.session.provider_job_id = submission.provider_job_id
            self.session.record_id = submission.record_id
            self._raise_if_cancelled()

            queued = submission.provider_status.strip().lower() in PROVIDER_QUEUED_STATUSES
            self._transition(SessionState.QUEUED if queued else SessionState.PROCESSING)

            terminal = await self._poll(PollPhase.QUEUED if queued else PollPhase.PROCESSING)
            return self._finalize(terminal)

        except asyncio.CancelledError:
            cancelled = GenerationCancelledError("Video generation was cancelled")
            self._fail(cancelled, owner_id, generation_input.subject_id)
            raise
        except VideoGenerationError as e:
            self._fail(e, owner_id, generation_input.subject_id)
            raise
        except Exception as e:
            wrapped = VideoGenerationError(f"Video generation failed: {e}", kind=ErrorKind.UNKNOWN)
            self._fail(wrapped, owner_id, generation_input.subject_id)
            raise wrapped from e
        finally:
            self._stop_ticker()

    async def resume(self) -> Optional[GenerationResult]:
        """
        Resume polling the caller's latest non-terminal Job Record

        Returns:
            GenerationResult, or None when there is nothing to resume

        Raises:
            Same classified errors as generate()
        """
        self._ensure_not_in_flight()
        if is_terminal_session_state(self.session.state):
            self.reset()

        owner_id = self.current_user()
        if not owner_id or not self.settings.is_provider_configured:
            logger.info("resume_skipped", authenticated=bool(owner_id))
            return None

        record = self.records.find_resumable(owner_id)
        if record is None:
            return None

        logger.info(
            "resume_started",
            record_id=record.record_id,
            provider_job_id=record.provider_job_id,
            status=record.status,
        )
        self._begin(created_at=record.created_at)
        self.session.record_id = record.record_id
        self.session.provider_job_id = record.provider_job_id
        try:
            if not record.provider_job_id:
                raise SubmissionError("Video generation was interrupted before it reached the video service")

            self._transition(SessionState.PROCESSING)
            terminal = await self._poll(PollPhase.PROCESSING)
            return self._finalize(terminal)

        except asyncio.CancelledError:
            cancelled = GenerationCancelledError("Video generation was cancelled")
            self._fail(cancelled, owner_id, record.subject_id)
            raise
        except VideoGenerationError as e:
            self._fail(e, owner_id, record.subject_id)
            raise
        except Exception as e:
            wrapped = VideoGenerationError(f"Video generation failed: {e}", kind=ErrorKind.UNKNOWN)
            self._fail(wrapped, owner_id, record.subject_id)
            raise wrapped from e
        finally:
            self._stop_ticker()

    def cancel(self) -> bool:
        """
        Request cancellation of the in-flight generation

        Returns:
            True if a generation was in flight
        """
        if not self.session.is_active:
            return False

        logger.info("generation_cancel_requested", record_id=self.session.record_id)
        self.session.cancel_requested = True
        if self._cancel_event is not None:
            self._cancel_event.set()
        self._stop_ticker()
        return True

    def reset(self) -> None:
        """
        Return a finished session to IDLE

        Raises:
            InvalidSessionTransition: If a generation is still in flight
        """
        if self.session.state == SessionState.IDLE:
            return
        validate_session_transition(self.session.state, SessionState.IDLE)
        log_session_transition(self.session.state.value, SessionState.IDLE.value, self.session.record_id)
        self._stop_ticker()
        self.session = GenerationSession()
        self._cancel_event = None
        self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_not_in_flight(self) -> None:
        if self.session.is_active:
            error = ConcurrentGenerationError(
                f"A video generation is already in progress (state: {self.session.state.value})"
            )
            error.classification = self.classifier.classify(error)
            logger.warning(
                "concurrent_generation_rejected",
                state=self.session.state.value,
                record_id=self.session.record_id,
            )
            raise error

    def _begin(self, created_at: Optional[datetime] = None) -> None:
        now = datetime.now(timezone.utc)
        self._cancel_event = asyncio.Event()
        self.session.started_at = created_at or now
        self.session.started_clock = self.clock() - self._age_seconds(created_at, now)
        self._transition(SessionState.INITIALIZING)

        if self.progress_interval_s and self.progress_interval_s > 0:
            self._ticker = ProgressTicker(self.progress_interval_s, self._tick)
            self._ticker.start()

    @staticmethod
    def _age_seconds(created_at: Optional[datetime], now: datetime) -> float:
        if created_at is None:
            return 0.0
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return max(0.0, (now - created_at).total_seconds())

    def _check_preconditions(self) -> str:
        issues = self.settings.provider_configuration_issues()
        if issues:
            raise ConfigurationError(
                f"Tavus is not configured: {'; '.join(issues)}. "
                "Set the missing values in your environment variables."
            )

        owner_id = self.current_user()
        if not owner_id:
            raise AuthError("User not authenticated")
        return owner_id

    async def _poll(self, initial_phase: PollPhase) -> TerminalStatus:
        return await self.poller.poll_until_terminal(
            self.session.provider_job_id,
            started_at=self.session.started_clock,
            initial_phase=initial_phase,
            on_phase_change=self._on_phase_change,
            is_cancelled=lambda: self.session.cancel_requested,
        )

    def _finalize(self, terminal: TerminalStatus) -> GenerationResult:
        session = self.session
        self._transition(SessionState.FINALIZING)
        self.records.mark_completed(session.record_id, terminal.media_url, terminal.thumbnail_url)

        session.result_media_url = terminal.media_url
        session.result_thumbnail_url = terminal.thumbnail_url
        session.queue_seconds = terminal.queue_seconds
        session.progress.finish(completed=True)
        self._transition(SessionState.COMPLETED)

        log_generation_duration(
            record_id=session.record_id,
            duration_s=terminal.total_seconds,
            attempts_made=terminal.attempts_made,
            queue_s=terminal.queue_seconds,
        )
        return GenerationResult(
            video_url=terminal.media_url,
            thumbnail_url=terminal.thumbnail_url,
            job_id=session.record_id,
            provider_job_id=terminal.provider_job_id,
            attempts_made=terminal.attempts_made,
            total_time_s=terminal.total_seconds,
            queue_time_s=terminal.queue_seconds,
        )

    def _fail(self, error: VideoGenerationError, owner_id: Optional[str], subject_id: str) -> None:
        session = self.session
        classification = self.classifier.classify(error)
        error.classification = classification

        session.error_kind = error.kind
        session.error_message = classification["message"]
        log_failure_classification(
            error_code=classification["code"],
            classification=classification["classification"],
            retryable=classification["retryable"],
            record_id=session.record_id,
        )
        logger.error(
            "generation_failed",
            record_id=session.record_id,
            provider_job_id=session.provider_job_id,
            error_kind=error.kind.value,
            error=error.message,
        )

        if owner_id is not None:
            self._mark_record_failed(owner_id, subject_id, classification["message"])

        session.progress.finish(completed=False, message=classification["message"])
        if session.state != SessionState.FAILED:
            self._transition(SessionState.FAILED)

    def _mark_record_failed(self, owner_id: str, subject_id: str, message: str) -> None:
        record_id = self.session.record_id
        if record_id is None:
            # Submission failed after the record was created but before its id reached us
            record_id = self.records.find_latest_pending_or_processing(owner_id, subject_id)
        if record_id is None:
            return

        record = self.records.get(record_id)
        if record is None or record.is_terminal:
            return

        self.session.record_id = record_id
        try:
            self.records.mark_failed(record_id, message)
        except Exception as e:
            logger.error("job_record_failure_update_failed", record_id=record_id, error=str(e))

    def _transition(self, target: SessionState) -> None:
        current = self.session.state
        validate_session_transition(current, target)
        log_session_transition(current.value, target.value, self.session.record_id)
        self.session.state = target

        if self.session.is_active:
            self._update_progress()
        else:
            self._stop_ticker()
        self._notify()

    def _on_phase_change(self, phase: PollPhase) -> None:
        if phase == PollPhase.PROCESSING and self.session.state == SessionState.QUEUED:
            self._transition(SessionState.PROCESSING)

    def _update_progress(self) -> None:
        session = self.session
        if session.started_clock is None:
            return
        was_peak = session.progress.is_peak_load
        session.progress.update(self.clock() - session.started_clock, session.state)
        if session.progress.is_peak_load and not was_peak:
            log_peak_load_detected(session.progress.elapsed_seconds, session.record_id)

    def _tick(self) -> None:
        if self.session.is_active:
            self._update_progress()
            self._notify()

    def _notify(self) -> None:
        snapshot = self.session.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _raise_if_cancelled(self) -> None:
        if self.session.cancel_requested:
            raise GenerationCancelledError("Video generation was cancelled")

    async def _sleep_unless_cancelled(self, seconds: float) -> None:
        """Wait between polls; cancel() cuts the wait short. Progress refreshes after each wait."""
        if self._cancel_event is None:
            await self.sleep(seconds)
        else:
            sleeper = asyncio.ensure_future(self.sleep(seconds))
            cancelled = asyncio.ensure_future(self._cancel_event.wait())
            try:
                await asyncio.wait({sleeper, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                sleeper.cancel()
                cancelled.cancel()
        self._tick()

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None
