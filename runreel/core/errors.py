"""
Video generation error taxonomy
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Caller-visible failure kinds"""

    CONFIGURATION = "CONFIGURATION"
    AUTH = "AUTH"
    SUBMISSION = "SUBMISSION"
    POLL = "POLL"
    POLL_TIMEOUT = "POLL_TIMEOUT"
    MISSING_RESULT = "MISSING_RESULT"
    PROVIDER_FAILURE = "PROVIDER_FAILURE"
    CONCURRENT_GENERATION = "CONCURRENT_GENERATION"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"


class VideoGenerationError(Exception):
    """Base exception for video generation failures"""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        # Set by the orchestrator before the error reaches the caller
        self.classification: Optional[Dict[str, Any]] = None


class ConfigurationError(VideoGenerationError):
    """Provider credentials are missing"""

    kind = ErrorKind.CONFIGURATION


class AuthError(VideoGenerationError):
    """Caller is not authenticated"""

    kind = ErrorKind.AUTH


class SubmissionError(VideoGenerationError):
    """Provider rejected the initial request"""

    kind = ErrorKind.SUBMISSION

    def __init__(self, message: str, http_status: Optional[int] = None, raw_body: str = ""):
        super().__init__(message)
        self.http_status = http_status
        self.raw_body = raw_body


class PollError(VideoGenerationError):
    """Status check failed on the final allowed attempt"""

    kind = ErrorKind.POLL

    def __init__(self, message: str, attempts_made: int, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts_made = attempts_made
        self.cause = cause


class PollTimeout(VideoGenerationError):
    """Cumulative wait exceeded the timeout or attempt ceiling"""

    kind = ErrorKind.POLL_TIMEOUT

    def __init__(
        self,
        message: str,
        elapsed_seconds: float,
        attempts_made: int,
        suggestion: str = "",
    ):
        super().__init__(message)
        self.elapsed_seconds = elapsed_seconds
        self.attempts_made = attempts_made
        self.suggestion = suggestion


class MissingResultError(VideoGenerationError):
    """Provider reported success without a usable media URL"""

    kind = ErrorKind.MISSING_RESULT

    def __init__(self, message: str, provider_job_id: str = ""):
        super().__init__(message)
        self.provider_job_id = provider_job_id


class ProviderReportedFailure(VideoGenerationError):
    """Provider explicitly reported a terminal failure status"""

    kind = ErrorKind.PROVIDER_FAILURE

    def __init__(self, message: str, provider_status: str = ""):
        super().__init__(message)
        self.provider_status = provider_status


class ConcurrentGenerationError(VideoGenerationError):
    """generate() called while another generation is in flight"""

    kind = ErrorKind.CONCURRENT_GENERATION


class GenerationCancelledError(VideoGenerationError):
    """Session was cancelled before reaching a terminal status"""

    kind = ErrorKind.CANCELLED


class InvalidSessionTransition(Exception):
    """Exception raised for invalid session state transitions"""

    pass
