"""
Error Classifier - Classify generation errors for retry guidance and user-facing messages
"""

from typing import Any, Dict, List, Optional
import httpx

from runreel.config.settings import Settings, settings as default_settings
from runreel.core.errors import (
    AuthError,
    ConcurrentGenerationError,
    ConfigurationError,
    ErrorKind,
    GenerationCancelledError,
    MissingResultError,
    PollError,
    PollTimeout,
    ProviderReportedFailure,
    SubmissionError,
    VideoGenerationError,
)


class ErrorClassifier:
    """
    Classify errors for retry logic and user-facing messages.

    "retryable" means a fresh generate() call may succeed; "wait_may_help"
    means the provider may still finish this attempt on its own.
    """

    # Error codes
    ERROR_CONFIGURATION_MISSING = "CONFIGURATION_MISSING"
    ERROR_AUTH_REQUIRED = "AUTH_REQUIRED"
    ERROR_SUBMISSION_AUTH = "SUBMISSION_AUTH"
    ERROR_SUBMISSION_RATE_LIMIT = "SUBMISSION_RATE_LIMIT"
    ERROR_SUBMISSION_INVALID_REQUEST = "SUBMISSION_INVALID_REQUEST"
    ERROR_SUBMISSION_PROVIDER_UNAVAILABLE = "SUBMISSION_PROVIDER_UNAVAILABLE"
    ERROR_SUBMISSION_NETWORK = "SUBMISSION_NETWORK"
    ERROR_POLL_FAILED = "POLL_FAILED"
    ERROR_POLL_TIMEOUT = "POLL_TIMEOUT"
    ERROR_MISSING_RESULT = "MISSING_RESULT"
    ERROR_PROVIDER_FAILURE = "PROVIDER_FAILURE"
    ERROR_CONCURRENT_GENERATION = "CONCURRENT_GENERATION"
    ERROR_CANCELLED = "CANCELLED"
    ERROR_NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    ERROR_NETWORK_ERROR = "NETWORK_ERROR"
    ERROR_UNKNOWN = "UNKNOWN_ERROR"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def classify(self, error: BaseException) -> Dict[str, Any]:
        """
        Classify error with user-facing message

        Args:
            error: Exception to classify

        Returns:
            Dict with code, kind, message, classification, retryable,
            wait_may_help, suggested_modifications
        """
        if isinstance(error, ConfigurationError):
            return self._result(
                self.ERROR_CONFIGURATION_MISSING,
                ErrorKind.CONFIGURATION,
                "Video service configuration issue. Please contact support.",
                retryable=False,
                suggestions=self.settings.provider_configuration_issues(),
            )

        if isinstance(error, AuthError):
            return self._result(
                self.ERROR_AUTH_REQUIRED,
                ErrorKind.AUTH,
                "Please sign in to generate achievement videos.",
                retryable=False,
                suggestions=["Sign in and try again"],
            )

        if isinstance(error, SubmissionError):
            return self._classify_submission(error)

        if isinstance(error, PollTimeout):
            suggestions = [error.suggestion] if error.suggestion else []
            suggestions.append(f"Check your Tavus dashboard: {self.settings.tavus_dashboard_url}")
            return self._result(
                self.ERROR_POLL_TIMEOUT,
                ErrorKind.POLL_TIMEOUT,
                "Video generation is taking longer than expected due to high demand. "
                "This is normal during peak usage periods. Try again during off-peak hours "
                "(early morning/late evening) for faster processing.",
                retryable=True,
                wait_may_help=True,
                suggestions=suggestions,
            )

        if isinstance(error, PollError):
            return self._result(
                self.ERROR_POLL_FAILED,
                ErrorKind.POLL,
                "Lost contact with the video service while checking progress. "
                "Your video may still be processing.",
                retryable=True,
                wait_may_help=True,
                suggestions=[f"Check your Tavus dashboard: {self.settings.tavus_dashboard_url}"],
            )

        if isinstance(error, MissingResultError):
            return self._result(
                self.ERROR_MISSING_RESULT,
                ErrorKind.MISSING_RESULT,
                "The video service finished but did not return a video. Please try again.",
                retryable=True,
                suggestions=["Generate the video again"],
            )

        if isinstance(error, ProviderReportedFailure):
            return self._result(
                self.ERROR_PROVIDER_FAILURE,
                ErrorKind.PROVIDER_FAILURE,
                f"Video generation failed with status: {error.provider_status or 'failed'}. Please try again.",
                retryable=True,
                suggestions=["Generate the video again"],
            )

        if isinstance(error, ConcurrentGenerationError):
            return self._result(
                self.ERROR_CONCURRENT_GENERATION,
                ErrorKind.CONCURRENT_GENERATION,
                "A video is already being generated. Wait for it to finish before starting another.",
                retryable=False,
                wait_may_help=True,
            )

        if isinstance(error, GenerationCancelledError):
            return self._result(
                self.ERROR_CANCELLED,
                ErrorKind.CANCELLED,
                "Video generation was cancelled.",
                retryable=True,
            )

        if isinstance(error, httpx.TimeoutException):
            return self._result(
                self.ERROR_NETWORK_TIMEOUT,
                ErrorKind.UNKNOWN,
                "Network timeout while connecting to video generation service",
                retryable=True,
            )

        if isinstance(error, httpx.NetworkError):
            return self._result(
                self.ERROR_NETWORK_ERROR,
                ErrorKind.UNKNOWN,
                "Network error occurred",
                retryable=True,
            )

        # Default - unknown error
        kind = error.kind if isinstance(error, VideoGenerationError) else ErrorKind.UNKNOWN
        return self._result(
            self.ERROR_UNKNOWN,
            kind,
            f"An unexpected error occurred: {str(error)}",
            retryable=False,
            suggestions=["Please try again or contact support"],
        )

    def _classify_submission(self, error: SubmissionError) -> Dict[str, Any]:
        status = error.http_status

        if status is None:
            return self._result(
                self.ERROR_SUBMISSION_NETWORK,
                ErrorKind.SUBMISSION,
                "Could not reach the video generation service",
                retryable=True,
                suggestions=["Check your connection and try again"],
            )

        if status in (401, 403):
            return self._result(
                self.ERROR_SUBMISSION_AUTH,
                ErrorKind.SUBMISSION,
                "Video service rejected the API credentials. Please contact support.",
                retryable=False,
                suggestions=["Verify TAVUS_API_KEY is correct"],
            )

        if status == 429:
            return self._result(
                self.ERROR_SUBMISSION_RATE_LIMIT,
                ErrorKind.SUBMISSION,
                "Rate limit exceeded for video generation service",
                retryable=True,
                wait_may_help=True,
                suggestions=["Wait a few minutes and try again"],
            )

        if 400 <= status < 500:
            return self._result(
                self.ERROR_SUBMISSION_INVALID_REQUEST,
                ErrorKind.SUBMISSION,
                f"Video service rejected the request: {error.raw_body or status}",
                retryable=False,
                suggestions=["Verify TAVUS_REPLICA_ID refers to a ready replica"],
            )

        return self._result(
            self.ERROR_SUBMISSION_PROVIDER_UNAVAILABLE,
            ErrorKind.SUBMISSION,
            "Video generation service temporarily unavailable",
            retryable=True,
            wait_may_help=True,
            suggestions=["Try again in a few minutes"],
        )

    def _result(
        self,
        code: str,
        kind: ErrorKind,
        message: str,
        retryable: bool,
        wait_may_help: bool = False,
        suggestions: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        if wait_may_help:
            classification = "wait_and_retry"
        elif retryable:
            classification = "retryable"
        else:
            classification = "non_retryable"
        return {
            "code": code,
            "kind": kind.value,
            "message": message,
            "classification": classification,
            "retryable": retryable,
            "wait_may_help": wait_may_help,
            "suggested_modifications": list(suggestions or []),
        }
