"""
Test Fixtures Package
"""

from .sample_data import (
    SAMPLE_ACTIVITY,
    SAMPLE_ACHIEVEMENT,
    SAMPLE_SCRIPT,
    SUBMIT_QUEUED_RESPONSE,
    SUBMIT_PROCESSING_RESPONSE,
    STATUS_QUEUED,
    STATUS_PROCESSING,
    STATUS_COMPLETED,
    STATUS_COMPLETED_DOWNLOAD_ONLY,
    STATUS_COMPLETED_NO_URL,
    STATUS_FAILED,
    INVALID_FIELD_BODY,
    get_sample_activity,
    get_sample_achievement,
)

__all__ = [
    'SAMPLE_ACTIVITY',
    'SAMPLE_ACHIEVEMENT',
    'SAMPLE_SCRIPT',
    'SUBMIT_QUEUED_RESPONSE',
    'SUBMIT_PROCESSING_RESPONSE',
    'STATUS_QUEUED',
    'STATUS_PROCESSING',
    'STATUS_COMPLETED',
    'STATUS_COMPLETED_DOWNLOAD_ONLY',
    'STATUS_COMPLETED_NO_URL',
    'STATUS_FAILED',
    'INVALID_FIELD_BODY',
    'get_sample_activity',
    'get_sample_achievement',
]
