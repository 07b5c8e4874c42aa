"""
Generation Session Models
"""

from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class OutputFormat(str, Enum):
    """Output aspect of the rendered video"""

    SQUARE = "square"
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class SessionState(str, Enum):
    """Generation session lifecycle states"""

    IDLE = "idle"
    INITIALIZING = "initializing"
    SUBMITTING = "submitting"
    QUEUED = "queued"
    PROCESSING = "processing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


class VideoCustomization(BaseModel):
    """
    Local presentation options.

    These drive script/template selection only. The provider rejects
    unrecognized fields, so none of them are ever sent on the wire.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    voice_type: Optional[Literal["motivational", "encouraging", "calm", "excited", "proud"]] = None
    background_style: Optional[Literal["running_track", "mountain_road", "nature_path", "confetti", "calendar"]] = None
    music_style: Optional[Literal["energetic", "uplifting", "peaceful", "triumphant"]] = None
    include_stats: bool = True
    include_branding: bool = True


class GenerationInput(BaseModel):
    """Caller-constructed request for one achievement video"""

    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(min_length=1)
    script_text: str = Field(min_length=1)
    output_format: OutputFormat = OutputFormat.SQUARE
    customization: Optional[VideoCustomization] = None


class GenerationResult(BaseModel):
    """Successful outcome returned by generate()"""

    video_url: str
    thumbnail_url: Optional[str] = None
    job_id: str  # Job Record id
    provider_job_id: str
    attempts_made: int = 0
    total_time_s: float = 0.0
    queue_time_s: Optional[float] = None


class SessionSnapshot(BaseModel):
    """Read-only view of a session for rendering"""

    model_config = ConfigDict(frozen=True)

    state: SessionState
    progress_message: str = ""
    progress_percentage: float = 0.0
    is_peak_load: bool = False
    elapsed_seconds: float = 0.0
    estimated_remaining_seconds: float = 0.0
    provider_job_id: Optional[str] = None
    record_id: Optional[str] = None
    result_media_url: Optional[str] = None
    result_thumbnail_url: Optional[str] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
