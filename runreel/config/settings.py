"""
Application Settings Configuration
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Literal


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Keys
    # Tavus API key for achievement video generation
    tavus_api_key: str = Field(default="")

    # Replica (avatar) used to narrate achievement videos
    tavus_replica_id: str = Field(default="")

    # Tavus API endpoint
    tavus_base_url: str = Field(default="https://tavusapi.com/v2")

    # Fast generation renders 1080p at roughly 3x real time
    tavus_fast_generation: bool = Field(default=True)

    tavus_request_timeout_s: float = Field(default=30.0)

    tavus_dashboard_url: str = Field(default="https://app.tavus.io/videos")

    # Database
    database_url: str = Field(default="sqlite:///./data/runreel.db")

    # Progress ticker cadence while a session is active
    progress_tick_interval_s: float = Field(default=1.0)

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_provider_configured(self) -> bool:
        return not self.provider_configuration_issues()

    def provider_configuration_issues(self) -> List[str]:
        """
        List provider settings that are missing

        Returns:
            Human-readable issues, empty when the provider is usable
        """
        issues = []
        if not self.tavus_api_key:
            issues.append("Missing TAVUS_API_KEY environment variable")
        if not self.tavus_replica_id:
            issues.append("Missing TAVUS_REPLICA_ID environment variable")
        return issues


# Global settings instance
settings = Settings()
