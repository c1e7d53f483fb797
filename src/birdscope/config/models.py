"""Configuration models for BirdScope.

This module contains all configuration-related Pydantic models used throughout the client.
"""

import re

from pydantic import BaseModel, Field, field_validator


class LoggingConfig(BaseModel):
    """Structlog-based logging configuration."""

    level: str = "INFO"
    json_logs: bool | None = None  # None = auto-detect based on environment
    include_caller: bool = False  # Include file:line info (useful for debugging)
    extra_fields: dict[str, str] = Field(default_factory=lambda: {"service": "birdscope"})


class BackendConfig(BaseModel):
    """Connection settings for the hosted identification backend."""

    base_url: str = "http://127.0.0.1:54321"  # Project URL, functions and REST API live below it
    api_key: str = ""  # Anonymous (publishable) API key
    request_timeout: float = 30.0  # Seconds, applies to non-streamed requests

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and strip any trailing slash."""
        if not re.match(r"^https?://[^/\s]+", v):
            raise ValueError(f"Invalid backend URL '{v}'. Must start with http:// or https://")
        return v.rstrip("/")


class IdentificationConfig(BaseModel):
    """Streaming identification request settings."""

    function_name: str = "identify-bird"
    # Rate-limit heuristic: product-tuned, not a backend guarantee
    rate_limit_status_codes: list[int] = Field(default_factory=lambda: [429])
    rate_limit_markers: list[str] = Field(
        default_factory=lambda: ["Quota", "RESOURCE_EXHAUSTED"]
    )
    connect_timeout: float = 15.0  # Seconds to establish the streamed request
    read_timeout: float | None = 120.0  # Seconds between chunks, None disables


class MediaConfig(BaseModel):
    """Per-species media lookup cache and retry settings."""

    function_name: str = "fetch-bird-media"
    cache_ttl_seconds: float = 3600.0
    max_retries: int = Field(default=2, ge=0)  # Additional attempts after the first failure
    base_delay_seconds: float = Field(default=0.5, ge=0.0)  # Doubles on each retry
    attempt_timeout_seconds: float = Field(default=12.0, gt=0.0)


class UsageConfig(BaseModel):
    """Free identification credit settings."""

    free_identification_limit: int = Field(default=7, ge=0)
    profiles_table: str = "profiles"
    count_column: str = "identifications_count"
    increment_rpc: str = "increment_identification_count"


class HistoryConfig(BaseModel):
    """Local search history and onboarding flag storage keys."""

    storage_key: str = "@search_history"
    max_entries: int = Field(default=10, ge=1)
    onboarding_key: str = "@onboarding_completed"


class SearchConfig(BaseModel):
    """Bird name autocomplete settings."""

    autocomplete_url: str = "https://api.inaturalist.org/v1/taxa/autocomplete"
    taxon_id: int = 3  # Class Aves
    ranks: str = "species,subspecies"
    per_page: int = 10
    min_query_length: int = 2


class FeedbackConfig(BaseModel):
    """User feedback submission settings."""

    table: str = "user_feedback"
    platform: str = "mobile"


class BirdScopeConfig(BaseModel):
    """Configuration settings for the BirdScope client."""

    # Version tracking
    config_version: str = "1.0.0"  # Configuration schema version

    # Logging settings
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Remote services
    backend: BackendConfig = Field(default_factory=BackendConfig)
    identification: IdentificationConfig = Field(default_factory=IdentificationConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    usage: UsageConfig = Field(default_factory=UsageConfig)
    feedback: FeedbackConfig = Field(default_factory=FeedbackConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    # Local state
    history: HistoryConfig = Field(default_factory=HistoryConfig)
