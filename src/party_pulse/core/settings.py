"""Library settings and configuration.

This module defines all configuration options for the party-pulse engagement core.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Every component accepts an explicit ``Settings`` instance; the module-level
    ``settings`` object is only the default used when none is passed.
    """

    # Application metadata
    app_name: str = Field(default="Party Pulse", alias="APP_NAME")
    log_level: str = Field(default="INFO", alias="PULSE_LOG_LEVEL")

    # Persistent store
    database_url: str = Field(default="sqlite:///./party_pulse.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Vote ledger write retries (optimistic concurrency on the subject row)
    vote_max_attempts: int = Field(default=5, alias="PULSE_VOTE_MAX_ATTEMPTS")
    vote_retry_backoff_seconds: float = Field(
        default=0.01,
        alias="PULSE_VOTE_RETRY_BACKOFF_SECONDS",
    )

    # Feed pagination
    feed_default_page_size: int = Field(default=20, alias="PULSE_FEED_DEFAULT_PAGE_SIZE")
    feed_max_page_size: int = Field(default=100, alias="PULSE_FEED_MAX_PAGE_SIZE")

    # Realtime ingest
    ingest_queue_size: int = Field(default=1000, alias="PULSE_INGEST_QUEUE_SIZE")

    # Initial party load (fan-out)
    load_section_timeout_seconds: float = Field(
        default=10.0,
        alias="PULSE_LOAD_SECTION_TIMEOUT_SECONDS",
    )
    load_feed_page_size: int = Field(default=20, alias="PULSE_LOAD_FEED_PAGE_SIZE")

    # Hottest-party ranking
    hottest_scan_limit: int = Field(default=50, alias="PULSE_HOTTEST_SCAN_LIMIT")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator(
        "vote_max_attempts",
        "feed_default_page_size",
        "feed_max_page_size",
        "ingest_queue_size",
        "load_feed_page_size",
        "hottest_scan_limit",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate integer is positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator("vote_retry_backoff_seconds", "load_section_timeout_seconds")
    @classmethod
    def validate_non_negative_float(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Value must not be negative, got {v}")
        return v

    @property
    def effective_feed_page_size(self) -> int:
        """Return the default feed page size clamped to the configured maximum."""
        return min(self.feed_default_page_size, self.feed_max_page_size)


settings = Settings()
