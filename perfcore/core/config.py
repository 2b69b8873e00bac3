"""
perfcore Configuration

Configuration management with environment variable support.
Every setting can be overridden with a PERFCORE_-prefixed variable
or a .env file in the working directory.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from dotenv import load_dotenv

from ..constants import (
    DEFAULT_MAX_SIZE_BYTES,
    DEFAULT_MAX_ENTRIES,
    DEFAULT_TTL_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_PERSISTENCE_PATH,
    DEFAULT_LAZY_BATCH_SIZE,
    DEFAULT_LAZY_PREFETCH_THRESHOLD,
    DEFAULT_LAZY_TIMEOUT_SECONDS,
    DEFAULT_VIRTUAL_ITEM_HEIGHT,
    DEFAULT_VIRTUAL_BUFFER_SIZE,
    DEFAULT_VIRTUAL_OVERSCAN,
)

# Load environment variables from .env file
load_dotenv()


class PerformanceSettings(BaseSettings):
    """Performance layer settings with validation and safe defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PERFCORE_",
        case_sensitive=True,
        extra="ignore",
    )

    # Cache configuration
    CACHE_MAX_SIZE_BYTES: int = Field(
        default=DEFAULT_MAX_SIZE_BYTES, gt=0, description="Cache capacity in bytes"
    )
    CACHE_MAX_ENTRIES: int = Field(
        default=DEFAULT_MAX_ENTRIES, gt=0, description="Maximum cached entries"
    )
    CACHE_DEFAULT_TTL_SECONDS: float = Field(
        default=DEFAULT_TTL_SECONDS, gt=0, description="Default entry TTL in seconds"
    )
    CACHE_SWEEP_INTERVAL_SECONDS: float = Field(
        default=DEFAULT_SWEEP_INTERVAL_SECONDS,
        gt=0,
        description="Interval between TTL sweeps in seconds",
    )
    CACHE_EVICTION_POLICY: str = Field(
        default="lru", description="Eviction policy (lru, lfu, fifo, ttl, random)"
    )
    CACHE_PERSISTENCE_ENABLED: bool = Field(
        default=False, description="Write cache snapshots to the durable store"
    )
    CACHE_PERSISTENCE_PATH: str = Field(
        default=DEFAULT_PERSISTENCE_PATH,
        description="Directory used by the file-backed durable store",
    )
    CACHE_COMPRESSION_ENABLED: bool = Field(
        default=True, description="Gzip-compress persisted snapshots"
    )

    # Lazy loading configuration
    LAZY_BATCH_SIZE: int = Field(
        default=DEFAULT_LAZY_BATCH_SIZE, ge=1, le=10_000, description="Page size"
    )
    LAZY_PREFETCH_THRESHOLD: int = Field(
        default=DEFAULT_LAZY_PREFETCH_THRESHOLD,
        ge=0,
        description="Remaining items that trigger a prefetch",
    )
    LAZY_TIMEOUT_SECONDS: float = Field(
        default=DEFAULT_LAZY_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout for a single page fetch",
    )

    # Virtualization configuration
    VIRTUAL_ITEM_HEIGHT: float = Field(
        default=DEFAULT_VIRTUAL_ITEM_HEIGHT, gt=0, description="Row height"
    )
    VIRTUAL_BUFFER_SIZE: int = Field(
        default=DEFAULT_VIRTUAL_BUFFER_SIZE, ge=0, description="Row buffer size"
    )
    VIRTUAL_OVERSCAN: int = Field(
        default=DEFAULT_VIRTUAL_OVERSCAN, ge=0, description="Rows rendered off-screen"
    )

    # Background tasks
    TASK_PERSISTENCE_ENABLED: bool = Field(
        default=False, description="Persist background task table snapshots"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_JSON: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("CACHE_EVICTION_POLICY")
    @classmethod
    def validate_eviction_policy(cls, v):
        """Validate eviction policy name."""
        allowed = ["lru", "lfu", "fifo", "ttl", "random"]
        if v.lower() not in allowed:
            raise ValueError(f"CACHE_EVICTION_POLICY must be one of: {allowed}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    # Alias properties for snake_case usage
    @property
    def cache_max_size_bytes(self) -> int:
        """Alias for CACHE_MAX_SIZE_BYTES."""
        return self.CACHE_MAX_SIZE_BYTES

    @property
    def cache_max_entries(self) -> int:
        """Alias for CACHE_MAX_ENTRIES."""
        return self.CACHE_MAX_ENTRIES

    @property
    def cache_eviction_policy(self) -> str:
        """Alias for CACHE_EVICTION_POLICY."""
        return self.CACHE_EVICTION_POLICY

    @property
    def cache_persistence_enabled(self) -> bool:
        """Alias for CACHE_PERSISTENCE_ENABLED."""
        return self.CACHE_PERSISTENCE_ENABLED

    @property
    def task_persistence_enabled(self) -> bool:
        """Alias for TASK_PERSISTENCE_ENABLED."""
        return self.TASK_PERSISTENCE_ENABLED

    @property
    def log_level(self) -> str:
        """Alias for LOG_LEVEL."""
        return self.LOG_LEVEL


@lru_cache()
def get_settings() -> PerformanceSettings:
    """Get cached settings instance."""
    return PerformanceSettings()
