"""
Configuration management with environment variable support and validation.

Design principles:
- Validation at startup (fail fast)
- Type safety with Pydantic
- Defaults that work without any environment set
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from bptracker.domain.models import TimeOfDay

# Load environment variables from .env file
load_dotenv()


class StorageConfig(BaseModel):
    """Where the reading collection is persisted."""

    backend: Literal["file", "memory"] = Field(
        default="file", description="Key-value storage backend"
    )
    path: str = Field(default="./bptracker.json", description="Storage file for the file backend")
    key: str = Field(default="bpData", min_length=1, description="Storage key of the collection")


class UndoConfig(BaseModel):
    """Reversible delete settings."""

    window_seconds: float = Field(
        default=5.0, gt=0.0, description="How long a deletion can be undone"
    )


class ReadingConfig(BaseModel):
    """Form input rules."""

    time_options: list[str] = Field(
        default_factory=lambda: [t.value for t in TimeOfDay],
        min_length=1,
        description="Allowed time-of-day labels",
    )

    @field_validator("time_options")
    def strip_and_dedupe(cls, v: list[str]) -> list[str]:
        cleaned: list[str] = []
        for label in (item.strip() for item in v):
            if label and label not in cleaned:
                cleaned.append(label)
        if not cleaned:
            raise ValueError("at least one time-of-day label is required")
        return cleaned


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class TrackerConfig(BaseModel):
    """Main configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    undo: UndoConfig = Field(default_factory=UndoConfig)
    reading: ReadingConfig = Field(default_factory=ReadingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "TrackerConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> TrackerConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    backend = os.getenv("BPTRACKER_STORAGE_BACKEND", "file").strip().lower()
    storage_config = StorageConfig(
        backend=cast(Literal["file", "memory"], "memory" if backend == "memory" else "file"),
        path=os.getenv("BPTRACKER_STORAGE_PATH", "./bptracker.json"),
        key=os.getenv("BPTRACKER_STORAGE_KEY", "bpData"),
    )

    undo_config = UndoConfig(window_seconds=float(os.getenv("UNDO_WINDOW_SECONDS", "5.0")))

    time_options = os.getenv("TIME_OPTIONS")
    reading_config = (
        ReadingConfig(time_options=time_options.split(",")) if time_options else ReadingConfig()
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return TrackerConfig(
        environment=environment,
        debug=debug,
        storage=storage_config,
        undo=undo_config,
        reading=reading_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> TrackerConfig:
    """Get cached configuration."""
    return load_config_from_env()
