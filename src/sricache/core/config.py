# src/sricache/core/config.py
"""
Configuration schema and loading for sricache.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["ReadOptions", "ReaderSettings", "load_settings"]


class ReadOptions(BaseModel):
    """Per-call options accepted by every read operation.

    Only ``size`` is recognised. Unknown keys are ignored rather than
    rejected so callers can pass a broader options mapping straight through.

    A size that is not a number (a string, a bool) is ignored as well. Any
    integer is taken as given, so a negative size fails the read with
    EBADSIZE rather than failing validation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    size: int | None = Field(
        default=None,
        strict=True,
        description="Expected content length in bytes; checked before the digest",
    )

    @field_validator("size", mode="before")
    @classmethod
    def ignore_non_numeric_size(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, int | float):
            return None
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v

    @classmethod
    def coerce(cls, opts: ReadOptions | Mapping[str, Any] | None) -> ReadOptions:
        """Normalise caller-supplied options into a ReadOptions instance."""
        if opts is None:
            return cls()
        if isinstance(opts, ReadOptions):
            return opts
        return cls.model_validate(dict(opts))


class ReaderSettings(BaseModel):
    """Process-level settings for content access.

    Example YAML:
        platform: win32
        stream_chunk_size: 131072
        max_concurrency: 8
        log_level: DEBUG
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    platform: str = Field(
        default=sys.platform,
        description="Platform identifier used by the existence check's permission policy",
    )
    stream_chunk_size: int = Field(
        default=64 * 1024,
        gt=0,
        description="Bytes read per chunk by read_stream",
    )
    stream_max_buffered_chunks: int = Field(
        default=16,
        gt=0,
        description="Chunks read_stream may buffer ahead of its consumer",
    )
    max_concurrency: int | None = Field(
        default=None,
        gt=0,
        description="Cap on concurrent candidate lookups (None = unbounded)",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console output",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


def load_settings(config_path: Path | None = None) -> ReaderSettings:
    """Load settings from an optional YAML file with environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (SRICACHE_*) - highest priority
    2. Config file (YAML), if given
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated ReaderSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If an explicit config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="SRICACHE",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    # Also filter out internal Dynaconf settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return ReaderSettings(**raw_config)
