"""Configuration contract for credentialcore.

Pydantic-validated settings shared by everything that builds access
policies or checks access: log level and format, the default resolution
mode, and the record attribute used by the soft-delete view hook.

Direct os.environ/os.getenv usage is only allowed in
:func:`load_access_config_from_env`. Everything else receives an
:class:`AccessConfig` instance.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AccessConfig(BaseModel):
    """Settings for policy construction and access evaluation."""

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )
    service_name: Optional[str] = Field(
        default=None,
        description="Name of the embedding service, used as logger name",
    )

    # Resolution
    strict_resolution: bool = Field(
        default=False,
        description=(
            "Default resolution mode for compiled policies. Strict mode raises "
            "UnknownAccessKind for access kinds that have neither a hook answer "
            "nor a declared credential; permissive mode passes the bare name through."
        ),
    )
    soft_delete_field: str = Field(
        default="deleted_at",
        description="Record attribute holding the deletion marker (None = not deleted)",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("soft_delete_field")
    @classmethod
    def validate_soft_delete_field(cls, v: str) -> str:
        """The deletion marker must be a plain attribute name."""
        if not v or not v.isidentifier():
            raise ValueError(f"soft_delete_field must be an identifier, got {v!r}")
        return v

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


_TRUTHY = ("true", "1", "yes", "on")


def load_access_config_from_env() -> AccessConfig:
    """Load configuration from environment variables.

    This is the ONLY place where os.getenv is allowed.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - SERVICE_NAME: Name of the embedding service
    - ACCESS_STRICT_RESOLUTION: Default to strict resolution (true/false)
    - ACCESS_SOFT_DELETE_FIELD: Deletion marker attribute (default: deleted_at)

    Returns:
        AccessConfig instance with values from environment or defaults.
    """
    import os

    return AccessConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in _TRUTHY,
        service_name=os.getenv("SERVICE_NAME"),
        strict_resolution=os.getenv("ACCESS_STRICT_RESOLUTION", "false").lower() in _TRUTHY,
        soft_delete_field=os.getenv("ACCESS_SOFT_DELETE_FIELD", "deleted_at"),
    )


__all__ = [
    "AccessConfig",
    "LogLevel",
    "load_access_config_from_env",
]
