"""Centralized logging utilities for credentialcore.

This module provides:
- Logging configuration from AccessConfig
- Safe preview of credential sets and records for log lines
- Structured (JSON) or plain output carrying entity_type / trace_id
- A logger adapter that binds the entity type being checked
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional
from uuid import UUID

from .config import AccessConfig, LogLevel


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a safe, length-bounded, single-line preview of a value.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName", "entity_type", "trace_id",
    }
)


class AccessLogFormatter(logging.Formatter):
    """Formatter that includes entity_type / trace_id and supports JSON output."""

    def __init__(
        self,
        include_context: bool = True,
        json_format: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        """Initialize the formatter.

        Args:
            include_context: Whether to include entity_type and trace_id
            json_format: Whether to output JSON (True) or plain text (False)
        """
        super().__init__(*args, **kwargs)
        self.include_context = include_context
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        entity_type = getattr(record, "entity_type", None)
        trace_id = getattr(record, "trace_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            if entity_type:
                log_data["entity_type"] = entity_type
            if trace_id:
                log_data["trace_id"] = str(trace_id) if isinstance(trace_id, UUID) else trace_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_preview(value)

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if self.include_context and entity_type:
            parts.append(f"entity_type={entity_type}")
        if self.include_context and trace_id:
            parts.append(f"trace_id={log_data['trace_id']}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class AccessLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds entity_type and trace_id to log records.

    Usage:
        logger = get_access_logger(__name__, entity_type="Invoice")
        logger.info("Policy compiled")
    """

    def __init__(
        self,
        logger: logging.Logger,
        entity_type: Optional[str] = None,
        trace_id: Optional[UUID | str] = None,
    ):
        super().__init__(logger, {})
        self.entity_type = entity_type
        self.trace_id = trace_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        entity_type = kwargs.pop("entity_type", self.entity_type)
        trace_id = kwargs.pop("trace_id", self.trace_id)

        extra = kwargs.get("extra", {})
        if entity_type:
            extra["entity_type"] = entity_type
        if trace_id:
            extra["trace_id"] = trace_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[AccessConfig] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure the root logger from AccessConfig.

    Args:
        config: AccessConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
    """
    if config is None:
        from .config import load_access_config_from_env

        config = load_access_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        AccessLogFormatter(
            include_context=True,
            json_format=config.log_json if json_format is None else json_format,
        )
    )
    root_logger.addHandler(console_handler)

    if config.service_name:
        logging.getLogger(config.service_name).setLevel(log_level)


def get_access_logger(
    name: str,
    entity_type: Optional[str] = None,
    trace_id: Optional[UUID | str] = None,
) -> AccessLoggerAdapter:
    """Get a logger adapter bound to an entity type and/or trace id.

    Example:
        logger = get_access_logger(__name__, entity_type="Invoice")
        logger.debug("view resolved")
    """
    return AccessLoggerAdapter(logging.getLogger(name), entity_type=entity_type, trace_id=trace_id)


__all__ = [
    "safe_preview",
    "AccessLogFormatter",
    "AccessLoggerAdapter",
    "setup_logging",
    "get_access_logger",
]
