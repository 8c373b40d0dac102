"""
Logging utilities for the HTTP relay.

Provides structured logging with correlation fields so a proxied call can be
traced from the inbound request to the upstream endpoint.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional


NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")

# Level names accepted by log_level(), mapped onto logging levels
LEVELS = {
    "emergency": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "notice": NOTICE,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

CORRELATION_FIELDS = ("request_identifier", "session_identifier", "endpoint")


def log_level(name: str) -> int:
    """
    Map a level name onto a logging level.
    
    Unknown names map to INFO.
    
    Example:
        >>> log_level("notice")
        25
    """
    return LEVELS.get(str(name).lower(), logging.INFO)


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.
    
    Each log line includes the standard fields (timestamp, level, message,
    logger) plus any correlation fields present on the record.
    """
    
    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp
    
    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()
        
        for name in CORRELATION_FIELDS + ("status_code", "cache_hit"):
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        
        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with correlation context.
    
    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [request_identifier=X endpoint=Y]
    """
    
    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)
    
    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with correlation context."""
        base = super().format(record)
        
        context_parts = []
        for name in CORRELATION_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                context_parts.append(f"{name}={value}")
        
        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger instance for the relay.
    
    Args:
        name: Logger name (typically __name__ of the calling module)
        level: Optional logging level override
        
    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    
    if level is not None:
        logger.setLevel(level)
    
    return logger


def configure_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
    structured: bool = False,
    stream=None,
) -> logging.Logger:
    """
    Configure the httprelay package logger.
    
    Without this call the package logger only carries a NullHandler and
    records are dropped.
    
    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string (ignored if structured=True)
        include_timestamp: Whether to include timestamp in log messages
        structured: If True, output JSON-structured logs; if False, human-readable
        stream: Stream for the handler (default: stdout)
        
    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger("httprelay")
    package_logger.setLevel(level)
    
    if not any(isinstance(h, logging.StreamHandler) for h in package_logger.handlers):
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setLevel(level)
        
        if structured:
            formatter = StructuredFormatter(include_timestamp=include_timestamp)
        elif format_string:
            formatter = logging.Formatter(format_string)
        else:
            formatter = HumanReadableFormatter(include_timestamp=include_timestamp)
        
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    
    return package_logger


class CorrelationContext:
    """
    Context manager for adding correlation fields to log records.
    
    Example:
        >>> with CorrelationContext(request_identifier="abc", endpoint="users"):
        ...     log_with_context(logger, logging.INFO, "Forwarding request")
    """
    
    # Per-thread and per-task, so concurrent proxied calls do not mix context
    _current: ContextVar = ContextVar("httprelay_correlation", default=None)

    def __init__(
        self,
        request_identifier: Optional[str] = None,
        session_identifier: Optional[str] = None,
        endpoint: Optional[str] = None,
        **extra: Any,
    ):
        self.context = {
            "request_identifier": request_identifier,
            "session_identifier": session_identifier,
            "endpoint": endpoint,
            **extra,
        }
        self.context = {k: v for k, v in self.context.items() if v is not None}
        self._token = None

    def __enter__(self) -> "CorrelationContext":
        self._token = CorrelationContext._current.set(self)
        return self

    def __exit__(self, *args) -> None:
        CorrelationContext._current.reset(self._token)

    @classmethod
    def get_current(cls) -> Dict[str, Any]:
        """Get the current correlation context."""
        current = cls._current.get()
        if current is None:
            return {}
        return current.context.copy()


def log_with_context(
    logger: Optional[logging.Logger],
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log a message with correlation context.
    
    Merges the current CorrelationContext with any extra fields provided.
    A missing logger drops the message.
    
    Args:
        logger: The logger to use
        level: Log level (e.g., logging.INFO or a name such as "notice")
        message: Log message
        **extra: Additional fields to include
    """
    if logger is None:
        return
    if isinstance(level, str):
        level = log_level(level)
    context = CorrelationContext.get_current()
    context.update(extra)
    logger.log(level, message, extra=context)
