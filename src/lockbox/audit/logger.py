"""Structured logging and audit trail."""

import inspect
import json
import logging
import os
import sys
import threading
import uuid
from contextlib import suppress
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict

LOG_FILE_NAME = "lockbox.log"
AUDIT_LOGGER_NAME = "lockbox.audit"

# Field names whose values are never written to a log
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "value",
        "domain",
        "secret",
        "key",
        "token",
        "credential",
        "checksum",
        "representation",
    }
)

# Global instances
_LOGGER_INSTANCE: Any = None
_logger_lock = threading.Lock()


def get_log_dir(base_dir: str | Path | None = None) -> Path:
    """Get normalized log directory path.

    Args:
        base_dir: Base directory for logs. If None, uses ~/.local/log

    Returns:
        Resolved Path object for log directory
    """
    if base_dir is None:
        base_dir = Path.home() / ".local" / "log"
    return Path(base_dir).resolve()


def create_secure_handler(
    log_path: Path, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    """Create a RotatingFileHandler whose file is not world-readable.

    Args:
        log_path: Path to the log file
        max_bytes: Maximum size of each log file
        backup_count: Number of backup files to keep

    Returns:
        Configured RotatingFileHandler instance
    """
    os.makedirs(log_path.parent, mode=0o750, exist_ok=True)

    # Create the file first so the mode applies before anything is written
    if not log_path.exists():
        log_path.touch(mode=0o640)
    os.chmod(log_path, 0o640)

    return RotatingFileHandler(
        str(log_path), maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )


def add_timestamp(
    _: structlog.BoundLogger, __: str, event_dict: EventDict
) -> EventDict:
    """Add ISO 8601 timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def add_thread_info(
    _: structlog.BoundLogger, __: str, event_dict: EventDict
) -> EventDict:
    """Add thread information."""
    thread = threading.current_thread()
    event_dict["thread"] = {"id": thread.ident, "name": thread.name}
    return event_dict


def add_caller(
    _: structlog.BoundLogger, __: str, event_dict: EventDict
) -> EventDict:
    """Add the first caller frame outside the logging machinery.

    Stack inspection is limited to 12 frames. Failures to find a frame are
    recorded under ``caller.error`` rather than raised.
    """
    if "caller" in event_dict:
        return event_dict

    logging_paths = ("structlog", "logging", "audit/logger.py", "audit\\logger.py")
    frames = inspect.stack(context=0)[1:12]
    try:
        for frame in frames:
            if any(p in frame.filename for p in logging_paths):
                continue
            event_dict["caller"] = {
                "file": os.path.basename(frame.filename),
                "line": frame.lineno,
                "function": frame.function,
            }
            break
        else:
            event_dict["caller"] = {"error": "No caller frame found outside logging code"}
    finally:
        # Break reference cycles held by frame objects
        for frame in frames:
            with suppress(RuntimeError):
                frame.frame.clear()
    return event_dict


def sanitize_keys(
    event_dict: dict[str, Any], sensitive_keys: frozenset[str] | set[str] = SENSITIVE_KEYS
) -> dict[str, Any]:
    """Redact sensitive keys, case-insensitively and through nested structures.

    Args:
        event_dict: Dictionary to sanitize
        sensitive_keys: Set of keys to redact

    Returns:
        Sanitized copy of the dictionary
    """
    lowered = {k.lower() for k in sensitive_keys}

    def _sanitize_value(key: str, value: Any) -> Any:
        if key.lower() in lowered:
            return "***"
        if isinstance(value, dict):
            return sanitize_keys(value, sensitive_keys)
        if isinstance(value, (list, tuple)):
            return [_sanitize_value("", item) for item in value]
        return value

    return {k: _sanitize_value(str(k), v) for k, v in event_dict.items()}


def sanitize_event_dict(
    _: structlog.BoundLogger, __: str, event_dict: EventDict
) -> dict[str, Any]:
    """Mask sensitive values in every log record."""
    return sanitize_keys(dict(event_dict))


class StructuredJsonFormatter(logging.Formatter):
    """JSON formatter for the log file.

    Records rendered by structlog already carry a JSON object as their
    message; its fields are merged into the top-level document. Plain
    stdlib records are wrapped under ``message``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
        }

        message = record.getMessage()
        try:
            payload = json.loads(message)
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            log_data.update(payload)
        else:
            log_data["message"] = message

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, default=str)


def configure_logger(
    log_level: str = "INFO",
    correlation_id: str | None = None,
    max_log_size: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    base_dir: str | Path | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the root logger, returning a bound logger.

    This is a low-level function. Prefer setup_logging(), which also
    records the global instance used by audit_event().

    Args:
        log_level: Log level (default: INFO)
        correlation_id: Optional correlation ID for tracing one session
        max_log_size: Maximum size of a log file before rotation
        backup_count: Number of backup files to keep
        base_dir: Optional base directory for log files

    Returns:
        Logger bound to the correlation ID
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            add_timestamp,
            add_thread_info,
            add_caller,
            sanitize_event_dict,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    log_file = get_log_dir(base_dir) / LOG_FILE_NAME
    file_handler = create_secure_handler(log_file, max_log_size, backup_count)
    file_handler.setFormatter(StructuredJsonFormatter())

    # Warnings and above also go to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    return structlog.get_logger(AUDIT_LOGGER_NAME).bind(
        correlation_id=correlation_id or str(uuid.uuid4())
    )


def setup_logging(
    *,
    log_level: str = "INFO",
    correlation_id: str | None = None,
    max_log_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    base_dir: str | Path | None = None,
) -> structlog.BoundLogger:
    """Setup structured logging and remember the audit logger.

    Args:
        log_level: Log level (default: INFO)
        correlation_id: Optional correlation ID for tracing one session
        max_log_size: Maximum size of a log file before rotation
        backup_count: Number of backup files to keep
        base_dir: Optional base directory for log files

    Returns:
        The configured logger instance.
    """
    global _LOGGER_INSTANCE

    with suppress(Exception):
        structlog.reset_defaults()

    new_logger = configure_logger(
        log_level=log_level,
        correlation_id=correlation_id,
        max_log_size=max_log_size,
        backup_count=backup_count,
        base_dir=base_dir,
    )
    with _logger_lock:
        _LOGGER_INSTANCE = new_logger
    return new_logger


def get_logger() -> structlog.BoundLogger:
    """Get the audit logger.

    Returns the instance created by setup_logging() so the correlation ID
    is preserved across calls. Before setup_logging() has run, returns an
    unconfigured structlog logger, which writes nothing to disk.
    """
    with _logger_lock:
        if _LOGGER_INSTANCE is not None:
            return _LOGGER_INSTANCE
    return structlog.get_logger(AUDIT_LOGGER_NAME)


def reset_logger() -> None:
    """Close handlers, reset structlog and forget the audit logger.

    Idempotent; errors while closing handlers are ignored.
    """
    global _LOGGER_INSTANCE
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        with suppress(Exception):
            handler.close()
        with suppress(Exception):
            root_logger.removeHandler(handler)

    with suppress(Exception):
        structlog.reset_defaults()

    with _logger_lock:
        _LOGGER_INSTANCE = None


def audit_event(
    *,
    event_type: str,
    user: str,
    success: bool,
    details: dict[str, Any] | None = None,
    error: Exception | None = None,
) -> None:
    """Log an audit event.

    Args:
        event_type: Type of event (e.g., "vault.unlock")
        user: Vault name or other identifier of the actor
        success: Whether the operation succeeded
        details: Optional event details; sensitive keys are masked
        error: Optional exception if operation failed
    """
    logger = get_logger()
    event: dict[str, Any] = {
        "event_type": str(getattr(event_type, "value", event_type)),
        "user": user,
        "success": success,
    }
    if details:
        event["details"] = sanitize_keys(details)
    if error is not None:
        event["error"] = {"type": type(error).__name__, "message": str(error)}

    bound = logger.bind(**event)
    if success:
        bound.info("audit_event")
    else:
        bound.error("audit_event")
