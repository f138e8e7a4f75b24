from __future__ import annotations

import json
import logging
import os
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .config_schema import LoggingConfig


LOGGER_NAME = "branchship"

# Environment variables for configuration
ENV_LOG_DIR = "BRANCHSHIP_LOG_DIR"
ENV_LOG_LEVEL = "BRANCHSHIP_LOG_LEVEL"
ENV_LOG_MAX_BYTES = "BRANCHSHIP_LOG_MAX_BYTES"
ENV_LOG_BACKUP_COUNT = "BRANCHSHIP_LOG_BACKUP_COUNT"
ENV_LOG_DISABLE_FILE = "BRANCHSHIP_LOG_DISABLE_FILE"

# Defaults
DEFAULT_LOG_DIR = Path.home() / ".branchship" / "logs"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

_logger_initialized = False
_settings: Optional["LoggingConfig"] = None
_session_start = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")


def configure_logging(settings: "LoggingConfig") -> None:
    """Apply the [logging] config section.

    Takes effect on the next log call; handlers installed earlier are rebuilt.
    """
    global _settings, _logger_initialized
    _settings = settings
    _logger_initialized = False


def reset_logging() -> None:
    """Drop handlers and configured settings (used by tests)."""
    global _settings, _logger_initialized
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    _settings = None
    _logger_initialized = False


def _get_log_level() -> int:
    """Get log level from config or environment, defaulting to INFO."""
    if _settings is not None:
        level_name = _settings.level.upper()
    else:
        level_name = os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def _file_logging_disabled() -> bool:
    if _settings is not None:
        return _settings.disable_file
    return os.getenv(ENV_LOG_DISABLE_FILE, "").lower() in ("1", "true", "yes")


def _get_log_file_path() -> Optional[Path]:
    """Get the log file path, creating directories if needed.

    Returns None if file logging is disabled.
    """
    if _file_logging_disabled():
        return None

    if _settings is not None and _settings.dir:
        log_dir = Path(_settings.dir).expanduser()
    else:
        log_dir = Path(os.getenv(ENV_LOG_DIR, DEFAULT_LOG_DIR))
    log_dir.mkdir(parents=True, exist_ok=True)

    # Session-based filename: branchship_2024-01-15_143022.log
    return log_dir / f"branchship_{_session_start}.log"


def _get_logger() -> logging.Logger:
    """Get or initialize the branchship logger.

    By default, logs to ~/.branchship/logs/branchship_<session>.log and
    mirrors warnings and errors to stderr.
    """
    global _logger_initialized
    logger = logging.getLogger(LOGGER_NAME)

    if not _logger_initialized:
        _logger_initialized = True
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

        log_level = _get_log_level()
        logger.setLevel(log_level)

        formatter = logging.Formatter(
            "[%(levelname)s %(asctime)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S"
        )

        log_file = _get_log_file_path()
        if log_file:
            if _settings is not None:
                max_bytes = _settings.max_bytes
                backup_count = _settings.backup_count
            else:
                max_bytes = int(os.getenv(ENV_LOG_MAX_BYTES, DEFAULT_MAX_BYTES))
                backup_count = int(os.getenv(ENV_LOG_BACKUP_COUNT, DEFAULT_BACKUP_COUNT))

            file_handler = RotatingFileHandler(
                str(log_file),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(log_level)
            logger.addHandler(file_handler)

        # stderr only carries warnings and above; stdout belongs to the prompt
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        stream_handler.setLevel(max(log_level, logging.WARNING))
        logger.addHandler(stream_handler)

    return logger


def log_action(
    action: str,
    *,
    outcome: str = "ok",
    duration_ms: Optional[float] = None,
    **fields: Any,
) -> None:
    """Emit a structured JSON log line for an action.

    Args:
        action: Name of the action being logged
        outcome: Result status ("ok", "error", "failed", etc.)
        duration_ms: How long the action took in milliseconds
        **fields: Additional fields to include
    """
    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "outcome": outcome,
    }
    if duration_ms is not None:
        payload["duration_ms"] = round(duration_ms, 2)
    if fields:
        payload.update(fields)

    _get_logger().info(json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str))


def _format(message: str, fields: Dict[str, Any]) -> str:
    if not fields:
        return message
    return f"{message} " + json.dumps(fields, separators=(",", ":"), sort_keys=True, default=str)


def log_debug(message: str, **fields: Any) -> None:
    """Log a debug message with optional structured fields.

    Only emitted when log level is DEBUG.
    """
    logger = _get_logger()
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(_format(message, fields))


def log_warning(message: str, **fields: Any) -> None:
    """Log a warning message with optional structured fields."""
    _get_logger().warning(_format(message, fields))


def log_error(message: str, **fields: Any) -> None:
    """Log an error message with optional structured fields."""
    _get_logger().error(_format(message, fields))


@contextmanager
def timeit(action: str, **fields: Any):
    """Time a block and emit a structured log on exit.

    The yielded dict may be updated by the block; its entries are added to
    the log line, and an ``outcome`` key replaces the default "ok". On
    exception, logs outcome="error" and re-raises.
    """
    start = time.perf_counter()
    result_info: Dict[str, Any] = {}
    try:
        yield result_info
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000.0
        log_action(action, outcome="error", duration_ms=duration_ms, **fields)
        raise
    duration_ms = (time.perf_counter() - start) * 1000.0
    outcome = result_info.pop("outcome", "ok")
    log_action(action, outcome=outcome, duration_ms=duration_ms, **fields, **result_info)
