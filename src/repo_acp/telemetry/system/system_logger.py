"""System logger for operational events.

This module provides a singleton system logger for operational events that
aren't part of the decision trail (e.g., store access failures, malformed
policy documents, PDP initialization).

Logging strategy:
- Console (stderr): INFO and above; DEBUG too when verbose diagnostics are on
- File (system.jsonl): Only issues (WARNING, ERROR, CRITICAL)

Verbose diagnostics (request and result dumps) are logged at DEBUG, so
callers guard them with logger.isEnabledFor(logging.DEBUG) and they never
affect decisions.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "set_verbose_diagnostics",
]

import logging
import sys
from pathlib import Path

from repo_acp.constants import APP_NAME
from repo_acp.utils.logging.iso_formatter import ISO8601Formatter


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Extracts 'message' or 'event' field from dict messages for cleaner stderr output.
    """

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
            return f"{record.levelname}: {msg}"
        return f"{record.levelname}: {record.getMessage()}"


# Module-level singleton logger - initialized once on first use
_system_logger: logging.Logger | None = None
_file_handler_configured: bool = False


def get_system_logger() -> logging.Logger:
    """Get the singleton system logger instance.

    Creates the logger on first call with stderr handler only.
    File handler is added later via configure_system_logger_file().

    Returns:
        logging.Logger: Configured system logger instance.

    Example:
        >>> logger = get_system_logger()
        >>> logger.warning({"event": "store_unreachable", "path": "/a", "message": "..."})
    """
    global _system_logger

    if _system_logger is not None:
        return _system_logger

    _system_logger = logging.getLogger(f"{APP_NAME}.system")
    _system_logger.setLevel(logging.INFO)
    _system_logger.propagate = False

    for handler in _system_logger.handlers:
        handler.close()
    _system_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.INFO)
    stderr_handler.setFormatter(ConsoleFormatter())
    _system_logger.addHandler(stderr_handler)

    return _system_logger


def set_verbose_diagnostics(enabled: bool) -> None:
    """Turn request/response dumps on or off.

    Args:
        enabled: True lowers the logger and its console handler to DEBUG.
    """
    logger = get_system_logger()
    level = logging.DEBUG if enabled else logging.INFO
    logger.setLevel(level)
    for handler in logger.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def configure_system_logger_file(log_path: Path) -> None:
    """Add the JSONL file handler to the system logger.

    Should be called once after config is loaded. The file handler logs
    WARNING, ERROR, CRITICAL only (persistent issues).

    Args:
        log_path: Path to the system log file.
    """
    global _file_handler_configured

    if _file_handler_configured:
        return

    logger = get_system_logger()

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if sys.platform != "win32":
            try:
                log_path.parent.chmod(0o700)
            except OSError:
                pass  # Permission changes might fail on some systems
    except OSError:
        return  # stderr logging still works

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    _file_handler_configured = True
