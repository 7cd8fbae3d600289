"""System operational logging.

Provides the system logger for operational events that aren't part of the
decision trail (store failures, policy load errors, startup events) and for
verbose diagnostic dumps.
"""

from repo_acp.telemetry.system.system_logger import (
    ConsoleFormatter,
    configure_system_logger_file,
    get_system_logger,
    set_verbose_diagnostics,
)

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "set_verbose_diagnostics",
]
