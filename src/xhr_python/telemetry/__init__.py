"""
Telemetry for xhr-python: structured, credential-masking logging.
"""

from xhr_python.telemetry.logger import (
    JsonFormatter,
    LogContext,
    LogLevel,
    SensitiveDataMasker,
    TextFormatter,
    XhrLogger,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
)

__all__ = [
    "JsonFormatter",
    "LogContext",
    "LogLevel",
    "SensitiveDataMasker",
    "TextFormatter",
    "XhrLogger",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "set_log_context",
]
