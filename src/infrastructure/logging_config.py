"""Logging configuration for Clinic Records.

Log records may carry structured context through ``extra={"context": {...}}``.
Only keys listed in LOG_CONTEXT_KEYS are ever emitted: Ids, counts, paths,
operations and error types. Patient field values (names, phones, addresses,
histories) have no key here, so they cannot leak into a log line even when a
caller passes them by mistake.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOG_CONTEXT_KEYS = ("patient_id", "index", "count", "path", "operation", "error_type", "field")

HUMAN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s%(context_suffix)s"
HUMAN_DATEFMT = "%Y-%m-%d %H:%M:%S"


def safe_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the whitelisted part of a record's ``context`` extra."""
    context = getattr(record, "context", None)
    if not isinstance(context, dict):
        return {}
    return {key: context[key] for key in LOG_CONTEXT_KEYS if key in context}


class ContextFilter(logging.Filter):
    """Attach ``context_suffix`` so the human format can show safe context."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = safe_context(record)
        record.context_suffix = (
            " [" + ", ".join(f"{key}={value}" for key, value in context.items()) + "]"
            if context else ""
        )
        return True


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter tagging every record with the application name."""

    def __init__(self, app_name: Optional[str] = None):
        super().__init__()
        self.app_name = app_name

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Parameters:
            record: Log record to format

        Returns:
            JSON string representation of log record
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "app": self.app_name,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }

        context = safe_context(record)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(log_level: str = "WARNING", use_json: bool = False, app_name: Optional[str] = None) -> None:
    """Configure root logging for the command line application.

    Logs go to stderr so that the patient listing on stdout stays clean.

    Parameters:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            unknown names fall back to WARNING
        use_json: Emit JSON lines instead of the human-readable format
        app_name: Application name recorded in JSON lines
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(ContextFilter())
    if use_json:
        handler.setFormatter(StructuredFormatter(app_name))
    else:
        handler.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=HUMAN_DATEFMT))
    root_logger.addHandler(handler)
