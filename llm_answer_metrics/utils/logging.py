"""
JSON log records on stderr.

Modules log through logging.getLogger(__name__) and attach structured data
with extra={"context": {...}}; the pipeline also tags records with the
analysis_id. setup_logging() installs JSONFormatter on the root logger so
each record becomes one JSON line. stdout stays free for the CLI's own
output, which keeps `analyze --format json` parseable.

Example:
    >>> setup_logging(verbose=True)
    >>> logging.getLogger("llm_answer_metrics.pipeline").info(
    ...     "Batch extracted", extra={"context": {"answers": 120}}
    ... )
"""

import json
import logging
import sys
from typing import Any

from llm_answer_metrics.utils.time import utc_timestamp


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Keys: timestamp, level, component (logger name) and message, plus
    context (dict extras only), analysis_id and exception when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": utc_timestamp(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            entry["context"] = context

        if hasattr(record, "analysis_id"):
            entry["analysis_id"] = record.analysis_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(verbose: bool = False, quiet_logs: bool = False) -> None:
    """
    Route all records to stderr as JSON.

    Args:
        verbose: Emit DEBUG records (per-answer extraction details)
        quiet_logs: Emit only WARNING and above; ignored when verbose is set
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet_logs else logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Replace, never stack: setup_logging may run once per CLI invocation
    root_logger.handlers.clear()
    root_logger.addHandler(handler)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: dict[str, Any] | None = None,
    analysis_id: str | None = None,
) -> None:
    """Log message with optional context and analysis_id extras."""
    extra: dict[str, Any] = {}
    if context is not None:
        extra["context"] = context
    if analysis_id is not None:
        extra["analysis_id"] = analysis_id
    logger.log(level, message, extra=extra or None)
