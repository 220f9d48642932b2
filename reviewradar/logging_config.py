"""
Review Radar Logging
====================

Console (stderr) logging plus an optional rotating log file. Reports go
to stdout, so log lines never mix into `--json` output.

Scoring calls attach context with `extra=` (product_id, score, grade,
review_count, signal). The JSON formatter emits those as top-level keys;
the text formatter appends them as `key=value` after the message.

Usage:
    from reviewradar.logging_config import configure_from_settings

    configure_from_settings(get_settings().logging, verbose=args.verbose)
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import LoggingConfig

# Record attributes treated as scoring context
EXTRA_FIELDS = ("product_id", "score", "grade", "review_count", "signal")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
TEXT_DATEFMT = "%H:%M:%S"


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Scoring context attached to a record, in EXTRA_FIELDS order."""
    context = {}
    for key in EXTRA_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, msg, [exception], context."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(record_context(record))
        return json.dumps(entry, default=str, ensure_ascii=False)


class ContextTextFormatter(logging.Formatter):
    """Human-readable lines with the scoring context appended."""

    def __init__(self):
        super().__init__(TEXT_FORMAT, datefmt=TEXT_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    stream=None,
):
    """
    Replace the root handlers with a console handler and, if log_file is
    set, a RotatingFileHandler. Both share one formatter.
    """
    formatter = JSONFormatter() if json_output else ContextTextFormatter()

    handlers = [logging.StreamHandler(stream or sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8",
        ))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def configure_from_settings(settings: LoggingConfig, verbose: bool = False, stream=None):
    """Apply LoggingConfig; verbose forces DEBUG."""
    setup_logging(
        level="DEBUG" if verbose else settings.level,
        json_output=settings.json_logs,
        log_file=settings.log_file,
        max_bytes=settings.max_bytes,
        backup_count=settings.backup_count,
        stream=stream,
    )
