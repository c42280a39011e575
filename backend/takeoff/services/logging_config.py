"""
Structured logging for the takeoff engine.

One JSON object per line in production (LOG_FORMAT=json, the default):

  {"timestamp": "...", "level": "INFO", "logger": "takeoff-emitter",
   "message": "Workbook synthesized: 7 groups, ...", "module": "workbook_emitter",
   "function": "synthesize_workbook", "line": 251,
   "project_name": "Villa 12 Phase 2", "duration_ms": 3.41}

Synthesis passes attach `project_name` / `duration_ms`; the request middleware
attaches `request_id` / `duration_ms`. LOG_FORMAT=text switches to a plain
single-line format for local runs.
"""
import logging
import json
import sys
from datetime import datetime, timezone

# `extra=` keys copied into the JSON entry when a record carries them
EXTRA_FIELDS = ("project_name", "duration_ms", "request_id")

TEXT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx")


class JSONFormatter(logging.Formatter):
    """Renders a record as one JSON line, stamped with the record's creation time in UTC."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", json_output: bool = True):
    """Install a single stdout handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.handlers = [handler]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
