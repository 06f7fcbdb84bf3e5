"""
Structured logging setup (JSONL format).

Console records go to stderr through ``json_sink``; a rotating JSONL file
under the platform log directory keeps the full DEBUG history:

- macOS: ~/Library/Logs/find-project/
- Linux: ~/.local/state/find-project/log/
"""

import json
import sys
from contextvars import ContextVar
from pathlib import Path

import platformdirs
from loguru import logger

APP_NAME = "find-project"

# Correlation ID for one launcher run
trace_id_var: ContextVar[str] = ContextVar("trace_id", default=None)

# Extra keys promoted to top-level fields
RECORD_KEYS = ("operation", "status", "trace_id", "metrics", "error_type")


def json_sink(message):
    """Write one JSON object per record to stderr."""
    record = message.record
    extra = record["extra"]
    log_entry = {
        "time": record["time"].isoformat(timespec="milliseconds"),
        "level": record["level"].name.lower(),
        "module": (record["name"] or "").rpartition(".")[2],
        "operation": extra.get("operation"),
        "status": extra.get("status"),
        "trace_id": extra.get("trace_id") or trace_id_var.get(),
        "message": record["message"],
        "context": {k: v for k, v in extra.items() if k not in RECORD_KEYS},
        "metrics": extra.get("metrics", {}),
    }
    # Only ErrorReport records carry an error type
    if "error_type" in extra:
        log_entry["error_type"] = extra["error_type"]

    # Undecodable path bytes come out as \udcXX escapes
    sys.stderr.write(json.dumps(log_entry, default=str) + "\n")


def setup_logger(verbose: bool = False, log_to_file: bool = True):
    """
    Configure Loguru for machine-readable JSONL output.

    The console stays at WARNING unless ``verbose`` is set, since the
    picker shares the terminal with stderr.
    """
    logger.remove()

    logger.add(
        json_sink,
        level="DEBUG" if verbose else "WARNING"
    )

    if log_to_file:
        log_dir = Path(platformdirs.user_log_dir(
            appname=APP_NAME,
            ensure_exists=True
        ))

        logger.add(
            str(log_dir / f"{APP_NAME}.jsonl"),
            format="{message}",
            serialize=True,
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            level="DEBUG"
        )

    return logger
