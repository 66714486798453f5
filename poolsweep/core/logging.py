"""Run-scoped logging: run id, per-thread sweep context and JSON output.

Regions are swept on worker threads, so the region and sweeper a record
belongs to are kept in a thread-local context instead of being formatted
into every message. ``log_context`` sets them; ``ContextFilter`` copies them
onto each record before the handler formats it.
"""
import json
import logging
import threading
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Optional

_RUN_ID: Optional[str] = None
_context = threading.local()

CONTEXT_FIELDS = ("region", "sweeper")
EXTRA_FIELDS = CONTEXT_FIELDS + ("resource_id", "action")

HUMAN_FORMAT = "%(asctime)s [%(levelname)s] [%(run_id)s] %(context)s%(message)s"


def get_run_id() -> str:
    """Get or create the current run ID."""
    global _RUN_ID
    if _RUN_ID is None:
        _RUN_ID = str(uuid.uuid4())[:8]
    return _RUN_ID


def current_context() -> Dict[str, str]:
    return getattr(_context, "fields", {})


@contextmanager
def log_context(**fields):
    """Attach ``fields`` (region, sweeper) to records logged on this thread."""
    previous = current_context()
    _context.fields = {**previous, **{k: v for k, v in fields.items() if v}}
    try:
        yield
    finally:
        _context.fields = previous


class ContextFilter(logging.Filter):
    """Stamps run id and thread context onto records; never drops any."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = get_run_id()
        for key, value in current_context().items():
            # explicit extra= wins over the ambient context
            if not hasattr(record, key):
                setattr(record, key, value)
        tags = [getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)]
        record.context = f"[{' '.join(tags)}] " if tags else ""
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the sweep fields that are set."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "run_id": get_run_id(),
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(verbosity: int = 0, json_format: bool = False) -> None:
    """Replace root handlers with a single stream handler.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2=DEBUG
        json_format: Use JSON formatter if True
    """
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)

    handler = logging.StreamHandler()
    handler.addFilter(ContextFilter())
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))


@contextmanager
def timed(label: str):
    """Log how long the block took, tagged with the current context."""
    start = time.monotonic()
    try:
        yield
    finally:
        logging.info(f"{label} took {time.monotonic() - start:.2f}s")
