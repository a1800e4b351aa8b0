"""Structured JSON logging for plan generation.

Every log line emitted while a plan is being generated carries the
correlation_id of that plan, so a batch run can be split back into
per-project traces by whatever aggregates the logs. Pipeline code attaches
the plan fields (project, page, step, duration) through ``plan_fields``.
"""

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator

# Set per plan by the batch runner; awaited calls inherit it.
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

PLAN_FIELDS = ("project", "page", "step", "duration_ms")


def get_correlation_id() -> str:
    return correlation_id.get()


@contextmanager
def correlation_scope(value: str) -> Iterator[str]:
    """Tag every log line inside the block with ``value``, then restore the outer id."""
    token = correlation_id.set(value)
    try:
        yield value
    finally:
        correlation_id.reset(token)


def plan_fields(
    project=None,
    *,
    page: int | None = None,
    step: str | None = None,
    duration_ms: int | None = None,
) -> dict:
    """``extra=`` mapping for a log call about one plan.

    ``project`` is a project name or anything with a ``project_name``
    attribute (a ProjectInput or RenderingRecord). Unset fields are left out.
    """
    name = getattr(project, "project_name", project)
    fields = {"project": name, "page": page, "step": step, "duration_ms": duration_ms}
    return {key: value for key, value in fields.items() if value is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, plan fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = correlation_id.get()
        if cid:
            entry["correlation_id"] = cid

        for key in PLAN_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


# Third-party loggers and the level they are held at.
_LIBRARY_LEVELS = {
    "mlflow": logging.WARNING,
    "pypdf": logging.ERROR,
    "playwright": logging.WARNING,
    "asyncio": logging.WARNING,
}


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        json_format: True for JSON lines, False for human-readable text.
        level: Root log level name (DEBUG, INFO, WARNING, ERROR).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(handler)

    for name, library_level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)
