"""Log setup for the open311 client and CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed by :func:`setup_logging`, which the CLI runs and host
applications may run. In JSON mode each line is one object carrying the
correlation id of the operation that produced it plus any Open311 context
passed through ``extra=``.
"""

import json
import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator

# Shared by every HTTP call awaited inside one correlation scope
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Record attributes copied into JSON lines when a call site sets them
EXTRA_FIELDS = ("city", "endpoint", "path", "status_code", "duration_ms")

NOISY_LOGGERS = ("httpx", "httpcore", "mlflow")


def get_correlation_id() -> str:
    return correlation_id.get()


@contextmanager
def correlation_scope(cid: str | None = None) -> Iterator[str]:
    """Tag every log line emitted inside the block with one correlation id."""
    token = correlation_id.set(cid or uuid.uuid4().hex[:12])
    try:
        yield correlation_id.get()
    finally:
        correlation_id.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, extra_fields: tuple[str, ...] = EXTRA_FIELDS):
        super().__init__()
        self.extra_fields = extra_fields

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

        entry.update({
            key: getattr(record, key)
            for key in self.extra_fields
            if getattr(record, key, None) is not None
        })

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Replace the root handlers with a single stderr handler.

    Args:
        json_format: JSON lines for log shipping, plain text for a terminal.
        level: DEBUG, INFO, WARNING or ERROR. Unknown names fall back to INFO.
    """
    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
