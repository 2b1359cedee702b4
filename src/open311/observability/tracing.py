"""MLflow spans around Open311 client calls.

Tracing is off unless ``OPEN311_TRACING_ENABLED`` is set, so using the
client as a library never writes traces behind the caller's back. The
setting is read per call, not at import time.

    @trace(name="service_list", span_type="TOOL")
    async def service_list(self): ...
"""

import functools
import logging
from typing import Any

import mlflow

from open311.config import settings

logger = logging.getLogger(__name__)


def setup_tracing(tracking_uri: str = "") -> None:
    """Point MLflow at a tracking server (or its local default)."""
    if tracking_uri:
        mlflow.set_tracking_uri(tracking_uri)
    logger.debug("MLflow tracing enabled (tracking uri: %s)", tracking_uri or "default")


def _inputs(args: tuple, kwargs: dict) -> dict[str, Any]:
    # args[0] is the client instance
    inputs = {f"arg{i}": repr(a) for i, a in enumerate(args[1:])}
    inputs.update({k: repr(v) for k, v in kwargs.items()})
    return inputs


def trace(name: str | None = None, span_type: str = "CHAIN"):
    """Decorator: wrap an async method in an MLflow span when tracing is on."""

    def decorator(fn):
        span_name = name or fn.__name__

        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            if not settings.tracing_enabled:
                return await fn(*args, **kwargs)

            with mlflow.start_span(name=span_name, span_type=span_type) as span:
                span.set_inputs(_inputs(args, kwargs))
                result = await fn(*args, **kwargs)
                if isinstance(result, list):
                    span.set_outputs({"count": len(result)})
                else:
                    span.set_outputs({"type": type(result).__name__})
                return result

        return wrapper

    return decorator
