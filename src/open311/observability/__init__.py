"""Observability: structured logging and MLflow tracing helpers."""

from open311.observability.logging import correlation_scope, get_correlation_id, setup_logging
from open311.observability.tracing import setup_tracing, trace

__all__ = ["correlation_scope", "get_correlation_id", "setup_logging", "setup_tracing", "trace"]
