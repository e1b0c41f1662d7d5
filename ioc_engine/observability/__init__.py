"""
Observability components.

Provides structured logging with correlation IDs and request-scope context.
"""

from .logging import (
    ContextualLoggerAdapter,
    correlation_scope,
    get_correlation_id,
    get_logger,
    get_logging_context,
    log_operation,
    timed_operation,
)

__all__ = [
    "get_correlation_id",
    "correlation_scope",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "log_operation",
    "timed_operation",
]
