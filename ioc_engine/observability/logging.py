"""
Structured logging for IOC_ENGINE.

Every record emitted through a contextual logger carries the correlation id
of the current request (if any) and the id of the active scope, so log lines
produced while resolving scoped providers can be grouped per request.
"""

import contextvars
import logging
import time
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional, Union

from ..di.scopes import context_store

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "ioc_engine_correlation_id", default=None
)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """
    Bind a correlation id for the duration of a block.

    A fresh UUID is generated when none is given. The previous id is
    restored on exit, so nested blocks behave.
    """
    value = correlation_id or uuid.uuid4().hex
    reset_token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(reset_token)


def get_logging_context() -> dict[str, Any]:
    """Timestamp, plus the correlation id and active scope id when set."""
    context: dict[str, Any] = {"timestamp": datetime.now().isoformat()}
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        context["correlation_id"] = correlation_id
    scope = context_store.get_current()
    if scope is not None:
        context["scope_id"] = getattr(scope, "id", id(scope))
    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Adds the correlation and scope ids to each record; explicit extras win."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**get_logging_context(), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: LoggerLike,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: Optional[float] = None,
    **context: Any,
) -> None:
    """
    Emit one record describing a finished operation.

    The message reads ``Operation: <name>`` or ``Operation failed: <name>``,
    followed by the duration when one is given. Structured fields
    (operation, success, duration_ms and any extra context) go into the
    record's ``extra``.

    Args:
        logger: Logger or adapter to emit through
        operation: Operation name
        level: Log level
        success: Whether the operation completed
        duration_ms: Elapsed time in milliseconds
        **context: Additional fields for the record
    """
    prefix = "Operation" if success else "Operation failed"
    message = f"{prefix}: {operation}"

    fields = get_logging_context()
    fields["operation"] = operation
    fields["success"] = success
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 2)
        message += f" (duration: {duration_ms:.2f}ms)"
    fields.update(context)

    logger.log(level, message, extra=fields)


@contextmanager
def timed_operation(
    logger: LoggerLike,
    operation: str,
    level: int = logging.INFO,
    **context: Any,
) -> Iterator[dict[str, Any]]:
    """
    Time a block and report it through log_operation.

    Yields a dict the block may fill with fields known only once it has run.
    A failure is logged at ERROR with the exception text and re-raised.

        with timed_operation(logger, "bootstrap", root_module="App") as fields:
            fields["module_count"] = register()
    """
    fields: dict[str, Any] = dict(context)
    start = time.perf_counter()
    try:
        yield fields
    except Exception as e:
        log_operation(
            logger,
            operation,
            level=logging.ERROR,
            success=False,
            duration_ms=(time.perf_counter() - start) * 1000,
            error=str(e),
            **fields,
        )
        raise
    log_operation(
        logger,
        operation,
        level=level,
        duration_ms=(time.perf_counter() - start) * 1000,
        **fields,
    )
