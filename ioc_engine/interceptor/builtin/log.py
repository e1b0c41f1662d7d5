"""
Logging interceptor.

Usage:
    class OrderService:
        @log(level="debug", log_args=True)
        async def place(self, order_id: str) -> dict:
            ...

    registry.register(LOG_METADATA_KEY, LogInterceptor())
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from ...constants import LOG_LEVELS, LOG_METADATA_KEY
from ...di.types import Token
from ...observability import get_logger, log_operation
from ..base import BaseInterceptor
from ..metadata import get_method_metadata, intercept
from ..types import CallNext

if TYPE_CHECKING:
    from ...di.container import Container

LOGGER_TOKEN = Token("ioc_engine:logger")

F = TypeVar("F", bound=Callable[..., Any])

contextual_logger = get_logger(__name__)


@dataclass(frozen=True)
class LogOptions:
    """Payload of the @log tag."""

    level: str = "info"
    message: Optional[str] = None
    log_args: bool = False
    log_result: bool = False
    log_duration: bool = True


def log(
    level: str = "info",
    message: Optional[str] = None,
    log_args: bool = False,
    log_result: bool = False,
    log_duration: bool = True,
) -> Callable[[F], F]:
    """Tag a method so LogInterceptor records its start, completion and failures."""
    level = level.lower()
    if level not in LOG_LEVELS:
        raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}, got {level}")
    return intercept(
        LOG_METADATA_KEY,
        LogOptions(
            level=level,
            message=message,
            log_args=log_args,
            log_result=log_result,
            log_duration=log_duration,
        ),
    )


def get_log_metadata(target: Any, method_name: str) -> Optional[LogOptions]:
    return get_method_metadata(target, method_name, LOG_METADATA_KEY)


class LogInterceptor(BaseInterceptor):
    """
    Records method execution: start, completion (with duration, optionally
    arguments and result) and failures, re-raising every error.

    Uses the logger registered under LOGGER_TOKEN when the container has
    one, otherwise this module's contextual logger.
    """

    async def execute(
        self,
        target: Any,
        method_name: str,
        call_next: CallNext,
        args: list[Any],
        container: "Container",
        context: Optional[Any] = None,
    ) -> Any:
        options = self.get_metadata(target, method_name, LOG_METADATA_KEY) or LogOptions()
        level = logging.getLevelName(options.level.upper())
        label = options.message or f"Executing {method_name}"

        logger = container.try_resolve(LOGGER_TOKEN) or contextual_logger

        start_extra: dict[str, Any] = {"method": method_name}
        if options.log_args and args:
            start_extra["call_args"] = repr(args)
        logger.log(level, f"{label} - Start", extra=start_extra)

        start = time.perf_counter()
        try:
            result = await call_next(*args)
        except Exception as error:
            duration_ms = (time.perf_counter() - start) * 1000 if options.log_duration else None
            log_operation(
                logger,
                label,
                level=logging.ERROR,
                success=False,
                duration_ms=duration_ms,
                method=method_name,
                error=str(error),
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000 if options.log_duration else None
        extra: dict[str, Any] = {"method": method_name}
        if options.log_result:
            extra["result"] = repr(result)
        log_operation(logger, label, level=level, duration_ms=duration_ms, **extra)
        return result
