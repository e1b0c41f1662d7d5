"""
Interceptor Chain Executor

Composes an ordered interceptor list and the original method into a single
callable. The first interceptor is the outermost link; the last one calls
the original method. Errors are never caught here.
"""

import inspect
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Optional

from .types import CallNext, Interceptor

if TYPE_CHECKING:
    from ..di.container import Container


class InterceptorChain:
    """Runs interceptors in priority order around a method call."""

    @staticmethod
    async def execute(
        interceptors: Sequence[Interceptor],
        target: Any,
        method_name: str,
        original_method: Callable[..., Any],
        args: Sequence[Any],
        container: "Container",
        context: Optional[Any] = None,
    ) -> Any:
        """
        Execute the chain.

        Args:
            interceptors: Interceptors, already sorted by priority
            target: Instance the method belongs to
            method_name: Method name
            original_method: Callable invoked with the (possibly replaced) args;
                bound to target by the caller. May be sync or async.
            args: Positional arguments
            container: Container handed to every interceptor
            context: Ambient request context (optional)

        Returns:
            Whatever the innermost call produces
        """

        async def invoke_original(*call_args: Any) -> Any:
            result = original_method(*call_args)
            if inspect.isawaitable(result):
                result = await result
            return result

        next_link: CallNext = invoke_original
        for interceptor in reversed(interceptors):
            next_link = _link(interceptor, next_link, target, method_name, container, context)

        return await next_link(*args)


def _link(
    interceptor: Interceptor,
    downstream: CallNext,
    target: Any,
    method_name: str,
    container: "Container",
    context: Optional[Any],
) -> CallNext:
    async def run(*call_args: Any) -> Any:
        async def call_next(*next_args: Any) -> Any:
            return await downstream(*(next_args or call_args))

        return await interceptor.execute(
            target, method_name, call_next, list(call_args), container, context
        )

    return run
