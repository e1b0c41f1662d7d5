"""
Interceptor contract and registry entries.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Hashable, Optional

from ..constants import DEFAULT_PRIORITY

if TYPE_CHECKING:
    from ..di.container import Container

CallNext = Callable[..., Awaitable[Any]]


class Interceptor(ABC):
    """
    A unit of cross-cutting behaviour wrapping a method call.

    Implementations must invoke ``call_next`` (optionally with replacement
    positional arguments) or deliberately skip it, and return or propagate
    the result.
    """

    @abstractmethod
    async def execute(
        self,
        target: Any,
        method_name: str,
        call_next: CallNext,
        args: list[Any],
        container: "Container",
        context: Optional[Any] = None,
    ) -> Any:
        """
        Run the interceptor.

        Args:
            target: Instance the method belongs to
            method_name: Name of the intercepted method
            call_next: Continues the chain; ``call_next(*new_args)`` replaces the arguments
            args: Positional arguments of the call
            container: Container used to resolve services the interceptor needs
            context: Ambient request scope value, if any

        Returns:
            The method result
        """


@dataclass(frozen=True)
class InterceptorEntry:
    """Registration of one interceptor under one metadata key."""

    metadata_key: Hashable
    interceptor: Interceptor
    priority: int = DEFAULT_PRIORITY
