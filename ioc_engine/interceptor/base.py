"""
Interceptor base class with before / after / error hooks.
"""

from typing import TYPE_CHECKING, Any, Hashable, Optional

from .metadata import get_method_metadata
from .types import CallNext, Interceptor

if TYPE_CHECKING:
    from ..di.container import Container
    from ..di.types import ProviderToken


class BaseInterceptor(Interceptor):
    """
    Convenience base for interceptors.

    The default ``execute`` calls ``before``, continues the chain, then
    hands the result to ``after`` or the exception to ``on_error``.
    Subclasses override the hooks they need, or ``execute`` itself for full
    control (e.g. skipping the call on a cache hit).
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
        await self.before(target, method_name, args, container, context)
        try:
            result = await call_next(*args)
        except Exception as error:
            return await self.on_error(target, method_name, error, container, context)
        return await self.after(target, method_name, result, container, context)

    async def before(
        self,
        target: Any,
        method_name: str,
        args: list[Any],
        container: "Container",
        context: Optional[Any] = None,
    ) -> None:
        """Called before the method runs."""

    async def after(
        self,
        target: Any,
        method_name: str,
        result: Any,
        container: "Container",
        context: Optional[Any] = None,
    ) -> Any:
        """Called with the method result; returns the (possibly replaced) result."""
        return result

    async def on_error(
        self,
        target: Any,
        method_name: str,
        error: Exception,
        container: "Container",
        context: Optional[Any] = None,
    ) -> Any:
        """Called when the method raises. Re-raises unless overridden."""
        raise error

    def get_metadata(self, target: Any, method_name: str, metadata_key: Hashable) -> Any:
        """Payload of the method tag for metadata_key, or None."""
        return get_method_metadata(target, method_name, metadata_key)

    def resolve_service(self, container: "Container", token: "ProviderToken") -> Any:
        return container.resolve(token)
