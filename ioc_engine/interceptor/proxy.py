"""
Interceptor proxy layer.

When the container builds an instance whose class has tagged methods, the
InterceptorPostProcessor binds a wrapper for each of them on the instance.
The wrapper asks the registry for the applicable interceptors at call time
and runs them through the chain with the ambient request scope as context.

Wrapped methods are coroutine functions, whether or not the original was.
"""

import functools
import inspect
import logging
from typing import TYPE_CHECKING, Any

from ..constants import INTERCEPTOR_PROXY_PRIORITY
from ..di.scopes import context_store
from ..di.types import InstancePostProcessor
from .chain import InterceptorChain
from .metadata import interceptable_methods, scan_interceptor_metadata
from .registry import InterceptorRegistry

if TYPE_CHECKING:
    from ..di.container import Container

logger = logging.getLogger(__name__)

_WRAPPED_ATTR = "__ioc_intercepted__"


class InterceptorProxy:
    """Builds intercepting wrappers for the tagged methods of an instance."""

    @staticmethod
    def create(instance: Any, registry: InterceptorRegistry, container: "Container") -> Any:
        """
        Wrap the tagged methods of instance in place.

        Returns the instance itself, so identity and isinstance checks hold.
        Instances without a ``__dict__`` are returned unwrapped.
        """
        cls = type(instance)
        names = interceptable_methods(cls)
        if not names or getattr(instance, _WRAPPED_ATTR, False):
            return instance
        if not hasattr(instance, "__dict__"):
            logger.warning(
                f"Cannot intercept methods of {cls.__name__}: instances have no __dict__"
            )
            return instance

        for name in names:
            original = getattr(instance, name)
            instance.__dict__[name] = _make_wrapper(instance, name, original, registry, container)
        instance.__dict__[_WRAPPED_ATTR] = True
        logger.debug(f"Intercepting {cls.__name__}: {', '.join(names)}")
        return instance

    @staticmethod
    def original_method(instance: Any, method_name: str) -> Any:
        """The un-intercepted bound method of a (possibly wrapped) instance."""
        cls = type(instance)
        for klass in cls.__mro__:
            if method_name in klass.__dict__:
                return klass.__dict__[method_name].__get__(instance, cls)
        raise AttributeError(f"{cls.__name__} has no method {method_name}")


def _make_wrapper(
    instance: Any,
    name: str,
    original: Any,
    registry: InterceptorRegistry,
    container: "Container",
) -> Any:
    signature = inspect.signature(original)

    @functools.wraps(original)
    async def intercepted(*args: Any, **kwargs: Any) -> Any:
        method = original
        if kwargs:
            bound = signature.bind(*args, **kwargs)
            args = bound.args
            if bound.kwargs:
                method = functools.partial(original, **bound.kwargs)
        interceptors = scan_interceptor_metadata(type(instance), name, registry)
        return await InterceptorChain.execute(
            interceptors,
            instance,
            name,
            method,
            list(args),
            container,
            context_store.get_current(),
        )

    return intercepted


class InterceptorPostProcessor(InstancePostProcessor):
    """Installs interceptor wrappers on every container-built instance."""

    priority = INTERCEPTOR_PROXY_PRIORITY

    def __init__(self, registry: InterceptorRegistry) -> None:
        self.registry = registry

    def post_process(self, instance: Any, cls: type, container: "Container") -> Any:
        return InterceptorProxy.create(instance, self.registry, container)
