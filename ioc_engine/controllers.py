"""
Controller registry.

Records which container owns each controller class so the (external) router
can build controller instances and dispatch calls to them. Calls dispatched
through ``invoke`` run the interceptors tagged on the handler method.
"""

import logging
from typing import Any, Optional

from .di.container import Container
from .di.scopes import context_store
from .interceptor.chain import InterceptorChain
from .interceptor.metadata import scan_interceptor_metadata
from .interceptor.proxy import InterceptorProxy
from .interceptor.registry import INTERCEPTOR_REGISTRY_TOKEN, InterceptorRegistry

logger = logging.getLogger(__name__)


class ControllerRegistry:
    """Maps controller classes to the container they were declared in."""

    _instance: Optional["ControllerRegistry"] = None

    def __init__(self) -> None:
        self._containers: dict[type, Container] = {}

    @classmethod
    def get_instance(cls) -> "ControllerRegistry":
        if cls._instance is None:
            cls._instance = ControllerRegistry()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def register(self, controller: type, container: Container) -> None:
        """Bind a controller to its module container, registering it there if needed."""
        self._containers[controller] = container
        if not container.is_registered(controller):
            container.register(controller)
        logger.debug(f"Registered controller {controller.__name__}")

    def get_container(self, controller: type) -> Optional[Container]:
        return self._containers.get(controller)

    def controllers(self) -> list[type]:
        return list(self._containers)

    def resolve(self, controller: type) -> Any:
        """Build (or fetch) a controller instance from its owning container."""
        container = self._containers.get(controller)
        if container is None:
            raise KeyError(f"Controller {controller.__name__} is not registered")
        return container.resolve(controller)

    async def invoke(self, controller: type, method_name: str, *args: Any) -> Any:
        """
        Call a handler method, running the interceptors tagged on it.

        The active request scope value is handed to interceptors as context.
        """
        container = self._containers[controller]
        instance = container.resolve(controller)
        method = InterceptorProxy.original_method(instance, method_name)

        registry = container.try_resolve(INTERCEPTOR_REGISTRY_TOKEN)
        interceptors = []
        if isinstance(registry, InterceptorRegistry):
            interceptors = scan_interceptor_metadata(type(instance), method_name, registry)

        return await InterceptorChain.execute(
            interceptors,
            instance,
            method_name,
            method,
            list(args),
            container,
            context_store.get_current(),
        )

    def clear(self) -> None:
        self._containers.clear()
