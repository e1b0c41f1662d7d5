"""
Unit tests for the controller registry.
"""

import pytest

from ioc_engine.controllers import ControllerRegistry
from ioc_engine.di.container import Container
from ioc_engine.di.scopes import context_store
from ioc_engine.interceptor.base import BaseInterceptor
from ioc_engine.interceptor.metadata import intercept
from ioc_engine.interceptor.proxy import InterceptorPostProcessor
from ioc_engine.interceptor.registry import INTERCEPTOR_REGISTRY_TOKEN, InterceptorRegistry

KEY = "app:guarded"


class HealthService:
    def status(self):
        return "ok"


class HealthController:
    def __init__(self, health: HealthService):
        self.health = health

    @intercept(KEY)
    async def check(self, verbose=False):
        return {"status": self.health.status(), "verbose": verbose}

    def version(self):
        return "1.0"


class Counting(BaseInterceptor):
    def __init__(self):
        self.contexts = []

    async def execute(self, target, method_name, call_next, args, container, context=None):
        self.contexts.append(context)
        return await call_next(*args)


@pytest.fixture
def controller_registry() -> ControllerRegistry:
    return ControllerRegistry()


class TestControllerRegistration:
    """Test binding controllers to containers."""

    def test_register_adds_provider(self, controller_registry: ControllerRegistry, container: Container):
        container.register(HealthService)
        controller_registry.register(HealthController, container)
        assert container.is_registered(HealthController)
        assert controller_registry.get_container(HealthController) is container
        assert controller_registry.controllers() == [HealthController]

    def test_existing_registration_kept(self, controller_registry: ControllerRegistry, container: Container):
        sentinel = object()
        container.register_instance(HealthController, sentinel)
        controller_registry.register(HealthController, container)
        assert controller_registry.resolve(HealthController) is sentinel

    def test_resolve_unknown_controller(self, controller_registry: ControllerRegistry):
        with pytest.raises(KeyError):
            controller_registry.resolve(HealthController)

    def test_resolve_builds_with_dependencies(self, controller_registry: ControllerRegistry, container: Container):
        container.register(HealthService)
        controller_registry.register(HealthController, container)
        controller = controller_registry.resolve(HealthController)
        assert controller.health is container.resolve(HealthService)

    def test_process_wide_instance(self):
        assert ControllerRegistry.get_instance() is ControllerRegistry.get_instance()
        first = ControllerRegistry.get_instance()
        ControllerRegistry.reset_instance()
        assert ControllerRegistry.get_instance() is not first

    def test_clear(self, controller_registry: ControllerRegistry, container: Container):
        controller_registry.register(HealthController, container)
        controller_registry.clear()
        assert controller_registry.controllers() == []


class TestInvoke:
    """Test dispatching calls through interceptors."""

    @pytest.mark.asyncio
    async def test_invoke_runs_interceptors_once(self, controller_registry: ControllerRegistry, container: Container):
        registry = InterceptorRegistry()
        counting = Counting()
        registry.register(KEY, counting)
        container.register_instance(INTERCEPTOR_REGISTRY_TOKEN, registry)
        container.register_post_processor(InterceptorPostProcessor(registry))
        container.register(HealthService)
        controller_registry.register(HealthController, container)

        with context_store.scope() as key:
            result = await controller_registry.invoke(HealthController, "check", True)
        assert result == {"status": "ok", "verbose": True}
        assert counting.contexts == [key]

    @pytest.mark.asyncio
    async def test_invoke_without_interceptor_registry(self, controller_registry: ControllerRegistry, container: Container):
        container.register(HealthService)
        controller_registry.register(HealthController, container)
        assert await controller_registry.invoke(HealthController, "version") == "1.0"

    @pytest.mark.asyncio
    async def test_invoke_through_child_container(self, controller_registry: ControllerRegistry, container: Container):
        registry = InterceptorRegistry()
        counting = Counting()
        registry.register(KEY, counting)
        container.register_instance(INTERCEPTOR_REGISTRY_TOKEN, registry)
        child = container.create_child()
        child.register(HealthService)
        controller_registry.register(HealthController, child)
        await controller_registry.invoke(HealthController, "check")
        assert counting.contexts == [None]
