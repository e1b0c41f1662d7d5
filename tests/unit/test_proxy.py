"""
Unit tests for the interceptor proxy layer.
"""

import logging

import pytest

from ioc_engine.di.container import Container
from ioc_engine.di.scopes import context_store
from ioc_engine.interceptor.base import BaseInterceptor
from ioc_engine.interceptor.metadata import intercept
from ioc_engine.interceptor.proxy import InterceptorPostProcessor, InterceptorProxy
from ioc_engine.interceptor.registry import InterceptorRegistry

KEY = "app:audited"


class Greeter:
    def __init__(self):
        self.calls = 0

    @intercept(KEY)
    def greet(self, name, punctuation="."):
        self.calls += 1
        return f"hello {name}{punctuation}"

    @intercept(KEY)
    async def greet_async(self, name):
        return f"hi {name}"

    def plain(self):
        return "plain"


class SlottedGreeter:
    __slots__ = ()

    @intercept(KEY)
    def greet(self):
        return "slotted"


class Uppercase(BaseInterceptor):
    async def after(self, target, method_name, result, container, context=None):
        return result.upper()


class Capture(BaseInterceptor):
    def __init__(self):
        self.calls = []

    async def execute(self, target, method_name, call_next, args, container, context=None):
        self.calls.append((target, method_name, list(args), container, context))
        return await call_next()


@pytest.fixture
def intercepting_container(container: Container, interceptor_registry: InterceptorRegistry) -> Container:
    container.register_post_processor(InterceptorPostProcessor(interceptor_registry))
    container.register(Greeter)
    return container


class TestProxyCreation:
    """Test wrapper installation."""

    def test_identity_preserved(self, intercepting_container: Container):
        greeter = intercepting_container.resolve(Greeter)
        assert isinstance(greeter, Greeter)
        assert type(greeter) is Greeter

    def test_tagged_methods_wrapped(self, intercepting_container: Container):
        greeter = intercepting_container.resolve(Greeter)
        assert "greet" in vars(greeter)
        assert "greet_async" in vars(greeter)
        assert "plain" not in vars(greeter)

    def test_wrapping_is_idempotent(self, container: Container, interceptor_registry):
        greeter = Greeter()
        InterceptorProxy.create(greeter, interceptor_registry, container)
        wrapper = greeter.greet
        InterceptorProxy.create(greeter, interceptor_registry, container)
        assert greeter.greet is wrapper

    def test_untagged_class_untouched(self, container: Container, interceptor_registry):
        class Plain:
            pass

        instance = Plain()
        assert InterceptorProxy.create(instance, interceptor_registry, container) is instance
        assert vars(instance) == {}

    def test_instances_without_dict_left_unwrapped(self, container: Container, interceptor_registry, caplog):
        instance = SlottedGreeter()
        with caplog.at_level(logging.WARNING, logger="ioc_engine"):
            assert InterceptorProxy.create(instance, interceptor_registry, container) is instance
        assert instance.greet() == "slotted"
        assert "Cannot intercept methods of SlottedGreeter" in caplog.text

    def test_original_method_bypasses_wrapper(self, intercepting_container: Container):
        greeter = intercepting_container.resolve(Greeter)
        original = InterceptorProxy.original_method(greeter, "greet")
        assert original("bob") == "hello bob."

    def test_original_method_missing(self, intercepting_container: Container):
        greeter = intercepting_container.resolve(Greeter)
        with pytest.raises(AttributeError):
            InterceptorProxy.original_method(greeter, "missing")


class TestInterceptedCalls:
    """Test calls going through the wrappers."""

    @pytest.mark.asyncio
    async def test_sync_method_becomes_awaitable(self, intercepting_container: Container):
        greeter = intercepting_container.resolve(Greeter)
        assert await greeter.greet("bob") == "hello bob."
        assert greeter.calls == 1

    @pytest.mark.asyncio
    async def test_interceptor_applies(self, intercepting_container: Container, interceptor_registry):
        interceptor_registry.register(KEY, Uppercase())
        greeter = intercepting_container.resolve(Greeter)
        assert await greeter.greet("bob") == "HELLO BOB."
        assert await greeter.greet_async("amy") == "HI AMY"

    @pytest.mark.asyncio
    async def test_registry_read_at_call_time(self, intercepting_container: Container, interceptor_registry):
        greeter = intercepting_container.resolve(Greeter)
        assert await greeter.greet("bob") == "hello bob."
        interceptor_registry.register(KEY, Uppercase())
        assert await greeter.greet("bob") == "HELLO BOB."

    @pytest.mark.asyncio
    async def test_keyword_arguments(self, intercepting_container: Container, interceptor_registry):
        capture = Capture()
        interceptor_registry.register(KEY, capture)
        greeter = intercepting_container.resolve(Greeter)
        assert await greeter.greet(name="bob", punctuation="!") == "hello bob!"
        assert capture.calls[0][2] == ["bob", "!"]

    @pytest.mark.asyncio
    async def test_contract_arguments(self, intercepting_container: Container, interceptor_registry):
        capture = Capture()
        interceptor_registry.register(KEY, capture)
        greeter = intercepting_container.resolve(Greeter)
        with context_store.scope() as key:
            await greeter.greet("bob")
        target, method_name, args, container, context = capture.calls[0]
        assert target is greeter
        assert method_name == "greet"
        assert args == ["bob"]
        assert container is intercepting_container
        assert context is key

    @pytest.mark.asyncio
    async def test_untagged_method_not_intercepted(self, intercepting_container: Container, interceptor_registry):
        interceptor_registry.register(KEY, Uppercase())
        greeter = intercepting_container.resolve(Greeter)
        assert greeter.plain() == "plain"

    def test_post_processor_priority(self, interceptor_registry):
        assert InterceptorPostProcessor(interceptor_registry).priority == 1000
