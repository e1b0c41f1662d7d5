"""
Pytest configuration and shared fixtures for IOC_ENGINE tests.

This module provides:
- Isolation of the process-wide singletons (global container, registries,
  runtime config)
- Container and interceptor registry fixtures
- Common test utilities
"""

from typing import Any, List

import pytest

from ioc_engine.config import RuntimeConfig, set_runtime_config
from ioc_engine.controllers import ControllerRegistry
from ioc_engine.di.container import Container
from ioc_engine.di.module_registry import ModuleRegistry
from ioc_engine.interceptor.base import BaseInterceptor
from ioc_engine.interceptor.registry import InterceptorRegistry

# ============================================================================
# ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def reset_globals():
    """Give every test a fresh global container, registries and config."""
    set_runtime_config(RuntimeConfig())
    Container.reset_global()
    ModuleRegistry.reset_instance()
    ControllerRegistry.reset_instance()
    yield
    Container.reset_global()
    ModuleRegistry.reset_instance()
    ControllerRegistry.reset_instance()
    set_runtime_config(None)


# ============================================================================
# CONTAINER FIXTURES
# ============================================================================


@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """Runtime config with the documented defaults."""
    return RuntimeConfig()


@pytest.fixture
def container(runtime_config: RuntimeConfig) -> Container:
    """Empty root container."""
    return Container(config=runtime_config)


@pytest.fixture
def interceptor_registry() -> InterceptorRegistry:
    """Empty interceptor registry."""
    return InterceptorRegistry()


# ============================================================================
# TEST UTILITIES
# ============================================================================


class RecordingInterceptor(BaseInterceptor):
    """Interceptor appending its name to a shared journal before and after the call."""

    def __init__(self, name: str, journal: List[str]):
        self.name = name
        self.journal = journal

    async def execute(self, target, method_name, call_next, args, container, context=None) -> Any:
        self.journal.append(f"{self.name}:before")
        result = await call_next(*args)
        self.journal.append(f"{self.name}:after")
        return result


@pytest.fixture
def journal() -> List[str]:
    """Shared list interceptors record into."""
    return []


@pytest.fixture
def recorder(journal: List[str]):
    """Factory building RecordingInterceptors sharing the journal fixture."""

    def _make(name: str) -> RecordingInterceptor:
        return RecordingInterceptor(name, journal)

    return _make
