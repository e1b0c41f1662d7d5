"""
IOC_ENGINE Dependency Injection Module

Hierarchical container with three lifecycles:
- SINGLETON: One instance per container
- TRANSIENT: New instance on every resolution
- SCOPED: One instance per request scope

Usage:
    from ioc_engine.di import Container, Lifecycle, injectable

    @injectable(Lifecycle.SCOPED)
    class UserService:
        def __init__(self, repo: UserRepository):
            self.repo = repo

    container = Container()
    container.register(UserRepository)
    container.register(UserService)

    with context_store.scope():
        users = container.resolve(UserService)
"""

from .container import Container
from .decorators import Inject, inject, injectable
from .module import ModuleMetadata, module
from .module_registry import ModuleRef, ModuleRegistry
from .providers import ClassProvider, FactoryProvider, ValueProvider
from .scopes import ScopedContextStore, ScopeKey, context_store
from .types import (NO_VALUE, DependencyPlan, InstancePostProcessor, Lifecycle,
                    ParameterSlot, ProviderConfig, Token)

__all__ = [
    "Container",
    "Lifecycle",
    "Token",
    "ProviderConfig",
    "NO_VALUE",
    "DependencyPlan",
    "ParameterSlot",
    "InstancePostProcessor",
    "Inject",
    "inject",
    "injectable",
    "module",
    "ModuleMetadata",
    "ModuleRef",
    "ModuleRegistry",
    "ClassProvider",
    "FactoryProvider",
    "ValueProvider",
    "ScopedContextStore",
    "ScopeKey",
    "context_store",
]
