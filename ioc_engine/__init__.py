"""
IOC_ENGINE - Inversion of Control Engine

Dependency injection runtime with hierarchical containers, request-scoped
instances, a module graph with explicit exports and method interceptors.
"""

# Core
from .config import RuntimeConfig, get_runtime_config, set_runtime_config
from .controllers import ControllerRegistry
from .core import Application
# Dependency injection
from .di import (ClassProvider, Container, FactoryProvider, Inject, Lifecycle,
                 ModuleRef, ModuleRegistry, ProviderConfig, ScopedContextStore,
                 ScopeKey, Token, ValueProvider, context_store, inject,
                 injectable, module)
# Errors
from .exceptions import (CircularModuleError, ConfigurationError,
                         DependencyResolutionError, InvalidProviderError,
                         InvalidScopeError, IocEngineError, ModuleExportError,
                         ProviderNotFoundError)
# Interceptors
from .interceptor import (BaseInterceptor, Interceptor, InterceptorChain,
                          InterceptorRegistry, LogInterceptor, intercept, log)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Application",
    "ControllerRegistry",
    "RuntimeConfig",
    "get_runtime_config",
    "set_runtime_config",
    # Dependency injection
    "Container",
    "Lifecycle",
    "Token",
    "ProviderConfig",
    "Inject",
    "inject",
    "injectable",
    "module",
    "ModuleRef",
    "ModuleRegistry",
    "ClassProvider",
    "FactoryProvider",
    "ValueProvider",
    "ScopedContextStore",
    "ScopeKey",
    "context_store",
    # Interceptors
    "Interceptor",
    "BaseInterceptor",
    "InterceptorRegistry",
    "InterceptorChain",
    "LogInterceptor",
    "intercept",
    "log",
    # Errors
    "IocEngineError",
    "ConfigurationError",
    "ProviderNotFoundError",
    "DependencyResolutionError",
    "InvalidProviderError",
    "ModuleExportError",
    "CircularModuleError",
    "InvalidScopeError",
]
