"""
IOC_ENGINE Interceptors

Cross-cutting concerns (logging, transactions, caching, ...) attached to
methods by metadata tags and run as an async chain around the call.

Usage:
    from ioc_engine.interceptor import BaseInterceptor, InterceptorRegistry, intercept

    CACHE_KEY = "app:cache"

    class CacheInterceptor(BaseInterceptor):
        async def execute(self, target, method_name, call_next, args, container, context=None):
            ...

    registry = InterceptorRegistry()
    registry.register(CACHE_KEY, CacheInterceptor(), priority=20)
"""

from .base import BaseInterceptor
from .builtin import LOGGER_TOKEN, LogInterceptor, LogOptions, log
from .chain import InterceptorChain
from .metadata import (get_interceptable_keys, get_method_metadata, intercept,
                       interceptable_methods, scan_interceptor_metadata)
from .proxy import InterceptorPostProcessor, InterceptorProxy
from .registry import INTERCEPTOR_REGISTRY_TOKEN, InterceptorRegistry
from .types import CallNext, Interceptor, InterceptorEntry

__all__ = [
    "Interceptor",
    "InterceptorEntry",
    "CallNext",
    "BaseInterceptor",
    "InterceptorRegistry",
    "INTERCEPTOR_REGISTRY_TOKEN",
    "InterceptorChain",
    "InterceptorProxy",
    "InterceptorPostProcessor",
    "intercept",
    "get_method_metadata",
    "get_interceptable_keys",
    "interceptable_methods",
    "scan_interceptor_metadata",
    "LogInterceptor",
    "LogOptions",
    "LOGGER_TOKEN",
    "log",
]
