"""
Interceptable-method tags and the scanner matching them to interceptors.

Usage:
    TRANSACTION_KEY = "app:transactional"

    class AccountService:
        @intercept(TRANSACTION_KEY, {"isolation": "serializable"})
        async def transfer(self, src, dst, amount):
            ...
"""

import inspect
from collections.abc import Callable
from typing import Any, Hashable, Optional, TypeVar

from ..constants import INTERCEPTABLE_METADATA_KEY
from ..metadata import define_metadata, get_own_metadata
from .registry import InterceptorRegistry
from .types import Interceptor, InterceptorEntry

F = TypeVar("F", bound=Callable[..., Any])


def intercept(metadata_key: Hashable, payload: Any = True) -> Callable[[F], F]:
    """
    Tag a method with a concern key and its concern-specific payload.

    Tags stack: one method can carry several keys.
    """

    def decorator(func: F) -> F:
        raw = _function_of(func)
        define_metadata(metadata_key, payload, raw)
        keys = tuple(get_own_metadata(INTERCEPTABLE_METADATA_KEY, raw) or ())
        if metadata_key not in keys:
            define_metadata(INTERCEPTABLE_METADATA_KEY, keys + (metadata_key,), raw)
        return func

    return decorator


def _function_of(member: Any) -> Any:
    """Underlying function of a staticmethod/classmethod/bound method."""
    return getattr(member, "__func__", member)


def find_method(cls: type, method_name: str) -> Optional[Any]:
    """Raw function defining method_name on cls (MRO order), or None."""
    for klass in cls.__mro__:
        if method_name in klass.__dict__:
            member = _function_of(klass.__dict__[method_name])
            return member if callable(member) else None
    return None


def get_method_metadata(target: Any, method_name: str, metadata_key: Hashable) -> Any:
    """Payload tagged on a method for a key, looked up on the target's class."""
    cls = target if isinstance(target, type) else type(target)
    func = find_method(cls, method_name)
    if func is None:
        return None
    return get_own_metadata(metadata_key, func)


def get_interceptable_keys(target: Any, method_name: str) -> tuple[Hashable, ...]:
    """All concern keys tagged on a method."""
    return tuple(get_method_metadata(target, method_name, INTERCEPTABLE_METADATA_KEY) or ())


def interceptable_methods(cls: type) -> list[str]:
    """Names of the methods of cls carrying at least one tag."""
    names = []
    for name in dir(cls):
        if name.startswith("__"):
            continue
        func = find_method(cls, name)
        if func is not None and inspect.isfunction(func) and get_own_metadata(
            INTERCEPTABLE_METADATA_KEY, func
        ):
            names.append(name)
    return names


def scan_interceptor_metadata(
    target: Any,
    method_name: str,
    registry: InterceptorRegistry,
) -> list[Interceptor]:
    """
    Collect the interceptors applicable to a method.

    Every registered key tagged on the method contributes its interceptors;
    the merged list is sorted ascending by priority.
    """
    tagged = set(get_interceptable_keys(target, method_name))
    entries: list[InterceptorEntry] = []
    for metadata_key in registry.get_all_metadata_keys():
        if metadata_key in tagged:
            entries.extend(registry.get_interceptor_metadata(metadata_key))
    entries.sort(key=lambda entry: entry.priority)
    return [entry.interceptor for entry in entries]
