"""
Request Scopes for Dependency Injection

The scoped context store holds the identity of the request currently being
handled. It is backed by a ContextVar, so the value follows the logical
continuation (each asyncio task gets its own copy) instead of the call stack.

Usage with the transport layer:
    async def handle(request):
        return await context_store.run(ScopeKey(request=request), dispatch, request)
"""

import inspect
import itertools
import logging
import weakref
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Optional, TypeVar

from ..exceptions import InvalidScopeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_scope_ids = itertools.count(1)

_STORAGE_ATTR = "_ioc_scoped_instances"


class ScopeKey:
    """
    Opaque per-request identity.

    Scoped instances are stored on the key itself, per container, so they
    are released together with the key once the request is over, even when
    an instance holds a reference back to its key.
    """

    __slots__ = ("id", "request", "instances", "__weakref__")

    def __init__(self, request: Any = None) -> None:
        self.id = next(_scope_ids)
        self.request = request
        self.instances: "weakref.WeakKeyDictionary[Any, dict[Any, Any]]" = (
            weakref.WeakKeyDictionary()
        )

    def __repr__(self) -> str:
        return f"ScopeKey(id={self.id})"


class ScopedContextStore:
    """
    Ambient slot carrying the current scope value.

    Safe for nested and concurrent logical requests: every ``run`` restores
    the previous value on exit, and concurrent tasks never share a slot.
    """

    def __init__(self, name: str = "ioc_request_scope") -> None:
        self._current: ContextVar[Optional[Any]] = ContextVar(name, default=None)

    def get_current(self) -> Optional[Any]:
        """Return the active scope value, or None outside any scope."""
        return self._current.get()

    def run(self, value: Any, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Execute fn with the slot set to value.

        When fn returns an awaitable, the returned coroutine sets the slot
        again around the await, so the value follows the continuation.
        """
        self._check_value(value)
        token = self._current.set(value)
        try:
            result = fn(*args, **kwargs)
        finally:
            self._current.reset(token)
        if inspect.isawaitable(result):
            return self._run_awaitable(value, result)  # type: ignore[return-value]
        return result

    async def _run_awaitable(self, value: Any, awaitable: Awaitable[T]) -> T:
        token = self._current.set(value)
        try:
            return await awaitable
        finally:
            self._current.reset(token)

    @contextmanager
    def scope(self, value: Any = None) -> Iterator[Any]:
        """
        Context manager form of run.

        Usage:
            with context_store.scope() as key:
                service = container.resolve(RequestService)
        """
        if value is None:
            value = ScopeKey()
        self._check_value(value)
        token = self._current.set(value)
        logger.debug(f"Request scope started: {value!r}")
        try:
            yield value
        finally:
            self._current.reset(token)
            logger.debug(f"Request scope ended: {value!r}")

    @staticmethod
    def _check_value(value: Any) -> None:
        if value is None:
            return
        try:
            weakref.ref(value)
        except TypeError as e:
            raise InvalidScopeError(
                "Scope values must support weak references",
                context={"type": type(value).__name__},
            ) from e
        if not isinstance(value, ScopeKey) and not hasattr(value, "__dict__"):
            raise InvalidScopeError(
                "Scope values must be ScopeKey instances or accept attributes",
                context={"type": type(value).__name__},
            )


def scope_storage(scope: Any) -> "weakref.WeakKeyDictionary[Any, dict[Any, Any]]":
    """
    Per-container instance maps carried by a scope value.

    The maps live on the value itself and die with it.
    """
    if isinstance(scope, ScopeKey):
        return scope.instances
    storage = scope.__dict__.get(_STORAGE_ATTR)
    if storage is None:
        storage = weakref.WeakKeyDictionary()
        setattr(scope, _STORAGE_ATTR, storage)
    return storage


def new_scope_key(request: Any = None) -> ScopeKey:
    """Create a fresh scope key for an inbound request."""
    return ScopeKey(request)


context_store = ScopedContextStore()
