"""
Dependency Injection Container

Owns provider registrations, the singleton cache, the per-scope instance
cache and instance post-processors. Containers form a parent/child tree:
a miss in a child falls back to its parent, while the scoped cache is always
local to the container that owns the provider.
"""

import asyncio
import inspect
import logging
import typing
import weakref
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Optional, TypeVar

from ..exceptions import (DependencyResolutionError, InvalidProviderError,
                          ProviderNotFoundError, describe_token)
from .decorators import Inject, get_dependency_overrides, get_lifecycle
from .scopes import context_store, scope_storage
from .types import (DependencyPlan, InstancePostProcessor, Lifecycle, ParameterSlot,
                    ProviderConfig, ProviderToken, Token)

if TYPE_CHECKING:
    from ..config import RuntimeConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SKIP = object()
_MISS = object()

# Declared parameter types that are never treated as injection tokens
_PRIMITIVES = (str, int, float, bool, bytes, complex, type(None), object)

# (container, token) pairs under construction in the current task
_resolution_path: ContextVar[tuple[tuple[Any, Any], ...]] = ContextVar(
    "ioc_engine_resolution_path", default=()
)


class Container:
    """
    Dependency Injection Container with singleton, transient and scoped lifetimes.

    Usage:
        container = Container()

        # Register with auto-detection
        container.register(UserService)  # Singleton unless @injectable says otherwise
        container.register(RequestContext, ProviderConfig(lifecycle=Lifecycle.SCOPED))

        # Register with factory
        container.register_factory(
            Database,
            lambda c: Database(c.resolve(Settings).db_url),
        )

        # Register instance directly
        container.register_instance("settings", settings)

        # Resolve
        user_svc = container.resolve(UserService)
    """

    _global_instance: Optional["Container"] = None

    def __init__(
        self,
        parent: Optional["Container"] = None,
        config: Optional["RuntimeConfig"] = None,
    ) -> None:
        from ..config import get_runtime_config

        self._parent = parent
        if config is None:
            config = parent.config if parent is not None else get_runtime_config()
        self._config = config
        self._providers: dict[Any, ProviderConfig] = {}
        self._singletons: dict[Any, Any] = {}
        # scopes holding instances built here; the instances themselves live on the scope
        self._scopes: "weakref.WeakSet[Any]" = weakref.WeakSet()
        self._type_to_token: dict[type, Token] = {}
        self._dependency_plans: dict[type, DependencyPlan] = {}
        self._post_processors: list[InstancePostProcessor] = []
        self._singleton_locks: dict[Any, asyncio.Lock] = {}
        self._scoped_locks: "weakref.WeakKeyDictionary[Any, dict[Any, asyncio.Lock]]" = (
            weakref.WeakKeyDictionary()
        )

    @property
    def parent(self) -> Optional["Container"]:
        return self._parent

    @property
    def config(self) -> "RuntimeConfig":
        return self._config

    @classmethod
    def get_global(cls) -> "Container":
        """Get the global container instance."""
        if cls._global_instance is None:
            cls._global_instance = Container()
        return cls._global_instance

    @classmethod
    def set_global(cls, container: "Container") -> None:
        """Set the global container instance."""
        cls._global_instance = container

    @classmethod
    def reset_global(cls) -> None:
        """Reset the global container (useful for testing)."""
        cls._global_instance = None

    @classmethod
    def is_global(cls, container: "Container") -> bool:
        return cls._global_instance is container

    def create_child(self) -> "Container":
        """Create a container that falls back to this one on a miss."""
        return Container(parent=self, config=self._config)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, token: ProviderToken, config: Optional[ProviderConfig] = None) -> "Container":
        """
        Register a provider for a token.

        Args:
            token: Class, string or Token identifying the dependency
            config: Lifecycle and construction strategy. A class token with
                no strategy is its own implementation.

        Returns:
            Self for chaining

        Raises:
            InvalidProviderError: If the config sets several strategies, pairs
                a value with a non-singleton lifecycle, or a non-class token
                has none
        """
        config = replace(config) if config is not None else ProviderConfig()
        if config.strategies() > 1:
            raise InvalidProviderError(
                "A provider accepts only one of factory, implementation or value",
                context={"token": describe_token(token)},
            )

        if config.has_value:
            if config.lifecycle is not None and Lifecycle(config.lifecycle) is not Lifecycle.SINGLETON:
                raise InvalidProviderError(
                    "A value provider is always a singleton",
                    context={"token": describe_token(token), "lifecycle": Lifecycle(config.lifecycle).value},
                )
            config.lifecycle = Lifecycle.SINGLETON
        elif config.lifecycle is None:
            source = token if isinstance(token, type) else config.implementation
            if source is not None:
                config.lifecycle = get_lifecycle(source)
        config.lifecycle = Lifecycle(config.lifecycle or self._config.default_lifecycle)

        if isinstance(token, type) and config.strategies() == 0:
            config.implementation = token
        if config.strategies() == 0:
            raise InvalidProviderError(
                f"Cannot instantiate token: {describe_token(token)}. Factory function required."
            )

        self._providers[token] = config
        self._singletons.pop(token, None)
        if config.has_value:
            self._singletons[token] = config.value

        logger.debug(f"Registered {describe_token(token)} as {config.lifecycle.value}")
        return self

    def register_instance(self, token: ProviderToken, instance: Any) -> "Container":
        """
        Register an existing instance as a singleton.

        Useful for configuration objects or externally created instances.
        """
        self._providers[token] = ProviderConfig(lifecycle=Lifecycle.SINGLETON, value=instance)
        self._singletons[token] = instance
        logger.debug(f"Registered instance for {describe_token(token)}")
        return self

    def register_factory(
        self,
        token: ProviderToken,
        factory: Callable[["Container"], Any],
        lifecycle: Lifecycle = Lifecycle.SINGLETON,
    ) -> "Container":
        """
        Register a provider built by a custom factory.

        The factory receives this container and can resolve dependencies manually.

        Example:
            container.register_factory(
                Database,
                lambda c: Database(c.resolve(Settings).connection_string),
                Lifecycle.SINGLETON,
            )
        """
        return self.register(token, ProviderConfig(lifecycle=lifecycle, factory=lambda: factory(self)))

    def register_post_processor(self, processor: InstancePostProcessor) -> "Container":
        """Add a post-processor; processors run in ascending priority order."""
        self._post_processors.append(processor)
        self._post_processors.sort(key=lambda p: getattr(p, "priority", 100))
        logger.debug(f"Registered post-processor {type(processor).__name__}")
        return self

    def token_for(self, cls: type) -> Token:
        """
        Mint (once) an opaque token bound to a class.

        Parameters declared with that class are then resolved through the
        token, which lets an abstract type be satisfied by any provider:

            repo_token = container.token_for(Repository)
            container.register(repo_token, ProviderConfig(implementation=SqlRepository))
        """
        token = self._type_to_token.get(cls)
        if token is None:
            token = Token(cls.__qualname__)
            self._type_to_token[cls] = token
        return token

    def is_registered(self, token: ProviderToken) -> bool:
        """Check if a token has a provider in this container (parents excluded)."""
        return token in self._providers

    def get_provider(self, token: ProviderToken) -> Optional[ProviderConfig]:
        """Provider registered for a token in this container, if any."""
        return self._providers.get(token)

    def tokens(self, lifecycle: Optional[Lifecycle] = None) -> list[Any]:
        """Tokens registered in this container, optionally filtered by lifecycle."""
        return [
            token
            for token, provider in self._providers.items()
            if lifecycle is None or provider.lifecycle is lifecycle
        ]

    def __contains__(self, token: ProviderToken) -> bool:
        """Support 'in' operator for checking registration."""
        return self.is_registered(token)

    def clear(self) -> None:
        """
        Reset all registrations and cached instances.

        Useful for testing.
        """
        self._providers.clear()
        self._singletons.clear()
        for scope in list(self._scopes):
            scope_storage(scope).pop(self, None)
        self._scopes.clear()
        self._type_to_token.clear()
        self._dependency_plans.clear()
        self._post_processors.clear()
        self._singleton_locks.clear()
        self._scoped_locks.clear()
        logger.debug("Container cleared")

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, token: ProviderToken) -> Any:
        """
        Resolve an instance for a token.

        Raises:
            ProviderNotFoundError: If no container in the chain provides the
                token and it is not a class constructible without arguments
            DependencyResolutionError: If a constructor parameter cannot be
                determined, or a factory returned an awaitable
        """
        provider = self._providers.get(token)
        if provider is None:
            if self._parent is not None:
                return self._parent.resolve(token)
            return self._auto_instantiate(token)

        cached = self._get_cached(token, provider)
        if cached is not _MISS:
            return cached

        with self._resolving(token):
            return self._create(token, provider)

    async def resolve_async(self, token: ProviderToken) -> Any:
        """
        Resolve an instance, awaiting asynchronous factories.

        First construction of a singleton (or of a scoped entry within one
        scope) is serialized with a lock, so racing first resolvers share
        one instance.
        """
        provider = self._providers.get(token)
        if provider is None:
            if self._parent is not None:
                return await self._parent.resolve_async(token)
            return await self._auto_instantiate_async(token)

        cached = self._get_cached(token, provider)
        if cached is not _MISS:
            return cached

        # the cycle check comes first: the construction lock is not re-entrant
        with self._resolving(token):
            lock = self._construction_lock(token, provider)
            if lock is None:
                return await self._create_async(token, provider)
            async with lock:
                cached = self._get_cached(token, provider)
                if cached is not _MISS:
                    return cached
                return await self._create_async(token, provider)

    def try_resolve(self, token: ProviderToken) -> Any | None:
        """Resolve a token, returning None if no provider exists."""
        try:
            return self.resolve(token)
        except ProviderNotFoundError:
            return None

    def instantiate(self, cls: type[T]) -> T:
        """Build an instance of cls, resolving its constructor parameters."""
        plan = self._get_dependency_plan(cls)
        values = [self._resolve_slot(plan, slot) for slot in plan.slots]
        args, kwargs = self._call_arguments(plan, values)
        instance = cls(*args, **kwargs)
        logger.debug(f"Instantiated {cls.__name__}")
        return self._apply_post_processors(instance, cls)

    async def instantiate_async(self, cls: type[T]) -> T:
        """Async counterpart of instantiate; dependencies go through resolve_async."""
        plan = self._get_dependency_plan(cls)
        values = [await self._resolve_slot_async(plan, slot) for slot in plan.slots]
        args, kwargs = self._call_arguments(plan, values)
        instance = cls(*args, **kwargs)
        logger.debug(f"Instantiated {cls.__name__}")
        return self._apply_post_processors(instance, cls)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_cached(self, token: Any, provider: ProviderConfig) -> Any:
        if provider.lifecycle is Lifecycle.SINGLETON:
            return self._singletons.get(token, _MISS)
        if provider.lifecycle is Lifecycle.SCOPED:
            scope = context_store.get_current()
            if scope is None:
                return _MISS
            return scope_storage(scope).get(self, {}).get(token, _MISS)
        return _MISS

    def _store(self, token: Any, provider: ProviderConfig, instance: Any) -> None:
        if provider.lifecycle is Lifecycle.SINGLETON:
            self._singletons[token] = instance
            logger.debug(f"Created singleton: {describe_token(token)}")
        elif provider.lifecycle is Lifecycle.SCOPED:
            scope = context_store.get_current()
            if scope is not None:
                scope_storage(scope).setdefault(self, {})[token] = instance
                self._scopes.add(scope)
                logger.debug(f"Created scoped instance: {describe_token(token)}")

    def _construction_lock(self, token: Any, provider: ProviderConfig) -> Optional[asyncio.Lock]:
        if not self._config.lock_async_singletons:
            return None
        if provider.lifecycle is Lifecycle.SINGLETON:
            return self._singleton_locks.setdefault(token, asyncio.Lock())
        if provider.lifecycle is Lifecycle.SCOPED:
            scope = context_store.get_current()
            if scope is not None:
                return self._scoped_locks.setdefault(scope, {}).setdefault(token, asyncio.Lock())
        return None

    @contextmanager
    def _resolving(self, token: Any) -> Iterator[None]:
        """Mark token as under construction here for the current task."""
        path = _resolution_path.get()
        entry = (self, token)
        if entry in path:
            names = [describe_token(t) for _, t in path[path.index(entry):]]
            chain = " -> ".join(names + [describe_token(token)])
            raise DependencyResolutionError(
                f"Circular dependency detected: {chain}",
                context={"chain": chain},
            )
        reset_token = _resolution_path.set(path + (entry,))
        try:
            yield
        finally:
            _resolution_path.reset(reset_token)

    def _create(self, token: Any, provider: ProviderConfig) -> Any:
        if provider.factory is not None:
            instance = provider.factory()
            if inspect.isawaitable(instance):
                if inspect.iscoroutine(instance):
                    instance.close()
                raise DependencyResolutionError(
                    f"Factory for {describe_token(token)} returned an awaitable; "
                    "use resolve_async() instead",
                    context={"token": describe_token(token)},
                )
        elif provider.has_value:
            instance = provider.value
        else:
            instance = self.instantiate(provider.implementation)
        self._store(token, provider, instance)
        return instance

    async def _create_async(self, token: Any, provider: ProviderConfig) -> Any:
        if provider.factory is not None:
            instance = provider.factory()
            if inspect.isawaitable(instance):
                instance = await instance
        elif provider.has_value:
            instance = provider.value
        else:
            instance = await self.instantiate_async(provider.implementation)
        self._store(token, provider, instance)
        return instance

    def _auto_instantiate(self, token: Any) -> Any:
        if isinstance(token, type) and not self._get_dependency_plan(token).has_required:
            return self.instantiate(token)
        raise ProviderNotFoundError(token)

    async def _auto_instantiate_async(self, token: Any) -> Any:
        if isinstance(token, type) and not self._get_dependency_plan(token).has_required:
            return await self.instantiate_async(token)
        raise ProviderNotFoundError(token)

    def _apply_post_processors(
        self, instance: Any, cls: type, origin: Optional["Container"] = None
    ) -> Any:
        """Run parent processors first, then local ones, all seeing the origin container."""
        origin = origin or self
        result = instance
        if self._parent is not None:
            result = self._parent._apply_post_processors(result, cls, origin)
        for processor in self._post_processors:
            result = processor.post_process(result, cls, origin)
        return result

    def _lookup_type_token(self, cls: Any) -> Optional[Token]:
        container: Optional[Container] = self
        while container is not None:
            token = container._type_to_token.get(cls)
            if token is not None:
                return token
            container = container._parent
        return None

    def _has_provider(self, token: Any) -> bool:
        container: Optional[Container] = self
        while container is not None:
            if token in container._providers:
                return True
            container = container._parent
        return False

    def _slot_token(self, plan: DependencyPlan, slot: ParameterSlot) -> Any:
        if slot.token is None:
            if not slot.required:
                return _SKIP
            raise DependencyResolutionError(
                f"Cannot resolve dependency at index {slot.index} of {plan.owner.__name__}. "
                "Parameter type is undefined. Use Annotated[..., Inject(token)] or @inject() "
                "to specify the dependency.",
                owner=plan.owner,
                index=slot.index,
            )
        token = slot.token
        if isinstance(token, type):
            token = self._lookup_type_token(token) or token
        if not slot.required and not self._has_provider(token):
            return _SKIP
        return token

    def _resolve_slot(self, plan: DependencyPlan, slot: ParameterSlot) -> Any:
        token = self._slot_token(plan, slot)
        if token is _SKIP:
            return _SKIP
        return self.resolve(token)

    async def _resolve_slot_async(self, plan: DependencyPlan, slot: ParameterSlot) -> Any:
        token = self._slot_token(plan, slot)
        if token is _SKIP:
            return _SKIP
        return await self.resolve_async(token)

    @staticmethod
    def _call_arguments(plan: DependencyPlan, values: list[Any]) -> tuple[list[Any], dict[str, Any]]:
        """Lay resolved values out as positional args until a skipped slot, keywords after."""
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        gap = False
        for slot, value in zip(plan.slots, values):
            if value is _SKIP:
                gap = True
                continue
            if slot.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[slot.name] = value
            elif not gap:
                args.append(value)
            elif slot.kind is inspect.Parameter.POSITIONAL_OR_KEYWORD:
                kwargs[slot.name] = value
            # a positional-only parameter after a gap keeps its default
        return args, kwargs

    def _get_dependency_plan(self, cls: type) -> DependencyPlan:
        plan = self._dependency_plans.get(cls)
        if plan is not None:
            return plan

        plan = DependencyPlan(owner=cls)
        init = cls.__init__
        if init is object.__init__:
            self._dependency_plans[cls] = plan
            return plan

        try:
            signature = inspect.signature(init)
        except (TypeError, ValueError):
            self._dependency_plans[cls] = plan
            return plan
        try:
            hints = typing.get_type_hints(init, include_extras=True)
        except (NameError, TypeError):
            hints = {}

        overrides = get_dependency_overrides(cls)
        params = list(signature.parameters.values())[1:]  # drop self
        index = 0
        for param in params:
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            token = overrides.get(index)
            if token is None:
                token = _token_from_annotation(hints.get(param.name, param.annotation))
            plan.slots.append(
                ParameterSlot(
                    index=index,
                    name=param.name,
                    token=token,
                    required=param.default is inspect.Parameter.empty,
                    kind=param.kind,
                )
            )
            index += 1

        self._dependency_plans[cls] = plan
        return plan


def _token_from_annotation(annotation: Any) -> Any:
    """Derive the implicit token from a declared parameter type."""
    if annotation is inspect.Parameter.empty or isinstance(annotation, str):
        return None
    if typing.get_origin(annotation) is typing.Annotated:
        base, *extras = typing.get_args(annotation)
        for extra in extras:
            if isinstance(extra, Inject):
                return extra.token
        annotation = base
    # Optional[X] / X | None -> X
    args = typing.get_args(annotation)
    if args and type(None) in args:
        remaining = [a for a in args if a is not type(None)]
        if len(remaining) == 1:
            annotation = remaining[0]
    if isinstance(annotation, type) and annotation not in _PRIMITIVES:
        return annotation
    return None
