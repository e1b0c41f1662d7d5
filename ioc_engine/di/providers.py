"""
Module Provider Entries

The ``providers`` list of a module accepts:
- a bare class (registered as its own implementation)
- ValueProvider(provide, use_value)
- FactoryProvider(provide, use_factory, lifecycle) where use_factory receives
  the module's container
- ClassProvider(use_class, provide=None, lifecycle)
- dicts with the same keys, e.g. {"provide": "config", "use_value": {...}}
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from ..exceptions import InvalidProviderError
from .types import Lifecycle, ProviderConfig, ProviderToken

if TYPE_CHECKING:
    from .container import Container

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassProvider:
    """Bind a token (default: the class itself) to an implementation class."""

    use_class: type
    provide: Optional[ProviderToken] = None
    lifecycle: Optional[Lifecycle] = None


@dataclass(frozen=True)
class ValueProvider:
    """Bind a token to a pre-built value."""

    provide: ProviderToken
    use_value: Any


@dataclass(frozen=True)
class FactoryProvider:
    """
    Bind a token to a factory called with the owning container.

    Usage:
        def create_user_service(container: Container) -> UserService:
            db = container.resolve(Database)
            return UserService(db, custom_config=...)

        FactoryProvider("users", create_user_service, Lifecycle.SCOPED)
    """

    provide: ProviderToken
    use_factory: Callable[["Container"], Any]
    lifecycle: Lifecycle = Lifecycle.SINGLETON


ModuleProvider = Union[type, ClassProvider, ValueProvider, FactoryProvider, Mapping[str, Any]]


def normalize_provider(entry: ModuleProvider) -> Union[type, ClassProvider, ValueProvider, FactoryProvider]:
    """
    Turn a provider entry into one of the typed forms.

    Raises:
        InvalidProviderError: If the entry matches none of the accepted shapes
    """
    if isinstance(entry, (type, ClassProvider, ValueProvider, FactoryProvider)):
        return entry

    if isinstance(entry, Mapping):
        if "use_value" in entry:
            return ValueProvider(provide=_require_provide(entry), use_value=entry["use_value"])
        if "use_factory" in entry:
            return FactoryProvider(
                provide=_require_provide(entry),
                use_factory=entry["use_factory"],
                lifecycle=Lifecycle(entry.get("lifecycle", Lifecycle.SINGLETON)),
            )
        if "use_class" in entry:
            lifecycle = entry.get("lifecycle")
            return ClassProvider(
                use_class=entry["use_class"],
                provide=entry.get("provide"),
                lifecycle=Lifecycle(lifecycle) if lifecycle is not None else None,
            )

    raise InvalidProviderError(
        "Provider entries must be a class, ClassProvider, ValueProvider, FactoryProvider "
        "or a dict with use_class/use_value/use_factory",
        context={"entry": repr(entry)},
    )


def _require_provide(entry: Mapping[str, Any]) -> ProviderToken:
    if "provide" not in entry:
        raise InvalidProviderError(
            "Provider entry is missing 'provide'", context={"entry": repr(dict(entry))}
        )
    return entry["provide"]


def register_provider(container: "Container", entry: ModuleProvider) -> ProviderToken:
    """
    Register one module provider entry into a container.

    Returns:
        The token the entry was registered under
    """
    provider = normalize_provider(entry)

    if isinstance(provider, type):
        if not container.is_registered(provider):
            container.register(provider)
        return provider

    if isinstance(provider, ValueProvider):
        container.register_instance(provider.provide, provider.use_value)
        return provider.provide

    if isinstance(provider, FactoryProvider):
        use_factory = provider.use_factory
        container.register(
            provider.provide,
            ProviderConfig(lifecycle=provider.lifecycle, factory=lambda: use_factory(container)),
        )
        return provider.provide

    token = provider.provide if provider.provide is not None else provider.use_class
    container.register(
        token,
        ProviderConfig(lifecycle=provider.lifecycle, implementation=provider.use_class),
    )
    return token


__all__ = [
    "ClassProvider",
    "ValueProvider",
    "FactoryProvider",
    "ModuleProvider",
    "normalize_provider",
    "register_provider",
]
