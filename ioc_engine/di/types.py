"""
Core DI types: lifecycles, tokens, provider configs and dependency plans.
"""

import inspect
import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

from ..constants import DEFAULT_PRIORITY

if TYPE_CHECKING:
    from .container import Container


class Lifecycle(str, Enum):
    """
    Service lifetimes.

    SINGLETON: One instance per container for the application lifetime.
    TRANSIENT: New instance created on every resolve.
    SCOPED: One instance per active request scope; degrades to transient
            when resolved outside any scope.
    """

    SINGLETON = "singleton"
    TRANSIENT = "transient"
    SCOPED = "scoped"


_token_ids = itertools.count(1)


class Token:
    """
    Opaque provider token, compared by identity.

    Usage:
        DATABASE = Token("Database")
        container.register(DATABASE, ProviderConfig(factory=make_database))
    """

    __slots__ = ("name", "_id")

    def __init__(self, name: str = "") -> None:
        self._id = next(_token_ids)
        self.name = name or f"token-{self._id}"

    def __repr__(self) -> str:
        return f"Token({self.name!r})"

    def __str__(self) -> str:
        return self.name


ProviderToken = Union[type, str, Token]


class _NoValue:
    """Sentinel for "no pre-built value" (None is a legitimate value)."""

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Any = _NoValue()


@dataclass
class ProviderConfig:
    """
    Recipe for satisfying a token.

    At most one of ``factory``, ``implementation`` and ``value`` is set.
    ``lifecycle`` of None means "read it from @injectable, else default".
    """

    lifecycle: Optional[Lifecycle] = None
    factory: Optional[Callable[[], Any]] = None
    implementation: Optional[type] = None
    value: Any = NO_VALUE

    @property
    def has_value(self) -> bool:
        return self.value is not NO_VALUE

    def strategies(self) -> int:
        """Number of construction strategies configured."""
        return sum(
            (
                self.factory is not None,
                self.implementation is not None,
                self.has_value,
            )
        )


@dataclass(frozen=True)
class ParameterSlot:
    """One constructor parameter of a DependencyPlan."""

    index: int
    name: str
    token: Optional[ProviderToken]
    required: bool
    kind: Any = inspect.Parameter.POSITIONAL_OR_KEYWORD


@dataclass
class DependencyPlan:
    """Cached description of how to call a class constructor."""

    owner: type
    slots: list[ParameterSlot] = field(default_factory=list)

    @property
    def param_length(self) -> int:
        return len(self.slots)

    @property
    def has_required(self) -> bool:
        return any(slot.required for slot in self.slots)


class InstancePostProcessor(ABC):
    """
    Hook transforming a freshly constructed instance.

    ``priority``: lower runs first (default 100).
    """

    priority: int = DEFAULT_PRIORITY

    @abstractmethod
    def post_process(self, instance: Any, cls: type, container: "Container") -> Any:
        """
        Process a newly created instance.

        Args:
            instance: The instance (possibly already wrapped by earlier processors)
            cls: The class that was instantiated
            container: The container the resolution originated from

        Returns:
            The instance to hand out (may be a proxy)
        """
