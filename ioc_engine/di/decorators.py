"""
Registration-time tags for classes and constructor parameters.

Usage:
    @injectable(lifecycle=Lifecycle.SCOPED)
    class RequestContext:
        ...

    @injectable()
    class UserService:
        def __init__(self, repo: Annotated[Repository, Inject("users-repo")], ctx: RequestContext):
            ...

    # Equivalent without Annotated:
    @inject(0, "users-repo")
    @injectable()
    class UserService:
        def __init__(self, repo, ctx: RequestContext):
            ...
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, TypeVar

from ..constants import DEPENDENCY_METADATA_KEY, INJECTABLE_METADATA_KEY, LIFECYCLE_METADATA_KEY
from ..metadata import define_metadata, get_metadata, get_own_metadata
from .types import Lifecycle, ProviderToken

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type)


@dataclass(frozen=True)
class Inject:
    """Explicit token override for one constructor parameter (Annotated marker)."""

    token: ProviderToken


def injectable(lifecycle: Optional[Lifecycle] = None) -> Callable[[C], C]:
    """
    Mark a class as injectable, optionally overriding its lifecycle.

    Without a lifecycle the container default (singleton) applies.
    """

    def decorator(cls: C) -> C:
        define_metadata(INJECTABLE_METADATA_KEY, True, cls)
        if lifecycle is not None:
            define_metadata(LIFECYCLE_METADATA_KEY, Lifecycle(lifecycle), cls)
        return cls

    return decorator


def inject(index: int, token: ProviderToken) -> Callable[[C], C]:
    """Override the token injected into constructor parameter ``index``."""

    def decorator(cls: C) -> C:
        overrides = dict(get_own_metadata(DEPENDENCY_METADATA_KEY, cls) or {})
        overrides[index] = token
        define_metadata(DEPENDENCY_METADATA_KEY, overrides, cls)
        logger.debug(f"@inject({token!r}) on {cls.__name__}[{index}]")
        return cls

    return decorator


def is_injectable(cls: type) -> bool:
    return get_metadata(INJECTABLE_METADATA_KEY, cls) is True


def get_lifecycle(cls: type) -> Optional[Lifecycle]:
    """Lifecycle declared by @injectable, if any."""
    return get_own_metadata(LIFECYCLE_METADATA_KEY, cls)


def get_dependency_overrides(cls: type) -> dict[int, ProviderToken]:
    """Parameter index -> token overrides declared by @inject."""
    return dict(get_own_metadata(DEPENDENCY_METADATA_KEY, cls) or {})
