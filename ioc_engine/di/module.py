"""
Module descriptors.

Usage:
    @module(
        imports=[DatabaseModule],
        providers=[UserService, ValueProvider("settings", settings)],
        controllers=[UserController],
        exports=[UserService],
    )
    class UserModule:
        pass
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, TypeVar

from ..constants import MODULE_METADATA_KEY
from ..metadata import define_metadata, get_own_metadata
from .providers import ModuleProvider
from .types import ProviderToken

C = TypeVar("C", bound=type)


@dataclass(frozen=True)
class ModuleMetadata:
    """
    Static module descriptor.

    ``controllers``, ``extensions`` and ``middlewares`` are opaque here and
    are forwarded unchanged to their consumers.
    """

    imports: tuple[type, ...] = ()
    providers: tuple[ModuleProvider, ...] = ()
    exports: tuple[ProviderToken, ...] = ()
    controllers: tuple[type, ...] = ()
    extensions: tuple[Any, ...] = ()
    middlewares: tuple[Any, ...] = ()


def module(
    imports: Optional[Sequence[type]] = None,
    providers: Optional[Sequence[ModuleProvider]] = None,
    exports: Optional[Sequence[ProviderToken]] = None,
    controllers: Optional[Sequence[type]] = None,
    extensions: Optional[Sequence[Any]] = None,
    middlewares: Optional[Sequence[Any]] = None,
) -> Callable[[C], C]:
    """Declare a class as a module. Applying it again replaces the descriptor."""
    metadata = ModuleMetadata(
        imports=tuple(imports or ()),
        providers=tuple(providers or ()),
        exports=tuple(exports or ()),
        controllers=tuple(controllers or ()),
        extensions=tuple(extensions or ()),
        middlewares=tuple(middlewares or ()),
    )

    def decorator(cls: C) -> C:
        define_metadata(MODULE_METADATA_KEY, metadata, cls)
        return cls

    return decorator


def get_module_metadata(module_class: type) -> ModuleMetadata:
    """Descriptor of a module class; an undecorated class is an empty module."""
    return get_own_metadata(MODULE_METADATA_KEY, module_class) or ModuleMetadata()


def is_module(cls: type) -> bool:
    return get_own_metadata(MODULE_METADATA_KEY, cls) is not None
