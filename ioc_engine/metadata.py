"""
Process-wide metadata store.

Decorators record payloads against a target (a class or a function) under a
metadata key, optionally scoped to a member name. The container, the module
registry and the interceptor scanner read them back at resolution time.

Targets are held weakly, so classes defined inside tests or factories can be
garbage collected together with their metadata.
"""

import logging
import weakref
from typing import Any, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

_MISSING = object()

# target -> {(member, key): payload}
_store: "weakref.WeakKeyDictionary[Any, Dict[Tuple[Optional[str], Hashable], Any]]" = (
    weakref.WeakKeyDictionary()
)


def define_metadata(key: Hashable, payload: Any, target: Any, member: Optional[str] = None) -> None:
    """
    Attach metadata to a target.

    Args:
        key: Metadata key
        payload: Value to store
        target: Class or function the metadata describes
        member: Optional member name (method metadata lives on the class)
    """
    _store.setdefault(target, {})[(member, key)] = payload


def get_own_metadata(key: Hashable, target: Any, member: Optional[str] = None, default: Any = None) -> Any:
    """Read metadata defined directly on target, ignoring base classes."""
    try:
        entries = _store.get(target)
    except TypeError:
        # Not weak-referenceable, so nothing can have been stored for it.
        return default
    if not entries:
        return default
    return entries.get((member, key), default)


def get_metadata(key: Hashable, target: Any, member: Optional[str] = None, default: Any = None) -> Any:
    """
    Read metadata, walking the MRO when target is a class.

    Instances are looked up through their class.
    """
    if not isinstance(target, type) and not callable(target):
        target = type(target)
    if isinstance(target, type):
        for klass in target.__mro__:
            value = get_own_metadata(key, klass, member, _MISSING)
            if value is not _MISSING:
                return value
        return default
    return get_own_metadata(key, target, member, default)


def has_metadata(key: Hashable, target: Any, member: Optional[str] = None) -> bool:
    """Check whether metadata exists for the key."""
    return get_metadata(key, target, member, _MISSING) is not _MISSING


def delete_metadata(key: Hashable, target: Any, member: Optional[str] = None) -> bool:
    """Remove own metadata; returns True when something was removed."""
    try:
        entries = _store.get(target)
    except TypeError:
        return False
    if not entries or (member, key) not in entries:
        return False
    del entries[(member, key)]
    return True
