"""
Interceptor Registry

Maps a metadata key (one cross-cutting concern) to its interceptors, kept
sorted ascending by priority: lower priorities run first and wrap the rest.
"""

import logging
from collections.abc import Iterator
from typing import Hashable, Optional

from ..constants import DEFAULT_PRIORITY
from ..di.types import Token
from .types import Interceptor, InterceptorEntry

logger = logging.getLogger(__name__)

INTERCEPTOR_REGISTRY_TOKEN = Token("ioc_engine:interceptor-registry")


class InterceptorRegistry:
    """
    Registry of interceptors per metadata key.

    Usage:
        registry = InterceptorRegistry()
        registry.register(TRANSACTION_KEY, TransactionInterceptor(), priority=50)
        registry.get_interceptors(TRANSACTION_KEY)
    """

    def __init__(self, default_priority: int = DEFAULT_PRIORITY) -> None:
        self.default_priority = default_priority
        self._entries: dict[Hashable, list[InterceptorEntry]] = {}

    def register(
        self,
        metadata_key: Hashable,
        interceptor: Interceptor,
        priority: Optional[int] = None,
    ) -> None:
        """
        Register an interceptor for a metadata key.

        Registering the same interceptor twice under one key is ignored.
        Equal priorities keep registration order.
        """
        if priority is None:
            priority = self.default_priority
        entries = self._entries.setdefault(metadata_key, [])
        if any(entry.interceptor is interceptor for entry in entries):
            return
        entries.append(InterceptorEntry(metadata_key, interceptor, priority))
        entries.sort(key=lambda entry: entry.priority)
        logger.debug(
            f"Registered interceptor {type(interceptor).__name__} for {metadata_key!r} "
            f"(priority {priority})"
        )

    def get_interceptor_metadata(self, metadata_key: Hashable) -> list[InterceptorEntry]:
        """Sorted entries (with priorities) for a key; empty if none."""
        return list(self._entries.get(metadata_key, ()))

    def get_interceptors(self, metadata_key: Hashable) -> list[Interceptor]:
        """Sorted interceptors for a key; empty if none."""
        return [entry.interceptor for entry in self._entries.get(metadata_key, ())]

    def has_interceptor(self, metadata_key: Hashable) -> bool:
        return bool(self._entries.get(metadata_key))

    def get_all_metadata_keys(self) -> Iterator[Hashable]:
        return iter(list(self._entries))

    def remove(self, metadata_key: Hashable) -> None:
        """Remove every interceptor registered under a key."""
        self._entries.pop(metadata_key, None)

    def count(self, metadata_key: Optional[Hashable] = None) -> int:
        """Number of interceptors for a key, or in total."""
        if metadata_key is not None:
            return len(self._entries.get(metadata_key, ()))
        return sum(len(entries) for entries in self._entries.values())

    def clear(self) -> None:
        self._entries.clear()
