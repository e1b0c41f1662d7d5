"""
Constants for IOC_ENGINE.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# ORDERING CONSTANTS
# ============================================================================

DEFAULT_PRIORITY: Final[int] = 100
"""Default priority for interceptors and post-processors (lower runs first)."""

INTERCEPTOR_PROXY_PRIORITY: Final[int] = 1000
"""Priority of the interceptor post-processor, so it wraps the final instance."""

# ============================================================================
# METADATA KEYS
# ============================================================================

INJECTABLE_METADATA_KEY: Final[str] = "ioc_engine:injectable"
"""Marks a class as injectable."""

LIFECYCLE_METADATA_KEY: Final[str] = "ioc_engine:lifecycle"
"""Lifecycle override declared by @injectable."""

DEPENDENCY_METADATA_KEY: Final[str] = "ioc_engine:dependencies"
"""Per-parameter token overrides declared by @inject."""

MODULE_METADATA_KEY: Final[str] = "ioc_engine:module"
"""Module descriptor declared by @module."""

INTERCEPTABLE_METADATA_KEY: Final[str] = "ioc_engine:interceptable"
"""Set of interceptor metadata keys tagged on a method."""

LOG_METADATA_KEY: Final[str] = "ioc_engine:interceptor:log"
"""Metadata key of the built-in log interceptor."""

# ============================================================================
# LOGGING CONSTANTS
# ============================================================================

LOG_LEVELS: Final[tuple] = ("debug", "info", "warning", "error")
"""Levels accepted by the @log tag."""
