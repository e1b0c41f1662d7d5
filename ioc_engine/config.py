"""
Configuration management for IOC_ENGINE.

Settings are read from environment variables prefixed with ``IOC_`` (or a
``.env`` file). Containers and the application bootstrap accept an explicit
RuntimeConfig, so tests never depend on the process environment.
"""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_PRIORITY, LOG_LEVELS
from .di.types import Lifecycle
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class RuntimeConfig(BaseSettings):
    """
    IOC Engine configuration.

    Example:
        # Using environment variables (IOC_DEFAULT_LIFECYCLE=transient ...)
        config = RuntimeConfig()

        # Or using direct parameters
        config = RuntimeConfig(lock_async_singletons=False)
    """

    model_config = SettingsConfigDict(
        env_prefix="IOC_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    default_lifecycle: Lifecycle = Field(
        Lifecycle.SINGLETON,
        description="Lifecycle used when neither the registration nor @injectable sets one",
    )
    default_priority: int = Field(
        DEFAULT_PRIORITY,
        description="Priority given to interceptors registered without one",
    )
    lock_async_singletons: bool = Field(
        True,
        description="Guard first async construction of singleton/scoped entries with a lock",
    )
    eager_singletons: bool = Field(
        True,
        description="Resolve the application's critical singletons at startup",
    )
    log_level: str = Field("info", description="Level of the ioc_engine package logger")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value}")
        return value


_runtime_config: Optional[RuntimeConfig] = None


def get_runtime_config() -> RuntimeConfig:
    """Get the process-wide configuration, loading it from the environment once."""
    global _runtime_config
    if _runtime_config is None:
        try:
            _runtime_config = RuntimeConfig()
        except ValueError as e:
            raise ConfigurationError(f"Invalid IOC_ENGINE configuration: {e}") from e
        logger.debug(f"Loaded runtime config: {_runtime_config.model_dump()}")
    return _runtime_config


def set_runtime_config(config: Optional[RuntimeConfig]) -> None:
    """Replace (or with None, reset) the process-wide configuration."""
    global _runtime_config
    _runtime_config = config
