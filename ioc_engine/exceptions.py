"""
Custom exceptions for IOC_ENGINE.

Every error raised by the container, the module graph and the interceptor
plumbing derives from IocEngineError, which stays a RuntimeError so callers
that only catch RuntimeError keep working.
"""

from typing import Any, Dict, List, Optional


def describe_token(token: Any) -> str:
    """Return a human readable name for a provider token."""
    if isinstance(token, type):
        return token.__name__
    return str(token)


class IocEngineError(RuntimeError):
    """
    Base exception for IOC Engine errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (token,
                 module name, parameter index, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(IocEngineError):
    """
    Raised when runtime configuration is invalid.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class ProviderNotFoundError(IocEngineError):
    """
    Raised when a token has no provider anywhere in the container chain
    and cannot be auto-instantiated.

    Attributes:
        token: The token that was requested
    """

    def __init__(self, token: Any, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(f"Provider not found for token: {describe_token(token)}", context)
        self.token = token


class DependencyResolutionError(IocEngineError):
    """
    Raised when a constructor parameter cannot be resolved.

    Attributes:
        owner: Class whose constructor was being satisfied (if available)
        index: Parameter index (if available)
    """

    def __init__(
        self,
        message: str,
        owner: Optional[type] = None,
        index: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if owner is not None:
            context["owner"] = owner.__name__
        if index is not None:
            context["index"] = index
        super().__init__(message, context=context)
        self.owner = owner
        self.index = index


class InvalidProviderError(IocEngineError):
    """Raised when a provider entry or ProviderConfig is malformed."""


class ModuleExportError(IocEngineError):
    """
    Raised when a module exports a token it never registered.

    Attributes:
        module: The exporting module class
        token: The exported token
    """

    def __init__(self, module: type, token: Any) -> None:
        super().__init__(
            f"Module {module.__name__} cannot export {describe_token(token)} "
            "because it is not registered",
            context={"module": module.__name__, "token": describe_token(token)},
        )
        self.module = module
        self.token = token


class CircularModuleError(IocEngineError):
    """
    Raised when module imports form a cycle.

    Attributes:
        chain: Module classes from the first revisited module back to itself
    """

    def __init__(self, chain: List[type]) -> None:
        names = " -> ".join(m.__name__ for m in chain)
        super().__init__(
            f"Circular module dependency detected for {chain[-1].__name__}",
            context={"chain": names},
        )
        self.chain = chain


class InvalidScopeError(IocEngineError):
    """Raised when a scope value cannot serve as a scoped-cache key."""
