"""
Built-in interceptors.
"""

from .log import LOGGER_TOKEN, LogInterceptor, LogOptions, log

__all__ = [
    "LOGGER_TOKEN",
    "LogInterceptor",
    "LogOptions",
    "log",
]
