"""
Core IOC_ENGINE components.

This module contains the Application class that bootstraps a module graph.
"""

from .application import Application

__all__ = [
    "Application",
]
