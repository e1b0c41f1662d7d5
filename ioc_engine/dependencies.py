"""
FastAPI Integration for IOC_ENGINE

Provides:
1. RequestScopeMiddleware - opens a request scope per HTTP/WebSocket connection
2. inject() - FastAPI dependency resolving a token from the DI container

Usage:
    from fastapi import Depends, FastAPI
    from ioc_engine.dependencies import RequestScopeMiddleware, inject

    app = FastAPI()
    app.add_middleware(RequestScopeMiddleware)
    app.state.container = application.container

    @app.get("/users")
    async def list_users(users: UserService = Depends(inject(UserService))):
        return await users.list_all()
"""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import HTTPException, Request
from starlette.types import ASGIApp, Receive, Scope, Send

from .di import Container
from .di.scopes import ScopeKey, context_store
from .di.types import ProviderToken
from .exceptions import ProviderNotFoundError
from .observability import correlation_scope

logger = logging.getLogger(__name__)

CORRELATION_HEADER = b"x-correlation-id"


class RequestScopeMiddleware:
    """
    Pure ASGI middleware running each connection inside its own scope.

    SCOPED providers resolved while the request is handled (route
    dependencies, background work awaited by the handler) share one
    instance per request; the instances are released with the scope key.
    Each request also gets a correlation id, taken from the
    ``X-Correlation-ID`` header when present.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        key = ScopeKey(request=scope)
        scope.setdefault("state", {})["ioc_scope"] = key
        await context_store.run(key, self._handle, scope, receive, send)

    async def _handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        correlation_id = None
        for name, value in scope.get("headers", []):
            if name == CORRELATION_HEADER:
                correlation_id = value.decode("latin-1")
                break
        with correlation_scope(correlation_id):
            await self.app(scope, receive, send)


def get_container(request: Request) -> Container:
    """Container attached to the app, or the global container."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        container = Container.get_global()
    return container


def inject(token: ProviderToken) -> Callable[..., Any]:
    """Create a dependency that resolves a token from the DI container."""

    async def _resolve(request: Request) -> Any:
        container = get_container(request)
        try:
            return await container.resolve_async(token)
        except ProviderNotFoundError as e:
            logger.error(f"Dependency injection failed: {e}")
            raise HTTPException(503, f"Service unavailable: {e.message}") from e

    return _resolve


__all__ = [
    "RequestScopeMiddleware",
    "get_container",
    "inject",
]
