"""API key check for the /api/links endpoints.

FastAPI reads and decodes the request body before it solves a route's
dependencies, so a dependency alone would answer an unauthenticated request
with a broken body with 422. ``ApiKeyRoute`` checks the header before the
route handler touches the body; ``require_api_key`` stays on the router so the
scheme shows up in the OpenAPI document.
"""

import secrets
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Depends, HTTPException, Request, Response, Security, status
from fastapi.routing import APIRoute
from fastapi.security import APIKeyHeader

from shortlinks.config import Settings, get_settings

__all__ = ["API_KEY_HEADER", "ApiKeyRoute", "require_api_key", "verify_api_key"]

API_KEY_HEADER = "X-API-Key"

api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def verify_api_key(api_key: str | None, settings: Settings) -> None:
    expected = settings.API_KEY
    # An unset key locks the API rather than opening it.
    if not expected or api_key is None or not secrets.compare_digest(api_key.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "ApiKey"},
        )


async def require_api_key(
    api_key: str | None = Security(api_key_header),
    settings: Settings = Depends(get_settings),
) -> None:
    verify_api_key(api_key, settings)


class ApiKeyRoute(APIRoute):
    """Route that rejects a missing or wrong API key before the body is parsed."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()

        async def route_handler(request: Request) -> Response:
            verify_api_key(request.headers.get(API_KEY_HEADER), get_settings())
            return await original_route_handler(request)

        return route_handler
