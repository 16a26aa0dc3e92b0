"""FastAPI route definitions for the short links REST API.

This module provides all HTTP endpoints with proper dependency injection,
error handling, and response serialization for the short links service.

API Endpoint Overview
=====================
::
    GET  /api/health
        └─ HealthResponse (200)

    POST /api/links                    [X-API-Key]
        ├─ LinkCreate (request body)
        └─ LinkResponse (200) or 401/409/422/503

    GET  /api/links/:id                [X-API-Key]
        └─ LinkResponse (200) or 401/404

    GET  /:address
        └─ 302 to target, or 302 to FALLBACK_URL

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  HTTP       │
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ API key     │  (/api/links only, 401 before the
    │ check       │   body is even looked at)
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Validate &  │
    │ Parse       │
    │ (Pydantic)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Call Service│
    │ Layer       │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serialize   │
    │ Response    │
    └─────────────┘

Key Behaviours
===============
- All endpoints use async/await for non-blocking I/O.
- Redirects never 404: unknown and expired addresses go to FALLBACK_URL.
- The API key is checked by ApiKeyRoute before the body is parsed.
- 302 redirects, matching what link visitors' clients already expect.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from sqlalchemy import text

from shortlinks.auth import ApiKeyRoute, require_api_key
from shortlinks.dependencies import RequestContext, get_link_service, get_request_context
from shortlinks.enums import HealthStatus
from shortlinks.exceptions import AddressCollisionError, ExpiryOutOfRangeError
from shortlinks.models import Link
from shortlinks.schemas import HealthResponse, LinkCreate, LinkResponse
from shortlinks.service import LinkService

__all__ = ["router", "api_router", "redirect_router"]

api_router = APIRouter(
    prefix="/api/links",
    tags=["links"],
    dependencies=[Depends(require_api_key)],
    route_class=ApiKeyRoute,
)
redirect_router = APIRouter(tags=["redirect"])
router = APIRouter()


def _to_response(link: Link, domain: str | None = None) -> LinkResponse:
    response = LinkResponse.model_validate(link)
    if domain is not None:
        response.link = f"https://{domain}/{link.address}"
    return response


@router.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await ctx.database.execute(text("SELECT 1"))
    except Exception as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=db_status, database=db_status)


@api_router.post("", response_model=LinkResponse, response_model_exclude_none=True)
async def create_link(
    payload: LinkCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    ctx.add_tag("link_creation")
    ctx.logger.info(f"Link creation requested for {payload.target}")

    try:
        link = await service.create_link(payload)
    except ExpiryOutOfRangeError as exc:
        ctx.logger.warning(f"Rejected link creation: {exc}")
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except AddressCollisionError as exc:
        if payload.address is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        # Every generated address collided; worth retrying from the client.
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not allocate an address, try again",
        ) from exc

    ctx.logger.info(f"Link {link.address} created in {ctx.get_duration():.1f}ms")
    return _to_response(link, payload.domain)


@api_router.get("/{link_id}", response_model=LinkResponse, response_model_exclude_none=True)
async def get_link(
    link_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    try:
        parsed_id = uuid.UUID(link_id)
    except ValueError:
        parsed_id = None

    link = await service.get_link(parsed_id) if parsed_id is not None else None
    if link is None:
        ctx.logger.warning(f"Link not found: {link_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link not found")
    return _to_response(link)


@redirect_router.get("/{address}")
async def redirect_to_target(
    address: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> RedirectResponse:
    ctx.add_tag("redirect")
    location = await service.resolve(address)
    ctx.logger.debug(f"Redirect {address} -> {location} in {ctx.get_duration():.1f}ms")
    return RedirectResponse(url=location, status_code=status.HTTP_302_FOUND)


router.include_router(api_router)
router.include_router(redirect_router)
