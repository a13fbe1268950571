"""FastAPI route definitions for the URL shortener REST API.

This module provides all HTTP endpoints with dependency injection and response
serialization. Link store errors are not caught here; the exception handlers
registered in app/main.py translate them into HTTP responses.

API Endpoint Overview
=====================
::
    GET    /health
        └─ HealthResponse (200)

    POST   /api/shorten
        ├─ ShortenRequest (request body)
        └─ LinkResponse (201) or 422/503

    GET    /api/:code[?json=true]
        └─ Redirect, URLLookupResponse (200) or 404

    GET    /admin/all                      (basic auth)
        └─ LinkListResponse (200) or 401

    PUT    /admin/:code                    (basic auth)
        ├─ UpdateRequest (request body)
        └─ LinkResponse (200) or 401/404/422

    DELETE /admin/:code                    (basic auth)
        └─ 204 or 401/404

    GET    /:code
        └─ Redirect or 404

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  HTTP       │
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Middleware  │
    │ (request id,│
    │  logging)   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Validate &  │
    │ Parse       │
    │ (Pydantic)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Inject      │
    │ Context &   │
    │ LinkStore   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ LinkStore   │
    │ operation   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ HTTP        │
    │ Response    │
    └─────────────┘

Key Behaviours
===============
- All endpoints use async/await for non-blocking I/O.
- Admin routes share one router guarded by HTTP basic auth.
- Redirects use REDIRECT_STATUS_CODE (301 by default).
- The catch-all ``/{code}`` route is registered last.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import RedirectResponse

from app.dependencies import (
    RequestContext,
    ServiceManager,
    get_link_store,
    get_request_context,
    get_service_manager,
    require_admin,
)
from app.link_store import LinkStore
from app.schemas import (
    HealthResponse,
    LinkListResponse,
    LinkResponse,
    ShortenRequest,
    UpdateRequest,
    URLLookupResponse,
)

__all__ = ["router"]

router = APIRouter()
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(manager: ServiceManager = Depends(get_service_manager)) -> HealthResponse:
    return HealthResponse(status=await manager.check_store_health())


@router.post("/api/shorten", response_model=LinkResponse, status_code=status.HTTP_201_CREATED, tags=["urls"])
async def shorten_url(
    payload: ShortenRequest,
    ctx: RequestContext = Depends(get_request_context),
    store: LinkStore = Depends(get_link_store),
) -> LinkResponse:
    ctx.logger.info(f"URL shortening requested: {payload.url}")
    code = await store.create_link(payload.url)
    ctx.logger.info(f"URL shortened: {code} in {ctx.get_duration():.1f}ms")
    return LinkResponse.build(code, payload.url, ctx.settings.BASE_URL)


@router.get("/api/{code}", tags=["urls"], response_model=None)
async def get_shortened_url(
    code: str,
    json: str | None = Query(None, description="Pass 'true' to get the URL as JSON instead of a redirect"),
    ctx: RequestContext = Depends(get_request_context),
    store: LinkStore = Depends(get_link_store),
) -> URLLookupResponse | RedirectResponse:
    url = await store.get_url(code)
    if json == "true":
        return URLLookupResponse(url=url)
    return RedirectResponse(url=url, status_code=ctx.settings.REDIRECT_STATUS_CODE)


@admin_router.get("/all", response_model=LinkListResponse)
async def list_links(
    ctx: RequestContext = Depends(get_request_context),
    store: LinkStore = Depends(get_link_store),
) -> LinkListResponse:
    links = await store.list_links()
    ctx.logger.info(f"Listed {len(links)} links")
    return LinkListResponse(urls=links)


@admin_router.put("/{code}", response_model=LinkResponse)
async def update_link(
    code: str,
    payload: UpdateRequest,
    ctx: RequestContext = Depends(get_request_context),
    store: LinkStore = Depends(get_link_store),
) -> LinkResponse:
    code = await store.update_link(code, payload.new_url)
    return LinkResponse.build(code, payload.new_url, ctx.settings.BASE_URL)


@admin_router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(code: str, store: LinkStore = Depends(get_link_store)) -> Response:
    await store.delete_link(code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


router.include_router(admin_router)


@router.get("/{code}", tags=["redirect"])
async def redirect_to_url(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    store: LinkStore = Depends(get_link_store),
) -> RedirectResponse:
    url = await store.get_url(code)
    return RedirectResponse(url=url, status_code=ctx.settings.REDIRECT_STATUS_CODE)
