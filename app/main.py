"""FastAPI application entry point for the URL shortener service.

This module configures and initializes the FastAPI application with middleware,
lifecycle management, error mapping and route registration.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ Create FastAPI│
    │ app instance │
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ Add request │
    │ id, logging,│
    │ CORS        │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Include     │
    │ routes      │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ startup:     │
    │ initialize() │
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ cleanup()   │
    └─────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn app.main:app --host 0.0.0.0 --port 8080 --reload

**Step 2 — Access interactive docs**::
    http://localhost:8080/docs

**Step 3 — Make API calls**::
    # Shorten URL
    curl -X POST http://localhost:8080/api/shorten \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com"}'

    # Resolve as JSON
    curl "http://localhost:8080/api/<code>?json=true"

    # Admin listing
    curl -u admin:admin http://localhost:8080/admin/all

Key Behaviours
===============
- The link store is built on startup from LINK_STORE_BACKEND.
- Link store errors map to HTTP: not found 404, storage 500, exhausted 503.
- Every response carries an X-Request-ID header.
- Prometheus metrics are served at /metrics.
"""

__all__ = ["app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from app.config import get_settings
from app.dependencies import _service_manager
from app.exceptions import CodeSpaceExhaustedError, LinkNotFoundError, StorageError
from app.middleware import LoggingMiddleware, RequestIDMiddleware
from app.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await _service_manager.initialize()
    yield
    # Shutdown
    await _service_manager.cleanup()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="A simple URL shortener backed by a single Redis hash",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(LinkNotFoundError)
async def link_not_found_handler(request: Request, exc: LinkNotFoundError) -> JSONResponse:
    _service_manager.logger.warning(f"Short code not found: {exc.code} ({request.method} {request.url.path})")
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "url not found"})


@app.exception_handler(CodeSpaceExhaustedError)
async def code_space_exhausted_handler(request: Request, exc: CodeSpaceExhaustedError) -> JSONResponse:
    _service_manager.logger.error(f"Short code allocation failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "could not allocate a short code, try again"},
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    _service_manager.logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "something went wrong"},
    )


Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)
