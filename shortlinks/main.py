"""FastAPI application entry point for the short links service.

This module configures and initializes the FastAPI application with metrics,
lifecycle management, and route registration.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ init_db()   │
    │ reaper.start│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ SIGTERM:    │
    │ in-flight   │
    │ requests get│
    │ grace period│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ reaper.stop │
    │ close_db()  │
    └─────────────┘

How to Use
===========
**Step 1 — Run**::
    python -m shortlinks
    # or
    uvicorn shortlinks.main:app --host 0.0.0.0 --port 8000

**Step 2 — Make API calls**::
    curl -X POST http://localhost:8000/api/links \
         -H "Content-Type: application/json" \
         -H "X-API-Key: $API_KEY" \
         -d '{"target": "https://example.com", "expire_in": "2w"}'

    curl -i http://localhost:8000/abc123

Key Behaviours
===============
- The links table is created automatically on startup.
- The expiry reaper starts with the app and stops before the engine is disposed.
- Prometheus metrics are exposed at /api/metrics.
"""

__all__ = ["app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from shortlinks.config import get_settings
from shortlinks.database import close_db, init_db
from shortlinks.dependencies import _service_manager
from shortlinks.routes import router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await init_db()
    await _service_manager.start()
    yield
    # Shutdown
    await _service_manager.cleanup()
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Short links with expiry",
    lifespan=lifespan,
)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
    excluded_handlers=["/api/metrics"],
).instrument(app).expose(app, endpoint="/api/metrics")

app.include_router(router)
