"""FastAPI application entry point for the link shortener.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_app()│
    │ container,  │
    │ routes      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ create      │
    │ tables,     │
    │ start follow│
    │ consumer    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ drain + stop│
    │ consumer,   │
    │ dispose db  │
    └─────────────┘

How to Use
===========
**Step 1 — Configure**::
    export SECRET="something long"
    export BASE_URL="https://mtrx.to/"

**Step 2 — Run**::
    linkshort
    # or
    uvicorn --factory linkshort.main:create_app --host 0.0.0.0 --port 8080

**Step 3 — Make API calls**::
    curl -X POST http://localhost:8080/_create \
         -d '{"long_url": "https://example.com", "secret": "something long"}'

Key Behaviours
===============
- Tables are created on startup; startup fails when SECRET is empty.
- Every API response carries Content-Type: application/json and permissive CORS
  headers; /metrics and the generated docs pages keep their own content type.
- OPTIONS on any path is answered directly for CORS preflight.
- The three error counters and HTTP metrics are exposed at /metrics.
"""

__all__ = ["create_app", "run"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from linkshort.config import Settings, get_settings
from linkshort.dependencies import ServiceContainer
from linkshort.errors import LinkShortError
from linkshort.routes import health_router, router
from linkshort.schemas import ErrorResponse

METRICS_PATH = "/metrics"

RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type, Accept",
}


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    container = ServiceContainer(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await container.initialize()
        yield
        await container.cleanup()

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="A small link shortener with asynchronous follow logging",
        lifespan=lifespan,
    )
    app.state.container = container
    passthrough_paths = {METRICS_PATH, app.docs_url, app.redoc_url, app.openapi_url, app.swagger_ui_oauth2_redirect_url}

    @app.exception_handler(LinkShortError)
    async def render_error(request: Request, exc: LinkShortError) -> JSONResponse:
        if exc.status_code >= 500:
            # Internal details stay in the log; the client sees the generic message.
            container.logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
            message = type(exc).message
        else:
            message = exc.message
        return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=message).model_dump())

    @app.middleware("http")
    async def apply_headers(request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)
        if request.url.path not in passthrough_paths:
            response.headers.update(RESPONSE_HEADERS)
        return response

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
        excluded_handlers=[METRICS_PATH],
        registry=container.stats.registry,
    ).instrument(app).expose(app, endpoint=METRICS_PATH)

    app.include_router(health_router)
    app.include_router(router, prefix=settings.base_path.rstrip("/"))
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "linkshort.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
