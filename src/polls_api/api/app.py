"""
polls_api.api.app

FastAPI app factory.

Responsibilities:
- Build the service locator (dependency-injection root) and validate the graph.
- Register middleware, error rendering, probes and the access pipeline routes.
- Connect and dispose the database around the app lifespan.

`create_app` raises when configuration is unusable (role table, cost factor,
construction cycles) so the process never starts serving in that state.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_500_INTERNAL_SERVER_ERROR

from polls_api import __version__
from polls_api.api.routers.health import router as health_router
from polls_api.errors import ServiceError, ValidationError
from polls_api.observability.logging import configure_logging, get_logger
from polls_api.observability.middleware import RequestContextMiddleware
from polls_api.services.locator import ServiceLocator
from polls_api.settings import Settings

log = get_logger(__name__)

SERVER_ERROR_BODY = {
    "errors": [{"error": "server_error", "error_description": "Internal server error"}]
}


def error_body(exc: ServiceError) -> dict:
    error = {"error": exc.code, "error_description": exc.description}
    if isinstance(exc, ValidationError) and exc.fields:
        error["fields"] = exc.fields
    return {"errors": [error]}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        log.error("internal_error", code=exc.code, exc_info=exc)
        return JSONResponse(SERVER_ERROR_BODY, status_code=HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == HTTP_401_UNAUTHORIZED else None
    return JSONResponse(error_body(exc), status_code=exc.status_code, headers=headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Store outages and library faults: log for operators, reveal nothing to callers.
    log.error("unhandled_error", error_type=type(exc).__name__, exc_info=exc)
    return JSONResponse(SERVER_ERROR_BODY, status_code=HTTP_500_INTERNAL_SERVER_ERROR)


def create_app(*, settings: Settings, locator: ServiceLocator | None = None) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    locator = locator or ServiceLocator(settings)
    # Build the whole graph now: invalid role tables or cost factors abort startup.
    locator.resolve()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, services=list(locator.loaded()))
        await locator.db.connect()
        try:
            yield
        finally:
            await locator.db.disconnect()
            log.info("shutdown")

    app = FastAPI(
        title="Polls API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.locator = locator

    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(health_router, tags=["health"])
    locator.controllers.mount(app)

    return app
