from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from algolia_sync import __version__
from algolia_sync.api.routers.algolia_init import router as algolia_init_router
from algolia_sync.api.routers.algolia_webhook import router as algolia_webhook_router
from algolia_sync.api.routers.health import router as health_router
from algolia_sync.core.errors import IntegrationError, error_code_for_status
from algolia_sync.core.logging import setup_logging
from algolia_sync.core.middleware import NoContentCORSMiddleware, ObservabilityMiddleware
from algolia_sync.core.settings import settings

logger = structlog.get_logger(__name__)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": error_code_for_status(exc.status_code)},
        headers=getattr(exc, "headers", None),
    )


async def uncaught_exception_handler(request: Request, exc: Exception):
    """Last-resort boundary: log the traceback, return a well-formed 500."""
    request_id = getattr(request.state, "request_id", None)
    service = exc.service if isinstance(exc, IntegrationError) else None
    logger.exception(
        "request.unhandled_error",
        route=request.url.path,
        method=request.method,
        request_id=request_id,
        service=service,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": f"{type(exc).__name__}: {exc}",
            "code": error_code_for_status(500),
            "request_id": request_id,
        },
    )


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title=settings.APP_NAME, version=__version__)
    app.add_middleware(
        NoContentCORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(ObservabilityMiddleware, service_name=settings.APP_NAME)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, uncaught_exception_handler)

    app.include_router(health_router)
    app.include_router(algolia_init_router)
    app.include_router(algolia_webhook_router)
    return app


app = create_app()
