"""Main FastAPI application for the challan notifier."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notifier.adapters.registry import AdapterRegistry
from notifier.services import BroadcastChannel, CallbackIngestor, StatusStore
from notifier.types import MessagingAdapter

from .config import Settings, get_settings
from .logging_config import configure_logging, logger
from .routes import api_router


# Register global exception handlers for consistent error responses across the API
def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers for 422, HTTP, and 500 errors."""

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.debug("validation error", extra={"errors": exc.errors(), "path": str(request.url)})
        return JSONResponse(
            {"ok": False, "error": "Invalid request", "detail": _jsonable_errors(exc)},
            status_code=422,
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        logger.debug(
            "http error",
            extra={"detail": exc.detail, "status": exc.status_code, "path": str(request.url)},
        )
        detail = exc.detail
        if not isinstance(detail, str):
            detail = json.dumps(detail)
        return JSONResponse({"ok": False, "error": detail}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": str(request.url)})
        return JSONResponse(
            {"ok": False, "error": "Internal server error"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def _jsonable_errors(exc: RequestValidationError) -> list:
    return json.loads(json.dumps(exc.errors(), default=str))


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    logger.info("Starting notifier server", extra={"version": settings.app_version, "env": settings.env})
    if not app.state.adapter.is_configured():
        logger.warning("WhatsApp credentials not configured; outbound sends will be refused")
    yield
    logger.info("Shutting down notifier server")
    channel: BroadcastChannel = app.state.broadcast
    channel.close_all()
    logger.info("Notifier server shutdown complete", extra={"statuses": len(app.state.status_store)})


def create_app(
    settings: Optional[Settings] = None,
    adapter: Optional[MessagingAdapter] = None,
    store: Optional[StatusStore] = None,
) -> FastAPI:
    """Build the app and the services it owns for the life of the process."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=settings.resolved_docs_url,
        redoc_url=None,
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    status_store = store if store is not None else StatusStore()
    provider = adapter if adapter is not None else AdapterRegistry.get("whatsapp")
    app.state.settings = settings
    app.state.status_store = status_store
    app.state.broadcast = BroadcastChannel(status_store)
    app.state.adapter = provider
    app.state.ingestor = CallbackIngestor(provider, status_store)

    app.include_router(api_router)
    return app


app = create_app()


__all__ = ["app", "create_app"]
