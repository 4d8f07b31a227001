"""FastAPI application instance and startup hooks."""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from datachat.core import get_logger
from datachat.core.errors import DataChatError
from datachat.dependencies import get_session_factory
from datachat.models import Base
from datachat.routers import ai_router, datasources_router

LOGGER = get_logger(__name__)


async def handle_datachat_error(request: Request, exc: DataChatError) -> JSONResponse:
    """Translate pipeline failures into ``{"detail", "error"}`` bodies."""

    if exc.status_code >= 500:
        LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        LOGGER.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": exc.__class__.__name__},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="Data Chat", version="0.1.0")
    app.add_exception_handler(DataChatError, handle_datachat_error)
    app.include_router(ai_router)
    app.include_router(datasources_router)

    @app.on_event("startup")
    def create_registry_tables() -> None:
        engine = get_session_factory().kw["bind"]
        Base.metadata.create_all(engine)
        LOGGER.info("Registry tables ready")

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    LOGGER.info("FastAPI application initialised")
    return app


app = create_app()
