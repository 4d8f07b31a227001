"""FastAPI routers for the data chat service."""

from datachat.nl2sql.router import router as ai_router

from .datasources import router as datasources_router

__all__ = [
    "ai_router",
    "datasources_router",
]
