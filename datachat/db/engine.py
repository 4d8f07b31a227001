"""Engine factory for the registry database."""
from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from datachat.core.config import get_settings
from datachat.core.log import get_logger

LOGGER = get_logger(__name__)


def create_sync_engine(url: str | None = None, **kwargs) -> Engine:
    """Create a synchronous SQLAlchemy engine using configured defaults."""

    settings = get_settings()
    resolved_url = url or settings.database.url

    options = dict(kwargs)
    options.setdefault("echo", settings.database.echo)

    masked_url = make_url(resolved_url).render_as_string(hide_password=True)
    LOGGER.debug("Creating registry engine", extra={"url": masked_url, "options": options})
    return create_engine(resolved_url, future=True, **options)
