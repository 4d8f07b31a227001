"""Natural-language questions over user-registered PostgreSQL databases."""

from .core import get_logger, get_settings

__all__ = ["get_logger", "get_settings"]
