"""ORM models for the registry database."""

from .base import Base
from .datasource import DataSource

__all__ = ["Base", "DataSource"]
