"""Data access objects for the registry database."""

from .datasource_repository import DataSourceRepository

__all__ = ["DataSourceRepository"]
