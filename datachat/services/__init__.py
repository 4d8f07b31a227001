"""Service layer for data-source management."""

from .datasource_service import DataSourceService, params_from_request

__all__ = ["DataSourceService", "params_from_request"]
