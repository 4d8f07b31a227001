"""Exception taxonomy shared by the query pipeline and the API layer."""
from __future__ import annotations


class DataChatError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500


class ConfigurationError(DataChatError):
    """Unknown project id, missing credentials or an invalid registration."""

    status_code = 400


class DataSourceNotFoundError(ConfigurationError):
    """No data source is registered under the requested project id."""

    status_code = 404

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Data source '{project_id}' not found")
        self.project_id = project_id


class ConnectivityError(DataChatError):
    """The target database could not be reached."""

    status_code = 502


class GenerationError(DataChatError):
    """The LLM call failed or returned unusable content."""

    status_code = 502


class SQLValidationError(DataChatError, ValueError):
    """The safety validator refused to run a statement."""

    status_code = 422

    def __init__(self, reason: str) -> None:
        super().__init__(f"Unsafe SQL query rejected: {reason}")
        self.reason = reason


class ExecutionError(DataChatError):
    """The target database rejected a validated statement."""

    status_code = 400


class DecryptionError(Exception):
    """A stored value could not be decrypted with the configured key."""


__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "DataChatError",
    "DataSourceNotFoundError",
    "DecryptionError",
    "ExecutionError",
    "GenerationError",
    "SQLValidationError",
]
