"""Shared FastAPI dependency definitions."""
from __future__ import annotations

from functools import lru_cache

from sqlalchemy.orm import sessionmaker

from datachat.core.config import get_settings
from datachat.core.errors import ConfigurationError
from datachat.core.log import get_logger
from datachat.core.security import get_encryption_service
from datachat.db.session import get_sessionmaker
from datachat.nl2sql.connection import ConnectionManager
from datachat.nl2sql.credentials import CredentialResolver
from datachat.nl2sql.executor import QueryExecutor
from datachat.nl2sql.llm_providers import LLMProvider, LLMProviderFactory
from datachat.nl2sql.pipeline import QueryPipeline
from datachat.services import DataSourceService

LOGGER = get_logger(__name__)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    """Session factory for the registry database, shared by all requests."""

    return get_sessionmaker()


@lru_cache(maxsize=1)
def get_connection_manager() -> ConnectionManager:
    return ConnectionManager(get_settings().target)


@lru_cache(maxsize=1)
def get_llm_provider() -> LLMProvider:
    try:
        provider = LLMProviderFactory.create()
    except ValueError as exc:
        raise ConfigurationError(f"LLM provider is not configured: {exc}") from exc
    LOGGER.info("Using %s provider with model %s", provider.name, provider.model)
    return provider


def get_pipeline() -> QueryPipeline:
    settings = get_settings()
    session_factory = get_session_factory()
    return QueryPipeline(
        CredentialResolver(session_factory, get_encryption_service()),
        get_connection_manager(),
        get_llm_provider(),
        executor=QueryExecutor(max_rows=settings.target.max_rows),
        schema=settings.target.schema,
    )


def get_datasource_service() -> DataSourceService:
    settings = get_settings()
    return DataSourceService(
        get_session_factory(),
        get_encryption_service(),
        get_connection_manager(),
        executor=QueryExecutor(max_rows=settings.target.max_rows),
        schema=settings.target.schema,
    )
