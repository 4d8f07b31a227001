"""Per-request connection pools against user-registered databases.

Every call builds a fresh, small pool, checks out a single connection for the
duration of the work and disposes of the whole pool on the way out, whatever
the outcome. Pools are never shared across requests, so one slow or hostile
database cannot starve the others.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Callable, Iterator, Optional, TypeVar

from sqlalchemy import create_engine, exc
from sqlalchemy.engine import URL, Connection, Engine

from datachat.core.config import TargetPoolSettings
from datachat.core.errors import ConnectivityError
from datachat.core.log import get_logger

from .credentials import ConnectionParams

logger = get_logger(__name__)

EngineFactory = Callable[[ConnectionParams], Engine]
T = TypeVar("T")


def build_target_url(params: ConnectionParams) -> URL:
    """Build a PostgreSQL URL without string-formatting secrets."""

    return URL.create(
        "postgresql+psycopg2",
        username=params.username,
        password=params.password or None,
        host=params.host,
        port=params.port,
        database=params.database_name,
    )


def driver_message(error: exc.SQLAlchemyError) -> str:
    """Return the DBAPI's own message when there is one."""

    orig = getattr(error, "orig", None)
    message = str(orig) if orig is not None else str(error)
    return message.strip() or error.__class__.__name__


class ConnectionManager:
    """Open scoped connections with guaranteed pool teardown."""

    def __init__(
        self,
        settings: TargetPoolSettings,
        engine_factory: Optional[EngineFactory] = None,
    ) -> None:
        self._settings = settings
        self._engine_factory = engine_factory or self.create_engine

    def create_engine(self, params: ConnectionParams) -> Engine:
        """Default factory: a bounded PostgreSQL pool with fail-fast timeouts."""

        s = self._settings
        return create_engine(
            build_target_url(params),
            pool_size=s.pool_size,
            max_overflow=0,
            pool_timeout=s.connect_timeout,
            pool_recycle=s.pool_recycle,
            connect_args={
                "connect_timeout": s.connect_timeout,
                "options": f"-c statement_timeout={s.statement_timeout_ms}",
                "application_name": "datachat",
            },
            execution_options={
                "postgresql_readonly": True,
                "stream_results": True,
                "max_row_buffer": max(s.max_rows, 100),
            },
        )

    @contextmanager
    def connect(self, params: ConnectionParams) -> Iterator[Connection]:
        """Yield one checked-out connection; dispose of the pool on exit."""

        engine = self._engine_factory(params)
        logger.debug("Opened pool for %s", params.describe())
        try:
            try:
                connection = engine.connect()
            except (exc.DBAPIError, exc.TimeoutError) as error:
                logger.warning("Could not connect to %s: %s", params.describe(), driver_message(error))
                raise ConnectivityError(driver_message(error)) from error
            try:
                yield connection
            finally:
                connection.close()
        finally:
            engine.dispose()
            logger.debug("Disposed pool for %s", params.describe())

    @asynccontextmanager
    async def aconnect(self, params: ConnectionParams) -> AsyncIterator[Connection]:
        """Async form of :meth:`connect` for coroutine callers.

        Connecting, closing and disposing run in worker threads, so a slow or
        unreachable database never holds the event loop. Work done on the
        yielded connection must be dispatched the same way.
        """

        engine = self._engine_factory(params)
        logger.debug("Opened pool for %s", params.describe())
        try:
            try:
                connection = await asyncio.to_thread(engine.connect)
            except (exc.DBAPIError, exc.TimeoutError) as error:
                logger.warning("Could not connect to %s: %s", params.describe(), driver_message(error))
                raise ConnectivityError(driver_message(error)) from error
            try:
                yield connection
            finally:
                await asyncio.to_thread(connection.close)
        finally:
            await asyncio.to_thread(engine.dispose)
            logger.debug("Disposed pool for %s", params.describe())

    def with_connection(self, params: ConnectionParams, fn: Callable[[Connection], T]) -> T:
        """Run ``fn`` with a scoped connection and return its result."""

        with self.connect(params) as connection:
            return fn(connection)
