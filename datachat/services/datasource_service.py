"""Registration and inspection of user data sources."""
from __future__ import annotations

from sqlalchemy.orm import sessionmaker

from datachat.core.errors import ConfigurationError, DataSourceNotFoundError, DecryptionError
from datachat.core.log import get_logger, log_context, timeit
from datachat.core.security import EncryptionService
from datachat.db import session_scope
from datachat.models import DataSource
from datachat.nl2sql.connection import ConnectionManager
from datachat.nl2sql.credentials import ConnectionParams, CredentialResolver
from datachat.nl2sql.executor import QueryExecutor, QueryResult
from datachat.nl2sql.schema_introspector import list_tables
from datachat.nl2sql.sql_validator import SQLSafetyValidator
from datachat.repositories import DataSourceRepository
from datachat.schemas import ConnectionTestRequest, DataSourceCreate, DataSourceSummary

LOGGER = get_logger(__name__)

_SECRET_FIELDS = ("host", "database_name", "username", "password")


def params_from_request(payload: ConnectionTestRequest) -> ConnectionParams:
    return ConnectionParams(
        host=payload.host,
        port=payload.port,
        database_name=payload.database_name,
        username=payload.username,
        password=payload.password,
    )


class DataSourceService:
    """CRUD and ad hoc access for registered databases.

    Every database touch goes through ``ConnectionManager`` so the same
    per-request pool rules apply here as in the question pipeline.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        encryption: EncryptionService,
        connection_manager: ConnectionManager,
        *,
        resolver: CredentialResolver | None = None,
        validator: SQLSafetyValidator | None = None,
        executor: QueryExecutor | None = None,
        schema: str = "public",
    ) -> None:
        self._session_factory = session_factory
        self._encryption = encryption
        self._connections = connection_manager
        self._resolver = resolver or CredentialResolver(session_factory, encryption)
        self._validator = validator or SQLSafetyValidator()
        self._executor = executor or QueryExecutor()
        self._schema = schema

    def test_connection(self, params: ConnectionParams) -> None:
        """Open and close one connection; raises ``ConnectivityError`` on failure."""

        with timeit(f"Connection test for {params.describe()}", logger=LOGGER):
            with self._connections.connect(params) as connection:
                connection.exec_driver_sql("SELECT 1")

    def register(self, user_id: int, payload: DataSourceCreate) -> DataSourceSummary:
        """Verify connectivity, then store the data source with encrypted secrets."""

        with log_context.scope(project_id=payload.project_id):
            with self._session_factory() as session:
                if DataSourceRepository(session).get_by_project_id(payload.project_id) is not None:
                    raise ConfigurationError(
                        f"Data source '{payload.project_id}' is already registered"
                    )

            self.test_connection(params_from_request(payload))

            values = {name: self._encryption.encrypt(getattr(payload, name)) for name in _SECRET_FIELDS}
            with session_scope(self._session_factory) as session:
                record = DataSourceRepository(session).add(
                    DataSource(
                        user_id=user_id,
                        project_id=payload.project_id,
                        port=payload.port,
                        kind=payload.kind,
                        **values,
                    )
                )
                summary = DataSourceSummary(
                    id=record.id,
                    project_id=record.project_id,
                    kind=record.kind,
                    database=payload.database_name,
                )
            LOGGER.info("Registered data source for user %s", user_id)
            return summary

    def list_for_user(self, user_id: int) -> list[DataSourceSummary]:
        with self._session_factory() as session:
            records = DataSourceRepository(session).list_for_user(user_id)
            return [
                DataSourceSummary(
                    id=record.id,
                    project_id=record.project_id,
                    kind=record.kind,
                    database=self._reveal(record.database_name),
                )
                for record in records
            ]

    def delete(self, user_id: int, datasource_id: int) -> None:
        with session_scope(self._session_factory) as session:
            repository = DataSourceRepository(session)
            record = repository.get_by_id(datasource_id)
            if record is None or record.user_id != user_id:
                raise DataSourceNotFoundError(str(datasource_id))
            repository.delete(record)
        LOGGER.info("Deleted data source %s", datasource_id)

    def list_tables(self, project_id: str, owner_id: int | None = None) -> list[str]:
        params = self._resolver.resolve(project_id, owner_id)
        with log_context.scope(project_id=project_id):
            return self._connections.with_connection(
                params, lambda connection: list_tables(connection, self._schema)
            )

    def run_sql(self, project_id: str, sql: str, owner_id: int | None = None) -> QueryResult:
        """Execute caller-supplied SQL under the same safety rules as generated SQL."""

        self._validator.validate(sql)
        params = self._resolver.resolve(project_id, owner_id)
        with log_context.scope(project_id=project_id):
            return self._connections.with_connection(
                params, lambda connection: self._executor.execute(connection, sql)
            )

    def _reveal(self, value: str) -> str:
        try:
            return self._encryption.decrypt(value)
        except DecryptionError:
            return value
