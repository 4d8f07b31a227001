"""Resolve a project id into plaintext connection parameters."""
from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.orm import sessionmaker

from datachat.core.errors import ConfigurationError, DataSourceNotFoundError, DecryptionError
from datachat.core.log import get_logger
from datachat.core.security import EncryptionService
from datachat.repositories import DataSourceRepository

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ConnectionParams:
    """Decrypted, request-scoped connection parameters for a target database."""

    host: str
    port: int
    database_name: str
    username: str
    password: str = field(default="", repr=False)

    def describe(self) -> str:
        """Safe-to-log description (no user name or password)."""

        return f"{self.host}:{self.port}/{self.database_name}"


class CredentialResolver:
    """Look up a registered data source and decrypt its secrets in memory.

    Each secret field is decrypted on its own. A field that does not decrypt
    is assumed to be a legacy plaintext value and is returned as stored.
    """

    def __init__(self, session_factory: sessionmaker, encryption: EncryptionService) -> None:
        self._session_factory = session_factory
        self._encryption = encryption

    def resolve(self, project_id: str, owner_id: int | None = None) -> ConnectionParams:
        """Return connection parameters for ``project_id``.

        When ``owner_id`` is given, a data source owned by somebody else is
        reported exactly like a missing one.
        """

        with self._session_factory() as session:
            record = DataSourceRepository(session).get_by_project_id(project_id)
            if record is None or (owner_id is not None and record.user_id != owner_id):
                raise DataSourceNotFoundError(project_id)

            params = ConnectionParams(
                host=self._reveal(record.host, "host", project_id),
                port=int(record.port or 5432),
                database_name=self._reveal(record.database_name, "database_name", project_id),
                username=self._reveal(record.username, "username", project_id),
                password=self._reveal(record.password, "password", project_id),
            )

        missing = [
            name
            for name in ("host", "database_name", "username")
            if not getattr(params, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Data source '{project_id}' is missing credentials: {', '.join(missing)}"
            )
        return params

    def _reveal(self, value: str | None, field_name: str, project_id: str) -> str:
        if not value:
            return ""
        try:
            return self._encryption.decrypt(value)
        except DecryptionError:
            logger.warning(
                "Field %s of data source %s is not encrypted; using the stored value",
                field_name,
                project_id,
            )
            return value
