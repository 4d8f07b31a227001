"""Service configuration loaded from the environment."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_FALSEY = {"0", "false", "False", "no", "off"}


@dataclass(slots=True)
class DatabaseSettings:
    """Connection details for the registry database holding data sources."""

    url: str
    echo: bool = False


@dataclass(slots=True)
class AuthSettings:
    """Bearer-token verification settings."""

    secret_key: str
    algorithm: str = "HS256"
    enabled: bool = True
    default_user_id: int = 1


@dataclass(slots=True)
class EncryptionSettings:
    """Key material for credentials stored at rest.

    Deliberately independent from ``AuthSettings.secret_key``.
    """

    key: str


@dataclass(slots=True)
class TargetPoolSettings:
    """Limits applied to every ad hoc pool opened against a user database."""

    pool_size: int = 20
    connect_timeout: int = 2
    pool_recycle: int = 30
    statement_timeout_ms: int = 15000
    schema: str = "public"
    max_rows: int = 1000


@dataclass(slots=True)
class Settings:
    """Top-level configuration container."""

    database: DatabaseSettings
    auth: AuthSettings
    encryption: EncryptionSettings
    target: TargetPoolSettings

    @classmethod
    def from_env(cls) -> "Settings":
        """Load configuration values from environment variables."""

        def _get_env(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _get_int(name: str, default: int) -> int:
            raw = _get_env(name, str(default)).strip()
            try:
                return int(raw)
            except ValueError as exc:
                raise ValueError(f"{name} must be an integer, got {raw!r}") from exc

        database = DatabaseSettings(
            url=_get_env("REGISTRY_DATABASE_URL", "sqlite:///./datachat.db"),
            echo=_get_env("SQLALCHEMY_ECHO", "0") not in _FALSEY,
        )
        auth = AuthSettings(
            secret_key=_get_env("JWT_SECRET_KEY", "change-me"),
            algorithm=_get_env("JWT_ALGORITHM", "HS256"),
            enabled=_get_env("AUTH_ENABLED", "1") not in _FALSEY,
            default_user_id=_get_int("DEFAULT_USER_ID", 1),
        )
        encryption = EncryptionSettings(
            key=_get_env("CREDENTIALS_ENCRYPTION_KEY", "change-me-too"),
        )
        target = TargetPoolSettings(
            pool_size=_get_int("TARGET_POOL_SIZE", 20),
            connect_timeout=_get_int("TARGET_CONNECT_TIMEOUT", 2),
            pool_recycle=_get_int("TARGET_POOL_RECYCLE", 30),
            statement_timeout_ms=_get_int("TARGET_STATEMENT_TIMEOUT_MS", 15000),
            schema=_get_env("TARGET_SCHEMA", "public"),
            max_rows=_get_int("TARGET_MAX_ROWS", 1000),
        )
        return cls(database=database, auth=auth, encryption=encryption, target=target)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    settings = Settings.from_env()

    # Import locally to avoid circular dependencies during module import time.
    from .log import get_logger

    logger = get_logger(__name__)
    logger.debug(
        "Settings initialised",
        extra={
            "registry_url": settings.database.url.split("@")[-1],
            "auth_enabled": settings.auth.enabled,
            "target": {
                "pool_size": settings.target.pool_size,
                "connect_timeout": settings.target.connect_timeout,
                "statement_timeout_ms": settings.target.statement_timeout_ms,
                "schema": settings.target.schema,
                "max_rows": settings.target.max_rows,
            },
        },
    )
    return settings
