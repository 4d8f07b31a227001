"""Credential encryption and bearer-token verification."""
from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from functools import lru_cache

import jwt
from cryptography.fernet import Fernet, InvalidToken
from fastapi import HTTPException, Request, status
from jwt import ExpiredSignatureError, InvalidTokenError

from datachat.core.config import AuthSettings, get_settings
from datachat.core.errors import DecryptionError


class AuthenticationError(Exception):
    """Raised when token validation fails."""


class EncryptionService:
    """Symmetric encryption for data-source secrets stored at rest."""

    def __init__(self, key: str) -> None:
        self._fernet = Fernet(self._derive_key(key))

    @staticmethod
    def _derive_key(key: str) -> bytes:
        """Use a Fernet key as-is; stretch anything else with SHA-256."""

        raw = key.encode("utf-8")
        try:
            Fernet(raw)
            return raw
        except ValueError:
            return base64.urlsafe_b64encode(hashlib.sha256(raw).digest())

    def encrypt(self, value: str) -> str:
        if not value:
            return value
        return self._fernet.encrypt(value.encode("utf-8")).decode("ascii")

    def decrypt(self, value: str) -> str:
        if not value:
            return value
        try:
            return self._fernet.decrypt(value.encode("utf-8")).decode("utf-8")
        except (InvalidToken, UnicodeError) as exc:
            raise DecryptionError("Value is not a valid credential token") from exc


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """Representation of the authenticated principal."""

    user_id: int
    username: str | None = None


class TokenVerifier:
    """Verify JWT access tokens issued by the surrounding platform."""

    def __init__(self, settings: AuthSettings) -> None:
        self._settings = settings

    @property
    def is_enabled(self) -> bool:
        return self._settings.enabled

    def default_user(self) -> AuthenticatedUser:
        return AuthenticatedUser(user_id=self._settings.default_user_id)

    def decode_token(self, token: str) -> AuthenticatedUser:
        """Decode a JWT and return the corresponding ``AuthenticatedUser``."""

        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key,
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as exc:
            raise AuthenticationError("Token expired") from exc
        except InvalidTokenError as exc:
            raise AuthenticationError("Invalid token") from exc

        raw_user_id = payload.get("user_id", payload.get("sub"))
        try:
            user_id = int(raw_user_id)
        except (TypeError, ValueError) as exc:
            raise AuthenticationError("Token payload missing a numeric user id") from exc

        username = payload.get("username")
        return AuthenticatedUser(
            user_id=user_id,
            username=username if isinstance(username, str) else None,
        )


@lru_cache(maxsize=1)
def get_token_verifier() -> TokenVerifier:
    """Return a cached token verifier."""

    return TokenVerifier(get_settings().auth)


@lru_cache(maxsize=1)
def get_encryption_service() -> EncryptionService:
    """Return a cached encryption service built from settings."""

    return EncryptionService(get_settings().encryption.key)


def get_current_user(request: Request) -> AuthenticatedUser:
    """FastAPI dependency resolving the caller from the Authorization header."""

    verifier = get_token_verifier()
    if not verifier.is_enabled:
        return verifier.default_user()

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    try:
        return verifier.decode_token(token.strip())
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


__all__ = [
    "AuthenticatedUser",
    "AuthenticationError",
    "EncryptionService",
    "TokenVerifier",
    "get_current_user",
    "get_encryption_service",
    "get_token_verifier",
]
