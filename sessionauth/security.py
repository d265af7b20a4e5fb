"""Credential signing and password utilities."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from sessionauth.config import MIN_SECRET_BYTES, AuthConfig
from sessionauth.exceptions import InvalidCredentialError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        password_bytes = password.encode("utf-8")
        hashed_bytes = hashed_password.encode("utf-8")
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        return False


class CredentialIssuer:
    """Signs and verifies access and refresh credentials.

    One symmetric key is fixed for the lifetime of the issuer and is used
    both to sign and to verify. The issuer holds no per-token state.
    """

    def __init__(
        self,
        secret: str,
        access_ttl_seconds: int,
        refresh_ttl_seconds: int,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ValueError(f"Signing key must be at least {MIN_SECRET_BYTES} bytes")
        self._secret = secret
        self._algorithm = algorithm
        self._access_ttl = access_ttl_seconds
        self._refresh_ttl = refresh_ttl_seconds
        self._clock = clock

    @classmethod
    def from_config(cls, config: AuthConfig, clock: Callable[[], float] = time.time) -> "CredentialIssuer":
        return cls(
            secret=config.JWT_SECRET,
            access_ttl_seconds=config.access_ttl_seconds,
            refresh_ttl_seconds=config.refresh_ttl_seconds,
            algorithm=config.JWT_ALGORITHM,
            clock=clock,
        )

    @property
    def access_ttl(self) -> int:
        return self._access_ttl

    @property
    def refresh_ttl(self) -> int:
        return self._refresh_ttl

    def issue_access(self, user_id: str, email: str | None, name: str | None, active: bool) -> str:
        now = int(self._clock())
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "email": email,
            "name": name,
            "active": bool(active),
            "type": ACCESS_TOKEN_TYPE,
            "jti": uuid4().hex,
            "iat": now,
            "exp": now + self._access_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_refresh(self, user_id: str) -> str:
        now = int(self._clock())
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "type": REFRESH_TOKEN_TYPE,
            # Keeps two refresh tokens minted in the same second distinct.
            "jti": uuid4().hex,
            "iat": now,
            "exp": now + self._refresh_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """Check signature, structure and expiry; return the claims.

        Expiry is judged against the issuer's clock, the same one used by
        ``is_expired`` and the session stores.
        """
        try:
            claims = self._decode_claims(token)
        except JWTError as exc:
            raise InvalidCredentialError("Invalid token") from exc
        if not claims.get("sub"):
            raise InvalidCredentialError("Invalid token payload")
        exp = claims.get("exp")
        if not isinstance(exp, int):
            raise InvalidCredentialError("Invalid token payload")
        if exp <= self._clock():
            raise InvalidCredentialError("Token expired")
        return claims

    def verify_access(self, token: str) -> dict[str, Any]:
        claims = self.verify(token)
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidCredentialError("Invalid access token")
        return claims

    def verify_refresh(self, token: str) -> dict[str, Any]:
        claims = self.verify(token)
        if claims.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidCredentialError("Invalid refresh token")
        return claims

    def _decode_claims(self, token: str) -> dict[str, Any]:
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            options={"verify_exp": False},
        )

    def expires_at(self, token: str) -> int:
        """Return the token's own ``exp``.

        Falls back to a full access lifetime from now when the token cannot
        be read, so a revocation row always outlives the credential.
        """
        try:
            return int(self._decode_claims(token)["exp"])
        except (JWTError, KeyError, TypeError, ValueError) as exc:
            logger.error(f"Could not read token expiry: {exc}")
            return int(self._clock()) + self._access_ttl

    def is_expired(self, token: str) -> bool:
        try:
            exp = int(self._decode_claims(token)["exp"])
        except (JWTError, KeyError, TypeError, ValueError):
            return True
        return exp <= self._clock()
