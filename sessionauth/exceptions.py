"""Auth exceptions and session error kinds."""

from __future__ import annotations

from enum import Enum


class AuthException(Exception):
    """Base auth exception with HTTP status."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidCredentialError(AuthException):
    """Bad signature, malformed token, elapsed expiry or wrong claim type."""

    def __init__(self, message: str = "Invalid credential"):
        super().__init__(message, status_code=401)


class SessionError(str, Enum):
    """Outcomes of a failed session operation.

    SessionManager returns these instead of raising, the transport layer
    decides how each one is reported.
    """

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    INVALID_CREDENTIAL = "invalid_credential"
    REUSE_DETECTED = "reuse_detected"

    @property
    def status_code(self) -> int:
        return 404 if self is SessionError.NOT_FOUND else 401

    @property
    def message(self) -> str:
        return _SESSION_ERROR_MESSAGES[self]

    def to_exception(self) -> AuthException:
        return AuthException(self.message, status_code=self.status_code)


_SESSION_ERROR_MESSAGES = {
    SessionError.NOT_FOUND: "Refresh session not found",
    SessionError.EXPIRED: "Refresh token expired",
    SessionError.INVALID_CREDENTIAL: "Invalid refresh token",
    SessionError.REUSE_DETECTED: "Refresh token reuse detected",
}
