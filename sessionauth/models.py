"""Session and revocation records.

Timestamps are Unix epoch seconds, matching the integer columns the
stores persist.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sessionauth.exceptions import SessionError


class RevocationReason(str, Enum):
    LOGOUT = "logout"
    REUSE_DETECTED = "reuse_detected"
    SECURITY = "security"


@dataclass
class Session:
    """Refresh session row. ``used`` only ever moves from False to True."""

    token: str
    user_id: str
    email: str | None
    created_at: int
    expires_at: int
    ip_address: str | None = None
    user_agent: str | None = None
    used: bool = False
    last_used_at: int | None = None

    def __post_init__(self) -> None:
        if self.expires_at <= self.created_at:
            raise ValueError("Session must expire after it is issued")

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


@dataclass
class RevokedCredential:
    token: str
    user_id: str
    email: str | None
    reason: RevocationReason
    revoked_at: int
    expires_at: int
    ip_address: str | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    subject_id: str
    token_type: str = "Bearer"


@dataclass
class SessionResult:
    """Either a fresh token pair or the reason rotation failed."""

    tokens: TokenPair | None = None
    error: SessionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> TokenPair:
        if self.error is not None:
            raise self.error.to_exception()
        if self.tokens is None:
            raise ValueError("SessionResult carries neither tokens nor an error")
        return self.tokens


@dataclass(frozen=True)
class Identity:
    """Caller identity bound to a request by the authentication gate."""

    user_id: str
    email: str | None
    token: str
    roles: tuple[str, ...] = field(default=("USER",))
