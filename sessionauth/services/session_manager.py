"""Refresh session lifecycle: issuance, rotation, revocation and cleanup."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from sessionauth.exceptions import InvalidCredentialError, SessionError
from sessionauth.interfaces.revocation_store import RevocationStore
from sessionauth.interfaces.session_store import SessionStore
from sessionauth.interfaces.user_store import UserStore
from sessionauth.models import (
    RevocationReason,
    RevokedCredential,
    Session,
    SessionResult,
    TokenPair,
)
from sessionauth.security import CredentialIssuer

logger = logging.getLogger(__name__)


def _mask(token: str) -> str:
    return f"...{token[-8:]}" if len(token) > 8 else "..."


class SessionManager:
    """Sole writer of session and revocation records.

    Rotation relies on one primitive only: the store's conditional
    ``mark_used`` write. Whoever flips the flag owns the rotation, every
    other presenter of the same token is treated as a replay.
    """

    def __init__(
        self,
        issuer: CredentialIssuer,
        session_store: SessionStore,
        revocation_store: RevocationStore,
        user_store: UserStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._issuer = issuer
        self._sessions = session_store
        self._revocations = revocation_store
        self._users = user_store
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    async def create_session(
        self,
        user: dict[str, Any],
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> TokenPair:
        """Issue an access/refresh pair and persist the refresh session."""
        user_id = str(user["id"])
        access_token = self._issuer.issue_access(
            user_id,
            email=user.get("email"),
            name=user.get("name"),
            active=user.get("active", True),
        )
        refresh_token = self._issuer.issue_refresh(user_id)
        now = self._now()
        await self._sessions.create(
            Session(
                token=refresh_token,
                user_id=user_id,
                email=user.get("email"),
                created_at=now,
                expires_at=now + self._issuer.refresh_ttl,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        logger.info(f"Session created for user {user_id}")
        return TokenPair(access_token=access_token, refresh_token=refresh_token, subject_id=user_id)

    async def rotate(
        self,
        refresh_token: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionResult:
        """Exchange a refresh token for a new pair, exactly once."""
        session = await self._sessions.get(refresh_token)
        if session is None:
            logger.warning(f"Refresh attempted with unknown token {_mask(refresh_token)}")
            return SessionResult(error=SessionError.NOT_FOUND)

        now = self._now()
        if session.is_expired(now):
            logger.warning(f"Expired refresh token presented for user {session.user_id}")
            await self._sessions.delete(refresh_token)
            return SessionResult(error=SessionError.EXPIRED)

        if await self._sessions.mark_used(refresh_token, now) == 0:
            logger.error(
                f"Refresh token reuse detected for user {session.user_id}, revoking all sessions"
            )
            await self.revoke_all_sessions(session.user_id, RevocationReason.REUSE_DETECTED)
            return SessionResult(error=SessionError.REUSE_DETECTED)

        # From here on the old token is spent whatever happens next.
        try:
            claims = self._issuer.verify_refresh(refresh_token)
        except InvalidCredentialError as exc:
            logger.warning(f"Refresh credential rejected for user {session.user_id}: {exc.message}")
            return SessionResult(error=SessionError.INVALID_CREDENTIAL)
        if claims["sub"] != session.user_id:
            logger.error(f"Refresh credential subject mismatch for session of user {session.user_id}")
            return SessionResult(error=SessionError.INVALID_CREDENTIAL)

        user = await self._users.get_by_id(session.user_id)
        if user is None:
            return SessionResult(error=SessionError.NOT_FOUND)
        if not user.get("active", True):
            logger.warning(f"Refresh refused for inactive user {session.user_id}")
            return SessionResult(error=SessionError.INVALID_CREDENTIAL)

        tokens = await self.create_session(
            user,
            ip_address=ip_address if ip_address is not None else session.ip_address,
            user_agent=user_agent if user_agent is not None else session.user_agent,
        )
        logger.info(f"Refresh token rotated for user {session.user_id}")
        return SessionResult(tokens=tokens)

    async def revoke(
        self,
        access_token: str,
        user_id: str,
        email: str | None,
        reason: RevocationReason | str,
        ip_address: str | None = None,
    ) -> None:
        """Put an access credential on the revocation list until it expires."""
        reason = RevocationReason(reason)
        added = await self._revocations.add(
            RevokedCredential(
                token=access_token,
                user_id=str(user_id),
                email=email,
                reason=reason,
                revoked_at=self._now(),
                expires_at=self._issuer.expires_at(access_token),
                ip_address=ip_address,
            )
        )
        if added:
            logger.info(f"Credential revoked for user {user_id}, reason: {reason.value}")
        else:
            logger.debug(f"Credential for user {user_id} was already revoked")

    async def is_revoked(self, token: str) -> bool:
        return await self._revocations.exists(token)

    async def revoke_all_sessions(self, user_id: str, reason: RevocationReason | str) -> int:
        reason = RevocationReason(reason)
        logger.warning(f"Revoking all sessions for user {user_id}, reason: {reason.value}")
        removed = await self._sessions.delete_by_user(str(user_id))
        logger.info(f"Removed {removed} sessions for user {user_id}")
        return removed

    async def revoke_session(self, refresh_token: str, user_id: str | None = None) -> bool:
        """Drop a single refresh session (logout from one device).

        With ``user_id`` the session is only dropped when it belongs to that user.
        """
        if user_id is not None:
            session = await self._sessions.get(refresh_token)
            if session is None or session.user_id != str(user_id):
                return False
        removed = await self._sessions.delete(refresh_token)
        if removed:
            logger.info(f"Session {_mask(refresh_token)} revoked")
        return removed

    async def list_active_sessions(self, user_id: str) -> list[Session]:
        now = self._now()
        return [s for s in await self._sessions.list_by_user(str(user_id)) if s.expires_at > now]

    async def count_active_sessions(self, user_id: str) -> int:
        return await self._sessions.count_active_by_user(str(user_id), self._now())

    async def cleanup_expired_sessions(self) -> int:
        removed = await self._sessions.delete_expired(self._now())
        logger.info(f"Removed {removed} expired sessions")
        return removed

    async def cleanup_expired_revocations(self) -> int:
        removed = await self._revocations.delete_expired(self._now())
        logger.info(f"Removed {removed} expired revocations")
        return removed

    async def cleanup_expired(self) -> tuple[int, int]:
        sessions_removed = await self.cleanup_expired_sessions()
        revocations_removed = await self.cleanup_expired_revocations()
        return sessions_removed, revocations_removed

    async def statistics(self) -> dict[str, int]:
        """Counts of live sessions and revocations, for periodic reporting."""
        now = self._now()
        return {
            "active_sessions": await self._sessions.count_active(now),
            "active_revocations": await self._revocations.count_active(now),
        }
