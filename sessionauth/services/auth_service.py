"""Login, refresh and logout orchestration on top of the session manager."""

from __future__ import annotations

import logging
from typing import Any

from sessionauth.exceptions import AuthException, SessionError
from sessionauth.interfaces.user_store import UserStore
from sessionauth.models import Identity, RevocationReason, Session, TokenPair
from sessionauth.security import verify_password
from sessionauth.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, user_store: UserStore, session_manager: SessionManager) -> None:
        self._users = user_store
        self._sessions = session_manager

    async def login(
        self,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> dict[str, Any]:
        user = await self._users.get_by_email(email)
        hashed = user.get("hashed_password") if user else None
        if not user or not hashed or not verify_password(password, hashed):
            logger.warning("Failed login attempt")
            raise AuthException("Invalid credentials", status_code=401)

        if not user.get("active", True):
            raise AuthException("Account inactive", status_code=403)

        tokens = await self._sessions.create_session(user, ip_address, user_agent)
        logger.info(f"User {user['id']} logged in")
        return {"user": user, "tokens": tokens}

    async def refresh(
        self,
        refresh_token: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> TokenPair:
        result = await self._sessions.rotate(refresh_token, ip_address, user_agent)
        if result.error is SessionError.REUSE_DETECTED:
            # Reported separately so the account can be flagged.
            logger.error("Refresh token replay; all sessions for the account were revoked")
        return result.unwrap()

    async def logout(self, identity: Identity, ip_address: str | None = None) -> None:
        await self._sessions.revoke(
            identity.token,
            identity.user_id,
            identity.email,
            RevocationReason.LOGOUT,
            ip_address,
        )

    async def logout_all(self, identity: Identity, ip_address: str | None = None) -> int:
        removed = await self._sessions.revoke_all_sessions(identity.user_id, RevocationReason.LOGOUT)
        await self.logout(identity, ip_address)
        return removed

    async def list_sessions(self, identity: Identity) -> list[Session]:
        return await self._sessions.list_active_sessions(identity.user_id)

    async def count_sessions(self, identity: Identity) -> int:
        return await self._sessions.count_active_sessions(identity.user_id)

    async def revoke_session(self, identity: Identity, refresh_token: str) -> None:
        """Log one of the caller's own devices out."""
        if not await self._sessions.revoke_session(refresh_token, user_id=identity.user_id):
            raise SessionError.NOT_FOUND.to_exception()
