"""In-memory auth stores."""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import Any
from uuid import uuid4

from sessionauth.models import RevokedCredential, Session


class MemoryUserStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users_by_email: dict[str, dict[str, Any]] = {}
        self._users_by_id: dict[str, dict[str, Any]] = {}

    async def get_by_email(self, email: str) -> dict | None:
        async with self._lock:
            user = self._users_by_email.get(email.lower())
            return dict(user) if user else None

    async def get_by_id(self, user_id: str) -> dict | None:
        async with self._lock:
            user = self._users_by_id.get(str(user_id))
            return dict(user) if user else None

    async def create_user(self, data: dict) -> dict:
        async with self._lock:
            payload = dict(data)
            payload["id"] = str(payload.get("id") or uuid4())
            payload["email"] = payload["email"].lower()
            if payload["email"] in self._users_by_email:
                raise ValueError("Email already exists")
            payload.setdefault("active", True)
            payload["created_at"] = payload.get("created_at", int(time.time()))
            self._users_by_email[payload["email"]] = payload
            self._users_by_id[payload["id"]] = payload
            return dict(payload)


class MemorySessionStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, Session] = {}

    async def create(self, session: Session) -> None:
        async with self._lock:
            if session.token in self._sessions:
                raise ValueError("Session token already exists")
            self._sessions[session.token] = replace(session)

    async def get(self, token: str) -> Session | None:
        async with self._lock:
            session = self._sessions.get(token)
            return replace(session) if session else None

    async def mark_used(self, token: str, used_at: int) -> int:
        async with self._lock:
            session = self._sessions.get(token)
            if session is None or session.used:
                return 0
            session.used = True
            session.last_used_at = used_at
            return 1

    async def delete(self, token: str) -> bool:
        async with self._lock:
            return self._sessions.pop(token, None) is not None

    async def delete_by_user(self, user_id: str) -> int:
        async with self._lock:
            tokens = [token for token, s in self._sessions.items() if s.user_id == user_id]
            for token in tokens:
                del self._sessions[token]
            return len(tokens)

    async def list_by_user(self, user_id: str) -> list[Session]:
        async with self._lock:
            return [replace(s) for s in self._sessions.values() if s.user_id == user_id]

    async def count_active_by_user(self, user_id: str, now: int) -> int:
        async with self._lock:
            return sum(
                1 for s in self._sessions.values() if s.user_id == user_id and s.expires_at > now
            )

    async def count_active(self, now: int) -> int:
        async with self._lock:
            return sum(1 for s in self._sessions.values() if s.expires_at > now)

    async def delete_expired(self, now: int) -> int:
        async with self._lock:
            expired = [token for token, s in self._sessions.items() if s.is_expired(now)]
            for token in expired:
                del self._sessions[token]
            return len(expired)


class MemoryRevocationStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._revoked: dict[str, RevokedCredential] = {}

    async def add(self, record: RevokedCredential) -> bool:
        async with self._lock:
            if record.token in self._revoked:
                return False
            self._revoked[record.token] = replace(record)
            return True

    async def exists(self, token: str) -> bool:
        async with self._lock:
            return token in self._revoked

    async def list_by_user(self, user_id: str) -> list[RevokedCredential]:
        async with self._lock:
            return [replace(r) for r in self._revoked.values() if r.user_id == user_id]

    async def delete_expired(self, now: int) -> int:
        async with self._lock:
            expired = [token for token, r in self._revoked.items() if r.is_expired(now)]
            for token in expired:
                del self._revoked[token]
            return len(expired)

    async def count_active(self, now: int) -> int:
        async with self._lock:
            return sum(1 for r in self._revoked.values() if r.expires_at > now)
