"""Session store interface for refresh sessions."""

from __future__ import annotations

from typing import Protocol

from sessionauth.models import Session


class SessionStore(Protocol):
    async def create(self, session: Session) -> None:
        ...

    async def get(self, token: str) -> Session | None:
        ...

    async def mark_used(self, token: str, used_at: int) -> int:
        """Set used=True and last_used_at only where used is still False.

        Must be a single atomic conditional write. Returns the number of
        rows changed (0 or 1).
        """
        ...

    async def delete(self, token: str) -> bool:
        ...

    async def delete_by_user(self, user_id: str) -> int:
        ...

    async def list_by_user(self, user_id: str) -> list[Session]:
        ...

    async def count_active_by_user(self, user_id: str, now: int) -> int:
        ...

    async def delete_expired(self, now: int) -> int:
        ...

    async def count_active(self, now: int) -> int:
        ...
