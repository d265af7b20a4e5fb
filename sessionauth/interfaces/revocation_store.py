"""Revocation store interface for revoked access credentials."""

from __future__ import annotations

from typing import Protocol

from sessionauth.models import RevokedCredential


class RevocationStore(Protocol):
    async def add(self, record: RevokedCredential) -> bool:
        """Insert a revocation. Returns False if the token was already revoked."""
        ...

    async def exists(self, token: str) -> bool:
        ...

    async def list_by_user(self, user_id: str) -> list[RevokedCredential]:
        ...

    async def delete_expired(self, now: int) -> int:
        ...

    async def count_active(self, now: int) -> int:
        ...
