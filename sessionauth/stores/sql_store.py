"""SQL auth stores using async SQLAlchemy (asyncpg in production, aiosqlite in tests)."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from db.engine import DatabaseManager
from db.models.auth import RevokedCredentialRecord, SessionRecord
from db.models.user import User
from sessionauth.models import RevocationReason, RevokedCredential, Session

logger = logging.getLogger(__name__)


def _to_session(record: SessionRecord) -> Session:
    return Session(
        token=record.token,
        user_id=record.user_id,
        email=record.email,
        created_at=record.created_at,
        expires_at=record.expires_at,
        ip_address=record.ip_address,
        user_agent=record.user_agent,
        used=bool(record.used),
        last_used_at=record.last_used_at,
    )


def _to_revoked(record: RevokedCredentialRecord) -> RevokedCredential:
    return RevokedCredential(
        token=record.token,
        user_id=record.user_id,
        email=record.email,
        reason=RevocationReason(record.reason),
        revoked_at=record.revoked_at,
        expires_at=record.expires_at,
        ip_address=record.ip_address,
    )


class SqlUserStore:
    """User store backed by the users table."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db = db_manager

    async def get_by_email(self, email: str) -> dict | None:
        async with self._db.session() as db:
            user = (
                await db.execute(select(User).where(User.email == email.lower()))
            ).scalar_one_or_none()
            return user.to_dict() if user else None

    async def get_by_id(self, user_id: str) -> dict | None:
        async with self._db.session() as db:
            user = await db.get(User, str(user_id))
            return user.to_dict() if user else None

    async def create_user(self, data: dict) -> dict:
        async with self._db.session() as db:
            user = User(
                id=str(data.get("id") or uuid4()),
                email=data["email"].lower(),
                name=data.get("name"),
                hashed_password=data.get("hashed_password"),
                active=data.get("active", True),
                created_at=data.get("created_at", int(time.time())),
            )
            db.add(user)
            await db.flush()
            return user.to_dict()


class SqlSessionStore:
    """Refresh session store backed by the sessions table."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db = db_manager

    async def create(self, session: Session) -> None:
        async with self._db.session() as db:
            db.add(
                SessionRecord(
                    token=session.token,
                    user_id=session.user_id,
                    email=session.email,
                    created_at=session.created_at,
                    expires_at=session.expires_at,
                    ip_address=session.ip_address,
                    user_agent=session.user_agent,
                    used=session.used,
                    last_used_at=session.last_used_at,
                )
            )

    async def get(self, token: str) -> Session | None:
        async with self._db.session() as db:
            record = await db.get(SessionRecord, token)
            return _to_session(record) if record else None

    async def mark_used(self, token: str, used_at: int) -> int:
        # Conditional UPDATE: concurrent callers race on the row, the database
        # lets exactly one of them flip the flag.
        stmt = (
            update(SessionRecord)
            .where(SessionRecord.token == token, SessionRecord.used.is_(False))
            .values(used=True, last_used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        async with self._db.session() as db:
            result = await db.execute(stmt)
            return result.rowcount or 0

    async def delete(self, token: str) -> bool:
        async with self._db.session() as db:
            result = await db.execute(delete(SessionRecord).where(SessionRecord.token == token))
            return bool(result.rowcount)

    async def delete_by_user(self, user_id: str) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                delete(SessionRecord).where(SessionRecord.user_id == user_id)
            )
            return result.rowcount or 0

    async def list_by_user(self, user_id: str) -> list[Session]:
        async with self._db.session() as db:
            records = (
                await db.execute(
                    select(SessionRecord)
                    .where(SessionRecord.user_id == user_id)
                    .order_by(SessionRecord.created_at)
                )
            ).scalars().all()
            return [_to_session(record) for record in records]

    async def count_active_by_user(self, user_id: str, now: int) -> int:
        async with self._db.session() as db:
            count = (
                await db.execute(
                    select(func.count())
                    .select_from(SessionRecord)
                    .where(SessionRecord.user_id == user_id, SessionRecord.expires_at > now)
                )
            ).scalar_one()
            return int(count)

    async def count_active(self, now: int) -> int:
        async with self._db.session() as db:
            count = (
                await db.execute(
                    select(func.count())
                    .select_from(SessionRecord)
                    .where(SessionRecord.expires_at > now)
                )
            ).scalar_one()
            return int(count)

    async def delete_expired(self, now: int) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                delete(SessionRecord).where(SessionRecord.expires_at <= now)
            )
            return result.rowcount or 0


class SqlRevocationStore:
    """Revocation store backed by the revoked_credentials table."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db = db_manager

    async def add(self, record: RevokedCredential) -> bool:
        try:
            async with self._db.session() as db:
                db.add(
                    RevokedCredentialRecord(
                        token=record.token,
                        user_id=record.user_id,
                        email=record.email,
                        revoked_at=record.revoked_at,
                        reason=RevocationReason(record.reason).value,
                        ip_address=record.ip_address,
                        expires_at=record.expires_at,
                    )
                )
        except IntegrityError:
            logger.debug("Credential already revoked")
            return False
        return True

    async def exists(self, token: str) -> bool:
        async with self._db.session() as db:
            found = (
                await db.execute(
                    select(RevokedCredentialRecord.token).where(
                        RevokedCredentialRecord.token == token
                    )
                )
            ).first()
            return found is not None

    async def list_by_user(self, user_id: str) -> list[RevokedCredential]:
        async with self._db.session() as db:
            records = (
                await db.execute(
                    select(RevokedCredentialRecord).where(
                        RevokedCredentialRecord.user_id == user_id
                    )
                )
            ).scalars().all()
            return [_to_revoked(record) for record in records]

    async def delete_expired(self, now: int) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                delete(RevokedCredentialRecord).where(RevokedCredentialRecord.expires_at <= now)
            )
            return result.rowcount or 0

    async def count_active(self, now: int) -> int:
        async with self._db.session() as db:
            count = (
                await db.execute(
                    select(func.count())
                    .select_from(RevokedCredentialRecord)
                    .where(RevokedCredentialRecord.expires_at > now)
                )
            ).scalar_one()
            return int(count)
