import asyncio
import unittest

from db.engine import DatabaseManager, normalize_database_url
from sessionauth.exceptions import SessionError
from sessionauth.models import RevocationReason, RevokedCredential, Session
from sessionauth.stores.sql_store import SqlRevocationStore, SqlSessionStore, SqlUserStore
from tests.support import create_user, make_manager

NOW = 1_700_000_000


def _session(token: str, user_id: str = "user-1", expires_at: int = NOW + 60) -> Session:
    return Session(
        token=token,
        user_id=user_id,
        email="u1@example.com",
        created_at=NOW - 60,
        expires_at=expires_at,
        ip_address="1.2.3.4",
        user_agent="agent",
    )


class SqlStoreTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.db_manager = DatabaseManager()
        self.db_manager.init("sqlite+aiosqlite:///:memory:")
        await self.db_manager.create_all()
        self.sessions = SqlSessionStore(self.db_manager)
        self.revocations = SqlRevocationStore(self.db_manager)
        self.users = SqlUserStore(self.db_manager)

    async def asyncTearDown(self):
        await self.db_manager.close()


class TestSqlSessionStore(SqlStoreTestCase):
    async def test_create_and_get(self):
        await self.sessions.create(_session("refresh-1"))

        stored = await self.sessions.get("refresh-1")

        self.assertEqual(stored.user_id, "user-1")
        self.assertEqual(stored.expires_at, NOW + 60)
        self.assertEqual(stored.ip_address, "1.2.3.4")
        self.assertFalse(stored.used)
        self.assertIsNone(stored.last_used_at)
        self.assertIsNone(await self.sessions.get("missing"))

    async def test_conditional_mark_used(self):
        await self.sessions.create(_session("refresh-1"))

        self.assertEqual(await self.sessions.mark_used("refresh-1", NOW), 1)
        self.assertEqual(await self.sessions.mark_used("refresh-1", NOW + 1), 0)
        self.assertEqual(await self.sessions.mark_used("missing", NOW), 0)

        stored = await self.sessions.get("refresh-1")
        self.assertTrue(stored.used)
        self.assertEqual(stored.last_used_at, NOW)

    async def test_delete_and_delete_by_user(self):
        await self.sessions.create(_session("a"))
        await self.sessions.create(_session("b"))
        await self.sessions.create(_session("c", user_id="user-2"))

        self.assertTrue(await self.sessions.delete("a"))
        self.assertFalse(await self.sessions.delete("a"))
        self.assertEqual(await self.sessions.delete_by_user("user-1"), 1)
        self.assertEqual(await self.sessions.list_by_user("user-1"), [])
        self.assertEqual([s.token for s in await self.sessions.list_by_user("user-2")], ["c"])

    async def test_expiry_boundary(self):
        await self.sessions.create(_session("past", expires_at=NOW - 1))
        await self.sessions.create(_session("now", expires_at=NOW))
        await self.sessions.create(_session("future", expires_at=NOW + 1))

        self.assertEqual(await self.sessions.count_active_by_user("user-1", NOW), 1)
        self.assertEqual(await self.sessions.count_active(NOW), 1)
        self.assertEqual(await self.sessions.delete_expired(NOW), 2)
        self.assertEqual([s.token for s in await self.sessions.list_by_user("user-1")], ["future"])


class TestSqlRevocationStore(SqlStoreTestCase):
    def _record(self, token: str, expires_at: int = NOW + 900) -> RevokedCredential:
        return RevokedCredential(
            token=token,
            user_id="user-1",
            email="u1@example.com",
            reason=RevocationReason.REUSE_DETECTED,
            revoked_at=NOW,
            expires_at=expires_at,
            ip_address="1.2.3.4",
        )

    async def test_add_exists_and_list(self):
        self.assertTrue(await self.revocations.add(self._record("tok1")))
        self.assertFalse(await self.revocations.add(self._record("tok1")))

        self.assertTrue(await self.revocations.exists("tok1"))
        self.assertFalse(await self.revocations.exists("tok2"))
        records = await self.revocations.list_by_user("user-1")
        self.assertEqual(len(records), 1)
        self.assertIs(records[0].reason, RevocationReason.REUSE_DETECTED)

    async def test_delete_expired(self):
        await self.revocations.add(self._record("gone", expires_at=NOW))
        await self.revocations.add(self._record("kept", expires_at=NOW + 1))

        self.assertEqual(await self.revocations.count_active(NOW), 1)
        self.assertEqual(await self.revocations.delete_expired(NOW), 1)
        self.assertFalse(await self.revocations.exists("gone"))
        self.assertTrue(await self.revocations.exists("kept"))


class TestSqlUserStore(SqlStoreTestCase):
    async def test_create_and_lookup(self):
        user = await self.users.create_user(
            {"email": "Person@Example.com", "name": "Person", "hashed_password": "x"}
        )

        self.assertTrue(user["active"])
        self.assertEqual((await self.users.get_by_email("person@example.com"))["id"], user["id"])
        self.assertEqual((await self.users.get_by_id(user["id"]))["email"], "person@example.com")
        self.assertIsNone(await self.users.get_by_email("nobody@example.com"))


class TestSessionManagerOverSql(SqlStoreTestCase):
    async def test_rotate_then_replay(self):
        manager, users, _ = make_manager(
            session_store=self.sessions, revocation_store=self.revocations, user_store=self.users
        )
        user = await create_user(users)
        first = await manager.create_session(user, "1.2.3.4", "agent")

        rotated = await manager.rotate(first.refresh_token)
        replay = await manager.rotate(first.refresh_token)

        self.assertTrue(rotated.ok)
        self.assertIs(replay.error, SessionError.REUSE_DETECTED)
        self.assertEqual(await manager.count_active_sessions(user["id"]), 0)

    async def test_concurrent_rotations_have_a_single_winner(self):
        manager, users, _ = make_manager(
            session_store=self.sessions, revocation_store=self.revocations, user_store=self.users
        )
        user = await create_user(users)
        first = await manager.create_session(user)

        results = await asyncio.gather(*(manager.rotate(first.refresh_token) for _ in range(10)))

        winners = [r for r in results if r.ok]
        self.assertEqual(len(winners), 1)
        self.assertEqual(
            [r.error for r in results if not r.ok], [SessionError.REUSE_DETECTED] * 9
        )
        self.assertTrue((await self.sessions.get(first.refresh_token)).used)
        self.assertLessEqual(await manager.count_active_sessions(user["id"]), 1)


class TestDatabaseManager(SqlStoreTestCase):
    async def test_connection_check(self):
        self.assertTrue(await self.db_manager.check_connection())

        await self.db_manager.close()

        self.assertFalse(await self.db_manager.check_connection())

    async def test_session_requires_init(self):
        with self.assertRaises(RuntimeError):
            async with DatabaseManager().session():
                pass


class TestNormalizeDatabaseUrl(unittest.TestCase):
    def test_async_drivers(self):
        self.assertEqual(normalize_database_url("sqlite:///x.db"), "sqlite+aiosqlite:///x.db")
        self.assertEqual(
            normalize_database_url("postgresql://u:p@h/db"), "postgresql+asyncpg://u:p@h/db"
        )
        self.assertEqual(
            normalize_database_url("postgresql+asyncpg://u:p@h/db"), "postgresql+asyncpg://u:p@h/db"
        )


if __name__ == "__main__":
    unittest.main()
