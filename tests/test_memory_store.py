import unittest

from sessionauth.models import RevocationReason, RevokedCredential, Session
from sessionauth.stores.memory_store import (
    MemoryRevocationStore,
    MemorySessionStore,
    MemoryUserStore,
)

NOW = 1_700_000_000


def _session(token: str = "refresh-1", user_id: str = "user-1", expires_at: int = NOW + 60) -> Session:
    return Session(token=token, user_id=user_id, email="u1@example.com", created_at=NOW - 60, expires_at=expires_at)


class TestMemorySessionStore(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store = MemorySessionStore()

    async def test_mark_used_succeeds_once(self):
        await self.store.create(_session())

        self.assertEqual(await self.store.mark_used("refresh-1", NOW), 1)
        self.assertEqual(await self.store.mark_used("refresh-1", NOW + 5), 0)

        stored = await self.store.get("refresh-1")
        self.assertTrue(stored.used)
        self.assertEqual(stored.last_used_at, NOW)

    async def test_mark_used_unknown_token(self):
        self.assertEqual(await self.store.mark_used("missing", NOW), 0)

    async def test_duplicate_token_rejected(self):
        await self.store.create(_session())

        with self.assertRaises(ValueError):
            await self.store.create(_session())

    async def test_get_returns_copy(self):
        await self.store.create(_session())

        fetched = await self.store.get("refresh-1")
        fetched.used = True

        self.assertFalse((await self.store.get("refresh-1")).used)
        self.assertEqual(await self.store.mark_used("refresh-1", NOW), 1)

    async def test_delete_by_user_only_touches_that_user(self):
        await self.store.create(_session("a", "user-1"))
        await self.store.create(_session("b", "user-1"))
        await self.store.create(_session("c", "user-2"))

        self.assertEqual(await self.store.delete_by_user("user-1"), 2)
        self.assertEqual(await self.store.list_by_user("user-1"), [])
        self.assertEqual(len(await self.store.list_by_user("user-2")), 1)

    async def test_delete(self):
        await self.store.create(_session())

        self.assertTrue(await self.store.delete("refresh-1"))
        self.assertFalse(await self.store.delete("refresh-1"))
        self.assertIsNone(await self.store.get("refresh-1"))

    async def test_count_active_and_delete_expired(self):
        await self.store.create(_session("old", expires_at=NOW))
        await self.store.create(_session("live", expires_at=NOW + 1))

        self.assertEqual(await self.store.count_active_by_user("user-1", NOW), 1)
        self.assertEqual(await self.store.count_active(NOW), 1)
        self.assertEqual(await self.store.delete_expired(NOW), 1)
        self.assertIsNotNone(await self.store.get("live"))


class TestMemoryRevocationStore(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store = MemoryRevocationStore()

    def _record(self, token: str = "tok1", expires_at: int = NOW + 900) -> RevokedCredential:
        return RevokedCredential(
            token=token,
            user_id="user-1",
            email="u1@example.com",
            reason=RevocationReason.LOGOUT,
            revoked_at=NOW,
            expires_at=expires_at,
        )

    async def test_add_is_idempotent(self):
        self.assertTrue(await self.store.add(self._record()))
        self.assertFalse(await self.store.add(self._record()))

        self.assertTrue(await self.store.exists("tok1"))
        self.assertEqual(len(await self.store.list_by_user("user-1")), 1)

    async def test_delete_expired(self):
        await self.store.add(self._record("gone", expires_at=NOW))
        await self.store.add(self._record("kept", expires_at=NOW + 1))

        self.assertEqual(await self.store.count_active(NOW), 1)
        self.assertEqual(await self.store.delete_expired(NOW), 1)
        self.assertFalse(await self.store.exists("gone"))
        self.assertTrue(await self.store.exists("kept"))


class TestMemoryUserStore(unittest.IsolatedAsyncioTestCase):
    async def test_create_and_lookup(self):
        store = MemoryUserStore()

        user = await store.create_user({"email": "Person@Example.com", "name": "Person"})

        self.assertTrue(user["active"])
        self.assertEqual(user["email"], "person@example.com")
        self.assertEqual((await store.get_by_email("PERSON@example.com"))["id"], user["id"])
        self.assertEqual((await store.get_by_id(user["id"]))["name"], "Person")
        self.assertIsNone(await store.get_by_id("missing"))

    async def test_duplicate_email_rejected(self):
        store = MemoryUserStore()
        await store.create_user({"email": "person@example.com"})

        with self.assertRaises(ValueError):
            await store.create_user({"email": "PERSON@example.com"})


if __name__ == "__main__":
    unittest.main()
