"""Shared fixtures for the test suite."""

import time

from sessionauth.config import AuthConfig
from sessionauth.security import CredentialIssuer, hash_password
from sessionauth.services.session_manager import SessionManager
from sessionauth.stores.memory_store import (
    MemoryRevocationStore,
    MemorySessionStore,
    MemoryUserStore,
)

SECRET = "unit-test-signing-key-0123456789abcdef"
OTHER_SECRET = "another-signing-key-fedcba9876543210xyz"
PASSWORD = "correct-horse-battery"

ACCESS_TTL = 15 * 60
REFRESH_TTL = 7 * 24 * 60 * 60


class FakeClock:
    """Callable clock starting at real time so signed tokens verify normally."""

    def __init__(self, start: float | None = None) -> None:
        self.now = time.time() if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_config(**overrides) -> AuthConfig:
    values = {
        "JWT_SECRET": SECRET,
        "AUTH_STORE": "memory",
        "JANITOR_ENABLED": False,
        "ACCESS_TOKEN_EXPIRE_MINUTES": 15,
        "REFRESH_TOKEN_EXPIRE_DAYS": 7,
    }
    values.update(overrides)
    return AuthConfig(**values)


def make_issuer(clock=time.time, secret: str = SECRET) -> CredentialIssuer:
    return CredentialIssuer(secret, ACCESS_TTL, REFRESH_TTL, clock=clock)


def make_manager(clock=None, session_store=None, revocation_store=None, user_store=None):
    clock = clock or FakeClock()
    users = user_store or MemoryUserStore()
    manager = SessionManager(
        make_issuer(clock),
        session_store or MemorySessionStore(),
        revocation_store or MemoryRevocationStore(),
        users,
        clock=clock,
    )
    return manager, users, clock


async def create_user(user_store, email: str = "u1@example.com", active: bool = True) -> dict:
    return await user_store.create_user(
        {
            "email": email,
            "name": "User One",
            "hashed_password": hash_password(PASSWORD),
            "active": active,
        }
    )
