"""Service wiring and FastAPI dependency helpers."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import Depends, HTTPException, Request, status

from db.engine import DatabaseManager
from sessionauth.config import AuthConfig
from sessionauth.models import Identity
from sessionauth.security import CredentialIssuer
from sessionauth.services.auth_service import AuthService
from sessionauth.services.janitor import Janitor
from sessionauth.services.session_manager import SessionManager
from sessionauth.stores.memory_store import (
    MemoryRevocationStore,
    MemorySessionStore,
    MemoryUserStore,
)
from sessionauth.stores.sql_store import SqlRevocationStore, SqlSessionStore, SqlUserStore

logger = logging.getLogger(__name__)


@dataclass
class AuthServices:
    """Service objects built once at startup and shared by every request."""

    config: AuthConfig
    issuer: CredentialIssuer
    user_store: Any
    session_store: Any
    revocation_store: Any
    session_manager: SessionManager
    auth_service: AuthService
    janitor: Janitor
    db_manager: DatabaseManager | None = None


def build_services(config: AuthConfig, clock: Callable[[], float] = time.time) -> AuthServices:
    """Construct stores and services for the configured AUTH_STORE."""
    config.validate()
    issuer = CredentialIssuer.from_config(config, clock=clock)

    db_manager = None
    if config.AUTH_STORE == "sql":
        db_manager = DatabaseManager()
        db_manager.init(config.DATABASE_URL, echo=config.DB_ECHO, pool_size=config.DB_POOL_SIZE)
        user_store: Any = SqlUserStore(db_manager)
        session_store: Any = SqlSessionStore(db_manager)
        revocation_store: Any = SqlRevocationStore(db_manager)
    else:
        # Memory store for development/testing
        user_store = MemoryUserStore()
        session_store = MemorySessionStore()
        revocation_store = MemoryRevocationStore()
    logger.info(f"Auth stores initialized ({config.AUTH_STORE})")

    manager = SessionManager(issuer, session_store, revocation_store, user_store, clock=clock)
    return AuthServices(
        config=config,
        issuer=issuer,
        user_store=user_store,
        session_store=session_store,
        revocation_store=revocation_store,
        session_manager=manager,
        auth_service=AuthService(user_store, manager),
        janitor=Janitor(
            manager,
            session_interval_seconds=config.SESSION_CLEANUP_INTERVAL_SECONDS,
            revocation_interval_seconds=config.REVOCATION_CLEANUP_INTERVAL_SECONDS,
            statistics_interval_seconds=config.STATISTICS_INTERVAL_SECONDS,
        ),
        db_manager=db_manager,
    )


def get_services(request: Request) -> AuthServices:
    return request.app.state.auth


def get_auth_service(services: AuthServices = Depends(get_services)) -> AuthService:
    return services.auth_service


def get_identity(request: Request) -> Identity | None:
    """Identity bound by the authentication gate, if any."""
    return getattr(request.state, "identity", None)


def require_identity(identity: Identity | None = Depends(get_identity)) -> Identity:
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_user_agent(request: Request) -> str:
    return request.headers.get("User-Agent") or "unknown"
