"""Periodic removal of expired sessions and revocations."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from sessionauth.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


class Janitor:
    """Runs independent fixed-interval sweeps plus a daily statistics report.

    Each loop runs once as soon as it starts and then on its interval, so a
    process that restarts often still cleans up. A failing sweep is logged and
    skipped; the next tick runs as scheduled. Sweeps are idempotent, so they
    need no coordination with request traffic.
    """

    def __init__(
        self,
        manager: SessionManager,
        session_interval_seconds: float = 6 * 60 * 60,
        revocation_interval_seconds: float = 12 * 60 * 60,
        statistics_interval_seconds: float = 24 * 60 * 60,
    ) -> None:
        self._manager = manager
        self._session_interval = session_interval_seconds
        self._revocation_interval = revocation_interval_seconds
        self._statistics_interval = statistics_interval_seconds
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        if self.running:
            logger.warning("Janitor already running")
            return
        self._tasks = [
            asyncio.create_task(
                self._loop(self._session_interval, self.sweep_sessions),
                name="janitor-sessions",
            ),
            asyncio.create_task(
                self._loop(self._revocation_interval, self.sweep_revocations),
                name="janitor-revocations",
            ),
            asyncio.create_task(
                self._loop(self._statistics_interval, self.log_statistics),
                name="janitor-statistics",
            ),
        ]
        logger.info(
            f"Janitor started (sessions every {self._session_interval}s, "
            f"revocations every {self._revocation_interval}s)"
        )

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        logger.info("Janitor stopped")

    async def _loop(self, interval: float, sweep: Callable[[], Awaitable[Any]]) -> None:
        while True:
            await sweep()
            await asyncio.sleep(interval)

    async def sweep_sessions(self) -> int | None:
        logger.info("Starting scheduled cleanup of expired sessions")
        try:
            removed = await self._manager.cleanup_expired_sessions()
        except Exception as e:
            logger.error(f"Session cleanup failed: {e}")
            return None
        logger.info(f"Session cleanup completed: {removed} removed")
        return removed

    async def sweep_revocations(self) -> int | None:
        logger.info("Starting scheduled cleanup of expired revocations")
        try:
            removed = await self._manager.cleanup_expired_revocations()
        except Exception as e:
            logger.error(f"Revocation cleanup failed: {e}")
            return None
        logger.info(f"Revocation cleanup completed: {removed} removed")
        return removed

    async def log_statistics(self) -> dict[str, int] | None:
        try:
            stats = await self._manager.statistics()
        except Exception as e:
            logger.error(f"Session statistics failed: {e}")
            return None
        logger.info(
            f"Session statistics: {stats['active_sessions']} active sessions, "
            f"{stats['active_revocations']} active revocations"
        )
        return stats

    async def run_once(self) -> tuple[int | None, int | None]:
        return await self.sweep_sessions(), await self.sweep_revocations()
