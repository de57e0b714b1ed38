"""
FastAPI dependencies: database session, storage, scan service and clock.

Authentication is handled in front of this service and is not checked here.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import date, datetime

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import local_date, now_utc
from app.db.session import async_session_factory
from app.db.store import AttendanceStore


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_store(db: AsyncSession = Depends(get_db)) -> AttendanceStore:
    return AttendanceStore(db)


# ── Clock ───────────────────────────────────────────────────────────
def get_clock() -> Callable[[], datetime]:
    """Source of "now" for a request; overridden in tests."""
    return now_utc


def get_today(clock: Callable[[], datetime] = Depends(get_clock)) -> date:
    return local_date(clock())
