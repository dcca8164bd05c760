# tasks/pending_cleanup.py

import asyncio
from datetime import datetime, timezone, timedelta
from typing import Callable, Optional, List

from fastapi import Request
from sqlalchemy import select, delete, and_, exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crossdict.constants.pending import (PendingStatus, RESOLVED_STATUSES, CLEANUP_INTERVAL,
                                         CLEANUP_RETENTION, CLEANUP_BATCH_LIMIT)
from crossdict.logging_config import setup_logger
from crossdict.models.pending_model import PendingWord, PendingDescription

logger = setup_logger(__name__, "pending_cleanup.log")


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


class PendingRetentionSweeper:
    """
    Best-effort purge of resolved pending cards.

    Triggered after approve/reject instead of by a scheduler. Runs at most once
    per ``interval`` and never twice at the same time inside one process; other
    processes keep their own clock, so several instances may sweep close together.
    """

    def __init__(self,
                 session_factory: async_sessionmaker,
                 clock: Callable[[], datetime] = utc_clock,
                 interval: timedelta = CLEANUP_INTERVAL,
                 retention: timedelta = CLEANUP_RETENTION,
                 batch_limit: int = CLEANUP_BATCH_LIMIT):
        self.session_factory = session_factory
        self.clock = clock
        self.interval = interval
        self.retention = retention
        self.batch_limit = batch_limit

        self._lock = asyncio.Lock()
        self.last_run: Optional[datetime] = None
        self.total_deleted: int = 0
        self.run_count: int = 0
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def is_due(self, now: datetime) -> bool:
        if self.last_run is None:
            return True
        return now - self.last_run >= self.interval

    async def maybe_run(self) -> int:
        """Sweep if due and idle; returns the number of deleted cards (0 when skipped)."""
        if self.running:
            return 0
        if not self.is_due(self.clock()):
            return 0
        return await self._run()

    async def run_now(self) -> int:
        """Sweep regardless of the interval, still one sweep at a time."""
        if self.running:
            logger.info("Pending cleanup already running, skipping forced run")
            return 0
        return await self._run()

    async def _run(self) -> int:
        async with self._lock:
            now = self.clock()
            try:
                async with self.session_factory() as db:
                    deleted = await self.cleanup_resolved_pending(db, now)
                self.total_deleted += deleted
                self.last_error = None
                if deleted:
                    logger.info(f"Pending cleanup deleted {deleted} resolved cards")
                return deleted
            except SQLAlchemyError as e:
                self.last_error = str(e)
                logger.error(f"Pending cleanup failed: {e}")
                return 0
            finally:
                self.last_run = now
                self.run_count += 1

    async def find_expired_ids(self, db: AsyncSession, now: datetime) -> List[int]:
        cutoff = now - self.retention
        still_pending = exists().where(
            and_(
                PendingDescription.pending_word_id == PendingWord.id,
                PendingDescription.status == PendingStatus.PENDING.value,
            )
        )
        result = await db.execute(
            select(PendingWord.id)
            .where(
                PendingWord.status.in_(RESOLVED_STATUSES),
                PendingWord.created_at < cutoff,
                ~still_pending,
            )
            .order_by(PendingWord.created_at.asc(), PendingWord.id.asc())
            .limit(self.batch_limit)
        )
        return [row[0] for row in result.all()]

    async def cleanup_resolved_pending(self, db: AsyncSession, now: datetime) -> int:
        ids = await self.find_expired_ids(db, now)
        if not ids:
            return 0
        try:
            await db.execute(delete(PendingDescription).where(PendingDescription.pending_word_id.in_(ids)))
            await db.execute(delete(PendingWord).where(PendingWord.id.in_(ids)))
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            raise
        return len(ids)

    def get_status(self) -> dict:
        now = self.clock()
        next_run = self.last_run + self.interval if self.last_run else None
        return {
            "running": self.running,
            "last_run": self.last_run.strftime('%Y-%m-%d %H:%M:%S') if self.last_run else "Never",
            "next_run_after": next_run.strftime('%Y-%m-%d %H:%M:%S') if next_run else "Next approve/reject",
            "due": self.is_due(now),
            "total_deleted": self.total_deleted,
            "run_count": self.run_count,
            "last_error": self.last_error,
            "interval_hours": self.interval.total_seconds() / 3600,
            "retention_days": self.retention.days,
            "batch_limit": self.batch_limit,
        }


def get_pending_sweeper(request: Request) -> PendingRetentionSweeper:
    return request.app.state.pending_sweeper
