"""Expiration scheduler: drives the lifecycle sweeps.

Two triggers call run_sweeps:
- the admin access-management view, on every load
- ExpirationScheduler, an asyncio task started in the app lifespan that ticks
  every SWEEP_INTERVAL_MINUTES

The scheduler keeps no lifecycle state of its own.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from thesis_hub.config import Settings
from thesis_hub.errors import StoreUnavailable
from thesis_hub.services import access_request_service

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    ran_at: datetime
    expired: list[str] = field(default_factory=list)
    expiring_soon: list[str] = field(default_factory=list)


def run_sweeps(db: Session, settings: Settings, now: Optional[datetime] = None) -> SweepReport:
    """Expire overdue access, then warn admins about access about to expire.

    The window is always settings.EXPIRATION_DAYS; a request's own
    duration_days does not shorten or extend it.
    """
    now = now or datetime.now(timezone.utc)
    expired = access_request_service.sweep_expirations(db, settings.EXPIRATION_DAYS, now)
    expiring = access_request_service.sweep_expiring_soon(
        db,
        settings.EXPIRY_WARNING_DAYS,
        settings.EXPIRATION_DAYS,
        now,
        dedupe=settings.EXPIRY_WARNING_DEDUPE,
    )
    return SweepReport(ran_at=now, expired=expired, expiring_soon=expiring)


class ExpirationScheduler:
    """Runs run_sweeps on a fixed interval until stopped."""

    def __init__(self, session_factory: Callable[[], Session], settings: Settings):
        self.session_factory = session_factory
        self.settings = settings
        self.interval_seconds = settings.SWEEP_INTERVAL_MINUTES * 60
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> Optional[SweepReport]:
        """One sweep in a fresh session. Store outages are logged, not raised."""
        db = self.session_factory()
        try:
            report = run_sweeps(db, self.settings)
        except StoreUnavailable:
            logger.warning("Scheduled sweep skipped: record store unavailable")
            return None
        finally:
            db.close()
        logger.info(
            "Scheduled sweep: %d expired, %d expiring soon",
            len(report.expired), len(report.expiring_soon),
        )
        return report

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await asyncio.to_thread(self.tick)
            except Exception:
                logger.exception("Scheduled sweep failed")

    def start(self) -> None:
        if self.interval_seconds <= 0:
            logger.info("Expiration scheduler disabled (SWEEP_INTERVAL_MINUTES=0)")
            return
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Expiration scheduler started, every %d minutes", self.settings.SWEEP_INTERVAL_MINUTES)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiration scheduler stopped")
