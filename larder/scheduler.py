"""Scheduled jobs: daily digest of ingredients about to expire."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date

from .db import Database, Transaction
from .models import InventoryItem, NotificationType

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    """Manages scheduled jobs for expiry notifications.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config, database: Database | None = None) -> None:
        """Initialize scheduler with a LarderConfig.

        Args:
            config: LarderConfig instance.
            database: Database to work on; built from ``config.database``
                when omitted.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install apscheduler"
            )

        self._config = config
        self._db = database or Database(
            config.database.path, busy_timeout=config.database.busy_timeout
        )
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register scheduled jobs based on config."""
        if not self._config.scheduler.enabled:
            logger.info("Scheduler disabled; no jobs registered")
            return

        trigger = self._parse_cron(self._config.scheduler.expiry_schedule)
        self._scheduler.add_job(
            self._job_expiry_digest,
            trigger=trigger,
            id="expiry_digest",
            name="Expiring ingredient digest",
            replace_existing=True,
        )
        logger.info(
            "Registered expiry digest job: %s",
            self._config.scheduler.expiry_schedule,
        )

    def start(self) -> None:
        """Start the scheduler."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    def send_expiry_digest(self, today: date | None = None) -> int:
        """Notify every owner with items expiring soon; returns the count sent.

        Items that expired more than ``expired_grace_days`` ago are left out
        so they are not reported again every day.
        """
        days = self._config.scheduler.expiry_days
        grace = self._config.scheduler.expired_grace_days

        def work(tx: Transaction) -> int:
            by_owner: dict[str, list[InventoryItem]] = defaultdict(list)
            for item in tx.inventory.get_expiring_soon(
                days=days, today=today, expired_within=grace
            ):
                by_owner[item.owner_id].append(item)
            for owner_id, items in by_owner.items():
                names = ", ".join(i.name for i in items)
                tx.notifications.create(
                    owner_id,
                    NotificationType.INVENTORY_EXPIRING,
                    title=f"{len(items)} item(s) expiring soon",
                    message=names,
                    payload={
                        "items": [
                            {"id": i.id, "name": i.name, "expirationDate": i.expiration_date}
                            for i in items
                        ],
                        "days": days,
                    },
                )
            return len(by_owner)

        return self._db.run(work)

    async def _job_expiry_digest(self) -> None:
        """Send the expiring-ingredient digest."""
        logger.info("Running expiry digest job...")

        try:
            sent = self.send_expiry_digest()
            if sent > 0:
                logger.info("Sent expiry digest to %d owner(s)", sent)
        except Exception:
            logger.exception("Expiry digest job failed")
