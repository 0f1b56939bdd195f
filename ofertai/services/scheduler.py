# ofertai/services/scheduler.py

"""Cron-driven trigger that dispatches to every subscriber."""

import asyncio
import logging
from datetime import datetime

from croniter import croniter

from ofertai.config.settings import Settings
from ofertai.errors import ConfigurationError
from ofertai.models.listing import Destination
from ofertai.services.dispatch_orchestrator import (
    DispatchOrchestrator,
    DispatchReport,
)
from ofertai.storage.subscriber_registry import SubscriberStore

logger = logging.getLogger("ofertai.scheduler")


class DispatchScheduler:
    """Runs a dispatch pass for all subscribers on a cron schedule.

    Destinations are processed one after another; the broadcast
    destination, when configured, goes last.
    """

    def __init__(
        self,
        orchestrator: DispatchOrchestrator,
        registry: SubscriberStore,
        schedule: str | None = None,
        broadcast_chat_id: Destination | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.registry = registry
        self.schedule = schedule or Settings.CRON_SCHEDULE
        self.broadcast_chat_id = (
            Settings.BROADCAST_CHAT_ID
            if broadcast_chat_id is None
            else broadcast_chat_id
        )
        if not croniter.is_valid(self.schedule):
            raise ConfigurationError(
                f"Invalid cron schedule: {self.schedule!r}"
            )
        self._running = False

    def next_fire_time(self, now: datetime | None = None) -> datetime:
        """Next time the schedule fires strictly after *now*."""
        base = now or datetime.now()
        fire: datetime = croniter(self.schedule, base).get_next(datetime)
        return fire

    async def run_once(self) -> list[DispatchReport]:
        """Dispatch to each subscriber, then to the broadcast destination."""
        logger.info(
            "Scheduled dispatch: %s", datetime.now().isoformat()
        )
        reports: list[DispatchReport] = []

        async def dispatch(destination: Destination) -> None:
            reports.append(await self.orchestrator.dispatch(destination))

        await self.registry.for_each(dispatch)
        if self.broadcast_chat_id:
            await dispatch(self.broadcast_chat_id)
        return reports

    async def run_forever(self) -> None:
        """Sleep until each fire time and run a pass, until stopped."""
        self._running = True
        logger.info("Scheduler started with '%s'", self.schedule)
        while self._running:
            now = datetime.now()
            delay = (self.next_fire_time(now) - now).total_seconds()
            await asyncio.sleep(max(delay, 0.0))
            if not self._running:
                break
            try:
                await self.run_once()
            except Exception as exc:
                logger.error(
                    "Scheduled dispatch failed: %s", exc, exc_info=True
                )

    def stop(self) -> None:
        self._running = False
