# ofertai/app.py

"""Wires the relay components together and runs them."""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any

from ofertai.bot.command_router import CommandRouter
from ofertai.bot.update_poller import UpdatePoller
from ofertai.config.settings import Settings
from ofertai.delivery.channel import DeliveryChannel
from ofertai.delivery.telegram_api import TelegramBotAPI
from ofertai.search.mercadolivre_client import MercadoLivreClient
from ofertai.services.dispatch_orchestrator import DispatchOrchestrator
from ofertai.services.health_server import HealthServer
from ofertai.services.scheduler import DispatchScheduler
from ofertai.storage.dedup_cache import InMemoryDedupCache
from ofertai.storage.subscriber_registry import InMemorySubscriberRegistry

logger = logging.getLogger("ofertai.main")


@dataclass
class RelayApp:
    """All long-lived relay components for one process."""

    api: TelegramBotAPI
    registry: InMemorySubscriberRegistry
    dedup: InMemoryDedupCache
    orchestrator: DispatchOrchestrator
    router: CommandRouter
    poller: UpdatePoller
    scheduler: DispatchScheduler
    health: HealthServer | None = None


def build_app(token: str, enable_health: bool | None = None) -> RelayApp:
    """Construct every component from :class:`Settings`."""
    api = TelegramBotAPI(token)
    channel = DeliveryChannel(api)
    registry = InMemorySubscriberRegistry()
    dedup = InMemoryDedupCache()
    orchestrator = DispatchOrchestrator(
        MercadoLivreClient(), channel, dedup
    )
    router = CommandRouter(registry, orchestrator, channel)
    health_on = (
        Settings.ENABLE_HEALTH_SERVER
        if enable_health is None
        else enable_health
    )
    return RelayApp(
        api=api,
        registry=registry,
        dedup=dedup,
        orchestrator=orchestrator,
        router=router,
        poller=UpdatePoller(api, router),
        scheduler=DispatchScheduler(orchestrator, registry),
        health=HealthServer() if health_on else None,
    )


async def run_bot(app: RelayApp) -> None:
    """Run poller, scheduler and (optionally) the health server together."""
    try:
        me = await asyncio.to_thread(app.api.get_me)
        logger.info("Bot @%s ready", me.get("username", "?"))
    except Exception as exc:
        logger.warning("getMe failed, continuing anyway: %s", exc)

    jobs: list[Coroutine[Any, Any, None]] = [
        app.poller.run(),
        app.scheduler.run_forever(),
    ]
    if app.health is not None:
        jobs.append(app.health.serve())

    logger.info("Bot running. Waiting for /start…")
    tasks = [asyncio.create_task(job) for job in jobs]
    try:
        done, _pending = await asyncio.wait(
            tasks, return_when=asyncio.FIRST_COMPLETED
        )
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.critical(
                    "Relay component crashed", exc_info=task.exception()
                )
    finally:
        app.poller.stop()
        app.scheduler.stop()
        if app.health is not None:
            app.health.stop()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await app.poller.drain()
        logger.info("OfertAi shutting down")
