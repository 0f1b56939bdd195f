# ofertai/bot/update_poller.py

"""Long-polling loop feeding Telegram updates to the command router."""

import asyncio
import logging
from typing import Any

from ofertai.bot.command_router import CommandRouter
from ofertai.config.settings import Settings
from ofertai.delivery.telegram_api import TelegramBotAPI
from ofertai.models.listing import Destination

logger = logging.getLogger("ofertai.bot")


def extract_command(
    update: dict[str, Any],
) -> tuple[Destination, str] | None:
    """Pull ``(chat_id, text)`` out of a message or channel post update."""
    message = update.get("message") or update.get("channel_post")
    if not isinstance(message, dict):
        return None
    chat = message.get("chat") or {}
    chat_id = chat.get("id")
    text = message.get("text")
    if chat_id is None or not isinstance(text, str):
        return None
    return chat_id, text


class UpdatePoller:
    """Polls ``getUpdates`` and runs each routed command as its own task."""

    def __init__(
        self,
        api: TelegramBotAPI,
        router: CommandRouter,
        poll_timeout: int | None = None,
        retry_delay: float | None = None,
    ) -> None:
        self.api = api
        self.router = router
        self.poll_timeout = (
            Settings.POLL_TIMEOUT if poll_timeout is None else poll_timeout
        )
        self.retry_delay = (
            Settings.POLL_RETRY_DELAY if retry_delay is None else retry_delay
        )
        self.offset = 0
        self._running = False
        self._tasks: set[asyncio.Task[bool]] = set()

    def _spawn(self, chat_id: Destination, text: str) -> None:
        task = asyncio.create_task(self.router.handle(chat_id, text))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Task[bool]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Command handler failed: %s", exc, exc_info=exc
            )

    async def poll_once(self) -> int:
        """Fetch one batch of updates; returns how many commands were routed."""
        updates = await asyncio.to_thread(
            self.api.get_updates, self.offset, self.poll_timeout
        )
        routed = 0
        for update in updates:
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self.offset = max(self.offset, update_id + 1)
            extracted = extract_command(update)
            if extracted is None:
                continue
            chat_id, text = extracted
            if self.router.match(text) is None:
                continue
            self._spawn(chat_id, text)
            routed += 1
        return routed

    async def run(self) -> None:
        """Poll until :meth:`stop` is called."""
        self._running = True
        logger.info("Polling for updates (timeout=%ss)", self.poll_timeout)
        while self._running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(
                    "getUpdates failed, retrying in %.0fs: %s",
                    self.retry_delay,
                    exc,
                )
                await asyncio.sleep(self.retry_delay)

    def stop(self) -> None:
        self._running = False

    async def drain(self) -> None:
        """Wait for in-flight command handlers to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
