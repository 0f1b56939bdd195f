# ofertai/bot/command_router.py

"""Maps inbound chat commands to registry changes and dispatch runs."""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ofertai.delivery.channel import DeliveryChannel
from ofertai.errors import DeliveryError
from ofertai.models.listing import Destination
from ofertai.services.dispatch_orchestrator import DispatchOrchestrator
from ofertai.storage.subscriber_registry import SubscriberStore

logger = logging.getLogger("ofertai.bot")

WELCOME_TEXT = (
    "Bem-vindo! ✅ Você receberá promoções automáticas do Mercado Livre "
    "(sem links de afiliado).\n\n"
    "Use /stop para parar.\n"
    "Use /ofertas para ver agora."
)
STOP_TEXT = "Você foi descadastrado. ❌ Não enviarei mais ofertas automáticas."
FETCH_TEXT = "Buscando ofertas… 🔎"


@dataclass
class _Command:
    name: str
    pattern: re.Pattern[str]
    handler: Callable[[Destination], Awaitable[None]]


class CommandRouter:
    """Pattern-gated command handlers; unmatched text gets no reply."""

    def __init__(
        self,
        registry: SubscriberStore,
        orchestrator: DispatchOrchestrator,
        channel: DeliveryChannel,
    ) -> None:
        self.registry = registry
        self.orchestrator = orchestrator
        self.channel = channel
        self._commands = [
            _Command("start", re.compile(r"/start"), self._on_start),
            _Command("stop", re.compile(r"/stop"), self._on_stop),
            _Command(
                "ofertas",
                re.compile(r"/ofertas?", re.IGNORECASE),
                self._on_fetch,
            ),
        ]

    async def _reply(self, chat_id: Destination, text: str) -> None:
        """Send an acknowledgment; failures are logged, not raised."""
        try:
            await self.channel.send_text(chat_id, text)
        except DeliveryError as exc:
            logger.error("Reply to %s failed: %s", chat_id, exc)

    async def _on_start(self, chat_id: Destination) -> None:
        self.registry.add(chat_id)
        await self._reply(chat_id, WELCOME_TEXT)
        await self.orchestrator.dispatch(chat_id)

    async def _on_stop(self, chat_id: Destination) -> None:
        self.registry.remove(chat_id)
        await self._reply(chat_id, STOP_TEXT)

    async def _on_fetch(self, chat_id: Destination) -> None:
        await self._reply(chat_id, FETCH_TEXT)
        await self.orchestrator.dispatch(chat_id)

    def _find(self, text: str | None) -> _Command | None:
        if not text:
            return None
        for command in self._commands:
            if command.pattern.fullmatch(text):
                return command
        return None

    def match(self, text: str | None) -> str | None:
        """Return the command name *text* triggers, if any."""
        command = self._find(text)
        return command.name if command else None

    async def handle(self, chat_id: Destination, text: str | None) -> bool:
        """Run the handler matching *text*; returns False if none matched."""
        command = self._find(text)
        if command is None:
            return False
        logger.info("Command /%s from %s", command.name, chat_id)
        await command.handler(chat_id)
        return True
