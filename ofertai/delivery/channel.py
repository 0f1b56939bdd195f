# ofertai/delivery/channel.py

"""Delivers a formatted listing to a Telegram destination."""

import asyncio
import logging
from typing import Any

from ofertai.config.settings import Settings
from ofertai.delivery.telegram_api import TelegramBotAPI
from ofertai.errors import DeliveryError
from ofertai.formatting.caption import build_caption
from ofertai.models.listing import Destination, Listing

logger = logging.getLogger("ofertai.delivery")


def buy_button(url: str) -> dict[str, Any]:
    """Inline keyboard with a single call-to-action link button."""
    return {
        "inline_keyboard": [
            [{"text": Settings.BUY_BUTTON_LABEL, "url": url}]
        ]
    }


class DeliveryChannel:
    """Photo-first delivery with a text-only fallback.

    At most one photo attempt (only when the listing has a thumbnail)
    and at most one text attempt. A failed text send raises
    :class:`DeliveryError` to the caller.
    """

    def __init__(self, api: TelegramBotAPI) -> None:
        self.api = api

    async def send_text(self, destination: Destination, text: str) -> None:
        """Send a plain (HTML-parsed) text message."""
        await asyncio.to_thread(self.api.send_message, destination, text)

    async def deliver(
        self, destination: Destination, listing: Listing
    ) -> str:
        """Send *listing* to *destination*; returns ``"photo"`` or ``"text"``."""
        caption = build_caption(listing)

        if listing.thumbnail:
            try:
                await asyncio.to_thread(
                    self.api.send_photo,
                    destination,
                    listing.thumbnail,
                    caption,
                    buy_button(listing.permalink),
                )
                return "photo"
            except DeliveryError as exc:
                logger.warning(
                    "Photo delivery of %s to %s failed, "
                    "falling back to text: %s",
                    listing.id,
                    destination,
                    exc,
                )

        await asyncio.to_thread(
            self.api.send_message,
            destination,
            f"{caption}\n\n🔗 {listing.permalink}",
        )
        return "text"
