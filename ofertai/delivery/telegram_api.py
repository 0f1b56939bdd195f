# ofertai/delivery/telegram_api.py

"""Thin synchronous client for the Telegram Bot API."""

import json
import logging
from typing import Any

from curl_cffi import requests as curl_requests

from ofertai.config.settings import Settings
from ofertai.errors import DeliveryError
from ofertai.models.listing import Destination

logger = logging.getLogger("ofertai.delivery")


class TelegramBotAPI:
    """Calls Bot API methods over a curl_cffi session.

    Every call carries an explicit timeout. Transport errors,
    timeouts, non-2xx statuses and ``"ok": false`` replies all
    surface as :class:`DeliveryError`. The token is part of the
    request URL only and is never logged.
    """

    def __init__(
        self,
        token: str,
        timeout: int | None = None,
        api_base: str | None = None,
    ) -> None:
        if not token:
            raise ValueError("a bot token is required")
        self.settings = Settings()
        self.timeout = timeout or self.settings.DELIVERY_TIMEOUT
        self._base_url = (
            f"{api_base or self.settings.TELEGRAM_API_BASE}/bot{token}"
        )
        self.session = curl_requests.Session()

    def _call(
        self,
        method: str,
        payload: dict[str, Any],
        timeout: float | None = None,
    ) -> Any:
        """POST *payload* to *method* and return the ``result`` field."""
        try:
            resp = self.session.post(
                f"{self._base_url}/{method}",
                json=payload,
                timeout=timeout or self.timeout,
            )
        except Exception as exc:
            raise DeliveryError(method, str(exc)) from exc

        try:
            data: Any = json.loads(resp.text) if resp.text else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not 200 <= resp.status_code < 300 or not data.get("ok"):
            description = str(
                data.get("description") or f"HTTP {resp.status_code}"
            )
            raise DeliveryError(
                method, description, status=resp.status_code
            )
        return data.get("result")

    def get_me(self) -> dict[str, Any]:
        """Return the bot's own user object."""
        result: dict[str, Any] = self._call("getMe", {})
        return result

    def send_message(
        self,
        chat_id: Destination,
        text: str,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = "HTML",
    ) -> dict[str, Any]:
        """Send a text message."""
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        result: dict[str, Any] = self._call("sendMessage", payload)
        logger.debug(
            "sendMessage to %s ok (len=%d)", chat_id, len(text)
        )
        return result

    def send_photo(
        self,
        chat_id: Destination,
        photo: str,
        caption: str,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = "HTML",
    ) -> dict[str, Any]:
        """Send a photo (by URL) with a caption."""
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "photo": photo,
            "caption": caption,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        result: dict[str, Any] = self._call("sendPhoto", payload)
        logger.debug("sendPhoto to %s ok", chat_id)
        return result

    def get_updates(
        self, offset: int = 0, timeout: int | None = None
    ) -> list[dict[str, Any]]:
        """Long-poll for new updates starting at *offset*."""
        poll_timeout = (
            self.settings.POLL_TIMEOUT if timeout is None else timeout
        )
        result = self._call(
            "getUpdates",
            {
                "offset": offset,
                "timeout": poll_timeout,
                "allowed_updates": ["message", "channel_post"],
            },
            timeout=poll_timeout + 10,
        )
        return list(result or [])
