# ofertai/search/mercadolivre_client.py

"""Client for the Mercado Livre public search API."""

import json
import logging
from typing import Any

from curl_cffi import requests as curl_requests

from ofertai.config.settings import Settings
from ofertai.errors import UpstreamSearchError
from ofertai.models.listing import Listing, to_decimal


class MercadoLivreClient:
    """Fetches the best-selling listings for a search term.

    One GET per term, no pagination and no retries: a failed call
    raises :class:`UpstreamSearchError` and the caller decides what
    to skip.
    """

    def __init__(
        self,
        api_url: str | None = None,
        limit: int | None = None,
        sort: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self.logger = logging.getLogger("ofertai.search")
        self.settings = Settings()
        self.api_url = api_url or self.settings.SEARCH_API_URL
        self.limit = limit or self.settings.SEARCH_LIMIT
        self.sort = sort or self.settings.SEARCH_SORT
        self.timeout = timeout or self.settings.REQUEST_TIMEOUT
        self.session = curl_requests.Session()

    @staticmethod
    def _parse_result(item: dict[str, Any]) -> Listing:
        """Parse a single search result into a Listing."""
        thumbnail = item.get("thumbnail") or None
        return Listing(
            id=str(item.get("id", "") or ""),
            title=str(item.get("title", "") or ""),
            price=to_decimal(item.get("price")),
            original_price=to_decimal(item.get("original_price")),
            currency=str(item.get("currency_id") or "BRL"),
            permalink=str(item.get("permalink", "") or ""),
            thumbnail=str(thumbnail) if thumbnail else None,
        )

    def _parse_body(self, term: str, text: str) -> list[Listing]:
        """Map a response body to listings; malformed bodies yield []."""
        try:
            data: Any = json.loads(text)
        except ValueError:
            self.logger.warning(
                "[search] Non-JSON body for '%s' ignored", term
            )
            return []
        if not isinstance(data, dict):
            return []
        results = data.get("results")
        if not isinstance(results, list):
            self.logger.info(
                "[search] No results array for '%s'", term
            )
            return []
        return [
            self._parse_result(item)
            for item in results
            if isinstance(item, dict)
        ]

    def search(self, term: str) -> list[Listing]:
        """Search Mercado Livre for listings matching *term*."""
        if not term or not term.strip():
            raise ValueError("search term must be a non-empty string")

        params: dict[str, str | int] = {
            "q": term,
            "limit": self.limit,
            "sort": self.sort,
        }
        try:
            resp = self.session.get(
                self.api_url,
                params=params,
                headers=self.settings.DEFAULT_HEADERS,
                timeout=self.timeout,
            )
        except Exception as exc:
            raise UpstreamSearchError(
                f"Search request for '{term}' failed: {exc}"
            ) from exc

        if not 200 <= resp.status_code < 300:
            raise UpstreamSearchError(
                f"Search for '{term}' rejected",
                status=resp.status_code,
                body=resp.text or None,
            )

        listings = self._parse_body(term, resp.text)
        self.logger.debug(
            "[search] '%s' returned %d listings", term, len(listings)
        )
        return listings
