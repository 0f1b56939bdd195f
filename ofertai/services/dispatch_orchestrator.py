# ofertai/services/dispatch_orchestrator.py

"""Searches, filters and delivers listings for a single destination."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from ofertai.config.settings import Settings
from ofertai.delivery.channel import DeliveryChannel
from ofertai.errors import DeliveryError
from ofertai.models.listing import Destination, Listing
from ofertai.storage.dedup_cache import DedupStore

logger = logging.getLogger("ofertai.dispatch")


class SearchClient(Protocol):
    def search(self, term: str) -> list[Listing]: ...


@dataclass
class DispatchReport:
    """Outcome of one dispatch pass for one destination."""

    destination: Destination
    terms: list[str] = field(default_factory=list)
    sent: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def split_terms(raw: str) -> list[str]:
    """Split a comma-separated term list into trimmed, non-empty terms."""
    return [t.strip() for t in raw.split(",") if t.strip()]


class DispatchOrchestrator:
    """Coordinates search, dedup filtering and delivery.

    Failures are isolated per term: a search error or a failed text
    delivery is logged and the next term is processed. Dispatches for
    the same destination never overlap.
    """

    def __init__(
        self,
        search_client: SearchClient,
        channel: DeliveryChannel,
        dedup: DedupStore,
        search_terms: str | None = None,
    ) -> None:
        self.search_client = search_client
        self.channel = channel
        self.dedup = dedup
        self.search_terms = (
            Settings.SEARCH_TERMS if search_terms is None else search_terms
        )
        self._locks: dict[Destination, asyncio.Lock] = {}
        self._lock_users: dict[Destination, int] = {}

    def _claim_lock(self, destination: Destination) -> asyncio.Lock:
        """Return the destination lock and count one more user of it."""
        lock = self._locks.get(destination)
        if lock is None:
            lock = self._locks[destination] = asyncio.Lock()
        users = self._lock_users.get(destination, 0)
        self._lock_users[destination] = users + 1
        return lock

    def _release_lock(self, destination: Destination) -> None:
        """Drop the lock once no dispatch holds or awaits it."""
        remaining = self._lock_users[destination] - 1
        if remaining:
            self._lock_users[destination] = remaining
        else:
            del self._lock_users[destination]
            del self._locks[destination]

    # ── Private helpers ──────────────────────────────────

    async def _dispatch_term(
        self,
        destination: Destination,
        term: str,
        report: DispatchReport,
    ) -> None:
        """Search one term and deliver its unseen listings."""
        listings: list[Listing] = await asyncio.to_thread(
            self.search_client.search, term
        )
        for listing in listings:
            key = listing.dedup_key(destination)
            if self.dedup.contains(key):
                report.skipped += 1
                continue
            await self.channel.deliver(destination, listing)
            self.dedup.record(key)
            report.sent += 1

    # ── Public API ───────────────────────────────────────

    async def dispatch(self, destination: Destination) -> DispatchReport:
        """Run one full dispatch pass for *destination*.

        Never raises; errors are logged and collected in the report.
        """
        report = DispatchReport(
            destination=destination,
            terms=split_terms(self.search_terms),
        )
        lock = self._claim_lock(destination)
        try:
            async with lock:
                for term in report.terms:
                    try:
                        await self._dispatch_term(destination, term, report)
                    except DeliveryError as exc:
                        report.errors.append(f"{term}: {exc}")
                        logger.error(
                            "Delivery to %s aborted for term '%s': %s",
                            destination,
                            term,
                            exc,
                        )
                    except Exception as exc:
                        report.errors.append(f"{term}: {exc}")
                        logger.error(
                            "Search/send failed for term '%s' (dest %s): %s",
                            term,
                            destination,
                            exc,
                            exc_info=True,
                        )
                self.dedup.maybe_evict()
        finally:
            self._release_lock(destination)

        logger.info(
            "Dispatch to %s done: %d sent, %d skipped, %d errors",
            destination,
            report.sent,
            report.skipped,
            len(report.errors),
        )
        return report
