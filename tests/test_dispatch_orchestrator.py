# tests/test_dispatch_orchestrator.py

"""Tests for DispatchOrchestrator search/filter/deliver passes."""

import asyncio
import unittest
from decimal import Decimal

from ofertai.delivery.channel import DeliveryChannel
from ofertai.models.listing import Listing
from ofertai.services.dispatch_orchestrator import (
    DispatchOrchestrator,
    DispatchReport,
    split_terms,
)
from ofertai.storage.dedup_cache import InMemoryDedupCache
from tests.fakes import FakeBotAPI, FakeSearchClient, make_listing


def _build(
    search: FakeSearchClient,
    api: FakeBotAPI | None = None,
    terms: str = "smartphone",
    dedup: InMemoryDedupCache | None = None,
) -> tuple[DispatchOrchestrator, FakeBotAPI, InMemoryDedupCache]:
    bot = api or FakeBotAPI()
    cache = dedup if dedup is not None else InMemoryDedupCache(
        max_entries=100, evict_count=10
    )
    orch = DispatchOrchestrator(
        search,
        DeliveryChannel(bot),  # type: ignore[arg-type]
        cache,
        search_terms=terms,
    )
    return orch, bot, cache


class TestSplitTerms(unittest.TestCase):
    """Comma-separated term parsing."""

    def test_trims_and_drops_blanks(self) -> None:
        self.assertEqual(
            split_terms(" smartphone , ,notebook,, "),
            ["smartphone", "notebook"],
        )

    def test_empty(self) -> None:
        self.assertEqual(split_terms(""), [])


class TestDispatchOrchestrator(unittest.IsolatedAsyncioTestCase):
    """DispatchOrchestrator.dispatch behaviour."""

    async def test_end_to_end_suppresses_repeat(self) -> None:
        """Second immediate dispatch of the same result sends nothing."""
        listing = Listing(
            id="A1",
            title="Smartphone",
            price=Decimal("900"),
            original_price=Decimal("1000"),
            permalink="http://x/A1",
            thumbnail=None,
        )
        search = FakeSearchClient({"smartphone": [listing]})
        orch, api, _cache = _build(search)

        first = await orch.dispatch("chat1")
        self.assertEqual(first.sent, 1)
        self.assertEqual(len(api.messages), 1)
        text = api.messages[0][1]
        self.assertIn("10% OFF", text)
        self.assertIn("http://x/A1", text)

        second = await orch.dispatch("chat1")
        self.assertEqual(second.sent, 0)
        self.assertEqual(second.skipped, 1)
        self.assertEqual(api.sent_count, 1)

    async def test_destination_locks_are_released(self) -> None:
        search = FakeSearchClient({"a": [make_listing("A1")]})
        orch, _api, _cache = _build(search, terms="a")
        await asyncio.gather(
            orch.dispatch("chat1"),
            orch.dispatch("chat1"),
            orch.dispatch("chat2"),
        )
        self.assertEqual(orch._locks, {})
        self.assertEqual(orch._lock_users, {})

    async def test_lock_survives_while_dispatch_is_waiting(self) -> None:
        search = FakeSearchClient({"a": [make_listing("A1")]})
        orch, api, _cache = _build(search, terms="a")
        lock = orch._claim_lock("chat1")
        await lock.acquire()
        waiting = asyncio.create_task(orch.dispatch("chat1"))
        await asyncio.sleep(0)
        self.assertIs(orch._locks["chat1"], lock)
        lock.release()
        orch._release_lock("chat1")
        self.assertIn("chat1", orch._locks)
        report = await waiting
        self.assertEqual(report.sent, 1)
        self.assertNotIn("chat1", orch._locks)

    async def test_dedup_is_per_destination(self) -> None:
        search = FakeSearchClient({"smartphone": [make_listing("A1")]})
        orch, api, _cache = _build(search)
        await orch.dispatch("chat1")
        await orch.dispatch("chat2")
        self.assertEqual(
            [p[0] for p in api.photos], ["chat1", "chat2"]
        )

    async def test_failing_term_does_not_block_others(self) -> None:
        search = FakeSearchClient(
            {"y": [make_listing("Y1")]}, failing={"x"}
        )
        orch, api, _cache = _build(search, terms="x,y")
        report = await orch.dispatch("chat1")

        self.assertEqual(search.calls, ["x", "y"])
        self.assertEqual(report.sent, 1)
        self.assertEqual(len(report.errors), 1)
        self.assertTrue(report.errors[0].startswith("x:"))
        self.assertEqual(len(api.photos), 1)

    async def test_listings_delivered_in_order(self) -> None:
        search = FakeSearchClient(
            {
                "a": [make_listing("A1"), make_listing("A2")],
                "b": [make_listing("B1")],
            }
        )
        orch, api, cache = _build(search, terms="a, b")
        await orch.dispatch(7)
        self.assertEqual(
            [p[3]["inline_keyboard"][0][0]["url"] for p in api.photos],
            ["http://x/A1", "http://x/A2", "http://x/B1"],
        )
        self.assertTrue(cache.contains("7:A2"))

    async def test_text_failure_aborts_term_not_dispatch(self) -> None:
        search = FakeSearchClient(
            {
                "a": [make_listing("A1"), make_listing("A2")],
                "b": [make_listing("B1")],
            }
        )
        api = FakeBotAPI(fail_photo=True, fail_text=True)
        orch, _api, cache = _build(search, api=api, terms="a,b")
        report = await orch.dispatch("chat1")

        self.assertEqual(report.sent, 0)
        self.assertEqual(len(report.errors), 2)
        self.assertFalse(cache.contains("chat1:A1"))
        self.assertEqual(search.calls, ["a", "b"])

    async def test_undelivered_listing_is_not_recorded(self) -> None:
        search = FakeSearchClient({"a": [make_listing("A1")]})
        api = FakeBotAPI(fail_photo=True, fail_text=True)
        orch, _api, cache = _build(search, api=api, terms="a")
        await orch.dispatch("chat1")
        self.assertEqual(len(cache), 0)

    async def test_eviction_checked_once_after_pass(self) -> None:
        listings = [make_listing(f"A{i}") for i in range(5)]
        search = FakeSearchClient({"a": listings})
        cache = InMemoryDedupCache(
            max_entries=3, evict_count=2, policy="insertion"
        )
        orch, api, _cache = _build(search, terms="a", dedup=cache)
        await orch.dispatch("chat1")
        self.assertEqual(len(api.photos), 5)
        self.assertEqual(len(cache), 3)
        self.assertFalse(cache.contains("chat1:A0"))

    async def test_no_terms(self) -> None:
        search = FakeSearchClient()
        orch, api, _cache = _build(search, terms=" , ")
        report = await orch.dispatch("chat1")
        self.assertIsInstance(report, DispatchReport)
        self.assertEqual(report.terms, [])
        self.assertEqual(search.calls, [])

    async def test_same_destination_dispatches_do_not_overlap(self) -> None:
        """Concurrent dispatches to one destination run one at a time."""
        search = FakeSearchClient({"a": [make_listing("A1")]})
        orch, api, _cache = _build(search, terms="a")
        first, second = await asyncio.gather(
            orch.dispatch("chat1"), orch.dispatch("chat1")
        )
        self.assertEqual(first.sent + second.sent, 1)
        self.assertEqual(api.sent_count, 1)


if __name__ == "__main__":
    unittest.main()
