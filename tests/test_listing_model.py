# tests/test_listing_model.py

"""Tests for the Listing dataclass and price conversion."""

import unittest
from decimal import Decimal

from ofertai.models.listing import Listing, to_decimal


class TestToDecimal(unittest.TestCase):
    """JSON number to Decimal conversion."""

    def test_float_keeps_printed_value(self) -> None:
        self.assertEqual(to_decimal(0.1), Decimal("0.1"))
        self.assertEqual(to_decimal(899.9), Decimal("899.9"))

    def test_int_and_string(self) -> None:
        self.assertEqual(to_decimal(1000), Decimal("1000"))
        self.assertEqual(to_decimal("12.50"), Decimal("12.50"))

    def test_invalid_values(self) -> None:
        for value in (None, True, "abc", float("nan"), float("inf")):
            with self.subTest(value=value):
                self.assertIsNone(to_decimal(value))


class TestListing(unittest.TestCase):
    """Listing defaults and dedup keys."""

    def test_defaults(self) -> None:
        listing = Listing(id="MLB1", title="Item")
        self.assertIsNone(listing.price)
        self.assertIsNone(listing.original_price)
        self.assertEqual(listing.currency, "BRL")
        self.assertIsNone(listing.thumbnail)

    def test_dedup_key(self) -> None:
        listing = Listing(id="A1", title="Item")
        self.assertEqual(listing.dedup_key("chat1"), "chat1:A1")
        self.assertEqual(listing.dedup_key(-100), "-100:A1")


if __name__ == "__main__":
    unittest.main()
