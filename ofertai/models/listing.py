# ofertai/models/listing.py

"""Listing data model for inter-module data flow."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

# A chat id (int) or a public channel handle such as "@meucanal".
Destination = int | str


def to_decimal(value: Any) -> Decimal | None:
    """Convert a JSON number (or numeric string) to Decimal.

    Goes through ``str`` so floats like ``0.1`` keep their printed value.
    Returns ``None`` for missing, boolean or unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


@dataclass
class Listing:
    """A single product result normalised from the search API."""

    id: str
    title: str
    price: Decimal | None = None
    original_price: Decimal | None = None
    currency: str = "BRL"
    permalink: str = ""
    thumbnail: str | None = None

    def dedup_key(self, destination: Destination) -> str:
        """Key used to suppress repeat delivery to *destination*."""
        return f"{destination}:{self.id}"
