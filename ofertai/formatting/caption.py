# ofertai/formatting/caption.py

"""Telegram caption formatting for listings (pt-BR, BRL)."""

import html
import re
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from ofertai.config.settings import Settings
from ofertai.models.listing import Listing

_CENT = Decimal("0.01")
_HALF = Decimal("0.5")
_NBSP = "\u00a0"
_TAG = re.compile(r"<[^>]+>")

HEADER = "🔥 <b>Oferta Mercado Livre</b>"


def format_brl(value: Decimal | None) -> str:
    """Format *value* in pt-BR currency notation, e.g. ``R$ 1.234,56``."""
    if value is None:
        return "—"
    quantized = value.quantize(_CENT, rounding=ROUND_HALF_UP)
    # 1,234.56 -> 1.234,56
    digits = f"{abs(quantized):,.2f}"
    digits = digits.replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if quantized < 0 else ""
    return f"{sign}R${_NBSP}{digits}"


def discount_percent(
    price: Decimal | None,
    original_price: Decimal | None,
) -> int | None:
    """Whole-number discount of *price* against *original_price*.

    Halves round up, so 12.5 becomes 13 and -2.5 becomes -2.
    Returns ``None`` when either price is missing or the original
    price is not positive.
    """
    if price is None or original_price is None or original_price <= 0:
        return None
    ratio = (1 - price / original_price) * 100
    return int((ratio + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def visible_length(markup: str) -> int:
    """Length Telegram counts for *markup*: UTF-16 units of the plain text."""
    return _utf16_len(html.unescape(_TAG.sub("", markup)))


def _shorten(text: str, limit: int) -> str:
    if _utf16_len(text) <= limit:
        return text
    cut = text[: max(limit - 1, 0)]
    while cut and _utf16_len(cut) > limit - 1:
        cut = cut[:-1]
    return cut.rstrip() + "…"


def build_caption(listing: Listing) -> str:
    """Render the HTML caption announcing *listing*.

    Long titles are shortened before escaping so the caption stays
    within Telegram's caption limit with every tag intact.
    """
    price = format_brl(listing.price)
    off = discount_percent(listing.price, listing.original_price)

    if off is not None and off >= Settings.MIN_DISCOUNT_PERCENT:
        old = format_brl(listing.original_price)
        price_line = f"💸 <s>{old}</s> ➜ <b>{price}</b> ({off}% OFF)"
    else:
        price_line = f"💸 <b>{price}</b>"

    title_prefix = "🛍️ "
    fixed = visible_length(HEADER) + visible_length(price_line)
    fixed += _utf16_len(title_prefix) + 2  # two newlines
    budget = Settings.CAPTION_MAX_LENGTH - fixed
    title = html.escape(_shorten(listing.title, budget))

    return "\n".join(
        [HEADER, f"{title_prefix}<b>{title}</b>", price_line]
    )
