# ofertai/cli/runner.py

"""Headless one-shot commands: search, caption preview and manual dispatch."""

import asyncio
import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from ofertai.errors import UpstreamSearchError
from ofertai.formatting.caption import build_caption, format_brl
from ofertai.models.listing import Destination, Listing
from ofertai.search.mercadolivre_client import MercadoLivreClient

logger = logging.getLogger("ofertai.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def parse_destination(raw: str) -> Destination:
    """Numeric chat ids become ints; handles like ``@canal`` stay strings."""
    value = raw.strip()
    if value.lstrip("-").isdigit():
        return int(value)
    return value


def _listings_to_dicts(listings: list[Listing]) -> list[dict[str, object]]:
    """Serialise listings to plain dicts for JSON output."""
    return [
        {
            "id": item.id,
            "title": item.title,
            "price": str(item.price) if item.price is not None else None,
            "original_price": (
                str(item.original_price)
                if item.original_price is not None
                else None
            ),
            "currency": item.currency,
            "permalink": item.permalink,
            "thumbnail": item.thumbnail,
        }
        for item in listings
    ]


def _print_table(listings: list[Listing]) -> None:
    """Render a Rich table of listings to stdout."""
    table = Table(
        title="Mercado Livre",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("ID", style="magenta")
    table.add_column("Title", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Was", justify="right", style="dim")
    table.add_column("Link", overflow="fold", style="dim")

    for idx, item in enumerate(listings, 1):
        table.add_row(
            str(idx),
            item.id,
            item.title[:60],
            format_brl(item.price),
            format_brl(item.original_price)
            if item.original_price is not None
            else "—",
            item.permalink,
        )

    Console().print(table)


async def _fetch(term: str) -> list[Listing] | None:
    client = MercadoLivreClient()
    try:
        return await asyncio.to_thread(client.search, term)
    except UpstreamSearchError as exc:
        logger.error("CLI search failed: %s", exc)
        _err.print(f"[red]Search failed: {exc}[/red]")
        return None


async def cli_search(term: str, output_format: str) -> int:
    """Print the listings for *term*; returns 0 when any were found."""
    _err.print(f"[bold]Searching:[/bold] {term}")
    listings = await _fetch(term)
    if not listings:
        if listings is not None:
            _err.print("[yellow]No listings found.[/yellow]")
        return 1

    _err.print(f"[green]✓ {len(listings)} listings[/green]")
    if output_format == "table":
        _print_table(listings)
    else:
        json.dump(
            _listings_to_dicts(listings),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")
    return 0


async def cli_preview(term: str) -> int:
    """Print the caption each listing for *term* would be sent with."""
    listings = await _fetch(term)
    if not listings:
        return 1
    for item in listings:
        sys.stdout.write(f"{build_caption(item)}\n🔗 {item.permalink}\n\n")
    return 0


async def run_dispatch_now(token: str, raw_chat_id: str) -> int:
    """Run one dispatch pass to a single destination and report it."""
    from ofertai.app import build_app

    app = build_app(token, enable_health=False)
    destination = parse_destination(raw_chat_id)
    _err.print(f"[bold]Dispatching to[/bold] {destination}")
    report = await app.orchestrator.dispatch(destination)

    for error_msg in report.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")
    _err.print(
        f"[green]✓ {report.sent} sent[/green], "
        f"{report.skipped} skipped, "
        f"terms={', '.join(report.terms) or '—'}"
    )
    return 1 if report.errors else 0
