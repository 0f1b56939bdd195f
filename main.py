# main.py

"""Entry point for the OfertAi relay bot (long-running or one-shot CLI)."""

import argparse
import asyncio
import logging
import sys

from ofertai.config.logging_config import setup_logging
from ofertai.config.settings import Settings
from ofertai.errors import ConfigurationError

logger = logging.getLogger("ofertai.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ofertai",
        description="Mercado Livre deals relay for Telegram.",
        epilog="Without options the bot runs until terminated.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--search",
        metavar="TERM",
        default=None,
        help="Print the listings for TERM and exit.",
    )
    group.add_argument(
        "--preview",
        metavar="TERM",
        default=None,
        help="Print the captions that TERM's listings would get.",
    )
    group.add_argument(
        "--dispatch-now",
        metavar="CHAT_ID",
        default=None,
        dest="dispatch_now",
        help="Run one dispatch to CHAT_ID and exit.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format for --search (default: json).",
    )
    return parser


def _require_config(require_token: bool = True) -> None:
    """Validate settings or exit with status 1."""
    try:
        Settings.validate(require_token=require_token)
    except ConfigurationError as exc:
        logger.critical("Configuration error: %s", exc)
        sys.stderr.write(f"{exc}\n")
        sys.exit(1)


def _run_bot() -> None:
    """Run the long-lived bot: poller, scheduler and health server."""
    from ofertai.app import build_app, run_bot

    token = Settings.TELEGRAM_TOKEN or ""
    app = build_app(token)
    try:
        asyncio.run(run_bot(app))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception:
        logger.critical("Fatal error during bot run", exc_info=True)
        raise


def _run_search(args: argparse.Namespace) -> None:
    from ofertai.cli.runner import cli_search

    sys.exit(asyncio.run(cli_search(args.search, args.output_format)))


def _run_preview(args: argparse.Namespace) -> None:
    from ofertai.cli.runner import cli_preview

    sys.exit(asyncio.run(cli_preview(args.preview)))


def _run_dispatch_now(args: argparse.Namespace) -> None:
    from ofertai.cli.runner import run_dispatch_now

    token = Settings.TELEGRAM_TOKEN or ""
    sys.exit(asyncio.run(run_dispatch_now(token, args.dispatch_now)))


def main(argv: list[str] | None = None) -> None:
    """Route to the bot (no options) or a one-shot command."""
    log_file = setup_logging()
    logger.info("ofertai starting — log file: %s", log_file)

    args = _build_parser().parse_args(argv)

    if args.search is not None:
        _require_config(require_token=False)
        _run_search(args)
    elif args.preview is not None:
        _require_config(require_token=False)
        _run_preview(args)
    elif args.dispatch_now is not None:
        _require_config()
        _run_dispatch_now(args)
    else:
        _require_config()
        _run_bot()


if __name__ == "__main__":
    main()
