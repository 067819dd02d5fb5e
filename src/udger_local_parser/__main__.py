"""Udger local parser -- command line entry point.

Usage::

    python -m udger_local_parser [--config PATH] [--db PATH] [--ua UA]
        [--ip IP] [--header "Name: value" ...] [--no-cache]

Prints the classification as JSON on stdout. Exits with status 2 when the
reference database cannot be opened.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from udger_local_parser.errors import DatabaseUnavailableError

logger = logging.getLogger("udger_local_parser")


def load_config(config_path: str | None, db_path: str | None, no_cache: bool) -> Any:
    """Load settings and apply the command line overrides."""
    from udger_local_parser.config import load_settings

    settings = load_settings(config_path=Path(config_path) if config_path else None)
    if db_path:
        path = Path(db_path)
        settings.database.data_dir = str(path.parent)
        settings.database.filename = path.name
    if no_cache:
        settings.cache.enabled = False
    return settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv:
        Argument list.  Defaults to ``sys.argv[1:]`` when ``None``.
    """
    parser = argparse.ArgumentParser(
        prog="udger_local_parser",
        description="Classify a user agent, Client Hints headers and/or an IP address",
    )
    parser.add_argument("--config", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument("--db", type=str, default=None, help="Path to the udgerdb_v4.dat file")
    parser.add_argument("--ua", type=str, default=None, help="User-Agent string")
    parser.add_argument("--ip", type=str, default=None, help="IPv4 or IPv6 address")
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Request header, may be repeated (e.g. 'Sec-Ch-Ua-Platform: \"Windows\"')",
    )
    parser.add_argument("--no-cache", action="store_true", help="Disable the result caches")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> dict[str, Any]:
    """Open the parser, classify the inputs and return the result as a dict."""
    from udger_local_parser.models import ClientHints
    from udger_local_parser.parser import UdgerParser

    settings = load_config(args.config, args.db, args.no_cache)
    headers = ClientHints.from_text("\n".join(args.header)) if args.header else None

    async with await UdgerParser.open(settings) as parser:
        result = await parser.classify(user_agent=args.ua, headers=headers, ip=args.ip)
    return result.model_dump()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, classify and print JSON."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    args = parse_args(argv)

    try:
        output = asyncio.run(run(args))
    except DatabaseUnavailableError as exc:
        logger.error("%s", exc)
        sys.exit(2)

    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
