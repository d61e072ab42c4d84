"""
CLI entry point for ratecache.

Usage:
    python main.py rates [--base-currency EUR] [--config config/config.yaml]
    python main.py show-config [--config config/config.yaml]
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

from ratecache.chain import build_default_chain
from ratecache.config import Settings, get_settings
from ratecache.exceptions import RateCacheException
from ratecache.logging_setup import configure_logging


def _load(args) -> Settings:
    yaml_path = Path(args.config) if args.config else None
    return get_settings(yaml_path=yaml_path)


async def _resolve_rates(settings: Settings):
    async with build_default_chain(settings) as chain:
        return await chain.resolve()


def cmd_rates(args) -> int:
    """Resolve and print the current exchange rates."""
    settings = _load(args)
    if args.base_currency:
        settings = replace(settings, remote=replace(settings.remote, base_currency=args.base_currency))
    configure_logging(settings.logging.level, settings.logging.format)

    rates = asyncio.run(_resolve_rates(settings))
    if rates is None:
        print("No exchange rate data available.", file=sys.stderr)
        return 1

    print(f"Base: {rates.base}  ({rates.timestamp.isoformat()})")
    for code in sorted(rates.rates):
        print(f"{code}: {rates.rates[code]}")
    return 0


def cmd_show_config(args) -> int:
    """Print the effective settings as JSON."""
    settings = _load(args)
    print(json.dumps(settings.as_dict(), indent=2))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="ratecache - tiered exchange rate cache"
    )
    parser.add_argument("--config", default=None, help="Path to config YAML")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    p_rates = subparsers.add_parser("rates", help="Print current exchange rates")
    p_rates.add_argument("--base-currency", default=None, help="Base currency code")

    subparsers.add_parser("show-config", help="Print effective settings")

    args = parser.parse_args(argv)

    commands = {
        "rates": cmd_rates,
        "show-config": cmd_show_config,
    }

    if args.command not in commands:
        parser.print_help()
        return 2

    try:
        return commands[args.command](args)
    except RateCacheException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
