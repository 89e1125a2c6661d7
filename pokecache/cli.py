"""
Command line entry point.

Boots cache population against the upstream catalog, waits for it to finish
(or for ``--wait`` seconds), then prints the requested records.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from pokecache.clients import FetchError
from pokecache.config import Settings, load_settings
from pokecache.services.cache import InvalidKeyError
from pokecache.workflow import StartupError, start_population

logger = logging.getLogger("pokecache")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pokecache",
        description="Mirror the PokeAPI catalog into memory and look up records.",
    )
    parser.add_argument("ids", nargs="*", help="Record ids to print once populated.")
    parser.add_argument("--base-url", help="Catalog base URL.")
    parser.add_argument("--limit", type=int, help="Bulk index page size.")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds.")
    parser.add_argument(
        "--max-attempts",
        type=int,
        help="Drop an item after this many failed fetches (default: retry forever).",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=None,
        help="Seconds to wait for population to finish (default: no limit).",
    )
    parser.add_argument("--log-level", help="Logging level (default: INFO).")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: Dict[str, object] = {}
    if args.base_url:
        overrides["catalog_base_url"] = args.base_url
    if args.limit is not None:
        overrides["index_limit"] = args.limit
    if args.timeout is not None:
        overrides["request_timeout"] = args.timeout
    if args.max_attempts is not None:
        overrides["max_attempts"] = args.max_attempts
    if args.log_level:
        overrides["log_level"] = args.log_level
    return load_settings(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging(settings.log_level)

    try:
        worker = start_population(settings)
    except (FetchError, StartupError) as exc:
        logger.error("Could not start population: %s", exc)
        return 1

    if not worker.wait_until_populated(args.wait):
        logger.warning("Population still running after %.1fs", args.wait)
    print(f"cached records: {worker.store.count()}")

    for key in args.ids:
        try:
            record = worker.store.lookup(key)
        except InvalidKeyError as exc:
            print(f"{key}: {exc}", file=sys.stderr)
            continue
        if record is None:
            print(f"{key}: not cached")
        else:
            print(json.dumps(record.to_dict(), indent=2))

    worker.stop(timeout=1.0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
