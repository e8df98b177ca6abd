"""
Offline script to purge expired cache records.

Usage:
    python -m vibematch.cache.sweep [--venue-days 7] [--vibe-days 30]
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from datetime import timedelta

from .config import DEFAULT_CACHE_CONFIG, CacheConfig
from .store import CacheStore, Namespace


def run_sweep(
    venue_days: float | None = None,
    vibe_days: float | None = None,
    config: CacheConfig = DEFAULT_CACHE_CONFIG,
) -> dict[str, int]:
    """Sweep both namespaces, returning records removed per namespace."""
    if venue_days is not None:
        config = replace(config, venue_ttl=timedelta(days=venue_days))
    if vibe_days is not None:
        config = replace(config, vibe_ttl=timedelta(days=vibe_days))

    store = CacheStore(config)
    return {namespace.value: store.sweep(namespace) for namespace in Namespace}


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibematch.cache.sweep",
        description="Delete venue and vibe-analysis cache records older than their TTL.",
    )
    parser.add_argument(
        "--venue-days",
        type=float,
        default=None,
        help=f"Venue record TTL in days (default: {DEFAULT_CACHE_CONFIG.venue_ttl.days})",
    )
    parser.add_argument(
        "--vibe-days",
        type=float,
        default=None,
        help=f"Vibe analysis TTL in days (default: {DEFAULT_CACHE_CONFIG.vibe_ttl.days})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = create_parser().parse_args(argv)
    removed = run_sweep(args.venue_days, args.vibe_days, config=DEFAULT_CACHE_CONFIG)
    for namespace, count in removed.items():
        print(f"{namespace}: removed {count} expired record(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
