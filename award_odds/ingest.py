"""
Odds Sync Pipeline for Award Categories

This module runs the odds sync: for every configured category of one
source it fetches quotes, matches them to the stored nominees and writes
the new odds.

Features:
    - Sources: Polymarket by event slug, Polymarket bulk search, Kalshi series
    - Sequential category processing with per-source request spacing
    - Dry runs against Firebase or a local JSON snapshot
    - Optional Parquet archive of every fetched quote
    - Progress tracking and logging

Usage:
    # Oscars odds from Polymarket events
    python -m award_odds.ingest --source polymarket

    # BAFTA odds from Kalshi series
    python -m award_odds.ingest --source kalshi

    # Oscars odds from the open-market listing, two categories, no writes
    python -m award_odds.ingest --source polymarket-search \\
        --categories "Best Picture" "Best Director" --dry-run
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from tqdm import tqdm

from award_odds.archive import QuoteArchive
from award_odds.base_client import BaseMarketClient, RateLimitConfig
from award_odds.config import (
    BAFTA_KALSHI_CATEGORIES,
    OSCARS_POLYMARKET_CATEGORIES,
    OSCARS_SEARCH_CATEGORIES,
    database_url,
    load_firebase_credentials,
    select_categories,
)
from award_odds.kalshi import KalshiClient
from award_odds.matcher import NomineeMatcher
from award_odds.polymarket import PolymarketClient, PolymarketSearchClient
from award_odds.schema import Category
from award_odds.store import DryRunStore, FirebaseStore, MemoryStore, NomineeStore
from award_odds.updater import CategoryUpdater, UpdateResult

logger = logging.getLogger(__name__)

SOURCES = ("polymarket", "polymarket-search", "kalshi")

SOURCE_CATEGORIES = {
    "polymarket": OSCARS_POLYMARKET_CATEGORIES,
    "polymarket-search": OSCARS_SEARCH_CATEGORIES,
    "kalshi": BAFTA_KALSHI_CATEGORIES,
}

SOURCE_TITLES = {
    "polymarket": "Polymarket Odds",
    "polymarket-search": "Polymarket Odds (market search)",
    "kalshi": "Kalshi BAFTA Odds",
}


def build_source(
    source: str,
    interval: Optional[float] = None,
    max_offset: int = 2000,
) -> BaseMarketClient:
    """
    Create the client for a source name.

    Args:
        source: One of SOURCES
        interval: Minimum seconds between requests (client default if None)
        max_offset: Largest listing offset for the search source

    Returns:
        Unopened client
    """
    rate_limit = RateLimitConfig.from_interval(interval) if interval is not None else None

    if source == "polymarket":
        return PolymarketClient(rate_limit=rate_limit)
    elif source == "polymarket-search":
        return PolymarketSearchClient(rate_limit=rate_limit, max_offset=max_offset)
    elif source == "kalshi":
        return KalshiClient(rate_limit=rate_limit)
    else:
        raise ValueError(f"Unknown source: {source}")


def build_store(snapshot: Optional[str] = None, dry_run: bool = False) -> NomineeStore:
    """
    Create the nominee store.

    Args:
        snapshot: JSON export to read instead of Firebase
        dry_run: Log writes instead of applying them

    Raises:
        ConfigError: If Firebase credentials are missing or invalid
    """
    if snapshot:
        store: NomineeStore = MemoryStore.from_json_file(snapshot)
    else:
        store = FirebaseStore(load_firebase_credentials(), database_url())

    if dry_run:
        store = DryRunStore(store)
    return store


async def run_sync(
    updater: CategoryUpdater,
    categories: List[Category],
    show_progress: bool = True,
) -> List[UpdateResult]:
    """
    Update categories one at a time.

    Recoverable problems (no quotes, no stored nominees) skip the category;
    anything else propagates and aborts the run.
    """
    results = []
    for category in tqdm(categories, desc="categories", disable=not show_progress):
        results.append(await updater.update(category))
    return results


def summarize(results: List[UpdateResult]) -> Tuple[int, int, int]:
    """Count (categories updated, nominees updated, categories skipped)."""
    updated = sum(1 for r in results if r.matched)
    nominees = sum(r.matched for r in results)
    return updated, nominees, len(results) - updated


async def run(args: argparse.Namespace) -> List[UpdateResult]:
    """Build the pipeline from CLI arguments and run it."""
    categories = select_categories(SOURCE_CATEGORIES[args.source], args.categories)
    store = build_store(args.snapshot, args.dry_run)
    archive = QuoteArchive(args.archive_dir) if args.archive_dir else None
    matcher = NomineeMatcher(strict=args.strict_matching)

    async with build_source(args.source, args.interval, args.max_offset) as source:
        updater = CategoryUpdater(store, source, matcher=matcher, archive=archive)
        results = await run_sync(updater, categories, show_progress=not args.no_progress)
        logger.info(f"{source.platform.value} API stats: {source.get_stats_summary()}")

    return results


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Award-show odds sync from prediction markets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m award_odds.ingest --source polymarket
  python -m award_odds.ingest --source kalshi --categories "Best Picture"
  python -m award_odds.ingest --source polymarket-search --dry-run --snapshot db.json
        """,
    )

    parser.add_argument(
        "--source",
        choices=SOURCES,
        default="polymarket",
        help="Quote source to sync from",
    )

    parser.add_argument(
        "--categories",
        nargs="+",
        default=None,
        help="Only update these categories (display names)",
    )

    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Minimum seconds between upstream requests",
    )

    parser.add_argument(
        "--max-offset",
        type=int,
        default=2000,
        help="Largest listing offset for polymarket-search",
    )

    parser.add_argument(
        "--strict-matching",
        action="store_true",
        help="Leave nominees unmatched when several claim the same quote",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the writes instead of applying them",
    )

    parser.add_argument(
        "--snapshot",
        default=None,
        help="Read nominees from a JSON database export instead of Firebase",
    )

    parser.add_argument(
        "--archive-dir",
        default=None,
        help="Append fetched quotes to a Parquet archive in this directory",
    )

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit status."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    logger.info(f"=== Updating {SOURCE_TITLES[args.source]} ===")
    logger.info(f"Time: {datetime.now(timezone.utc).isoformat()}")

    try:
        results = asyncio.run(run(args))
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    updated, nominees, skipped = summarize(results)
    print("\n=== Update Complete ===")
    print(f"Categories updated: {updated}")
    print(f"Nominees updated: {nominees}")
    print(f"Categories skipped: {skipped}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
