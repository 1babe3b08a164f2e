"""
Award Odds Sync Package

This package fetches award-show win probabilities from prediction markets
(Polymarket, Kalshi), converts them to American odds and writes them into
the stored nominee lists.

Modules:
    schema: Data models and probability/odds conversion
    config: Category tables, placeholder denylist, credentials
    base_client: Abstract source client with rate limiting
    polymarket: Polymarket Gamma sources (event slug, market search)
    kalshi: Kalshi Trade API v2 series source
    matcher: Nominee name matching
    store: Firebase and in-memory nominee stores
    updater: Per-category fetch, match and write
    archive: Parquet quote history
    ingest: Run loop and CLI
"""

from award_odds.schema import (
    CanonicalNominee,
    Category,
    NormalizedQuote,
    ParseError,
    Platform,
    to_american_odds,
)

__all__ = [
    "CanonicalNominee",
    "Category",
    "NormalizedQuote",
    "ParseError",
    "Platform",
    "to_american_odds",
]
