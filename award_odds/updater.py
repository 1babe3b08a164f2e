"""
Category Updater

Runs one award category end-to-end: fetch quotes from a source, match them
against the stored nominee list, and write back only the matched nominees'
`odds.<platform>` and `lastUpdated` fields.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from award_odds.archive import QuoteArchive
from award_odds.base_client import BaseMarketClient
from award_odds.matcher import NomineeMatcher
from award_odds.schema import CanonicalNominee, Category
from award_odds.store import NomineeStore

logger = logging.getLogger(__name__)

NOMINEES_KEY = "nominees"

STATUS_UPDATED = "updated"
STATUS_NO_QUOTES = "no_quotes"
STATUS_NO_NOMINEES = "no_nominees"
STATUS_NO_MATCHES = "no_matches"


@dataclass
class UpdateResult:
    """Outcome of updating one category."""
    category: Category
    status: str
    quotes: int = 0
    matched: int = 0
    unmatched: List[str] = field(default_factory=list)


def nominees_path(category: Category) -> str:
    """Storage path of a category's nominee list."""
    return f"{category.path.rstrip('/')}/{NOMINEES_KEY}"


def load_nominees(value: Any) -> List[Tuple[int, CanonicalNominee]]:
    """
    Turn a stored nominee list into (index, nominee) pairs.

    The database returns arrays either as lists or, when sparse, as dicts
    keyed by index strings. Empty slots are skipped; indices are kept so
    writes address the original positions.
    """
    if isinstance(value, list):
        items = list(enumerate(value))
    elif isinstance(value, dict):
        items = sorted(
            (int(k), v) for k, v in value.items() if str(k).isdecimal() and str(k).isascii()
        )
    else:
        return []

    return [
        (index, CanonicalNominee.from_record(record))
        for index, record in items
        if isinstance(record, dict)
    ]


class CategoryUpdater:
    """
    Updates stored odds for one source.

    Attributes:
        store: Nominee storage
        source: Quote source for the platform
        matcher: Nominee matcher
        archive: Optional quote history
    """

    def __init__(
        self,
        store: NomineeStore,
        source: BaseMarketClient,
        matcher: Optional[NomineeMatcher] = None,
        archive: Optional[QuoteArchive] = None,
    ):
        self.store = store
        self.source = source
        self.matcher = matcher or NomineeMatcher()
        self.archive = archive

    @property
    def odds_key(self) -> str:
        """Key under each nominee's `odds` written by this updater."""
        return self.source.platform.value

    async def update(
        self,
        category: Category,
        run_date: Optional[date] = None,
    ) -> UpdateResult:
        """
        Fetch, match and persist odds for one category.

        Args:
            category: Category to update
            run_date: Date stored in `lastUpdated` (today, UTC, if None)

        Returns:
            UpdateResult describing what happened
        """
        run_date = run_date or datetime.now(timezone.utc).date()
        platform_name = self.source.platform.value.capitalize()

        logger.info(f"{category.name}:")

        quotes = await self.source.fetch_quotes(category)
        if not quotes:
            logger.info(f"  - No {platform_name} data (market may not exist or be closed)")
            return UpdateResult(category, STATUS_NO_QUOTES)

        logger.info(f"  Found {len(quotes)} nominees on {platform_name}")

        path = nominees_path(category)
        indexed = load_nominees(self.store.get(path))
        if not indexed:
            logger.warning(f"  No nominees stored at {category.path}")
            return UpdateResult(category, STATUS_NO_NOMINEES, quotes=len(quotes))

        nominees = [nominee for _, nominee in indexed]
        matches = self.matcher.match(nominees, quotes)

        updates: Dict[str, str] = {}
        unmatched: List[str] = []
        matched_names: Dict[str, List[str]] = {}

        for position, (index, nominee) in enumerate(indexed):
            quote = matches.get(position)
            if quote is None:
                unmatched.append(nominee.name)
                logger.info(f"  - {nominee.name}: Not found on {platform_name}")
                continue

            updates[f"{index}/odds/{self.odds_key}"] = quote.odds
            updates[f"{index}/lastUpdated"] = run_date.isoformat()
            matched_names.setdefault(quote.name, []).append(nominee.name)
            logger.info(f"  {nominee.name}: {quote.odds}")

        if updates:
            self.store.update(path, updates)
            logger.info(f"  Updated {len(indexed) - len(unmatched)} nominees")

        if self.archive is not None:
            self.archive.write_quotes(
                quotes,
                self.source.platform,
                category,
                matched={name: "; ".join(names) for name, names in matched_names.items()},
            )

        return UpdateResult(
            category,
            STATUS_UPDATED if updates else STATUS_NO_MATCHES,
            quotes=len(quotes),
            matched=len(indexed) - len(unmatched),
            unmatched=unmatched,
        )
