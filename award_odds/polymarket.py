"""
Polymarket API Clients

This module provides the Polymarket quote sources. Both use the Gamma API
(https://gamma-api.polymarket.com), which carries market metadata and the
current outcome prices.

Endpoints Used:
    - Gamma /events?slug=...: One award category as an event with markets
    - Gamma /markets: Paginated listing of all open markets

Notes:
    - No authentication required for read-only operations
    - outcomePrices and outcomes arrive as JSON-encoded string arrays
    - The first outcome price is the win probability of the market's nominee
    - Events list placeholder nominees ("Other", "Movie A") that are dropped
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from award_odds.base_client import BaseMarketClient, RateLimitConfig, SourceError
from award_odds.config import (
    AWARD_KEYWORDS,
    AWARD_YEAR,
    DEFAULT_DENYLIST,
    NamePredicate,
)
from award_odds.schema import (
    Category,
    MarketParseResult,
    NormalizedQuote,
    ParseError,
    Platform,
)

logger = logging.getLogger(__name__)


def _decode_json_array(value: Any) -> Optional[List[Any]]:
    """Decode a JSON-encoded array field, returning None if malformed."""
    if not isinstance(value, str):
        return None
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        return None
    return decoded if isinstance(decoded, list) else None


class PolymarketClient(BaseMarketClient):
    """
    Quote source addressing one Polymarket event per category by slug.

    Example:
        async with PolymarketClient() as client:
            quotes = await client.fetch_quotes(category)
    """

    GAMMA_BASE_URL = "https://gamma-api.polymarket.com"

    def __init__(
        self,
        rate_limit: Optional[RateLimitConfig] = None,
        denylist: Sequence[NamePredicate] = DEFAULT_DENYLIST,
        **kwargs,
    ):
        """
        Initialize Polymarket client.

        Args:
            rate_limit: Rate limiting configuration (one request per 2s if None)
            denylist: Name predicates rejecting placeholder outcomes
            **kwargs: Additional arguments passed to base class
        """
        if rate_limit is None:
            rate_limit = RateLimitConfig.from_interval(2.0)

        super().__init__(
            platform=Platform.POLYMARKET,
            base_url=self.GAMMA_BASE_URL,
            rate_limit=rate_limit,
            denylist=denylist,
            **kwargs,
        )

    async def fetch_event(self, slug: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the event with the given slug.

        Returns:
            Event dict, or None if no event has this slug

        Raises:
            SourceError: On transport failure or a non-list response
        """
        data = await self.get("/events", params={"slug": slug})
        if not isinstance(data, list):
            raise SourceError(f"Unexpected /events response for {slug}")
        if not data or not isinstance(data[0], dict):
            return None
        return data[0]

    async def fetch_raw_markets(self, category: Category) -> List[Dict[str, Any]]:
        """Fetch the markets of the category's event."""
        event = await self.fetch_event(category.source_id)
        if event is None:
            logger.info(f"{category.name}: no Polymarket event for {category.source_id}")
            return []

        markets = event.get("markets")
        if not isinstance(markets, list):
            raise SourceError(f"Event {category.source_id} has no markets list")
        return markets

    def parse_market(self, raw: Dict[str, Any]) -> MarketParseResult:
        """
        Convert a Gamma event market to a quote.

        The nominee name is `groupItemTitle`; the probability is the first
        element of the JSON-encoded `outcomePrices`.
        """
        market_id = str(raw.get("id") or raw.get("slug") or "")

        prices = _decode_json_array(raw.get("outcomePrices"))
        if not prices:
            return ParseError("missing or malformed outcomePrices", market_id)

        return self.make_quote(raw.get("groupItemTitle"), prices[0], market_id)


class PolymarketSearchClient(PolymarketClient):
    """
    Quote source that scans every open Polymarket market once per run.

    The open-market listing is fetched on the first category and reused for
    the rest. Markets are kept when their question names the award season;
    each category then selects markets whose question contains its
    `source_id`.

    Example:
        async with PolymarketSearchClient(max_offset=1000) as client:
            for category in OSCARS_SEARCH_CATEGORIES:
                quotes = await client.fetch_quotes(category)
    """

    PAGE_SIZE = 100

    def __init__(
        self,
        year: str = AWARD_YEAR,
        keywords: Sequence[str] = AWARD_KEYWORDS,
        page_size: int = PAGE_SIZE,
        max_offset: int = 2000,
        **kwargs,
    ):
        """
        Initialize the search client.

        Args:
            year: Award season year the question must mention
            keywords: At least one must appear in the question
            page_size: Markets per listing request
            max_offset: Largest offset requested while paginating
            **kwargs: Additional arguments passed to PolymarketClient
        """
        super().__init__(**kwargs)
        self.year = year
        self.keywords = tuple(keywords)
        self.page_size = page_size
        self.max_offset = max_offset
        self._award_markets: Optional[List[Dict[str, Any]]] = None

    async def fetch_open_markets(self) -> List[Dict[str, Any]]:
        """
        Page through all open markets.

        Stops on a short page or once the next offset would pass
        `max_offset`.

        Raises:
            SourceError: On transport failure or a non-list page
        """
        markets: List[Dict[str, Any]] = []
        offset = 0

        while offset <= self.max_offset:
            page = await self.get(
                "/markets",
                params={
                    "closed": "false",
                    "active": "true",
                    "limit": self.page_size,
                    "offset": offset,
                },
            )
            if not isinstance(page, list):
                raise SourceError(f"Unexpected /markets response at offset {offset}")

            markets.extend(m for m in page if isinstance(m, dict))
            logger.debug(f"Fetched {len(page)} markets at offset {offset}")

            if len(page) < self.page_size:
                break
            offset += self.page_size

        return markets

    def is_award_market(self, raw: Dict[str, Any]) -> bool:
        """Check whether a market's question names the award season."""
        question = str(raw.get("question") or "").lower()
        if self.year.lower() not in question:
            return False
        return any(k.lower() in question for k in self.keywords)

    async def _load_award_markets(self) -> List[Dict[str, Any]]:
        if self._award_markets is None:
            try:
                markets = await self.fetch_open_markets()
            except SourceError as e:
                logger.error(f"Error listing Polymarket markets: {e}")
                markets = []

            self._award_markets = [m for m in markets if self.is_award_market(m)]
            logger.info(
                f"Found {len(self._award_markets)} award markets "
                f"among {len(markets)} open markets"
            )
        return self._award_markets

    async def fetch_raw_markets(self, category: Category) -> List[Dict[str, Any]]:
        """Select the cached award markets whose question names the category."""
        needle = category.source_id.lower()
        return [
            m for m in await self._load_award_markets()
            if needle in str(m.get("question") or "").lower()
        ]

    async def fetch_quotes(self, category: Category) -> List[NormalizedQuote]:
        """Fetch quotes for a category, most likely winner first."""
        quotes = await super().fetch_quotes(category)
        return sorted(quotes, key=lambda q: q.probability, reverse=True)

    def parse_market(self, raw: Dict[str, Any]) -> MarketParseResult:
        """
        Convert a listed market to a quote.

        The name is `groupItemTitle`, falling back to the first entry of the
        JSON-encoded `outcomes`.
        """
        market_id = str(raw.get("id") or raw.get("slug") or "")

        prices = _decode_json_array(raw.get("outcomePrices"))
        if not prices:
            return ParseError("missing or malformed outcomePrices", market_id)

        name = raw.get("groupItemTitle")
        if not name:
            outcomes = _decode_json_array(raw.get("outcomes"))
            name = outcomes[0] if outcomes else None

        return self.make_quote(name, prices[0], market_id)
