"""
Kalshi API Client

This module provides the Kalshi quote source, reading one series of award
markets per category from Kalshi's Trade API v2.

API Documentation: https://docs.kalshi.com

Endpoints Used:
    - GET /markets?series_ticker=...&status=open: Open markets in a series

Notes:
    - No authentication required for read-only operations
    - Prices are in cents (0-100), need to divide by 100
    - Each series is already one award category, so no placeholder filtering
"""

import logging
from typing import Any, Dict, List, Optional

from award_odds.base_client import BaseMarketClient, RateLimitConfig, SourceError
from award_odds.schema import (
    Category,
    MarketParseResult,
    ParseError,
    Platform,
    cents_to_probability,
)

logger = logging.getLogger(__name__)


class KalshiClient(BaseMarketClient):
    """
    Quote source addressing one Kalshi series per category.

    Note: Despite the 'elections' subdomain, this provides access to ALL markets.

    Example:
        async with KalshiClient() as client:
            quotes = await client.fetch_quotes(category)
    """

    BASE_URL = "https://api.elections.kalshi.com/trade-api/v2"

    # Candidate name fields, in order of preference
    NAME_FIELDS = ("title", "subtitle")
    # Price fields in cents; last_price replaced yes_price in newer responses
    PRICE_FIELDS = ("yes_price", "last_price")

    def __init__(
        self,
        rate_limit: Optional[RateLimitConfig] = None,
        page_size: int = 100,
        **kwargs,
    ):
        """
        Initialize Kalshi client.

        Args:
            rate_limit: Rate limiting configuration (one request per 1.5s if None)
            page_size: Markets requested per series (at most 100)
            **kwargs: Additional arguments passed to base class
        """
        if rate_limit is None:
            rate_limit = RateLimitConfig.from_interval(1.5)

        super().__init__(
            platform=Platform.KALSHI,
            base_url=self.BASE_URL,
            rate_limit=rate_limit,
            **kwargs,
        )
        self.page_size = min(page_size, 100)

    async def fetch_markets(
        self,
        series_ticker: str,
        status: str = "open",
    ) -> List[Dict[str, Any]]:
        """
        Fetch one page of markets in a series.

        Args:
            series_ticker: Series identifier
            status: Market status filter

        Returns:
            List of raw market dicts

        Raises:
            SourceError: On transport failure or an unexpected body
        """
        params = {
            "series_ticker": series_ticker,
            "status": status,
            "limit": self.page_size,
        }

        response = await self.get("/markets", params=params)
        if not isinstance(response, dict):
            raise SourceError(f"Unexpected /markets response for {series_ticker}")

        return response.get("markets") or []

    async def fetch_raw_markets(self, category: Category) -> List[Dict[str, Any]]:
        """Fetch open markets in the category's series."""
        return await self.fetch_markets(category.source_id)

    def parse_market(self, raw: Dict[str, Any]) -> MarketParseResult:
        """
        Convert a Kalshi market to a quote.

        Notes:
            - Name is the market title, or the subtitle if there is no title
            - Price is in cents and is divided by 100
        """
        market_id = str(raw.get("ticker") or "")

        name = next((raw[f] for f in self.NAME_FIELDS if raw.get(f)), None)
        cents = next(
            (raw[f] for f in self.PRICE_FIELDS if raw.get(f) is not None),
            None,
        )
        if cents is None:
            return ParseError("missing price", market_id)

        try:
            probability = cents_to_probability(cents)
        except ValueError as e:
            return ParseError(str(e), market_id)

        return self.make_quote(name, probability, market_id)
