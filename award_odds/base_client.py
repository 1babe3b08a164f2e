"""
Base API Client Infrastructure

This module provides an abstract base class for prediction market source
clients with built-in rate limiting and async HTTP support.

Features:
    - Minimum interval between requests (spaces out category fetches)
    - Async HTTP with aiohttp
    - Transport failures surfaced as SourceError, turned into empty results
    - Per-market parsing as values (NormalizedQuote or ParseError)

Usage:
    Subclass BaseMarketClient and implement:
        - fetch_raw_markets()
        - parse_market()
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import aiohttp

from award_odds.config import NamePredicate, is_denied
from award_odds.schema import (
    Category,
    MarketParseResult,
    NormalizedQuote,
    ParseError,
    Platform,
)

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """A source request failed (network, status, or body)."""


@dataclass
class RateLimitConfig:
    """
    Rate limiting configuration for API clients.

    Attributes:
        requests_per_second: Maximum requests per second
        burst_limit: Maximum concurrent requests (semaphore size)
    """
    requests_per_second: float = 0.5
    burst_limit: int = 1

    @classmethod
    def from_interval(cls, seconds: float) -> "RateLimitConfig":
        """Build a config spacing requests at least `seconds` apart."""
        if seconds <= 0:
            return cls(requests_per_second=float("inf"))
        return cls(requests_per_second=1.0 / seconds)


@dataclass
class RequestStats:
    """Track request statistics for monitoring."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    rate_limited_requests: int = 0
    total_latency_ms: float = 0.0

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total_requests == 0:
            return 0.0
        return (self.successful_requests / self.total_requests) * 100

    @property
    def avg_latency_ms(self) -> float:
        """Calculate average latency in milliseconds."""
        if self.successful_requests == 0:
            return 0.0
        return self.total_latency_ms / self.successful_requests


class RateLimiter:
    """
    Token bucket rate limiter with async support.

    Ensures requests don't exceed the configured rate limit
    while allowing for burst traffic up to the burst limit.
    """

    def __init__(self, config: RateLimitConfig):
        self.config = config
        self._semaphore = asyncio.Semaphore(config.burst_limit)
        self._min_interval = 1.0 / config.requests_per_second
        self._last_request_time: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Acquire permission to make a request."""
        async with self._semaphore:
            async with self._lock:
                if self._last_request_time is not None:
                    elapsed = time.monotonic() - self._last_request_time
                    wait_time = self._min_interval - elapsed

                    if wait_time > 0:
                        await asyncio.sleep(wait_time)

                self._last_request_time = time.monotonic()


class BaseMarketClient(ABC):
    """
    Abstract base class for prediction market source clients.

    Provides rate limiting and async HTTP requests. Subclasses implement
    how raw markets are fetched for a category and how one raw market
    becomes a quote.

    Attributes:
        platform: The platform this client connects to
        base_url: Base URL for API requests
        rate_limit: Rate limiting configuration
        denylist: Name predicates; matching names are dropped
        stats: Request statistics for monitoring
    """

    def __init__(
        self,
        platform: Platform,
        base_url: str,
        rate_limit: Optional[RateLimitConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        denylist: Sequence[NamePredicate] = (),
    ):
        """
        Initialize the base client.

        Args:
            platform: Target platform
            base_url: Base URL for API requests
            rate_limit: Rate limiting configuration (uses defaults if None)
            session: Optional aiohttp session (created if not provided)
            denylist: Name predicates rejecting placeholder outcomes
        """
        self.platform = platform
        self.base_url = base_url.rstrip("/")
        self.rate_limit = rate_limit or RateLimitConfig()
        self.denylist = tuple(denylist)
        self._session = session
        self._owns_session = session is None
        self._rate_limiter = RateLimiter(self.rate_limit)
        self.stats = RequestStats()

    async def __aenter__(self) -> "BaseMarketClient":
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure a session exists, creating one if necessary."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=30)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Any:
        """
        Make a rate-limited HTTP request and decode the JSON body.

        Args:
            method: HTTP method
            endpoint: API endpoint (appended to base_url)
            params: Query parameters
            **kwargs: Additional arguments passed to aiohttp

        Returns:
            Decoded JSON body

        Raises:
            SourceError: On network error, non-success status, or an
                empty or unparseable body
        """
        url = f"{self.base_url}{endpoint}"
        session = await self._ensure_session()

        await self._rate_limiter.acquire()
        self.stats.total_requests += 1
        start_time = time.monotonic()

        try:
            async with session.request(method, url, params=params, **kwargs) as response:
                elapsed_ms = (time.monotonic() - start_time) * 1000

                if response.status == 429:
                    self.stats.rate_limited_requests += 1

                if response.status >= 400:
                    self.stats.failed_requests += 1
                    raise SourceError(
                        f"HTTP {response.status} {response.reason} from {url}"
                    )

                text = await response.text()

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.stats.failed_requests += 1
            raise SourceError(f"Request to {url} failed: {e}") from e

        if not text.strip():
            self.stats.failed_requests += 1
            raise SourceError(f"Empty response body from {url}")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            self.stats.failed_requests += 1
            raise SourceError(f"Unparseable response from {url}: {e}") from e

        self.stats.successful_requests += 1
        self.stats.total_latency_ms += elapsed_ms
        return data

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Any:
        """Convenience method for GET requests."""
        return await self._request("GET", endpoint, params=params, **kwargs)

    # =========================================================================
    # Abstract Methods - Must be implemented by subclasses
    # =========================================================================

    @abstractmethod
    async def fetch_raw_markets(self, category: Category) -> List[Dict[str, Any]]:
        """
        Fetch the raw markets belonging to one category.

        Args:
            category: Category to fetch

        Returns:
            List of raw market dicts

        Raises:
            SourceError: On transport failure
        """
        pass

    @abstractmethod
    def parse_market(self, raw: Dict[str, Any]) -> MarketParseResult:
        """
        Convert one raw market into a quote.

        Args:
            raw: Raw market data from the API

        Returns:
            NormalizedQuote, or ParseError if the market must be skipped
        """
        pass

    # =========================================================================
    # Convenience Methods
    # =========================================================================

    async def fetch_quotes(self, category: Category) -> List[NormalizedQuote]:
        """
        Fetch and normalize all quotes for a category.

        Transport failures are logged and produce an empty list; callers
        treat that as "no update available".

        Args:
            category: Category to fetch

        Returns:
            Quotes in source order
        """
        try:
            raw_markets = await self.fetch_raw_markets(category)
        except SourceError as e:
            logger.error(f"{category.name}: error fetching from {self.platform.value}: {e}")
            return []

        return self.collect_quotes(raw_markets)

    def collect_quotes(self, raw_markets: Iterable[Any]) -> List[NormalizedQuote]:
        """Parse raw markets, keeping quotes and logging skipped entries."""
        quotes = []
        for raw in raw_markets:
            if not isinstance(raw, dict):
                logger.debug(f"Skipping market: not an object ({type(raw).__name__})")
                continue

            result = self.parse_market(raw)
            if isinstance(result, ParseError):
                logger.debug(f"Skipping market {result.market_id}: {result.reason}")
                continue
            quotes.append(result)
        return quotes

    def make_quote(
        self,
        name: Any,
        probability: Any,
        market_id: str = "",
    ) -> MarketParseResult:
        """
        Validate a name/probability pair and build a quote.

        Applies the denylist and rejects empty names and probabilities
        outside (0, 1).
        """
        if not isinstance(name, str) or not name.strip():
            return ParseError("missing name", market_id)

        name = name.strip()
        if is_denied(name, self.denylist):
            return ParseError(f"placeholder name {name!r}", market_id)

        try:
            return NormalizedQuote(name=name, probability=float(probability))
        except (TypeError, ValueError) as e:
            return ParseError(f"bad probability for {name!r}: {e}", market_id)

    def get_stats_summary(self) -> str:
        """Get a formatted summary of request statistics."""
        return (
            f"Requests: {self.stats.total_requests} total, "
            f"{self.stats.successful_requests} success, "
            f"{self.stats.failed_requests} failed, "
            f"{self.stats.rate_limited_requests} rate-limited | "
            f"Success rate: {self.stats.success_rate:.1f}% | "
            f"Avg latency: {self.stats.avg_latency_ms:.0f}ms"
        )
