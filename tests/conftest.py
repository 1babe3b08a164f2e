"""Pytest fixtures and shared test helpers."""

from __future__ import annotations

import json
from typing import Any

import pytest

from award_odds.base_client import BaseMarketClient, RateLimitConfig
from award_odds.schema import Category, NormalizedQuote, Platform

NO_WAIT = RateLimitConfig.from_interval(0)


class FakeGet:
    """Stand-in for a client's `get` coroutine, replaying canned responses."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, dict]] = []

    async def __call__(self, endpoint, params=None, **kwargs):
        self.calls.append((endpoint, dict(params or {})))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeResponse:
    def __init__(self, status: int = 200, body: str = "", reason: str = "OK") -> None:
        self.status = status
        self.reason = reason
        self._body = body

    async def text(self) -> str:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Minimal aiohttp.ClientSession replacement for `_request` tests."""

    def __init__(self, response: FakeResponse | Exception) -> None:
        self.response = response
        self.requests: list[tuple[str, str, dict]] = []

    def request(self, method, url, params=None, **kwargs):
        self.requests.append((method, url, dict(params or {})))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class StaticSource(BaseMarketClient):
    """Source returning fixed quotes per category path."""

    def __init__(self, quotes_by_path: dict[str, list[NormalizedQuote]],
                 platform: Platform = Platform.POLYMARKET) -> None:
        super().__init__(
            platform=platform,
            base_url="http://static.invalid",
            rate_limit=NO_WAIT,
            session=object(),
        )
        self.quotes_by_path = quotes_by_path
        self.requested: list[str] = []

    async def fetch_raw_markets(self, category):
        return []

    def parse_market(self, raw):
        raise AssertionError("not used")

    async def fetch_quotes(self, category):
        self.requested.append(category.path)
        return list(self.quotes_by_path.get(category.path, []))


def gamma_market(name: str | None, price: Any, **extra: Any) -> dict:
    """Gamma market payload with a JSON-encoded price array."""
    market = {"id": f"m-{name}", "groupItemTitle": name}
    if price is not None:
        market["outcomePrices"] = json.dumps([str(price), str(round(1 - float(price), 4))])
    market.update(extra)
    return market


@pytest.fixture
def best_picture():
    return Category("oscars-2026-best-picture-winner", "oscars/best-picture", "Best Picture")


@pytest.fixture
def sample_polymarket_event():
    """Minimal Gamma /events?slug= response."""
    return [
        {
            "id": "12345",
            "slug": "oscars-2026-best-picture-winner",
            "title": "Oscars 2026: Best Picture Winner",
            "markets": [
                gamma_market("Oppenheimer", 0.82),
                gamma_market("Dune: Part Two", 0.1),
                gamma_market("Other", 0.05),
                gamma_market("Movie A", 0.01),
                {"id": "broken", "groupItemTitle": "Poor Things", "outcomePrices": "not json"},
                {"id": "no-prices", "groupItemTitle": "Barbie"},
            ],
        }
    ]


@pytest.fixture
def sample_kalshi_markets():
    """Minimal Kalshi /markets?series_ticker= response."""
    return {
        "cursor": "",
        "markets": [
            {"ticker": "KXBAFTAFILM-26-ONE", "title": "One Battle After Another", "yes_price": 62},
            {"ticker": "KXBAFTAFILM-26-HAM", "title": "Hamnet", "yes_price": 25},
            {"ticker": "KXBAFTAFILM-26-MAR", "title": "", "subtitle": "Marty Supreme", "last_price": 8},
            {"ticker": "KXBAFTAFILM-26-NOP", "title": "Sinners"},
            {"ticker": "KXBAFTAFILM-26-OTH", "title": "Other", "yes_price": 5},
        ],
    }
