"""
Data Schema Definitions for Award Odds

This module defines the data models shared by the source clients, the
nominee matcher and the category updater, plus the probability/odds
conversion utilities.

Schema Design Principles:
    - All probabilities normalized to the open interval (0, 1)
    - Odds stored as American-odds strings ("-292", "+292")
    - Platform enum values double as the key under a nominee's `odds`
    - Per-market parse failures are values (ParseError), never exceptions
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class Platform(Enum):
    """Supported prediction market platforms."""
    POLYMARKET = "polymarket"
    KALSHI = "kalshi"


@dataclass(frozen=True)
class Category:
    """
    Static description of one award category for one provider.

    Attributes:
        source_id: Provider identifier (event slug, series ticker, or
            question search string for bulk search)
        path: Storage path of the category; nominees live under `<path>/nominees`
        name: Display name used in logs and for CLI filtering
    """
    source_id: str
    path: str
    name: str


@dataclass
class NormalizedQuote:
    """
    One candidate's win probability from a single source and fetch cycle.

    Attributes:
        name: Candidate name as reported by the source
        probability: Win probability in (0, 1)
        odds: American-odds encoding of probability (computed if empty)
    """
    name: str
    probability: float
    odds: str = ""

    def __post_init__(self):
        """Validate probability and derive odds."""
        if not self.odds:
            self.odds = to_american_odds(self.probability)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "probability": self.probability,
            "odds": self.odds,
        }


@dataclass
class CanonicalNominee:
    """
    Pre-seeded nominee record as stored in the nominee database.

    Attributes:
        name: Display name, the matching key
        odds: Odds per source, keyed by Platform value
        last_updated: ISO date of the last odds write (stored as `lastUpdated`)
        extra: Any other stored keys, carried through untouched
    """
    name: str
    odds: Dict[str, str] = field(default_factory=dict)
    last_updated: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CanonicalNominee":
        """Build from a raw stored record. A malformed `odds` value reads as empty."""
        known = {"name", "odds", "lastUpdated"}
        odds = record.get("odds")
        return cls(
            name=str(record.get("name") or ""),
            odds=dict(odds) if isinstance(odds, dict) else {},
            last_updated=record.get("lastUpdated"),
            extra={k: v for k, v in record.items() if k not in known},
        )

    def to_dict(self) -> dict:
        """Convert back to the stored record layout."""
        record = dict(self.extra)
        record["name"] = self.name
        record["odds"] = dict(self.odds)
        if self.last_updated is not None:
            record["lastUpdated"] = self.last_updated
        return record


@dataclass(frozen=True)
class ParseError:
    """
    Why a single raw market did not produce a quote.

    Returned in place of a NormalizedQuote by `parse_market` so that
    skipped markets are explicit and testable.
    """
    reason: str
    market_id: str = ""


MarketParseResult = Union[NormalizedQuote, ParseError]


# =============================================================================
# Normalization Utilities
# =============================================================================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_american_odds(probability: float) -> str:
    """
    Convert a win probability to an American-odds string.

    Args:
        probability: Win probability in the open interval (0, 1)

    Returns:
        "-N" for favourites (probability >= 0.5), "+N" otherwise

    Raises:
        ValueError: If probability is not a number in (0, 1)

    Examples:
        >>> to_american_odds(0.745)
        '-292'
        >>> to_american_odds(0.255)
        '+292'
    """
    try:
        prob = float(probability)
    except (TypeError, ValueError):
        raise ValueError(f"probability must be a number, got {probability!r}")

    if math.isnan(prob) or prob <= 0 or prob >= 1:
        raise ValueError(f"probability must be in (0, 1), got {prob}")

    if prob >= 0.5:
        ratio = (prob * 100) / (1 - prob)
    else:
        ratio = ((1 - prob) * 100) / prob

    # Subnormal probabilities overflow the ratio
    if not math.isfinite(ratio):
        raise ValueError(f"probability too close to 0 or 1, got {prob}")

    if prob >= 0.5:
        return f"{_round_half_up(-ratio)}"
    return f"+{_round_half_up(ratio)}"


def cents_to_probability(cents: Any) -> float:
    """
    Convert a Kalshi cents price (0-100) to a probability.

    Raises:
        ValueError: If cents is missing or not numeric
    """
    if cents is None or isinstance(cents, bool):
        raise ValueError(f"price in cents must be a number, got {cents!r}")
    try:
        return float(cents) / 100.0
    except (TypeError, ValueError):
        raise ValueError(f"price in cents must be a number, got {cents!r}")
