"""
Nominee matching.

Reconciles quote names from a source against the canonical nominee list.
Sources spell nominees differently ("Hanks", "Tom Hanks", "Will Tom Hanks
win Best Actor?"), so names are compared case-insensitively by equality
first and then by containment in either direction.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from award_odds.schema import CanonicalNominee, NormalizedQuote

logger = logging.getLogger(__name__)

MatchRule = Callable[[str, str], bool]


def _exact(canonical: str, quoted: str) -> bool:
    return quoted == canonical


def _quote_in_canonical(canonical: str, quoted: str) -> bool:
    return quoted in canonical


def _canonical_in_quote(canonical: str, quoted: str) -> bool:
    return canonical in quoted


# Tried in order; the earliest rule any quote satisfies decides the match
MATCH_RULES: Tuple[MatchRule, ...] = (_exact, _quote_in_canonical, _canonical_in_quote)


def _normalize(name: str) -> str:
    return (name or "").strip().lower()


@dataclass
class MatchConflict:
    """A quote claimed by more than one canonical nominee."""
    quote: NormalizedQuote
    nominee_indices: List[int]


class NomineeMatcher:
    """
    Match quotes to canonical nominees.

    Each nominee is matched independently against the full quote list. In
    the default mode two nominees may match the same quote. With
    `strict=True` matching is one-to-one: a quote claimed by several
    nominees is reported as a conflict and none of them is matched.
    """

    def __init__(self, strict: bool = False, rules: Sequence[MatchRule] = MATCH_RULES):
        self.strict = strict
        self.rules = tuple(rules)

    def find(
        self,
        nominee: CanonicalNominee,
        quotes: Sequence[NormalizedQuote],
    ) -> Optional[int]:
        """
        Find the quote matching one nominee.

        Returns:
            Index into `quotes`, or None if nothing matches
        """
        canonical = _normalize(nominee.name)
        if not canonical:
            return None

        names = [_normalize(q.name) for q in quotes]
        for rule in self.rules:
            for i, quoted in enumerate(names):
                if quoted and rule(canonical, quoted):
                    return i
        return None

    def match_with_conflicts(
        self,
        nominees: Sequence[CanonicalNominee],
        quotes: Sequence[NormalizedQuote],
    ) -> Tuple[Dict[int, Optional[NormalizedQuote]], List[MatchConflict]]:
        """
        Match every nominee and collect quotes claimed more than once.

        Args:
            nominees: Canonical nominees in stored order
            quotes: Quotes from one source

        Returns:
            (mapping from nominee index to quote or None, conflicts)
        """
        chosen = {i: self.find(nominee, quotes) for i, nominee in enumerate(nominees)}

        claims: Dict[int, List[int]] = {}
        for nominee_index, quote_index in chosen.items():
            if quote_index is not None:
                claims.setdefault(quote_index, []).append(nominee_index)

        conflicts = [
            MatchConflict(quote=quotes[q], nominee_indices=indices)
            for q, indices in claims.items()
            if len(indices) > 1
        ]

        if self.strict:
            for conflict in conflicts:
                names = ", ".join(nominees[i].name for i in conflict.nominee_indices)
                logger.warning(
                    f"Ambiguous quote {conflict.quote.name!r} matches {names}; "
                    f"leaving them unmatched"
                )
                for i in conflict.nominee_indices:
                    chosen[i] = None

        matches = {
            i: quotes[q] if q is not None else None
            for i, q in chosen.items()
        }
        return matches, conflicts

    def match(
        self,
        nominees: Sequence[CanonicalNominee],
        quotes: Sequence[NormalizedQuote],
    ) -> Dict[int, Optional[NormalizedQuote]]:
        """Map each nominee index to its matched quote, or None."""
        matches, _ = self.match_with_conflicts(nominees, quotes)
        return matches
