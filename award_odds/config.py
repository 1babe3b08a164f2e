"""
Static configuration for the odds sync.

Category tables are fixed per provider integration. The only runtime
input is the Firebase credential blob read from the environment.
"""

import json
import os
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from award_odds.schema import Category

NamePredicate = Callable[[str], bool]

DEFAULT_DATABASE_URL = "https://odds-32154-default-rtdb.firebaseio.com"

# Award season markers used by the bulk Polymarket search
AWARD_YEAR = "2026"
AWARD_KEYWORDS = ("Oscars", "Academy Awards")

# Placeholder outcomes Polymarket lists alongside real nominees
PLACEHOLDER_NAMES = ("Other",)
PLACEHOLDER_PREFIXES = ("Movie", "Actor", "Actress", "Director", "Film")


class ConfigError(Exception):
    """Raised when required configuration is missing or unparseable."""


def build_denylist(
    exact: Sequence[str] = PLACEHOLDER_NAMES,
    letter_prefixes: Sequence[str] = PLACEHOLDER_PREFIXES,
) -> Tuple[NamePredicate, ...]:
    """
    Build name predicates rejecting placeholder outcomes.

    Every predicate matches the whole name, case-insensitively. `exact`
    names match literally; each of `letter_prefixes` matches when followed
    by a space and a single letter ("Movie A", "actor b").

    Args:
        exact: Names rejected as-is
        letter_prefixes: Prefixes rejected when followed by one letter

    Returns:
        Tuple of callables returning True for names to drop
    """
    patterns = [re.escape(name) for name in exact]
    patterns.extend(f"{re.escape(prefix)} [A-Z]" for prefix in letter_prefixes)
    compiled = [re.compile(p, re.IGNORECASE) for p in patterns]
    return tuple(
        (lambda name, regex=regex: regex.fullmatch(name.strip()) is not None)
        for regex in compiled
    )


DEFAULT_DENYLIST = build_denylist()


def is_denied(name: str, denylist: Sequence[NamePredicate]) -> bool:
    """Check a candidate name against a denylist."""
    return any(predicate(name) for predicate in denylist)


# =============================================================================
# Category Tables
# =============================================================================

OSCARS_POLYMARKET_CATEGORIES: List[Category] = [
    # Acting
    Category("oscars-2026-best-actor-winner", "oscars/actor", "Best Actor"),
    Category("oscars-2026-best-actress-winner", "oscars/actress", "Best Actress"),
    Category("oscars-2026-best-supporting-actor-winner", "oscars/supporting-actor", "Best Supporting Actor"),
    Category("oscars-2026-best-supporting-actress-winner", "oscars/supporting-actress", "Best Supporting Actress"),
    # Main
    Category("oscars-2026-best-picture-winner", "oscars/picture", "Best Picture"),
    Category("oscars-2026-best-director-winner", "oscars/director", "Best Director"),
    # Writing
    Category("oscars-2026-best-adapted-screenplay-winner", "oscars/adapted", "Best Adapted Screenplay"),
    Category("oscars-2026-best-original-screenplay-winner", "oscars/original", "Best Original Screenplay"),
    # Technical
    Category("oscars-2026-best-cinematography-winner", "oscars/cinemato", "Best Cinematography"),
    Category("oscars-2026-best-film-editing-winner", "oscars/editing", "Best Film Editing"),
    Category("oscars-2026-best-production-design-winner", "oscars/production", "Best Production Design"),
    Category("oscars-2026-best-costume-design-winner", "oscars/costumes", "Best Costume Design"),
    Category("oscars-2026-best-sound-winner", "oscars/sound", "Best Sound"),
    # Music
    Category("oscars-2026-best-original-score-winner", "oscars/score", "Best Original Score"),
    Category("oscars-2026-best-original-song-winner", "oscars/song", "Best Original Song"),
    # Other film categories
    Category("oscars-2026-best-animated-feature-winner", "oscars/animated", "Best Animated Feature"),
    Category("oscars-2026-best-documentary-feature-winner", "oscars/documentary", "Best Documentary Feature"),
    Category("oscars-2026-best-international-feature-film-winner", "oscars/international", "Best International Feature Film"),
    # May not exist on Polymarket
    Category("oscars-2026-best-casting-winner", "oscars/casting", "Best Casting"),
]

# source_id is matched against the market question text
OSCARS_SEARCH_CATEGORIES: List[Category] = [
    Category("Best Actor", "oscars/actor", "Best Actor"),
    Category("Best Actress", "oscars/actress", "Best Actress"),
    Category("Best Supporting Actor", "oscars/supporting-actor", "Best Supporting Actor"),
    Category("Best Supporting Actress", "oscars/supporting-actress", "Best Supporting Actress"),
    Category("Best Picture", "oscars/picture", "Best Picture"),
    Category("Best Director", "oscars/director", "Best Director"),
    Category("Best Adapted Screenplay", "oscars/adapted", "Best Adapted Screenplay"),
    Category("Best Original Screenplay", "oscars/original", "Best Original Screenplay"),
    Category("Best Cinematography", "oscars/cinemato", "Best Cinematography"),
    Category("Best Film Editing", "oscars/editing", "Best Film Editing"),
    Category("Best Production Design", "oscars/production", "Best Production Design"),
    Category("Best Costume Design", "oscars/costumes", "Best Costume Design"),
    Category("Best Sound", "oscars/sound", "Best Sound"),
    Category("Best Original Score", "oscars/score", "Best Original Score"),
    Category("Best Original Song", "oscars/song", "Best Original Song"),
    Category("Best Animated Feature", "oscars/animated", "Best Animated Feature"),
    Category("Best Documentary Feature", "oscars/documentary", "Best Documentary Feature"),
    Category("Best International Feature", "oscars/international", "Best International Feature Film"),
    Category("Best Casting", "oscars/casting", "Best Casting"),
]

BAFTA_KALSHI_CATEGORIES: List[Category] = [
    # Main
    Category("KXBAFTAFILM", "baftas/picture", "Best Picture"),
    Category("KXBAFTADIRE", "baftas/director", "Best Director"),
    # Acting
    Category("KXBAFTAACTO", "baftas/actor", "Best Actor"),
    Category("KXBAFTAACTR", "baftas/actress", "Best Actress"),
    Category("KXBAFTASUPACTO", "baftas/supporting-actor", "Best Supporting Actor"),
    Category("KXBAFTASUPACTR", "baftas/supporting-actress", "Best Supporting Actress"),
    # Writing
    Category("KXBAFTAORIG", "baftas/original", "Best Original Screenplay"),
    Category("KXBAFTAADAP", "baftas/adapted", "Best Adapted Screenplay"),
    # Other
    Category("KXBAFTACAST", "baftas/casting", "Best Casting"),
    Category("KXBAFTABRIT", "baftas/british-film", "Best British Film"),
    Category("KXBAFTAINTE", "baftas/international", "Best International Feature Film"),
    Category("KXBAFTADOCU", "baftas/documentary", "Best Documentary Feature"),
    Category("KXBAFTAANIM", "baftas/animated", "Best Animated Feature Film"),
    # Technical
    Category("KXBAFTACINE", "baftas/cinemato", "Best Cinematography"),
    Category("KXBAFTAEDIT", "baftas/editing", "Best Editing"),
]


def select_categories(
    categories: Sequence[Category],
    names: Optional[Sequence[str]] = None,
) -> List[Category]:
    """
    Restrict a category table to the given display names.

    Args:
        categories: Full category table
        names: Display names to keep (case-insensitive); None keeps all

    Returns:
        Matching categories in table order

    Raises:
        ConfigError: If a requested name is not in the table
    """
    if not names:
        return list(categories)

    wanted = {n.lower() for n in names}
    selected = [c for c in categories if c.name.lower() in wanted]
    found = {c.name.lower() for c in selected}
    missing = sorted(wanted - found)
    if missing:
        raise ConfigError(f"Unknown categories: {', '.join(missing)}")
    return selected


# =============================================================================
# Credentials
# =============================================================================

def load_firebase_credentials(env: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Parse the service-account JSON blob from FIREBASE_CONFIG.

    Raises:
        ConfigError: If the variable is unset or not a JSON object
    """
    env = os.environ if env is None else env
    blob = env.get("FIREBASE_CONFIG")
    if not blob:
        raise ConfigError("FIREBASE_CONFIG is not set")

    try:
        credentials = json.loads(blob)
    except json.JSONDecodeError as e:
        raise ConfigError(f"FIREBASE_CONFIG is not valid JSON: {e}") from e

    if not isinstance(credentials, dict):
        raise ConfigError("FIREBASE_CONFIG must be a JSON object")
    return credentials


def database_url(env: Optional[Dict[str, str]] = None) -> str:
    """Database URL from FIREBASE_DATABASE_URL, or the production default."""
    env = os.environ if env is None else env
    return env.get("FIREBASE_DATABASE_URL") or DEFAULT_DATABASE_URL
