"""Place name normalization and matching - Pure functions.

The feed prepends distance-and-bearing prefixes to place names
(e.g. "5 km SW Napoli"). These helpers strip them for display and
match places against user-supplied comma-separated terms.
"""

import re


# "<digits> km <DIRECTION> " at the start of a place name
_DISTANCE_PREFIX = re.compile(r"^\d+\s?km\s[A-Z]+\s")


def normalize_place(raw: str) -> str:
    """Strip a leading "<n> km <DIR>" prefix and surrounding whitespace.

    Pure function. Idempotent.

    Args:
        raw: Place text as received from the feed

    Returns:
        Base place name
    """
    place = raw.strip()
    # Stacked prefixes ("3 km N 2 km E Foo") are stripped as well
    while _DISTANCE_PREFIX.match(place):
        place = _DISTANCE_PREFIX.sub("", place, count=1).strip()
    return place


def parse_place_terms(raw: str) -> tuple[str, ...]:
    """Split comma-delimited place terms into lowercase search terms.

    Pure function. Empty terms are discarded.

    Args:
        raw: Comma-separated terms (e.g. "Napoli, Campi Flegrei")

    Returns:
        Tuple of non-empty lowercase terms
    """
    terms = (term.strip().lower() for term in raw.split(","))
    return tuple(term for term in terms if term)


def place_matches_terms(place: str, terms: tuple[str, ...]) -> bool:
    """Check if a place contains any of the given terms.

    Pure function. Matching is a case-insensitive substring test against
    the normalized place name.

    Args:
        place: Raw place text from the feed
        terms: Lowercase terms from parse_place_terms()

    Returns:
        True if at least one term is found
    """
    normalized = normalize_place(place).lower()
    return any(term in normalized for term in terms)
