"""Championship scoring tables.

Standard 24-place (A/B/C finals) and 16-place (A/B finals) tables, plus a
linear fallback for any other depth. Relay tables score the top 8 at a
multiple of the individual value.
"""

from __future__ import annotations

import math
from typing import Optional

from .errors import UnknownCategoryError
from .models import EventCategory, ScoringTable, ScoringTables

# Points dropped from the first-place value, per place.
_DROPS_24 = [0, 4, 5, 6, 7, 8, 9, 10, 12, 15, 16, 17, 18, 19, 20, 21, 23, 25, 26, 27, 28, 29, 30, 31]
_DROPS_16 = [0, 3, 4, 5, 6, 7, 8, 9, 11, 13, 14, 15, 16, 17, 18, 19]

RELAY_SCORING_PLACES = 8

FINAL_RANGES = (("A", 1, 8), ("B", 9, 16), ("C", 17, 24))


def generate_scoring_table(
    places: int,
    start_points: float,
    relay_multiplier: float = 2.0,
) -> ScoringTables:
    """Build individual and relay tables for a meet scoring `places` deep."""
    if places == 24:
        individual = {p: start_points - d for p, d in enumerate(_DROPS_24, start=1)}
    elif places == 16:
        individual = {p: start_points - d for p, d in enumerate(_DROPS_16, start=1)}
    else:
        individual = {p: max(1, start_points - (p - 1)) for p in range(1, places + 1)}

    relay = {
        p: float(math.floor(individual[p] * relay_multiplier + 0.5))
        for p in range(1, min(places, RELAY_SCORING_PLACES) + 1)
    }

    return ScoringTables(
        individual=ScoringTable(points={p: float(v) for p, v in individual.items()}, scoring_places=places),
        relay=ScoringTable(points=relay, scoring_places=places),
    )


DEFAULT_24_PLACE_SCORING = generate_scoring_table(24, 32, 2.0)
DEFAULT_16_PLACE_SCORING = generate_scoring_table(16, 20, 2.0)


def coerce_category(category: object) -> EventCategory:
    """Accept an EventCategory or its string value."""
    if isinstance(category, EventCategory):
        return category
    try:
        return EventCategory(str(category).lower())
    except ValueError:
        raise UnknownCategoryError(category) from None


def final_for_place(place: Optional[int], scoring_places: int = 24) -> Optional[str]:
    """Which final ('A', 'B', 'C') a place falls in, or None for non-scorers."""
    if place is None:
        return None
    for label, low, high in FINAL_RANGES:
        if low <= place <= min(high, scoring_places):
            return label
    return None
