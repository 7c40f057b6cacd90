"""Ranking engine: places and points for one event.

Every scoring path (simulation, view composition, sensitivity projection)
goes through `rank_seconds`, so sort direction, tie grouping, and cutoff
handling cannot drift between call sites.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, TypeVar

from .models import EventCategory, ScoringTable, TimedResult
from .tables import coerce_category
from .timecodec import to_seconds

logger = logging.getLogger(__name__)

# Times closer than this are the same time. Applied to diving scores too.
TIE_TOLERANCE = 0.001

T = TypeVar("T", bound=TimedResult)


def extract_seconds(result: TimedResult, prefer_final: bool = True) -> float:
    """Seconds used for ranking.

    Order of preference: final time (when prefer_final), override, seed; numeric
    fields first, then the text fields through the time codec, else 0.
    """
    candidates = [result.override_time_seconds, result.seed_time_seconds]
    texts = [result.override_time, result.seed_time]
    if prefer_final:
        candidates.insert(0, result.final_time_seconds)
        texts.insert(0, result.final_time)

    for value in candidates:
        if value is not None:
            return float(value)
    for text in texts:
        if text:
            return to_seconds(text)
    return 0.0


def rank_seconds(
    seconds: Sequence[float],
    category: EventCategory,
    table: ScoringTable,
    cutoff: Optional[int] = None,
) -> list[tuple[int, int, float]]:
    """Rank raw seconds. Returns (input index, place, points) in finishing order.

    Ascending for swims and relays, descending for diving. A tie block of k
    entries starting at place p all get place p and the mean of the table
    values for places p..p+k-1.
    """
    category = coerce_category(category)
    descending = category == EventCategory.DIVING
    order = sorted(range(len(seconds)), key=lambda i: seconds[i], reverse=descending)

    ranked: list[tuple[int, int, float]] = []
    place = 1
    i = 0
    while i < len(order):
        leader = seconds[order[i]]
        j = i + 1
        while j < len(order) and abs(leader - seconds[order[j]]) < TIE_TOLERANCE:
            j += 1
        block = order[i:j]
        points = table.average_points(place, len(block), cutoff)
        for index in block:
            ranked.append((index, place, points))
        place += len(block)
        i = j
    return ranked


def rank_event(
    entries: Sequence[T],
    category: EventCategory | str,
    table: ScoringTable,
    cutoff: Optional[int] = None,
    prefer_final: bool = True,
) -> list[T]:
    """Rank one event's entries. Returns annotated copies in finishing order."""
    category = coerce_category(category)
    seconds = [extract_seconds(e, prefer_final) for e in entries]

    unusable = sum(1 for e, s in zip(entries, seconds) if s == 0.0)
    if unusable:
        logger.warning(
            "%d of %d %s entries have no usable time and rank on a 0-second sentinel",
            unusable, len(entries), category.value,
        )

    return [
        entries[index].model_copy(update={"place": place, "points": points})
        for index, place, points in rank_seconds(seconds, category, table, cutoff)
    ]


def project_place(
    entries: Sequence[TimedResult],
    target_index: int,
    substitute_seconds: float,
    category: EventCategory | str,
    table: ScoringTable,
    cutoff: Optional[int] = None,
    prefer_final: bool = True,
) -> tuple[int, float]:
    """Place and points the target entry would get with a different time, others fixed."""
    category = coerce_category(category)
    seconds = [
        substitute_seconds if i == target_index else extract_seconds(e, prefer_final)
        for i, e in enumerate(entries)
    ]
    for index, place, points in rank_seconds(seconds, category, table, cutoff):
        if index == target_index:
            return place, points
    raise IndexError(f"Entry index {target_index} out of range for {len(entries)} entries")
