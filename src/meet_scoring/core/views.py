"""View composition: simulated, real, and hybrid result sets.

simulated: every event is ranked from seed/override times; authoritative
    flags are ignored.
real: only authoritative entries keep place/points/final time; everything
    else is cleared and nothing is ranked.
hybrid: an event with any authoritative entry or relay is treated as real;
    every other event is simulated.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence

from .errors import UnknownViewModeError
from .models import ComposedView, Entry, EventCategory, RelayEntry, ScoringTables, TimedResult, ViewMode
from .ranking import extract_seconds, rank_seconds

logger = logging.getLogger(__name__)

_CLEARED = {"place": None, "points": None, "final_time": None, "final_time_seconds": None}


def coerce_mode(mode: object) -> ViewMode:
    if isinstance(mode, ViewMode):
        return mode
    try:
        return ViewMode(str(mode).lower())
    except ValueError:
        raise UnknownViewModeError(mode) from None


def authoritative_event_ids(entries: Sequence[Entry], relay_entries: Sequence[RelayEntry]) -> set[str]:
    """Events holding at least one authoritative entry or relay."""
    ids = {e.event_id for e in entries if e.real_result_applied}
    ids.update(r.event_id for r in relay_entries if r.real_result_applied)
    return ids


def _simulate(results: list, indices: list[int], category: EventCategory, tables: ScoringTables) -> None:
    """Rank results[indices] in place from seed/override times."""
    table = tables.for_category(category)
    seconds = [extract_seconds(results[i], prefer_final=False) for i in indices]
    for position, place, points in rank_seconds(seconds, category, table):
        result: TimedResult = results[indices[position]]
        results[indices[position]] = result.model_copy(update={
            "place": place,
            "points": points,
            "final_time": result.override_time or result.seed_time,
            "final_time_seconds": (
                result.override_time_seconds
                if result.override_time_seconds is not None
                else result.seed_time_seconds
            ),
        })


def compose_view(
    mode: ViewMode | str,
    entries: Sequence[Entry],
    relay_entries: Sequence[RelayEntry],
    tables: ScoringTables,
) -> ComposedView:
    """Compose entries and relays for a view mode. Inputs are not mutated; output keeps input order."""
    mode = coerce_mode(mode)
    authoritative = authoritative_event_ids(entries, relay_entries)

    def keep(result: TimedResult) -> bool:
        if mode == ViewMode.REAL:
            return result.real_result_applied
        if mode == ViewMode.HYBRID:
            return result.real_result_applied or result.event_id not in authoritative
        return True

    out_entries = [e.model_copy() if keep(e) else e.model_copy(update=_CLEARED) for e in entries]
    out_relays = [r.model_copy() if keep(r) else r.model_copy(update=_CLEARED) for r in relay_entries]

    if mode == ViewMode.REAL:
        skip = set(e.event_id for e in entries) | set(r.event_id for r in relay_entries)
    elif mode == ViewMode.HYBRID:
        skip = authoritative
    else:
        skip = set()

    entries_by_event: dict[str, list[int]] = defaultdict(list)
    for i, e in enumerate(out_entries):
        entries_by_event[e.event_id].append(i)
    relays_by_event: dict[str, list[int]] = defaultdict(list)
    for i, r in enumerate(out_relays):
        relays_by_event[r.event_id].append(i)

    simulated = []
    for event_id, indices in entries_by_event.items():
        if event_id in skip:
            continue
        category = out_entries[indices[0]].category
        if any(out_entries[i].category != category for i in indices):
            logger.warning("Event %s mixes entry categories; ranking as %s", event_id, category.value)
        _simulate(out_entries, indices, category, tables)
        simulated.append(event_id)

    for event_id, indices in relays_by_event.items():
        if event_id in skip:
            continue
        _simulate(out_relays, indices, EventCategory.RELAY, tables)
        simulated.append(event_id)

    logger.info(
        "Composed %s view: %d events simulated, %d authoritative",
        mode.value, len(simulated), len(authoritative),
    )
    return ComposedView(
        mode=mode,
        entries=out_entries,
        relay_entries=out_relays,
        simulated_event_ids=simulated,
        authoritative_event_ids=sorted(authoritative),
    )
