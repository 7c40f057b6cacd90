"""Performance sensitivity: what if one athlete swam ±pct faster or slower.

Each of the athlete's events is re-ranked with only that athlete's time
changed, through the same ranking routine as the primary pass. Primary
results are never touched.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .errors import InvalidPercentError, require_id
from .models import Entry, EventCategory, ScoringTables, SensitivityEventResult, SensitivityResult
from .ranking import extract_seconds, project_place

logger = logging.getLogger(__name__)


def variant_seconds(base: float, pct: float, category: EventCategory) -> tuple[float, float]:
    """(better, worse) seconds. Diving scores go up to improve; swim times go down."""
    factor = pct / 100
    if category == EventCategory.DIVING:
        return base * (1 + factor), base * (1 - factor)
    return base * (1 - factor), base * (1 + factor)


def project_event(
    entry: Entry,
    event_entries: Sequence[Entry],
    pct: float,
    tables: ScoringTables,
) -> SensitivityEventResult:
    """Better/worse place and points for one entry within its event's field.

    Only scored entries (with a place) make up the field; entries a real or
    hybrid view cleared are left out.
    """
    others = [e for e in event_entries if e.entry_id != entry.entry_id and e.place is not None]
    field = others + [entry]
    target = len(field) - 1

    table = tables.for_category(entry.category)
    base = extract_seconds(entry)
    better, worse = variant_seconds(base, pct, entry.category)
    better_place, better_points = project_place(field, target, better, entry.category, table)
    worse_place, worse_points = project_place(field, target, worse, entry.category, table)

    return SensitivityEventResult(
        event_id=entry.event_id,
        category=entry.category,
        baseline_seconds=base,
        baseline_place=entry.place,
        baseline_points=entry.points or 0.0,
        better_seconds=better,
        better_place=better_place,
        better_points=better_points,
        worse_seconds=worse,
        worse_place=worse_place,
        worse_points=worse_points,
    )


def compute_sensitivity(
    athlete_id: str,
    pct: Optional[float],
    entries: Sequence[Entry],
    tables: ScoringTables,
    team_total: float = 0.0,
    counts_toward_total: bool = True,
) -> Optional[SensitivityResult]:
    """Project an athlete's points and the team total at ±pct.

    `entries` is the full ranked entry set (at least every entry in the
    athlete's events). Returns None when pct is zero/missing or the athlete
    has no scored individual or diving events. Events where the view left
    the athlete unplaced are skipped.
    """
    require_id(athlete_id, "athlete_id")
    if pct is None or pct == 0:
        return None
    if pct < 0 or pct > 100:
        raise InvalidPercentError(pct)

    own = [
        e for e in entries
        if e.athlete_id == athlete_id and e.category != EventCategory.RELAY and e.place is not None
    ]
    if not own:
        logger.info("Sensitivity skipped: athlete %s has no scored events", athlete_id)
        return None

    events = [
        project_event(e, [x for x in entries if x.event_id == e.event_id], pct, tables)
        for e in own
    ]
    baseline = sum(r.baseline_points for r in events)
    better = sum(r.better_points for r in events)
    worse = sum(r.worse_points for r in events)

    if counts_toward_total:
        total_better = team_total - baseline + better
        total_worse = team_total - baseline + worse
    else:
        total_better = total_worse = team_total

    return SensitivityResult(
        athlete_id=athlete_id,
        percent=pct,
        events=events,
        athlete_points_baseline=baseline,
        athlete_points_better=better,
        athlete_points_worse=worse,
        team_total_baseline=team_total,
        team_total_better=total_better,
        team_total_worse=total_worse,
    )
