"""Team aggregation: per-team point sums, standings, and progression."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional, Sequence

from .eligibility import resolve_eligible_athletes
from .models import (
    Entry,
    Event,
    EventCategory,
    EventTeamBreakdown,
    ProgressionPoint,
    RelayEntry,
    TeamRosterConfig,
    TeamTotals,
)
from .tables import final_for_place

logger = logging.getLogger(__name__)


def team_totals(
    team_id: str,
    entries: Sequence[Entry],
    relay_entries: Sequence[RelayEntry],
    eligible: frozenset[str],
) -> TeamTotals:
    """Sum one team's eligible individual and diving points plus all of its relay points."""
    individual = sum(
        e.points or 0.0
        for e in entries
        if e.team_id == team_id and e.category == EventCategory.INDIVIDUAL and e.athlete_id in eligible
    )
    diving = sum(
        e.points or 0.0
        for e in entries
        if e.team_id == team_id and e.category == EventCategory.DIVING and e.athlete_id in eligible
    )
    relay = sum(r.points or 0.0 for r in relay_entries if r.team_id == team_id)
    return TeamTotals(
        team_id=team_id,
        individual=individual,
        diving=diving,
        relay=relay,
        total=individual + diving + relay,
    )


def aggregate_teams(
    entries: Sequence[Entry],
    relay_entries: Sequence[RelayEntry],
    rosters: Sequence[TeamRosterConfig],
) -> list[TeamTotals]:
    """Totals for every configured team, best total first.

    Teams with equal totals keep their input order.
    """
    totals = [
        team_totals(r.team_id, entries, relay_entries, resolve_eligible_athletes(r))
        for r in rosters
    ]
    totals.sort(key=lambda t: t.total, reverse=True)
    return totals


def athlete_points(entries: Sequence[Entry], team_id: str) -> dict[str, float]:
    """Individual plus diving points per athlete of one team, ignoring eligibility."""
    points: dict[str, float] = defaultdict(float)
    for e in entries:
        if e.team_id == team_id and e.category != EventCategory.RELAY:
            points[e.athlete_id] += e.points or 0.0
    return dict(points)


def sort_events_by_order(events: Sequence[Event], custom_order: Optional[Sequence[str]] = None) -> list[Event]:
    """Events in the custom order first, then any others by display order."""
    by_display = sorted(events, key=lambda e: e.display_order)
    if not custom_order:
        return by_display

    by_id = {e.event_id: e for e in events}
    ordered = []
    seen = set()
    for event_id in custom_order:
        event = by_id.get(event_id)
        if event and event_id not in seen:
            ordered.append(event)
            seen.add(event_id)
    ordered.extend(e for e in by_display if e.event_id not in seen)
    return ordered


def score_progression(
    events: Sequence[Event],
    entries: Sequence[Entry],
    relay_entries: Sequence[RelayEntry],
    rosters: Sequence[TeamRosterConfig],
    event_order: Optional[Sequence[str]] = None,
) -> list[ProgressionPoint]:
    """Cumulative eligible team points after each event, in meet order."""
    eligible = {r.team_id: resolve_eligible_athletes(r) for r in rosters}
    running = {team_id: 0.0 for team_id in eligible}
    progression = []

    for number, event in enumerate(sort_events_by_order(events, event_order), start=1):
        for e in entries:
            if e.event_id == event.event_id and e.team_id in running and e.athlete_id in eligible[e.team_id]:
                running[e.team_id] += e.points or 0.0
        for r in relay_entries:
            if r.event_id == event.event_id and r.team_id in running:
                running[r.team_id] += r.points or 0.0
        progression.append(ProgressionPoint(
            event_id=event.event_id,
            event_name=event.name,
            event_number=number,
            totals=dict(running),
        ))

    return progression


def event_breakdown(
    event_id: str,
    entries: Sequence[Entry],
    relay_entries: Sequence[RelayEntry],
    scoring_places: int = 24,
) -> list[EventTeamBreakdown]:
    """Per-team A/B/C final counts and points for one event, most points first."""
    stats: dict[str, EventTeamBreakdown] = {}
    results = [e for e in entries if e.event_id == event_id] + [r for r in relay_entries if r.event_id == event_id]

    for result in results:
        row = stats.setdefault(result.team_id, EventTeamBreakdown(team_id=result.team_id))
        row.entry_count += 1
        row.points += result.points or 0.0
        final = final_for_place(result.place, scoring_places)
        if final == "A":
            row.a_final += 1
        elif final == "B":
            row.b_final += 1
        elif final == "C":
            row.c_final += 1
        else:
            row.non_scorers += 1

    return sorted(stats.values(), key=lambda s: s.points, reverse=True)
