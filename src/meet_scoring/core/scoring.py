"""Full meet scoring pass.

Composes the requested view, aggregates team totals, then layers the
read-only what-if analyses (test spot, sensitivity) on top. This is the
single entry point the persistence adapter and the tools call.
"""

from __future__ import annotations

import logging
from typing import Optional

from .aggregation import aggregate_teams
from .eligibility import resolve_eligible_athletes, resolve_test_spot_scorer
from .models import (
    MeetScoreboard,
    MeetSnapshot,
    SensitivityResult,
    TeamRosterConfig,
    TeamScore,
    TeamTotals,
    ViewMode,
)
from .sensitivity import compute_sensitivity
from .testspot import candidate_subtotals, compare_test_spot
from .views import coerce_mode, compose_view

logger = logging.getLogger(__name__)


def _displayed_total(roster: TeamRosterConfig, totals: TeamTotals, sensitivity: list[SensitivityResult]) -> float:
    """Team total under the team's selected sensitivity variant."""
    if not sensitivity:
        return totals.total
    athlete_id = roster.sensitivity_variant_athlete_id or roster.sensitivity_athlete_id
    result = next((s for s in sensitivity if s.athlete_id == athlete_id), sensitivity[0])
    return result.team_total_for(roster.sensitivity_variant)


def score_meet(snapshot: MeetSnapshot, mode: Optional[ViewMode | str] = None) -> MeetScoreboard:
    """Score a meet snapshot for one view mode. The snapshot is not mutated."""
    mode = coerce_mode(mode) if mode is not None else snapshot.scoring_mode
    logger.info("Scoring meet %s (%s view)", snapshot.meet_id, mode.value)

    view = compose_view(mode, snapshot.entries, snapshot.relay_entries, snapshot.tables)
    standings = aggregate_teams(view.entries, view.relay_entries, snapshot.rosters)
    rosters = {r.team_id: r for r in snapshot.rosters}

    teams = []
    for rank, totals in enumerate(standings, start=1):
        roster = rosters[totals.team_id]
        eligible = resolve_eligible_athletes(roster)
        scorer = resolve_test_spot_scorer(roster)

        test_spot = []
        if roster.test_spot_athlete_ids:
            subtotals = candidate_subtotals(view.entries, roster.team_id, roster.test_spot_athlete_ids)
            counting = [
                a for a in roster.test_spot_athlete_ids
                if a in resolve_eligible_athletes(roster.model_copy(update={"test_spot_scorer_id": a}))
            ]
            test_spot = compare_test_spot(subtotals, scorer, totals.total, counting_ids=counting)

        sensitivity = []
        for athlete_id in roster.sensitivity_athlete_ids:
            team_entries = [e for e in view.entries if e.team_id == roster.team_id or e.athlete_id != athlete_id]
            result = compute_sensitivity(
                athlete_id,
                roster.sensitivity_percent,
                team_entries,
                snapshot.tables,
                team_total=totals.total,
                counts_toward_total=athlete_id in eligible,
            )
            if result is not None:
                sensitivity.append(result)

        teams.append(TeamScore(
            totals=totals,
            rank=rank,
            eligible_athlete_ids=sorted(eligible),
            test_spot_scorer_id=scorer,
            test_spot=test_spot,
            sensitivity=sensitivity,
            displayed_total=_displayed_total(roster, totals, sensitivity),
        ))

    if teams:
        leader = teams[0].totals
        logger.info("Meet %s scored: %d teams, leader %s with %.1f", snapshot.meet_id, len(teams), leader.team_id, leader.total)

    return MeetScoreboard(
        meet_id=snapshot.meet_id,
        mode=mode,
        entries=view.entries,
        relay_entries=view.relay_entries,
        teams=teams,
        simulated_event_ids=view.simulated_event_ids,
        authoritative_event_ids=view.authoritative_event_ids,
    )
