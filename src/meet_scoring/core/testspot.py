"""Test-spot comparison: who should fill the team's last scoring spot."""

from __future__ import annotations

from typing import Collection, Mapping, Optional, Sequence

from .models import Entry, TestSpotCandidate
from .aggregation import athlete_points


def candidate_subtotals(entries: Sequence[Entry], team_id: str, candidate_ids: Sequence[str]) -> dict[str, float]:
    """Each candidate's individual plus diving points, in candidate order."""
    points = athlete_points(entries, team_id)
    return {athlete_id: points.get(athlete_id, 0.0) for athlete_id in candidate_ids}


def compare_test_spot(
    subtotals: Mapping[str, float],
    current_scorer_id: Optional[str],
    current_team_total: float,
    counting_ids: Optional[Collection[str]] = None,
) -> list[TestSpotCandidate]:
    """Candidates ranked by subtotal, each with the team total if they were the scorer.

    A scorer that is not among the candidates falls back to the first one,
    matching roster eligibility. `counting_ids` names the candidates whose
    points reach the team total when they are the scorer (None means all);
    an exhibition candidate never adds or removes anything.
    Nothing is mutated.
    """
    if not subtotals:
        return []
    scorer = current_scorer_id if current_scorer_id in subtotals else next(iter(subtotals))
    counted = {a: (s if counting_ids is None or a in counting_ids else 0.0) for a, s in subtotals.items()}
    scorer_subtotal = counted[scorer]

    candidates = [
        TestSpotCandidate(
            athlete_id=athlete_id,
            subtotal=subtotal,
            projected_team_total=current_team_total - scorer_subtotal + counted[athlete_id],
            is_scorer=athlete_id == scorer,
        )
        for athlete_id, subtotal in subtotals.items()
    ]
    candidates.sort(key=lambda c: c.subtotal, reverse=True)
    return candidates
