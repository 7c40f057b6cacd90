"""Roster eligibility: which athletes' points count toward a team total."""

from __future__ import annotations

import logging
from typing import Optional

from .errors import require_id
from .models import TeamRosterConfig

logger = logging.getLogger(__name__)


def resolve_test_spot_scorer(config: TeamRosterConfig) -> Optional[str]:
    """The designated test-spot scorer, falling back to the first candidate.

    Returns None when the team has no test-spot candidates.
    """
    candidates = config.test_spot_athlete_ids
    if not candidates:
        return None
    scorer = config.test_spot_scorer_id
    if scorer and scorer in candidates:
        return scorer
    logger.info(
        "Team %s: test-spot scorer %r is not a candidate, using %s",
        config.team_id, scorer, candidates[0],
    )
    return candidates[0]


def resolve_eligible_athletes(config: TeamRosterConfig) -> frozenset[str]:
    """Selected athletes, minus non-scoring test-spot candidates, minus exhibition athletes."""
    require_id(config.team_id, "team_id")

    selected = config.selected_athletes
    if config.test_spot_athlete_ids:
        scorer = resolve_test_spot_scorer(config)
        candidates = set(config.test_spot_athlete_ids)
        selected = [a for a in selected if a not in candidates or a == scorer]

    exhibition = set(config.exhibition_athlete_ids)
    return frozenset(a for a in selected if a not in exhibition)
