"""Tests for roster eligibility and test-spot scorer resolution."""

import pytest

from meet_scoring.core.eligibility import resolve_eligible_athletes, resolve_test_spot_scorer
from meet_scoring.core.errors import MissingIdentifierError
from meet_scoring.core.models import TeamRosterConfig


class TestTestSpotScorer:
    def test_designated_scorer(self):
        config = TeamRosterConfig(team_id="T1", test_spot_athlete_ids=["a", "b"], test_spot_scorer_id="b")
        assert resolve_test_spot_scorer(config) == "b"

    def test_stale_scorer_falls_back_to_first(self):
        config = TeamRosterConfig(team_id="T1", test_spot_athlete_ids=["a", "b"], test_spot_scorer_id="gone")
        assert resolve_test_spot_scorer(config) == "a"

    def test_unset_scorer_falls_back_to_first(self):
        config = TeamRosterConfig(team_id="T1", test_spot_athlete_ids=["a", "b"])
        assert resolve_test_spot_scorer(config) == "a"

    def test_no_candidates(self):
        assert resolve_test_spot_scorer(TeamRosterConfig(team_id="T1", test_spot_scorer_id="a")) is None


class TestEligibleAthletes:
    def test_selected_only(self):
        config = TeamRosterConfig(team_id="T1", selected_athletes=["a", "b"])
        assert resolve_eligible_athletes(config) == {"a", "b"}

    def test_non_scoring_candidates_removed(self):
        config = TeamRosterConfig(
            team_id="T1",
            selected_athletes=["a", "b", "c"],
            test_spot_athlete_ids=["b", "c"],
            test_spot_scorer_id="c",
        )
        assert resolve_eligible_athletes(config) == {"a", "c"}

    def test_exhibition_always_excluded(self):
        config = TeamRosterConfig(
            team_id="T1",
            selected_athletes=["a", "b"],
            exhibition_athlete_ids=["b"],
        )
        assert resolve_eligible_athletes(config) == {"a"}

    def test_exhibition_scorer_excluded(self):
        config = TeamRosterConfig(
            team_id="T1",
            selected_athletes=["a", "b"],
            test_spot_athlete_ids=["b"],
            test_spot_scorer_id="b",
            exhibition_athlete_ids=["b"],
        )
        assert resolve_eligible_athletes(config) == {"a"}

    def test_candidate_must_also_be_selected(self):
        config = TeamRosterConfig(
            team_id="T1",
            selected_athletes=["a"],
            test_spot_athlete_ids=["z"],
        )
        assert resolve_eligible_athletes(config) == {"a"}

    def test_empty_team_id_raises(self):
        with pytest.raises(MissingIdentifierError):
            resolve_eligible_athletes(TeamRosterConfig(team_id="", selected_athletes=["a"]))
