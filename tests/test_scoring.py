"""Tests for the full meet scoring pass."""

import pytest

from meet_scoring.core.errors import UnknownViewModeError
from meet_scoring.core.models import OfficialResultRow, SensitivityVariant, ViewMode
from meet_scoring.core.results import apply_official_results
from meet_scoring.core.scoring import score_meet


def entry_by_id(board, entry_id):
    return next(e for e in board.entries if e.entry_id == entry_id)


class TestStandings:
    def test_simulated_totals(self, snapshot):
        board = score_meet(snapshot)
        assert board.mode == ViewMode.SIMULATED
        assert [(t.totals.team_id, t.totals.total, t.rank) for t in board.teams] == [("T2", 144.0, 1), ("T1", 140.0, 2)]

    def test_category_breakdown(self, snapshot):
        t1 = score_meet(snapshot).team("T1").totals
        assert (t1.individual, t1.diving, t1.relay) == (52.0, 32.0, 56.0)
        assert t1.total == t1.individual + t1.diving + t1.relay

    def test_eligible_athletes_reported(self, snapshot):
        board = score_meet(snapshot)
        assert board.team("T1").eligible_athlete_ids == ["a1", "a2", "a4"]
        assert board.team("T2").eligible_athlete_ids == ["b1", "b2"]

    def test_exhibition_athlete_still_places(self, snapshot):
        board = score_meet(snapshot)
        assert entry_by_id(board, "e-bx").place == 1

    def test_real_mode_without_official_results(self, snapshot):
        board = score_meet(snapshot, "real")
        assert all(t.totals.total == 0.0 for t in board.teams)
        assert all(e.place is None for e in board.entries)

    def test_unknown_mode(self, snapshot):
        with pytest.raises(UnknownViewModeError):
            score_meet(snapshot, "fantasy")

    def test_snapshot_not_mutated(self, snapshot):
        before = snapshot.model_dump()
        score_meet(snapshot)
        assert snapshot.model_dump() == before

    def test_unknown_team(self, snapshot):
        assert score_meet(snapshot).team("T9") is None


class TestTestSpot:
    def test_candidates(self, snapshot):
        team = score_meet(snapshot).team("T1")
        assert team.test_spot_scorer_id == "a4"
        assert [(c.athlete_id, c.subtotal, c.projected_team_total, c.is_scorer) for c in team.test_spot] == [
            ("a3", 26.0, 141.0, False),
            ("a4", 25.0, 140.0, True),
        ]

    def test_stale_scorer_resolved(self, snapshot):
        rosters = [snapshot.rosters[0].model_copy(update={"test_spot_scorer_id": "gone"}), snapshot.rosters[1]]
        team = score_meet(snapshot.model_copy(update={"rosters": rosters})).team("T1")
        assert team.test_spot_scorer_id == "a3"
        assert team.totals.total == 141.0

    def test_exhibition_scorer_projection(self, snapshot):
        rosters = [snapshot.rosters[0].model_copy(update={"exhibition_athlete_ids": ["a4"]}), snapshot.rosters[1]]
        team = score_meet(snapshot.model_copy(update={"rosters": rosters})).team("T1")
        assert team.totals.total == 115.0
        projected = {c.athlete_id: c.projected_team_total for c in team.test_spot}
        assert projected == {"a3": 141.0, "a4": 115.0}

    def test_team_without_candidates(self, snapshot):
        team = score_meet(snapshot).team("T2")
        assert team.test_spot == []
        assert team.test_spot_scorer_id is None


class TestSensitivity:
    def test_block_computed(self, snapshot):
        team = score_meet(snapshot).team("T1")
        [result] = team.sensitivity
        assert result.athlete_id == "a1"
        assert (result.athlete_points_baseline, result.athlete_points_better, result.athlete_points_worse) == (27.0, 28.0, 26.0)
        assert (result.team_total_better, result.team_total_worse) == (141.0, 139.0)

    def test_displayed_total_follows_variant(self, snapshot):
        assert score_meet(snapshot).team("T1").displayed_total == 140.0
        rosters = [
            snapshot.rosters[0].model_copy(update={"sensitivity_variant": SensitivityVariant.WORSE}),
            snapshot.rosters[1],
        ]
        team = score_meet(snapshot.model_copy(update={"rosters": rosters})).team("T1")
        assert team.displayed_total == 139.0
        assert team.totals.total == 140.0

    def test_ineligible_sensitivity_athlete(self, snapshot):
        # a3 is a non-scoring test-spot candidate.
        rosters = [snapshot.rosters[0].model_copy(update={"sensitivity_athlete_ids": ["a3"]}), snapshot.rosters[1]]
        [result] = score_meet(snapshot.model_copy(update={"rosters": rosters})).team("T1").sensitivity
        assert result.team_total_better == result.team_total_worse == 140.0

    def test_zero_percent_omits_block(self, snapshot):
        rosters = [snapshot.rosters[0].model_copy(update={"sensitivity_percent": 0}), snapshot.rosters[1]]
        team = score_meet(snapshot.model_copy(update={"rosters": rosters})).team("T1")
        assert team.sensitivity == []
        assert team.displayed_total == 140.0


class TestSensitivityOutsideSimulation:
    def test_real_view_without_results_omits_block(self, snapshot):
        team = score_meet(snapshot, "real").team("T1")
        assert team.sensitivity == []
        assert team.displayed_total == team.totals.total == 0.0

    def test_hybrid_view_with_official_event(self, snapshot):
        official = [
            OfficialResultRow(place=place, time_text=f"{seconds:.2f}", athlete_id=athlete_id, team_id=team_id)
            for place, (athlete_id, team_id, seconds) in enumerate(
                [("bx", "T2", 58.0), ("b1", "T2", 59.0), ("a1", "T1", 60.0),
                 ("a3", "T1", 61.0), ("a4", "T1", 62.0), ("b2", "T2", 63.0)],
                start=1,
            )
        ]
        event = next(e for e in snapshot.events if e.event_id == "E1")
        applied = apply_official_results(event, official, snapshot.entries, snapshot.relay_entries, snapshot.tables)
        meet = snapshot.model_copy(update={"entries": applied.entries})

        team = score_meet(meet, "hybrid").team("T1")
        [result] = team.sensitivity
        assert result.athlete_points_better >= result.athlete_points_baseline >= result.athlete_points_worse
        assert (result.athlete_points_baseline, result.athlete_points_better, result.athlete_points_worse) == (27.0, 28.0, 26.0)
        assert result.team_total_better >= team.totals.total >= result.team_total_worse

    def test_hybrid_view_with_athlete_cleared(self, snapshot):
        # Only a3's official result is in; a1's E1 swim is cleared and is a1's only event.
        event = next(e for e in snapshot.events if e.event_id == "E1")
        official = [OfficialResultRow(place=4, time_text="61.00", athlete_id="a3", team_id="T1")]
        applied = apply_official_results(event, official, snapshot.entries, snapshot.relay_entries, snapshot.tables)
        meet = snapshot.model_copy(update={"entries": applied.entries})

        team = score_meet(meet, "hybrid").team("T1")
        assert team.sensitivity == []
        assert team.displayed_total == team.totals.total
