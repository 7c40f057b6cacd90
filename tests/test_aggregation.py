"""Tests for team totals, progression, and per-event breakdowns."""

from meet_scoring.core.aggregation import (
    aggregate_teams,
    athlete_points,
    event_breakdown,
    score_progression,
    sort_events_by_order,
    team_totals,
)
from meet_scoring.core.models import Entry, Event, EventCategory, RelayEntry, TeamRosterConfig

EVENTS = [
    Event(event_id="E1", name="200 Free", category=EventCategory.INDIVIDUAL, display_order=1),
    Event(event_id="E2", name="1m Diving", category=EventCategory.DIVING, display_order=2),
    Event(event_id="E3", name="400 Free Relay", category=EventCategory.RELAY, display_order=3),
]

ENTRIES = [
    Entry(entry_id="1", athlete_id="a", team_id="T1", event_id="E1", place=1, points=32.0),
    Entry(entry_id="2", athlete_id="x", team_id="T2", event_id="E1", place=2, points=28.0),
    Entry(entry_id="3", athlete_id="b", team_id="T1", event_id="E1", place=3, points=27.0),
    Entry(entry_id="4", athlete_id="a", team_id="T1", event_id="E2", category=EventCategory.DIVING, place=2, points=28.0),
    Entry(entry_id="5", athlete_id="y", team_id="T2", event_id="E2", category=EventCategory.DIVING, place=1, points=32.0),
    Entry(entry_id="6", athlete_id="ex", team_id="T2", event_id="E1", place=4, points=26.0),
]

RELAYS = [
    RelayEntry(entry_id="r1", team_id="T1", event_id="E3", place=2, points=56.0),
    RelayEntry(entry_id="r2", team_id="T2", event_id="E3", place=1, points=64.0),
]

ROSTERS = [
    TeamRosterConfig(team_id="T1", selected_athletes=["a", "b"]),
    TeamRosterConfig(team_id="T2", selected_athletes=["x", "y", "ex"], exhibition_athlete_ids=["ex"]),
]


class TestTeamTotals:
    def test_category_sums(self):
        totals = team_totals("T1", ENTRIES, RELAYS, frozenset({"a", "b"}))
        assert totals.individual == 59.0
        assert totals.diving == 28.0
        assert totals.relay == 56.0
        assert totals.total == totals.individual + totals.diving + totals.relay

    def test_ineligible_points_ignored(self):
        totals = team_totals("T1", ENTRIES, RELAYS, frozenset({"a"}))
        assert totals.individual == 32.0

    def test_relays_count_regardless_of_eligibility(self):
        totals = team_totals("T1", ENTRIES, RELAYS, frozenset())
        assert totals.total == 56.0

    def test_unplaced_entries_count_zero(self):
        entries = [Entry(entry_id="z", athlete_id="a", team_id="T1", event_id="E1")]
        assert team_totals("T1", entries, [], frozenset({"a"})).total == 0.0


class TestAggregateTeams:
    def test_sorted_best_first(self):
        standings = aggregate_teams(ENTRIES, RELAYS, ROSTERS)
        assert [t.team_id for t in standings] == ["T1", "T2"]
        # T2's exhibition swimmer does not score.
        assert standings[1].individual == 28.0
        assert standings[1].total == 28.0 + 32.0 + 64.0

    def test_every_configured_team_present(self):
        rosters = ROSTERS + [TeamRosterConfig(team_id="T3")]
        standings = aggregate_teams(ENTRIES, RELAYS, rosters)
        assert standings[-1].team_id == "T3"
        assert standings[-1].total == 0.0


class TestAthletePoints:
    def test_ignores_eligibility_and_relays(self):
        assert athlete_points(ENTRIES, "T2") == {"x": 28.0, "y": 32.0, "ex": 26.0}


class TestEventOrder:
    def test_display_order_by_default(self):
        shuffled = [EVENTS[2], EVENTS[0], EVENTS[1]]
        assert [e.event_id for e in sort_events_by_order(shuffled)] == ["E1", "E2", "E3"]

    def test_custom_order_first(self):
        ordered = sort_events_by_order(EVENTS, ["E3", "missing", "E1"])
        assert [e.event_id for e in ordered] == ["E3", "E1", "E2"]


class TestScoreProgression:
    def test_cumulative_totals(self):
        progression = score_progression(EVENTS, ENTRIES, RELAYS, ROSTERS)
        assert [p.event_number for p in progression] == [1, 2, 3]
        assert progression[0].totals == {"T1": 59.0, "T2": 28.0}
        assert progression[1].totals == {"T1": 87.0, "T2": 60.0}
        assert progression[2].totals == {"T1": 143.0, "T2": 124.0}

    def test_final_point_matches_standings(self):
        progression = score_progression(EVENTS, ENTRIES, RELAYS, ROSTERS)
        standings = {t.team_id: t.total for t in aggregate_teams(ENTRIES, RELAYS, ROSTERS)}
        assert progression[-1].totals == standings


class TestEventBreakdown:
    def test_finals_counts(self):
        entries = [
            Entry(entry_id="1", athlete_id="a", team_id="T1", event_id="E1", place=1, points=32.0),
            Entry(entry_id="2", athlete_id="b", team_id="T1", event_id="E1", place=12, points=15.0),
            Entry(entry_id="3", athlete_id="c", team_id="T1", event_id="E1", place=20, points=5.0),
            Entry(entry_id="4", athlete_id="d", team_id="T1", event_id="E1", place=30, points=0.0),
            Entry(entry_id="5", athlete_id="e", team_id="T2", event_id="E1", place=2, points=28.0),
        ]
        breakdown = event_breakdown("E1", entries, [])
        t1 = next(b for b in breakdown if b.team_id == "T1")
        assert (t1.a_final, t1.b_final, t1.c_final, t1.non_scorers) == (1, 1, 1, 1)
        assert t1.points == 52.0
        assert t1.entry_count == 4
        assert breakdown[0].team_id == "T1"

    def test_relay_event(self):
        breakdown = event_breakdown("E3", [], RELAYS)
        assert [b.team_id for b in breakdown] == ["T2", "T1"]
        assert breakdown[0].a_final == 1
