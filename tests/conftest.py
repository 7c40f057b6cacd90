"""Shared two-team meet used by the scoring and store tests.

Simulated results with the default 24-place table:

    E1 (individual): bx 58 (1, 32)  b1 59 (2, 28)  a1 60 (3, 27)
                     a3 61 (4, 26)  a4 62 (5, 25)  b2 63 (6, 24)
    D1 (diving):     a2 300 (1, 32)  b2 280 (2, 28)
    R1 (relay):      T2 199 (1, 64)  T1 200 (2, 56)

T1 scores a1, a2, and test-spot scorer a4: 52 + 32 + 56 = 140.
T2 scores b1 and b2 (bx is exhibition): 52 + 28 + 64 = 144.
"""

import pytest

from meet_scoring.core.models import (
    Entry,
    Event,
    EventCategory,
    MeetSnapshot,
    RelayEntry,
    TeamRosterConfig,
)
from meet_scoring.core.tables import DEFAULT_24_PLACE_SCORING


def swim(entry_id, athlete_id, team_id, seconds, event_id="E1"):
    return Entry(
        entry_id=entry_id,
        athlete_id=athlete_id,
        team_id=team_id,
        event_id=event_id,
        seed_time=f"{seconds:.2f}",
        seed_time_seconds=seconds,
    )


def build_snapshot(meet_id="M1"):
    return MeetSnapshot(
        meet_id=meet_id,
        name="Conference Championships",
        events=[
            Event(event_id="E1", name="100 Free", category=EventCategory.INDIVIDUAL, display_order=1),
            Event(event_id="D1", name="1m Diving", category=EventCategory.DIVING, display_order=2),
            Event(event_id="R1", name="400 Free Relay", category=EventCategory.RELAY, display_order=3),
        ],
        event_order=["R1", "E1"],
        entries=[
            swim("e-a1", "a1", "T1", 60.0),
            swim("e-b1", "b1", "T2", 59.0),
            swim("e-a3", "a3", "T1", 61.0),
            swim("e-a4", "a4", "T1", 62.0),
            swim("e-bx", "bx", "T2", 58.0),
            swim("e-b2", "b2", "T2", 63.0),
            Entry(entry_id="d-a2", athlete_id="a2", team_id="T1", event_id="D1",
                  category=EventCategory.DIVING, seed_time="300.00", seed_time_seconds=300.0),
            Entry(entry_id="d-b2", athlete_id="b2", team_id="T2", event_id="D1",
                  category=EventCategory.DIVING, seed_time="280.00", seed_time_seconds=280.0),
        ],
        relay_entries=[
            RelayEntry(entry_id="r-t1", team_id="T1", event_id="R1", seed_time="3:20.00", seed_time_seconds=200.0,
                       members=["a1", "a2", "a3", "a4"]),
            RelayEntry(entry_id="r-t2", team_id="T2", event_id="R1", seed_time="3:19.00", seed_time_seconds=199.0,
                       members=["b1", "b2", "bx", "b3"]),
        ],
        rosters=[
            TeamRosterConfig(
                team_id="T1",
                selected_athletes=["a1", "a2", "a3", "a4"],
                test_spot_athlete_ids=["a3", "a4"],
                test_spot_scorer_id="a4",
                sensitivity_athlete_ids=["a1"],
                sensitivity_percent=2,
            ),
            TeamRosterConfig(
                team_id="T2",
                selected_athletes=["b1", "b2", "bx"],
                exhibition_athlete_ids=["bx"],
            ),
        ],
        tables=DEFAULT_24_PLACE_SCORING,
    )


@pytest.fixture
def snapshot():
    return build_snapshot()
