"""Structural errors raised to callers.

Degraded data (unparseable times, places past the cutoff, a stale test-spot
scorer, a zero sensitivity percent) never raises; it is scored with caveats.
These errors mean the engine refused to score.
"""

from __future__ import annotations


class MeetScoringError(ValueError):
    """Base class for refusals to score."""


class UnknownCategoryError(MeetScoringError):
    def __init__(self, category: object):
        super().__init__(f"Unknown event category: {category!r}")
        self.category = category


class UnknownViewModeError(MeetScoringError):
    def __init__(self, mode: object):
        super().__init__(f"Unknown view mode: {mode!r}. Expected simulated, real, or hybrid.")
        self.mode = mode


class InvalidPercentError(MeetScoringError):
    def __init__(self, percent: float):
        super().__init__(f"Sensitivity percent must be within (0, 100], got {percent}")
        self.percent = percent


class MissingIdentifierError(MeetScoringError):
    def __init__(self, what: str):
        super().__init__(f"Missing required identifier: {what}")
        self.what = what


class TestSpotError(MeetScoringError):
    """Selecting a test-spot scorer that the team's configuration does not allow."""

    __test__ = False


class SensitivityConfigError(MeetScoringError):
    """Selecting a sensitivity variant on a team with no sensitivity athlete."""


class MeetNotFoundError(MeetScoringError):
    def __init__(self, meet_id: str):
        super().__init__(f"Meet not found: {meet_id}")
        self.meet_id = meet_id


class EventNotFoundError(MeetScoringError):
    def __init__(self, meet_id: str, event_id: str):
        super().__init__(f"Event {event_id} not found in meet {meet_id}")
        self.meet_id = meet_id
        self.event_id = event_id


class TeamNotFoundError(MeetScoringError):
    def __init__(self, meet_id: str, team_id: str):
        super().__init__(f"Team {team_id} not found in meet {meet_id}")
        self.meet_id = meet_id
        self.team_id = team_id


def require_id(value: object, what: str) -> str:
    """Return value if it is a non-empty string identifier, else raise."""
    if not isinstance(value, str) or not value.strip():
        raise MissingIdentifierError(what)
    return value
