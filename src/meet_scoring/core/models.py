"""Pydantic data models: the shared scoring objects.

The engine, the persistence adapter, and the MCP tools all exchange these
models. Nothing here touches storage.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EventCategory(str, Enum):
    """Event category: decides sort direction and scoring table."""

    INDIVIDUAL = "individual"
    RELAY = "relay"
    DIVING = "diving"


class ViewMode(str, Enum):
    """Which results a scoring pass should trust."""

    SIMULATED = "simulated"
    REAL = "real"
    HYBRID = "hybrid"


class SensitivityVariant(str, Enum):
    """Which sensitivity projection a team has selected for display."""

    BASELINE = "baseline"
    BETTER = "better"
    WORSE = "worse"


class Event(BaseModel):
    """A meet event. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    name: str = ""
    category: EventCategory
    display_order: int = 0


class TimedResult(BaseModel):
    """Time/place/points shape shared by individual entries and relays."""

    seed_time: Optional[str] = None
    seed_time_seconds: Optional[float] = None
    override_time: Optional[str] = None
    override_time_seconds: Optional[float] = None
    final_time: Optional[str] = None
    final_time_seconds: Optional[float] = None
    place: Optional[int] = None
    points: Optional[float] = None
    real_result_applied: bool = False


class Entry(TimedResult):
    """One athlete's participation in one individual or diving event."""

    entry_id: str
    athlete_id: str
    team_id: str
    event_id: str
    category: EventCategory = EventCategory.INDIVIDUAL


class RelayEntry(TimedResult):
    """A team's relay entry. Members are informational only."""

    entry_id: str
    team_id: str
    event_id: str
    members: list[str] = Field(default_factory=list)


class TeamRosterConfig(BaseModel):
    """Per-team roster selection for one meet."""

    team_id: str
    selected_athletes: list[str] = Field(default_factory=list)
    test_spot_athlete_ids: list[str] = Field(default_factory=list)
    test_spot_scorer_id: Optional[str] = None
    exhibition_athlete_ids: list[str] = Field(default_factory=list)
    sensitivity_athlete_ids: list[str] = Field(default_factory=list)
    sensitivity_percent: Optional[float] = None
    sensitivity_variant: SensitivityVariant = SensitivityVariant.BASELINE
    sensitivity_variant_athlete_id: Optional[str] = None

    @property
    def sensitivity_athlete_id(self) -> Optional[str]:
        return self.sensitivity_athlete_ids[0] if self.sensitivity_athlete_ids else None


class ScoringTable(BaseModel):
    """Place → points lookup with a scoring cutoff."""

    points: dict[int, float] = Field(default_factory=dict)
    scoring_places: int = 24

    def points_for(self, place: int, cutoff: Optional[int] = None) -> float:
        """Points for a single place; 0 beyond the cutoff or when the table has no value."""
        limit = self.scoring_places if cutoff is None else cutoff
        if place < 1 or place > limit:
            return 0.0
        return float(self.points.get(place, 0.0))

    def average_points(self, first_place: int, count: int, cutoff: Optional[int] = None) -> float:
        """Mean of the table values for places first_place .. first_place+count-1."""
        if count <= 0:
            return 0.0
        total = sum(self.points_for(p, cutoff) for p in range(first_place, first_place + count))
        return total / count


class ScoringTables(BaseModel):
    """Tables per category. Diving shares the individual table unless given its own."""

    individual: ScoringTable
    relay: ScoringTable
    diving: Optional[ScoringTable] = None

    def for_category(self, category: EventCategory) -> ScoringTable:
        if category == EventCategory.RELAY:
            return self.relay
        if category == EventCategory.DIVING and self.diving is not None:
            return self.diving
        return self.individual


class TeamTotals(BaseModel):
    """Recomputed per-team point sums."""

    team_id: str
    individual: float = 0.0
    diving: float = 0.0
    relay: float = 0.0
    total: float = 0.0


class ComposedView(BaseModel):
    """Entries and relays after a view-mode composition pass."""

    mode: ViewMode
    entries: list[Entry]
    relay_entries: list[RelayEntry]
    simulated_event_ids: list[str] = Field(default_factory=list)
    authoritative_event_ids: list[str] = Field(default_factory=list)


class SensitivityEventResult(BaseModel):
    """Baseline and variant outcomes for one of the athlete's events."""

    event_id: str
    category: EventCategory
    baseline_seconds: float
    baseline_place: Optional[int] = None
    baseline_points: float = 0.0
    better_seconds: float
    better_place: int
    better_points: float
    worse_seconds: float
    worse_place: int
    worse_points: float


class SensitivityResult(BaseModel):
    """What-if projection for one athlete performing ±percent."""

    athlete_id: str
    percent: float
    events: list[SensitivityEventResult]
    athlete_points_baseline: float
    athlete_points_better: float
    athlete_points_worse: float
    team_total_baseline: float = 0.0
    team_total_better: float = 0.0
    team_total_worse: float = 0.0

    def team_total_for(self, variant: SensitivityVariant) -> float:
        if variant == SensitivityVariant.BETTER:
            return self.team_total_better
        if variant == SensitivityVariant.WORSE:
            return self.team_total_worse
        return self.team_total_baseline


class TestSpotCandidate(BaseModel):
    """One candidate's standalone points and the team total if they scored."""

    athlete_id: str
    subtotal: float
    projected_team_total: float
    is_scorer: bool = False


class OfficialResultRow(BaseModel):
    """One structured row of an official result sheet, already resolved to IDs."""

    place: int = Field(ge=1)
    time_text: str
    athlete_id: Optional[str] = None
    team_id: Optional[str] = None
    points: Optional[float] = None


class UnresolvedRow(BaseModel):
    place: int
    time_text: str
    reason: str


class AppliedResults(BaseModel):
    """Outcome of applying official results to one event."""

    event_id: str
    entries: list[Entry]
    relay_entries: list[RelayEntry]
    applied: int = 0
    created: int = 0
    unresolved: list[UnresolvedRow] = Field(default_factory=list)


class ProgressionPoint(BaseModel):
    """Cumulative team points after one event."""

    event_id: str
    event_name: str
    event_number: int
    totals: dict[str, float]


class EventTeamBreakdown(BaseModel):
    """How one team fared in one event, by final."""

    team_id: str
    points: float = 0.0
    entry_count: int = 0
    a_final: int = 0
    b_final: int = 0
    c_final: int = 0
    non_scorers: int = 0


class MeetSnapshot(BaseModel):
    """Everything a scoring pass needs for one meet, passed explicitly."""

    meet_id: str
    name: str = ""
    scoring_mode: ViewMode = ViewMode.SIMULATED
    events: list[Event] = Field(default_factory=list)
    event_order: list[str] = Field(default_factory=list)
    entries: list[Entry] = Field(default_factory=list)
    relay_entries: list[RelayEntry] = Field(default_factory=list)
    rosters: list[TeamRosterConfig] = Field(default_factory=list)
    tables: ScoringTables


class TeamScore(BaseModel):
    """A team's standing plus its what-if analyses."""

    totals: TeamTotals
    rank: int
    eligible_athlete_ids: list[str] = Field(default_factory=list)
    test_spot_scorer_id: Optional[str] = None
    test_spot: list[TestSpotCandidate] = Field(default_factory=list)
    sensitivity: list[SensitivityResult] = Field(default_factory=list)
    displayed_total: float = 0.0


class MeetScoreboard(BaseModel):
    """Result of one full scoring pass."""

    meet_id: str
    mode: ViewMode
    entries: list[Entry]
    relay_entries: list[RelayEntry]
    teams: list[TeamScore]
    simulated_event_ids: list[str] = Field(default_factory=list)
    authoritative_event_ids: list[str] = Field(default_factory=list)

    def team(self, team_id: str) -> Optional[TeamScore]:
        return next((t for t in self.teams if t.totals.team_id == team_id), None)
