"""SQLAlchemy models for local SQLite meet storage.

Roster ID sets are stored as rows in `roster_members` (one row per athlete
per role), never as encoded text. Place/points columns are overwritten
wholesale by each rescore.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Meet(Base):
    __tablename__ = "meets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    scoring_mode: Mapped[str] = mapped_column(String(20), nullable=False, default="simulated")
    scoring_places: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    last_scored_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class MeetEvent(Base):
    __tablename__ = "meet_events"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    meet_id: Mapped[str] = mapped_column(ForeignKey("meets.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), default="")
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    custom_position: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_meet_events_meet", "meet_id"),
    )


class ScoringPoint(Base):
    """One place → points cell of a meet's scoring table."""

    __tablename__ = "scoring_points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meet_id: Mapped[str] = mapped_column(ForeignKey("meets.id", ondelete="CASCADE"), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    place: Mapped[int] = mapped_column(Integer, nullable=False)
    points: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("meet_id", "category", "place", name="uq_scoring_point"),
    )


class MeetEntry(Base):
    """One athlete in one individual or diving event."""

    __tablename__ = "meet_entries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    meet_id: Mapped[str] = mapped_column(ForeignKey("meets.id", ondelete="CASCADE"), nullable=False)
    event_id: Mapped[str] = mapped_column(ForeignKey("meet_events.id", ondelete="CASCADE"), nullable=False)
    athlete_id: Mapped[str] = mapped_column(String(64), nullable=False)
    team_id: Mapped[str] = mapped_column(String(64), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    seed_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    seed_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    override_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    override_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    final_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    final_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    place: Mapped[int | None] = mapped_column(Integer, nullable=True)
    points: Mapped[float | None] = mapped_column(Float, nullable=True)
    real_result_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sensitivity_place_better: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sensitivity_points_better: Mapped[float | None] = mapped_column(Float, nullable=True)
    sensitivity_place_worse: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sensitivity_points_worse: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("meet_id", "athlete_id", "event_id", name="uq_meet_entry"),
        Index("ix_meet_entries_meet", "meet_id"),
    )


class MeetRelay(Base):
    __tablename__ = "meet_relays"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    meet_id: Mapped[str] = mapped_column(ForeignKey("meets.id", ondelete="CASCADE"), nullable=False)
    event_id: Mapped[str] = mapped_column(ForeignKey("meet_events.id", ondelete="CASCADE"), nullable=False)
    team_id: Mapped[str] = mapped_column(String(64), nullable=False)
    seed_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    seed_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    override_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    override_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    final_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    final_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    place: Mapped[int | None] = mapped_column(Integer, nullable=True)
    points: Mapped[float | None] = mapped_column(Float, nullable=True)
    real_result_applied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("meet_id", "event_id", "team_id", name="uq_meet_relay"),
        Index("ix_meet_relays_meet", "meet_id"),
    )


class RelayMember(Base):
    __tablename__ = "relay_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    relay_id: Mapped[str] = mapped_column(ForeignKey("meet_relays.id", ondelete="CASCADE"), nullable=False)
    leg: Mapped[int] = mapped_column(Integer, nullable=False)
    athlete_id: Mapped[str] = mapped_column(String(64), nullable=False)


class MeetTeam(Base):
    """A team's roster settings and last computed totals for one meet."""

    __tablename__ = "meet_teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meet_id: Mapped[str] = mapped_column(ForeignKey("meets.id", ondelete="CASCADE"), nullable=False)
    team_id: Mapped[str] = mapped_column(String(64), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    individual_score: Mapped[float] = mapped_column(Float, default=0.0)
    diving_score: Mapped[float] = mapped_column(Float, default=0.0)
    relay_score: Mapped[float] = mapped_column(Float, default=0.0)
    total_score: Mapped[float] = mapped_column(Float, default=0.0)
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    test_spot_scorer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sensitivity_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    sensitivity_variant: Mapped[str] = mapped_column(String(20), default="baseline")
    sensitivity_variant_athlete_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sensitivity_total_better: Mapped[float | None] = mapped_column(Float, nullable=True)
    sensitivity_total_worse: Mapped[float | None] = mapped_column(Float, nullable=True)
    sensitivity_athlete_points_baseline: Mapped[float | None] = mapped_column(Float, nullable=True)
    sensitivity_athlete_points_better: Mapped[float | None] = mapped_column(Float, nullable=True)
    sensitivity_athlete_points_worse: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("meet_id", "team_id", name="uq_meet_team"),
    )


class RosterMember(Base):
    """An athlete's role on a meet team: selected, test_spot, exhibition, or sensitivity."""

    __tablename__ = "roster_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meet_team_id: Mapped[int] = mapped_column(ForeignKey("meet_teams.id", ondelete="CASCADE"), nullable=False)
    athlete_id: Mapped[str] = mapped_column(String(64), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        UniqueConstraint("meet_team_id", "athlete_id", "role", name="uq_roster_member"),
        Index("ix_roster_members_team_role", "meet_team_id", "role"),
    )


class SensitivityOutcome(Base):
    """Last computed sensitivity projection for one athlete of one team."""

    __tablename__ = "sensitivity_outcomes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meet_team_id: Mapped[int] = mapped_column(ForeignKey("meet_teams.id", ondelete="CASCADE"), nullable=False)
    athlete_id: Mapped[str] = mapped_column(String(64), nullable=False)
    percent: Mapped[float] = mapped_column(Float, nullable=False)
    athlete_points_baseline: Mapped[float] = mapped_column(Float, nullable=False)
    athlete_points_better: Mapped[float] = mapped_column(Float, nullable=False)
    athlete_points_worse: Mapped[float] = mapped_column(Float, nullable=False)
    team_total_better: Mapped[float] = mapped_column(Float, nullable=False)
    team_total_worse: Mapped[float] = mapped_column(Float, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
