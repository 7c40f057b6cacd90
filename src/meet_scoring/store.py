"""Persistence adapter around the scoring engine.

Loads a meet into a `MeetSnapshot`, runs the pure engine over it, and writes
the computed place/points/totals back. A rescore is one transaction, and
rescores of the same meet are serialised by a per-meet lock.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .core.errors import (
    EventNotFoundError,
    MeetNotFoundError,
    SensitivityConfigError,
    TeamNotFoundError,
    TestSpotError,
    require_id,
)
from .core.models import (
    AppliedResults,
    Entry,
    Event,
    EventCategory,
    MeetScoreboard,
    MeetSnapshot,
    OfficialResultRow,
    RelayEntry,
    ScoringTable,
    ScoringTables,
    SensitivityVariant,
    TeamRosterConfig,
    TeamScore,
    ViewMode,
)
from .core.results import apply_official_results
from .core.scoring import score_meet
from .core.tables import DEFAULT_24_PLACE_SCORING
from .db import get_session_factory
from .sqlmodels import (
    Meet,
    MeetEntry,
    MeetEvent,
    MeetRelay,
    MeetTeam,
    RelayMember,
    RosterMember,
    ScoringPoint,
    SensitivityOutcome,
)

logger = logging.getLogger(__name__)

ROLE_SELECTED = "selected"
ROLE_TEST_SPOT = "test_spot"
ROLE_EXHIBITION = "exhibition"
ROLE_SENSITIVITY = "sensitivity"

_TIME_FIELDS = (
    "seed_time",
    "seed_time_seconds",
    "override_time",
    "override_time_seconds",
    "final_time",
    "final_time_seconds",
    "place",
    "points",
    "real_result_applied",
)

_meet_locks: dict[str, asyncio.Lock] = {}


def _meet_lock(meet_id: str) -> asyncio.Lock:
    return _meet_locks.setdefault(meet_id, asyncio.Lock())


# ─── Row ↔ model conversion ──────────────────────────────────────────────────


def _time_values(result) -> dict:
    return {name: getattr(result, name) for name in _TIME_FIELDS}


def _entry_from_row(row: MeetEntry) -> Entry:
    return Entry(
        entry_id=row.id,
        athlete_id=row.athlete_id,
        team_id=row.team_id,
        event_id=row.event_id,
        category=EventCategory(row.category),
        **_time_values(row),
    )


def _relay_from_row(row: MeetRelay, members: list[str]) -> RelayEntry:
    return RelayEntry(
        entry_id=row.id,
        team_id=row.team_id,
        event_id=row.event_id,
        members=members,
        **_time_values(row),
    )


def _roster_from_row(team: MeetTeam, roles: dict[str, list[str]]) -> TeamRosterConfig:
    return TeamRosterConfig(
        team_id=team.team_id,
        selected_athletes=roles.get(ROLE_SELECTED, []),
        test_spot_athlete_ids=roles.get(ROLE_TEST_SPOT, []),
        test_spot_scorer_id=team.test_spot_scorer_id,
        exhibition_athlete_ids=roles.get(ROLE_EXHIBITION, []),
        sensitivity_athlete_ids=roles.get(ROLE_SENSITIVITY, []),
        sensitivity_percent=team.sensitivity_percent,
        sensitivity_variant=SensitivityVariant(team.sensitivity_variant or SensitivityVariant.BASELINE.value),
        sensitivity_variant_athlete_id=team.sensitivity_variant_athlete_id,
    )


def _roster_roles(roster: TeamRosterConfig) -> list[tuple[str, list[str]]]:
    return [
        (ROLE_SELECTED, roster.selected_athletes),
        (ROLE_TEST_SPOT, roster.test_spot_athlete_ids),
        (ROLE_EXHIBITION, roster.exhibition_athlete_ids),
        (ROLE_SENSITIVITY, roster.sensitivity_athlete_ids),
    ]


def _tables_from_rows(meet: Meet, points: Sequence[ScoringPoint]) -> ScoringTables:
    by_category: dict[str, dict[int, float]] = defaultdict(dict)
    for p in points:
        by_category[p.category][p.place] = p.points

    def table(category: EventCategory) -> Optional[ScoringTable]:
        if category.value not in by_category:
            return None
        return ScoringTable(points=by_category[category.value], scoring_places=meet.scoring_places)

    individual = table(EventCategory.INDIVIDUAL)
    relay = table(EventCategory.RELAY)
    if individual is None or relay is None:
        logger.warning("Meet %s has no stored scoring table; using the default 24-place table", meet.id)
        individual = individual or DEFAULT_24_PLACE_SCORING.individual
        relay = relay or DEFAULT_24_PLACE_SCORING.relay
    return ScoringTables(individual=individual, relay=relay, diving=table(EventCategory.DIVING))


# ─── Snapshot save/load ──────────────────────────────────────────────────────


async def _delete_meet_rows(session: AsyncSession, meet_id: str) -> None:
    team_ids = select(MeetTeam.id).where(MeetTeam.meet_id == meet_id)
    relay_ids = select(MeetRelay.id).where(MeetRelay.meet_id == meet_id)
    await session.execute(delete(SensitivityOutcome).where(SensitivityOutcome.meet_team_id.in_(team_ids)))
    await session.execute(delete(RosterMember).where(RosterMember.meet_team_id.in_(team_ids)))
    await session.execute(delete(MeetTeam).where(MeetTeam.meet_id == meet_id))
    await session.execute(delete(RelayMember).where(RelayMember.relay_id.in_(relay_ids)))
    await session.execute(delete(MeetRelay).where(MeetRelay.meet_id == meet_id))
    await session.execute(delete(MeetEntry).where(MeetEntry.meet_id == meet_id))
    await session.execute(delete(ScoringPoint).where(ScoringPoint.meet_id == meet_id))
    await session.execute(delete(MeetEvent).where(MeetEvent.meet_id == meet_id))
    await session.execute(delete(Meet).where(Meet.id == meet_id))


def _entry_row(meet_id: str, entry: Entry) -> MeetEntry:
    return MeetEntry(
        id=entry.entry_id,
        meet_id=meet_id,
        event_id=entry.event_id,
        athlete_id=entry.athlete_id,
        team_id=entry.team_id,
        category=entry.category.value,
        **_time_values(entry),
    )


def _relay_row(meet_id: str, relay: RelayEntry) -> MeetRelay:
    return MeetRelay(
        id=relay.entry_id,
        meet_id=meet_id,
        event_id=relay.event_id,
        team_id=relay.team_id,
        **_time_values(relay),
    )


async def save_snapshot(snapshot: MeetSnapshot) -> None:
    """Replace everything stored for the snapshot's meet, atomically."""
    meet_id = require_id(snapshot.meet_id, "meet_id")
    custom_positions = {event_id: i for i, event_id in enumerate(snapshot.event_order)}

    session_factory = get_session_factory()
    async with _meet_lock(meet_id):
        async with session_factory() as session, session.begin():
            await _delete_meet_rows(session, meet_id)

            session.add(Meet(
                id=meet_id,
                name=snapshot.name,
                scoring_mode=snapshot.scoring_mode.value,
                scoring_places=snapshot.tables.individual.scoring_places,
                updated_at=datetime.utcnow(),
            ))
            await session.flush()

            for event in snapshot.events:
                session.add(MeetEvent(
                    id=require_id(event.event_id, "event_id"),
                    meet_id=meet_id,
                    name=event.name,
                    category=event.category.value,
                    display_order=event.display_order,
                    custom_position=custom_positions.get(event.event_id),
                ))
            for category in EventCategory:
                if category == EventCategory.DIVING and snapshot.tables.diving is None:
                    continue
                table = snapshot.tables.for_category(category)
                for place, points in table.points.items():
                    session.add(ScoringPoint(meet_id=meet_id, category=category.value, place=place, points=points))
            await session.flush()

            for entry in snapshot.entries:
                require_id(entry.entry_id, "entry_id")
                session.add(_entry_row(meet_id, entry))
            for relay in snapshot.relay_entries:
                require_id(relay.entry_id, "entry_id")
                session.add(_relay_row(meet_id, relay))
            await session.flush()

            for relay in snapshot.relay_entries:
                for leg, athlete_id in enumerate(relay.members, start=1):
                    session.add(RelayMember(relay_id=relay.entry_id, leg=leg, athlete_id=athlete_id))

            teams = []
            for position, roster in enumerate(snapshot.rosters):
                team = MeetTeam(
                    meet_id=meet_id,
                    team_id=require_id(roster.team_id, "team_id"),
                    position=position,
                    test_spot_scorer_id=roster.test_spot_scorer_id,
                    sensitivity_percent=roster.sensitivity_percent,
                    sensitivity_variant=roster.sensitivity_variant.value,
                    sensitivity_variant_athlete_id=roster.sensitivity_variant_athlete_id,
                )
                session.add(team)
                teams.append((team, roster))
            await session.flush()

            for team, roster in teams:
                for role, athlete_ids in _roster_roles(roster):
                    for position, athlete_id in enumerate(dict.fromkeys(athlete_ids)):
                        session.add(RosterMember(meet_team_id=team.id, athlete_id=athlete_id, role=role, position=position))

    logger.info(
        "Saved meet %s: %d events, %d entries, %d relays, %d teams",
        meet_id, len(snapshot.events), len(snapshot.entries), len(snapshot.relay_entries), len(snapshot.rosters),
    )


async def _load_snapshot(session: AsyncSession, meet_id: str) -> MeetSnapshot:
    meet = await session.get(Meet, meet_id)
    if meet is None:
        raise MeetNotFoundError(meet_id)

    events = (await session.execute(
        select(MeetEvent).where(MeetEvent.meet_id == meet_id).order_by(MeetEvent.display_order, MeetEvent.id)
    )).scalars().all()
    points = (await session.execute(
        select(ScoringPoint).where(ScoringPoint.meet_id == meet_id)
    )).scalars().all()
    entries = (await session.execute(
        select(MeetEntry).where(MeetEntry.meet_id == meet_id).order_by(MeetEntry.id)
    )).scalars().all()
    relays = (await session.execute(
        select(MeetRelay).where(MeetRelay.meet_id == meet_id).order_by(MeetRelay.id)
    )).scalars().all()
    members = (await session.execute(
        select(RelayMember)
        .join(MeetRelay, RelayMember.relay_id == MeetRelay.id)
        .where(MeetRelay.meet_id == meet_id)
        .order_by(RelayMember.relay_id, RelayMember.leg)
    )).scalars().all()
    teams = (await session.execute(
        select(MeetTeam).where(MeetTeam.meet_id == meet_id).order_by(MeetTeam.position, MeetTeam.id)
    )).scalars().all()
    roster_rows = (await session.execute(
        select(RosterMember)
        .join(MeetTeam, RosterMember.meet_team_id == MeetTeam.id)
        .where(MeetTeam.meet_id == meet_id)
        .order_by(RosterMember.meet_team_id, RosterMember.role, RosterMember.position)
    )).scalars().all()

    legs: dict[str, list[str]] = defaultdict(list)
    for m in members:
        legs[m.relay_id].append(m.athlete_id)
    roles: dict[int, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
    for r in roster_rows:
        roles[r.meet_team_id][r.role].append(r.athlete_id)

    custom = sorted((e for e in events if e.custom_position is not None), key=lambda e: e.custom_position)

    return MeetSnapshot(
        meet_id=meet.id,
        name=meet.name,
        scoring_mode=ViewMode(meet.scoring_mode),
        events=[
            Event(event_id=e.id, name=e.name, category=EventCategory(e.category), display_order=e.display_order)
            for e in events
        ],
        event_order=[e.id for e in custom],
        entries=[_entry_from_row(e) for e in entries],
        relay_entries=[_relay_from_row(r, legs.get(r.id, [])) for r in relays],
        rosters=[_roster_from_row(t, roles.get(t.id, {})) for t in teams],
        tables=_tables_from_rows(meet, points),
    )


async def load_snapshot(meet_id: str) -> MeetSnapshot:
    """Load a stored meet. Raises MeetNotFoundError when it does not exist."""
    session_factory = get_session_factory()
    async with session_factory() as session:
        return await _load_snapshot(session, meet_id)


async def compute_view(meet_id: str, mode: Optional[ViewMode | str] = None) -> MeetScoreboard:
    """Score a stored meet in memory without writing anything back."""
    snapshot = await load_snapshot(meet_id)
    return score_meet(snapshot, mode)


# ─── Rescore ─────────────────────────────────────────────────────────────────


def _write_timed(row, result) -> None:
    row.place = result.place
    row.points = result.points
    row.final_time = result.final_time
    row.final_time_seconds = result.final_time_seconds


def _variant_result(team: TeamScore, roster: TeamRosterConfig):
    if not team.sensitivity:
        return None
    athlete_id = roster.sensitivity_variant_athlete_id or roster.sensitivity_athlete_id
    return next((s for s in team.sensitivity if s.athlete_id == athlete_id), team.sensitivity[0])


async def _write_scoreboard(session: AsyncSession, snapshot: MeetSnapshot, board: MeetScoreboard) -> None:
    meet_id = snapshot.meet_id
    entry_rows = {
        r.id: r for r in (await session.execute(select(MeetEntry).where(MeetEntry.meet_id == meet_id))).scalars()
    }
    relay_rows = {
        r.id: r for r in (await session.execute(select(MeetRelay).where(MeetRelay.meet_id == meet_id))).scalars()
    }
    team_rows = {
        t.team_id: t for t in (await session.execute(select(MeetTeam).where(MeetTeam.meet_id == meet_id))).scalars()
    }

    for entry in board.entries:
        row = entry_rows[entry.entry_id]
        row.sensitivity_place_better = row.sensitivity_points_better = None
        row.sensitivity_place_worse = row.sensitivity_points_worse = None
        if not row.real_result_applied:
            _write_timed(row, entry)
    for relay in board.relay_entries:
        row = relay_rows[relay.entry_id]
        if not row.real_result_applied:
            _write_timed(row, relay)

    by_athlete_event = {(r.team_id, r.athlete_id, r.event_id): r for r in entry_rows.values()}
    rosters = {r.team_id: r for r in snapshot.rosters}

    await session.execute(delete(SensitivityOutcome).where(
        SensitivityOutcome.meet_team_id.in_([t.id for t in team_rows.values()])
    ))

    for team in board.teams:
        row = team_rows[team.totals.team_id]
        roster = rosters[team.totals.team_id]
        row.individual_score = team.totals.individual
        row.diving_score = team.totals.diving
        row.relay_score = team.totals.relay
        row.total_score = team.totals.total
        row.rank = team.rank
        row.test_spot_scorer_id = team.test_spot_scorer_id

        for result in team.sensitivity:
            session.add(SensitivityOutcome(
                meet_team_id=row.id,
                athlete_id=result.athlete_id,
                percent=result.percent,
                athlete_points_baseline=result.athlete_points_baseline,
                athlete_points_better=result.athlete_points_better,
                athlete_points_worse=result.athlete_points_worse,
                team_total_better=result.team_total_better,
                team_total_worse=result.team_total_worse,
            ))
            for ev in result.events:
                entry_row = by_athlete_event.get((row.team_id, result.athlete_id, ev.event_id))
                if entry_row is None:
                    continue
                entry_row.sensitivity_place_better = ev.better_place
                entry_row.sensitivity_points_better = ev.better_points
                entry_row.sensitivity_place_worse = ev.worse_place
                entry_row.sensitivity_points_worse = ev.worse_points

        chosen = _variant_result(team, roster)
        row.sensitivity_total_better = chosen.team_total_better if chosen else None
        row.sensitivity_total_worse = chosen.team_total_worse if chosen else None
        row.sensitivity_athlete_points_baseline = chosen.athlete_points_baseline if chosen else None
        row.sensitivity_athlete_points_better = chosen.athlete_points_better if chosen else None
        row.sensitivity_athlete_points_worse = chosen.athlete_points_worse if chosen else None

    meet = await session.get(Meet, meet_id)
    meet.last_scored_at = datetime.utcnow()


async def _rescore_locked(meet_id: str, mode: Optional[ViewMode | str]) -> MeetScoreboard:
    session_factory = get_session_factory()
    async with session_factory() as session, session.begin():
        snapshot = await _load_snapshot(session, meet_id)
        board = score_meet(snapshot, mode)
        await _write_scoreboard(session, snapshot, board)
    logger.info("Rescored meet %s (%s view), %d teams written", meet_id, board.mode.value, len(board.teams))
    return board


async def rescore_meet(meet_id: str, mode: Optional[ViewMode | str] = None) -> MeetScoreboard:
    """Score a stored meet and persist the results.

    The whole write-back runs in one transaction, so a failure leaves the
    previous results intact. Authoritative rows are never overwritten.
    """
    require_id(meet_id, "meet_id")
    logger.info("Rescore requested for meet %s", meet_id)
    async with _meet_lock(meet_id):
        return await _rescore_locked(meet_id, mode)


# ─── Team settings ───────────────────────────────────────────────────────────


async def _team_roles(session: AsyncSession, meet_id: str, team_id: str) -> tuple[MeetTeam, dict[str, list[str]]]:
    if await session.get(Meet, meet_id) is None:
        raise MeetNotFoundError(meet_id)
    team = (await session.execute(
        select(MeetTeam).where(MeetTeam.meet_id == meet_id, MeetTeam.team_id == team_id)
    )).scalar_one_or_none()
    if team is None:
        raise TeamNotFoundError(meet_id, team_id)
    rows = (await session.execute(
        select(RosterMember).where(RosterMember.meet_team_id == team.id).order_by(RosterMember.role, RosterMember.position)
    )).scalars().all()
    roles: dict[str, list[str]] = defaultdict(list)
    for r in rows:
        roles[r.role].append(r.athlete_id)
    return team, roles


async def set_test_spot_scorer(meet_id: str, team_id: str, athlete_id: str) -> MeetScoreboard:
    """Designate a team's test-spot scorer, then rescore the meet."""
    require_id(athlete_id, "athlete_id")
    session_factory = get_session_factory()
    async with _meet_lock(meet_id):
        async with session_factory() as session, session.begin():
            team, roles = await _team_roles(session, meet_id, team_id)
            candidates = roles.get(ROLE_TEST_SPOT, [])
            if not candidates:
                raise TestSpotError(f"Team {team_id} has no test-spot athletes")
            if athlete_id not in candidates:
                raise TestSpotError(f"Athlete {athlete_id} is not a test-spot candidate for team {team_id}")
            team.test_spot_scorer_id = athlete_id
        logger.info("Meet %s team %s: test-spot scorer set to %s", meet_id, team_id, athlete_id)
        return await _rescore_locked(meet_id, None)


async def set_sensitivity_variant(
    meet_id: str,
    team_id: str,
    variant: SensitivityVariant | str,
    athlete_id: Optional[str] = None,
) -> MeetScoreboard:
    """Choose which sensitivity variant a team's displayed total uses, then rescore."""
    try:
        variant = SensitivityVariant(variant)
    except ValueError:
        raise SensitivityConfigError(f"Unknown sensitivity variant: {variant!r}") from None

    session_factory = get_session_factory()
    async with _meet_lock(meet_id):
        async with session_factory() as session, session.begin():
            team, roles = await _team_roles(session, meet_id, team_id)
            athletes = roles.get(ROLE_SENSITIVITY, [])
            if not athletes:
                raise SensitivityConfigError(f"Team {team_id} has no sensitivity athlete")
            if athlete_id is not None and athlete_id not in athletes:
                raise SensitivityConfigError(f"Athlete {athlete_id} is not a sensitivity athlete for team {team_id}")
            team.sensitivity_variant = variant.value
            team.sensitivity_variant_athlete_id = athlete_id
        logger.info("Meet %s team %s: sensitivity variant set to %s", meet_id, team_id, variant.value)
        return await _rescore_locked(meet_id, None)


# ─── Official results ────────────────────────────────────────────────────────


async def apply_results(
    meet_id: str,
    event_id: str,
    rows: Sequence[OfficialResultRow],
) -> tuple[AppliedResults, MeetScoreboard]:
    """Record official results for one event and rescore the meet."""
    session_factory = get_session_factory()
    async with _meet_lock(meet_id):
        async with session_factory() as session, session.begin():
            snapshot = await _load_snapshot(session, meet_id)
            event = next((e for e in snapshot.events if e.event_id == event_id), None)
            if event is None:
                raise EventNotFoundError(meet_id, event_id)

            event_entries = [e for e in snapshot.entries if e.event_id == event_id]
            event_relays = [r for r in snapshot.relay_entries if r.event_id == event_id]
            applied = apply_official_results(event, rows, event_entries, event_relays, snapshot.tables)

            known = {e.entry_id for e in event_entries} | {r.entry_id for r in event_relays}
            for entry in applied.entries:
                if entry.entry_id in known:
                    row = await session.get(MeetEntry, entry.entry_id)
                    for name, value in _time_values(entry).items():
                        setattr(row, name, value)
                else:
                    session.add(_entry_row(meet_id, entry))
            for relay in applied.relay_entries:
                if relay.entry_id in known:
                    row = await session.get(MeetRelay, relay.entry_id)
                    for name, value in _time_values(relay).items():
                        setattr(row, name, value)
                else:
                    session.add(_relay_row(meet_id, relay))

        return applied, await _rescore_locked(meet_id, None)
