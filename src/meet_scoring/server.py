"""Meet Scoring MCP Server.

FastMCP server exposing team standings, event results, score progression,
and the test-spot and sensitivity what-ifs for locally stored meets.
Run: meet-scoring-mcp
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .core.aggregation import event_breakdown, score_progression
from .core.errors import EventNotFoundError, TeamNotFoundError
from .core.models import EventCategory, MeetScoreboard, MeetSnapshot, OfficialResultRow, TeamScore
from .core.timecodec import format_seconds
from .db import close_db, init_db
from .store import (
    apply_results,
    compute_view,
    load_snapshot,
    rescore_meet,
    save_snapshot,
    set_sensitivity_variant,
    set_test_spot_scorer,
)

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)
WRITE = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=True, openWorldHint=False)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Initialize the local meet database."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    await init_db()
    try:
        yield
    finally:
        await close_db()


mcp = FastMCP(
    "Meet Scoring",
    instructions="Project and track swim & dive meet team scores: simulated from seed times, real from official results, or a hybrid of both. Includes test-spot and time-sensitivity what-ifs.",
    lifespan=lifespan,
)


def _mode(mode: str) -> Optional[str]:
    """Explicit mode, else MEET_SCORING_DEFAULT_MODE, else the meet's stored mode."""
    return mode or os.environ.get("MEET_SCORING_DEFAULT_MODE") or None


def _team(board: MeetScoreboard, team_id: str) -> TeamScore:
    team = board.team(team_id)
    if team is None:
        raise TeamNotFoundError(board.meet_id, team_id)
    return team


def _standings_rows(board: MeetScoreboard) -> list[dict]:
    return [
        {
            "rank": t.rank,
            "team_id": t.totals.team_id,
            "individual": t.totals.individual,
            "diving": t.totals.diving,
            "relay": t.totals.relay,
            "total": t.totals.total,
            "displayed_total": t.displayed_total,
        }
        for t in board.teams
    ]


def _standings_summary(board: MeetScoreboard) -> str:
    if not board.teams:
        return "No teams configured for this meet."
    parts = [f"{t.rank}. {t.totals.team_id} {t.displayed_total:.1f}" for t in board.teams[:5]]
    return f"{board.mode.value.title()} standings: " + " | ".join(parts)


# ─── Meet data ───────────────────────────────────────────────────────────────


@mcp.tool(annotations=WRITE)
async def meet_save(snapshot: dict) -> dict:
    """Store a complete meet (events, entries, relays, rosters, scoring tables), replacing any previous copy.

    Args:
        snapshot: Meet snapshot with meet_id, events, entries, relay_entries, rosters, and tables.
    """
    meet = MeetSnapshot.model_validate(snapshot)
    await save_snapshot(meet)
    return {
        "title": "Meet Saved",
        "meet_id": meet.meet_id,
        "events": len(meet.events),
        "entries": len(meet.entries),
        "relay_entries": len(meet.relay_entries),
        "teams": len(meet.rosters),
        "summary": f"Saved meet {meet.meet_id} with {len(meet.events)} events and {len(meet.rosters)} teams.",
    }


# ─── Standings ───────────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def meet_standings(meet_id: str, mode: str = "") -> dict:
    """Team standings for a meet, computed without writing anything.

    Args:
        meet_id: Meet identifier.
        mode: 'simulated', 'real', or 'hybrid'. Defaults to the meet's scoring mode.
    """
    board = await compute_view(meet_id, _mode(mode))
    return {
        "title": "Team Standings",
        "meet_id": meet_id,
        "mode": board.mode.value,
        "standings": _standings_rows(board),
        "simulated_events": board.simulated_event_ids,
        "authoritative_events": board.authoritative_event_ids,
        "summary": _standings_summary(board),
    }


# ─── Event results ───────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def meet_event_results(meet_id: str, event_id: str, mode: str = "") -> dict:
    """Placings, points, and A/B/C-final counts per team for one event.

    Args:
        meet_id: Meet identifier.
        event_id: Event identifier.
        mode: 'simulated', 'real', or 'hybrid'. Defaults to the meet's scoring mode.
    """
    snapshot = await load_snapshot(meet_id)
    event = next((e for e in snapshot.events if e.event_id == event_id), None)
    if event is None:
        raise EventNotFoundError(meet_id, event_id)

    board = await compute_view(meet_id, _mode(mode))
    is_diving = event.category == EventCategory.DIVING
    unplaced = float("inf")

    if event.category == EventCategory.RELAY:
        results = sorted(
            (r for r in board.relay_entries if r.event_id == event_id),
            key=lambda r: r.place or unplaced,
        )
        rows = [
            {
                "place": r.place,
                "team_id": r.team_id,
                "members": r.members,
                "time": r.final_time or r.override_time or r.seed_time,
                "points": r.points,
                "official": r.real_result_applied,
            }
            for r in results
        ]
    else:
        results = sorted(
            (e for e in board.entries if e.event_id == event_id),
            key=lambda e: e.place or unplaced,
        )
        rows = [
            {
                "place": e.place,
                "athlete_id": e.athlete_id,
                "team_id": e.team_id,
                "time": format_seconds(e.final_time_seconds, is_diving) if e.final_time_seconds else e.seed_time,
                "points": e.points,
                "official": e.real_result_applied,
            }
            for e in results
        ]

    scoring_places = snapshot.tables.for_category(event.category).scoring_places
    breakdown = event_breakdown(event_id, board.entries, board.relay_entries, scoring_places)
    leader = breakdown[0] if breakdown else None

    return {
        "title": event.name or event_id,
        "meet_id": meet_id,
        "event_id": event_id,
        "category": event.category.value,
        "mode": board.mode.value,
        "results": rows,
        "team_breakdown": [b.model_dump() for b in breakdown],
        "summary": (
            f"{len(rows)} result(s) in {event.name or event_id}; {leader.team_id} leads with {leader.points:.1f} points."
            if leader else f"No results in {event.name or event_id}."
        ),
    }


# ─── Score progression ───────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def meet_score_progression(meet_id: str, mode: str = "") -> dict:
    """Cumulative team scores after each event, in meet order.

    Args:
        meet_id: Meet identifier.
        mode: 'simulated', 'real', or 'hybrid'. Defaults to the meet's scoring mode.
    """
    snapshot = await load_snapshot(meet_id)
    board = await compute_view(meet_id, _mode(mode))
    progression = score_progression(
        snapshot.events, board.entries, board.relay_entries, snapshot.rosters, snapshot.event_order,
    )

    if progression:
        final = progression[-1].totals
        leader = max(final, key=final.get) if final else None
        summary = f"{len(progression)} events scored." + (f" {leader} finishes on {final[leader]:.1f}." if leader else "")
    else:
        summary = "No events in this meet."

    return {
        "title": "Score Progression",
        "meet_id": meet_id,
        "mode": board.mode.value,
        "progression": [p.model_dump() for p in progression],
        "summary": summary,
    }


# ─── What-ifs ────────────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def meet_test_spot(meet_id: str, team_id: str, mode: str = "") -> dict:
    """Compare a team's test-spot candidates: each one's points and the team total if they were the scorer.

    Args:
        meet_id: Meet identifier.
        team_id: Team identifier.
        mode: 'simulated', 'real', or 'hybrid'. Defaults to the meet's scoring mode.
    """
    board = await compute_view(meet_id, _mode(mode))
    team = _team(board, team_id)
    candidates = [c.model_dump() for c in team.test_spot]

    if team.test_spot:
        best = team.test_spot[0]
        summary = f"Current scorer: {team.test_spot_scorer_id}. Best candidate {best.athlete_id} with {best.subtotal:.1f} points (team total {best.projected_team_total:.1f})."
    else:
        summary = f"Team {team_id} has no test-spot candidates."

    return {
        "title": "Test Spot",
        "meet_id": meet_id,
        "team_id": team_id,
        "current_scorer_id": team.test_spot_scorer_id,
        "team_total": team.totals.total,
        "candidates": candidates,
        "summary": summary,
    }


@mcp.tool(annotations=READ_ONLY)
async def meet_sensitivity(meet_id: str, team_id: str, mode: str = "") -> dict:
    """How a team's total moves if its sensitivity athletes swim (or dive) a percentage better or worse.

    Args:
        meet_id: Meet identifier.
        team_id: Team identifier.
        mode: 'simulated', 'real', or 'hybrid'. Defaults to the meet's scoring mode.
    """
    board = await compute_view(meet_id, _mode(mode))
    team = _team(board, team_id)

    if team.sensitivity:
        parts = [
            f"{s.athlete_id} ±{s.percent:g}%: {s.team_total_worse:.1f} / {s.team_total_baseline:.1f} / {s.team_total_better:.1f}"
            for s in team.sensitivity
        ]
        summary = "Team total worse / baseline / better: " + " | ".join(parts)
    else:
        summary = f"No sensitivity analysis configured for team {team_id}."

    return {
        "title": "Sensitivity",
        "meet_id": meet_id,
        "team_id": team_id,
        "team_total": team.totals.total,
        "displayed_total": team.displayed_total,
        "results": [s.model_dump() for s in team.sensitivity],
        "summary": summary,
    }


# ─── Writes ──────────────────────────────────────────────────────────────────


@mcp.tool(annotations=WRITE)
async def meet_rescore(meet_id: str, mode: str = "") -> dict:
    """Rescore a meet and store the resulting places, points, and team totals.

    Args:
        meet_id: Meet identifier.
        mode: 'simulated', 'real', or 'hybrid'. Defaults to the meet's scoring mode.
    """
    board = await rescore_meet(meet_id, _mode(mode))
    return {
        "title": "Meet Rescored",
        "meet_id": meet_id,
        "mode": board.mode.value,
        "standings": _standings_rows(board),
        "summary": _standings_summary(board),
    }


@mcp.tool(annotations=WRITE)
async def meet_set_test_spot_scorer(meet_id: str, team_id: str, athlete_id: str) -> dict:
    """Make a test-spot candidate the team's scorer and rescore the meet.

    Args:
        meet_id: Meet identifier.
        team_id: Team identifier.
        athlete_id: One of the team's test-spot candidates.
    """
    board = await set_test_spot_scorer(meet_id, team_id, athlete_id)
    team = _team(board, team_id)
    return {
        "title": "Test-Spot Scorer Updated",
        "meet_id": meet_id,
        "team_id": team_id,
        "scorer_id": team.test_spot_scorer_id,
        "team_total": team.totals.total,
        "rank": team.rank,
        "summary": f"{athlete_id} now scores for {team_id}; team total {team.totals.total:.1f} (rank {team.rank}).",
    }


@mcp.tool(annotations=WRITE)
async def meet_set_sensitivity_variant(meet_id: str, team_id: str, variant: str, athlete_id: str = "") -> dict:
    """Choose which sensitivity variant (baseline, better, worse) a team's displayed total uses.

    Args:
        meet_id: Meet identifier.
        team_id: Team identifier.
        variant: 'baseline', 'better', or 'worse'.
        athlete_id: Sensitivity athlete the variant applies to. Defaults to the first one.
    """
    board = await set_sensitivity_variant(meet_id, team_id, variant, athlete_id or None)
    team = _team(board, team_id)
    return {
        "title": "Sensitivity Variant Updated",
        "meet_id": meet_id,
        "team_id": team_id,
        "variant": variant,
        "displayed_total": team.displayed_total,
        "team_total": team.totals.total,
        "summary": f"{team_id} now displays the {variant} total: {team.displayed_total:.1f}.",
    }


@mcp.tool(annotations=WRITE)
async def meet_apply_results(meet_id: str, event_id: str, rows: list[dict]) -> dict:
    """Record official results for an event and rescore the meet.

    Args:
        meet_id: Meet identifier.
        event_id: Event identifier.
        rows: Official rows with place, time_text, athlete_id (individual/diving), team_id, and optional points.
    """
    parsed = [OfficialResultRow.model_validate(r) for r in rows]
    applied, board = await apply_results(meet_id, event_id, parsed)

    summary = f"Applied {applied.applied} official result(s) to {event_id} ({applied.created} new)."
    if applied.unresolved:
        summary += f" {len(applied.unresolved)} row(s) could not be matched."

    return {
        "title": "Official Results Applied",
        "meet_id": meet_id,
        "event_id": event_id,
        "applied": applied.applied,
        "created": applied.created,
        "unresolved": [u.model_dump() for u in applied.unresolved],
        "standings": _standings_rows(board),
        "summary": summary,
    }


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
