"""Applying official (authoritative) results to one event.

Rows arrive already extracted and resolved to athlete/team IDs by the
upload collaborator. Applied records are flagged authoritative so view
composition keeps them in real and hybrid modes.
"""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from .errors import require_id
from .models import (
    AppliedResults,
    Entry,
    Event,
    EventCategory,
    OfficialResultRow,
    RelayEntry,
    ScoringTables,
    UnresolvedRow,
)
from .timecodec import to_seconds

logger = logging.getLogger(__name__)


def _official_update(row: OfficialResultRow, tables: ScoringTables, category: EventCategory) -> dict:
    points = row.points if row.points is not None else tables.for_category(category).points_for(row.place)
    return {
        "final_time": row.time_text,
        "final_time_seconds": to_seconds(row.time_text),
        "place": row.place,
        "points": points,
        "real_result_applied": True,
    }


def apply_official_results(
    event: Event,
    rows: Sequence[OfficialResultRow],
    entries: Sequence[Entry],
    relay_entries: Sequence[RelayEntry],
    tables: ScoringTables,
) -> AppliedResults:
    """Write official place/time/points onto the event's entries or relays.

    Unknown athletes/teams get a new entry. Rows without the identifier the
    event needs are reported as unresolved and skipped.
    """
    require_id(event.event_id, "event_id")
    out_entries = [e.model_copy() for e in entries]
    out_relays = [r.model_copy() for r in relay_entries]
    applied = 0
    created = 0
    unresolved = []

    for row in rows:
        update = _official_update(row, tables, event.category)

        if event.category == EventCategory.RELAY:
            if not row.team_id:
                unresolved.append(UnresolvedRow(place=row.place, time_text=row.time_text, reason="no_team"))
                continue
            index = next(
                (i for i, r in enumerate(out_relays) if r.event_id == event.event_id and r.team_id == row.team_id),
                None,
            )
            if index is None:
                out_relays.append(RelayEntry(
                    entry_id=uuid.uuid4().hex,
                    team_id=row.team_id,
                    event_id=event.event_id,
                    **update,
                ))
                created += 1
            else:
                out_relays[index] = out_relays[index].model_copy(update=update)
        else:
            if not row.athlete_id or not row.team_id:
                unresolved.append(UnresolvedRow(place=row.place, time_text=row.time_text, reason="no_athlete"))
                continue
            index = next(
                (i for i, e in enumerate(out_entries) if e.event_id == event.event_id and e.athlete_id == row.athlete_id),
                None,
            )
            if index is None:
                out_entries.append(Entry(
                    entry_id=uuid.uuid4().hex,
                    athlete_id=row.athlete_id,
                    team_id=row.team_id,
                    event_id=event.event_id,
                    category=event.category,
                    **update,
                ))
                created += 1
            else:
                out_entries[index] = out_entries[index].model_copy(update=update)
        applied += 1

    if unresolved:
        logger.warning("Event %s: %d official rows could not be resolved", event.event_id, len(unresolved))
    logger.info("Event %s: applied %d official rows (%d new)", event.event_id, applied, created)

    return AppliedResults(
        event_id=event.event_id,
        entries=out_entries,
        relay_entries=out_relays,
        applied=applied,
        created=created,
        unresolved=unresolved,
    )
