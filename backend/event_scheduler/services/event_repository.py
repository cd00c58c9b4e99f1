"""
Persistence gateway for scheduling.

All reads and writes the orchestrator and progression engine make go through
here. Nothing in this module commits; callers own the transaction.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from event_scheduler.models import (
    Division,
    DivisionStanding,
    Event,
    LeagueScoringConfig,
    Match,
    MatchType,
    PlayingField,
    Team,
    TimeSlot,
)
from event_scheduler.services.allocator import AllocationMode, AllocationResult
from event_scheduler.services.generator import GeneratedMatch, PendingRankMatch, ResolvedMatch
from event_scheduler.services.schedule_errors import EventNotFoundError
from event_scheduler.services.snapshot import EventSnapshot

logger = logging.getLogger(__name__)

MATCH_TYPE_ORDER = {MatchType.RR.value: 0, MatchType.PLAYOFF.value: 1, MatchType.BRACKET.value: 1, MatchType.THIRD_PLACE.value: 2}


def load_event_with_relations(session: Session, event_id: int) -> EventSnapshot:
    """
    Snapshot of an event and everything scheduling reads.

    Raises:
        EventNotFoundError: no such event
    """
    event = session.get(Event, event_id)
    if not event:
        raise EventNotFoundError(f"Event {event_id} not found")

    divisions = session.exec(
        select(Division).where(Division.event_id == event_id).order_by(Division.sort_order, Division.id)
    ).all()
    teams = session.exec(select(Team).where(Team.event_id == event_id).order_by(Team.id)).all()
    fields = session.exec(
        select(PlayingField).where(PlayingField.event_id == event_id).order_by(PlayingField.field_number, PlayingField.id)
    ).all()
    time_slots = session.exec(select(TimeSlot).where(TimeSlot.event_id == event_id).order_by(TimeSlot.id)).all()
    scoring_config = session.get(LeagueScoringConfig, event.scoring_config_id) if event.scoring_config_id else None

    return EventSnapshot(
        event=event,
        divisions=list(divisions),
        teams=list(teams),
        fields=list(fields),
        time_slots=list(time_slots),
        scoring_config=scoring_config,
    )


def match_sort_key(match: Match):
    return (MATCH_TYPE_ORDER.get(match.match_type, 9), match.round_index, match.sequence_in_round, match.division_id or 0, match.id or 0)


def load_matches(session: Session, event_id: int, division_id: Optional[int] = None) -> List[Match]:
    """Event matches ordered by type → round → sequence"""
    query = select(Match).where(Match.event_id == event_id)
    if division_id is not None:
        query = query.where(Match.division_id == division_id)
    return sorted(session.exec(query).all(), key=match_sort_key)


def delete_matches_by_event(session: Session, event_id: int) -> int:
    """Delete every match and standing row of an event. Returns the match count deleted."""
    matches = session.exec(select(Match).where(Match.event_id == event_id)).all()

    # Bracket rows reference each other both ways; clear the links so no delete order trips a foreign key
    for match in matches:
        match.previous_left_match_id = None
        match.previous_right_match_id = None
        match.winner_next_match_id = None
        match.loser_next_match_id = None
        session.add(match)
    session.flush()

    for match in matches:
        session.delete(match)

    standings = session.exec(select(DivisionStanding).where(DivisionStanding.event_id == event_id)).all()
    for standing in standings:
        session.delete(standing)

    # Flush deletes before new rows reuse the same match codes
    session.flush()
    return len(matches)


def save_matches(
    session: Session, event_id: int, generated: List[GeneratedMatch], allocation: AllocationResult
) -> List[Match]:
    """
    Insert generated matches with their placements, then resolve link codes to ids.
    """
    rows: Dict[str, Match] = {}
    for gm in generated:
        placement = allocation.placements.get(gm.code)
        row = Match(
            event_id=event_id,
            division_id=gm.division_id,
            match_code=gm.code,
            match_type=gm.match_type,
            round_index=gm.round_index,
            sequence_in_round=gm.sequence_in_round,
            losers_bracket=gm.losers_bracket,
            placeholder_side_a=gm.placeholder_side_a,
            placeholder_side_b=gm.placeholder_side_b,
        )
        if isinstance(gm, ResolvedMatch):
            row.team1_id, row.team2_id = gm.team1_id, gm.team2_id
        elif isinstance(gm, PendingRankMatch):
            row.team1_seed_rank, row.team2_seed_rank = gm.team1_rank, gm.team2_rank
        if placement is not None and placement.is_placed:
            row.field_id, row.start, row.end = placement.field_id, placement.start, placement.end
            row.referee_id = placement.referee_id
            row.team_referee_id = placement.team_referee_id
        session.add(row)
        rows[gm.code] = row

    session.flush()

    for gm in generated:
        row = rows[gm.code]
        row.previous_left_match_id = rows[gm.previous_left_code].id if gm.previous_left_code else None
        row.previous_right_match_id = rows[gm.previous_right_code].id if gm.previous_right_code else None
        row.winner_next_match_id = rows[gm.winner_next_code].id if gm.winner_next_code else None
        row.loser_next_match_id = rows[gm.loser_next_code].id if gm.loser_next_code else None
        session.add(row)

    session.flush()
    return [rows[gm.code] for gm in generated]


def build_division_summary(
    snapshot: EventSnapshot, generated: List[GeneratedMatch], allocation: AllocationResult, seeding: Dict
) -> List[Dict[str, Any]]:
    summary = []
    for div_id in snapshot.division_ids:
        division = snapshot.division(div_id)
        div_matches = [m for m in generated if m.division_id == div_id]
        unplaced = [m for m in div_matches if m.code in allocation.unplaced_codes]
        entrants = seeding.get(div_id, [])
        summary.append(
            {
                "division_id": div_id,
                "name": division.name if division else "Open",
                "team_count": sum(1 for e in entrants if e.team_id is not None),
                "entrant_count": len(entrants),
                "match_count": len(div_matches),
                "unplaced_count": len(unplaced),
            }
        )
    return summary


def save_event_schedule(
    session: Session, event: Event, summary: List[Dict[str, Any]], matches: List[Match], mode: AllocationMode
) -> Event:
    """Write the scheduling fields back onto the event row."""
    ends = [m.end for m in matches if m.end is not None]
    event.division_summary = summary
    event.scheduled_through = max(ends) if ends else None
    event.last_scheduled_at = datetime.utcnow()
    event.schedule_mode = AllocationMode(mode).value
    session.add(event)
    session.flush()
    return event


def load_standings(session: Session, event_id: int, division_id: Optional[int] = None) -> List[DivisionStanding]:
    query = select(DivisionStanding).where(DivisionStanding.event_id == event_id)
    if division_id is not None:
        query = query.where(DivisionStanding.division_id == division_id)
    rows = session.exec(query).all()
    return sorted(rows, key=lambda s: (s.division_id or 0, s.rank))
