"""
Runtime: result reporting, finalization and standings.
When a match is finalized, progression fills downstream slots and league tables.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from event_scheduler.database import get_session
from event_scheduler.models import Event
from event_scheduler.services.event_repository import load_standings
from event_scheduler.services.progression import ProgressionResult, apply_result, finalize
from event_scheduler.services.progression_errors import MatchNotFoundError, ProgressionValidationError
from event_scheduler.services.scoreline import build_scoreline

logger = logging.getLogger(__name__)

router = APIRouter()


class MatchResultUpdate(BaseModel):
    team1_points: Optional[List[float]] = None
    team2_points: Optional[List[float]] = None
    score: Optional[str] = None  # "6-3 4-6 10-7", used when no point lists are given
    tiebreak_winner: Optional[int] = None
    finalize: bool = False
    override: bool = False


class MatchFinalizeRequest(BaseModel):
    override: bool = False


class MatchResultState(BaseModel):
    id: int
    event_id: int
    division_id: Optional[int] = None
    match_code: str
    match_type: str
    round_index: int
    sequence_in_round: int
    team1_id: Optional[int] = None
    team2_id: Optional[int] = None
    status: str
    team1_points: List[float] = []
    team2_points: List[float] = []
    tiebreak_winner: Optional[int] = None
    winner_team_id: Optional[int] = None
    loser_team_id: Optional[int] = None
    is_draw: bool = False
    result_revision: int = 0
    reported_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MatchResultResponse(BaseModel):
    match: MatchResultState
    advanced_count: int = 0
    reallocated_match_ids: List[int] = []
    standings_updated: bool = False


class StandingRowResponse(BaseModel):
    division_id: Optional[int] = None
    team_id: int
    rank: int
    played: int
    wins: int
    losses: int
    draws: int
    goals_for: float
    goals_against: float
    goal_difference: float
    points: float

    model_config = ConfigDict(from_attributes=True)


def _to_response(result: ProgressionResult) -> MatchResultResponse:
    return MatchResultResponse(
        match=MatchResultState.model_validate(result.match),
        advanced_count=result.advanced_count,
        reallocated_match_ids=result.reallocated_match_ids,
        standings_updated=result.standings_updated,
    )


def _require_event(session: Session, event_id: int) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("/events/{event_id}/matches/{match_id}/result", response_model=MatchResultResponse)
def report_match_result(
    event_id: int,
    match_id: int,
    payload: MatchResultUpdate,
    session: Session = Depends(get_session),
) -> MatchResultResponse:
    """Report a result; with finalize=true the match also becomes FINAL and advances."""
    _require_event(session, event_id)
    try:
        scoreline = build_scoreline(
            team1_points=payload.team1_points,
            team2_points=payload.team2_points,
            score=payload.score,
            tiebreak_winner=payload.tiebreak_winner,
        )
        result = apply_result(
            session,
            match_id,
            scoreline,
            finalize=payload.finalize,
            override=payload.override,
            event_id=event_id,
        )
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail="Match not found")
    except ProgressionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _to_response(result)


@router.post("/events/{event_id}/matches/{match_id}/finalize", response_model=MatchResultResponse)
def finalize_match(
    event_id: int,
    match_id: int,
    payload: Optional[MatchFinalizeRequest] = None,
    session: Session = Depends(get_session),
) -> MatchResultResponse:
    _require_event(session, event_id)
    override = payload.override if payload else False
    try:
        result = finalize(session, match_id, override=override, event_id=event_id)
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail="Match not found")
    except ProgressionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _to_response(result)


@router.get("/events/{event_id}/standings")
def get_standings(event_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Standings per division, ranked"""
    _require_event(session, event_id)
    grouped: Dict[Any, List[Dict[str, Any]]] = {}
    for row in load_standings(session, event_id):
        grouped.setdefault(row.division_id, []).append(StandingRowResponse.model_validate(row).model_dump())
    return {
        "event_id": event_id,
        "divisions": [{"division_id": div_id, "standings": rows} for div_id, rows in grouped.items()],
    }
