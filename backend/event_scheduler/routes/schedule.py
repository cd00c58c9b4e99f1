import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlmodel import Session

from event_scheduler.database import get_session
from event_scheduler.models import Event
from event_scheduler.services.allocator import AllocationMode
from event_scheduler.services.event_repository import load_matches
from event_scheduler.services.schedule_errors import EventNotFoundError, ScheduleError
from event_scheduler.services.schedule_orchestrator import schedule_event
from event_scheduler.services.serialize import FORMAT_V2, FORMATS, serialize_match, serialize_schedule

logger = logging.getLogger(__name__)

router = APIRouter()


class ScheduleRequest(BaseModel):
    mode: AllocationMode
    participant_count: Optional[int] = None


def _check_format(fmt: str) -> str:
    if fmt not in FORMATS:
        raise HTTPException(status_code=422, detail=f"format must be one of {', '.join(FORMATS)}")
    return fmt


@router.post("/events/{event_id}/schedule")
def schedule_event_endpoint(
    event_id: int,
    payload: ScheduleRequest,
    format: str = Query(FORMAT_V2),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """
    (Re)build an event's schedule.

    PREVIEW leaves matches that do not fit without a field/time; COMMIT fails
    with capacity-exhausted instead. Scheduling errors return 400 with
    {reason, message}.
    """
    fmt = _check_format(format)
    try:
        result = schedule_event(session, event_id, payload.mode, payload.participant_count)
    except ScheduleError as e:
        return JSONResponse(status_code=400, content=e.to_dict())
    except EventNotFoundError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    except Exception as e:
        logger.exception(f"Schedule build failed for event {event_id}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    body = serialize_schedule(result.event, result.matches, result.preview, fmt)
    body["unplaced_count"] = result.unplaced_count
    return body


@router.get("/events/{event_id}/matches")
def list_event_matches(
    event_id: int,
    format: str = Query(FORMAT_V2),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """Matches ordered by type → round → sequence"""
    fmt = _check_format(format)
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    matches = load_matches(session, event_id)
    return {"event_id": event_id, "matches": [serialize_match(m, fmt) for m in matches]}
