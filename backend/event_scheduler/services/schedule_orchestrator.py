"""
Schedule Orchestrator Service

Runs one scheduling pass for an event inside a single transaction:
1. Acquire the event lock
2. Reload the event snapshot
3. Validate availability windows
4. Generate matches
5. Allocate matches to field occurrences
6. Replace the event's matches (and standings) and write the schedule summary

Re-scheduling is total replacement: identical input produces the identical
match set (modulo row ids). Any failure rolls the whole pass back.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlmodel import Session

from event_scheduler.models import Event, Match
from event_scheduler.services.allocator import AllocationMode, allocate, validate_schedule_window
from event_scheduler.services.event_repository import (
    build_division_summary,
    delete_matches_by_event,
    load_event_with_relations,
    load_matches,
    save_event_schedule,
    save_matches,
)
from event_scheduler.services.generator import generate_matches
from event_scheduler.services.schedule_errors import ScheduleError
from event_scheduler.utils.locks import acquire_event_lock

logger = logging.getLogger(__name__)


@dataclass
class ScheduleResult:
    event: Event
    matches: List[Match] = field(default_factory=list)
    preview: bool = False
    unplaced_count: int = 0
    skipped: bool = False  # event type is not schedulable

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preview": self.preview,
            "event_id": self.event.id,
            "match_count": len(self.matches),
            "unplaced_count": self.unplaced_count,
            "skipped": self.skipped,
        }


def schedule_event(
    session: Session,
    event_id: int,
    mode: AllocationMode,
    participant_count: Optional[int] = None,
) -> ScheduleResult:
    """
    Build and persist the schedule for one event.

    Args:
        session: Database session (committed on success, rolled back on failure)
        event_id: Event to schedule
        mode: PREVIEW keeps unplaceable matches unplaced; COMMIT requires every match placed
        participant_count: Expected entrant count when the roster is not final

    Returns:
        ScheduleResult with the event and its persisted matches

    Raises:
        EventNotFoundError: unknown event
        ScheduleError: insufficient-participants, invalid-playoff-cutoff,
            invalid-schedule-window, capacity-exhausted
    """
    mode = AllocationMode(mode)
    preview = mode == AllocationMode.PREVIEW

    try:
        acquire_event_lock(session, event_id)
        # Drop anything read before the lock was held
        session.expire_all()
        snapshot = load_event_with_relations(session, event_id)
        event = snapshot.event

        if not event.is_schedulable:
            logger.info(f"Event {event_id} is {event.event_type}; nothing to schedule")
            existing = load_matches(session, event_id)
            session.commit()
            return ScheduleResult(event=event, matches=existing, preview=preview, skipped=True)

        validate_schedule_window(snapshot)
        generated = generate_matches(snapshot, participant_count)
        allocation = allocate(snapshot, generated.matches, mode, generated.seeding)

        deleted = delete_matches_by_event(session, event_id)
        matches = save_matches(session, event_id, generated.matches, allocation)
        summary = build_division_summary(snapshot, generated.matches, allocation, generated.seeding)
        save_event_schedule(session, event, summary, matches, mode)

        session.commit()
        logger.info(
            f"Scheduled event {event_id}: {len(matches)} matches ({deleted} replaced), "
            f"{len(allocation.unplaced_codes)} unplaced, mode={mode.value}"
        )
    except ScheduleError as e:
        session.rollback()
        logger.warning(f"Scheduling event {event_id} rejected: {e.reason}: {e.message}")
        raise
    except Exception:
        session.rollback()
        logger.exception(f"Scheduling event {event_id} failed, transaction rolled back")
        raise

    session.refresh(event)
    return ScheduleResult(
        event=event,
        matches=load_matches(session, event_id),
        preview=preview,
        unplaced_count=len(allocation.unplaced_codes),
    )
