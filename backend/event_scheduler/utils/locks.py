"""
Per-event write gate held until the surrounding transaction ends.

PostgreSQL: transaction-scoped advisory lock keyed by a signed 64-bit hash of
the event id. Other dialects: an UPDATE of the event row's lock_version, which
takes the row lock (SQLite: the database write lock). Both are released by
commit or rollback and hold across processes.
"""

import hashlib
import logging

from sqlalchemy import text
from sqlmodel import Session

from event_scheduler.services.schedule_errors import EventNotFoundError

logger = logging.getLogger(__name__)


def event_lock_key(event_id: int) -> int:
    """Stable signed 64-bit key for pg_advisory_xact_lock"""
    digest = hashlib.sha256(f"event:{event_id}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=True)


def _is_postgres(session: Session) -> bool:
    return session.get_bind().dialect.name.lower() == "postgresql"


def acquire_event_lock(session: Session, event_id: int) -> None:
    """
    Block until this transaction holds the event's lock.

    Must be the first write of the transaction.

    Raises:
        EventNotFoundError: the event row does not exist (row-lock dialects)
    """
    connection = session.connection()
    if _is_postgres(session):
        connection.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": event_lock_key(event_id)})
        logger.debug(f"Advisory lock acquired for event {event_id}")
        return

    result = connection.execute(
        text("UPDATE event SET lock_version = lock_version + 1 WHERE id = :event_id"),
        {"event_id": event_id},
    )
    if result.rowcount == 0:
        raise EventNotFoundError(f"Event {event_id} not found")
    logger.debug(f"Row lock acquired for event {event_id}")
