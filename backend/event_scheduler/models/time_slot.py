from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from event_scheduler.models.event import Event


class TimeSlot(SQLModel, table=True):
    """Recurring (or one-off) availability template for one or more fields."""

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)

    days_of_week: List[int] = Field(default_factory=list, sa_column=Column(JSON))  # 0=Monday .. 6=Sunday
    start_time_minutes: int  # minute of day, inclusive
    end_time_minutes: int  # minute of day, exclusive
    start_date: date
    end_date: Optional[date] = Field(default=None)  # null = runs until the event ends
    repeating: bool = Field(default=True)

    scheduled_field_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    division_ids: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))  # null/empty = all divisions
    price: Optional[int] = Field(default=None)

    # Relationship
    event: "Event" = Relationship(back_populates="time_slots")
