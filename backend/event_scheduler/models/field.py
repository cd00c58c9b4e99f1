from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from event_scheduler.models.event import Event


class PlayingField(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    field_number: int
    name: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)

    # Divisions this field may host; empty or null = every division
    division_ids: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))

    # Relationship
    event: "Event" = Relationship(back_populates="playing_fields")
