from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from event_scheduler.models.division import Division
    from event_scheduler.models.event import Event


class Team(SQLModel, table=True):
    __table_args__ = (
        # Optional: Enforce unique team names within an event
        SAUniqueConstraint("event_id", "name", name="uq_event_team_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    division_id: Optional[int] = Field(default=None, foreign_key="division.id", index=True)
    name: str
    seed: Optional[int] = Field(default=None)  # 1-based seed (1=highest, 2=second, etc.)

    # Roster metadata (not read by the scheduler)
    captain_id: Optional[int] = Field(default=None)
    player_ids: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: "Event" = Relationship(back_populates="teams")
    division: Optional["Division"] = Relationship(back_populates="teams")
