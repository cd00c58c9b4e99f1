from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from event_scheduler.models.event import Event
    from event_scheduler.models.team import Team


class Division(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    name: str
    sort_order: int = Field(default=0)  # Position within the event's ordered division list

    division_type_id: Optional[str] = Field(default=None)
    gender: Optional[str] = Field(default=None)
    rating_type: Optional[str] = Field(default=None)

    # Bracket size cutoff for league -> playoff; 0 = no playoffs
    playoff_team_count: int = Field(default=0)

    # Read for capacity projection only
    price: Optional[int] = Field(default=None)
    max_participants: Optional[int] = Field(default=None)

    # Relationships
    event: "Event" = Relationship(back_populates="divisions")
    teams: List["Team"] = Relationship(back_populates="division")
