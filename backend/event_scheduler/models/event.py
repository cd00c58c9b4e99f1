from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from event_scheduler.models.division import Division
    from event_scheduler.models.field import PlayingField
    from event_scheduler.models.match import Match
    from event_scheduler.models.scoring_config import LeagueScoringConfig
    from event_scheduler.models.team import Team
    from event_scheduler.models.time_slot import TimeSlot


class EventType(str, Enum):
    LEAGUE = "LEAGUE"
    TOURNAMENT = "TOURNAMENT"
    EVENT = "EVENT"
    CLINIC = "CLINIC"
    RENTAL = "RENTAL"


SCHEDULABLE_EVENT_TYPES = frozenset({EventType.LEAGUE.value, EventType.TOURNAMENT.value})


class Event(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    event_type: EventType = Field(sa_column=Column(String, nullable=False))
    start: datetime
    end: datetime
    single_division: bool = Field(default=False)
    max_participants: Optional[int] = Field(default=None)

    # Scheduling knobs
    match_duration_minutes: Optional[int] = Field(default=None)  # None = one match per availability window
    set_duration_minutes: Optional[int] = Field(default=None)  # with sets: block = set duration x sets per match
    rest_time_minutes: int = Field(default=0)
    games_per_opponent: int = Field(default=1)
    third_place_match: bool = Field(default=False)
    double_elimination: bool = Field(default=False)
    do_teams_ref: bool = Field(default=False)
    referee_ids: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))
    scoring_config_id: Optional[int] = Field(default=None, foreign_key="leaguescoringconfig.id")

    # Written by the scheduling run
    division_summary: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON))
    scheduled_through: Optional[datetime] = Field(default=None)
    last_scheduled_at: Optional[datetime] = Field(default=None)
    schedule_mode: Optional[str] = Field(default=None)  # "PREVIEW" | "COMMIT"

    # Bumped by the row-level event lock on non-PostgreSQL databases
    lock_version: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    divisions: List["Division"] = Relationship(back_populates="event")
    teams: List["Team"] = Relationship(back_populates="event")
    playing_fields: List["PlayingField"] = Relationship(back_populates="event")
    time_slots: List["TimeSlot"] = Relationship(back_populates="event")
    matches: List["Match"] = Relationship(back_populates="event")
    scoring_config: Optional["LeagueScoringConfig"] = Relationship()

    @property
    def is_schedulable(self) -> bool:
        return EventType(self.event_type).value in SCHEDULABLE_EVENT_TYPES
