from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class DivisionStanding(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("division_id", "team_id", name="uq_standing_division_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    division_id: Optional[int] = Field(default=None, foreign_key="division.id", index=True)
    team_id: int = Field(foreign_key="team.id")
    rank: int
    played: int = Field(default=0)
    wins: int = Field(default=0)
    losses: int = Field(default=0)
    draws: int = Field(default=0)
    goals_for: float = Field(default=0)
    goals_against: float = Field(default=0)
    goal_difference: float = Field(default=0)
    points: float = Field(default=0)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
