from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from event_scheduler.models.event import Event


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    REPORTED = "REPORTED"
    FINAL = "FINAL"


class MatchType(str, Enum):
    RR = "RR"
    BRACKET = "BRACKET"
    PLAYOFF = "PLAYOFF"
    THIRD_PLACE = "THIRD_PLACE"


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("event_id", "match_code", name="uq_match_event_code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    division_id: Optional[int] = Field(default=None, foreign_key="division.id")
    match_code: str  # Deterministic generator key, stable across re-schedules
    match_type: str = Field(sa_column=Column(String, nullable=False))  # MatchType value
    round_index: int
    sequence_in_round: int

    # Participants (nullable until a feeder match or the league table resolves them)
    team1_id: Optional[int] = Field(default=None, foreign_key="team.id")
    team2_id: Optional[int] = Field(default=None, foreign_key="team.id")
    team1_seed_rank: Optional[int] = Field(default=None)  # Playoff slot keyed by projected standings rank
    team2_seed_rank: Optional[int] = Field(default=None)
    placeholder_side_a: str = Field(default="TBD")
    placeholder_side_b: str = Field(default="TBD")

    # Allocation (all three null in preview when no occurrence was available)
    field_id: Optional[int] = Field(default=None, foreign_key="playingfield.id")
    start: Optional[datetime] = Field(default=None)
    end: Optional[datetime] = Field(default=None)
    referee_id: Optional[int] = Field(default=None)
    team_referee_id: Optional[int] = Field(default=None, foreign_key="team.id")

    # Bracket progression graph
    losers_bracket: bool = Field(default=False)
    previous_left_match_id: Optional[int] = Field(default=None, foreign_key="match.id")
    previous_right_match_id: Optional[int] = Field(default=None, foreign_key="match.id")
    winner_next_match_id: Optional[int] = Field(default=None, foreign_key="match.id")
    loser_next_match_id: Optional[int] = Field(default=None, foreign_key="match.id")

    # Result state machine
    status: str = Field(default=MatchStatus.SCHEDULED.value)  # SCHEDULED | REPORTED | FINAL
    team1_points: List[float] = Field(default_factory=list, sa_column=Column(JSON))
    team2_points: List[float] = Field(default_factory=list, sa_column=Column(JSON))
    tiebreak_winner: Optional[int] = Field(default=None)  # 1 | 2, e.g. overtime or shootout
    winner_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    loser_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    is_draw: bool = Field(default=False)
    result_revision: int = Field(default=0)
    reported_at: Optional[datetime] = Field(default=None)
    finalized_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: "Event" = Relationship(back_populates="matches")

    @property
    def is_bracket(self) -> bool:
        return self.match_type != MatchType.RR.value

    @property
    def is_placed(self) -> bool:
        return self.field_id is not None and self.start is not None
