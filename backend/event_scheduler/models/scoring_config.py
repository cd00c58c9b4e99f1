from typing import Optional

from sqlmodel import Field, SQLModel


class LeagueScoringConfig(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    points_for_win: float = Field(default=3)
    points_for_draw: float = Field(default=1)
    points_for_loss: float = Field(default=0)
    allow_draws: bool = Field(default=False)

    # Scoreline structure
    uses_sets: bool = Field(default=False)
    sets_per_match: Optional[int] = Field(default=None)

    # Bonus rules, applied after the win/draw/loss base (see services/standings.py)
    points_per_goal_scored: float = Field(default=0)
    points_per_goal_conceded: float = Field(default=0)
    points_for_shutout: float = Field(default=0)
    apply_shutout_only_if_win: bool = Field(default=False)
    point_precision: int = Field(default=0)
