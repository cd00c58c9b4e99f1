"""
League standings from FINAL round-robin matches.

Points are built by an ordered rule list so bonus precedence is explicit:
1. outcome per match (sets won / total points, then tiebreak flag, else draw)
2. base points: W/D/L
3. goal points: scored and conceded
4. shutout bonus (optionally only on wins)
5. rounding to point_precision

Ranking: points desc → wins desc → goal difference desc → goals for desc →
seed asc (unset last) → stable roster index.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from event_scheduler.models import LeagueScoringConfig, Match, MatchStatus, MatchType, Team
from event_scheduler.services.scoreline import decide_winner

WIN = "W"
DRAW = "D"
LOSS = "L"


@dataclass
class MatchRecord:
    outcome: str
    scored: float
    conceded: float


@dataclass
class StandingRow:
    team_id: int
    seed: Optional[int]
    index: int
    records: List[MatchRecord] = field(default_factory=list)
    points: float = 0
    rank: int = 0

    @property
    def played(self) -> int:
        return len(self.records)

    @property
    def wins(self) -> int:
        return sum(1 for r in self.records if r.outcome == WIN)

    @property
    def draws(self) -> int:
        return sum(1 for r in self.records if r.outcome == DRAW)

    @property
    def losses(self) -> int:
        return sum(1 for r in self.records if r.outcome == LOSS)

    @property
    def goals_for(self) -> float:
        return sum(r.scored for r in self.records)

    @property
    def goals_against(self) -> float:
        return sum(r.conceded for r in self.records)

    @property
    def goal_difference(self) -> float:
        return self.goals_for - self.goals_against


# ============================================================================
# Point rules (applied in list order)
# ============================================================================


def _base_points(row: StandingRow, config: LeagueScoringConfig) -> None:
    row.points += (
        row.wins * config.points_for_win + row.draws * config.points_for_draw + row.losses * config.points_for_loss
    )


def _goal_points(row: StandingRow, config: LeagueScoringConfig) -> None:
    row.points += row.goals_for * config.points_per_goal_scored + row.goals_against * config.points_per_goal_conceded


def _shutout_bonus(row: StandingRow, config: LeagueScoringConfig) -> None:
    if not config.points_for_shutout:
        return
    for record in row.records:
        if record.conceded != 0:
            continue
        if config.apply_shutout_only_if_win and record.outcome != WIN:
            continue
        row.points += config.points_for_shutout


def _round_points(row: StandingRow, config: LeagueScoringConfig) -> None:
    row.points = round(row.points, config.point_precision or 0)


POINT_RULES: List[Callable[[StandingRow, LeagueScoringConfig], None]] = [
    _base_points,
    _goal_points,
    _shutout_bonus,
    _round_points,
]


def standing_sort_key(row: StandingRow):
    return (
        -row.points,
        -row.wins,
        -row.goal_difference,
        -row.goals_for,
        row.seed is None,
        row.seed if row.seed is not None else 0,
        row.index,
    )


def compute_standings(
    teams: List[Team], matches: List[Match], config: Optional[LeagueScoringConfig] = None
) -> List[StandingRow]:
    """
    Ranked standings for one division.

    Args:
        teams: Division roster in stable order (team id ascending)
        matches: Division matches; only FINAL round-robin results between roster teams count
        config: Scoring config (defaults: 3/1/0, no bonuses)
    """
    config = config or LeagueScoringConfig()
    rows: Dict[int, StandingRow] = {
        team.id: StandingRow(team_id=team.id, seed=team.seed, index=i) for i, team in enumerate(teams)
    }

    # Rule 1: outcome per match
    for match in matches:
        if match.match_type != MatchType.RR.value or match.status != MatchStatus.FINAL.value:
            continue
        if match.team1_id not in rows or match.team2_id not in rows:
            continue
        team1_total = sum(match.team1_points or [])
        team2_total = sum(match.team2_points or [])
        winner = decide_winner(match.team1_points, match.team2_points, match.tiebreak_winner, config.uses_sets)
        outcome1 = DRAW if winner is None else (WIN if winner == 1 else LOSS)
        outcome2 = DRAW if winner is None else (WIN if winner == 2 else LOSS)
        rows[match.team1_id].records.append(MatchRecord(outcome1, team1_total, team2_total))
        rows[match.team2_id].records.append(MatchRecord(outcome2, team2_total, team1_total))

    for row in rows.values():
        for rule in POINT_RULES:
            rule(row, config)

    ranked = sorted(rows.values(), key=standing_sort_key)
    for rank, row in enumerate(ranked, start=1):
        row.rank = rank
    return ranked
