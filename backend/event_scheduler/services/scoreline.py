"""
Scorelines: per-set (or per-period) points for both sides of a match.

Accepted inputs:
  team1_points=[6, 4, 10], team2_points=[3, 6, 7]
  "8-4"            → 1 set
  "6-3 4-6 10-7"   → 3 sets
  "6-3, 4-6, 10-7" → comma-separated variant
  {"display": "8-4"} or {"sets": [{"a": 6, "b": 3}]}
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from event_scheduler.models import LeagueScoringConfig
from event_scheduler.services.progression_errors import ProgressionValidationError


@dataclass
class Scoreline:
    team1_points: List[float] = field(default_factory=list)
    team2_points: List[float] = field(default_factory=list)
    tiebreak_winner: Optional[int] = None  # 1 | 2

    @property
    def sets(self) -> List[Tuple[float, float]]:
        return list(zip(self.team1_points, self.team2_points))

    @property
    def team1_total(self) -> float:
        return sum(self.team1_points)

    @property
    def team2_total(self) -> float:
        return sum(self.team2_points)

    @property
    def team1_sets_won(self) -> int:
        return sum(1 for a, b in self.sets if a > b)

    @property
    def team2_sets_won(self) -> int:
        return sum(1 for a, b in self.sets if b > a)


def parse_score(raw: Any) -> Optional[Scoreline]:
    """Parse a score string or blob. Returns None if it cannot be parsed."""
    if not raw:
        return None

    if isinstance(raw, dict):
        if "sets" in raw and isinstance(raw["sets"], list):
            return _parse_structured_sets(raw["sets"])
        raw = str(raw.get("display") or raw.get("score") or "")
    if not isinstance(raw, str) or not raw.strip():
        return None

    return _parse_score_string(raw.strip())


def _parse_structured_sets(sets_list: list) -> Optional[Scoreline]:
    scoreline = Scoreline()
    for s in sets_list:
        try:
            scoreline.team1_points.append(float(s.get("a", 0)))
            scoreline.team2_points.append(float(s.get("b", 0)))
        except (AttributeError, TypeError, ValueError):
            return None
    return scoreline if scoreline.team1_points else None


def _parse_score_string(raw: str) -> Optional[Scoreline]:
    # Normalize: replace commas with spaces, collapse whitespace
    parts = raw.replace(",", " ").split()

    scoreline = Scoreline()
    for part in parts:
        pair = part.split("-")
        if len(pair) != 2:
            return None
        try:
            a = int(pair[0])
            b = int(pair[1])
        except ValueError:
            return None
        scoreline.team1_points.append(a)
        scoreline.team2_points.append(b)

    return scoreline if scoreline.team1_points else None


def build_scoreline(
    team1_points: Optional[List[float]] = None,
    team2_points: Optional[List[float]] = None,
    score: Optional[Any] = None,
    tiebreak_winner: Optional[int] = None,
) -> Scoreline:
    """Scoreline from explicit point lists, or from a score string when no lists are given."""
    if team1_points is None and team2_points is None:
        parsed = parse_score(score)
        if parsed is None:
            raise ProgressionValidationError(f"Could not parse score {score!r}")
        parsed.tiebreak_winner = tiebreak_winner
        return parsed
    return Scoreline(list(team1_points or []), list(team2_points or []), tiebreak_winner)


def validate_scoreline(scoreline: Scoreline, config: LeagueScoringConfig) -> None:
    """
    Structural completeness for the scoring config.

    Raises:
        ProgressionValidationError: lengths differ, negative points, wrong set count, bad tiebreak flag
    """
    a, b = scoreline.team1_points, scoreline.team2_points
    if len(a) != len(b):
        raise ProgressionValidationError(f"Point lists differ in length ({len(a)} vs {len(b)})")
    if not a:
        raise ProgressionValidationError("Scoreline needs at least one set or period")
    if any(p < 0 for p in a + b):
        raise ProgressionValidationError("Points cannot be negative")
    if config.uses_sets and config.sets_per_match and len(a) != config.sets_per_match:
        raise ProgressionValidationError(
            f"Expected exactly {config.sets_per_match} sets, got {len(a)}"
        )
    if scoreline.tiebreak_winner not in (None, 1, 2):
        raise ProgressionValidationError("tiebreak_winner must be 1 or 2")


def decide_winner(
    team1_points: List[float], team2_points: List[float], tiebreak_winner: Optional[int], uses_sets: bool
) -> Optional[int]:
    """1 or 2 for the winning side, None for a draw"""
    scoreline = Scoreline(list(team1_points or []), list(team2_points or []), tiebreak_winner)
    if uses_sets:
        a, b = scoreline.team1_sets_won, scoreline.team2_sets_won
    else:
        a, b = scoreline.team1_total, scoreline.team2_total
    if a > b:
        return 1
    if b > a:
        return 2
    return tiebreak_winner
