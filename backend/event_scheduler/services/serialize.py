"""
Wire projections for events and matches.

"v2" is the snake_case shape used by the current API. "legacy" is the
camelCase, "$id"-keyed shape older clients read. Both are pure field
renames of the same data.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List

from event_scheduler.models import Event, Match

FORMAT_V2 = "v2"
FORMAT_LEGACY = "legacy"
FORMATS = (FORMAT_V2, FORMAT_LEGACY)

MATCH_FIELDS = [
    "id",
    "event_id",
    "division_id",
    "match_code",
    "match_type",
    "round_index",
    "sequence_in_round",
    "team1_id",
    "team2_id",
    "team1_seed_rank",
    "team2_seed_rank",
    "placeholder_side_a",
    "placeholder_side_b",
    "field_id",
    "start",
    "end",
    "referee_id",
    "team_referee_id",
    "losers_bracket",
    "previous_left_match_id",
    "previous_right_match_id",
    "winner_next_match_id",
    "loser_next_match_id",
    "status",
    "team1_points",
    "team2_points",
    "tiebreak_winner",
    "winner_team_id",
    "loser_team_id",
    "is_draw",
    "result_revision",
    "reported_at",
    "finalized_at",
]

EVENT_FIELDS = [
    "id",
    "name",
    "event_type",
    "start",
    "end",
    "single_division",
    "max_participants",
    "match_duration_minutes",
    "set_duration_minutes",
    "rest_time_minutes",
    "games_per_opponent",
    "third_place_match",
    "double_elimination",
    "do_teams_ref",
    "referee_ids",
    "division_summary",
    "scheduled_through",
    "last_scheduled_at",
    "schedule_mode",
]

# Legacy names that are not a plain camelCase of the v2 name
LEGACY_RENAMES = {
    "id": "$id",
    "previous_left_match_id": "previousLeftId",
    "previous_right_match_id": "previousRightId",
    "match_code": "matchId",
}


def _wire_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def legacy_name(name: str) -> str:
    return LEGACY_RENAMES.get(name) or camel_case(name)


def _project(obj: Any, names: List[str], rename: Callable[[str], str]) -> Dict[str, Any]:
    return {rename(name): _wire_value(getattr(obj, name, None)) for name in names}


def _renamer(fmt: str) -> Callable[[str], str]:
    if fmt == FORMAT_V2:
        return lambda name: name
    if fmt == FORMAT_LEGACY:
        return legacy_name
    raise ValueError(f"Unknown format '{fmt}', expected one of {', '.join(FORMATS)}")


def serialize_match(match: Match, fmt: str = FORMAT_V2) -> Dict[str, Any]:
    return _project(match, MATCH_FIELDS, _renamer(fmt))


def serialize_event(event: Event, fmt: str = FORMAT_V2) -> Dict[str, Any]:
    return _project(event, EVENT_FIELDS, _renamer(fmt))


def serialize_schedule(event: Event, matches: List[Match], preview: bool, fmt: str = FORMAT_V2) -> Dict[str, Any]:
    return {
        "preview": preview,
        "event": serialize_event(event, fmt),
        "matches": [serialize_match(m, fmt) for m in matches],
    }
