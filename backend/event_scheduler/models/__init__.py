from event_scheduler.models.division import Division
from event_scheduler.models.event import SCHEDULABLE_EVENT_TYPES, Event, EventType
from event_scheduler.models.field import PlayingField
from event_scheduler.models.match import Match, MatchStatus, MatchType
from event_scheduler.models.scoring_config import LeagueScoringConfig
from event_scheduler.models.standing import DivisionStanding
from event_scheduler.models.team import Team
from event_scheduler.models.time_slot import TimeSlot

__all__ = [
    "Event",
    "EventType",
    "SCHEDULABLE_EVENT_TYPES",
    "Division",
    "Team",
    "PlayingField",
    "TimeSlot",
    "Match",
    "MatchStatus",
    "MatchType",
    "LeagueScoringConfig",
    "DivisionStanding",
]
