# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from event_scheduler.models.division import Division  # noqa: F401
from event_scheduler.models.event import Event  # noqa: F401
from event_scheduler.models.field import PlayingField  # noqa: F401
from event_scheduler.models.match import Match  # noqa: F401
from event_scheduler.models.scoring_config import LeagueScoringConfig  # noqa: F401
from event_scheduler.models.standing import DivisionStanding  # noqa: F401
from event_scheduler.models.team import Team  # noqa: F401
from event_scheduler.models.time_slot import TimeSlot  # noqa: F401
