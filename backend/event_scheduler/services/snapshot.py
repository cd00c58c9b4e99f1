"""
EventSnapshot: a consistent, detached view of one event and its relations.

The Generator and Allocator only read from a snapshot; they never touch the
session. Divisions are kept in the event's declared order and teams in stable
input order (id ascending), which is the last tie-break of every ordering.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from event_scheduler.models import Division, Event, LeagueScoringConfig, PlayingField, Team, TimeSlot


@dataclass
class EventSnapshot:
    event: Event
    divisions: List[Division] = field(default_factory=list)
    teams: List[Team] = field(default_factory=list)
    fields: List[PlayingField] = field(default_factory=list)
    time_slots: List[TimeSlot] = field(default_factory=list)
    scoring_config: Optional[LeagueScoringConfig] = None

    @property
    def division_ids(self) -> List[Optional[int]]:
        """Ordered division ids; an event without divisions has one implicit division (None)."""
        if not self.divisions:
            return [None]
        return [d.id for d in self.divisions]

    def division_of(self, team: Team) -> Optional[int]:
        known = self.division_ids
        if team.division_id in known:
            return team.division_id
        return known[0]

    def teams_by_division(self) -> Dict[Optional[int], List[Team]]:
        grouped: Dict[Optional[int], List[Team]] = {div_id: [] for div_id in self.division_ids}
        for team in self.teams:
            grouped[self.division_of(team)].append(team)
        return grouped

    def division(self, division_id: Optional[int]) -> Optional[Division]:
        for d in self.divisions:
            if d.id == division_id:
                return d
        return None
