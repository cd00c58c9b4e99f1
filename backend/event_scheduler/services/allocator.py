"""
Allocator: deterministic first-fit placement of abstract matches onto field occurrences

Availability templates (TimeSlot) are expanded into concrete occurrences, one per
(field, date, block). Matches are walked in phase order and each one takes the
earliest unused occurrence that:
- serves the match's division
- starts after its feeder matches end (plus rest)
- does not overlap a match of either known team (plus rest)

No randomness and no look-ahead. PREVIEW leaves unplaceable matches without a
field/time; COMMIT raises capacity-exhausted.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from event_scheduler.models import Match, MatchType
from event_scheduler.services.generator import Entrant, GeneratedMatch, known_team_ids
from event_scheduler.services.schedule_errors import CAPACITY_EXHAUSTED, INVALID_SCHEDULE_WINDOW, ScheduleError
from event_scheduler.services.snapshot import EventSnapshot

logger = logging.getLogger(__name__)


class AllocationMode(str, Enum):
    PREVIEW = "PREVIEW"
    COMMIT = "COMMIT"


@dataclass(frozen=True)
class Occurrence:
    field_id: int
    start: datetime
    end: datetime
    division_ids: Optional[FrozenSet[int]] = None  # None = every division

    def serves(self, division_id: Optional[int]) -> bool:
        return self.division_ids is None or division_id in self.division_ids



@dataclass
class Placement:
    field_id: Optional[int] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    referee_id: Optional[int] = None
    team_referee_id: Optional[int] = None

    @property
    def is_placed(self) -> bool:
        return self.field_id is not None


@dataclass
class AllocationResult:
    placements: Dict[str, Placement] = field(default_factory=dict)
    unplaced_codes: List[str] = field(default_factory=list)
    occurrence_count: int = 0

    @property
    def placed_count(self) -> int:
        return sum(1 for p in self.placements.values() if p.is_placed)


# ============================================================================
# Window validation
# ============================================================================


def validate_schedule_window(snapshot: EventSnapshot) -> None:
    """
    Reject malformed availability before anything is generated.

    Raises:
        ScheduleError: invalid-schedule-window
    """
    event = snapshot.event
    if event.end <= event.start:
        raise ScheduleError(
            INVALID_SCHEDULE_WINDOW,
            f"Event '{event.name}' needs an end after its start to be scheduled "
            f"(start={event.start.isoformat()}, end={event.end.isoformat()}).",
        )

    for slot in snapshot.time_slots:
        if slot.end_time_minutes <= slot.start_time_minutes:
            raise ScheduleError(
                INVALID_SCHEDULE_WINDOW,
                f"Time slot {slot.id} ends at minute {slot.end_time_minutes}, "
                f"not after its start minute {slot.start_time_minutes}.",
            )
        if slot.end_date is not None and slot.end_date < slot.start_date:
            raise ScheduleError(
                INVALID_SCHEDULE_WINDOW,
                f"Time slot {slot.id} end date {slot.end_date} is before its start date {slot.start_date}.",
            )


# ============================================================================
# Occurrence expansion
# ============================================================================


def _eligible_divisions(snapshot: EventSnapshot, slot_divisions, field_divisions) -> Optional[FrozenSet[int]]:
    if snapshot.event.single_division:
        return None
    eligible: Optional[Set[int]] = None
    for ids in (slot_divisions, field_divisions):
        if ids:
            eligible = set(ids) if eligible is None else eligible & set(ids)
    return frozenset(eligible) if eligible is not None else None


def _slot_dates(slot, last_date: date) -> Iterable[date]:
    if not slot.repeating:
        yield slot.start_date
        return
    weekdays = set(slot.days_of_week or [])
    end = min(slot.end_date, last_date) if slot.end_date else last_date
    day = slot.start_date
    while day <= end:
        if not weekdays or day.weekday() in weekdays:
            yield day
        day += timedelta(days=1)


def _split_window(window_start: datetime, window_end: datetime, duration: Optional[int], rest: int):
    if not duration:
        yield window_start, window_end
        return
    block = timedelta(minutes=duration)
    gap = timedelta(minutes=rest)
    cursor = window_start
    while cursor + block <= window_end:
        yield cursor, cursor + block
        cursor = cursor + block + gap


def match_block_minutes(event, config=None) -> Optional[int]:
    """Field time one match takes: set duration x sets per match when scoring uses sets."""
    if config is not None and config.uses_sets and config.sets_per_match and event.set_duration_minutes:
        return event.set_duration_minutes * config.sets_per_match
    return event.match_duration_minutes


def expand_occurrences(snapshot: EventSnapshot) -> List[Occurrence]:
    """Expand every availability template into sorted occurrences (start, field id, end)."""
    event = snapshot.event
    block_minutes = match_block_minutes(event, snapshot.scoring_config)
    fields_by_id = {f.id: f for f in snapshot.fields}
    occurrences: Set[Occurrence] = set()

    for slot in snapshot.time_slots:
        for day in _slot_dates(slot, event.end.date()):
            midnight = datetime.combine(day, time.min)
            window_start = midnight + timedelta(minutes=slot.start_time_minutes)
            window_end = midnight + timedelta(minutes=slot.end_time_minutes)
            for field_id in slot.scheduled_field_ids or []:
                playing_field = fields_by_id.get(field_id)
                if playing_field is None:
                    logger.warning(f"Time slot {slot.id} references unknown field {field_id}; skipping")
                    continue
                divisions = _eligible_divisions(snapshot, slot.division_ids, playing_field.division_ids)
                for start, end in _split_window(
                    window_start, window_end, block_minutes, event.rest_time_minutes or 0
                ):
                    if start < event.start or end > event.end:
                        continue
                    occurrences.add(Occurrence(field_id=field_id, start=start, end=end, division_ids=divisions))

    return sorted(occurrences, key=lambda o: (o.start, o.field_id, o.end))


# ============================================================================
# Busy tracking
# ============================================================================


class BusyTracker:
    """Booked intervals per key (team, referee or field), padded by a rest time"""

    def __init__(self, rest_minutes: int = 0):
        self.rest = timedelta(minutes=rest_minutes)
        self.intervals: Dict[int, List[Tuple[datetime, datetime]]] = {}

    def is_free(self, team_id: int, start: datetime, end: datetime) -> bool:
        for busy_start, busy_end in self.intervals.get(team_id, []):
            if start < busy_end + self.rest and busy_start < end + self.rest:
                return False
        return True

    def all_free(self, team_ids: Iterable[int], start: datetime, end: datetime) -> bool:
        return all(self.is_free(t, start, end) for t in team_ids)

    def book(self, team_id: int, start: datetime, end: datetime) -> None:
        self.intervals.setdefault(team_id, []).append((start, end))


# ============================================================================
# Allocation
# ============================================================================


def allocation_sort_key(match: GeneratedMatch, division_order: Dict[Optional[int], int]) -> Tuple:
    """
    Order: phase (RR first) → round → division order → sequence → code
    """
    phase = 0 if match.match_type == MatchType.RR.value else 1
    return (phase, match.round_index, division_order.get(match.division_id, 999), match.sequence_in_round, match.code)


def _first_fit(
    occurrences: List[Occurrence],
    fields_busy: BusyTracker,
    division_id: Optional[int],
    earliest: Optional[datetime],
    team_ids: Tuple[int, ...],
    busy: BusyTracker,
) -> Optional[Occurrence]:
    for occ in occurrences:
        if not occ.serves(division_id) or not fields_busy.is_free(occ.field_id, occ.start, occ.end):
            continue
        if earliest is not None and occ.start < earliest:
            continue
        if not busy.all_free(team_ids, occ.start, occ.end):
            continue
        return occ
    return None


def allocate(
    snapshot: EventSnapshot,
    matches: List[GeneratedMatch],
    mode: AllocationMode,
    seeding: Optional[Dict[Optional[int], List[Entrant]]] = None,
) -> AllocationResult:
    """
    Bind generated matches to occurrences.

    Args:
        snapshot: Event snapshot (already window-validated)
        matches: Generator output
        mode: PREVIEW tolerates unplaced matches, COMMIT does not
        seeding: Entrant order per division, used to pick team referees

    Raises:
        ScheduleError: capacity-exhausted (COMMIT only)
    """
    mode = AllocationMode(mode)
    occurrences = expand_occurrences(snapshot)
    rest = timedelta(minutes=snapshot.event.rest_time_minutes or 0)
    division_order = {div_id: i for i, div_id in enumerate(snapshot.division_ids)}

    result = AllocationResult(occurrence_count=len(occurrences))
    fields_busy = BusyTracker(0)
    busy = BusyTracker(snapshot.event.rest_time_minutes or 0)
    rr_end_by_division: Dict[Optional[int], datetime] = {}

    for match in sorted(matches, key=lambda m: allocation_sort_key(m, division_order)):
        placement = Placement()
        result.placements[match.code] = placement

        # Feeders must be placed before this match can be
        feeder_ends = []
        blocked = False
        for code in match.feeder_codes:
            feeder = result.placements.get(code)
            if feeder is None or not feeder.is_placed:
                blocked = True
                break
            feeder_ends.append(feeder.end)

        earliest = max(feeder_ends) + rest if feeder_ends else None
        if match.match_type != MatchType.RR.value and match.division_id in rr_end_by_division:
            after_league = rr_end_by_division[match.division_id] + rest
            earliest = max(earliest, after_league) if earliest else after_league

        team_ids = known_team_ids(match)
        occ = None if blocked else _first_fit(occurrences, fields_busy, match.division_id, earliest, team_ids, busy)

        if occ is None:
            if mode == AllocationMode.COMMIT:
                raise ScheduleError(CAPACITY_EXHAUSTED, _capacity_message(match.code, matches, occurrences))
            result.unplaced_codes.append(match.code)
            continue

        fields_busy.book(occ.field_id, occ.start, occ.end)
        placement.field_id, placement.start, placement.end = occ.field_id, occ.start, occ.end
        for team_id in team_ids:
            busy.book(team_id, occ.start, occ.end)
        if match.match_type == MatchType.RR.value:
            current = rr_end_by_division.get(match.division_id)
            rr_end_by_division[match.division_id] = max(current, occ.end) if current else occ.end

    assign_referees(snapshot, matches, result, busy, seeding or {})

    logger.info(
        f"Allocated {result.placed_count}/{len(matches)} matches for event {snapshot.event.id} "
        f"({len(occurrences)} occurrences, mode={mode.value})"
    )
    return result


def _capacity_message(code: str, matches: List[GeneratedMatch], occurrences: List[Occurrence]) -> str:
    if not occurrences:
        return f"No field time available for match {code}: no availability configured inside the event window."
    hours = sum((o.end - o.start).total_seconds() for o in occurrences) / 3600
    return (
        f"No field time available for match {code}: the event needs about {len(matches)} matches "
        f"but only {len(occurrences)} occurrences (~{hours:.1f} h of field time) are available."
    )


# ============================================================================
# Referees
# ============================================================================


def assign_referees(
    snapshot: EventSnapshot,
    matches: List[GeneratedMatch],
    result: AllocationResult,
    busy: BusyTracker,
    seeding: Dict[Optional[int], List[Entrant]],
) -> None:
    """
    Team referees (do_teams_ref): a resting team of the same division, least
    assigned first, then entrant order. Official referees: first free in list order.
    """
    event = snapshot.event
    official_ids = list(event.referee_ids or [])
    if not event.do_teams_ref and not official_ids:
        return

    officials = BusyTracker(0)
    team_ref_counts: Dict[int, int] = {}

    placed = [m for m in matches if result.placements[m.code].is_placed]
    placed.sort(key=lambda m: (result.placements[m.code].start, result.placements[m.code].field_id))

    for match in placed:
        placement = result.placements[match.code]
        playing = known_team_ids(match)

        if event.do_teams_ref and len(playing) == 2:
            candidates = [
                e.team_id
                for e in seeding.get(match.division_id, [])
                if e.team_id is not None and e.team_id not in playing
            ]
            order = {team_id: i for i, team_id in enumerate(candidates)}
            free = [t for t in candidates if busy.is_free(t, placement.start, placement.end)]
            if free:
                chosen = min(free, key=lambda t: (team_ref_counts.get(t, 0), order[t]))
                placement.team_referee_id = chosen
                team_ref_counts[chosen] = team_ref_counts.get(chosen, 0) + 1
                busy.book(chosen, placement.start, placement.end)

        for referee_id in official_ids:
            if officials.is_free(referee_id, placement.start, placement.end):
                placement.referee_id = referee_id
                officials.book(referee_id, placement.start, placement.end)
                break


# ============================================================================
# Single-match allocation (progression)
# ============================================================================


def allocate_single(snapshot: EventSnapshot, target: Match, event_matches: List[Match]) -> Optional[Occurrence]:
    """
    Find the first occurrence for one persisted, still-unplaced match.

    Occurrences and team time held by the event's other placed matches are
    respected, as are the target's feeder end times. Returns None when nothing fits.
    """
    rest = timedelta(minutes=snapshot.event.rest_time_minutes or 0)
    by_id = {m.id: m for m in event_matches}
    others = [m for m in event_matches if m.id != target.id and m.is_placed]

    fields_busy = BusyTracker(0)
    busy = BusyTracker(snapshot.event.rest_time_minutes or 0)
    for m in others:
        fields_busy.book(m.field_id, m.start, m.end)
        for team_id in (m.team1_id, m.team2_id):
            if team_id is not None:
                busy.book(team_id, m.start, m.end)

    earliest: Optional[datetime] = None
    for feeder_id in (target.previous_left_match_id, target.previous_right_match_id):
        feeder = by_id.get(feeder_id) if feeder_id is not None else None
        if feeder is not None and feeder.end is not None:
            candidate = feeder.end + rest
            earliest = max(earliest, candidate) if earliest else candidate

    if target.match_type != MatchType.RR.value:
        rr_ends = [
            m.end
            for m in others
            if m.match_type == MatchType.RR.value and m.division_id == target.division_id and m.end is not None
        ]
        if rr_ends:
            candidate = max(rr_ends) + rest
            earliest = max(earliest, candidate) if earliest else candidate

    team_ids = tuple(t for t in (target.team1_id, target.team2_id) if t is not None)
    return _first_fit(expand_occurrences(snapshot), fields_busy, target.division_id, earliest, team_ids, busy)
