"""Allocator: occurrence expansion, window validation, first-fit placement, referees. Pure, no database."""
from datetime import date, datetime

import pytest

from event_scheduler.models import Division, Event, LeagueScoringConfig, MatchType, PlayingField, Team, TimeSlot
from event_scheduler.services.allocator import (
    AllocationMode,
    allocate,
    expand_occurrences,
    match_block_minutes,
    validate_schedule_window,
)
from event_scheduler.services.generator import generate_matches
from event_scheduler.services.schedule_errors import CAPACITY_EXHAUSTED, INVALID_SCHEDULE_WINDOW, ScheduleError
from event_scheduler.services.snapshot import EventSnapshot

MONDAY = date(2026, 3, 2)


def _snapshot(
    event_type="TOURNAMENT",
    team_count=4,
    field_count=1,
    start_minutes=8 * 60,
    end_minutes=12 * 60,
    event_start=datetime(2026, 3, 2, 0, 0),
    event_end=datetime(2026, 3, 2, 23, 0),
    slot_kwargs=None,
    **event_kwargs,
):
    event_kwargs.setdefault("match_duration_minutes", 60)
    event = Event(id=1, name="Alloc", event_type=event_type, start=event_start, end=event_end, **event_kwargs)
    division = Division(id=10, event_id=1, name="Open", sort_order=1)
    teams = [Team(id=100 + k, event_id=1, division_id=10, name=f"T{k}", seed=k) for k in range(1, team_count + 1)]
    fields = [PlayingField(id=n, event_id=1, field_number=n) for n in range(1, field_count + 1)]
    slot_args = dict(
        id=1,
        event_id=1,
        days_of_week=[0],
        start_time_minutes=start_minutes,
        end_time_minutes=end_minutes,
        start_date=MONDAY,
        scheduled_field_ids=[f.id for f in fields],
    )
    slot_args.update(slot_kwargs or {})
    return EventSnapshot(event=event, divisions=[division], teams=teams, fields=fields, time_slots=[TimeSlot(**slot_args)])


def _overlaps(a, b):
    return a.start < b.end and b.start < a.end


# ----------------------------------------------------------------------------
# Expansion
# ----------------------------------------------------------------------------


def test_window_splits_into_blocks_sorted_by_start_then_field():
    occurrences = expand_occurrences(_snapshot(field_count=2))

    assert len(occurrences) == 8
    assert [(o.start.hour, o.field_id) for o in occurrences[:4]] == [(8, 1), (8, 2), (9, 1), (9, 2)]
    assert all((o.end - o.start).seconds == 3600 for o in occurrences)


def test_rest_time_separates_blocks():
    occurrences = expand_occurrences(_snapshot(rest_time_minutes=15))
    assert [o.start.strftime("%H:%M") for o in occurrences] == ["08:00", "09:15", "10:30"]


def test_without_duration_each_window_is_one_occurrence():
    occurrences = expand_occurrences(_snapshot(match_duration_minutes=None))
    assert len(occurrences) == 1
    assert occurrences[0].start == datetime(2026, 3, 2, 8, 0)
    assert occurrences[0].end == datetime(2026, 3, 2, 12, 0)


def test_block_length_follows_sets_when_scoring_uses_sets():
    snapshot = _snapshot(set_duration_minutes=25)
    snapshot.scoring_config = LeagueScoringConfig(uses_sets=True, sets_per_match=2)

    assert match_block_minutes(snapshot.event, snapshot.scoring_config) == 50
    occurrences = expand_occurrences(snapshot)
    assert [o.start.strftime("%H:%M") for o in occurrences] == ["08:00", "08:50", "09:40", "10:30"]
    assert all((o.end - o.start).seconds == 50 * 60 for o in occurrences)


def test_block_length_falls_back_to_match_duration():
    snapshot = _snapshot(set_duration_minutes=25)
    assert match_block_minutes(snapshot.event, None) == 60
    assert match_block_minutes(snapshot.event, LeagueScoringConfig(uses_sets=False, sets_per_match=3)) == 60
    assert match_block_minutes(snapshot.event, LeagueScoringConfig(uses_sets=True, sets_per_match=None)) == 60


def test_repeating_template_walks_weekdays_until_event_end():
    snapshot = _snapshot(match_duration_minutes=None, event_end=datetime(2026, 3, 20, 23, 0))
    days = [o.start.date() for o in expand_occurrences(snapshot)]
    assert days == [date(2026, 3, 2), date(2026, 3, 9), date(2026, 3, 16)]


def test_template_end_date_stops_expansion():
    snapshot = _snapshot(
        match_duration_minutes=None,
        event_end=datetime(2026, 3, 20, 23, 0),
        slot_kwargs={"end_date": date(2026, 3, 10)},
    )
    assert len(expand_occurrences(snapshot)) == 2


def test_non_repeating_template_uses_start_date_only():
    snapshot = _snapshot(
        match_duration_minutes=None,
        event_end=datetime(2026, 3, 20, 23, 0),
        slot_kwargs={"repeating": False, "days_of_week": [4]},
    )
    occurrences = expand_occurrences(snapshot)
    assert [o.start.date() for o in occurrences] == [MONDAY]


def test_occurrences_outside_event_window_are_dropped():
    snapshot = _snapshot(event_start=datetime(2026, 3, 2, 9, 0), event_end=datetime(2026, 3, 2, 11, 0))
    assert [o.start.hour for o in expand_occurrences(snapshot)] == [9, 10]


def test_eligibility_is_template_and_field_intersection():
    snapshot = _snapshot(slot_kwargs={"division_ids": [10, 11]})
    snapshot.fields[0].division_ids = [10, 12]
    occurrence = expand_occurrences(snapshot)[0]
    assert occurrence.division_ids == frozenset({10})
    assert occurrence.serves(10)
    assert not occurrence.serves(11)


def test_single_division_event_opens_every_occurrence():
    snapshot = _snapshot(single_division=True, slot_kwargs={"division_ids": [99]})
    assert expand_occurrences(snapshot)[0].serves(10)


# ----------------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------------


def test_event_without_end_is_invalid_window():
    snapshot = _snapshot(event_start=datetime(2026, 3, 2, 8, 0), event_end=datetime(2026, 3, 2, 8, 0))
    with pytest.raises(ScheduleError) as exc:
        validate_schedule_window(snapshot)
    assert exc.value.reason == INVALID_SCHEDULE_WINDOW


def test_template_ending_before_start_is_invalid_window():
    with pytest.raises(ScheduleError) as exc:
        validate_schedule_window(_snapshot(start_minutes=600, end_minutes=600))
    assert exc.value.reason == INVALID_SCHEDULE_WINDOW


def test_template_end_date_before_start_date_is_invalid_window():
    snapshot = _snapshot(slot_kwargs={"end_date": date(2026, 3, 1)})
    with pytest.raises(ScheduleError) as exc:
        validate_schedule_window(snapshot)
    assert exc.value.reason == INVALID_SCHEDULE_WINDOW


# ----------------------------------------------------------------------------
# Allocation
# ----------------------------------------------------------------------------


def _placed(snapshot, mode=AllocationMode.COMMIT):
    generated = generate_matches(snapshot)
    result = allocate(snapshot, generated.matches, mode, generated.seeding)
    return generated.matches, result


def test_no_field_or_team_double_booking():
    snapshot = _snapshot("LEAGUE", team_count=6, field_count=2, end_minutes=20 * 60)
    matches, result = _placed(snapshot)

    assert result.placed_count == 15
    placed = [(m, result.placements[m.code]) for m in matches]
    for (m1, p1), (m2, p2) in [(a, b) for i, a in enumerate(placed) for b in placed[i + 1:]]:
        if not _overlaps(p1, p2):
            continue
        assert p1.field_id != p2.field_id
        assert not {m1.team1_id, m1.team2_id} & {m2.team1_id, m2.team2_id}


def test_team_rest_is_respected():
    snapshot = _snapshot("LEAGUE", team_count=4, field_count=2, end_minutes=20 * 60, rest_time_minutes=30)
    matches, result = _placed(snapshot)

    by_team = {}
    for m in matches:
        for team_id in (m.team1_id, m.team2_id):
            by_team.setdefault(team_id, []).append(result.placements[m.code])
    for placements in by_team.values():
        placements.sort(key=lambda p: p.start)
        for earlier, later in zip(placements, placements[1:]):
            assert (later.start - earlier.end).total_seconds() >= 30 * 60


def test_bracket_matches_start_after_feeders():
    snapshot = _snapshot(team_count=4, field_count=2, third_place_match=True)
    matches, result = _placed(snapshot)

    placements = {m.code: result.placements[m.code] for m in matches}
    for m in matches:
        for feeder in m.feeder_codes:
            assert placements[m.code].start >= placements[feeder].end
    assert placements["D10-BR-R1-M01"].start == datetime(2026, 3, 2, 8, 0)
    assert placements["D10-BR-R2-M01"].start == datetime(2026, 3, 2, 9, 0)


def test_playoffs_start_after_league_play():
    snapshot = _snapshot("LEAGUE", team_count=4, field_count=2, end_minutes=20 * 60)
    snapshot.divisions[0].playoff_team_count = 2
    matches, result = _placed(snapshot)

    rr_end = max(result.placements[m.code].end for m in matches if m.match_type == MatchType.RR.value)
    playoff = [m for m in matches if m.match_type == MatchType.PLAYOFF.value]
    assert len(playoff) == 1
    assert result.placements[playoff[0].code].start >= rr_end


def test_ineligible_division_is_never_placed():
    snapshot = _snapshot(team_count=2, slot_kwargs={"division_ids": [99]})
    matches, result = _placed(snapshot, AllocationMode.PREVIEW)
    assert result.placed_count == 0
    assert result.unplaced_codes == [matches[0].code]


def test_commit_raises_when_capacity_is_exhausted():
    snapshot = _snapshot(team_count=8, end_minutes=10 * 60)
    with pytest.raises(ScheduleError) as exc:
        _placed(snapshot, AllocationMode.COMMIT)
    assert exc.value.reason == CAPACITY_EXHAUSTED
    assert "about 7 matches" in exc.value.message
    assert "only 2 occurrences" in exc.value.message
    assert "~2.0 h" in exc.value.message


def test_commit_without_any_availability_says_so():
    snapshot = _snapshot(team_count=2, slot_kwargs={"scheduled_field_ids": []})
    with pytest.raises(ScheduleError) as exc:
        _placed(snapshot, AllocationMode.COMMIT)
    assert exc.value.reason == CAPACITY_EXHAUSTED
    assert "no availability configured" in exc.value.message


def test_preview_leaves_overflow_unplaced():
    snapshot = _snapshot(team_count=8, end_minutes=10 * 60)
    matches, result = _placed(snapshot, AllocationMode.PREVIEW)

    assert result.placed_count == 2
    assert len(result.unplaced_codes) == 5
    unplaced = result.placements[result.unplaced_codes[0]]
    assert unplaced.field_id is None and unplaced.start is None and unplaced.end is None


def test_allocation_is_deterministic():
    snapshot = _snapshot("LEAGUE", team_count=5, field_count=2, end_minutes=20 * 60)
    _, first = _placed(snapshot)
    _, second = _placed(snapshot)
    assert first.placements == second.placements


# ----------------------------------------------------------------------------
# Referees
# ----------------------------------------------------------------------------


def test_idle_team_referees_three_team_round_robin():
    snapshot = _snapshot("LEAGUE", team_count=3, do_teams_ref=True)
    matches, result = _placed(snapshot)

    for m in matches:
        referee = result.placements[m.code].team_referee_id
        assert referee is not None
        assert referee not in (m.team1_id, m.team2_id)
    assert sorted(result.placements[m.code].team_referee_id for m in matches) == [101, 102, 103]


def test_official_referees_assigned_first_free():
    snapshot = _snapshot("LEAGUE", team_count=4, field_count=2, referee_ids=[7, 8])
    matches, result = _placed(snapshot)

    first_round = [result.placements[m.code] for m in matches if m.round_index == 1]
    assert sorted(p.referee_id for p in first_round) == [7, 8]
