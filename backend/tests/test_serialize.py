from datetime import datetime

import pytest

from event_scheduler.models import Event, EventType, Match, MatchType
from event_scheduler.services.serialize import (
    FORMAT_LEGACY,
    camel_case,
    legacy_name,
    serialize_event,
    serialize_match,
    serialize_schedule,
)


def _match(**kwargs):
    values = dict(
        id=7,
        event_id=1,
        division_id=2,
        match_code="D2-BR-R2-M01",
        match_type=MatchType.BRACKET.value,
        round_index=2,
        sequence_in_round=1,
        team1_id=11,
        previous_left_match_id=5,
        previous_right_match_id=6,
        start=datetime(2026, 3, 2, 10, 0),
        end=datetime(2026, 3, 2, 11, 0),
    )
    values.update(kwargs)
    return Match(**values)


def _event():
    return Event(
        id=1,
        name="Spring",
        event_type=EventType.TOURNAMENT.value,
        start=datetime(2026, 3, 2, 0, 0),
        end=datetime(2026, 3, 2, 23, 0),
    )


def test_camel_case():
    assert camel_case("team1_id") == "team1Id"
    assert camel_case("winner_next_match_id") == "winnerNextMatchId"
    assert camel_case("name") == "name"


def test_legacy_renames_take_priority():
    assert legacy_name("id") == "$id"
    assert legacy_name("match_code") == "matchId"
    assert legacy_name("previous_left_match_id") == "previousLeftId"
    assert legacy_name("event_type") == "eventType"


def test_v2_match_keeps_names_and_isoformat_datetimes():
    wire = serialize_match(_match())
    assert wire["id"] == 7
    assert wire["match_code"] == "D2-BR-R2-M01"
    assert wire["start"] == "2026-03-02T10:00:00"
    assert wire["field_id"] is None


def test_legacy_match_shape():
    wire = serialize_match(_match(), FORMAT_LEGACY)
    assert wire["$id"] == 7
    assert wire["matchId"] == "D2-BR-R2-M01"
    assert wire["previousLeftId"] == 5
    assert wire["previousRightId"] == 6
    assert wire["team1Id"] == 11
    assert "match_code" not in wire


def test_legacy_event_shape():
    wire = serialize_event(_event(), FORMAT_LEGACY)
    assert wire["$id"] == 1
    assert wire["eventType"] == "TOURNAMENT"
    assert wire["matchDurationMinutes"] is None
    assert wire["end"] == "2026-03-02T23:00:00"


def test_schedule_envelope():
    body = serialize_schedule(_event(), [_match()], preview=True)
    assert body["preview"] is True
    assert body["event"]["name"] == "Spring"
    assert [m["id"] for m in body["matches"]] == [7]


def test_unknown_format_raises():
    with pytest.raises(ValueError):
        serialize_match(_match(), "xml")
