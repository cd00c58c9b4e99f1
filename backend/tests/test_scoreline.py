"""Score parsing and scoreline validation."""
import pytest

from event_scheduler.models import LeagueScoringConfig
from event_scheduler.services.progression_errors import ProgressionValidationError
from event_scheduler.services.scoreline import (
    Scoreline,
    build_scoreline,
    decide_winner,
    parse_score,
    validate_scoreline,
)


def test_parse_single_set():
    parsed = parse_score("8-4")
    assert parsed.team1_points == [8]
    assert parsed.team2_points == [4]


def test_parse_three_sets_with_commas():
    parsed = parse_score("6-3, 4-6, 10-7")
    assert parsed.sets == [(6, 3), (4, 6), (10, 7)]
    assert parsed.team1_sets_won == 2
    assert parsed.team2_sets_won == 1
    assert parsed.team1_total == 20
    assert parsed.team2_total == 16


def test_parse_structured_and_display_blobs():
    assert parse_score({"display": "6-2 6-1"}).team1_points == [6, 6]
    assert parse_score({"sets": [{"a": 6, "b": 3}, {"a": 2, "b": 6}]}).team2_points == [3, 6]


@pytest.mark.parametrize("raw", [None, "", "   ", "6:3", "6-3-1", "six-three", {"display": ""}])
def test_unparseable_scores_return_none(raw):
    assert parse_score(raw) is None


def test_build_scoreline_prefers_point_lists():
    scoreline = build_scoreline(team1_points=[2, 1], team2_points=[0, 0], score="9-9", tiebreak_winner=None)
    assert scoreline.team1_points == [2, 1]


def test_build_scoreline_rejects_bad_score_string():
    with pytest.raises(ProgressionValidationError):
        build_scoreline(score="not a score")


def test_validate_rejects_length_mismatch():
    with pytest.raises(ProgressionValidationError):
        validate_scoreline(Scoreline([1, 2], [3]), LeagueScoringConfig())


def test_validate_rejects_empty_and_negative():
    with pytest.raises(ProgressionValidationError):
        validate_scoreline(Scoreline([], []), LeagueScoringConfig())
    with pytest.raises(ProgressionValidationError):
        validate_scoreline(Scoreline([-1], [2]), LeagueScoringConfig())


def test_validate_requires_exact_set_count():
    config = LeagueScoringConfig(uses_sets=True, sets_per_match=3)
    with pytest.raises(ProgressionValidationError):
        validate_scoreline(Scoreline([6, 6], [3, 3]), config)
    validate_scoreline(Scoreline([6, 3, 6], [3, 6, 0]), config)


def test_validate_rejects_unknown_tiebreak_side():
    with pytest.raises(ProgressionValidationError):
        validate_scoreline(Scoreline([1], [1], tiebreak_winner=3), LeagueScoringConfig())


def test_sets_decide_winner_when_configured():
    # Team 2 scores more games but wins fewer sets
    team1, team2 = [6, 6, 0], [4, 4, 6]
    assert decide_winner(team1, team2, None, uses_sets=True) == 1
    assert decide_winner([6, 0, 6], [7, 6, 7], None, uses_sets=True) == 2
    assert decide_winner([1, 1], [0, 5], None, uses_sets=False) == 2


def test_tiebreak_breaks_level_scores():
    assert decide_winner([2], [2], None, uses_sets=False) is None
    assert decide_winner([2], [2], 2, uses_sets=False) == 2
