"""League standings: point rules in order, ranking tie-breaks. Pure, no database."""
from event_scheduler.models import LeagueScoringConfig, Match, MatchStatus, MatchType, Team
from event_scheduler.services.standings import compute_standings


def _teams(n, seeds=None):
    seeds = seeds or list(range(1, n + 1))
    return [Team(id=k, event_id=1, name=f"T{k}", seed=seeds[k - 1]) for k in range(1, n + 1)]


def _final(team1, team2, p1, p2, tiebreak=None, match_type=MatchType.RR.value, status=MatchStatus.FINAL.value):
    return Match(
        event_id=1,
        match_code=f"M{team1}-{team2}",
        match_type=match_type,
        round_index=1,
        sequence_in_round=1,
        team1_id=team1,
        team2_id=team2,
        team1_points=list(p1),
        team2_points=list(p2),
        tiebreak_winner=tiebreak,
        status=status,
    )


def _by_team(rows):
    return {r.team_id: r for r in rows}


def test_win_draw_loss_base_points():
    rows = _by_team(
        compute_standings(
            _teams(3),
            [_final(1, 2, [2], [0]), _final(2, 3, [1], [1]), _final(1, 3, [0], [1])],
            LeagueScoringConfig(allow_draws=True),
        )
    )
    assert (rows[1].wins, rows[1].losses, rows[1].points) == (1, 1, 3)
    assert (rows[2].draws, rows[2].losses, rows[2].points) == (1, 1, 1)
    assert (rows[3].wins, rows[3].draws, rows[3].points) == (1, 1, 4)


def test_only_final_round_robin_matches_count():
    matches = [
        _final(1, 2, [3], [0]),
        _final(1, 2, [0], [3], status=MatchStatus.REPORTED.value),
        _final(1, 2, [0], [3], match_type=MatchType.PLAYOFF.value),
    ]
    rows = _by_team(compute_standings(_teams(2), matches))
    assert rows[1].played == 1
    assert rows[2].played == 1
    assert rows[1].points == 3


def test_goal_points_apply_after_base_points():
    config = LeagueScoringConfig(points_per_goal_scored=0.5, points_per_goal_conceded=-0.25, point_precision=2)
    rows = _by_team(compute_standings(_teams(2), [_final(1, 2, [4], [2])], config))
    assert rows[1].points == 3 + 2 - 0.5
    assert rows[2].points == 0 + 1 - 1


def test_shutout_bonus_only_on_win_when_configured():
    config = LeagueScoringConfig(allow_draws=True, points_for_shutout=2, apply_shutout_only_if_win=True)
    rows = _by_team(compute_standings(_teams(4), [_final(1, 2, [3], [0]), _final(3, 4, [0], [0])], config))
    assert rows[1].points == 5
    assert rows[3].points == 1
    assert rows[4].points == 1

    config.apply_shutout_only_if_win = False
    rows = _by_team(compute_standings(_teams(4), [_final(3, 4, [0], [0])], config))
    assert rows[3].points == 3


def test_points_rounded_to_precision():
    config = LeagueScoringConfig(points_per_goal_scored=0.333, point_precision=1)
    rows = _by_team(compute_standings(_teams(2), [_final(1, 2, [1], [0])], config))
    assert rows[1].points == 3.3


def test_tiebreak_winner_counts_as_win():
    rows = _by_team(compute_standings(_teams(2), [_final(1, 2, [2], [2], tiebreak=2)]))
    assert rows[2].wins == 1
    assert rows[1].losses == 1
    assert rows[1].draws == 0


def test_ranking_tiebreak_order():
    # Each team wins once; goal difference puts 1 first, goals for separates 2 and 3
    matches = [_final(1, 2, [5], [0]), _final(2, 3, [4], [1]), _final(3, 1, [2], [1])]
    ranked = compute_standings(_teams(3), matches)

    assert [r.team_id for r in ranked] == [1, 2, 3]
    assert [r.rank for r in ranked] == [1, 2, 3]
    assert [r.goal_difference for r in ranked] == [4, -2, -2]
    assert [r.goals_for for r in ranked] == [6, 4, 3]


def test_unplayed_teams_rank_by_seed_then_roster_order():
    ranked = compute_standings(_teams(3, seeds=[None, 2, 1]), [])
    assert [r.team_id for r in ranked] == [3, 2, 1]
    assert all(r.points == 0 for r in ranked)
