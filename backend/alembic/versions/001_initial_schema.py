"""Initial schema: events, divisions, teams, fields, time slots, matches, standings

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "leaguescoringconfig",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("points_for_win", sa.Float(), nullable=False),
        sa.Column("points_for_draw", sa.Float(), nullable=False),
        sa.Column("points_for_loss", sa.Float(), nullable=False),
        sa.Column("allow_draws", sa.Boolean(), nullable=False),
        sa.Column("uses_sets", sa.Boolean(), nullable=False),
        sa.Column("sets_per_match", sa.Integer(), nullable=True),
        sa.Column("points_per_goal_scored", sa.Float(), nullable=False),
        sa.Column("points_per_goal_conceded", sa.Float(), nullable=False),
        sa.Column("points_for_shutout", sa.Float(), nullable=False),
        sa.Column("apply_shutout_only_if_win", sa.Boolean(), nullable=False),
        sa.Column("point_precision", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "event",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("start", sa.DateTime(), nullable=False),
        sa.Column("end", sa.DateTime(), nullable=False),
        sa.Column("single_division", sa.Boolean(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("match_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("set_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("rest_time_minutes", sa.Integer(), nullable=False),
        sa.Column("games_per_opponent", sa.Integer(), nullable=False),
        sa.Column("third_place_match", sa.Boolean(), nullable=False),
        sa.Column("double_elimination", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("do_teams_ref", sa.Boolean(), nullable=False),
        sa.Column("referee_ids", sa.JSON(), nullable=True),
        sa.Column("scoring_config_id", sa.Integer(), nullable=True),
        sa.Column("division_summary", sa.JSON(), nullable=True),
        sa.Column("scheduled_through", sa.DateTime(), nullable=True),
        sa.Column("last_scheduled_at", sa.DateTime(), nullable=True),
        sa.Column("schedule_mode", sa.String(), nullable=True),
        sa.Column("lock_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["scoring_config_id"], ["leaguescoringconfig.id"]),
    )

    op.create_table(
        "division",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("division_type_id", sa.String(), nullable=True),
        sa.Column("gender", sa.String(), nullable=True),
        sa.Column("rating_type", sa.String(), nullable=True),
        sa.Column("playoff_team_count", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
    )
    op.create_index("ix_division_event_id", "division", ["event_id"])

    op.create_table(
        "team",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("division_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("seed", sa.Integer(), nullable=True),
        sa.Column("captain_id", sa.Integer(), nullable=True),
        sa.Column("player_ids", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.ForeignKeyConstraint(["division_id"], ["division.id"]),
        sa.UniqueConstraint("event_id", "name", name="uq_event_team_name"),
    )
    op.create_index("ix_team_event_id", "team", ["event_id"])
    op.create_index("ix_team_division_id", "team", ["division_id"])

    op.create_table(
        "playingfield",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("field_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("division_ids", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
    )
    op.create_index("ix_playingfield_event_id", "playingfield", ["event_id"])

    op.create_table(
        "timeslot",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=True),
        sa.Column("start_time_minutes", sa.Integer(), nullable=False),
        sa.Column("end_time_minutes", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("repeating", sa.Boolean(), nullable=False),
        sa.Column("scheduled_field_ids", sa.JSON(), nullable=True),
        sa.Column("division_ids", sa.JSON(), nullable=True),
        sa.Column("price", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
    )
    op.create_index("ix_timeslot_event_id", "timeslot", ["event_id"])

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("division_id", sa.Integer(), nullable=True),
        sa.Column("match_code", sa.String(), nullable=False),
        sa.Column("match_type", sa.String(), nullable=False),
        sa.Column("round_index", sa.Integer(), nullable=False),
        sa.Column("sequence_in_round", sa.Integer(), nullable=False),
        sa.Column("team1_id", sa.Integer(), nullable=True),
        sa.Column("team2_id", sa.Integer(), nullable=True),
        sa.Column("team1_seed_rank", sa.Integer(), nullable=True),
        sa.Column("team2_seed_rank", sa.Integer(), nullable=True),
        sa.Column("placeholder_side_a", sa.String(), nullable=False),
        sa.Column("placeholder_side_b", sa.String(), nullable=False),
        sa.Column("field_id", sa.Integer(), nullable=True),
        sa.Column("start", sa.DateTime(), nullable=True),
        sa.Column("end", sa.DateTime(), nullable=True),
        sa.Column("referee_id", sa.Integer(), nullable=True),
        sa.Column("team_referee_id", sa.Integer(), nullable=True),
        sa.Column("losers_bracket", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("previous_left_match_id", sa.Integer(), nullable=True),
        sa.Column("previous_right_match_id", sa.Integer(), nullable=True),
        sa.Column("winner_next_match_id", sa.Integer(), nullable=True),
        sa.Column("loser_next_match_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("team1_points", sa.JSON(), nullable=True),
        sa.Column("team2_points", sa.JSON(), nullable=True),
        sa.Column("tiebreak_winner", sa.Integer(), nullable=True),
        sa.Column("winner_team_id", sa.Integer(), nullable=True),
        sa.Column("loser_team_id", sa.Integer(), nullable=True),
        sa.Column("is_draw", sa.Boolean(), nullable=False),
        sa.Column("result_revision", sa.Integer(), nullable=False),
        sa.Column("reported_at", sa.DateTime(), nullable=True),
        sa.Column("finalized_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.ForeignKeyConstraint(["division_id"], ["division.id"]),
        sa.ForeignKeyConstraint(["team1_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["team2_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["team_referee_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["winner_team_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["loser_team_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["field_id"], ["playingfield.id"]),
        sa.ForeignKeyConstraint(["previous_left_match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["previous_right_match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["winner_next_match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["loser_next_match_id"], ["match.id"]),
        sa.UniqueConstraint("event_id", "match_code", name="uq_match_event_code"),
    )
    op.create_index("ix_match_event_id", "match", ["event_id"])

    op.create_table(
        "divisionstanding",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("division_id", sa.Integer(), nullable=True),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("played", sa.Integer(), nullable=False),
        sa.Column("wins", sa.Integer(), nullable=False),
        sa.Column("losses", sa.Integer(), nullable=False),
        sa.Column("draws", sa.Integer(), nullable=False),
        sa.Column("goals_for", sa.Float(), nullable=False),
        sa.Column("goals_against", sa.Float(), nullable=False),
        sa.Column("goal_difference", sa.Float(), nullable=False),
        sa.Column("points", sa.Float(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.ForeignKeyConstraint(["division_id"], ["division.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
        sa.UniqueConstraint("division_id", "team_id", name="uq_standing_division_team"),
    )
    op.create_index("ix_divisionstanding_event_id", "divisionstanding", ["event_id"])
    op.create_index("ix_divisionstanding_division_id", "divisionstanding", ["division_id"])


def downgrade() -> None:
    op.drop_table("divisionstanding")
    op.drop_table("match")
    op.drop_table("timeslot")
    op.drop_table("playingfield")
    op.drop_table("team")
    op.drop_table("division")
    op.drop_table("event")
    op.drop_table("leaguescoringconfig")
