"""initial_multiplayer_schema

Revision ID: 5c1e0a7d2b94
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e0a7d2b94"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

DIFFICULTY_CHECK = "difficulty IN ('Basic','Intermediate','Advanced','Mixed')"
STATUS_CHECK = "status IN ('WAITING','IN_PROGRESS','COMPLETED','ABANDONED')"
JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "duel_rooms",
        sa.Column("code", sa.String(6), primary_key=True),
        sa.Column("source", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("phase", sa.String(16), nullable=True),
        sa.Column("host_id", sa.BigInteger(), nullable=False),
        sa.Column("opponent_id", sa.BigInteger(), nullable=True),
        sa.Column("time_control", sa.Integer(), nullable=False),
        sa.Column("difficulty", sa.String(16), nullable=False),
        sa.Column("questions_to_win", sa.Integer(), nullable=False),
        sa.Column("question_budget", sa.Integer(), nullable=True),
        sa.Column("host_score", sa.Integer(), nullable=False),
        sa.Column("opponent_score", sa.Integer(), nullable=False),
        sa.Column("host_time_remaining", sa.Integer(), nullable=False),
        sa.Column("opponent_time_remaining", sa.Integer(), nullable=False),
        sa.Column("question_no", sa.Integer(), nullable=False),
        sa.Column("current_problem", JSON_TYPE, nullable=True),
        sa.Column("question_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("host_answered_question", sa.Integer(), nullable=False),
        sa.Column("opponent_answered_question", sa.Integer(), nullable=False),
        sa.Column("answer_log", JSON_TYPE, nullable=False),
        sa.Column("winner_id", sa.BigInteger(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(STATUS_CHECK, name="ck_duel_rooms_status"),
        sa.CheckConstraint(
            "phase IS NULL OR phase IN ('countdown','playing','result','finished')",
            name="ck_duel_rooms_phase",
        ),
        sa.CheckConstraint("source IN ('PRIVATE','MATCHMAKING','TOURNAMENT')", name="ck_duel_rooms_source"),
        sa.CheckConstraint(DIFFICULTY_CHECK, name="ck_duel_rooms_difficulty"),
        sa.CheckConstraint("opponent_id IS NULL OR opponent_id <> host_id", name="ck_duel_rooms_no_self_duel"),
        sa.CheckConstraint("time_control > 0", name="ck_duel_rooms_time_control_positive"),
        sa.CheckConstraint("questions_to_win >= 1", name="ck_duel_rooms_questions_to_win_positive"),
        sa.CheckConstraint("host_score >= 0", name="ck_duel_rooms_host_score_non_negative"),
        sa.CheckConstraint("opponent_score >= 0", name="ck_duel_rooms_opponent_score_non_negative"),
        sa.CheckConstraint("host_time_remaining >= 0", name="ck_duel_rooms_host_time_non_negative"),
        sa.CheckConstraint("opponent_time_remaining >= 0", name="ck_duel_rooms_opponent_time_non_negative"),
        sa.CheckConstraint(
            "(status = 'COMPLETED') = (winner_id IS NOT NULL)",
            name="ck_duel_rooms_winner_iff_completed",
        ),
    )
    op.create_index("idx_duel_rooms_host_status", "duel_rooms", ["host_id", "status", "created_at"])
    op.create_index("idx_duel_rooms_opponent_status", "duel_rooms", ["opponent_id", "status", "created_at"])
    op.create_index("idx_duel_rooms_status_created", "duel_rooms", ["status", "created_at"])

    op.create_table(
        "duel_queue",
        sa.Column("user_id", sa.BigInteger(), primary_key=True),
        sa.Column("time_control", sa.Integer(), nullable=False),
        sa.Column("difficulty", sa.String(16), nullable=False),
        sa.Column("enqueued_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(DIFFICULTY_CHECK, name="ck_duel_queue_difficulty"),
        sa.CheckConstraint("time_control > 0", name="ck_duel_queue_time_control_positive"),
    )
    op.create_index(
        "idx_duel_queue_config_enqueued",
        "duel_queue",
        ["time_control", "difficulty", "enqueued_at"],
    )
    op.create_index("idx_duel_queue_enqueued", "duel_queue", ["enqueued_at"])

    op.create_table(
        "tournament_rooms",
        sa.Column("code", sa.String(6), primary_key=True),
        sa.Column("host_id", sa.BigInteger(), nullable=False),
        sa.Column("format", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("difficulty", sa.String(16), nullable=False),
        sa.Column("questions_per_match", sa.Integer(), nullable=False),
        sa.Column("time_per_question", sa.Integer(), nullable=False),
        sa.Column("current_round", sa.Integer(), nullable=False),
        sa.Column("total_rounds", sa.Integer(), nullable=False),
        sa.Column("champion_id", sa.BigInteger(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(STATUS_CHECK, name="ck_tournament_rooms_status"),
        sa.CheckConstraint("format IN ('ROUND_ROBIN','KNOCKOUT')", name="ck_tournament_rooms_format"),
        sa.CheckConstraint(DIFFICULTY_CHECK, name="ck_tournament_rooms_difficulty"),
        sa.CheckConstraint(
            "max_players >= 2 AND max_players <= 16",
            name="ck_tournament_rooms_max_players_range",
        ),
        sa.CheckConstraint("current_round >= 0", name="ck_tournament_rooms_current_round_non_negative"),
        sa.CheckConstraint(
            "(status = 'COMPLETED') = (champion_id IS NOT NULL)",
            name="ck_tournament_rooms_champion_iff_completed",
        ),
    )
    op.create_index("idx_tournament_rooms_status_created", "tournament_rooms", ["status", "created_at"])

    op.create_table(
        "tournament_participants",
        sa.Column("tournament_code", sa.String(6), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("seconds_spent", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("matches_played", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("wins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("eliminated_in_round", sa.Integer(), nullable=True),
        sa.CheckConstraint("points >= 0", name="ck_tournament_participants_points_non_negative"),
        sa.CheckConstraint(
            "seconds_spent >= 0",
            name="ck_tournament_participants_seconds_spent_non_negative",
        ),
        sa.ForeignKeyConstraint(["tournament_code"], ["tournament_rooms.code"]),
        sa.PrimaryKeyConstraint("tournament_code", "user_id"),
    )
    op.create_index(
        "idx_tournament_participants_tournament_points",
        "tournament_participants",
        ["tournament_code", "points", "seconds_spent"],
    )

    op.create_table(
        "tournament_matches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tournament_code", sa.String(6), nullable=False),
        sa.Column("round_no", sa.Integer(), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("user_a", sa.BigInteger(), nullable=False),
        sa.Column("user_b", sa.BigInteger(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("duel_room_code", sa.String(6), nullable=True),
        sa.Column("score_a", sa.Integer(), nullable=False),
        sa.Column("score_b", sa.Integer(), nullable=False),
        sa.Column("winner_id", sa.BigInteger(), nullable=True),
        sa.CheckConstraint("round_no >= 1", name="ck_tournament_matches_round_no_positive"),
        sa.CheckConstraint(
            "status IN ('SCHEDULED','IN_PROGRESS','COMPLETED','WALKOVER')",
            name="ck_tournament_matches_status",
        ),
        sa.CheckConstraint("user_b IS NULL OR user_a <> user_b", name="ck_tournament_matches_no_self_pair"),
        sa.ForeignKeyConstraint(["tournament_code"], ["tournament_rooms.code"]),
        sa.ForeignKeyConstraint(["duel_room_code"], ["duel_rooms.code"]),
        sa.UniqueConstraint("duel_room_code", name="uq_tournament_matches_duel_room_code"),
    )
    op.create_index(
        "idx_tournament_matches_tournament_round_status",
        "tournament_matches",
        ["tournament_code", "round_no", "status"],
    )


def downgrade() -> None:
    op.drop_index("idx_tournament_matches_tournament_round_status", table_name="tournament_matches")
    op.drop_table("tournament_matches")
    op.drop_index("idx_tournament_participants_tournament_points", table_name="tournament_participants")
    op.drop_table("tournament_participants")
    op.drop_index("idx_tournament_rooms_status_created", table_name="tournament_rooms")
    op.drop_table("tournament_rooms")
    op.drop_index("idx_duel_queue_enqueued", table_name="duel_queue")
    op.drop_index("idx_duel_queue_config_enqueued", table_name="duel_queue")
    op.drop_table("duel_queue")
    op.drop_index("idx_duel_rooms_status_created", table_name="duel_rooms")
    op.drop_index("idx_duel_rooms_opponent_status", table_name="duel_rooms")
    op.drop_index("idx_duel_rooms_host_status", table_name="duel_rooms")
    op.drop_table("duel_rooms")
