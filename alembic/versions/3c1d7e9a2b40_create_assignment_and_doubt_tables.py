"""create assignment and doubt tables

Revision ID: 3c1d7e9a2b40
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c1d7e9a2b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "assignments",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=False, server_default=""),
        sa.Column("difficulty", sa.String(length=16), nullable=False, server_default="easy"),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("major_topic", sa.String(length=128), nullable=False, server_default=""),
        sa.Column(
            "repo_category", sa.String(length=16), nullable=False, server_default="question"
        ),
        sa.Column(
            "question_type", sa.String(length=16), nullable=False, server_default="coding"
        ),
        sa.Column("coding_platform_link", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "distribution_tag", sa.String(length=16), nullable=False, server_default="central"
        ),
        sa.Column(
            "assigned_to",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_assignments_distribution_tag", "assignments", ["distribution_tag"]
    )

    op.create_table(
        "assignment_responses",
        sa.Column(
            "assignment_id",
            sa.String(length=32),
            sa.ForeignKey("assignments.id"),
            primary_key=True,
        ),
        sa.Column("student_id", sa.String(length=64), primary_key=True),
        sa.Column(
            "status", sa.String(length=32), nullable=False, server_default="not attempted"
        ),
        sa.Column("submission_url", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "screenshots", postgresql.ARRAY(sa.Text()), nullable=False, server_default="{}"
        ),
        sa.Column("learning_notes", sa.Text(), nullable=False, server_default=""),
    )

    op.create_table(
        "doubts",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column(
            "assignment_id",
            sa.String(length=32),
            sa.ForeignKey("assignments.id"),
            nullable=False,
        ),
        sa.Column("student_id", sa.String(length=64), nullable=False),
        sa.Column("student_email", sa.String(length=320), nullable=True),
        sa.Column("current_status", sa.String(length=16), nullable=False, server_default="new"),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "uq_doubts_open_pair",
        "doubts",
        ["assignment_id", "student_id"],
        unique=True,
        postgresql_where=sa.text("NOT resolved"),
    )

    op.create_table(
        "doubt_turns",
        sa.Column(
            "doubt_id", sa.String(length=32), sa.ForeignKey("doubts.id"), primary_key=True
        ),
        sa.Column("seq", sa.Integer(), primary_key=True),
        sa.Column("sender", sa.String(length=64), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("doubt_turns")
    op.drop_index("uq_doubts_open_pair", table_name="doubts")
    op.drop_table("doubts")
    op.drop_table("assignment_responses")
    op.drop_index("ix_assignments_distribution_tag", table_name="assignments")
    op.drop_table("assignments")
