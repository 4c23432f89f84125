"""add assignment solution and visibility

Revision ID: 8f4b2c6d1e57
Revises: 3c1d7e9a2b40
Create Date: 2026-10-18 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8f4b2c6d1e57"
down_revision: str | Sequence[str] | None = "3c1d7e9a2b40"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column(
        "assignments",
        sa.Column("solution", sa.Text(), nullable=False, server_default=""),
    )
    op.add_column(
        "assignments",
        sa.Column(
            "solution_visible",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
    )


def downgrade() -> None:
    op.drop_column("assignments", "solution_visible")
    op.drop_column("assignments", "solution")
