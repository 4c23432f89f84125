"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in mentorship/models/.
Repos convert between SQLAlchemy rows and domain dataclasses.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from mentorship.db.engine import Base

# --- Assignments ---


class AssignmentRow(Base):
    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    difficulty: Mapped[str] = mapped_column(
        String(16), nullable=False, default="easy"
    )  # easy|medium|hard
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=[])
    major_topic: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    repo_category: Mapped[str] = mapped_column(
        String(16), nullable=False, default="question"
    )  # question|project
    question_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default="coding"
    )  # coding|conceptual
    coding_platform_link: Mapped[str] = mapped_column(Text, nullable=False, default="")
    solution: Mapped[str] = mapped_column(Text, nullable=False, default="")
    solution_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    distribution_tag: Mapped[str] = mapped_column(
        String(16), nullable=False, default="central", index=True
    )  # central|practice|hw|cw|personal
    # [{"name", "email", "assigned_by", "user_id"}]
    assigned_to: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=[])
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class AssignmentResponseRow(Base):
    """One row per (assignment, student); resubmission upserts in place."""

    __tablename__ = "assignment_responses"

    assignment_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("assignments.id"), primary_key=True
    )
    student_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="not attempted"
    )
    submission_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    screenshots: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=[]
    )
    learning_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")


# --- Doubts ---


class DoubtRow(Base):
    __tablename__ = "doubts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    assignment_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("assignments.id"), nullable=False
    )
    student_id: Mapped[str] = mapped_column(String(64), nullable=False)
    student_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    current_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="new"
    )  # new|replied|unsatisfied|review|resolved
    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    resolved_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        # At most one open thread per (assignment, student).
        Index(
            "uq_doubts_open_pair",
            "assignment_id",
            "student_id",
            unique=True,
            postgresql_where=text("NOT resolved"),
        ),
    )


class DoubtTurnRow(Base):
    __tablename__ = "doubt_turns"

    doubt_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("doubts.id"), primary_key=True
    )
    seq: Mapped[int] = mapped_column(Integer, primary_key=True)
    sender: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(16), nullable=False
    )  # doubt|reply|follow-up|resolve
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
