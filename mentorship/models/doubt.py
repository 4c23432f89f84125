from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4


class TurnType(str, Enum):
    DOUBT = "doubt"
    REPLY = "reply"
    FOLLOW_UP = "follow-up"
    RESOLVE = "resolve"


class DoubtStatus(str, Enum):
    NEW = "new"
    REPLIED = "replied"
    UNSATISFIED = "unsatisfied"
    # Part of the vocabulary only; no transition produces it.
    REVIEW = "review"
    RESOLVED = "resolved"


RESOLVE_MESSAGE = "Resolved"


@dataclass(frozen=True, slots=True)
class Turn:
    sender: str
    message: str
    type: TurnType
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class Doubt:
    """One conversation thread for an (assignment, student) pair.

    ``conversation`` is append-only and its first turn is always a
    ``doubt`` turn. ``current_status`` reflects the most recent
    transition only.
    """

    id: str
    assignment_id: str
    student_id: str
    conversation: tuple[Turn, ...]
    current_status: DoubtStatus
    created_at: datetime
    updated_at: datetime
    student_email: str | None = None
    resolved: bool = False
    resolved_at: datetime | None = None
    resolved_by: str | None = None

    @staticmethod
    def open(
        *,
        assignment_id: str,
        student_id: str,
        text: str,
        student_email: str | None = None,
        now: datetime | None = None,
    ) -> Doubt:
        now = now or datetime.now(UTC)
        return Doubt(
            id=uuid4().hex,
            assignment_id=assignment_id,
            student_id=student_id,
            conversation=(
                Turn(sender=student_id, message=text, type=TurnType.DOUBT, timestamp=now),
            ),
            current_status=DoubtStatus.NEW,
            created_at=now,
            updated_at=now,
            student_email=student_email,
        )

    @property
    def latest_doubt_text(self) -> str:
        """Most recent student-authored message (doubt or follow-up)."""
        for turn in reversed(self.conversation):
            if turn.type in (TurnType.DOUBT, TurnType.FOLLOW_UP):
                return turn.message
        return ""

    def sorted_conversation(self) -> tuple[Turn, ...]:
        # sorted() is stable, so equal timestamps keep append order
        return tuple(sorted(self.conversation, key=lambda t: t.timestamp))

    def append(
        self,
        *,
        sender: str,
        message: str,
        type: TurnType,
        status: DoubtStatus,
        now: datetime | None = None,
    ) -> Doubt:
        now = now or datetime.now(UTC)
        last = self.conversation[-1].timestamp
        # Clock skew between workers must not reorder the thread.
        timestamp = now if now >= last else last
        turn = Turn(sender=sender, message=message, type=type, timestamp=timestamp)
        updated = replace(
            self,
            conversation=self.conversation + (turn,),
            current_status=status,
            updated_at=timestamp,
        )
        if status is DoubtStatus.RESOLVED:
            updated = replace(
                updated, resolved=True, resolved_at=timestamp, resolved_by=sender
            )
        return updated
