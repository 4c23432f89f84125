"""PostgreSQL implementation of DoubtRepo.

Turns live in their own table keyed by (doubt_id, seq); saving a doubt
inserts only the turns past the stored count, so the thread stays
append-only at the storage layer too.
"""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mentorship.db.tables import DoubtRow, DoubtTurnRow
from mentorship.models.doubt import Doubt, DoubtStatus, Turn, TurnType
from mentorship.repos.doubt_repo import OpenDoubtExistsError


class PgDoubtRepo:
    """Satisfies the DoubtRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, doubt_id: str) -> Doubt | None:
        row = await self._session.get(DoubtRow, doubt_id)
        if row is None:
            return None
        return await self._hydrate(row)

    async def find_open(self, assignment_id: str, student_id: str) -> Doubt | None:
        # Served by the uq_doubts_open_pair partial index.
        stmt = select(DoubtRow).where(
            DoubtRow.assignment_id == assignment_id,
            DoubtRow.student_id == student_id,
            DoubtRow.resolved.is_(False),
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return await self._hydrate(row)

    async def add(self, doubt: Doubt) -> None:
        row = DoubtRow(
            id=doubt.id,
            assignment_id=doubt.assignment_id,
            student_id=doubt.student_id,
            student_email=doubt.student_email,
            current_status=doubt.current_status.value,
            resolved=doubt.resolved,
            resolved_at=doubt.resolved_at,
            resolved_by=doubt.resolved_by,
            created_at=doubt.created_at,
            updated_at=doubt.updated_at,
        )
        # Savepoint: a lost race on the open-pair index must leave the
        # outer transaction (the Response upsert) usable.
        try:
            async with self._session.begin_nested():
                self._session.add(row)
        except IntegrityError:
            raise OpenDoubtExistsError(doubt.assignment_id) from None
        await self._insert_turns(doubt, start=0)

    async def save(self, doubt: Doubt) -> None:
        stmt = (
            update(DoubtRow)
            .where(DoubtRow.id == doubt.id)
            .values(
                current_status=doubt.current_status.value,
                resolved=doubt.resolved,
                resolved_at=doubt.resolved_at,
                resolved_by=doubt.resolved_by,
                updated_at=doubt.updated_at,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("doubt not found")
        count_stmt = select(func.count()).where(DoubtTurnRow.doubt_id == doubt.id)
        stored = (await self._session.execute(count_stmt)).scalar_one()
        await self._insert_turns(doubt, start=stored)

    async def list(
        self,
        *,
        student_id: str | None = None,
        assignment_ids: set[str] | None = None,
        resolved: bool | None = None,
    ) -> list[Doubt]:
        stmt = select(DoubtRow)
        if student_id is not None:
            stmt = stmt.where(DoubtRow.student_id == student_id)
        if assignment_ids is not None:
            stmt = stmt.where(DoubtRow.assignment_id.in_(assignment_ids))
        if resolved is not None:
            stmt = stmt.where(DoubtRow.resolved.is_(resolved))
        stmt = stmt.order_by(DoubtRow.created_at.desc())
        rows = (await self._session.execute(stmt)).scalars().all()
        return [await self._hydrate(r) for r in rows]

    async def _insert_turns(self, doubt: Doubt, *, start: int) -> None:
        for seq, turn in enumerate(doubt.conversation[start:], start=start):
            self._session.add(
                DoubtTurnRow(
                    doubt_id=doubt.id,
                    seq=seq,
                    sender=turn.sender,
                    message=turn.message,
                    type=turn.type.value,
                    timestamp=turn.timestamp,
                )
            )
        await self._session.flush()

    async def _hydrate(self, row: DoubtRow) -> Doubt:
        stmt = (
            select(DoubtTurnRow)
            .where(DoubtTurnRow.doubt_id == row.id)
            .order_by(DoubtTurnRow.seq)
        )
        turns = (await self._session.execute(stmt)).scalars().all()
        return Doubt(
            id=row.id,
            assignment_id=row.assignment_id,
            student_id=row.student_id,
            student_email=row.student_email,
            conversation=tuple(
                Turn(
                    sender=t.sender,
                    message=t.message,
                    type=TurnType(t.type),
                    timestamp=t.timestamp,
                )
                for t in turns
            ),
            current_status=DoubtStatus(row.current_status),
            created_at=row.created_at,
            updated_at=row.updated_at,
            resolved=row.resolved,
            resolved_at=row.resolved_at,
            resolved_by=row.resolved_by,
        )
