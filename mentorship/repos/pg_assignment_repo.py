"""PostgreSQL implementation of AssignmentRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from mentorship.db.tables import AssignmentResponseRow, AssignmentRow
from mentorship.models.assignment import (
    Assignee,
    Assignment,
    DistributionTag,
    Response,
    ResponseStatus,
)


class PgAssignmentRepo:
    """Satisfies the AssignmentRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, assignment_id: str) -> Assignment | None:
        row = await self._session.get(AssignmentRow, assignment_id)
        if row is None:
            return None
        responses = await self._responses_for(assignment_id)
        return _row_to_assignment(row, responses)

    async def add(self, assignment: Assignment) -> None:
        row = AssignmentRow(
            id=assignment.id,
            title=assignment.title,
            created_by=assignment.created_by,
            explanation=assignment.explanation,
            difficulty=assignment.difficulty,
            tags=list(assignment.tags),
            major_topic=assignment.major_topic,
            repo_category=assignment.repo_category,
            question_type=assignment.question_type,
            coding_platform_link=assignment.coding_platform_link,
            solution=assignment.solution,
            solution_visible=assignment.solution_visible,
            distribution_tag=assignment.distribution_tag.value,
            assigned_to=[
                {
                    "name": a.name,
                    "email": a.email,
                    "assigned_by": a.assigned_by,
                    "user_id": a.user_id,
                }
                for a in assignment.assigned_to
            ],
            created_at=assignment.created_at,
        )
        self._session.add(row)
        await self._session.flush()

    async def put_response(
        self, assignment_id: str, response: Response
    ) -> Assignment | None:
        if await self._session.get(AssignmentRow, assignment_id) is None:
            return None
        values = {
            "status": response.status.value,
            "submission_url": response.submission_url,
            "screenshots": list(response.screenshots),
            "learning_notes": response.learning_notes,
        }
        stmt = (
            insert(AssignmentResponseRow)
            .values(assignment_id=assignment_id, student_id=response.student_id, **values)
            .on_conflict_do_update(
                index_elements=["assignment_id", "student_id"],
                set_=values,
            )
        )
        await self._session.execute(stmt)
        await self._session.flush()
        return await self.get(assignment_id)

    async def list(
        self,
        *,
        distribution_tags: set[DistributionTag] | None = None,
        difficulty: str | None = None,
        tags: set[str] | None = None,
        title_contains: str | None = None,
        include_personal: bool = False,
    ) -> list[Assignment]:
        stmt = select(AssignmentRow)
        if not include_personal:
            stmt = stmt.where(
                AssignmentRow.distribution_tag != DistributionTag.PERSONAL.value
            )
        if distribution_tags:
            stmt = stmt.where(
                AssignmentRow.distribution_tag.in_([t.value for t in distribution_tags])
            )
        if difficulty:
            stmt = stmt.where(AssignmentRow.difficulty == difficulty)
        if tags:
            stmt = stmt.where(AssignmentRow.tags.overlap(list(tags)))
        if title_contains:
            stmt = stmt.where(AssignmentRow.title.ilike(f"%{title_contains}%"))
        stmt = stmt.order_by(AssignmentRow.created_at.desc())

        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assignment(r, await self._responses_for(r.id)) for r in rows]

    async def list_personal(self, *, created_by: str | None = None) -> list[Assignment]:
        stmt = select(AssignmentRow).where(
            AssignmentRow.distribution_tag == DistributionTag.PERSONAL.value
        )
        if created_by is not None:
            stmt = stmt.where(AssignmentRow.created_by == created_by)
        stmt = stmt.order_by(AssignmentRow.created_at.desc())

        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assignment(r, await self._responses_for(r.id)) for r in rows]

    async def update_solution(
        self,
        assignment_id: str,
        *,
        solution: str | None = None,
        solution_visible: bool | None = None,
    ) -> Assignment | None:
        row = await self._session.get(AssignmentRow, assignment_id)
        if row is None:
            return None
        if solution is not None:
            row.solution = solution
        if solution_visible is not None:
            row.solution_visible = solution_visible
        await self._session.flush()
        return _row_to_assignment(row, await self._responses_for(assignment_id))

    async def _responses_for(
self, assignment_id: str) -> dict[str, Response]:
        stmt = select(AssignmentResponseRow).where(
            AssignmentResponseRow.assignment_id == assignment_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return {
            r.student_id: Response(
                student_id=r.student_id,
                status=ResponseStatus(r.status),
                submission_url=r.submission_url or "",
                screenshots=tuple(r.screenshots or ()),
                learning_notes=r.learning_notes or "",
            )
            for r in rows
        }


def _row_to_assignment(row: AssignmentRow, responses: dict[str, Response]) -> Assignment:
    return Assignment(
        id=row.id,
        title=row.title,
        created_by=row.created_by,
        explanation=row.explanation or "",
        difficulty=row.difficulty,
        tags=tuple(row.tags) if row.tags else (),
        major_topic=row.major_topic or "",
        repo_category=row.repo_category,
        question_type=row.question_type,
        coding_platform_link=row.coding_platform_link or "",
        solution=row.solution or "",
        solution_visible=bool(row.solution_visible),
        distribution_tag=DistributionTag(row.distribution_tag),
        assigned_to=tuple(Assignee(**a) for a in row.assigned_to or ()),
        responses=responses,
        created_at=row.created_at,
    )
