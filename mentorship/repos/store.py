"""Request-scoped bundle of repositories.

Services take a Store so they can commit the primary write before any
side effect (mail) is dispatched. In-memory repos are durable as soon
as they are written, so commit is a no-op for them; with PostgreSQL
both repos share one session and commit together.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from mentorship.repos.assignment_repo import AssignmentRepo, InMemoryAssignmentRepo
from mentorship.repos.doubt_repo import DoubtRepo, InMemoryDoubtRepo
from mentorship.repos.pg_assignment_repo import PgAssignmentRepo
from mentorship.repos.pg_doubt_repo import PgDoubtRepo


@dataclass(frozen=True, slots=True)
class Store:
    assignments: AssignmentRepo
    doubts: DoubtRepo
    session: AsyncSession | None = None

    async def commit(self) -> None:
        if self.session is not None:
            await self.session.commit()

    @staticmethod
    def in_memory() -> Store:
        return Store(assignments=InMemoryAssignmentRepo(), doubts=InMemoryDoubtRepo())

    @staticmethod
    def postgres(session: AsyncSession) -> Store:
        return Store(
            assignments=PgAssignmentRepo(session),
            doubts=PgDoubtRepo(session),
            session=session,
        )
