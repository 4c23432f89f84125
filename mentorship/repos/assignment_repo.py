from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from mentorship.models.assignment import Assignment, DistributionTag, Response


class AssignmentRepo(Protocol):
    async def get(self, assignment_id: str) -> Assignment | None: ...
    async def add(self, assignment: Assignment) -> None: ...
    async def put_response(
        self, assignment_id: str, response: Response
    ) -> Assignment | None: ...
    async def list(
        self,
        *,
        distribution_tags: set[DistributionTag] | None = None,
        difficulty: str | None = None,
        tags: set[str] | None = None,
        title_contains: str | None = None,
        include_personal: bool = False,
    ) -> list[Assignment]: ...
    async def list_personal(self, *, created_by: str | None = None) -> list[Assignment]: ...
    async def update_solution(
        self,
        assignment_id: str,
        *,
        solution: str | None = None,
        solution_visible: bool | None = None,
    ) -> Assignment | None: ...


def matches(
    assignment: Assignment,
    *,
    distribution_tags: set[DistributionTag] | None = None,
    difficulty: str | None = None,
    tags: set[str] | None = None,
    title_contains: str | None = None,
    include_personal: bool = False,
) -> bool:
    if assignment.is_personal and not include_personal:
        return False
    if distribution_tags and assignment.distribution_tag not in distribution_tags:
        return False
    if difficulty and assignment.difficulty != difficulty:
        return False
    if tags and not tags & set(assignment.tags):
        return False
    if title_contains and title_contains.lower() not in assignment.title.lower():
        return False
    return True


class InMemoryAssignmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Assignment] = {}

    async def get(self, assignment_id: str) -> Assignment | None:
        return self._by_id.get(assignment_id)

    async def add(self, assignment: Assignment) -> None:
        if assignment.id in self._by_id:
            raise ValueError("assignment already exists")
        self._by_id[assignment.id] = assignment

    async def put_response(
        self, assignment_id: str, response: Response
    ) -> Assignment | None:
        current = self._by_id.get(assignment_id)
        if current is None:
            return None
        updated = current.with_response(response)
        self._by_id[assignment_id] = updated
        return updated

    async def list(
        self,
        *,
        distribution_tags: set[DistributionTag] | None = None,
        difficulty: str | None = None,
        tags: set[str] | None = None,
        title_contains: str | None = None,
        include_personal: bool = False,
    ) -> list[Assignment]:
        found = [
            a
            for a in self._by_id.values()
            if matches(
                a,
                distribution_tags=distribution_tags,
                difficulty=difficulty,
                tags=tags,
                title_contains=title_contains,
                include_personal=include_personal,
            )
        ]
        return sorted(found, key=lambda a: a.created_at, reverse=True)


    async def list_personal(self, *, created_by: str | None = None) -> list[Assignment]:
        found = [
            a
            for a in self._by_id.values()
            if a.is_personal and (created_by is None or a.created_by == created_by)
        ]
        return sorted(found, key=lambda a: a.created_at, reverse=True)

    async def update_solution(
        self,
        assignment_id: str,
        *,
        solution: str | None = None,
        solution_visible: bool | None = None,
    ) -> Assignment | None:
        current = self._by_id.get(assignment_id)
        if current is None:
            return None
        changes: dict[str, object] = {}
        if solution is not None:
            changes["solution"] = solution
        if solution_visible is not None:
            changes["solution_visible"] = solution_visible
        updated = replace(current, **changes)
        self._by_id[assignment_id] = updated
        return updated
