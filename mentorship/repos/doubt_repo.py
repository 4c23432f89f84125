from __future__ import annotations

from typing import Protocol

from mentorship.models.doubt import Doubt


class OpenDoubtExistsError(Exception):
    """An unresolved doubt already exists for this (assignment, student)."""


class DoubtRepo(Protocol):
    async def get(self, doubt_id: str) -> Doubt | None: ...
    async def find_open(self, assignment_id: str, student_id: str) -> Doubt | None: ...
    async def add(self, doubt: Doubt) -> None: ...
    async def save(self, doubt: Doubt) -> None: ...
    async def list(
        self,
        *,
        student_id: str | None = None,
        assignment_ids: set[str] | None = None,
        resolved: bool | None = None,
    ) -> list[Doubt]: ...


class InMemoryDoubtRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Doubt] = {}
        # (assignment_id, student_id) -> id of the open doubt
        self._open: dict[tuple[str, str], str] = {}

    async def get(self, doubt_id: str) -> Doubt | None:
        return self._by_id.get(doubt_id)

    async def find_open(self, assignment_id: str, student_id: str) -> Doubt | None:
        doubt_id = self._open.get((assignment_id, student_id))
        return None if doubt_id is None else self._by_id[doubt_id]

    async def add(self, doubt: Doubt) -> None:
        key = (doubt.assignment_id, doubt.student_id)
        if not doubt.resolved and key in self._open:
            raise OpenDoubtExistsError(self._open[key])
        self._by_id[doubt.id] = doubt
        if not doubt.resolved:
            self._open[key] = doubt.id

    async def save(self, doubt: Doubt) -> None:
        if doubt.id not in self._by_id:
            raise KeyError("doubt not found")
        self._by_id[doubt.id] = doubt
        key = (doubt.assignment_id, doubt.student_id)
        if doubt.resolved and self._open.get(key) == doubt.id:
            del self._open[key]

    async def list(
        self,
        *,
        student_id: str | None = None,
        assignment_ids: set[str] | None = None,
        resolved: bool | None = None,
    ) -> list[Doubt]:
        found = [
            d
            for d in self._by_id.values()
            if (student_id is None or d.student_id == student_id)
            and (assignment_ids is None or d.assignment_id in assignment_ids)
            and (resolved is None or d.resolved == resolved)
        ]
        return sorted(found, key=lambda d: d.created_at, reverse=True)
