from __future__ import annotations

import asyncio

import pytest

from mentorship.models.assignment import Assignment, ResponseStatus
from mentorship.models.principal import Principal, Role
from mentorship.repos.store import Store
from mentorship.services import response_service
from mentorship.services.errors import ForbiddenError, InvalidInputError

STUDENT = Principal(user_id="s1", role=Role.STUDENT)


@pytest.fixture
def store() -> Store:
    s = Store.in_memory()
    asyncio.run(s.assignments.add(Assignment(id="a1", title="Two Sum", created_by="m1")))
    return s


def _submit(store: Store, status: ResponseStatus, **kwargs) -> Assignment:
    return asyncio.run(
        response_service.submit_response(
            store, assignment_id="a1", principal=STUDENT, status=status, **kwargs
        )
    )


@pytest.mark.parametrize(
    "status",
    [
        ResponseStatus.NOT_ATTEMPTED,
        ResponseStatus.PARTIALLY_SOLVED,
        ResponseStatus.NOT_UNDERSTANDING,
        ResponseStatus.HAVING_DOUBT,
    ],
)
def test_every_non_solved_status_needs_notes(status: ResponseStatus) -> None:
    with pytest.raises(InvalidInputError, match="learningNotes"):
        response_service.check_evidence(status, "https://x", None)


def test_solved_needs_url_but_not_notes() -> None:
    response_service.check_evidence(ResponseStatus.SOLVED, "https://x", None)
    with pytest.raises(InvalidInputError, match="submissionUrl"):
        response_service.check_evidence(ResponseStatus.SOLVED, None, "notes")


def test_not_attempted_records_a_doubt(store: Store) -> None:
    _submit(store, ResponseStatus.NOT_ATTEMPTED, learning_notes="no time")
    [doubt] = asyncio.run(store.doubts.list())
    assert doubt.conversation[0].message == "no time"


def test_same_submission_twice_keeps_one_response(store: Store) -> None:
    for _ in range(2):
        updated = _submit(store, ResponseStatus.HAVING_DOUBT, learning_notes="stuck")
    assert list(updated.responses) == ["s1"]
    [doubt] = asyncio.run(store.doubts.list())
    assert len(doubt.conversation) == 2


def test_volunteer_is_a_learner(store: Store) -> None:
    volunteer = Principal(user_id="v1", role=Role.VOLUNTEER)
    updated = asyncio.run(
        response_service.submit_response(
            store,
            assignment_id="a1",
            principal=volunteer,
            status=ResponseStatus.SOLVED,
            submission_url="https://x",
        )
    )
    assert updated.response_for("v1").status is ResponseStatus.SOLVED


def test_admin_cannot_submit(store: Store) -> None:
    admin = Principal(user_id="root", role=Role.ADMIN)
    with pytest.raises(ForbiddenError):
        asyncio.run(
            response_service.submit_response(
                store,
                assignment_id="a1",
                principal=admin,
                status=ResponseStatus.SOLVED,
                submission_url="https://x",
            )
        )
    stored = asyncio.run(store.assignments.get("a1"))
    assert stored.responses == {}
