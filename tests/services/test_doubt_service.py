from __future__ import annotations

import asyncio

import pytest

from mentorship.models.assignment import Assignment
from mentorship.models.doubt import DoubtStatus, TurnType
from mentorship.models.principal import Principal, Role
from mentorship.repos.store import Store
from mentorship.services import doubt_service
from mentorship.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from mentorship.services.notifications import NotificationDispatcher
from mentorship.services.task_queue import InMemoryTaskQueue

STUDENT = Principal(user_id="s1", role=Role.STUDENT, email="s1@example.com")
VOLUNTEER = Principal(user_id="v1", role=Role.VOLUNTEER)
MENTOR = Principal(user_id="m1", role=Role.MENTOR)


@pytest.fixture
def store() -> Store:
    s = Store.in_memory()
    asyncio.run(s.assignments.add(Assignment(id="a1", title="Two Sum", created_by="m1")))
    return s


@pytest.fixture
def queue() -> InMemoryTaskQueue:
    return InMemoryTaskQueue()


def _ask(store: Store, principal: Principal = STUDENT, text: str = "why?"):
    return asyncio.run(
        doubt_service.create_doubt(store, assignment_id="a1", principal=principal, text=text)
    )


# ---- record_difficulty ----


def test_record_difficulty_opens_then_extends(store: Store) -> None:
    first = asyncio.run(
        doubt_service.record_difficulty(
            store.doubts, assignment_id="a1", student_id="s1", text="stuck"
        )
    )
    second = asyncio.run(
        doubt_service.record_difficulty(
            store.doubts, assignment_id="a1", student_id="s1", text="stuck"
        )
    )
    assert second.id == first.id
    # Same notes twice still append two turns.
    assert [t.type for t in second.conversation] == [TurnType.DOUBT, TurnType.FOLLOW_UP]
    assert second.current_status is DoubtStatus.UNSATISFIED


def test_record_difficulty_opens_fresh_thread_after_resolve(store: Store) -> None:
    first = asyncio.run(
        doubt_service.record_difficulty(
            store.doubts, assignment_id="a1", student_id="s1", text="stuck"
        )
    )
    asyncio.run(doubt_service.resolve(store, doubt_id=first.id, principal=STUDENT))
    again = asyncio.run(
        doubt_service.record_difficulty(
            store.doubts, assignment_id="a1", student_id="s1", text="new problem"
        )
    )
    assert again.id != first.id
    assert again.current_status is DoubtStatus.NEW


# ---- create ----


def test_create_doubt_validates_before_lookup(store: Store) -> None:
    with pytest.raises(InvalidInputError):
        asyncio.run(
            doubt_service.create_doubt(
                store, assignment_id="missing", principal=STUDENT, text="  "
            )
        )
    with pytest.raises(NotFoundError):
        asyncio.run(
            doubt_service.create_doubt(
                store, assignment_id="missing", principal=STUDENT, text="?"
            )
        )


def test_create_doubt_rejects_second_open_thread(store: Store) -> None:
    _ask(store)
    with pytest.raises(ConflictError):
        _ask(store)
    assert len(asyncio.run(store.doubts.list())) == 1


def test_threads_are_per_student(store: Store) -> None:
    a = _ask(store, STUDENT)
    b = _ask(store, VOLUNTEER)
    assert a.id != b.id


# ---- reply / followup / resolve ----


def test_reply_then_followup_cycle(store: Store, queue: InMemoryTaskQueue) -> None:
    notifier = NotificationDispatcher(queue)
    doubt = _ask(store)

    replied = asyncio.run(
        doubt_service.reply(store, notifier, doubt_id=doubt.id, principal=MENTOR, text="hint")
    )
    assert replied.current_status is DoubtStatus.REPLIED
    assert asyncio.run(queue.queue_length("notifications")) == 1

    followed = asyncio.run(
        doubt_service.followup(store, doubt_id=doubt.id, principal=STUDENT, text="still")
    )
    assert followed.current_status is DoubtStatus.UNSATISFIED

    again = asyncio.run(
        doubt_service.reply(store, notifier, doubt_id=doubt.id, principal=MENTOR, text="try x")
    )
    assert again.current_status is DoubtStatus.REPLIED
    assert len(again.conversation) == 4


def test_reply_commits_before_notifying(store: Store) -> None:
    seen: list[DoubtStatus] = []

    class _Spy:
        async def doubt_replied(self, doubt, reply):
            stored = await store.doubts.get(doubt.id)
            seen.append(stored.current_status)

    doubt = _ask(store)
    asyncio.run(
        doubt_service.reply(store, _Spy(), doubt_id=doubt.id, principal=MENTOR, text="hint")  # type: ignore[arg-type]
    )
    assert seen == [DoubtStatus.REPLIED]


def test_reply_checks_role_before_text(store: Store, queue: InMemoryTaskQueue) -> None:
    doubt = _ask(store)
    with pytest.raises(ForbiddenError):
        asyncio.run(
            doubt_service.reply(
                store,
                NotificationDispatcher(queue),
                doubt_id=doubt.id,
                principal=STUDENT,
                text="",
            )
        )


def test_followup_by_non_owner_leaves_thread_unchanged(store: Store) -> None:
    doubt = _ask(store)
    with pytest.raises(ForbiddenError):
        asyncio.run(
            doubt_service.followup(store, doubt_id=doubt.id, principal=VOLUNTEER, text="hi")
        )
    assert asyncio.run(store.doubts.get(doubt.id)) == doubt


def test_resolve_sets_resolution_fields(store: Store) -> None:
    doubt = _ask(store)
    resolved = asyncio.run(doubt_service.resolve(store, doubt_id=doubt.id, principal=STUDENT))
    assert resolved.resolved is True
    assert resolved.resolved_by == "s1"
    assert resolved.resolved_at == resolved.conversation[-1].timestamp
    assert resolved.conversation[-1].message == "Resolved"
    assert asyncio.run(store.doubts.find_open("a1", "s1")) is None


def test_volunteer_can_resolve_own_thread(store: Store) -> None:
    doubt = _ask(store, VOLUNTEER)
    resolved = asyncio.run(doubt_service.resolve(store, doubt_id=doubt.id, principal=VOLUNTEER))
    assert resolved.resolved_by == "v1"


def test_resolved_is_terminal(store: Store) -> None:
    doubt = _ask(store)
    asyncio.run(doubt_service.resolve(store, doubt_id=doubt.id, principal=STUDENT))
    with pytest.raises(ConflictError):
        asyncio.run(
            doubt_service.followup(store, doubt_id=doubt.id, principal=STUDENT, text="wait")
        )


# ---- reads ----


def test_list_doubts_scopes_learners(store: Store) -> None:
    _ask(store, STUDENT)
    _ask(store, VOLUNTEER)
    mine = asyncio.run(doubt_service.list_doubts(store, principal=STUDENT))
    everyone = asyncio.run(doubt_service.list_doubts(store, principal=MENTOR))
    assert [d.student_id for d in mine] == ["s1"]
    assert {d.student_id for d in everyone} == {"s1", "v1"}
