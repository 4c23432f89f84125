from __future__ import annotations

import logging

from mentorship.models.assignment import (
    Assignee,
    Assignment,
    DistributionTag,
    ResponseStatus,
)
from mentorship.models.principal import Capability, Principal, Role
from mentorship.repos.store import Store
from mentorship.services.errors import ForbiddenError, InvalidInputError, NotFoundError
from mentorship.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


async def create_assignment(
    store: Store,
    notifier: NotificationDispatcher,
    *,
    principal: Principal,
    title: str | None,
    distribution_tag: DistributionTag = DistributionTag.CENTRAL,
    assignees: list[tuple[str, str, str | None]] | None = None,
    **metadata,
) -> Assignment:
    """Create an assignment; personal ones need at least one assignee.

    ``assignees`` holds (name, email, user_id) triples. Personal
    assignees are notified by mail once the assignment is stored.
    """
    if not principal.can(Capability.CREATE_ASSIGNMENT):
        raise ForbiddenError("Insufficient permissions")
    if title is None or not title.strip():
        raise InvalidInputError("Title is required")

    assigned_to: tuple[Assignee, ...] = ()
    if distribution_tag is DistributionTag.PERSONAL:
        if not assignees:
            raise InvalidInputError(
                "Personal assignments must include at least one assignee"
            )
        assigned_to = tuple(
            Assignee(
                name=name,
                email=email.strip().lower(),
                assigned_by=principal.user_id,
                user_id=user_id,
            )
            for name, email, user_id in assignees
        )

    assignment = Assignment.new(
        title=title.strip(),
        created_by=principal.user_id,
        distribution_tag=distribution_tag,
        assigned_to=assigned_to,
        **metadata,
    )
    await store.assignments.add(assignment)
    await store.commit()
    logger.info(
        "Created assignment=%s tag=%s by user=%s",
        assignment.id,
        distribution_tag.value,
        principal.user_id,
    )

    if assignment.is_personal:
        await notifier.assignment_distributed(assignment)
    return assignment


async def get_assignment(
    store: Store, *, assignment_id: str, principal: Principal
) -> Assignment:
    assignment = await store.assignments.get(assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")
    if (
        principal.is_learner
        and assignment.is_personal
        and not assignment.is_assigned(principal.user_id, principal.email)
    ):
        raise ForbiddenError("Not authorized to view this assignment")
    return assignment


async def list_assignments(
    store: Store,
    *,
    principal: Principal,
    distribution_tags: set[DistributionTag] | None = None,
    difficulty: str | None = None,
    tags: set[str] | None = None,
    response_status: ResponseStatus | None = None,
) -> list[Assignment]:
    """Non-personal assignments matching every given filter.

    ``response_status`` matches against the caller's own Response only.
    """
    found = await store.assignments.list(
        distribution_tags=distribution_tags,
        difficulty=difficulty,
        tags=tags,
    )
    if response_status is None:
        return found
    mine = []
    for assignment in found:
        response = assignment.response_for(principal.user_id)
        if response is not None and response.status is response_status:
            mine.append(assignment)
    return mine


async def list_personal(
    store: Store, *, principal: Principal, student_id: str | None = None
) -> list[Assignment]:
    """Personal assignments visible to the caller.

    Learners get the ones they are assigned to. Mentors get the ones they
    created and admins get all; both can narrow to one assignee.
    """
    if principal.is_learner:
        return [
            a
            for a in await store.assignments.list_personal()
            if a.is_assigned(principal.user_id, principal.email)
        ]
    created_by = principal.user_id if principal.role is Role.MENTOR else None
    found = await store.assignments.list_personal(created_by=created_by)
    if student_id:
        found = [a for a in found if a.is_assigned(student_id, None)]
    return found


async def list_pending(store: Store, *, principal: Principal) -> list[Assignment]:
    """Non-personal assignments the caller has not marked solved."""
    if not principal.can(Capability.VIEW_PENDING):
        raise ForbiddenError("Only students or volunteers can view pending assignments.")
    pending = []
    for assignment in await store.assignments.list():
        response = assignment.response_for(principal.user_id)
        if response is None or response.status is not ResponseStatus.SOLVED:
            pending.append(assignment)
    return pending


async def set_solution(
    store: Store, *, assignment_id: str, principal: Principal, solution: str | None
) -> Assignment:
    if not principal.can(Capability.MANAGE_SOLUTION):
        raise ForbiddenError("Insufficient permissions")
    if solution is None or not solution.strip():
        raise InvalidInputError("Solution content is required.")
    updated = await store.assignments.update_solution(assignment_id, solution=solution)
    if updated is None:
        raise NotFoundError("Assignment not found")
    await store.commit()
    logger.info("Solution set on assignment=%s by user=%s", assignment_id, principal.user_id)
    return updated


async def set_solution_visibility(
    store: Store, *, assignment_id: str, principal: Principal, visible: bool | None
) -> Assignment:
    if not principal.can(Capability.MANAGE_SOLUTION):
        raise ForbiddenError("Insufficient permissions")
    if visible is None:
        raise InvalidInputError("solutionVisible is required.")
    updated = await store.assignments.update_solution(
        assignment_id, solution_visible=visible
    )
    if updated is None:
        raise NotFoundError("Assignment not found")
    await store.commit()
    logger.info(
        "Solution visibility=%s on assignment=%s by user=%s",
        visible,
        assignment_id,
        principal.user_id,
    )
    return updated
