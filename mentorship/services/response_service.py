"""Response transition engine.

``submit_response`` replaces a student's Response on an assignment and,
for any status other than ``solved``, records the difficulty on the
student's doubt thread.

Order of operations:
  1. role and evidence checks (no I/O, nothing written on failure)
  2. assignment lookup and personal-assignee check
  3. upsert the Response keyed by student id
  4. non-solved: open or extend the doubt thread
  5. commit

With the in-memory store steps 3 and 4 are separate writes: a crash
between them leaves the Response updated and the thread stale. With
PostgreSQL both happen in the request's session and commit together.
"""

from __future__ import annotations

import logging

from mentorship.core.metrics import RESPONSE_SUBMISSIONS
from mentorship.models.assignment import Assignment, Response, ResponseStatus
from mentorship.models.principal import Capability, Principal
from mentorship.repos.store import Store
from mentorship.services import doubt_service
from mentorship.services.errors import ForbiddenError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def check_evidence(
    status: ResponseStatus, submission_url: str | None, learning_notes: str | None
) -> None:
    """Solved needs a submission URL; anything else needs learning notes."""
    if status is ResponseStatus.SOLVED:
        if _blank(submission_url):
            raise InvalidInputError("submissionUrl required")
    elif _blank(learning_notes):
        raise InvalidInputError(
            "learningNotes required: describe the problem for statuses other than 'solved'"
        )


async def submit_response(
    store: Store,
    *,
    assignment_id: str,
    principal: Principal,
    status: ResponseStatus,
    submission_url: str | None = None,
    screenshots: list[str] | None = None,
    learning_notes: str | None = None,
) -> Assignment:
    if not principal.can(Capability.SUBMIT_RESPONSE):
        logger.warning(
            "Access denied: user=%s role=%s cannot submit responses",
            principal.user_id,
            principal.role.value,
        )
        raise ForbiddenError("Insufficient permissions")

    check_evidence(status, submission_url, learning_notes)

    assignment = await store.assignments.get(assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")

    if assignment.is_personal and not assignment.is_assigned(
        principal.user_id, principal.email
    ):
        logger.warning(
            "Access denied: user=%s not assigned to personal assignment=%s",
            principal.user_id,
            assignment_id,
        )
        raise ForbiddenError("Not authorized for this assignment")

    response = Response(
        student_id=principal.user_id,
        status=status,
        submission_url=submission_url or "",
        screenshots=tuple(screenshots or ()),
        learning_notes=learning_notes or "",
    )
    updated = await store.assignments.put_response(assignment_id, response)
    if updated is None:
        raise NotFoundError("Assignment not found")
    RESPONSE_SUBMISSIONS.labels(status=status.value).inc()
    logger.info(
        "Saved response status=%r for assignment=%s student=%s",
        status.value,
        assignment_id,
        principal.user_id,
    )

    # An open thread is left alone on "solved"; the student resolves it explicitly.
    if status is not ResponseStatus.SOLVED:
        await doubt_service.record_difficulty(
            store.doubts,
            assignment_id=assignment_id,
            student_id=principal.user_id,
            text=response.learning_notes,
            student_email=principal.email,
        )

    await store.commit()
    return updated
