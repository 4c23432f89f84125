"""Assignment endpoints.

  POST /assignments                 create (mentor|admin)
  GET  /assignments                 non-personal assignments, filterable
  GET  /assignments/pending         non-personal, not yet solved by caller
  GET  /assignments/personal        personal assignments for the caller
  GET  /assignments/{id}            one assignment
  PUT  /assignments/{id}/status     submit the caller's response
  POST /assignments/{id}/doubt      ask a doubt on this assignment
  PUT  /assignments/{id}/solution   set the solution (mentor|admin)
  PUT  /assignments/{id}/solution-visibility
                                    show or hide the solution (mentor|admin)

Learners only ever see their own response on an assignment.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status

from mentorship.api.dependencies import (
    get_store,
    require_capability,
    require_user,
    to_http_error,
)
from mentorship.api.schemas import AssignmentOut, CamelModel, DoubtOut
from mentorship.models.assignment import DistributionTag, ResponseStatus
from mentorship.models.principal import Capability, Principal
from mentorship.repos.store import Store
from mentorship.services import assignment_service, doubt_service, response_service
from mentorship.services.errors import InvalidInputError, WorkflowError
from mentorship.services.notifications import notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["assignments"])


class AssigneeIn(CamelModel):
    name: str
    email: str
    user_id: str | None = None


class AssignmentCreateIn(CamelModel):
    title: str | None = None
    explanation: str = ""
    difficulty: Literal["easy", "medium", "hard"] = "easy"
    tags: list[str] = []
    major_topic: str = ""
    repo_category: Literal["question", "project"] = "question"
    question_type: Literal["coding", "conceptual"] = "coding"
    coding_platform_link: str = ""
    distribution_tag: DistributionTag = DistributionTag.CENTRAL
    assigned_to: list[AssigneeIn] = []


class StatusUpdateIn(CamelModel):
    response_status: ResponseStatus
    submission_url: str | None = None
    screenshots: list[str] | None = None
    learning_notes: str | None = None


class AssignmentDoubtIn(CamelModel):
    doubt_text: str | None = None


class SolutionIn(CamelModel):
    solution: str | None = None


class SolutionVisibilityIn(CamelModel):
    solution_visible: bool | None = None


_require_staff = require_capability(Capability.CREATE_ASSIGNMENT)
_require_submitter = require_capability(Capability.SUBMIT_RESPONSE)
_require_pending_viewer = require_capability(Capability.VIEW_PENDING)
_require_asker = require_capability(Capability.ASK_DOUBT)
_require_solution_editor = require_capability(Capability.MANAGE_SOLUTION)


def _split(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


@router.post("", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    body: AssignmentCreateIn,
    principal: Annotated[Principal, Depends(_require_staff)],
    store: Annotated[Store, Depends(get_store)],
) -> AssignmentOut:
    try:
        assignment = await assignment_service.create_assignment(
            store,
            notifier,
            principal=principal,
            title=body.title,
            distribution_tag=body.distribution_tag,
            assignees=[(a.name, a.email, a.user_id) for a in body.assigned_to],
            explanation=body.explanation,
            difficulty=body.difficulty,
            tags=tuple(body.tags),
            major_topic=body.major_topic,
            repo_category=body.repo_category,
            question_type=body.question_type,
            coding_platform_link=body.coding_platform_link,
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return AssignmentOut.from_assignment(assignment, principal)


@router.get("", response_model=list[AssignmentOut])
async def list_assignments(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    distribution_tag: Annotated[str | None, Query(alias="distributionTag")] = None,
    difficulty: str | None = None,
    tags: str | None = None,
    response_status: Annotated[str | None, Query(alias="responseStatus")] = None,
) -> list[AssignmentOut]:
    try:
        try:
            dist_tags = {DistributionTag(t) for t in _split(distribution_tag)}
        except ValueError:
            raise InvalidInputError(
                f"unknown distributionTag {distribution_tag!r}"
            ) from None
        try:
            status_filter = ResponseStatus(response_status) if response_status else None
        except ValueError:
            raise InvalidInputError(f"unknown responseStatus {response_status!r}") from None
        assignments = await assignment_service.list_assignments(
            store,
            principal=principal,
            distribution_tags=dist_tags or None,
            difficulty=difficulty,
            tags=set(_split(tags)) or None,
            response_status=status_filter,
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return [AssignmentOut.from_assignment(a, principal) for a in assignments]


@router.get("/pending", response_model=list[AssignmentOut])
async def list_pending_assignments(
    principal: Annotated[Principal, Depends(_require_pending_viewer)],
    store: Annotated[Store, Depends(get_store)],
) -> list[AssignmentOut]:
    try:
        assignments = await assignment_service.list_pending(store, principal=principal)
    except WorkflowError as e:
        raise to_http_error(e) from None
    return [AssignmentOut.from_assignment(a, principal) for a in assignments]


@router.get("/personal", response_model=list[AssignmentOut])
async def list_personal_assignments(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    student_id: Annotated[str | None, Query(alias="studentId")] = None,
) -> list[AssignmentOut]:
    assignments = await assignment_service.list_personal(
        store, principal=principal, student_id=student_id
    )
    return [AssignmentOut.from_assignment(a, principal) for a in assignments]


@router.get("/{assignment_id}", response_model=AssignmentOut)
async def get_assignment(
    assignment_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> AssignmentOut:
    try:
        assignment = await assignment_service.get_assignment(
            store, assignment_id=assignment_id, principal=principal
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return AssignmentOut.from_assignment(assignment, principal)


@router.put("/{assignment_id}/status", response_model=AssignmentOut)
async def update_response_status(
    assignment_id: str,
    body: StatusUpdateIn,
    principal: Annotated[Principal, Depends(_require_submitter)],
    store: Annotated[Store, Depends(get_store)],
) -> AssignmentOut:
    try:
        assignment = await response_service.submit_response(
            store,
            assignment_id=assignment_id,
            principal=principal,
            status=body.response_status,
            submission_url=body.submission_url,
            screenshots=body.screenshots,
            learning_notes=body.learning_notes,
        )
    except WorkflowError as e:
        logger.warning(
            "Response update rejected for assignment=%s user=%s: %s",
            assignment_id,
            principal.user_id,
            e,
        )
        raise to_http_error(e) from None
    return AssignmentOut.from_assignment(assignment, principal)


@router.post("/{assignment_id}/doubt", response_model=DoubtOut)
async def ask_doubt_on_assignment(
    assignment_id: str,
    body: AssignmentDoubtIn,
    principal: Annotated[Principal, Depends(_require_asker)],
    store: Annotated[Store, Depends(get_store)],
) -> DoubtOut:
    try:
        doubt = await doubt_service.create_doubt(
            store, assignment_id=assignment_id, principal=principal, text=body.doubt_text
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return DoubtOut.from_doubt(doubt)


@router.put("/{assignment_id}/solution", response_model=AssignmentOut)
async def set_solution(
    assignment_id: str,
    body: SolutionIn,
    principal: Annotated[Principal, Depends(_require_solution_editor)],
    store: Annotated[Store, Depends(get_store)],
) -> AssignmentOut:
    try:
        assignment = await assignment_service.set_solution(
            store,
            assignment_id=assignment_id,
            principal=principal,
            solution=body.solution,
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return AssignmentOut.from_assignment(assignment, principal)


@router.put("/{assignment_id}/solution-visibility", response_model=AssignmentOut)
async def set_solution_visibility(
    assignment_id: str,
    body: SolutionVisibilityIn,
    principal: Annotated[Principal, Depends(_require_solution_editor)],
    store: Annotated[Store, Depends(get_store)],
) -> AssignmentOut:
    try:
        assignment = await assignment_service.set_solution_visibility(
            store,
            assignment_id=assignment_id,
            principal=principal,
            visible=body.solution_visible,
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return AssignmentOut.from_assignment(assignment, principal)
