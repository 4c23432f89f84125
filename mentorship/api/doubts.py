"""Doubt thread endpoints.

  POST /doubts                  ask a doubt (student|volunteer)
  GET  /doubts                  list; learners see only their own
  GET  /doubts/filter           list by assignment attributes
  GET  /doubts/{id}             one thread, turns oldest first
  PUT  /doubts/{id}/reply       mentor|admin reply, mails the student
  PUT  /doubts/{id}/followup    owner follow-up
  PUT  /doubts/{id}/resolve     owner closes the thread
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from mentorship.api.dependencies import (
    get_store,
    require_capability,
    to_http_error,
)
from mentorship.api.schemas import CamelModel, DoubtOut
from mentorship.models.principal import Capability, Principal
from mentorship.repos.store import Store
from mentorship.services import doubt_service
from mentorship.services.errors import WorkflowError
from mentorship.services.notifications import notifier

router = APIRouter(prefix="/doubts", tags=["doubts"])


class DoubtCreateIn(CamelModel):
    assignment_id: str | None = None
    doubt_text: str | None = None


class ReplyIn(CamelModel):
    reply: str | None = None


class FollowupIn(CamelModel):
    followup: str | None = None


_require_learner = require_capability(Capability.ASK_DOUBT)
_require_staff = require_capability(Capability.REPLY_DOUBT)
_require_viewer = require_capability(Capability.VIEW_DOUBTS)
_require_followup = require_capability(Capability.FOLLOWUP_DOUBT)
_require_resolve = require_capability(Capability.RESOLVE_DOUBT)


@router.post("", response_model=DoubtOut)
async def create_doubt(
    body: DoubtCreateIn,
    principal: Annotated[Principal, Depends(_require_learner)],
    store: Annotated[Store, Depends(get_store)],
) -> DoubtOut:
    try:
        doubt = await doubt_service.create_doubt(
            store,
            assignment_id=body.assignment_id,
            principal=principal,
            text=body.doubt_text,
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return DoubtOut.from_doubt(doubt)


@router.get("", response_model=list[DoubtOut])
async def list_doubts(
    principal: Annotated[Principal, Depends(_require_viewer)],
    store: Annotated[Store, Depends(get_store)],
    assignment_id: Annotated[str | None, Query(alias="assignmentId")] = None,
    resolved: bool | None = None,
) -> list[DoubtOut]:
    try:
        doubts = await doubt_service.list_doubts(
            store, principal=principal, assignment_id=assignment_id, resolved=resolved
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return [DoubtOut.from_doubt(d) for d in doubts]


@router.get("/filter", response_model=list[DoubtOut])
async def filter_doubts(
    principal: Annotated[Principal, Depends(_require_viewer)],
    store: Annotated[Store, Depends(get_store)],
    assignment_tag: Annotated[str | None, Query(alias="assignmentTag")] = None,
    difficulty: str | None = None,
    assignment_title: Annotated[str | None, Query(alias="assignmentTitle")] = None,
    resolved: bool | None = None,
) -> list[DoubtOut]:
    try:
        doubts = await doubt_service.filter_doubts(
            store,
            principal=principal,
            distribution_tag=assignment_tag,
            difficulty=difficulty,
            title_contains=assignment_title,
            resolved=resolved,
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return [DoubtOut.from_doubt(d) for d in doubts]


@router.get("/{doubt_id}", response_model=DoubtOut)
async def get_doubt(
    doubt_id: str,
    principal: Annotated[Principal, Depends(_require_viewer)],
    store: Annotated[Store, Depends(get_store)],
) -> DoubtOut:
    try:
        doubt = await doubt_service.get_doubt(
            store, doubt_id=doubt_id, principal=principal
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return DoubtOut.from_doubt(doubt)


@router.put("/{doubt_id}/reply", response_model=DoubtOut)
async def reply_to_doubt(
    doubt_id: str,
    body: ReplyIn,
    principal: Annotated[Principal, Depends(_require_staff)],
    store: Annotated[Store, Depends(get_store)],
) -> DoubtOut:
    try:
        doubt = await doubt_service.reply(
            store, notifier, doubt_id=doubt_id, principal=principal, text=body.reply
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return DoubtOut.from_doubt(doubt)


@router.put("/{doubt_id}/followup", response_model=DoubtOut)
async def follow_up_on_doubt(
    doubt_id: str,
    body: FollowupIn,
    principal: Annotated[Principal, Depends(_require_followup)],
    store: Annotated[Store, Depends(get_store)],
) -> DoubtOut:
    try:
        doubt = await doubt_service.followup(
            store, doubt_id=doubt_id, principal=principal, text=body.followup
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return DoubtOut.from_doubt(doubt)


@router.put("/{doubt_id}/resolve", response_model=DoubtOut)
async def resolve_doubt(
    doubt_id: str,
    principal: Annotated[Principal, Depends(_require_resolve)],
    store: Annotated[Store, Depends(get_store)],
) -> DoubtOut:
    try:
        doubt = await doubt_service.resolve(
            store, doubt_id=doubt_id, principal=principal
        )
    except WorkflowError as e:
        raise to_http_error(e) from None
    return DoubtOut.from_doubt(doubt)
