"""Doubt conversation engine.

Each public function applies one transition to a doubt thread:

    new --reply--> replied --followup--> unsatisfied --reply--> replied
    new | replied | unsatisfied --resolve--> resolved

``resolved`` is terminal: reply, follow-up and resolve on a resolved
thread raise ConflictError. ``review`` exists in DoubtStatus but no
transition here produces it.

Validation happens before any write; the notification on reply is
dispatched only after the thread is saved.
"""

from __future__ import annotations

import logging

from mentorship.core.metrics import DOUBT_TRANSITIONS
from mentorship.models.assignment import DistributionTag
from mentorship.models.doubt import RESOLVE_MESSAGE, Doubt, DoubtStatus, TurnType
from mentorship.models.principal import Capability, Principal
from mentorship.repos.doubt_repo import DoubtRepo, OpenDoubtExistsError
from mentorship.repos.store import Store
from mentorship.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from mentorship.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


def _require(principal: Principal, capability: Capability) -> None:
    if not principal.can(capability):
        logger.warning(
            "Access denied: user=%s role=%s capability=%s",
            principal.user_id,
            principal.role.value,
            capability.value,
        )
        raise ForbiddenError("Insufficient permissions")


def _require_text(text: str | None, field: str) -> str:
    if text is None or not text.strip():
        raise InvalidInputError(f"{field} required")
    return text


async def _load(doubts: DoubtRepo, doubt_id: str) -> Doubt:
    doubt = await doubts.get(doubt_id)
    if doubt is None:
        raise NotFoundError("Doubt not found")
    return doubt


def _require_owner(doubt: Doubt, principal: Principal) -> None:
    if doubt.student_id != principal.user_id:
        logger.warning(
            "Access denied: user=%s is not the owner of doubt=%s",
            principal.user_id,
            doubt.id,
        )
        raise ForbiddenError("Only the student who raised this doubt may do that")


def _require_open(doubt: Doubt) -> None:
    if doubt.resolved:
        raise ConflictError("Doubt is already resolved")


def _count(doubt: Doubt) -> None:
    DOUBT_TRANSITIONS.labels(
        turn_type=doubt.conversation[-1].type.value,
        status=doubt.current_status.value,
    ).inc()


# ---------------------------------------------------------------------------
# Thread creation
# ---------------------------------------------------------------------------


async def record_difficulty(
    doubts: DoubtRepo,
    *,
    assignment_id: str,
    student_id: str,
    text: str,
    student_email: str | None = None,
) -> Doubt:
    """Open a thread for the pair, or extend the open one with a follow-up.

    Called by the response engine whenever a non-solved status is saved.
    Every call appends a turn; resubmitting the same notes is not
    idempotent at the thread level.
    """
    existing = await doubts.find_open(assignment_id, student_id)
    if existing is None:
        fresh = Doubt.open(
            assignment_id=assignment_id,
            student_id=student_id,
            text=text,
            student_email=student_email,
        )
        try:
            await doubts.add(fresh)
        except OpenDoubtExistsError:
            # Another request opened the thread first; extend that one.
            existing = await doubts.find_open(assignment_id, student_id)
            if existing is None:
                raise
        else:
            _count(fresh)
            logger.info(
                "Opened doubt=%s for assignment=%s student=%s",
                fresh.id,
                assignment_id,
                student_id,
            )
            return fresh

    updated = existing.append(
        sender=student_id,
        message=text,
        type=TurnType.FOLLOW_UP,
        status=DoubtStatus.UNSATISFIED,
    )
    await doubts.save(updated)
    _count(updated)
    logger.info("Extended open doubt=%s with a follow-up", updated.id)
    return updated


async def create_doubt(
    store: Store,
    *,
    assignment_id: str | None,
    principal: Principal,
    text: str | None,
) -> Doubt:
    """Explicit "ask a doubt" action.

    Always starts a fresh thread. If the student already has an open
    thread on this assignment, ConflictError is raised instead of
    creating a second one; the student should follow up on it.
    """
    _require(principal, Capability.ASK_DOUBT)
    if not assignment_id or not text or not text.strip():
        raise InvalidInputError("Assignment ID and doubt text are required.")

    if await store.assignments.get(assignment_id) is None:
        raise NotFoundError("Assignment not found")

    doubt = Doubt.open(
        assignment_id=assignment_id,
        student_id=principal.user_id,
        text=text,
        student_email=principal.email,
    )
    try:
        await store.doubts.add(doubt)
    except OpenDoubtExistsError:
        logger.warning(
            "Rejected second open doubt for assignment=%s student=%s",
            assignment_id,
            principal.user_id,
        )
        raise ConflictError(
            "An open doubt already exists for this assignment; add a follow-up instead"
        ) from None
    await store.commit()

    _count(doubt)
    logger.info("Created doubt=%s for assignment=%s", doubt.id, assignment_id)
    return doubt


# ---------------------------------------------------------------------------
# Conversation turns
# ---------------------------------------------------------------------------


async def reply(
    store: Store,
    notifier: NotificationDispatcher,
    *,
    doubt_id: str,
    principal: Principal,
    text: str | None,
) -> Doubt:
    _require(principal, Capability.REPLY_DOUBT)
    message = _require_text(text, "Reply message")
    doubt = await _load(store.doubts, doubt_id)
    _require_open(doubt)

    updated = doubt.append(
        sender=principal.user_id,
        message=message,
        type=TurnType.REPLY,
        status=DoubtStatus.REPLIED,
    )
    await store.doubts.save(updated)
    await store.commit()
    _count(updated)
    logger.info("Mentor=%s replied to doubt=%s", principal.user_id, doubt_id)

    await notifier.doubt_replied(updated, message)
    return updated


async def followup(
    store: Store,
    *,
    doubt_id: str,
    principal: Principal,
    text: str | None,
) -> Doubt:
    _require(principal, Capability.FOLLOWUP_DOUBT)
    message = _require_text(text, "Follow-up message")
    doubt = await _load(store.doubts, doubt_id)
    _require_owner(doubt, principal)
    _require_open(doubt)

    updated = doubt.append(
        sender=principal.user_id,
        message=message,
        type=TurnType.FOLLOW_UP,
        status=DoubtStatus.UNSATISFIED,
    )
    await store.doubts.save(updated)
    await store.commit()
    _count(updated)
    logger.info("Student=%s followed up on doubt=%s", principal.user_id, doubt_id)
    return updated


async def resolve(
    store: Store,
    *,
    doubt_id: str,
    principal: Principal,
) -> Doubt:
    _require(principal, Capability.RESOLVE_DOUBT)
    doubt = await _load(store.doubts, doubt_id)
    _require_owner(doubt, principal)
    _require_open(doubt)

    updated = doubt.append(
        sender=principal.user_id,
        message=RESOLVE_MESSAGE,
        type=TurnType.RESOLVE,
        status=DoubtStatus.RESOLVED,
    )
    await store.doubts.save(updated)
    await store.commit()
    _count(updated)
    logger.info("Student=%s resolved doubt=%s", principal.user_id, doubt_id)
    return updated


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_doubt(store: Store, *, doubt_id: str, principal: Principal) -> Doubt:
    _require(principal, Capability.VIEW_DOUBTS)
    doubt = await _load(store.doubts, doubt_id)
    if principal.is_learner:
        _require_owner(doubt, principal)
    return doubt


async def list_doubts(
    store: Store,
    *,
    principal: Principal,
    assignment_id: str | None = None,
    resolved: bool | None = None,
) -> list[Doubt]:
    """Students and volunteers see only their own threads."""
    _require(principal, Capability.VIEW_DOUBTS)
    return await store.doubts.list(
        student_id=principal.user_id if principal.is_learner else None,
        assignment_ids={assignment_id} if assignment_id else None,
        resolved=resolved,
    )


async def filter_doubts(
    store: Store,
    *,
    principal: Principal,
    distribution_tag: str | None = None,
    difficulty: str | None = None,
    title_contains: str | None = None,
    resolved: bool | None = None,
) -> list[Doubt]:
    """Doubts whose assignment matches the given attributes, newest first."""
    _require(principal, Capability.VIEW_DOUBTS)
    try:
        tags = {DistributionTag(distribution_tag)} if distribution_tag else None
    except ValueError:
        raise InvalidInputError(f"unknown assignmentTag {distribution_tag!r}") from None

    matching = await store.assignments.list(
        distribution_tags=tags,
        difficulty=difficulty,
        title_contains=title_contains,
        include_personal=True,
    )
    return await store.doubts.list(
        student_id=principal.user_id if principal.is_learner else None,
        assignment_ids={a.id for a in matching},
        resolved=resolved,
    )
