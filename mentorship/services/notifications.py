"""Notification dispatcher.

Turns workflow events into mail tasks on the ``notifications`` queue.
Dispatch happens after the state change is written and is best-effort:
an enqueue failure is logged and counted, never raised to the caller.
"""

from __future__ import annotations

import logging

from mentorship.core.metrics import NOTIFICATIONS
from mentorship.models.assignment import Assignment
from mentorship.models.doubt import Doubt
from mentorship.services.task_queue import TaskQueue, task_queue

logger = logging.getLogger(__name__)

NOTIFICATION_QUEUE = "notifications"


class NotificationDispatcher:
    def __init__(self, queue: TaskQueue) -> None:
        self._queue = queue

    async def doubt_replied(self, doubt: Doubt, reply: str) -> None:
        if not doubt.student_email:
            logger.info(
                "No email on file for student=%s; skipping reply notification",
                doubt.student_id,
                extra={"doubt_id": doubt.id},
            )
            NOTIFICATIONS.labels(kind="doubt_reply", outcome="skipped").inc()
            return
        text = (
            "A mentor has replied to your doubt.\n\n"
            f"Your doubt:\n{doubt.latest_doubt_text}\n\n"
            f"Reply:\n{reply}\n"
        )
        await self._dispatch(
            "doubt_reply",
            {
                "to": [doubt.student_email],
                "subject": "Your doubt has a new reply",
                "text": text,
                "doubt_id": doubt.id,
            },
        )

    async def assignment_distributed(self, assignment: Assignment) -> None:
        recipients = sorted({a.email for a in assignment.assigned_to if a.email})
        if not recipients:
            NOTIFICATIONS.labels(kind="assignment", outcome="skipped").inc()
            return
        await self._dispatch(
            "assignment",
            {
                "to": recipients,
                "subject": f"New assignment: {assignment.title}",
                "text": (
                    f"You have been assigned \"{assignment.title}\" "
                    f"({assignment.difficulty})."
                ),
                "assignment_id": assignment.id,
            },
        )

    async def _dispatch(self, kind: str, payload: dict) -> None:
        try:
            task = await self._queue.enqueue(NOTIFICATION_QUEUE, {"kind": kind, **payload})
        except Exception:
            logger.exception("Failed to enqueue %s notification", kind)
            NOTIFICATIONS.labels(kind=kind, outcome="failed").inc()
            return
        NOTIFICATIONS.labels(kind=kind, outcome="queued").inc()
        logger.info("Queued %s notification task=%s", kind, task.id)


notifier = NotificationDispatcher(task_queue)
