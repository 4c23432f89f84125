"""Background worker process.

RUN:  python -m mentorship.worker

The API only enqueues notification tasks; this process drains them and
talks to the mail provider, so a slow or failing provider never holds
up a doubt reply. Same image as the API, different command:

  api:    uvicorn mentorship.main:app --host 0.0.0.0 --port 8000
  worker: python -m mentorship.worker

Delivery is best-effort: a failed task is logged, counted and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from mentorship.core.config import SETTINGS
from mentorship.core.logging import setup_logging
from mentorship.core.metrics import NOTIFICATIONS, QUEUE_DEPTH
from mentorship.services import mailer
from mentorship.services.notifications import NOTIFICATION_QUEUE
from mentorship.services.task_queue import Task, TaskQueue, task_queue

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("worker")

HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@register_handler(NOTIFICATION_QUEUE)
async def handle_notification(payload: dict) -> None:
    """Send one queued notification mail."""
    kind = payload.get("kind", "unknown")
    await mailer.send_email(
        to=list(payload.get("to") or []),
        subject=payload.get("subject", ""),
        text=payload.get("text", ""),
        html=payload.get("html"),
    )
    NOTIFICATIONS.labels(kind=kind, outcome="sent").inc()
    logger.info(
        "Delivered %s notification",
        kind,
        extra={
            "doubt_id": payload.get("doubt_id"),
            "assignment_id": payload.get("assignment_id"),
        },
    )


async def process_one(queue: TaskQueue, queue_name: str, timeout: int = 1) -> Task | None:
    """Dequeue and handle at most one task. Returns the task, if any."""
    task = await queue.dequeue(queue_name, timeout=timeout)
    if task is None:
        return None

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info(
            "Task %s on [%s] completed (enqueued_at=%s)",
            task.id,
            queue_name,
            task.enqueued_at,
        )
    except Exception:
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
        NOTIFICATIONS.labels(
            kind=task.payload.get("kind", "unknown"), outcome="failed"
        ).inc()
    return task


async def run_worker() -> None:
    """Poll all registered queues and dispatch tasks to handlers."""
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        handled = 0
        for queue_name in queues:
            QUEUE_DEPTH.labels(queue_name=queue_name).set(
                await task_queue.queue_length(queue_name)
            )
            if await process_one(task_queue, queue_name) is not None:
                handled += 1
        # The in-memory queue does not block on an empty dequeue.
        if not handled:
            await asyncio.sleep(0.1)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
