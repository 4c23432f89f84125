from __future__ import annotations

import asyncio

import pytest

from mentorship import worker
from mentorship.services import mailer
from mentorship.services.notifications import NOTIFICATION_QUEUE
from mentorship.services.task_queue import InMemoryTaskQueue


def test_notification_queue_has_a_handler() -> None:
    assert NOTIFICATION_QUEUE in worker.HANDLERS


def test_process_one_sends_mail(monkeypatch: pytest.MonkeyPatch) -> None:
    sent: list[dict] = []

    async def fake_send(**kwargs) -> None:
        sent.append(kwargs)

    monkeypatch.setattr(mailer, "send_email", fake_send)
    queue = InMemoryTaskQueue()

    async def run():
        await queue.enqueue(
            NOTIFICATION_QUEUE,
            {"kind": "doubt_reply", "to": ["s1@x.io"], "subject": "Re", "text": "hint"},
        )
        return await worker.process_one(queue, NOTIFICATION_QUEUE)

    task = asyncio.run(run())
    assert task is not None
    assert sent == [{"to": ["s1@x.io"], "subject": "Re", "text": "hint", "html": None}]


def test_process_one_survives_delivery_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    async def failing_send(**kwargs) -> None:
        raise mailer.MailDeliveryError("mailjet returned 500")

    monkeypatch.setattr(mailer, "send_email", failing_send)
    queue = InMemoryTaskQueue()

    async def run():
        await queue.enqueue(NOTIFICATION_QUEUE, {"kind": "doubt_reply", "to": ["s1@x.io"]})
        return await worker.process_one(queue, NOTIFICATION_QUEUE)

    assert asyncio.run(run()) is not None
    assert asyncio.run(queue.queue_length(NOTIFICATION_QUEUE)) == 0


def test_process_one_on_empty_queue() -> None:
    assert asyncio.run(worker.process_one(InMemoryTaskQueue(), NOTIFICATION_QUEUE)) is None
