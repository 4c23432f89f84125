"""Background task queue for outbound notifications.

The API enqueues work that must not hold up a request (mail) and the
worker process drains it:

  Producer (API):    LPUSH a JSON task onto ``mentorship:queue:<name>``
  Consumer (Worker): BRPOP from the same list, handle, loop

Delivery is at-most-once: a task popped by a worker that then crashes is
lost. That matches the notification contract, which is best-effort and
never retried.
"""

from __future__ import annotations

import json
import uuid
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from mentorship.db.redis import redis_pool

DEFAULT_MAXLEN = 10_000


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True, slots=True)
class Task:
    """A unit of background work.

    ``payload`` must be JSON-serializable; ``enqueued_at`` is an ISO-8601
    UTC string so the worker can log how long a task waited.
    """

    queue: str
    payload: dict
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    enqueued_at: str = field(default_factory=_now_iso)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @staticmethod
    def from_json(raw: str) -> Task:
        return Task(**json.loads(raw))


@runtime_checkable
class TaskQueue(Protocol):
    async def enqueue(self, queue: str, payload: dict) -> Task: ...
    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None: ...
    async def queue_length(self, queue: str) -> int: ...


class InMemoryTaskQueue:
    """Process-local FIFO per queue name; tests and local dev.

    Nothing outside this process can drain it, so each queue keeps at most
    ``maxlen`` tasks and drops the oldest beyond that.
    """

    def __init__(self, maxlen: int = DEFAULT_MAXLEN) -> None:
        self.maxlen = maxlen
        self._queues: dict[str, deque[Task]] = {}

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task(queue=queue, payload=payload)
        self._queues.setdefault(queue, deque(maxlen=self.maxlen)).append(task)
        return task

    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None:
        # Never blocks; ``timeout`` exists for Protocol parity.
        pending = self._queues.get(queue)
        return pending.popleft() if pending else None

    async def queue_length(self, queue: str) -> int:
        return len(self._queues.get(queue, ()))


class RedisTaskQueue:
    """Redis lists; LPUSH + BRPOP gives FIFO order."""

    KEY_PREFIX = "mentorship:queue:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    def _key(self, queue: str) -> str:
        return self.KEY_PREFIX + queue

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task(queue=queue, payload=payload)
        await self._redis.lpush(self._key(queue), task.to_json())
        return task

    async def dequeue(self, queue: str, timeout: int = 5) -> Task | None:
        popped = await self._redis.brpop(self._key(queue), timeout=timeout)
        if popped is None:
            return None
        _key, raw = popped
        return Task.from_json(raw)

    async def queue_length(self, queue: str) -> int:
        return await self._redis.llen(self._key(queue))


task_queue: TaskQueue = (
    RedisTaskQueue(redis_pool) if redis_pool is not None else InMemoryTaskQueue()
)
