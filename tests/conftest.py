from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import mentorship` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mentorship.api.dependencies import memory_store  # noqa: E402
from mentorship.main import app  # noqa: E402
from mentorship.models.assignment import (  # noqa: E402
    Assignee,
    Assignment,
    DistributionTag,
)
from mentorship.services import token_service  # noqa: E402
from mentorship.services.task_queue import task_queue  # noqa: E402


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Clear the in-memory assignment and doubt repos between tests."""
    memory_store.assignments._by_id.clear()  # type: ignore[attr-defined]
    memory_store.doubts._by_id.clear()  # type: ignore[attr-defined]
    memory_store.doubts._open.clear()  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    user_id: str = "student-1",
    role: str = "student",
    email: str | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=user_id, role=role, email=email)


def auth(
    user_id: str = "student-1",
    role: str = "student",
    email: str | None = None,
) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user_id, role, email)}"}


def seed_assignment(
    title: str = "Two Sum",
    distribution_tag: DistributionTag = DistributionTag.CENTRAL,
    assignees: tuple[Assignee, ...] = (),
    **metadata,
) -> Assignment:
    """Create and persist an assignment in the in-memory repo."""
    assignment = Assignment.new(
        title=title,
        created_by="mentor-1",
        distribution_tag=distribution_tag,
        assigned_to=assignees,
        **metadata,
    )
    asyncio.run(memory_store.assignments.add(assignment))
    return assignment


def queued_notifications() -> list[dict]:
    return [t.payload for t in task_queue._queues.get("notifications", [])]  # type: ignore[union-attr]
