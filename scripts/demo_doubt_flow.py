"""Demo: walk one assignment through the doubt workflow using FastAPI TestClient.

Run with:
    python scripts/demo_doubt_flow.py
"""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from mentorship.main import app
from mentorship.services import token_service
from mentorship.services.notifications import NOTIFICATION_QUEUE
from mentorship.services.task_queue import task_queue

STUDENT_EMAIL = "ana@example.com"


def _auth(sub: str, role: str, email: str | None = None) -> dict[str, str]:
    token = token_service.create_access_token(sub=sub, role=role, email=email)
    return {"Authorization": f"Bearer {token}"}


def main() -> None:
    client = TestClient(app)
    mentor = _auth("mentor-1", "mentor")
    student = _auth("student-1", "student", STUDENT_EMAIL)

    # ── Step 1: mentor publishes an assignment ──────────────────────
    r = client.post(
        "/assignments",
        json={"title": "Two Sum", "difficulty": "easy", "tags": ["arrays"]},
        headers=mentor,
    )
    assignment_id = r.json()["id"]
    print(f"1. POST /assignments              → {r.status_code}  id={assignment_id}")

    # ── Step 2: student reports a difficulty ────────────────────────
    r = client.put(
        f"/assignments/{assignment_id}/status",
        json={"responseStatus": "having doubt", "learningNotes": "stuck on loop"},
        headers=student,
    )
    print(f"2. PUT  /assignments/…/status     → {r.status_code}  (having doubt)")

    [doubt] = client.get("/doubts", headers=student).json()
    doubt_id = doubt["id"]
    print(f"   doubt={doubt_id} status={doubt['currentStatus']}")

    # ── Step 3: mentor replies ──────────────────────────────────────
    r = client.put(
        f"/doubts/{doubt_id}/reply",
        json={"reply": "check boundary condition"},
        headers=mentor,
    )
    print(f"3. PUT  /doubts/…/reply           → {r.status_code}  status={r.json()['currentStatus']}")
    queued = asyncio.run(task_queue.queue_length(NOTIFICATION_QUEUE))
    print(f"   notifications queued: {queued}")

    # ── Step 4: student is not satisfied ────────────────────────────
    r = client.put(
        f"/doubts/{doubt_id}/followup",
        json={"followup": "still failing"},
        headers=student,
    )
    print(f"4. PUT  /doubts/…/followup        → {r.status_code}  status={r.json()['currentStatus']}")

    # ── Step 5: student resolves ────────────────────────────────────
    r = client.put(f"/doubts/{doubt_id}/resolve", headers=student)
    body = r.json()
    print(f"5. PUT  /doubts/…/resolve         → {r.status_code}  resolvedBy={body['resolvedBy']}")

    # ── Step 6: the thread is closed ────────────────────────────────
    r = client.put(f"/doubts/{doubt_id}/reply", json={"reply": "late"}, headers=mentor)
    print(f"6. PUT  /doubts/…/reply (closed)  → {r.status_code}  (conflict)")

    print()
    for turn in body["conversation"]:
        print(f"   [{turn['type']:>9}] {turn['sender']}: {turn['message']}")


if __name__ == "__main__":
    main()
