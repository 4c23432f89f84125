"""Doubt thread lifecycle over HTTP: ask, reply, follow up, resolve."""

from __future__ import annotations

from datetime import datetime

from fastapi.testclient import TestClient

from mentorship.models.assignment import DistributionTag
from tests.conftest import auth, queued_notifications, seed_assignment

STUDENT = auth("student-1", email="ana@example.com")
OTHER_STUDENT = auth("student-2", email="bob@example.com")
MENTOR = auth("mentor-1", role="mentor")


def _open_doubt(client: TestClient, text: str = "stuck on loop") -> dict:
    a = seed_assignment()
    resp = client.put(
        f"/assignments/{a.id}/status",
        json={"responseStatus": "having doubt", "learningNotes": text},
        headers=STUDENT,
    )
    assert resp.status_code == 200
    [doubt] = client.get("/doubts", headers=STUDENT).json()
    return doubt


def test_full_conversation(client: TestClient) -> None:
    doubt = _open_doubt(client)
    assert doubt["currentStatus"] == "new"

    resp = client.put(
        f"/doubts/{doubt['id']}/reply",
        json={"reply": "check boundary condition"},
        headers=MENTOR,
    )
    assert resp.status_code == 200
    assert resp.json()["currentStatus"] == "replied"
    assert resp.json()["conversation"][-1]["type"] == "reply"
    assert resp.json()["conversation"][-1]["sender"] == "mentor-1"

    resp = client.put(
        f"/doubts/{doubt['id']}/followup",
        json={"followup": "still failing"},
        headers=STUDENT,
    )
    assert resp.status_code == 200
    assert resp.json()["currentStatus"] == "unsatisfied"
    assert resp.json()["conversation"][-1]["type"] == "follow-up"

    resp = client.put(f"/doubts/{doubt['id']}/resolve", headers=STUDENT)
    assert resp.status_code == 200
    body = resp.json()
    assert body["currentStatus"] == "resolved"
    assert body["resolved"] is True
    assert body["resolvedBy"] == "student-1"
    assert body["resolvedAt"] is not None
    assert body["conversation"][-1] == {
        "sender": "student-1",
        "message": "Resolved",
        "type": "resolve",
        "timestamp": body["resolvedAt"],
    }
    assert [t["type"] for t in body["conversation"]] == [
        "doubt",
        "reply",
        "follow-up",
        "resolve",
    ]


def test_reply_queues_mail_to_student(client: TestClient) -> None:
    doubt = _open_doubt(client)
    client.put(
        f"/doubts/{doubt['id']}/reply",
        json={"reply": "check boundary condition"},
        headers=MENTOR,
    )
    [task] = queued_notifications()
    assert task["kind"] == "doubt_reply"
    assert task["to"] == ["ana@example.com"]
    assert task["doubt_id"] == doubt["id"]
    assert "stuck on loop" in task["text"]
    assert "check boundary condition" in task["text"]


def test_reply_succeeds_when_student_has_no_email(client: TestClient) -> None:
    a = seed_assignment()
    doubt = client.post(
        "/doubts", json={"assignmentId": a.id, "doubtText": "?"}, headers=auth("student-9")
    ).json()
    resp = client.put(f"/doubts/{doubt['id']}/reply", json={"reply": "ok"}, headers=MENTOR)
    assert resp.status_code == 200
    assert queued_notifications() == []


def test_conversation_is_oldest_first(client: TestClient) -> None:
    doubt = _open_doubt(client)
    client.put(f"/doubts/{doubt['id']}/reply", json={"reply": "one"}, headers=MENTOR)
    client.put(f"/doubts/{doubt['id']}/reply", json={"reply": "two"}, headers=MENTOR)
    body = client.get(f"/doubts/{doubt['id']}", headers=STUDENT).json()
    stamps = [datetime.fromisoformat(t["timestamp"]) for t in body["conversation"]]
    assert stamps == sorted(stamps)
    assert [t["message"] for t in body["conversation"]] == ["stuck on loop", "one", "two"]


# ---- ownership ----


def test_non_owner_cannot_followup_or_resolve(client: TestClient) -> None:
    doubt = _open_doubt(client)

    resp = client.put(
        f"/doubts/{doubt['id']}/followup", json={"followup": "me too"}, headers=OTHER_STUDENT
    )
    assert resp.status_code == 403
    resp = client.put(f"/doubts/{doubt['id']}/resolve", headers=OTHER_STUDENT)
    assert resp.status_code == 403

    unchanged = client.get(f"/doubts/{doubt['id']}", headers=STUDENT).json()
    assert unchanged == doubt


def test_non_owner_cannot_read_thread(client: TestClient) -> None:
    doubt = _open_doubt(client)
    assert client.get(f"/doubts/{doubt['id']}", headers=OTHER_STUDENT).status_code == 403
    assert client.get(f"/doubts/{doubt['id']}", headers=MENTOR).status_code == 200


def test_list_is_scoped_for_learners(client: TestClient) -> None:
    _open_doubt(client)
    assert client.get("/doubts", headers=OTHER_STUDENT).json() == []
    assert len(client.get("/doubts", headers=MENTOR).json()) == 1


# ---- validation and conflicts ----


def test_blank_reply_is_400(client: TestClient) -> None:
    doubt = _open_doubt(client)
    resp = client.put(f"/doubts/{doubt['id']}/reply", json={"reply": "  "}, headers=MENTOR)
    assert resp.status_code == 400


def test_blank_followup_is_400(client: TestClient) -> None:
    doubt = _open_doubt(client)
    resp = client.put(f"/doubts/{doubt['id']}/followup", json={}, headers=STUDENT)
    assert resp.status_code == 400


def test_reply_or_followup_without_body_is_400(client: TestClient) -> None:
    doubt = _open_doubt(client)
    resp = client.put(f"/doubts/{doubt['id']}/reply", headers=MENTOR)
    assert resp.status_code == 400
    resp = client.put(f"/doubts/{doubt['id']}/followup", headers=STUDENT)
    assert resp.status_code == 400

    [thread] = client.get("/doubts", headers=STUDENT).json()
    assert len(thread["conversation"]) == 1


def test_unknown_doubt_is_404(
client: TestClient) -> None:
    resp = client.put("/doubts/nope/reply", json={"reply": "hi"}, headers=MENTOR)
    assert resp.status_code == 404
    resp = client.put("/doubts/nope/resolve", headers=STUDENT)
    assert resp.status_code == 404


def test_resolved_thread_is_closed(client: TestClient) -> None:
    doubt = _open_doubt(client)
    client.put(f"/doubts/{doubt['id']}/resolve", headers=STUDENT)

    resp = client.put(f"/doubts/{doubt['id']}/reply", json={"reply": "late"}, headers=MENTOR)
    assert resp.status_code == 409
    resp = client.put(
        f"/doubts/{doubt['id']}/followup", json={"followup": "again"}, headers=STUDENT
    )
    assert resp.status_code == 409
    resp = client.put(f"/doubts/{doubt['id']}/resolve", headers=STUDENT)
    assert resp.status_code == 409


def test_create_doubt_requires_fields(client: TestClient) -> None:
    resp = client.post("/doubts", json={"doubtText": "?"}, headers=STUDENT)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Assignment ID and doubt text are required."


def test_second_open_doubt_is_409(client: TestClient) -> None:
    a = seed_assignment()
    first = client.post("/doubts", json={"assignmentId": a.id, "doubtText": "one"}, headers=STUDENT)
    assert first.status_code == 200
    second = client.post("/doubts", json={"assignmentId": a.id, "doubtText": "two"}, headers=STUDENT)
    assert second.status_code == 409


def test_new_doubt_allowed_after_resolve(client: TestClient) -> None:
    a = seed_assignment()
    first = client.post(
        "/doubts", json={"assignmentId": a.id, "doubtText": "one"}, headers=STUDENT
    ).json()
    client.put(f"/doubts/{first['id']}/resolve", headers=STUDENT)

    second = client.post(
        "/doubts", json={"assignmentId": a.id, "doubtText": "two"}, headers=STUDENT
    )
    assert second.status_code == 200
    assert second.json()["id"] != first["id"]

    resolved = client.get(f"/doubts?assignmentId={a.id}&resolved=true", headers=STUDENT).json()
    assert [d["id"] for d in resolved] == [first["id"]]


def test_mentor_cannot_ask_or_resolve(client: TestClient) -> None:
    doubt = _open_doubt(client)
    resp = client.post(
        "/doubts", json={"assignmentId": doubt["assignmentId"], "doubtText": "?"}, headers=MENTOR
    )
    assert resp.status_code == 403
    assert client.put(f"/doubts/{doubt['id']}/resolve", headers=MENTOR).status_code == 403


def test_student_cannot_reply(client: TestClient) -> None:
    doubt = _open_doubt(client)
    resp = client.put(f"/doubts/{doubt['id']}/reply", json={"reply": "self"}, headers=STUDENT)
    assert resp.status_code == 403


# ---- filter ----


def test_filter_by_assignment_attributes(client: TestClient) -> None:
    hw = seed_assignment("Binary Search", DistributionTag.HW, difficulty="medium")
    cw = seed_assignment("Linked Lists", DistributionTag.CW, difficulty="easy")
    for a in (hw, cw):
        client.post("/doubts", json={"assignmentId": a.id, "doubtText": "?"}, headers=STUDENT)

    def ids(query: str) -> list[str]:
        resp = client.get(f"/doubts/filter?{query}", headers=MENTOR)
        assert resp.status_code == 200
        return [d["assignmentId"] for d in resp.json()]

    assert ids("assignmentTag=hw") == [hw.id]
    assert ids("difficulty=easy") == [cw.id]
    assert ids("assignmentTitle=binary") == [hw.id]
    assert sorted(ids("resolved=false")) == sorted([hw.id, cw.id])
    assert ids("resolved=true") == []


def test_filter_rejects_unknown_tag(client: TestClient) -> None:
    resp = client.get("/doubts/filter?assignmentTag=weekly", headers=MENTOR)
    assert resp.status_code == 400
