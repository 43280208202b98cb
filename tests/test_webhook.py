import json

import pytest

from app.models.interview import InterviewResult, STATUS_EVALUATED
from conftest import tool_call_payload


def _rows(db):
    db.expire_all()
    return db.query(InterviewResult).all()


def test_evaluation_is_saved_under_call_id(client, db):
    payload = tool_call_payload('{"userId":"u1","score":82,"feedback":"Good"}')

    resp = client.post("/api/webhook", json=payload)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["id"] == "abc123"
    assert body["results"][0]["toolCallId"] == "tc_1"

    rows = _rows(db)
    assert len(rows) == 1
    record = rows[0]
    assert record.id == "abc123"
    assert record.score == 82
    assert record.feedback == "Good"
    assert record.user_id == "u1"
    assert record.status == STATUS_EVALUATED


def test_redelivery_overwrites_instead_of_duplicating(client, db):
    client.post("/api/webhook", json=tool_call_payload('{"userId":"u1","score":82,"feedback":"Good"}'))
    first_created = _rows(db)[0].created_at

    resp = client.post("/api/webhook", json=tool_call_payload('{"userId":"u1","score":90,"feedback":"Good"}'))

    assert resp.status_code == 200
    rows = _rows(db)
    assert len(rows) == 1
    assert rows[0].score == 90
    assert rows[0].created_at == first_created


def test_many_redeliveries_leave_one_row(client, db):
    payload = tool_call_payload({"userId": "u1", "score": 70})
    for _ in range(5):
        assert client.post("/api/webhook", json=payload).status_code == 200

    assert len(_rows(db)) == 1


def test_missing_call_id_is_rejected(client, db):
    payload = tool_call_payload('{"userId":"u1","score":82}', call_id=None)

    resp = client.post("/api/webhook", json=payload)

    assert resp.status_code == 500
    assert "Call ID" in resp.json()["error"]
    assert _rows(db) == []


def test_string_and_object_arguments_store_identical_records(client, db):
    args = {"userId": "u1", "role": "Backend", "techStack": "Go", "level": "Senior", "score": 64, "feedback": "Ok"}

    client.post("/api/webhook", json=tool_call_payload(json.dumps(args), call_id="as-string"))
    client.post("/api/webhook", json=tool_call_payload(args, call_id="as-object"))

    rows = {r.id: r for r in _rows(db)}
    columns = ("user_id", "role", "tech_stack", "level", "score", "feedback", "status")
    as_string = {c: getattr(rows["as-string"], c) for c in columns}
    as_object = {c: getattr(rows["as-object"], c) for c in columns}
    assert as_string == as_object


def test_missing_fields_are_defaulted(client, db):
    resp = client.post("/api/webhook", json=tool_call_payload("{}"))

    assert resp.status_code == 200
    record = _rows(db)[0]
    assert record.user_id == "no-id-found"
    assert record.role == "Technical Interview"
    assert record.tech_stack == "General"
    assert record.level == "Standard"
    assert record.score == 0
    assert record.feedback == "No feedback provided."


def test_call_id_found_under_message_call_id(client, db):
    payload = tool_call_payload({"userId": "u1", "score": 50}, call_id=None)
    payload["message"]["callId"] = "from-callId"

    resp = client.post("/api/webhook", json=payload)

    assert resp.json()["id"] == "from-callId"
    assert _rows(db)[0].id == "from-callId"


def test_tool_call_list_shape_is_accepted(client, db):
    payload = tool_call_payload({"userId": "u1", "score": 50})
    payload["message"]["toolCallList"] = payload["message"].pop("toolCalls")

    assert client.post("/api/webhook", json=payload).status_code == 200
    assert len(_rows(db)) == 1


def test_malformed_argument_string_is_rejected(client, db):
    resp = client.post("/api/webhook", json=tool_call_payload('{"score": 8'))

    assert resp.status_code == 500
    assert _rows(db) == []


@pytest.mark.parametrize(
    "payload",
    [
        {"message": {"type": "status-update", "call": {"id": "abc123"}}},
        tool_call_payload({"score": 10}, name="lookup_weather"),
        {},
    ],
)
def test_other_events_are_acknowledged_without_writing(client, db, payload):
    resp = client.post("/api/webhook", json=payload)

    assert resp.status_code == 200
    assert resp.json() == {"received": True}
    assert _rows(db) == []


def test_unparseable_body_returns_500(client, db):
    resp = client.post("/api/webhook", content=b"not json", headers={"Content-Type": "application/json"})

    assert resp.status_code == 500
    assert "error" in resp.json()


def test_webhook_secret_is_enforced_when_configured(client, db, monkeypatch):
    monkeypatch.setattr("app.routers.webhook.VAPI_WEBHOOK_SECRET", "hush")
    payload = tool_call_payload({"userId": "u1", "score": 50})

    denied = client.post("/api/webhook", json=payload)
    allowed = client.post("/api/webhook", json=payload, headers={"x-vapi-secret": "hush"})

    assert denied.status_code == 401
    assert allowed.status_code == 200
    assert len(_rows(db)) == 1
