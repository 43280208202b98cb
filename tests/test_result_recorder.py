import pytest

from app.models.interview import InterviewResult, STATUS_EVALUATED, STATUS_PENDING
from app.models.user import User
from app.services.result_recorder import (
    MissingIdempotencyKey,
    PENDING_FEEDBACK,
    record_evaluation,
    record_pending,
)
from app.services.vapi_payload import InterviewEvaluation


def _evaluation(**kwargs):
    return InterviewEvaluation.from_arguments(kwargs)


@pytest.mark.parametrize("call_id", [None, "", "   "])
def test_missing_key_is_rejected_without_writing(db, call_id):
    with pytest.raises(MissingIdempotencyKey):
        record_evaluation(db, call_id, _evaluation(userId="u1", score=50))
    with pytest.raises(MissingIdempotencyKey):
        record_pending(db, call_id, user_id="u1")

    assert db.query(InterviewResult).count() == 0


def test_merge_keeps_created_at(db):
    first = record_evaluation(db, "call-1", _evaluation(userId="u1", score=10))
    created_at = first.created_at

    second = record_evaluation(db, "call-1", _evaluation(userId="u1", score=95, feedback="Much better"))

    assert second.created_at == created_at
    assert second.score == 95
    assert second.feedback == "Much better"
    assert db.query(InterviewResult).count() == 1


def test_pending_record_has_no_fabricated_score(db):
    record = record_pending(db, "call-2", user_id="u1", tech_stack="React")

    assert record.status == STATUS_PENDING
    assert record.score is None
    assert record.feedback == PENDING_FEEDBACK
    assert record.tech_stack == "React"


def test_webhook_after_fallback_upgrades_the_same_row(db):
    record_pending(db, "call-3", user_id="u1")

    record = record_evaluation(db, "call-3", _evaluation(userId="u1", score=77, feedback="Solid"))

    assert db.query(InterviewResult).count() == 1
    assert record.status == STATUS_EVALUATED
    assert record.score == 77


def test_fallback_after_webhook_does_not_downgrade(db):
    record_evaluation(db, "call-4", _evaluation(userId="u1", score=88))

    record = record_pending(db, "call-4", user_id="u1")

    assert db.query(InterviewResult).count() == 1
    assert record.status == STATUS_EVALUATED
    assert record.score == 88


def test_fallback_never_takes_over_another_users_call(db):
    record_pending(db, "call-5", user_id="owner")

    record = record_pending(db, "call-5", user_id="intruder")

    assert record.user_id == "owner"


def test_unattributed_evaluation_keeps_fallback_owner(db):
    record_pending(db, "call-6", user_id="u1")

    record = record_evaluation(db, "call-6", _evaluation(score=61))

    assert record.user_id == "u1"
    assert record.score == 61


def test_first_insert_counts_towards_user_total(db):
    user = User(id="u1", email="u1@example.com", hashed_password="x", name="U One")
    db.add(user)
    db.commit()

    record_pending(db, "call-7", user_id="u1")
    record_evaluation(db, "call-7", _evaluation(userId="u1", score=40))
    record_evaluation(db, "call-8", _evaluation(userId="u1", score=45))

    db.refresh(user)
    assert user.total_interviews == 2


def test_lost_insert_race_merges_into_the_winning_row(db, session_factory, monkeypatch):
    # The client fallback lands between the existence check and the insert
    real_get = db.get
    calls = []

    def get_after_concurrent_insert(model, key):
        calls.append(key)
        if len(calls) == 1:
            with session_factory() as other:
                record_pending(other, key, user_id="u1")
            return None
        return real_get(model, key)

    monkeypatch.setattr(db, "get", get_after_concurrent_insert)

    record = record_evaluation(db, "race-1", _evaluation(userId="u1", score=90, feedback="Great"))

    assert len(calls) == 2
    assert record.status == STATUS_EVALUATED
    assert record.score == 90
    rows = db.query(InterviewResult).all()
    assert [(r.id, r.status, r.score) for r in rows] == [("race-1", STATUS_EVALUATED, 90)]
