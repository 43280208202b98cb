"""Idempotent persistence of interview outcomes.

Every write is an upsert keyed by the voice platform's call id, so any number
of deliveries of the same termination signal (webhook retries, a duplicate
client event, or a webhook racing the client fallback) leaves exactly one
``InterviewResult`` row per call.
"""

import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.models.interview import (
    InterviewResult,
    STATUS_EVALUATED,
    STATUS_PENDING,
    SOURCE_WEBHOOK,
    SOURCE_CLIENT,
)
from app.models.user import User
from app.services.vapi_payload import (
    InterviewEvaluation,
    DEFAULT_USER_ID,
    DEFAULT_ROLE,
    DEFAULT_TECH_STACK,
    DEFAULT_LEVEL,
)

logger = logging.getLogger(__name__)

PENDING_FEEDBACK = "Evaluation pending. Your interviewer has not submitted a score yet."


class RecorderError(Exception):
    """Base class for result recording failures."""


class MissingIdempotencyKey(RecorderError):
    """Raised when a result arrives without a call id to key it by."""

    def __init__(self, message: str = "No Call ID found. Cannot prevent duplicates."):
        super().__init__(message)


def _require_key(call_id: Optional[str]) -> str:
    key = (call_id or "").strip()
    if not key:
        raise MissingIdempotencyKey()
    return key


def _bump_interview_count(db: Session, user_id: str) -> None:
    user = db.query(User).filter(User.id == user_id).first()
    if user:
        user.total_interviews = (user.total_interviews or 0) + 1


def _upsert(
    db: Session,
    key: str,
    fields: dict,
    *,
    fallback: bool = False,
) -> InterviewResult:
    """Insert ``fields`` under ``key`` or merge them into the existing row.

    ``created_at`` is never part of ``fields``; it is set by the column default
    on insert and left alone by merges. A ``fallback`` write never touches an
    evaluated row or a row owned by another user.
    """
    record = db.get(InterviewResult, key)
    if record is None:
        record = InterviewResult(id=key, **fields)
        db.add(record)
        _bump_interview_count(db, fields["user_id"])
        try:
            db.commit()
            db.refresh(record)
            return record
        except IntegrityError:
            # Another writer inserted the same key first; merge into theirs
            db.rollback()
            logger.info("[Recorder] Concurrent insert for %s, merging instead", key)
            record = db.get(InterviewResult, key)
            if record is None:
                raise

    if fallback and (record.status == STATUS_EVALUATED or record.user_id != fields["user_id"]):
        logger.info("[Recorder] %s already recorded, fallback write skipped", key)
        return record

    for name, value in fields.items():
        setattr(record, name, value)
    db.commit()
    db.refresh(record)
    return record


def record_evaluation(
    db: Session,
    call_id: Optional[str],
    evaluation: InterviewEvaluation,
) -> InterviewResult:
    """Persist an evaluation delivered by the voice platform.

    Raises :class:`MissingIdempotencyKey` without touching the store when no
    call id is available.
    """
    key = _require_key(call_id)
    user_id = evaluation.user_id
    if user_id == DEFAULT_USER_ID:
        # Keep the owner a client fallback already attributed this call to
        existing = db.get(InterviewResult, key)
        if existing is not None:
            user_id = existing.user_id
    fields = {
        "user_id": user_id,
        "role": evaluation.role,
        "tech_stack": evaluation.tech_stack,
        "level": evaluation.level,
        "score": evaluation.score,
        "feedback": evaluation.feedback,
        "status": STATUS_EVALUATED,
        "source": SOURCE_WEBHOOK,
    }
    record = _upsert(db, key, fields)
    logger.info("[Recorder] Idempotent save with id %s (score=%s)", key, record.score)
    return record


def record_pending(
    db: Session,
    call_id: Optional[str],
    user_id: str,
    role: Optional[str] = None,
    tech_stack: Optional[str] = None,
    level: Optional[str] = None,
) -> InterviewResult:
    """Persist a client-observed session end that has no evaluation yet.

    The row is explicitly marked pending with no score. A later webhook
    delivery for the same call overwrites it; an already evaluated row is
    never downgraded.
    """
    key = _require_key(call_id)
    fields = {
        "user_id": user_id,
        "role": role or DEFAULT_ROLE,
        "tech_stack": tech_stack or DEFAULT_TECH_STACK,
        "level": level or DEFAULT_LEVEL,
        "score": None,
        "feedback": PENDING_FEEDBACK,
        "status": STATUS_PENDING,
        "source": SOURCE_CLIENT,
    }
    record = _upsert(db, key, fields, fallback=True)
    logger.info("[Recorder] Pending record for %s saved (status=%s)", key, record.status)
    return record
