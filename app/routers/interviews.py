import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.config import VAPI_ASSISTANT_ID, VAPI_PUBLIC_KEY
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.models.interview import InterviewResult
from app.schemas.interview import (
    InterviewResultResponse,
    InterviewAnalysisResponse,
    FallbackResultRequest,
    SessionConfigResponse,
)
from app.services.result_recorder import record_pending, MissingIdempotencyKey

router = APIRouter(prefix="/api/interviews", tags=["interviews"])
logger = logging.getLogger(__name__)


@router.get("/session-config", response_model=SessionConfigResponse)
async def get_session_config(current_user: User = Depends(get_current_user)):
    """Everything a client needs to start a call attributed to this user."""
    if not VAPI_ASSISTANT_ID:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Voice assistant not configured",
        )
    return SessionConfigResponse(
        assistant_id=VAPI_ASSISTANT_ID,
        public_key=VAPI_PUBLIC_KEY,
        variable_values={"userId": current_user.id},
    )


@router.post("/fallback", response_model=InterviewResultResponse)
async def record_fallback_result(
    request: FallbackResultRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Record a client-observed session end ahead of the platform callback."""
    try:
        record = record_pending(
            db,
            call_id=request.call_id,
            user_id=current_user.id,
            role=request.role,
            tech_stack=request.tech_stack,
            level=request.level,
        )
    except MissingIdempotencyKey as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if record.user_id != current_user.id:
        # The key already belongs to someone else's call
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interview not found")
    return record


@router.get("", response_model=list[InterviewResultResponse])
async def list_interviews(
    limit: int = 50,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the current user's interview history, newest first."""
    return (
        db.query(InterviewResult)
        .filter(InterviewResult.user_id == current_user.id)
        .order_by(InterviewResult.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/{interview_id}", response_model=InterviewAnalysisResponse)
async def get_interview_analysis(
    interview_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the full analysis of one interview."""
    record = (
        db.query(InterviewResult)
        .filter(
            InterviewResult.id == interview_id,
            InterviewResult.user_id == current_user.id,
        )
        .first()
    )
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Interview not found",
        )

    analysis = InterviewResultResponse.model_validate(record).model_dump()
    analysis["confidence"] = "High" if (record.score or 0) > 70 else "Medium"
    return InterviewAnalysisResponse(**analysis)
