from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User
from app.models.interview import InterviewResult
from app.schemas.user import (
    UserResponse,
    UserProfileResponse,
    ProfileUpdateRequest,
    PasswordUpdateRequest,
)
from app.dependencies import get_current_user
from app.services.auth import verify_password, get_password_hash

router = APIRouter(prefix="/api/users", tags=["users"])


def _build_profile(db: Session, user: User) -> UserProfileResponse:
    count, highest = (
        db.query(func.count(InterviewResult.id), func.max(InterviewResult.score))
        .filter(InterviewResult.user_id == user.id)
        .one()
    )
    return UserProfileResponse(
        user=UserResponse.model_validate(user),
        interviews_taken=count or 0,
        highest_score=highest or 0,
    )


@router.get("/profile", response_model=UserProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get current user's profile with interview stats."""
    return _build_profile(db, current_user)


@router.put("/profile", response_model=UserProfileResponse)
async def update_profile(
    update_data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update current user's profile."""
    if update_data.name is not None:
        if not update_data.name.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Name cannot be empty",
            )
        current_user.name = update_data.name.strip()

    db.commit()
    db.refresh(current_user)
    return _build_profile(db, current_user)


@router.put("/password")
async def update_password(
    update_data: PasswordUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update account password."""
    if not verify_password(update_data.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    if len(update_data.new_password) < 8:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password must be at least 8 characters",
        )

    current_user.hashed_password = get_password_hash(update_data.new_password)
    db.commit()
    return {"status": "ok"}
