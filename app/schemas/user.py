from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    uid: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    plan: str
    total_interviews: int
    created_at: datetime

    class Config:
        from_attributes = True


class UserProfileResponse(BaseModel):
    user: UserResponse
    interviews_taken: int
    highest_score: int


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None


class PasswordUpdateRequest(BaseModel):
    current_password: str
    new_password: str
