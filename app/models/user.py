import uuid
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from datetime import datetime
from app.database import Base


def _new_uid() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    # Opaque uid, also what the voice call binds as `userId`
    id = Column(String(64), primary_key=True, default=_new_uid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # User info
    name = Column(String(255), nullable=False)
    plan = Column(String(20), default="free", nullable=False)
    total_interviews = Column(Integer, default=0, nullable=False)

    # Status
    is_active = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

