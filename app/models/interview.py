from sqlalchemy import Column, Integer, String, DateTime, Text
from datetime import datetime
from app.database import Base

STATUS_EVALUATED = "Evaluated"
STATUS_PENDING = "Pending Evaluation"

SOURCE_WEBHOOK = "webhook"
SOURCE_CLIENT = "client"


class InterviewResult(Base):
    __tablename__ = "interviews"

    # The voice platform's call id; one row per call
    id = Column(String(128), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)

    # Classification
    role = Column(String(255), nullable=False, default="Technical Interview")
    tech_stack = Column(String(255), nullable=False, default="General")
    level = Column(String(50), nullable=False, default="Standard")

    # Evaluation
    score = Column(Integer, nullable=True)  # 0-100, null while pending
    feedback = Column(Text, nullable=False, default="No feedback provided.")
    status = Column(String(30), nullable=False, default=STATUS_EVALUATED)
    source = Column(String(20), nullable=False, default=SOURCE_WEBHOOK)

    # Timestamps; created_at is set on insert and never touched by merges
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
