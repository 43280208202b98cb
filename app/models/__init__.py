from app.models.user import User
from app.models.interview import InterviewResult

__all__ = ["User", "InterviewResult"]
