from app.schemas.user import (
    UserCreate,
    UserResponse,
    UserProfileResponse,
    TokenResponse,
    RefreshTokenRequest,
)
from app.schemas.interview import (
    InterviewResultResponse,
    InterviewAnalysisResponse,
    FallbackResultRequest,
    SessionConfigResponse,
    CommunityStatsResponse,
    NewsItem,
)

__all__ = [
    "UserCreate",
    "UserResponse",
    "UserProfileResponse",
    "TokenResponse",
    "RefreshTokenRequest",
    "InterviewResultResponse",
    "InterviewAnalysisResponse",
    "FallbackResultRequest",
    "SessionConfigResponse",
    "CommunityStatsResponse",
    "NewsItem",
]
