from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class InterviewResultResponse(BaseModel):
    id: str
    user_id: str
    role: str
    tech_stack: str
    level: str
    score: Optional[int]
    feedback: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class InterviewAnalysisResponse(InterviewResultResponse):
    confidence: str  # "High" above 70, otherwise "Medium"


class FallbackResultRequest(BaseModel):
    call_id: Optional[str] = None
    role: Optional[str] = None
    tech_stack: Optional[str] = None
    level: Optional[str] = None


class SessionConfigResponse(BaseModel):
    assistant_id: str
    public_key: str
    variable_values: dict[str, str]


class StackCount(BaseModel):
    name: str
    count: int


class CommunityStatsResponse(BaseModel):
    avg_score: int
    total_interviews: int
    top_stack: str
    score_distribution: list[int]  # five buckets of 20 points each
    skill_heatmap: list[StackCount]
    recent_activity: list[InterviewResultResponse]


class NewsItem(BaseModel):
    id: str
    title: str
    url: str
    score: int
    by: Optional[str] = None
