from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.interview import CommunityStatsResponse, NewsItem
from app.services.community import (
    compute_community_stats,
    get_recent_results,
    fetch_trending_news,
)

router = APIRouter(prefix="/api/community", tags=["community"])


@router.get("/stats", response_model=CommunityStatsResponse)
async def get_community_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Benchmark stats over the most recent interviews across all users."""
    return compute_community_stats(get_recent_results(db))


@router.get("/news", response_model=list[NewsItem])
async def get_trending_news(current_user: User = Depends(get_current_user)):
    """Latest tech stories; empty when the feed is unreachable."""
    return await fetch_trending_news()
