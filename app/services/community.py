"""Community benchmarking over recent interview results."""

import asyncio
import logging
from collections import Counter
from typing import Optional
import requests
from sqlalchemy.orm import Session
from app.config import COMMUNITY_SAMPLE_SIZE, NEWS_FEED_URL
from app.models.interview import InterviewResult

logger = logging.getLogger(__name__)

DEFAULT_TOP_STACK = "Next.js"
HEATMAP_SIZE = 6
RECENT_ACTIVITY_SIZE = 5


def score_bucket(score: int) -> int:
    """Index into the five 20-point buckets; 100 lands in the last one."""
    return min(max(int(score), 0) // 20, 4)


def compute_community_stats(results: list[InterviewResult]) -> dict:
    """Aggregate a newest-first list of results into dashboard stats.

    Pending results (no score yet) count towards activity but score as 0,
    matching how the dashboards have always read a missing score.
    """
    stats = {
        "avg_score": 0,
        "total_interviews": 0,
        "top_stack": DEFAULT_TOP_STACK,
        "score_distribution": [0, 0, 0, 0, 0],
        "skill_heatmap": [],
        "recent_activity": [],
    }
    if not results:
        return stats

    scores = [int(r.score or 0) for r in results]
    for s in scores:
        stats["score_distribution"][score_bucket(s)] += 1

    # Counter keeps first-seen order for ties, i.e. the most recent stack wins
    stacks = Counter(r.tech_stack or "General" for r in results)
    heatmap = [
        {"name": name, "count": count}
        for name, count in stacks.most_common(HEATMAP_SIZE)
    ]

    stats.update(
        avg_score=int(round(sum(scores) / len(results))),
        total_interviews=len(results),
        top_stack=heatmap[0]["name"] if heatmap else DEFAULT_TOP_STACK,
        skill_heatmap=heatmap,
        recent_activity=results[:RECENT_ACTIVITY_SIZE],
    )
    return stats


def get_recent_results(db: Session, limit: int = COMMUNITY_SAMPLE_SIZE) -> list[InterviewResult]:
    return (
        db.query(InterviewResult)
        .order_by(InterviewResult.created_at.desc())
        .limit(limit)
        .all()
    )


def _fetch_trending_news_sync(url: str = NEWS_FEED_URL) -> list[dict]:
    """Synchronous version - use fetch_trending_news for async contexts."""
    try:
        resp = requests.get(url, timeout=10, headers={"Accept": "application/json"})
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("[Community] News fetch failed: %s", e)
        return []

    hits = data.get("hits") if isinstance(data, dict) else None
    if not isinstance(hits, list):
        return []

    items = []
    for story in hits:
        if not isinstance(story, dict) or not story.get("objectID"):
            continue
        object_id = str(story["objectID"])
        items.append(
            {
                "id": object_id,
                "title": story.get("title") or "(untitled)",
                "url": story.get("url") or f"https://news.ycombinator.com/item?id={object_id}",
                "score": int(story.get("points") or 0),
                "by": story.get("author"),
            }
        )
    return items


async def fetch_trending_news(url: Optional[str] = None) -> list[dict]:
    """Async wrapper to avoid blocking the event loop during the news fetch."""
    return await asyncio.to_thread(_fetch_trending_news_sync, url or NEWS_FEED_URL)
