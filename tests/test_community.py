from datetime import datetime, timedelta

import pytest
import requests

from app.models.interview import InterviewResult
from app.services import community
from app.services.community import compute_community_stats, score_bucket


def _result(i, score, stack="General"):
    return InterviewResult(
        id=f"call-{i}",
        user_id="u1",
        tech_stack=stack,
        score=score,
        feedback="",
        created_at=datetime(2026, 1, 1) + timedelta(minutes=i),
    )


@pytest.mark.parametrize("score, bucket", [(0, 0), (19, 0), (20, 1), (79, 3), (80, 4), (100, 4)])
def test_score_bucket(score, bucket):
    assert score_bucket(score) == bucket


def test_empty_community_uses_defaults():
    stats = compute_community_stats([])
    assert stats["avg_score"] == 0
    assert stats["total_interviews"] == 0
    assert stats["top_stack"] == "Next.js"
    assert stats["score_distribution"] == [0, 0, 0, 0, 0]


def test_stats_aggregate_scores_and_stacks():
    results = [
        _result(6, 95, "React"),
        _result(5, 81, "React"),
        _result(4, None, "Go"),
        _result(3, 45, "Go"),
        _result(2, 30, "React"),
        _result(1, 10, "Python"),
    ]

    stats = compute_community_stats(results)

    assert stats["total_interviews"] == 6
    assert stats["avg_score"] == round((95 + 81 + 0 + 45 + 30 + 10) / 6)
    assert stats["score_distribution"] == [2, 1, 1, 0, 2]
    assert stats["top_stack"] == "React"
    assert stats["skill_heatmap"][0] == {"name": "React", "count": 3}
    assert [r.id for r in stats["recent_activity"]] == ["call-6", "call-5", "call-4", "call-3", "call-2"]


def test_stats_endpoint(client, auth_user):
    client.post(
        "/api/webhook",
        json={
            "message": {
                "type": "tool-calls",
                "call": {"id": "c1"},
                "toolCalls": [{"function": {"name": "evaluate_interview", "arguments": {"score": 64, "techStack": "Django"}}}],
            }
        },
    )

    resp = client.get("/api/community/stats", headers=auth_user["headers"])

    assert resp.status_code == 200
    body = resp.json()
    assert body["avg_score"] == 64
    assert body["top_stack"] == "Django"
    assert body["recent_activity"][0]["id"] == "c1"


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        return self._payload


def test_news_maps_hits(monkeypatch):
    payload = {
        "hits": [
            {"objectID": "1", "title": "Ship it", "url": "https://example.com/a", "points": 12, "author": "pg"},
            {"objectID": "2", "title": "Ask HN", "url": None, "points": None, "author": "dang"},
        ]
    }
    monkeypatch.setattr(community.requests, "get", lambda *a, **kw: _FakeResponse(payload))

    items = community._fetch_trending_news_sync("https://feed.test")

    assert items[0] == {"id": "1", "title": "Ship it", "url": "https://example.com/a", "score": 12, "by": "pg"}
    assert items[1]["url"] == "https://news.ycombinator.com/item?id=2"
    assert items[1]["score"] == 0


def test_news_failure_returns_empty_list(client, auth_user, monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(community.requests, "get", boom)

    resp = client.get("/api/community/news", headers=auth_user["headers"])

    assert resp.status_code == 200
    assert resp.json() == []
