"""Tests for the HTTP adapter."""

import tempfile

from fastapi.testclient import TestClient

from modcore.collaborators import InMemoryContentDirectory
from modcore.common.types import ContentRef
from modcore.config import Settings
from modcore.core import ModerationCore
from modcore.web import create_app

ADMIN = 1
MOD = 2
REPORTER = 10
AUTHOR = 20


def _client(tmpdir: str) -> TestClient:
    content = InMemoryContentDirectory()
    content.add(ContentRef.of("topic", 77), AUTHOR)
    core = ModerationCore(Settings(data_dir=tmpdir, admin_user_ids={ADMIN}), content=content)
    core.moderators.grant(ADMIN, MOD, {"ban_users": True, "manage_rules": True})
    return TestClient(create_app(core))


def _as(user_id: int) -> dict:
    return {"X-User-Id": str(user_id)}


def test_health_and_root():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _client(tmpdir)
        assert client.get("/health").json()["status"] == "ok"
        assert client.get("/").json()["docs"] == "/docs"


def test_missing_caller_is_unauthorized():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _client(tmpdir)
        resp = client.post("/api/flags", json={"content_type": "topic", "content_id": 77, "flag_type": "spam"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthorized"


def test_errors_map_to_code_and_status():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _client(tmpdir)
        resp = client.get("/api/reports/999", headers=_as(MOD))
        assert resp.status_code == 404
        assert resp.json() == {"code": "not_found", "message": "report 999 not found"}

        resp = client.post(
            "/api/flags",
            json={"content_type": "topic", "content_id": 77, "flag_type": "rude"},
            headers=_as(REPORTER),
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_argument"


def test_flag_flow_over_http():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _client(tmpdir)
        resp = client.post(
            "/api/flags",
            json={"content_type": "topic", "content_id": 77, "flag_type": "spam"},
            headers=_as(REPORTER),
        )
        assert resp.status_code == 201
        flag_id = resp.json()["id"]

        resp = client.post(f"/api/flags/{flag_id}/review", json={"status": "approved", "notes": "clear spam"}, headers=_as(MOD))
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"

        status = client.get("/api/moderation/status/topic/77", headers=_as(REPORTER)).json()
        assert status["status"] == "hidden"
        assert status["reason"] == "Flag approved: spam"

        resp = client.post(f"/api/flags/{flag_id}/review", json={"status": "rejected"}, headers=_as(MOD))
        assert resp.status_code == 409


def test_paged_listing_shape():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _client(tmpdir)
        for content_id in range(1, 4):
            client.post(
                "/api/moderation/queue",
                json={"content_type": "comment", "content_id": content_id, "submitter_id": AUTHOR, "reason": "check"},
                headers=_as(MOD),
            )
        body = client.get("/api/moderation/queue?page=2&pageSize=2", headers=_as(MOD)).json()
        assert body["total"] == 3
        assert body["page"] == 2
        assert body["pageSize"] == 2
        assert body["pages"] == 2
        assert len(body["items"]) == 1

        stats = client.get("/api/moderation/queue/stats", headers=_as(MOD)).json()
        assert stats["pending"] == 3


def test_rules_words_and_filter_endpoints():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _client(tmpdir)
        resp = client.post(
            "/api/moderation/rules",
            json={"name": "profanity", "pattern": "badword", "severity": 5},
            headers=_as(MOD),
        )
        assert resp.status_code == 201
        resp = client.post(
            "/api/moderation/words",
            json={"word": "heck", "replacement": "***", "is_auto_replace": True},
            headers=_as(MOD),
        )
        assert resp.status_code == 201

        filtered = client.post("/api/moderation/words/filter", json={"text": "Heck no"}).json()
        assert filtered == {"cleaned": "*** no", "was_filtered": True, "matched_terms": ["heck"]}

        verdict = client.post(
            "/api/moderation/filter",
            json={"content": "badword heck", "content_type": "comment", "content_id": 9},
            headers=_as(AUTHOR),
        ).json()
        assert verdict["action"] == "send_to_queue"
        assert verdict["cleaned_content"] == "badword ***"

        mine = client.get(f"/api/moderation/filter/results/user/{AUTHOR}", headers=_as(AUTHOR)).json()
        assert mine["total"] == 1
        assert client.get(f"/api/moderation/filter/results/user/{AUTHOR}", headers=_as(REPORTER)).status_code == 403

        clean = client.post(
            "/api/moderation/filter",
            json={"content": "hello", "content_type": "comment"},
            headers=_as(AUTHOR),
        )
        assert clean.status_code == 200
        assert clean.json() is None


def test_user_endpoints():
    with tempfile.TemporaryDirectory() as tmpdir:
        client = _client(tmpdir)
        resp = client.put(
            f"/api/users/{AUTHOR}/trust",
            json={"content_score": 80, "community_score": 70, "moderator_score": 60},
            headers=_as(MOD),
        )
        assert resp.json()["trust_level"] == "member"
        assert resp.json()["adjusted_score"] == 72

        resp = client.post(
            f"/api/users/{AUTHOR}/penalties",
            json={"penalty_type": "suspension", "reason": "abuse", "duration_days": 3},
            headers=_as(MOD),
        )
        assert resp.status_code == 201
        penalty_id = resp.json()["id"]

        restriction = client.get(f"/api/users/{AUTHOR}/restriction").json()
        assert restriction["restricted"]
        assert client.get(f"/api/users/{AUTHOR}/banned").json() == {"banned": True}

        resp = client.post(f"/api/penalties/{penalty_id}/remove", json={"reason": "appeal"}, headers=_as(MOD))
        assert resp.json()["is_active"] is False
        assert client.get(f"/api/users/{AUTHOR}/restriction").json() == {"restricted": False, "reason": ""}

        resp = client.post("/api/moderators", json={"user_id": 5, "capabilities": {"approve_content": True}}, headers=_as(ADMIN))
        assert resp.status_code == 201
        assert resp.json()["capabilities"]["approve_content"] is True
        assert client.post("/api/moderators", json={"user_id": 6}, headers=_as(MOD)).status_code == 401


def test_status_and_trust_reads_need_a_caller():
    with tempfile.TemporaryDirectory() as tmpdir:
        content = InMemoryContentDirectory()
        content.add(ContentRef.of("topic", 77), AUTHOR)
        core = ModerationCore(Settings(data_dir=tmpdir, admin_user_ids={ADMIN}), content=content)
        client = TestClient(create_app(core))
        core.flags.create(REPORTER, ContentRef.of("topic", 77), "spam")

        assert client.get("/api/moderation/status/topic/77").status_code == 401
        assert client.get("/api/moderation/status/topic/77", headers=_as(REPORTER)).json()["status"] == "pending"

        assert client.get(f"/api/users/{AUTHOR}/trust").status_code == 401
        resp = client.get("/api/users/555/trust", headers=_as(REPORTER))
        assert resp.status_code == 403
        assert resp.json()["code"] == "forbidden"
        assert core.storage.table("user_trust_scores").find(lambda r: r.get("user_id") == 555) == []

        assert client.get(f"/api/users/{REPORTER}/trust", headers=_as(REPORTER)).json()["trust_level"] == "new_user"
        assert client.get(f"/api/users/{AUTHOR}/trust", headers=_as(ADMIN)).status_code == 200
