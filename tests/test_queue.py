"""Tests for the review queue."""

import tempfile
import threading

import pytest

from modcore.common.types import ContentRef
from modcore.config import Settings
from modcore.core import ModerationCore
from modcore.errors import Conflict, InvalidArgument, Unauthorized
from modcore.queue.models import QueueStatus
from modcore.rules.models import ModerationAction
from modcore.status.models import ContentStatus
from modcore.trust.models import TrustLevel

ADMIN = 1
MOD = 2
SUBMITTER = 9
COMMENT = ContentRef.of("comment", 101)


def _core(tmpdir: str) -> ModerationCore:
    core = ModerationCore(Settings(data_dir=tmpdir, admin_user_ids={ADMIN}))
    core.moderators.grant(ADMIN, MOD)
    return core


def test_resolve_rejected_updates_trust():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        score = core.trust.update_component_scores(ADMIN, SUBMITTER, 80, 70, 60)
        assert score.trust_score == 72
        assert score.trust_level == TrustLevel.member

        item = core.queue.add(COMMENT, SUBMITTER, "suspicious")
        core.queue.assign(ADMIN, item.id, MOD)
        resolved = core.queue.resolve(MOD, item.id, "rejected")

        assert resolved.status == QueueStatus.rejected
        assert resolved.reviewer_id == MOD
        score = core.trust.get(SUBMITTER)
        assert score.content_rejections == 1
        assert score.adjusted_score == 70
        assert score.trust_level == TrustLevel.member

        for _ in range(12):
            item = core.queue.add(COMMENT, SUBMITTER, "again")
            core.queue.resolve(MOD, item.id, "rejected")
        score = core.trust.get(SUBMITTER)
        assert score.content_rejections == 13
        assert score.adjusted_score < 50
        assert score.trust_level == TrustLevel.basic


def test_add_is_idempotent_while_pending():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        first = core.queue.add(COMMENT, SUBMITTER, "first")
        second = core.queue.add(COMMENT, SUBMITTER, "second", priority=5)
        assert second.id == first.id
        assert second.reason == "first"
        assert second.priority == 3


def test_concurrent_adds_yield_one_pending_item():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        ids = []

        def add():
            ids.append(core.queue.add(COMMENT, SUBMITTER, "race").id)

        threads = [threading.Thread(target=add) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(ids)) == 1
        assert core.queue.stats(MOD)["pending"] == 1


def test_priority_bounds():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        with pytest.raises(InvalidArgument):
            core.queue.add(COMMENT, SUBMITTER, "x", priority=0)
        with pytest.raises(InvalidArgument):
            core.queue.add(COMMENT, SUBMITTER, "x", priority=6)
        assert core.queue.add(COMMENT, SUBMITTER, "x").priority == 3


def test_list_orders_by_priority_then_age():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        low = core.queue.add(ContentRef.of("comment", 1), SUBMITTER, "low", priority=1)
        high = core.queue.add(ContentRef.of("comment", 2), SUBMITTER, "high", priority=5)
        mid_old = core.queue.add(ContentRef.of("comment", 3), SUBMITTER, "mid", priority=3)
        mid_new = core.queue.add(ContentRef.of("topic", 3), SUBMITTER, "mid", priority=3)

        page = core.queue.list(MOD, "pending")
        assert [i.id for i in page.items] == [high.id, mid_old.id, mid_new.id, low.id]

        page = core.queue.list(MOD, "pending", page=2, page_size=3)
        assert [i.id for i in page.items] == [low.id]
        assert page.pages == 2

        assert core.queue.list(MOD, "pending", page_size=500).page_size == 20


def test_list_all_and_filtered_status():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        a = core.queue.add(ContentRef.of("comment", 1), SUBMITTER, "a")
        core.queue.add(ContentRef.of("comment", 2), SUBMITTER, "b")
        core.queue.resolve(MOD, a.id, "approved")

        assert core.queue.list(MOD, "all").total == 2
        assert [i.id for i in core.queue.list(MOD, "approved").items] == [a.id]
        with pytest.raises(InvalidArgument):
            core.queue.list(MOD, "stale")


def test_assign_and_claim():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        item = core.queue.add(COMMENT, SUBMITTER, "x")

        with pytest.raises(InvalidArgument):
            core.queue.assign(MOD, item.id, SUBMITTER)
        with pytest.raises(Unauthorized):
            core.queue.claim(SUBMITTER, item.id)

        claimed = core.queue.claim(MOD, item.id)
        assert claimed.assignee_id == MOD
        assert claimed.status == QueueStatus.in_review


def test_decided_items_cannot_be_reassigned_or_resolved():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        item = core.queue.add(COMMENT, SUBMITTER, "x")
        core.queue.resolve(MOD, item.id, "approved", notes="fine")

        with pytest.raises(Conflict):
            core.queue.resolve(MOD, item.id, "rejected")
        with pytest.raises(Conflict):
            core.queue.assign(MOD, item.id, MOD)
        with pytest.raises(InvalidArgument):
            core.queue.resolve(MOD, core.queue.add(COMMENT, SUBMITTER, "y").id, "maybe")


def test_resolve_syncs_verdict_and_status():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        core.rules.create_rule(ADMIN, "profanity", "badword", severity=5)
        verdict = core.rules.filter_content("badword", "comment", SUBMITTER, content_id=COMMENT.id)

        item = core.queue.add(COMMENT, SUBMITTER, "rule hit", verdict_id=verdict.id)
        core.queue.resolve(MOD, item.id, "approved")

        synced = core.rules.get_verdict(verdict.id)
        assert synced.action == ModerationAction.approve
        assert not synced.automatically_processed
        assert synced.moderator_id == MOD
        assert core.status.get(COMMENT).status == ContentStatus.approved
        assert core.trust.get(SUBMITTER).content_rejections == 0


def test_resolve_survives_missing_verdict():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        item = core.queue.add(COMMENT, SUBMITTER, "x", verdict_id=999)
        resolved = core.queue.resolve(MOD, item.id, "rejected")
        assert resolved.status == QueueStatus.rejected
        assert core.status.get(COMMENT).status == ContentStatus.rejected


def test_stats():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        a = core.queue.add(ContentRef.of("comment", 1), SUBMITTER, "a")
        b = core.queue.add(ContentRef.of("comment", 2), SUBMITTER, "b")
        core.queue.add(ContentRef.of("comment", 3), SUBMITTER, "c")
        core.queue.claim(MOD, a.id)
        core.queue.resolve(MOD, b.id, "rejected")

        assert core.queue.stats(MOD) == {"total": 3, "pending": 1, "in_review": 1, "approved": 0, "rejected": 1}
        with pytest.raises(Unauthorized):
            core.queue.stats(SUBMITTER)
