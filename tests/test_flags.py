"""Tests for flag intake and review."""

import tempfile

import pytest

from modcore.collaborators import InMemoryContentDirectory
from modcore.common.types import ContentRef
from modcore.config import Settings
from modcore.core import ModerationCore
from modcore.errors import Conflict, Forbidden, InvalidArgument, NotFound, Unauthorized
from modcore.flags.models import FlagStatus
from modcore.flags.service import FLAGGED_REASON
from modcore.status.models import ContentStatus

ADMIN = 1
MOD = 2
REPORTER = 10
AUTHOR = 20
TOPIC = ContentRef.of("topic", 77)


def _core(tmpdir: str) -> ModerationCore:
    content = InMemoryContentDirectory()
    content.add(TOPIC, AUTHOR)
    core = ModerationCore(Settings(data_dir=tmpdir, admin_user_ids={ADMIN}), content=content)
    core.moderators.grant(ADMIN, MOD, {"approve_content": True})
    return core


def test_flag_approval_hides_content():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        assert core.status.find(TOPIC) is None

        flag = core.flags.create(REPORTER, TOPIC, "spam")
        assert flag.status == FlagStatus.pending
        assert core.status.get(TOPIC).status == ContentStatus.pending

        reviewed = core.flags.review(MOD, flag.id, "approved", notes="clear spam")
        assert reviewed.status == FlagStatus.approved
        assert reviewed.reviewer_id == MOD
        assert reviewed.reviewed_at

        status = core.status.get(TOPIC)
        assert status.status == ContentStatus.hidden
        assert status.moderator_id == MOD
        assert status.reason == "Flag approved: spam"
        assert status.notes == "clear spam"


def test_flag_creates_pending_status_only_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        core.flags.create(REPORTER, TOPIC, "spam")
        first = core.status.get(TOPIC)
        assert first.reason == FLAGGED_REASON

        core.status.upsert(MOD, TOPIC, "approved", reason="looked fine")
        core.flags.create(REPORTER + 1, TOPIC, "off_topic")
        assert core.status.get(TOPIC).status == ContentStatus.approved


def test_flag_on_missing_content_is_not_found():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        with pytest.raises(NotFound):
            core.flags.create(REPORTER, ContentRef.of("comment", 5), "spam")


def test_flag_rejects_unknown_type_and_kind():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        with pytest.raises(InvalidArgument):
            core.flags.create(REPORTER, TOPIC, "rude")
        with pytest.raises(InvalidArgument):
            ContentRef.of("username", 77)


def test_approved_flag_counts_against_author():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        flag = core.flags.create(REPORTER, TOPIC, "harassment")
        core.flags.review(MOD, flag.id, "approved")
        assert core.trust.get(AUTHOR).report_count == 1


def test_rejected_flag_leaves_status_alone():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        first = core.flags.create(REPORTER, TOPIC, "spam")
        second = core.flags.create(REPORTER + 1, TOPIC, "spam")
        core.flags.review(MOD, first.id, "approved")
        core.flags.review(MOD, second.id, "rejected")

        assert core.status.get(TOPIC).status == ContentStatus.hidden
        assert core.trust.get(AUTHOR).report_count == 1


def test_review_is_one_way():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        flag = core.flags.create(REPORTER, TOPIC, "spam")
        with pytest.raises(InvalidArgument):
            core.flags.review(MOD, flag.id, "pending")

        core.flags.review(MOD, flag.id, "reviewed")
        with pytest.raises(Conflict):
            core.flags.review(MOD, flag.id, "approved")


def test_review_requires_moderator():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        flag = core.flags.create(REPORTER, TOPIC, "spam")
        with pytest.raises(Unauthorized):
            core.flags.review(REPORTER, flag.id, "approved")


def test_assign_keeps_status():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        flag = core.flags.create(REPORTER, TOPIC, "spam")

        assigned = core.flags.assign(ADMIN, flag.id, MOD)
        assert assigned.assignee_id == MOD
        assert assigned.status == FlagStatus.pending

        with pytest.raises(InvalidArgument):
            core.flags.assign(ADMIN, flag.id, REPORTER)


def test_get_is_limited_to_reporter_and_moderators():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        flag = core.flags.create(REPORTER, TOPIC, "spam")

        assert core.flags.get(REPORTER, flag.id).id == flag.id
        assert core.flags.get(MOD, flag.id).id == flag.id
        with pytest.raises(Forbidden):
            core.flags.get(AUTHOR, flag.id)


def test_list_by_content_and_status():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        first = core.flags.create(REPORTER, TOPIC, "spam")
        core.flags.create(REPORTER + 1, TOPIC, "misleading")
        core.flags.review(MOD, first.id, "rejected")

        assert len(core.flags.list_by_content(MOD, TOPIC)) == 2
        pending = core.flags.list_by_status(MOD, "pending")
        assert pending.total == 1
        assert pending.items[0].flag_type.value == "misleading"
        assert core.flags.list_by_status(MOD, None).total == 2
        with pytest.raises(Unauthorized):
            core.flags.list_by_status(REPORTER, "pending")


def test_failed_hide_does_not_undo_approval(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        flag = core.flags.create(REPORTER, TOPIC, "spam")

        def broken_set_status(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(core.status, "set_status", broken_set_status)
        reviewed = core.flags.review(MOD, flag.id, "approved")

        assert reviewed.status == FlagStatus.approved
        assert core.flags.get(MOD, flag.id).status == FlagStatus.approved
        assert core.status.get(TOPIC).status == ContentStatus.pending
        assert core.trust.get(AUTHOR).report_count == 1
