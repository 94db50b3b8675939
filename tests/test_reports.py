"""Tests for report intake, triage, resolution, evidence and comments."""

import tempfile

import pytest

from modcore.collaborators import InMemoryContentDirectory
from modcore.common.types import ContentRef
from modcore.config import Settings
from modcore.core import ModerationCore
from modcore.errors import Conflict, Forbidden, InvalidArgument, NotFound, Unauthorized
from modcore.penalties.models import PenaltyType
from modcore.reports.models import ReportStatus, Resolution
from modcore.status.models import ContentStatus

ADMIN = 1
MOD = 2
REPORTER = 10
AUTHOR = 20
COMMENT = ContentRef.of("comment", 55)


def _core(tmpdir: str) -> ModerationCore:
    content = InMemoryContentDirectory()
    content.add(COMMENT, AUTHOR)
    core = ModerationCore(Settings(data_dir=tmpdir, admin_user_ids={ADMIN}), content=content)
    core.moderators.grant(ADMIN, MOD)
    return core


def _actions(core: ModerationCore, report_id: int) -> list[tuple[str, str, str]]:
    return [(e.action, e.old_value, e.new_value) for e in core.reports.action_logs(ADMIN, report_id)]


def test_internal_comments_hidden_from_reporter():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "harassment", "rude reply")
        core.reports.add_comment(REPORTER, report.id, "any news?")
        internal = core.reports.add_comment(MOD, report.id, "checking history", is_internal=True)

        for include in (False, True):
            seen = core.reports.list_comments(REPORTER, report.id, include_internal=include)
            assert [c.body for c in seen] == ["any news?"]

        seen = core.reports.list_comments(MOD, report.id, include_internal=True)
        assert internal.id in [c.id for c in seen]
        assert len(core.reports.list_comments(MOD, report.id)) == 1


def test_only_moderators_add_internal_comments():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        with pytest.raises(Forbidden):
            core.reports.add_comment(REPORTER, report.id, "secret", is_internal=True)
        with pytest.raises(Forbidden):
            core.reports.add_comment(AUTHOR, report.id, "let me in")


def test_create_validates_and_guards_duplicates():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        with pytest.raises(InvalidArgument):
            core.reports.create(REPORTER, COMMENT, "annoying", "x")
        with pytest.raises(InvalidArgument):
            core.reports.create(REPORTER, COMMENT, "spam", "  ")
        with pytest.raises(NotFound):
            core.reports.create(REPORTER, ContentRef.of("topic", 1), "spam", "x")

        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        assert report.status == ReportStatus.pending
        with pytest.raises(Conflict):
            core.reports.create(REPORTER, COMMENT, "spam", "ads again")
        assert core.reports.create(REPORTER + 1, COMMENT, "spam", "me too").id != report.id

        core.reports.update_status(MOD, report.id, "rejected")
        assert core.reports.create(REPORTER, COMMENT, "spam", "still there").id > report.id


def test_transitions_and_action_log():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")

        assigned = core.reports.assign(ADMIN, report.id, MOD)
        assert assigned.status == ReportStatus.in_review
        with pytest.raises(Conflict):
            core.reports.assign(ADMIN, report.id, MOD)
        with pytest.raises(Conflict):
            core.reports.update_status(MOD, report.id, "in_review")

        resolved = core.reports.resolve(MOD, report.id, "no_action", notes="not spam")
        assert resolved.status == ReportStatus.resolved
        assert resolved.resolution == Resolution.no_action
        assert resolved.reviewer_id == MOD

        assert _actions(core, report.id) == [
            ("created", "", "pending"),
            ("assigned", "none", str(MOD)),
            ("resolved", "in_review", "no_action"),
        ]


def test_closed_reports_never_reopen():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        core.reports.update_status(MOD, report.id, "rejected")

        with pytest.raises(Conflict):
            core.reports.update_status(MOD, report.id, "in_review")
        with pytest.raises(Conflict):
            core.reports.resolve(MOD, report.id, "warning")
        with pytest.raises(Conflict):
            core.reports.assign(MOD, report.id, ADMIN)
        with pytest.raises(InvalidArgument):
            core.reports.update_status(MOD, report.id, "pending")
        with pytest.raises(InvalidArgument):
            core.reports.update_status(MOD, report.id, "resolved")
        assert core.reports.get(REPORTER, report.id).status == ReportStatus.rejected


def test_update_status_assigns_caller():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        moved = core.reports.update_status(MOD, report.id, "in_review")
        assert moved.assignee_id == MOD
        assert _actions(core, report.id)[-1] == ("status_changed", "pending", "in_review")


def test_content_removed_hides_and_counts_against_author():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "hate_speech", "slurs")
        core.reports.resolve(MOD, report.id, "content_removed", notes="removed")

        status = core.status.get(COMMENT)
        assert status.status == ContentStatus.hidden
        assert status.reason == "Report resolved: hate_speech"
        assert core.trust.get(AUTHOR).report_count == 1


def test_warning_resolution_penalises_author():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "harassment", "rude")
        core.reports.resolve(MOD, report.id, "warning")

        penalties = core.penalties.history(ADMIN, AUTHOR)
        assert [p.penalty_type for p in penalties] == [PenaltyType.warning]
        assert penalties[0].related_content == COMMENT
        score = core.trust.get(AUTHOR)
        assert score.warning_count == 1
        assert score.report_count == 1


def test_suspension_resolution_needs_ban_users():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "violence", "threats")
        with pytest.raises(Unauthorized):
            core.reports.resolve(MOD, report.id, "user_suspended")
        assert core.reports.get(MOD, report.id).status == ReportStatus.pending

        core.reports.resolve(ADMIN, report.id, "user_suspended")
        restricted, reason = core.penalties.is_restricted(AUTHOR)
        assert restricted
        assert reason.startswith("User is suspended until")


def test_no_action_leaves_author_alone():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "other", "unsure")
        core.reports.resolve(MOD, report.id, "no_action")
        assert core.trust.get(AUTHOR).report_count == 0
        assert core.status.find(COMMENT) is None


def test_read_access():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        assert core.reports.get(REPORTER, report.id).id == report.id
        assert core.reports.get(MOD, report.id).id == report.id
        with pytest.raises(Forbidden):
            core.reports.get(AUTHOR, report.id)
        with pytest.raises(Forbidden):
            core.reports.list_evidence(AUTHOR, report.id)
        with pytest.raises(Unauthorized):
            core.reports.action_logs(REPORTER, report.id)


def test_evidence_lifecycle():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        evidence = core.reports.add_evidence(REPORTER, report.id, "screenshot", url="https://img.example/1.png")
        assert [e.id for e in core.reports.list_evidence(REPORTER, report.id)] == [evidence.id]

        with pytest.raises(InvalidArgument):
            core.reports.add_evidence(REPORTER, report.id, "note")
        with pytest.raises(Unauthorized):
            core.reports.delete_evidence(REPORTER, evidence.id)

        core.reports.delete_evidence(MOD, evidence.id)
        assert core.reports.list_evidence(REPORTER, report.id) == []
        with pytest.raises(NotFound):
            core.reports.delete_evidence(MOD, evidence.id)

        actions = _actions(core, report.id)
        assert actions[-2:] == [
            ("evidence_added", "", "screenshot evidence"),
            ("evidence_deleted", "screenshot evidence", ""),
        ]


def test_comment_deletion_rights():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        mine = core.reports.add_comment(REPORTER, report.id, "mine")
        theirs = core.reports.add_comment(MOD, report.id, "theirs")

        with pytest.raises(Forbidden):
            core.reports.delete_comment(REPORTER, theirs.id)
        core.reports.delete_comment(REPORTER, mine.id)
        core.reports.delete_comment(MOD, theirs.id)
        assert core.reports.list_comments(MOD, report.id, include_internal=True) == []


def test_notification_is_logged_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        report = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        core.reports.resolve(MOD, report.id, "no_action")
        assert core.reports.mark_reporter_notified(MOD, report.id).reporter_notified
        core.reports.mark_reporter_notified(MOD, report.id)
        assert [a for a in _actions(core, report.id) if a[0] == "reporter_notified"] == [
            ("reporter_notified", "false", "true")
        ]


def test_listings_and_stats():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        first = core.reports.create(REPORTER, COMMENT, "spam", "ads")
        core.reports.create(REPORTER + 1, COMMENT, "harassment", "rude")
        core.reports.create(REPORTER + 2, COMMENT, "spam", "more ads")
        core.reports.assign(ADMIN, first.id, MOD)

        assert core.reports.list_mine(REPORTER).total == 1
        assert core.reports.list_by_status(MOD, "pending").total == 2
        assert core.reports.list_by_category(MOD, "spam").total == 2
        assert core.reports.list_by_category(MOD, "spam", "in_review").total == 1
        with pytest.raises(Unauthorized):
            core.reports.list_by_status(REPORTER, "pending")

        stats = core.reports.stats(MOD)
        assert stats["total"] == 3
        assert stats["pending"] == 2
        assert stats["in_review"] == 1
        assert stats["by_category"]["spam"] == 2
        assert stats["by_category"]["copyright"] == 0
