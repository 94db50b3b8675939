"""Report intake, triage and resolution.

Reports move ``pending -> in_review -> resolved | rejected`` (a pending
report may also be rejected or resolved directly) and never leave a closed
state.  Every state-changing operation appends exactly one entry to the
report's action log inside the same transaction as the change.

Who may see a report: its reporter, its assignee and any moderator.
Internal comments are shown only to moderators and the report's reviewer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from modcore.collaborators import ContentDirectory, require_content
from modcore.common.deadline import Deadline, check_deadline
from modcore.common.storage import Storage
from modcore.common.types import ContentRef, Page, parse_enum, to_iso, utcnow
from modcore.common.validation import require_text
from modcore.errors import Conflict, Forbidden, InvalidArgument, NotFound
from modcore.moderators.registry import ModeratorRegistry
from modcore.penalties.engine import PenaltyEngine
from modcore.penalties.models import PenaltyType
from modcore.reports.models import (
    ActionLog,
    Evidence,
    Report,
    ReportCategory,
    ReportComment,
    ReportStatus,
    Resolution,
)
from modcore.reports.store import ReportStore
from modcore.status.models import ContentStatus
from modcore.status.service import StatusService
from modcore.trust.engine import TrustEngine

_OPEN = (ReportStatus.pending.value, ReportStatus.in_review.value)
_NEEDS_BAN_CAPABILITY = (Resolution.user_suspended, Resolution.user_banned)


class ReportService:
    def __init__(
        self,
        storage: Storage,
        registry: ModeratorRegistry,
        status: StatusService,
        trust: TrustEngine,
        penalties: PenaltyEngine,
        content: ContentDirectory,
        suspension_days: int = 7,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._store = ReportStore(storage)
        self._registry = registry
        self._status = status
        self._trust = trust
        self._penalties = penalties
        self._content = content
        self._suspension_days = suspension_days
        self._clock = clock

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def create(
        self,
        caller: int,
        ref: ContentRef,
        category: ReportCategory | str,
        reason: str,
        additional_info: str = "",
    ) -> Report:
        kind = parse_enum(ReportCategory, category, "category")
        require_text(reason, "reason")
        require_content(self._content, ref)
        now = to_iso(self._clock())
        with self._storage.transaction():
            duplicate = self._store.find(
                lambda r: r.get("reporter_id") == caller
                and r.get("content_type") == ref.kind.value
                and r.get("content_id") == ref.id
                and r.get("status") in _OPEN
            )
            if duplicate:
                raise Conflict(f"you already have an open report ({duplicate[0].id}) on this content")
            report = self._store.create(
                Report(
                    id=0,
                    reporter_id=caller,
                    content_type=ref.kind,
                    content_id=ref.id,
                    category=kind,
                    reason=reason,
                    additional_info=additional_info,
                    created_at=now,
                    updated_at=now,
                )
            )
            self._log(report.id, caller, "created", "", ReportStatus.pending.value)
        logger.info(f"User {caller} reported {ref} as {kind.value} (report {report.id})")
        return report

    def get(self, caller: int, report_id: int) -> Report:
        report = self._get(report_id)
        self._require_access(caller, report)
        return report

    def list_mine(
        self,
        caller: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> Page[Report]:
        check_deadline(deadline)
        return Page.slice(self._store.find(lambda r: r.get("reporter_id") == caller), page, page_size)

    def list_by_status(
        self,
        caller: int,
        status: ReportStatus | str = ReportStatus.pending,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> Page[Report]:
        self._registry.require_moderator(caller)
        check_deadline(deadline)
        wanted = parse_enum(ReportStatus, status, "report status")
        return Page.slice(self._store.find(lambda r: r.get("status") == wanted.value), page, page_size)

    def list_by_category(
        self,
        caller: int,
        category: ReportCategory | str,
        status: ReportStatus | str | None = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> Page[Report]:
        self._registry.require_moderator(caller)
        check_deadline(deadline)
        wanted = parse_enum(ReportCategory, category, "category")
        wanted_status = None if status is None else parse_enum(ReportStatus, status, "report status")
        reports = self._store.find(
            lambda r: r.get("category") == wanted.value
            and (wanted_status is None or r.get("status") == wanted_status.value)
        )
        return Page.slice(reports, page, page_size)

    def stats(self, caller: int) -> dict:
        """Counts per status and per category, read in one pass."""
        self._registry.require_moderator(caller)
        rows = self._store.all_rows()
        stats: dict = {"total": len(rows)}
        for status in ReportStatus:
            stats[status.value] = sum(1 for r in rows if r.get("status") == status.value)
        stats["by_category"] = {
            c.value: sum(1 for r in rows if r.get("category") == c.value) for c in ReportCategory
        }
        return stats

    # ------------------------------------------------------------------
    # Triage
    # ------------------------------------------------------------------

    def assign(self, caller: int, report_id: int, moderator_id: int) -> Report:
        """Assign the report; a pending report moves to ``in_review``."""
        self._registry.require_moderator(caller)
        if not self._registry.is_moderator(moderator_id):
            raise InvalidArgument(f"user {moderator_id} is not a moderator")
        with self._storage.transaction():
            report = self._get(report_id)
            if report.status.is_closed:
                raise Conflict(f"report {report_id} is already {report.status.value}")
            if report.assignee_id == moderator_id:
                raise Conflict(f"report {report_id} is already assigned to {moderator_id}")
            old = "none" if report.assignee_id is None else str(report.assignee_id)
            report.assignee_id = moderator_id
            if report.status == ReportStatus.pending:
                report.status = ReportStatus.in_review
            report.updated_at = to_iso(self._clock())
            self._store.save(report)
            self._log(report_id, caller, "assigned", old, str(moderator_id))
        logger.info(f"Report {report_id} assigned to {moderator_id} by {caller}")
        return report

    def update_status(self, caller: int, report_id: int, status: ReportStatus | str) -> Report:
        """Move a report to ``in_review`` or ``rejected``.  Use ``resolve`` to resolve."""
        self._registry.require_moderator(caller)
        target = parse_enum(ReportStatus, status, "report status")
        if target == ReportStatus.resolved:
            raise InvalidArgument("use resolve to resolve a report")
        if target == ReportStatus.pending:
            raise InvalidArgument("a report cannot be moved back to pending")

        with self._storage.transaction():
            report = self._get(report_id)
            old = report.status
            if old.is_closed:
                raise Conflict(f"report {report_id} is already {old.value}")
            if old == target:
                raise Conflict(f"report {report_id} is already {old.value}")
            now = to_iso(self._clock())
            report.status = target
            if report.assignee_id is None:
                report.assignee_id = caller
            if target == ReportStatus.rejected:
                report.reviewer_id = caller
                report.reviewed_at = now
            report.updated_at = now
            self._store.save(report)
            self._log(report_id, caller, "status_changed", old.value, target.value)
        logger.info(f"Report {report_id} {old.value} -> {target.value} by {caller}")
        return report

    def resolve(
        self,
        caller: int,
        report_id: int,
        resolution: Resolution | str,
        notes: str = "",
    ) -> Report:
        """Close the report with *resolution* and carry out its side effects.

        ``content_removed`` hides the content; ``warning``, ``user_suspended``
        and ``user_banned`` penalise the content's author.  Any resolution
        other than ``no_action`` counts against the author's trust score.
        Side effects are logged on failure and never undo the resolution.
        """
        self._registry.require_moderator(caller)
        outcome = parse_enum(Resolution, resolution, "resolution")
        if outcome in _NEEDS_BAN_CAPABILITY:
            self._registry.require(caller, "ban_users")

        with self._storage.transaction():
            report = self._get(report_id)
            old = report.status
            if old.is_closed:
                raise Conflict(f"report {report_id} is already {old.value}")
            now = to_iso(self._clock())
            report.status = ReportStatus.resolved
            report.resolution = outcome
            report.resolution_notes = notes
            report.reviewer_id = caller
            report.reviewed_at = now
            if report.assignee_id is None:
                report.assignee_id = caller
            report.updated_at = now
            self._store.save(report)
            self._log(report_id, caller, "resolved", old.value, outcome.value)
            logger.info(f"Report {report_id} resolved by {caller}: {outcome.value}")
            self._execute_resolution(report, outcome, caller)
        return report

    def mark_reporter_notified(self, caller: int, report_id: int) -> Report:
        self._registry.require_moderator(caller)
        with self._storage.transaction():
            report = self._get(report_id)
            if report.reporter_notified:
                return report
            report.reporter_notified = True
            report.updated_at = to_iso(self._clock())
            self._store.save(report)
            self._log(report_id, caller, "reporter_notified", "false", "true")
        return report

    def action_logs(self, caller: int, report_id: int) -> list[ActionLog]:
        self._registry.require_moderator(caller)
        self._get(report_id)
        return self._store.logs_for(report_id)

    # ------------------------------------------------------------------
    # Evidence
    # ------------------------------------------------------------------

    def add_evidence(
        self,
        caller: int,
        report_id: int,
        evidence_type: str,
        content: str = "",
        file_path: str = "",
        url: str = "",
    ) -> Evidence:
        require_text(evidence_type, "evidence type")
        if not (content or file_path or url):
            raise InvalidArgument("evidence needs content, a file path or a url")
        with self._storage.transaction():
            report = self._get(report_id)
            self._require_access(caller, report)
            evidence = self._store.add_evidence(
                Evidence(
                    id=0,
                    report_id=report_id,
                    evidence_type=evidence_type,
                    content=content,
                    file_path=file_path,
                    url=url,
                    added_by=caller,
                    created_at=to_iso(self._clock()),
                )
            )
            self._log(report_id, caller, "evidence_added", "", f"{evidence_type} evidence")
        return evidence

    def list_evidence(self, caller: int, report_id: int) -> list[Evidence]:
        self._require_access(caller, self._get(report_id))
        return self._store.evidence_for(report_id)

    def delete_evidence(self, caller: int, evidence_id: int) -> None:
        self._registry.require_moderator(caller)
        with self._storage.transaction():
            evidence = self._store.get_evidence(evidence_id)
            if evidence is None:
                raise NotFound(f"evidence {evidence_id} not found")
            self._store.delete_evidence(evidence_id)
            self._log(evidence.report_id, caller, "evidence_deleted", f"{evidence.evidence_type} evidence", "")

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(self, caller: int, report_id: int, body: str, is_internal: bool = False) -> ReportComment:
        require_text(body, "comment")
        with self._storage.transaction():
            report = self._get(report_id)
            self._require_access(caller, report)
            if is_internal and not self._registry.is_moderator(caller):
                raise Forbidden("only moderators can add internal comments")
            comment = self._store.add_comment(
                ReportComment(
                    id=0,
                    report_id=report_id,
                    author_id=caller,
                    body=body,
                    is_internal=is_internal,
                    created_at=to_iso(self._clock()),
                )
            )
            self._log(report_id, caller, "comment_added", "", body)
        return comment

    def list_comments(self, caller: int, report_id: int, include_internal: bool = False) -> list[ReportComment]:
        """Comments on the report; internal ones only for moderators and the reviewer."""
        report = self._get(report_id)
        self._require_access(caller, report)
        can_see_internal = self._registry.is_moderator(caller) or caller == report.reviewer_id
        comments = self._store.comments_for(report_id)
        if include_internal and can_see_internal:
            return comments
        return [c for c in comments if not c.is_internal]

    def delete_comment(self, caller: int, comment_id: int) -> None:
        with self._storage.transaction():
            comment = self._store.get_comment(comment_id)
            if comment is None:
                raise NotFound(f"comment {comment_id} not found")
            if comment.author_id != caller and not self._registry.is_moderator(caller):
                raise Forbidden("not allowed to delete this comment")
            self._store.delete_comment(comment_id)
            self._log(comment.report_id, caller, "comment_deleted", comment.body, "")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get(self, report_id: int) -> Report:
        report = self._store.get(report_id)
        if report is None:
            raise NotFound(f"report {report_id} not found")
        return report

    def _require_access(self, caller: int, report: Report) -> None:
        if caller in (report.reporter_id, report.assignee_id):
            return
        if not self._registry.is_moderator(caller):
            raise Forbidden("not allowed to access this report")

    def _log(self, report_id: int, actor: int, action: str, old: str, new: str) -> None:
        self._store.append_log(
            ActionLog(
                id=0,
                report_id=report_id,
                actor_id=actor,
                action=action,
                old_value=old,
                new_value=new,
                at=to_iso(self._clock()),
            )
        )

    def _execute_resolution(self, report: Report, outcome: Resolution, caller: int) -> None:
        if outcome == Resolution.no_action:
            return
        if outcome == Resolution.content_removed:
            try:
                self._status.set_status(
                    report.ref,
                    ContentStatus.hidden,
                    caller,
                    reason=f"Report resolved: {report.category.value}",
                    notes=report.resolution_notes,
                )
            except Exception:
                logger.exception(f"Failed to hide {report.ref} after report {report.id}")

        try:
            author = self._content.author_of(report.ref)
        except Exception:
            logger.exception(f"Author lookup failed for {report.ref}")
            return
        if author is None:
            logger.warning(f"No author known for {report.ref}; report {report.id} side effects skipped")
            return

        penalty = {
            Resolution.warning: (PenaltyType.warning, None),
            Resolution.user_suspended: (PenaltyType.suspension, self._suspension_days),
            Resolution.user_banned: (PenaltyType.ban, None),
        }.get(outcome)
        if penalty is not None:
            kind, days = penalty
            try:
                self._penalties.apply(
                    caller,
                    author,
                    kind,
                    reason=f"Report {report.id} upheld: {report.category.value}",
                    duration_days=days,
                    related_content=report.ref,
                )
            except Exception:
                logger.exception(f"Failed to apply {kind.value} to user {author} for report {report.id}")

        try:
            self._trust.record_report(author)
        except Exception:
            logger.exception(f"Failed to record upheld report against user {author}")
