"""Storage for reports, their evidence and comments, and the action log.

Tables: ``content_reports.json``, ``report_evidence.json``,
``report_comments.json``.  The action log is append-only
``report_action_logs.jsonl``.
"""

from __future__ import annotations

from typing import Callable, Optional

from modcore.common.storage import Storage
from modcore.common.types import record_from_dict, record_to_dict
from modcore.reports.models import ActionLog, Evidence, Report, ReportComment


class ReportStore:
    def __init__(self, storage: Storage) -> None:
        self._reports = storage.table("content_reports")
        self._evidence = storage.table("report_evidence")
        self._comments = storage.table("report_comments")
        self._logs = storage.log("report_action_logs")

    # -- reports -------------------------------------------------------------

    def get(self, report_id: int) -> Optional[Report]:
        row = self._reports.get(report_id)
        return record_from_dict(Report, row) if row else None

    def find(self, predicate: Callable[[dict], bool]) -> list[Report]:
        """Newest first."""
        rows = sorted(self._reports.find(predicate), key=lambda r: r["id"], reverse=True)
        return [record_from_dict(Report, r) for r in rows]

    def all_rows(self) -> list[dict]:
        return self._reports.all()

    def create(self, report: Report) -> Report:
        row = record_to_dict(report)
        row.pop("id")
        return record_from_dict(Report, self._reports.insert(row))

    def save(self, report: Report) -> Report:
        self._reports.update(report.id, record_to_dict(report))
        return report

    # -- evidence ------------------------------------------------------------

    def get_evidence(self, evidence_id: int) -> Optional[Evidence]:
        row = self._evidence.get(evidence_id)
        return record_from_dict(Evidence, row) if row else None

    def evidence_for(self, report_id: int) -> list[Evidence]:
        rows = sorted(self._evidence.find(lambda r: r.get("report_id") == report_id), key=lambda r: r["id"])
        return [record_from_dict(Evidence, r) for r in rows]

    def add_evidence(self, evidence: Evidence) -> Evidence:
        row = record_to_dict(evidence)
        row.pop("id")
        return record_from_dict(Evidence, self._evidence.insert(row))

    def delete_evidence(self, evidence_id: int) -> bool:
        return self._evidence.delete(evidence_id)

    # -- comments ------------------------------------------------------------

    def get_comment(self, comment_id: int) -> Optional[ReportComment]:
        row = self._comments.get(comment_id)
        return record_from_dict(ReportComment, row) if row else None

    def comments_for(self, report_id: int) -> list[ReportComment]:
        rows = sorted(self._comments.find(lambda r: r.get("report_id") == report_id), key=lambda r: r["id"])
        return [record_from_dict(ReportComment, r) for r in rows]

    def add_comment(self, comment: ReportComment) -> ReportComment:
        row = record_to_dict(comment)
        row.pop("id")
        return record_from_dict(ReportComment, self._comments.insert(row))

    def delete_comment(self, comment_id: int) -> bool:
        return self._comments.delete(comment_id)

    # -- action log ----------------------------------------------------------

    def append_log(self, entry: ActionLog) -> ActionLog:
        row = record_to_dict(entry)
        row.pop("id")
        return record_from_dict(ActionLog, self._logs.append(row))

    def logs_for(self, report_id: int) -> list[ActionLog]:
        return [record_from_dict(ActionLog, e) for e in self._logs.read() if e.get("report_id") == report_id]
