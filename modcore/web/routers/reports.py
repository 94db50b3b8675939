"""Reports router -- intake, evidence, comments, triage and resolution."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from modcore.common.types import ContentRef, record_to_dict
from modcore.core import ModerationCore
from modcore.web.deps import Paging, get_caller, get_core
from modcore.web.schemas import (
    AddCommentRequest,
    AddEvidenceRequest,
    AssignRequest,
    CreateReportRequest,
    ResolveReportRequest,
    UpdateReportStatusRequest,
)

router = APIRouter(prefix="/api/reports", tags=["reports"])


# ---------------------------------------------------------------------------
# Intake and listing
# ---------------------------------------------------------------------------


@router.post("", status_code=status.HTTP_201_CREATED, summary="Report a topic or comment")
def create_report(
    body: CreateReportRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    ref = ContentRef.of(body.content_type, body.content_id)
    report = core.reports.create(caller, ref, body.category, body.reason, body.additional_info)
    return record_to_dict(report)


@router.get("/mine", summary="List the caller's own reports")
def list_my_reports(
    paging: Paging = Depends(),
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return core.reports.list_mine(caller, paging.page, paging.page_size).to_dict()


@router.get("", summary="List reports by status, optionally within a category")
def list_reports(
    report_status: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = None,
    paging: Paging = Depends(),
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    if category:
        page = core.reports.list_by_category(caller, category, report_status, paging.page, paging.page_size)
    else:
        page = core.reports.list_by_status(caller, report_status or "pending", paging.page, paging.page_size)
    return page.to_dict()


@router.get("/stats", summary="Report counts by status and category")
def report_stats(caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return core.reports.stats(caller)


@router.get("/{report_id}", summary="Get a report")
def get_report(report_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return record_to_dict(core.reports.get(caller, report_id))


# ---------------------------------------------------------------------------
# Triage
# ---------------------------------------------------------------------------


@router.post("/{report_id}/assign", summary="Assign a report to a moderator")
def assign_report(
    report_id: int,
    body: AssignRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.reports.assign(caller, report_id, body.moderator_id))


@router.post("/{report_id}/status", summary="Move a report to in_review or rejected")
def update_report_status(
    report_id: int,
    body: UpdateReportStatusRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.reports.update_status(caller, report_id, body.status))


@router.post("/{report_id}/resolve", summary="Resolve a report")
def resolve_report(
    report_id: int,
    body: ResolveReportRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.reports.resolve(caller, report_id, body.resolution, body.notes))


@router.post("/{report_id}/notified", summary="Record that the reporter was notified")
def mark_reporter_notified(
    report_id: int,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.reports.mark_reporter_notified(caller, report_id))


@router.get("/{report_id}/logs", summary="Action log of a report")
def report_logs(report_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return [record_to_dict(entry) for entry in core.reports.action_logs(caller, report_id)]


# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------


@router.post("/{report_id}/evidence", status_code=status.HTTP_201_CREATED, summary="Attach evidence")
def add_evidence(
    report_id: int,
    body: AddEvidenceRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    evidence = core.reports.add_evidence(
        caller, report_id, body.evidence_type, body.content, body.file_path, body.url
    )
    return record_to_dict(evidence)


@router.get("/{report_id}/evidence", summary="List evidence")
def list_evidence(report_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return [record_to_dict(e) for e in core.reports.list_evidence(caller, report_id)]


@router.delete("/evidence/{evidence_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete evidence")
def delete_evidence(evidence_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    core.reports.delete_evidence(caller, evidence_id)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.post("/{report_id}/comments", status_code=status.HTTP_201_CREATED, summary="Comment on a report")
def add_comment(
    report_id: int,
    body: AddCommentRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.reports.add_comment(caller, report_id, body.body, body.is_internal))


@router.get("/{report_id}/comments", summary="List comments")
def list_comments(
    report_id: int,
    include_internal: bool = False,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    comments = core.reports.list_comments(caller, report_id, include_internal)
    return [record_to_dict(c) for c in comments]


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a comment")
def delete_comment(comment_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    core.reports.delete_comment(caller, comment_id)
