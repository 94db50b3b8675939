"""Content reports: intake, evidence, comments, triage and resolution."""

from modcore.reports.models import (
    ActionLog,
    Evidence,
    Report,
    ReportCategory,
    ReportComment,
    ReportStatus,
    Resolution,
)
from modcore.reports.service import ReportService

__all__ = [
    "ActionLog",
    "Evidence",
    "Report",
    "ReportCategory",
    "ReportComment",
    "ReportService",
    "ReportStatus",
    "Resolution",
]
