"""Content report models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from modcore.common.types import ContentKind, ContentRef


class ReportCategory(str, Enum):
    spam = "spam"
    harassment = "harassment"
    hate_speech = "hate_speech"
    violence = "violence"
    illegal_content = "illegal_content"
    privacy_violation = "privacy_violation"
    copyright = "copyright"
    misinformation = "misinformation"
    other = "other"


class ReportStatus(str, Enum):
    pending = "pending"
    in_review = "in_review"
    resolved = "resolved"
    rejected = "rejected"

    @property
    def is_closed(self) -> bool:
        return self in (ReportStatus.resolved, ReportStatus.rejected)


class Resolution(str, Enum):
    no_action = "no_action"
    warning = "warning"
    content_removed = "content_removed"
    content_edited = "content_edited"
    user_suspended = "user_suspended"
    user_banned = "user_banned"


@dataclass
class Report:
    """A user's categorised report against a topic or comment."""

    id: int
    reporter_id: int
    content_type: ContentKind
    content_id: int
    category: ReportCategory
    reason: str
    additional_info: str = ""
    status: ReportStatus = ReportStatus.pending
    assignee_id: Optional[int] = None
    reviewer_id: Optional[int] = None
    reviewed_at: str = ""
    resolution: Optional[Resolution] = None
    resolution_notes: str = ""
    reporter_notified: bool = False
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.content_type, str):
            self.content_type = ContentKind(self.content_type)
        if isinstance(self.category, str):
            self.category = ReportCategory(self.category)
        if isinstance(self.status, str):
            self.status = ReportStatus(self.status)
        if isinstance(self.resolution, str):
            self.resolution = Resolution(self.resolution)

    @property
    def ref(self) -> ContentRef:
        return ContentRef(self.content_type, self.content_id)


@dataclass
class Evidence:
    id: int
    report_id: int
    evidence_type: str
    content: str = ""
    file_path: str = ""
    url: str = ""
    added_by: int = 0
    created_at: str = ""


@dataclass
class ReportComment:
    """A comment on a report.  Internal comments are for moderators only."""

    id: int
    report_id: int
    author_id: int
    body: str
    is_internal: bool = False
    created_at: str = ""


@dataclass
class ActionLog:
    id: int
    report_id: int
    actor_id: int
    action: str
    old_value: str = ""
    new_value: str = ""
    at: str = ""
