"""Review queue models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from modcore.common.types import ContentKind, ContentRef

MIN_PRIORITY = 1
MAX_PRIORITY = 5


class QueueStatus(str, Enum):
    pending = "pending"
    in_review = "in_review"
    approved = "approved"
    rejected = "rejected"

    @property
    def is_decided(self) -> bool:
        return self in (QueueStatus.approved, QueueStatus.rejected)


class QueueDecision(str, Enum):
    approved = "approved"
    rejected = "rejected"


@dataclass
class QueueItem:
    """One unit of human moderation work."""

    id: int
    content_type: ContentKind
    content_id: int
    submitter_id: int
    reason: str = ""
    verdict_id: Optional[int] = None
    status: QueueStatus = QueueStatus.pending
    priority: int = 3
    assignee_id: Optional[int] = None
    reviewer_id: Optional[int] = None
    reviewed_at: str = ""
    decision: str = ""
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.content_type, str):
            self.content_type = ContentKind(self.content_type)
        if isinstance(self.status, str):
            self.status = QueueStatus(self.status)

    @property
    def ref(self) -> ContentRef:
        return ContentRef(self.content_type, self.content_id)
