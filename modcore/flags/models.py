"""Content flag models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from modcore.common.types import ContentKind, ContentRef


class FlagType(str, Enum):
    harassment = "harassment"
    hate_speech = "hate_speech"
    spam = "spam"
    off_topic = "off_topic"
    misleading = "misleading"
    inappropriate = "inappropriate"
    violent_content = "violent_content"
    illegal_content = "illegal_content"
    other = "other"


class FlagStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    approved = "approved"
    rejected = "rejected"


@dataclass
class Flag:
    """A user's complaint about a topic or comment."""

    id: int
    content_type: ContentKind
    content_id: int
    reporter_id: int
    flag_type: FlagType
    description: str = ""
    status: FlagStatus = FlagStatus.pending
    assignee_id: Optional[int] = None
    reviewer_id: Optional[int] = None
    reviewed_at: str = ""
    action_taken: str = ""
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.content_type, str):
            self.content_type = ContentKind(self.content_type)
        if isinstance(self.flag_type, str):
            self.flag_type = FlagType(self.flag_type)
        if isinstance(self.status, str):
            self.status = FlagStatus(self.status)

    @property
    def ref(self) -> ContentRef:
        return ContentRef(self.content_type, self.content_id)
