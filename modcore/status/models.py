"""Content moderation status models and the visibility policy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from modcore.common.types import ContentKind, ContentRef


class ContentStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    hidden = "hidden"


@dataclass
class ModerationStatus:
    """The single authoritative moderation state of one content item."""

    id: int
    content_type: ContentKind
    content_id: int
    status: ContentStatus = ContentStatus.pending
    moderator_id: Optional[int] = None
    reason: str = ""
    notes: str = ""
    user_notified: bool = False
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.content_type, str):
            self.content_type = ContentKind(self.content_type)
        if isinstance(self.status, str):
            self.status = ContentStatus(self.status)

    @property
    def ref(self) -> ContentRef:
        return ContentRef(self.content_type, self.content_id)


@dataclass(frozen=True)
class Visibility:
    visible: bool
    caveat: str = ""


def visibility_for(
    status: Optional[ModerationStatus],
    viewer: Optional[int],
    author: Optional[int],
    viewer_is_moderator: bool = False,
) -> Visibility:
    """Decide whether *viewer* may see content in *status*.

    Moderators see everything.  Pending content is shown, with a caveat
    for its author.  Rejected content is shown only to its author, with the
    rejection reason.  Hidden content is shown to nobody else.
    """
    if status is None or viewer_is_moderator:
        return Visibility(True)
    is_author = viewer is not None and viewer == author
    if status.status == ContentStatus.approved:
        return Visibility(True)
    if status.status == ContentStatus.pending:
        return Visibility(True, "Awaiting moderation" if is_author else "")
    if status.status == ContentStatus.rejected and is_author:
        return Visibility(True, status.reason or "Rejected by a moderator")
    return Visibility(False)
