"""User penalty models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from modcore.common.types import ContentKind, ContentRef, from_iso


class PenaltyType(str, Enum):
    warning = "warning"
    suspension = "suspension"
    ban = "ban"
    restriction = "restriction"


class UserActionType(str, Enum):
    """Sanctions issued from the review flow; each maps onto a penalty type."""

    warning = "warning"
    temporary_ban = "temporary_ban"
    permanent_ban = "permanent_ban"

    @property
    def penalty_type(self) -> PenaltyType:
        return {
            UserActionType.warning: PenaltyType.warning,
            UserActionType.temporary_ban: PenaltyType.suspension,
            UserActionType.permanent_ban: PenaltyType.ban,
        }[self]


@dataclass
class Penalty:
    """A warning, suspension, ban or restriction applied to a user.

    ``action_type`` is set when the penalty was issued as a user moderation
    action, so both listings can share one table.
    """

    id: int
    user_id: int
    penalty_type: PenaltyType
    reason: str
    moderator_id: int
    description: str = ""
    duration_days: Optional[int] = None
    expires_at: str = ""
    is_active: bool = True
    related_content_type: Optional[ContentKind] = None
    related_content_id: Optional[int] = None
    action_type: Optional[UserActionType] = None
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.penalty_type, str):
            self.penalty_type = PenaltyType(self.penalty_type)
        if isinstance(self.related_content_type, str):
            self.related_content_type = ContentKind(self.related_content_type)
        if isinstance(self.action_type, str):
            self.action_type = UserActionType(self.action_type)

    @property
    def related_content(self) -> Optional[ContentRef]:
        if self.related_content_type is None or not self.related_content_id:
            return None
        return ContentRef(self.related_content_type, self.related_content_id)

    def is_effective(self, now: datetime) -> bool:
        """Active and not yet expired at *now*."""
        if not self.is_active:
            return False
        expires = from_iso(self.expires_at)
        return expires is None or expires > now
