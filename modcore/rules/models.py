"""Rule and filter-verdict models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class ModerationAction(str, Enum):
    """Outcomes of rule evaluation, least to most restrictive."""

    none = "none"
    approve = "approve"
    send_to_queue = "send_to_queue"
    automatic_filter = "automatic_filter"
    reject = "reject"
    warning = "warning"
    temporary_ban = "temporary_ban"
    permanent_ban = "permanent_ban"

    @property
    def rank(self) -> int:
        """Return the restrictiveness rank (higher = more restrictive)."""
        return list(ModerationAction).index(self)

    @classmethod
    def most_restrictive(cls, actions: Iterable[ModerationAction]) -> ModerationAction:
        return max(actions, key=lambda a: a.rank, default=cls.none)


class PatternType(str, Enum):
    regex = "regex"
    keywords = "keywords"


class AppliesTo(str, Enum):
    topic = "topic"
    comment = "comment"
    username = "username"


@dataclass
class Rule:
    """An automated moderation rule."""

    id: int
    name: str
    pattern: str
    pattern_type: PatternType = PatternType.keywords
    action: ModerationAction = ModerationAction.send_to_queue
    severity: int = 1
    applies_to: AppliesTo = AppliesTo.comment
    description: str = ""
    is_active: bool = True
    created_by: int = 0
    last_updated_by: int = 0
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.pattern_type, str):
            self.pattern_type = PatternType(self.pattern_type)
        if isinstance(self.action, str):
            self.action = ModerationAction(self.action)
        if isinstance(self.applies_to, str):
            self.applies_to = AppliesTo(self.applies_to)

    @property
    def keywords(self) -> list[str]:
        return [k.strip() for k in self.pattern.split(",") if k.strip()]


@dataclass
class FilterVerdict:
    """Outcome of evaluating a piece of text against the active rules.

    ``content_id`` is 0 until the verdict is attached to stored content.
    """

    id: int
    content: str
    content_type: AppliesTo
    user_id: int
    action: ModerationAction
    triggered_rule_ids: list[int] = field(default_factory=list)
    severity: int = 0
    content_id: int = 0
    filtered_content: str = ""
    cleaned_content: str = ""
    automatically_processed: bool = True
    moderator_id: Optional[int] = None
    reviewed_at: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.content_type, str):
            self.content_type = AppliesTo(self.content_type)
        if isinstance(self.action, str):
            self.action = ModerationAction(self.action)
