"""Trust score models and the pure scoring formula."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

CONTENT_WEIGHT = 0.4
COMMUNITY_WEIGHT = 0.4
MODERATOR_WEIGHT = 0.2

REPORT_PENALTY = 5
WARNING_PENALTY = 10
REJECTION_PENALTY = 2

DEFAULT_COMPONENT_SCORE = 50.0


class TrustLevel(str, Enum):
    """Trust levels: leader > regular > member > basic > new_user."""

    new_user = "new_user"
    basic = "basic"
    member = "member"
    regular = "regular"
    leader = "leader"

    @property
    def level(self) -> int:
        """Return numeric level for comparison (higher = more trusted)."""
        return {
            TrustLevel.new_user: 0,
            TrustLevel.basic: 1,
            TrustLevel.member: 2,
            TrustLevel.regular: 3,
            TrustLevel.leader: 4,
        }[self]


@dataclass
class TrustScore:
    """Per-user trust standing."""

    id: int
    user_id: int
    content_score: float = DEFAULT_COMPONENT_SCORE
    community_score: float = DEFAULT_COMPONENT_SCORE
    moderator_score: float = DEFAULT_COMPONENT_SCORE
    trust_score: float = DEFAULT_COMPONENT_SCORE
    trust_level: TrustLevel = TrustLevel.new_user
    report_count: int = 0
    warning_count: int = 0
    content_rejections: int = 0
    last_score_update: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.trust_level, str):
            self.trust_level = TrustLevel(self.trust_level)

    @property
    def adjusted_score(self) -> float:
        return adjusted_score(self.trust_score, self.report_count, self.warning_count, self.content_rejections)


def clamp_component(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def weighted_score(content: float, community: float, moderator: float) -> float:
    score = (
        CONTENT_WEIGHT * clamp_component(content)
        + COMMUNITY_WEIGHT * clamp_component(community)
        + MODERATOR_WEIGHT * clamp_component(moderator)
    )
    return round(score, 4)


def adjusted_score(trust_score: float, report_count: int, warning_count: int, content_rejections: int) -> float:
    return round(
        trust_score
        - REPORT_PENALTY * report_count
        - WARNING_PENALTY * warning_count
        - REJECTION_PENALTY * content_rejections,
        4,
    )


def derive_level(adjusted: float, content_rejections: int, warning_count: int) -> TrustLevel:
    if adjusted >= 90 and content_rejections == 0 and warning_count == 0:
        return TrustLevel.leader
    if adjusted >= 75:
        return TrustLevel.regular
    if adjusted >= 50:
        return TrustLevel.member
    if adjusted >= 20:
        return TrustLevel.basic
    return TrustLevel.new_user
