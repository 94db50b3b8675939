"""User trust engine.

Scores are authoritative in the store; every change to a component score
or a penalty counter re-derives the trust level in the same transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from modcore.common.deadline import Deadline, check_deadline
from modcore.common.storage import Storage
from modcore.common.types import Page, parse_enum, to_iso, utcnow
from modcore.errors import InvalidArgument
from modcore.moderators.registry import ModeratorRegistry
from modcore.trust.models import (
    TrustLevel,
    TrustScore,
    clamp_component,
    derive_level,
    weighted_score,
)
from modcore.trust.store import TrustStore


class TrustEngine:
    def __init__(
        self,
        storage: Storage,
        registry: ModeratorRegistry,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._store = TrustStore(storage)
        self._registry = registry
        self._clock = clock

    def get(self, user_id: int) -> TrustScore:
        """Return the user's score, creating the default record on first access."""
        with self._storage.transaction():
            score = self._store.get_by_user(user_id)
            if score is None:
                now = to_iso(self._clock())
                score = self._store.create(TrustScore(id=0, user_id=user_id, created_at=now, updated_at=now))
                logger.debug(f"Created default trust score for user {user_id}")
            return score

    def update_component_scores(
        self,
        caller: int,
        user_id: int,
        content_score: Optional[float] = None,
        community_score: Optional[float] = None,
        moderator_score: Optional[float] = None,
    ) -> TrustScore:
        """Set any of the three component scores (clamped to 0..100) and recompute."""
        self._registry.require_moderator(caller)
        for name, value in (
            ("content_score", content_score),
            ("community_score", community_score),
            ("moderator_score", moderator_score),
        ):
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise InvalidArgument(f"{name} must be a number")

        with self._storage.transaction():
            score = self.get(user_id)
            if content_score is not None:
                score.content_score = clamp_component(content_score)
            if community_score is not None:
                score.community_score = clamp_component(community_score)
            if moderator_score is not None:
                score.moderator_score = clamp_component(moderator_score)
            return self._recompute(score)

    def record_rejection(self, user_id: int) -> TrustScore:
        return self._bump(user_id, "content_rejections")

    def record_warning(self, user_id: int) -> TrustScore:
        return self._bump(user_id, "warning_count")

    def record_report(self, user_id: int) -> TrustScore:
        return self._bump(user_id, "report_count")

    def recalculate(self, user_id: int) -> TrustScore:
        with self._storage.transaction():
            return self._recompute(self.get(user_id))

    def list_by_level(
        self,
        caller: int,
        level: TrustLevel | str,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> Page[TrustScore]:
        self._registry.require_moderator(caller)
        check_deadline(deadline)
        wanted = parse_enum(TrustLevel, level, "trust level")
        scores = sorted(self._store.list_by_level(wanted), key=lambda s: (-s.trust_score, s.user_id))
        return Page.slice(scores, page, page_size)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _bump(self, user_id: int, counter: str) -> TrustScore:
        with self._storage.transaction():
            score = self.get(user_id)
            setattr(score, counter, getattr(score, counter) + 1)
            return self._recompute(score)

    def _recompute(self, score: TrustScore) -> TrustScore:
        now = to_iso(self._clock())
        score.trust_score = weighted_score(score.content_score, score.community_score, score.moderator_score)
        level = derive_level(score.adjusted_score, score.content_rejections, score.warning_count)
        if level != score.trust_level:
            logger.info(f"User {score.user_id} trust level {score.trust_level.value} -> {level.value}")
            score.trust_level = level
            score.last_score_update = now
        score.updated_at = now
        return self._store.save(score)
