"""Prioritised review queue.

Items move ``pending -> in_review -> approved | rejected``; a moderator may
also decide a pending item directly.  Resolving an item is the primary
write.  Syncing the attached verdict, the content's moderation status and
the submitter's trust score are secondary: their failures are logged and
never undo the decision.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from modcore.common.deadline import Deadline, check_deadline
from modcore.common.storage import Storage
from modcore.common.types import ContentRef, Page, parse_enum, to_iso, utcnow
from modcore.errors import Conflict, InvalidArgument, NotFound
from modcore.moderators.registry import ModeratorRegistry
from modcore.queue.models import MAX_PRIORITY, MIN_PRIORITY, QueueDecision, QueueItem, QueueStatus
from modcore.queue.store import QueueStore
from modcore.rules.engine import RuleEngine
from modcore.rules.models import ModerationAction
from modcore.status.models import ContentStatus
from modcore.status.service import StatusService
from modcore.trust.engine import TrustEngine

ALL = "all"


class ReviewQueue:
    def __init__(
        self,
        storage: Storage,
        registry: ModeratorRegistry,
        rules: RuleEngine,
        status: StatusService,
        trust: TrustEngine,
        default_priority: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._store = QueueStore(storage)
        self._registry = registry
        self._rules = rules
        self._status = status
        self._trust = trust
        self._default_priority = default_priority
        self._clock = clock

    def add(
        self,
        ref: ContentRef,
        submitter_id: int,
        reason: str,
        verdict_id: Optional[int] = None,
        priority: Optional[int] = None,
    ) -> QueueItem:
        """Queue *ref* for review, or return the pending item it already has."""
        if priority is None:
            priority = self._default_priority
        if isinstance(priority, bool) or not isinstance(priority, int) or not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            raise InvalidArgument(f"priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}")

        with self._storage.transaction():
            existing = self._store.pending_for(ref)
            if existing is not None:
                logger.debug(f"{ref} already has pending queue item {existing.id}")
                return existing
            now = to_iso(self._clock())
            item = self._store.create(
                QueueItem(
                    id=0,
                    content_type=ref.kind,
                    content_id=ref.id,
                    submitter_id=submitter_id,
                    reason=reason,
                    verdict_id=verdict_id,
                    priority=priority,
                    created_at=now,
                    updated_at=now,
                )
            )
        logger.info(f"Queued {ref} as item {item.id} (priority {priority}): {reason}")
        return item

    def get(self, caller: int, item_id: int) -> QueueItem:
        self._registry.require_moderator(caller)
        return self._get(item_id)

    def list(
        self,
        caller: int,
        status: QueueStatus | str = QueueStatus.pending,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> Page[QueueItem]:
        """List items in *status* (or ``"all"``), highest priority first."""
        self._registry.require_moderator(caller)
        check_deadline(deadline)
        wanted = None if status == ALL else parse_enum(QueueStatus, status, "queue status")
        return Page.slice(self._store.list(wanted), page, page_size)

    def assign(self, caller: int, item_id: int, moderator_id: int) -> QueueItem:
        self._registry.require_moderator(caller)
        if not self._registry.is_moderator(moderator_id):
            raise InvalidArgument(f"user {moderator_id} is not a moderator")
        with self._storage.transaction():
            item = self._get(item_id)
            if item.status.is_decided:
                raise Conflict(f"queue item {item_id} is already {item.status.value}")
            item.assignee_id = moderator_id
            if item.status == QueueStatus.pending:
                item.status = QueueStatus.in_review
            item.updated_at = to_iso(self._clock())
            self._store.save(item)
        logger.info(f"Queue item {item_id} assigned to {moderator_id} by {caller}")
        return item

    def claim(self, caller: int, item_id: int) -> QueueItem:
        return self.assign(caller, item_id, caller)

    def resolve(self, caller: int, item_id: int, decision: QueueDecision | str, notes: str = "") -> QueueItem:
        self._registry.require_moderator(caller)
        outcome = parse_enum(QueueDecision, decision, "decision")
        with self._storage.transaction():
            item = self._get(item_id)
            if item.status.is_decided:
                raise Conflict(f"queue item {item_id} is already {item.status.value}")
            now = to_iso(self._clock())
            item.status = QueueStatus(outcome.value)
            item.decision = outcome.value
            item.notes = notes
            item.reviewer_id = caller
            item.reviewed_at = now
            item.updated_at = now
            self._store.save(item)
            logger.info(f"Queue item {item_id} {outcome.value} by {caller}")
            self._after_resolve(item, outcome, caller, notes)
        return item

    def stats(self, caller: int) -> dict[str, int]:
        self._registry.require_moderator(caller)
        counts = self._store.count_by_status()
        return {"total": sum(counts.values()), **counts}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get(self, item_id: int) -> QueueItem:
        item = self._store.get(item_id)
        if item is None:
            raise NotFound(f"queue item {item_id} not found")
        return item

    def _after_resolve(self, item: QueueItem, outcome: QueueDecision, caller: int, notes: str) -> None:
        approved = outcome == QueueDecision.approved
        if item.verdict_id is not None:
            action = ModerationAction.approve if approved else ModerationAction.reject
            try:
                self._rules.mark_reviewed(item.verdict_id, caller, action)
            except Exception:
                logger.exception(f"Failed to sync verdict {item.verdict_id} for queue item {item.id}")

        status = ContentStatus.approved if approved else ContentStatus.rejected
        try:
            self._status.set_status(item.ref, status, caller, reason=item.reason, notes=notes)
        except Exception:
            logger.exception(f"Failed to update moderation status of {item.ref}")

        if not approved:
            try:
                self._trust.record_rejection(item.submitter_id)
            except Exception:
                logger.exception(f"Failed to record rejection for user {item.submitter_id}")
