"""Content moderation status lifecycle.

There is at most one status row per content item.  Creation is
check-then-insert inside a storage transaction, so concurrent creators
for the same item end up sharing one row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from modcore.common.storage import Storage
from modcore.common.types import ContentRef, parse_enum, to_iso, utcnow
from modcore.errors import NotFound
from modcore.moderators.registry import ModeratorRegistry
from modcore.status.models import ContentStatus, ModerationStatus, Visibility, visibility_for
from modcore.status.store import StatusStore


class StatusService:
    def __init__(
        self,
        storage: Storage,
        registry: ModeratorRegistry,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._store = StatusStore(storage)
        self._registry = registry
        self._clock = clock

    def upsert(
        self,
        caller: int,
        ref: ContentRef,
        status: ContentStatus | str,
        reason: str = "",
        notes: str = "",
    ) -> ModerationStatus:
        """Create or update the status of *ref*.  Any status may move to any other."""
        self._registry.require_moderator(caller)
        return self.set_status(ref, parse_enum(ContentStatus, status, "status"), caller, reason, notes)

    def set_status(
        self,
        ref: ContentRef,
        status: ContentStatus,
        moderator_id: Optional[int],
        reason: str = "",
        notes: str = "",
    ) -> ModerationStatus:
        """Upsert without an authority check; callers have already done theirs."""
        now = to_iso(self._clock())
        with self._storage.transaction():
            record = self._store.get_by_ref(ref)
            if record is None:
                record = self._store.create(
                    ModerationStatus(
                        id=0,
                        content_type=ref.kind,
                        content_id=ref.id,
                        status=status,
                        moderator_id=moderator_id,
                        reason=reason,
                        notes=notes,
                        created_at=now,
                        updated_at=now,
                    )
                )
            else:
                record.status = status
                record.moderator_id = moderator_id
                record.reason = reason
                record.notes = notes
                record.updated_at = now
                self._store.save(record)
        logger.info(f"Moderation status of {ref} set to {status.value} by {moderator_id}")
        return record

    def ensure_pending(self, ref: ContentRef, reason: str) -> tuple[ModerationStatus, bool]:
        """Create a pending status for *ref* unless one exists.  Returns ``(record, created)``."""
        with self._storage.transaction():
            existing = self._store.get_by_ref(ref)
            if existing is not None:
                return existing, False
            now = to_iso(self._clock())
            record = self._store.create(
                ModerationStatus(
                    id=0,
                    content_type=ref.kind,
                    content_id=ref.id,
                    status=ContentStatus.pending,
                    reason=reason,
                    created_at=now,
                    updated_at=now,
                )
            )
        logger.info(f"Created pending moderation status for {ref}")
        return record, True

    def find(self, ref: ContentRef) -> Optional[ModerationStatus]:
        return self._store.get_by_ref(ref)

    def get(self, ref: ContentRef) -> ModerationStatus:
        record = self._store.get_by_ref(ref)
        if record is None:
            raise NotFound(f"no moderation status for {ref}")
        return record

    def mark_user_notified(self, caller: int, ref: ContentRef) -> ModerationStatus:
        self._registry.require_moderator(caller)
        with self._storage.transaction():
            record = self.get(ref)
            record.user_notified = True
            record.updated_at = to_iso(self._clock())
            self._store.save(record)
        return record

    def pending_count(self, caller: int) -> int:
        self._registry.require_moderator(caller)
        return self._store.count_by_status(ContentStatus.pending)

    def visibility(self, ref: ContentRef, viewer: Optional[int], author: Optional[int]) -> Visibility:
        return visibility_for(
            self._store.get_by_ref(ref),
            viewer,
            author,
            viewer_is_moderator=viewer is not None and self._registry.is_moderator(viewer),
        )
