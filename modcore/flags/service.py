"""Flag intake and review.

Filing a flag creates a pending moderation status for the content if it
has none.  Approving a flag hides the content.  Rejecting one leaves the
status alone, including a ``hidden`` set by an earlier approval.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from modcore.collaborators import ContentDirectory, require_content
from modcore.common.deadline import Deadline, check_deadline
from modcore.common.storage import Storage
from modcore.common.types import ContentRef, Page, parse_enum, to_iso, utcnow
from modcore.errors import Conflict, Forbidden, InvalidArgument, NotFound
from modcore.flags.models import Flag, FlagStatus, FlagType
from modcore.flags.store import FlagStore
from modcore.moderators.registry import ModeratorRegistry
from modcore.status.models import ContentStatus
from modcore.status.service import StatusService
from modcore.trust.engine import TrustEngine

FLAGGED_REASON = "Content flagged by user"


class FlagService:
    def __init__(
        self,
        storage: Storage,
        registry: ModeratorRegistry,
        status: StatusService,
        trust: TrustEngine,
        content: ContentDirectory,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._store = FlagStore(storage)
        self._registry = registry
        self._status = status
        self._trust = trust
        self._content = content
        self._clock = clock

    def create(self, caller: int, ref: ContentRef, flag_type: FlagType | str, description: str = "") -> Flag:
        kind = parse_enum(FlagType, flag_type, "flag type")
        require_content(self._content, ref)
        now = to_iso(self._clock())
        with self._storage.transaction():
            flag = self._store.create(
                Flag(
                    id=0,
                    content_type=ref.kind,
                    content_id=ref.id,
                    reporter_id=caller,
                    flag_type=kind,
                    description=description,
                    created_at=now,
                    updated_at=now,
                )
            )
            try:
                self._status.ensure_pending(ref, FLAGGED_REASON)
            except Exception:
                logger.exception(f"Failed to create moderation status for flagged {ref}")
        logger.info(f"User {caller} flagged {ref} as {kind.value} (flag {flag.id})")
        return flag

    def list_by_content(self, caller: int, ref: ContentRef) -> list[Flag]:
        self._registry.require_moderator(caller)
        require_content(self._content, ref)
        return self._store.find(lambda r: r.get("content_type") == ref.kind.value and r.get("content_id") == ref.id)

    def list_by_status(
        self,
        caller: int,
        status: FlagStatus | str | None = FlagStatus.pending,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> Page[Flag]:
        """List flags in *status*; ``None`` lists every flag."""
        self._registry.require_moderator(caller)
        check_deadline(deadline)
        if status is None:
            flags = self._store.find(lambda r: True)
        else:
            wanted = parse_enum(FlagStatus, status, "flag status")
            flags = self._store.find(lambda r: r.get("status") == wanted.value)
        return Page.slice(flags, page, page_size)

    def get(self, caller: int, flag_id: int) -> Flag:
        flag = self._get(flag_id)
        if flag.reporter_id != caller and not self._registry.is_moderator(caller):
            raise Forbidden("not allowed to view this flag")
        return flag

    def assign(self, caller: int, flag_id: int, moderator_id: int) -> Flag:
        """Set the flag's assignee.  The status is left unchanged."""
        self._registry.require_moderator(caller)
        if not self._registry.is_moderator(moderator_id):
            raise InvalidArgument(f"user {moderator_id} is not a moderator")
        with self._storage.transaction():
            flag = self._get(flag_id)
            flag.assignee_id = moderator_id
            flag.updated_at = to_iso(self._clock())
            self._store.save(flag)
        logger.info(f"Flag {flag_id} assigned to {moderator_id} by {caller}")
        return flag

    def review(
        self,
        caller: int,
        flag_id: int,
        status: FlagStatus | str,
        action_taken: str = "",
        notes: str = "",
    ) -> Flag:
        self._registry.require_moderator(caller)
        outcome = parse_enum(FlagStatus, status, "flag status")
        if outcome == FlagStatus.pending:
            raise InvalidArgument("a flag cannot be reviewed back to pending")

        with self._storage.transaction():
            flag = self._get(flag_id)
            if flag.status != FlagStatus.pending:
                raise Conflict(f"flag {flag_id} is already {flag.status.value}")
            now = to_iso(self._clock())
            flag.status = outcome
            flag.reviewer_id = caller
            flag.reviewed_at = now
            flag.action_taken = action_taken
            flag.notes = notes
            flag.updated_at = now
            self._store.save(flag)

            if outcome == FlagStatus.approved:
                self._hide_content(flag, caller)
                self._record_author_report(flag.ref)
        logger.info(f"Flag {flag_id} reviewed by {caller}: {outcome.value}")
        return flag

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get(self, flag_id: int) -> Flag:
        flag = self._store.get(flag_id)
        if flag is None:
            raise NotFound(f"flag {flag_id} not found")
        return flag

    def _hide_content(self, flag: Flag, caller: int) -> None:
        try:
            self._status.set_status(
                flag.ref,
                ContentStatus.hidden,
                caller,
                reason=f"Flag approved: {flag.flag_type.value}",
                notes=flag.notes,
            )
        except Exception:
            logger.exception(f"Failed to hide {flag.ref} after flag {flag.id}")

    def _record_author_report(self, ref: ContentRef) -> None:
        try:
            author = self._content.author_of(ref)
            if author is None:
                logger.warning(f"No author known for {ref}; trust score not updated")
                return
            self._trust.record_report(author)
        except Exception:
            logger.exception(f"Failed to record upheld flag against author of {ref}")
