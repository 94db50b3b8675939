"""Penalty engine: warnings, suspensions, bans and posting restrictions.

Expiry is evaluated at query time against the injected clock; nothing
runs in the background to deactivate expired suspensions.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from loguru import logger

from modcore.common.deadline import Deadline, check_deadline
from modcore.common.storage import Storage
from modcore.common.types import ContentRef, Page, parse_enum, to_iso, utcnow
from modcore.common.validation import require_text
from modcore.errors import Conflict, Forbidden, InvalidArgument, NotFound
from modcore.moderators.registry import ModeratorRegistry
from modcore.penalties.models import Penalty, PenaltyType, UserActionType
from modcore.penalties.store import PenaltyStore
from modcore.trust.engine import TrustEngine

# Restriction reasons are reported in this order regardless of storage order.
_RESTRICTING = (PenaltyType.ban, PenaltyType.suspension, PenaltyType.restriction)


class PenaltyEngine:
    def __init__(
        self,
        storage: Storage,
        registry: ModeratorRegistry,
        trust: TrustEngine,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._store = PenaltyStore(storage)
        self._registry = registry
        self._trust = trust
        self._clock = clock

    # ------------------------------------------------------------------
    # Penalties
    # ------------------------------------------------------------------

    def apply(
        self,
        caller: int,
        user_id: int,
        penalty_type: PenaltyType | str,
        reason: str,
        description: str = "",
        duration_days: Optional[int] = None,
        related_content: Optional[ContentRef] = None,
        notes: str = "",
        action_type: Optional[UserActionType] = None,
    ) -> Penalty:
        """Apply a penalty to *user_id*.

        Parameters
        ----------
        penalty_type:
            ``suspension`` needs a positive ``duration_days`` and expires that
            many days from now.  ``ban`` never expires and takes no duration.
            ``warning`` and ``restriction`` expire only when a duration is given.
        """
        kind = parse_enum(PenaltyType, penalty_type, "penalty type")
        self._require_for(caller, kind)
        require_text(reason, "reason")
        if duration_days is not None and (isinstance(duration_days, bool) or not isinstance(duration_days, int)):
            raise InvalidArgument("duration_days must be an integer")
        if kind == PenaltyType.suspension and (duration_days is None or duration_days <= 0):
            raise InvalidArgument("suspension requires a positive duration_days")
        if kind == PenaltyType.ban and duration_days is not None:
            raise InvalidArgument("a ban is permanent; use a suspension for a limited duration")
        if duration_days is not None and duration_days <= 0:
            raise InvalidArgument("duration_days must be positive")

        now = self._clock()
        expires_at = to_iso(now + timedelta(days=duration_days)) if duration_days else ""
        with self._storage.transaction():
            penalty = self._store.create(
                Penalty(
                    id=0,
                    user_id=user_id,
                    penalty_type=kind,
                    reason=reason,
                    moderator_id=caller,
                    description=description,
                    duration_days=duration_days,
                    expires_at=expires_at,
                    related_content_type=related_content.kind if related_content else None,
                    related_content_id=related_content.id if related_content else None,
                    action_type=action_type,
                    notes=notes,
                    created_at=to_iso(now),
                    updated_at=to_iso(now),
                )
            )
        logger.info(f"Moderator {caller} applied {kind.value} penalty {penalty.id} to user {user_id}")

        if kind == PenaltyType.warning:
            try:
                self._trust.record_warning(user_id)
            except Exception:
                logger.exception(f"Failed to record warning in trust score of user {user_id}")
        return penalty

    def get(self, penalty_id: int) -> Penalty:
        penalty = self._store.get(penalty_id)
        if penalty is None:
            raise NotFound(f"penalty {penalty_id} not found")
        return penalty

    def list_by_user(
        self,
        caller: int,
        user_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> Page[Penalty]:
        self._require_self_or_moderator(caller, user_id)
        check_deadline(deadline)
        return Page.slice(self._store.for_user(user_id), page, page_size)

    def list_active(self, caller: int, user_id: Optional[int] = None) -> list[Penalty]:
        """Effective penalties, for one user or (moderators only) for everyone."""
        if user_id is None:
            self._registry.require_moderator(caller)
            candidates = self._store.find(lambda r: r.get("is_active", False))
        else:
            self._require_self_or_moderator(caller, user_id)
            candidates = self._store.for_user(user_id)
        now = self._clock()
        return [p for p in candidates if p.is_effective(now)]

    def history(self, caller: int, user_id: int) -> list[Penalty]:
        """Every penalty ever applied to *user_id*, active or not, newest first."""
        self._require_self_or_moderator(caller, user_id)
        return self._store.for_user(user_id)

    def remove(self, caller: int, penalty_id: int, reason: str = "") -> Penalty:
        with self._storage.transaction():
            penalty = self.get(penalty_id)
            self._require_for(caller, penalty.penalty_type)
            if not penalty.is_active:
                raise Conflict(f"penalty {penalty_id} is already inactive")
            now = self._clock()
            note = f"Revoked by moderator {caller} on {to_iso(now)} with reason: {reason}"
            penalty.notes = f"{penalty.notes}\n\n{note}" if penalty.notes else note
            penalty.is_active = False
            penalty.updated_at = to_iso(now)
            self._store.save(penalty)
        logger.info(f"Moderator {caller} removed penalty {penalty_id} from user {penalty.user_id}")
        return penalty

    def is_restricted(self, user_id: int) -> tuple[bool, str]:
        """Return ``(True, reason)`` if an effective ban, suspension or restriction exists."""
        now = self._clock()
        effective = [p for p in self._store.for_user(user_id) if p.is_effective(now)]
        for kind in _RESTRICTING:
            matching = [p for p in effective if p.penalty_type == kind]
            if not matching:
                continue
            if kind == PenaltyType.ban:
                return True, "User is permanently banned"
            if kind == PenaltyType.suspension:
                until = max(p.expires_at for p in matching)[:10]
                return True, f"User is suspended until {until}"
            return True, "User has posting restrictions"
        return False, ""

    # ------------------------------------------------------------------
    # User moderation actions
    # ------------------------------------------------------------------

    def create_action(
        self,
        caller: int,
        user_id: int,
        action_type: UserActionType | str,
        reason: str,
        duration_days: Optional[int] = None,
        related_content: Optional[ContentRef] = None,
        notes: str = "",
    ) -> Penalty:
        """Issue a warning, temporary ban or permanent ban from the review flow."""
        kind = parse_enum(UserActionType, action_type, "action type")
        if kind != UserActionType.temporary_ban:
            duration_days = None
        return self.apply(
            caller,
            user_id,
            kind.penalty_type,
            reason,
            duration_days=duration_days,
            related_content=related_content,
            notes=notes,
            action_type=kind,
        )

    def list_actions(self, caller: int, user_id: int) -> list[Penalty]:
        self._require_self_or_moderator(caller, user_id)
        return [p for p in self._store.for_user(user_id) if p.action_type is not None]

    def active_actions(self, caller: int, user_id: int) -> list[Penalty]:
        return [p for p in self.list_active(caller, user_id) if p.action_type is not None]

    def revoke_action(self, caller: int, action_id: int, reason: str = "") -> Penalty:
        if self.get(action_id).action_type is None:
            raise NotFound(f"user moderation action {action_id} not found")
        return self.remove(caller, action_id, reason)

    def is_banned(self, user_id: int) -> bool:
        """True while an effective temporary or permanent ban exists."""
        now = self._clock()
        return any(
            p.is_effective(now) and p.penalty_type in (PenaltyType.ban, PenaltyType.suspension)
            for p in self._store.for_user(user_id)
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_for(self, caller: int, kind: PenaltyType) -> None:
        if kind == PenaltyType.warning:
            self._registry.require_moderator(caller)
        else:
            self._registry.require(caller, "ban_users")

    def _require_self_or_moderator(self, caller: int, user_id: int) -> None:
        if caller != user_id and not self._registry.is_moderator(caller):
            raise Forbidden("cannot view another user's penalties")
