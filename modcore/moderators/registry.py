"""Moderator registry and authority checks.

Authority comes from two places: the configured admin user ids, which
pass every check, and active ``ModeratorPrivilege`` rows.  Privileges are
read on nearly every request, so the registry keeps an in-process
snapshot keyed on the ``moderator_privileges`` generation and rebuilds it
whenever a writer bumps the counter.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from loguru import logger

from modcore.common.storage import Storage
from modcore.common.types import to_iso, utcnow
from modcore.errors import Conflict, InvalidArgument, NotFound, Unauthorized
from modcore.moderators.models import Capabilities, ModeratorPrivilege
from modcore.moderators.store import PrivilegeStore


class ModeratorRegistry:
    """Grant, update and revoke moderator privileges; answer authority checks."""

    def __init__(
        self,
        storage: Storage,
        admin_user_ids: Iterable[int] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._store = PrivilegeStore(storage)
        self._admins = frozenset(admin_user_ids)
        self._clock = clock
        self._cache_lock = threading.Lock()
        self._cache: Optional[tuple[int, dict[int, ModeratorPrivilege]]] = None

    # ------------------------------------------------------------------
    # Authority checks
    # ------------------------------------------------------------------

    def is_admin(self, user_id: int) -> bool:
        return user_id in self._admins

    def is_moderator(self, user_id: int) -> bool:
        if self.is_admin(user_id):
            return True
        privilege = self._snapshot().get(user_id)
        return privilege is not None and privilege.is_active

    def has_capability(self, user_id: int, capability: str) -> bool:
        if capability not in Capabilities.names():
            raise InvalidArgument(f"unknown capability: {capability}")
        if self.is_admin(user_id):
            return True
        privilege = self._snapshot().get(user_id)
        if privilege is None or not privilege.is_active:
            return False
        return getattr(privilege.capabilities, capability)

    def require_moderator(self, caller: int) -> None:
        if not self.is_moderator(caller):
            raise Unauthorized("moderator privileges required")

    def require(self, caller: int, capability: str) -> None:
        """Raise ``Unauthorized`` unless *caller* holds *capability*."""
        self.require_moderator(caller)
        if not self.has_capability(caller, capability):
            raise Unauthorized(f"moderator capability '{capability}' required")

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def grant(
        self,
        caller: int,
        user_id: int,
        capabilities: Optional[Mapping[str, Any]] = None,
    ) -> ModeratorPrivilege:
        """Make *user_id* a moderator.

        An inactive row is reactivated and its capabilities overwritten;
        granting to a user who is already an active moderator is a
        ``Conflict``.
        """
        self.require(caller, "assign_moderators")
        _check_user_id(user_id)
        caps = Capabilities.from_dict(capabilities)
        now = to_iso(self._clock())

        with self._storage.transaction():
            existing = self._store.get_by_user(user_id)
            if existing is not None and existing.is_active:
                raise Conflict(f"user {user_id} is already a moderator")
            if existing is not None:
                existing.capabilities = caps
                existing.is_active = True
                existing.assigned_by = caller
                existing.updated_at = now
                privilege = self._store.save(existing)
            else:
                privilege = self._store.create(
                    ModeratorPrivilege(
                        id=0,
                        user_id=user_id,
                        capabilities=caps,
                        assigned_by=caller,
                        created_at=now,
                        updated_at=now,
                    )
                )
        logger.info(f"Moderator {caller} granted privileges to user {user_id}")
        return privilege

    def update(self, caller: int, user_id: int, changes: Mapping[str, Any]) -> ModeratorPrivilege:
        """Merge *changes* into the user's capabilities; omitted flags keep their value."""
        self.require(caller, "assign_moderators")
        with self._storage.transaction():
            privilege = self.get(user_id)
            privilege.capabilities = privilege.capabilities.merged(changes)
            privilege.updated_at = to_iso(self._clock())
            self._store.save(privilege)
        logger.info(f"Moderator {caller} updated capabilities of user {user_id}: {sorted(changes)}")
        return privilege

    def revoke(self, caller: int, user_id: int) -> ModeratorPrivilege:
        self.require(caller, "assign_moderators")
        with self._storage.transaction():
            privilege = self.get(user_id)
            if not privilege.is_active:
                raise Conflict(f"user {user_id} is not an active moderator")
            privilege.is_active = False
            privilege.updated_at = to_iso(self._clock())
            self._store.save(privilege)
        logger.info(f"Moderator {caller} revoked privileges of user {user_id}")
        return privilege

    def get(self, user_id: int) -> ModeratorPrivilege:
        privilege = self._store.get_by_user(user_id)
        if privilege is None:
            raise NotFound(f"no moderator privileges for user {user_id}")
        return privilege

    def list_all(self, active_only: bool = False) -> list[ModeratorPrivilege]:
        privileges = self._store.list()
        if active_only:
            privileges = [p for p in privileges if p.is_active]
        return privileges

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _snapshot(self) -> dict[int, ModeratorPrivilege]:
        generation = self._store.generation
        with self._cache_lock:
            if self._cache is None or self._cache[0] != generation:
                self._cache = (generation, {p.user_id: p for p in self._store.list()})
            return self._cache[1]


def _check_user_id(user_id: int) -> None:
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise InvalidArgument(f"user id must be a positive integer, got {user_id!r}")
