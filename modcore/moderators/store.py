"""JSON storage for moderator privileges (``moderator_privileges.json``)."""

from __future__ import annotations

from typing import Optional

from modcore.common.storage import Storage
from modcore.common.types import record_from_dict, record_to_dict
from modcore.moderators.models import ModeratorPrivilege

GENERATION = "moderator_privileges"


class PrivilegeStore:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage
        self._table = storage.table("moderator_privileges")

    @property
    def generation(self) -> int:
        return self._storage.generation(GENERATION)

    def get_by_user(self, user_id: int) -> Optional[ModeratorPrivilege]:
        row = self._table.find_one(lambda r: r.get("user_id") == user_id)
        return record_from_dict(ModeratorPrivilege, row) if row else None

    def list(self) -> list[ModeratorPrivilege]:
        rows = sorted(self._table.all(), key=lambda r: r["id"])
        return [record_from_dict(ModeratorPrivilege, r) for r in rows]

    def create(self, privilege: ModeratorPrivilege) -> ModeratorPrivilege:
        row = record_to_dict(privilege)
        row.pop("id")
        stored = self._table.insert(row)
        self._storage.bump(GENERATION)
        return record_from_dict(ModeratorPrivilege, stored)

    def save(self, privilege: ModeratorPrivilege) -> ModeratorPrivilege:
        self._table.update(privilege.id, record_to_dict(privilege))
        self._storage.bump(GENERATION)
        return privilege
