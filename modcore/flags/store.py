"""JSON storage for flags (``content_flags.json``)."""

from __future__ import annotations

from typing import Callable, Optional

from modcore.common.storage import Storage
from modcore.common.types import record_from_dict, record_to_dict
from modcore.flags.models import Flag


class FlagStore:
    def __init__(self, storage: Storage) -> None:
        self._table = storage.table("content_flags")

    def get(self, flag_id: int) -> Optional[Flag]:
        row = self._table.get(flag_id)
        return record_from_dict(Flag, row) if row else None

    def find(self, predicate: Callable[[dict], bool]) -> list[Flag]:
        """Newest first."""
        rows = sorted(self._table.find(predicate), key=lambda r: r["id"], reverse=True)
        return [record_from_dict(Flag, r) for r in rows]

    def create(self, flag: Flag) -> Flag:
        row = record_to_dict(flag)
        row.pop("id")
        return record_from_dict(Flag, self._table.insert(row))

    def save(self, flag: Flag) -> Flag:
        self._table.update(flag.id, record_to_dict(flag))
        return flag
