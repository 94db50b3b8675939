"""JSON storage for penalties (``user_penalties.json``)."""

from __future__ import annotations

from typing import Callable, Optional

from modcore.common.storage import Storage
from modcore.common.types import record_from_dict, record_to_dict
from modcore.penalties.models import Penalty


class PenaltyStore:
    def __init__(self, storage: Storage) -> None:
        self._table = storage.table("user_penalties")

    def get(self, penalty_id: int) -> Optional[Penalty]:
        row = self._table.get(penalty_id)
        return record_from_dict(Penalty, row) if row else None

    def find(self, predicate: Callable[[dict], bool]) -> list[Penalty]:
        rows = sorted(self._table.find(predicate), key=lambda r: r["id"], reverse=True)
        return [record_from_dict(Penalty, r) for r in rows]

    def for_user(self, user_id: int) -> list[Penalty]:
        """Newest first."""
        return self.find(lambda r: r.get("user_id") == user_id)

    def create(self, penalty: Penalty) -> Penalty:
        row = record_to_dict(penalty)
        row.pop("id")
        return record_from_dict(Penalty, self._table.insert(row))

    def save(self, penalty: Penalty) -> Penalty:
        self._table.update(penalty.id, record_to_dict(penalty))
        return penalty
