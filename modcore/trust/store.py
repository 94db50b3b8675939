"""JSON storage for trust scores (``user_trust_scores.json``)."""

from __future__ import annotations

from typing import Optional

from modcore.common.storage import Storage
from modcore.common.types import record_from_dict, record_to_dict
from modcore.trust.models import TrustLevel, TrustScore


class TrustStore:
    def __init__(self, storage: Storage) -> None:
        self._table = storage.table("user_trust_scores")

    def get_by_user(self, user_id: int) -> Optional[TrustScore]:
        row = self._table.find_one(lambda r: r.get("user_id") == user_id)
        return record_from_dict(TrustScore, row) if row else None

    def list_by_level(self, level: TrustLevel) -> list[TrustScore]:
        rows = self._table.find(lambda r: r.get("trust_level") == level.value)
        return [record_from_dict(TrustScore, r) for r in rows]

    def create(self, score: TrustScore) -> TrustScore:
        row = record_to_dict(score)
        row.pop("id")
        return record_from_dict(TrustScore, self._table.insert(row))

    def save(self, score: TrustScore) -> TrustScore:
        self._table.update(score.id, record_to_dict(score))
        return score
