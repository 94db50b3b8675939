"""JSON storage for moderation statuses (``content_moderation_statuses.json``)."""

from __future__ import annotations

from typing import Optional

from modcore.common.storage import Storage
from modcore.common.types import ContentRef, record_from_dict, record_to_dict
from modcore.status.models import ContentStatus, ModerationStatus


class StatusStore:
    def __init__(self, storage: Storage) -> None:
        self._table = storage.table("content_moderation_statuses")

    def get_by_ref(self, ref: ContentRef) -> Optional[ModerationStatus]:
        row = self._table.find_one(
            lambda r: r.get("content_type") == ref.kind.value and r.get("content_id") == ref.id
        )
        return record_from_dict(ModerationStatus, row) if row else None

    def count_by_status(self, status: ContentStatus) -> int:
        return self._table.count(lambda r: r.get("status") == status.value)

    def create(self, record: ModerationStatus) -> ModerationStatus:
        row = record_to_dict(record)
        row.pop("id")
        return record_from_dict(ModerationStatus, self._table.insert(row))

    def save(self, record: ModerationStatus) -> ModerationStatus:
        self._table.update(record.id, record_to_dict(record))
        return record
