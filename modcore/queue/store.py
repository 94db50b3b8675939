"""JSON storage for queue items (``moderation_queue.json``)."""

from __future__ import annotations

from typing import Optional

from modcore.common.storage import Storage
from modcore.common.types import ContentRef, record_from_dict, record_to_dict
from modcore.queue.models import QueueItem, QueueStatus


class QueueStore:
    def __init__(self, storage: Storage) -> None:
        self._table = storage.table("moderation_queue")

    def get(self, item_id: int) -> Optional[QueueItem]:
        row = self._table.get(item_id)
        return record_from_dict(QueueItem, row) if row else None

    def pending_for(self, ref: ContentRef) -> Optional[QueueItem]:
        row = self._table.find_one(
            lambda r: r.get("content_type") == ref.kind.value
            and r.get("content_id") == ref.id
            and r.get("status") == QueueStatus.pending.value
        )
        return record_from_dict(QueueItem, row) if row else None

    def list(self, status: Optional[QueueStatus] = None) -> list[QueueItem]:
        """Highest priority first, then oldest first."""
        if status is None:
            rows = self._table.all()
        else:
            rows = self._table.find(lambda r: r.get("status") == status.value)
        rows.sort(key=lambda r: (-r.get("priority", 3), r.get("created_at", ""), r["id"]))
        return [record_from_dict(QueueItem, r) for r in rows]

    def count_by_status(self) -> dict[str, int]:
        counts = {s.value: 0 for s in QueueStatus}
        for row in self._table.all():
            status = row.get("status")
            if status in counts:
                counts[status] += 1
        return counts

    def create(self, item: QueueItem) -> QueueItem:
        row = record_to_dict(item)
        row.pop("id")
        return record_from_dict(QueueItem, self._table.insert(row))

    def save(self, item: QueueItem) -> QueueItem:
        self._table.update(item.id, record_to_dict(item))
        return item
