"""JSON storage for prohibited words.

Every write bumps the ``prohibited_words`` generation so cached compiled
patterns are rebuilt on the next filter call.
"""

from __future__ import annotations

from typing import Optional

from modcore.common.storage import Storage
from modcore.common.types import record_from_dict, record_to_dict, to_iso, utcnow
from modcore.words.models import ProhibitedWord

GENERATION = "prohibited_words"


class WordStore:
    """Table: ``prohibited_words.json``."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage
        self._table = storage.table("prohibited_words")

    @property
    def generation(self) -> int:
        return self._storage.generation(GENERATION)

    def create(self, word: ProhibitedWord) -> ProhibitedWord:
        now = to_iso(utcnow())
        word.created_at = word.created_at or now
        word.updated_at = now
        row = record_to_dict(word)
        row.pop("id")
        stored = self._table.insert(row)
        self._storage.bump(GENERATION)
        return record_from_dict(ProhibitedWord, stored)

    def get(self, word_id: int) -> Optional[ProhibitedWord]:
        row = self._table.get(word_id)
        return record_from_dict(ProhibitedWord, row) if row else None

    def get_by_word(self, word: str) -> Optional[ProhibitedWord]:
        row = self._table.find_one(lambda r: r.get("word") == word)
        return record_from_dict(ProhibitedWord, row) if row else None

    def list(self, active_only: bool = False) -> list[ProhibitedWord]:
        rows = self._table.all()
        if active_only:
            rows = [r for r in rows if r.get("is_active", True)]
        return [record_from_dict(ProhibitedWord, r) for r in sorted(rows, key=lambda r: r["id"])]

    def save(self, word: ProhibitedWord) -> ProhibitedWord:
        word.updated_at = to_iso(utcnow())
        row = self._table.update(word.id, record_to_dict(word))
        self._storage.bump(GENERATION)
        return record_from_dict(ProhibitedWord, row) if row else word

    def delete(self, word_id: int) -> bool:
        deleted = self._table.delete(word_id)
        if deleted:
            self._storage.bump(GENERATION)
        return deleted
