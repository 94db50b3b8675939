"""Prohibited-word filter.

Literal words match case-insensitively anywhere in the text; regex words
are searched as written.  Active words are compiled once per
``prohibited_words`` generation and every ``filter()`` call works on one
consistent snapshot of them.
"""

from __future__ import annotations

import re
import threading
from typing import Any, Optional

from loguru import logger

from modcore.common.storage import Storage
from modcore.common.validation import compile_regex, require_text, validate_severity
from modcore.errors import Conflict, InvalidArgument, NotFound
from modcore.moderators.registry import ModeratorRegistry
from modcore.words.models import FilterOutcome, ProhibitedWord
from modcore.words.store import WordStore

_EDITABLE = ("word", "replacement", "is_regex", "is_auto_replace", "severity", "is_active")

CompiledWord = tuple[ProhibitedWord, re.Pattern[str]]


class ProhibitedWordFilter:
    """Catalog administration plus the pure ``filter(text)`` contract."""

    def __init__(self, storage: Storage, registry: ModeratorRegistry) -> None:
        self._store = WordStore(storage)
        self._storage = storage
        self._registry = registry
        self._cache_lock = threading.Lock()
        self._cache: Optional[tuple[int, list[CompiledWord]]] = None

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def add(
        self,
        caller: int,
        word: str,
        replacement: str = "",
        is_regex: bool = False,
        is_auto_replace: bool = False,
        severity: int = 1,
        is_active: bool = True,
    ) -> ProhibitedWord:
        self._registry.require(caller, "manage_rules")
        candidate = ProhibitedWord(
            id=0,
            word=word,
            replacement=replacement,
            is_regex=is_regex,
            is_auto_replace=is_auto_replace,
            severity=severity,
            is_active=is_active,
            created_by=caller,
            last_updated_by=caller,
        )
        _validate(candidate)
        with self._storage.transaction():
            if self._store.get_by_word(candidate.word) is not None:
                raise Conflict(f"prohibited word '{candidate.word}' already exists")
            created = self._store.create(candidate)
        logger.info(f"Prohibited word {created.id} added by {caller}")
        return created

    def list(self, active_only: bool = False) -> list[ProhibitedWord]:
        return self._store.list(active_only=active_only)

    def get(self, word_id: int) -> ProhibitedWord:
        word = self._store.get(word_id)
        if word is None:
            raise NotFound(f"prohibited word {word_id} not found")
        return word

    def update(self, caller: int, word_id: int, **changes: Any) -> ProhibitedWord:
        """Apply *changes* (any of the editable fields) to an existing word."""
        self._registry.require(caller, "manage_rules")
        unknown = sorted(set(changes) - set(_EDITABLE))
        if unknown:
            raise InvalidArgument(f"cannot update field(s): {', '.join(unknown)}")
        with self._storage.transaction():
            word = self.get(word_id)
            for name, value in changes.items():
                if value is not None:
                    setattr(word, name, value)
            _validate(word)
            clash = self._store.get_by_word(word.word)
            if clash is not None and clash.id != word.id:
                raise Conflict(f"prohibited word '{word.word}' already exists")
            word.last_updated_by = caller
            saved = self._store.save(word)
        logger.info(f"Prohibited word {word_id} updated by {caller}")
        return saved

    def delete(self, caller: int, word_id: int) -> None:
        self._registry.require(caller, "manage_rules")
        if not self._store.delete(word_id):
            raise NotFound(f"prohibited word {word_id} not found")
        logger.info(f"Prohibited word {word_id} deleted by {caller}")

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def filter(self, text: str) -> FilterOutcome:
        """Return the cleaned text, whether anything matched, and what matched."""
        cleaned = text
        matched: list[str] = []

        for word, pattern in self._snapshot():
            if word.is_regex:
                hits = [m.group(0) for m in pattern.finditer(cleaned) if m.group(0)]
                if not hits:
                    continue
                for hit in hits:
                    if hit not in matched:
                        matched.append(hit)
            else:
                if not pattern.search(cleaned):
                    continue
                if word.word not in matched:
                    matched.append(word.word)
            if word.is_auto_replace:
                cleaned = pattern.sub(lambda m, r=word.replacement: r if m.group(0) else "", cleaned)

        return FilterOutcome(cleaned=cleaned, was_filtered=bool(matched), matched_terms=matched)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _snapshot(self) -> list[CompiledWord]:
        generation = self._store.generation
        with self._cache_lock:
            if self._cache is None or self._cache[0] != generation:
                self._cache = (generation, self._compile_active())
            return self._cache[1]

    def _compile_active(self) -> list[CompiledWord]:
        compiled: list[CompiledWord] = []
        for word in self._store.list(active_only=True):
            try:
                if word.is_regex:
                    pattern = re.compile(word.word)
                else:
                    pattern = re.compile(re.escape(word.word), re.IGNORECASE)
            except re.error as exc:
                logger.warning(f"Skipping prohibited word {word.id}: invalid regex ({exc})")
                continue
            compiled.append((word, pattern))
        return compiled


def _validate(word: ProhibitedWord) -> None:
    require_text(word.word, "word")
    validate_severity(word.severity)
    if word.is_regex:
        compile_regex(word.word)
    if not isinstance(word.replacement, str):
        raise InvalidArgument("replacement must be a string")
