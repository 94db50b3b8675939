"""Data models for the prohibited-word catalog."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ProhibitedWord:
    """A literal word/phrase or a regex that should be caught in user text."""

    id: int
    word: str
    replacement: str = ""
    is_regex: bool = False
    is_auto_replace: bool = False
    severity: int = 1
    is_active: bool = True
    created_by: int = 0
    last_updated_by: int = 0
    created_at: str = ""
    updated_at: str = ""


@dataclass
class FilterOutcome:
    """Result of running text through the prohibited-word filter."""

    cleaned: str
    was_filtered: bool = False
    matched_terms: list[str] = field(default_factory=list)
