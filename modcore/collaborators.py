"""Ports to the systems the moderation core does not own.

Forum topics and comments live elsewhere; the core only needs to know
whether a referenced item exists and who wrote it.
"""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from modcore.common.types import ContentKind, ContentRef
from modcore.errors import NotFound


class ContentDirectory(Protocol):
    """Existence and authorship lookups for forum content."""

    def content_exists(self, kind: ContentKind, content_id: int) -> bool:
        ...

    def author_of(self, ref: ContentRef) -> Optional[int]:
        ...


class InMemoryContentDirectory:
    """Dict-backed ``ContentDirectory`` used by the CLI and tests."""

    def __init__(self) -> None:
        self._authors: dict[ContentRef, int] = {}
        self._lock = threading.Lock()

    def add(self, ref: ContentRef, author: int) -> ContentRef:
        with self._lock:
            self._authors[ref] = author
        return ref

    def remove(self, ref: ContentRef) -> None:
        with self._lock:
            self._authors.pop(ref, None)

    def content_exists(self, kind: ContentKind, content_id: int) -> bool:
        return ContentRef(kind, content_id) in self._authors

    def author_of(self, ref: ContentRef) -> Optional[int]:
        return self._authors.get(ref)


def require_content(directory: ContentDirectory, ref: ContentRef) -> None:
    """Raise ``NotFound`` unless *ref* exists."""
    if not directory.content_exists(ref.kind, ref.id):
        raise NotFound(f"{ref.kind.value} {ref.id} not found")
