"""Core value types shared by every moderation component."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, Type, TypeVar

from modcore.errors import InvalidArgument

E = TypeVar("E", bound=Enum)
T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ContentKind(str, Enum):
    """Kinds of user content that can be moderated."""

    topic = "topic"
    comment = "comment"


def parse_enum(enum_cls: Type[E], value: Any, field_name: str = "value") -> E:
    """Convert a wire value into *enum_cls*, raising ``InvalidArgument`` on failure."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidArgument(
            f"invalid {field_name} '{value}' (expected one of: {allowed})"
        ) from None


@dataclass(frozen=True)
class ContentRef:
    """A ``(kind, id)`` pair identifying a moderatable content item."""

    kind: ContentKind
    id: int

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ContentKind):
            object.__setattr__(self, "kind", parse_enum(ContentKind, self.kind, "content type"))
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id <= 0:
            raise InvalidArgument(f"content id must be a positive integer, got {self.id!r}")

    @classmethod
    def of(cls, kind: Any, content_id: Any) -> ContentRef:
        try:
            cid = int(content_id)
        except (TypeError, ValueError):
            raise InvalidArgument(f"content id must be a positive integer, got {content_id!r}") from None
        return cls(kind=kind, id=cid)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: Optional[datetime]) -> str:
    if dt is None:
        return ""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def from_iso(value: str) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------


def record_from_dict(cls: Type[T], data: dict) -> T:
    """Build dataclass *cls* from a stored dict, ignoring unknown keys."""
    names = {f.name for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
    return cls(**{k: v for k, v in data.items() if k in names})


def record_to_dict(record: Any) -> dict:
    """Serialise a dataclass record into a JSON-ready dict."""
    out = {}
    for key, value in dataclasses.asdict(record).items():
        out[key] = value.value if isinstance(value, Enum) else value
    return out


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def normalize_pagination(page: Optional[int], page_size: Optional[int]) -> tuple[int, int]:
    """Clamp wire pagination: ``page`` >= 1, ``page_size`` in 1..100 else 20."""
    page = page if isinstance(page, int) and page >= 1 else 1
    if not isinstance(page_size, int) or page_size < 1 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


@dataclass
class Page(Generic[T]):
    """One page of a listing plus the total across all pages."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @classmethod
    def slice(cls, rows: list[T], page: Optional[int], page_size: Optional[int]) -> Page[T]:
        page, page_size = normalize_pagination(page, page_size)
        start = (page - 1) * page_size
        return cls(items=rows[start:start + page_size], total=len(rows), page=page, page_size=page_size)

    def to_dict(self, item_to_dict=record_to_dict) -> dict:
        return {
            "items": [item_to_dict(i) for i in self.items],
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "pages": self.pages,
        }
