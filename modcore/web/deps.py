"""FastAPI dependencies: the core instance and the calling user."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Query, Request

from modcore.common.types import ContentRef
from modcore.core import ModerationCore
from modcore.errors import Unauthorized


def get_core(request: Request) -> ModerationCore:
    return request.app.state.core


async def get_caller(x_user_id: Optional[int] = Header(None, alias="X-User-Id")) -> int:
    """The authenticated user id, injected by the gateway in ``X-User-Id``."""
    if x_user_id is None or x_user_id <= 0:
        raise Unauthorized("missing or invalid X-User-Id header")
    return x_user_id


class Paging:
    """``page`` / ``pageSize`` query parameters; clamping happens in the core."""

    def __init__(
        self,
        page: Optional[int] = Query(None),
        page_size: Optional[int] = Query(None, alias="pageSize"),
    ) -> None:
        self.page = page
        self.page_size = page_size


def related_content(content_type: Optional[str], content_id: Optional[int]) -> Optional[ContentRef]:
    if content_type is None or content_id is None:
        return None
    return ContentRef.of(content_type, content_id)
