"""Flags router -- file, list, assign and review content flags."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from modcore.common.types import ContentRef, record_to_dict
from modcore.core import ModerationCore
from modcore.web.deps import Paging, get_caller, get_core
from modcore.web.schemas import AssignRequest, CreateFlagRequest, ReviewFlagRequest

router = APIRouter(prefix="/api/flags", tags=["flags"])


@router.post("", status_code=status.HTTP_201_CREATED, summary="Flag a topic or comment")
def create_flag(
    body: CreateFlagRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    ref = ContentRef.of(body.content_type, body.content_id)
    return record_to_dict(core.flags.create(caller, ref, body.flag_type, body.description))


@router.get("", summary="List flags by status")
def list_flags(
    flag_status: Optional[str] = Query(None, alias="status"),
    paging: Paging = Depends(),
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    """``?status=`` narrows to one status; omit it to list every flag."""
    page = core.flags.list_by_status(caller, flag_status, paging.page, paging.page_size)
    return page.to_dict()


@router.get("/content/{content_type}/{content_id}", summary="List flags on a content item")
def list_flags_for_content(
    content_type: str,
    content_id: int,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    ref = ContentRef.of(content_type, content_id)
    return [record_to_dict(f) for f in core.flags.list_by_content(caller, ref)]


@router.get("/{flag_id}", summary="Get a flag")
def get_flag(flag_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return record_to_dict(core.flags.get(caller, flag_id))


@router.post("/{flag_id}/assign", summary="Assign a flag to a moderator")
def assign_flag(
    flag_id: int,
    body: AssignRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.flags.assign(caller, flag_id, body.moderator_id))


@router.post("/{flag_id}/review", summary="Review a flag")
def review_flag(
    flag_id: int,
    body: ReviewFlagRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    flag = core.flags.review(caller, flag_id, body.status, body.action_taken, body.notes)
    return record_to_dict(flag)
