"""Moderation router -- content status, review queue, filter results, rules and words."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from modcore.common.types import ContentRef, record_to_dict
from modcore.core import ModerationCore
from modcore.errors import Forbidden
from modcore.web.deps import Paging, get_caller, get_core
from modcore.web.schemas import (
    AddToQueueRequest,
    AssignRequest,
    CreateRuleRequest,
    CreateWordRequest,
    FilterContentRequest,
    FilterTextRequest,
    ResolveQueueItemRequest,
    ReviewVerdictRequest,
    UpdateRuleRequest,
    UpdateWordRequest,
    UpsertStatusRequest,
)

router = APIRouter(prefix="/api/moderation", tags=["moderation"])


# ---------------------------------------------------------------------------
# Content moderation status
# ---------------------------------------------------------------------------


@router.get("/status/pending-count", summary="Number of items pending moderation")
def pending_count(caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return {"count": core.status.pending_count(caller)}


@router.put("/status/{content_type}/{content_id}", summary="Create or update a content status")
def upsert_status(
    content_type: str,
    content_id: int,
    body: UpsertStatusRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    ref = ContentRef.of(content_type, content_id)
    return record_to_dict(core.status.upsert(caller, ref, body.status, body.reason, body.notes))


@router.get("/status/{content_type}/{content_id}", summary="Get a content status")
def get_status(
    content_type: str,
    content_id: int,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.status.get(ContentRef.of(content_type, content_id)))


@router.post("/status/{content_type}/{content_id}/notified", summary="Record that the author was notified")
def mark_user_notified(
    content_type: str,
    content_id: int,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.status.mark_user_notified(caller, ContentRef.of(content_type, content_id)))


# ---------------------------------------------------------------------------
# Review queue
# ---------------------------------------------------------------------------


@router.post("/queue", status_code=status.HTTP_201_CREATED, summary="Queue content for review")
def add_to_queue(
    body: AddToQueueRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    core.moderators.require_moderator(caller)
    ref = ContentRef.of(body.content_type, body.content_id)
    item = core.queue.add(ref, body.submitter_id, body.reason, body.verdict_id, body.priority)
    return record_to_dict(item)


@router.get("/queue", summary="List queue items")
def list_queue(
    queue_status: str = Query("pending", alias="status"),
    paging: Paging = Depends(),
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return core.queue.list(caller, queue_status, paging.page, paging.page_size).to_dict()


@router.get("/queue/stats", summary="Queue counts by status")
def queue_stats(caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return core.queue.stats(caller)


@router.post("/queue/{item_id}/assign", summary="Assign a queue item")
def assign_queue_item(
    item_id: int,
    body: AssignRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.queue.assign(caller, item_id, body.moderator_id))


@router.post("/queue/{item_id}/claim", summary="Assign a queue item to yourself")
def claim_queue_item(item_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return record_to_dict(core.queue.claim(caller, item_id))


@router.post("/queue/{item_id}/resolve", summary="Approve or reject a queue item")
def resolve_queue_item(
    item_id: int,
    body: ResolveQueueItemRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.queue.resolve(caller, item_id, body.decision, body.notes))


# ---------------------------------------------------------------------------
# Filter results
# ---------------------------------------------------------------------------


@router.post("/filter", summary="Evaluate content against the rules")
def filter_content(
    body: FilterContentRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    """Return the stored verdict, or ``null`` when no rule triggered."""
    verdict = core.rules.filter_content(body.content, body.content_type, caller, body.content_id)
    return record_to_dict(verdict) if verdict else None


@router.get("/filter/results/user/{user_id}", summary="Verdicts for a user's content")
def verdicts_for_user(
    user_id: int,
    paging: Paging = Depends(),
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    if caller != user_id and not core.moderators.is_moderator(caller):
        raise Forbidden("cannot view another user's filter results")
    return core.rules.verdicts_for_user(user_id, paging.page, paging.page_size).to_dict()


@router.get("/filter/results/{content_type}/{content_id}", summary="Verdicts for a content item")
def verdicts_for_content(
    content_type: str,
    content_id: int,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    core.moderators.require_moderator(caller)
    return [record_to_dict(v) for v in core.rules.verdicts_for_content(content_type, content_id)]


@router.post("/filter/results/{verdict_id}/review", summary="Review a verdict")
def review_verdict(
    verdict_id: int,
    body: ReviewVerdictRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.rules.review_verdict(caller, verdict_id, body.action))


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@router.get("/rules", summary="List rules")
def list_rules(
    active_only: bool = False,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    core.moderators.require_moderator(caller)
    return [record_to_dict(r) for r in core.rules.list_rules(active_only=active_only)]


@router.post("/rules", status_code=status.HTTP_201_CREATED, summary="Create a rule")
def create_rule(
    body: CreateRuleRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.rules.create_rule(caller, **body.model_dump()))


@router.put("/rules/{rule_id}", summary="Update a rule")
def update_rule(
    rule_id: int,
    body: UpdateRuleRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.rules.update_rule(caller, rule_id, **body.model_dump(exclude_none=True)))


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a rule")
def delete_rule(rule_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    core.rules.delete_rule(caller, rule_id)


# ---------------------------------------------------------------------------
# Prohibited words
# ---------------------------------------------------------------------------


@router.get("/words", summary="List prohibited words")
def list_words(
    active_only: bool = False,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    core.moderators.require_moderator(caller)
    return [record_to_dict(w) for w in core.words.list(active_only=active_only)]


@router.post("/words", status_code=status.HTTP_201_CREATED, summary="Add a prohibited word")
def add_word(
    body: CreateWordRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.words.add(caller, **body.model_dump()))


@router.put("/words/{word_id}", summary="Update a prohibited word")
def update_word(
    word_id: int,
    body: UpdateWordRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.words.update(caller, word_id, **body.model_dump(exclude_none=True)))


@router.delete("/words/{word_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a prohibited word")
def delete_word(word_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    core.words.delete(caller, word_id)


@router.post("/words/filter", summary="Run text through the prohibited-word filter")
def filter_text(body: FilterTextRequest, core: ModerationCore = Depends(get_core)):
    outcome = core.words.filter(body.text)
    return {
        "cleaned": outcome.cleaned,
        "was_filtered": outcome.was_filtered,
        "matched_terms": outcome.matched_terms,
    }
