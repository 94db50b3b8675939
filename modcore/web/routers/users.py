"""Users router -- trust scores, moderator privileges, penalties and user actions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from modcore.common.types import record_to_dict
from modcore.core import ModerationCore
from modcore.errors import Forbidden
from modcore.web.deps import Paging, get_caller, get_core, related_content
from modcore.web.schemas import (
    ApplyPenaltyRequest,
    CreateUserActionRequest,
    GrantModeratorRequest,
    RevokeRequest,
    UpdateModeratorRequest,
    UpdateTrustRequest,
)

router = APIRouter(prefix="/api", tags=["users"])


def _trust_response(score) -> dict:
    data = record_to_dict(score)
    data["adjusted_score"] = score.adjusted_score
    return data


# ---------------------------------------------------------------------------
# Trust
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/trust", summary="Get a user's trust score")
def get_trust(user_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    if caller != user_id and not core.moderators.is_moderator(caller):
        raise Forbidden("cannot view another user's trust score")
    return _trust_response(core.trust.get(user_id))


@router.put("/users/{user_id}/trust", summary="Update a user's component scores")
def update_trust(
    user_id: int,
    body: UpdateTrustRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    score = core.trust.update_component_scores(
        caller, user_id, body.content_score, body.community_score, body.moderator_score
    )
    return _trust_response(score)


@router.get("/trust/levels/{level}", summary="List users at a trust level")
def list_by_trust_level(
    level: str,
    paging: Paging = Depends(),
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    page = core.trust.list_by_level(caller, level, paging.page, paging.page_size)
    return page.to_dict(_trust_response)


# ---------------------------------------------------------------------------
# Moderators
# ---------------------------------------------------------------------------


@router.get("/moderators", summary="List moderators")
def list_moderators(
    active_only: bool = False,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    core.moderators.require_moderator(caller)
    return [record_to_dict(p) for p in core.moderators.list_all(active_only=active_only)]


@router.post("/moderators", status_code=status.HTTP_201_CREATED, summary="Grant moderator privileges")
def grant_moderator(
    body: GrantModeratorRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.moderators.grant(caller, body.user_id, body.capabilities))


@router.get("/moderators/{user_id}", summary="Get a moderator's privileges")
def get_moderator(user_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    core.moderators.require_moderator(caller)
    return record_to_dict(core.moderators.get(user_id))


@router.patch("/moderators/{user_id}", summary="Update a moderator's capabilities")
def update_moderator(
    user_id: int,
    body: UpdateModeratorRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.moderators.update(caller, user_id, body.capabilities))


@router.delete("/moderators/{user_id}", summary="Revoke moderator privileges")
def revoke_moderator(user_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return record_to_dict(core.moderators.revoke(caller, user_id))


# ---------------------------------------------------------------------------
# Penalties
# ---------------------------------------------------------------------------


@router.post("/users/{user_id}/penalties", status_code=status.HTTP_201_CREATED, summary="Apply a penalty")
def apply_penalty(
    user_id: int,
    body: ApplyPenaltyRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    penalty = core.penalties.apply(
        caller,
        user_id,
        body.penalty_type,
        body.reason,
        description=body.description,
        duration_days=body.duration_days,
        related_content=related_content(body.content_type, body.content_id),
        notes=body.notes,
    )
    return record_to_dict(penalty)


@router.get("/users/{user_id}/penalties", summary="List a user's penalties")
def list_penalties(
    user_id: int,
    paging: Paging = Depends(),
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return core.penalties.list_by_user(caller, user_id, paging.page, paging.page_size).to_dict()


@router.get("/users/{user_id}/penalties/active", summary="List a user's active penalties")
def list_active_penalties(user_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return [record_to_dict(p) for p in core.penalties.list_active(caller, user_id)]


@router.get("/users/{user_id}/penalties/history", summary="A user's full discipline history")
def penalty_history(user_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return [record_to_dict(p) for p in core.penalties.history(caller, user_id)]


@router.post("/penalties/{penalty_id}/remove", summary="Remove a penalty")
def remove_penalty(
    penalty_id: int,
    body: RevokeRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.penalties.remove(caller, penalty_id, body.reason))


@router.get("/users/{user_id}/restriction", summary="Check whether a user may post")
def restriction(user_id: int, core: ModerationCore = Depends(get_core)):
    restricted, reason = core.penalties.is_restricted(user_id)
    return {"restricted": restricted, "reason": reason}


# ---------------------------------------------------------------------------
# User moderation actions
# ---------------------------------------------------------------------------


@router.post("/users/{user_id}/actions", status_code=status.HTTP_201_CREATED, summary="Warn or ban a user")
def create_action(
    user_id: int,
    body: CreateUserActionRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    action = core.penalties.create_action(
        caller,
        user_id,
        body.action_type,
        body.reason,
        duration_days=body.duration_days,
        related_content=related_content(body.content_type, body.content_id),
        notes=body.notes,
    )
    return record_to_dict(action)


@router.get("/users/{user_id}/actions", summary="List a user's moderation actions")
def list_actions(user_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return [record_to_dict(a) for a in core.penalties.list_actions(caller, user_id)]


@router.get("/users/{user_id}/actions/active", summary="List a user's active moderation actions")
def list_active_actions(user_id: int, caller: int = Depends(get_caller), core: ModerationCore = Depends(get_core)):
    return [record_to_dict(a) for a in core.penalties.active_actions(caller, user_id)]


@router.post("/actions/{action_id}/revoke", summary="Revoke a moderation action")
def revoke_action(
    action_id: int,
    body: RevokeRequest,
    caller: int = Depends(get_caller),
    core: ModerationCore = Depends(get_core),
):
    return record_to_dict(core.penalties.revoke_action(caller, action_id, body.reason))


@router.get("/users/{user_id}/banned", summary="Check whether a user is banned")
def banned(user_id: int, core: ModerationCore = Depends(get_core)):
    return {"banned": core.penalties.is_banned(user_id)}
