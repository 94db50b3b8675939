"""Pydantic request bodies for the moderation API.

Responses are plain dicts built from the core's records; enum fields are
sent as their string names.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    code: str
    message: str


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------


class CreateFlagRequest(BaseModel):
    content_type: str
    content_id: int
    flag_type: str
    description: str = ""


class AssignRequest(BaseModel):
    moderator_id: int


class ReviewFlagRequest(BaseModel):
    status: str
    action_taken: str = ""
    notes: str = ""


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class CreateReportRequest(BaseModel):
    content_type: str
    content_id: int
    category: str
    reason: str
    additional_info: str = ""


class UpdateReportStatusRequest(BaseModel):
    status: str


class ResolveReportRequest(BaseModel):
    resolution: str
    notes: str = ""


class AddEvidenceRequest(BaseModel):
    evidence_type: str
    content: str = ""
    file_path: str = ""
    url: str = ""


class AddCommentRequest(BaseModel):
    body: str
    is_internal: bool = False


# ---------------------------------------------------------------------------
# Moderation status, queue and filters
# ---------------------------------------------------------------------------


class UpsertStatusRequest(BaseModel):
    status: str
    reason: str = ""
    notes: str = ""


class AddToQueueRequest(BaseModel):
    content_type: str
    content_id: int
    submitter_id: int
    reason: str
    verdict_id: Optional[int] = None
    priority: Optional[int] = None


class ResolveQueueItemRequest(BaseModel):
    decision: str
    notes: str = ""


class FilterContentRequest(BaseModel):
    content: str
    content_type: str
    content_id: int = 0


class ReviewVerdictRequest(BaseModel):
    action: str


class CreateRuleRequest(BaseModel):
    name: str
    pattern: str
    pattern_type: str = "keywords"
    action: str = "send_to_queue"
    severity: int = 1
    applies_to: str = "comment"
    description: str = ""
    is_active: bool = True


class UpdateRuleRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    pattern: Optional[str] = None
    pattern_type: Optional[str] = None
    action: Optional[str] = None
    severity: Optional[int] = None
    applies_to: Optional[str] = None
    is_active: Optional[bool] = None


class CreateWordRequest(BaseModel):
    word: str
    replacement: str = ""
    is_regex: bool = False
    is_auto_replace: bool = False
    severity: int = 1
    is_active: bool = True


class UpdateWordRequest(BaseModel):
    word: Optional[str] = None
    replacement: Optional[str] = None
    is_regex: Optional[bool] = None
    is_auto_replace: Optional[bool] = None
    severity: Optional[int] = None
    is_active: Optional[bool] = None


class FilterTextRequest(BaseModel):
    text: str


# ---------------------------------------------------------------------------
# Users: trust, moderators, penalties
# ---------------------------------------------------------------------------


class UpdateTrustRequest(BaseModel):
    content_score: Optional[float] = None
    community_score: Optional[float] = None
    moderator_score: Optional[float] = None


class GrantModeratorRequest(BaseModel):
    user_id: int
    capabilities: dict[str, bool] = Field(default_factory=dict)


class UpdateModeratorRequest(BaseModel):
    capabilities: dict[str, bool] = Field(default_factory=dict)


class ApplyPenaltyRequest(BaseModel):
    penalty_type: str
    reason: str
    description: str = ""
    duration_days: Optional[int] = None
    content_type: Optional[str] = None
    content_id: Optional[int] = None
    notes: str = ""


class CreateUserActionRequest(BaseModel):
    action_type: str
    reason: str
    duration_days: Optional[int] = None
    content_type: Optional[str] = None
    content_id: Optional[int] = None
    notes: str = ""


class RevokeRequest(BaseModel):
    reason: str = ""
