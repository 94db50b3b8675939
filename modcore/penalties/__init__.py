"""User penalties and the moderation actions issued from the review flow."""

from modcore.penalties.engine import PenaltyEngine
from modcore.penalties.models import Penalty, PenaltyType, UserActionType

__all__ = ["Penalty", "PenaltyEngine", "PenaltyType", "UserActionType"]
