"""Moderator registry: who may moderate, and with which capabilities."""

from modcore.moderators.models import Capabilities, ModeratorPrivilege
from modcore.moderators.registry import ModeratorRegistry

__all__ = ["Capabilities", "ModeratorPrivilege", "ModeratorRegistry"]
