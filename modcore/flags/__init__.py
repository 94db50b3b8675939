"""User flags against topics and comments."""

from modcore.flags.models import Flag, FlagStatus, FlagType
from modcore.flags.service import FlagService

__all__ = ["Flag", "FlagService", "FlagStatus", "FlagType"]
