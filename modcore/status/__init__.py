"""Per-content moderation status and the visibility policy built on it."""

from modcore.status.models import ContentStatus, ModerationStatus, Visibility, visibility_for
from modcore.status.service import StatusService

__all__ = ["ContentStatus", "ModerationStatus", "StatusService", "Visibility", "visibility_for"]
