"""Prioritised human review queue."""

from modcore.queue.models import QueueDecision, QueueItem, QueueStatus
from modcore.queue.service import ReviewQueue

__all__ = ["QueueDecision", "QueueItem", "QueueStatus", "ReviewQueue"]
