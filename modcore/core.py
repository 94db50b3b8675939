"""Facade wiring every moderation component onto one storage directory.

``ModerationCore`` owns nothing itself: it builds the services in
dependency order, hands each the same ``Storage``, registry and clock, and
adds the one operation that spans them all, ``submit_content``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from modcore.collaborators import ContentDirectory, InMemoryContentDirectory
from modcore.common.storage import Storage
from modcore.common.types import ContentRef, utcnow
from modcore.config import Settings
from modcore.flags.service import FlagService
from modcore.moderators.registry import ModeratorRegistry
from modcore.penalties.engine import PenaltyEngine
from modcore.queue.models import MAX_PRIORITY, QueueItem
from modcore.queue.service import ReviewQueue
from modcore.reports.service import ReportService
from modcore.rules.engine import RuleEngine
from modcore.rules.loader import load_rules_file, load_words_file
from modcore.rules.models import AppliesTo, FilterVerdict, ModerationAction
from modcore.status.models import ContentStatus, ModerationStatus
from modcore.status.service import StatusService
from modcore.trust.engine import TrustEngine
from modcore.words.filter import ProhibitedWordFilter

# Actions that also need a moderator to decide on a user-level sanction.
_SANCTIONS = (ModerationAction.warning, ModerationAction.temporary_ban, ModerationAction.permanent_ban)


@dataclass
class Submission:
    """What happened to a piece of submitted content.

    ``published_text`` is the text to store: the original, or the cleaned
    form when the verdict was ``automatic_filter``.
    """

    ref: ContentRef
    published_text: str
    verdict: Optional[FilterVerdict] = None
    status: Optional[ModerationStatus] = None
    queue_item: Optional[QueueItem] = None

    @property
    def action(self) -> ModerationAction:
        return self.verdict.action if self.verdict else ModerationAction.none

    @property
    def visible(self) -> bool:
        return self.status is None or self.status.status in (ContentStatus.approved, ContentStatus.pending)


class ModerationCore:
    """All moderation services over one data directory."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        content: Optional[ContentDirectory] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.settings = settings or Settings()
        self.storage = Storage(self.settings.data_dir)
        self.content = content if content is not None else InMemoryContentDirectory()
        self.clock = clock

        self.moderators = ModeratorRegistry(self.storage, self.settings.admin_user_ids, clock=clock)
        self.words = ProhibitedWordFilter(self.storage, self.moderators)
        self.rules = RuleEngine(self.storage, self.moderators, self.words, clock=clock)
        self.trust = TrustEngine(self.storage, self.moderators, clock=clock)
        self.status = StatusService(self.storage, self.moderators, clock=clock)
        self.penalties = PenaltyEngine(self.storage, self.moderators, self.trust, clock=clock)
        self.queue = ReviewQueue(
            self.storage,
            self.moderators,
            self.rules,
            self.status,
            self.trust,
            default_priority=self.settings.default_queue_priority,
            clock=clock,
        )
        self.flags = FlagService(self.storage, self.moderators, self.status, self.trust, self.content, clock=clock)
        self.reports = ReportService(
            self.storage,
            self.moderators,
            self.status,
            self.trust,
            self.penalties,
            self.content,
            suspension_days=self.settings.report_suspension_days,
            clock=clock,
        )
        self.load_catalogs()

    def submit_content(self, ref: ContentRef, author: int, text: str) -> Submission:
        """Run newly created content through the rules and route it.

        No verdict publishes the text as-is.  ``approve`` and
        ``automatic_filter`` approve it (the latter with the cleaned text).
        ``send_to_queue`` leaves it pending in the review queue.  ``reject``
        and anything stronger rejects it; the user-level sanctions are also
        queued at top priority for a moderator to act on.
        """
        verdict = self.rules.evaluate(text, AppliesTo(ref.kind.value), author)
        if verdict is None:
            return Submission(ref=ref, published_text=text)

        action = verdict.action
        if action in (ModerationAction.none, ModerationAction.approve):
            status = self.status.set_status(ref, ContentStatus.approved, None, reason="Approved by filter rules")
            return Submission(ref=ref, published_text=text, verdict=verdict, status=status)

        if action == ModerationAction.automatic_filter:
            status = self.status.set_status(ref, ContentStatus.approved, None, reason="Prohibited words filtered")
            return Submission(ref=ref, published_text=verdict.cleaned_content, verdict=verdict, status=status)

        with self.storage.transaction():
            saved = self.rules.save_verdict(verdict, ref.id)
            reason = f"Filter rules {saved.triggered_rule_ids}: {action.value}"
            if action == ModerationAction.send_to_queue:
                status = self.status.set_status(ref, ContentStatus.pending, None, reason=reason)
                item = self.queue.add(ref, author, reason, verdict_id=saved.id, priority=_queue_priority(saved.severity))
            else:
                status = self.status.set_status(ref, ContentStatus.rejected, None, reason=reason)
                item = None
                if action in _SANCTIONS:
                    item = self.queue.add(ref, author, reason, verdict_id=saved.id, priority=MAX_PRIORITY)
        logger.info(f"Submission {ref} by user {author}: {action.value}")
        return Submission(ref=ref, published_text=text, verdict=saved, status=status, queue_item=item)

    def load_catalogs(self) -> None:
        """Seed rules and prohibited words from the configured YAML files.

        Each catalog is imported only into an empty table, acting as the
        lowest admin id.
        """
        if not (self.settings.rules_file or self.settings.words_file):
            return
        if not self.settings.admin_user_ids:
            logger.warning("Catalog files configured but no admin_user_ids; skipping import")
            return
        admin = min(self.settings.admin_user_ids)
        with self.storage.transaction():
            if self.settings.rules_file and not self.rules.list_rules():
                entries = load_rules_file(self.settings.rules_file)
                for entry in entries:
                    self.rules.create_rule(admin, **entry)
                logger.info(f"Seeded {len(entries)} rule(s) from {self.settings.rules_file}")
            if self.settings.words_file and not self.words.list():
                entries = load_words_file(self.settings.words_file)
                for entry in entries:
                    self.words.add(admin, **entry)
                logger.info(f"Seeded {len(entries)} word(s) from {self.settings.words_file}")


def _queue_priority(severity: int) -> int:
    return max(1, min(MAX_PRIORITY, math.ceil(severity / 2)))
