"""Rule engine: rule administration and text evaluation.

``evaluate`` loads one snapshot of the active rules (cached per ``rules``
generation), tests every rule scoped to the content kind, and picks the
verdict action from the triggered rule with the highest severity.  Equal
severities resolve to the more restrictive action, so the outcome does not
depend on the order rules were created in.
"""

from __future__ import annotations

import re
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from loguru import logger

from modcore.common.deadline import Deadline, check_deadline
from modcore.common.storage import Storage
from modcore.common.types import Page, parse_enum, to_iso, utcnow
from modcore.common.validation import compile_regex, require_text, validate_severity
from modcore.errors import InvalidArgument, NotFound
from modcore.moderators.registry import ModeratorRegistry
from modcore.rules.models import AppliesTo, FilterVerdict, ModerationAction, PatternType, Rule
from modcore.rules.store import RuleStore, VerdictStore
from modcore.words.filter import ProhibitedWordFilter

_EDITABLE = ("name", "description", "pattern", "pattern_type", "action", "severity", "applies_to", "is_active")

Matcher = Callable[[str], bool]


class RuleEngine:
    """Create, update, delete and list rules; evaluate text against them."""

    def __init__(
        self,
        storage: Storage,
        registry: ModeratorRegistry,
        words: ProhibitedWordFilter,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._rules = RuleStore(storage)
        self._verdicts = VerdictStore(storage)
        self._registry = registry
        self._words = words
        self._clock = clock
        self._cache_lock = threading.Lock()
        self._cache: Optional[tuple[int, list[tuple[Rule, Matcher]]]] = None

    # ------------------------------------------------------------------
    # Rule administration
    # ------------------------------------------------------------------

    def create_rule(
        self,
        caller: int,
        name: str,
        pattern: str,
        pattern_type: PatternType | str = PatternType.keywords,
        action: ModerationAction | str = ModerationAction.send_to_queue,
        severity: int = 1,
        applies_to: AppliesTo | str = AppliesTo.comment,
        description: str = "",
        is_active: bool = True,
    ) -> Rule:
        self._registry.require(caller, "manage_rules")
        now = to_iso(self._clock())
        rule = Rule(
            id=0,
            name=name,
            pattern=pattern,
            pattern_type=parse_enum(PatternType, pattern_type, "pattern type"),
            action=parse_enum(ModerationAction, action, "action"),
            severity=severity,
            applies_to=parse_enum(AppliesTo, applies_to, "applies to"),
            description=description,
            is_active=is_active,
            created_by=caller,
            last_updated_by=caller,
            created_at=now,
            updated_at=now,
        )
        validate_rule(rule)
        created = self._rules.create(rule)
        logger.info(f"Rule {created.id} '{created.name}' created by {caller}")
        return created

    def update_rule(self, caller: int, rule_id: int, **changes: Any) -> Rule:
        self._registry.require(caller, "manage_rules")
        unknown = sorted(set(changes) - set(_EDITABLE))
        if unknown:
            raise InvalidArgument(f"cannot update field(s): {', '.join(unknown)}")
        with self._storage.transaction():
            rule = self.get_rule(rule_id)
            for field_name, value in changes.items():
                if value is None:
                    continue
                if field_name == "pattern_type":
                    value = parse_enum(PatternType, value, "pattern type")
                elif field_name == "action":
                    value = parse_enum(ModerationAction, value, "action")
                elif field_name == "applies_to":
                    value = parse_enum(AppliesTo, value, "applies to")
                setattr(rule, field_name, value)
            validate_rule(rule)
            rule.last_updated_by = caller
            rule.updated_at = to_iso(self._clock())
            self._rules.save(rule)
        logger.info(f"Rule {rule_id} updated by {caller}")
        return rule

    def delete_rule(self, caller: int, rule_id: int) -> None:
        self._registry.require(caller, "manage_rules")
        if not self._rules.delete(rule_id):
            raise NotFound(f"rule {rule_id} not found")
        logger.info(f"Rule {rule_id} deleted by {caller}")

    def get_rule(self, rule_id: int) -> Rule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise NotFound(f"rule {rule_id} not found")
        return rule

    def list_rules(self, active_only: bool = False, applies_to: AppliesTo | str | None = None) -> list[Rule]:
        rules = self._rules.list()
        if active_only:
            rules = [r for r in rules if r.is_active]
        if applies_to is not None:
            kind = parse_enum(AppliesTo, applies_to, "applies to")
            rules = [r for r in rules if r.applies_to == kind]
        return rules

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, text: str, applies_to: AppliesTo | str, user_id: int) -> Optional[FilterVerdict]:
        """Evaluate *text*; return an unsaved verdict, or ``None`` if no rule triggered."""
        kind = parse_enum(AppliesTo, applies_to, "applies to")
        triggered = [rule for rule, matches in self._snapshot() if rule.applies_to == kind and matches(text)]
        if not triggered:
            return None

        chosen = max(triggered, key=lambda r: (r.severity, r.action.rank))
        outcome = self._words.filter(text)
        return FilterVerdict(
            id=0,
            content=text,
            content_type=kind,
            user_id=user_id,
            action=chosen.action,
            triggered_rule_ids=sorted(r.id for r in triggered),
            severity=chosen.severity,
            filtered_content=text,
            cleaned_content=outcome.cleaned,
            automatically_processed=True,
            created_at=to_iso(self._clock()),
        )

    def filter_content(
        self,
        text: str,
        applies_to: AppliesTo | str,
        user_id: int,
        content_id: int = 0,
    ) -> Optional[FilterVerdict]:
        """Evaluate *text* and persist the verdict, if any."""
        verdict = self.evaluate(text, applies_to, user_id)
        if verdict is None:
            return None
        return self.save_verdict(verdict, content_id)

    def save_verdict(self, verdict: FilterVerdict, content_id: int = 0) -> FilterVerdict:
        verdict.content_id = content_id
        saved = self._verdicts.create(verdict)
        logger.info(
            f"Verdict {saved.id} for {saved.content_type.value}:{content_id} "
            f"action={saved.action.value} rules={saved.triggered_rule_ids}"
        )
        return saved

    def get_verdict(self, verdict_id: int) -> FilterVerdict:
        verdict = self._verdicts.get(verdict_id)
        if verdict is None:
            raise NotFound(f"filter result {verdict_id} not found")
        return verdict

    def verdicts_for_content(self, content_type: AppliesTo | str, content_id: int) -> list[FilterVerdict]:
        kind = parse_enum(AppliesTo, content_type, "content type")
        return self._verdicts.find(lambda r: r.get("content_type") == kind.value and r.get("content_id") == content_id)

    def verdicts_for_user(
        self,
        user_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> Page[FilterVerdict]:
        check_deadline(deadline)
        verdicts = self._verdicts.find(lambda r: r.get("user_id") == user_id)
        verdicts.sort(key=lambda v: (v.created_at, v.id), reverse=True)
        return Page.slice(verdicts, page, page_size)

    def review_verdict(self, caller: int, verdict_id: int, action: ModerationAction | str) -> FilterVerdict:
        """Record a moderator's decision on a verdict."""
        self._registry.require_moderator(caller)
        return self.mark_reviewed(verdict_id, caller, parse_enum(ModerationAction, action, "action"))

    def mark_reviewed(self, verdict_id: int, moderator_id: int, action: ModerationAction) -> FilterVerdict:
        with self._storage.transaction():
            verdict = self.get_verdict(verdict_id)
            verdict.action = action
            verdict.automatically_processed = False
            verdict.moderator_id = moderator_id
            verdict.reviewed_at = to_iso(self._clock())
            self._verdicts.save(verdict)
        logger.info(f"Verdict {verdict_id} reviewed by {moderator_id}: {action.value}")
        return verdict

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _snapshot(self) -> list[tuple[Rule, Matcher]]:
        generation = self._rules.generation
        with self._cache_lock:
            if self._cache is None or self._cache[0] != generation:
                self._cache = (generation, self._compile_active())
            return self._cache[1]

    def _compile_active(self) -> list[tuple[Rule, Matcher]]:
        compiled: list[tuple[Rule, Matcher]] = []
        for rule in self._rules.list():
            if not rule.is_active:
                continue
            if rule.pattern_type == PatternType.regex:
                try:
                    pattern = re.compile(rule.pattern)
                except re.error as exc:
                    logger.warning(f"Skipping rule {rule.id}: invalid regex ({exc})")
                    continue
                compiled.append((rule, lambda text, p=pattern: p.search(text) is not None))
            else:
                keywords = [k.lower() for k in rule.keywords]
                if not keywords:
                    logger.warning(f"Skipping rule {rule.id}: empty keyword list")
                    continue
                compiled.append((rule, lambda text, ks=keywords: any(k in text.lower() for k in ks)))
        return compiled


def validate_rule(rule: Rule) -> None:
    require_text(rule.name, "name")
    require_text(rule.pattern, "pattern")
    validate_severity(rule.severity)
    if rule.pattern_type == PatternType.regex:
        compile_regex(rule.pattern)
    elif not rule.keywords:
        raise InvalidArgument("keywords pattern must list at least one keyword")
