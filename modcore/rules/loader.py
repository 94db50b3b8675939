"""Load rule and prohibited-word definitions from YAML.

Rules file::

    rules:
      - name: profanity
        pattern: badword, worseword
        pattern_type: keywords
        action: send_to_queue
        severity: 5
        applies_to: comment

Words file::

    words:
      - word: heck
        replacement: "***"
        is_auto_replace: true
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from modcore.errors import InvalidArgument

RULE_KEYS = {"name", "description", "pattern", "pattern_type", "action", "severity", "applies_to", "is_active"}
WORD_KEYS = {"word", "replacement", "is_regex", "is_auto_replace", "severity", "is_active"}


def load_rules_file(path: str | Path) -> list[dict[str, Any]]:
    """Return the rule definitions in *path* as keyword dicts for ``RuleEngine.create_rule``."""
    return _load_entries(path, "rules", RULE_KEYS, required=("name", "pattern"))


def load_words_file(path: str | Path) -> list[dict[str, Any]]:
    """Return the word definitions in *path* as keyword dicts for ``ProhibitedWordFilter.add``."""
    return _load_entries(path, "words", WORD_KEYS, required=("word",))


def _load_entries(path: str | Path, section: str, allowed: set[str], required: tuple[str, ...]) -> list[dict[str, Any]]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict) or not isinstance(data.get(section, []), list):
        raise InvalidArgument(f"{path}: expected a mapping with a '{section}' list")

    entries = []
    for index, entry in enumerate(data.get(section, []), 1):
        if not isinstance(entry, dict):
            raise InvalidArgument(f"{path}: {section} entry {index} is not a mapping")
        unknown = sorted(set(entry) - allowed)
        if unknown:
            raise InvalidArgument(f"{path}: {section} entry {index} has unknown key(s): {', '.join(unknown)}")
        missing = [k for k in required if not entry.get(k)]
        if missing:
            raise InvalidArgument(f"{path}: {section} entry {index} is missing: {', '.join(missing)}")
        entries.append(dict(entry))
    return entries
