"""Rule engine: keyword and regex rules producing filter verdicts."""

from modcore.rules.engine import RuleEngine
from modcore.rules.loader import load_rules_file, load_words_file
from modcore.rules.models import AppliesTo, FilterVerdict, ModerationAction, PatternType, Rule

__all__ = [
    "AppliesTo",
    "FilterVerdict",
    "ModerationAction",
    "PatternType",
    "Rule",
    "RuleEngine",
    "load_rules_file",
    "load_words_file",
]
