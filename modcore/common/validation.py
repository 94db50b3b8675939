"""Input validation shared by the rule and prohibited-word catalogs."""

from __future__ import annotations

import re

from modcore.errors import InvalidArgument

MIN_SEVERITY = 1
MAX_SEVERITY = 10


def validate_severity(severity: int) -> int:
    if isinstance(severity, bool) or not isinstance(severity, int):
        raise InvalidArgument(f"severity must be an integer, got {severity!r}")
    if not MIN_SEVERITY <= severity <= MAX_SEVERITY:
        raise InvalidArgument(f"severity must be between {MIN_SEVERITY} and {MAX_SEVERITY}")
    return severity


def compile_regex(pattern: str, flags: int = 0) -> re.Pattern[str]:
    """Compile *pattern*, turning ``re.error`` into ``InvalidArgument``."""
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise InvalidArgument(f"invalid regex pattern '{pattern}': {exc}") from None


def require_text(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{field_name} is required")
    return value
