"""Prohibited-word catalog and the text filter built on it."""

from modcore.words.filter import ProhibitedWordFilter
from modcore.words.models import FilterOutcome, ProhibitedWord

__all__ = ["FilterOutcome", "ProhibitedWord", "ProhibitedWordFilter"]
