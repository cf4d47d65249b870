"""Punctuation classification.

Character tables for Chinese (full-width), English and special
punctuation, plus helpers to spot diff groups that only change
punctuation so they can be accepted or rejected in bulk.
"""

from __future__ import annotations

from collections.abc import Iterable

from transcript_reconcile.models.diff import DiffGroup

CHINESE_PUNCTUATION = frozenset(
    "，。！？、；："  # full-width stops
    "“”‘’"  # quotes
    "（）《》【】"  # brackets
    "…—"  # ellipsis, em dash
)

ENGLISH_PUNCTUATION = frozenset(",.!?;:'\"()[]{}")

SPECIAL_PUNCTUATION = frozenset("·~～@#$%^&*_+=|\\/<>")

ALL_PUNCTUATION = CHINESE_PUNCTUATION | ENGLISH_PUNCTUATION | SPECIAL_PUNCTUATION


def is_punctuation(char: str) -> bool:
    """Check if a single character is a known punctuation mark."""
    return char in ALL_PUNCTUATION


def punctuation_class(char: str) -> str | None:
    """Return "chinese", "english" or "special" for a punctuation mark."""
    if char in CHINESE_PUNCTUATION:
        return "chinese"
    if char in ENGLISH_PUNCTUATION:
        return "english"
    if char in SPECIAL_PUNCTUATION:
        return "special"
    return None


def strip_punctuation(text: str) -> str:
    """Remove every known punctuation mark from text."""
    return "".join(c for c in text if c not in ALL_PUNCTUATION)


def is_punctuation_only_change(group: DiffGroup) -> bool:
    """Check if a change group differs only in punctuation.

    Whitespace is significant: a group that adds or drops a space is
    not a punctuation-only change.
    """
    if not group.is_change:
        return False
    return strip_punctuation(group.original_text) == strip_punctuation(group.corrected_text)


def accept_punctuation_changes(groups: Iterable[DiffGroup], use_new: bool = True) -> int:
    """Set ``use_new`` on every punctuation-only change group.

    Returns:
        Number of groups updated
    """
    updated = 0
    for group in groups:
        if is_punctuation_only_change(group):
            group.use_new = use_new
            updated += 1
    return updated
