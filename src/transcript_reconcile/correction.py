"""Per-line correction entries.

A correction entry pairs one line of the original transcript with its
machine correction. The reviewer either picks a whole side or edits at
character level through diff groups, in which case the merged text is
kept as ``final_text``.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel

from transcript_reconcile.diff.groups import build_final_text, diff_texts
from transcript_reconcile.models.diff import DiffGroup


class CorrectionChoice(str, Enum):
    """Which side of a correction entry to keep."""

    ORIGINAL = "original"
    CORRECTED = "corrected"


class CorrectionEntry(BaseModel):
    """One original/corrected line pair awaiting a decision."""

    id: int
    original: str
    corrected: str
    has_diff: bool = False
    choice: CorrectionChoice = CorrectionChoice.CORRECTED
    final_text: str | None = None  # Set after character-level editing

    @classmethod
    def from_pair(cls, entry_id: int, original: str, corrected: str) -> "CorrectionEntry":
        """Create an entry, flagging whether the two sides differ."""
        return cls(
            id=entry_id,
            original=original,
            corrected=corrected,
            has_diff=original != corrected,
        )

    def diff_groups(self) -> list[DiffGroup]:
        """Fresh diff groups for character-level review."""
        return diff_texts(self.original, self.corrected)

    def apply_groups(self, groups: Iterable[DiffGroup]) -> str:
        """Store the merged text of reviewed groups as the final text."""
        self.final_text = build_final_text(groups)
        return self.final_text

    def choose(self, choice: CorrectionChoice) -> None:
        """Pick a whole side, dropping any character-level edit."""
        self.choice = choice
        self.final_text = None

    def resolved_text(self) -> str:
        """Text to keep for this line."""
        if self.final_text is not None:
            return self.final_text
        if self.choice == CorrectionChoice.CORRECTED:
            return self.corrected
        return self.original


def resolve_all(entries: Iterable[CorrectionEntry]) -> list[str]:
    """Resolved text of every entry, in order."""
    return [entry.resolved_text() for entry in entries]
