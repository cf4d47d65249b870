"""Diff models for transcript-reconcile.

Segments describe a character-level edit between an original and a
corrected text; groups are the accept/reject units built from them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class DiffKind(str, Enum):
    """Classification of a diff segment."""

    EQUAL = "equal"  # Present in both texts
    DELETE = "delete"  # Only in the original
    INSERT = "insert"  # Only in the corrected text


class GroupKind(str, Enum):
    """Classification of a diff group."""

    EQUAL = "equal"
    CHANGE = "change"


class DiffSegment(BaseModel):
    """A typed run of text produced by the diff engine."""

    model_config = ConfigDict(frozen=True)

    kind: DiffKind
    text: str

    def __len__(self) -> int:
        return len(self.text)


class DiffGroup(BaseModel):
    """A single accept/reject choice over one or more segments.

    Equal groups carry the same text on both sides. Change groups hold
    the concatenated deletions as ``original_text`` and the concatenated
    insertions as ``corrected_text``; ``use_new`` selects which one ends
    up in the merged output.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: int
    kind: GroupKind
    original_text: str
    corrected_text: str
    use_new: bool = True

    @property
    def is_change(self) -> bool:
        """True for change groups."""
        return self.kind == GroupKind.CHANGE

    @property
    def chosen_text(self) -> str:
        """Text this group contributes to the merged output."""
        if self.kind == GroupKind.EQUAL:
            return self.original_text
        return self.corrected_text if self.use_new else self.original_text
