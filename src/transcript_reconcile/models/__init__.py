"""Data models for transcript-reconcile.

This module provides the diff and smart dictionary models.
"""

from __future__ import annotations

from transcript_reconcile.models.dictionary import ApplyResult, DictionaryEntry, Replacement
from transcript_reconcile.models.diff import DiffGroup, DiffKind, DiffSegment, GroupKind

__all__ = [
    # Diff models
    "DiffGroup",
    "DiffKind",
    "DiffSegment",
    "GroupKind",
    # Dictionary models
    "ApplyResult",
    "DictionaryEntry",
    "Replacement",
]
