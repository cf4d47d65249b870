"""Diff and merge engine.

Computes a character-level diff between an original and a corrected
text, groups it into reviewable choices, and builds the merged result.
"""

from transcript_reconcile.diff.engine import (
    compute_diff,
    corrected_text,
    longest_common_subsequence,
    merge_adjacent,
    original_text,
)
from transcript_reconcile.diff.groups import (
    build_final_text,
    count_changes,
    diff_texts,
    group_segments,
    set_all_choices,
)

__all__ = [
    "build_final_text",
    "compute_diff",
    "corrected_text",
    "count_changes",
    "diff_texts",
    "group_segments",
    "longest_common_subsequence",
    "merge_adjacent",
    "original_text",
    "set_all_choices",
]
