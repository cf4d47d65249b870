"""Grouping of diff segments into choices, and building the merged text."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from transcript_reconcile.diff.engine import compute_diff
from transcript_reconcile.models.diff import DiffGroup, DiffKind, DiffSegment, GroupKind


def group_segments(segments: Sequence[DiffSegment]) -> list[DiffGroup]:
    """Collapse segments into accept/reject groups.

    Each equal segment becomes its own group. Each maximal run of
    delete/insert segments becomes one change group whose
    ``original_text`` joins the deletions and ``corrected_text`` joins
    the insertions, in encounter order. Change groups start with
    ``use_new=True``.

    Args:
        segments: Output of compute_diff

    Returns:
        Groups with ids numbered from 0
    """
    groups: list[DiffGroup] = []
    i = 0

    while i < len(segments):
        segment = segments[i]

        if segment.kind == DiffKind.EQUAL:
            groups.append(
                DiffGroup(
                    id=len(groups),
                    kind=GroupKind.EQUAL,
                    original_text=segment.text,
                    corrected_text=segment.text,
                    use_new=False,
                )
            )
            i += 1
            continue

        deleted: list[str] = []
        inserted: list[str] = []
        while i < len(segments) and segments[i].kind != DiffKind.EQUAL:
            if segments[i].kind == DiffKind.DELETE:
                deleted.append(segments[i].text)
            else:
                inserted.append(segments[i].text)
            i += 1

        groups.append(
            DiffGroup(
                id=len(groups),
                kind=GroupKind.CHANGE,
                original_text="".join(deleted),
                corrected_text="".join(inserted),
                use_new=True,
            )
        )

    return groups


def build_final_text(groups: Iterable[DiffGroup]) -> str:
    """Join the chosen side of every group.

    Equal groups contribute their shared text; change groups contribute
    the corrected text when ``use_new`` is set, else the original.
    """
    return "".join(group.chosen_text for group in groups)


def diff_texts(original: str, corrected: str) -> list[DiffGroup]:
    """Diff two texts and return the groups ready for review."""
    return group_segments(compute_diff(original, corrected))


def set_all_choices(groups: Iterable[DiffGroup], use_new: bool) -> int:
    """Accept or reject every change group at once.

    Returns:
        Number of change groups updated
    """
    updated = 0
    for group in groups:
        if group.is_change:
            group.use_new = use_new
            updated += 1
    return updated


def count_changes(groups: Iterable[DiffGroup]) -> int:
    """Count the change groups in a group list."""
    return sum(1 for group in groups if group.is_change)
