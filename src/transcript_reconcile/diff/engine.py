"""Character-level diff based on the longest common subsequence.

Strings are compared per Unicode code point (Python ``str`` indexing),
so characters outside the basic plane are never split.

Example:
    segments = compute_diff("abc", "axc")
    # [equal "a", delete "b", insert "x", equal "c"]
"""

from __future__ import annotations

from collections.abc import Iterable

from transcript_reconcile.models.diff import DiffKind, DiffSegment


def _lcs_table(a: str, b: str) -> list[list[int]]:
    """Build the (len(a)+1) x (len(b)+1) LCS length table."""
    n = len(b)
    dp = [[0] * (n + 1) for _ in range(len(a) + 1)]

    for i in range(1, len(a) + 1):
        char = a[i - 1]
        prev_row = dp[i - 1]
        row = dp[i]
        for j in range(1, n + 1):
            if char == b[j - 1]:
                row[j] = prev_row[j - 1] + 1
            else:
                up = prev_row[j]
                left = row[j - 1]
                row[j] = up if up >= left else left

    return dp


def longest_common_subsequence(a: str, b: str) -> str:
    """Return one longest common subsequence of two strings.

    When several subsequences of maximal length exist, the backtrack
    prefers stepping up (dropping a character of ``a``) on ties, which
    fixes which one is returned.

    Args:
        a: First string
        b: Second string

    Returns:
        The common subsequence (empty if the strings share nothing)
    """
    if not a or not b:
        return ""

    dp = _lcs_table(a, b)

    chars: list[str] = []
    i, j = len(a), len(b)
    while i > 0 and j > 0:
        if a[i - 1] == b[j - 1]:
            chars.append(a[i - 1])
            i -= 1
            j -= 1
        elif dp[i - 1][j] >= dp[i][j - 1]:
            i -= 1
        else:
            j -= 1

    chars.reverse()
    return "".join(chars)


def merge_adjacent(segments: Iterable[DiffSegment]) -> list[DiffSegment]:
    """Merge neighbouring segments of the same kind.

    Empty segments are dropped.

    Args:
        segments: Segments in order

    Returns:
        Canonical segment list
    """
    merged: list[DiffSegment] = []
    for segment in segments:
        if not segment.text:
            continue
        if merged and merged[-1].kind == segment.kind:
            merged[-1] = DiffSegment(kind=segment.kind, text=merged[-1].text + segment.text)
        else:
            merged.append(segment)
    return merged


def compute_diff(original: str, corrected: str) -> list[DiffSegment]:
    """Compute the edit from ``original`` to ``corrected``.

    The common subsequence is used as an anchor: for each anchor
    character, original text before it becomes a deletion, corrected
    text before it becomes an insertion, and the run of characters both
    strings share in lockstep becomes an equal segment. Leftover
    suffixes become a final deletion and insertion.

    Joining the delete and equal segments reproduces ``original``;
    joining the insert and equal segments reproduces ``corrected``.

    Args:
        original: Human-authored text
        corrected: Machine-corrected text

    Returns:
        Ordered list of segments
    """
    common = longest_common_subsequence(original, corrected)
    segments: list[DiffSegment] = []

    o_len, c_len, l_len = len(original), len(corrected), len(common)
    oi = ci = li = 0

    while li < l_len:
        anchor = common[li]

        start = oi
        while oi < o_len and original[oi] != anchor:
            oi += 1
        if oi > start:
            segments.append(DiffSegment(kind=DiffKind.DELETE, text=original[start:oi]))

        start = ci
        while ci < c_len and corrected[ci] != anchor:
            ci += 1
        if ci > start:
            segments.append(DiffSegment(kind=DiffKind.INSERT, text=corrected[start:ci]))

        start = oi
        while (
            li < l_len
            and oi < o_len
            and ci < c_len
            and original[oi] == common[li]
            and corrected[ci] == common[li]
        ):
            oi += 1
            ci += 1
            li += 1
        if oi > start:
            segments.append(DiffSegment(kind=DiffKind.EQUAL, text=original[start:oi]))

    if oi < o_len:
        segments.append(DiffSegment(kind=DiffKind.DELETE, text=original[oi:]))
    if ci < c_len:
        segments.append(DiffSegment(kind=DiffKind.INSERT, text=corrected[ci:]))

    return merge_adjacent(segments)


def original_text(segments: Iterable[DiffSegment]) -> str:
    """Rebuild the original string from its segments."""
    return "".join(s.text for s in segments if s.kind != DiffKind.INSERT)


def corrected_text(segments: Iterable[DiffSegment]) -> str:
    """Rebuild the corrected string from its segments."""
    return "".join(s.text for s in segments if s.kind != DiffKind.DELETE)
