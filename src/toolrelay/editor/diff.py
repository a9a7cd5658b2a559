"""Line-level LCS diff used to render and apply edit previews."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union


@dataclass(slots=True, frozen=True)
class Equal:
    """Line ``orig_idx`` of the original equals line ``new_idx`` of the proposal (1-based)."""

    orig_idx: int
    new_idx: int


@dataclass(slots=True, frozen=True)
class Add:
    """``content`` is inserted as line ``new_idx`` of the proposal (1-based)."""

    new_idx: int
    content: str


@dataclass(slots=True, frozen=True)
class Delete:
    """Line ``orig_idx`` of the original (1-based) is removed."""

    orig_idx: int
    content: str


DiffOp = Union[Equal, Add, Delete]


@dataclass(slots=True, frozen=True)
class DiffStats:
    """Counts of unchanged, added and removed lines."""

    unchanged: int
    added: int
    removed: int

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)

    def summary(self) -> str:
        return f"diff: +{self.added} -{self.removed} ={self.unchanged}"

    def to_dict(self) -> dict[str, int]:
        return {"unchanged": self.unchanged, "added": self.added, "removed": self.removed}


@dataclass(slots=True, frozen=True)
class PreviewHighlights:
    """What a UI needs to paint a preview over the proposed lines.

    Attributes:
        incoming: 0-based proposed line indices to highlight as new.
        deleted: ``(anchor, lines)`` pairs; ``lines`` were removed right
            before proposed line ``anchor`` (0-based, may equal the line count).
    """

    incoming: Tuple[int, ...]
    deleted: Tuple[Tuple[int, Tuple[str, ...]], ...]


def compute_line_diff(original: Sequence[str], proposed: Sequence[str]) -> Tuple[DiffOp, ...]:
    """Return the minimal edit script turning ``original`` into ``proposed``.

    Lines are compared by exact string equality. The backtrack walks from the
    end of both sequences and, when the two neighbouring LCS values tie,
    emits an ``Add`` before considering a ``Delete``; in forward order this
    places deletions ahead of the insertions that replace them.
    """

    rows = len(original)
    cols = len(proposed)
    table = _lcs_table(original, proposed)

    ops: List[DiffOp] = []
    i, j = rows, cols
    while i > 0 or j > 0:
        if i > 0 and j > 0 and original[i - 1] == proposed[j - 1]:
            ops.append(Equal(orig_idx=i, new_idx=j))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i][j - 1] >= table[i - 1][j]):
            ops.append(Add(new_idx=j, content=proposed[j - 1]))
            j -= 1
        else:
            ops.append(Delete(orig_idx=i, content=original[i - 1]))
            i -= 1
    ops.reverse()
    return tuple(ops)


def lcs_length(original: Sequence[str], proposed: Sequence[str]) -> int:
    return _lcs_table(original, proposed)[len(original)][len(proposed)]


def _lcs_table(original: Sequence[str], proposed: Sequence[str]) -> List[List[int]]:
    cols = len(proposed)
    table = [[0] * (cols + 1) for _ in range(len(original) + 1)]
    for i, left in enumerate(original, start=1):
        row = table[i]
        above = table[i - 1]
        for j, right in enumerate(proposed, start=1):
            if left == right:
                row[j] = above[j - 1] + 1
            else:
                row[j] = max(above[j], row[j - 1])
    return table


def apply_diff(original: Sequence[str], ops: Sequence[DiffOp]) -> List[str]:
    """Replay ``ops`` against ``original``: copy on Equal, skip on Delete, insert on Add."""

    result: List[str] = []
    for op in ops:
        if isinstance(op, Equal):
            result.append(original[op.orig_idx - 1])
        elif isinstance(op, Add):
            result.append(op.content)
    return result


def diff_stats(ops: Sequence[DiffOp]) -> DiffStats:
    unchanged = added = removed = 0
    for op in ops:
        if isinstance(op, Equal):
            unchanged += 1
        elif isinstance(op, Add):
            added += 1
        else:
            removed += 1
    return DiffStats(unchanged=unchanged, added=added, removed=removed)


def render_diff(
    ops: Sequence[DiffOp],
    original: Sequence[str],
) -> List[str]:
    """Render ops as ``" "``/``"-"``/``"+"`` prefixed lines."""

    rendered: List[str] = []
    for op in ops:
        if isinstance(op, Equal):
            rendered.append(f" {original[op.orig_idx - 1]}")
        elif isinstance(op, Delete):
            rendered.append(f"-{op.content}")
        else:
            rendered.append(f"+{op.content}")
    return rendered


def build_highlights(ops: Sequence[DiffOp]) -> PreviewHighlights:
    incoming: List[int] = []
    deleted: List[Tuple[int, Tuple[str, ...]]] = []
    pending: List[str] = []
    next_line = 0
    for op in ops:
        if isinstance(op, Delete):
            pending.append(op.content)
            continue
        if pending:
            deleted.append((next_line, tuple(pending)))
            pending = []
        if isinstance(op, Add):
            incoming.append(op.new_idx - 1)
        next_line += 1
    if pending:
        deleted.append((next_line, tuple(pending)))
    return PreviewHighlights(incoming=tuple(incoming), deleted=tuple(deleted))


__all__ = [
    "Equal",
    "Add",
    "Delete",
    "DiffOp",
    "DiffStats",
    "PreviewHighlights",
    "compute_line_diff",
    "lcs_length",
    "apply_diff",
    "diff_stats",
    "render_diff",
    "build_highlights",
]
