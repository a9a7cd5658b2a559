"""Tests for the line-level LCS diff."""

from __future__ import annotations

import pytest

from toolrelay.editor.diff import (
    Add,
    Delete,
    Equal,
    apply_diff,
    build_highlights,
    compute_line_diff,
    diff_stats,
    lcs_length,
    render_diff,
)

PAIRS = [
    ([], []),
    ([], ["a", "b"]),
    (["a", "b"], []),
    (["a", "b", "c"], ["a", "x", "c"]),
    (list("ABCBDAB"), list("BDCABA")),
    (["x", "x", "y"], ["y", "x", "x", "x"]),
    (["def f():", "    return 1", ""], ["def f():", "    return 2", "", "print(f())"]),
]


def test_replacement_orders_delete_before_add() -> None:
    ops = compute_line_diff(["a", "b", "c"], ["a", "x", "c"])

    assert ops == (Equal(1, 1), Delete(2, "b"), Add(2, "x"), Equal(3, 3))


def test_single_line_tie_prefers_add_during_backtrack() -> None:
    assert compute_line_diff(["a"], ["b"]) == (Delete(1, "a"), Add(1, "b"))


def test_empty_sides() -> None:
    assert compute_line_diff([], []) == ()
    assert compute_line_diff([], ["a", "b"]) == (Add(1, "a"), Add(2, "b"))
    assert compute_line_diff(["a", "b"], []) == (Delete(1, "a"), Delete(2, "b"))


def test_identical_inputs_are_all_equal() -> None:
    lines = ["one", "two", "three"]

    ops = compute_line_diff(lines, list(lines))

    assert ops == (Equal(1, 1), Equal(2, 2), Equal(3, 3))
    assert not diff_stats(ops).changed


@pytest.mark.parametrize("original, proposed", PAIRS)
def test_applying_ops_reconstructs_proposed(original: list[str], proposed: list[str]) -> None:
    ops = compute_line_diff(original, proposed)

    assert apply_diff(original, ops) == proposed


@pytest.mark.parametrize("original, proposed", PAIRS)
def test_edit_count_is_minimal(original: list[str], proposed: list[str]) -> None:
    ops = compute_line_diff(original, proposed)
    edits = sum(1 for op in ops if not isinstance(op, Equal))

    assert edits == len(original) + len(proposed) - 2 * lcs_length(original, proposed)


def test_lcs_length_of_classic_example() -> None:
    assert lcs_length(list("ABCBDAB"), list("BDCABA")) == 4


def test_diff_is_deterministic() -> None:
    original = ["x", "x", "y"]
    proposed = ["y", "x", "x", "x"]

    assert compute_line_diff(original, proposed) == compute_line_diff(original, proposed)


def test_comparison_is_exact_not_fuzzy() -> None:
    ops = compute_line_diff(["a "], ["a"])

    assert Equal(1, 1) not in ops
    assert diff_stats(ops).to_dict() == {"unchanged": 0, "added": 1, "removed": 1}


def test_render_and_stats() -> None:
    original = ["a", "b", "c"]
    ops = compute_line_diff(original, ["a", "x", "c"])

    assert render_diff(ops, original) == [" a", "-b", "+x", " c"]
    assert diff_stats(ops).summary() == "diff: +1 -1 =2"


def test_highlights_anchor_deleted_lines_under_proposed_line() -> None:
    highlights = build_highlights(compute_line_diff(["a", "b", "c"], ["a", "x", "c"]))

    assert highlights.incoming == (1,)
    assert highlights.deleted == ((1, ("b",)),)


def test_highlights_trailing_delete_anchors_past_last_line() -> None:
    highlights = build_highlights(compute_line_diff(["a", "b"], ["a"]))

    assert highlights.incoming == ()
    assert highlights.deleted == ((1, ("b",)),)
