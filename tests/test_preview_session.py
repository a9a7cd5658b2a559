"""Tests for the preview session state machine and registry."""

from __future__ import annotations

import pytest

from tests.helpers import FakeHost
from toolrelay.ai.orchestration.preview_session import PreviewSessionRegistry, PreviewState
from toolrelay.ai.tools.errors import CommitError, SessionConflictError, SessionStateError
from toolrelay.editor.diff import Add, Delete, Equal


def make_registry(lines: list[str] | None = None, **host_kwargs) -> tuple[FakeHost, PreviewSessionRegistry]:
    host = FakeHost({"doc": lines if lines is not None else ["a", "b", "c"]}, **host_kwargs)
    return host, PreviewSessionRegistry(host)


def test_enter_preview_displays_proposal_without_persisting() -> None:
    host, registry = make_registry()
    session = registry.create("doc", host.read_lines("doc"))

    ops = session.enter_preview(["a", "x", "c"])

    assert session.state is PreviewState.PREVIEWING
    assert ops == (Equal(1, 1), Delete(2, "b"), Add(2, "x"), Equal(3, 3))
    assert host.displayed["doc"] == ["a", "x", "c"]
    assert host.persisted["doc"] == ["a", "b", "c"]
    assert host.persist_calls == []


def test_commit_persists_and_evicts() -> None:
    host, registry = make_registry()
    session = registry.create("doc", host.read_lines("doc"))
    session.enter_preview(["a", "x", "c"])

    session.commit()

    assert session.state is PreviewState.COMMITTED
    assert host.persisted["doc"] == ["a", "x", "c"]
    assert registry.get("doc") is None
    assert len(registry) == 0


def test_revert_restores_exact_original() -> None:
    original = ["first", "", "  indented", "last"]
    host, registry = make_registry(original)
    session = registry.create("doc", original)
    original.append("mutated after create")
    session.enter_preview(["completely", "different"])
    host.displayed["doc"] = ["an intermediate render"]

    session.revert("user declined")

    assert host.displayed["doc"] == ["first", "", "  indented", "last"]
    assert session.state is PreviewState.REVERTED
    assert "doc" not in registry


def test_revert_from_created_does_not_touch_host() -> None:
    host, registry = make_registry()
    session = registry.create("doc", host.read_lines("doc"))

    session.revert("merge failed")

    assert session.state is PreviewState.REVERTED
    assert host.replace_calls == []
    assert registry.get("doc") is None


def test_second_create_conflicts_while_previewing() -> None:
    host, registry = make_registry()
    session = registry.create("doc", host.read_lines("doc"))
    session.enter_preview(["z"])

    with pytest.raises(SessionConflictError) as excinfo:
        registry.create("doc", ["anything"])

    assert excinfo.value.target_id == "doc"
    assert registry.get("doc") is session
    assert host.displayed["doc"] == ["z"]


def test_create_is_allowed_again_after_terminal_state() -> None:
    host, registry = make_registry()
    first = registry.create("doc", host.read_lines("doc"))
    first.revert()

    second = registry.create("doc", host.read_lines("doc"))

    assert second is not first
    assert second.state is PreviewState.CREATED


def test_sessions_for_different_targets_are_independent() -> None:
    host = FakeHost({"one": ["1"], "two": ["2"]})
    registry = PreviewSessionRegistry(host)

    first = registry.create("one", ["1"])
    second = registry.create("two", ["2"])

    assert {session.target_id for session in registry.active()} == {"one", "two"}
    first.revert()
    assert registry.active() == [second]


@pytest.mark.parametrize("action", ["commit", "enter_preview_twice"])
def test_invalid_transitions_raise(action: str) -> None:
    host, registry = make_registry()
    session = registry.create("doc", host.read_lines("doc"))

    with pytest.raises(SessionStateError):
        if action == "commit":
            session.commit()
        else:
            session.enter_preview(["x"])
            session.enter_preview(["y"])


def test_terminal_session_rejects_every_transition() -> None:
    host, registry = make_registry()
    session = registry.create("doc", host.read_lines("doc"))
    session.enter_preview(["x"])
    session.commit()

    for transition in (session.commit, session.revert, lambda: session.enter_preview(["y"])):
        with pytest.raises(SessionStateError):
            transition()


def test_commit_failure_restores_original_and_ends_reverted() -> None:
    host, registry = make_registry(fail_persist=True)
    session = registry.create("doc", host.read_lines("doc"))
    session.enter_preview(["a", "x", "c"])

    with pytest.raises(CommitError) as excinfo:
        session.commit()

    assert "disk full" in excinfo.value.message
    assert session.state is PreviewState.REVERTED
    assert host.displayed["doc"] == ["a", "b", "c"]
    assert registry.get("doc") is None


def test_stats_follow_the_diff() -> None:
    host, registry = make_registry()
    session = registry.create("doc", host.read_lines("doc"))
    session.enter_preview(["a", "b", "c", "d"])

    assert session.stats.to_dict() == {"unchanged": 3, "added": 1, "removed": 0}


def test_failed_display_update_is_restored_on_revert() -> None:
    host, registry = make_registry(fail_replace=True)
    session = registry.create("doc", host.read_lines("doc"))

    with pytest.raises(RuntimeError):
        session.enter_preview(["x", "y", "z"])
    session.revert("display failed")

    assert session.state is PreviewState.REVERTED
    assert host.displayed["doc"] == ["a", "b", "c"]
    assert host.replace_calls[-1] == ("doc", ["a", "b", "c"])


def test_revert_restores_original_line_ending() -> None:
    host, registry = make_registry()
    host.trailing["doc"] = False
    session = registry.create("doc", host.read_lines("doc"), trailing_newline=False)
    session.enter_preview(["a", "x", "c"], trailing_newline=True)

    assert host.has_trailing_newline("doc") is True

    session.revert()

    assert host.has_trailing_newline("doc") is False
