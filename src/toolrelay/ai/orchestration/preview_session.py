"""Preview sessions for proposed document edits.

A session snapshots a document's lines, shows a proposed replacement in the
host editor, and then either persists the proposal or restores the snapshot.
Sessions are keyed by target document identity; at most one non-terminal
session exists per target.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Callable, Sequence

from ...editor.diff import DiffOp, DiffStats, compute_line_diff, diff_stats
from ...editor.documents import HostDocuments
from ..tools.errors import CommitError, SessionConflictError, SessionStateError

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Preview State
# -----------------------------------------------------------------------------


class PreviewState(Enum):
    """State of a preview session."""

    CREATED = auto()  # Snapshot taken, nothing shown
    PREVIEWING = auto()  # Proposal displayed
    COMMITTED = auto()  # Proposal persisted
    REVERTED = auto()  # Snapshot restored

    @property
    def is_terminal(self) -> bool:
        return self in (PreviewState.COMMITTED, PreviewState.REVERTED)


# -----------------------------------------------------------------------------
# Preview Session
# -----------------------------------------------------------------------------


@dataclass
class PreviewSession:
    """One in-flight proposed edit of a single document.

    ``original_lines`` is a private copy taken at creation; later changes to
    the caller's list or intermediate renders never alter what ``revert``
    restores.
    """

    target_id: str
    original_lines: tuple[str, ...]
    host: HostDocuments
    session_id: str = field(default_factory=lambda: f"preview-{uuid.uuid4().hex[:12]}")
    original_trailing_newline: bool | None = None
    proposed_lines: tuple[str, ...] = ()
    proposed_trailing_newline: bool | None = None
    state: PreviewState = PreviewState.CREATED
    diff: tuple[DiffOp, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    closed_at: datetime | None = None

    _on_close: Callable[["PreviewSession"], None] | None = field(default=None, repr=False)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def enter_preview(
        self,
        proposed_lines: Sequence[str],
        *,
        trailing_newline: bool | None = None,
    ) -> tuple[DiffOp, ...]:
        """Show ``proposed_lines`` in the host and return the diff against the snapshot.

        ``trailing_newline`` is the line ending of the proposal's last line;
        ``None`` keeps whatever the document has.

        Raises:
            SessionStateError: The session is not CREATED.
        """
        self._require(PreviewState.CREATED, action="enter preview")
        self.proposed_lines = tuple(proposed_lines)
        self.proposed_trailing_newline = trailing_newline
        self.diff = compute_line_diff(self.original_lines, self.proposed_lines)
        # PREVIEWING before the host call so a partial display is still restored.
        self.state = PreviewState.PREVIEWING
        self.host.replace_lines(
            self.target_id,
            list(self.proposed_lines),
            trailing_newline=trailing_newline,
        )
        LOGGER.debug(
            "Session %s previewing %s (%s)",
            self.session_id,
            self.target_id,
            self.stats.summary(),
        )
        return self.diff

    def commit(self) -> None:
        """Persist the proposal as the document's real content.

        Raises:
            SessionStateError: The session is not PREVIEWING.
            CommitError: The host failed to persist; the snapshot was restored.
        """
        self._require(PreviewState.PREVIEWING, action="commit")
        try:
            self.host.persist(self.target_id)
        except Exception as exc:
            LOGGER.error(
                "Session %s commit failed for %s, restoring original: %s",
                self.session_id,
                self.target_id,
                exc,
            )
            self._restore()
            self._close(PreviewState.REVERTED)
            raise CommitError(
                message=f"Commit failed: {exc}",
                details={"target_id": self.target_id},
            ) from exc
        self._close(PreviewState.COMMITTED)
        LOGGER.info("Session %s committed %s (%s)", self.session_id, self.target_id, self.stats.summary())

    def revert(self, reason: str | None = None) -> None:
        """Restore the snapshot exactly and close the session.

        Allowed from CREATED (nothing was shown yet) and PREVIEWING.

        Raises:
            SessionStateError: The session is already terminal.
        """
        if self.state.is_terminal:
            raise SessionStateError(
                message=f"Cannot revert: session is {self.state.name}",
                details={"session_id": self.session_id, "target_id": self.target_id},
            )
        self._restore()
        self._close(PreviewState.REVERTED)
        LOGGER.info(
            "Session %s reverted %s: %s",
            self.session_id,
            self.target_id,
            reason or "no reason provided",
        )

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return not self.state.is_terminal

    @property
    def stats(self) -> DiffStats:
        return diff_stats(self.diff)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require(self, expected: PreviewState, *, action: str) -> None:
        if self.state is not expected:
            raise SessionStateError(
                message=f"Cannot {action}: session is {self.state.name}",
                details={"session_id": self.session_id, "target_id": self.target_id},
            )

    def _restore(self) -> None:
        # Nothing was displayed while CREATED.
        if self.state is PreviewState.PREVIEWING:
            self.host.replace_lines(
                self.target_id,
                list(self.original_lines),
                trailing_newline=self.original_trailing_newline,
            )

    def _close(self, state: PreviewState) -> None:
        self.state = state
        self.closed_at = datetime.now(timezone.utc)
        if self._on_close is not None:
            self._on_close(self)


# -----------------------------------------------------------------------------
# Session Registry
# -----------------------------------------------------------------------------


class PreviewSessionRegistry:
    """Owns the mapping from target identity to its live preview session.

    Terminal sessions are evicted as soon as they close.
    """

    def __init__(self, host: HostDocuments) -> None:
        self._host = host
        self._lock = threading.RLock()
        self._sessions: dict[str, PreviewSession] = {}

    def create(
        self,
        target_id: str,
        original_lines: Sequence[str],
        *,
        trailing_newline: bool | None = None,
    ) -> PreviewSession:
        """Open a session for ``target_id``.

        Raises:
            SessionConflictError: A non-terminal session already exists for the target.
        """
        with self._lock:
            existing = self._sessions.get(target_id)
            if existing is not None and existing.is_active:
                raise SessionConflictError(
                    message=f"An edit preview is already open for {target_id}",
                    target_id=target_id,
                    details={"session_id": existing.session_id, "state": existing.state.name},
                )
            session = PreviewSession(
                target_id=target_id,
                original_lines=tuple(original_lines),
                original_trailing_newline=trailing_newline,
                host=self._host,
                _on_close=self.evict,
            )
            self._sessions[target_id] = session

        LOGGER.debug("Session %s created for %s", session.session_id, target_id)
        return session

    def get(self, target_id: str) -> PreviewSession | None:
        with self._lock:
            return self._sessions.get(target_id)

    def evict(self, session: PreviewSession) -> None:
        with self._lock:
            if self._sessions.get(session.target_id) is session:
                del self._sessions[session.target_id]

    def active(self) -> list[PreviewSession]:
        with self._lock:
            return [session for session in self._sessions.values() if session.is_active]

    def __contains__(self, target_id: object) -> bool:
        with self._lock:
            return target_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = [
    "PreviewState",
    "PreviewSession",
    "PreviewSessionRegistry",
]
