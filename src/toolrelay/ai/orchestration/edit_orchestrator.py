"""End-to-end "propose an edit" workflow.

The orchestrator validates the target, snapshots it into a preview session,
asks the merge service for the full proposed document, shows it, waits for
approval and then commits or reverts. Every failure is reported as an
:class:`EditOutcome`; no session is left open when ``propose_edit`` returns.

Suspension points are the merge request and the approval prompt. Both are
bounded when a timeout is configured, and cancellation at either of them
reverts the preview before the cancellation propagates.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any

from ..tools.errors import (
    ApprovalTimeoutError,
    DocumentNotFoundError,
    ErrorCode,
    MergeTimeoutError,
    ParseError,
    PathError,
    ToolError,
    UserRejectedError,
)
from ..tools.transforms import EditRequest
from ...editor.diff import DiffStats
from ...editor.documents import HostDocuments
from .approval import ApprovalProvider, build_confirmation_message
from .merge_client import MergeRequest, MergeService, split_merged_content
from .preview_session import PreviewSession, PreviewSessionRegistry, PreviewState

LOGGER = logging.getLogger(__name__)

DEFAULT_MERGE_TIMEOUT = 120.0


# -----------------------------------------------------------------------------
# Edit Outcome
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class EditOutcome:
    """Final result of one proposed edit.

    Attributes:
        success: Whether the proposal was committed.
        path: Path as given by the caller.
        target_id: Resolved document identity, when validation got that far.
        state: Final session state; ``None`` when no session was created.
        error: The failure, when ``success`` is false.
        stats: Line counts of the previewed diff.
        metadata: Session bookkeeping (``session_id``) merged into ``to_dict``.
    """

    success: bool
    path: str
    target_id: str | None = None
    state: PreviewState | None = None
    error: ToolError | None = None
    stats: DiffStats | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def error_code(self) -> str | None:
        return self.error.error_code if self.error else None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return f"Successfully edited {self.path}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "path": self.path}
        if self.state is not None:
            data["state"] = self.state.name
        if self.stats is not None:
            data["diff"] = self.stats.to_dict()
        if self.error is not None:
            data["error"] = self.error.to_dict()
        data.update(self.metadata)
        return data


# -----------------------------------------------------------------------------
# Edit Orchestrator
# -----------------------------------------------------------------------------


class EditOrchestrator:
    """Drives validate -> snapshot -> merge -> preview -> approve -> commit/revert.

    Example:
        orchestrator = EditOrchestrator(
            host=WorkspaceDocuments(root),
            merge_service=MergeServiceClient(settings),
            approver=CallbackApprover(ask_user),
        )
        outcome = await orchestrator.propose_edit(EditRequest("app.py", sketch, "Rename foo"))
    """

    def __init__(
        self,
        *,
        host: HostDocuments,
        merge_service: MergeService,
        approver: ApprovalProvider,
        sessions: PreviewSessionRegistry | None = None,
        merge_timeout: float | None = DEFAULT_MERGE_TIMEOUT,
        approval_timeout: float | None = None,
    ) -> None:
        self._host = host
        self._merge_service = merge_service
        self._approver = approver
        self._sessions = sessions or PreviewSessionRegistry(host)
        self._merge_timeout = merge_timeout
        self._approval_timeout = approval_timeout

    @property
    def sessions(self) -> PreviewSessionRegistry:
        return self._sessions

    async def propose_edit(self, request: EditRequest) -> EditOutcome:
        try:
            target_id = self._validate_target(request.path)
            original = self._read_original(target_id, request.path)
            session = self._sessions.create(
                target_id,
                original,
                trailing_newline=self._host.has_trailing_newline(target_id),
            )
        except ToolError as exc:
            return self._failure(request, exc)

        try:
            await self._generate_preview(session, request)
            approved = await self._request_approval(session, request)
        except asyncio.CancelledError:
            self._close(session, "cancelled")
            raise
        except ToolError as exc:
            self._close(session, exc.message)
            return self._failure(request, exc, session)
        except Exception as exc:
            LOGGER.exception("Unexpected failure while previewing edit to %s", session.target_id)
            self._close(session, "internal error")
            error = ToolError(error_code=ErrorCode.INTERNAL_ERROR, message=str(exc) or type(exc).__name__)
            return self._failure(request, error, session)

        if not approved:
            session.revert("rejected by user")
            return self._failure(request, UserRejectedError(), session)

        try:
            session.commit()
        except ToolError as exc:
            return self._failure(request, exc, session)

        return EditOutcome(
            success=True,
            path=request.path,
            target_id=session.target_id,
            state=session.state,
            stats=session.stats,
            metadata={"session_id": session.session_id},
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _validate_target(self, path: str) -> str:
        target_id = self._host.resolve_target(path)
        if self._host.is_directory(target_id):
            raise PathError(message=f"path is a directory: {path}", path=path)
        return target_id

    def _read_original(self, target_id: str, path: str) -> list[str]:
        try:
            return list(self._host.read_lines(target_id))
        except DocumentNotFoundError as exc:
            raise PathError(message=f"Failed to read file: {path} - {exc.message}", path=path) from exc

    async def _generate_preview(self, session: PreviewSession, request: EditRequest) -> None:
        merge_request = MergeRequest.from_lines(
            request.instructions,
            session.original_lines,
            request.code_edit,
        )
        try:
            merged = await asyncio.wait_for(
                self._merge_service.merge(merge_request),
                timeout=self._merge_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise MergeTimeoutError(timeout_seconds=self._merge_timeout) from exc
        if not isinstance(merged, str) or not merged:
            raise ParseError(message="Empty preview content")
        session.enter_preview(
            split_merged_content(merged),
            trailing_newline=merged.endswith("\n"),
        )

    async def _request_approval(self, session: PreviewSession, request: EditRequest) -> bool:
        message = build_confirmation_message(request.path, request.instructions)
        result = self._approver.request_approval(message, session.target_id)
        if not inspect.isawaitable(result):
            return bool(result)
        try:
            return bool(await asyncio.wait_for(result, timeout=self._approval_timeout))
        except asyncio.TimeoutError as exc:
            raise ApprovalTimeoutError(
                details={"timeout_seconds": self._approval_timeout},
            ) from exc

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _close(session: PreviewSession, reason: str) -> None:
        if session.is_active:
            session.revert(reason)

    @staticmethod
    def _failure(
        request: EditRequest,
        error: ToolError,
        session: PreviewSession | None = None,
    ) -> EditOutcome:
        if error.severity == "info":
            LOGGER.info("Edit to %s not applied: %s", request.path, error.message)
        else:
            LOGGER.warning("Edit to %s failed: %s", request.path, error)
        return EditOutcome(
            success=False,
            path=request.path,
            target_id=session.target_id if session else None,
            state=session.state if session else None,
            error=error,
            stats=session.stats if session and session.diff else None,
            metadata={"session_id": session.session_id} if session else {},
        )


__all__ = [
    "DEFAULT_MERGE_TIMEOUT",
    "EditOutcome",
    "EditOrchestrator",
]
