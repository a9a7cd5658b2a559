"""Approval collaborators asked before a previewed edit is committed."""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Protocol, Union

LOGGER = logging.getLogger(__name__)

ApprovalResult = Union[bool, Awaitable[bool]]


class ApprovalProvider(Protocol):
    """Answers "may I proceed" for one previewed edit.

    May resolve synchronously (policy auto-approve) or return an awaitable
    that completes when a human decides.
    """

    def request_approval(self, message: str, target_id: str) -> ApprovalResult:
        ...


class CallbackApprover:
    """Adapts a plain callable, sync or async, to :class:`ApprovalProvider`."""

    def __init__(self, callback: Callable[[str, str], ApprovalResult]) -> None:
        self._callback = callback

    async def request_approval(self, message: str, target_id: str) -> bool:
        result = self._callback(message, target_id)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)


class StaticApprover:
    """Always gives the same answer; used for auto-approve policies."""

    def __init__(self, approve: bool = True) -> None:
        self._approve = approve

    def request_approval(self, message: str, target_id: str) -> bool:
        LOGGER.debug("Auto-%s edit for %s", "approving" if self._approve else "rejecting", target_id)
        return self._approve


def build_confirmation_message(path: str, instructions: str) -> str:
    return (
        f"Apply edit to '{path}'?\n\n"
        f"Instructions: {instructions}\n\n"
        "Preview is shown in the editor. Review the highlighted changes before confirming."
    )


__all__ = [
    "ApprovalResult",
    "ApprovalProvider",
    "CallbackApprover",
    "StaticApprover",
    "build_confirmation_message",
]
