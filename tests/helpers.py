"""Shared test helpers and stub classes.

Import from here instead of duplicating these fakes in individual test files.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

from toolrelay.ai.orchestration.merge_client import MergeRequest
from toolrelay.ai.tools.errors import DocumentNotFoundError, MergeServiceError


class FakeHost:
    """In-memory host document API.

    ``displayed`` is what the editor shows; ``persisted`` is what is on disk.
    """

    def __init__(
        self,
        documents: Mapping[str, Sequence[str]] | None = None,
        *,
        directories: Sequence[str] = (),
        fail_persist: bool = False,
        fail_replace: bool = False,
    ) -> None:
        self.displayed: dict[str, list[str]] = {key: list(value) for key, value in (documents or {}).items()}
        self.persisted: dict[str, list[str]] = {key: list(value) for key, value in self.displayed.items()}
        self.directories = set(directories)
        self.fail_persist = fail_persist
        self.fail_replace = fail_replace
        self.trailing: dict[str, bool] = {key: True for key in self.displayed}
        self.persisted_trailing: dict[str, bool] = dict(self.trailing)
        self.replace_calls: list[tuple[str, list[str]]] = []
        self.persist_calls: list[str] = []

    def resolve_target(self, path: str) -> str:
        return path

    def read_lines(self, target_id: str) -> list[str]:
        if target_id not in self.displayed:
            raise DocumentNotFoundError(message=f"File not found: {target_id}", document_id=target_id)
        return list(self.displayed[target_id])

    def is_directory(self, target_id: str) -> bool:
        return target_id in self.directories

    def has_trailing_newline(self, target_id: str) -> bool:
        return self.trailing.get(target_id, True)

    def replace_lines(
        self,
        target_id: str,
        lines: Sequence[str],
        *,
        trailing_newline: bool | None = None,
    ) -> None:
        self.replace_calls.append((target_id, list(lines)))
        if self.fail_replace:
            # Fails once, leaving a partial display behind.
            self.fail_replace = False
            self.displayed[target_id] = list(lines[:1])
            raise RuntimeError("display update failed")
        self.displayed[target_id] = list(lines)
        if trailing_newline is not None:
            self.trailing[target_id] = trailing_newline

    def persist(self, target_id: str) -> None:
        self.persist_calls.append(target_id)
        if self.fail_persist:
            raise OSError("disk full")
        self.persisted[target_id] = list(self.displayed[target_id])
        self.persisted_trailing[target_id] = self.has_trailing_newline(target_id)


class FakeMerge:
    """Merge service stub that resolves, rejects or never answers."""

    def __init__(
        self,
        content: str | None = None,
        *,
        error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self.content = content
        self.error = error
        self.hang = hang
        self.requests: list[MergeRequest] = []

    async def merge(self, request: MergeRequest) -> str:
        self.requests.append(request)
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        if self.content is None:
            raise MergeServiceError(message="no content configured")
        return self.content


class FakeApprover:
    """Approval stub answering synchronously, asynchronously or never."""

    def __init__(self, answer: bool = True, *, asynchronous: bool = False, hang: bool = False) -> None:
        self.answer = answer
        self.asynchronous = asynchronous
        self.hang = hang
        self.messages: list[tuple[str, str]] = []

    def request_approval(self, message: str, target_id: str) -> Any:
        self.messages.append((message, target_id))
        if self.hang:
            return asyncio.Event().wait()
        if self.asynchronous:
            return self._answer_later()
        return self.answer

    async def _answer_later(self) -> bool:
        await asyncio.sleep(0)
        return self.answer


class FakeTransport:
    """Backend transport recording every call."""

    def __init__(self, result: Any = "ok") -> None:
        self.result = result
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    async def call_tool(self, backend_id: str, operation: str, arguments: Mapping[str, Any]) -> Any:
        self.calls.append((backend_id, operation, dict(arguments)))
        return self.result
