"""Host document API and a workspace-backed buffer implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Protocol, Sequence

from ..ai.tools.errors import DocumentNotFoundError, PathError
from ..utils.file_io import compute_text_digest, read_text_file, write_text

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HostDocuments(Protocol):
    """What the edit workflow needs from the host editor's text storage."""

    def resolve_target(self, path: str) -> str:
        """Return the canonical document identity for ``path``."""
        ...

    def read_lines(self, target_id: str) -> List[str]:
        """Return the current lines, raising DocumentNotFoundError when absent."""
        ...

    def is_directory(self, target_id: str) -> bool:
        ...

    def has_trailing_newline(self, target_id: str) -> bool:
        """Whether the document's last line ends with a newline."""
        ...

    def replace_lines(
        self,
        target_id: str,
        lines: Sequence[str],
        *,
        trailing_newline: bool | None = None,
    ) -> None:
        """Replace the displayed lines without writing them anywhere.

        ``trailing_newline`` of ``None`` keeps the document's current ending.
        """
        ...

    def persist(self, target_id: str) -> None:
        """Write the displayed lines as the document's real content."""
        ...


@dataclass(slots=True)
class DocumentBuffer:
    """Editable copy of one file, with what is needed to write it back."""

    path: Path
    lines: List[str]
    newline: str = "\n"
    encoding: str = "utf-8"
    trailing_newline: bool = True
    dirty: bool = False
    version_id: int = 1
    content_hash: str = field(default_factory=str)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.content_hash:
            self.content_hash = compute_text_digest(self.text())

    def text(self) -> str:
        body = "\n".join(self.lines)
        if self.trailing_newline and self.lines:
            body += "\n"
        return body

    def set_lines(self, lines: Sequence[str], *, trailing_newline: bool | None = None) -> None:
        self.lines = list(lines)
        if trailing_newline is not None:
            self.trailing_newline = trailing_newline
        self.dirty = True
        self.version_id += 1
        self.updated_at = _utcnow()
        self.content_hash = compute_text_digest(self.text())


class WorkspaceDocuments:
    """In-process host: files under ``root`` are loaded into line buffers on first read.

    ``replace_lines`` only changes the buffer; ``persist`` writes the buffer
    back using the encoding and newline style the file was read with.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser().resolve()
        self._buffers: dict[str, DocumentBuffer] = {}

    @property
    def root(self) -> Path:
        return self._root

    def resolve_target(self, path: str) -> str:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self._root / candidate
        resolved = candidate.resolve()
        if resolved != self._root and self._root not in resolved.parents:
            raise PathError(
                message=f"Path is outside the workspace: {path}",
                path=str(path),
            )
        return str(resolved)

    def read_lines(self, target_id: str) -> List[str]:
        return list(self._load(target_id).lines)

    def is_directory(self, target_id: str) -> bool:
        return Path(target_id).is_dir()

    def has_trailing_newline(self, target_id: str) -> bool:
        return self._load(target_id).trailing_newline

    def replace_lines(
        self,
        target_id: str,
        lines: Sequence[str],
        *,
        trailing_newline: bool | None = None,
    ) -> None:
        buffer = self._load(target_id)
        buffer.set_lines(lines, trailing_newline=trailing_newline)
        LOGGER.debug("Buffer %s now has %d line(s)", target_id, len(buffer.lines))

    def persist(self, target_id: str) -> None:
        buffer = self._buffers.get(target_id)
        if buffer is None:
            raise DocumentNotFoundError(message=f"No open buffer for {target_id}", document_id=target_id)
        write_text(buffer.path, buffer.text(), encoding=buffer.encoding, newline=buffer.newline)
        buffer.dirty = False
        LOGGER.debug("Persisted %s (%d line(s))", target_id, len(buffer.lines))

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def buffer(self, target_id: str) -> DocumentBuffer | None:
        return self._buffers.get(target_id)

    def close(self, target_id: str) -> bool:
        """Drop a buffer, discarding unsaved changes."""
        return self._buffers.pop(target_id, None) is not None

    def _load(self, target_id: str) -> DocumentBuffer:
        buffer = self._buffers.get(target_id)
        if buffer is not None:
            return buffer
        path = Path(target_id)
        if not path.is_file():
            raise DocumentNotFoundError(message=f"File not found: {target_id}", document_id=target_id)
        try:
            loaded = read_text_file(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentNotFoundError(
                message=f"Failed to read file: {target_id} - {exc}",
                document_id=target_id,
            ) from exc
        lines = loaded.text.split("\n")
        trailing = len(lines) > 1 and lines[-1] == ""
        if trailing:
            lines = lines[:-1]
        elif lines == [""]:
            lines = []
        buffer = DocumentBuffer(
            path=path,
            lines=lines,
            newline=loaded.newline,
            encoding=loaded.encoding,
            trailing_newline=trailing,
        )
        self._buffers[target_id] = buffer
        return buffer


__all__ = ["HostDocuments", "DocumentBuffer", "WorkspaceDocuments"]
