"""Text file IO helpers that preserve encoding and newline style."""

from __future__ import annotations

import codecs
import hashlib
import locale
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "TextFile",
    "read_text_file",
    "write_text",
    "detect_newline",
    "compute_text_digest",
]

_BOM_MAP: dict[bytes, str] = {
    codecs.BOM_UTF8: "utf-8-sig",
    codecs.BOM_UTF16_LE: "utf-16-le",
    codecs.BOM_UTF16_BE: "utf-16-be",
    codecs.BOM_UTF32_LE: "utf-32-le",
    codecs.BOM_UTF32_BE: "utf-32-be",
}


@dataclass(slots=True, frozen=True)
class TextFile:
    """Decoded file contents plus what is needed to write them back unchanged.

    ``text`` always uses ``"\\n"`` line endings; ``newline`` records the style
    found on disk.
    """

    text: str
    encoding: str
    newline: str


def read_text_file(path: Path | str, *, encoding: str | None = None) -> TextFile:
    """Read a text file, detecting BOM/encoding and the dominant newline style."""

    target = Path(path)
    raw = target.read_bytes()
    detected_encoding = encoding or _detect_encoding(raw)
    text = raw.decode(detected_encoding)
    if text.startswith("\ufeff"):
        text = text[1:]
    newline = detect_newline(text)
    return TextFile(text=_normalize_newlines(text), encoding=detected_encoding, newline=newline)


def write_text(
    path: Path | str,
    content: str,
    *,
    encoding: str = "utf-8",
    newline: str = "\n",
    atomic: bool = True,
) -> Path:
    """Write text to disk using atomic semantics and configurable newline style."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    normalized = _apply_newline_policy(content, newline)
    if not atomic:
        with target.open("w", encoding=encoding, newline="") as handle:
            handle.write(normalized)
            handle.flush()
            os.fsync(handle.fileno())
        return target

    descriptor, tmp_name = tempfile.mkstemp(
        dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(descriptor, "w", encoding=encoding, newline="") as handle:
            handle.write(normalized)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    finally:
        if os.path.exists(tmp_name):  # pragma: no cover - cleanup path
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
    return target


def detect_newline(text: str) -> str:
    """Return the first newline sequence in ``text`` (``"\\n"`` when there is none)."""

    index = text.find("\n")
    carriage = text.find("\r")
    if carriage == -1:
        return "\n"
    if index == -1 or carriage < index:
        return "\r\n" if text[carriage : carriage + 2] == "\r\n" else "\r"
    return "\n"


def compute_text_digest(text: str) -> str:
    """Return a SHA-256 digest for the provided text."""

    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _detect_encoding(raw: bytes) -> str:
    for bom, encoding in _BOM_MAP.items():
        if raw.startswith(bom):
            return encoding

    preferred = locale.getpreferredencoding(False) or "utf-8"
    seen: set[str] = set()
    for candidate in ("utf-8", preferred, "latin-1"):
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        try:
            raw.decode(candidate)
            return candidate
        except UnicodeDecodeError:
            continue
    return "utf-8"


def _normalize_newlines(text: str) -> str:
    if "\r" not in text:
        return text
    text = text.replace("\r\n", "\n")
    return text.replace("\r", "\n")


def _apply_newline_policy(content: str, newline: str) -> str:
    normalized = _normalize_newlines(content)
    if newline == "\n":
        return normalized
    if newline == "\r\n":
        return normalized.replace("\n", "\r\n")
    if newline == "\r":
        return normalized.replace("\n", "\r")
    raise ValueError(f"Unsupported newline policy: {newline!r}")
