"""Parameter transforms that rewrite tool input into a backend's schema.

Each tool family declares, once, the output fields it produces and the input
aliases accepted for each of them. Aliases cover every field name that agents
have historically used for the same value, and are tried in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from .errors import TransformError

_MISSING = object()


@dataclass(slots=True, frozen=True)
class FieldSpec:
    """One output field of a transform and the input names it may come from."""

    name: str
    aliases: tuple[str, ...]
    required: bool = True
    default: Any = _MISSING

    def resolve(self, payload: Mapping[str, Any], *, family: str) -> Any:
        for alias in self.aliases:
            value = payload.get(alias)
            if value is not None:
                return value
        if self.default is not _MISSING:
            return self.default
        if self.required:
            raise TransformError(
                message=f"{family} input requires '{self.name}' (accepted: {', '.join(self.aliases)})",
                field_name=self.name,
                aliases=self.aliases,
            )
        return _MISSING


_PATH = FieldSpec("path", ("path", "file_path", "filepath"))

_FAMILY_FIELDS: dict[str, tuple[FieldSpec, ...]] = {
    "write": (
        _PATH,
        FieldSpec("content", ("content", "file_text", "new_str")),
    ),
    "read": (_PATH,),
    "list": (
        FieldSpec("path", ("path", "directory", "dir"), default="."),
    ),
    "search": (
        FieldSpec("pattern", ("pattern", "query", "regex")),
        FieldSpec("path", ("path", "directory"), default="."),
    ),
    "move": (
        FieldSpec("source", ("old_path", "source_path", "source", "src")),
        FieldSpec("destination", ("new_path", "destination_path", "destination", "dest")),
    ),
    "command": (
        FieldSpec("command", ("command", "cmd")),
        FieldSpec("working_directory", ("path", "cwd", "working_directory"), required=False),
    ),
}


class TransformFamily(Enum):
    """Tagged strategy table: one variant per tool family."""

    WRITE = "write"
    READ = "read"
    LIST = "list"
    SEARCH = "search"
    MOVE = "move"
    COMMAND = "command"

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return _FAMILY_FIELDS[self.value]

    def apply(self, payload: Mapping[str, Any] | None) -> dict[str, Any]:
        """Return ``payload`` rewritten into the family's output schema.

        Raises:
            TransformError: A required field is absent under every alias.
        """
        source = payload or {}
        result: dict[str, Any] = {}
        for field_spec in self.fields:
            value = field_spec.resolve(source, family=self.value)
            if value is not _MISSING:
                result[field_spec.name] = value
        return result

    def accepted_aliases(self) -> dict[str, tuple[str, ...]]:
        return {field_spec.name: field_spec.aliases for field_spec in self.fields}

    @classmethod
    def parse(cls, value: "str | TransformFamily") -> "TransformFamily":
        if isinstance(value, TransformFamily):
            return value
        return cls(str(value).strip().lower())


# -----------------------------------------------------------------------------
# Edit Requests
# -----------------------------------------------------------------------------

_EDIT_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("path", ("path", "file_path", "target_file")),
    FieldSpec("code_edit", ("code_edit", "edit", "update")),
    FieldSpec("instructions", ("instructions", "instruction", "description"), default=""),
)


@dataclass(slots=True, frozen=True)
class EditRequest:
    """A proposed edit: target path, a one-line intent and the edit sketch."""

    path: str
    code_edit: str
    instructions: str = ""

    @classmethod
    def from_input(cls, payload: Mapping[str, Any] | None) -> "EditRequest":
        source = payload or {}
        values = {field_spec.name: field_spec.resolve(source, family="edit") for field_spec in _EDIT_FIELDS}
        return cls(
            path=str(values["path"]),
            code_edit=str(values["code_edit"]),
            instructions=str(values["instructions"]),
        )


def family_names() -> Sequence[str]:
    return [member.value for member in TransformFamily]


__all__ = [
    "FieldSpec",
    "TransformFamily",
    "EditRequest",
    "family_names",
]
