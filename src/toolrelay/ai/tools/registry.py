"""Capability registry mapping built-in tool names to backend operations.

The registry is populated once, when the rule set is loaded, and is
read-only afterwards. Duplicate source tools are rejected at load time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Sequence

from ruamel.yaml import YAML
from ruamel.yaml.error import MarkedYAMLError

from .errors import ConfigurationError
from .transforms import TransformFamily

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Redirection Rule
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class RedirectionRule:
    """Maps one source tool to a backend operation plus a parameter transform.

    Attributes:
        source_tool: Built-in tool name the agent calls.
        target_backend_kind: Kind of backend that must serve the call.
        target_operation: Operation name on that backend.
        transform: Tool family whose field aliases rewrite the input.
        preferred_backend: Backend id to use when alive; defaults to the kind.
    """

    source_tool: str
    target_backend_kind: str
    target_operation: str
    transform: TransformFamily
    preferred_backend: str | None = field(default=None)

    @property
    def preferred_backend_id(self) -> str:
        return self.preferred_backend or self.target_backend_kind

    def transform_input(self, payload: Mapping[str, Any] | None) -> dict[str, Any]:
        return self.transform.apply(payload)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source_tool,
            "backend": self.target_backend_kind,
            "operation": self.target_operation,
            "family": self.transform.value,
            "preferred_backend": self.preferred_backend_id,
        }


def _rule(source: str, kind: str, operation: str, family: TransformFamily) -> RedirectionRule:
    return RedirectionRule(
        source_tool=source,
        target_backend_kind=kind,
        target_operation=operation,
        transform=family,
    )


DEFAULT_RULES: tuple[RedirectionRule, ...] = (
    _rule("edit_file", "filesystem", "write_file", TransformFamily.WRITE),
    _rule("create_file", "filesystem", "write_file", TransformFamily.WRITE),
    _rule("write_to_file", "filesystem", "write_file", TransformFamily.WRITE),
    _rule("read_file", "filesystem", "read_file", TransformFamily.READ),
    _rule("list_files", "filesystem", "list_directory", TransformFamily.LIST),
    _rule("search_files", "filesystem", "search_files", TransformFamily.SEARCH),
    _rule("delete_file", "filesystem", "delete_file", TransformFamily.READ),
    _rule("rename_file", "filesystem", "move_file", TransformFamily.MOVE),
    _rule("create_dir", "filesystem", "create_directory", TransformFamily.READ),
    _rule("bash", "shell", "run_command", TransformFamily.COMMAND),
)


# -----------------------------------------------------------------------------
# Capability Registry
# -----------------------------------------------------------------------------


class CapabilityRegistry:
    """Static lookup from source tool name to :class:`RedirectionRule`.

    Example:
        registry = CapabilityRegistry(DEFAULT_RULES)
        rule = registry.lookup("edit_file")
    """

    def __init__(self, rules: Iterable[RedirectionRule] = ()) -> None:
        self._rules: dict[str, RedirectionRule] = {}
        for rule in rules:
            if rule.source_tool in self._rules:
                raise ConfigurationError(
                    message=f"Duplicate redirection rule for tool '{rule.source_tool}'",
                    tool_name=rule.source_tool,
                )
            self._rules[rule.source_tool] = rule
        LOGGER.debug("Capability registry loaded with %d rule(s)", len(self._rules))

    @classmethod
    def with_defaults(cls) -> "CapabilityRegistry":
        return cls(DEFAULT_RULES)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "CapabilityRegistry":
        """Build a registry from a parsed ``{"redirections": [...]}`` document."""

        entries = payload.get("redirections")
        if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
            raise ConfigurationError(message="Redirection config must contain a 'redirections' list")
        return cls(_parse_rule(entry, index) for index, entry in enumerate(entries))

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def lookup(self, tool_name: str) -> RedirectionRule | None:
        return self._rules.get(tool_name)

    def redirectable_tools(self) -> list[str]:
        return list(self._rules)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._rules

    def __iter__(self) -> Iterator[RedirectionRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)


def load_rules(path: Path | str) -> CapabilityRegistry:
    """Load a YAML redirection config.

    Expected layout::

        redirections:
          - source: edit_file
            backend: filesystem
            operation: write_file
            family: write
            preferred_backend: filesystem   # optional
    """

    target = Path(path)
    try:
        text = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            message=f"Unable to read redirection config {target}: {exc}",
        ) from exc

    parser = YAML(typ="safe")
    try:
        payload = parser.load(text)
    except MarkedYAMLError as exc:
        line = exc.problem_mark.line + 1 if exc.problem_mark is not None else None
        raise ConfigurationError(
            message=f"Redirection config {target} is not valid YAML: {exc.problem}",
            details={"line": line} if line else {},
        ) from exc

    if not isinstance(payload, Mapping):
        raise ConfigurationError(message=f"Redirection config {target} must be a mapping")
    registry = CapabilityRegistry.from_mapping(payload)
    LOGGER.info("Loaded %d redirection rule(s) from %s", len(registry), target)
    return registry


def _parse_rule(entry: Any, index: int) -> RedirectionRule:
    if not isinstance(entry, Mapping):
        raise ConfigurationError(message=f"Redirection #{index} must be a mapping")
    missing = [key for key in ("source", "backend", "operation", "family") if not entry.get(key)]
    if missing:
        raise ConfigurationError(
            message=f"Redirection #{index} is missing {', '.join(missing)}",
            tool_name=entry.get("source"),
        )
    try:
        family = TransformFamily.parse(entry["family"])
    except ValueError as exc:
        raise ConfigurationError(
            message=f"Redirection #{index} uses unknown family '{entry['family']}'",
            tool_name=str(entry["source"]),
        ) from exc
    preferred = entry.get("preferred_backend")
    return RedirectionRule(
        source_tool=str(entry["source"]),
        target_backend_kind=str(entry["backend"]),
        target_operation=str(entry["operation"]),
        transform=family,
        preferred_backend=str(preferred) if preferred else None,
    )


__all__ = [
    "RedirectionRule",
    "CapabilityRegistry",
    "DEFAULT_RULES",
    "load_rules",
]
