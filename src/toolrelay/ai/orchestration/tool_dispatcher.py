"""Tool Dispatcher for backend redirection.

Receives every tool invocation and decides whether it runs on the built-in
handler or is rerouted to a connected backend. Routing is a pure decision:
the dispatcher never calls the backend itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Union

from ..tools.errors import ConfigurationError
from ..tools.registry import CapabilityRegistry
from .backends import BackendResolver

LOGGER = logging.getLogger(__name__)

BACKEND_TOOL_NAME = "use_backend_tool"


# -----------------------------------------------------------------------------
# Invocation Types
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ToolInvocationRequest:
    """A named tool call with its arguments. Immutable once issued."""

    name: str
    input: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", MappingProxyType(dict(self.input or {})))


@dataclass(slots=True, frozen=True)
class RedirectedInvocation:
    """A call rerouted to ``operation`` on backend ``backend_id``."""

    backend_id: str
    operation: str
    input: Mapping[str, Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", MappingProxyType(dict(self.input)))

    def as_tool_use(self) -> dict[str, Any]:
        """Render as the generic backend tool call an agent would have made."""
        return {
            "name": BACKEND_TOOL_NAME,
            "input": {
                "server_name": self.backend_id,
                "tool_name": self.operation,
                "tool_input": dict(self.input),
            },
        }


@dataclass(slots=True, frozen=True)
class PassThrough:
    """The request runs on its built-in handler unchanged."""

    request: ToolInvocationRequest


@dataclass(slots=True, frozen=True)
class Redirected:
    """The request was rewritten for a backend."""

    invocation: RedirectedInvocation
    source_tool: str = ""


DispatchDecision = Union[PassThrough, Redirected]


# -----------------------------------------------------------------------------
# Dispatcher
# -----------------------------------------------------------------------------


class Dispatcher:
    """Routes tool invocations per the redirection policy.

    Example:
        dispatcher = Dispatcher(
            registry=CapabilityRegistry.with_defaults(),
            resolver=BackendResolver(pool),
            disabled_tools={"bash", "edit_file"},
        )
        decision = await dispatcher.dispatch(ToolInvocationRequest("bash", {"command": "ls"}))
    """

    def __init__(
        self,
        *,
        registry: CapabilityRegistry,
        resolver: BackendResolver,
        disabled_tools: Iterable[str] = (),
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._disabled = frozenset(disabled_tools)

    @property
    def disabled_tools(self) -> frozenset[str]:
        return self._disabled

    def should_redirect(self, tool_name: str) -> bool:
        return tool_name in self._disabled

    async def dispatch(self, request: ToolInvocationRequest) -> DispatchDecision:
        """Decide where ``request`` runs.

        Raises:
            ConfigurationError: The tool is disabled but has no redirection rule.
            BackendUnavailableError: No live backend of the rule's kind.
            TransformError: The input lacks a required field under every alias.
        """
        if not self.should_redirect(request.name):
            LOGGER.debug("Tool %s passes through", request.name)
            return PassThrough(request)

        rule = self._registry.lookup(request.name)
        if rule is None:
            raise ConfigurationError(
                message=f"no redirection rule for disabled tool '{request.name}'",
                tool_name=request.name,
            )

        backend = await self._resolver.resolve(
            rule.target_backend_kind,
            preferred=rule.preferred_backend_id,
            operation=rule.target_operation,
        )
        transformed = rule.transform_input(request.input)

        LOGGER.debug(
            "Redirecting %s to %s.%s",
            request.name,
            backend.id,
            rule.target_operation,
        )
        return Redirected(
            invocation=RedirectedInvocation(
                backend_id=backend.id,
                operation=rule.target_operation,
                input=transformed,
            ),
            source_tool=request.name,
        )


__all__ = [
    "BACKEND_TOOL_NAME",
    "ToolInvocationRequest",
    "RedirectedInvocation",
    "PassThrough",
    "Redirected",
    "DispatchDecision",
    "Dispatcher",
]
