"""Front door for agent tool calls.

:class:`ToolRelay` runs every invocation through the dispatcher, then sends
redirected calls to their backend, edit-class tools through the preview
workflow and everything else to its built-in handler. Failures of any kind
come back as a structured :class:`ToolResponse`; nothing is raised to the
agent loop.
"""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from ...editor.documents import HostDocuments
from ...services.settings import Settings
from ...utils.logging import configure_logging
from ..tools.errors import ErrorCode, ToolError
from ..tools.registry import CapabilityRegistry, load_rules
from ..tools.transforms import EditRequest
from .approval import ApprovalProvider
from .backends import Backend, BackendDiscovery, BackendResolver, BackendTransport
from .edit_orchestrator import EditOrchestrator, EditOutcome
from .merge_client import MergeService, MergeServiceClient
from .tool_dispatcher import Dispatcher, PassThrough, RedirectedInvocation, ToolInvocationRequest

LOGGER = logging.getLogger(__name__)

BuiltinHandler = Callable[[Mapping[str, Any]], Any]


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class ToolResponse:
    """What the agent receives for one tool call."""

    success: bool
    output: str | None = None
    error: str | None = None
    error_code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: ToolError, **metadata: Any) -> "ToolResponse":
        return cls(success=False, error=str(error), error_code=error.error_code, metadata=dict(metadata))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.output is not None:
            data["output"] = self.output
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(slots=True)
class RelayStatus:
    """Snapshot of routing state for status displays."""

    active_backends: list[Backend]
    disabled_tools: list[str]
    redirectable_tools: list[str]
    edit_tools: list[str]
    open_previews: list[str]

    @property
    def has_backends(self) -> bool:
        return bool(self.active_backends)

    def lines(self) -> list[str]:
        if not self.active_backends:
            lines = ["Backends: no live backends connected"]
        else:
            lines = [f"Backends: active with {len(self.active_backends)} backend(s)"]
            lines.extend(f"  {backend.id} ({backend.kind})" for backend in self.active_backends)
        lines.append("")
        lines.append(f"Disabled tools: {', '.join(self.disabled_tools) or 'none'}")
        lines.append(f"Redirectable tools: {', '.join(self.redirectable_tools) or 'none'}")
        lines.append(f"Edit tools: {', '.join(self.edit_tools) or 'none'}")
        if self.open_previews:
            lines.append(f"Open previews: {', '.join(self.open_previews)}")
        return lines


# -----------------------------------------------------------------------------
# Tool Relay
# -----------------------------------------------------------------------------


class ToolRelay:
    """Routes agent tool calls to backends, the edit workflow or built-in handlers."""

    def __init__(
        self,
        *,
        dispatcher: Dispatcher,
        resolver: BackendResolver,
        transport: BackendTransport,
        registry: CapabilityRegistry,
        orchestrator: EditOrchestrator | None = None,
        builtin_handlers: Mapping[str, BuiltinHandler] | None = None,
        edit_tools: Iterable[str] = ("edit_file",),
        merge_client: MergeServiceClient | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._resolver = resolver
        self._transport = transport
        self._registry = registry
        self._orchestrator = orchestrator
        self._handlers: dict[str, BuiltinHandler] = dict(builtin_handlers or {})
        self._edit_tools = frozenset(edit_tools)
        self._merge_client = merge_client

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def orchestrator(self) -> EditOrchestrator | None:
        return self._orchestrator

    def register_handler(self, tool_name: str, handler: BuiltinHandler) -> None:
        self._handlers[tool_name] = handler

    async def handle(
        self,
        request: ToolInvocationRequest | str,
        arguments: Mapping[str, Any] | None = None,
    ) -> ToolResponse:
        """Run one tool call and report its outcome."""

        if not isinstance(request, ToolInvocationRequest):
            request = ToolInvocationRequest(name=request, input=arguments or {})

        try:
            decision = await self._dispatcher.dispatch(request)
            if isinstance(decision, PassThrough):
                return await self._run_builtin(request)
            return await self._call_backend(decision.invocation, request.name)
        except ToolError as exc:
            LOGGER.warning("Tool %s failed: %s", request.name, exc)
            return ToolResponse.from_error(exc, tool_name=request.name)
        except Exception as exc:
            LOGGER.exception("Unexpected failure handling tool %s", request.name)
            error = ToolError(error_code=ErrorCode.INTERNAL_ERROR, message=str(exc) or type(exc).__name__)
            return ToolResponse.from_error(error, tool_name=request.name)

    async def status(self) -> RelayStatus:
        active = await self._resolver.list_active()
        previews = self._orchestrator.sessions.active() if self._orchestrator else []
        return RelayStatus(
            active_backends=active,
            disabled_tools=sorted(self._dispatcher.disabled_tools),
            redirectable_tools=self._registry.redirectable_tools(),
            edit_tools=sorted(self._edit_tools),
            open_previews=[session.target_id for session in previews],
        )

    async def backends_prompt(self) -> str:
        """One-line summary of live backends for the agent's system prompt."""

        active = await self._resolver.list_active()
        if not active:
            return ""
        return "Available backends: " + ", ".join(backend.id for backend in active)

    async def aclose(self) -> None:
        if self._merge_client is not None:
            await self._merge_client.aclose()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _call_backend(self, invocation: RedirectedInvocation, source_tool: str) -> ToolResponse:
        result = self._transport.call_tool(invocation.backend_id, invocation.operation, dict(invocation.input))
        if inspect.isawaitable(result):
            result = await result
        return ToolResponse(
            success=True,
            output=_render_output(result),
            metadata={
                "tool_name": source_tool,
                "backend_id": invocation.backend_id,
                "operation": invocation.operation,
            },
        )

    async def _run_builtin(self, request: ToolInvocationRequest) -> ToolResponse:
        if request.name in self._edit_tools and self._orchestrator is not None:
            outcome = await self._orchestrator.propose_edit(EditRequest.from_input(request.input))
            return _edit_response(outcome, request.name)

        handler = self._handlers.get(request.name)
        if handler is None:
            raise ToolError(
                error_code=ErrorCode.TOOL_NOT_FOUND,
                message=f"Unknown tool: {request.name}",
            )
        result = handler(request.input)
        if inspect.isawaitable(result):
            result = await result
        return ToolResponse(success=True, output=_render_output(result), metadata={"tool_name": request.name})


def _edit_response(outcome: EditOutcome, tool_name: str) -> ToolResponse:
    metadata: dict[str, Any] = {"tool_name": tool_name, **outcome.to_dict()}
    if outcome.success or outcome.error is None:
        return ToolResponse(success=True, output=outcome.message, metadata=metadata)
    response = ToolResponse.from_error(outcome.error)
    response.metadata.update(metadata)
    return response


def _render_output(result: Any) -> str | None:
    if result is None or isinstance(result, str):
        return result
    try:
        return json.dumps(result, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(result)


# -----------------------------------------------------------------------------
# Factory
# -----------------------------------------------------------------------------


def create_tool_relay(
    settings: Settings,
    *,
    host: HostDocuments,
    discovery: BackendDiscovery,
    transport: BackendTransport,
    approver: ApprovalProvider,
    merge_service: MergeService | None = None,
    builtin_handlers: Mapping[str, BuiltinHandler] | None = None,
) -> ToolRelay:
    """Wire a relay from resolved settings and the host's collaborators.

    ``settings.debug_logging`` switches the process to DEBUG file logging.
    """

    if settings.debug_logging:
        configure_logging(settings)
    if settings.redirections_path:
        registry = load_rules(Path(settings.redirections_path).expanduser())
    else:
        registry = CapabilityRegistry.with_defaults()

    resolver = BackendResolver(discovery)
    dispatcher = Dispatcher(
        registry=registry,
        resolver=resolver,
        disabled_tools=settings.disabled_tools,
    )
    merge_client = None
    if merge_service is None:
        merge_client = MergeServiceClient(settings)
        merge_service = merge_client
    orchestrator = EditOrchestrator(
        host=host,
        merge_service=merge_service,
        approver=approver,
        merge_timeout=settings.request_timeout,
        approval_timeout=settings.approval_timeout,
    )
    return ToolRelay(
        dispatcher=dispatcher,
        resolver=resolver,
        transport=transport,
        registry=registry,
        orchestrator=orchestrator,
        builtin_handlers=builtin_handlers,
        edit_tools=settings.edit_tools,
        merge_client=merge_client,
    )


__all__ = [
    "ToolResponse",
    "RelayStatus",
    "ToolRelay",
    "create_tool_relay",
]
