"""Dispatch, preview sessions and the edit workflow."""

from .approval import ApprovalProvider, CallbackApprover, StaticApprover
from .backends import Backend, BackendPool, BackendResolver
from .edit_orchestrator import EditOrchestrator, EditOutcome
from .merge_client import MergeRequest, MergeServiceClient
from .preview_session import PreviewSession, PreviewSessionRegistry, PreviewState
from .relay import RelayStatus, ToolRelay, ToolResponse, create_tool_relay
from .tool_dispatcher import (
    Dispatcher,
    PassThrough,
    Redirected,
    RedirectedInvocation,
    ToolInvocationRequest,
)

__all__ = [
    "ApprovalProvider",
    "CallbackApprover",
    "StaticApprover",
    "Backend",
    "BackendPool",
    "BackendResolver",
    "EditOrchestrator",
    "EditOutcome",
    "MergeRequest",
    "MergeServiceClient",
    "PreviewSession",
    "PreviewSessionRegistry",
    "PreviewState",
    "RelayStatus",
    "ToolRelay",
    "ToolResponse",
    "create_tool_relay",
    "Dispatcher",
    "PassThrough",
    "Redirected",
    "RedirectedInvocation",
    "ToolInvocationRequest",
]
