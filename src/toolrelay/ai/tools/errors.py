"""Standardized error types for tool routing and edit previews.

This module provides a hierarchy of error classes with consistent
JSON serialization for tool responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes used in tool responses."""

    # Routing errors
    CONFIGURATION_ERROR = "configuration_error"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    TRANSFORM_FAILED = "transform_failed"

    # Target/document errors
    PATH_ERROR = "path_error"
    DOCUMENT_NOT_FOUND = "document_not_found"

    # Preview session errors
    SESSION_CONFLICT = "session_conflict"
    INVALID_SESSION_STATE = "invalid_session_state"
    COMMIT_FAILED = "commit_failed"

    # Merge service errors
    MERGE_FAILED = "merge_failed"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    PARSE_ERROR = "parse_error"

    # Approval outcomes
    USER_REJECTED = "user_rejected"
    APPROVAL_TIMEOUT = "approval_timeout"

    # General errors
    INTERNAL_ERROR = "internal_error"
    INVALID_PARAMETER = "invalid_parameter"
    TOOL_NOT_FOUND = "tool_not_found"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class ToolError(Exception):
    """Base exception class for all tool errors.

    Provides consistent JSON serialization and error categorization.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    # Class-level default for error severity
    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for JSON tool responses."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# -----------------------------------------------------------------------------
# Routing Errors
# -----------------------------------------------------------------------------

@dataclass
class ConfigurationError(ToolError):
    """Raised for a bad or missing redirection rule.

    Duplicate rules are reported when the rule set is loaded; a disabled
    tool without a rule is reported when it is dispatched.
    """

    error_code: str = field(default=ErrorCode.CONFIGURATION_ERROR)
    message: str = field(default="Invalid redirection configuration")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Check the redirection rules and the disabled tool list")

    tool_name: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.tool_name is not None:
            result["tool_name"] = self.tool_name
        return result


@dataclass
class BackendUnavailableError(ToolError):
    """Raised when no live backend of the required kind is connected."""

    error_code: str = field(default=ErrorCode.BACKEND_UNAVAILABLE)
    message: str = field(default="No live backend is available")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Start or reconnect a backend that provides this capability")

    kind: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.kind is not None:
            result["kind"] = self.kind
        return result


@dataclass
class TransformError(ToolError):
    """Raised when a required input field is absent under every accepted alias."""

    error_code: str = field(default=ErrorCode.TRANSFORM_FAILED)
    message: str = field(default="Required tool input is missing")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Provide the missing field using one of the accepted names")

    field_name: str | None = field(default=None)
    aliases: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field_name is not None:
            result["field"] = self.field_name
        if self.aliases:
            result["accepted_names"] = list(self.aliases)
        return result


# -----------------------------------------------------------------------------
# Target/Document Errors
# -----------------------------------------------------------------------------

@dataclass
class PathError(ToolError):
    """Raised when an edit target is missing or is a directory."""

    error_code: str = field(default=ErrorCode.PATH_ERROR)
    message: str = field(default="The target path cannot be edited")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Point the edit at an existing file")

    path: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.path is not None:
            result["path"] = self.path
        return result


@dataclass
class DocumentNotFoundError(ToolError):
    """Raised by a host when a document cannot be read."""

    error_code: str = field(default=ErrorCode.DOCUMENT_NOT_FOUND)
    message: str = field(default="Document not found")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Ensure the file exists")

    document_id: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.document_id is not None:
            result["document_id"] = self.document_id
        return result


# -----------------------------------------------------------------------------
# Preview Session Errors
# -----------------------------------------------------------------------------

@dataclass
class SessionConflictError(ToolError):
    """Raised when a preview is already in flight for the same target."""

    error_code: str = field(default=ErrorCode.SESSION_CONFLICT)
    message: str = field(default="Another edit preview is open for this document")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Wait for the pending preview to be accepted or rejected, then retry")

    target_id: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.target_id is not None:
            result["target_id"] = self.target_id
        return result


@dataclass
class SessionStateError(ToolError):
    """Raised on a preview session transition that its state does not allow."""

    error_code: str = field(default=ErrorCode.INVALID_SESSION_STATE)
    message: str = field(default="Invalid preview session transition")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")


@dataclass
class CommitError(ToolError):
    """Raised when persisting a previewed edit fails."""

    error_code: str = field(default=ErrorCode.COMMIT_FAILED)
    message: str = field(default="Failed to save the edited document")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="The preview was reverted; check file permissions and retry")


# -----------------------------------------------------------------------------
# Merge Service Errors
# -----------------------------------------------------------------------------

@dataclass
class MergeServiceError(ToolError):
    """Raised when the remote merge service reports a failure."""

    error_code: str = field(default=ErrorCode.MERGE_FAILED)
    message: str = field(default="Preview generation failed")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Retry the edit; the document was left unchanged")


@dataclass
class NetworkError(MergeServiceError):
    """Raised when the merge service is unreachable or answers with an HTTP error."""

    error_code: str = field(default=ErrorCode.NETWORK_ERROR)
    message: str = field(default="Merge service request failed")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Check the merge endpoint and API key")

    status_code: int | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        return result


@dataclass
class MergeTimeoutError(MergeServiceError):
    """Raised when the merge service does not answer within the bounded wait."""

    error_code: str = field(default=ErrorCode.TIMEOUT)
    message: str = field(default="timeout")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Retry later or raise the request timeout")

    timeout_seconds: float | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.timeout_seconds is not None:
            result["timeout_seconds"] = self.timeout_seconds
        return result


@dataclass
class ParseError(MergeServiceError):
    """Raised when the merge service response is malformed or empty."""

    error_code: str = field(default=ErrorCode.PARSE_ERROR)
    message: str = field(default="Invalid preview response")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Retry the edit; the merge service returned unusable content")


# -----------------------------------------------------------------------------
# Approval Outcomes
# -----------------------------------------------------------------------------

@dataclass
class UserRejectedError(ToolError):
    """The user declined a previewed edit. Benign: reported, never logged as a crash."""

    error_code: str = field(default=ErrorCode.USER_REJECTED)
    message: str = field(default="File edit cancelled by user")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    severity: ClassVar[str] = "info"


@dataclass
class ApprovalTimeoutError(ToolError):
    """No approval decision arrived within the configured wait."""

    error_code: str = field(default=ErrorCode.APPROVAL_TIMEOUT)
    message: str = field(default="No approval decision was made in time")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Propose the edit again when ready to review it")


__all__ = [
    "ErrorCode",
    "ToolError",
    "ConfigurationError",
    "BackendUnavailableError",
    "TransformError",
    "PathError",
    "DocumentNotFoundError",
    "SessionConflictError",
    "SessionStateError",
    "CommitError",
    "MergeServiceError",
    "NetworkError",
    "MergeTimeoutError",
    "ParseError",
    "UserRejectedError",
    "ApprovalTimeoutError",
]
