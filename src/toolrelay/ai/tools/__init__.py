"""Redirection rules, parameter transforms and the error taxonomy."""

from .errors import ErrorCode, ToolError
from .registry import DEFAULT_RULES, CapabilityRegistry, RedirectionRule, load_rules
from .transforms import EditRequest, TransformFamily

__all__ = [
    "ErrorCode",
    "ToolError",
    "DEFAULT_RULES",
    "CapabilityRegistry",
    "RedirectionRule",
    "load_rules",
    "EditRequest",
    "TransformFamily",
]
