"""caprouter core module - shared types, errors and security helpers."""

from caprouter.core.errors import (
    BackendInvocationError,
    BackendUnavailable,
    CapRouterError,
    ConfigError,
    DispatchError,
    DispatchFailed,
    ValidationError,
)
from caprouter.core.security import mask_api_key
from caprouter.core.types import Confidence, Payload, Result, RuleId, TargetId

__all__ = [
    # Types
    "Result",
    "Confidence",
    "Payload",
    "RuleId",
    "TargetId",
    # Errors
    "CapRouterError",
    "ConfigError",
    "ValidationError",
    "BackendInvocationError",
    "DispatchError",
    "BackendUnavailable",
    "DispatchFailed",
    # Security
    "mask_api_key",
]
