"""Base protocols and models for execution backends.

The router is agnostic to what a target actually does: local inline
handling, an isolated executor or a more capable model tier all implement
the same ``invoke`` contract.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Protocol


class ExecutionStatus(StrEnum):
    """Outcome of one backend invocation."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Result of executing a request on a backend.

    Attributes:
        status: Success or failure.
        output: Raw output payload.
        error: Error detail when failed.
        metadata: Backend-specific extras (model used, latency, ...).
    """

    status: ExecutionStatus
    output: str = ""
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    @classmethod
    def success(cls, output: str, **metadata: Any) -> ExecutionResult:
        return cls(status=ExecutionStatus.SUCCESS, output=output, metadata=metadata)

    @classmethod
    def failure(cls, error: str, **metadata: Any) -> ExecutionResult:
        return cls(status=ExecutionStatus.FAILURE, error=error, metadata=metadata)


class ExecutionBackend(Protocol):
    """Protocol every execution backend implements.

    Backends should return ``ExecutionResult.failure`` for expected failures;
    raised exceptions are treated the same way by the dispatcher.

    Example:
        backend: ExecutionBackend = LiteLLMBackend(model="openai/gpt-4o")
        result = await backend.invoke("Explain this stack trace")
    """

    async def invoke(self, request_text: str) -> ExecutionResult:
        """Execute ``request_text`` and return the result."""
        ...


class Rewriter(Protocol):
    """Lightweight backend that turns terse output into a user-facing answer."""

    async def rewrite(self, original_request: str, raw_output: str) -> str:
        """Return the rewritten output."""
        ...


class BackendRegistry:
    """Maps backend identifiers to backend instances.

    Filled once at startup and only read afterwards.
    """

    def __init__(
        self,
        backends: Mapping[str, ExecutionBackend] | None = None,
        rewriters: Mapping[str, Rewriter] | None = None,
    ) -> None:
        self._backends = MappingProxyType(dict(backends or {}))
        self._rewriters = MappingProxyType(dict(rewriters or {}))

    def get(self, backend_id: str) -> ExecutionBackend | None:
        return self._backends.get(backend_id)

    def get_rewriter(self, backend_id: str) -> Rewriter | None:
        rewriter = self._rewriters.get(backend_id)
        if rewriter is None:
            backend = self._backends.get(backend_id)
            if backend is not None and hasattr(backend, "rewrite"):
                return backend  # type: ignore[return-value]
        return rewriter

    def __contains__(self, backend_id: object) -> bool:
        return backend_id in self._backends

    def ids(self) -> tuple[str, ...]:
        return tuple(self._backends)

    def merged(self, other: BackendRegistry) -> BackendRegistry:
        """New registry with ``other``'s entries taking precedence."""
        return BackendRegistry(
            {**self._backends, **other._backends},
            {**self._rewriters, **other._rewriters},
        )
