"""Error hierarchy for caprouter.

These exceptions describe programming errors when raised and expected
failures when carried inside a ``Result``.

Exception Hierarchy:
    CapRouterError (base)
    ├── ConfigError             - Invalid or ambiguous rule configuration (load time)
    ├── ValidationError         - Malformed payloads (e.g. serialized decisions)
    ├── BackendInvocationError  - One failed call to an execution backend
    └── DispatchError           - Dispatch-stage failure surfaced to the caller
        ├── BackendUnavailable  - Target/backend missing at invocation time
        └── DispatchFailed      - Retries and degradation exhausted
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from caprouter.routing.decision import Decision


class CapRouterError(Exception):
    """Base exception for all caprouter errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigError(CapRouterError):
    """Error from loading or validating a rule configuration.

    Only ever produced while a registry is being loaded; a loaded registry
    never raises ConfigError at request time.

    Attributes:
        config_key: Dotted path of the offending configuration key.
        config_file: Path to the config file if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        config_file: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


class ValidationError(CapRouterError):
    """Error from validating externally supplied data.

    Attributes:
        field: The field that failed validation.
        value: The invalid value if safe to include.

    Security Note:
        Use safe_value instead of value when logging.
    """

    _SENSITIVE_FIELDS = frozenset({
        "password", "api_key", "secret", "token", "credential",
        "auth", "key", "private", "apikey", "api-key",
    })

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value

    @property
    def safe_value(self) -> str:
        """Loggable representation of the value.

        Returns:
            ``<REDACTED>`` for sensitive fields or secret-looking strings,
            a truncated repr for long strings, type info otherwise.
        """
        if self.value is None:
            return "<None>"

        if self.field:
            field_lower = self.field.lower()
            if any(sensitive in field_lower for sensitive in self._SENSITIVE_FIELDS):
                return "<REDACTED>"

        if isinstance(self.value, str):
            value_str = self.value
            secret_prefixes = ("sk-", "pk-", "api-", "bearer ", "token ", "secret_")
            if any(value_str.lower().startswith(p) for p in secret_prefixes):
                return "<REDACTED>"
            if len(value_str) > 50:
                return f"{value_str[:20]}...({len(value_str)} chars)"
            return repr(value_str)

        return f"<{type(self.value).__name__}>"

    def __str__(self) -> str:
        base = self.message
        if self.field:
            base = f"{base} (field: {self.field}, value: {self.safe_value})"
        if self.details:
            base = f"{base} (details: {self.details})"
        return base


class BackendInvocationError(CapRouterError):
    """A single failed invocation of an execution backend.

    Raised inside the dispatcher's retry loop for timeouts, transport
    failures and non-success results. Never surfaced to the caller directly;
    exhausted retries become DispatchFailed.

    Attributes:
        target_id: The execution target that was invoked.
        backend_id: The backend serving the target.
        reason: Short machine-readable cause ("timeout", "exception", "failed_result").
    """

    def __init__(
        self,
        message: str,
        *,
        target_id: str | None = None,
        backend_id: str | None = None,
        reason: str = "exception",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.target_id = target_id
        self.backend_id = backend_id
        self.reason = reason

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        *,
        target_id: str | None = None,
        backend_id: str | None = None,
    ) -> BackendInvocationError:
        """Wrap an exception raised by a backend.

        Args:
            exc: The original exception.
            target_id: The invoked target.
            backend_id: The backend serving the target.

        Returns:
            A BackendInvocationError with __cause__ set to ``exc``.
        """
        reason = "timeout" if isinstance(exc, TimeoutError) else "exception"
        error = cls(
            str(exc) or type(exc).__name__,
            target_id=target_id,
            backend_id=backend_id,
            reason=reason,
            details={"original_exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error


class DispatchError(CapRouterError):
    """Base for dispatch-stage failures returned to the caller.

    Carries the Decision that was attempted so callers can report what was
    tried even though execution failed.

    Attributes:
        decision: The Decision the dispatcher tried to execute.
        attempts: Per-attempt records (target, attempt number, error).
    """

    def __init__(
        self,
        message: str,
        *,
        decision: Decision | None = None,
        attempts: tuple[dict[str, Any], ...] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.decision = decision
        self.attempts = attempts


class BackendUnavailable(DispatchError):
    """The decision's target, or the backend behind it, is not registered.

    Fatal: surfaced immediately without retries.
    """


class DispatchFailed(DispatchError):
    """Every retry and the single degraded attempt failed."""
