"""Dispatcher: executes a Decision through the uniform backend interface.

Policy:
1. Resolve the Decision's target and its backend. A missing target or
   backend is fatal: BackendUnavailable, no retries.
2. Invoke the backend under a per-invocation timeout. Timeouts, raised
   exceptions and failure results are BackendInvocationErrors.
3. Retry up to ``max_retries`` times with exponential backoff (stamina).
4. When retries are exhausted, degrade once to the nearest lower-tier,
   non-inline target (the domain's own targets preferred) and try a single
   time.
5. If that fails too, return DispatchFailed carrying the Decision and every
   attempt. The dispatcher never falls back to inline handling.

Cancellation of the surrounding task propagates into the backend call.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import time

import stamina

from caprouter.backends.base import BackendRegistry, ExecutionBackend, ExecutionResult
from caprouter.config.models import DispatchConfig
from caprouter.core.errors import (
    BackendInvocationError,
    BackendUnavailable,
    DispatchError,
    DispatchFailed,
)
from caprouter.core.types import Result
from caprouter.observability.logging import get_logger
from caprouter.routing.cycle import AttemptRecord
from caprouter.routing.decision import Decision
from caprouter.routing.models import ExecutionTarget, RequestContext
from caprouter.routing.registry import RuleRegistry

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """Successful dispatch.

    Attributes:
        result: The backend's result.
        executed_target: Target that produced the result; differs from the
            Decision's target after degradation.
        attempts: Every invocation made, in order.
        degraded: True when the result came from the degraded attempt.
    """

    result: ExecutionResult
    executed_target: ExecutionTarget
    attempts: tuple[AttemptRecord, ...] = field(default_factory=tuple)
    degraded: bool = False


class Dispatcher:
    """Invokes backends with timeout, retry and one-step degradation.

    The dispatcher keeps no per-request state; attempt records are appended
    to the list the caller passes in (normally ``RoutingCycle.attempts``).
    """

    def __init__(self, backends: BackendRegistry, config: DispatchConfig | None = None) -> None:
        self._backends = backends
        self._config = config or DispatchConfig()

    @property
    def config(self) -> DispatchConfig:
        return self._config

    async def _invoke_once(
        self,
        target: ExecutionTarget,
        backend: ExecutionBackend,
        request_text: str,
        *,
        attempt: int,
        degraded: bool,
        attempts: list[AttemptRecord],
    ) -> ExecutionResult:
        start = time.monotonic()
        error: BackendInvocationError | None = None
        result: ExecutionResult | None = None
        try:
            result = await asyncio.wait_for(
                backend.invoke(request_text),
                timeout=self._config.timeout_seconds,
            )
        except TimeoutError as e:
            error = BackendInvocationError(
                f"Backend '{target.backend}' timed out after {self._config.timeout_seconds}s",
                target_id=target.id,
                backend_id=target.backend,
                reason="timeout",
            )
            error.__cause__ = e
        except Exception as e:
            error = BackendInvocationError.from_exception(
                e, target_id=target.id, backend_id=target.backend
            )

        if error is None and result is not None and not result.is_success:
            error = BackendInvocationError(
                result.error or "Backend returned a failure result",
                target_id=target.id,
                backend_id=target.backend,
                reason="failed_result",
            )

        latency_ms = int((time.monotonic() - start) * 1000)
        attempts.append(
            AttemptRecord(
                target=target.id,
                backend=target.backend,
                attempt=attempt,
                degraded=degraded,
                succeeded=error is None,
                reason=error.reason if error else None,
                error=error.message if error else None,
                latency_ms=latency_ms,
            )
        )

        if error is not None:
            log.warning(
                "dispatch.attempt.failed",
                target=target.id,
                backend=target.backend,
                attempt=attempt,
                degraded=degraded,
                reason=error.reason,
                error=error.message,
                latency_ms=latency_ms,
            )
            raise error

        log.info(
            "dispatch.attempt.succeeded",
            target=target.id,
            backend=target.backend,
            attempt=attempt,
            degraded=degraded,
            latency_ms=latency_ms,
        )
        return result  # type: ignore[return-value]

    async def _invoke_with_retries(
        self,
        target: ExecutionTarget,
        backend: ExecutionBackend,
        request_text: str,
        attempts: list[AttemptRecord],
    ) -> ExecutionResult:
        """Invoke with exponential backoff; re-raises the last error when exhausted."""
        async for attempt in stamina.retry_context(
            on=BackendInvocationError,
            attempts=self._config.max_retries + 1,
            timeout=None,
            wait_initial=self._config.backoff_initial,
            wait_max=self._config.backoff_max,
            wait_jitter=self._config.backoff_jitter,
        ):
            with attempt:
                return await self._invoke_once(
                    target,
                    backend,
                    request_text,
                    attempt=attempt.num,
                    degraded=False,
                    attempts=attempts,
                )
        msg = "retry loop exited without a result"
        raise AssertionError(msg)

    def _unavailable(
        self,
        message: str,
        decision: Decision,
        attempts: list[AttemptRecord],
        **details: object,
    ) -> Result[DispatchOutcome, DispatchError]:
        log.error("dispatch.backend.unavailable", error=message, target=decision.target, **details)
        return Result.err(
            BackendUnavailable(
                message,
                decision=decision,
                attempts=tuple(a.to_dict() for a in attempts),
                details=dict(details),
            )
        )

    async def dispatch(
        self,
        decision: Decision,
        context: RequestContext,
        registry: RuleRegistry,
        *,
        attempts: list[AttemptRecord] | None = None,
    ) -> Result[DispatchOutcome, DispatchError]:
        """Execute a Decision.

        Args:
            decision: The routing decision to execute.
            context: The original request.
            registry: Registry snapshot the decision was made against.
            attempts: List receiving one AttemptRecord per invocation.

        Returns:
            Result containing the DispatchOutcome, or BackendUnavailable /
            DispatchFailed carrying the Decision.
        """
        records: list[AttemptRecord] = attempts if attempts is not None else []

        target = registry.target(decision.target)
        if target is None:
            return self._unavailable(
                f"Execution target '{decision.target}' is not defined",
                decision,
                records,
                requested_target=decision.target,
            )
        backend = self._backends.get(target.backend)
        if backend is None:
            return self._unavailable(
                f"No backend registered for '{target.backend}' (target '{target.id}')",
                decision,
                records,
                backend=target.backend,
                registered_backends=list(self._backends.ids()),
            )

        log.info(
            "dispatch.started",
            target=target.id,
            tier=target.tier,
            mode=decision.mode.value,
            max_retries=self._config.max_retries,
        )

        try:
            result = await self._invoke_with_retries(target, backend, context.text, records)
            return Result.ok(
                DispatchOutcome(result=result, executed_target=target, attempts=tuple(records))
            )
        except BackendInvocationError as e:
            last_error: BackendInvocationError = e

        fallback = registry.next_tier_down(target.id, decision.domain)
        fallback_backend = self._backends.get(fallback.backend) if fallback else None
        if fallback is not None and fallback_backend is not None:
            log.warning(
                "dispatch.tier.degraded",
                from_target=target.id,
                from_tier=target.tier,
                to_target=fallback.id,
                to_tier=fallback.tier,
            )
            try:
                result = await self._invoke_once(
                    fallback,
                    fallback_backend,
                    context.text,
                    attempt=1,
                    degraded=True,
                    attempts=records,
                )
                return Result.ok(
                    DispatchOutcome(
                        result=result,
                        executed_target=fallback,
                        attempts=tuple(records),
                        degraded=True,
                    )
                )
            except BackendInvocationError as e:
                last_error = e
        elif fallback is not None:
            log.warning(
                "dispatch.tier.degrade_skipped",
                to_target=fallback.id,
                backend=fallback.backend,
                reason="backend not registered",
            )

        log.error(
            "dispatch.failed",
            target=target.id,
            attempt_count=len(records),
            last_error=last_error.message,
        )
        return Result.err(
            DispatchFailed(
                f"Dispatch to '{target.id}' failed after {len(records)} attempt(s): "
                f"{last_error.message}",
                decision=decision,
                attempts=tuple(a.to_dict() for a in records),
                details={"last_reason": last_error.reason},
            )
        )
