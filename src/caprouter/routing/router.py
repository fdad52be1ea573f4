"""Router: the caller-facing surface of caprouter.

One routing cycle runs the pipeline

    match -> resolve -> score -> escalate -> dispatch -> post-process

against a single registry snapshot. Reloading configuration swaps the
snapshot atomically; cycles already in flight keep the snapshot they
started with.

Usage:
    router = Router.from_config(load_config()).unwrap()
    result = await router.aroute("Payment flow occasionally fails")
    if result.is_ok:
        print(result.value.decision.target, result.value.output)
    else:
        print(result.error.decision)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from caprouter.backends import BackendRegistry, ExecutionResult, build_backends
from caprouter.config.models import RouterConfig, get_default_config
from caprouter.core.errors import ConfigError, DispatchError
from caprouter.core.types import Result
from caprouter.observability.logging import bind_context, get_logger, unbind_context
from caprouter.routing.confidence import ConfidenceEstimator
from caprouter.routing.cycle import AttemptRecord, CycleState, RoutingCycle, new_request_id
from caprouter.routing.decision import Decision
from caprouter.routing.dispatcher import Dispatcher
from caprouter.routing.escalation import EscalationPolicy
from caprouter.routing.matcher import match
from caprouter.routing.models import RequestContext
from caprouter.routing.postprocess import PostProcessor
from caprouter.routing.registry import RuleRegistry
from caprouter.routing.resolver import PriorityResolver

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RouteOutcome:
    """Successful end of a routing cycle.

    Attributes:
        decision: The routing decision, unchanged by dispatch.
        result: Final execution result (rewritten when post-processed).
        executed_target: Target that actually produced the result.
        attempts: Every backend invocation made.
        degraded: True when the result came from a lower tier.
        post_processed: True when the output was rewritten.
    """

    decision: Decision
    result: ExecutionResult
    executed_target: str
    attempts: tuple[AttemptRecord, ...] = field(default_factory=tuple)
    degraded: bool = False
    post_processed: bool = False

    @property
    def output(self) -> str:
        return self.result.output


@dataclass(frozen=True, slots=True)
class _Snapshot:
    registry: RuleRegistry
    policy: EscalationPolicy
    dispatcher: Dispatcher
    post_processor: PostProcessor


class Router:
    """Routes requests to execution targets.

    A Router holds no per-request state, so one instance can serve any
    number of concurrent cycles.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        backends: BackendRegistry | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        self._backends = backends or BackendRegistry()
        self._resolver = PriorityResolver()
        self._estimator = ConfidenceEstimator()
        self._snapshot = self._build_snapshot(registry, config or RouterConfig())

    def _build_snapshot(self, registry: RuleRegistry, config: RouterConfig) -> _Snapshot:
        post = config.post_processing
        return _Snapshot(
            registry=registry,
            policy=EscalationPolicy(threshold=config.routing.confidence_threshold),
            dispatcher=Dispatcher(self._backends, config.dispatch),
            post_processor=PostProcessor(post, self._backends.get_rewriter(post.rewriter_backend)),
        )

    @classmethod
    def from_config(
        cls,
        config: RouterConfig,
        *,
        backends: BackendRegistry | None = None,
    ) -> Result[Router, ConfigError]:
        """Build a Router, creating backends the configuration describes.

        Args:
            config: Routing configuration.
            backends: Extra backends (inline handlers, test doubles); these
                take precedence over configured ones with the same id.
        """
        registry_result = RuleRegistry.load(config)
        if registry_result.is_err:
            return Result.err(registry_result.error)
        registered = build_backends(config)
        if backends is not None:
            registered = registered.merged(backends)
        return Result.ok(cls(registry_result.value, registered, config))

    @property
    def registry(self) -> RuleRegistry:
        return self._snapshot.registry

    @property
    def backends(self) -> BackendRegistry:
        return self._backends

    def reload(self, config: RouterConfig) -> Result[str, ConfigError]:
        """Validate ``config`` and swap it in; returns the new registry version.

        On failure the current snapshot stays active.
        """
        registry_result = RuleRegistry.load(config)
        if registry_result.is_err:
            log.error(
                "router.reload.rejected",
                error=registry_result.error.message,
                active_version=self._snapshot.registry.version,
            )
            return Result.err(registry_result.error)
        previous = self._snapshot.registry.version
        self._snapshot = self._build_snapshot(registry_result.value, config)
        log.info(
            "router.reload.completed",
            previous_version=previous,
            version=registry_result.value.version,
        )
        return Result.ok(registry_result.value.version)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _decide(self, context: RequestContext, snapshot: _Snapshot, request_id: str) -> Decision:
        registry = snapshot.registry
        if context.explicit_target:
            classification = self._resolver.explicit(context.explicit_target, registry)
        else:
            matches = match(context, registry)
            classification = self._resolver.resolve(matches, registry, context.domain_hint)
        confidence = self._estimator.score(classification)
        decision = snapshot.policy.escalate(
            classification, confidence, registry, request_id=request_id
        )
        log.info(
            "router.decision.made",
            request_id=request_id,
            kind=decision.kind.value,
            mode=decision.mode.value,
            target=decision.target,
            tier=decision.tier,
            confidence=decision.confidence,
            escalation=decision.escalation,
            matched_rules=list(decision.matched_rule_ids),
        )
        return decision

    def classify(
        self,
        text: str,
        *,
        explicit_target: str | None = None,
        domain_hint: str | None = None,
        request_id: str | None = None,
    ) -> Decision:
        """Decide where a request would go without executing it.

        Classification is pure: the same text and registry always yield an
        equal Decision (``request_id`` is not part of equality).
        """
        context = RequestContext(
            text=text, explicit_target=explicit_target, domain_hint=domain_hint
        )
        return self._decide(context, self._snapshot, request_id or new_request_id())

    # ------------------------------------------------------------------
    # Routing cycles
    # ------------------------------------------------------------------

    def new_cycle(
        self,
        text: str,
        *,
        explicit_target: str | None = None,
        domain_hint: str | None = None,
    ) -> RoutingCycle:
        context = RequestContext(
            text=text, explicit_target=explicit_target, domain_hint=domain_hint
        )
        return RoutingCycle(context=context)

    async def run_cycle(self, cycle: RoutingCycle) -> Result[RouteOutcome, DispatchError]:
        """Drive ``cycle`` from IDLE to a terminal state.

        Raises:
            asyncio.CancelledError: If the surrounding task is cancelled;
                the cycle ends CANCELLED with its Decision kept.
        """
        snapshot = self._snapshot
        bind_context(request_id=cycle.request_id)
        try:
            cycle.transition(CycleState.CLASSIFYING)
            cycle.decision = self._decide(cycle.context, snapshot, cycle.request_id)
            cycle.transition(CycleState.RESOLVED)

            cycle.transition(CycleState.DISPATCHING)
            try:
                dispatched = await snapshot.dispatcher.dispatch(
                    cycle.decision,
                    cycle.context,
                    snapshot.registry,
                    attempts=cycle.attempts,
                )
                if dispatched.is_err:
                    cycle.transition(CycleState.FAILED)
                    return Result.err(dispatched.error)

                outcome = dispatched.value
                result, rewritten = await snapshot.post_processor.process(
                    cycle.context, outcome.executed_target, outcome.result
                )
            except asyncio.CancelledError:
                cycle.transition(CycleState.CANCELLED)
                log.info("router.cycle.cancelled", target=cycle.decision.target)
                raise

            cycle.transition(CycleState.COMPLETED)
            log.info(
                "router.cycle.completed",
                target=cycle.decision.target,
                executed_target=outcome.executed_target.id,
                degraded=outcome.degraded,
                post_processed=rewritten,
                attempt_count=len(cycle.attempts),
            )
            return Result.ok(
                RouteOutcome(
                    decision=cycle.decision,
                    result=result,
                    executed_target=outcome.executed_target.id,
                    attempts=tuple(cycle.attempts),
                    degraded=outcome.degraded,
                    post_processed=rewritten,
                )
            )
        finally:
            unbind_context("request_id")

    async def aroute(
        self,
        text: str,
        *,
        explicit_target: str | None = None,
        domain_hint: str | None = None,
    ) -> Result[RouteOutcome, DispatchError]:
        """Classify and execute one request."""
        cycle = self.new_cycle(text, explicit_target=explicit_target, domain_hint=domain_hint)
        return await self.run_cycle(cycle)

    def route(
        self,
        text: str,
        *,
        explicit_target: str | None = None,
        domain_hint: str | None = None,
    ) -> Result[RouteOutcome, DispatchError]:
        """Blocking variant of ``aroute``; must not be called from a running event loop."""
        return asyncio.run(
            self.aroute(text, explicit_target=explicit_target, domain_hint=domain_hint)
        )


def classify_task(
    text: str,
    *,
    config: RouterConfig | None = None,
    explicit_target: str | None = None,
    domain_hint: str | None = None,
) -> Result[Decision, ConfigError]:
    """Convenience function to classify a request without keeping a Router.

    Example:
        from caprouter.routing.router import classify_task

        result = classify_task("Tell me a joke about penguins")
        if result.is_ok:
            print(f"Route to: {result.value.target} ({result.value.tier})")
    """
    config = config or get_default_config()
    registry_result = RuleRegistry.load(config)
    if registry_result.is_err:
        return Result.err(registry_result.error)
    router = Router(registry_result.value, config=config)
    return Result.ok(
        router.classify(text, explicit_target=explicit_target, domain_hint=domain_hint)
    )


def route_task(
    text: str,
    *,
    config: RouterConfig | None = None,
    backends: BackendRegistry | None = None,
    explicit_target: str | None = None,
    domain_hint: str | None = None,
) -> Result[RouteOutcome, DispatchError | ConfigError]:
    """Convenience function to classify and execute one request.

    Builds a Router from ``config`` (the bundled rule set by default) and
    routes ``text`` through it. Blocking; must not be called from a running
    event loop.

    Example:
        from caprouter.routing.router import route_task

        result = route_task("Payment flow occasionally fails")
        if result.is_ok:
            print(result.value.output)
    """
    router_result = Router.from_config(config or get_default_config(), backends=backends)
    if router_result.is_err:
        return Result.err(router_result.error)
    routed = router_result.value.route(
        text, explicit_target=explicit_target, domain_hint=domain_hint
    )
    if routed.is_err:
        return Result.err(routed.error)
    return Result.ok(routed.value)
