"""Shared fixtures for caprouter tests."""

import asyncio
from typing import Any

import pytest

from caprouter.backends.base import BackendRegistry, ExecutionResult
from caprouter.config.models import (
    DispatchConfig,
    DomainConfig,
    KeywordsPredicateConfig,
    PostProcessingConfig,
    RegexPredicateConfig,
    RouterConfig,
    RuleConfig,
    TargetConfig,
    get_default_config,
)
from caprouter.observability.logging import reset_logging, set_console_logging
from caprouter.routing.registry import RuleRegistry


class ScriptedBackend:
    """Backend double that plays back a script of outcomes.

    Each entry is one call: a str (success output), an ExecutionResult, an
    exception to raise, or a float meaning "sleep this long". The last entry
    repeats once the script runs out.
    """

    def __init__(self, *script: Any) -> None:
        self.script = list(script) or ["ok"]
        self.calls: list[str] = []

    async def invoke(self, request_text: str) -> ExecutionResult:
        self.calls.append(request_text)
        step = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, float):
            await asyncio.sleep(step)
            return ExecutionResult.success("late")
        if isinstance(step, ExecutionResult):
            return step
        return ExecutionResult.success(step)


class StubRewriter:
    """Rewriter double recording its inputs."""

    def __init__(self, output: str = "Here is the fix, with an explanation.", error: Exception | None = None):
        self.output = output
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def rewrite(self, original_request: str, raw_output: str) -> str:
        self.calls.append((original_request, raw_output))
        if self.error is not None:
            raise self.error
        return self.output


def _keywords(*words: str) -> KeywordsPredicateConfig:
    return KeywordsPredicateConfig(keywords=list(words))


@pytest.fixture(autouse=True)
def quiet_logging() -> Any:
    """Keep routing logs out of test output."""
    reset_logging()
    set_console_logging(False)
    yield
    reset_logging()
    set_console_logging(True)


@pytest.fixture
def scripted_backend() -> type[ScriptedBackend]:
    return ScriptedBackend


@pytest.fixture
def stub_rewriter() -> type[StubRewriter]:
    return StubRewriter


@pytest.fixture
def fast_dispatch() -> DispatchConfig:
    """One retry, no backoff, short timeout."""
    return DispatchConfig(
        timeout_seconds=0.2,
        max_retries=1,
        backoff_initial=0.0,
        backoff_max=0.0,
        backoff_jitter=0.0,
    )


@pytest.fixture
def routing_config(fast_dispatch: DispatchConfig) -> RouterConfig:
    """Small rule set with one domain and a five-target tier ladder.

    Domain "bugs":
    - override ui-work (css) -> mid-alt
    - mandatory flaky -> mid, mandatory outage -> top
    - simple small-edit (weight 1): remove + console.log
    - simple one-liner (weight 3): "one line"
    """
    return RouterConfig(
        version="test",
        targets={
            "inline": TargetConfig(tier="frugal", backend="local", inline=True),
            "cheap": TargetConfig(tier="frugal", backend="cheap-llm", low_fidelity=True),
            "mid": TargetConfig(tier="standard", backend="mid-llm"),
            "mid-alt": TargetConfig(tier="standard", backend="alt-llm"),
            "top": TargetConfig(tier="frontier", backend="top-llm"),
        },
        domains={
            "bugs": DomainConfig(
                inline_target="inline",
                delegate_target="mid",
                rules=[
                    RuleConfig(
                        id="ui-work",
                        kind="override",
                        target="mid-alt",
                        predicates=[RegexPredicateConfig(pattern=r"\bcss\b")],
                    ),
                    RuleConfig(id="flaky", kind="mandatory", target="mid", predicates=[_keywords("flaky")]),
                    RuleConfig(id="outage", kind="mandatory", target="top", predicates=[_keywords("outage")]),
                    RuleConfig(
                        id="small-edit",
                        kind="simple",
                        weight=1.0,
                        predicates=[_keywords("remove"), _keywords("console.log")],
                    ),
                    RuleConfig(
                        id="one-liner",
                        kind="simple",
                        weight=3.0,
                        predicates=[_keywords("one line")],
                    ),
                ],
            ),
        },
        dispatch=fast_dispatch,
        post_processing=PostProcessingConfig(enabled=True, rewriter_backend="rewriter", min_prose_words=5),
    )


@pytest.fixture
def registry(routing_config: RouterConfig) -> RuleRegistry:
    return RuleRegistry.load(routing_config).unwrap()


@pytest.fixture
def default_registry() -> RuleRegistry:
    return RuleRegistry.load(get_default_config()).unwrap()


@pytest.fixture
def default_backends(scripted_backend: type[ScriptedBackend]) -> dict[str, ScriptedBackend]:
    """One scripted backend per backend id of the bundled rule set."""
    return {
        backend: scripted_backend(f"{backend} done")
        for backend in ("local", "frugal-llm", "standard-llm", "advisor-llm", "frontend-llm", "frontier-llm")
    }


@pytest.fixture
def default_backend_registry(default_backends: dict[str, ScriptedBackend]) -> BackendRegistry:
    return BackendRegistry(default_backends)
