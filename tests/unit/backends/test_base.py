"""Unit tests for backend models, the registry and build_backends."""

from typing import Any

from caprouter.backends import (
    BackendRegistry,
    ExecutionResult,
    ExecutionStatus,
    HttpBackend,
    LiteLLMBackend,
    build_backends,
)
from caprouter.config.models import PostProcessingConfig, RouterConfig, TargetConfig


class TestExecutionResult:
    """Test ExecutionResult constructors."""

    def test_success(self) -> None:
        """success() carries output and metadata."""
        result = ExecutionResult.success("fixed", model="gpt-4o")

        assert result.is_success
        assert result.status == ExecutionStatus.SUCCESS
        assert result.output == "fixed"
        assert result.metadata == {"model": "gpt-4o"}

    def test_failure(self) -> None:
        """failure() carries the error and no output."""
        result = ExecutionResult.failure("quota exceeded", status_code=429)

        assert not result.is_success
        assert result.error == "quota exceeded"
        assert result.output == ""
        assert result.metadata["status_code"] == 429


class TestBackendRegistry:
    """Test BackendRegistry lookups."""

    def test_lookup(self, scripted_backend: Any) -> None:
        """Backends are found by id."""
        backend = scripted_backend()
        registry = BackendRegistry({"local": backend})

        assert registry.get("local") is backend
        assert registry.get("missing") is None
        assert "local" in registry
        assert registry.ids() == ("local",)

    def test_registry_is_read_only(self, scripted_backend: Any) -> None:
        """Mutating the source mapping does not change the registry."""
        source = {"local": scripted_backend()}
        registry = BackendRegistry(source)

        source["other"] = scripted_backend()

        assert "other" not in registry

    def test_rewriter_lookup(self, stub_rewriter: Any) -> None:
        """Rewriters are found in their own mapping."""
        rewriter = stub_rewriter()
        assert BackendRegistry(rewriters={"rewriter": rewriter}).get_rewriter("rewriter") is rewriter

    def test_backend_with_rewrite_doubles_as_rewriter(self) -> None:
        """A backend exposing rewrite() can serve as the rewriter."""
        backend = LiteLLMBackend(model="openai/gpt-4o-mini")
        assert BackendRegistry({"rewriter": backend}).get_rewriter("rewriter") is backend

    def test_plain_backend_is_not_a_rewriter(self, scripted_backend: Any) -> None:
        """Backends without rewrite() are never used for rewriting."""
        assert BackendRegistry({"rewriter": scripted_backend()}).get_rewriter("rewriter") is None

    def test_merged_prefers_other(self, scripted_backend: Any) -> None:
        """merged() lets the second registry win on id clashes."""
        first, second, extra = scripted_backend(), scripted_backend(), scripted_backend()

        merged = BackendRegistry({"a": first}).merged(BackendRegistry({"a": second, "b": extra}))

        assert merged.get("a") is second
        assert merged.get("b") is extra


class TestBuildBackends:
    """Test building backends from configuration."""

    def test_builds_from_model_and_endpoint(self) -> None:
        """Targets with a model get LiteLLM, targets with an endpoint get HTTP."""
        config = RouterConfig(
            targets={
                "inline": TargetConfig(tier="frugal", backend="local", inline=True),
                "llm": TargetConfig(tier="standard", backend="llm", model="openai/gpt-4o"),
                "remote": TargetConfig(
                    tier="frontier", backend="remote", endpoint="http://localhost:9000/run"
                ),
            },
            post_processing=PostProcessingConfig(rewriter_model=None),
        )

        registry = build_backends(config)

        assert isinstance(registry.get("llm"), LiteLLMBackend)
        assert isinstance(registry.get("remote"), HttpBackend)
        assert registry.get("local") is None
        assert registry.get_rewriter("rewriter") is None

    def test_shared_backend_id_built_once(self) -> None:
        """The first target declaring a backend id wins."""
        config = RouterConfig(
            targets={
                "a": TargetConfig(tier="standard", backend="shared", model="openai/gpt-4o"),
                "b": TargetConfig(tier="standard", backend="shared", model="openai/gpt-4o-mini"),
            }
        )

        backend = build_backends(config).get("shared")

        assert isinstance(backend, LiteLLMBackend)
        assert backend.model == "openai/gpt-4o"

    def test_rewriter_from_post_processing(self) -> None:
        """rewriter_model builds the rewriter under rewriter_backend."""
        config = RouterConfig(
            post_processing=PostProcessingConfig(rewriter_backend="polish", rewriter_model="openai/gpt-4o-mini")
        )

        rewriter = build_backends(config).get_rewriter("polish")

        assert isinstance(rewriter, LiteLLMBackend)
        assert rewriter.model == "openai/gpt-4o-mini"
