"""Unit tests for caprouter.config.models."""

from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
import pytest

from caprouter.config.models import (
    DEFAULT_TIERS,
    DispatchConfig,
    DomainConfig,
    FileMentionsPredicateConfig,
    KeywordsPredicateConfig,
    PostProcessingConfig,
    RouterConfig,
    RoutingConfig,
    RuleConfig,
    get_config_dir,
    get_default_config,
)


class TestPredicateConfigs:
    """Test predicate schema validation."""

    def test_discriminated_by_type(self) -> None:
        """Predicates are parsed by their type tag."""
        rule = RuleConfig.model_validate(
            {
                "id": "r",
                "kind": "simple",
                "predicates": [
                    {"type": "keywords", "keywords": ["remove"]},
                    {"type": "regex", "pattern": r"\bcss\b"},
                    {"type": "file_mentions", "min_count": 2},
                    {"type": "word_count", "max_count": 20, "negate": True},
                ],
            }
        )

        kinds = [type(p).__name__ for p in rule.predicates]
        assert kinds == [
            "KeywordsPredicateConfig",
            "RegexPredicateConfig",
            "FileMentionsPredicateConfig",
            "WordCountPredicateConfig",
        ]
        assert rule.predicates[3].negate is True

    def test_unknown_type_rejected(self) -> None:
        """Unknown predicate types fail validation."""
        with pytest.raises(PydanticValidationError):
            RuleConfig.model_validate(
                {"id": "r", "kind": "simple", "predicates": [{"type": "vibes"}]}
            )

    def test_blank_keyword_rejected(self) -> None:
        """A blank keyword would match everything."""
        with pytest.raises(PydanticValidationError, match="blank"):
            KeywordsPredicateConfig(keywords=["remove", "  "])

    def test_empty_keywords_rejected(self) -> None:
        """At least one keyword is required."""
        with pytest.raises(PydanticValidationError):
            KeywordsPredicateConfig(keywords=[])

    def test_inverted_count_range_rejected(self) -> None:
        """min_count may not exceed max_count."""
        with pytest.raises(PydanticValidationError, match="min_count"):
            FileMentionsPredicateConfig(min_count=3, max_count=1)


class TestRuleConfig:
    """Test RuleConfig."""

    def test_bad_kind_rejected(self) -> None:
        """Only override, mandatory and simple are valid kinds."""
        with pytest.raises(PydanticValidationError):
            RuleConfig.model_validate({"id": "r", "kind": "optional"})

    def test_weight_must_be_positive(self) -> None:
        """Zero weights are rejected."""
        with pytest.raises(PydanticValidationError):
            RuleConfig(id="r", kind="simple", weight=0.0)

    def test_frozen(self) -> None:
        """Rule configs are immutable."""
        rule = RuleConfig(id="r", kind="simple")
        with pytest.raises(PydanticValidationError):
            rule.weight = 2.0  # type: ignore[misc]


class TestSettings:
    """Test routing, dispatch and post-processing settings."""

    def test_defaults(self) -> None:
        """Defaults match the documented behaviour."""
        assert RoutingConfig().confidence_threshold == 0.5
        dispatch = DispatchConfig()
        assert dispatch.max_retries == 2
        assert dispatch.timeout_seconds == 60.0
        assert PostProcessingConfig().min_prose_words == 8

    @pytest.mark.parametrize("threshold", [-0.1, 1.1])
    def test_threshold_bounds(self, threshold: float) -> None:
        """The threshold lies in [0, 1]."""
        with pytest.raises(PydanticValidationError):
            RoutingConfig(confidence_threshold=threshold)

    def test_negative_retries_rejected(self) -> None:
        """max_retries=0 is allowed, negative is not."""
        assert DispatchConfig(max_retries=0).max_retries == 0
        with pytest.raises(PydanticValidationError):
            DispatchConfig(max_retries=-1)

    def test_timeout_must_be_positive(self) -> None:
        """A zero timeout would fail every call."""
        with pytest.raises(PydanticValidationError):
            DispatchConfig(timeout_seconds=0)


class TestRouterConfig:
    """Test the top-level model."""

    def test_empty_config(self) -> None:
        """An empty mapping yields the default tiers and no rules."""
        config = RouterConfig()
        assert config.tiers == list(DEFAULT_TIERS)
        assert config.targets == {}
        assert config.domains == {}

    def test_duplicate_tiers_rejected(self) -> None:
        """Tier names must be unique."""
        with pytest.raises(PydanticValidationError, match="unique"):
            RouterConfig(tiers=["frugal", "frugal"])

    def test_empty_tiers_rejected(self) -> None:
        """At least one tier is required."""
        with pytest.raises(PydanticValidationError):
            RouterConfig(tiers=[])

    def test_domain_requires_delegate_target(self) -> None:
        """Every domain names where partial matches go."""
        with pytest.raises(PydanticValidationError):
            DomainConfig.model_validate({"rules": []})


class TestDefaultConfig:
    """Test the bundled rule set."""

    def test_domains(self) -> None:
        """Three domains ship by default."""
        assert list(get_default_config().domains) == ["bug-fix", "tech-advisor", "model-router"]

    def test_single_inline_target(self) -> None:
        """Only the inline target is flagged inline."""
        targets = get_default_config().targets
        assert [name for name, t in targets.items() if t.inline] == ["inline"]

    def test_every_target_on_known_tier(self) -> None:
        """Targets reference configured tiers."""
        config = get_default_config()
        assert {t.tier for t in config.targets.values()} <= set(config.tiers)

    def test_config_dir(self) -> None:
        """The config dir lives in the home directory."""
        assert get_config_dir() == Path.home() / ".caprouter"
