"""Pydantic models for caprouter configuration.

This module defines the rule-configuration schema using Pydantic v2. Models
validate shape and ranges; cross-references (unknown targets, overlapping
overrides, empty predicate sets) are checked when a RuleRegistry is loaded.

Classes:
    KeywordsPredicateConfig: Substring-set predicate
    RegexPredicateConfig: Regular-expression predicate
    FileMentionsPredicateConfig: Structural "mentions N files" predicate
    WordCountPredicateConfig: Structural request-length predicate
    RuleConfig: One override/mandatory/simple rule
    DomainConfig: Rules and default targets for one domain
    TargetConfig: Execution target (tier + backend)
    RoutingConfig: Confidence threshold
    DispatchConfig: Timeout, retry and backoff settings
    PostProcessingConfig: Low-fidelity output rewriting
    RouterConfig: Top-level configuration combining all sections
"""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from caprouter.observability.logging import LoggingConfig

DEFAULT_TIERS = ("frugal", "standard", "frontier")


class _CountRange(BaseModel, frozen=True):
    """Inclusive [min_count, max_count] range; max_count None means unbounded."""

    min_count: int = Field(default=0, ge=0)
    max_count: int | None = Field(default=None, ge=0)
    negate: bool = False

    @model_validator(mode="after")
    def validate_range(self) -> "_CountRange":
        """Validate that min_count <= max_count."""
        if self.max_count is not None and self.min_count > self.max_count:
            msg = f"min_count ({self.min_count}) must be <= max_count ({self.max_count})"
            raise ValueError(msg)
        return self


class KeywordsPredicateConfig(BaseModel, frozen=True):
    """Holds when any keyword occurs in the request (case-insensitive)."""

    type: Literal["keywords"] = "keywords"
    keywords: list[str] = Field(min_length=1)
    negate: bool = False

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v: list[str]) -> list[str]:
        """Reject blank keywords, which would match every request."""
        if any(not keyword.strip() for keyword in v):
            msg = "keywords must not be blank"
            raise ValueError(msg)
        return v


class RegexPredicateConfig(BaseModel, frozen=True):
    """Holds when the pattern is found in the request (case-insensitive)."""

    type: Literal["regex"] = "regex"
    pattern: str = Field(min_length=1)
    negate: bool = False


class FileMentionsPredicateConfig(_CountRange, frozen=True):
    """Holds when the number of distinct file names mentioned is in range."""

    type: Literal["file_mentions"] = "file_mentions"


class WordCountPredicateConfig(_CountRange, frozen=True):
    """Holds when the request's word count is in range."""

    type: Literal["word_count"] = "word_count"


PredicateConfig = Annotated[
    KeywordsPredicateConfig
    | RegexPredicateConfig
    | FileMentionsPredicateConfig
    | WordCountPredicateConfig,
    Field(discriminator="type"),
]


class RuleConfig(BaseModel, frozen=True):
    """Configuration for one routing rule.

    Attributes:
        id: Rule identifier, unique within its domain
        kind: override (wins outright), mandatory (any predicate forces
            delegation) or simple (all predicates must hold to stay inline)
        target: Execution target id; required for override and mandatory rules
        weight: Relative weight used when scoring partial simple matches
        description: Free-form note shown by the CLI
        predicates: Predicates evaluated against the request text
    """

    id: str = Field(min_length=1)
    kind: Literal["override", "mandatory", "simple"]
    target: str | None = None
    weight: float = Field(default=1.0, gt=0.0)
    description: str = ""
    predicates: list[PredicateConfig] = Field(default_factory=list)


class DomainConfig(BaseModel, frozen=True):
    """Configuration for one rule domain (e.g. "bug-fix").

    Attributes:
        description: Free-form note shown by the CLI
        inline_target: Target used when every simple rule holds
        delegate_target: Target used when simple criteria are only partly met
        rules: Rules in registration order
    """

    description: str = ""
    inline_target: str | None = None
    delegate_target: str
    rules: list[RuleConfig] = Field(default_factory=list)


class TargetConfig(BaseModel, frozen=True):
    """Configuration for an execution target.

    Attributes:
        tier: Capability tier name (must appear in RouterConfig.tiers)
        backend: Backend identifier used to look up the invocation backend
        inline: True when the target represents minimal-overhead inline handling
        low_fidelity: True when output may need rewriting before returning
        model: Optional LiteLLM model id for LiteLLM-backed targets
        endpoint: Optional URL for HTTP-backed targets
    """

    tier: str
    backend: str
    inline: bool = False
    low_fidelity: bool = False
    model: str | None = None
    endpoint: str | None = None


class RoutingConfig(BaseModel, frozen=True):
    """Classification settings.

    Attributes:
        confidence_threshold: Decisions scoring below this are escalated
    """

    confidence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)


class DispatchConfig(BaseModel, frozen=True):
    """Backend invocation settings.

    Attributes:
        timeout_seconds: Per-invocation timeout
        max_retries: Retries after the first failed attempt on the chosen target
        backoff_initial: First backoff wait in seconds
        backoff_max: Upper bound for a single backoff wait
        backoff_jitter: Maximum random jitter added to each wait
    """

    timeout_seconds: float = Field(default=60.0, gt=0.0)
    max_retries: int = Field(default=2, ge=0)
    backoff_initial: float = Field(default=0.5, ge=0.0)
    backoff_max: float = Field(default=8.0, ge=0.0)
    backoff_jitter: float = Field(default=0.5, ge=0.0)


class PostProcessingConfig(BaseModel, frozen=True):
    """Rewriting of terse output from low-fidelity targets.

    Attributes:
        enabled: Whether the post-processing stage runs at all
        rewriter_backend: Backend id of the rewriting backend
        rewriter_model: Optional LiteLLM model used to build the rewriter
        min_prose_words: Outputs with fewer explanatory words are rewritten
        timeout_seconds: Timeout for one rewrite call
    """

    enabled: bool = True
    rewriter_backend: str = "rewriter"
    rewriter_model: str | None = None
    min_prose_words: int = Field(default=8, ge=0)
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class RouterConfig(BaseModel, frozen=True):
    """Top-level caprouter configuration.

    Attributes:
        version: Configuration version label
        tiers: Capability tiers, lowest first
        targets: Execution targets by id
        domains: Rule domains in registration order
        routing: Classification settings
        dispatch: Backend invocation settings
        post_processing: Output rewriting settings
        logging: Logging configuration
    """

    version: str = "1"
    tiers: list[str] = Field(default_factory=lambda: list(DEFAULT_TIERS), min_length=1)
    targets: dict[str, TargetConfig] = Field(default_factory=dict)
    domains: dict[str, DomainConfig] = Field(default_factory=dict)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    post_processing: PostProcessingConfig = Field(default_factory=PostProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("tiers")
    @classmethod
    def validate_tiers(cls, v: list[str]) -> list[str]:
        """Validate that tier names are unique."""
        if len(set(v)) != len(v):
            msg = f"Tier names must be unique: {v}"
            raise ValueError(msg)
        return v


def _keywords(*words: str) -> KeywordsPredicateConfig:
    return KeywordsPredicateConfig(keywords=list(words))


def get_default_config() -> RouterConfig:
    """Get the bundled rule set.

    Three domains: bug-fix triage, tech-stack advice and model routing with a
    frontend override.

    Returns:
        RouterConfig with default targets, domains and settings.
    """
    return RouterConfig(
        version="1",
        tiers=list(DEFAULT_TIERS),
        targets={
            "inline": TargetConfig(tier="frugal", backend="local", inline=True),
            "quick-fix": TargetConfig(
                tier="frugal",
                backend="frugal-llm",
                low_fidelity=True,
                model="openai/gpt-4o-mini",
            ),
            "debugger": TargetConfig(
                tier="standard",
                backend="standard-llm",
                model="anthropic/claude-sonnet-4-20250514",
            ),
            "advisor": TargetConfig(
                tier="standard",
                backend="advisor-llm",
                model="openai/gpt-4o",
            ),
            "frontend": TargetConfig(
                tier="standard",
                backend="frontend-llm",
                model="google/gemini-2.5-pro",
            ),
            "architect": TargetConfig(
                tier="frontier",
                backend="frontier-llm",
                model="anthropic/claude-opus-4-5-20251101",
            ),
        },
        domains={
            "bug-fix": DomainConfig(
                description="Decide whether a bug report can be fixed in place.",
                inline_target="inline",
                delegate_target="debugger",
                rules=[
                    RuleConfig(
                        id="bug-fix.unclear-reproduction",
                        kind="mandatory",
                        target="debugger",
                        description="Intermittent or unexplained failures need investigation.",
                        predicates=[
                            _keywords(
                                "sometimes",
                                "occasionally",
                                "intermittent",
                                "flaky",
                                "randomly",
                                "can't reproduce",
                                "cannot reproduce",
                                "not sure why",
                            ),
                        ],
                    ),
                    RuleConfig(
                        id="bug-fix.multi-file",
                        kind="mandatory",
                        target="debugger",
                        description="Changes spanning two or more files.",
                        predicates=[FileMentionsPredicateConfig(min_count=2)],
                    ),
                    RuleConfig(
                        id="bug-fix.deep-failure",
                        kind="mandatory",
                        target="architect",
                        description="Failures that risk data or availability.",
                        predicates=[
                            _keywords(
                                "race condition",
                                "deadlock",
                                "memory leak",
                                "data loss",
                                "corrupt",
                                "outage",
                            ),
                        ],
                    ),
                    RuleConfig(
                        id="bug-fix.trivial-edit",
                        kind="simple",
                        description="A one-line cleanup with an obvious location.",
                        predicates=[
                            _keywords("remove", "delete", "rename", "typo", "comment out", "bump"),
                            _keywords(
                                "console.log",
                                "print(",
                                "print statement",
                                "typo",
                                "comment",
                                "unused import",
                                "unused variable",
                                "whitespace",
                                "debug log",
                                "todo",
                            ),
                        ],
                    ),
                ],
            ),
            "tech-advisor": DomainConfig(
                description="Technology and architecture questions.",
                inline_target="inline",
                delegate_target="advisor",
                rules=[
                    RuleConfig(
                        id="tech-advisor.stack-decision",
                        kind="mandatory",
                        target="advisor",
                        description="Choosing between technologies.",
                        predicates=[
                            _keywords(
                                "which framework",
                                "which database",
                                "which library",
                                "tech stack",
                                "should we use",
                                "should i use",
                                "migrate to",
                                " versus ",
                                " vs ",
                            ),
                        ],
                    ),
                    RuleConfig(
                        id="tech-advisor.architecture",
                        kind="mandatory",
                        target="architect",
                        description="System-level design questions.",
                        predicates=[
                            _keywords(
                                "architecture", "scalability", "system design", "microservice"
                            ),
                        ],
                    ),
                    RuleConfig(
                        id="tech-advisor.quick-lookup",
                        kind="simple",
                        description="A factual question with a short answer.",
                        predicates=[
                            _keywords(
                                "what is", "what's", "how do i", "syntax", "flag for", "version of"
                            ),
                            RegexPredicateConfig(pattern=r"\?\s*$"),
                        ],
                    ),
                ],
            ),
            "model-router": DomainConfig(
                description="Pick a capability tier for general engineering tasks.",
                delegate_target="debugger",
                rules=[
                    RuleConfig(
                        id="model-router.frontend",
                        kind="override",
                        target="frontend",
                        description="UI work always goes to the frontend target.",
                        predicates=[
                            RegexPredicateConfig(
                                pattern=(
                                    r"\b(ui|ux|frontend|front-end|css|html|react|vue|"
                                    r"tailwind|layout|stylesheet)\b"
                                )
                            ),
                        ],
                    ),
                    RuleConfig(
                        id="model-router.complex-task",
                        kind="mandatory",
                        target="architect",
                        description="Keywords that signal multi-step engineering work.",
                        predicates=[
                            _keywords(
                                "refactor",
                                "redesign",
                                "migrate",
                                "security audit",
                                "concurrency",
                                "performance tuning",
                                "optimize",
                            ),
                        ],
                    ),
                    RuleConfig(
                        id="model-router.long-context",
                        kind="mandatory",
                        target="architect",
                        description="Very long task descriptions.",
                        predicates=[WordCountPredicateConfig(min_count=150)],
                    ),
                ],
            ),
        },
        post_processing=PostProcessingConfig(
            enabled=True,
            rewriter_backend="rewriter",
            rewriter_model="openai/gpt-4o-mini",
        ),
    )


def get_config_dir() -> Path:
    """Get the caprouter configuration directory path.

    Returns:
        Path to ~/.caprouter/
    """
    return Path.home() / ".caprouter"
