"""Value types shared by the routing pipeline.

All types here are immutable: a Rule or ExecutionTarget is part of a loaded
registry snapshot, a RequestContext lives for one routing cycle and a
MatchResult is produced per rule per request and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from caprouter.routing.predicates import Predicate


class RuleKind(StrEnum):
    """Rule kinds in priority order (override wins over mandatory over simple)."""

    OVERRIDE = "override"
    MANDATORY = "mandatory"
    SIMPLE = "simple"

    @property
    def priority(self) -> int:
        """Sort key; lower values are evaluated first."""
        return {RuleKind.OVERRIDE: 0, RuleKind.MANDATORY: 1, RuleKind.SIMPLE: 2}[self]


class Mode(StrEnum):
    """How a request is handled."""

    INLINE = "inline"
    DELEGATE = "delegate"


@dataclass(frozen=True, slots=True)
class ExecutionTarget:
    """A place a request can be executed.

    Attributes:
        id: Target identifier referenced by rules.
        tier: Capability tier name.
        rank: Position of the tier in the configured ladder (0 = lowest).
        backend: Backend identifier used for invocation.
        inline: True when the target is the minimal-overhead inline path.
        low_fidelity: True when output may need rewriting.
        order: Registration order among targets.
    """

    id: str
    tier: str
    rank: int
    backend: str
    inline: bool = False
    low_fidelity: bool = False
    order: int = 0


@dataclass(frozen=True, slots=True)
class Rule:
    """A loaded routing rule.

    Attributes:
        id: Rule identifier, unique within the domain.
        domain: Domain tag (e.g. "bug-fix").
        kind: Override, mandatory or simple.
        predicates: Predicates evaluated against the request text.
        target: Target id for override/mandatory rules; None for simple rules.
        weight: Weight used to score partial simple matches.
        order: Global registration order (the documented tie-break).
        description: Free-form note.
    """

    id: str
    domain: str
    kind: RuleKind
    predicates: tuple[Predicate, ...]
    target: str | None = None
    weight: float = 1.0
    order: int = 0
    description: str = ""

    def __hash__(self) -> int:
        return hash((self.domain, self.id))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rule):
            return NotImplemented
        return (self.domain, self.id) == (other.domain, other.id)


@dataclass(frozen=True, slots=True)
class RequestContext:
    """One incoming task.

    Attributes:
        text: Raw task description.
        explicit_target: Target requested by the caller; wins outright.
        domain_hint: Restricts matching to one domain when it names a known one.
    """

    text: str
    explicit_target: str | None = None
    domain_hint: str | None = None


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of evaluating one rule against one request.

    Attributes:
        rule_id: The evaluated rule.
        domain: The rule's domain.
        kind: The rule's kind.
        strength: 1.0 for override/mandatory hits; fraction of held
            predicates for simple rules.
        target: Target suggested by the rule, if any.
        weight: The rule's weight.
        order: The rule's registration order.
        evidence: Descriptions of the predicates that held.
    """

    rule_id: str
    domain: str
    kind: RuleKind
    strength: float
    target: str | None = None
    weight: float = 1.0
    order: int = 0
    evidence: tuple[str, ...] = field(default_factory=tuple)

    @property
    def eligible(self) -> bool:
        """Whether this match may decide a classification.

        Partial simple matches are diagnostics only.
        """
        return self.strength >= 1.0
