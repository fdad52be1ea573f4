"""Priority Resolver: turns candidate matches into one classification.

Tie-break order, strictly in this sequence:

1. An explicit target requested by the caller wins outright; matching is
   skipped entirely (see ``PriorityResolver.explicit``).
2. Any override match wins over every other match.
3. Any mandatory match forces delegation. When several mandatory rules
   match, the union of their targets is the candidate set and the highest
   capability tier wins; ties go to the first registered rule.
4. Otherwise every simple rule of the inferred domain must match fully for
   inline handling; partial or missing simple matches delegate.
5. No match at all is ambiguous.

The resolver never raises for request-time conditions; the ambiguous
outcome is a classification like any other and is resolved by escalation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from caprouter.observability.logging import get_logger
from caprouter.routing.models import MatchResult, Mode, RuleKind
from caprouter.routing.registry import RuleRegistry

log = get_logger(__name__)


class ClassificationKind(StrEnum):
    """Which resolver step produced a classification."""

    EXPLICIT = "explicit"
    OVERRIDE = "override"
    MANDATORY = "mandatory"
    INLINE = "inline"
    DELEGATE = "delegate"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True, slots=True)
class Classification:
    """Winning classification for one request.

    Attributes:
        kind: Resolver step that decided.
        mode: Inline or delegate.
        target: Target implied by the classification (None when ambiguous).
        domain: Domain of the deciding rule(s), if any.
        matches: All candidate matches, including partial diagnostics.
        candidates: Targets considered (union of mandatory targets).
        reason: Short explanation.
        simple_strength: Weight-averaged strength of the domain's simple
            rules; meaningful for INLINE and DELEGATE classifications.
    """

    kind: ClassificationKind
    mode: Mode
    target: str | None
    domain: str | None = None
    matches: tuple[MatchResult, ...] = field(default_factory=tuple)
    candidates: tuple[str, ...] = field(default_factory=tuple)
    reason: str = ""
    simple_strength: float = 0.0

    @property
    def is_ambiguous(self) -> bool:
        return self.kind == ClassificationKind.AMBIGUOUS


class PriorityResolver:
    """Stateless resolver applying the fixed tie-break order."""

    def explicit(self, target_id: str, registry: RuleRegistry) -> Classification:
        """Classification for a caller-requested target.

        Unknown targets are passed through; the dispatcher reports them as
        unavailable.
        """
        target = registry.target(target_id)
        mode = Mode.INLINE if target is not None and target.inline else Mode.DELEGATE
        return Classification(
            kind=ClassificationKind.EXPLICIT,
            mode=mode,
            target=target_id,
            domain=None,
            reason="explicit target requested by caller",
        )

    def resolve(
        self,
        matches: tuple[MatchResult, ...],
        registry: RuleRegistry,
        domain_hint: str | None = None,
    ) -> Classification:
        """Resolve candidate matches into a single classification.

        Args:
            matches: Output of the matcher.
            registry: The registry the matches were produced from.
            domain_hint: Caller's domain hint, used to infer the domain for
                simple-rule evaluation.

        Returns:
            The winning Classification (possibly ambiguous).
        """
        overrides = sorted(
            (m for m in matches if m.kind == RuleKind.OVERRIDE), key=lambda m: m.order
        )
        if overrides:
            return self._resolve_override(overrides, matches)

        mandatory = sorted(
            (m for m in matches if m.kind == RuleKind.MANDATORY), key=lambda m: m.order
        )
        if mandatory:
            return self._resolve_mandatory(mandatory, matches, registry)

        if not matches:
            hinted = domain_hint if registry.has_domain(domain_hint) else None
            return Classification(
                kind=ClassificationKind.AMBIGUOUS,
                mode=Mode.DELEGATE,
                target=None,
                domain=hinted,
                reason="no rule matched",
            )

        return self._resolve_simple(matches, registry, domain_hint)

    def _resolve_override(
        self,
        overrides: list[MatchResult],
        matches: tuple[MatchResult, ...],
    ) -> Classification:
        winner = overrides[0]
        if len(overrides) > 1:
            # Load-time analysis could not prove these disjoint.
            log.warning(
                "resolver.override.conflict",
                winner=winner.rule_id,
                others=[m.rule_id for m in overrides[1:]],
            )
        return Classification(
            kind=ClassificationKind.OVERRIDE,
            mode=Mode.DELEGATE,
            target=winner.target,
            domain=winner.domain,
            matches=matches,
            candidates=(winner.target,) if winner.target else (),
            reason=f"override '{winner.rule_id}' matched",
        )

    def _resolve_mandatory(
        self,
        mandatory: list[MatchResult],
        matches: tuple[MatchResult, ...],
        registry: RuleRegistry,
    ) -> Classification:
        candidates: list[str] = []
        winner = mandatory[0]
        for result in mandatory:
            if result.target and result.target not in candidates:
                candidates.append(result.target)
            if registry.tier_rank(result.target) > registry.tier_rank(winner.target):
                winner = result

        return Classification(
            kind=ClassificationKind.MANDATORY,
            mode=Mode.DELEGATE,
            target=winner.target,
            domain=winner.domain,
            matches=matches,
            candidates=tuple(candidates),
            reason=f"mandatory rule '{winner.rule_id}' matched",
        )

    def _resolve_simple(
        self,
        matches: tuple[MatchResult, ...],
        registry: RuleRegistry,
        domain_hint: str | None,
    ) -> Classification:
        if registry.has_domain(domain_hint):
            domain_name = domain_hint
        else:
            strongest = min(matches, key=lambda m: (-m.strength, m.order))
            domain_name = strongest.domain

        domain = registry.domain(domain_name)  # type: ignore[arg-type]
        simple_rules = domain.simple_rules
        by_rule = {m.rule_id: m for m in matches if m.domain == domain.name}

        total_weight = sum(rule.weight for rule in simple_rules)
        if total_weight > 0:
            weighted = sum(
                rule.weight * (by_rule[rule.id].strength if rule.id in by_rule else 0.0)
                for rule in simple_rules
            )
            strength = weighted / total_weight
        else:
            strength = 0.0

        all_hold = bool(simple_rules) and all(
            rule.id in by_rule and by_rule[rule.id].eligible for rule in simple_rules
        )
        if all_hold:
            return Classification(
                kind=ClassificationKind.INLINE,
                mode=Mode.INLINE,
                target=domain.inline_target,
                domain=domain.name,
                matches=matches,
                reason=f"all simple rules of '{domain.name}' hold",
                simple_strength=strength,
            )

        return Classification(
            kind=ClassificationKind.DELEGATE,
            mode=Mode.DELEGATE,
            target=domain.delegate_target,
            domain=domain.name,
            matches=matches,
            reason=f"simple rules of '{domain.name}' only partly hold",
            simple_strength=strength,
        )
