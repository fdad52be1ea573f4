"""Matcher: evaluates a request against the registry's rules.

- Override and mandatory rules hit with strength 1.0 when any predicate holds.
- Simple rules report the fraction of their predicates that hold; only a
  full match (1.0) is eligible to decide a classification.
- Rules where nothing holds produce no MatchResult. An empty result is a
  valid outcome, resolved later as ambiguous.

The matcher is a pure function of (request text, domain hint, registry).
"""

from caprouter.observability.logging import get_logger
from caprouter.routing.models import MatchResult, RequestContext, Rule, RuleKind
from caprouter.routing.registry import RuleRegistry

log = get_logger(__name__)


def evaluate_rule(rule: Rule, text: str) -> MatchResult | None:
    """Evaluate one rule against ``text``.

    Args:
        rule: The rule to evaluate.
        text: Request text.

    Returns:
        A MatchResult, or None when no predicate holds.
    """
    held = [predicate for predicate in rule.predicates if predicate.evaluate(text)]
    if not held:
        return None

    if rule.kind == RuleKind.SIMPLE:
        strength = len(held) / len(rule.predicates)
    else:
        strength = 1.0

    return MatchResult(
        rule_id=rule.id,
        domain=rule.domain,
        kind=rule.kind,
        strength=strength,
        target=rule.target,
        weight=rule.weight,
        order=rule.order,
        evidence=tuple(predicate.describe() for predicate in held),
    )


def match(context: RequestContext, registry: RuleRegistry) -> tuple[MatchResult, ...]:
    """Evaluate every applicable rule against the request.

    Args:
        context: The request. A domain hint naming a registered domain limits
            evaluation to that domain; an unknown hint is ignored.
        registry: The loaded rule registry.

    Returns:
        Matches in evaluation order (domain order, then override, mandatory,
        simple). May be empty.
    """
    if context.domain_hint is not None and not registry.has_domain(context.domain_hint):
        log.warning(
            "matcher.domain_hint.unknown",
            domain_hint=context.domain_hint,
            available_domains=list(registry.domains),
        )

    if registry.has_domain(context.domain_hint):
        rules = registry.rules_for(context.domain_hint)  # type: ignore[arg-type]
    else:
        rules = registry.all_rules()

    results = []
    for rule in rules:
        result = evaluate_rule(rule, context.text)
        if result is not None:
            results.append(result)

    log.debug(
        "matcher.evaluation.completed",
        rule_count=len(rules),
        match_count=len(results),
        eligible_count=sum(1 for r in results if r.eligible),
    )
    return tuple(results)
