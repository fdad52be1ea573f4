"""Unit tests for the matcher."""

from caprouter.routing.matcher import evaluate_rule, match
from caprouter.routing.models import RequestContext, Rule, RuleKind
from caprouter.routing.predicates import KeywordPredicate
from caprouter.routing.registry import RuleRegistry


class TestEvaluateRule:
    """Test single-rule evaluation."""

    def _rule(self, kind: RuleKind, *predicates: object) -> Rule:
        return Rule(id="r", domain="d", kind=kind, predicates=predicates, target="t")  # type: ignore[arg-type]

    def test_mandatory_hits_at_full_strength_when_any_holds(self) -> None:
        """One holding predicate is enough for a mandatory rule."""
        rule = self._rule(RuleKind.MANDATORY, KeywordPredicate(("flaky",)), KeywordPredicate(("outage",)))

        result = evaluate_rule(rule, "flaky test")

        assert result is not None
        assert result.strength == 1.0
        assert result.eligible
        assert result.evidence == ("any of keywords ['flaky']",)

    def test_simple_rule_partial_strength(self) -> None:
        """Simple rules report the fraction of held predicates."""
        rule = self._rule(RuleKind.SIMPLE, KeywordPredicate(("remove",)), KeywordPredicate(("console.log",)))

        result = evaluate_rule(rule, "remove the retry loop")

        assert result is not None
        assert result.strength == 0.5
        assert not result.eligible

    def test_no_predicate_holds(self) -> None:
        """Rules where nothing holds produce no match."""
        rule = self._rule(RuleKind.OVERRIDE, KeywordPredicate(("css",)))
        assert evaluate_rule(rule, "backend work") is None


class TestMatch:
    """Test matching a request against a registry."""

    def test_domain_hint_limits_evaluation(self, default_registry: RuleRegistry) -> None:
        """A known hint evaluates only that domain's rules."""
        context = RequestContext(text="Refactor and remove console.log", domain_hint="bug-fix")

        results = match(context, default_registry)

        assert {m.domain for m in results} == {"bug-fix"}

    def test_no_hint_evaluates_all_domains(self, default_registry: RuleRegistry) -> None:
        """Without a hint every domain is evaluated."""
        results = match(RequestContext(text="Refactor and remove console.log"), default_registry)

        assert {m.rule_id for m in results} >= {"model-router.complex-task", "bug-fix.trivial-edit"}

    def test_unknown_hint_is_ignored(self, default_registry: RuleRegistry) -> None:
        """An unknown hint falls back to all domains."""
        with_hint = match(RequestContext(text="Refactor it", domain_hint="nope"), default_registry)
        without = match(RequestContext(text="Refactor it"), default_registry)

        assert with_hint == without

    def test_empty_result_is_valid(self, default_registry: RuleRegistry) -> None:
        """No match at all is an empty tuple."""
        assert match(RequestContext(text="Tell me a joke about penguins"), default_registry) == ()

    def test_matching_is_deterministic(self, default_registry: RuleRegistry) -> None:
        """The same input always yields the same matches."""
        context = RequestContext(text="Payment flow occasionally fails in checkout.py and cart.py")
        assert match(context, default_registry) == match(context, default_registry)

    def test_results_in_evaluation_order(self, registry: RuleRegistry) -> None:
        """Override before mandatory before simple."""
        results = match(RequestContext(text="flaky css, remove console.log"), registry)

        assert [m.kind for m in results] == [RuleKind.OVERRIDE, RuleKind.MANDATORY, RuleKind.SIMPLE]
