"""Unit tests for confidence-based escalation.

Tests cover:
- Ambiguous classifications escalate to the highest tier
- Low-confidence classifications move one tier up
- Escalation at the top tier keeps the target but sets the flag
- Confident classifications pass through unchanged
"""

import pytest

from caprouter.routing.confidence import ConfidenceEstimator
from caprouter.routing.decision import Decision
from caprouter.routing.escalation import DEFAULT_CONFIDENCE_THRESHOLD, EscalationPolicy
from caprouter.routing.matcher import match
from caprouter.routing.models import Mode, RequestContext
from caprouter.routing.registry import RuleRegistry
from caprouter.routing.resolver import Classification, ClassificationKind, PriorityResolver


def _decide(registry: RuleRegistry, text: str, hint: str | None = None, threshold: float = 0.5) -> Decision:
    matches = match(RequestContext(text=text, domain_hint=hint), registry)
    classification = PriorityResolver().resolve(matches, registry, hint)
    confidence = ConfidenceEstimator().score(classification)
    return EscalationPolicy(threshold=threshold).escalate(classification, confidence, registry, request_id="req_1")


class TestEscalationPolicy:
    """Test EscalationPolicy.escalate."""

    def test_default_threshold(self) -> None:
        """The default threshold is 0.5."""
        assert DEFAULT_CONFIDENCE_THRESHOLD == 0.5
        assert EscalationPolicy().threshold == 0.5

    def test_ambiguous_goes_to_highest_tier(self, registry: RuleRegistry) -> None:
        """Nothing matched: delegate to the most capable target, never guess."""
        decision = _decide(registry, "tell me a joke")

        assert decision.escalation is True
        assert decision.mode == Mode.DELEGATE
        assert decision.target == "top"
        assert decision.tier == "frontier"
        assert decision.confidence == 0.0
        assert decision.is_ambiguous

    def test_low_confidence_moves_one_tier_up(self, registry: RuleRegistry) -> None:
        """Partial simple match below threshold escalates from standard to frontier."""
        decision = _decide(registry, "remove console.log", "bugs")

        assert decision.confidence == pytest.approx(0.25)
        assert decision.classified_target == "mid"
        assert decision.target == "top"
        assert decision.escalation is True

    def test_confidence_at_threshold_does_not_escalate(self, registry: RuleRegistry) -> None:
        """Escalation fires strictly below the threshold."""
        decision = _decide(registry, "remove console.log", "bugs", threshold=0.25)

        assert decision.escalation is False
        assert decision.target == "mid"

    def test_confident_decision_passes_through(self, registry: RuleRegistry) -> None:
        """Mandatory decisions are never escalated."""
        decision = _decide(registry, "flaky login test")

        assert decision.escalation is False
        assert decision.target == "mid"
        assert decision.confidence == 1.0
        assert decision.matched_rule_ids == ("flaky",)

    def test_inline_decision_stays_inline(self, registry: RuleRegistry) -> None:
        """Fully held simple rules stay inline with full confidence."""
        decision = _decide(registry, "remove console.log, one line", "bugs")

        assert decision.mode == Mode.INLINE
        assert decision.target == "inline"
        assert decision.confidence == 1.0
        assert decision.escalation is False

    def test_escalation_at_top_tier_keeps_target(self, registry: RuleRegistry) -> None:
        """At the highest tier the target is unchanged but the flag is set."""
        classification = Classification(
            kind=ClassificationKind.DELEGATE,
            mode=Mode.DELEGATE,
            target="top",
            domain="bugs",
            simple_strength=0.1,
        )

        decision = EscalationPolicy().escalate(classification, 0.1, registry)

        assert decision.target == "top"
        assert decision.escalation is True

    def test_decision_records_registry_version(self, registry: RuleRegistry) -> None:
        """Decisions name the registry snapshot they were made against."""
        assert _decide(registry, "flaky").registry_version == registry.version
