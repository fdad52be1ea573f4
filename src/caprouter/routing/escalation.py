"""Confidence-based escalation for caprouter.

The escalation policy is the last routing step and guarantees a concrete
Decision for every request:

- Ambiguous classifications (no rule fired) always delegate to the highest
  configured capability tier. The router never guesses.
- Classifications scoring below the threshold delegate one tier above the
  tier they implied. At the top tier the target stays the same but the
  escalation flag is still set.
- Everything else passes through unchanged.

Usage:
    policy = EscalationPolicy(threshold=0.5)
    decision = policy.escalate(classification, confidence, registry, request_id="req_1")
    if decision.escalation:
        print(f"escalated to {decision.target} ({decision.tier})")
"""

from dataclasses import dataclass

from caprouter.core.types import Confidence
from caprouter.observability.logging import get_logger
from caprouter.routing.decision import Decision
from caprouter.routing.models import Mode
from caprouter.routing.registry import RuleRegistry
from caprouter.routing.resolver import Classification

log = get_logger(__name__)

# Decisions scoring below this are escalated unless configured otherwise
DEFAULT_CONFIDENCE_THRESHOLD = 0.5


@dataclass(frozen=True, slots=True)
class EscalationPolicy:
    """Raises the capability tier of low-confidence classifications.

    Attributes:
        threshold: Confidence below which escalation fires.
    """

    threshold: float = DEFAULT_CONFIDENCE_THRESHOLD

    def escalate(
        self,
        classification: Classification,
        confidence: Confidence,
        registry: RuleRegistry,
        *,
        request_id: str = "",
    ) -> Decision:
        """Produce the final Decision for a classification.

        Args:
            classification: The resolver's output.
            confidence: The estimator's score for it.
            registry: Registry used to walk the tier ladder.
            request_id: Routing cycle identifier stored on the Decision.

        Returns:
            An immutable Decision.
        """
        target_id = classification.target
        mode = classification.mode
        escalated = False

        if classification.is_ambiguous:
            top = registry.highest_tier_target()
            target_id = top.id if top else None
            mode = Mode.DELEGATE
            escalated = True
            log.info(
                "escalation.ambiguous.escalated",
                request_id=request_id,
                to_target=target_id,
                to_tier=top.tier if top else None,
            )
        elif confidence < self.threshold:
            raised = registry.next_tier_up(classification.target, classification.domain)
            mode = Mode.DELEGATE
            escalated = True
            if raised is not None:
                target_id = raised.id
                log.info(
                    "escalation.tier.upgraded",
                    request_id=request_id,
                    from_target=classification.target,
                    to_target=raised.id,
                    to_tier=raised.tier,
                    confidence=confidence,
                    threshold=self.threshold,
                )
            else:
                log.info(
                    "escalation.tier.at_maximum",
                    request_id=request_id,
                    target=classification.target,
                    confidence=confidence,
                )

        target = registry.target(target_id)
        return Decision(
            request_id=request_id,
            mode=mode,
            target=target_id,
            tier=target.tier if target else None,
            confidence=confidence,
            escalation=escalated,
            kind=classification.kind,
            domain=classification.domain,
            matches=classification.matches,
            classified_target=classification.target,
            reason=classification.reason,
            registry_version=registry.version,
        )
