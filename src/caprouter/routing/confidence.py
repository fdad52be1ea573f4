"""Confidence Estimator: a scalar confidence for each classification.

Scoring:
- explicit, override and mandatory classifications: 1.0
- inline: 1.0 only when every simple predicate held
- delegate (partly matched simple rules): weight-averaged strength of the
  domain's simple rules
- ambiguous: 0.0
"""

from caprouter.core.types import Confidence
from caprouter.routing.resolver import Classification, ClassificationKind

FULL_CONFIDENCE: Confidence = 1.0
NO_CONFIDENCE: Confidence = 0.0


class ConfidenceEstimator:
    """Stateless scorer. Weights enter through ``Classification.simple_strength``."""

    def score(self, classification: Classification) -> Confidence:
        """Return a confidence in [0, 1] for ``classification``."""
        match classification.kind:
            case ClassificationKind.AMBIGUOUS:
                return NO_CONFIDENCE
            case (
                ClassificationKind.EXPLICIT
                | ClassificationKind.OVERRIDE
                | ClassificationKind.MANDATORY
            ):
                return FULL_CONFIDENCE
            case ClassificationKind.INLINE:
                return FULL_CONFIDENCE if classification.simple_strength >= 1.0 else NO_CONFIDENCE
            case ClassificationKind.DELEGATE:
                return min(max(classification.simple_strength, NO_CONFIDENCE), FULL_CONFIDENCE)
        return NO_CONFIDENCE
