"""Decision: the single artifact handed from routing to dispatch.

A Decision is created once per request, never mutated, and survives
dispatch failure or cancellation for diagnostics. It serializes to plain
JSON-compatible data and back without loss of the observable fields
(mode, target, confidence, escalation, matched rule ids).
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any

from caprouter.core.errors import ValidationError
from caprouter.core.types import Payload, Result
from caprouter.routing.models import MatchResult, Mode, RuleKind
from caprouter.routing.resolver import ClassificationKind


@dataclass(frozen=True, slots=True)
class Decision:
    """Final routing decision for one request.

    Attributes:
        request_id: Identifier of the routing cycle; not part of equality.
        mode: Inline or delegate.
        target: Chosen execution target id.
        tier: Tier of the chosen target (None for unknown explicit targets).
        confidence: Confidence in [0, 1].
        escalation: True when confidence-based escalation fired.
        kind: Resolver step that produced the classification.
        domain: Domain of the deciding rules, if any.
        matches: Matches that produced the decision (including partials).
        classified_target: Target implied before escalation.
        reason: Short explanation.
        registry_version: Version of the registry snapshot used.
    """

    request_id: str = field(compare=False)
    mode: Mode
    target: str | None
    tier: str | None
    confidence: float
    escalation: bool
    kind: ClassificationKind
    domain: str | None = None
    matches: tuple[MatchResult, ...] = field(default_factory=tuple)
    classified_target: str | None = None
    reason: str = ""
    registry_version: str = ""

    @property
    def matched_rule_ids(self) -> tuple[str, ...]:
        return tuple(m.rule_id for m in self.matches)

    @property
    def is_ambiguous(self) -> bool:
        return self.kind == ClassificationKind.AMBIGUOUS

    def to_dict(self) -> Payload:
        """Serialize to JSON-compatible data."""
        return {
            "request_id": self.request_id,
            "mode": self.mode.value,
            "target": self.target,
            "tier": self.tier,
            "confidence": self.confidence,
            "escalation": self.escalation,
            "kind": self.kind.value,
            "domain": self.domain,
            "matches": [
                {
                    "rule_id": m.rule_id,
                    "domain": m.domain,
                    "kind": m.kind.value,
                    "strength": m.strength,
                    "target": m.target,
                    "weight": m.weight,
                    "order": m.order,
                    "evidence": list(m.evidence),
                }
                for m in self.matches
            ],
            "classified_target": self.classified_target,
            "reason": self.reason,
            "registry_version": self.registry_version,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Result[Decision, ValidationError]:
        """Rebuild a Decision from ``to_dict`` output.

        Returns:
            Result containing the Decision, or a ValidationError naming the
            first missing or invalid field.
        """
        try:
            matches = tuple(
                MatchResult(
                    rule_id=m["rule_id"],
                    domain=m["domain"],
                    kind=RuleKind(m["kind"]),
                    strength=float(m["strength"]),
                    target=m.get("target"),
                    weight=float(m.get("weight", 1.0)),
                    order=int(m.get("order", 0)),
                    evidence=tuple(m.get("evidence", ())),
                )
                for m in data.get("matches", [])
            )
            decision = cls(
                request_id=data["request_id"],
                mode=Mode(data["mode"]),
                target=data["target"],
                tier=data.get("tier"),
                confidence=float(data["confidence"]),
                escalation=bool(data["escalation"]),
                kind=ClassificationKind(data["kind"]),
                domain=data.get("domain"),
                matches=matches,
                classified_target=data.get("classified_target"),
                reason=data.get("reason", ""),
                registry_version=data.get("registry_version", ""),
            )
        except KeyError as e:
            return Result.err(
                ValidationError(f"Missing decision field: {e.args[0]}", field=str(e.args[0]))
            )
        except (TypeError, ValueError) as e:
            return Result.err(
                ValidationError(f"Invalid decision payload: {e}", details={"error": str(e)})
            )

        if not 0.0 <= decision.confidence <= 1.0:
            return Result.err(
                ValidationError(
                    "Confidence must be between 0.0 and 1.0",
                    field="confidence",
                    value=decision.confidence,
                )
            )
        return Result.ok(decision)

    @classmethod
    def from_json(cls, raw: str) -> Result[Decision, ValidationError]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            return Result.err(ValidationError(f"Decision is not valid JSON: {e}"))
        if not isinstance(data, dict):
            return Result.err(ValidationError("Decision JSON must be an object"))
        return cls.from_dict(data)
