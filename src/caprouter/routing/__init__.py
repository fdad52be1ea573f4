"""Routing module for caprouter.

This module turns a request into a Decision and executes it:
- Rule registry holding override, mandatory and simple rules per domain
- Matcher evaluating every rule predicate against the request text
- Priority resolver applying the fixed tie-break order
- Confidence estimation and escalation to higher capability tiers
- Dispatcher with timeout, retry and one-step tier degradation
- Post-processing of terse output from low-fidelity targets
"""

from caprouter.routing.confidence import ConfidenceEstimator
from caprouter.routing.cycle import AttemptRecord, CycleState, RoutingCycle
from caprouter.routing.decision import Decision
from caprouter.routing.dispatcher import Dispatcher, DispatchOutcome
from caprouter.routing.escalation import DEFAULT_CONFIDENCE_THRESHOLD, EscalationPolicy
from caprouter.routing.matcher import evaluate_rule, match
from caprouter.routing.models import (
    ExecutionTarget,
    MatchResult,
    Mode,
    RequestContext,
    Rule,
    RuleKind,
)
from caprouter.routing.postprocess import PostProcessor, count_prose_words
from caprouter.routing.registry import DomainRules, RuleRegistry
from caprouter.routing.resolver import Classification, ClassificationKind, PriorityResolver
from caprouter.routing.router import RouteOutcome, Router, classify_task, route_task

__all__ = [
    # Models
    "ExecutionTarget",
    "MatchResult",
    "Mode",
    "RequestContext",
    "Rule",
    "RuleKind",
    # Registry
    "DomainRules",
    "RuleRegistry",
    # Classification
    "evaluate_rule",
    "match",
    "Classification",
    "ClassificationKind",
    "PriorityResolver",
    "ConfidenceEstimator",
    "EscalationPolicy",
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "Decision",
    # Execution
    "AttemptRecord",
    "CycleState",
    "RoutingCycle",
    "Dispatcher",
    "DispatchOutcome",
    "PostProcessor",
    "count_prose_words",
    # Router
    "Router",
    "RouteOutcome",
    "classify_task",
    "route_task",
]
