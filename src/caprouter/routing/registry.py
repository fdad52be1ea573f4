"""Rule Registry: the immutable, versioned snapshot of routing rules.

The registry is built once from a RouterConfig and shared read-only by every
routing cycle. Loading validates everything that can be validated statically
so that request-time code never sees a configuration error:

- every referenced target exists and every target names a configured tier
- rule ids are unique within a domain and every rule has predicates
- override/mandatory rules name a target
- regex predicates compile
- no two overrides can match the same class of input

Registration order is the global order of rules in the configuration
(domains in file order, rules in list order). It is the tie-break used by
the resolver, the escalation policy and the dispatcher.

Usage:
    result = RuleRegistry.load(config)
    if result.is_err:
        raise result.error
    registry = result.value
    registry.rules_for("bug-fix")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
import hashlib
from itertools import combinations
import re
from types import MappingProxyType

from caprouter.config.models import RouterConfig
from caprouter.core.errors import ConfigError
from caprouter.core.types import Result
from caprouter.observability.logging import get_logger
from caprouter.routing.models import ExecutionTarget, Rule, RuleKind
from caprouter.routing.predicates import (
    KeywordPredicate,
    Predicate,
    RegexPredicate,
    build_predicate,
)

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DomainRules:
    """Rules and default targets of one domain, in evaluation order."""

    name: str
    rules: tuple[Rule, ...]
    delegate_target: str
    inline_target: str | None = None
    description: str = ""

    @property
    def simple_rules(self) -> tuple[Rule, ...]:
        return tuple(rule for rule in self.rules if rule.kind == RuleKind.SIMPLE)


def _evaluation_order(rules: Iterable[Rule]) -> tuple[Rule, ...]:
    return tuple(sorted(rules, key=lambda rule: (rule.kind.priority, rule.order)))


def _keywords_overlap(first: KeywordPredicate, second: KeywordPredicate) -> str | None:
    for a in first.keywords:
        for b in second.keywords:
            if a in b or b in a:
                return a if len(a) <= len(b) else b
    return None


def _override_overlap(first: Rule, second: Rule) -> tuple[bool, str | None]:
    """Static overlap analysis between two override rules.

    Returns:
        (decided, shared) where ``decided`` is False when overlap cannot be
        ruled in or out statically, and ``shared`` names the common signal
        when the rules provably overlap.
    """
    decided = True
    for p in first.predicates:
        for q in second.predicates:
            if getattr(p, "negate", False) or getattr(q, "negate", False):
                decided = False
                continue
            if isinstance(p, KeywordPredicate) and isinstance(q, KeywordPredicate):
                shared = _keywords_overlap(p, q)
                if shared is not None:
                    return True, shared
            elif isinstance(p, RegexPredicate) and isinstance(q, RegexPredicate):
                if p.pattern.pattern == q.pattern.pattern:
                    return True, p.pattern.pattern
                decided = False
            else:
                decided = False
    return decided, None


class RuleRegistry:
    """Read-only collection of rules, domains and execution targets.

    Build instances with ``RuleRegistry.load``. After loading nothing is
    mutated, so one registry may serve concurrent routing cycles without
    locking.
    """

    __slots__ = ("_domains", "_overrides", "_targets", "_tiers", "_version")

    def __init__(
        self,
        *,
        tiers: tuple[str, ...],
        targets: Mapping[str, ExecutionTarget],
        domains: Mapping[str, DomainRules],
        version: str,
    ) -> None:
        self._tiers = tiers
        self._targets = MappingProxyType(dict(targets))
        self._domains = MappingProxyType(dict(domains))
        self._overrides = frozenset(
            rule
            for domain in domains.values()
            for rule in domain.rules
            if rule.kind == RuleKind.OVERRIDE
        )
        self._version = version

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, config: RouterConfig) -> Result[RuleRegistry, ConfigError]:
        """Build and validate a registry from configuration.

        Args:
            config: The routing configuration.

        Returns:
            Result containing the registry, or the first ConfigError found.
        """
        tiers = tuple(config.tiers)
        tier_rank = {name: rank for rank, name in enumerate(tiers)}

        targets: dict[str, ExecutionTarget] = {}
        for order, (target_id, target_config) in enumerate(config.targets.items()):
            if target_config.tier not in tier_rank:
                return cls._fail(
                    f"Target '{target_id}' references unknown tier '{target_config.tier}'",
                    config_key=f"targets.{target_id}.tier",
                    details={"tier": target_config.tier, "available_tiers": list(tiers)},
                )
            targets[target_id] = ExecutionTarget(
                id=target_id,
                tier=target_config.tier,
                rank=tier_rank[target_config.tier],
                backend=target_config.backend,
                inline=target_config.inline,
                low_fidelity=target_config.low_fidelity,
                order=order,
            )

        domains: dict[str, DomainRules] = {}
        order = 0
        for domain_name, domain_config in config.domains.items():
            key = f"domains.{domain_name}"
            for field_name in ("delegate_target", "inline_target"):
                ref = getattr(domain_config, field_name)
                if ref is not None and ref not in targets:
                    return cls._fail(
                        f"Domain '{domain_name}' references unknown target '{ref}'",
                        config_key=f"{key}.{field_name}",
                        details={"target": ref},
                    )

            rules: list[Rule] = []
            seen_ids: set[str] = set()
            for index, rule_config in enumerate(domain_config.rules):
                rule_key = f"{key}.rules.{index}"
                if rule_config.id in seen_ids:
                    return cls._fail(
                        f"Duplicate rule id '{rule_config.id}' in domain '{domain_name}'",
                        config_key=f"{rule_key}.id",
                    )
                seen_ids.add(rule_config.id)

                if not rule_config.predicates:
                    return cls._fail(
                        f"Rule '{rule_config.id}' has an empty predicate set",
                        config_key=f"{rule_key}.predicates",
                    )

                kind = RuleKind(rule_config.kind)
                if kind != RuleKind.SIMPLE and rule_config.target is None:
                    return cls._fail(
                        f"{kind.value.capitalize()} rule '{rule_config.id}' must name a target",
                        config_key=f"{rule_key}.target",
                    )
                if rule_config.target is not None and rule_config.target not in targets:
                    return cls._fail(
                        f"Rule '{rule_config.id}' references unknown target '{rule_config.target}'",
                        config_key=f"{rule_key}.target",
                        details={"target": rule_config.target},
                    )
                if kind == RuleKind.SIMPLE and domain_config.inline_target is None:
                    return cls._fail(
                        f"Domain '{domain_name}' has simple rules but no inline_target",
                        config_key=f"{key}.inline_target",
                    )

                predicates: list[Predicate] = []
                for p_index, predicate_config in enumerate(rule_config.predicates):
                    try:
                        predicates.append(build_predicate(predicate_config))
                    except re.error as e:
                        return cls._fail(
                            f"Rule '{rule_config.id}' has an invalid regex: {e}",
                            config_key=f"{rule_key}.predicates.{p_index}.pattern",
                            details={"pattern": getattr(predicate_config, "pattern", None)},
                        )

                rules.append(
                    Rule(
                        id=rule_config.id,
                        domain=domain_name,
                        kind=kind,
                        predicates=tuple(predicates),
                        target=rule_config.target,
                        weight=rule_config.weight,
                        order=order,
                        description=rule_config.description,
                    )
                )
                order += 1

            domains[domain_name] = DomainRules(
                name=domain_name,
                rules=_evaluation_order(rules),
                delegate_target=domain_config.delegate_target,
                inline_target=domain_config.inline_target,
                description=domain_config.description,
            )

        overlap_error = cls._check_override_overlap(domains)
        if overlap_error is not None:
            log.error("registry.load.failed", error=overlap_error.message)
            return Result.err(overlap_error)

        payload = config.model_dump_json(exclude={"logging"}).encode()
        digest = hashlib.sha256(payload).hexdigest()[:12]
        registry = cls(
            tiers=tiers,
            targets=targets,
            domains=domains,
            version=f"{config.version}+{digest}",
        )

        log.info(
            "registry.load.completed",
            version=registry.version,
            domain_count=len(domains),
            rule_count=order,
            target_count=len(targets),
            override_count=len(registry.all_overrides()),
        )
        return Result.ok(registry)

    @staticmethod
    def _fail(
        message: str,
        *,
        config_key: str,
        details: dict[str, object] | None = None,
    ) -> Result[RuleRegistry, ConfigError]:
        log.error("registry.load.failed", error=message, config_key=config_key)
        return Result.err(ConfigError(message, config_key=config_key, details=details))

    @staticmethod
    def _check_override_overlap(domains: Mapping[str, DomainRules]) -> ConfigError | None:
        """Reject override pairs that provably match the same input.

        Checked across all domains because matching without a domain hint
        evaluates every domain.
        """
        overrides = sorted(
            (
                rule
                for domain in domains.values()
                for rule in domain.rules
                if rule.kind == RuleKind.OVERRIDE
            ),
            key=lambda rule: rule.order,
        )
        for first, second in combinations(overrides, 2):
            decided, shared = _override_overlap(first, second)
            if shared is not None:
                return ConfigError(
                    f"Overrides '{first.domain}/{first.id}' and '{second.domain}/{second.id}' "
                    f"can both match the same input (shared signal: {shared!r})",
                    config_key=f"domains.{second.domain}",
                    details={"rules": [first.id, second.id], "shared": shared},
                )
            if not decided:
                log.warning(
                    "registry.override.overlap_unverified",
                    first=f"{first.domain}/{first.id}",
                    second=f"{second.domain}/{second.id}",
                )
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def version(self) -> str:
        """Config version plus a short content hash."""
        return self._version

    @property
    def tiers(self) -> tuple[str, ...]:
        """Capability tiers, lowest first."""
        return self._tiers

    @property
    def domains(self) -> tuple[str, ...]:
        """Domain names in registration order."""
        return tuple(self._domains)

    @property
    def targets(self) -> Mapping[str, ExecutionTarget]:
        return self._targets

    def has_domain(self, domain: str | None) -> bool:
        return domain is not None and domain in self._domains

    def domain(self, name: str) -> DomainRules:
        """Return a domain's rules and default targets.

        Raises:
            KeyError: If the domain is not registered.
        """
        return self._domains[name]

    def rules_for(self, domain: str) -> tuple[Rule, ...]:
        """Rules of ``domain``: overrides, then mandatory, then simple.

        Registration order is kept within each kind. Unknown domains yield
        an empty tuple.
        """
        domain_rules = self._domains.get(domain)
        return domain_rules.rules if domain_rules else ()

    def all_rules(self) -> tuple[Rule, ...]:
        """Every rule, domain by domain, in evaluation order."""
        return tuple(rule for domain in self._domains.values() for rule in domain.rules)

    def all_overrides(self) -> frozenset[Rule]:
        return self._overrides

    def target(self, target_id: str | None) -> ExecutionTarget | None:
        if target_id is None:
            return None
        return self._targets.get(target_id)

    def tier_rank(self, target_id: str | None) -> int:
        """Rank of a target's tier, or -1 for unknown targets."""
        target = self.target(target_id)
        return target.rank if target else -1

    # ------------------------------------------------------------------
    # Tier ladder
    # ------------------------------------------------------------------

    def _domain_target_ids(self, domain: str | None) -> set[str]:
        domain_rules = self._domains.get(domain) if domain else None
        if domain_rules is None:
            return set()
        ids = {rule.target for rule in domain_rules.rules if rule.target}
        ids.add(domain_rules.delegate_target)
        if domain_rules.inline_target:
            ids.add(domain_rules.inline_target)
        return ids

    def _pick(
        self,
        candidates: list[ExecutionTarget],
        domain: str | None,
        *,
        prefer_high: bool,
    ) -> ExecutionTarget | None:
        """Pick the best candidate: nearest tier first, domain targets preferred.

        Ties fall back to target registration order.
        """
        if not candidates:
            return None
        preferred = self._domain_target_ids(domain)

        def key(target: ExecutionTarget) -> tuple[int, int, int]:
            distance = -target.rank if prefer_high else target.rank
            return (distance, 0 if target.id in preferred else 1, target.order)

        return min(candidates, key=key)

    def _routable(self) -> list[ExecutionTarget]:
        return [target for target in self._targets.values() if not target.inline]

    def highest_tier_target(self) -> ExecutionTarget | None:
        """First registered non-inline target on the highest configured tier."""
        routable = self._routable()
        if not routable:
            return None
        top = max(target.rank for target in routable)
        return min((t for t in routable if t.rank == top), key=lambda t: t.order)

    def next_tier_up(
        self, target_id: str | None, domain: str | None = None
    ) -> ExecutionTarget | None:
        """Non-inline target on the nearest tier above ``target_id``'s tier.

        Returns None when the target is already on the highest tier.
        """
        current = self.tier_rank(target_id)
        above = [t for t in self._routable() if t.rank > current]
        return self._pick(above, domain, prefer_high=False)

    def next_tier_down(
        self, target_id: str | None, domain: str | None = None
    ) -> ExecutionTarget | None:
        """Non-inline target on the nearest tier below ``target_id``'s tier.

        Inline targets are never returned, so degradation never falls back
        to inline handling.
        """
        current = self.tier_rank(target_id)
        below = [t for t in self._routable() if t.rank < current]
        return self._pick(below, domain, prefer_high=True)
