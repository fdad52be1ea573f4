"""Configuration module for caprouter.

Rule configuration is hierarchical data: targets, tiers and, per domain,
override/mandatory/simple rules with their predicates.

Main exports:
    RouterConfig: Top-level configuration model
    load_config: Load config from YAML (or the bundled defaults)
    get_default_config: The bundled rule set

Usage:
    from caprouter.config import load_config

    config = load_config(Path("rules.yaml"))
    threshold = config.routing.confidence_threshold
"""

from caprouter.config.loader import (
    CONFIG_ENV_VAR,
    load_config,
    parse_config,
    resolve_config_path,
    write_config,
)
from caprouter.config.models import (
    DEFAULT_TIERS,
    DispatchConfig,
    DomainConfig,
    FileMentionsPredicateConfig,
    KeywordsPredicateConfig,
    PostProcessingConfig,
    PredicateConfig,
    RegexPredicateConfig,
    RouterConfig,
    RoutingConfig,
    RuleConfig,
    TargetConfig,
    WordCountPredicateConfig,
    get_config_dir,
    get_default_config,
)

__all__ = [
    # Models
    "RouterConfig",
    "TargetConfig",
    "DomainConfig",
    "RuleConfig",
    "PredicateConfig",
    "KeywordsPredicateConfig",
    "RegexPredicateConfig",
    "FileMentionsPredicateConfig",
    "WordCountPredicateConfig",
    "RoutingConfig",
    "DispatchConfig",
    "PostProcessingConfig",
    "DEFAULT_TIERS",
    # Loader functions
    "CONFIG_ENV_VAR",
    "load_config",
    "parse_config",
    "resolve_config_path",
    "write_config",
    # Model helpers
    "get_config_dir",
    "get_default_config",
]
