"""
comparelint engine: tree-sitter adapters, the ESTree view rules walk,
rule registry, configuration and the CLI runner.
"""

from .types import Finding, LanguageAdapter, Requires, Rule, RuleContext, RuleMeta
from .config import EngineConfig, config_for_rule, find_config_file, load_config
from .registry import Registry, default_registry

__all__ = [
    "Finding", "LanguageAdapter", "Requires", "Rule", "RuleContext", "RuleMeta",
    "EngineConfig", "config_for_rule", "find_config_file", "load_config",
    "Registry", "default_registry",
]
