"""
comparelint configuration.

Settings come from a YAML file found next to (or above) the analyzed
paths, merged over built-in defaults:

    enabled_rules: ["style.*"]
    rule_severities:
      style.yoda: error
    rule_configs:
      style.yoda:
        options: [always, {exceptRange: true}]
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)

CONFIG_NAMES = (".comparelint.yml", ".comparelint.yaml", "comparelint.yml", "comparelint.yaml")

DEFAULT_RULE_CONFIGS: Dict[str, Dict[str, Any]] = {
    # Positional options: [style, {exceptRange: bool}]
    "style.yoda": {"options": ["never", {"exceptRange": False}]},
}


@dataclass
class EngineConfig:
    enabled_rules: List[str] = field(default_factory=lambda: ["*"])
    max_findings_per_file: int = 50
    max_total_findings: int = 1000
    rule_severities: Dict[str, str] = field(default_factory=dict)
    # Per-language settings every rule sees, overridden by rule_configs
    language_configs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    rule_configs: Dict[str, Dict[str, Any]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_RULE_CONFIGS))


_MAPPING_SECTIONS = ("rule_severities", "language_configs", "rule_configs")
_SCALAR_KEYS = ("enabled_rules", "max_findings_per_file", "max_total_findings")


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """Defaults, overlaid with the YAML file at ``config_path`` if there is one.

    An unreadable or malformed file is reported and the defaults are used.
    """
    config = EngineConfig()
    if not config_path or not os.path.exists(config_path):
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("top level must be a mapping")

        for key, value in data.items():
            if key in _SCALAR_KEYS:
                setattr(config, key, value)
            elif key == "rule_severities":
                config.rule_severities.update(value or {})
            elif key in _MAPPING_SECTIONS:
                # One level deeper: a rule's or language's settings merge key by key
                section = getattr(config, key)
                for name, settings in (value or {}).items():
                    section.setdefault(name, {}).update(settings or {})
            else:
                logger.warning(f"Ignoring unknown config key '{key}' in {config_path}")
    except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}; using default configuration")
        return EngineConfig()

    return config


def find_config_file(start_path: str = ".") -> Optional[str]:
    """The nearest config file in ``start_path`` or any parent directory."""
    directory = os.path.abspath(start_path)
    if os.path.isfile(directory):
        directory = os.path.dirname(directory)

    while True:
        for name in CONFIG_NAMES:
            candidate = os.path.join(directory, name)
            if os.path.isfile(candidate):
                return candidate
        parent = os.path.dirname(directory)
        if parent == directory:
            return None
        directory = parent


def get_rule_severity(config: EngineConfig, rule_id: str, default: str) -> str:
    """The configured severity for ``rule_id``, else the rule's own ``default``."""
    return config.rule_severities.get(rule_id, default)


def config_for_rule(config: EngineConfig, language: str, rule_id: str) -> Dict[str, Any]:
    """The config a rule receives: language settings overlaid with the rule's own."""
    rule_config = dict(config.language_configs.get(language, {}))
    rule_config.update(config.rule_configs.get(rule_id, {}))
    return rule_config
