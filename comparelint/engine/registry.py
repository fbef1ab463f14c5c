"""
Rule and adapter registry.

Rules live in modules of a rules package and are exported through a
module-level ``RULES`` list; ``discover_rules`` imports every module of the
package and registers what it finds.
"""

import fnmatch
import importlib
import logging
import pkgutil
from typing import Dict, List, Optional

from .types import LanguageAdapter, Rule

logger = logging.getLogger(__name__)


class Registry:
    """Rules by id and language adapters by language id."""

    def __init__(self):
        self._rules: Dict[str, Rule] = {}
        self._adapters: Dict[str, LanguageAdapter] = {}

    def register_rule(self, rule: Rule) -> bool:
        """Add ``rule`` unless its id is taken. Returns whether it was added."""
        if rule.meta.id in self._rules:
            return False
        self._rules[rule.meta.id] = rule
        return True

    def register_adapter(self, adapter: LanguageAdapter) -> None:
        self._adapters.setdefault(adapter.language_id, adapter)

    def get_adapter(self, language: str) -> Optional[LanguageAdapter]:
        return self._adapters.get(language)

    @property
    def rule_ids(self) -> List[str]:
        return list(self._rules)

    def get_enabled_rules(self, patterns: List[str], language: str) -> List[Rule]:
        """Rules for ``language`` whose id matches any glob in ``patterns``."""
        return [rule for rule in self._rules.values()
                if language in rule.meta.langs
                and any(fnmatch.fnmatch(rule.meta.id, pattern) for pattern in patterns)]

    def discover_rules(self, packages: List[str]) -> int:
        """Register the ``RULES`` of every module in ``packages``. Returns how many were new."""
        added = 0
        for package_name in packages:
            for module in self._iter_modules(package_name):
                for rule in getattr(module, "RULES", None) or []:
                    if isinstance(rule, type):
                        rule = rule()
                    if not hasattr(rule, "meta") or not hasattr(rule, "visit"):
                        logger.warning(f"Ignoring non-rule {rule!r} in {module.__name__}.RULES")
                        continue
                    added += self.register_rule(rule)
        return added

    @staticmethod
    def _iter_modules(package_name: str):
        try:
            package = importlib.import_module(package_name)
        except ImportError as e:
            logger.warning(f"Could not import rule package {package_name}: {e}")
            return

        yield package
        for _, name, _ in pkgutil.walk_packages(getattr(package, "__path__", []), package_name + "."):
            try:
                yield importlib.import_module(name)
            except Exception as e:
                logger.warning(f"Skipping rule module {name}: {e}")


# Process-wide registry used by the runner
default_registry = Registry()


def register_adapter(adapter: LanguageAdapter) -> None:
    default_registry.register_adapter(adapter)


def get_adapter(language: str) -> Optional[LanguageAdapter]:
    return default_registry.get_adapter(language)


def discover_rules(packages: List[str]) -> int:
    return default_registry.discover_rules(packages)


def get_enabled_rules(patterns: List[str], language: str) -> List[Rule]:
    return default_registry.get_enabled_rules(patterns, language)
