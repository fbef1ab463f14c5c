"""
Shared types for comparelint.

Rules receive a ``RuleContext`` for each parsed file and yield ``Finding``
records. Language adapters turn JavaScript or TypeScript text into a
tree-sitter tree.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Literal, Optional, Protocol, Tuple

Severity = Literal["info", "warn", "error"]


@dataclass(frozen=True)
class Finding:
    """One rule violation, anchored to a byte span of the file."""
    rule: str
    message: str
    file: str
    start_byte: int
    end_byte: int
    severity: Severity
    meta: Optional[Dict[str, Any]] = None

    def with_severity(self, severity: Severity) -> "Finding":
        return replace(self, severity=severity)


@dataclass(frozen=True)
class RuleMeta:
    """Static description of a rule.

    ``tier`` 0 means the rule needs nothing beyond a single file's syntax
    tree. ``autofix_safety`` is informational: comparelint never rewrites
    source.
    """
    id: str
    category: str
    tier: int
    priority: str
    autofix_safety: str
    description: str = ""
    langs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Requires:
    """What a rule needs from the host. Syntax rules are skipped when no parser is available."""
    syntax: bool = True


@dataclass
class RuleContext:
    """Everything a rule sees for one file."""
    file_path: str
    text: str
    tree: Any
    config: Dict[str, Any]
    _source_code: Any = field(default=None, repr=False)

    @property
    def source_code(self):
        """ESTree view of ``tree``, built on first access and shared by rules."""
        if self._source_code is None and self.tree is not None:
            from .estree import SourceCode
            self._source_code = SourceCode.from_tree(self.tree, self.text)
        return self._source_code

    def for_rule(self, config: Dict[str, Any]) -> "RuleContext":
        """A context with another rule's config over the same parsed file."""
        return RuleContext(self.file_path, self.text, self.tree, config, self._source_code)


class Rule(Protocol):
    """A rule is a stateless object with metadata and a ``visit`` generator."""
    meta: RuleMeta
    requires: Requires

    def visit(self, ctx: RuleContext) -> Iterable[Finding]:
        ...


class LanguageAdapter(ABC):
    """Parses one language family with tree-sitter and finds its source files."""

    @property
    @abstractmethod
    def language_id(self) -> str:
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> Tuple[str, ...]:
        pass

    @abstractmethod
    def parse(self, text: str, file_path: Optional[str] = None) -> Any:
        """Return a tree-sitter tree, or None when the grammar is not installed."""
        pass

    @abstractmethod
    def list_files(self, paths: List[str]) -> List[str]:
        pass
