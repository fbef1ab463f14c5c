"""
JavaScript adapter: tree-sitter parsing and source file discovery.
"""
import importlib
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import tree_sitter

from .types import LanguageAdapter

logger = logging.getLogger(__name__)

# Vendored or generated trees that never hold first-party source
IGNORED_DIRS = frozenset({"node_modules", "bower_components", "dist", "build", "coverage"})


def load_parser(grammar_module: str, language_func: str) -> Optional[tree_sitter.Parser]:
    """Create a parser for a tree-sitter grammar package, or None if it is missing."""
    try:
        module = importlib.import_module(grammar_module)
    except ImportError as e:
        logger.warning(f"{grammar_module} is not installed; files needing it are skipped ({e})")
        return None

    parser = tree_sitter.Parser()
    parser.language = tree_sitter.Language(getattr(module, language_func)())
    logger.debug(f"Loaded grammar {grammar_module}.{language_func}")
    return parser


class JavaScriptAdapter(LanguageAdapter):
    """Parses .js/.jsx/.mjs/.cjs files."""

    # Grammar per extension; None is the fallback
    grammars: Dict[Optional[str], Tuple[str, str]] = {None: ("tree_sitter_javascript", "language")}

    def __init__(self):
        self._parsers: Dict[Tuple[str, str], Optional[tree_sitter.Parser]] = {}

    @property
    def language_id(self) -> str:
        return "javascript"

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        return (".js", ".jsx", ".mjs", ".cjs")

    def _parser_for(self, file_path: Optional[str]):
        ext = os.path.splitext(file_path)[1].lower() if file_path else None
        grammar = self.grammars.get(ext, self.grammars[None])
        if grammar not in self._parsers:
            self._parsers[grammar] = load_parser(*grammar)
        return self._parsers[grammar]

    def parse(self, text: str, file_path: Optional[str] = None) -> Any:
        parser = self._parser_for(file_path)
        if parser is None:
            return None
        source = text if isinstance(text, bytes) else text.encode("utf-8")
        return parser.parse(source)

    def list_files(self, paths: List[str]) -> List[str]:
        """Source files under ``paths``, skipping hidden and vendored directories."""
        found = []
        for path in paths:
            if os.path.isfile(path):
                if path.lower().endswith(self.file_extensions):
                    found.append(path)
                continue
            if not os.path.isdir(path):
                logger.warning(f"Path '{path}' does not exist")
                continue
            for root, dirs, files in os.walk(path):
                dirs[:] = sorted(d for d in dirs if not d.startswith(".") and d not in IGNORED_DIRS)
                found.extend(os.path.join(root, name) for name in sorted(files)
                             if name.lower().endswith(self.file_extensions))
        return found


default_javascript_adapter = JavaScriptAdapter()
