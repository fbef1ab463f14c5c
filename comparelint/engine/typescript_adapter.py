"""
TypeScript adapter.

The TypeScript grammars reuse the JavaScript expression node names, so the
ESTree view and the rules work on both without changes. ``.tsx`` files need
the TSX grammar because of JSX syntax.
"""
from typing import Tuple

from .javascript_adapter import JavaScriptAdapter


class TypeScriptAdapter(JavaScriptAdapter):
    """Parses .ts/.tsx/.mts/.cts files."""

    grammars = {
        None: ("tree_sitter_typescript", "language_typescript"),
        ".tsx": ("tree_sitter_typescript", "language_tsx"),
    }

    @property
    def language_id(self) -> str:
        return "typescript"

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        return (".ts", ".tsx", ".mts", ".cts")


default_typescript_adapter = TypeScriptAdapter()
