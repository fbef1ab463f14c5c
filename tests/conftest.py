"""Shared fixtures for comparelint tests."""

import pytest

from comparelint.engine.estree import SourceCode
from comparelint.engine.registry import get_adapter
from comparelint.engine.runner import setup_adapters


@pytest.fixture(scope="session", autouse=True)
def adapters():
    """Register the JavaScript and TypeScript adapters once per session."""
    setup_adapters()


@pytest.fixture
def parse_source():
    """Parse code with a registered adapter and return its ESTree view."""
    def _parse(code: str, language: str = "javascript", file_path: str = None) -> SourceCode:
        adapter = get_adapter(language)
        tree = adapter.parse(code, file_path=file_path)
        assert tree is not None, f"no {language} parser available"
        return SourceCode.from_tree(tree, code)
    return _parse
