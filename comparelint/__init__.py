"""comparelint: tree-sitter based lint checks for JavaScript and TypeScript."""

__version__ = "0.1.0"
