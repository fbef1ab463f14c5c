"""
comparelint rules package.

This package contains the rules that analyze code for issues. Rules are
discovered by ``engine.registry.discover_rules(["comparelint.rules"])``,
which imports every module here and registers the objects in its ``RULES``
list.

To add a new rule:
1. Create a Python file in this directory (e.g., my_rule.py)
2. Define a rule class with ``meta``, ``requires`` and ``visit(ctx)``
3. Export it in a module-level ``RULES`` list
"""
