"""Rule: style.yoda

Requires or disallows "Yoda" comparisons, where the literal is written
before the value it is compared against.

With the default "never" style the literal belongs on the right:

    if (color === "blue") { ... }   // ok
    if ("blue" === color) { ... }   // flagged

With "always" the literal belongs on the left. Negative numbers such as
``-1`` count as literals.

The ``exceptRange`` option exempts parenthesized range tests, which need a
literal on each side to read naturally:

    if (0 <= x && x < 10) { ... }   // "between" test
    if (x < 0 || 10 <= x) { ... }   // "outside" test

Both operators must be ``<`` or ``<=``, both clauses must test the same
value, and the lower bound must not exceed the upper bound.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional

from ..engine.types import Finding, RuleMeta, Requires, RuleContext
from ..engine.estree import (
    AncestorLookup, BinaryExpression, Identifier, Literal, LogicalExpression,
    MemberExpression, Node, TokenLookup, UnaryExpression,
    format_number, is_number, loose_less_equal, strict_equals,
)

COMPARISON_OPERATORS = frozenset({"==", "===", "!=", "!==", "<", ">", "<=", ">="})
RANGE_TEST_OPERATORS = frozenset({"<", "<="})


class YodaStyle(str, Enum):
    """Which side of a comparison the literal must be on."""
    LITERAL_FIRST = "always"
    LITERAL_LAST = "never"


@dataclass(frozen=True)
class YodaOptions:
    style: YodaStyle = YodaStyle.LITERAL_LAST
    except_range: bool = False

    @classmethod
    def from_options(cls, options: Any) -> "YodaOptions":
        """Read the positional options ``[style, {"exceptRange": bool}]``.

        A bare style string is accepted too. Anything other than "always"
        selects the default "never" style.
        """
        if isinstance(options, str):
            options = [options]
        elif not isinstance(options, (list, tuple)):
            options = []

        style = YodaStyle.LITERAL_FIRST if options and options[0] == "always" else YodaStyle.LITERAL_LAST
        extra = options[1] if len(options) > 1 and isinstance(options[1], dict) else {}
        return cls(style, bool(extra.get("exceptRange", False)))

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "YodaOptions":
        return cls.from_options((config or {}).get("options"))


@dataclass(frozen=True)
class Violation:
    """A comparison whose literal is on the wrong side."""
    node: BinaryExpression
    operator: str
    expected_side: str

    @property
    def message(self) -> str:
        return f"Expected literal to be on the {self.expected_side} side of {self.operator}."


def literal_like(node: Optional[Node]) -> Optional[Literal]:
    """Return ``node`` as a literal if it is one or reads like one.

    A negated number literal such as ``-1`` yields a new Literal holding
    the negative value. Every other shape yields None.
    """
    if isinstance(node, Literal):
        return node

    if (isinstance(node, UnaryExpression)
            and node.operator == "-"
            and node.prefix
            and isinstance(node.argument, Literal)
            and is_number(node.argument.value)):
        value = node.argument.value
        return Literal(-value, "-" + format_number(value))

    return None


def same_value(a: Optional[Node], b: Optional[Node]) -> bool:
    """Check whether two expressions reference the same value. For example:

        a = a
        a.b = a.b
        a[0] = a[0]
        a['b'] = a['b']

    Anything other than identifiers, literals and member access chains is
    never considered the same.
    """
    pending = [(a, b)]
    while pending:
        a, b = pending.pop()
        if a is None or b is None or type(a) is not type(b):
            return False
        if isinstance(a, MemberExpression):
            pending.append((a.object, b.object))
            pending.append((a.property, b.property))
        elif isinstance(a, Identifier):
            if a.name != b.name:
                return False
        elif isinstance(a, Literal):
            if not strict_equals(a.value, b.value):
                return False
        else:
            return False
    return True


def _is_between_test(node: LogicalExpression) -> bool:
    """``0 <= x && x < 1``"""
    if node.operator != "&&":
        return False
    low = literal_like(node.left.left)
    high = literal_like(node.right.right)
    return (low is not None and high is not None
            and loose_less_equal(low.value, high.value)
            and same_value(node.left.right, node.right.left))


def _is_outside_test(node: LogicalExpression) -> bool:
    """``x < 0 || 1 <= x``"""
    if node.operator != "||":
        return False
    low = literal_like(node.left.right)
    high = literal_like(node.right.left)
    return (low is not None and high is not None
            and loose_less_equal(low.value, high.value)
            and same_value(node.left.left, node.right.right))


def _is_paren_wrapped(node: Node, tokens: TokenLookup) -> bool:
    before = tokens.get_token_before(node)
    if before is None or before.value != "(":
        return False
    after = tokens.get_token_after(node)
    return after is not None and after.value == ")"


def is_range_test(node: Optional[Node], tokens: TokenLookup) -> bool:
    """Determine whether ``node`` is a parenthesized range test.

    A range test is a "between" test like ``(0 <= x && x < 1)`` or an
    "outside" test like ``(x < 0 || 1 <= x)``. Both operators must be
    ``<`` or ``<=`` and the lower literal must not exceed the upper one.
    """
    if not isinstance(node, LogicalExpression):
        return False

    left, right = node.left, node.right
    if not (isinstance(left, BinaryExpression) and isinstance(right, BinaryExpression)):
        return False
    if left.operator not in RANGE_TEST_OPERATORS or right.operator not in RANGE_TEST_OPERATORS:
        return False

    return (_is_between_test(node) or _is_outside_test(node)) and _is_paren_wrapped(node, tokens)


def check_comparison(node: BinaryExpression, options: YodaOptions,
                     ancestors: AncestorLookup, tokens: TokenLookup) -> Optional[Violation]:
    """Return the violation for one comparison node, or None if it is fine."""
    if options.style is YodaStyle.LITERAL_FIRST:
        literal_side, expected_side = node.right, "left"
    else:
        literal_side, expected_side = node.left, "right"

    if literal_like(literal_side) is None or node.operator not in COMPARISON_OPERATORS:
        return None

    if options.except_range and is_range_test(ancestors.get_parent(node), tokens):
        return None

    return Violation(node, node.operator, expected_side)


class StyleYodaRule:
    """Require or disallow literals on the left side of comparisons."""

    meta = RuleMeta(
        id="style.yoda",
        category="style",
        tier=0,
        priority="P2",
        autofix_safety="suggest-only",
        description="Require or disallow Yoda conditions (literal before the compared value)",
        langs=["javascript", "typescript"]
    )

    requires = Requires(syntax=True)

    def visit(self, ctx: RuleContext) -> Iterator[Finding]:
        source = ctx.source_code
        if source is None:
            return

        options = YodaOptions.from_config(ctx.config)

        for node in source.iter_nodes("BinaryExpression"):
            violation = check_comparison(node, options, source, source)
            if violation is None:
                continue

            yield Finding(
                rule=self.meta.id,
                message=violation.message,
                file=ctx.file_path,
                start_byte=node.start_byte,
                end_byte=node.end_byte,
                severity="warn",
                meta={
                    "operator": violation.operator,
                    "expected_side": violation.expected_side,
                    "style": options.style.value,
                }
            )


# Export rule for auto-discovery
RULES = [StyleYodaRule()]
