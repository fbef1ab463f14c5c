"""
ESTree view over a tree-sitter parse.

Rules written against ESTree shapes (Identifier, Literal, MemberExpression,
...) work on this view instead of raw tree-sitter nodes. The view is built
once per file and is read-only afterwards:

- ``parenthesized_expression`` is transparent. The wrapped expression takes
  its place in the tree and the parentheses survive only as tokens.
- ``&&``, ``||`` and ``??`` become LogicalExpression, every other binary
  operator becomes BinaryExpression.
- Anything the rules do not need to look inside becomes an OpaqueNode that
  keeps its tree-sitter type name and its children.

``SourceCode`` bundles the program with its token stream and answers
ancestor and adjacent-token queries.
"""

import bisect
import logging
import math
import re
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, ClassVar, Iterator, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})

IDENTIFIER_TYPES = frozenset({
    "identifier", "property_identifier", "shorthand_property_identifier",
    "shorthand_property_identifier_pattern", "statement_identifier", "undefined",
})

# Leaves whose inner pieces are not tokens of their own
ATOMIC_TOKEN_TYPES = frozenset({"string", "regex"})
SKIPPED_TOKEN_TYPES = frozenset({"comment", "html_comment"})


# ---------------------------------------------------------------------------
# JavaScript literal values
# ---------------------------------------------------------------------------

class JSBigInt(int):
    """Value of a BigInt literal such as ``10n``."""

    def __repr__(self):
        return f"{int(self)}n"


class RegExpValue:
    """Value of a regular expression literal.

    Every regex literal evaluates to a fresh object, so two of them are
    never the same value.
    """

    __slots__ = ("pattern", "flags")

    def __init__(self, pattern: str, flags: str = ""):
        self.pattern = pattern
        self.flags = flags

    def __str__(self):
        return f"/{self.pattern}/{self.flags}"

    def __repr__(self):
        return f"RegExpValue({self.pattern!r}, {self.flags!r})"


def is_number(value: Any) -> bool:
    """True for JS number values (not booleans, not BigInts)."""
    return (isinstance(value, (int, float))
            and not isinstance(value, (bool, JSBigInt)))


def format_number(value: Any) -> str:
    """Render a number the way JavaScript's String(number) does for common values."""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")
_OCT_DIGITS = re.compile(r"[0-7]+")
_BIN_DIGITS = re.compile(r"[01]+")
_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_number(raw: str) -> Any:
    """Parse a JS numeric literal into an int, float or JSBigInt."""
    text = raw.replace("_", "")
    bigint = text.endswith("n")
    if bigint:
        text = text[:-1]

    lower = text.lower()
    prefixed = {"0x": (16, _HEX_DIGITS), "0o": (8, _OCT_DIGITS), "0b": (2, _BIN_DIGITS)}
    if lower[:2] in prefixed:
        base, digits = prefixed[lower[:2]]
        if not digits.fullmatch(text[2:]):
            return math.nan
        value = int(text[2:], base)
    elif len(text) > 1 and text[0] == "0" and text.isdigit():
        # Legacy octal unless an 8 or 9 makes it decimal
        value = int(text, 8) if _OCT_DIGITS.fullmatch(text) else int(text, 10)
    elif _DECIMAL.fullmatch(text):
        if "." in text or "e" in lower:
            value = float(text)
        else:
            value = int(text)
    else:
        return math.nan

    return JSBigInt(value) if bigint else value


_ESCAPE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-7]{1,3}|\r\n|[\s\S])")
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}
_LINE_CONTINUATIONS = frozenset({"\n", "\r", "\r\n", "\u2028", "\u2029"})


def _decode_escape(match) -> str:
    seq = match.group(1)
    if seq.startswith("u{"):
        code = int(seq[2:-1], 16)
        return chr(code) if code <= 0x10FFFF else "\ufffd"
    if len(seq) == 5 and seq[0] == "u":
        return chr(int(seq[1:], 16))
    if len(seq) == 3 and seq[0] == "x":
        return chr(int(seq[1:], 16))
    if seq[0] in "01234567":
        return chr(int(seq, 8))
    if seq in _LINE_CONTINUATIONS:
        return ""
    return _SIMPLE_ESCAPES.get(seq, seq)


def parse_string(raw: str) -> str:
    """Decode a quoted JS string literal."""
    body = raw[1:-1] if len(raw) >= 2 else ""
    return _ESCAPE.sub(_decode_escape, body)


def parse_regex(raw: str) -> RegExpValue:
    """Split ``/pattern/flags`` into a RegExpValue."""
    end = raw.rfind("/")
    if end <= 0:
        return RegExpValue(raw)
    return RegExpValue(raw[1:end], raw[end + 1:])


def strict_equals(a: Any, b: Any) -> bool:
    """JavaScript ``a === b`` on literal values."""
    if isinstance(a, RegExpValue) or isinstance(b, RegExpValue):
        return a is b
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if a is None or b is None:
        return a is b
    if isinstance(a, str) or isinstance(b, str):
        return isinstance(a, str) and isinstance(b, str) and a == b
    if isinstance(a, JSBigInt) != isinstance(b, JSBigInt):
        return False
    return a == b


def _utf16(text: str) -> bytes:
    return text.encode("utf-16-be", "surrogatepass")


def _string_to_number(text: str) -> Any:
    text = text.strip()
    if not text:
        return 0
    lower = text.lower()
    if lower in ("infinity", "+infinity"):
        return math.inf
    if lower == "-infinity":
        return -math.inf
    if lower[:2] in ("0x", "0o", "0b"):
        value = parse_number(text)
        return math.nan if isinstance(value, JSBigInt) else value
    if _DECIMAL.fullmatch(text):
        return float(text)
    return math.nan


def to_number(value: Any) -> Any:
    """JavaScript ToNumber for literal values."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return _string_to_number(value)
    return math.nan


def _to_primitive(value: Any) -> Any:
    if isinstance(value, RegExpValue):
        return str(value)
    return value


def loose_less_equal(a: Any, b: Any) -> bool:
    """JavaScript ``a <= b`` on literal values. Never raises."""
    a, b = _to_primitive(a), _to_primitive(b)
    if isinstance(a, str) and isinstance(b, str):
        return _utf16(a) <= _utf16(b)

    x, y = to_number(a), to_number(b)
    if (isinstance(x, float) and math.isnan(x)) or (isinstance(y, float) and math.isnan(y)):
        return False
    return x <= y


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Node:
    """Base for ESTree-shaped nodes. Positions and parent are set by the builder."""
    type: ClassVar[str] = "Node"
    start_byte: int = field(default=0, init=False)
    end_byte: int = field(default=0, init=False)
    parent: Optional["Node"] = field(default=None, init=False, repr=False)

    @property
    def children(self) -> List["Node"]:
        return []


@dataclass(eq=False)
class Identifier(Node):
    type: ClassVar[str] = "Identifier"
    name: str = ""


@dataclass(eq=False)
class Literal(Node):
    type: ClassVar[str] = "Literal"
    value: Any = None
    raw: str = ""


@dataclass(eq=False)
class UnaryExpression(Node):
    type: ClassVar[str] = "UnaryExpression"
    operator: str = ""
    prefix: bool = True
    argument: Optional[Node] = None

    @property
    def children(self) -> List[Node]:
        return [self.argument] if self.argument is not None else []


@dataclass(eq=False)
class MemberExpression(Node):
    type: ClassVar[str] = "MemberExpression"

    # Must precede the ``property`` field, which shadows the builtin below it
    @property
    def children(self) -> List[Node]:
        return [n for n in (self.object, self.property) if n is not None]

    object: Optional[Node] = None
    property: Optional[Node] = None
    computed: bool = False


@dataclass(eq=False)
class BinaryExpression(Node):
    type: ClassVar[str] = "BinaryExpression"
    operator: str = ""
    left: Optional[Node] = None
    right: Optional[Node] = None

    @property
    def children(self) -> List[Node]:
        return [n for n in (self.left, self.right) if n is not None]


@dataclass(eq=False)
class LogicalExpression(Node):
    type: ClassVar[str] = "LogicalExpression"
    operator: str = ""
    left: Optional[Node] = None
    right: Optional[Node] = None

    @property
    def children(self) -> List[Node]:
        return [n for n in (self.left, self.right) if n is not None]


@dataclass(eq=False)
class OpaqueNode(Node):
    """Any node shape the ESTree view does not model."""
    kind: str = ""
    nodes: List[Node] = field(default_factory=list)

    @property
    def children(self) -> List[Node]:
        return self.nodes


def node_type(node: Node) -> str:
    """ESTree type name, or the tree-sitter type for opaque nodes."""
    return node.kind if isinstance(node, OpaqueNode) else node.type


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Token:
    """A source token: tree-sitter leaf type, its text and byte span."""
    type: str
    value: str
    start_byte: int
    end_byte: int


def collect_tokens(root: Any, source: bytes) -> List[Token]:
    """Collect the token stream of a tree-sitter tree in source order."""
    tokens: List[Token] = []
    stack = [root]
    while stack:
        ts_node = stack.pop()
        if ts_node.type in SKIPPED_TOKEN_TYPES:
            continue
        if ts_node.child_count == 0 or ts_node.type in ATOMIC_TOKEN_TYPES:
            if ts_node.end_byte > ts_node.start_byte:
                value = source[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="replace")
                tokens.append(Token(ts_node.type, value, ts_node.start_byte, ts_node.end_byte))
            continue
        stack.extend(reversed(ts_node.children))
    return tokens


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class EstreeBuilder:
    """Convert a tree-sitter JavaScript/TypeScript tree into ESTree nodes.

    The tree is converted with an explicit work stack, so nesting depth is
    bounded by memory rather than the interpreter's recursion limit.
    """

    def __init__(self, source: bytes):
        self._source = source

    def _text(self, ts_node) -> str:
        return self._source[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="replace")

    @staticmethod
    def _named_children(ts_node) -> list:
        return [c for c in ts_node.named_children if c.type not in SKIPPED_TOKEN_TYPES]

    def _unwrap(self, ts_node):
        while ts_node.type == "parenthesized_expression":
            inner = self._named_children(ts_node)
            if not inner:
                break
            ts_node = inner[0]
        return ts_node

    def build(self, ts_node, parent: Optional[Node] = None) -> Node:
        """Convert ``ts_node`` and its subtree, linking parents."""
        built: List[Node] = []
        stack = [(ts_node, parent, built.append)]
        while stack:
            ts_node, parent, attach = stack.pop()
            ts_node = self._unwrap(ts_node)

            node, pending = self._convert(ts_node)
            node.start_byte = ts_node.start_byte
            node.end_byte = ts_node.end_byte
            node.parent = parent
            attach(node)

            # Reversed so children are converted, and appended, in source order
            for child, child_attach in reversed(pending):
                stack.append((child, node, child_attach))
        return built[0]

    def _convert(self, ts_node) -> Tuple[Node, List[Tuple[Any, Callable[[Node], None]]]]:
        """Create the node for ``ts_node`` and list the children still to convert."""
        kind = ts_node.type
        field_of = ts_node.child_by_field_name

        if kind in IDENTIFIER_TYPES:
            return Identifier(self._text(ts_node)), []

        if kind == "number":
            raw = self._text(ts_node)
            return Literal(parse_number(raw), raw), []
        if kind == "string":
            raw = self._text(ts_node)
            return Literal(parse_string(raw), raw), []
        if kind in ("true", "false"):
            return Literal(kind == "true", kind), []
        if kind == "null":
            return Literal(None, "null"), []
        if kind == "regex":
            raw = self._text(ts_node)
            return Literal(parse_regex(raw), raw), []

        if kind == "unary_expression":
            operator, argument = field_of("operator"), field_of("argument")
            if operator is not None and argument is not None:
                node = UnaryExpression(operator.type, True)
                return node, [(argument, partial(setattr, node, "argument"))]

        if kind in ("member_expression", "subscript_expression"):
            computed = kind == "subscript_expression"
            obj = field_of("object")
            prop = field_of("index" if computed else "property")
            if obj is not None and prop is not None:
                node = MemberExpression(computed=computed)
                return node, [(obj, partial(setattr, node, "object")),
                              (prop, partial(setattr, node, "property"))]

        if kind == "binary_expression":
            left, operator, right = field_of("left"), field_of("operator"), field_of("right")
            if left is not None and operator is not None and right is not None:
                cls = LogicalExpression if operator.type in LOGICAL_OPERATORS else BinaryExpression
                node = cls(operator.type)
                return node, [(left, partial(setattr, node, "left")),
                              (right, partial(setattr, node, "right"))]

        node = OpaqueNode(kind)
        return node, [(child, node.nodes.append) for child in self._named_children(ts_node)]


# ---------------------------------------------------------------------------
# SourceCode
# ---------------------------------------------------------------------------

class AncestorLookup(Protocol):
    """Read-only access to a node's syntactic parent."""

    def get_parent(self, node: Node) -> Optional[Node]:
        ...


class TokenLookup(Protocol):
    """Read-only access to the tokens adjacent to a node."""

    def get_token_before(self, node: Node) -> Optional[Token]:
        ...

    def get_token_after(self, node: Node) -> Optional[Token]:
        ...


class SourceCode:
    """A parsed file: ESTree program, token stream and lookup helpers."""

    def __init__(self, text: str, program: Node, tokens: List[Token]):
        self.text = text
        self.program = program
        self.tokens = tokens
        self._token_starts = [t.start_byte for t in tokens]
        self._token_ends = [t.end_byte for t in tokens]

    @classmethod
    def from_tree(cls, tree: Any, text: str) -> "SourceCode":
        """Build the view from a tree-sitter tree and the text it was parsed from."""
        source = text.encode("utf-8") if isinstance(text, str) else text
        root = tree.root_node if hasattr(tree, "root_node") else tree
        program = EstreeBuilder(source).build(root)
        tokens = collect_tokens(root, source)
        logger.debug("Built ESTree view with %d tokens", len(tokens))
        return cls(source.decode("utf-8", errors="replace"), program, tokens)

    # Ancestors

    def get_parent(self, node: Node) -> Optional[Node]:
        return node.parent

    # Tokens

    def get_token_before(self, node: Node) -> Optional[Token]:
        """The last token that ends at or before the start of ``node``."""
        index = bisect.bisect_right(self._token_ends, node.start_byte) - 1
        return self.tokens[index] if index >= 0 else None

    def get_token_after(self, node: Node) -> Optional[Token]:
        """The first token that starts at or after the end of ``node``."""
        index = bisect.bisect_left(self._token_starts, node.end_byte)
        return self.tokens[index] if index < len(self.tokens) else None

    # Traversal

    def iter_nodes(self, type_name: Optional[str] = None) -> Iterator[Node]:
        """Yield nodes in pre-order, optionally only those of one type."""
        stack = [self.program]
        while stack:
            node = stack.pop()
            if type_name is None or node_type(node) == type_name:
                yield node
            stack.extend(reversed(node.children))

