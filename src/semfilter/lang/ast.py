"""Typed syntax tree of the rule language.

Every node is an immutable dataclass exposing ``kind``: the result kind of
the subexpression.  Trees are built once by the parser and shared by all
evaluations of a filter.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar


class Kind(enum.Enum):
    """Result kind of an expression."""

    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    ELEMENT = "element"  # variable references, only comparable by identity


class CompareOp(enum.Enum):
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    @property
    def is_equality(self) -> bool:
        return self in (CompareOp.EQ, CompareOp.NE)


class ArithOp(enum.Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"


class ListSource(enum.Enum):
    """Element lists relative to the currently bound element."""

    SELF = "self"
    PARENT = "parent"
    CHILDREN = "children"
    SIBLINGS = "siblings"
    ADJACENTS = "adjacents"


# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoolConst:
    value: bool

    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True)
class NumConst:
    value: float

    kind: ClassVar[Kind] = Kind.NUMERIC


@dataclass(frozen=True)
class TagRef:
    """``#name``: the tag is present (or the reserved tag is true)."""

    name: str

    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True)
class NumTagRef:
    """``$name``: the tag's number, the reserved value, or 0."""

    name: str

    kind: ClassVar[Kind] = Kind.NUMERIC


@dataclass(frozen=True)
class VarRef:
    """A bound variable, evaluating to a graph element."""

    name: str

    kind: ClassVar[Kind] = Kind.ELEMENT


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Not:
    operand: Rule

    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True)
class Negate:
    operand: Rule

    kind: ClassVar[Kind] = Kind.NUMERIC


@dataclass(frozen=True)
class And:
    operands: tuple[Rule, ...]

    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True)
class Or:
    operands: tuple[Rule, ...]

    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True)
class Compare:
    """Relational or equality comparison; ``=``/``!=`` accept any matching kind."""

    op: CompareOp
    left: Rule
    right: Rule

    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True)
class Arithmetic:
    op: ArithOp
    left: Rule
    right: Rule

    kind: ClassVar[Kind] = Kind.NUMERIC


# ---------------------------------------------------------------------------
# Lists, quantifiers, and scoping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ListRef:
    source: ListSource


@dataclass(frozen=True)
class Comprehension:
    """``[var:source|body]``: the elements of *source* for which *body* holds."""

    var: str
    source: ListExpr
    body: Rule


@dataclass(frozen=True)
class Exists:
    var: str
    source: ListExpr
    body: Rule

    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True)
class Forall:
    var: str
    source: ListExpr
    body: Rule

    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass(frozen=True)
class Scoped:
    """``var<body>``: evaluate *body* with *var* as the current element."""

    var: str
    body: Rule

    @property
    def kind(self) -> Kind:
        return self.body.kind


@dataclass(frozen=True)
class Count:
    """``$[...]``: number of elements in a list."""

    source: ListExpr

    kind: ClassVar[Kind] = Kind.NUMERIC


@dataclass(frozen=True)
class NonEmpty:
    """``#[...]``: the list has at least one element."""

    source: ListExpr

    kind: ClassVar[Kind] = Kind.BOOLEAN


ListExpr = ListRef | Comprehension

Rule = (
    BoolConst
    | NumConst
    | TagRef
    | NumTagRef
    | VarRef
    | Not
    | Negate
    | And
    | Or
    | Compare
    | Arithmetic
    | Exists
    | Forall
    | Scoped
    | Count
    | NonEmpty
)

# Every expression node type; the evaluator keeps a handler for each.
EXPRESSION_TYPES: tuple[type, ...] = (
    BoolConst,
    NumConst,
    TagRef,
    NumTagRef,
    VarRef,
    Not,
    Negate,
    And,
    Or,
    Compare,
    Arithmetic,
    Exists,
    Forall,
    Scoped,
    Count,
    NonEmpty,
)
LIST_TYPES: tuple[type, ...] = (ListRef, Comprehension)
