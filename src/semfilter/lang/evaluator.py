"""Evaluate parsed rules against graph elements."""

from __future__ import annotations

import math
import operator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable

from semfilter.errors import UndefinedVariableError
from semfilter.graph.model import adjacent_elements
from semfilter.graph.reserved_tags import DEFAULT_REGISTRY
from semfilter.lang.ast import (
    And,
    ArithOp,
    Arithmetic,
    BoolConst,
    Compare,
    CompareOp,
    Comprehension,
    Count,
    Exists,
    Forall,
    ListRef,
    ListSource,
    Negate,
    NonEmpty,
    Not,
    NumConst,
    NumTagRef,
    Or,
    Scoped,
    TagRef,
    VarRef,
)
from semfilter.lang.parser import THIS

if TYPE_CHECKING:
    from collections.abc import Iterator

    from semfilter.graph.model import GraphElement
    from semfilter.graph.reserved_tags import ReservedTagRegistry
    from semfilter.lang.ast import ListExpr, Rule


class Scope:
    """Stack of ``(name, element)`` bindings; the innermost binding wins.

    The top of the stack is the *current* element: the one that tag
    references and structural lists are resolved against.
    """

    def __init__(self, name: str, element: GraphElement) -> None:
        self._stack: list[tuple[str, GraphElement]] = [(name, element)]

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def current(self) -> GraphElement:
        return self._stack[-1][1]

    @property
    def names(self) -> list[str]:
        """Bound names, innermost first, without duplicates."""
        result: list[str] = []
        for name, _ in reversed(self._stack):
            if name not in result:
                result.append(name)
        return result

    def lookup(self, name: str) -> GraphElement:
        for bound, element in reversed(self._stack):
            if bound == name:
                return element
        raise UndefinedVariableError(name, self.names)

    @contextmanager
    def bind(self, name: str, element: GraphElement) -> Iterator[GraphElement]:
        """Push a binding for the duration of the ``with`` block."""
        self._stack.append((name, element))
        try:
            yield element
        finally:
            self._stack.pop()


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------


def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _modulo(left: float, right: float) -> float:
    try:
        return math.fmod(left, right)
    except ValueError:
        # fmod refuses a zero divisor and an infinite dividend
        return math.nan


_ARITHMETIC: dict[ArithOp, Callable[[float, float], float]] = {
    ArithOp.ADD: operator.add,
    ArithOp.SUB: operator.sub,
    ArithOp.MUL: operator.mul,
    ArithOp.DIV: _divide,
    ArithOp.MOD: _modulo,
}

_COMPARISONS: dict[CompareOp, Callable[[Any, Any], bool]] = {
    CompareOp.LT: operator.lt,
    CompareOp.LE: operator.le,
    CompareOp.GT: operator.gt,
    CompareOp.GE: operator.ge,
}


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class Evaluator:
    """Tree-walking evaluator bound to a reserved tag registry.

    An evaluator holds no per-call state and may be shared between threads;
    every :meth:`evaluate` call works on its own :class:`Scope`.
    """

    def __init__(self, registry: ReservedTagRegistry = DEFAULT_REGISTRY) -> None:
        self.registry = registry
        self._handlers: dict[type, Callable[[Any, Scope], Any]] = {
            BoolConst: self._eval_const,
            NumConst: self._eval_const,
            TagRef: self._eval_tag,
            NumTagRef: self._eval_num_tag,
            VarRef: self._eval_var,
            Not: self._eval_not,
            Negate: self._eval_negate,
            And: self._eval_and,
            Or: self._eval_or,
            Compare: self._eval_compare,
            Arithmetic: self._eval_arithmetic,
            Exists: self._eval_exists,
            Forall: self._eval_forall,
            Scoped: self._eval_scoped,
            Count: self._eval_count,
            NonEmpty: self._eval_non_empty,
            ListRef: self._eval_list_ref,
            Comprehension: self._eval_comprehension,
        }

    @property
    def handled_types(self) -> frozenset[type]:
        return frozenset(self._handlers)

    def evaluate(self, rule: Rule, element: GraphElement) -> bool:
        """Evaluate a boolean *rule* with *element* bound as ``this``."""
        return bool(self.evaluate_in(rule, Scope(THIS, element)))

    def evaluate_numeric(self, rule: Rule, element: GraphElement) -> float:
        return float(self.evaluate_in(rule, Scope(THIS, element)))

    def evaluate_list(self, rule: ListExpr, element: GraphElement) -> list[GraphElement]:
        return self._eval_list(rule, Scope(THIS, element))

    def evaluate_in(self, rule: Rule | ListExpr, scope: Scope) -> Any:
        """Evaluate *rule* against an existing *scope*.

        Returns a ``bool``, a ``float``, a :class:`GraphElement` or a list of
        elements depending on the node.
        """
        handler = self._handlers.get(type(rule))
        if handler is None:
            msg = f"Cannot evaluate {type(rule).__name__}"
            raise TypeError(msg)
        return handler(rule, scope)

    # -- leaves ------------------------------------------------------------

    def _eval_const(self, rule: BoolConst | NumConst, scope: Scope) -> bool | float:
        return rule.value

    def _eval_tag(self, rule: TagRef, scope: Scope) -> bool:
        element = scope.current
        if element.has_tag(rule.name):
            return True
        reserved = self.registry.evaluate_boolean(rule.name, element)
        return bool(reserved) if reserved is not None else False

    def _eval_num_tag(self, rule: NumTagRef, scope: Scope) -> float:
        element = scope.current
        tag = element.find_tag(rule.name)
        if tag is not None:
            return tag.num
        reserved = self.registry.evaluate_numeric(rule.name, element)
        return reserved if reserved is not None else 0.0

    def _eval_var(self, rule: VarRef, scope: Scope) -> GraphElement:
        return scope.lookup(rule.name)

    # -- operators ---------------------------------------------------------

    def _eval_not(self, rule: Not, scope: Scope) -> bool:
        return not self.evaluate_in(rule.operand, scope)

    def _eval_negate(self, rule: Negate, scope: Scope) -> float:
        return -self.evaluate_in(rule.operand, scope)

    def _eval_and(self, rule: And, scope: Scope) -> bool:
        return all(self.evaluate_in(op, scope) for op in rule.operands)

    def _eval_or(self, rule: Or, scope: Scope) -> bool:
        return any(self.evaluate_in(op, scope) for op in rule.operands)

    def _eval_compare(self, rule: Compare, scope: Scope) -> bool:
        left = self.evaluate_in(rule.left, scope)
        right = self.evaluate_in(rule.right, scope)
        if rule.op is CompareOp.EQ:
            return _same(left, right)
        if rule.op is CompareOp.NE:
            return not _same(left, right)
        return _COMPARISONS[rule.op](left, right)

    def _eval_arithmetic(self, rule: Arithmetic, scope: Scope) -> float:
        left = self.evaluate_in(rule.left, scope)
        right = self.evaluate_in(rule.right, scope)
        return _ARITHMETIC[rule.op](left, right)

    # -- quantifiers and scoping -------------------------------------------

    def _eval_exists(self, rule: Exists, scope: Scope) -> bool:
        for candidate in self._eval_list(rule.source, scope):
            with scope.bind(rule.var, candidate):
                if self.evaluate_in(rule.body, scope):
                    return True
        return False

    def _eval_forall(self, rule: Forall, scope: Scope) -> bool:
        for candidate in self._eval_list(rule.source, scope):
            with scope.bind(rule.var, candidate):
                if not self.evaluate_in(rule.body, scope):
                    return False
        return True

    def _eval_scoped(self, rule: Scoped, scope: Scope) -> bool | float:
        element = scope.lookup(rule.var)
        with scope.bind(rule.var, element):
            return self.evaluate_in(rule.body, scope)

    def _eval_count(self, rule: Count, scope: Scope) -> float:
        return float(len(self._eval_list(rule.source, scope)))

    def _eval_non_empty(self, rule: NonEmpty, scope: Scope) -> bool:
        return len(self._eval_list(rule.source, scope)) > 0

    # -- lists -------------------------------------------------------------

    def _eval_list(self, rule: ListExpr, scope: Scope) -> list[GraphElement]:
        return self.evaluate_in(rule, scope)  # type: ignore[no-any-return]

    def _eval_list_ref(self, rule: ListRef, scope: Scope) -> list[GraphElement]:
        return structural_list(rule.source, scope.current)

    def _eval_comprehension(self, rule: Comprehension, scope: Scope) -> list[GraphElement]:
        kept: list[GraphElement] = []
        for candidate in self._eval_list(rule.source, scope):
            with scope.bind(rule.var, candidate):
                if self.evaluate_in(rule.body, scope):
                    kept.append(candidate)
        return kept


def _same(left: Any, right: Any) -> bool:
    if isinstance(left, (bool, float, int)):
        return bool(left == right)
    # Elements compare by identity.
    return left is right


def structural_list(source: ListSource, element: GraphElement) -> list[GraphElement]:
    """Elements reachable from *element* through *source*.

    ``children``, ``siblings`` and ``adjacents`` only contain elements that
    carry a tag collection.
    """
    if source is ListSource.SELF:
        return [element]
    if source is ListSource.PARENT:
        return [element.parent] if element.parent is not None else []
    if source is ListSource.CHILDREN:
        return [c for c in element.children if c.is_taggable]
    if source is ListSource.SIBLINGS:
        if element.parent is None:
            return []
        return [c for c in element.parent.children if c is not element and c.is_taggable]
    if source is ListSource.ADJACENTS:
        return [a for a in adjacent_elements(element) if a.is_taggable]
    msg = f"Unknown list source: {source!r}"
    raise ValueError(msg)
