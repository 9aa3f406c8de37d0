"""Recursive-descent parser for the rule language.

Grammar, loosest binding first::

    rule          → expr EOF
    expr          → and ('||' and)*
    and           → eq ('&&' eq)*
    eq            → rel (('=' | '!=') rel)*
    rel           → add (('>=' | '>' | '<=' | '<') add)*
    add           → mul (('+' | '-') mul)*
    mul           → unary (('*' | '/' | '%') unary)*
    unary         → '!' unary | '-' unary | primary
    primary       → NUMBER | 'true' | 'false'
                  | '#' NAME | '#' comprehension
                  | '$' NAME | '$' comprehension
                  | ('exists' | 'forall') '[' NAME ':' list '|' expr ']'
                  | NAME '<' expr '>'
                  | NAME
                  | '(' expr ')'
    list          → 'self' | 'parent' | 'children' | 'siblings' | 'adjacents'
                  | comprehension
    comprehension → '[' NAME ':' list '|' expr ']'

Every subexpression gets a :class:`Kind` while it is parsed, so kind errors
and unbound variables are reported when the rule is built, never while it
is evaluated.
"""

from __future__ import annotations

import functools
import math
from typing import TYPE_CHECKING

from semfilter.errors import FilterSyntaxError, FilterTypeError, UndefinedVariableError
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
    Kind,
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
from semfilter.lang.lexer import KEYWORDS, Token, TokenType, tokenize

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from semfilter.lang.ast import ListExpr, Rule

# Name of the implicit binding for the element a filter is applied to.
THIS = "this"

_COMPARE_OPS: dict[TokenType, CompareOp] = {
    TokenType.EQ: CompareOp.EQ,
    TokenType.NEQ: CompareOp.NE,
    TokenType.LT: CompareOp.LT,
    TokenType.LEQ: CompareOp.LE,
    TokenType.GT: CompareOp.GT,
    TokenType.GEQ: CompareOp.GE,
}
_ARITH_OPS: dict[TokenType, ArithOp] = {
    TokenType.ADD: ArithOp.ADD,
    TokenType.SUB: ArithOp.SUB,
    TokenType.MULT: ArithOp.MUL,
    TokenType.DIV: ArithOp.DIV,
    TokenType.MOD: ArithOp.MOD,
}
_LIST_SOURCES: dict[TokenType, ListSource] = {
    TokenType.SELF: ListSource.SELF,
    TokenType.PARENT: ListSource.PARENT,
    TokenType.CHILDREN: ListSource.CHILDREN,
    TokenType.SIBLINGS: ListSource.SIBLINGS,
    TokenType.ADJACENTS: ListSource.ADJACENTS,
}
_KEYWORD_TYPES = frozenset(KEYWORDS.values())


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = tokenize(text)
        self._pos = 0
        # Variables visible at the current position, innermost last.
        self._bound: list[str] = [THIS]
        # True while parsing the body of ``var<...>``: a bare '>' closes it.
        self._gt_closes_scope = False

    # -- token helpers -----------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        idx = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[idx]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.type is not TokenType.EOF:
            self._pos += 1
        return tok

    def _at(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _expect(self, token_type: TokenType, what: str | None = None) -> Token:
        tok = self._peek()
        if tok.type is not token_type:
            expected = what or f"'{token_type.value}'"
            raise self._syntax_error(f"Expected {expected}, got {_describe(tok)}", tok)
        return self._advance()

    def _syntax_error(self, message: str, tok: Token) -> FilterSyntaxError:
        return FilterSyntaxError(message, self._text, tok.pos)

    def _type_error(self, message: str, tok: Token) -> FilterTypeError:
        return FilterTypeError(message, self._text, tok.pos)

    def _require(self, node: Rule, kind: Kind, context: str, tok: Token) -> None:
        if node.kind is not kind:
            msg = f"{context} expects a {kind.value} operand, got {node.kind.value}"
            raise self._type_error(msg, tok)

    # -- entry point -------------------------------------------------------

    def parse(self) -> Rule:
        if self._at(TokenType.EOF):
            raise self._syntax_error("Empty rule", self._peek())
        start = self._peek()
        rule = self._parse_or()
        if not self._at(TokenType.EOF):
            tok = self._peek()
            if tok.type is TokenType.RPAREN:
                raise self._syntax_error("Mismatched parentheses", tok)
            raise self._syntax_error(f"Unexpected {_describe(tok)} after rule", tok)
        self._require(rule, Kind.BOOLEAN, "A filter rule", start)
        return rule

    # -- binary levels -----------------------------------------------------

    def _parse_or(self) -> Rule:
        operands = [self._parse_and()]
        while self._at(TokenType.OR):
            op = self._advance()
            operands.append(self._parse_and())
            for operand in operands[-2:]:
                self._require(operand, Kind.BOOLEAN, "Operator '||'", op)
        return operands[0] if len(operands) == 1 else Or(tuple(operands))

    def _parse_and(self) -> Rule:
        operands = [self._parse_eq()]
        while self._at(TokenType.AND):
            op = self._advance()
            operands.append(self._parse_eq())
            for operand in operands[-2:]:
                self._require(operand, Kind.BOOLEAN, "Operator '&&'", op)
        return operands[0] if len(operands) == 1 else And(tuple(operands))

    def _parse_eq(self) -> Rule:
        left = self._parse_rel()
        while self._at(TokenType.EQ, TokenType.NEQ):
            op = self._advance()
            right = self._parse_rel()
            if left.kind is not right.kind:
                msg = (
                    f"Operator '{op.text}' cannot compare {left.kind.value} "
                    f"with {right.kind.value}"
                )
                raise self._type_error(msg, op)
            left = Compare(_COMPARE_OPS[op.type], left, right)
        return left

    def _at_relational(self) -> bool:
        if self._at(TokenType.GT):
            return not self._gt_closes_scope
        return self._at(TokenType.GEQ, TokenType.LEQ, TokenType.LT)

    def _parse_rel(self) -> Rule:
        left = self._parse_add()
        while self._at_relational():
            op = self._advance()
            right = self._parse_add()
            context = f"Operator '{op.text}'"
            self._require(left, Kind.NUMERIC, context, op)
            self._require(right, Kind.NUMERIC, context, op)
            left = Compare(_COMPARE_OPS[op.type], left, right)
        return left

    def _parse_add(self) -> Rule:
        return self._parse_arithmetic(self._parse_mul, (TokenType.ADD, TokenType.SUB))

    def _parse_mul(self) -> Rule:
        return self._parse_arithmetic(
            self._parse_unary, (TokenType.MULT, TokenType.DIV, TokenType.MOD)
        )

    def _parse_arithmetic(
        self, operand: Callable[[], Rule], operators: tuple[TokenType, ...]
    ) -> Rule:
        left = operand()
        while self._at(*operators):
            op = self._advance()
            right = operand()
            context = f"Operator '{op.text}'"
            self._require(left, Kind.NUMERIC, context, op)
            self._require(right, Kind.NUMERIC, context, op)
            left = Arithmetic(_ARITH_OPS[op.type], left, right)
        return left

    # -- unary and atoms ---------------------------------------------------

    def _parse_unary(self) -> Rule:
        if self._at(TokenType.NOT):
            op = self._advance()
            operand = self._parse_unary()
            self._require(operand, Kind.BOOLEAN, "Operator '!'", op)
            return Not(operand)
        if self._at(TokenType.SUB):
            op = self._advance()
            operand = self._parse_unary()
            self._require(operand, Kind.NUMERIC, "Unary '-'", op)
            return Negate(operand)
        return self._parse_primary()

    def _parse_primary(self) -> Rule:
        tok = self._peek()
        tt = tok.type

        if tt is TokenType.NUMBER:
            self._advance()
            return NumConst(float(tok.text))
        if tt is TokenType.TRUE:
            self._advance()
            return BoolConst(True)
        if tt is TokenType.FALSE:
            self._advance()
            return BoolConst(False)
        if tt is TokenType.HASH:
            self._advance()
            if self._at(TokenType.LBRACKET):
                return NonEmpty(self._parse_comprehension())
            return TagRef(self._parse_tag_name(tok))
        if tt is TokenType.DOLLAR:
            self._advance()
            if self._at(TokenType.LBRACKET):
                return Count(self._parse_comprehension())
            return NumTagRef(self._parse_tag_name(tok))
        if tt in (TokenType.EXISTS, TokenType.FORALL):
            self._advance()
            self._expect(TokenType.LBRACKET)
            var, source, body = self._parse_binding()
            self._expect(TokenType.RBRACKET)
            if tt is TokenType.EXISTS:
                return Exists(var, source, body)
            return Forall(var, source, body)
        if tt is TokenType.NAME:
            if self._peek(1).type is TokenType.LT:
                return self._parse_scoped()
            self._advance()
            self._check_bound(tok)
            return VarRef(tok.text)
        if tt is TokenType.LPAREN:
            self._advance()
            saved, self._gt_closes_scope = self._gt_closes_scope, False
            inner = self._parse_or()
            self._gt_closes_scope = saved
            if not self._at(TokenType.RPAREN):
                raise self._syntax_error("Mismatched parentheses", tok)
            self._advance()
            return inner
        if tt in _LIST_SOURCES:
            msg = (
                f"List '{tok.text}' cannot be used as a value, "
                f"use a quantifier or #[x:{tok.text}|...] / $[x:{tok.text}|...]"
            )
            raise self._syntax_error(msg, tok)
        if tt is TokenType.EOF:
            raise self._syntax_error("Unexpected end of rule, expected an operand", tok)
        raise self._syntax_error(f"Unexpected {_describe(tok)}", tok)

    def _parse_tag_name(self, marker: Token) -> str:
        tok = self._peek()
        # '# children' with a space still names the tag 'children'.
        if tok.type is TokenType.NAME or tok.type in _KEYWORD_TYPES:
            self._advance()
            return tok.text
        msg = f"Expected a tag name or '[' after '{marker.text}', got {_describe(tok)}"
        raise self._syntax_error(msg, tok)

    def _parse_scoped(self) -> Rule:
        name = self._advance()
        self._check_bound(name)
        self._advance()  # '<'
        saved, self._gt_closes_scope = self._gt_closes_scope, True
        body = self._parse_or()
        self._gt_closes_scope = saved
        if body.kind is Kind.ELEMENT:
            msg = f"Scoped expression '{name.text}<...>' must be boolean or numeric"
            raise self._type_error(msg, name)
        self._expect(TokenType.GT, f"'>' closing '{name.text}<'")
        return Scoped(name.text, body)

    def _check_bound(self, tok: Token) -> None:
        if tok.text not in self._bound:
            raise UndefinedVariableError(tok.text, _unique(reversed(self._bound)))

    # -- lists -------------------------------------------------------------

    def _parse_list(self) -> ListExpr:
        tok = self._peek()
        if tok.type in _LIST_SOURCES:
            self._advance()
            return ListRef(_LIST_SOURCES[tok.type])
        if tok.type is TokenType.LBRACKET:
            return self._parse_comprehension()
        names = ", ".join(source.value for source in ListSource)
        raise self._syntax_error(f"Expected a list ({names} or [...]), got {_describe(tok)}", tok)

    def _parse_comprehension(self) -> Comprehension:
        self._expect(TokenType.LBRACKET)
        var, source, body = self._parse_binding()
        self._expect(TokenType.RBRACKET)
        return Comprehension(var, source, body)

    def _parse_binding(self) -> tuple[str, ListExpr, Rule]:
        """``NAME ':' list '|' expr`` shared by quantifiers and comprehensions."""
        tok = self._peek()
        if tok.type in _KEYWORD_TYPES:
            msg = f"'{tok.text}' is a keyword and cannot be used as a variable name"
            raise self._syntax_error(msg, tok)
        var = self._expect(TokenType.NAME, "a variable name").text
        self._expect(TokenType.COLON)
        # The source list is evaluated in the enclosing scope.
        source = self._parse_list()
        pipe = self._expect(TokenType.PIPE)

        self._bound.append(var)
        saved, self._gt_closes_scope = self._gt_closes_scope, False
        try:
            body = self._parse_or()
        finally:
            self._gt_closes_scope = saved
            self._bound.pop()
        self._require(body, Kind.BOOLEAN, f"The body of '[{var}:...]'", pipe)
        return var, source, body


def _describe(tok: Token) -> str:
    if tok.type is TokenType.EOF:
        return "end of rule"
    return f"'{tok.text}'"


def _unique(names: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return seen


@functools.lru_cache(maxsize=256)
def parse_rule(text: str) -> Rule:
    """Parse *text* into a type-checked rule tree.

    Raises
    ------
    FilterSyntaxError
        Malformed text: unknown characters, unbalanced brackets, missing
        operands, or nesting deeper than the interpreter stack allows.
    FilterTypeError
        Operands of the wrong kind, or a rule that is not boolean.
    UndefinedVariableError
        A variable used outside the quantifier that binds it.
    """
    try:
        return _Parser(text).parse()
    except RecursionError:
        msg = "Rule is nested too deeply"
        raise FilterSyntaxError(msg, text) from None


# ---------------------------------------------------------------------------
# Unparsing
# ---------------------------------------------------------------------------


def _format_number(value: float) -> str:
    if math.isinf(value):
        return "1e999" if value > 0 else "(-1e999)"
    if value.is_integer():
        text = str(int(value))
    else:
        text = repr(value)
    return f"(-{text[1:]})" if value < 0 else text


def _format_list(source: ListExpr) -> str:
    if isinstance(source, ListRef):
        return source.source.value
    return f"[{source.var}:{_format_list(source.source)}|{format_rule(source.body)}]"


def format_rule(rule: Rule) -> str:
    """Render *rule* as fully parenthesized rule text.

    For trees produced by :func:`parse_rule`, parsing the result yields an
    equal tree.
    """
    if isinstance(rule, BoolConst):
        return "true" if rule.value else "false"
    if isinstance(rule, NumConst):
        return _format_number(rule.value)
    if isinstance(rule, TagRef):
        return f"#{rule.name}"
    if isinstance(rule, NumTagRef):
        return f"${rule.name}"
    if isinstance(rule, VarRef):
        return rule.name
    if isinstance(rule, Not):
        return f"(!{format_rule(rule.operand)})"
    if isinstance(rule, Negate):
        return f"(-{format_rule(rule.operand)})"
    if isinstance(rule, And):
        return "(" + " && ".join(format_rule(op) for op in rule.operands) + ")"
    if isinstance(rule, Or):
        return "(" + " || ".join(format_rule(op) for op in rule.operands) + ")"
    if isinstance(rule, (Compare, Arithmetic)):
        return f"({format_rule(rule.left)} {rule.op.value} {format_rule(rule.right)})"
    if isinstance(rule, (Exists, Forall)):
        keyword = "exists" if isinstance(rule, Exists) else "forall"
        return f"{keyword}[{rule.var}:{_format_list(rule.source)}|{format_rule(rule.body)}]"
    if isinstance(rule, Scoped):
        return f"{rule.var}<{format_rule(rule.body)}>"
    if isinstance(rule, (Count, NonEmpty)):
        marker = "$" if isinstance(rule, Count) else "#"
        source = rule.source
        if isinstance(source, ListRef):
            source = Comprehension("_", source, BoolConst(True))
        return marker + _format_list(source)
    msg = f"Cannot format {type(rule).__name__}"
    raise TypeError(msg)
