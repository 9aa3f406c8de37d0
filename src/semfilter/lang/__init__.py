"""Rule language: tokens, syntax tree, parser, and evaluator."""

from semfilter.lang.ast import (
    EXPRESSION_TYPES,
    LIST_TYPES,
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
    ListExpr,
    ListRef,
    ListSource,
    Negate,
    NonEmpty,
    Not,
    NumConst,
    NumTagRef,
    Or,
    Rule,
    Scoped,
    TagRef,
    VarRef,
)
from semfilter.lang.evaluator import Evaluator, Scope, structural_list
from semfilter.lang.lexer import Token, TokenType, tokenize
from semfilter.lang.parser import THIS, format_rule, parse_rule

__all__ = [
    "EXPRESSION_TYPES",
    "LIST_TYPES",
    "THIS",
    "And",
    "ArithOp",
    "Arithmetic",
    "BoolConst",
    "Compare",
    "CompareOp",
    "Comprehension",
    "Count",
    "Evaluator",
    "Exists",
    "Forall",
    "Kind",
    "ListExpr",
    "ListRef",
    "ListSource",
    "Negate",
    "NonEmpty",
    "Not",
    "NumConst",
    "NumTagRef",
    "Or",
    "Rule",
    "Scope",
    "Scoped",
    "TagRef",
    "Token",
    "TokenType",
    "VarRef",
    "format_rule",
    "parse_rule",
    "structural_list",
]
