"""Tokenizer for rule text."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from semfilter.errors import FilterSyntaxError


class TokenType(enum.Enum):
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COLON = ":"
    PIPE = "|"
    HASH = "#"
    DOLLAR = "$"
    NOT = "!"
    AND = "&&"
    OR = "||"
    EQ = "="
    NEQ = "!="
    GEQ = ">="
    GT = ">"
    LEQ = "<="
    LT = "<"
    ADD = "+"
    SUB = "-"
    MULT = "*"
    DIV = "/"
    MOD = "%"
    NUMBER = "number"
    NAME = "name"
    TRUE = "true"
    FALSE = "false"
    EXISTS = "exists"
    FORALL = "forall"
    SELF = "self"
    PARENT = "parent"
    CHILDREN = "children"
    SIBLINGS = "siblings"
    ADJACENTS = "adjacents"
    EOF = "end of rule"


@dataclass(frozen=True)
class Token:
    """A lexed token and its offset in the rule text."""

    type: TokenType
    text: str
    pos: int


KEYWORDS: dict[str, TokenType] = {
    t.value: t
    for t in (
        TokenType.TRUE,
        TokenType.FALSE,
        TokenType.EXISTS,
        TokenType.FORALL,
        TokenType.SELF,
        TokenType.PARENT,
        TokenType.CHILDREN,
        TokenType.SIBLINGS,
        TokenType.ADJACENTS,
    )
}

# Two-character operators must be tried before their one-character prefixes.
_TWO_CHAR_OPS: dict[str, TokenType] = {
    t.value: t for t in (TokenType.AND, TokenType.OR, TokenType.NEQ, TokenType.GEQ, TokenType.LEQ)
}
_ONE_CHAR_OPS: dict[str, TokenType] = {
    t.value: t
    for t in (
        TokenType.LPAREN,
        TokenType.RPAREN,
        TokenType.LBRACKET,
        TokenType.RBRACKET,
        TokenType.COLON,
        TokenType.PIPE,
        TokenType.HASH,
        TokenType.DOLLAR,
        TokenType.NOT,
        TokenType.EQ,
        TokenType.GT,
        TokenType.LT,
        TokenType.ADD,
        TokenType.SUB,
        TokenType.MULT,
        TokenType.DIV,
        TokenType.MOD,
    )
}

_NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def tokenize(text: str) -> list[Token]:
    """Split *text* into tokens, ending with an ``EOF`` token.

    Raises :class:`FilterSyntaxError` on characters outside the language.
    """
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        char = text[i]
        if char.isspace():
            i += 1
            continue

        two = text[i : i + 2]
        if two in _TWO_CHAR_OPS:
            tokens.append(Token(_TWO_CHAR_OPS[two], two, i))
            i += 2
            continue

        if char in _ONE_CHAR_OPS:
            token_type = _ONE_CHAR_OPS[char]
            tokens.append(Token(token_type, char, i))
            i += 1
            # The name after '#' or '$' is always a tag name, keywords included.
            if token_type in (TokenType.HASH, TokenType.DOLLAR):
                match = _NAME_RE.match(text, i)
                if match is not None:
                    tokens.append(Token(TokenType.NAME, match.group(), i))
                    i = match.end()
            continue

        match = _NUMBER_RE.match(text, i)
        if match is not None:
            tokens.append(Token(TokenType.NUMBER, match.group(), i))
            i = match.end()
            continue

        match = _NAME_RE.match(text, i)
        if match is not None:
            word = match.group()
            tokens.append(Token(KEYWORDS.get(word, TokenType.NAME), word, i))
            i = match.end()
            continue

        msg = f"Unexpected character {char!r}"
        raise FilterSyntaxError(msg, text, i)

    tokens.append(Token(TokenType.EOF, "", n))
    return tokens
