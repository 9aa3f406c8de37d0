"""Tests for semfilter.lang.lexer — tokenizing rule text."""

from __future__ import annotations

import pytest

from semfilter.errors import FilterSyntaxError
from semfilter.lang.lexer import TokenType, tokenize


def _types(text: str) -> list[TokenType]:
    return [tok.type for tok in tokenize(text)]


class TestTokenize:
    def test_operators(self) -> None:
        assert _types("#a && $b >= 2.5") == [
            TokenType.HASH,
            TokenType.NAME,
            TokenType.AND,
            TokenType.DOLLAR,
            TokenType.NAME,
            TokenType.GEQ,
            TokenType.NUMBER,
            TokenType.EOF,
        ]

    def test_two_char_operators_win(self) -> None:
        assert _types("!= ! <= < >= > || &&")[:-1] == [
            TokenType.NEQ,
            TokenType.NOT,
            TokenType.LEQ,
            TokenType.LT,
            TokenType.GEQ,
            TokenType.GT,
            TokenType.OR,
            TokenType.AND,
        ]

    def test_keywords(self) -> None:
        assert _types("exists forall self parent children siblings adjacents true false")[
            :-1
        ] == [
            TokenType.EXISTS,
            TokenType.FORALL,
            TokenType.SELF,
            TokenType.PARENT,
            TokenType.CHILDREN,
            TokenType.SIBLINGS,
            TokenType.ADJACENTS,
            TokenType.TRUE,
            TokenType.FALSE,
        ]

    def test_keyword_after_marker_is_tag_name(self) -> None:
        tokens = tokenize("#children")
        assert tokens[1].type is TokenType.NAME
        assert tokens[1].text == "children"

    def test_tag_name_stops_at_minus(self) -> None:
        assert _types("$score-1")[:-1] == [
            TokenType.DOLLAR,
            TokenType.NAME,
            TokenType.SUB,
            TokenType.NUMBER,
        ]

    @pytest.mark.parametrize("text", ["12", "1.5", ".5", "2e3", "1.5E-2", "7."])
    def test_numbers(self, text: str) -> None:
        tokens = tokenize(text)
        assert tokens[0].type is TokenType.NUMBER
        assert tokens[0].text == text

    def test_positions(self) -> None:
        tokens = tokenize("  #a ||\t$b")
        assert [tok.pos for tok in tokens] == [2, 3, 5, 8, 9, 10]

    def test_empty_text_only_eof(self) -> None:
        assert _types("   ") == [TokenType.EOF]

    def test_unexpected_character(self) -> None:
        with pytest.raises(FilterSyntaxError) as excinfo:
            tokenize("#a @ #b")
        assert excinfo.value.position == 3
        assert "Unexpected character '@'" in str(excinfo.value)
        assert "   ^" in str(excinfo.value)

    def test_single_ampersand_rejected(self) -> None:
        with pytest.raises(FilterSyntaxError, match="Unexpected character '&'"):
            tokenize("#a & #b")

    @pytest.mark.parametrize("char", ["²", "٣", "½"])
    def test_non_ascii_digits_rejected(self, char: str) -> None:
        with pytest.raises(FilterSyntaxError, match="Unexpected character") as excinfo:
            tokenize(f"#a && {char}")
        assert excinfo.value.position == 6
