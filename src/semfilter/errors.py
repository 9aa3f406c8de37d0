"""Exception taxonomy for rule construction and evaluation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def _with_pointer(message: str, text: str, position: int) -> str:
    if position < 0 or not text:
        return message
    pointer = " " * position + "^"
    return f"{message}\n  {text}\n  {pointer}"


class FilterError(Exception):
    """Base class for all semfilter errors."""


class FilterSyntaxError(FilterError, ValueError):
    """Raised when rule text cannot be parsed.

    When *text* and *position* are known, the message is followed by the
    offending text and a caret pointing at *position*.
    """

    def __init__(self, message: str, text: str = "", position: int = -1) -> None:
        self.reason = message
        self.text = text
        self.position = position
        super().__init__(_with_pointer(message, text, position))


class FilterTypeError(FilterError, TypeError):
    """Raised when an operator is applied to operands of the wrong kind."""

    def __init__(self, message: str, text: str = "", position: int = -1) -> None:
        self.reason = message
        self.text = text
        self.position = position
        super().__init__(_with_pointer(message, text, position))


class UndefinedVariableError(FilterError, NameError):
    """Raised when a variable is referenced outside of its binding."""

    def __init__(self, name: str, available: Iterable[str] = ()) -> None:
        available = tuple(available)
        msg = f"Variable '{name}' is undefined"
        if available:
            msg += f". Available variables: {', '.join(available)}"
        # NameError.__init__ resets ``name``, so assign afterwards.
        super().__init__(msg)
        self.name = name
        self.available = available


class LegacyRuleError(FilterError, ValueError):
    """Raised when a legacy rule record cannot be converted."""
