"""Convert legacy connective trees into rule text.

Older diagram servers describe filter rules as nested records instead of
text.  A record is either a tag leaf (``{"tag": "name", "num": 1}``) or a
connective identified by its ``name`` with its operands in ``operand``,
``leftOperand``/``rightOperand`` or ``firstOperand``/``secondOperand``/
``thirdOperand``.  The converter emits text that :func:`parse_rule` accepts;
boolean connectives are parenthesized, constants are not.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from typing import Any, Callable

from semfilter.errors import LegacyRuleError

logger = logging.getLogger(__name__)

_TAG_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")

# Relational connectives: operands are numeric.
_RELATIONAL: dict[str, str] = {
    "LESSTHAN": "<",
    "GREATERTHAN": ">",
    "LESSEQUALS": "<=",
    "GREATEREQUALS": ">=",
    "NUMERICEQUAL": "=",
    "NUMERICNOTEQUAL": "!=",
}

# Numeric connectives: usable only where a number is expected.
_ARITHMETIC: dict[str, str] = {
    "NUMERICADDITION": "+",
    "NUMERICSUBTRACTION": "-",
    "NUMERICMULTIPLICATION": "*",
    "NUMERICDIVISION": "/",
}


def is_tag(rule: Mapping[str, Any]) -> bool:
    """True for a tag leaf, i.e. a record carrying a ``tag`` field."""
    return rule.get("tag") is not None


def rule_name(rule: Mapping[str, Any]) -> str | None:
    """Display name of a legacy rule: the tag for leaves, else ``ruleName``."""
    if is_tag(rule):
        return str(rule["tag"])
    name = rule.get("ruleName")
    return str(name) if name is not None else None


def default_value(rule: Mapping[str, Any]) -> bool | None:
    """Initial enabled state requested by the record, if any.

    Raises :class:`LegacyRuleError` when ``defaultValue`` is not a boolean.
    """
    value = rule.get("defaultValue")
    if value is not None and not isinstance(value, bool):
        msg = f"Legacy rule has a non-boolean 'defaultValue': {value!r}"
        raise LegacyRuleError(msg)
    return value


def convert(rule: Mapping[str, Any], *, strict: bool = True) -> str:
    """Return rule text equivalent to the legacy record *rule*.

    Parameters
    ----------
    rule:
        Tag leaf or connective record.
    strict:
        When true (the default) an unknown connective raises
        :class:`LegacyRuleError`.  When false it converts to ``true`` (or
        ``0`` in numeric position) and a warning is logged.

    Raises
    ------
    LegacyRuleError
        For malformed records, and for unknown connectives in strict mode.
    """
    text = _Converter(strict).boolean(rule)
    logger.debug("Converted legacy rule %r to %r", rule_name(rule), text)
    return text


class _Converter:
    def __init__(self, strict: bool) -> None:
        self.strict = strict
        self._boolean: dict[str, Callable[[Mapping[str, Any]], str]] = {
            "TRUE": lambda r: "true",
            "FALSE": lambda r: "false",
            "ID": self._identity,
            "IDENTITY": self._identity,
            "NOT": lambda r: f"(!{self._operand(r, 'operand')})",
            "AND": lambda r: self._chain(r, "&&"),
            "OR": lambda r: self._chain(r, "||"),
            "IFTHEN": lambda r: f"(!{self._left(r)}||{self._right(r)})",
            "LOGICEQUAL": lambda r: f"({self._left(r)}={self._right(r)})",
            "IFTHENELSE": self._if_then_else,
        }

    # -- boolean position --------------------------------------------------

    def boolean(self, rule: Mapping[str, Any]) -> str:
        _check_record(rule)
        if is_tag(rule):
            return f"#{_tag_name(rule)}"
        name = _connective_name(rule)
        handler = self._boolean.get(name)
        if handler is not None:
            return handler(rule)
        if name in _RELATIONAL:
            left = self.numeric(_field(rule, "leftOperand"))
            right = self.numeric(_field(rule, "rightOperand"))
            return f"({left}{_RELATIONAL[name]}{right})"
        return self._unknown(name, "true")

    def _chain(self, rule: Mapping[str, Any], operator: str) -> str:
        """Join a run of the same connective into one group: ``(a&&b&&c)``."""
        name = rule["name"]
        operands: list[str] = []
        pending: list[Any] = [rule]
        while pending:
            current = pending.pop()
            if isinstance(current, Mapping) and not is_tag(current) and current.get("name") == name:
                pending.append(_field(current, "rightOperand"))
                pending.append(_field(current, "leftOperand"))
            else:
                operands.append(self.boolean(current))
        return f"({operator.join(operands)})"

    def _identity(self, rule: Mapping[str, Any]) -> str:
        return f"({self._operand(rule, 'operand')})"

    def _if_then_else(self, rule: Mapping[str, Any]) -> str:
        cond = self._operand(rule, "firstOperand")
        then = self._operand(rule, "secondOperand")
        other = self._operand(rule, "thirdOperand")
        return f"({cond}&&{then}||!{cond}&&{other})"

    def _operand(self, rule: Mapping[str, Any], key: str) -> str:
        return self.boolean(_field(rule, key))

    def _left(self, rule: Mapping[str, Any]) -> str:
        return self._operand(rule, "leftOperand")

    def _right(self, rule: Mapping[str, Any]) -> str:
        return self._operand(rule, "rightOperand")

    # -- numeric position --------------------------------------------------

    def numeric(self, rule: Mapping[str, Any]) -> str:
        _check_record(rule)
        if is_tag(rule):
            return f"${_tag_name(rule)}"
        name = _connective_name(rule)
        if name == "CONST":
            return _format_const(rule)
        if name in _ARITHMETIC:
            left = self.numeric(_field(rule, "leftOperand"))
            right = self.numeric(_field(rule, "rightOperand"))
            return f"({left}{_ARITHMETIC[name]}{right})"
        return self._unknown(name, "0")

    def _unknown(self, name: str, fallback: str) -> str:
        if self.strict:
            msg = f"Unsupported legacy connective '{name}'"
            raise LegacyRuleError(msg)
        logger.warning("Unsupported legacy connective '%s', using '%s'", name, fallback)
        return fallback


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------


def _check_record(rule: Any) -> None:
    if not isinstance(rule, Mapping):
        msg = f"Legacy rule must be a mapping, got {type(rule).__name__}"
        raise LegacyRuleError(msg)
    if not is_tag(rule) and rule.get("name") is None:
        msg = "Legacy rule is neither a tag nor a connective (no 'tag' or 'name')"
        raise LegacyRuleError(msg)


def _connective_name(rule: Mapping[str, Any]) -> str:
    return str(rule["name"])


def _field(rule: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = rule.get(key)
    if value is None:
        msg = f"Legacy connective '{rule['name']}' is missing '{key}'"
        raise LegacyRuleError(msg)
    return value  # type: ignore[no-any-return]


def _tag_name(rule: Mapping[str, Any]) -> str:
    name = str(rule["tag"])
    if not _TAG_NAME_RE.match(name):
        msg = f"Tag name {name!r} cannot be expressed in rule text"
        raise LegacyRuleError(msg)
    return name


def _format_const(rule: Mapping[str, Any]) -> str:
    num = rule.get("num")
    if isinstance(num, bool) or not isinstance(num, (int, float)):
        msg = f"Legacy constant needs a numeric 'num', got {num!r}"
        raise LegacyRuleError(msg)
    value = float(num)
    if not math.isfinite(value):
        msg = f"Legacy constant must be finite, got {num!r}"
        raise LegacyRuleError(msg)
    text = str(int(value)) if value.is_integer() else repr(value)
    return f"({text})" if value < 0 else text
