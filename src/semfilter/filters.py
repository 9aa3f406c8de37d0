"""Filter facade: build named predicates from rule text or legacy records."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from semfilter.graph.model import RULES_PROPERTY
from semfilter.lang.evaluator import Evaluator
from semfilter.lang.parser import parse_rule
from semfilter.legacy import converter as legacy

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from semfilter.graph.model import GraphElement
    from semfilter.lang.ast import Rule

logger = logging.getLogger(__name__)

DEFAULT_EVALUATOR = Evaluator()


@dataclass(frozen=True)
class Filter:
    """A compiled rule with the display metadata a UI toggle needs.

    ``predicate`` is reentrant: each call evaluates against a fresh scope,
    so one filter may be applied from several threads at once.
    """

    name: str | None
    default_value: bool | None
    rule: Rule
    text: str
    evaluator: Evaluator = field(default=DEFAULT_EVALUATOR, repr=False, compare=False)

    def predicate(self, element: GraphElement) -> bool:
        return self.evaluator.evaluate(self.rule, element)

    def __call__(self, element: GraphElement) -> bool:
        return self.predicate(element)


def create_filter(
    rule: str | Mapping[str, Any],
    *,
    name: str | None = None,
    default_value: bool | None = None,
    strict: bool = True,
    evaluator: Evaluator | None = None,
) -> Filter:
    """Compile rule text or a legacy record into a :class:`Filter`.

    Legacy records are converted to text first; their ``ruleName`` and
    ``defaultValue`` are used unless *name* or *default_value* is given.

    Raises
    ------
    FilterSyntaxError, FilterTypeError, UndefinedVariableError
        When the rule text is invalid.
    LegacyRuleError
        When a legacy record cannot be converted.
    """
    if isinstance(rule, str):
        text = rule
    elif isinstance(rule, Mapping):
        text = legacy.convert(rule, strict=strict)
        if name is None:
            name = legacy.rule_name(rule)
        if default_value is None:
            default_value = legacy.default_value(rule)
    else:
        msg = f"Expected rule text or a legacy rule mapping, got {type(rule).__name__}"
        raise TypeError(msg)

    compiled = parse_rule(text)
    logger.debug("Created filter %r from %r", name, text)
    return Filter(
        name=name,
        default_value=default_value,
        rule=compiled,
        text=text,
        evaluator=evaluator or DEFAULT_EVALUATOR,
    )


def get_filters(element: GraphElement, *, strict: bool = True) -> list[Filter]:
    """Build the filters declared under :data:`RULES_PROPERTY` of *element*.

    Entries may be legacy records or plain rule text.  Returns an empty list
    when the element declares no rules.
    """
    raw = element.properties.get(RULES_PROPERTY)
    if raw is None:
        return []
    if not isinstance(raw, list):
        msg = f"'{RULES_PROPERTY}' must be a list, got {type(raw).__name__}"
        raise ValueError(msg)
    filters = [create_filter(entry, strict=strict) for entry in raw]
    logger.debug("Loaded %d filter(s) from element '%s'", len(filters), element.id)
    return filters


def apply_filter(filter_: Filter, elements: Iterable[GraphElement]) -> Iterator[GraphElement]:
    """Yield the elements of *elements* that pass *filter_*."""
    for element in elements:
        if filter_(element):
            yield element
