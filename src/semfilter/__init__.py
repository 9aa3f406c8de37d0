"""Semantic filter rules for diagram elements."""

from semfilter.config import load_filters, parse_filters
from semfilter.errors import (
    FilterError,
    FilterSyntaxError,
    FilterTypeError,
    LegacyRuleError,
    UndefinedVariableError,
)
from semfilter.filters import Filter, apply_filter, create_filter, get_filters
from semfilter.graph import DEFAULT_REGISTRY, ElementKind, GraphElement, ReservedTagRegistry, Tag
from semfilter.lang import Evaluator, format_rule, parse_rule

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_REGISTRY",
    "ElementKind",
    "Evaluator",
    "Filter",
    "FilterError",
    "FilterSyntaxError",
    "FilterTypeError",
    "GraphElement",
    "LegacyRuleError",
    "ReservedTagRegistry",
    "Tag",
    "UndefinedVariableError",
    "apply_filter",
    "create_filter",
    "format_rule",
    "get_filters",
    "load_filters",
    "parse_filters",
    "parse_rule",
]
