"""Reserved tags: values computed from graph structure instead of stored tags.

A reserved tag is only consulted when the element does not carry an explicit
tag of the same name, so models can always override a computed value.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Callable

from semfilter.graph.model import ElementKind, adjacent_elements

if TYPE_CHECKING:
    from collections.abc import Mapping

    from semfilter.graph.model import GraphElement

BooleanTagFn = Callable[["GraphElement"], bool]
NumericTagFn = Callable[["GraphElement"], float]


class ReservedTagRegistry:
    """Immutable lookup of computed boolean and numeric tags."""

    def __init__(
        self,
        boolean: Mapping[str, BooleanTagFn] | None = None,
        numeric: Mapping[str, NumericTagFn] | None = None,
    ) -> None:
        self._boolean: Mapping[str, BooleanTagFn] = MappingProxyType(dict(boolean or {}))
        self._numeric: Mapping[str, NumericTagFn] = MappingProxyType(dict(numeric or {}))

    @property
    def boolean_names(self) -> frozenset[str]:
        return frozenset(self._boolean)

    @property
    def numeric_names(self) -> frozenset[str]:
        return frozenset(self._numeric)

    def is_reserved(self, name: str) -> bool:
        return name in self._boolean or name in self._numeric

    def evaluate_boolean(self, name: str, element: GraphElement) -> bool | None:
        """Value of the boolean reserved tag *name*, ``None`` if not reserved."""
        fn = self._boolean.get(name)
        if fn is None:
            return None
        return fn(element)

    def evaluate_numeric(self, name: str, element: GraphElement) -> float | None:
        """Value of the numeric reserved tag *name*, ``None`` if not reserved."""
        fn = self._numeric.get(name)
        if fn is None:
            return None
        return float(fn(element))

    def extend(
        self,
        boolean: Mapping[str, BooleanTagFn] | None = None,
        numeric: Mapping[str, NumericTagFn] | None = None,
    ) -> ReservedTagRegistry:
        """Return a new registry with additional (or replaced) tags."""
        return ReservedTagRegistry(
            {**self._boolean, **(boolean or {})},
            {**self._numeric, **(numeric or {})},
        )


def _count_children(el: GraphElement) -> float:
    return float(len(el.children))


def _count_adjacents(el: GraphElement) -> float:
    return float(len(adjacent_elements(el)))


def _count_incoming(el: GraphElement) -> float:
    return float(len(el.incoming_edges))


def _count_outgoing(el: GraphElement) -> float:
    return float(len(el.outgoing_edges))


def _is_kind(kind: ElementKind) -> BooleanTagFn:
    def check(el: GraphElement) -> bool:
        return el.kind is kind

    return check


DEFAULT_REGISTRY = ReservedTagRegistry(
    boolean={
        "isNode": _is_kind(ElementKind.NODE),
        "isEdge": _is_kind(ElementKind.EDGE),
        "isPort": _is_kind(ElementKind.PORT),
        "isLabel": _is_kind(ElementKind.LABEL),
        "children": lambda el: len(el.children) > 0,
        "adjacents": lambda el: _count_adjacents(el) > 0,
        "incoming": lambda el: len(el.incoming_edges) > 0,
        "outgoing": lambda el: len(el.outgoing_edges) > 0,
    },
    numeric={
        "children": _count_children,
        "adjacents": _count_adjacents,
        "incoming": _count_incoming,
        "outgoing": _count_outgoing,
    },
)
