"""Tests for semfilter.graph.reserved_tags — computed structural tags."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from semfilter.graph.model import ElementKind, make_element
from semfilter.graph.reserved_tags import DEFAULT_REGISTRY, ReservedTagRegistry

if TYPE_CHECKING:
    from semfilter.graph.model import GraphElement


class TestDefaultRegistry:
    @pytest.mark.parametrize(
        ("kind", "expected"),
        [
            (ElementKind.NODE, "isNode"),
            (ElementKind.EDGE, "isEdge"),
            (ElementKind.PORT, "isPort"),
            (ElementKind.LABEL, "isLabel"),
        ],
    )
    def test_kind_tags(self, kind: ElementKind, expected: str) -> None:
        el = make_element("x", kind)
        for name in ("isNode", "isEdge", "isPort", "isLabel"):
            assert DEFAULT_REGISTRY.evaluate_boolean(name, el) is (name == expected)

    def test_graph_root_is_no_kind(self, diagram: GraphElement) -> None:
        assert DEFAULT_REGISTRY.evaluate_boolean("isNode", diagram) is False

    def test_children_counts_all_children(self, by_id: dict[str, GraphElement]) -> None:
        # The untagged label counts here, unlike in the 'children' list.
        assert DEFAULT_REGISTRY.evaluate_numeric("children", by_id["n1"]) == 4.0
        assert DEFAULT_REGISTRY.evaluate_boolean("children", by_id["n1"]) is True
        assert DEFAULT_REGISTRY.evaluate_boolean("children", by_id["c1"]) is False

    def test_edge_counts(self, by_id: dict[str, GraphElement]) -> None:
        n1, n2 = by_id["n1"], by_id["n2"]
        assert DEFAULT_REGISTRY.evaluate_numeric("outgoing", n1) == 1.0
        assert DEFAULT_REGISTRY.evaluate_numeric("incoming", n1) == 0.0
        assert DEFAULT_REGISTRY.evaluate_numeric("incoming", n2) == 1.0
        assert DEFAULT_REGISTRY.evaluate_boolean("outgoing", n2) is False

    def test_adjacents_count_distinct_elements(self, by_id: dict[str, GraphElement]) -> None:
        n3 = by_id["n3"]
        assert DEFAULT_REGISTRY.evaluate_numeric("adjacents", n3) == 1.0
        assert DEFAULT_REGISTRY.evaluate_boolean("adjacents", n3) is True

    def test_unknown_name_is_none(self) -> None:
        el = make_element("x")
        assert DEFAULT_REGISTRY.evaluate_boolean("someTag", el) is None
        assert DEFAULT_REGISTRY.evaluate_numeric("someTag", el) is None
        assert DEFAULT_REGISTRY.evaluate_numeric("isNode", el) is None

    def test_is_reserved(self) -> None:
        assert DEFAULT_REGISTRY.is_reserved("isNode")
        assert DEFAULT_REGISTRY.is_reserved("children")
        assert not DEFAULT_REGISTRY.is_reserved("someTag")
        assert DEFAULT_REGISTRY.numeric_names == {"children", "adjacents", "incoming", "outgoing"}


class TestCustomRegistry:
    def test_extend_returns_new_registry(self) -> None:
        extended = DEFAULT_REGISTRY.extend(boolean={"isRoot": lambda el: el.parent is None})
        el = make_element("x")
        assert extended.evaluate_boolean("isRoot", el) is True
        assert extended.evaluate_boolean("isNode", el) is True
        assert DEFAULT_REGISTRY.evaluate_boolean("isRoot", el) is None

    def test_registry_is_read_only(self) -> None:
        registry = ReservedTagRegistry(numeric={"depth": lambda el: 1})
        with pytest.raises(TypeError):
            registry._numeric["depth"] = lambda el: 2  # type: ignore[index]

    def test_numeric_results_are_floats(self) -> None:
        registry = ReservedTagRegistry(numeric={"depth": lambda el: 3})
        result = registry.evaluate_numeric("depth", make_element("x"))
        assert isinstance(result, float)
        assert result == 3.0
