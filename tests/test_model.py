"""Tests for semfilter.graph.model — tags, elements, and structural links."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from semfilter.graph.model import (
    TAGS_PROPERTY,
    ElementKind,
    GraphElement,
    Tag,
    adjacent_elements,
    make_element,
    tags_from_properties,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    Connect = Callable[[str, GraphElement, GraphElement], GraphElement]


class TestTagsFromProperties:
    """Tests for tags_from_properties() — the property-bag tag format."""

    def test_reads_tags_and_numbers(self) -> None:
        props = {TAGS_PROPERTY: [{"tag": "a"}, {"tag": "score", "num": 3}]}
        assert tags_from_properties(props) == (Tag("a", 0.0), Tag("score", 3.0))

    def test_missing_property_is_empty(self) -> None:
        assert tags_from_properties({"other": 1}) == ()

    def test_null_num_means_zero(self) -> None:
        props = {TAGS_PROPERTY: [{"tag": "a", "num": None}]}
        assert tags_from_properties(props)[0].num == 0.0

    def test_non_list_rejected(self) -> None:
        with pytest.raises(ValueError, match="must be a list"):
            tags_from_properties({TAGS_PROPERTY: "a"})

    def test_entry_without_tag_rejected(self) -> None:
        with pytest.raises(ValueError, match="index 1"):
            tags_from_properties({TAGS_PROPERTY: [{"tag": "a"}, {"num": 1}]})


class TestGraphElement:
    def test_find_and_has_tag(self) -> None:
        el = make_element("n", tags=["a", ("score", 2)])
        assert el.has_tag("a")
        assert not el.has_tag("b")
        assert el.find_tag("score") == Tag("score", 2.0)
        assert el.find_tag("b") is None

    def test_untaggable_element(self) -> None:
        el = make_element("lbl", ElementKind.LABEL, tags=None)
        assert not el.is_taggable
        assert el.tags is None
        assert not el.has_tag("a")

    def test_empty_tags_are_taggable(self) -> None:
        assert make_element("n").is_taggable

    def test_elements_compare_by_identity(self) -> None:
        a = make_element("same")
        b = make_element("same")
        assert a != b
        assert a == a

    def test_add_child_sets_parent(self) -> None:
        parent = make_element("p")
        child = parent.add_child(make_element("c"))
        assert child.parent is parent
        assert parent.children == [child]

    def test_connect_registers_edge(self) -> None:
        a = make_element("a")
        b = make_element("b")
        edge = make_element("e", ElementKind.EDGE)
        edge.connect(a, b)
        assert edge.source is a
        assert edge.target is b
        assert a.outgoing_edges == [edge]
        assert b.incoming_edges == [edge]

    def test_connect_requires_edge(self) -> None:
        node = make_element("n")
        with pytest.raises(ValueError, match="Only edges"):
            node.connect(make_element("a"), make_element("b"))


class TestAdjacentElements:
    """Tests for adjacent_elements() — incoming sources, then outgoing targets."""

    def test_order_and_direction(self, connect: Connect) -> None:
        root = make_element("root", ElementKind.GRAPH)
        a = root.add_child(make_element("a"))
        b = root.add_child(make_element("b"))
        c = root.add_child(make_element("c"))
        connect("ab", a, b)
        connect("bc", b, c)
        assert adjacent_elements(b) == [a, c]
        assert adjacent_elements(a) == [b]

    def test_duplicates_dropped(self, connect: Connect) -> None:
        root = make_element("root", ElementKind.GRAPH)
        a = root.add_child(make_element("a"))
        b = root.add_child(make_element("b"))
        connect("ab1", a, b)
        connect("ab2", a, b)
        connect("ba", b, a)
        assert adjacent_elements(b) == [a]

    def test_self_loop(self, by_id: dict[str, GraphElement]) -> None:
        n3 = by_id["n3"]
        assert adjacent_elements(n3) == [n3]

    def test_isolated_element(self, by_id: dict[str, GraphElement]) -> None:
        assert adjacent_elements(by_id["c1"]) == []
