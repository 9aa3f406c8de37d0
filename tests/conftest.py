"""Shared test fixtures for semfilter."""

from __future__ import annotations

from typing import Callable

import pytest

from semfilter.graph.loader import iter_elements
from semfilter.graph.model import ElementKind, GraphElement, make_element


def _connect(edge_id: str, source: GraphElement, target: GraphElement) -> GraphElement:
    """Create an edge under *source*'s parent (or *source*) and wire it."""
    edge = make_element(edge_id, ElementKind.EDGE)
    owner = source.parent or source
    owner.add_child(edge)
    edge.connect(source, target)
    return edge


@pytest.fixture()
def diagram() -> GraphElement:
    """A small diagram::

        root (graph)
        ├── n1 [active, score=9]
        │   ├── c1 [someTag]
        │   ├── c2 [someTag, t]
        │   ├── c3 []
        │   └── lbl (label, untagged)
        ├── n2 [score=7]
        ├── n3 [loop]          self-loop edge
        ├── e1  n1 -> n2
        └── e2  n3 -> n3
    """
    root = make_element("root", ElementKind.GRAPH)
    n1 = root.add_child(make_element("n1", tags=["active", ("score", 9)]))
    n1.add_child(make_element("c1", tags=["someTag"]))
    n1.add_child(make_element("c2", tags=["someTag", "t"]))
    n1.add_child(make_element("c3"))
    n1.add_child(make_element("lbl", ElementKind.LABEL, tags=None))
    n2 = root.add_child(make_element("n2", tags=[("score", 7)]))
    n3 = root.add_child(make_element("n3", tags=["loop"]))
    _connect("e1", n1, n2)
    _connect("e2", n3, n3)
    return root


@pytest.fixture()
def by_id(diagram: GraphElement) -> dict[str, GraphElement]:
    """Index of every element in :func:`diagram`."""
    return {el.id: el for el in iter_elements(diagram)}


@pytest.fixture()
def connect() -> Callable[[str, GraphElement, GraphElement], GraphElement]:
    """Helper creating and wiring an edge between two elements."""
    return _connect
