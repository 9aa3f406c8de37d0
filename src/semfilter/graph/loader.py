"""Build :class:`GraphElement` trees from diagram model mappings.

Diagram models arrive as nested element records::

    {"id": "n1", "type": "node", "properties": {...}, "children": [...]}

Edges reference their endpoints by id (``sourceId`` / ``targetId``), so
the graph is built in two passes: create every element, then wire edges.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import yaml

from semfilter.graph.model import ElementKind, GraphElement, tags_from_properties

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

_KIND_BY_TYPE: dict[str, ElementKind] = {kind.value: kind for kind in ElementKind}


def _element_kind(type_name: str, element_id: str) -> ElementKind:
    # sprotty-style subtypes: "node:state", "edge:transition", ...
    base = type_name.split(":", 1)[0]
    kind = _KIND_BY_TYPE.get(base)
    if kind is None:
        msg = (
            f"Element '{element_id}': unknown type '{type_name}', "
            f"must start with one of {sorted(_KIND_BY_TYPE)}"
        )
        raise ValueError(msg)
    return kind


def _create_element(record: Mapping[str, Any], index: int) -> GraphElement:
    raw_id = record.get("id")
    element_id = f"<anonymous-{index}>" if raw_id is None else str(raw_id)
    kind = _element_kind(str(record.get("type", "node")), element_id)

    properties = record.get("properties")
    if properties is None:
        return GraphElement(element_id, kind, tags=None)
    if not isinstance(properties, dict):
        msg = f"Element '{element_id}': 'properties' must be a mapping"
        raise ValueError(msg)
    return GraphElement(
        element_id, kind, tags=tags_from_properties(properties), properties=dict(properties)
    )


def build_graph(data: Mapping[str, Any]) -> GraphElement:
    """Create the element tree described by *data* and return its root.

    Raises ``ValueError`` for malformed records, unknown element types and
    duplicate ids.  Edges pointing at unknown ids are left unconnected.
    """
    if not isinstance(data, dict):
        msg = "Graph data must be a mapping"
        raise ValueError(msg)

    # --- Pass 1: create elements ---
    by_id: dict[str, GraphElement] = {}
    pending_edges: list[tuple[GraphElement, Mapping[str, Any]]] = []
    counter = 0

    root = _create_element(data, counter)
    stack: list[tuple[GraphElement, Mapping[str, Any]]] = [(root, data)]
    while stack:
        element, record = stack.pop()
        if element.id in by_id:
            msg = f"Duplicate element id '{element.id}'"
            raise ValueError(msg)
        by_id[element.id] = element
        if element.kind is ElementKind.EDGE:
            pending_edges.append((element, record))

        children_raw = record.get("children") or []
        if not isinstance(children_raw, list):
            msg = f"Element '{element.id}': 'children' must be a list"
            raise ValueError(msg)
        created: list[tuple[GraphElement, Mapping[str, Any]]] = []
        for child_record in children_raw:
            if not isinstance(child_record, dict):
                msg = f"Element '{element.id}': every child must be a mapping"
                raise ValueError(msg)
            counter += 1
            child = element.add_child(_create_element(child_record, counter))
            created.append((child, child_record))
        # Reverse so children are visited in document order.
        stack.extend(reversed(created))

    # --- Pass 2: wire edges ---
    for edge, record in pending_edges:
        source = by_id.get(str(record.get("sourceId", "")))
        target = by_id.get(str(record.get("targetId", "")))
        if source is None or target is None:
            logger.warning(
                "Edge '%s' references unknown element (source=%r, target=%r), left unconnected",
                edge.id,
                record.get("sourceId"),
                record.get("targetId"),
            )
            continue
        edge.connect(source, target)

    logger.debug("Built graph '%s' with %d elements", root.id, len(by_id))
    return root


def load_graph(path: Path) -> GraphElement:
    """Load a diagram model from a YAML (or JSON) file."""
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        msg = f"{path}: graph file is empty"
        raise ValueError(msg)
    return build_graph(data)


def iter_elements(root: GraphElement) -> Iterator[GraphElement]:
    """Yield *root* and all its descendants in depth-first pre-order."""
    stack = [root]
    while stack:
        element = stack.pop()
        yield element
        stack.extend(reversed(element.children))


def find_element(root: GraphElement, element_id: str) -> GraphElement | None:
    for element in iter_elements(root):
        if element.id == element_id:
            return element
    return None
