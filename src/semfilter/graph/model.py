"""Read-only view of diagram elements: tags, kind, and structural links."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

# Property keys under which the diagram server attaches tags and rules.
TAGS_PROPERTY = "de.cau.cs.kieler.klighd.semanticFilter.tags"
RULES_PROPERTY = "de.cau.cs.kieler.klighd.semanticFilter.rules"


class ElementKind(enum.Enum):
    """Kind of a diagram element."""

    GRAPH = "graph"
    NODE = "node"
    EDGE = "edge"
    PORT = "port"
    LABEL = "label"


@dataclass(frozen=True)
class Tag:
    """A named marker attached to an element, optionally carrying a number."""

    name: str
    num: float = 0.0


def tags_from_properties(properties: Mapping[str, Any]) -> tuple[Tag, ...]:
    """Read the tag list stored under :data:`TAGS_PROPERTY`.

    Entries look like ``{"tag": "name", "num": 3}``; a missing ``num`` means 0.
    Returns an empty tuple when the property is absent.
    """
    raw = properties.get(TAGS_PROPERTY)
    if raw is None:
        return ()
    if not isinstance(raw, list):
        msg = f"'{TAGS_PROPERTY}' must be a list, got {type(raw).__name__}"
        raise ValueError(msg)

    tags: list[Tag] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict) or "tag" not in entry:
            msg = f"Tag entry at index {idx} must be a mapping with a 'tag' field"
            raise ValueError(msg)
        num = entry.get("num")
        tags.append(Tag(str(entry["tag"]), float(num) if num is not None else 0.0))
    return tuple(tags)


@dataclass(eq=False)
class GraphElement:
    """A node, edge, port, label or graph root of a rendered diagram.

    Elements compare by identity.  ``tags`` is ``None`` for elements that
    carry no tag collection at all; such elements are skipped by the
    structural lists of the rule language.

    The graph is owned by the caller.  ``add_child`` and ``connect`` exist
    for building it; filters never mutate an element.
    """

    id: str
    kind: ElementKind
    tags: tuple[Tag, ...] | None = ()
    properties: dict[str, Any] = field(default_factory=dict)
    parent: GraphElement | None = field(default=None, repr=False)
    children: list[GraphElement] = field(default_factory=list, repr=False)
    source: GraphElement | None = field(default=None, repr=False)
    target: GraphElement | None = field(default=None, repr=False)
    incoming_edges: list[GraphElement] = field(default_factory=list, repr=False)
    outgoing_edges: list[GraphElement] = field(default_factory=list, repr=False)

    @property
    def is_taggable(self) -> bool:
        return self.tags is not None

    def find_tag(self, name: str) -> Tag | None:
        """Return the first tag called *name*, or ``None``."""
        for tag in self.tags or ():
            if tag.name == name:
                return tag
        return None

    def has_tag(self, name: str) -> bool:
        return self.find_tag(name) is not None

    def add_child(self, child: GraphElement) -> GraphElement:
        """Append *child* and point its ``parent`` back at this element."""
        child.parent = self
        self.children.append(child)
        return child

    def connect(self, source: GraphElement, target: GraphElement) -> None:
        """Wire this edge between *source* and *target*."""
        if self.kind is not ElementKind.EDGE:
            msg = f"Only edges can be connected, '{self.id}' is a {self.kind.value}"
            raise ValueError(msg)
        self.source = source
        self.target = target
        source.outgoing_edges.append(self)
        target.incoming_edges.append(self)


def adjacent_elements(element: GraphElement) -> list[GraphElement]:
    """Sources of incoming edges followed by targets of outgoing edges.

    Duplicates are dropped, first occurrence wins.  A self-loop makes the
    element adjacent to itself.
    """
    seen: set[int] = set()
    result: list[GraphElement] = []
    candidates = [e.source for e in element.incoming_edges]
    candidates += [e.target for e in element.outgoing_edges]
    for candidate in candidates:
        if candidate is None or id(candidate) in seen:
            continue
        seen.add(id(candidate))
        result.append(candidate)
    return result


def make_element(
    element_id: str,
    kind: ElementKind = ElementKind.NODE,
    tags: Iterable[Tag | str | tuple[str, float]] | None = (),
) -> GraphElement:
    """Convenience constructor accepting tags as names or ``(name, num)`` pairs."""
    if tags is None:
        return GraphElement(element_id, kind, tags=None)
    normalized: list[Tag] = []
    for tag in tags:
        if isinstance(tag, Tag):
            normalized.append(tag)
        elif isinstance(tag, str):
            normalized.append(Tag(tag))
        else:
            name, num = tag
            normalized.append(Tag(name, float(num)))
    return GraphElement(element_id, kind, tags=tuple(normalized))
