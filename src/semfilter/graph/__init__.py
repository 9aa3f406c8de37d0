"""Graph domain: element model, reserved tags, and model loading."""

from semfilter.graph.loader import build_graph, find_element, iter_elements, load_graph
from semfilter.graph.model import (
    RULES_PROPERTY,
    TAGS_PROPERTY,
    ElementKind,
    GraphElement,
    Tag,
    adjacent_elements,
    make_element,
    tags_from_properties,
)
from semfilter.graph.reserved_tags import DEFAULT_REGISTRY, ReservedTagRegistry

__all__ = [
    "DEFAULT_REGISTRY",
    "RULES_PROPERTY",
    "TAGS_PROPERTY",
    "ElementKind",
    "GraphElement",
    "ReservedTagRegistry",
    "Tag",
    "adjacent_elements",
    "build_graph",
    "find_element",
    "iter_elements",
    "load_graph",
    "make_element",
    "tags_from_properties",
]
