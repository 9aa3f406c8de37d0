"""Filter sets declared in YAML (``filters.yml``).

Example::

    version: 1
    strict_legacy: true
    filters:
      - name: active-only
        rule: "#active && !#disabled"
        default: true
      - name: old-style
        legacy: {name: AND, leftOperand: {tag: a}, rightOperand: {tag: b}}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import yaml

from semfilter.errors import FilterError, FilterSyntaxError, FilterTypeError
from semfilter.filters import create_filter

if TYPE_CHECKING:
    from pathlib import Path

    from semfilter.filters import Filter
    from semfilter.lang.evaluator import Evaluator

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS = frozenset({1})


def load_filters(path: Path, *, evaluator: Evaluator | None = None) -> list[Filter]:
    """Read *path* and return its validated filters.

    Raises ``ValueError`` on schema errors; rule errors surface as the
    matching :class:`FilterError` subclass.
    """
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    filters = parse_filters(data, evaluator=evaluator)
    logger.debug("Loaded %d filter(s) from %s", len(filters), path)
    return filters


def parse_filters(data: Any, *, evaluator: Evaluator | None = None) -> list[Filter]:
    """Validate an already-loaded ``filters.yml`` document."""
    if not isinstance(data, dict):
        msg = "filters.yml must be a YAML mapping"
        raise ValueError(msg)

    version = data.get("version")
    if version is None:
        msg = "filters.yml: missing required 'version' field"
        raise ValueError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"filters.yml: unsupported version {version}, expected one of {expected}"
        raise ValueError(msg)

    strict = data.get("strict_legacy", True)
    if not isinstance(strict, bool):
        msg = "filters.yml: 'strict_legacy' must be a boolean"
        raise ValueError(msg)

    entries = data.get("filters", [])
    if not isinstance(entries, list):
        msg = "filters.yml: 'filters' must be a list"
        raise ValueError(msg)

    seen_names: set[str] = set()
    filters: list[Filter] = []

    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            msg = f"filters.yml: filter at index {idx} must be a mapping"
            raise ValueError(msg)

        name = entry.get("name")
        if name is None or not isinstance(name, str) or not name.strip():
            msg = f"filters.yml: filter at index {idx} missing required 'name' field"
            raise ValueError(msg)
        if name in seen_names:
            msg = f"filters.yml: Duplicate filter name '{name}'"
            raise ValueError(msg)
        seen_names.add(name)

        has_rule = "rule" in entry
        has_legacy = "legacy" in entry
        if has_rule == has_legacy:
            msg = f"filters.yml: filter '{name}' must have exactly one of 'rule' or 'legacy'"
            raise ValueError(msg)

        source = entry["rule"] if has_rule else entry["legacy"]
        if has_rule and not isinstance(source, str):
            msg = f"filters.yml: filter '{name}' has a non-string 'rule'"
            raise ValueError(msg)
        if has_legacy and not isinstance(source, dict):
            msg = f"filters.yml: filter '{name}' has a 'legacy' rule that is not a mapping"
            raise ValueError(msg)

        default = entry.get("default")
        if default is not None and not isinstance(default, bool):
            msg = f"filters.yml: filter '{name}' has a non-boolean 'default'"
            raise ValueError(msg)

        try:
            flt = create_filter(
                source,
                name=name,
                default_value=default,
                strict=strict,
                evaluator=evaluator,
            )
        except FilterError as exc:
            prefix = f"filters.yml: filter '{name}': "
            exc.args = (prefix + str(exc), *exc.args[1:])
            if isinstance(exc, (FilterSyntaxError, FilterTypeError)):
                exc.reason = prefix + exc.reason
            raise
        filters.append(flt)

    return filters
