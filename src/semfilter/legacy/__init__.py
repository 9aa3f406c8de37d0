"""Conversion of legacy connective records into rule text."""

from semfilter.legacy.converter import convert, default_value, is_tag, rule_name

__all__ = ["convert", "default_value", "is_tag", "rule_name"]
