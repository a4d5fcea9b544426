"""
Tree-sitter integration for widget_flow.

Provides grammar loading and parsing utilities shared by the analyzers.
"""

from .parser import (
    ParsedSource,
    can_parse,
    get_language,
    get_parser,
    language_for_path,
    parse_component,
    parse_source,
    resolve_root,
)

__all__ = [
    "ParsedSource",
    "can_parse",
    "parse_source",
    "parse_component",
    "get_language",
    "get_parser",
    "language_for_path",
    "resolve_root",
]
