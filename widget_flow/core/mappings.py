"""
Static element-mapping table: source markup tag -> target widget descriptor.

The table is configuration data; rows are immutable and the table itself is
a read-only mapping. Configured overrides produce a new table.
"""

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .config import WidgetFlowConfig

MAPPING_TABLE_VERSION = "1.0"


@dataclass(frozen=True)
class ElementMapping:
    target_tag: str
    has_default_child_slot: bool = False
    text_like: bool = False
    button_like: bool = False
    list_like: bool = False
    navigational: bool = False
    multiline: bool = False
    child_key: str = "child"
    # (key, value) properties appended after the lowered attributes
    extras: Tuple[Tuple[str, str], ...] = ()

    @property
    def accepts_single_child(self) -> bool:
        return (self.has_default_child_slot or self.button_like or self.navigational) and not (
            self.text_like or self.list_like
        )


def _container(**kwargs) -> ElementMapping:
    return ElementMapping("Container", has_default_child_slot=True, **kwargs)


def _text(style: Optional[str] = None) -> ElementMapping:
    extras = (("style", style),) if style else ()
    return ElementMapping("Text", text_like=True, extras=extras)


def _theme(name: str) -> str:
    return f"Theme.of(context).textTheme.{name}"


ELEMENT_MAPPINGS: Mapping[str, ElementMapping] = MappingProxyType({
    # Containers
    "div": _container(),
    "section": _container(),
    "article": _container(),
    "header": _container(),
    "footer": _container(),
    "nav": _container(),
    "main": ElementMapping("Scaffold", has_default_child_slot=True, child_key="body"),

    # Buttons
    "button": ElementMapping("ElevatedButton", button_like=True),

    # Inputs
    "input": ElementMapping("TextField"),
    "textarea": ElementMapping("TextField", multiline=True, extras=(("maxLines", "null"),)),

    # Images
    "img": ElementMapping("Image"),

    # Links
    "a": ElementMapping("GestureDetector", has_default_child_slot=True, navigational=True),

    # Text
    "p": _text(),
    "h1": _text(_theme("headlineLarge")),
    "h2": _text(_theme("headlineMedium")),
    "h3": _text(_theme("headlineSmall")),
    "h4": _text(_theme("titleLarge")),
    "h5": _text(_theme("titleMedium")),
    "h6": _text(_theme("titleSmall")),
    "span": _text(),
    "strong": _text("const TextStyle(fontWeight: FontWeight.bold)"),
    "em": _text("const TextStyle(fontStyle: FontStyle.italic)"),
    "label": _text(),

    # Lists
    "ul": ElementMapping("ListView", list_like=True),
    "ol": ElementMapping("ListView", list_like=True),
    "li": ElementMapping("ListTile", has_default_child_slot=True, child_key="title"),

    # Forms
    "form": ElementMapping("Form", has_default_child_slot=True),

    # Layout
    "br": ElementMapping("SizedBox", extras=(("height", "10"),)),
    "hr": ElementMapping("Divider"),
})


def build_mapping_table(config: Optional[WidgetFlowConfig] = None) -> Mapping[str, ElementMapping]:
    """Static table with ``config.extra_element_mappings`` merged over it."""
    if config is not None and config.mapping_table_version not in (None, MAPPING_TABLE_VERSION):
        logging.warning(
            f"Configured mapping table version {config.mapping_table_version} "
            f"does not match built-in version {MAPPING_TABLE_VERSION}"
        )
    if config is None or not config.extra_element_mappings:
        return ELEMENT_MAPPINGS
    merged: Dict[str, ElementMapping] = dict(ELEMENT_MAPPINGS)
    for tag, fields in config.extra_element_mappings.items():
        row = _coerce_row(fields)
        try:
            base = merged.get(tag)
            merged[tag] = replace(base, **row) if base is not None else ElementMapping(**row)
        except TypeError as e:
            logging.warning(f"Ignoring element mapping override for <{tag}>: {e}")
    return MappingProxyType(merged)


def _coerce_row(fields: Dict[str, Any]) -> Dict[str, Any]:
    row = dict(fields)
    extras = row.get("extras")
    if isinstance(extras, dict):
        row["extras"] = tuple((str(key), str(value)) for key, value in extras.items())
    elif isinstance(extras, (list, tuple)):
        row["extras"] = tuple((str(pair[0]), str(pair[1])) for pair in extras)
    return row
