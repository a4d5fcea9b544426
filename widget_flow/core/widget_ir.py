"""
Target-agnostic widget intermediate representation.

A WidgetNode carries its properties in insertion order and holds its
children either in a single ``child`` slot or in an ordered ``children``
collection, never both.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

PropertyValue = Union[str, "WidgetNode", Tuple[Any, ...], bool, int, float, None]
ChildEntry = Union["WidgetNode", str]


@dataclass(frozen=True)
class Property:
    key: Optional[str]  # None marks a positional argument
    value: PropertyValue
    is_comment: bool = False


@dataclass(frozen=True)
class WidgetNode:
    target_tag: str
    properties: Tuple[Property, ...] = ()
    comments: Tuple[str, ...] = ()
    child: Optional["WidgetNode"] = None
    children: Optional[Tuple[ChildEntry, ...]] = None
    child_key: str = "child"
    named_constructor: Optional[str] = None
    source_tag: Optional[str] = None

    def __post_init__(self):
        if self.child is not None and self.children is not None:
            raise ValueError(f"{self.target_tag} cannot hold both a child slot and a children collection")

    @property
    def is_empty(self) -> bool:
        return not self.properties and not self.comments and self.child is None and self.children is None

    def property_keys(self) -> Tuple[Optional[str], ...]:
        return tuple(prop.key for prop in self.properties if not prop.is_comment)

    def find_property(self, key: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.key == key and not prop.is_comment:
                return prop
        return None

    def iter_nodes(self):
        """Yield this node and every nested widget, depth first."""
        yield self
        for prop in self.properties:
            yield from _iter_value(prop.value)
        if self.child is not None:
            yield from self.child.iter_nodes()
        for entry in self.children or ():
            yield from _iter_value(entry)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "targetTag": self.target_tag,
            "sourceTag": self.source_tag,
            "properties": [
                {"key": prop.key, "value": _value_to_dict(prop.value), "isComment": prop.is_comment}
                for prop in self.properties
            ],
            "comments": list(self.comments),
        }
        if self.named_constructor:
            data["namedConstructor"] = self.named_constructor
        if self.child is not None:
            data["childKey"] = self.child_key
            data["child"] = self.child.to_dict()
        if self.children is not None:
            data["children"] = [_value_to_dict(entry) for entry in self.children]
        return data


def _iter_value(value: Any):
    if isinstance(value, WidgetNode):
        yield from value.iter_nodes()
    elif isinstance(value, (tuple, list)):
        for item in value:
            yield from _iter_value(item)


def _value_to_dict(value: Any) -> Any:
    if isinstance(value, WidgetNode):
        return value.to_dict()
    if isinstance(value, (tuple, list)):
        return [_value_to_dict(item) for item in value]
    return value


def dart_string(text: str) -> str:
    """Single-quoted Dart string literal for ``text``."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("$", "\\$")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def one_line(text: str) -> str:
    """Collapse every whitespace run, newlines included, into one space."""
    return " ".join(text.split())


def text_widget(text: str, source_tag: Optional[str] = "#text") -> WidgetNode:
    return WidgetNode("Text", properties=(Property(None, dart_string(text)),), source_tag=source_tag)


def placeholder_widget(comment: str, source_tag: Optional[str] = None) -> WidgetNode:
    return WidgetNode("Container", comments=(one_line(comment),), source_tag=source_tag)


def vertical_wrapper(entries: Tuple[ChildEntry, ...]) -> WidgetNode:
    # Always a Column: no layout direction is inferred.
    return WidgetNode(
        "Column",
        properties=(Property("mainAxisSize", "MainAxisSize.min"),),
        children=tuple(entries),
    )


def empty_widget() -> WidgetNode:
    return WidgetNode("SizedBox", named_constructor="shrink")


def no_content_widget() -> WidgetNode:
    return WidgetNode(
        "Scaffold",
        properties=(),
        child=WidgetNode("Center", child=text_widget("No content found", source_tag=None)),
        child_key="body",
    )
