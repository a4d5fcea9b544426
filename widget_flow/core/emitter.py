"""
Deterministic source-text printer for WidgetNode trees.

The printer is a pure function of its input: no state survives between
calls and the indent level travels with each recursive call.
"""

from typing import Any, List, Optional

from .widget_ir import Property, WidgetNode

DEFAULT_INDENT = 2
FALLBACK_OUTPUT = "Container()"


class WidgetEmitter:
    """Prints widget trees with a fixed indentation increment."""

    def __init__(self, indent_size: int = DEFAULT_INDENT):
        self.indent_size = indent_size

    def emit(self, node: Optional[WidgetNode], indent: int = 0) -> str:
        if not isinstance(node, WidgetNode) or not node.target_tag:
            return FALLBACK_OUTPUT
        if node.named_constructor:
            return f"{node.target_tag}.{node.named_constructor}()"

        properties: List[Property] = list(node.properties)
        if node.child is not None:
            properties.append(Property(node.child_key, node.child))
        has_children = node.children is not None
        if not properties and not node.comments and not has_children:
            return f"{node.target_tag}()"

        pad = " " * (indent + self.indent_size)
        lines = [f"{node.target_tag}("]
        for comment in node.comments:
            # A comment line must never leak source text onto an uncommented line.
            first, *rest = comment.splitlines() or [""]
            lines.append(pad + first)
            lines.extend(f"{pad}// {line.strip()}" for line in rest)

        last_real = max((i for i, prop in enumerate(properties) if not prop.is_comment), default=-1)
        for i, prop in enumerate(properties):
            if prop.is_comment:
                lines.extend(f"{pad}// {line.strip()}" for line in str(prop.value).splitlines() or [""])
                continue
            rendered = self._value(prop.value, indent + self.indent_size)
            prefix = f"{prop.key}: " if prop.key else ""
            comma = "," if has_children or i != last_real else ""
            lines.append(f"{pad}{prefix}{rendered}{comma}")

        if has_children:
            entry_pad = " " * (indent + 2 * self.indent_size)
            lines.append(f"{pad}children: [")
            for entry in node.children:
                lines.append(f"{entry_pad}{self._value(entry, indent + 2 * self.indent_size)},")
            lines.append(f"{pad}],")

        lines.append(" " * indent + ")")
        return "\n".join(lines)

    def _value(self, value: Any, indent: int) -> str:
        if isinstance(value, WidgetNode):
            return self.emit(value, indent)
        if isinstance(value, (tuple, list)):
            if not value:
                return "[]"
            entry_pad = " " * (indent + self.indent_size)
            lines = ["["]
            for item in value:
                lines.append(f"{entry_pad}{self._value(item, indent + self.indent_size)},")
            lines.append(" " * indent + "]")
            return "\n".join(lines)
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


def emit(node: Optional[WidgetNode], indent: int = 0, indent_size: int = DEFAULT_INDENT) -> str:
    return WidgetEmitter(indent_size).emit(node, indent)
