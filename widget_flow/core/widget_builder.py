"""
Lowering of a component's root JSX element into a WidgetNode tree.

Every source construct produces some output: mapped tags become their target
widget, capitalized tags pass through as custom widgets, unknown lowercase
tags fall back to a Container, and anything that cannot be translated
becomes a TODO comment on the nearest widget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple, Union

from tree_sitter import Node

from .config import WidgetFlowConfig
from .mappings import ElementMapping, build_mapping_table
from .models import ComponentStructure, Diagnostic, DiagnosticKind
from .structure_analyzer import discover_components
from .treesitter import resolve_root
from .utils import (
    JSX_ELEMENT_TYPES,
    STRING_TYPES,
    attribute_expression,
    attribute_parts,
    describe_expression,
    first_return_argument,
    is_custom_component_name,
    is_fragment,
    is_jsx,
    jsx_attributes,
    jsx_children,
    jsx_expression_body,
    jsx_tag_name,
    jsx_text_segments,
    location,
    named_children,
    node_text,
    normalize_jsx_text,
    strip_quotes,
    to_pascal_case,
    unwrap_parens,
    walk,
)
from .widget_ir import (
    ChildEntry,
    Property,
    WidgetNode,
    dart_string,
    empty_widget,
    no_content_widget,
    one_line,
    placeholder_widget,
    text_widget,
    vertical_wrapper,
)

logger = logging.getLogger(__name__)

HANDLER_STUB = "() { /* TODO: Implement handler */ }"
VALUE_HANDLER_STUB = "(value) { /* TODO: Implement handler */ }"
NAVIGATE_STUB = "() { /* TODO: Navigate */ }"
FALLBACK_TAG = "Container"

# Source attribute spellings folded onto one canonical name
ATTRIBUTE_ALIASES = {
    "class": "className",
    "for": "htmlFor",
    "onclick": "onClick",
    "onchange": "onChange",
    "onsubmit": "onSubmit",
}

INPUT_TYPE_PROPERTIES = {
    "password": ("obscureText", "true"),
    "email": ("keyboardType", "TextInputType.emailAddress"),
    "number": ("keyboardType", "TextInputType.number"),
    "tel": ("keyboardType", "TextInputType.phone"),
    "url": ("keyboardType", "TextInputType.url"),
}


@dataclass
class LoweringResult:
    root: WidgetNode
    class_names: Tuple[str, ...] = ()
    custom_components: Tuple[str, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()


@dataclass
class _Attribute:
    name: str
    value: Optional[Node]  # raw attribute value node, None when bare
    source_tag: str
    mapping: Optional[ElementMapping]
    node: Node

    @property
    def expression(self) -> Optional[Node]:
        return attribute_expression(self.value)

    @property
    def target_tag(self) -> str:
        return self.mapping.target_tag if self.mapping else FALLBACK_TAG

    def string_value(self) -> Optional[str]:
        """Attribute value when it is a plain string literal."""
        expr = self.expression
        if expr is not None and expr.type in STRING_TYPES:
            return strip_quotes(node_text(expr))
        return None

    def describe(self) -> str:
        if self.value is None:
            return "true"
        return one_line(describe_expression(self.expression) or node_text(self.value))


@dataclass
class _Draft:
    properties: List[Property] = field(default_factory=list)
    comments: List[str] = field(default_factory=list)

    def add(self, key: Optional[str], value) -> None:
        self.properties.append(Property(key, value))

    def note(self, comment: str) -> None:
        self.comments.append(one_line(comment))

    def has_key(self, key: str) -> bool:
        return any(prop.key == key and not prop.is_comment for prop in self.properties)


class WidgetTreeBuilder:
    """Lowers JSX into the widget IR using the element-mapping table."""

    def __init__(
        self,
        mapping_table: Optional[Mapping[str, ElementMapping]] = None,
        config: Optional[WidgetFlowConfig] = None,
    ):
        self.config = config or WidgetFlowConfig()
        self.mapping_table = mapping_table if mapping_table is not None else build_mapping_table(self.config)
        self._class_names: Set[str] = set()
        self._custom_components: List[str] = []
        self._diagnostics: List[Diagnostic] = []
        self._attribute_lowerers: Dict[str, Callable[[_Attribute, _Draft], bool]] = {
            "onClick": self._lower_on_click,
            "onChange": self._lower_on_change,
            "onSubmit": self._lower_on_submit,
            "value": self._lower_value,
            "disabled": self._lower_disabled,
            "className": self._lower_class_name,
            "id": self._lower_id,
            "key": self._lower_key,
            "type": self._lower_type,
            "src": self._lower_src,
            "alt": self._lower_alt,
            "href": self._lower_href,
            "placeholder": self._lower_placeholder,
        }

    # --- entry points ---

    def build(self, ast, structure: Optional[ComponentStructure] = None) -> LoweringResult:
        """Locate the component's root JSX and lower it."""
        root, file_path = resolve_root(ast)
        self._reset()
        component_name = structure.name if structure is not None else None
        jsx_root = find_root_jsx(root, component_name, self.config)
        if jsx_root is None:
            logger.debug("No JSX root found in %s; emitting placeholder screen", file_path)
            self._diagnostics.append(
                Diagnostic(DiagnosticKind.STRUCTURAL_AMBIGUITY, "No JSX root found; emitted placeholder content")
            )
            widget = no_content_widget()
        else:
            widget = self._lower_node(jsx_root)
        return LoweringResult(
            root=widget,
            class_names=tuple(sorted(self._class_names)),
            custom_components=tuple(self._custom_components),
            diagnostics=tuple(self._diagnostics),
        )

    def lower(self, jsx_node: Node) -> WidgetNode:
        """Lower a single JSX element or fragment."""
        self._reset()
        return self._lower_node(jsx_node)

    @property
    def class_names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._class_names))

    @property
    def custom_components(self) -> Tuple[str, ...]:
        return tuple(self._custom_components)

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    def _reset(self) -> None:
        self._class_names = set()
        self._custom_components = []
        self._diagnostics = []

    # --- elements ---

    def _lower_node(self, node: Node) -> WidgetNode:
        node = unwrap_parens(node)
        if node is None or node.type not in JSX_ELEMENT_TYPES:
            return placeholder_widget(f"// TODO: Convert expression {describe_expression(node)}")
        if is_fragment(node):
            return self._lower_fragment(node)
        return self._lower_element(node)

    def _lower_fragment(self, node: Node) -> WidgetNode:
        entries = [entry for entry in self._lower_children(jsx_children(node)) if isinstance(entry, WidgetNode)]
        if not entries:
            return empty_widget()
        if len(entries) == 1:
            return entries[0]
        return vertical_wrapper(tuple(entries))

    def _lower_element(self, node: Node) -> WidgetNode:
        tag = jsx_tag_name(node) or ""
        mapping = self.mapping_table.get(tag)
        if mapping is not None:
            target_tag = mapping.target_tag
        elif is_custom_component_name(tag):
            target_tag = to_pascal_case(tag)
            if target_tag not in self._custom_components:
                self._custom_components.append(target_tag)
        else:
            target_tag = FALLBACK_TAG
            self._diagnostics.append(
                Diagnostic(DiagnosticKind.UNMAPPED_CONSTRUCT, f"No mapping for <{tag}>; used {FALLBACK_TAG}", location(node))
            )

        draft = _Draft()
        if mapping is None and not is_custom_component_name(tag):
            draft.note(f"// TODO: Unmapped element <{tag}>")

        for attribute in jsx_attributes(node):
            self._lower_attribute(attribute, tag, mapping, draft)

        if mapping is not None:
            for key, value in mapping.extras:
                if not draft.has_key(key):
                    draft.add(key, value)

        children = jsx_children(node)
        if mapping is not None and mapping.text_like:
            return self._assemble_text(node, tag, mapping, draft, children)
        return self._assemble(node, tag, target_tag, mapping, draft, children)

    def _assemble_text(self, node: Node, tag: str, mapping: ElementMapping, draft: _Draft, children: List[Node]) -> WidgetNode:
        runs: List[str] = []
        for segment in jsx_text_segments(children):
            self._collect_text(segment, runs, draft)
        payload = " ".join(run for run in runs if run)
        draft.properties.insert(0, Property(None, dart_string(payload)))
        return WidgetNode(
            mapping.target_tag,
            properties=tuple(draft.properties),
            comments=tuple(draft.comments),
            source_tag=tag,
        )

    def _collect_text(self, child: Union[str, Node], runs: List[str], draft: _Draft) -> None:
        if isinstance(child, str):
            runs.append(normalize_jsx_text(child))
        elif child.type == "jsx_expression":
            body = unwrap_parens(jsx_expression_body(child))
            if body is None:
                return
            if body.type in STRING_TYPES:
                runs.append(normalize_jsx_text(strip_quotes(node_text(body))))
            else:
                draft.note(f"// TODO: Convert expression {describe_expression(body)}")
        elif is_jsx(child):
            # inline markup inside text is flattened into the text payload
            inner_tag = jsx_tag_name(child)
            if inner_tag:
                draft.note(f"// TODO: Inline <{inner_tag}> flattened into text")
            for grandchild in jsx_text_segments(jsx_children(child)):
                self._collect_text(grandchild, runs, draft)

    def _assemble(
        self,
        node: Node,
        tag: str,
        target_tag: str,
        mapping: Optional[ElementMapping],
        draft: _Draft,
        children: List[Node],
    ) -> WidgetNode:
        entries = [entry for entry in self._lower_children(children) if isinstance(entry, WidgetNode)]
        child_key = mapping.child_key if mapping is not None else "child"

        if mapping is not None and mapping.navigational and not draft.has_key("onTap"):
            draft.add("onTap", NAVIGATE_STUB)

        if mapping is not None and mapping.list_like:
            return WidgetNode(
                target_tag,
                properties=tuple(draft.properties),
                comments=tuple(draft.comments),
                children=tuple(entries) if entries else None,
                source_tag=tag,
            )

        single_slot = mapping is None or mapping.accepts_single_child
        if entries and not single_slot:
            draft.note(f"// TODO: <{tag}> children are not supported by {target_tag}")
            self._diagnostics.append(
                Diagnostic(
                    DiagnosticKind.UNMAPPED_CONSTRUCT,
                    f"Dropped {len(entries)} child(ren) of <{tag}>",
                    location(node),
                )
            )
            entries = []

        child: Optional[WidgetNode] = None
        if len(entries) == 1:
            child = entries[0]
        elif len(entries) > 1:
            child = vertical_wrapper(tuple(entries))

        return WidgetNode(
            target_tag,
            properties=tuple(draft.properties),
            comments=tuple(draft.comments),
            child=child,
            child_key=child_key,
            source_tag=tag,
        )

    # --- children ---

    def _lower_children(self, children: List[Node]) -> List[ChildEntry]:
        entries: List[ChildEntry] = []
        for child in jsx_text_segments(children):
            if isinstance(child, str):
                text = normalize_jsx_text(child)
                if text:
                    entries.append(text_widget(text))
                continue
            kind = child.type
            if kind == "jsx_expression":
                entry = self._lower_expression_child(child)
                if entry is not None:
                    entries.append(entry)
            elif kind in JSX_ELEMENT_TYPES:
                entries.append(self._lower_node(child))
            elif kind == "ERROR":
                self._diagnostics.append(
                    Diagnostic(DiagnosticKind.MALFORMED_INPUT, "Skipped unparseable JSX child", location(child))
                )
        return entries

    def _lower_expression_child(self, container: Node) -> Optional[WidgetNode]:
        body = unwrap_parens(jsx_expression_body(container))
        if body is None:
            return None
        if body.type in STRING_TYPES:
            text = normalize_jsx_text(strip_quotes(node_text(body)))
            return text_widget(text) if text else None
        if is_jsx(body):
            return self._lower_node(body)

        if body.type == "ternary_expression" or _is_logical(body):
            comment = f"// TODO: Conditional rendering: {describe_expression(body)}"
        elif _is_map_call(body):
            comment = f"// TODO: Array.map rendering: {describe_expression(body)}"
        else:
            comment = f"// TODO: Convert expression {describe_expression(body)}"
        self._diagnostics.append(Diagnostic(DiagnosticKind.UNMAPPED_CONSTRUCT, comment[3:], location(body)))
        return placeholder_widget(comment, source_tag="#expression")

    # --- attributes ---

    def _lower_attribute(self, attribute: Node, tag: str, mapping: Optional[ElementMapping], draft: _Draft) -> None:
        if attribute.type == "jsx_expression":
            # `{...props}` spread
            draft.note(f"// TODO: Spread attributes {node_text(attribute)}")
            self._diagnostics.append(
                Diagnostic(DiagnosticKind.UNMAPPED_CONSTRUCT, "Spread attributes are not converted", location(attribute))
            )
            return
        raw_name, value = attribute_parts(attribute)
        name = ATTRIBUTE_ALIASES.get(raw_name, raw_name)
        attr = _Attribute(name=name, value=value, source_tag=tag, mapping=mapping, node=attribute)
        lowerer = self._attribute_lowerers.get(name)
        if lowerer is not None and lowerer(attr, draft):
            return
        self._unhandled(attr, draft)

    def _unhandled(self, attr: _Attribute, draft: _Draft) -> None:
        draft.note(f"// TODO: Convert {attr.name}: {attr.describe()}")
        self._diagnostics.append(
            Diagnostic(
                DiagnosticKind.UNMAPPED_CONSTRUCT,
                f"Attribute {attr.name} on <{attr.source_tag}> has no direct equivalent",
                location(attr.node),
            )
        )

    # Each lowerer returns False to fall through to the generic TODO comment.

    def _lower_on_click(self, attr: _Attribute, draft: _Draft) -> bool:
        key = "onPressed" if attr.mapping is not None and attr.mapping.button_like else "onTap"
        draft.add(key, HANDLER_STUB)
        return True

    def _lower_on_change(self, attr: _Attribute, draft: _Draft) -> bool:
        draft.add("onChanged", VALUE_HANDLER_STUB)
        return True

    def _lower_on_submit(self, attr: _Attribute, draft: _Draft) -> bool:
        draft.add("onSubmitted", VALUE_HANDLER_STUB)
        return True

    def _lower_value(self, attr: _Attribute, draft: _Draft) -> bool:
        if attr.target_tag == "TextField":
            draft.properties.append(Property("controller", "TODO: Use TextEditingController for value", is_comment=True))
            return True
        expr = attr.expression
        if expr is None:
            return False
        if expr.type in STRING_TYPES:
            draft.add("value", dart_string(strip_quotes(node_text(expr))))
            return True
        if expr.type in {"number", "true", "false"}:
            draft.add("value", node_text(expr))
            return True
        return False

    def _lower_disabled(self, attr: _Attribute, draft: _Draft) -> bool:
        expr = attr.expression
        if attr.value is None or (expr is not None and expr.type == "true"):
            draft.add("enabled", "false")
        elif expr is not None and expr.type == "false":
            draft.add("enabled", "true")
        elif expr is not None and expr.type in STRING_TYPES:
            draft.add("enabled", "true" if strip_quotes(node_text(expr)) == "false" else "false")
        elif expr is not None and expr.type in {"identifier", "member_expression"}:
            draft.add("enabled", f"!{node_text(expr)}")
        elif expr is not None:
            draft.add("enabled", f"!({node_text(expr)})")
        else:
            return False
        return True

    def _lower_class_name(self, attr: _Attribute, draft: _Draft) -> bool:
        expr = attr.expression
        if expr is None:
            return False
        text = class_name_text(expr)
        if text:
            self._class_names.update(text.split())
        else:
            text = one_line(describe_expression(expr))
        limit = self.config.class_name_comment_limit
        if len(text) > limit:
            text = text[: limit - 3] + "..."
        draft.note(f"// TODO: Apply className: {text} (styling)")
        return True

    def _lower_id(self, attr: _Attribute, draft: _Draft) -> bool:
        value = attr.string_value()
        if value is None:
            return False
        draft.add("key", f"ValueKey({dart_string(value)})")
        return True

    def _lower_key(self, attr: _Attribute, draft: _Draft) -> bool:
        value = attr.string_value()
        if value is not None:
            draft.add("key", f"ValueKey({dart_string(value)})")
            return True
        expr = attr.expression
        if expr is not None and expr.type in {"identifier", "member_expression", "number"}:
            draft.add("key", f"ValueKey({node_text(expr)})")
            return True
        return False

    def _lower_type(self, attr: _Attribute, draft: _Draft) -> bool:
        if attr.source_tag != "input":
            return False
        value = attr.string_value()
        lowered = INPUT_TYPE_PROPERTIES.get(value or "")
        if lowered is None:
            return False
        draft.add(*lowered)
        return True

    def _lower_src(self, attr: _Attribute, draft: _Draft) -> bool:
        if attr.source_tag != "img":
            return False
        value = attr.string_value()
        if value is None:
            return False
        provider = "NetworkImage" if value.startswith(("http://", "https://")) else "AssetImage"
        draft.add("image", f"{provider}({dart_string(value)})")
        return True

    def _lower_alt(self, attr: _Attribute, draft: _Draft) -> bool:
        value = attr.string_value()
        if attr.source_tag != "img" or value is None:
            return False
        draft.add("semanticLabel", dart_string(value))
        return True

    def _lower_href(self, attr: _Attribute, draft: _Draft) -> bool:
        if attr.source_tag != "a":
            return False
        draft.note(f"// TODO: Navigate to {attr.describe()}")
        return True

    def _lower_placeholder(self, attr: _Attribute, draft: _Draft) -> bool:
        value = attr.string_value()
        if attr.target_tag != "TextField" or value is None:
            return False
        draft.add("decoration", f"InputDecoration(hintText: {dart_string(value)})")
        return True


def class_name_text(expr: Optional[Node], depth: int = 0) -> str:
    """Literal class-name text of a className expression.

    Strings and template quasis are read directly; a ``+`` concatenation is
    followed one level deep, so longer chains keep only their literal
    right-hand operand.
    """
    expr = unwrap_parens(expr)
    if expr is None:
        return ""
    if expr.type in STRING_TYPES:
        return one_line(strip_quotes(node_text(expr)))
    if expr.type == "template_string":
        quasis = [node_text(part) for part in expr.named_children if part.type == "string_fragment"]
        if not quasis and not any(part.type == "template_substitution" for part in expr.named_children):
            quasis = [strip_quotes(node_text(expr))]
        return " ".join(" ".join(quasis).split())
    if expr.type == "binary_expression" and depth < 1:
        operator = expr.child_by_field_name("operator")
        if node_text(operator) == "+":
            left = class_name_text(expr.child_by_field_name("left"), depth + 1)
            right = class_name_text(expr.child_by_field_name("right"), depth + 1)
            return " ".join(part for part in (left, right) if part)
    return ""


def _is_logical(node: Node) -> bool:
    if node.type != "binary_expression":
        return False
    return node_text(node.child_by_field_name("operator")) in {"&&", "||", "??"}


def _is_map_call(node: Node) -> bool:
    if node.type != "call_expression":
        return False
    function = node.child_by_field_name("function")
    if function is None or function.type != "member_expression":
        return False
    return node_text(function.child_by_field_name("property")) == "map"


def find_root_jsx(root: Node, component_name: Optional[str], config: Optional[WidgetFlowConfig] = None) -> Optional[Node]:
    """Root JSX of the component: named component, then default export, then first JSX in the file."""
    if component_name:
        for candidate in discover_components(root, config):
            if candidate.name != component_name:
                continue
            returned = _render_return(candidate.node) if candidate.kind == "class" else first_return_argument(candidate.node)
            if is_jsx(returned):
                return returned

    for node in walk(root):
        if node.type != "export_statement" or not any(child.type == "default" for child in node.children):
            continue
        exported = node.child_by_field_name("declaration") or node.child_by_field_name("value")
        exported = unwrap_parens(exported)
        if exported is None:
            continue
        if exported.type in {"class_declaration", "class"}:
            returned = _render_return(exported)
        elif exported.type in {"function_declaration", "function_expression", "arrow_function", "function"}:
            returned = first_return_argument(exported)
        else:
            returned = exported
        if is_jsx(returned):
            return returned

    for node in walk(root):
        if node.type == "ERROR":
            continue
        if is_jsx(node):
            return node
    return None


def _render_return(class_node: Node) -> Optional[Node]:
    body = class_node.child_by_field_name("body")
    for member in named_children(body):
        if member.type == "method_definition" and node_text(member.child_by_field_name("name")) == "render":
            return first_return_argument(member)
    return None


def lower_to_widget_tree(
    ast,
    structure: Optional[ComponentStructure] = None,
    config: Optional[WidgetFlowConfig] = None,
) -> WidgetNode:
    return WidgetTreeBuilder(config=config).build(ast, structure).root
