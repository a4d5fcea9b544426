"""
Shared helpers for reading Tree-sitter JS/JSX/TS/TSX nodes.

All helpers are total: they return empty/None results for shapes they do not
recognize instead of raising.
"""

import html
import re
from typing import Any, Iterator, List, Optional, Tuple, Union

from tree_sitter import Node

from .models import Location

HOOK_NAME_RE = re.compile(r"^use[A-Z]")
EVENT_ATTRIBUTE_RE = re.compile(r"^on[A-Z]")

JSX_ELEMENT_TYPES = {"jsx_element", "jsx_self_closing_element"}
FUNCTION_TYPES = {"arrow_function", "function_expression", "function"}
DECLARATION_LIST_TYPES = {"lexical_declaration", "variable_declaration"}
STRING_TYPES = {"string", "jsx_string"}
COMMENT_TYPES = {"comment", "html_comment"}
JSX_TEXT_TYPES = {"jsx_text", "html_character_reference"}


def node_text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    text = node.text
    return text.decode("utf-8", errors="replace") if text is not None else ""


def strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] in "\"'`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def walk(node: Node) -> Iterator[Node]:
    """Pre-order depth-first walk over every node below (and including) ``node``."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def location(node: Node) -> Location:
    return Location(line=node.start_point[0] + 1, column=node.start_point[1])


def named_children(node: Optional[Node]) -> List[Node]:
    if node is None:
        return []
    return [child for child in node.named_children if child.type not in COMMENT_TYPES]


def unwrap_parens(node: Optional[Node]) -> Optional[Node]:
    while node is not None and node.type == "parenthesized_expression":
        inner = named_children(node)
        node = inner[0] if inner else None
    return node


def is_jsx(node: Optional[Node]) -> bool:
    return node is not None and node.type in JSX_ELEMENT_TYPES


def is_function(node: Optional[Node]) -> bool:
    return node is not None and node.type in FUNCTION_TYPES


def is_fragment(node: Node) -> bool:
    if node.type != "jsx_element":
        return False
    open_tag = node.child_by_field_name("open_tag")
    return open_tag is not None and open_tag.child_by_field_name("name") is None


def jsx_tag_name(node: Node) -> Optional[str]:
    """Tag name of a JSX element; ``None`` for fragments and non-JSX nodes."""
    if node.type == "jsx_self_closing_element":
        name_node = node.child_by_field_name("name")
    elif node.type == "jsx_element":
        open_tag = node.child_by_field_name("open_tag")
        name_node = open_tag.child_by_field_name("name") if open_tag is not None else None
    else:
        return None
    if name_node is None:
        return None
    return node_text(name_node).replace(" ", "")


def is_custom_component_name(name: str) -> bool:
    return bool(name) and (name[0].isupper() or "." in name)


def jsx_attributes(node: Node) -> List[Node]:
    """Attribute nodes in source order (``jsx_attribute`` or spread ``jsx_expression``)."""
    tag = node.child_by_field_name("open_tag") if node.type == "jsx_element" else node
    if tag is None:
        return []
    return [child for child in tag.named_children if child.type in {"jsx_attribute", "jsx_expression"}]


def attribute_parts(attribute: Node) -> Tuple[str, Optional[Node]]:
    """Split a ``jsx_attribute`` into its name and value node (``None`` when bare)."""
    parts = named_children(attribute)
    if not parts:
        return "", None
    name = node_text(parts[0])
    value = parts[1] if len(parts) > 1 else None
    return name, value


def jsx_expression_body(node: Optional[Node]) -> Optional[Node]:
    """Inner expression of a ``{...}`` container, ``None`` when empty."""
    if node is None or node.type != "jsx_expression":
        return node
    inner = named_children(node)
    return inner[0] if inner else None


def attribute_expression(value: Optional[Node]) -> Optional[Node]:
    """The expression an attribute value stands for, unwrapping ``{}`` containers."""
    if value is None:
        return None
    if value.type == "jsx_expression":
        return unwrap_parens(jsx_expression_body(value))
    return value


def jsx_children(node: Node) -> List[Node]:
    if node.type != "jsx_element":
        return []
    return [
        child
        for child in node.named_children
        if child.type not in {"jsx_opening_element", "jsx_closing_element"} and child.type not in COMMENT_TYPES
    ]


def normalize_jsx_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def jsx_text_segments(children: List[Node]) -> List[Union[str, Node]]:
    """Merge each run of adjacent text and character references into one decoded string.

    Non-text children are passed through unchanged and in order.
    """
    segments: List[Union[str, Node]] = []
    run: List[Node] = []
    for child in children:
        if child.type in JSX_TEXT_TYPES:
            run.append(child)
            continue
        if run:
            segments.append(_decode_text_run(run))
            run = []
        segments.append(child)
    if run:
        segments.append(_decode_text_run(run))
    return segments


def _decode_text_run(run: List[Node]) -> str:
    first, last = run[0], run[-1]
    parent = first.parent
    if parent is None or parent.text is None:
        raw = "".join(node_text(node) for node in run)
    else:
        # slice the parent so whitespace between the nodes survives
        start = first.start_byte - parent.start_byte
        end = last.end_byte - parent.start_byte
        raw = parent.text[start:end].decode("utf-8", errors="replace")
    return html.unescape(raw)


def function_body(func: Node) -> Optional[Node]:
    return func.child_by_field_name("body")


def returned_jsx(func: Optional[Node]) -> Optional[Node]:
    """JSX returned by a function: an explicit top-level ``return <JSX>`` or an implicit arrow body."""
    if func is None:
        return None
    body = function_body(func)
    if body is None:
        return None
    if body.type == "statement_block":
        for statement in named_children(body):
            if statement.type != "return_statement":
                continue
            returned = named_children(statement)
            argument = unwrap_parens(returned[0]) if returned else None
            if is_jsx(argument):
                return argument
        return None
    body = unwrap_parens(body)
    return body if is_jsx(body) else None


def first_return_argument(func: Optional[Node]) -> Optional[Node]:
    """Argument of the first top-level ``return`` (or an implicit arrow body)."""
    if func is None:
        return None
    body = function_body(func)
    if body is None:
        return None
    if body.type != "statement_block":
        return unwrap_parens(body)
    for statement in named_children(body):
        if statement.type == "return_statement":
            returned = named_children(statement)
            if returned:
                return unwrap_parens(returned[0])
    return None


def declarators(node: Node) -> List[Node]:
    return [child for child in node.named_children if child.type == "variable_declarator"]


def class_superclass(node: Node) -> Optional[str]:
    """Text of the ``extends`` target of a class, without type arguments."""
    for child in node.named_children:
        if child.type != "class_heritage":
            continue
        for clause in child.named_children:
            if clause.type == "extends_clause":
                target = clause.child_by_field_name("value")
                if target is None:
                    parts = named_children(clause)
                    target = parts[0] if parts else None
                return node_text(target) or None
        # JavaScript grammar: `class_heritage` holds the expression directly
        parts = named_children(child)
        if parts:
            return node_text(parts[0]) or None
    return None


def callee_name(call: Node) -> str:
    return node_text(call.child_by_field_name("function"))


def call_arguments(call: Node) -> List[Node]:
    return named_children(call.child_by_field_name("arguments"))


def literal_value(node: Optional[Node]) -> Any:
    """Best-effort literal reading of an expression, without evaluating it."""
    node = unwrap_parens(node)
    if node is None:
        return None
    kind = node.type
    if kind in STRING_TYPES:
        return strip_quotes(node_text(node))
    if kind == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return "[expression]"
        return strip_quotes(node_text(node))
    if kind == "number":
        return _parse_number(node_text(node))
    if kind == "unary_expression" and node_text(node).startswith("-"):
        operand = named_children(node)
        if operand and operand[0].type == "number":
            value = _parse_number(node_text(operand[0]))
            return -value if isinstance(value, (int, float)) else node_text(node)
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind in {"null", "undefined"}:
        return None
    if kind == "array":
        return "[]"
    if kind == "object":
        return "{}"
    if kind == "identifier":
        return node_text(node)
    if kind == "call_expression":
        function = node.child_by_field_name("function")
        if function is not None and function.type == "identifier":
            return f"{node_text(function)}()"
    return "[expression]"


def _parse_number(text: str) -> Any:
    cleaned = text.replace("_", "")
    try:
        return int(cleaned)
    except ValueError:
        pass
    try:
        return float(cleaned)
    except ValueError:
        return text


def infer_type(node: Optional[Node]) -> str:
    """Type name of a literal initializer; ``unknown`` for anything non-literal."""
    node = unwrap_parens(node)
    if node is None:
        return "unknown"
    kind = node.type
    if kind in STRING_TYPES or kind == "template_string":
        return "string"
    if kind == "number" or (kind == "unary_expression" and any(c.type == "number" for c in node.named_children)):
        return "number"
    if kind in {"true", "false"}:
        return "boolean"
    if kind == "array":
        return "array"
    if kind == "object":
        return "object"
    return "unknown"


def value_category(value: Optional[Node]) -> Tuple[str, Any]:
    """Classify a JSX attribute value into a (category, value) pair."""
    if value is None:
        return "boolean", True
    if value.type in STRING_TYPES:
        return "string", strip_quotes(node_text(value))
    if value.type != "jsx_expression":
        return "expression", "[expression]"
    expr = attribute_expression(value)
    if expr is None:
        return "expression", "[expression]"
    kind = expr.type
    if kind in STRING_TYPES:
        return "string", strip_quotes(node_text(expr))
    if kind in {"true", "false"}:
        return "boolean", kind == "true"
    if kind == "number":
        return "number", _parse_number(node_text(expr))
    if kind == "object":
        return "object", "[object]"
    if kind == "array":
        return "array", "[array]"
    if kind == "identifier":
        return "identifier", node_text(expr)
    if kind in FUNCTION_TYPES:
        return "function", "[function]"
    return "expression", "[expression]"


def extract_dependencies(node: Optional[Node]) -> Tuple[str, ...]:
    if node is None or node.type != "array":
        return ()
    dependencies: List[str] = []
    for element in named_children(node):
        if element.type == "identifier":
            dependencies.append(node_text(element))
        elif element.type in STRING_TYPES:
            dependencies.append(strip_quotes(node_text(element)))
        else:
            dependencies.append("[dependency]")
    return tuple(dependencies)


def describe_expression(node: Optional[Node]) -> str:
    """Short human-readable rendering of an expression for diagnostic comments."""
    node = unwrap_parens(node)
    if node is None:
        return ""
    kind = node.type
    if kind in STRING_TYPES:
        return f'"{strip_quotes(node_text(node))}"'
    if kind in {"number", "true", "false", "identifier", "this", "null", "undefined"}:
        return node_text(node)
    if kind == "member_expression":
        obj = describe_expression(node.child_by_field_name("object"))
        prop = node.child_by_field_name("property")
        prop_text = node_text(prop) if prop is not None and prop.type == "property_identifier" else describe_expression(prop)
        return f"{obj}.{prop_text}"
    if kind == "call_expression":
        return f"{describe_expression(node.child_by_field_name('function'))}(...)"
    if kind == "object":
        return "{...}"
    if kind == "array":
        return "[...]"
    if kind == "ternary_expression":
        return "condition ? ... : ..."
    if kind == "template_string":
        return "`template string`"
    if kind == "binary_expression":
        operator = node.child_by_field_name("operator")
        return (
            f"{describe_expression(node.child_by_field_name('left'))} "
            f"{node_text(operator)} "
            f"{describe_expression(node.child_by_field_name('right'))}"
        )
    type_name = kind.replace("_expression", "").replace("_statement", "")
    return type_name or "..."


def capitalize_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def to_pascal_case(name: Optional[str]) -> str:
    if not name:
        return "Component"
    converted = re.sub(r"[-_](.)", lambda match: match.group(1).upper(), name)
    return capitalize_first(converted.replace(".", ""))


def error_nodes(root: Node) -> List[Node]:
    if not root.has_error:
        return []
    return [node for node in walk(root) if node.type == "ERROR" or node.is_missing]
