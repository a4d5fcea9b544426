"""
Single-pass structural analysis of a component file.

Produces a ComponentStructure: component name and kind, imports/exports,
a JSX element census, attribute observations, hooks and a complexity bucket.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from tree_sitter import Node

from .config import WidgetFlowConfig
from .models import (
    COMPLEXITY_COMPLEX,
    COMPLEXITY_MODERATE,
    COMPLEXITY_SIMPLE,
    IMPORT_EXTERNAL,
    IMPORT_FRAMEWORK,
    IMPORT_RELATIVE,
    KIND_ARROW,
    KIND_CLASS,
    KIND_FUNCTIONAL,
    KIND_UNKNOWN,
    ComponentStructure,
    Diagnostic,
    DiagnosticKind,
    ExportRecord,
    ImportRecord,
    PropObservation,
)
from .treesitter import resolve_root
from .utils import (
    DECLARATION_LIST_TYPES,
    EVENT_ATTRIBUTE_RE,
    HOOK_NAME_RE,
    STRING_TYPES,
    attribute_parts,
    class_superclass,
    declarators,
    is_custom_component_name,
    is_fragment,
    jsx_expression_body,
    jsx_tag_name,
    location,
    node_text,
    normalize_jsx_text,
    returned_jsx,
    strip_quotes,
    unwrap_parens,
    value_category,
)

logger = logging.getLogger(__name__)

# Discovery priority: lower wins, ties broken by document order.
_DISCOVERY_ORDER = {"function_declaration": 0, "variable_declarator": 1, "class_declaration": 2}


@dataclass(frozen=True)
class ComponentCandidate:
    name: str
    kind: str
    node: Node  # the function or class node
    origin: str  # function_declaration | variable_declarator | class_declaration


def discover_components(root: Node, config: Optional[WidgetFlowConfig] = None) -> List[ComponentCandidate]:
    """All JSX-returning functions and component classes, in discovery order.

    Function declarations come first, then variable declarators initialized to
    a function, then classes extending a component base; the first entry is
    the file's component.
    """
    config = config or WidgetFlowConfig()
    found: List[ComponentCandidate] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR":
            continue
        if node.type == "function_declaration" and returned_jsx(node) is not None:
            name_node = node.child_by_field_name("name")
            found.append(ComponentCandidate(node_text(name_node) or "Anonymous", KIND_FUNCTIONAL, node, node.type))
        elif node.type == "variable_declarator":
            value = unwrap_parens(node.child_by_field_name("value"))
            if value is not None and value.type in {"arrow_function", "function_expression", "function"}:
                if returned_jsx(value) is not None:
                    name_node = node.child_by_field_name("name")
                    name = node_text(name_node) if name_node is not None and name_node.type == "identifier" else "Anonymous"
                    kind = KIND_ARROW if value.type == "arrow_function" else KIND_FUNCTIONAL
                    found.append(ComponentCandidate(name, kind, value, node.type))
        elif node.type in {"function_expression", "function"} and _is_default_export(node):
            # `export default function () {...}` has no declaration node of its own
            if returned_jsx(node) is not None:
                found.append(ComponentCandidate("Anonymous", KIND_FUNCTIONAL, node, "function_declaration"))
        elif node.type == "class" and _is_default_export(node):
            superclass = class_superclass(node)
            if superclass and superclass in config.component_base_classes:
                found.append(ComponentCandidate("Anonymous", KIND_CLASS, node, "class_declaration"))
        elif node.type == "class_declaration":
            superclass = class_superclass(node)
            if superclass and superclass in config.component_base_classes:
                name_node = node.child_by_field_name("name")
                found.append(ComponentCandidate(node_text(name_node) or "Anonymous", KIND_CLASS, node, node.type))
        stack.extend(reversed(node.children))
    # sorted() is stable, so document order survives inside each origin
    return sorted(found, key=lambda candidate: _DISCOVERY_ORDER[candidate.origin])


def _is_default_export(node: Node) -> bool:
    parent = node.parent
    return parent is not None and parent.type == "export_statement" and any(
        child.type == "default" for child in parent.children
    )


class StructureAnalyzer:
    """Walks a component syntax tree once and summarizes its structure."""

    def __init__(self, config: Optional[WidgetFlowConfig] = None):
        self.config = config or WidgetFlowConfig()

    def analyze(self, ast, file_path: Optional[str] = None) -> ComponentStructure:
        root, file_path = resolve_root(ast, file_path)
        state = _WalkState()

        stack = [(root, 0)]
        while stack:
            node, depth = stack.pop()
            kind = node.type

            if kind == "ERROR":
                state.diagnostics.append(
                    Diagnostic(DiagnosticKind.MALFORMED_INPUT, "Skipped unparseable syntax", location(node))
                )
                continue
            if kind == "import_statement":
                self._visit_import(node, state)
            elif kind == "export_statement":
                self._visit_export(node, state)
            elif kind == "call_expression":
                self._visit_call(node, state)
            elif kind in {"jsx_element", "jsx_self_closing_element"}:
                depth += 1
                state.max_depth = max(state.max_depth, depth)
                if not is_fragment(node):
                    self._visit_jsx_element(node, state)
            elif kind == "jsx_text":
                self._record_text(node_text(node), state)
            elif kind == "jsx_expression" and node.parent is not None and node.parent.type == "jsx_element":
                body = jsx_expression_body(node)
                if body is not None and body.type in STRING_TYPES:
                    self._record_text(strip_quotes(node_text(body)), state)

            for child in reversed(node.children):
                stack.append((child, depth))

        name, component_kind = self._resolve_component(root, state)
        return self._build(file_path, name, component_kind, state)

    # --- visitors ---

    def _visit_import(self, node: Node, state: "_WalkState") -> None:
        source = strip_quotes(node_text(node.child_by_field_name("source")))
        if not source:
            return
        default: Optional[str] = None
        namespace: Optional[str] = None
        named: List[str] = []
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    default = node_text(part)
                elif part.type == "namespace_import":
                    idents = [c for c in part.named_children if c.type == "identifier"]
                    if idents:
                        namespace = node_text(idents[0])
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type == "import_specifier":
                            imported = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                            if imported is not None:
                                named.append(node_text(imported))
        state.imports.append(
            ImportRecord(
                source=source,
                default=default,
                named=tuple(named),
                namespace=namespace,
                classification=self._classify_import(source),
            )
        )

    def _classify_import(self, source: str) -> str:
        if source.startswith((".", "/")):
            return IMPORT_RELATIVE
        if self.config.is_framework_import(source):
            return IMPORT_FRAMEWORK
        return IMPORT_EXTERNAL

    def _visit_export(self, node: Node, state: "_WalkState") -> None:
        is_default = any(child.type == "default" for child in node.children)
        declaration = node.child_by_field_name("declaration")
        if is_default:
            state.is_default_export = True
            value = node.child_by_field_name("value")
            name = "Anonymous"
            if declaration is not None and declaration.type in {"function_declaration", "class_declaration"}:
                name = node_text(declaration.child_by_field_name("name")) or "Anonymous"
            elif value is not None and value.type == "identifier":
                name = node_text(value)
                state.default_export_identifier = name
            state.exports.append(ExportRecord(name=name, kind="default"))
            return

        for child in node.named_children:
            if child.type != "export_clause":
                continue
            for spec in child.named_children:
                if spec.type == "export_specifier":
                    exported = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                    state.exports.append(ExportRecord(name=node_text(exported), kind="named"))
        if declaration is None:
            return
        if declaration.type in {"function_declaration", "class_declaration"}:
            name_node = declaration.child_by_field_name("name")
            if name_node is not None:
                state.exports.append(ExportRecord(name=node_text(name_node), kind="named"))
        elif declaration.type in DECLARATION_LIST_TYPES:
            for declarator in declarators(declaration):
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    state.exports.append(ExportRecord(name=node_text(name_node), kind="named"))

    def _visit_call(self, node: Node, state: "_WalkState") -> None:
        function = node.child_by_field_name("function")
        if function is None or function.type != "identifier":
            return
        hook_name = node_text(function)
        if not HOOK_NAME_RE.match(hook_name):
            return
        state.hooks.append(hook_name)
        if hook_name == "useState":
            state.has_state = True
        elif hook_name in {"useEffect", "useLayoutEffect"}:
            state.has_effects = True

    def _visit_jsx_element(self, node: Node, state: "_WalkState") -> None:
        tag = jsx_tag_name(node) or "Unknown"
        state.elements[tag] = state.elements.get(tag, 0) + 1
        if is_custom_component_name(tag):
            if tag not in state.custom_components:
                state.custom_components.append(tag)
        else:
            state.html_elements[tag] = state.html_elements.get(tag, 0) + 1

        tag_node = node.child_by_field_name("open_tag") if node.type == "jsx_element" else node
        for attribute in tag_node.named_children if tag_node is not None else []:
            if attribute.type != "jsx_attribute":
                continue
            name, value = attribute_parts(attribute)
            if not name:
                continue
            state.attributes[name] = state.attributes.get(name, 0) + 1
            category, observed = value_category(value)
            state.observations.append(PropObservation(name=name, value_type=category, value=observed, element=tag))
            if name == "className" and category == "string":
                state.class_names.update(token for token in observed.split() if token)
            if EVENT_ATTRIBUTE_RE.match(name) and name not in state.event_handlers:
                state.event_handlers.append(name)

    def _record_text(self, raw: str, state: "_WalkState") -> None:
        text = normalize_jsx_text(raw)
        if not text:
            return
        state.text_node_count += 1
        if len(state.text_samples) < self.config.text_sample_limit:
            limit = self.config.text_sample_length
            state.text_samples.append(text[:limit] + "..." if len(text) > limit else text)

    # --- resolution ---

    def _resolve_component(self, root: Node, state: "_WalkState"):
        candidates = discover_components(root, self.config)
        if len(candidates) > 1:
            names = ", ".join(candidate.name for candidate in candidates)
            state.diagnostics.append(
                Diagnostic(
                    DiagnosticKind.STRUCTURAL_AMBIGUITY,
                    f"Multiple component candidates ({names}); using {candidates[0].name}",
                    location(candidates[0].node),
                )
            )
        if candidates:
            return candidates[0].name, candidates[0].kind
        if state.default_export_identifier:
            return state.default_export_identifier, KIND_UNKNOWN
        state.diagnostics.append(
            Diagnostic(DiagnosticKind.STRUCTURAL_AMBIGUITY, "No JSX-returning component found")
        )
        return None, KIND_UNKNOWN

    def _build(self, file_path: str, name: Optional[str], kind: str, state: "_WalkState") -> ComponentStructure:
        total_elements = sum(state.elements.values())
        total_props = sum(state.attributes.values())
        complexity = classify_complexity(total_elements, state.max_depth, total_props, len(state.hooks))
        logger.debug(
            "Structure of %s: component=%s kind=%s elements=%d depth=%d complexity=%s",
            file_path, name, kind, total_elements, state.max_depth, complexity,
        )
        return ComponentStructure(
            file_path=file_path,
            name=name,
            kind=kind,
            is_page=self.config.is_page_path(file_path),
            is_default_export=state.is_default_export,
            imports=tuple(state.imports),
            exports=tuple(state.exports),
            jsx_elements=dict(state.elements),
            attributes=dict(state.attributes),
            class_names=tuple(sorted(state.class_names)),
            text_samples=tuple(state.text_samples),
            custom_components=tuple(state.custom_components),
            html_elements=dict(state.html_elements),
            hooks=tuple(state.hooks),
            event_handlers=tuple(state.event_handlers),
            max_depth=state.max_depth,
            complexity=complexity,
            has_state=state.has_state,
            has_effects=state.has_effects,
            text_node_count=state.text_node_count,
            prop_observations=tuple(state.observations),
            diagnostics=tuple(state.diagnostics),
        )


class _WalkState:
    def __init__(self):
        self.imports: List[ImportRecord] = []
        self.exports: List[ExportRecord] = []
        self.is_default_export = False
        self.default_export_identifier: Optional[str] = None
        self.elements: Dict[str, int] = {}
        self.html_elements: Dict[str, int] = {}
        self.attributes: Dict[str, int] = {}
        self.custom_components: List[str] = []
        self.class_names: Set[str] = set()
        self.observations: List[PropObservation] = []
        self.event_handlers: List[str] = []
        self.hooks: List[str] = []
        self.has_state = False
        self.has_effects = False
        self.text_samples: List[str] = []
        self.text_node_count = 0
        self.max_depth = 0
        self.diagnostics: List[Diagnostic] = []


def classify_complexity(total_elements: int, max_depth: int, total_props: int, hook_count: int) -> str:
    if total_elements > 20 or max_depth > 5 or total_props > 15 or hook_count > 3:
        return COMPLEXITY_COMPLEX
    if total_elements > 10 or max_depth > 3 or total_props > 8 or hook_count > 1:
        return COMPLEXITY_MODERATE
    return COMPLEXITY_SIMPLE


def analyze_structure(ast, file_path: Optional[str] = None, config: Optional[WidgetFlowConfig] = None) -> ComponentStructure:
    return StructureAnalyzer(config).analyze(ast, file_path)
