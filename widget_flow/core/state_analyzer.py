"""
Semantic passes over a component syntax tree.

Each pass is independent and read-only: hooks, props, state variables,
event handlers, component composition and class lifecycle methods.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from .config import WidgetFlowConfig
from .models import (
    KIND_CLASS,
    CallbackHook,
    ComponentUsage,
    ContextHook,
    CustomHook,
    Diagnostic,
    DiagnosticKind,
    EffectHook,
    EventHandlerRecord,
    HookRecord,
    LifecycleSummary,
    Location,
    MemoHook,
    PropPassing,
    PropRecord,
    ReducerHook,
    RefHook,
    StateAnalysis,
    StateHook,
    StateVariable,
    UsageLocation,
)
from .structure_analyzer import discover_components
from .treesitter import resolve_root
from .utils import (
    DECLARATION_LIST_TYPES,
    EVENT_ATTRIBUTE_RE,
    FUNCTION_TYPES,
    HOOK_NAME_RE,
    STRING_TYPES,
    attribute_expression,
    attribute_parts,
    call_arguments,
    callee_name,
    capitalize_first,
    error_nodes,
    extract_dependencies,
    function_body,
    infer_type,
    is_custom_component_name,
    is_fragment,
    jsx_attributes,
    jsx_tag_name,
    literal_value,
    location,
    named_children,
    node_text,
    strip_quotes,
    unwrap_parens,
)

logger = logging.getLogger(__name__)

BUILTIN_HOOKS = {
    "useState", "useEffect", "useLayoutEffect", "useContext", "useRef",
    "useMemo", "useCallback", "useReducer",
}

LIFECYCLE_METHODS = (
    "componentDidMount",
    "componentDidUpdate",
    "componentWillUnmount",
    "componentWillMount",
    "componentWillUpdate",
    "componentWillReceiveProps",
    "shouldComponentUpdate",
    "getSnapshotBeforeUpdate",
)

_JSX_CONTEXT_TYPES = {
    "jsx_element", "jsx_self_closing_element", "jsx_expression", "jsx_attribute", "jsx_opening_element",
}
_SETTER_RE = re.compile(r"^set[A-Z]")


def _walk_valid(root: Node):
    """Pre-order walk that does not descend into ERROR nodes."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR":
            continue
        yield node
        stack.extend(reversed(node.children))


def _unwrap_await(node: Optional[Node]) -> Optional[Node]:
    node = unwrap_parens(node)
    while node is not None and node.type == "await_expression":
        inner = named_children(node)
        node = unwrap_parens(inner[0]) if inner else None
    return node


def _dedupe(items: List[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(items))


class StateAnalyzer:
    """Hook, prop, state, event-handler and composition analysis for one file."""

    def __init__(self, config: Optional[WidgetFlowConfig] = None):
        self.config = config or WidgetFlowConfig()

    def analyze(self, ast, file_path: Optional[str] = None) -> StateAnalysis:
        root, file_path = resolve_root(ast, file_path)
        hooks = self.analyze_hooks(root)
        state_hooks = [hook for hook in hooks if isinstance(hook, StateHook)]
        state_variables = self.analyze_state_variables(root, state_hooks)
        diagnostics = [
            Diagnostic(DiagnosticKind.MALFORMED_INPUT, "Skipped unparseable syntax", location(node))
            for node in error_nodes(root)
            if node.type == "ERROR"
        ]
        analysis = StateAnalysis(
            hooks=tuple(hooks),
            props=tuple(self.analyze_props(root)),
            state_variables=tuple(state_variables),
            event_handlers=tuple(self.analyze_event_handlers(root, state_variables)),
            composition=tuple(self.analyze_composition(root)),
            lifecycle=self.analyze_lifecycle(root),
            diagnostics=tuple(diagnostics),
        )
        logger.debug(
            "State of %s: %d hooks, %d props, %d state variables, %d handlers",
            file_path, len(analysis.hooks), len(analysis.props),
            len(analysis.state_variables), len(analysis.event_handlers),
        )
        return analysis

    # --- hooks ---

    def analyze_hooks(self, root: Node) -> List[HookRecord]:
        hooks: List[HookRecord] = []
        definitions: Dict[str, Location] = {}
        usages: Dict[str, List[Location]] = {}

        for node in _walk_valid(root):
            if node.type == "function_declaration":
                name = node_text(node.child_by_field_name("name"))
                if HOOK_NAME_RE.match(name):
                    definitions.setdefault(name, location(node))
            elif node.type == "variable_declarator":
                name_node = node.child_by_field_name("name")
                value = unwrap_parens(node.child_by_field_name("value"))
                name = node_text(name_node)
                if name_node is not None and name_node.type == "identifier" and HOOK_NAME_RE.match(name):
                    if value is not None and value.type in FUNCTION_TYPES:
                        definitions.setdefault(name, location(node))
            elif node.type == "call_expression":
                function = node.child_by_field_name("function")
                if function is None or function.type != "identifier":
                    continue
                hook_name = node_text(function)
                if not HOOK_NAME_RE.match(hook_name):
                    continue
                if hook_name in BUILTIN_HOOKS:
                    hooks.append(self._classify_hook(hook_name, node))
                else:
                    usages.setdefault(hook_name, []).append(location(node))

        # Usages without a definition in this file are dropped.
        for name, locations in usages.items():
            if name in definitions:
                hooks.append(CustomHook(name=name, definition=definitions[name], usages=tuple(locations)))
            else:
                logger.debug("Dropping usage of %s: no definition in this file", name)
        return hooks

    def _classify_hook(self, hook_name: str, call: Node) -> HookRecord:
        args = call_arguments(call)
        first = args[0] if args else None
        second = args[1] if len(args) > 1 else None
        where = location(call)

        if hook_name == "useState":
            variable, setter = self._state_binding(call)
            return StateHook(
                variable=variable,
                setter=setter,
                initial_value=literal_value(first),
                inferred_type=infer_type(first),
                location=where,
            )
        if hook_name in {"useEffect", "useLayoutEffect"}:
            return EffectHook(
                dependencies=extract_dependencies(second),
                has_cleanup=self._has_cleanup(first),
                side_effects=self._side_effects(first),
                hook_name=hook_name,
                location=where,
            )
        if hook_name == "useContext":
            context = unwrap_parens(first)
            if context is not None and context.type in {"identifier", "member_expression"}:
                context_name = node_text(context)
            else:
                context_name = "Unknown"
            return ContextHook(context_name=context_name, location=where)
        if hook_name == "useRef":
            declarator = call.parent
            name = "ref"
            if declarator is not None and declarator.type == "variable_declarator":
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    name = node_text(name_node)
            return RefHook(name=name, initial_value=literal_value(first), location=where)
        if hook_name == "useMemo":
            return MemoHook(dependencies=extract_dependencies(second), location=where)
        if hook_name == "useCallback":
            return CallbackHook(dependencies=extract_dependencies(second), location=where)
        reducer = None
        if first is not None:
            reducer = node_text(first) if first.type == "identifier" else "reducer"
        return ReducerHook(
            reducer=reducer,
            initial_state=literal_value(second) if second is not None else None,
            location=where,
        )

    def _state_binding(self, call: Node) -> Tuple[str, str]:
        declarator = call.parent
        if declarator is None or declarator.type != "variable_declarator":
            return "state", "setState"
        pattern = declarator.child_by_field_name("name")
        if pattern is None:
            return "state", "setState"
        if pattern.type == "identifier":
            variable = node_text(pattern)
            return variable, f"set{capitalize_first(variable)}"
        if pattern.type != "array_pattern":
            return "state", "setState"

        slots = _array_pattern_slots(pattern)
        variable_node = slots[0] if slots else None
        setter_node = slots[1] if len(slots) > 1 else None
        variable = node_text(variable_node) if variable_node is not None and variable_node.type == "identifier" else None
        if setter_node is not None and setter_node.type == "identifier":
            setter = node_text(setter_node)
        else:
            setter = f"set{capitalize_first(variable) if variable else 'State'}"
        return variable or "state", setter

    def _has_cleanup(self, effect: Optional[Node]) -> bool:
        effect = unwrap_parens(effect)
        if effect is None or effect.type not in FUNCTION_TYPES:
            return False
        body = function_body(effect)
        if body is None:
            return False
        if body.type == "statement_block":
            return any(
                statement.type == "return_statement" and named_children(statement)
                for statement in named_children(body)
            )
        body = unwrap_parens(body)
        return body is not None and body.type in FUNCTION_TYPES

    def _side_effects(self, effect: Optional[Node]) -> Tuple[str, ...]:
        effect = unwrap_parens(effect)
        if effect is None or effect.type not in FUNCTION_TYPES:
            return ()
        tags: List[str] = []
        for expression in _top_level_expressions(effect):
            expression = _unwrap_await(expression)
            if expression is None or expression.type != "call_expression":
                continue
            callee = callee_name(expression)
            lowered = callee.lower()
            if "fetch" in lowered or "api" in lowered or "axios" in lowered:
                tags.append("api-call")
            if "router" in lowered or "navigate" in lowered:
                tags.append("navigation")
            if _SETTER_RE.match(callee) or ("set" in lowered and "state" in lowered):
                tags.append("state-update")
        return _dedupe(tags)

    # --- props ---

    def analyze_props(self, root: Node) -> List[PropRecord]:
        candidates = discover_components(root, self.config)
        component = candidates[0] if candidates else None
        records: Dict[str, dict] = {}

        if component is not None and component.kind != KIND_CLASS:
            self._read_parameter_props(component.node, records)

        for node in _walk_valid(root):
            members = self._props_type_members(node)
            for name, type_name, optional in members:
                record = records.get(name)
                if record is None:
                    records[name] = {"name": name, "type": type_name, "required": not optional, "default_value": None}
                else:
                    record["type"] = type_name
                    record["required"] = not optional

        body = function_body(component.node) if component is not None and component.kind != KIND_CLASS else None
        props: List[PropRecord] = []
        for name, record in records.items():
            usages: Tuple[Location, ...] = ()
            if body is not None and not name.startswith("..."):
                usages = tuple(
                    location(node)
                    for node in _walk_valid(body)
                    if node.type in {"identifier", "shorthand_property_identifier"} and node_text(node) == name
                )
            props.append(PropRecord(usage_locations=usages, **record))
        return props

    def _read_parameter_props(self, func: Node, records: Dict[str, dict]) -> None:
        first = _first_parameter(func)
        if first is None:
            return
        if first.type == "identifier":
            name = node_text(first)
            records[name] = {"name": name, "type": "object", "required": True, "default_value": None}
            return
        if first.type != "object_pattern":
            return
        for prop in named_children(first):
            name: Optional[str] = None
            default = None
            if prop.type == "shorthand_property_identifier_pattern":
                name = node_text(prop)
            elif prop.type == "object_assignment_pattern":
                name = node_text(prop.child_by_field_name("left"))
                default = literal_value(prop.child_by_field_name("right"))
            elif prop.type == "pair_pattern":
                key = prop.child_by_field_name("key")
                name = strip_quotes(node_text(key)) if key is not None else None
                value = prop.child_by_field_name("value")
                if value is not None and value.type == "assignment_pattern":
                    default = literal_value(value.child_by_field_name("right"))
            elif prop.type == "rest_pattern":
                rest = named_children(prop)
                rest_name = f"...{node_text(rest[0])}" if rest else "...rest"
                records[rest_name] = {"name": rest_name, "type": "object", "required": False, "default_value": None}
                continue
            if not name:
                continue
            existing = records.get(name)
            if existing is None:
                records[name] = {"name": name, "type": "unknown", "required": default is None, "default_value": default}
            elif default is not None:
                existing["default_value"] = default

    def _props_type_members(self, node: Node) -> List[Tuple[str, str, bool]]:
        if node.type == "interface_declaration":
            body = node.child_by_field_name("body")
        elif node.type == "type_alias_declaration":
            body = node.child_by_field_name("value")
            if body is None or body.type != "object_type":
                return []
        else:
            return []
        name = node_text(node.child_by_field_name("name"))
        if not name.endswith("Props") or body is None:
            return []
        members: List[Tuple[str, str, bool]] = []
        for member in named_children(body):
            if member.type != "property_signature":
                continue
            key = member.child_by_field_name("name")
            if key is None or key.type not in {"property_identifier", "identifier"}:
                continue
            optional = any(child.type == "?" for child in member.children)
            annotation = member.child_by_field_name("type")
            members.append((node_text(key), _type_name(annotation), optional))
        return members

    # --- state variables ---

    def analyze_state_variables(self, root: Node, state_hooks: List[StateHook]) -> List[StateVariable]:
        by_name = {hook.variable: hook for hook in state_hooks}
        setters = {hook.setter: hook.variable for hook in state_hooks}
        reads: Dict[str, List[UsageLocation]] = {name: [] for name in by_name}
        updates: Dict[str, List[UsageLocation]] = {name: [] for name in by_name}
        passed: Dict[str, List[PropPassing]] = {name: [] for name in by_name}

        for node in _walk_valid(root):
            if node.type in {"identifier", "shorthand_property_identifier"}:
                name = node_text(node)
                if name in by_name and not _is_binding(node):
                    point = location(node)
                    reads[name].append(UsageLocation(point.line, point.column, self._context(node)))
            elif node.type == "call_expression":
                function = node.child_by_field_name("function")
                if function is not None and function.type == "identifier" and node_text(function) in setters:
                    point = location(node)
                    updates[setters[node_text(function)]].append(
                        UsageLocation(point.line, point.column, self._context(function))
                    )
            elif node.type == "jsx_attribute":
                prop_name, value = attribute_parts(node)
                expression = attribute_expression(value) if value is not None and value.type == "jsx_expression" else None
                if expression is not None and expression.type == "identifier" and node_text(expression) in by_name:
                    passed[node_text(expression)].append(PropPassing(_host_tag(node), prop_name))

        return [
            StateVariable(
                name=hook.variable,
                initial_value=hook.initial_value,
                inferred_type=hook.inferred_type,
                setter_name=hook.setter,
                read_locations=tuple(reads[hook.variable]),
                update_locations=tuple(updates[hook.variable]),
                passed_as_props=tuple(passed[hook.variable]),
            )
            for hook in state_hooks
        ]

    def _context(self, node: Node) -> str:
        parent = node.parent
        depth = 0
        while parent is not None and depth < self.config.context_ancestor_limit:
            if parent.type in _JSX_CONTEXT_TYPES:
                return "jsx"
            if parent.type == "call_expression":
                return "call"
            if parent.type == "ternary_expression":
                return "conditional"
            parent = parent.parent
            depth += 1
        return "unknown"

    # --- event handlers ---

    def analyze_event_handlers(self, root: Node, state_variables: List[StateVariable]) -> List[EventHandlerRecord]:
        state_names = {variable.name for variable in state_variables}
        setter_names = {variable.setter_name for variable in state_variables}
        definitions = _function_definitions(root)
        handlers: List[EventHandlerRecord] = []

        for node in _walk_valid(root):
            if node.type != "jsx_attribute":
                continue
            event_type, value = attribute_parts(node)
            if not EVENT_ATTRIBUTE_RE.match(event_type):
                continue
            expression = attribute_expression(value)
            if expression is None:
                continue
            handler: Optional[Node] = None
            if expression.type in FUNCTION_TYPES:
                name = "inline"
                handler = expression
            elif expression.type == "identifier":
                name = node_text(expression)
                handler = definitions.get(name)
            elif expression.type == "member_expression":
                name = node_text(expression)
                prop = expression.child_by_field_name("property")
                handler = definitions.get(node_text(prop))
            else:
                name = node_text(expression)

            uses_state: List[str] = []
            actions: List[str] = []
            if handler is not None:
                for statement_expression in _top_level_expressions(handler):
                    _inspect_handler_expression(statement_expression, state_names, setter_names, uses_state, actions)
            handlers.append(
                EventHandlerRecord(
                    name=name,
                    event_type=event_type,
                    uses_state=_dedupe(uses_state),
                    actions=_dedupe(actions),
                    location=location(node),
                )
            )
        return handlers

    # --- composition ---

    def analyze_composition(self, root: Node) -> List[ComponentUsage]:
        usages: List[ComponentUsage] = []
        for node in _walk_valid(root):
            if node.type not in {"jsx_element", "jsx_self_closing_element"} or is_fragment(node):
                continue
            tag = jsx_tag_name(node)
            if not tag or not is_custom_component_name(tag):
                continue
            props: Dict[str, object] = {}
            callbacks: List[str] = []
            for attribute in jsx_attributes(node):
                if attribute.type != "jsx_attribute":
                    continue
                prop_name, value = attribute_parts(attribute)
                props[prop_name] = _composition_value(value)
                expression = attribute_expression(value) if value is not None and value.type == "jsx_expression" else None
                if expression is not None and expression.type in FUNCTION_TYPES:
                    callbacks.append(prop_name)
            usages.append(
                ComponentUsage(component_name=tag, props=props, callbacks=tuple(callbacks), location=location(node))
            )
        return usages

    # --- class lifecycle ---

    def analyze_lifecycle(self, root: Node) -> LifecycleSummary:
        methods: List[str] = []
        has_constructor = False
        has_state_init = False
        state_init = None
        for node in _walk_valid(root):
            if node.type == "method_definition":
                name = node_text(node.child_by_field_name("name"))
                if name == "constructor":
                    has_constructor = True
                    for expression in _top_level_expressions(node):
                        if expression.type != "assignment_expression":
                            continue
                        if node_text(expression.child_by_field_name("left")).replace(" ", "") == "this.state":
                            has_state_init = True
                            state_init = literal_value(expression.child_by_field_name("right"))
                elif name in LIFECYCLE_METHODS:
                    methods.append(name)
            elif node.type == "public_field_definition":
                if node_text(node.child_by_field_name("name")) == "state":
                    has_state_init = True
                    state_init = literal_value(node.child_by_field_name("value"))
        return LifecycleSummary(
            methods=tuple(methods),
            has_constructor=has_constructor,
            has_state_init=has_state_init,
            state_init=state_init,
        )


def _array_pattern_slots(pattern: Node) -> List[Optional[Node]]:
    """Positional elements of an array pattern, with ``None`` for holes."""
    slots: List[Optional[Node]] = []
    current: Optional[Node] = None
    for child in pattern.children:
        if child.type == "[":
            continue
        if child.type in {",", "]"}:
            slots.append(current)
            current = None
        elif child.is_named and child.type != "comment":
            current = child
    while slots and slots[-1] is None:
        slots.pop()
    return slots


def _is_binding(node: Node) -> bool:
    parent = node.parent
    if parent is None:
        return False
    if parent.type in {"array_pattern", "object_pattern", "rest_pattern"}:
        return True
    if parent.type == "variable_declarator" and parent.child_by_field_name("name") == node:
        return True
    return False


def _host_tag(attribute: Node) -> str:
    parent = attribute.parent
    if parent is None:
        return "unknown"
    name = parent.child_by_field_name("name")
    return node_text(name) if name is not None else "unknown"


def _first_parameter(func: Node) -> Optional[Node]:
    single = func.child_by_field_name("parameter")
    if single is not None:
        return single
    params = named_children(func.child_by_field_name("parameters"))
    if not params:
        return None
    first = params[0]
    if first.type in {"required_parameter", "optional_parameter"}:
        pattern = first.child_by_field_name("pattern")
        return pattern if pattern is not None else (named_children(first) or [None])[0]
    if first.type == "assignment_pattern":
        return first.child_by_field_name("left")
    return first


def _type_name(annotation: Optional[Node]) -> str:
    if annotation is None:
        return "unknown"
    inner = named_children(annotation) if annotation.type == "type_annotation" else [annotation]
    if not inner:
        return "unknown"
    node = inner[0]
    if node.type == "predefined_type":
        return node_text(node)
    if node.type == "type_identifier":
        return node_text(node)
    if node.type == "generic_type":
        return node_text(node.child_by_field_name("name")) or "unknown"
    if node.type == "array_type":
        return "array"
    if node.type == "function_type":
        return "function"
    if node.type == "object_type":
        return "object"
    return "unknown"


def _top_level_expressions(func: Node) -> List[Node]:
    """Expressions of a function's top-level statements (or its expression body)."""
    body = function_body(func)
    if body is None:
        return []
    if body.type != "statement_block":
        return [unwrap_parens(body)]
    expressions: List[Node] = []
    for statement in named_children(body):
        if statement.type == "expression_statement":
            inner = named_children(statement)
            if inner:
                expressions.append(unwrap_parens(inner[0]))
        elif statement.type in DECLARATION_LIST_TYPES:
            for declarator in statement.named_children:
                if declarator.type == "variable_declarator":
                    value = declarator.child_by_field_name("value")
                    if value is not None:
                        expressions.append(unwrap_parens(value))
    return [expression for expression in expressions if expression is not None]


def _inspect_handler_expression(
    expression: Node,
    state_names: Set[str],
    setter_names: Set[str],
    uses_state: List[str],
    actions: List[str],
) -> None:
    expression = _unwrap_await(expression)
    if expression is None:
        return
    if expression.type == "identifier":
        name = node_text(expression)
        if name in state_names:
            uses_state.append(name)
        if name in setter_names:
            actions.append("setState")
        return
    if expression.type != "call_expression":
        return
    callee = callee_name(expression)
    lowered = callee.lower()
    if callee in setter_names:
        actions.append("setState")
    else:
        if "fetch" in lowered or "api" in lowered or "axios" in lowered:
            actions.append("apiCall")
        if "router" in lowered or "navigate" in lowered:
            actions.append("navigation")
    for argument in call_arguments(expression):
        if argument.type == "identifier" and node_text(argument) in state_names:
            uses_state.append(node_text(argument))


def _function_definitions(root: Node) -> Dict[str, Node]:
    """Same-file function definitions by name; the first definition wins."""
    definitions: Dict[str, Node] = {}
    for node in _walk_valid(root):
        if node.type in {"function_declaration", "method_definition"}:
            name = node_text(node.child_by_field_name("name"))
            if name:
                definitions.setdefault(name, node)
        elif node.type in {"variable_declarator", "public_field_definition"}:
            value = unwrap_parens(node.child_by_field_name("value"))
            name = node_text(node.child_by_field_name("name"))
            if name and value is not None and value.type in FUNCTION_TYPES:
                definitions.setdefault(name, value)
    return definitions


def _composition_value(value: Optional[Node]):
    if value is None:
        return True
    if value.type in STRING_TYPES:
        return strip_quotes(node_text(value))
    expression = attribute_expression(value)
    if expression is None:
        return None
    if expression.type in STRING_TYPES:
        return strip_quotes(node_text(expression))
    if expression.type in {"true", "false", "number"}:
        return literal_value(expression)
    if expression.type == "identifier":
        return node_text(expression)
    if expression.type in FUNCTION_TYPES:
        return "[function]"
    return "[expression]"


def analyze_state(ast, file_path: Optional[str] = None, config: Optional[WidgetFlowConfig] = None) -> StateAnalysis:
    return StateAnalyzer(config).analyze(ast, file_path)
