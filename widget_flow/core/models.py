"""
Core data models for facts extracted from component syntax trees.

This module contains pure data structures for representing analysis results
without any traversal logic. Every record is frozen once constructed.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

# Component kinds
KIND_FUNCTIONAL = "functional"
KIND_ARROW = "arrow"
KIND_CLASS = "class"
KIND_UNKNOWN = "unknown"

# Complexity buckets
COMPLEXITY_SIMPLE = "simple"
COMPLEXITY_MODERATE = "moderate"
COMPLEXITY_COMPLEX = "complex"

# Import classification
IMPORT_RELATIVE = "relative"
IMPORT_FRAMEWORK = "framework"
IMPORT_EXTERNAL = "external"


class DiagnosticKind(str, Enum):
    """Non-fatal conditions reported alongside best-effort results."""
    STRUCTURAL_AMBIGUITY = "structural_ambiguity"
    UNMAPPED_CONSTRUCT = "unmapped_construct"
    MALFORMED_INPUT = "malformed_input"
    BUDGET_EXCEEDED = "budget_exceeded"


@dataclass(frozen=True)
class Location:
    line: int  # 1-based
    column: int  # 0-based


@dataclass(frozen=True)
class UsageLocation:
    """A location plus the syntactic context an identifier was found in."""
    line: int
    column: int
    context: str = "unknown"  # "jsx" | "call" | "conditional" | "unknown"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    location: Optional[Location] = None


@dataclass(frozen=True)
class ImportRecord:
    source: str
    default: Optional[str] = None
    named: Tuple[str, ...] = ()
    namespace: Optional[str] = None
    classification: str = IMPORT_EXTERNAL

    @property
    def is_relative(self) -> bool:
        return self.classification == IMPORT_RELATIVE

    @property
    def local_names(self) -> Tuple[str, ...]:
        names = [self.default] if self.default else []
        names.extend(self.named)
        if self.namespace:
            names.append(self.namespace)
        return tuple(names)


@dataclass(frozen=True)
class ExportRecord:
    name: str
    kind: str  # "default" | "named"

    @property
    def is_default(self) -> bool:
        return self.kind == "default"


@dataclass(frozen=True)
class PropObservation:
    """One JSX attribute occurrence seen during the structure walk."""
    name: str
    value_type: str  # string | boolean | number | identifier | function | object | array | expression
    value: Any
    element: str


@dataclass(frozen=True)
class ComponentStructure:
    """Per-file structural summary of a UI component."""
    file_path: str
    name: Optional[str]
    kind: str
    is_page: bool = False
    is_default_export: bool = False
    imports: Tuple[ImportRecord, ...] = ()
    exports: Tuple[ExportRecord, ...] = ()
    jsx_elements: Mapping[str, int] = field(default_factory=dict)
    attributes: Mapping[str, int] = field(default_factory=dict)
    class_names: Tuple[str, ...] = ()
    text_samples: Tuple[str, ...] = ()
    custom_components: Tuple[str, ...] = ()
    html_elements: Mapping[str, int] = field(default_factory=dict)
    hooks: Tuple[str, ...] = ()
    event_handlers: Tuple[str, ...] = ()
    max_depth: int = 0
    complexity: str = COMPLEXITY_SIMPLE
    has_state: bool = False
    has_effects: bool = False
    text_node_count: int = 0
    prop_observations: Tuple[PropObservation, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()

    def __post_init__(self):
        _freeze_mappings(self, "jsx_elements", "attributes", "html_elements")

    @property
    def total_elements(self) -> int:
        return sum(self.jsx_elements.values())

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)


# --- Hook records (tagged by ``kind``) ---

@dataclass(frozen=True)
class StateHook:
    variable: str
    setter: str
    initial_value: Any
    inferred_type: str
    location: Optional[Location] = None
    kind: str = field(default="state", init=False)


@dataclass(frozen=True)
class EffectHook:
    dependencies: Tuple[str, ...]
    has_cleanup: bool
    side_effects: Tuple[str, ...] = ()
    hook_name: str = "useEffect"
    location: Optional[Location] = None
    kind: str = field(default="effect", init=False)


@dataclass(frozen=True)
class ContextHook:
    context_name: str
    location: Optional[Location] = None
    kind: str = field(default="context", init=False)


@dataclass(frozen=True)
class RefHook:
    name: str
    initial_value: Any
    location: Optional[Location] = None
    kind: str = field(default="ref", init=False)


@dataclass(frozen=True)
class MemoHook:
    dependencies: Tuple[str, ...]
    location: Optional[Location] = None
    kind: str = field(default="memo", init=False)


@dataclass(frozen=True)
class CallbackHook:
    dependencies: Tuple[str, ...]
    location: Optional[Location] = None
    kind: str = field(default="callback", init=False)


@dataclass(frozen=True)
class ReducerHook:
    reducer: Optional[str]
    initial_state: Any
    location: Optional[Location] = None
    kind: str = field(default="reducer", init=False)


@dataclass(frozen=True)
class CustomHook:
    name: str
    definition: Location
    usages: Tuple[Location, ...] = ()
    kind: str = field(default="custom", init=False)


HookRecord = Union[
    StateHook, EffectHook, ContextHook, RefHook, MemoHook, CallbackHook, ReducerHook, CustomHook
]


@dataclass(frozen=True)
class PropRecord:
    name: str
    type: str = "unknown"
    required: bool = True
    default_value: Any = None
    usage_locations: Tuple[Location, ...] = ()


@dataclass(frozen=True)
class PropPassing:
    host_component: str
    prop_name: str


@dataclass(frozen=True)
class StateVariable:
    name: str
    initial_value: Any
    inferred_type: str
    setter_name: str
    read_locations: Tuple[UsageLocation, ...] = ()
    update_locations: Tuple[UsageLocation, ...] = ()
    passed_as_props: Tuple[PropPassing, ...] = ()


@dataclass(frozen=True)
class EventHandlerRecord:
    name: str
    event_type: str
    uses_state: Tuple[str, ...] = ()
    actions: Tuple[str, ...] = ()  # "setState" | "apiCall" | "navigation"
    location: Optional[Location] = None


@dataclass(frozen=True)
class ComponentUsage:
    """A custom component rendered by this file, with the props passed to it."""
    component_name: str
    props: Mapping[str, Any] = field(default_factory=dict)
    callbacks: Tuple[str, ...] = ()
    location: Optional[Location] = None

    def __post_init__(self):
        _freeze_mappings(self, "props")


@dataclass(frozen=True)
class LifecycleSummary:
    methods: Tuple[str, ...] = ()
    has_constructor: bool = False
    has_state_init: bool = False
    state_init: Any = None


@dataclass(frozen=True)
class StateAnalysis:
    hooks: Tuple[HookRecord, ...] = ()
    props: Tuple[PropRecord, ...] = ()
    state_variables: Tuple[StateVariable, ...] = ()
    event_handlers: Tuple[EventHandlerRecord, ...] = ()
    composition: Tuple[ComponentUsage, ...] = ()
    lifecycle: LifecycleSummary = field(default_factory=LifecycleSummary)
    diagnostics: Tuple[Diagnostic, ...] = ()

    def hooks_of_kind(self, kind: str) -> Tuple[HookRecord, ...]:
        return tuple(hook for hook in self.hooks if hook.kind == kind)

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)


def _freeze_mappings(record: Any, *names: str) -> None:
    # frozen dataclasses only block rebinding; the mappings themselves become read-only views
    for name in names:
        object.__setattr__(record, name, MappingProxyType(dict(getattr(record, name))))


def to_jsonable(value: Any) -> Any:
    """Convert records (and nested containers of them) into JSON-ready data."""
    if is_dataclass(value) and not isinstance(value, type):
        return {item.name: to_jsonable(getattr(value, item.name)) for item in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value) if isinstance(value, (set, frozenset)) else value
        return [to_jsonable(item) for item in items]
    return value
