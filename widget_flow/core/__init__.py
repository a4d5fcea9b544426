"""
Unified interface for turning React component source into Flutter widget code.

The four stages can be run one at a time:

    structure = analyze_structure(parsed)
    state = analyze_state(parsed)
    widget = lower_to_widget_tree(parsed, structure)
    code = emit(widget)

or all at once with ``transform_source`` / ``transform_file``.
"""

from .composition import CompositionGraph, build_composition_graph, composition_tree
from .config import WidgetFlowConfig, load_config
from .emitter import WidgetEmitter, emit
from .mappings import ELEMENT_MAPPINGS, MAPPING_TABLE_VERSION, ElementMapping, build_mapping_table
from .models import ComponentStructure, Diagnostic, DiagnosticKind, StateAnalysis
from .pipeline import TransformResult, transform_file, transform_source
from .screen_generator import generate_screen
from .state_analyzer import StateAnalyzer, analyze_state
from .structure_analyzer import StructureAnalyzer, analyze_structure
from .treesitter import ParsedSource, parse_component
from .widget_builder import WidgetTreeBuilder, lower_to_widget_tree
from .widget_ir import Property, WidgetNode

__all__ = [
    "analyze_structure",
    "analyze_state",
    "lower_to_widget_tree",
    "emit",
    "transform_source",
    "transform_file",
    "generate_screen",
    "build_composition_graph",
    "composition_tree",
    "build_mapping_table",
    "load_config",
    "parse_component",
    "ComponentStructure",
    "CompositionGraph",
    "Diagnostic",
    "DiagnosticKind",
    "ElementMapping",
    "ELEMENT_MAPPINGS",
    "MAPPING_TABLE_VERSION",
    "ParsedSource",
    "Property",
    "StateAnalysis",
    "StateAnalyzer",
    "StructureAnalyzer",
    "TransformResult",
    "WidgetEmitter",
    "WidgetFlowConfig",
    "WidgetNode",
    "WidgetTreeBuilder",
]
