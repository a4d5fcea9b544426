"""React component to Flutter widget transformation."""

from .core import (
    analyze_state,
    analyze_structure,
    emit,
    lower_to_widget_tree,
    transform_file,
    transform_source,
)

__version__ = "0.1.0"

__all__ = [
    "analyze_structure",
    "analyze_state",
    "lower_to_widget_tree",
    "emit",
    "transform_source",
    "transform_file",
]
