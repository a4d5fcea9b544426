"""
Cross-file component composition graph.

Nodes are analyzed components; edges are "renders" relations from a
component to the custom components used in its JSX, resolved to files
through relative imports where possible.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .models import ComponentStructure, ComponentUsage, PropRecord, StateAnalysis, to_jsonable

logger = logging.getLogger(__name__)

RESOLVABLE_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")

FileAnalysis = Union[Tuple[ComponentStructure, StateAnalysis], Any]


@dataclass(frozen=True)
class CompositionNode:
    file_path: str
    component_name: Optional[str]
    renders: Tuple[ComponentUsage, ...] = ()
    receives: Tuple[PropRecord, ...] = ()


@dataclass(frozen=True)
class CompositionEdge:
    source_file: str
    component_name: str
    target_file: Optional[str]  # None when the component could not be resolved
    props: Tuple[str, ...] = ()
    callbacks: Tuple[str, ...] = ()


@dataclass
class CompositionGraph:
    nodes: Dict[str, CompositionNode] = field(default_factory=dict)
    edges: List[CompositionEdge] = field(default_factory=list)

    def edges_from(self, file_path: str) -> List[CompositionEdge]:
        return [edge for edge in self.edges if edge.source_file == file_path]

    def edges_to(self, file_path: str) -> List[CompositionEdge]:
        return [edge for edge in self.edges if edge.target_file == file_path]

    def roots(self) -> List[str]:
        """Files no other file renders."""
        rendered = {edge.target_file for edge in self.edges if edge.target_file}
        return [path for path in self.nodes if path not in rendered]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": {path: to_jsonable(node) for path, node in self.nodes.items()},
            "edges": [to_jsonable(edge) for edge in self.edges],
        }


def _unpack(analysis: FileAnalysis) -> Tuple[ComponentStructure, StateAnalysis]:
    if isinstance(analysis, tuple):
        return analysis
    return analysis.structure, analysis.state


def build_composition_graph(files: Mapping[str, FileAnalysis]) -> CompositionGraph:
    """Build the graph from ``{file_path: (structure, state)}``.

    Values may also be pipeline results exposing ``structure`` and ``state``.
    """
    graph = CompositionGraph()
    analyses = {path: _unpack(analysis) for path, analysis in files.items()}
    known_paths = list(analyses)

    for path, (structure, state) in analyses.items():
        graph.nodes[path] = CompositionNode(
            file_path=path,
            component_name=structure.name,
            renders=tuple(state.composition),
            receives=tuple(state.props),
        )

    for path, (structure, state) in analyses.items():
        for usage in state.composition:
            target = _resolve_usage(path, usage.component_name, structure, known_paths)
            if target is None:
                logger.debug("Could not resolve <%s> rendered by %s", usage.component_name, path)
            graph.edges.append(
                CompositionEdge(
                    source_file=path,
                    component_name=usage.component_name,
                    target_file=target,
                    props=tuple(usage.props),
                    callbacks=tuple(usage.callbacks),
                )
            )
    return graph


def _resolve_usage(
    source_file: str,
    component_name: str,
    structure: ComponentStructure,
    known_paths: Iterable[str],
) -> Optional[str]:
    local_name = component_name.split(".")[0]
    for record in structure.imports:
        if not record.is_relative or local_name not in record.local_names:
            continue
        base = posixpath.normpath(posixpath.join(posixpath.dirname(source_file), record.source))
        return _match_path(base, known_paths)
    return None


def _match_path(base: str, known_paths: Iterable[str]) -> Optional[str]:
    candidates = [base]
    candidates.extend(base + ext for ext in RESOLVABLE_EXTENSIONS)
    candidates.extend(posixpath.join(base, "index" + ext) for ext in RESOLVABLE_EXTENSIONS)
    normalized = {posixpath.normpath(path): path for path in known_paths}
    for candidate in candidates:
        if candidate in normalized:
            return normalized[candidate]
    return None


def composition_tree(
    graph: CompositionGraph,
    entry_points: Optional[Iterable[str]] = None,
    max_depth: int = 10,
) -> List[Dict[str, Any]]:
    """Nested render tree from each entry point; each file is expanded once."""
    visited: set = set()
    entries = list(entry_points) if entry_points is not None else graph.roots()
    return [
        _subtree(graph, path, depth=0, max_depth=max_depth, visited=visited)
        for path in entries
        if path in graph.nodes
    ]


def _subtree(graph: CompositionGraph, path: str, depth: int, max_depth: int, visited: set) -> Dict[str, Any]:
    node = graph.nodes[path]
    entry: Dict[str, Any] = {"file": path, "component": node.component_name, "renders": []}
    if path in visited:
        entry["seen"] = True
        return entry
    visited.add(path)
    if depth >= max_depth:
        entry["truncated"] = True
        return entry
    for edge in graph.edges_from(path):
        if edge.target_file is not None and edge.target_file in graph.nodes:
            entry["renders"].append(_subtree(graph, edge.target_file, depth + 1, max_depth, visited))
        else:
            entry["renders"].append({"component": edge.component_name, "file": None, "renders": []})
    return entry
