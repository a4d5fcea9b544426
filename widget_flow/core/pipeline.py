"""
End-to-end transformation of one component file:
parse -> structure -> state -> lower -> emit -> screen.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .config import WidgetFlowConfig
from .emitter import WidgetEmitter
from .models import ComponentStructure, Diagnostic, DiagnosticKind, StateAnalysis, to_jsonable
from .screen_generator import generate_screen
from .state_analyzer import StateAnalyzer
from .structure_analyzer import StructureAnalyzer
from .treesitter import parse_component
from .widget_builder import WidgetTreeBuilder
from .widget_ir import WidgetNode

logger = logging.getLogger(__name__)


@dataclass
class TransformResult:
    file_path: str
    structure: Optional[ComponentStructure] = None
    state: Optional[StateAnalysis] = None
    widget: Optional[WidgetNode] = None
    code: str = ""
    screen_code: str = ""
    class_names: Tuple[str, ...] = ()
    custom_components: Tuple[str, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()
    elapsed_ms: float = 0.0
    skipped: bool = False

    @property
    def component_name(self) -> Optional[str]:
        return self.structure.name if self.structure is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filePath": self.file_path,
            "componentName": self.component_name,
            "structure": to_jsonable(self.structure),
            "state": to_jsonable(self.state),
            "widget": self.widget.to_dict() if self.widget is not None else None,
            "code": self.code,
            "screenCode": self.screen_code,
            "classNames": list(self.class_names),
            "customComponents": list(self.custom_components),
            "diagnostics": to_jsonable(self.diagnostics),
            "elapsedMs": round(self.elapsed_ms, 3),
            "skipped": self.skipped,
        }


@dataclass
class _Clock:
    budget_ms: Optional[float]
    started: float = field(default_factory=time.perf_counter)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000.0

    def exceeded(self) -> bool:
        return self.budget_ms is not None and self.elapsed_ms > self.budget_ms


def transform_source(
    source: str,
    file_path: str = "<memory>.tsx",
    config: Optional[WidgetFlowConfig] = None,
) -> TransformResult:
    config = config or WidgetFlowConfig()
    clock = _Clock(config.transform_time_budget_ms)

    parsed = parse_component(source, file_path)
    structure = StructureAnalyzer(config).analyze(parsed)
    if clock.exceeded():
        return _skipped(file_path, clock, "structure analysis", structure=structure)

    state = StateAnalyzer(config).analyze(parsed)
    if clock.exceeded():
        return _skipped(file_path, clock, "state analysis", structure=structure, state=state)

    lowering = WidgetTreeBuilder(config=config).build(parsed, structure)
    if clock.exceeded():
        return _skipped(file_path, clock, "lowering", structure=structure, state=state)

    code = WidgetEmitter(config.indent_size).emit(lowering.root)
    screen_code = generate_screen(
        parsed,
        structure,
        state.props,
        config=config,
        widget=lowering.root,
        custom_components=lowering.custom_components,
    )
    diagnostics = structure.diagnostics + state.diagnostics + lowering.diagnostics
    result = TransformResult(
        file_path=file_path,
        structure=structure,
        state=state,
        widget=lowering.root,
        code=code,
        screen_code=screen_code,
        class_names=lowering.class_names,
        custom_components=lowering.custom_components,
        diagnostics=diagnostics,
        elapsed_ms=clock.elapsed_ms,
    )
    logger.info(
        "Transformed %s (%s) in %.1f ms with %d diagnostic(s)",
        file_path, structure.name, result.elapsed_ms, len(diagnostics),
    )
    return result


def transform_file(path: Union[str, Path], config: Optional[WidgetFlowConfig] = None) -> TransformResult:
    """Read ``path`` and transform it; unreadable files yield a skipped result."""
    path = Path(path)
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return TransformResult(
            file_path=str(path),
            diagnostics=(Diagnostic(DiagnosticKind.MALFORMED_INPUT, f"Could not read file: {e}"),),
            skipped=True,
        )
    return transform_source(source, str(path), config)


def _skipped(file_path: str, clock: _Clock, stage: str, **partial) -> TransformResult:
    message = f"Time budget of {clock.budget_ms} ms exceeded during {stage}"
    logger.warning(f"{file_path}: {message}")
    diagnostics: Tuple[Diagnostic, ...] = ()
    for analysis in partial.values():
        diagnostics += analysis.diagnostics
    return TransformResult(
        file_path=file_path,
        diagnostics=diagnostics + (Diagnostic(DiagnosticKind.BUDGET_EXCEEDED, message),),
        elapsed_ms=clock.elapsed_ms,
        skipped=True,
        **partial,
    )
