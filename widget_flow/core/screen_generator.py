"""
Wraps an emitted widget tree in a Flutter ``StatelessWidget`` screen class.
"""

import re
from typing import Iterable, List, Optional, Sequence

from .config import WidgetFlowConfig
from .emitter import WidgetEmitter
from .models import ComponentStructure, PropRecord
from .utils import to_pascal_case
from .widget_builder import WidgetTreeBuilder
from .widget_ir import WidgetNode

IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
RESERVED_FIELDS = {"key"}
INLINE_CONSTRUCTOR_LIMIT = 3


def snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def generate_screen(
    ast,
    structure: ComponentStructure,
    props: Sequence[PropRecord] = (),
    config: Optional[WidgetFlowConfig] = None,
    widget: Optional[WidgetNode] = None,
    custom_components: Optional[Iterable[str]] = None,
) -> str:
    """Full Dart source for one screen.

    ``widget`` and ``custom_components`` may be passed when the tree has
    already been lowered; otherwise ``ast`` is lowered here.
    """
    config = config or WidgetFlowConfig()
    if widget is None:
        result = WidgetTreeBuilder(config=config).build(ast, structure)
        widget = result.root
        custom_components = result.custom_components
    class_name = to_pascal_case(structure.name)

    imports = {f"import '{source}';" for source in config.target_imports}
    for component in custom_components or ():
        if component != class_name:
            imports.add(f"import '{snake_case(component)}.dart';")

    fields = [prop.name for prop in props if _is_field_name(prop.name)]
    required = {prop.name for prop in props if prop.required}

    lines: List[str] = sorted(imports)
    lines.append("")
    lines.append(f"class {class_name} extends StatelessWidget {{")
    lines.extend(_constructor(class_name, fields, required))
    if fields:
        lines.append("")
        for name in fields:
            lines.append(f"  final dynamic {name};")
    lines.append("")
    lines.append("  @override")
    lines.append("  Widget build(BuildContext context) {")
    body = WidgetEmitter(config.indent_size).emit(widget, indent=4)
    lines.append(f"    return {body};")
    lines.append("  }")
    lines.append("}")
    return "\n".join(lines) + "\n"


def _is_field_name(name: str) -> bool:
    return bool(IDENTIFIER_RE.match(name)) and name not in RESERVED_FIELDS


def _constructor(class_name: str, fields: List[str], required: set) -> List[str]:
    params = [f"required this.{name}" if name in required else f"this.{name}" for name in fields]
    params.append("super.key")
    if len(fields) > INLINE_CONSTRUCTOR_LIMIT:
        lines = [f"  const {class_name}({{"]
        lines.extend(f"    {param}," for param in params)
        lines.append("  });")
        return lines
    return [f"  const {class_name}({{{', '.join(params)}}});"]
