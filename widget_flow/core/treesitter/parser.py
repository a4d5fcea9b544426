"""
Tree-sitter parser facade with cached grammars and parser instances.

The ``tsx`` grammar also accepts plain JavaScript and JSX; ``typescript`` is
used for ``.ts`` files only.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple, Union

from tree_sitter import Language, Node, Parser, Tree
from tree_sitter_typescript import language_tsx, language_typescript

SUPPORTED_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")

_GRAMMARS = {
    "typescript": language_typescript,
    "tsx": language_tsx,
}


@dataclass(frozen=True)
class ParsedSource:
    """A parsed syntax tree together with the text and path it came from."""
    tree: Tree
    source: str
    file_path: str = "<memory>"

    @property
    def root(self):
        return self.tree.root_node


@lru_cache(maxsize=None)
def get_language(language_id: str) -> Language:
    grammar = _GRAMMARS.get(language_id)
    if grammar is None:
        raise ValueError(f"Unsupported language: {language_id}")
    return Language(grammar())


@lru_cache(maxsize=2)
def get_parser(language_id: str) -> Parser:
    parser = Parser()
    parser.language = get_language(language_id)
    return parser


def language_for_path(file_path: Union[str, Path]) -> str:
    # Plain .ts cannot contain JSX and the TSX grammar rejects `<T>value` casts.
    return "typescript" if Path(file_path).suffix == ".ts" else "tsx"


def parse_source(source: str, language_id: str = "tsx") -> Tree:
    parser = get_parser(language_id)
    return parser.parse(bytes(source, "utf-8"))


def parse_component(source: str, file_path: str = "<memory>.tsx") -> ParsedSource:
    tree = parse_source(source, language_for_path(file_path))
    return ParsedSource(tree=tree, source=source, file_path=file_path)


def can_parse(file_path: Union[str, Path]) -> bool:
    return Path(file_path).suffix in SUPPORTED_EXTENSIONS


def resolve_root(ast: Union[ParsedSource, Tree, Node, str], file_path: Optional[str] = None) -> Tuple[Node, str]:
    """Accept any of the supported syntax-tree handles and return its root node and path."""
    if isinstance(ast, ParsedSource):
        return ast.root, file_path or ast.file_path
    if isinstance(ast, str):
        parsed = parse_component(ast, file_path or "<memory>.tsx")
        return parsed.root, parsed.file_path
    if isinstance(ast, Tree):
        return ast.root_node, file_path or "<memory>"
    return ast, file_path or "<memory>"
