"""Tree-sitter parser producing ParsedFile records.

Python relative imports are rewritten to path-style specifiers so the
dependency graph can resolve them: ``from .util import x`` becomes
``./util`` and ``from ..pkg import mod`` becomes ``../pkg/mod``.
"""

from __future__ import annotations

import functools
import logging
import posixpath
from importlib import resources
from typing import TYPE_CHECKING

from tree_sitter import Query, QueryCursor
from tree_sitter_language_pack import get_language, get_parser

from codeskel.models import ParsedFile, Symbol, SymbolKind

if TYPE_CHECKING:
    from tree_sitter import Node, Parser

logger = logging.getLogger(__name__)

EXTENSION_MAP: dict[str, str] = {
    ".py": "python",
}


def language_for_path(path: str) -> str | None:
    """Return the grammar name for a path, or None if unsupported."""
    return EXTENSION_MAP.get(posixpath.splitext(path)[1])


@functools.cache
def _parser(language: str) -> Parser:
    return get_parser(language)


@functools.cache
def tag_query(language: str) -> Query:
    """Compile the ``queries/<language>.scm`` tag query (cached)."""
    text = resources.files("codeskel.queries").joinpath(f"{language}.scm")
    return Query(get_language(language), text.read_text(encoding="utf-8"))


class _Collector:
    """Accumulates symbols and imports across query matches for one file."""

    def __init__(self) -> None:
        self.functions: list[Symbol] = []
        self.classes: list[Symbol] = []
        self.imports: list[str] = []
        self.exports: list[str] = []

    def add_class(self, node: Node, name_node: Node) -> None:
        name = _text(name_node)
        bases = _base_names(node)
        self.classes.append(
            Symbol(
                name=name,
                kind=SymbolKind.CLASS,
                line=name_node.start_point[0] + 1,
                exported=_is_top_level(node) and not name.startswith("_"),
                extends=bases[0] if bases else None,
                implements=tuple(bases[1:]),
            )
        )

    def add_function(self, node: Node, name_node: Node) -> None:
        name = _text(name_node)
        is_method = _is_method(node)
        self.functions.append(
            Symbol(
                name=name,
                kind=SymbolKind.METHOD if is_method else SymbolKind.FUNCTION,
                line=name_node.start_point[0] + 1,
                exported=not is_method
                and _is_top_level(node)
                and not name.startswith("_"),
                is_async=node.text.startswith(b"async"),
            )
        )

    def add_import(self, node: Node) -> None:
        if node.type == "import_statement":
            for name_node in node.children_by_field_name("name"):
                self.imports.append(_text(_unalias(name_node)))
            return

        module = node.child_by_field_name("module_name")
        if module is None:
            return
        if module.type != "relative_import":
            self.imports.append(_text(module))
            return

        specifier = _relative_specifier(_text(module))
        names = [_text(_unalias(n)) for n in node.children_by_field_name("name")]
        if specifier.endswith("/") and names:
            # ``from . import a, b``: each name is a sibling module
            self.imports.extend(specifier + n.replace(".", "/") for n in names)
        else:
            specifier = specifier.rstrip("/") or "."
            self.imports.append(specifier)
            if any(child.type == "wildcard_import" for child in node.children):
                self.exports.append(f"* from {specifier}")


def _text(node: Node) -> str:
    return node.text.decode("utf-8")


def _unalias(node: Node) -> Node:
    if node.type == "aliased_import":
        return node.child_by_field_name("name") or node
    return node


def _relative_specifier(module_text: str) -> str:
    """Turn ``..pkg.mod`` into ``../pkg/mod``; bare dots end with ``/``."""
    rest = module_text.lstrip(".")
    dots = len(module_text) - len(rest)
    prefix = "./" if dots == 1 else "../" * (dots - 1)
    return prefix + rest.replace(".", "/")


def _base_names(class_node: Node) -> list[str]:
    """Return simple names of a class's positional bases, ``object`` excluded."""
    superclasses = class_node.child_by_field_name("superclasses")
    if superclasses is None:
        return []
    names: list[str] = []
    for child in superclasses.named_children:
        if child.type == "subscript":
            child = child.child_by_field_name("value") or child
        if child.type not in ("identifier", "attribute"):
            continue
        name = _text(child).rsplit(".", 1)[-1]
        if name != "object":
            names.append(name)
    return names


def _definition_parent(node: Node) -> Node | None:
    parent = node.parent
    if parent is not None and parent.type == "decorated_definition":
        parent = parent.parent
    return parent


def _is_top_level(node: Node) -> bool:
    parent = _definition_parent(node)
    return parent is not None and parent.type == "module"


def _is_method(func_node: Node) -> bool:
    """Check if a function_definition sits directly in a class body."""
    parent = _definition_parent(func_node)
    return (
        parent is not None
        and parent.type == "block"
        and parent.parent is not None
        and parent.parent.type == "class_definition"
    )


def _looks_like_tests(path: str, collector: _Collector) -> bool:
    name = posixpath.basename(path)
    if name.startswith("test_") or name.endswith("_test.py"):
        return True
    return any(f.name.startswith("test_") for f in collector.functions) or any(
        c.name.startswith("Test") for c in collector.classes
    )


def parse_file(path: str, content: str | bytes) -> ParsedFile | None:
    """Extract symbols, imports and re-exports from one source file.

    Args:
        path: Repository-relative POSIX path; its extension selects the grammar.
        content: File content as text or raw bytes.

    Returns:
        The ParsedFile, or None for unsupported or undecodable files.
    """
    language = language_for_path(path)
    if language is None:
        return None

    try:
        if isinstance(content, str):
            source = content.encode("utf-8")
        else:
            content.decode("utf-8")
            source = content
    except UnicodeError:
        logger.debug("Skipping %s: not valid UTF-8", path)
        return None

    collector = _Collector()
    if source.strip():
        tree = _parser(language).parse(source)
        cursor = QueryCursor(tag_query(language))
        for _pattern_idx, captures in cursor.matches(tree.root_node):
            name_nodes = captures.get("name", [])
            if "definition.class" in captures and name_nodes:
                collector.add_class(captures["definition.class"][0], name_nodes[0])
            elif "definition.function" in captures and name_nodes:
                collector.add_function(captures["definition.function"][0], name_nodes[0])
            elif "reference.import" in captures:
                collector.add_import(captures["reference.import"][0])

    return ParsedFile(
        path=path,
        language=language,
        functions=tuple(sorted(collector.functions, key=lambda s: s.line)),
        classes=tuple(sorted(collector.classes, key=lambda s: s.line)),
        imports=tuple(collector.imports),
        exports=tuple(collector.exports),
        has_tests=_looks_like_tests(path, collector),
    )
