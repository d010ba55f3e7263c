"""Import dependency graph construction and hub detection."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field

import networkx as nx

from codeskel.models import ParsedFile

logger = logging.getLogger(__name__)

HUB_THRESHOLD = 3

RESOLVE_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mts",
    ".mjs",
    ".cjs",
    ".py",
)

INDEX_FILES: tuple[str, ...] = (
    "index.ts",
    "index.tsx",
    "index.js",
    "index.jsx",
    "index.mjs",
    "__init__.py",
)


@dataclass(frozen=True)
class DependencyEdge:
    """A resolved relative import: source imports target."""

    source: str
    target: str


@dataclass(frozen=True)
class ImportGraphNode:
    """Per-file view of the import graph."""

    path: str
    imports: tuple[str, ...] = ()
    unresolved: tuple[str, ...] = ()
    imported_by: tuple[str, ...] = ()

    @property
    def in_degree(self) -> int:
        return len(self.imported_by)


@dataclass(frozen=True)
class DependencyGraph:
    """The file-to-file import graph.

    ``nodes`` preserves discovery order. ``hubs`` are nodes with at least
    ``HUB_THRESHOLD`` importers, most-imported first.
    """

    nodes: dict[str, ImportGraphNode]
    edges: tuple[DependencyEdge, ...]
    hubs: tuple[ImportGraphNode, ...]
    digraph: nx.DiGraph = field(compare=False, repr=False)

    @property
    def max_in_degree(self) -> int:
        return max((n.in_degree for n in self.nodes.values()), default=0)


def is_relative_specifier(specifier: str) -> bool:
    """Return True for ``./x``, ``../y``, ``.`` and ``..`` style specifiers."""
    return specifier in (".", "..") or specifier.startswith(("./", "../"))


def resolve_import(
    specifier: str,
    importer: str,
    known_paths: Collection[str],
) -> str | None:
    """Resolve a relative import specifier to a discovered file path.

    Tries the exact path, then each extension in ``RESOLVE_EXTENSIONS``,
    then each index file in ``INDEX_FILES``.

    Args:
        specifier: The raw import specifier (e.g. ``./util``).
        importer: Repository-relative POSIX path of the importing file.
        known_paths: The discovered path set.

    Returns:
        The resolved repository-relative path, or None for bare specifiers
        and anything that does not match a known path.
    """
    if not is_relative_specifier(specifier):
        return None

    base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
    if base == ".." or base.startswith("../"):
        return None

    if base != "." and base in known_paths:
        return base

    if base != ".":
        for ext in RESOLVE_EXTENSIONS:
            if base + ext in known_paths:
                return base + ext

    for index_file in INDEX_FILES:
        candidate = index_file if base == "." else f"{base}/{index_file}"
        if candidate in known_paths:
            return candidate

    return None


def build_dependency_graph(
    parsed_files: Mapping[str, ParsedFile | None],
) -> DependencyGraph:
    """Build the import graph for the discovered file set.

    Every key of ``parsed_files`` becomes a node. A ``None`` value marks a
    file that failed to parse: it has no outgoing edges but can still be
    imported by others.

    Args:
        parsed_files: Discovered paths, in discovery order, mapped to their
            parse result.

    Returns:
        The dependency graph with nodes, deduplicated edges and hubs.
    """
    known_paths = set(parsed_files)

    graph = nx.DiGraph()
    for path in parsed_files:
        graph.add_node(path)

    unresolved: dict[str, list[str]] = {}
    for source, parsed in parsed_files.items():
        if parsed is None:
            continue
        for specifier in parsed.imports:
            if not is_relative_specifier(specifier):
                continue
            target = resolve_import(specifier, source, known_paths)
            if target is None:
                unresolved.setdefault(source, []).append(specifier)
                logger.debug("Unresolved import %r in %s", specifier, source)
                continue
            if target == source:
                continue
            graph.add_edge(source, target)

    nodes: dict[str, ImportGraphNode] = {}
    for path, parsed in parsed_files.items():
        nodes[path] = ImportGraphNode(
            path=path,
            imports=parsed.imports if parsed is not None else (),
            unresolved=tuple(unresolved.get(path, ())),
            imported_by=tuple(graph.predecessors(path)),
        )

    edges = tuple(DependencyEdge(source=s, target=t) for s, t in graph.edges())

    ordered = sorted(nodes.values(), key=lambda n: n.in_degree, reverse=True)
    hubs = tuple(n for n in ordered if n.in_degree >= HUB_THRESHOLD)

    logger.debug(
        "Dependency graph: %d nodes, %d edges, %d hubs",
        len(nodes),
        len(edges),
        len(hubs),
    )
    return DependencyGraph(nodes=nodes, edges=edges, hubs=hubs, digraph=graph)
