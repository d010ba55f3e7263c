"""Symbol table and symbol-level architecture graph."""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

from codeskel.graph import DependencyGraph, resolve_import
from codeskel.models import Layer, ParsedFile, SymbolKind

logger = logging.getLogger(__name__)

TOP_HUBS = 20
REEXPORT_PREFIX = "* from "


class RelationshipType(enum.Enum):
    """Kind of relation carried by an architecture edge."""

    IMPORTS = "imports"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    EXPORTS = "exports"
    RE_EXPORTS = "re-exports"


@dataclass(frozen=True)
class SymbolEntry:
    """Where an exported name is defined."""

    name: str
    file: str
    kind: SymbolKind
    exported: bool = True


@dataclass(frozen=True)
class ArchitectureEdge:
    source: str
    target: str
    type: RelationshipType
    source_symbol: str | None = None
    target_symbol: str | None = None


@dataclass(frozen=True)
class ArchitectureNode:
    path: str
    symbols: tuple[str, ...]
    is_hub: bool
    layer: Layer | None = None


@dataclass(frozen=True)
class ArchitectureGraph:
    """Dependency edges plus inheritance and re-export relations."""

    nodes: tuple[ArchitectureNode, ...]
    edges: tuple[ArchitectureEdge, ...]
    symbol_table: dict[str, SymbolEntry]


# Evaluated in order against the repository-relative path.
LAYER_RULES: tuple[tuple[Layer, re.Pattern[str]], ...] = (
    (Layer.UI, re.compile(r"^(components|pages|views|screens|ui)/")),
    (Layer.API, re.compile(r"^(api|routes|endpoints|handlers)/")),
    (Layer.DOMAIN, re.compile(r"^(domain|models|entities|core)/")),
    (Layer.INFRA, re.compile(r"^(infra|database|db|repositories|services)/")),
    (Layer.UTIL, re.compile(r"^(utils|helpers|lib|shared|common)/")),
    (Layer.CONFIG, re.compile(r"^(config|settings)/")),
    (Layer.TEST, re.compile(r"^(__tests__|tests?|spec)/")),
)


def classify_layer(path: str) -> Layer | None:
    """Return the first layer whose directory pattern matches, if any."""
    for layer, pattern in LAYER_RULES:
        if pattern.search(path):
            return layer
    return None


def build_symbol_table(
    parsed_files: Mapping[str, ParsedFile | None],
) -> dict[str, SymbolEntry]:
    """Index exported classes and functions by name.

    Names are unique in the table. Files are visited in discovery order,
    classes before functions, and a later definition of a name replaces an
    earlier one: the last exported definition wins.

    Args:
        parsed_files: Discovered paths mapped to their parse result.

    Returns:
        Mapping of exported name to its defining entry.
    """
    table: dict[str, SymbolEntry] = {}
    for path, parsed in parsed_files.items():
        if parsed is None:
            continue
        for symbol in (*parsed.classes, *parsed.functions):
            if not symbol.exported:
                continue
            previous = table.get(symbol.name)
            if previous is not None and previous.file != path:
                logger.debug(
                    "Symbol %s in %s replaces definition in %s",
                    symbol.name,
                    path,
                    previous.file,
                )
            table[symbol.name] = SymbolEntry(
                name=symbol.name, file=path, kind=symbol.kind
            )
    return table


def build_architecture_graph(
    parsed_files: Mapping[str, ParsedFile | None],
    dependency_graph: DependencyGraph,
) -> ArchitectureGraph:
    """Layer inheritance and re-export edges over the import graph.

    ``extends`` and ``implements`` edges are only added when the parent name
    resolves in the symbol table. Re-exports are added for ``* from`` export
    statements whose specifier resolves to a discovered file.

    Args:
        parsed_files: Discovered paths mapped to their parse result.
        dependency_graph: Graph from ``build_dependency_graph``.

    Returns:
        The architecture graph.
    """
    symbol_table = build_symbol_table(parsed_files)
    hub_paths = {h.path for h in dependency_graph.hubs[:TOP_HUBS]}
    known_paths = set(parsed_files)

    edges: list[ArchitectureEdge] = [
        ArchitectureEdge(
            source=e.source, target=e.target, type=RelationshipType.IMPORTS
        )
        for e in dependency_graph.edges
    ]

    for path, parsed in parsed_files.items():
        if parsed is None:
            continue
        for cls in parsed.classes:
            if cls.extends:
                parent = symbol_table.get(cls.extends)
                if parent is not None:
                    edges.append(
                        ArchitectureEdge(
                            source=path,
                            target=parent.file,
                            type=RelationshipType.EXTENDS,
                            source_symbol=cls.name,
                            target_symbol=cls.extends,
                        )
                    )
            for iface in cls.implements:
                entry = symbol_table.get(iface)
                if entry is not None:
                    edges.append(
                        ArchitectureEdge(
                            source=path,
                            target=entry.file,
                            type=RelationshipType.IMPLEMENTS,
                            source_symbol=cls.name,
                            target_symbol=iface,
                        )
                    )

        for statement in parsed.exports:
            if not statement.startswith(REEXPORT_PREFIX):
                continue
            specifier = statement[len(REEXPORT_PREFIX) :].strip()
            target = resolve_import(specifier, path, known_paths)
            if target is not None:
                edges.append(
                    ArchitectureEdge(
                        source=path, target=target, type=RelationshipType.RE_EXPORTS
                    )
                )

    nodes: list[ArchitectureNode] = []
    for path, parsed in parsed_files.items():
        symbols: tuple[str, ...] = ()
        if parsed is not None:
            symbols = tuple(
                s.name for s in (*parsed.classes, *parsed.functions) if s.exported
            )
        nodes.append(
            ArchitectureNode(
                path=path,
                symbols=symbols,
                is_hub=path in hub_paths,
                layer=classify_layer(path),
            )
        )

    logger.debug(
        "Architecture graph: %d nodes, %d edges, %d symbols",
        len(nodes),
        len(edges),
        len(symbol_table),
    )
    return ArchitectureGraph(
        nodes=tuple(nodes), edges=tuple(edges), symbol_table=symbol_table
    )
