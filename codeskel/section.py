"""Deterministic architecture overview built from the graphs."""

from __future__ import annotations

import posixpath
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from codeskel.architecture import (
    ArchitectureGraph,
    RelationshipType,
    REEXPORT_PREFIX,
    classify_layer,
)
from codeskel.diagram import render_inheritance_diagram, render_layer_diagram
from codeskel.graph import HUB_THRESHOLD, DependencyGraph
from codeskel.models import Layer, ParsedFile

CORE_MODULE_MIN_SYMBOLS = 3

ENTRY_POINT_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("main", re.compile(r"(?:^|/)(?:main|index|app|entry|__main__)\.(?:ts|js|tsx|jsx|py|rs|go)$")),
    ("cli", re.compile(r"(?:^|/)(?:cli|bin|cmd)(?:/|\.py$)")),
    ("server", re.compile(r"(?:^|/)(?:server|api|routes)\.(?:ts|js|py)$")),
    ("worker", re.compile(r"(?:^|/)(?:worker|job|queue)\.(?:ts|js|py)$")),
    ("index", re.compile(r"(?:^|/)(?:index\.(?:ts|js|tsx|jsx)|__init__\.py)$")),
    ("config", re.compile(r"(?:^|/)(?:config|settings)\.(?:ts|js|json|py)$")),
)

_SOURCE_SUFFIX = re.compile(r"\.(ts|js|tsx|jsx|py|rs|go|java|rb|php|c|cpp|h|hpp)$")


@dataclass(frozen=True)
class EntryPoint:
    path: str
    type: str
    exports: tuple[str, ...]


@dataclass(frozen=True)
class CoreModule:
    path: str
    purpose: str
    exports: tuple[str, ...]


@dataclass(frozen=True)
class DependencyHub:
    path: str
    importer_count: int
    exports: tuple[str, ...]


@dataclass(frozen=True)
class LayerGroup:
    layer: Layer
    files: tuple[str, ...]


@dataclass(frozen=True)
class InheritanceRelation:
    child: str
    child_file: str
    parent: str
    parent_file: str
    type: RelationshipType


@dataclass
class DirectoryNode:
    name: str
    path: str
    hub_count: int | None = None
    children: list[DirectoryNode] = field(default_factory=list)

    @property
    def is_hub(self) -> bool:
        return self.hub_count is not None and self.hub_count >= HUB_THRESHOLD


@dataclass(frozen=True)
class FindingEntry:
    pattern: str
    location: str
    examples: tuple[str, ...]


@dataclass(frozen=True)
class ArchitectureSection:
    entry_points: tuple[EntryPoint, ...]
    core_modules: tuple[CoreModule, ...]
    hubs: tuple[DependencyHub, ...]
    layers: tuple[LayerGroup, ...]
    inheritance: tuple[InheritanceRelation, ...]
    directory_tree: DirectoryNode
    finding_table: tuple[FindingEntry, ...]


def detect_entry_point_type(path: str) -> str | None:
    for kind, pattern in ENTRY_POINT_RULES:
        if pattern.search(path):
            return kind
    return None


def _infer_purpose(path: str, parsed: ParsedFile | None) -> str:
    base = _SOURCE_SUFFIX.sub("", posixpath.basename(path))
    if parsed is None:
        return base
    if parsed.classes:
        return f"{parsed.classes[0].name} and related"
    if parsed.functions:
        return f"{parsed.functions[0].name} utilities"
    return base


def build_directory_tree(
    paths: list[str], in_degrees: Mapping[str, int]
) -> DirectoryNode:
    """Nest paths into a directory tree annotated with importer counts."""
    root = DirectoryNode(name=".", path=".")
    for path in paths:
        current = root
        parts = [p for p in path.split("/") if p]
        for i, part in enumerate(parts):
            child = next((c for c in current.children if c.name == part), None)
            if child is None:
                child_path = "/".join(parts[: i + 1])
                child = DirectoryNode(
                    name=part, path=child_path, hub_count=in_degrees.get(child_path)
                )
                current.children.append(child)
            current = child
    return root


def _build_finding_table(
    parsed_files: Mapping[str, ParsedFile | None],
) -> tuple[FindingEntry, ...]:
    found: dict[str, tuple[str, list[str]]] = {}
    for path, parsed in parsed_files.items():
        if parsed is None:
            continue
        layer = classify_layer(path)
        directory = posixpath.dirname(path)
        for noun, symbols in (("classes", parsed.classes), ("functions", parsed.functions)):
            if not symbols:
                continue
            key = f"{layer.value} {noun}" if layer else noun
            location, examples = found.setdefault(key, (directory, []))
            if not location and directory:
                found[key] = (directory, examples)
            examples.extend(s.name for s in symbols[:2])

    return tuple(
        FindingEntry(
            pattern=pattern,
            location=location or ".",
            examples=tuple(dict.fromkeys(examples))[:3],
        )
        for pattern, (location, examples) in found.items()
    )


def build_architecture_section(
    parsed_files: Mapping[str, ParsedFile | None],
    dependency_graph: DependencyGraph,
    graph: ArchitectureGraph,
) -> ArchitectureSection:
    """Summarize entry points, core modules, hubs, layers and inheritance.

    Args:
        parsed_files: Discovered paths mapped to their parse result.
        dependency_graph: Graph from ``build_dependency_graph``.
        graph: Graph from ``build_architecture_graph``.

    Returns:
        The architecture section.
    """
    symbols_by_path = {n.path: n.symbols for n in graph.nodes}

    entry_points: list[EntryPoint] = []
    for path, parsed in parsed_files.items():
        kind = detect_entry_point_type(path)
        if kind is None:
            continue
        exports = (
            tuple(e for e in parsed.exports if not e.startswith(REEXPORT_PREFIX))
            if parsed
            else ()
        )
        if not exports:
            # Languages without export statements list their public symbols.
            exports = symbols_by_path.get(path, ())
        entry_points.append(EntryPoint(path=path, type=kind, exports=exports))

    core_modules = tuple(
        CoreModule(
            path=node.path,
            purpose=_infer_purpose(node.path, parsed_files.get(node.path)),
            exports=node.symbols,
        )
        for node in graph.nodes
        if len(node.symbols) >= CORE_MODULE_MIN_SYMBOLS
    )

    hubs = tuple(
        DependencyHub(
            path=hub.path,
            importer_count=hub.in_degree,
            exports=symbols_by_path.get(hub.path, ()),
        )
        for hub in dependency_graph.hubs
    )

    layer_files: dict[Layer, list[str]] = {}
    for node in graph.nodes:
        layer_files.setdefault(node.layer or Layer.OTHER, []).append(node.path)
    layers = tuple(
        LayerGroup(layer=layer, files=tuple(files))
        for layer, files in layer_files.items()
    )

    inheritance = tuple(
        InheritanceRelation(
            child=edge.source_symbol or "",
            child_file=edge.source,
            parent=edge.target_symbol or "",
            parent_file=edge.target,
            type=edge.type,
        )
        for edge in graph.edges
        if edge.type in (RelationshipType.EXTENDS, RelationshipType.IMPLEMENTS)
    )

    in_degrees = {
        path: node.in_degree
        for path, node in dependency_graph.nodes.items()
        if node.in_degree > 0
    }

    return ArchitectureSection(
        entry_points=tuple(entry_points),
        core_modules=core_modules,
        hubs=hubs,
        layers=layers,
        inheritance=inheritance,
        directory_tree=build_directory_tree(list(parsed_files), in_degrees),
        finding_table=_build_finding_table(parsed_files),
    )


def format_directory_tree(node: DirectoryNode, prefix: str = "", is_last: bool = True) -> str:
    """Draw a directory tree with box characters, directories first."""
    lines: list[str] = []
    if node.name != ".":
        connector = "└── " if is_last else "├── "
        hub = f" [HUB: {node.hub_count}←]" if node.is_hub else ""
        lines.append(f"{prefix}{connector}{node.name}{hub}")

    child_prefix = "" if node.name == "." else prefix + ("    " if is_last else "│   ")
    children = sorted(node.children, key=lambda c: (not c.children, c.name))
    for i, child in enumerate(children):
        lines.append(format_directory_tree(child, child_prefix, i == len(children) - 1))
    return "\n".join(lines)


def _table(headers: list[str], rows: list[list[str]]) -> list[str]:
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("-" * (len(h) + 2) for h in headers) + "|",
    ]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return lines


def format_architecture_markdown(section: ArchitectureSection) -> str:
    """Render the architecture section as a markdown document."""
    lines = ["# Architecture", "", "## Entry Points", ""]
    if section.entry_points:
        lines.extend(
            _table(
                ["Path", "Type", "Exports"],
                [
                    [f"`{ep.path}`", ep.type, ", ".join(ep.exports[:3]) or "-"]
                    for ep in section.entry_points
                ],
            )
        )
    else:
        lines.append("No entry points detected.")

    lines.extend(["", "## Core Modules", ""])
    if section.core_modules:
        lines.extend(
            _table(
                ["Path", "Purpose", "Key Exports"],
                [
                    [f"`{m.path}`", m.purpose, ", ".join(m.exports[:3])]
                    for m in section.core_modules[:20]
                ],
            )
        )
    else:
        lines.append("No core modules detected.")

    lines.extend(
        ["", "## Dependency Hubs", "", f"Files imported by {HUB_THRESHOLD}+ other files:", ""]
    )
    if section.hubs:
        lines.extend(
            _table(
                ["Path", "Importers", "Exports"],
                [
                    [f"`{h.path}`", f"{h.importer_count}←", ", ".join(h.exports[:3]) or "-"]
                    for h in section.hubs[:15]
                ],
            )
        )
    else:
        lines.append("No dependency hubs detected.")

    lines.extend(["", "## Layer Diagram", "", "```mermaid"])
    lines.append(render_layer_diagram(section.layers))
    lines.append("```")

    if section.inheritance:
        lines.extend(["", "## Inheritance", "", "```mermaid"])
        lines.append(render_inheritance_diagram(section.inheritance))
        lines.append("```")

    lines.extend(["", "## Directory Structure", "", "```"])
    lines.append(format_directory_tree(section.directory_tree))
    lines.append("```")

    lines.extend(["", "## Finding Things", ""])
    if section.finding_table:
        lines.extend(
            _table(
                ["Pattern", "Location", "Examples"],
                [
                    [e.pattern, f"`{e.location}`", ", ".join(e.examples) or "-"]
                    for e in section.finding_table
                ],
            )
        )
    else:
        lines.append("No patterns detected.")

    return "\n".join(lines)
