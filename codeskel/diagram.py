"""Flowchart-notation renderers for architecture graphs."""

from __future__ import annotations

import posixpath
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from codeskel.architecture import (
    ArchitectureGraph,
    ArchitectureNode,
    RelationshipType,
)
from codeskel.models import Layer

if TYPE_CHECKING:
    from codeskel.section import InheritanceRelation, LayerGroup

ARROW_STYLES: dict[RelationshipType, str] = {
    RelationshipType.IMPORTS: "-->",
    RelationshipType.EXTENDS: "--|>",
    RelationshipType.IMPLEMENTS: "..|>",
    RelationshipType.EXPORTS: "-->",
    RelationshipType.RE_EXPORTS: "-.->",
}

LAYER_ORDER: tuple[Layer, ...] = tuple(Layer)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def sanitize_id(path: str) -> str:
    """Turn a path into a diagram node id.

    Non-alphanumerics become underscores, leading and trailing underscores
    are stripped and the result is lowercased; an empty result is ``node``.
    """
    return _NON_ALNUM.sub("_", path).strip("_").lower() or "node"


def _node_label(node: ArchitectureNode) -> str:
    name = posixpath.basename(node.path) or node.path
    if not node.symbols:
        return name
    if len(node.symbols) <= 2:
        return f"{name}\\n{', '.join(node.symbols)}"
    return f"{name}\\n{', '.join(node.symbols[:2])}..."


def render_flowchart(
    graph: ArchitectureGraph,
    *,
    max_nodes: int = 30,
    group_by_layer: bool = True,
) -> str:
    """Render the architecture graph as a ``flowchart TB`` diagram.

    Only hubs and files with exported symbols are drawn, capped at
    ``max_nodes``. Self-edges and edges touching undrawn nodes are skipped;
    repeated (source, target, type) edges are drawn once.

    Args:
        graph: The architecture graph.
        max_nodes: Maximum number of nodes to draw.
        group_by_layer: Wrap nodes in one subgraph per layer.

    Returns:
        The diagram text without a trailing newline.
    """
    lines = ["flowchart TB"]

    significant = [n for n in graph.nodes if n.is_hub or n.symbols][:max_nodes]
    drawn = {n.path for n in significant}

    if group_by_layer:
        groups: dict[Layer, list[ArchitectureNode]] = {}
        for node in significant:
            groups.setdefault(node.layer or Layer.OTHER, []).append(node)
        for layer, members in groups.items():
            lines.append(f"    subgraph {layer.value}")
            for node in members:
                lines.append(f'        {sanitize_id(node.path)}["{_node_label(node)}"]')
            lines.append("    end")
    else:
        for node in significant:
            lines.append(f'    {sanitize_id(node.path)}["{_node_label(node)}"]')

    seen: set[tuple[str, str, RelationshipType]] = set()
    for edge in graph.edges:
        if edge.source == edge.target:
            continue
        if edge.source not in drawn or edge.target not in drawn:
            continue
        key = (edge.source, edge.target, edge.type)
        if key in seen:
            continue
        seen.add(key)

        source_id = sanitize_id(edge.source)
        target_id = sanitize_id(edge.target)
        arrow = ARROW_STYLES[edge.type]
        if edge.source_symbol and edge.target_symbol:
            lines.append(f"    {source_id} {arrow}|{edge.type.value}| {target_id}")
        else:
            lines.append(f"    {source_id} {arrow} {target_id}")

    return "\n".join(lines)


def render_layer_diagram(layers: Sequence[LayerGroup]) -> str:
    """Render non-empty layers as a top-down chain in canonical layer order."""
    lines = ["flowchart TB"]
    ordered = sorted(
        (group for group in layers if group.files),
        key=lambda group: LAYER_ORDER.index(group.layer),
    )
    for group in ordered:
        lines.append(
            f'    {group.layer.value}["{group.layer.value} ({len(group.files)} files)"]'
        )
    for current, following in zip(ordered, ordered[1:]):
        lines.append(f"    {current.layer.value} --> {following.layer.value}")
    return "\n".join(lines)


def render_inheritance_diagram(relations: Sequence[InheritanceRelation]) -> str:
    """Render inheritance relations as a ``classDiagram``; empty when none."""
    if not relations:
        return ""
    lines = ["classDiagram"]
    seen: set[str] = set()
    for rel in relations:
        arrow = "<|--" if rel.type == RelationshipType.EXTENDS else "<|.."
        line = f"    {rel.parent} {arrow} {rel.child}"
        if line in seen:
            continue
        seen.add(line)
        lines.append(line)
    return "\n".join(lines)
