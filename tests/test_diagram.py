"""Tests for the flowchart renderers."""

from __future__ import annotations

from codeskel.architecture import (
    ArchitectureEdge,
    ArchitectureGraph,
    ArchitectureNode,
    RelationshipType,
    build_architecture_graph,
)
from codeskel.diagram import (
    render_flowchart,
    render_inheritance_diagram,
    render_layer_diagram,
    sanitize_id,
)
from codeskel.graph import build_dependency_graph
from codeskel.models import Layer
from codeskel.section import InheritanceRelation, LayerGroup


def _node(path: str, *symbols: str, hub: bool = False, layer: Layer | None = None):
    return ArchitectureNode(path=path, symbols=symbols, is_hub=hub, layer=layer)


class TestSanitizeId:
    """Tests for sanitize_id."""

    def test_path(self) -> None:
        assert sanitize_id("src/Models/User.ts") == "src_models_user_ts"

    def test_empty(self) -> None:
        assert sanitize_id("") == "node"
        assert sanitize_id("///") == "node"


class TestRenderFlowchart:
    """Tests for render_flowchart."""

    def test_arrow_styles(self) -> None:
        graph = ArchitectureGraph(
            nodes=(_node("a.ts", "A"), _node("b.ts", "B")),
            edges=(
                ArchitectureEdge("a.ts", "b.ts", RelationshipType.IMPORTS),
                ArchitectureEdge(
                    "a.ts", "b.ts", RelationshipType.EXTENDS, "A", "B"
                ),
                ArchitectureEdge(
                    "a.ts", "b.ts", RelationshipType.IMPLEMENTS, "A", "B"
                ),
                ArchitectureEdge("a.ts", "b.ts", RelationshipType.RE_EXPORTS),
            ),
            symbol_table={},
        )
        output = render_flowchart(graph, group_by_layer=False)
        assert "    a_ts --> b_ts" in output
        assert "    a_ts --|>|extends| b_ts" in output
        assert "    a_ts ..|>|implements| b_ts" in output
        assert "    a_ts -.-> b_ts" in output

    def test_self_and_filtered_edges_skipped(self) -> None:
        graph = ArchitectureGraph(
            nodes=(_node("a.ts", "A"), _node("quiet.ts")),
            edges=(
                ArchitectureEdge("a.ts", "a.ts", RelationshipType.IMPORTS),
                ArchitectureEdge("a.ts", "quiet.ts", RelationshipType.IMPORTS),
            ),
            symbol_table={},
        )
        output = render_flowchart(graph)
        assert "-->" not in output
        assert "quiet_ts" not in output

    def test_duplicate_edges_drawn_once(self) -> None:
        edge = ArchitectureEdge("a.ts", "b.ts", RelationshipType.IMPORTS)
        graph = ArchitectureGraph(
            nodes=(_node("a.ts", "A"), _node("b.ts", hub=True)),
            edges=(edge, edge),
            symbol_table={},
        )
        assert render_flowchart(graph).count("a_ts --> b_ts") == 1

    def test_layer_subgraphs(self, layered_files: dict) -> None:
        graph = build_architecture_graph(
            layered_files, build_dependency_graph(layered_files)
        )
        output = render_flowchart(graph)
        assert output.startswith("flowchart TB")
        assert "    subgraph domain" in output
        assert "    subgraph api" in output
        assert "    subgraph other" in output
        assert 'models_base_ts["base.ts\\nBaseModel"]' in output
        assert "broken_ts" not in output

    def test_max_nodes(self) -> None:
        nodes = tuple(_node(f"f{i}.ts", f"S{i}") for i in range(5))
        graph = ArchitectureGraph(nodes=nodes, edges=(), symbol_table={})
        output = render_flowchart(graph, max_nodes=2, group_by_layer=False)
        assert "f1_ts" in output
        assert "f2_ts" not in output

    def test_label_truncates_symbols(self) -> None:
        graph = ArchitectureGraph(
            nodes=(_node("a.ts", "One", "Two", "Three"),), edges=(), symbol_table={}
        )
        assert 'a_ts["a.ts\\nOne, Two..."]' in render_flowchart(graph)


class TestLayerAndInheritanceDiagrams:
    """Tests for render_layer_diagram and render_inheritance_diagram."""

    def test_layer_chain_in_canonical_order(self) -> None:
        output = render_layer_diagram(
            [
                LayerGroup(Layer.UTIL, ("lib/a.ts",)),
                LayerGroup(Layer.UI, ("components/b.tsx", "components/c.tsx")),
                LayerGroup(Layer.TEST, ()),
            ]
        )
        assert 'ui["ui (2 files)"]' in output
        assert "ui --> util" in output
        assert "test" not in output

    def test_inheritance(self) -> None:
        output = render_inheritance_diagram(
            [
                InheritanceRelation(
                    "User", "u.ts", "Base", "b.ts", RelationshipType.EXTENDS
                ),
                InheritanceRelation(
                    "User", "u.ts", "Saveable", "s.ts", RelationshipType.IMPLEMENTS
                ),
            ]
        )
        assert output.splitlines() == [
            "classDiagram",
            "    Base <|-- User",
            "    Saveable <|.. User",
        ]

    def test_inheritance_empty(self) -> None:
        assert render_inheritance_diagram([]) == ""
