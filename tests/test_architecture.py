"""Tests for the symbol table and architecture graph."""

from __future__ import annotations

import pytest

from codeskel.architecture import (
    RelationshipType,
    build_architecture_graph,
    build_symbol_table,
    classify_layer,
)
from codeskel.graph import build_dependency_graph
from codeskel.models import Layer, ParsedFile, Symbol, SymbolKind


def _edges(graph, kind: RelationshipType) -> list[tuple[str, str]]:
    return [(e.source, e.target) for e in graph.edges if e.type == kind]


class TestClassifyLayer:
    """Tests for classify_layer."""

    @pytest.mark.parametrize(
        ("path", "layer"),
        [
            ("components/Button.tsx", Layer.UI),
            ("api/routes.ts", Layer.API),
            ("models/user.py", Layer.DOMAIN),
            ("services/mail.py", Layer.INFRA),
            ("lib/http.ts", Layer.UTIL),
            ("config/db.ts", Layer.CONFIG),
            ("tests/test_x.py", Layer.TEST),
            ("__tests__/a.test.ts", Layer.TEST),
        ],
    )
    def test_layers(self, path: str, layer: Layer) -> None:
        assert classify_layer(path) == layer

    def test_unmatched(self) -> None:
        assert classify_layer("index.ts") is None
        assert classify_layer("src/models/user.ts") is None


class TestBuildSymbolTable:
    """Tests for build_symbol_table."""

    def test_only_exported(self) -> None:
        files = {
            "a.py": ParsedFile(
                path="a.py",
                language="python",
                functions=(
                    Symbol("public_fn", SymbolKind.FUNCTION, 1, exported=True),
                    Symbol("_private", SymbolKind.FUNCTION, 5),
                ),
            )
        }
        table = build_symbol_table(files)
        assert set(table) == {"public_fn"}
        assert table["public_fn"].file == "a.py"
        assert table["public_fn"].kind == SymbolKind.FUNCTION

    def test_last_definition_wins(self) -> None:
        def defining(path: str) -> ParsedFile:
            return ParsedFile(
                path=path,
                language="python",
                classes=(Symbol("Config", SymbolKind.CLASS, 1, exported=True),),
            )

        table = build_symbol_table({"a.py": defining("a.py"), "b.py": defining("b.py")})
        assert table["Config"].file == "b.py"

    def test_skips_failed_parses(self) -> None:
        assert build_symbol_table({"a.py": None}) == {}


class TestBuildArchitectureGraph:
    """Tests for build_architecture_graph."""

    @pytest.fixture()
    def graph(self, layered_files: dict):
        return build_architecture_graph(
            layered_files, build_dependency_graph(layered_files)
        )

    def test_import_edges_from_dependency_graph(
        self, layered_files: dict, graph
    ) -> None:
        deps = build_dependency_graph(layered_files)
        assert _edges(graph, RelationshipType.IMPORTS) == [
            (e.source, e.target) for e in deps.edges
        ]

    def test_extends_edge(self, graph) -> None:
        extends = [e for e in graph.edges if e.type == RelationshipType.EXTENDS]
        assert len(extends) == 1
        assert extends[0].source == "models/user.ts"
        assert extends[0].target == "models/base.ts"
        assert extends[0].source_symbol == "UserAccount"
        assert extends[0].target_symbol == "BaseModel"

    def test_unresolved_interface_dropped(self, graph) -> None:
        implements = [e for e in graph.edges if e.type == RelationshipType.IMPLEMENTS]
        assert [e.target_symbol for e in implements] == ["Serializable"]
        assert implements[0].target == "types/serializable.ts"

    def test_reexport_edge(self, graph) -> None:
        assert _edges(graph, RelationshipType.RE_EXPORTS) == [
            ("index.ts", "models/user.ts")
        ]

    def test_unresolvable_reexport_dropped(self) -> None:
        files = {
            "index.ts": ParsedFile(
                path="index.ts",
                language="typescript",
                exports=("* from ./gone", "* from lodash"),
            )
        }
        graph = build_architecture_graph(files, build_dependency_graph(files))
        assert graph.edges == ()

    def test_nodes(self, graph) -> None:
        nodes = {n.path: n for n in graph.nodes}
        assert len(nodes) == 8
        assert nodes["models/base.ts"].is_hub
        assert nodes["models/base.ts"].layer == Layer.DOMAIN
        assert nodes["models/user.ts"].symbols == ("UserAccount", "loadUser")
        assert not nodes["models/user.ts"].is_hub
        assert nodes["broken.ts"].symbols == ()
        assert nodes["index.ts"].layer is None

    def test_symbol_table_attached(self, graph) -> None:
        assert graph.symbol_table["sendJson"].file == "lib/http.ts"
