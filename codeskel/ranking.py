"""Heuristic file importance ranking from import in-degree and file role."""

from __future__ import annotations

import posixpath
from collections.abc import Callable, Mapping

from codeskel.graph import DependencyGraph
from codeskel.models import FileIndexEntry, ParsedFile, Role

IN_DEGREE_WEIGHT = 0.7
TEST_MULTIPLIER = 0.3

ROLE_BONUS: dict[Role, float] = {
    Role.ENTRY: 0.2,
    Role.CORE: 0.05,
}

_ENTRY_FILES = frozenset(
    {
        "index.ts",
        "index.tsx",
        "index.js",
        "main.ts",
        "main.py",
        "main.go",
        "lib.rs",
        "mod.rs",
        "__init__.py",
        "__main__.py",
    }
)
_CONFIG_FILES = frozenset({"tsconfig.json", "package.json", "pyproject.toml"})
_TYPES_FILES = frozenset({"types.ts", "types.tsx", "types.py"})
_UTIL_STEMS = frozenset({"util", "utils", "helpers"})

RolePredicate = Callable[[str, str], bool]


def _is_entry(name: str, _dir: str) -> bool:
    return name in _ENTRY_FILES


def _is_config(name: str, _dir: str) -> bool:
    return "config" in name or name in _CONFIG_FILES


def _is_types(name: str, dir_: str) -> bool:
    return (
        name.endswith((".d.ts", ".pyi"))
        or name in _TYPES_FILES
        or "types" in dir_
        or "interfaces" in dir_
    )


def _is_test(name: str, dir_: str) -> bool:
    return (
        ".test." in name
        or ".spec." in name
        or "_test." in name
        or name.startswith("test_")
        or name == "conftest.py"
        or "test" in dir_
    )


def _is_util(name: str, dir_: str) -> bool:
    stem = name.split(".", 1)[0]
    return stem in _UTIL_STEMS or "util" in dir_ or "helper" in dir_


def _is_doc(name: str, dir_: str) -> bool:
    return name.endswith((".md", ".rst")) or "docs" in dir_


# Evaluated in order; the first matching rule decides the role.
ROLE_RULES: tuple[tuple[Role, RolePredicate], ...] = (
    (Role.ENTRY, _is_entry),
    (Role.CONFIG, _is_config),
    (Role.TYPES, _is_types),
    (Role.TEST, _is_test),
    (Role.UTIL, _is_util),
    (Role.DOC, _is_doc),
)


def determine_role(path: str) -> Role:
    """Classify a repository-relative path into a file role.

    Args:
        path: Repository-relative POSIX path.

    Returns:
        The first matching role from ``ROLE_RULES``, else ``Role.CORE``.
    """
    lowered = path.lower()
    name = posixpath.basename(lowered)
    dir_ = posixpath.dirname(lowered)
    for role, predicate in ROLE_RULES:
        if predicate(name, dir_):
            return role
    return Role.CORE


def score_file(in_degree: int, max_in_degree: int, role: Role) -> float:
    """Compute a file's importance in [0, 1].

    Args:
        in_degree: Number of files importing this file.
        max_in_degree: Largest in-degree in the graph.
        role: The file's role.

    Returns:
        The clamped importance score.
    """
    score = 0.0
    if max_in_degree > 0:
        score += IN_DEGREE_WEIGHT * in_degree / max_in_degree
    score += ROLE_BONUS.get(role, 0.0)
    if role == Role.TEST:
        score *= TEST_MULTIPLIER
    return min(1.0, max(0.0, score))


def rank_files(
    graph: DependencyGraph,
    parsed_files: Mapping[str, ParsedFile | None] | None = None,
) -> list[FileIndexEntry]:
    """Score every file in the graph and sort by importance.

    Args:
        graph: The dependency graph (nodes in discovery order).
        parsed_files: Optional parse results; when given, entries carry
            export and function counts.

    Returns:
        Entries sorted by importance descending. Equal scores keep
        discovery order.
    """
    max_in_degree = graph.max_in_degree
    entries: list[FileIndexEntry] = []
    for path, node in graph.nodes.items():
        role = determine_role(path)
        score = score_file(node.in_degree, max_in_degree, role)
        parsed = parsed_files.get(path) if parsed_files is not None else None
        entries.append(
            FileIndexEntry(
                path=path,
                importance=round(score, 3),
                role=role,
                imports=node.imports or None,
                export_count=parsed.export_count if parsed else 0,
                function_count=len(parsed.functions) if parsed else 0,
            )
        )

    entries.sort(key=lambda e: e.importance, reverse=True)
    return entries
