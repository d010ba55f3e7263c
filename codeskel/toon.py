"""TOON (Token-Oriented Object Notation) encoder for analysis results."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codeskel.pipeline import AnalysisResult

_NEEDS_QUOTING = re.compile(r'[,:"\\{}\[\]]')
_LOOKS_NUMERIC = re.compile(r"^-?(?:0|[1-9]\d*)(?:\.\d+)?$")
_KEYWORDS = frozenset({"true", "false", "null"})


def encode(result: AnalysisResult, *, max_files: int | None = None) -> str:
    """Encode an analysis result into TOON format.

    Args:
        result: The analysis to encode.
        max_files: Limit the ``files`` table to the top-ranked N files.

    Returns:
        TOON-formatted string (no trailing newline).
    """
    skeleton = result.skeleton
    patterns = skeleton.detected_patterns
    parts = [
        f"repo: {_encode_value(result.repo_name)}",
        f"language: {_encode_value(patterns.language)}",
        "framework: "
        + (_encode_value(patterns.framework) if patterns.framework else "null"),
        f"has_tests: {str(patterns.has_tests).lower()}",
        f"has_docs: {str(patterns.has_docs).lower()}",
    ]

    ranked = result.ranked_files[:max_files] if max_files else result.ranked_files
    parts.append(
        _format_tabular(
            "files",
            ["path", "role", "importance", "exports", "functions"],
            [
                [
                    entry.path,
                    entry.role.value,
                    f"{entry.importance:.3f}",
                    str(entry.export_count),
                    str(entry.function_count),
                ]
                for entry in ranked
            ],
        )
    )
    parts.append(
        _format_tabular(
            "hubs",
            ["path", "importers"],
            [[hub.path, str(hub.in_degree)] for hub in result.dependency_graph.hubs],
        )
    )
    parts.append(
        _format_tabular(
            "dependencies",
            ["source", "target"],
            [[e.source, e.target] for e in result.dependency_graph.edges],
        )
    )
    parts.append(
        _format_tabular(
            "quick_paths",
            ["path", "reason"],
            [[qp.path, qp.reason] for qp in skeleton.quick_paths],
        )
    )
    parts.append(
        _format_tabular(
            "search_patterns",
            ["pattern", "scope"],
            [[sp.pattern, sp.scope or ""] for sp in skeleton.search_patterns],
        )
    )
    parts.append(
        _format_tabular(
            "entities",
            ["name", "path", "files"],
            [[e.name, e.path, str(len(e.files))] for e in skeleton.entities],
        )
    )
    return "\n".join(parts)


def _format_tabular(name: str, columns: list[str], rows: list[list[str]]) -> str:
    """Format rows as a TOON tabular array: ``name[N]{cols}:`` plus indented rows."""
    lines = [f"{name}[{len(rows)}]{{{','.join(columns)}}}:"]
    for row in rows:
        lines.append("  " + ",".join(_encode_value(cell) for cell in row))
    return "\n".join(lines)


def _encode_value(value: str) -> str:
    """Encode a single value, quoting if necessary per TOON rules."""
    if not value:
        return '""'
    if value != value.strip() or any(c in value for c in "\n\r\t"):
        return _quote(value)
    if value.lower() in _KEYWORDS:
        return _quote(value)
    if _LOOKS_NUMERIC.match(value):
        return value
    if _NEEDS_QUOTING.search(value) or value.startswith("-"):
        return _quote(value)
    return value


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return f'"{escaped}"'
