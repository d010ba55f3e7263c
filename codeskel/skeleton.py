"""Deterministic skeleton: quick paths, search patterns, entities, patterns.

The skeleton is the AI-free scaffold of an analysis. It is built only from
ranked files and parse results, and is frozen so it can be handed to an
external prose generator as a snapshot.
"""

from __future__ import annotations

import posixpath
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from codeskel.models import FileIndexEntry, ParsedFile, Role

QUICK_PATH_LIMIT = 20
SEARCH_PATTERN_LIMIT = 10
MIN_PATTERN_LENGTH = 4
SHORT_WORD_LENGTH = 6
ROOT_ENTITY = "root"

EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        "out",
        ".next",
        ".nuxt",
        "coverage",
        "__pycache__",
        ".pytest_cache",
        "target",
        "vendor",
    }
)

GENERIC_SYMBOLS: frozenset[str] = frozenset(
    {
        "default",
        "index",
        "main",
        "init",
        "setup",
        "config",
        "utils",
        "helpers",
        "types",
        "constants",
        "get",
        "set",
        "run",
        "start",
        "stop",
        "create",
        "update",
        "delete",
        "handle",
        "process",
        "render",
        "App",
        "Component",
        "Provider",
        "Context",
        "__init__",
        "__call__",
        "__repr__",
    }
)

ROLE_LABELS: dict[Role, str] = {
    Role.ENTRY: "entry point",
    Role.CONFIG: "configuration",
    Role.TYPES: "type definitions",
    Role.TEST: "test file",
    Role.CORE: "core implementation",
}

LANGUAGE_NAMES: dict[str, str] = {
    "typescript": "TypeScript",
    "tsx": "TypeScript",
    "javascript": "JavaScript",
    "python": "Python",
    "rust": "Rust",
    "go": "Go",
    "java": "Java",
}

FRAMEWORK_NAMES: dict[str, str] = {
    "react": "React",
    "nextjs": "Next.js",
    "vue": "Vue",
    "angular": "Angular",
    "express": "Express",
    "fastapi": "FastAPI",
    "django": "Django",
    "flask": "Flask",
    "nestjs": "NestJS",
    "svelte": "Svelte",
    "typer": "Typer",
}

_LOWER_WORD = re.compile(r"^[a-z]+$")


@dataclass(frozen=True)
class QuickPath:
    path: str
    reason: str


@dataclass(frozen=True)
class SearchPattern:
    pattern: str
    scope: str | None = None


@dataclass(frozen=True)
class SkeletonEntity:
    """A top-level directory (or ``root``) and its member files."""

    name: str
    path: str
    files: tuple[str, ...]


@dataclass(frozen=True)
class DetectedPatterns:
    language: str
    has_tests: bool
    has_docs: bool
    framework: str | None = None


@dataclass(frozen=True)
class Skeleton:
    name: str
    repo_path: str
    quick_paths: tuple[QuickPath, ...]
    search_patterns: tuple[SearchPattern, ...]
    entities: tuple[SkeletonEntity, ...]
    detected_patterns: DetectedPatterns

    @property
    def entity_names(self) -> frozenset[str]:
        return frozenset(e.name for e in self.entities)


def build_skeleton(
    repo_name: str,
    repo_path: str,
    ranked_files: Sequence[FileIndexEntry],
    parsed_files: Mapping[str, ParsedFile | None],
) -> Skeleton:
    """Build the deterministic skeleton for a repository.

    Args:
        repo_name: Display name of the repository.
        repo_path: Repository location, recorded as given.
        ranked_files: Output of ``rank_files``, most important first.
        parsed_files: Discovered paths mapped to their parse result.

    Returns:
        The frozen skeleton.
    """
    return Skeleton(
        name=repo_name,
        repo_path=repo_path,
        quick_paths=build_quick_paths(ranked_files),
        search_patterns=build_search_patterns(parsed_files),
        entities=build_entities(ranked_files),
        detected_patterns=detect_patterns(parsed_files, ranked_files),
    )


def build_quick_paths(ranked_files: Sequence[FileIndexEntry]) -> tuple[QuickPath, ...]:
    """Describe the top ranked files with a short reason each."""
    quick_paths: list[QuickPath] = []
    for entry in ranked_files[:QUICK_PATH_LIMIT]:
        reasons: list[str] = []
        label = ROLE_LABELS.get(entry.role)
        if label:
            reasons.append(label)
        if entry.export_count > 0:
            reasons.append(f"{entry.export_count} exports")
        if entry.function_count > 0:
            reasons.append(f"{entry.function_count} functions")
        quick_paths.append(
            QuickPath(path=entry.path, reason=", ".join(reasons) or "source file")
        )
    return tuple(quick_paths)


def is_search_worthy(name: str) -> bool:
    """Reject short, generic and short lowercase single-word names."""
    if len(name) < MIN_PATTERN_LENGTH or name in GENERIC_SYMBOLS:
        return False
    if _LOWER_WORD.match(name) and len(name) < SHORT_WORD_LENGTH:
        return False
    return True


def build_search_patterns(
    parsed_files: Mapping[str, ParsedFile | None],
) -> tuple[SearchPattern, ...]:
    """Pick the most frequent distinctive symbol names.

    A name defined in a single file is scoped to that file's directory
    (``.`` for the repository root); otherwise it is left repo-wide.
    """
    counts: Counter[str] = Counter()
    paths: dict[str, list[str]] = {}
    for path, parsed in parsed_files.items():
        if parsed is None:
            continue
        for symbol in (*parsed.functions, *parsed.classes):
            if not is_search_worthy(symbol.name):
                continue
            counts[symbol.name] += 1
            seen = paths.setdefault(symbol.name, [])
            if path not in seen:
                seen.append(path)

    patterns: list[SearchPattern] = []
    for name, _count in counts.most_common(SEARCH_PATTERN_LIMIT):
        files = paths[name]
        scope = (posixpath.dirname(files[0]) or ".") if len(files) == 1 else None
        patterns.append(SearchPattern(pattern=name, scope=scope))
    return tuple(patterns)


def is_excluded(path: str) -> bool:
    """True when any directory segment of ``path`` is a build/vendor directory."""
    return any(part in EXCLUDED_DIRS for part in path.split("/")[:-1])


def build_entities(ranked_files: Sequence[FileIndexEntry]) -> tuple[SkeletonEntity, ...]:
    """Group files by top-level directory, largest group first."""
    groups: dict[str, list[str]] = {}
    for entry in ranked_files:
        if is_excluded(entry.path):
            continue
        parts = entry.path.split("/")
        top = parts[0] if len(parts) > 1 and parts[0] else ROOT_ENTITY
        groups.setdefault(top, []).append(entry.path)

    entities = [
        SkeletonEntity(
            name=name,
            path="" if name == ROOT_ENTITY else name,
            files=tuple(files),
        )
        for name, files in groups.items()
    ]
    entities.sort(key=lambda e: len(e.files), reverse=True)
    return tuple(entities)


def detect_primary_language(parsed_files: Mapping[str, ParsedFile | None]) -> str:
    counts = Counter(
        parsed.language.lower() for parsed in parsed_files.values() if parsed is not None
    )
    if not counts:
        return "unknown"
    top, _count = counts.most_common(1)[0]
    return LANGUAGE_NAMES.get(top, top)


def detect_framework(parsed_files: Mapping[str, ParsedFile | None]) -> str | None:
    """Guess the dominant framework from import specifiers and file names."""
    scores: Counter[str] = Counter()
    for path, parsed in parsed_files.items():
        name = posixpath.basename(path).lower()
        if name in ("next.config.js", "next.config.ts", "next.config.mjs"):
            scores["nextjs"] += 5
        if name == "manage.py":
            scores["django"] += 3
        if name == "angular.json":
            scores["angular"] += 3
        if name.endswith(".vue"):
            scores["vue"] += 2
        if name.endswith(".svelte"):
            scores["svelte"] += 2
        if parsed is None:
            continue
        for spec in parsed.imports:
            root = spec.split("/", 1)[0].split(".", 1)[0].lower()
            if spec.startswith("next/"):
                scores["nextjs"] += 2
            elif root in ("react", "react-dom"):
                scores["react"] += 1
            elif root in ("vue", "svelte", "express"):
                scores[root] += 2
            elif root in ("fastapi", "django", "flask", "typer"):
                scores[root] += 3
            elif spec.startswith("@angular/"):
                scores["angular"] += 3
            elif spec.startswith("@nestjs/"):
                scores["nestjs"] += 3

    if not scores:
        return None
    top, _score = scores.most_common(1)[0]
    if top == "react" and scores["nextjs"] > 0:
        top = "nextjs"
    return FRAMEWORK_NAMES.get(top)


def detect_patterns(
    parsed_files: Mapping[str, ParsedFile | None],
    ranked_files: Sequence[FileIndexEntry],
) -> DetectedPatterns:
    has_tests = any(e.role == Role.TEST for e in ranked_files) or any(
        parsed.has_tests for parsed in parsed_files.values() if parsed is not None
    )
    has_docs = any(
        e.role == Role.DOC or "readme" in posixpath.basename(e.path).lower()
        for e in ranked_files
    )
    return DetectedPatterns(
        language=detect_primary_language(parsed_files),
        has_tests=has_tests,
        has_docs=has_docs,
        framework=detect_framework(parsed_files),
    )
