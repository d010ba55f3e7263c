"""Sequential orchestration of one analysis run.

Stages run in order over in-memory file contents: parse, dependency graph,
ranking, architecture graph and section, skeleton, then change tracking
against the previous run's state. Prose generation is an optional async
step layered on top of a finished result.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from codeskel.architecture import ArchitectureGraph, build_architecture_graph
from codeskel.discovery import DEFAULT_MAX_FILE_SIZE, current_commit, discover_files
from codeskel.graph import DependencyGraph, build_dependency_graph
from codeskel.incremental import (
    ChangeReport,
    IncrementalState,
    build_incremental_state,
    detect_changes,
)
from codeskel.models import FileIndexEntry, ParsedFile
from codeskel.parsing import parse_file
from codeskel.prose import (
    MergedSkill,
    ProseEnhancements,
    ProseGenerator,
    generate_prose,
    merge_prose_into_skeleton,
)
from codeskel.ranking import rank_files
from codeskel.section import ArchitectureSection, build_architecture_section
from codeskel.skeleton import Skeleton, build_skeleton
from codeskel.store import StateStore
from codeskel.validation import ConsistencyReport, validate_consistency

logger = logging.getLogger(__name__)

Parser = Callable[[str, str | bytes], ParsedFile | None]


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one run produces."""

    repo_name: str
    parsed_files: dict[str, ParsedFile | None]
    dependency_graph: DependencyGraph
    ranked_files: tuple[FileIndexEntry, ...]
    architecture: ArchitectureGraph
    section: ArchitectureSection
    skeleton: Skeleton
    changes: ChangeReport
    state: IncrementalState
    warnings: tuple[str, ...] = ()
    prose: ProseEnhancements | None = None
    consistency: ConsistencyReport | None = None
    skill: MergedSkill | None = None


def read_files(root: Path, paths: list[str]) -> tuple[dict[str, bytes], list[str]]:
    """Read discovered files as bytes.

    Returns:
        Contents keyed by path, and a warning for each unreadable file.
    """
    contents: dict[str, bytes] = {}
    warnings: list[str] = []
    for rel in paths:
        try:
            contents[rel] = (root / rel).read_bytes()
        except OSError as exc:
            warnings.append(f"failed to read {rel}: {exc}")
    return contents, warnings


def analyze(
    repo_name: str,
    repo_path: str,
    contents: Mapping[str, str | bytes],
    *,
    previous: IncrementalState | None = None,
    commit: str = "",
    parser: Parser | None = None,
    now: float | None = None,
) -> AnalysisResult:
    """Run every deterministic stage over pre-read file contents.

    Args:
        repo_name: Display name of the repository.
        repo_path: Repository location recorded in the skeleton.
        contents: File contents keyed by repo-relative POSIX path, in
            discovery order.
        previous: State from the previous run, if one was stored.
        commit: Commit identifier recorded in the new state.
        parser: Per-file parser returning None for files it cannot handle;
            defaults to ``parse_file``.
        now: Timestamp recorded in the new state.

    Returns:
        The analysis result, including the state to persist for next time.
    """
    parser = parser or parse_file
    warnings: list[str] = []
    parsed_files: dict[str, ParsedFile | None] = {}
    for path, content in contents.items():
        try:
            parsed_files[path] = parser(path, content)
        except UnicodeError as exc:
            warnings.append(f"failed to parse {path}: {exc}")
            parsed_files[path] = None

    parsed_count = sum(1 for p in parsed_files.values() if p is not None)
    logger.debug("Parsed %d of %d files", parsed_count, len(parsed_files))

    dependency_graph = build_dependency_graph(parsed_files)
    ranked = rank_files(dependency_graph, parsed_files)
    architecture = build_architecture_graph(parsed_files, dependency_graph)
    section = build_architecture_section(parsed_files, dependency_graph, architecture)
    skeleton = build_skeleton(repo_name, repo_path, ranked, parsed_files)
    logger.debug(
        "Graph: %d edges, %d hubs; skeleton: %d quick paths, %d entities",
        len(dependency_graph.edges),
        len(dependency_graph.hubs),
        len(skeleton.quick_paths),
        len(skeleton.entities),
    )

    changes = detect_changes(contents, previous)
    state = build_incremental_state(parsed_files, contents, commit, now=now)

    return AnalysisResult(
        repo_name=repo_name,
        parsed_files=parsed_files,
        dependency_graph=dependency_graph,
        ranked_files=tuple(ranked),
        architecture=architecture,
        section=section,
        skeleton=skeleton,
        changes=changes,
        state=state,
        warnings=tuple(warnings),
    )


def state_key(root: Path) -> str:
    """Return the store key for a repository: its resolved path."""
    return str(root.resolve())


def analyze_repository(
    root: Path,
    *,
    store: StateStore | None = None,
    commit: str | None = None,
    language_filter: str | None = None,
    max_file_size: int | None = DEFAULT_MAX_FILE_SIZE,
) -> AnalysisResult | None:
    """Discover, read and analyze a repository on disk.

    When a store is given, the previous state is read from it under
    ``state_key(root)``. If that state shows no added, modified or deleted
    files, nothing is parsed and None is returned. Otherwise the new state
    is written back once at least one file has parsed.

    Returns:
        The analysis result, or None when the stored state is up to date.
    """
    root = root.resolve()
    paths = discover_files(root, language_filter=language_filter, max_file_size=max_file_size)
    contents, warnings = read_files(root, paths)
    key = state_key(root)
    previous = store.read(key) if store is not None else None
    if previous is not None and not detect_changes(contents, previous).has_changes:
        logger.debug("%s unchanged since commit %s", root.name, previous.commit or "unknown")
        return None

    result = analyze(
        root.name,
        str(root),
        contents,
        previous=previous,
        commit=commit if commit is not None else current_commit(root) or "",
    )
    if store is not None and any(p is not None for p in result.parsed_files.values()):
        store.write(key, result.state)
    if warnings:
        result = dataclasses.replace(result, warnings=(*warnings, *result.warnings))
    return result


async def enrich_with_prose(
    result: AnalysisResult,
    generator: ProseGenerator,
    *,
    timeout: float | None = None,
) -> AnalysisResult:
    """Generate prose for a finished result, then validate and merge it.

    Raises:
        ProseGenerationError: If the generator does not finish in time.
    """
    prose = await generate_prose(result.skeleton, generator, timeout=timeout)
    report = validate_consistency(result.skeleton, prose)
    for issue in report.issues:
        logger.debug("Consistency %s: %s", issue.severity.value, issue.message)
    return dataclasses.replace(
        result,
        prose=prose,
        consistency=report,
        skill=merge_prose_into_skeleton(result.skeleton, prose),
    )
