"""Repository file discovery with gitignore support."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

import pathspec

from codeskel.incremental import is_manifest
from codeskel.parsing import language_for_path

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 1_000_000

SKIP_DIRS: frozenset[str] = frozenset(
    {
        "__pycache__",
        "node_modules",
        ".git",
        ".hg",
        ".svn",
        "venv",
        ".venv",
        "env",
        "build",
        "dist",
        "coverage",
        ".tox",
        ".mypy_cache",
        ".ruff_cache",
        ".pytest_cache",
        "egg-info",
    }
)


def _run_git(root: Path, *args: str) -> str | None:
    if not (root / ".git").exists():
        return None
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=root,
            capture_output=True,
            text=True,
            timeout=10,
            check=False,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout


def _git_ls_files(root: Path) -> set[str] | None:
    """Return git-tracked plus untracked-but-not-ignored files.

    Returns:
        Set of repo-relative POSIX paths, or None if git is unavailable
        or the directory is not a git repository.
    """
    output = _run_git(root, "ls-files", "--cached", "--others", "--exclude-standard")
    if output is None:
        return None
    return set(output.splitlines())


def current_commit(root: Path) -> str | None:
    """Return the HEAD commit hash of the repository at root, if any."""
    output = _run_git(root, "rev-parse", "HEAD")
    return output.strip() if output else None


def _load_gitignore(root: Path) -> pathspec.PathSpec:
    gitignore_path = root / ".gitignore"
    lines: list[str] = []
    if gitignore_path.is_file():
        lines = gitignore_path.read_text(encoding="utf-8").splitlines()
    return pathspec.PathSpec.from_lines("gitignore", lines)


def discover_files(
    root: Path,
    *,
    extra_ignores: list[str] | None = None,
    language_filter: str | None = None,
    max_file_size: int | None = DEFAULT_MAX_FILE_SIZE,
) -> list[str]:
    """Walk root and return the files an analysis run should read.

    Parseable source files are returned together with manifest files
    (``package.json``, ``pyproject.toml``, ...), which are kept regardless
    of the language filter so change detection can see them.

    Args:
        root: Repository root directory.
        extra_ignores: Additional gitignore-style patterns to exclude.
        language_filter: If set, only keep source files of this language.
        max_file_size: Skip files larger than this many bytes; None disables.

    Returns:
        Sorted repo-relative POSIX paths.
    """
    git_files = _git_ls_files(root)
    gitignore = _load_gitignore(root) if git_files is None else None

    extra_spec = None
    if extra_ignores:
        extra_spec = pathspec.PathSpec.from_lines("gitignore", extra_ignores)

    results: list[str] = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames[:] = sorted(
            d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")
        )
        rel_dir = Path(dirpath).relative_to(root)

        for fname in sorted(filenames):
            if fname.startswith("."):
                continue
            full_path = Path(dirpath) / fname
            if full_path.is_symlink():
                continue

            rel = (rel_dir / fname).as_posix()
            if git_files is not None:
                if rel not in git_files:
                    continue
            elif gitignore is not None and gitignore.match_file(rel):
                continue
            if extra_spec is not None and extra_spec.match_file(rel):
                continue

            if not is_manifest(rel):
                language = language_for_path(rel)
                if language is None:
                    continue
                if language_filter and language != language_filter:
                    continue

            if max_file_size is not None:
                try:
                    size = full_path.stat().st_size
                except OSError:
                    size = 0
                if size > max_file_size:
                    logger.debug("Skipping %s: %d bytes exceeds cap", rel, size)
                    continue

            results.append(rel)

    results.sort()
    logger.debug("Discovered %d files under %s", len(results), root)
    return results
