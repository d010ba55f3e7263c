"""Content-hash change tracking between analysis runs."""

from __future__ import annotations

import hashlib
import logging
import posixpath
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from codeskel.models import ParsedFile

logger = logging.getLogger(__name__)

STATE_VERSION = 1
HASH_LENGTH = 16
FULL_REANALYZE_THRESHOLD = 0.3

# Changes to these can alter resolution or classification repo-wide.
MANIFEST_FILES: frozenset[str] = frozenset(
    {
        "package.json",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "tsconfig.json",
        "tsconfig.base.json",
        "turbo.json",
        "pyproject.toml",
        "requirements.txt",
        "setup.py",
        "setup.cfg",
        "Pipfile",
        "Pipfile.lock",
        "poetry.lock",
        "Cargo.toml",
        "Cargo.lock",
        "go.mod",
        "go.sum",
        "pom.xml",
        "build.gradle",
        ".eslintrc",
        ".eslintrc.js",
        ".eslintrc.json",
        "ruff.toml",
    }
)


@dataclass(frozen=True)
class FileState:
    hash: str
    last_analyzed: float
    symbol_count: int


@dataclass(frozen=True)
class IncrementalState:
    """Per-file content hashes recorded at the end of a successful run."""

    version: int
    commit: str
    files: dict[str, FileState] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "commit": self.commit,
            "files": {
                path: {
                    "hash": fs.hash,
                    "last_analyzed": fs.last_analyzed,
                    "symbol_count": fs.symbol_count,
                }
                for path, fs in self.files.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Any) -> IncrementalState | None:
        """Rebuild a state from ``to_dict`` output.

        Returns None when the data is malformed or was written by a
        different state version.
        """
        if not isinstance(data, dict) or data.get("version") != STATE_VERSION:
            return None
        files = data.get("files")
        if not isinstance(files, dict):
            return None
        try:
            return cls(
                version=STATE_VERSION,
                commit=str(data.get("commit", "")),
                files={
                    str(path): FileState(
                        hash=str(entry["hash"]),
                        last_analyzed=float(entry["last_analyzed"]),
                        symbol_count=int(entry["symbol_count"]),
                    )
                    for path, entry in files.items()
                },
            )
        except (KeyError, TypeError, ValueError):
            return None


@dataclass(frozen=True)
class ChangeReport:
    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    unchanged: tuple[str, ...] = ()
    should_full_reanalyze: bool = False

    @property
    def changed(self) -> tuple[str, ...]:
        return self.added + self.modified + self.deleted

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified or self.deleted)


def hash_file(content: str | bytes) -> str:
    """Fingerprint file content: the first 16 hex chars of its SHA-256.

    Text is encoded as UTF-8 before hashing; lone surrogates from a
    ``surrogateescape`` decode map back to their original bytes.
    """
    if isinstance(content, str):
        content = content.encode("utf-8", "surrogateescape")
    return hashlib.sha256(content).hexdigest()[:HASH_LENGTH]


def is_state_compatible(state: IncrementalState) -> bool:
    return state.version == STATE_VERSION


def is_manifest(path: str) -> bool:
    return posixpath.basename(path) in MANIFEST_FILES


def detect_changes(
    current_files: Mapping[str, str | bytes],
    previous: IncrementalState | None,
) -> ChangeReport:
    """Compare current file contents against a prior run's state.

    Without a usable previous state every current path is reported as added
    and a full reanalysis is requested. Otherwise a full reanalysis is forced
    when any changed path is a manifest file, or when more than
    ``FULL_REANALYZE_THRESHOLD`` of the current files changed.

    Args:
        current_files: Current contents keyed by repository-relative path.
        previous: State recorded by the previous run, if any.

    Returns:
        The change report.
    """
    if previous is None or not is_state_compatible(previous):
        if previous is not None:
            logger.debug(
                "Ignoring state version %s (expected %s)", previous.version, STATE_VERSION
            )
        return ChangeReport(added=tuple(current_files), should_full_reanalyze=True)

    added: list[str] = []
    modified: list[str] = []
    unchanged: list[str] = []
    for path, content in current_files.items():
        recorded = previous.files.get(path)
        if recorded is None:
            added.append(path)
        elif recorded.hash != hash_file(content):
            modified.append(path)
        else:
            unchanged.append(path)

    deleted = [path for path in previous.files if path not in current_files]

    return ChangeReport(
        added=tuple(added),
        modified=tuple(modified),
        deleted=tuple(deleted),
        unchanged=tuple(unchanged),
        should_full_reanalyze=_should_full_reanalyze(
            added, modified, deleted, len(current_files)
        ),
    )


def _should_full_reanalyze(
    added: list[str],
    modified: list[str],
    deleted: list[str],
    total_files: int,
) -> bool:
    changed = [*added, *modified, *deleted]
    for path in changed:
        if is_manifest(path):
            logger.debug("Full reanalysis: manifest %s changed", path)
            return True

    if not changed:
        return False
    if total_files == 0:
        return True
    ratio = len(changed) / total_files
    if ratio > FULL_REANALYZE_THRESHOLD:
        logger.debug("Full reanalysis: %.0f%% of files changed", ratio * 100)
        return True
    return False


def build_incremental_state(
    parsed_files: Mapping[str, ParsedFile | None],
    file_contents: Mapping[str, str | bytes],
    commit: str,
    *,
    now: float | None = None,
) -> IncrementalState:
    """Snapshot the hashes of this run's files.

    Every path in ``file_contents`` is recorded; its symbol count comes from
    the parse result, or 0 when the file did not parse.

    Args:
        parsed_files: Discovered paths mapped to their parse result.
        file_contents: Raw contents keyed by path.
        commit: Commit identifier the run analyzed.
        now: Timestamp to record, defaults to ``time.time()``.

    Returns:
        The new state.
    """
    stamp = time.time() if now is None else now
    files: dict[str, FileState] = {}
    for path, content in file_contents.items():
        parsed = parsed_files.get(path)
        files[path] = FileState(
            hash=hash_file(content),
            last_analyzed=stamp,
            symbol_count=parsed.symbol_count if parsed is not None else 0,
        )
    return IncrementalState(version=STATE_VERSION, commit=commit, files=files)


def state_summary(state: IncrementalState) -> dict[str, Any]:
    return {
        "version": state.version,
        "commit": state.commit,
        "file_count": len(state.files),
        "total_symbols": sum(fs.symbol_count for fs in state.files.values()),
    }
