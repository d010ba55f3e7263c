"""Persistence for incremental state, keyed by repository identity.

The engine never touches storage itself; callers pick a store and pass
states in and out. There is no locking: concurrent writers for the same key
race and the last write wins.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Protocol

from codeskel.incremental import IncrementalState

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StateStore(Protocol):
    """Read and write incremental state by repository key."""

    def read(self, key: str) -> IncrementalState | None: ...

    def write(self, key: str, state: IncrementalState) -> None: ...


class MemoryStateStore:
    """In-process store, mostly useful for tests and embedding."""

    def __init__(self) -> None:
        self._states: dict[str, IncrementalState] = {}

    def read(self, key: str) -> IncrementalState | None:
        return self._states.get(key)

    def write(self, key: str, state: IncrementalState) -> None:
        self._states[key] = state


class JsonFileStateStore:
    """One JSON file per repository key inside a directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        name = _UNSAFE_KEY_CHARS.sub("--", key).strip("-.") or "state"
        return self.directory / f"{name}.json"

    def read(self, key: str) -> IncrementalState | None:
        """Load the state for ``key``.

        Missing, unreadable, malformed or version-mismatched files all read
        as None so the caller falls back to a full analysis.
        """
        path = self.path_for(key)
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.debug("Discarding unreadable state %s: %s", path, exc)
            return None
        return IncrementalState.from_dict(data)

    def write(self, key: str, state: IncrementalState) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        path.write_text(json.dumps(state.to_dict(), indent=2, sort_keys=True), "utf-8")
        logger.debug("Wrote state for %s to %s", key, path)
