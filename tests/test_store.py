"""Tests for incremental state stores."""

from __future__ import annotations

import json
from pathlib import Path

from codeskel.incremental import STATE_VERSION, build_incremental_state
from codeskel.store import JsonFileStateStore, MemoryStateStore


def _state():
    return build_incremental_state({}, {"a.py": "a"}, "c0ffee", now=5.0)


class TestMemoryStateStore:
    """Tests for MemoryStateStore."""

    def test_read_missing(self) -> None:
        assert MemoryStateStore().read("repo") is None

    def test_last_write_wins(self) -> None:
        store = MemoryStateStore()
        first = _state()
        second = build_incremental_state({}, {"b.py": "b"}, "beef", now=6.0)
        store.write("repo", first)
        store.write("repo", second)
        assert store.read("repo") == second


class TestJsonFileStateStore:
    """Tests for JsonFileStateStore."""

    def test_round_trip(self, tmp_path: Path) -> None:
        store = JsonFileStateStore(tmp_path / "state")
        state = _state()
        store.write("/home/me/repo", state)
        assert store.read("/home/me/repo") == state

    def test_key_sanitized(self, tmp_path: Path) -> None:
        store = JsonFileStateStore(tmp_path)
        path = store.path_for("/home/me/my repo")
        assert path.parent == tmp_path
        assert path.name == "home--me--my--repo.json"

    def test_missing_file(self, tmp_path: Path) -> None:
        assert JsonFileStateStore(tmp_path).read("nothing") is None

    def test_corrupt_file(self, tmp_path: Path) -> None:
        store = JsonFileStateStore(tmp_path)
        store.path_for("repo").write_text("{not json", encoding="utf-8")
        assert store.read("repo") is None

    def test_incompatible_version(self, tmp_path: Path) -> None:
        store = JsonFileStateStore(tmp_path)
        data = _state().to_dict()
        data["version"] = STATE_VERSION + 1
        store.path_for("repo").write_text(json.dumps(data), encoding="utf-8")
        assert store.read("repo") is None
