"""Shared fixtures for the Scene Compass tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from scene_compass import debug_tools
from scene_compass.store import BookmarkStore


@pytest.fixture(autouse=True)
def quiet_debug_tools():
    debug_tools.set_enabled(False)
    debug_tools.reset_stats()
    yield
    debug_tools.set_enabled(False)
    debug_tools.reset_stats()


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "bookmarks.json"


@pytest.fixture
def store(store_path: Path) -> BookmarkStore:
    s = BookmarkStore(str(store_path))
    s.load()
    return s


@pytest.fixture
def write_bookmark_file(tmp_path: Path):
    """Write a bookmark document built from (name, group) pairs or raw records."""

    def _write(records, name="foreign.json", last_used_group="Default", states=None) -> Path:
        raw = []
        for record in records:
            if isinstance(record, tuple):
                record_name, group = record
                record = {
                    "kind": "CAMERA",
                    "name": record_name,
                    "group": group,
                    "sceneId": "sample-scene",
                    "position": [1.0, 2.0, 3.0],
                    "rotation": [1.0, 0.0, 0.0, 0.0],
                    "objectRef": "",
                }
            raw.append(record)
        doc = {
            "records": raw,
            "lastUsedGroup": last_used_group,
            "groupExpansionStates": [
                {"groupName": g, "isExpanded": v} for g, v in (states or {}).items()
            ],
        }
        path = tmp_path / name
        path.write_text(json.dumps(doc), encoding="utf-8")
        return path

    return _write
