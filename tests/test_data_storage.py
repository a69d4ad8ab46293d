"""Tests for the bookmark file codec."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from scene_compass import data_storage
from scene_compass.bookmark import BookmarkEntry
from scene_compass.data_storage import StorageError, StoreData, load_store, read_store, save_store
from scene_compass.store import BookmarkStore


def _sample_data() -> StoreData:
    return StoreData(
        records=[
            BookmarkEntry.for_camera("Overview", "scene-a", (1.5, 2.0, -3.25), (0.5, 0.5, -0.5, 0.5)),
            BookmarkEntry.for_object("Tower", "scene-b", "uuid-tower", group="Props"),
            BookmarkEntry.for_object("Tower", "scene-b", "uuid-tower", group="Props"),
        ],
        last_used_group="Props",
        expansion_states={"Props": False, "Default": True},
    )


def _as_dicts(data: StoreData):
    return ([e.to_dict() for e in data.records], data.last_used_group, list(data.expansion_states.items()))


class TestSave:
    def test_creates_missing_directories(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "bookmarks.json"
        assert save_store(str(path), StoreData()) is True
        assert path.is_file()

    def test_writes_all_fields_for_empty_store(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        save_store(str(path), StoreData())
        doc = json.loads(path.read_text(encoding="utf-8"))
        assert doc["records"] == []
        assert doc["lastUsedGroup"] == "Default"
        assert doc["groupExpansionStates"] == []

    def test_expansion_states_written_as_ordered_pairs(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        save_store(str(path), _sample_data())
        doc = json.loads(path.read_text(encoding="utf-8"))
        assert doc["groupExpansionStates"] == [
            {"groupName": "Props", "isExpanded": False},
            {"groupName": "Default", "isExpanded": True},
        ]

    def test_unwritable_location_returns_false(self, tmp_path: Path, capsys):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        assert save_store(str(blocker / "bookmarks.json"), _sample_data()) is False
        assert "[SceneCompass] Error: Failed to save bookmarks" in capsys.readouterr().out

    def test_failed_write_keeps_previous_file(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "bookmarks.json"
        save_store(str(path), _sample_data())
        before = path.read_text(encoding="utf-8")

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(data_storage.os, "replace", boom)
        assert save_store(str(path), StoreData()) is False
        assert path.read_text(encoding="utf-8") == before
        assert sorted(os.listdir(tmp_path)) == ["bookmarks.json"]


class TestLoad:
    def test_round_trip(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        data = _sample_data()
        save_store(str(path), data)
        assert _as_dicts(load_store(str(path))) == _as_dicts(data)

    def test_round_trip_empty_expansion_states(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        data = StoreData([BookmarkEntry.for_object("Tower", "scene-a", "uuid-1")], "Default", {})
        save_store(str(path), data)
        assert _as_dicts(load_store(str(path))) == _as_dicts(data)

    def test_missing_file_gives_empty_store(self, tmp_path: Path):
        data = load_store(str(tmp_path / "nope.json"))
        assert data.records == []
        assert data.last_used_group == "Default"
        assert data.expansion_states == {}

    def test_blank_file_gives_empty_store(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        path.write_text("   \n", encoding="utf-8")
        assert load_store(str(path)).is_empty()

    def test_corrupt_file_gives_empty_store_and_logs(self, tmp_path: Path, capsys):
        path = tmp_path / "bookmarks.json"
        path.write_text("{ not json", encoding="utf-8")
        data = load_store(str(path))
        assert data.is_empty()
        assert data.last_used_group == "Default"
        out = capsys.readouterr().out
        assert "[SceneCompass] Error: Failed to load bookmarks" in out

    def test_corrupt_file_is_backed_up(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        path.write_text("{ not json", encoding="utf-8")
        load_store(str(path))
        backup = tmp_path / "bookmarks.corrupt.json"
        assert backup.read_text(encoding="utf-8") == "{ not json"

    def test_malformed_record_gives_empty_store(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        path.write_text(json.dumps({"records": [{"kind": "LIGHT", "name": "Sun"}]}), encoding="utf-8")
        assert load_store(str(path)).records == []

    def test_missing_optional_fields_take_defaults(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        path.write_text(json.dumps({"records": [{"name": "Bare", "kind": "CAMERA"}]}), encoding="utf-8")
        data = load_store(str(path))
        assert [e.name for e in data.records] == ["Bare"]
        assert data.last_used_group == "Default"


class TestReadStore:
    def test_missing_returns_none(self, tmp_path: Path):
        assert read_store(str(tmp_path / "nope.json")) is None

    def test_corrupt_raises(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(StorageError):
            read_store(str(path))

    @pytest.mark.parametrize("doc", [
        [],
        {"records": {"not": "a list"}},
        {"records": [], "groupExpansionStates": [{"isExpanded": True}]},
    ])
    def test_wrong_shape_raises(self, tmp_path: Path, doc):
        path = tmp_path / "bookmarks.json"
        path.write_text(json.dumps(doc), encoding="utf-8")
        with pytest.raises(StorageError):
            read_store(str(path))

    @pytest.mark.parametrize("group", [5, ["x"]])
    def test_non_string_group_raises(self, tmp_path: Path, group):
        path = tmp_path / "bookmarks.json"
        path.write_text(json.dumps({"records": [{"name": "A", "group": group}]}), encoding="utf-8")
        with pytest.raises(StorageError):
            read_store(str(path))

    @pytest.mark.parametrize("flag", ["false", 0, None])
    def test_non_bool_expansion_flag_raises(self, tmp_path: Path, flag):
        path = tmp_path / "bookmarks.json"
        doc = {"records": [], "groupExpansionStates": [{"groupName": "G", "isExpanded": flag}]}
        path.write_text(json.dumps(doc), encoding="utf-8")
        with pytest.raises(StorageError):
            read_store(str(path))


class TestLoadBadValues:
    def test_non_string_group_gives_usable_empty_store(self, tmp_path: Path, capsys):
        path = tmp_path / "bookmarks.json"
        doc = {"records": [{"name": "A", "group": 5}, {"name": "B", "group": "Work"}]}
        path.write_text(json.dumps(doc), encoding="utf-8")
        store = BookmarkStore(str(path))
        assert store.load() == 0
        assert store.filter() == ()
        assert store.filter(search_text="zz") == ()
        assert "[SceneCompass] Error: Failed to load bookmarks" in capsys.readouterr().out

    def test_string_false_flag_is_not_read_as_expanded(self, tmp_path: Path):
        path = tmp_path / "bookmarks.json"
        doc = {"records": [], "groupExpansionStates": [{"groupName": "G", "isExpanded": "false"}]}
        path.write_text(json.dumps(doc), encoding="utf-8")
        assert load_store(str(path)).expansion_states == {}
