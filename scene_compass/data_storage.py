"""
Data Storage Module for Scene Compass.

Reads and writes the bookmark file: one JSON document holding the records,
the last used group and the per-group expansion flags. The file lives
outside the .blend so bookmarks follow the user across files.
"""

import json
import os
import shutil
import tempfile
from typing import Any, Dict, List, Optional

from . import debug_tools
from .bookmark import BookmarkEntry, DEFAULT_GROUP
from .paths import backup_path


# Current schema version for migrations
SCHEMA_VERSION = 1

RECORDS_KEY = "records"
LAST_USED_GROUP_KEY = "lastUsedGroup"
EXPANSION_STATES_KEY = "groupExpansionStates"


class StorageError(Exception):
    """The bookmark file exists but can't be read or parsed."""


class StoreData:
    """Everything persisted in one bookmark file."""

    def __init__(self, records=None, last_used_group=DEFAULT_GROUP, expansion_states=None):
        self.records: List[BookmarkEntry] = list(records or [])
        self.last_used_group: str = last_used_group or DEFAULT_GROUP
        # Insertion ordered, written back as an ordered list of pairs
        self.expansion_states: Dict[str, bool] = dict(expansion_states or {})

    def is_empty(self) -> bool:
        return not self.records and not self.expansion_states


def _get_empty_data() -> Dict[str, Any]:
    """Return the empty document structure."""
    return {
        "version": SCHEMA_VERSION,
        RECORDS_KEY: [],
        LAST_USED_GROUP_KEY: DEFAULT_GROUP,
        EXPANSION_STATES_KEY: [],
    }


def data_to_dict(data: StoreData) -> Dict[str, Any]:
    """Serialize a StoreData to the document structure."""
    doc = _get_empty_data()
    doc[RECORDS_KEY] = [entry.to_dict() for entry in data.records]
    doc[LAST_USED_GROUP_KEY] = data.last_used_group or DEFAULT_GROUP
    doc[EXPANSION_STATES_KEY] = [
        {"groupName": name, "isExpanded": bool(expanded)}
        for name, expanded in data.expansion_states.items()
    ]
    return doc


def dict_to_data(doc: Dict[str, Any]) -> StoreData:
    """Parse the document structure. Raises StorageError on malformed input."""
    if not isinstance(doc, dict):
        raise StorageError("top level of bookmark file is not an object")

    raw_records = doc.get(RECORDS_KEY) or []
    raw_states = doc.get(EXPANSION_STATES_KEY) or []
    if not isinstance(raw_records, list) or not isinstance(raw_states, list):
        raise StorageError("records and groupExpansionStates must be lists")

    records = []
    for index, raw in enumerate(raw_records):
        try:
            records.append(BookmarkEntry.from_dict(raw))
        except (TypeError, ValueError) as e:
            raise StorageError(f"record {index} is malformed: {e}") from e

    expansion_states = {}
    for raw in raw_states:
        if not isinstance(raw, dict) or not raw.get("groupName"):
            raise StorageError(f"malformed group expansion state: {raw!r}")
        expanded = raw.get("isExpanded", True)
        if not isinstance(expanded, bool):
            raise StorageError(f"isExpanded must be true or false: {raw!r}")
        expansion_states[str(raw["groupName"])] = expanded

    last_used = doc.get(LAST_USED_GROUP_KEY)
    return StoreData(records, last_used if isinstance(last_used, str) else DEFAULT_GROUP,
                     expansion_states)


def read_store(path: str) -> Optional[StoreData]:
    """Strictly read a bookmark file.

    Returns None if the file does not exist. Raises StorageError if it
    exists but can't be read or parsed.
    """
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise StorageError(f"can't read {path}: {e}") from e

    if not content.strip():
        return StoreData()
    try:
        doc = json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageError(f"invalid JSON in {path}: {e}") from e
    return dict_to_data(doc)


def _keep_backup(path: str) -> Optional[str]:
    """Copy an unreadable file aside so the next save can't destroy it."""
    target = backup_path(path)
    try:
        shutil.copyfile(path, target)
        return target
    except OSError as e:
        debug_tools.log(f"could not back up {path}: {e}")
        return None


def load_store(path: str) -> StoreData:
    """Load a bookmark file, falling back to an empty store on any failure."""
    try:
        with debug_tools.timed("data_storage.load"):
            data = read_store(path)
    except StorageError as e:
        debug_tools.error(f"Failed to load bookmarks from {path}: {e}")
        backup = _keep_backup(path)
        if backup:
            debug_tools.info(f"Kept a copy of the unreadable file at {backup}")
        return StoreData()

    if data is None:
        debug_tools.log(f"no bookmark file at {path}, starting empty")
        return StoreData()
    debug_tools.inc("data_storage.load")
    return data


def save_store(path: str, data: StoreData) -> bool:
    """Write a bookmark file. Returns False (and logs) on failure.

    The document goes to a temporary file in the same directory first, so a
    failed write leaves the previous file intact.
    """
    tmp_path = None
    try:
        text = json.dumps(data_to_dict(data), indent=2)
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".bookmarks-", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
        tmp_path = None
    except (OSError, TypeError, ValueError) as e:
        debug_tools.error(f"Failed to save bookmarks to {path}: {e}")
        return False
    finally:
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass

    debug_tools.inc("data_storage.save")
    return True
