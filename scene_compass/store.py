"""
Bookmark store.

Holds the bookmark records of one session, the group registry derived from
them, and the per-group expansion flags the panel remembers. Every mutating
call flushes to the bookmark file right away; a failed flush is logged and
the in-memory state stays authoritative for the session.
"""

import os
from itertools import groupby
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from . import data_storage
from . import debug_tools
from .bookmark import BookmarkEntry, DEFAULT_GROUP, normalize_group


class BookmarkStore:
    """In-memory bookmark collection backed by a single JSON file."""

    def __init__(self, path: str):
        self.path = path
        self._records: List[BookmarkEntry] = []
        self._last_used_group = DEFAULT_GROUP
        self._expansion_states: Dict[str, bool] = {}
        self._synced_mtime: Optional[float] = None

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _file_mtime(self) -> Optional[float]:
        try:
            return os.path.getmtime(self.path)
        except OSError:
            return None

    def load(self) -> int:
        """Replace the in-memory state with the file contents.

        A missing or unreadable file gives an empty store. Returns the
        number of records loaded.
        """
        data = data_storage.load_store(self.path)
        self._records = list(data.records)
        self._last_used_group = data.last_used_group or DEFAULT_GROUP
        self._expansion_states = dict(data.expansion_states)
        self._synced_mtime = self._file_mtime()
        debug_tools.log(f"loaded {len(self._records)} bookmarks from {self.path}")
        return len(self._records)

    def reload_if_changed(self) -> bool:
        """Reload when the file changed on disk since the last load or save."""
        if self._file_mtime() == self._synced_mtime:
            return False
        self.load()
        return True

    def to_data(self) -> data_storage.StoreData:
        return data_storage.StoreData(self._records, self._last_used_group, self._expansion_states)

    def flush(self) -> bool:
        """Write the current state to disk. Returns False if the write failed."""
        ok = data_storage.save_store(self.path, self.to_data())
        if ok:
            self._synced_mtime = self._file_mtime()
        return ok

    # =========================================================================
    # READ-ONLY VIEWS
    # =========================================================================

    @property
    def records(self) -> Tuple[BookmarkEntry, ...]:
        return tuple(self._records)

    @property
    def last_used_group(self) -> str:
        return self._last_used_group

    @property
    def expansion_states(self) -> Dict[str, bool]:
        return dict(self._expansion_states)

    def __len__(self):
        return len(self._records)

    def __contains__(self, entry):
        return self._index_of(entry) >= 0

    def entry_at(self, index: int, expected: Optional[Dict] = None) -> Optional[BookmarkEntry]:
        """Record at ``index`` in ``records``, or None.

        With ``expected`` (a ``to_dict()`` taken earlier), also None when the
        record there no longer has those values, e.g. after a reload.
        """
        if not 0 <= index < len(self._records):
            return None
        entry = self._records[index]
        if expected is not None and entry.to_dict() != expected:
            return None
        return entry

    def _index_of(self, entry: BookmarkEntry) -> int:
        # Identity, not equality: identical records stay independently addressable
        for i, existing in enumerate(self._records):
            if existing is entry:
                return i
        return -1

    def filter(self, scene_id: Optional[str] = None, search_text: str = "") -> Tuple[BookmarkEntry, ...]:
        """Records matching a scene and a search text, ordered by group.

        ``scene_id=None`` matches every scene. ``search_text`` matches the
        name or the group, case-insensitively. Records keep their insertion
        order within a group.
        """
        query = (search_text or "").lower()
        matches = [
            entry for entry in self._records
            if (scene_id is None or entry.scene_id == scene_id)
            and (not query or query in entry.name.lower() or query in entry.group.lower())
        ]
        # sorted() is stable, so insertion order survives within each group
        return tuple(sorted(matches, key=lambda entry: entry.group))

    def grouped(self, scene_id: Optional[str] = None,
                search_text: str = "") -> List[Tuple[str, Tuple[BookmarkEntry, ...]]]:
        """Same as filter(), folded into (group, records) pairs."""
        return [
            (group, tuple(entries))
            for group, entries in groupby(self.filter(scene_id, search_text), key=lambda e: e.group)
        ]

    def groups(self) -> FrozenSet[str]:
        """Known groups: every group in use, plus Default."""
        return frozenset({DEFAULT_GROUP}) | {entry.group for entry in self._records}

    def sorted_groups(self) -> List[str]:
        """Known groups with Default first, the rest alphabetical."""
        return [DEFAULT_GROUP] + sorted(self.groups() - {DEFAULT_GROUP})

    def count_in_group(self, group: str, scene_id: Optional[str] = None) -> int:
        return sum(
            1 for entry in self._records
            if entry.group == group and (scene_id is None or entry.scene_id == scene_id)
        )

    def is_expanded(self, group: str) -> bool:
        return self._expansion_states.get(group, True)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add(self, entry: BookmarkEntry) -> BookmarkEntry:
        """Append a record. Duplicates are accepted."""
        entry.group = normalize_group(entry.group)
        self._records.append(entry)
        self._last_used_group = entry.group
        self.flush()
        debug_tools.inc("store.add")
        return entry

    def edit(self, entry: BookmarkEntry, new_name: str, new_group: str) -> None:
        """Rename and/or regroup a record in place. A blank name keeps the old one."""
        if self._index_of(entry) < 0:
            raise KeyError(f"{entry!r} is not in the store")
        name = (new_name or "").strip()
        if name:
            entry.name = name
        entry.group = normalize_group(new_group)
        self.flush()

    def delete(self, entry: BookmarkEntry) -> bool:
        index = self._index_of(entry)
        if index < 0:
            return False
        del self._records[index]
        self.flush()
        return True

    def rename_group(self, old: str, new: str) -> int:
        """Move every record of ``old`` into ``new``. Returns the number moved.

        No-op when the names are equal or ``new`` is empty.
        """
        if not new or old == new:
            return 0

        moved = 0
        for entry in self._records:
            if entry.group == old:
                entry.group = new
                moved += 1

        had_state = old in self._expansion_states
        if had_state:
            expanded = self._expansion_states.pop(old)
            self._expansion_states.setdefault(new, expanded)

        if self._last_used_group == old:
            self._last_used_group = new

        if moved or had_state:
            self.flush()
        return moved

    def delete_group(self, group: str) -> int:
        """Remove a group and all of its records. Returns the number removed."""
        kept = [entry for entry in self._records if entry.group != group]
        removed = len(self._records) - len(kept)
        self._records = kept
        self._expansion_states.pop(group, None)
        if self._last_used_group == group:
            self._last_used_group = DEFAULT_GROUP
        self.flush()
        return removed

    def set_expanded(self, group: str, expanded: bool) -> None:
        self._expansion_states[group] = bool(expanded)
        self.flush()

    def expand_all(self, expanded: bool) -> None:
        for group in self.sorted_groups():
            self._expansion_states[group] = bool(expanded)
        self.flush()

    def extend(self, entries: Iterable[BookmarkEntry], expanded: bool = True) -> bool:
        """Append several records in one write, all or nothing.

        Groups introduced here get an expansion flag if they have none. If
        the write fails, the store is put back as it was and False returned.
        """
        entries = list(entries)
        previous_records = list(self._records)
        previous_states = dict(self._expansion_states)

        for entry in entries:
            entry.group = normalize_group(entry.group)
            self._records.append(entry)
            self._expansion_states.setdefault(entry.group, bool(expanded))

        if self.flush():
            return True

        self._records = previous_records
        self._expansion_states = previous_states
        return False
