"""
Import of foreign bookmark sets (the bundled samples) into the user's store.

Imported groups are namespaced with a fixed prefix, and records whose
(name, group) already exist are skipped, so running the import again, or
after the user edited or deleted imported records, never duplicates them.
"""

from typing import Optional

from . import data_storage
from . import debug_tools
from .bookmark import normalize_group
from .store import BookmarkStore


SAMPLE_GROUP_PREFIX = "Sample: "


class MergeResult:
    """Outcome of one merge run."""

    def __init__(self, ok: bool, added: int = 0, skipped: int = 0, message: str = ""):
        self.ok = ok
        self.added = added
        self.skipped = skipped
        self.message = message

    def __bool__(self):
        return self.ok

    def __repr__(self):
        return f"MergeResult(ok={self.ok}, added={self.added}, skipped={self.skipped})"


def prefixed_group(group: Optional[str], prefix: str = SAMPLE_GROUP_PREFIX) -> str:
    group = normalize_group(group)
    if group.startswith(prefix):
        return group
    return prefix + group


def merge_bookmarks(store: BookmarkStore, foreign_path: str,
                    prefix: str = SAMPLE_GROUP_PREFIX) -> MergeResult:
    """Fold the records of ``foreign_path`` into ``store``.

    A missing foreign file is a no-op. A corrupt foreign file or a failed
    write leaves the store untouched and returns a failed result.
    """
    try:
        foreign = data_storage.read_store(foreign_path)
    except data_storage.StorageError as e:
        debug_tools.error(f"Failed to import bookmarks from {foreign_path}: {e}")
        return MergeResult(False, message=str(e))

    if foreign is None:
        debug_tools.log(f"no bookmark set to import at {foreign_path}")
        return MergeResult(True, message="nothing to import")

    existing_keys = {entry.key for entry in store.records}
    accepted = []
    skipped = 0
    for entry in foreign.records:
        entry.group = prefixed_group(entry.group, prefix)
        if entry.key in existing_keys:
            skipped += 1
            continue
        existing_keys.add(entry.key)
        accepted.append(entry)

    if not accepted:
        debug_tools.log(f"import from {foreign_path}: all {skipped} bookmarks already present")
        return MergeResult(True, skipped=skipped)

    if not store.extend(accepted, expanded=True):
        debug_tools.error(f"Failed to import bookmarks from {foreign_path}: could not write {store.path}")
        return MergeResult(False, skipped=skipped, message=f"could not write {store.path}")

    debug_tools.info(f"Imported {len(accepted)} bookmarks from {foreign_path}")
    return MergeResult(True, added=len(accepted), skipped=skipped)
