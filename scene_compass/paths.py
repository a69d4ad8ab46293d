"""File locations used by Scene Compass."""

import os


BOOKMARKS_FILE_NAME = "bookmarks.json"
SAMPLES_DIR_NAME = "samples"
SAMPLE_BOOKMARKS_FILE_NAME = "sample_bookmarks.json"


def sanitize_token(value):
    """Convert text to a filesystem-safe token."""
    text = str(value) if value is not None else "item"
    safe = []
    for ch in text:
        if ch.isalnum() or ch in ("_", "-"):
            safe.append(ch)
        else:
            safe.append("_")
    token = "".join(safe).strip("_")
    return token or "item"


def bookmarks_path(data_dir, override_dir=""):
    """Path of the bookmark file.

    A non-empty ``override_dir`` (from preferences) wins over ``data_dir``.
    Both may be relative or start with ``~``.
    """
    base = override_dir.strip() if override_dir else ""
    if not base:
        base = data_dir
    return os.path.join(os.path.abspath(os.path.expanduser(base)), BOOKMARKS_FILE_NAME)


def sample_bookmarks_path():
    """Path of the sample set shipped inside the add-on package."""
    return os.path.join(os.path.dirname(os.path.abspath(__file__)),
                        SAMPLES_DIR_NAME, SAMPLE_BOOKMARKS_FILE_NAME)


def backup_path(path, tag="corrupt"):
    """Sibling path used to keep a copy of an unreadable file."""
    head, tail = os.path.split(path)
    stem, ext = os.path.splitext(tail)
    return os.path.join(head, f"{stem}.{sanitize_token(tag)}{ext or '.json'}")
