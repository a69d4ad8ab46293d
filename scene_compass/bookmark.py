"""
Bookmark records.

A bookmark is either a saved camera pose or a reference to an object. Both
kinds remember the scene they were captured in. Bookmarks compare by
identity, so two records with the same fields stay independent; use
``to_dict()`` to compare field values.
"""

from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple


DEFAULT_GROUP = "Default"
DEFAULT_CAMERA_NAME = "Camera View"
DEFAULT_OBJECT_NAME = "Object"

ZERO_POSITION = (0.0, 0.0, 0.0)
IDENTITY_ROTATION = (1.0, 0.0, 0.0, 0.0)  # (w, x, y, z)


class BookmarkType(Enum):
    CAMERA = "CAMERA"
    OBJECT = "OBJECT"


def normalize_group(group: Optional[str]) -> str:
    """Empty or missing group names fall back to the Default group."""
    if not group:
        return DEFAULT_GROUP
    return group


def _vector(values: Optional[Sequence[float]], size: int, default: Tuple[float, ...]) -> Tuple[float, ...]:
    if values is None:
        return default
    result = tuple(float(v) for v in values)
    if len(result) != size:
        raise ValueError(f"expected {size} components, got {len(result)}")
    return result


class BookmarkEntry:
    """A saved camera view or object reference."""

    def __init__(
        self,
        kind: BookmarkType,
        name: str,
        scene_id: str,
        group: str = DEFAULT_GROUP,
        position: Optional[Sequence[float]] = None,
        rotation: Optional[Sequence[float]] = None,
        object_ref: str = "",
    ):
        self.kind = BookmarkType(kind)
        self.name = name
        self.group = normalize_group(group)
        self._scene_id = scene_id or ""

        # Fields of the other kind hold their zero values
        if self.kind is BookmarkType.CAMERA:
            self.position = _vector(position, 3, ZERO_POSITION)
            self.rotation = _vector(rotation, 4, IDENTITY_ROTATION)
            self.object_ref = ""
        else:
            self.position = ZERO_POSITION
            self.rotation = IDENTITY_ROTATION
            self.object_ref = object_ref or ""

    @classmethod
    def for_camera(cls, name, scene_id, position, rotation, group=DEFAULT_GROUP):
        return cls(BookmarkType.CAMERA, (name or "").strip() or DEFAULT_CAMERA_NAME, scene_id, group,
                   position=position, rotation=rotation)

    @classmethod
    def for_object(cls, name, scene_id, object_ref, group=DEFAULT_GROUP):
        return cls(BookmarkType.OBJECT, (name or "").strip() or DEFAULT_OBJECT_NAME, scene_id, group,
                   object_ref=object_ref)

    @property
    def scene_id(self) -> str:
        """Identity of the owning scene, fixed at creation."""
        return self._scene_id

    @property
    def is_camera(self) -> bool:
        return self.kind is BookmarkType.CAMERA

    @property
    def key(self) -> Tuple[str, str]:
        """De-duplication key used when merging foreign record sets."""
        return (self.name, self.group)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "group": self.group,
            "sceneId": self._scene_id,
            "position": list(self.position),
            "rotation": list(self.rotation),
            "objectRef": self.object_ref,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookmarkEntry":
        """Build an entry from its persisted form.

        Missing keys take their defaults. Raises ``ValueError`` (or
        ``TypeError``) on an unknown kind, a non-string group or malformed
        vectors.
        """
        if not isinstance(data, dict):
            raise TypeError(f"bookmark record must be an object, got {type(data).__name__}")
        group = data.get("group")
        if group is not None and not isinstance(group, str):
            raise ValueError(f"group must be a string, got {type(group).__name__}")
        return cls(
            BookmarkType(data.get("kind", BookmarkType.CAMERA.value)),
            str(data.get("name") or ""),
            str(data.get("sceneId") or ""),
            group or DEFAULT_GROUP,
            position=data.get("position"),
            rotation=data.get("rotation"),
            object_ref=str(data.get("objectRef") or ""),
        )

    def copy(self) -> "BookmarkEntry":
        return BookmarkEntry.from_dict(self.to_dict())

    def __repr__(self):
        return f"BookmarkEntry({self.kind.value}, name={self.name!r}, group={self.group!r})"
