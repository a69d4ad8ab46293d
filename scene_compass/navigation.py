"""
Navigation to bookmarks and creation of bookmarks from the live selection.

Both work through a SceneEnvironment, the host-side collaborator that knows
the open scene, the selection and the viewport. Neither touches the store.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Protocol, Sequence, Union, runtime_checkable

from . import debug_tools
from .bookmark import BookmarkEntry, DEFAULT_CAMERA_NAME


class CameraCapture:
    """Viewpoint pose captured when nothing is selected."""

    def __init__(self, position: Sequence[float], rotation: Sequence[float]):
        self.position = tuple(position)
        self.rotation = tuple(rotation)


class ObjectCapture:
    """Reference to the selected object."""

    def __init__(self, object_ref: str, display_name: str):
        self.object_ref = object_ref
        self.display_name = display_name


Capture = Union[CameraCapture, ObjectCapture]


class NavigationResult(Enum):
    OK = "ok"
    CANCELLED = "cancelled"
    SCENE_MISSING = "scene_missing"
    OBJECT_MISSING = "object_missing"


@runtime_checkable
class SceneEnvironment(Protocol):
    """What the host must provide to capture and resolve bookmarks."""

    def current_scene_id(self) -> str: ...

    def capture_selection(self) -> Optional[Capture]:
        """The selected object, else the viewpoint pose, or None if neither is available."""
        ...

    def resolve(self, entry: BookmarkEntry) -> Any:
        """Live handle for an object bookmark, or None if its object is gone."""
        ...

    def apply_camera(self, position: Sequence[float], rotation: Sequence[float]) -> None: ...

    def focus(self, handle: Any) -> None:
        """Select and frame a resolved object."""
        ...

    def open_scene(self, scene_id: str) -> bool: ...

    def is_dirty(self) -> bool: ...

    def save_current(self) -> bool: ...


def _always(*_args) -> bool:
    return True


def capture_bookmark(env: SceneEnvironment, name: str = "", group: str = "") -> Optional[BookmarkEntry]:
    """Create a bookmark from the current selection or viewpoint.

    A blank name defaults to "Camera View" for viewpoints and to the
    object's current name for objects. Returns None when the host has
    nothing to capture.
    """
    capture = env.capture_selection()
    if capture is None:
        return None

    name = (name or "").strip()
    scene_id = env.current_scene_id()
    if isinstance(capture, ObjectCapture):
        return BookmarkEntry.for_object(name or capture.display_name, scene_id,
                                        capture.object_ref, group)
    return BookmarkEntry.for_camera(name or DEFAULT_CAMERA_NAME, scene_id,
                                    capture.position, capture.rotation, group)


def go_to(
    entry: BookmarkEntry,
    env: SceneEnvironment,
    confirm_switch: Callable[[BookmarkEntry], bool] = _always,
    confirm_save: Callable[[], bool] = _always,
) -> NavigationResult:
    """Bring a bookmark into view, switching scenes first if needed.

    ``confirm_switch`` is asked before leaving the current scene and
    ``confirm_save`` before saving unsaved changes; either answering False,
    or a failed save, cancels the navigation.
    """
    if entry.scene_id != env.current_scene_id():
        if not confirm_switch(entry):
            return NavigationResult.CANCELLED
        if env.is_dirty():
            if not confirm_save():
                return NavigationResult.CANCELLED
            if not env.save_current():
                debug_tools.warn("Could not save the current file, staying in this scene")
                return NavigationResult.CANCELLED
        if not env.open_scene(entry.scene_id):
            debug_tools.log(f"scene {entry.scene_id!r} for {entry.name!r} not found")
            return NavigationResult.SCENE_MISSING

    if entry.is_camera:
        env.apply_camera(entry.position, entry.rotation)
        return NavigationResult.OK

    handle = env.resolve(entry)
    if handle is None:
        debug_tools.log(f"object {entry.object_ref!r} for {entry.name!r} not found")
        return NavigationResult.OBJECT_MISSING
    env.focus(handle)
    return NavigationResult.OK
