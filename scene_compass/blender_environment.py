"""
Blender side of bookmark navigation.

Scenes and objects are tracked by a UUID custom property, so bookmarks keep
resolving after a rename or reparent. Linked (read-only) datablocks can't
hold custom properties and are identified by library path and name instead.
"""

import uuid
from collections import defaultdict
from typing import Optional

import bpy

from . import debug_tools
from . import utils
from .navigation import CameraCapture, ObjectCapture


# Custom property key for UUID tracking
UUID_PROP_KEY = "scene_compass_uuid"

LINKED_PREFIX = "lib::"


# =============================================================================
# UUID HELPERS - For tracking scenes/objects by persistent ID
# =============================================================================

def is_id_writable(id_block) -> bool:
    """Check if a datablock is writable (not linked without override)."""
    # Linked without override → read-only
    if id_block.library is not None and id_block.override_library is None:
        return False
    return True


def _linked_identity(id_block) -> str:
    lib_path = bpy.path.abspath(id_block.library.filepath) if id_block.library else ""
    return f"{LINKED_PREFIX}{lib_path}::{id_block.name}"


def ensure_uuid(id_block) -> Optional[str]:
    """Ensure a writable datablock has a UUID custom property and return it.

    Returns None for read-only (linked) datablocks.
    """
    if not is_id_writable(id_block):
        return None
    if UUID_PROP_KEY not in id_block:
        id_block[UUID_PROP_KEY] = str(uuid.uuid4())
    return id_block[UUID_PROP_KEY]


def get_identity(id_block) -> str:
    """Stable identity: the UUID for local datablocks, lib::path::name for linked ones."""
    identity = ensure_uuid(id_block)
    if identity is None:
        return _linked_identity(id_block)
    return identity


def peek_identity(id_block) -> str:
    """Like get_identity() but never writes, for use while drawing.

    Returns "" for a local datablock that has no UUID yet.
    """
    if not is_id_writable(id_block):
        return _linked_identity(id_block)
    return id_block.get(UUID_PROP_KEY, "")


def find_by_identity(identity_str: str, collection) -> Optional["bpy.types.ID"]:
    """Find a datablock in ``collection`` by its identity (UUID or lib::path::name)."""
    if not identity_str:
        return None

    if identity_str.startswith(LINKED_PREFIX):
        for id_block in collection:
            if not is_id_writable(id_block) and _linked_identity(id_block) == identity_str:
                return id_block
        return None

    for id_block in collection:
        if id_block.get(UUID_PROP_KEY) == identity_str:
            return id_block
    return None


def fix_duplicate_uuids(collection) -> int:
    """Regenerate UUIDs copied by duplication. Keeps the first holder of each.

    Returns the number of datablocks that got a new UUID.
    """
    uuid_map = defaultdict(list)
    for id_block in collection:
        if not is_id_writable(id_block):
            continue  # Skip linked datablocks
        uid = id_block.get(UUID_PROP_KEY)
        if uid:
            uuid_map[uid].append(id_block)

    fixed = 0
    for holders in uuid_map.values():
        for id_block in holders[1:]:
            id_block[UUID_PROP_KEY] = str(uuid.uuid4())
            fixed += 1
    return fixed


def initialize_all_uuids() -> None:
    """Give every writable scene a UUID and repair duplicates from scene copies."""
    fixed = fix_duplicate_uuids(bpy.data.scenes)
    if fixed:
        debug_tools.log(f"regenerated {fixed} duplicated scene UUIDs")
    for scene in bpy.data.scenes:
        ensure_uuid(scene)


# =============================================================================
# SCENE ENVIRONMENT
# =============================================================================

class BlenderSceneEnvironment:
    """SceneEnvironment backed by the running Blender session."""

    def __init__(self, context=None, save_before_switch: bool = False):
        self._context = context
        # Scenes share one .blend, so switching never discards edits;
        # saving first is an opt-in preference.
        self.save_before_switch = save_before_switch

    @property
    def context(self):
        return self._context or bpy.context

    def _scene(self):
        ctx = self.context
        window = getattr(ctx, "window", None)
        if window is not None and window.scene is not None:
            return window.scene
        return ctx.scene

    def current_scene_id(self) -> str:
        return get_identity(self._scene())

    def capture_selection(self):
        ctx = self.context
        obj = getattr(ctx, "active_object", None)
        if obj is not None and obj.select_get():
            fix_duplicate_uuids(self._scene().objects)
            return ObjectCapture(get_identity(obj), obj.name)

        _area, _space, region = utils.find_view3d_context(ctx)
        if region is None:
            return None
        q = region.view_rotation
        # Quaternion stored as (w, x, y, z)
        return CameraCapture(tuple(region.view_location), (q.w, q.x, q.y, q.z))

    def resolve(self, entry):
        scene = self._scene()
        fix_duplicate_uuids(scene.objects)
        return find_by_identity(entry.object_ref, scene.objects)

    def apply_camera(self, position, rotation) -> None:
        from mathutils import Quaternion, Vector

        _area, _space, region = utils.find_view3d_context(self.context)
        if region is None:
            debug_tools.warn("No 3D View found to apply the bookmark to")
            return
        region.view_location = Vector(position)
        region.view_rotation = Quaternion(rotation)
        utils.tag_redraw_all_view3d(self.context)

    def focus(self, obj) -> None:
        ctx = self.context
        view_layer = ctx.view_layer
        try:
            for other in view_layer.objects.selected:
                other.select_set(False)
            obj.select_set(True)
            view_layer.objects.active = obj
        except RuntimeError as e:
            # Objects excluded from the view layer can't be selected
            debug_tools.warn(f"Could not select '{obj.name}': {e}")
            return

        window, area, region = utils.find_view3d_override_context(ctx)
        if area is None:
            return
        try:
            with ctx.temp_override(window=window, area=area, region=region):
                bpy.ops.view3d.view_selected()
        except RuntimeError as e:
            debug_tools.log(f"view_selected failed: {e}")

    def open_scene(self, scene_id: str) -> bool:
        scene = find_by_identity(scene_id, bpy.data.scenes)
        if scene is None:
            return False
        window = getattr(self.context, "window", None)
        if window is None:
            return False
        window.scene = scene
        return True

    def is_dirty(self) -> bool:
        return self.save_before_switch and bpy.data.is_dirty

    def save_current(self) -> bool:
        if not bpy.data.filepath:
            debug_tools.warn("The current file has never been saved")
            return False
        try:
            bpy.ops.wm.save_mainfile()
        except RuntimeError as e:
            debug_tools.error(f"Failed to save {bpy.data.filepath}: {e}")
            return False
        return True
