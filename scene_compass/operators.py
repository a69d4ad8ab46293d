"""
Operators for Scene Compass.

Operators are thin: they gather input, ask for confirmation where the store
expects the caller to, and forward to the store, navigation and merge
modules. The add-on session owns the one BookmarkStore and hands it to them.
"""

import json

import bpy

from . import debug_tools
from . import utils
from .bookmark import DEFAULT_GROUP
from .measure import MeasureSession
from .merge import merge_bookmarks
from .navigation import NavigationResult, capture_bookmark, go_to
from .paths import sample_bookmarks_path
from .store import BookmarkStore


# ============================================================================
# SESSION
# ============================================================================

class Session:
    """State of one add-on session: the bookmark store and the measure path."""

    def __init__(self):
        self.store = None
        self.measure = MeasureSession()

    def open(self, path):
        self.store = BookmarkStore(path)
        self.store.load()
        return self.store

    def reopen(self):
        from .preferences import get_bookmarks_path
        return self.open(get_bookmarks_path())

    def close(self):
        if self.store is not None:
            self.store.flush()
        self.store = None

    def require_store(self):
        if self.store is None:
            return self.reopen()
        return self.store

    def environment(self, context):
        from .blender_environment import BlenderSceneEnvironment
        from .preferences import get_preferences

        try:
            save_before_switch = get_preferences().save_before_scene_switch
        except (KeyError, AttributeError, RuntimeError):
            save_before_switch = False
        return BlenderSceneEnvironment(context, save_before_switch=save_before_switch)


session = Session()


# ============================================================================
# HELPERS
# ============================================================================

# Blender needs the enum item strings kept alive while the dropdown is open
_group_items_cache = []


def _group_items(self, context):
    store = session.store
    groups = store.sorted_groups() if store is not None else [DEFAULT_GROUP]
    _group_items_cache[:] = [(group, group, "") for group in groups]
    return _group_items_cache


def _entry_at(index, snapshot=""):
    """Record at ``index``, or None if it changed since ``snapshot`` was taken."""
    expected = json.loads(snapshot) if snapshot else None
    return session.require_store().entry_at(index, expected)


def _snapshot(entry):
    return json.dumps(entry.to_dict())


def _invoke_confirm(operator, context, event, title, message, confirm_text="OK"):
    """Confirmation popup with a message, falling back for older Blender versions."""
    wm = context.window_manager
    try:
        return wm.invoke_confirm(operator, event, title=title, message=message,
                                 confirm_text=confirm_text, icon='WARNING')
    except TypeError:
        return wm.invoke_confirm(operator, event)


def _is_current_scene_only(context):
    props = getattr(context.window_manager, "scene_compass", None)
    return bool(props and props.current_scene_only)


def _scope_counts(context, group_name):
    """(visible, total) record counts of a group under the panel's scene filter."""
    from .properties import visible_scene_id

    store = session.require_store()
    total = store.count_in_group(group_name)
    if not _is_current_scene_only(context):
        return (total, total)
    return (store.count_in_group(group_name, visible_scene_id(context)), total)


def _resolve_group(operator):
    """Group chosen in a bookmark dialog, or None if the new name is blank."""
    if operator.create_new_group:
        name = operator.new_group_name.strip()
        return name or None
    return operator.group


def _draw_group_choice(operator, layout):
    row = layout.row()
    row.enabled = not operator.create_new_group
    row.prop(operator, "group")
    layout.prop(operator, "create_new_group")
    if operator.create_new_group:
        layout.prop(operator, "new_group_name")


# ============================================================================
# BOOKMARK OPERATORS
# ============================================================================

class SCENECOMPASS_OT_add_bookmark(bpy.types.Operator):
    """Bookmark the selected object, or the current view if nothing is selected"""
    bl_idname = "scene_compass.add_bookmark"
    bl_label = "Add Bookmark"
    bl_options = {'REGISTER'}

    name: bpy.props.StringProperty(
        name="Name",
        description="Leave empty to use the object name, or \"Camera View\"",
        default="",
        options={'SKIP_SAVE'},
    )
    group: bpy.props.EnumProperty(name="Group", items=_group_items)
    create_new_group: bpy.props.BoolProperty(name="Create New Group", default=False, options={'SKIP_SAVE'})
    new_group_name: bpy.props.StringProperty(name="Group Name", default="", options={'SKIP_SAVE'})

    def invoke(self, context, event):
        store = session.require_store()
        try:
            self.group = store.last_used_group
        except TypeError:
            pass  # Last used group no longer exists
        return context.window_manager.invoke_props_dialog(self, width=320)

    def draw(self, context):
        layout = self.layout
        obj = context.active_object
        if obj is not None and obj.select_get():
            layout.label(text=f"Object: {obj.name}", icon='OBJECT_DATA')
        else:
            layout.label(text="Current view", icon='VIEW_CAMERA')
        layout.prop(self, "name")
        _draw_group_choice(self, layout)

    def execute(self, context):
        store = session.require_store()
        group = _resolve_group(self)
        if group is None:
            self.report({'WARNING'}, "Group name cannot be empty")
            return {'CANCELLED'}

        entry = capture_bookmark(session.environment(context), self.name, group)
        if entry is None:
            self.report({'ERROR'}, "Nothing to bookmark: no selection and no 3D View found")
            return {'CANCELLED'}

        store.add(entry)
        utils.tag_redraw_all_view3d(context)
        self.report({'INFO'}, f"Added bookmark: {entry.name}")
        return {'FINISHED'}


class SCENECOMPASS_OT_edit_bookmark(bpy.types.Operator):
    """Rename the bookmark or move it to another group"""
    bl_idname = "scene_compass.edit_bookmark"
    bl_label = "Edit Bookmark"
    bl_options = {'REGISTER', 'INTERNAL'}

    index: bpy.props.IntProperty(default=-1, options={'SKIP_SAVE'})
    snapshot: bpy.props.StringProperty(default="", options={'SKIP_SAVE', 'HIDDEN'})
    name: bpy.props.StringProperty(name="Name", default="")
    group: bpy.props.EnumProperty(name="Group", items=_group_items)
    create_new_group: bpy.props.BoolProperty(name="Create New Group", default=False, options={'SKIP_SAVE'})
    new_group_name: bpy.props.StringProperty(name="Group Name", default="", options={'SKIP_SAVE'})

    def invoke(self, context, event):
        entry = _entry_at(self.index)
        if entry is None:
            self.report({'WARNING'}, "Bookmark not found")
            return {'CANCELLED'}
        self.snapshot = _snapshot(entry)
        self.name = entry.name
        self.group = entry.group
        return context.window_manager.invoke_props_dialog(self, width=320)

    def draw(self, context):
        layout = self.layout
        layout.prop(self, "name")
        _draw_group_choice(self, layout)

    def execute(self, context):
        entry = _entry_at(self.index, self.snapshot)
        if entry is None:
            self.report({'WARNING'}, "Bookmark not found. The bookmark list changed, try again")
            return {'CANCELLED'}
        group = _resolve_group(self)
        if group is None:
            self.report({'WARNING'}, "Group name cannot be empty")
            return {'CANCELLED'}

        session.require_store().edit(entry, self.name, group)
        utils.tag_redraw_all_view3d(context)
        self.report({'INFO'}, f"Updated bookmark: {entry.name}")
        return {'FINISHED'}


class SCENECOMPASS_OT_delete_bookmark(bpy.types.Operator):
    """Delete the bookmark"""
    bl_idname = "scene_compass.delete_bookmark"
    bl_label = "Delete Bookmark"
    bl_options = {'REGISTER', 'INTERNAL'}

    index: bpy.props.IntProperty(default=-1, options={'SKIP_SAVE'})
    snapshot: bpy.props.StringProperty(default="", options={'SKIP_SAVE', 'HIDDEN'})

    def invoke(self, context, event):
        entry = _entry_at(self.index)
        if entry is None:
            self.report({'WARNING'}, "Bookmark not found")
            return {'CANCELLED'}
        self.snapshot = _snapshot(entry)
        return _invoke_confirm(self, context, event, "Delete Bookmark",
                               f"Are you sure you want to delete '{entry.name}'?", "Delete")

    def execute(self, context):
        entry = _entry_at(self.index, self.snapshot)
        if entry is None or not session.require_store().delete(entry):
            self.report({'WARNING'}, "Bookmark not found. The bookmark list changed, try again")
            return {'CANCELLED'}
        utils.tag_redraw_all_view3d(context)
        self.report({'INFO'}, f"Deleted bookmark: {entry.name}")
        return {'FINISHED'}


class SCENECOMPASS_OT_go_to_bookmark(bpy.types.Operator):
    """Go to the bookmarked view or object"""
    bl_idname = "scene_compass.go_to_bookmark"
    bl_label = "Go To Bookmark"
    bl_options = {'REGISTER', 'INTERNAL'}

    index: bpy.props.IntProperty(default=-1, options={'SKIP_SAVE'})
    snapshot: bpy.props.StringProperty(default="", options={'SKIP_SAVE', 'HIDDEN'})

    def invoke(self, context, event):
        from .blender_environment import find_by_identity

        entry = _entry_at(self.index)
        if entry is None:
            self.report({'WARNING'}, "Bookmark not found")
            return {'CANCELLED'}
        self.snapshot = _snapshot(entry)

        env = session.environment(context)
        if entry.scene_id == env.current_scene_id():
            return self.execute(context)

        scene = find_by_identity(entry.scene_id, bpy.data.scenes)
        if scene is None:
            self.report({'WARNING'}, "The scene for this bookmark could not be found. It may have been deleted")
            return {'CANCELLED'}
        return _invoke_confirm(self, context, event, "Open Different Scene?",
                               f"This bookmark is in scene '{scene.name}'. Switch to that scene?",
                               "Switch")

    def execute(self, context):
        entry = _entry_at(self.index, self.snapshot)
        if entry is None:
            self.report({'WARNING'}, "Bookmark not found. The bookmark list changed, try again")
            return {'CANCELLED'}

        # Switching was confirmed in invoke(); saving is the user's preference
        result = go_to(entry, session.environment(context))

        if result is NavigationResult.SCENE_MISSING:
            self.report({'WARNING'}, "The scene for this bookmark could not be found. It may have been deleted")
            return {'CANCELLED'}
        if result is NavigationResult.OBJECT_MISSING:
            self.report({'WARNING'}, f"The bookmarked object of '{entry.name}' could not be found in the scene")
            return {'CANCELLED'}
        if result is NavigationResult.CANCELLED:
            return {'CANCELLED'}

        debug_tools.inc("operators.go_to")
        return {'FINISHED'}


# ============================================================================
# GROUP OPERATORS
# ============================================================================

class SCENECOMPASS_OT_rename_group(bpy.types.Operator):
    """Rename the group for all of its bookmarks"""
    bl_idname = "scene_compass.rename_group"
    bl_label = "Rename Group"
    bl_options = {'REGISTER', 'INTERNAL'}

    group_name: bpy.props.StringProperty(options={'SKIP_SAVE'})
    new_name: bpy.props.StringProperty(name="", default="")

    def invoke(self, context, event):
        self.new_name = self.group_name
        return context.window_manager.invoke_props_dialog(self, width=300)

    def draw(self, context):
        layout = self.layout
        layout.label(text="Rename Group:")
        row = layout.row()
        row.activate_init = True
        row.prop(self, "new_name")

        visible, total = _scope_counts(context, self.group_name)
        if total > visible:
            layout.label(text=f"This group holds {total} bookmarks across all scenes.", icon='ERROR')
            layout.label(text="All of them will be renamed.")

    def execute(self, context):
        new_name = self.new_name.strip()
        if not new_name:
            self.report({'WARNING'}, "Group name cannot be empty")
            return {'CANCELLED'}
        if new_name == self.group_name:
            return {'FINISHED'}

        moved = session.require_store().rename_group(self.group_name, new_name)
        utils.tag_redraw_all_view3d(context)
        self.report({'INFO'}, f"Renamed group '{self.group_name}' to '{new_name}' ({moved} bookmarks)")
        return {'FINISHED'}


class SCENECOMPASS_OT_delete_group(bpy.types.Operator):
    """Delete the group and all of its bookmarks"""
    bl_idname = "scene_compass.delete_group"
    bl_label = "Delete Group"
    bl_options = {'REGISTER', 'INTERNAL'}

    group_name: bpy.props.StringProperty(options={'SKIP_SAVE'})

    def invoke(self, context, event):
        visible, total = _scope_counts(context, self.group_name)
        if total > visible:
            message = (f"This group contains {total} bookmarks across all scenes. "
                       "Are you sure you want to delete all of them?")
        else:
            message = f"Are you sure you want to delete this group and all its {visible} bookmarks?"
        return _invoke_confirm(self, context, event, "Delete Group", message, "Delete")

    def execute(self, context):
        removed = session.require_store().delete_group(self.group_name)
        utils.tag_redraw_all_view3d(context)
        self.report({'INFO'}, f"Deleted group '{self.group_name}' ({removed} bookmarks)")
        return {'FINISHED'}


class SCENECOMPASS_OT_expand_all_groups(bpy.types.Operator):
    """Expand or collapse every group"""
    bl_idname = "scene_compass.expand_all_groups"
    bl_label = "Expand All Groups"
    bl_options = {'INTERNAL'}

    expand: bpy.props.BoolProperty(default=True)

    def execute(self, context):
        session.require_store().expand_all(self.expand)
        utils.tag_redraw_all_view3d(context)
        return {'FINISHED'}


class SCENECOMPASS_OT_toggle_group(bpy.types.Operator):
    """Show or hide the bookmarks of this group"""
    bl_idname = "scene_compass.toggle_group"
    bl_label = "Toggle Group"
    bl_options = {'INTERNAL'}

    group_name: bpy.props.StringProperty(options={'SKIP_SAVE'})

    def execute(self, context):
        store = session.require_store()
        store.set_expanded(self.group_name, not store.is_expanded(self.group_name))
        utils.tag_redraw_all_view3d(context)
        return {'FINISHED'}


# ============================================================================
# STORAGE OPERATORS
# ============================================================================

class SCENECOMPASS_OT_import_sample_bookmarks(bpy.types.Operator):
    """Merge the bundled sample bookmarks. Samples already present are skipped"""
    bl_idname = "scene_compass.import_sample_bookmarks"
    bl_label = "Import Sample Bookmarks"
    bl_options = {'REGISTER'}

    def execute(self, context):
        result = merge_bookmarks(session.require_store(), sample_bookmarks_path())
        if not result.ok:
            self.report({'ERROR'}, f"Failed to import sample bookmarks: {result.message}")
            return {'CANCELLED'}
        utils.tag_redraw_all_view3d(context)
        self.report({'INFO'}, f"Imported {result.added} sample bookmarks ({result.skipped} already present)")
        return {'FINISHED'}


class SCENECOMPASS_OT_reload_bookmarks(bpy.types.Operator):
    """Reload bookmarks from the bookmark file"""
    bl_idname = "scene_compass.reload_bookmarks"
    bl_label = "Reload Bookmarks"
    bl_options = {'REGISTER'}

    def execute(self, context):
        count = len(session.reopen())
        utils.tag_redraw_all_view3d(context)
        self.report({'INFO'}, f"Loaded {count} bookmarks")
        return {'FINISHED'}


class SCENECOMPASS_OT_debug_print_stats(bpy.types.Operator):
    bl_idname = "scene_compass.debug_print_stats"
    bl_label = "Print Debug Stats"
    bl_options = {'INTERNAL'}

    def execute(self, context):
        debug_tools.dump_stats(force=True)
        self.report({'INFO'}, "Printed Scene Compass debug stats to console")
        return {'FINISHED'}


class SCENECOMPASS_OT_debug_reset_stats(bpy.types.Operator):
    bl_idname = "scene_compass.debug_reset_stats"
    bl_label = "Reset Debug Stats"
    bl_options = {'INTERNAL'}

    def execute(self, context):
        debug_tools.reset_stats()
        self.report({'INFO'}, "Reset Scene Compass debug stats")
        return {'FINISHED'}


# ============================================================================
# MEASURE
# ============================================================================

class SCENECOMPASS_OT_measure(bpy.types.Operator):
    """Measure distances: click to place points, Ctrl to snap, right-click to clear"""
    bl_idname = "scene_compass.measure"
    bl_label = "Measure Distance"
    bl_options = {'REGISTER'}

    @classmethod
    def poll(cls, context):
        return context.area is not None and context.area.type == 'VIEW_3D'

    def _mouse_point(self, context, event):
        region = context.region
        region_3d = context.region_data
        if region is None or region_3d is None:
            return None
        mouse_xy = (event.mouse_region_x, event.mouse_region_y)
        point = utils.get_mouse_world_position(context, region, region_3d, mouse_xy)
        return tuple(point) if point is not None else None

    def _update_header(self, context, event=None):
        measure = session.measure
        text = measure.summary()
        if event is not None and measure.points:
            point = self._mouse_point(context, event)
            if point is not None:
                preview = measure.preview_distance(point, snap=event.ctrl or event.oskey)
                text += f"  |  next {preview:.2f}"
        text += "  |  LMB: add point, Ctrl: snap, RMB: clear, Esc: finish"
        context.area.header_text_set(text)

    def _finish(self, context):
        session.measure.release_modifier()
        context.area.header_text_set(None)
        self.report({'INFO'}, session.measure.summary())
        return {'FINISHED'}

    def invoke(self, context, event):
        from .preferences import get_preferences
        try:
            session.measure.snap_step = get_preferences().measure_snap_step
        except (KeyError, AttributeError, RuntimeError):
            pass
        session.measure.press_modifier()
        context.window_manager.modal_handler_add(self)
        self._update_header(context)
        return {'RUNNING_MODAL'}

    def modal(self, context, event):
        measure = session.measure

        if event.type == 'LEFTMOUSE' and event.value == 'PRESS':
            point = self._mouse_point(context, event)
            if point is not None:
                measure.add_point(point, snap=event.ctrl or event.oskey)
            self._update_header(context, event)
            return {'RUNNING_MODAL'}

        if event.type == 'RIGHTMOUSE' and event.value == 'PRESS':
            measure.reset()
            self._update_header(context)
            return {'RUNNING_MODAL'}

        if event.type in {'ESC', 'RET'} or (event.type == 'M' and event.value == 'RELEASE'):
            return self._finish(context)

        if event.type == 'MOUSEMOVE':
            self._update_header(context, event)

        # Viewport navigation keeps working while measuring
        return {'PASS_THROUGH'}


# ============================================================================
# REGISTRATION
# ============================================================================

classes = (
    SCENECOMPASS_OT_add_bookmark,
    SCENECOMPASS_OT_edit_bookmark,
    SCENECOMPASS_OT_delete_bookmark,
    SCENECOMPASS_OT_go_to_bookmark,
    SCENECOMPASS_OT_rename_group,
    SCENECOMPASS_OT_delete_group,
    SCENECOMPASS_OT_expand_all_groups,
    SCENECOMPASS_OT_toggle_group,
    SCENECOMPASS_OT_import_sample_bookmarks,
    SCENECOMPASS_OT_reload_bookmarks,
    SCENECOMPASS_OT_debug_print_stats,
    SCENECOMPASS_OT_debug_reset_stats,
    SCENECOMPASS_OT_measure,
)


def register():
    for cls in classes:
        bpy.utils.register_class(cls)


def unregister():
    for cls in reversed(classes):
        bpy.utils.unregister_class(cls)
