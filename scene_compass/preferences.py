"""
Add-on preferences for Scene Compass.
"""

import bpy

from . import debug_tools


# ============================================================================
# PREFERENCE UPDATE CALLBACKS
# ============================================================================

def update_debug_enabled(self, context):
    debug_tools.set_enabled(self.debug_enabled)


def update_data_directory(self, context):
    """Point the session store at the new file and load it."""
    from . import operators
    operators.session.reopen()


# ============================================================================
# ADDON PREFERENCES
# ============================================================================

class SceneCompassPreferences(bpy.types.AddonPreferences):
    bl_idname = __package__

    data_directory: bpy.props.StringProperty(
        name="Bookmark Folder",
        description="Folder holding bookmarks.json. Leave empty to use Blender's config folder",
        subtype='DIR_PATH',
        default="",
        update=update_data_directory,
    )

    import_samples_on_startup: bpy.props.BoolProperty(
        name="Import Sample Bookmarks",
        description="Merge the bundled sample bookmarks when the add-on starts. Already imported samples are skipped",
        default=True,
    )

    current_scene_only_default: bpy.props.BoolProperty(
        name="Current Scene Only",
        description="Show only bookmarks of the current scene by default",
        default=True,
    )

    save_before_scene_switch: bpy.props.BoolProperty(
        name="Save Before Switching Scene",
        description="Offer to save unsaved changes before a bookmark switches to another scene",
        default=False,
    )

    measure_snap_step: bpy.props.FloatProperty(
        name="Measure Snap Step",
        description="Grid step used when snapping measure points (hold Ctrl)",
        default=1.0,
        min=0.001,
        soft_max=10.0,
    )

    debug_enabled: bpy.props.BoolProperty(
        name="Debug Mode",
        description="Enable Scene Compass debug logging, counters and timings (prints to console)",
        default=False,
        update=update_debug_enabled,
    )

    def draw(self, context):
        layout = self.layout

        col = layout.column()
        col.prop(self, "data_directory")
        col.label(text=f"Bookmark file: {get_bookmarks_path()}", icon='FILE_TEXT')

        layout.separator()
        col = layout.column(heading="Bookmarks")
        col.prop(self, "current_scene_only_default")
        col.prop(self, "save_before_scene_switch")
        col.prop(self, "import_samples_on_startup")

        layout.separator()
        col = layout.column(heading="Measure")
        col.prop(self, "measure_snap_step")

        layout.separator()
        row = layout.row()
        row.prop(self, "debug_enabled")
        sub = row.row(align=True)
        sub.enabled = self.debug_enabled
        sub.operator("scene_compass.debug_print_stats", text="Print Stats")
        sub.operator("scene_compass.debug_reset_stats", text="Reset Stats")


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def get_preferences():
    """Get addon preferences."""
    return bpy.context.preferences.addons[__package__].preferences


def get_bookmarks_path():
    """Resolve the bookmark file from preferences and Blender's config folder."""
    from .paths import bookmarks_path

    config_dir = bpy.utils.user_resource('CONFIG', path="scene_compass")
    try:
        override = get_preferences().data_directory
    except (KeyError, AttributeError, RuntimeError):
        override = ""
    if override:
        override = bpy.path.abspath(override)
    return bookmarks_path(config_dir, override)


# ============================================================================
# REGISTRATION
# ============================================================================

classes = [
    SceneCompassPreferences,
]


def register():
    for cls in classes:
        bpy.utils.register_class(cls)
    try:
        debug_tools.set_enabled(get_preferences().debug_enabled)
    except (KeyError, AttributeError, RuntimeError):
        pass


def unregister():
    for cls in reversed(classes):
        bpy.utils.unregister_class(cls)
