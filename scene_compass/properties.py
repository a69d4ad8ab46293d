"""
Panel state for Scene Compass (search text and scope toggle).

Kept on the WindowManager so it is shared by every 3D View and never saved
into the .blend.
"""

import bpy


def _redraw(self, context):
    from . import utils
    utils.tag_redraw_all_view3d(context)


def default_current_scene_only():
    from .preferences import get_preferences
    try:
        return get_preferences().current_scene_only_default
    except (KeyError, AttributeError, RuntimeError):
        return True


class SceneCompassProperties(bpy.types.PropertyGroup):
    """Shared panel state."""

    search_text: bpy.props.StringProperty(
        name="Search",
        description="Show bookmarks whose name or group contains this text",
        default="",
        options={'SKIP_SAVE', 'TEXTEDIT_UPDATE'},
        update=_redraw,
    )

    current_scene_only: bpy.props.BoolProperty(
        name="Current Scene Only",
        description="Show only bookmarks captured in the current scene",
        default=True,
        options={'SKIP_SAVE'},
        update=_redraw,
    )


def visible_scene_id(context):
    """Scene filter for the panel: the current scene id, or None for all scenes."""
    from .blender_environment import peek_identity

    if not context.window_manager.scene_compass.current_scene_only:
        return None
    return peek_identity(context.scene)


def register():
    bpy.utils.register_class(SceneCompassProperties)
    bpy.types.WindowManager.scene_compass = bpy.props.PointerProperty(type=SceneCompassProperties)


def unregister():
    if hasattr(bpy.types.WindowManager, "scene_compass"):
        del bpy.types.WindowManager.scene_compass
    bpy.utils.unregister_class(SceneCompassProperties)
