# ui.py
"""
UI components for Scene Compass - the bookmarks N-panel.
"""

import bpy

from .operators import session
from .properties import visible_scene_id


# =============================================================================
# SHARED DRAW FUNCTIONS
# =============================================================================

def draw_group(layout, store, group, entries, positions):
    """Draw one foldable group box with its bookmarks."""
    expanded = store.is_expanded(group)

    box = layout.box()
    row = box.row(align=True)
    op = row.operator(
        "scene_compass.toggle_group",
        text="",
        icon='TRIA_DOWN' if expanded else 'TRIA_RIGHT',
        emboss=False,
    )
    op.group_name = group
    row.label(text=f"{group} ({len(entries)})", icon='FILE_FOLDER')

    sub = row.row(align=True)
    sub.operator_context = 'INVOKE_DEFAULT'
    sub.operator("scene_compass.rename_group", text="", icon='FONT_DATA').group_name = group
    sub.operator("scene_compass.delete_group", text="", icon='TRASH').group_name = group

    if not expanded:
        return

    col = box.column(align=True)
    for entry in entries:
        index = positions[id(entry)]
        row = col.row(align=True)
        row.operator_context = 'INVOKE_DEFAULT'
        op = row.operator(
            "scene_compass.go_to_bookmark",
            text=entry.name,
            icon='VIEW_CAMERA' if entry.is_camera else 'OBJECT_DATA',
        )
        op.index = index
        row.operator("scene_compass.edit_bookmark", text="", icon='GREASEPENCIL').index = index
        row.operator("scene_compass.delete_bookmark", text="", icon='X').index = index


def draw_bookmarks(layout, context):
    """Draw the toolbar, the filters and the grouped bookmark list."""
    store = session.store
    if store is None:
        layout.label(text="Bookmarks not loaded yet")
        layout.operator("scene_compass.reload_bookmarks", icon='FILE_REFRESH')
        return

    props = context.window_manager.scene_compass

    row = layout.row(align=True)
    row.operator_context = 'INVOKE_DEFAULT'
    row.scale_y = 1.3
    row.operator("scene_compass.add_bookmark", icon='ADD')
    row.operator("scene_compass.measure", text="", icon='DRIVER_DISTANCE')

    row = layout.row(align=True)
    row.prop(props, "search_text", text="", icon='VIEWZOOM')
    row.prop(props, "current_scene_only", text="", icon='SCENE_DATA')
    row.operator("scene_compass.expand_all_groups", text="", icon='DISCLOSURE_TRI_DOWN').expand = True
    row.operator("scene_compass.expand_all_groups", text="", icon='DISCLOSURE_TRI_RIGHT').expand = False

    grouped = store.grouped(visible_scene_id(context), props.search_text)
    if not grouped:
        col = layout.column()
        col.alignment = 'CENTER'
        if props.search_text:
            col.label(text="No bookmarks match your search.")
        else:
            col.label(text="No bookmarks found. Click 'Add Bookmark' to create one.")
    else:
        positions = {id(entry): i for i, entry in enumerate(store.records)}
        for group, entries in grouped:
            draw_group(layout, store, group, entries, positions)

    layout.separator()
    row = layout.row(align=True)
    row.operator("scene_compass.import_sample_bookmarks", text="Import Samples", icon='IMPORT')
    row.operator("scene_compass.reload_bookmarks", text="", icon='FILE_REFRESH')


# =============================================================================
# N-PANEL
# =============================================================================

class VIEW3D_PT_scene_compass(bpy.types.Panel):
    """N-Panel listing Scene Compass bookmarks."""
    bl_space_type = 'VIEW_3D'
    bl_region_type = 'UI'
    bl_category = "Scene Compass"  # Tab name in N-panel
    bl_label = "Bookmarks"

    def draw(self, context):
        draw_bookmarks(self.layout, context)


# =============================================================================
# REGISTRATION
# =============================================================================

classes = [
    VIEW3D_PT_scene_compass,
]


def register():
    for cls in classes:
        bpy.utils.register_class(cls)


def unregister():
    for cls in reversed(classes):
        bpy.utils.unregister_class(cls)
