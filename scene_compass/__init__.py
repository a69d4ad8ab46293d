bl_info = {
    "name"          : "Scene Compass",
    "description"   : "Bookmark views and objects, organize them in groups, and jump back to them.",
    "author"        : "Scene Compass Contributors",
    "version"       : (1, 0, 0),
    "blender"       : (4, 2, 0),
    "category"      : "3D View",
    "location"      : "N-Panel > Scene Compass",
}

# bpy is imported inside register()/unregister() only, so the bookmark core
# (bookmark, data_storage, store, merge, navigation, measure) stays importable
# outside Blender.

FILE_WATCH_INTERVAL = 2.0  # seconds

addon_keymaps = []


def _deferred_init():
    """Load bookmarks once bpy.data and the preferences are available."""
    import bpy
    from . import blender_environment, operators, preferences, properties
    from .merge import merge_bookmarks
    from .paths import sample_bookmarks_path

    try:
        blender_environment.initialize_all_uuids()
        store = operators.session.reopen()

        wm = bpy.context.window_manager
        if wm is not None:
            wm.scene_compass.current_scene_only = properties.default_current_scene_only()

        try:
            import_samples = preferences.get_preferences().import_samples_on_startup
        except (KeyError, AttributeError, RuntimeError):
            import_samples = False
        if import_samples:
            merge_bookmarks(store, sample_bookmarks_path())
    except (RuntimeError, ReferenceError, AttributeError, TypeError, ValueError, OSError) as e:
        print(f"[SceneCompass] Deferred init failed: {e}")
    return None  # Don't repeat


def _watch_bookmark_file():
    """Pick up edits made to the bookmark file outside this session."""
    from . import operators, utils

    store = operators.session.store
    if store is not None and store.reload_if_changed():
        utils.tag_redraw_all_view3d()
    return FILE_WATCH_INTERVAL


def _load_post_handler(*_args):
    from . import blender_environment, operators, utils

    blender_environment.initialize_all_uuids()
    store = operators.session.store
    if store is not None:
        store.reload_if_changed()
    utils.tag_redraw_all_view3d()


def register():
    import importlib
    import bpy
    from bpy.app.handlers import persistent
    from . import (
        debug_tools, paths, bookmark, data_storage, store, merge, navigation, measure,
        utils, blender_environment, preferences, properties, operators, ui,
    )

    # Reload modules to pick up changes without restarting Blender.
    # Order matters: leaves first, operators before ui (ui imports the session).
    for module in (debug_tools, paths, bookmark, data_storage, store, merge, navigation,
                   measure, utils, blender_environment, preferences, properties, operators, ui):
        importlib.reload(module)

    preferences.register()
    properties.register()
    operators.register()
    ui.register()

    # bpy.data is restricted during registration
    bpy.app.timers.register(_deferred_init, first_interval=0.5)
    bpy.app.timers.register(_watch_bookmark_file, first_interval=FILE_WATCH_INTERVAL, persistent=True)

    # Tags the handler in place so it survives file loads
    persistent(_load_post_handler)
    if _load_post_handler not in bpy.app.handlers.load_post:
        bpy.app.handlers.load_post.append(_load_post_handler)

    wm = bpy.context.window_manager
    kc = wm.keyconfigs.addon
    if kc:
        km = kc.keymaps.new(name="3D View", space_type="VIEW_3D")

        # Add Bookmark (Alt+Shift+B) - ENABLED by default
        kmi = km.keymap_items.new(operators.SCENECOMPASS_OT_add_bookmark.bl_idname,
                                  type='B', value='PRESS', alt=True, shift=True)
        addon_keymaps.append((km, kmi))

        # Measure while holding M - disabled by default (M is Move to Collection)
        kmi = km.keymap_items.new(operators.SCENECOMPASS_OT_measure.bl_idname, type='M', value='PRESS')
        kmi.active = False
        addon_keymaps.append((km, kmi))


def unregister():
    import bpy
    from . import operators, preferences, properties, ui

    # Remove keymaps first
    for km, kmi in addon_keymaps:
        km.keymap_items.remove(kmi)
    addon_keymaps.clear()

    if _load_post_handler in bpy.app.handlers.load_post:
        bpy.app.handlers.load_post.remove(_load_post_handler)
    if bpy.app.timers.is_registered(_watch_bookmark_file):
        bpy.app.timers.unregister(_watch_bookmark_file)
    if bpy.app.timers.is_registered(_deferred_init):
        bpy.app.timers.unregister(_deferred_init)

    # Last write before the session goes away
    operators.session.close()

    ui.unregister()
    operators.unregister()
    properties.unregister()
    preferences.unregister()
