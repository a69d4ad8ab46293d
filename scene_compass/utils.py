"""
3D viewport helpers for Scene Compass
"""

import bpy


# ============================================================================
# VIEW_3D CONTEXT UTILITIES
# ============================================================================

def _get_view3d_space_region(area):
    """Return (space, region_3d) for a VIEW_3D area, else (None, None)."""
    if not area or area.type != 'VIEW_3D':
        return (None, None)
    for space in area.spaces:
        if space.type == 'VIEW_3D':
            region = getattr(space, "region_3d", None)
            if region:
                return (space, region)
    return (None, None)


def _get_view3d_window_region(area):
    """Return WINDOW region for a VIEW_3D area, else None."""
    if not area or area.type != 'VIEW_3D':
        return None
    for region in area.regions:
        if region.type == 'WINDOW':
            return region
    return None


def _iter_view3d_areas(context):
    """Yield (window, area) for every VIEW_3D area across all windows."""
    wm = getattr(context, "window_manager", None) or getattr(bpy.context, "window_manager", None)
    if not wm:
        return
    for window in wm.windows:
        screen = window.screen
        if not screen:
            continue
        for area in screen.areas:
            if area.type == 'VIEW_3D':
                yield (window, area)


def find_view3d_context(context):
    """
    Find VIEW_3D area, space, and region from any context.

    Useful when operating from non-3D contexts (TOPBAR, timers, etc.)
    Returns (area, space, region_3d) tuple, or (None, None, None) if not found.
    """
    # Direct context first (fastest path)
    if context.space_data and context.space_data.type == 'VIEW_3D':
        area = context.area if context.area and context.area.type == 'VIEW_3D' else None
        region = context.region_data or getattr(context.space_data, "region_3d", None)
        if region:
            return (area, context.space_data, region)

    # Fall back to searching screen
    if context.screen:
        for area in context.screen.areas:
            if area.type == 'VIEW_3D':
                space, region = _get_view3d_space_region(area)
                if space and region:
                    return (area, space, region)

    # Last resort: scan all windows/screens.
    for _window, area in _iter_view3d_areas(context):
        space, region = _get_view3d_space_region(area)
        if space and region:
            return (area, space, region)

    return (None, None, None)


def find_view3d_override_context(context):
    """
    Find (window, area, WINDOW-region) for context.temp_override().

    Returns (None, None, None) when no 3D viewport is open.
    """
    area, space, region_3d = find_view3d_context(context)
    if not space or not region_3d:
        return (None, None, None)

    window = None
    for candidate_window, candidate_area in _iter_view3d_areas(context):
        if area is not None and candidate_area == area:
            window = candidate_window
            break
        if area is None and any(s == space for s in candidate_area.spaces):
            window, area = candidate_window, candidate_area
            break

    if not area:
        return (None, None, None)
    window_region = _get_view3d_window_region(area)
    if not window_region:
        return (None, None, None)
    return (window or context.window, area, window_region)


def tag_redraw_all_view3d(context=None):
    """Tag redraw on all VIEW_3D areas across all windows."""
    ctx = context or bpy.context
    try:
        for _window, area in _iter_view3d_areas(ctx):
            area.tag_redraw()
    except (RuntimeError, ReferenceError, AttributeError):
        pass


# ============================================================================
# MOUSE TO WORLD
# ============================================================================

def get_mouse_world_position(context, region, region_3d, mouse_xy):
    """World position under the mouse: surface hit if any, else the view plane.

    The fallback plane passes through the view pivot, which keeps clicks in
    empty space at a sensible depth.
    """
    from bpy_extras import view3d_utils

    origin = view3d_utils.region_2d_to_origin_3d(region, region_3d, mouse_xy)
    direction = view3d_utils.region_2d_to_vector_3d(region, region_3d, mouse_xy)

    depsgraph = context.evaluated_depsgraph_get()
    hit, location, _normal, _index, _obj, _matrix = context.scene.ray_cast(depsgraph, origin, direction)
    if hit:
        return location

    return view3d_utils.region_2d_to_location_3d(region, region_3d, mouse_xy, region_3d.view_location)
