"""Tests for bookmark capture and navigation."""

from __future__ import annotations

from scene_compass.bookmark import BookmarkEntry, BookmarkType
from scene_compass.navigation import (
    CameraCapture,
    NavigationResult,
    ObjectCapture,
    SceneEnvironment,
    capture_bookmark,
    go_to,
)


class FakeEnvironment:
    """In-memory host: scenes by id, each holding object ids."""

    def __init__(self, scene="scene-a", scenes=None, capture=None, dirty=False, save_ok=True):
        self.scene = scene
        self.scenes = scenes if scenes is not None else {"scene-a": {"uuid-tower"}, "scene-b": set()}
        self.capture = capture
        self.dirty = dirty
        self.save_ok = save_ok
        self.camera = None
        self.focused = None
        self.saved = 0

    def current_scene_id(self):
        return self.scene

    def capture_selection(self):
        return self.capture

    def resolve(self, entry):
        if entry.object_ref in self.scenes.get(self.scene, ()):
            return entry.object_ref
        return None

    def apply_camera(self, position, rotation):
        self.camera = (tuple(position), tuple(rotation))

    def focus(self, handle):
        self.focused = handle

    def open_scene(self, scene_id):
        if scene_id not in self.scenes:
            return False
        self.scene = scene_id
        return True

    def is_dirty(self):
        return self.dirty

    def save_current(self):
        self.saved += 1
        if self.save_ok:
            self.dirty = False
        return self.save_ok


POSE = ((1.25, -2.5, 3.75), (0.7071068, 0.0, 0.7071068, 0.0))


def test_fake_satisfies_protocol():
    assert isinstance(FakeEnvironment(), SceneEnvironment)


class TestCapture:
    def test_viewpoint_capture(self):
        env = FakeEnvironment(capture=CameraCapture(*POSE))
        entry = capture_bookmark(env, group="Work")
        assert entry.kind is BookmarkType.CAMERA
        assert entry.name == "Camera View"
        assert (entry.position, entry.rotation) == POSE
        assert entry.scene_id == "scene-a"
        assert entry.group == "Work"

    def test_object_capture_uses_object_name(self):
        env = FakeEnvironment(capture=ObjectCapture("uuid-tower", "Tower"))
        entry = capture_bookmark(env)
        assert entry.kind is BookmarkType.OBJECT
        assert entry.name == "Tower"
        assert entry.object_ref == "uuid-tower"
        assert entry.group == "Default"

    def test_explicit_name_wins(self):
        env = FakeEnvironment(capture=ObjectCapture("uuid-tower", "Tower"))
        assert capture_bookmark(env, name="  Landmark ").name == "Landmark"

    def test_nothing_to_capture(self):
        assert capture_bookmark(FakeEnvironment(capture=None)) is None


class TestGoTo:
    def test_camera_in_current_scene_sets_exact_pose(self):
        env = FakeEnvironment()
        entry = BookmarkEntry.for_camera("Overview", "scene-a", *POSE)
        assert go_to(entry, env) is NavigationResult.OK
        assert env.camera == POSE

    def test_object_is_focused(self):
        env = FakeEnvironment()
        entry = BookmarkEntry.for_object("Tower", "scene-a", "uuid-tower")
        assert go_to(entry, env) is NavigationResult.OK
        assert env.focused == "uuid-tower"

    def test_deleted_object_reports_missing(self, store):
        env = FakeEnvironment(scenes={"scene-a": set()})
        entry = store.add(BookmarkEntry.for_object("Tower", "scene-a", "uuid-tower"))
        before = [e.to_dict() for e in store.records]
        assert go_to(entry, env) is NavigationResult.OBJECT_MISSING
        assert env.focused is None
        assert [e.to_dict() for e in store.records] == before

    def test_other_scene_is_opened_first(self):
        env = FakeEnvironment(scenes={"scene-a": set(), "scene-b": {"uuid-tower"}})
        entry = BookmarkEntry.for_object("Tower", "scene-b", "uuid-tower")
        assert go_to(entry, env) is NavigationResult.OK
        assert env.scene == "scene-b"
        assert env.focused == "uuid-tower"

    def test_declined_switch_cancels(self):
        env = FakeEnvironment()
        entry = BookmarkEntry.for_camera("Far", "scene-b", *POSE)
        asked = []
        result = go_to(entry, env, confirm_switch=lambda e: asked.append(e) or False)
        assert result is NavigationResult.CANCELLED
        assert asked == [entry]
        assert env.scene == "scene-a"
        assert env.camera is None

    def test_same_scene_does_not_ask(self):
        env = FakeEnvironment()
        entry = BookmarkEntry.for_camera("Here", "scene-a", *POSE)
        assert go_to(entry, env, confirm_switch=lambda e: False) is NavigationResult.OK

    def test_missing_scene(self):
        env = FakeEnvironment()
        entry = BookmarkEntry.for_camera("Gone", "scene-deleted", *POSE)
        assert go_to(entry, env) is NavigationResult.SCENE_MISSING
        assert env.scene == "scene-a"
        assert env.camera is None

    def test_dirty_file_saved_before_switch(self):
        env = FakeEnvironment(dirty=True)
        entry = BookmarkEntry.for_camera("Far", "scene-b", *POSE)
        assert go_to(entry, env) is NavigationResult.OK
        assert env.saved == 1
        assert env.scene == "scene-b"

    def test_declined_save_cancels(self):
        env = FakeEnvironment(dirty=True)
        entry = BookmarkEntry.for_camera("Far", "scene-b", *POSE)
        assert go_to(entry, env, confirm_save=lambda: False) is NavigationResult.CANCELLED
        assert env.saved == 0
        assert env.scene == "scene-a"

    def test_failed_save_cancels(self, capsys):
        env = FakeEnvironment(dirty=True, save_ok=False)
        entry = BookmarkEntry.for_camera("Far", "scene-b", *POSE)
        assert go_to(entry, env) is NavigationResult.CANCELLED
        assert env.scene == "scene-a"
        assert "[SceneCompass] Warning: Could not save" in capsys.readouterr().out
