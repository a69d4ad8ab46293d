"""Tests for the distance measurement session."""

import pytest

from scene_compass.measure import MeasureSession, MeasureState, snap_point


class TestSnap:
    def test_rounds_to_whole_units(self):
        assert snap_point((1.4, -2.6, 0.5001)) == (1.0, -3.0, 1.0)

    def test_custom_step(self):
        assert snap_point((0.3, 0.76, -1.2), step=0.5) == (0.5, 1.0, -1.0)

    @pytest.mark.parametrize("step", [0.0, -1.0])
    def test_step_must_be_positive(self, step):
        with pytest.raises(ValueError):
            snap_point((1.0, 2.0, 3.0), step=step)


class TestSession:
    def test_starts_idle(self):
        session = MeasureSession()
        assert session.state is MeasureState.IDLE
        assert session.total_distance == 0.0
        assert session.points == ()
        assert session.summary() == "Measure: click to place a point"

    def test_first_point_starts_accumulating(self):
        session = MeasureSession()
        session.add_point((1.0, 1.0, 1.0))
        assert session.state is MeasureState.ACCUMULATING
        assert session.total_distance == 0.0

    def test_total_is_path_length(self):
        session = MeasureSession()
        session.add_point((0, 0, 0))
        session.add_point((3, 4, 0))
        session.add_point((3, 4, 12))
        assert session.total_distance == pytest.approx(17.0)
        assert session.summary() == "Measure: 3 points, total 17.00"

    def test_snapped_point_is_stored(self):
        session = MeasureSession()
        assert session.add_point((0.4, 0.6, 2.2), snap=True) == (0.0, 1.0, 2.0)
        assert session.points == ((0.0, 1.0, 2.0),)

    def test_release_keeps_points(self):
        session = MeasureSession()
        session.press_modifier()
        session.add_point((0, 0, 0))
        session.add_point((0, 0, 2))
        session.release_modifier()
        assert not session.modifier_held
        assert len(session.points) == 2
        assert session.total_distance == pytest.approx(2.0)

    def test_reset_clears(self):
        session = MeasureSession()
        session.add_point((0, 0, 0))
        session.add_point((0, 0, 2))
        session.reset()
        assert session.state is MeasureState.IDLE
        assert session.total_distance == 0.0
        session.add_point((5, 5, 5))
        assert session.total_distance == 0.0

    def test_segments(self):
        session = MeasureSession()
        session.add_point((0, 0, 0))
        session.add_point((3, 4, 0))
        [(start, end, length)] = session.segments()
        assert (start, end) == ((0.0, 0.0, 0.0), (3.0, 4.0, 0.0))
        assert length == pytest.approx(5.0)

    def test_preview_distance(self):
        session = MeasureSession()
        assert session.preview_distance((1, 1, 1)) is None
        session.add_point((0, 0, 0))
        assert session.preview_distance((0, 3, 4)) == pytest.approx(5.0)
        assert session.preview_distance((0, 2.9, 4.1), snap=True) == pytest.approx(5.0)
        assert session.total_distance == 0.0

    def test_rejects_non_3d_point(self):
        with pytest.raises(ValueError):
            MeasureSession().add_point((1.0, 2.0))
