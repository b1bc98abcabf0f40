"""Test module for penpath.path

The tests are run using pytest.
These tests ensure that the path data model and its persisted form in
src/penpath/path.py remain working correctly after changes and refactoring.
"""

import pytest

from penpath.common import PointKind
from penpath.errors import PathDataError, PenPathError
from penpath.path import BezierPath, BezierPoint, Selection

###############################################################################
# BezierPoint Tests
###############################################################################


class TestBezierPoint:
    """Test class for BezierPoint functionality."""

    def test_kind_corner(self):
        """Test that a point without handles is a corner."""
        assert BezierPoint(1, 2).kind is PointKind.CORNER

    def test_kind_smooth(self):
        """Test that mirrored handles make a smooth point."""
        point = BezierPoint(50, 50, cp1=(40.0, 45.0), cp2=(60.0, 55.0))
        assert point.kind is PointKind.SMOOTH

    def test_kind_asymmetric(self):
        """Test that unmirrored or single handles are asymmetric."""
        assert BezierPoint(50, 50, cp1=(40.0, 45.0), cp2=(70.0, 55.0)).kind is PointKind.ASYMMETRIC
        assert BezierPoint(50, 50, cp2=(70.0, 55.0)).kind is PointKind.ASYMMETRIC

    def test_translate_moves_handles(self):
        """Test that translation moves anchor and handles rigidly."""
        point = BezierPoint(1, 1, cp1=(0.0, 0.0), cp2=(2.0, 2.0)).translate(10, -1)
        assert point == BezierPoint(11, 0, cp1=(10.0, -1.0), cp2=(12.0, 1.0))

    def test_translate_keeps_missing_handles(self):
        """Test that missing handles stay missing."""
        assert BezierPoint(1, 1, cp2=(2.0, 2.0)).translate(1, 1).cp1 is None

    def test_swapped(self):
        """Test that swapping exchanges cp1 and cp2."""
        point = BezierPoint(0, 0, cp1=(-1.0, 0.0), cp2=(1.0, 0.0)).swapped()
        assert point.cp1 == (1.0, 0.0)
        assert point.cp2 == (-1.0, 0.0)

    def test_handle_lookup(self):
        """Test access by handle name."""
        point = BezierPoint(3, 4, cp1=(1.0, 1.0))
        assert point.handle("anchor") == (3, 4)
        assert point.handle("cp1") == (1.0, 1.0)
        assert point.handle("cp2") is None
        assert point.handle("bogus") is None

    def test_to_dict_omits_missing_handles(self):
        """Test that only existing handles are persisted."""
        assert BezierPoint(1.0, 2.0).to_dict() == {"x": 1.0, "y": 2.0}
        assert BezierPoint(1.0, 2.0, cp2=(3.0, 4.0)).to_dict() == {"x": 1.0, "y": 2.0, "cp2": {"x": 3.0, "y": 4.0}}

    def test_from_dict_defaults(self):
        """Test that missing fields default instead of failing."""
        assert BezierPoint.from_dict({}) == BezierPoint(0.0, 0.0)

    def test_from_dict_accepts_pairs(self):
        """Test that handles may be given as [x, y] pairs."""
        point = BezierPoint.from_dict({"x": 1, "y": 2, "cp1": [0, 1]})
        assert point.cp1 == (0.0, 1.0)

    @pytest.mark.parametrize(
        "data",
        [
            "not a mapping",
            {"x": "abc", "y": 0},
            {"x": True, "y": 0},
            {"x": float("nan"), "y": 0},
            {"x": 0, "y": 0, "cp1": 5},
        ],
    )
    def test_from_dict_malformed(self, data):
        """Test that structurally malformed values raise PathDataError."""
        with pytest.raises(PathDataError):
            BezierPoint.from_dict(data)

    def test_path_data_error_hierarchy(self):
        """Test that PathDataError is both a PenPathError and a ValueError."""
        assert issubclass(PathDataError, PenPathError)
        assert issubclass(PathDataError, ValueError)


###############################################################################
# Selection Tests
###############################################################################


class TestSelection:
    """Test class for Selection functionality."""

    def test_indices_become_frozenset(self):
        """Test that any iterable of indices is stored as frozenset."""
        selection = Selection(point_indices=[3, 1, 3])
        assert selection.point_indices == frozenset({1, 3})
        assert selection.sorted_points == [1, 3]
        assert selection.has_points

    def test_default_is_empty(self):
        """Test the empty default selection."""
        selection = Selection()
        assert not selection.edit_mode
        assert not selection.has_points
        assert selection.segment_index is None


###############################################################################
# BezierPath Tests
###############################################################################


def _triangle(closed=False):
    return BezierPath(
        points=[BezierPoint(0, 0), BezierPoint(100, 0), BezierPoint(50, 80)],
        is_closed=closed,
        x=10.0,
        y=20.0,
        width=100.0,
        height=80.0,
    )


class TestBezierPath:
    """Test class for BezierPath functionality."""

    def test_points_become_tuple(self):
        """Test that the points sequence is stored as tuple."""
        assert isinstance(_triangle().points, tuple)

    def test_is_renderable(self):
        """Test that any point makes a path renderable."""
        assert _triangle().is_renderable
        assert not BezierPath().is_renderable

    def test_segment_count(self):
        """Test segment counts for open, closed and short paths."""
        assert _triangle().segment_count == 2
        assert _triangle(closed=True).segment_count == 3
        assert BezierPath(points=[BezierPoint(0, 0)]).segment_count == 0
        assert BezierPath(points=[BezierPoint(0, 0), BezierPoint(1, 1)], is_closed=True).segment_count == 1

    def test_segment_endpoints(self):
        """Test segment endpoint lookup including the closing segment."""
        closed = _triangle(closed=True)
        assert closed.segment_endpoints(0) == (0, 1)
        assert closed.segment_endpoints(2) == (2, 0)
        assert closed.segment_endpoints(3) is None
        assert closed.segment_endpoints(-1) is None
        assert _triangle().segment_endpoints(2) is None

    def test_page_conversion(self):
        """Test local to page conversion by the stored origin."""
        path = _triangle()
        assert path.to_page((1, 2)) == (11.0, 22.0)
        assert path.to_local((11, 22)) == (1.0, 2.0)
        assert path.to_page_points()[1].anchor == (110, 20)

    def test_reversed_swaps_handles_and_selection(self):
        """Test that reversing keeps geometry and remaps selected indices."""
        path = BezierPath(
            points=[BezierPoint(0, 0, cp2=(5.0, 5.0)), BezierPoint(10, 0), BezierPoint(20, 0, cp1=(15.0, 5.0))],
            selection=Selection(point_indices={0}),
        )
        result = path.reversed()
        assert [p.anchor for p in result.points] == [(20, 0), (10, 0), (0, 0)]
        assert result.points[0].cp2 == (15.0, 5.0)
        assert result.points[2].cp1 == (5.0, 5.0)
        assert result.selection.point_indices == frozenset({2})

    def test_with_selection(self):
        """Test replacing selection fields without touching points."""
        path = _triangle().with_selection(edit_mode=True)
        assert path.selection.edit_mode
        assert path.points == _triangle().points


class TestBezierPathPersistence:
    """Test class for the persisted form of a path."""

    def test_to_dict(self):
        """Test the flat persisted structure."""
        data = _triangle(closed=True).to_dict()
        assert data["isClosed"] is True
        assert data["points"][1] == {"x": 100, "y": 0}
        assert (data["x"], data["y"], data["w"], data["h"]) == (10.0, 20.0, 100.0, 80.0)
        assert "holeRings" not in data

    def test_round_trip_with_hole_rings(self):
        """Test that hole rings survive the persisted form."""
        path = _triangle(closed=True).replace(
            hole_rings=((BezierPoint(40, 10), BezierPoint(60, 10), BezierPoint(50, 30)),)
        )
        restored = BezierPath.from_dict(path.to_dict())
        assert restored.hole_rings == path.hole_rings
        assert restored.points == path.points
        assert restored.is_closed

    def test_missing_fields_default(self):
        """Test that an empty mapping decodes to an empty open path."""
        path = BezierPath.from_dict({})
        assert path.points == ()
        assert not path.is_closed
        assert (path.x, path.y, path.width, path.height) == (0.0, 0.0, 1.0, 1.0)

    def test_unknown_fields_ignored(self):
        """Test forward compatibility with unknown keys."""
        path = BezierPath.from_dict({"points": [{"x": 1, "y": 2}], "color": "red", "editMode": True})
        assert path.points == (BezierPoint(1.0, 2.0),)

    def test_width_height_at_least_one(self):
        """Test that stored dimensions are clamped to 1."""
        path = BezierPath.from_dict({"w": 0, "h": -5})
        assert path.width == 1.0
        assert path.height == 1.0

    @pytest.mark.parametrize(
        "data",
        [
            {"points": "abc"},
            {"points": [1, 2]},
            {"holeRings": [5]},
            {"x": "left"},
        ],
    )
    def test_malformed_raises(self, data):
        """Test that structurally malformed data raises PathDataError."""
        with pytest.raises(PathDataError):
            BezierPath.from_dict(data)
