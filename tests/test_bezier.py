"""Test module for penpath.bezier

The tests are run using pytest.
These tests ensure that segment evaluation, bounds, projection and splitting
in src/penpath/bezier.py remain working correctly after changes and refactoring.
"""

import math

import numpy as np
import pytest

from penpath.bezier import BezierCurve, BezierMath, BezierSegment
from penpath.geom import PathBox
from penpath.path import BezierPoint

###############################################################################
# Fixtures
###############################################################################


@pytest.fixture
def cubic():
    """S-shaped cubic segment with both handles."""
    return BezierSegment.from_points(
        BezierPoint(0.0, 0.0, cp2=(30.0, -40.0)),
        BezierPoint(100.0, 0.0, cp1=(70.0, 40.0)),
    )


@pytest.fixture
def quadratic():
    """Quadratic segment built from the start point's outgoing handle."""
    return BezierSegment.from_points(BezierPoint(0.0, 0.0, cp2=(50.0, 100.0)), BezierPoint(100.0, 0.0))


@pytest.fixture
def linear():
    """Segment without handles."""
    return BezierSegment.from_points(BezierPoint(0.0, 0.0), BezierPoint(100.0, 100.0))


###############################################################################
# BezierCurve Tests
###############################################################################


class TestBezierCurve:
    """Test class for the raw control point helpers."""

    def test_polygonize_cubic_shape_and_endpoints(self):
        """Test that polygonize returns steps+1 points starting and ending on the anchors."""
        points = [(0, 0), (0, 10), (10, 10), (10, 0)]
        result = BezierCurve.polygonize(points, 8)
        assert result.shape == (9, 2)
        assert np.allclose(result[0], (0, 0))
        assert np.allclose(result[-1], (10, 0))

    def test_polygonize_quadratic_midpoint(self):
        """Test the quadratic midpoint formula (P0 + 2*P1 + P2) / 4."""
        result = BezierCurve.polygonize([(0, 0), (50, 100), (100, 0)], 2)
        assert np.allclose(result[1], (50.0, 50.0))

    def test_polygonize_rejects_invalid_degree(self):
        """Test that only 3 or 4 control points are accepted."""
        with pytest.raises(ValueError):
            BezierCurve.polygonize([(0, 0), (1, 1)], 4)

    def test_de_casteljau_reproduces_curve(self):
        """Test that left and right control polygons meet at the curve point."""
        points = np.array([(0, 0), (30, -40), (70, 40), (100, 0)], dtype=np.float64)
        point, left, right = BezierCurve.de_casteljau(points, 0.3)
        assert np.allclose(left[-1], point)
        assert np.allclose(right[0], point)
        assert np.allclose(left[0], points[0])
        assert np.allclose(right[-1], points[-1])

    def test_extrema_parameters_quadratic(self):
        """Test that the quadratic apex is found at t=0.5."""
        params = BezierCurve.extrema_parameters([(0, 0), (50, 100), (100, 0)])
        assert params == pytest.approx([0.5])


###############################################################################
# BezierSegment Tests
###############################################################################


class TestBezierSegmentConstruction:
    """Test class for the segment representation by available handles."""

    def test_cubic_layout(self, cubic):
        """Test that two handles yield a cubic segment."""
        assert cubic.degree == 3
        assert cubic.layout == "cubic"
        assert cubic.control_points[1] == (30.0, -40.0)
        assert cubic.control_points[2] == (70.0, 40.0)

    def test_quadratic_from_outgoing_handle(self, quadratic):
        """Test that only start.cp2 yields a quadratic segment."""
        assert quadratic.degree == 2
        assert quadratic.layout == "out"

    def test_quadratic_from_incoming_handle(self):
        """Test that only end.cp1 yields a quadratic segment using that handle."""
        segment = BezierSegment.from_points(BezierPoint(0, 0), BezierPoint(100, 0, cp1=(50.0, 60.0)))
        assert segment.layout == "in"
        assert segment.control_points == ((0.0, 0.0), (50.0, 60.0), (100.0, 0.0))

    def test_linear_is_degenerate_quadratic(self, linear):
        """Test that no handles yield a quadratic whose control sits on the start anchor."""
        assert linear.is_linear
        assert linear.control_points == ((0.0, 0.0), (0.0, 0.0), (100.0, 100.0))


class TestBezierSegmentEvaluation:
    """Test class for evaluate, derivative and tangent."""

    @pytest.mark.parametrize("name", ["cubic", "quadratic", "linear"])
    def test_endpoints_are_exact(self, name, request):
        """Test that t=0 and t=1 return the anchors exactly."""
        segment = request.getfixturevalue(name)
        assert segment.evaluate(0.0) == segment.start
        assert segment.evaluate(1.0) == segment.end

    def test_parameter_is_clamped(self, cubic):
        """Test that parameters outside [0, 1] return the anchors."""
        assert cubic.evaluate(-0.5) == cubic.start
        assert cubic.evaluate(1.5) == cubic.end

    def test_evaluate_cubic_midpoint(self, cubic):
        """Test the cubic midpoint (P0 + 3*P1 + 3*P2 + P3) / 8."""
        x, y = cubic.evaluate(0.5)
        assert x == pytest.approx(50.0)
        assert y == pytest.approx(0.0)

    def test_derivative_at_start_of_cubic(self, cubic):
        """Test B'(0) = 3 * (P1 - P0)."""
        assert cubic.derivative(0.0) == pytest.approx((90.0, -120.0))
        assert cubic.speed(0.0) == pytest.approx(150.0)

    def test_tangent_is_unit_length(self, cubic):
        """Test that tangents are normalized."""
        for t in (0.0, 0.25, 0.5, 1.0):
            tx, ty = cubic.tangent(t)
            assert math.hypot(tx, ty) == pytest.approx(1.0)

    def test_tangent_of_linear_start_uses_chord(self, linear):
        """Test the chord fallback where the derivative vanishes."""
        tx, ty = linear.tangent(0.0)
        assert tx == pytest.approx(math.sqrt(0.5))
        assert ty == pytest.approx(math.sqrt(0.5))

    def test_tangent_of_zero_length_segment(self):
        """Test the canonical direction for a segment without extent."""
        segment = BezierSegment.from_points(BezierPoint(5, 5), BezierPoint(5, 5))
        assert segment.tangent(0.5) == (1.0, 0.0)


class TestBezierSegmentMeasures:
    """Test class for length and bounding box."""

    def test_length_of_linear(self, linear):
        """Test that the straight segment length equals the chord."""
        assert linear.length() == pytest.approx(math.hypot(100.0, 100.0), rel=1e-6)

    def test_length_of_zero_segment(self):
        """Test that coincident anchors have zero length."""
        segment = BezierSegment.from_points(BezierPoint(1, 1), BezierPoint(1, 1))
        assert segment.length() == 0.0

    def test_length_exceeds_chord_for_curve(self, cubic):
        """Test that a curved segment is longer than its chord."""
        assert cubic.length() > 100.0

    def test_bounding_box_linear_matches_anchors(self, linear):
        """Test that a linear segment's box is the anchor box."""
        assert linear.bounding_box().extent == pytest.approx((0.0, 0.0, 100.0, 100.0))

    def test_bounding_box_quadratic_apex(self, quadratic):
        """Test that the box reaches the quadratic apex, not the control point."""
        box = quadratic.bounding_box()
        assert box.ymax == pytest.approx(50.0)
        assert box.xmin == pytest.approx(0.0)
        assert box.xmax == pytest.approx(100.0)

    def test_bounding_box_inside_control_hull(self, cubic):
        """Test that curve bounds exceed the anchors but stay within the control hull."""
        box = cubic.bounding_box()
        hull = PathBox.from_points(cubic.control_points)
        assert box.ymin < 0.0 < box.ymax
        assert hull.contains_box(box, tolerance=1e-9)
        assert box.ymax < hull.ymax

    def test_bounding_box_covers_samples(self, cubic):
        """Test that every sampled curve point lies inside the box."""
        box = cubic.bounding_box()
        for x, y in cubic.polygonize(200):
            assert box.contains_box(PathBox(x, y, x, y), tolerance=1e-9)


class TestBezierSegmentProjection:
    """Test class for closest point projection."""

    def test_projection_onto_linear(self):
        """Test projection of a point next to a horizontal straight segment."""
        segment = BezierSegment.from_points(BezierPoint(0, 0), BezierPoint(100, 0))
        projection = segment.closest_point((30.0, 5.0))
        assert projection.distance == pytest.approx(5.0, abs=1e-4)
        assert projection.point[0] == pytest.approx(30.0, abs=1e-3)

    def test_projection_of_point_on_curve(self, cubic):
        """Test that a point on the curve projects onto itself."""
        target = cubic.evaluate(0.37)
        projection = cubic.closest_point(target)
        assert projection.distance == pytest.approx(0.0, abs=1e-4)
        assert projection.t == pytest.approx(0.37, abs=1e-3)

    def test_projection_beyond_end(self, cubic):
        """Test that a point past the end projects onto the end anchor."""
        projection = cubic.closest_point((150.0, 0.0))
        assert projection.t == pytest.approx(1.0, abs=1e-6)
        assert projection.distance == pytest.approx(50.0, abs=1e-3)


class TestBezierSegmentSplit:
    """Test class for de Casteljau splitting."""

    @pytest.mark.parametrize("name", ["cubic", "quadratic", "linear"])
    @pytest.mark.parametrize("t", [0.2, 0.5, 0.85])
    def test_split_halves_meet_on_curve(self, name, t, request):
        """Test left.evaluate(1) == segment.evaluate(t) == right.evaluate(0)."""
        segment = request.getfixturevalue(name)
        result = segment.split(t)
        expected = segment.evaluate(t)
        assert result.left.evaluate(1.0) == pytest.approx(expected)
        assert result.right.evaluate(0.0) == pytest.approx(expected)

    def test_split_reproduces_curve(self, cubic):
        """Test that both halves trace the original curve."""
        t = 0.4
        result = cubic.split(t)
        for u in np.linspace(0.0, 1.0, 11):
            assert result.left.evaluate(u) == pytest.approx(cubic.evaluate(u * t))
            assert result.right.evaluate(u) == pytest.approx(cubic.evaluate(t + u * (1.0 - t)))

    def test_split_point_handles_follow_tangent(self, cubic):
        """Test that the split point's handles are tangent and 15% of the arc length."""
        t = 0.3
        result = cubic.split(t)
        point = result.split_point
        expected_length = 0.15 * cubic.length()
        tx, ty = cubic.tangent(t)
        assert point.anchor == pytest.approx(cubic.evaluate(t))
        assert point.cp2 == pytest.approx((point.x + tx * expected_length, point.y + ty * expected_length))
        assert point.cp1 == pytest.approx((point.x - tx * expected_length, point.y - ty * expected_length))

    def test_split_handle_mapping_cubic(self, cubic):
        """Test that a cubic split updates the start's cp2 and the end's cp1."""
        result = cubic.split(0.5)
        assert result.start_out == pytest.approx(result.left.control_points[1])
        assert result.end_in == pytest.approx(result.right.control_points[2])

    def test_split_handle_mapping_quadratic(self, quadratic):
        """Test that a quadratic split only updates the side its handle came from."""
        result = quadratic.split(0.5)
        assert result.start_out == pytest.approx((25.0, 50.0))
        assert result.end_in is None

    def test_split_handle_mapping_linear(self, linear):
        """Test that a linear split creates no handles on its anchors."""
        result = linear.split(0.5)
        assert result.start_out is None
        assert result.end_in is None


class TestBezierSegmentSampling:
    """Test class for length based sampling."""

    def test_sample_count_follows_length(self):
        """Test that a 100 long line sampled every 8 units gives ceil(100/8) intervals."""
        segment = BezierSegment.from_points(BezierPoint(0, 0), BezierPoint(100, 0))
        samples = segment.sample(8.0, 2, include_start=True, include_end=True)
        assert len(samples) == 14
        assert samples[0] == (0.0, 0.0)
        assert samples[-1] == (100.0, 0.0)

    def test_sample_min_samples(self):
        """Test that short segments still get min_samples intervals."""
        segment = BezierSegment.from_points(BezierPoint(0, 0), BezierPoint(1, 0))
        assert len(segment.sample(8.0, 2)) == 1


###############################################################################
# BezierMath Tests
###############################################################################


class TestBezierMath:
    """Test class for path level helpers."""

    def test_all_segments_open_and_closed(self):
        """Test that the closing segment is added only for closed paths with >2 points."""
        points = [BezierPoint(0, 0), BezierPoint(10, 0), BezierPoint(10, 10)]
        assert len(BezierMath.all_segments(points, False)) == 2
        closed = BezierMath.all_segments(points, True)
        assert len(closed) == 3
        assert closed[-1].start == (10.0, 10.0)
        assert closed[-1].end == (0.0, 0.0)
        assert len(BezierMath.all_segments(points[:2], True)) == 1

    def test_total_length_of_square(self):
        """Test the perimeter of a closed square."""
        points = [BezierPoint(0, 0), BezierPoint(10, 0), BezierPoint(10, 10), BezierPoint(0, 10)]
        assert BezierMath.total_length(points, True) == pytest.approx(40.0, rel=1e-6)

    def test_sample_path_includes_anchors_and_closes(self):
        """Test that anchors are part of the samples and closed paths end at the start."""
        points = [BezierPoint(0, 0), BezierPoint(10, 0), BezierPoint(10, 10)]
        samples = BezierMath.sample_path(points, True)
        assert samples[0] == (0.0, 0.0)
        assert samples[-1] == (0.0, 0.0)
        assert (10.0, 0.0) in samples
        assert (10.0, 10.0) in samples

    def test_smooth_handles_between_neighbors(self):
        """Test symmetric handles along next - prev with length 100 * 0.3."""
        cp1, cp2 = BezierMath.smooth_handles(BezierPoint(0, 0), BezierPoint(50, 50), BezierPoint(100, 100))
        d = 30.0 / math.sqrt(2.0)
        assert cp1 == pytest.approx((50.0 - d, 50.0 - d))
        assert cp2 == pytest.approx((50.0 + d, 50.0 + d))

    def test_smooth_handles_single_neighbor(self):
        """Test the direction from the previous point when no next point exists."""
        cp1, cp2 = BezierMath.smooth_handles(BezierPoint(0, 0), BezierPoint(0, 10), None)
        assert cp1 == pytest.approx((0.0, -20.0))
        assert cp2 == pytest.approx((0.0, 40.0))

    def test_smooth_handles_without_neighbors(self):
        """Test the canonical horizontal direction."""
        cp1, cp2 = BezierMath.smooth_handles(None, BezierPoint(5, 5), None)
        assert cp1 == pytest.approx((-25.0, 5.0))
        assert cp2 == pytest.approx((35.0, 5.0))
