"""Bezier curve mathematics for path segments: evaluation, bounds, projection and splitting."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from scipy import integrate, optimize

from penpath.config import get_config
from penpath.consts import PROJECTION_LUT_STEPS
from penpath.common import Vec2
from penpath.geom import GeomMath, PathBox
from penpath.path import BezierPoint

logger = logging.getLogger(__name__)

# Roots closer than this to 0 or 1 are treated as endpoints
_ROOT_EPS: float = 1.0e-12

# Below this magnitude a polynomial coefficient counts as zero
_COEFF_EPS: float = 1.0e-12

HandleLayout = Literal[  # which point handles a segment was built from
    "cubic",  # start.cp2 and end.cp1
    "out",  # start.cp2 only (quadratic)
    "in",  # end.cp1 only (quadratic)
    "linear",  # no handles, degenerate quadratic
]

ControlPoints = Union[Sequence[Sequence[float]], NDArray[np.float64]]


###############################################################################
# BezierCurve
###############################################################################


class BezierCurve:
    """Class to handle quadratic and cubic Bezier curve operations on raw control points.

    Control points are given as (n, 2) arrays with n = 3 (quadratic) or
    n = 4 (cubic).
    """

    @staticmethod
    def as_array(points: ControlPoints) -> NDArray[np.float64]:
        """Return control points as float64 array of shape (n, 2)."""
        if isinstance(points, np.ndarray) and points.dtype == np.float64:
            arr = points
        else:
            arr = np.asarray(points, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] < 2:
            raise ValueError(f"control points must have shape (n, 2), got {arr.shape}")
        return arr[:, :2]

    @classmethod
    def polygonize(cls, points: ControlPoints, steps: int) -> NDArray[np.float64]:
        """
        Polygonize a quadratic or cubic Bezier curve into line segments.
        Uses direct evaluation of the Bernstein basis with vectorized operations.

        Args:
            points: Control points, 3 (quadratic) or 4 (cubic) rows
            steps: Number of segments to divide the curve into

        Returns:
            NDArray[np.float64] of shape (steps+1, 2) containing the polygonized points
        """
        points_array = cls.as_array(points)
        steps = max(1, int(steps))
        t = np.linspace(0.0, 1.0, steps + 1, dtype=np.float64)
        omt = 1.0 - t

        if points_array.shape[0] == 4:
            # B(t) = (1-t)^3*P0 + 3*(1-t)^2*t*P1 + 3*(1-t)*t^2*P2 + t^3*P3
            basis = np.stack([omt**3, 3.0 * omt**2 * t, 3.0 * omt * t**2, t**3], axis=1)
        elif points_array.shape[0] == 3:
            # B(t) = (1-t)^2*P0 + 2*(1-t)*t*P1 + t^2*P2
            basis = np.stack([omt**2, 2.0 * omt * t, t**2], axis=1)
        else:
            raise ValueError(f"polygonize requires 3 or 4 control points, got {points_array.shape[0]}")

        result = basis @ points_array
        # Endpoints exactly on the anchors
        result[0] = points_array[0]
        result[-1] = points_array[-1]
        return result

    @classmethod
    def de_casteljau(
        cls, points: ControlPoints, t: float
    ) -> Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """
        Run de Casteljau's algorithm at parameter _t_.

        Returns:
            Tuple of (point on curve, left control points, right control points).
            left and right together reproduce the original curve exactly.
        """
        level = cls.as_array(points).copy()
        n = level.shape[0]
        left = np.empty_like(level)
        right = np.empty_like(level)
        left[0] = level[0]
        right[n - 1] = level[n - 1]
        for k in range(1, n):
            level = (1.0 - t) * level[:-1] + t * level[1:]
            left[k] = level[0]
            right[n - 1 - k] = level[-1]
        return level[0].copy(), left, right

    @classmethod
    def derivative_points(cls, points: ControlPoints) -> NDArray[np.float64]:
        """Control points of the hodograph: n * (P[i+1] - P[i])."""
        arr = cls.as_array(points)
        degree = arr.shape[0] - 1
        return degree * np.diff(arr, axis=0)

    @staticmethod
    def _solve_quadratic(a: float, b: float, c: float) -> List[float]:
        """Real roots of a*t^2 + b*t + c = 0 (linear fallback when a vanishes)."""
        if abs(a) < _COEFF_EPS:
            if abs(b) < _COEFF_EPS:
                return []
            return [-c / b]
        disc = b * b - 4.0 * a * c
        if disc < 0.0:
            return []
        if disc == 0.0:
            return [-b / (2.0 * a)]
        sqrt_disc = math.sqrt(disc)
        # numerically stable variant
        q = -0.5 * (b + math.copysign(sqrt_disc, b))
        roots = [q / a]
        if q != 0.0:
            roots.append(c / q)
        else:
            roots.append(-b / a - roots[0])
        return roots

    @classmethod
    def extrema_parameters(cls, points: ControlPoints) -> List[float]:
        """
        Parameters t in (0, 1) where the curve's derivative vanishes on either axis.

        These are the only interior candidates for the axis-aligned extrema.
        """
        arr = cls.as_array(points)
        params: List[float] = []
        for axis in (0, 1):
            c = arr[:, axis]
            if arr.shape[0] == 4:
                # B'(t)/3 = a*t^2 + b*t + c with
                a = -c[0] + 3.0 * c[1] - 3.0 * c[2] + c[3]
                b = 2.0 * (c[0] - 2.0 * c[1] + c[2])
                k = c[1] - c[0]
                roots = cls._solve_quadratic(float(a), float(b), float(k))
            else:
                # B'(t)/2 = (P1 - P0) + t*(P0 - 2*P1 + P2)
                roots = cls._solve_quadratic(0.0, float(c[0] - 2.0 * c[1] + c[2]), float(c[1] - c[0]))
            for root in roots:
                if _ROOT_EPS < root < 1.0 - _ROOT_EPS and math.isfinite(root):
                    params.append(float(root))
        params.sort()
        return params


###############################################################################
# Result types
###############################################################################


@dataclass(frozen=True)
class Projection:
    """Closest point on a segment to a target point."""

    t: float
    point: Vec2
    distance: float


@dataclass(frozen=True)
class SplitResult:
    """Result of splitting a segment at parameter t.

    Attributes:
        left: Exact sub-curve from the start anchor to the split point.
        right: Exact sub-curve from the split point to the end anchor.
        start_out: New outgoing handle for the start point (None: no handle).
        end_in: New incoming handle for the end point (None: no handle).
        split_point: The inserted point with tangent-aligned display handles.
    """

    left: BezierSegment
    right: BezierSegment
    start_out: Optional[Vec2]
    end_in: Optional[Vec2]
    split_point: BezierPoint


###############################################################################
# BezierSegment
###############################################################################


@dataclass(frozen=True)
class BezierSegment:
    """Curve between two consecutive path points.

    The representation depends on the available handles:
    cubic if start.cp2 and end.cp1 exist, quadratic if only one of them
    exists, and a degenerate quadratic (control point on the start anchor)
    if there are none. All operations work uniformly on the three forms.

    Attributes:
        control_points: 3 or 4 (x, y) tuples, first and last are the anchors.
        layout: Which point handles the control points came from.
    """

    control_points: Tuple[Vec2, ...]
    layout: HandleLayout = "cubic"

    @classmethod
    def from_points(cls, p1: BezierPoint, p2: BezierPoint) -> BezierSegment:
        """Build the segment running from _p1_ to _p2_."""
        start = (float(p1.x), float(p1.y))
        end = (float(p2.x), float(p2.y))
        if p1.cp2 is not None and p2.cp1 is not None:
            return cls((start, tuple(p1.cp2), tuple(p2.cp1), end), "cubic")
        if p1.cp2 is not None:
            return cls((start, tuple(p1.cp2), end), "out")
        if p2.cp1 is not None:
            return cls((start, tuple(p2.cp1), end), "in")
        return cls((start, start, end), "linear")

    @classmethod
    def from_array(cls, arr: NDArray[np.float64], layout: HandleLayout) -> BezierSegment:
        """Build a segment from an (n, 2) control point array."""
        return cls(tuple((float(row[0]), float(row[1])) for row in arr), layout)

    @property
    def degree(self) -> int:
        """2 for quadratic (and linear) segments, 3 for cubic ones."""
        return len(self.control_points) - 1

    @property
    def is_linear(self) -> bool:
        """True if the segment was built without handles."""
        return self.layout == "linear"

    @property
    def start(self) -> Vec2:
        """Start anchor."""
        return self.control_points[0]

    @property
    def end(self) -> Vec2:
        """End anchor."""
        return self.control_points[-1]

    def as_array(self) -> NDArray[np.float64]:
        """Control points as (n, 2) float64 array."""
        return np.asarray(self.control_points, dtype=np.float64)

    def evaluate(self, t: float) -> Vec2:
        """
        Point on the curve at parameter t in [0, 1].

        t <= 0 and t >= 1 return the anchors exactly.
        """
        if t <= 0.0:
            return self.start
        if t >= 1.0:
            return self.end
        point, _, _ = BezierCurve.de_casteljau(self.as_array(), t)
        return (float(point[0]), float(point[1]))

    def derivative(self, t: float) -> Vec2:
        """First derivative dB/dt at parameter t."""
        t = min(max(t, 0.0), 1.0)
        hodograph = BezierCurve.derivative_points(self.as_array())
        if hodograph.shape[0] == 1:
            return (float(hodograph[0, 0]), float(hodograph[0, 1]))
        point, _, _ = BezierCurve.de_casteljau(hodograph, t)
        return (float(point[0]), float(point[1]))

    def tangent(self, t: float) -> Vec2:
        """
        Unit tangent at parameter t.

        Where the derivative vanishes (e.g. at the start of a linear segment,
        whose control point sits on the anchor) the chord direction is used,
        and (1, 0) if the segment has zero extent.
        """
        derivative = self.derivative(t)
        if GeomMath.vector_length(derivative) <= _COEFF_EPS:
            derivative = GeomMath.sub(self.end, self.start)
        return GeomMath.normalize(derivative)

    def speed(self, t: float) -> float:
        """Magnitude of the derivative at t."""
        return GeomMath.vector_length(self.derivative(t))

    def length(self) -> float:
        """Arc length, integrated numerically."""
        arr = self.as_array()
        if np.allclose(arr, arr[0], rtol=0.0, atol=_COEFF_EPS):
            return 0.0
        hodograph = BezierCurve.derivative_points(arr)

        def _speed(t: float) -> float:
            if hodograph.shape[0] == 1:
                vec = hodograph[0]
            else:
                vec, _, _ = BezierCurve.de_casteljau(hodograph, t)
            return float(math.hypot(vec[0], vec[1]))

        value, _ = integrate.quad(_speed, 0.0, 1.0, limit=100)
        return float(value)

    def bounding_box(self) -> PathBox:
        """
        Tight axis-aligned bounding box of the curve.

        Evaluates the anchors and every interior parameter where the
        derivative vanishes on an axis, so handles reaching past the anchors
        are accounted for without over-estimating to the control hull.
        """
        arr = self.as_array()
        candidates = [self.start, self.end]
        for t in BezierCurve.extrema_parameters(arr):
            candidates.append(self.evaluate(t))
        return PathBox.from_points(candidates)

    def polygonize(self, steps: int) -> NDArray[np.float64]:
        """Points at evenly spaced parameters, shape (steps+1, 2)."""
        return BezierCurve.polygonize(self.as_array(), steps)

    def closest_point(self, target: Sequence[float]) -> Projection:
        """
        Project _target_ onto the curve.

        A lookup table of sampled points gives a starting bracket which is
        refined by bounded scalar minimization of the squared distance.
        """
        tx, ty = float(target[0]), float(target[1])
        arr = self.as_array()
        steps = PROJECTION_LUT_STEPS
        lut = BezierCurve.polygonize(arr, steps)
        dist2 = (lut[:, 0] - tx) ** 2 + (lut[:, 1] - ty) ** 2
        best_idx = int(np.argmin(dist2))
        best_t = best_idx / steps
        best_d2 = float(dist2[best_idx])

        lo = max(0.0, (best_idx - 1) / steps)
        hi = min(1.0, (best_idx + 1) / steps)
        if hi > lo:

            def _dist2(t: float) -> float:
                px, py = self.evaluate(t)
                return (px - tx) ** 2 + (py - ty) ** 2

            refined = optimize.minimize_scalar(_dist2, bounds=(lo, hi), method="bounded", options={"xatol": 1e-10})
            if refined.success and float(refined.fun) < best_d2:
                best_t = float(refined.x)
                best_d2 = float(refined.fun)

        point = self.evaluate(best_t)
        return Projection(t=best_t, point=point, distance=math.sqrt(max(best_d2, 0.0)))

    def split(self, t: float) -> SplitResult:
        """
        Split the segment at parameter t using de Casteljau subdivision.

        left and right reproduce the original curve exactly. The returned
        split_point carries smooth handles along the tangent at t with a length
        of a fixed fraction of the segment's arc length, so the new point blends
        with its neighbors when edited.
        """
        t = min(max(float(t), 0.0), 1.0)
        arr = self.as_array()
        point, left_arr, right_arr = BezierCurve.de_casteljau(arr, t)
        left = BezierSegment.from_array(left_arr, self.layout)
        right = BezierSegment.from_array(right_arr, self.layout)

        if self.layout == "cubic":
            start_out: Optional[Vec2] = left.control_points[1]
            end_in: Optional[Vec2] = right.control_points[2]
        elif self.layout == "out":
            start_out, end_in = left.control_points[1], None
        elif self.layout == "in":
            start_out, end_in = None, right.control_points[1]
        else:
            start_out, end_in = None, None

        handle_length = self.length() * get_config().handles.segment_handle_length
        tx, ty = self.tangent(t)
        px, py = float(point[0]), float(point[1])
        split_point = BezierPoint(
            x=px,
            y=py,
            cp1=(px - tx * handle_length, py - ty * handle_length),
            cp2=(px + tx * handle_length, py + ty * handle_length),
        )
        return SplitResult(left=left, right=right, start_out=start_out, end_in=end_in, split_point=split_point)

    def sample(
        self,
        max_segment_length: float = 8.0,
        min_samples: int = 2,
        include_start: bool = False,
        include_end: bool = False,
    ) -> List[Vec2]:
        """
        Sample the segment with roughly _max_segment_length_ spacing.

        The number of intervals is max(min_samples, ceil(length / max_segment_length)).
        """
        length = self.length()
        spacing = max_segment_length if max_segment_length > 0 else 8.0
        count = max(int(min_samples), int(math.ceil(length / spacing)), 1)
        samples: List[Vec2] = []
        for i in range(count + 1):
            if (i == 0 and not include_start) or (i == count and not include_end):
                continue
            samples.append(self.evaluate(i / count))
        return samples


###############################################################################
# BezierMath
###############################################################################


class BezierMath:
    """Collection of static helpers working on whole point sequences."""

    @staticmethod
    def all_segments(points: Sequence[BezierPoint], is_closed: bool = False) -> List[BezierSegment]:
        """Segments of the path, including the closing segment for closed paths with >2 points."""
        segments = [BezierSegment.from_points(points[i], points[i + 1]) for i in range(len(points) - 1)]
        if is_closed and len(points) > 2:
            segments.append(BezierSegment.from_points(points[-1], points[0]))
        return segments

    @staticmethod
    def total_length(points: Sequence[BezierPoint], is_closed: bool = False) -> float:
        """Sum of all segment lengths."""
        return float(sum(segment.length() for segment in BezierMath.all_segments(points, is_closed)))

    @staticmethod
    def sample_path(
        points: Sequence[BezierPoint],
        is_closed: bool = False,
        max_segment_length: float = 8.0,
        min_samples: int = 2,
    ) -> List[Vec2]:
        """
        Sample a whole path into a polyline.

        Every anchor is included; closed paths end with a copy of the first point.
        """
        if not points:
            return []
        sampled: List[Vec2] = [points[0].anchor]
        for i in range(len(points) - 1):
            segment = BezierSegment.from_points(points[i], points[i + 1])
            sampled.extend(segment.sample(max_segment_length, min_samples))
            sampled.append(points[i + 1].anchor)
        if is_closed and len(points) > 2:
            closing = BezierSegment.from_points(points[-1], points[0])
            sampled.extend(closing.sample(max_segment_length, min_samples))
            if sampled[-1] != sampled[0]:
                sampled.append(sampled[0])
        return sampled

    @staticmethod
    def smooth_handles(
        prev_point: Optional[BezierPoint],
        current: BezierPoint,
        next_point: Optional[BezierPoint],
        tension: Optional[float] = None,
        control_offset: Optional[float] = None,
    ) -> Tuple[Vec2, Vec2]:
        """
        Synthesize symmetric handles (cp1, cp2) for turning a corner into a smooth point.

        The direction follows next - prev when both neighbors exist, otherwise
        the direction to or from the single neighbor, otherwise horizontal.
        The handle length is control_offset * tension.
        """
        handles = get_config().handles
        tension = handles.tension if tension is None else tension
        control_offset = handles.control_offset if control_offset is None else control_offset
        offset = control_offset * tension

        if prev_point is not None and next_point is not None:
            direction = GeomMath.sub(next_point.anchor, prev_point.anchor)
        elif prev_point is not None:
            direction = GeomMath.sub(current.anchor, prev_point.anchor)
        elif next_point is not None:
            direction = GeomMath.sub(next_point.anchor, current.anchor)
        else:
            direction = (1.0, 0.0)
        dx, dy = GeomMath.normalize(direction)

        cp1 = (current.x - dx * offset, current.y - dy * offset)
        cp2 = (current.x + dx * offset, current.y + dy * offset)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("[PointType] smooth handles for %s: cp1=%s cp2=%s", current.anchor, cp1, cp2)
        return cp1, cp2
