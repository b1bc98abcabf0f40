"""Bounds calculation and coordinate renormalization for Bezier paths.

Points of a path are stored relative to the path origin (x, y). After every
settled change the origin is moved to the top-left corner of the accurate
curve bounds so that local coordinates start at (0, 0) and the stored
width/height match the visible geometry.

Accurate bounds use the true extrema of every segment, not the anchor span,
because control handles can pull a curve past its anchors.

While a path is being created a different policy applies: the first placed
point serves as a stable origin with symmetric padded extents, so the shape
does not jump while new points and handles are added.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from penpath.bezier import BezierMath
from penpath.common import Vec2
from penpath.config import get_config
from penpath.geom import PathBox
from penpath.path import BezierPath, BezierPoint, translate_points

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Renormalized:
    """Result of a renormalization.

    Attributes:
        origin: New page position of the local origin.
        local_points: Points relative to _origin_.
        width: Width of the bounds (at least 1).
        height: Height of the bounds (at least 1).
    """

    origin: Vec2
    local_points: Tuple[BezierPoint, ...]
    width: float
    height: float

    @property
    def box(self) -> PathBox:
        """Page-space box described by origin, width and height."""
        return PathBox(self.origin[0], self.origin[1], self.origin[0] + self.width, self.origin[1] + self.height)


###############################################################################
# PathBounds
###############################################################################


class PathBounds:
    """Static helpers for bounds of Bezier point sequences and paths."""

    @staticmethod
    def accurate_bounds(points: Sequence[BezierPoint], is_closed: bool = False) -> PathBox:
        """
        Bounding box of the curve described by _points_.

        Args:
            points: Path points in any coordinate space.
            is_closed: Include the closing segment (last to first point).

        Returns:
            PathBox: (0, 0, 1, 1) for no points, the box around the anchor and
            its handles for a single point, otherwise the union of the accurate
            segment boxes.
        """
        if not points:
            return PathBox.unit()
        if len(points) == 1:
            return PathBox.from_points(points[0].coordinates())

        first, *rest = BezierMath.all_segments(points, is_closed)
        box = first.bounding_box()
        for segment in rest:
            box = box.union(segment.bounding_box())
        return box

    @staticmethod
    def renormalize(path: BezierPath, page_points: Optional[Sequence[BezierPoint]] = None) -> Renormalized:
        """
        Move the origin to the top-left corner of the accurate bounds.

        Args:
            path: The path; its is_closed flag decides about the closing segment.
            page_points: Points in page coordinates. Defaults to the path's
                own points converted to page space.

        Returns:
            Renormalized: new origin, points local to it, width and height.
        """
        if page_points is None:
            page_points = path.to_page_points()
        box = PathBounds.accurate_bounds(page_points, path.is_closed)
        local_points = translate_points(page_points, -box.xmin, -box.ymin)
        return Renormalized(
            origin=(box.xmin, box.ymin),
            local_points=local_points,
            width=max(1.0, box.width),
            height=max(1.0, box.height),
        )

    @staticmethod
    def apply_renormalize(path: BezierPath, page_points: Optional[Sequence[BezierPoint]] = None) -> BezierPath:
        """
        Return the settled path for _page_points_ (default: the path's points).

        Hole rings keep their page position; they are shifted by the same
        origin delta as the outline.
        """
        result = PathBounds.renormalize(path, page_points)
        dx = path.x - result.origin[0]
        dy = path.y - result.origin[1]
        hole_rings = tuple(translate_points(ring, dx, dy) for ring in path.hole_rings)
        return path.replace(
            points=result.local_points,
            hole_rings=hole_rings,
            x=result.origin[0],
            y=result.origin[1],
            width=result.width,
            height=result.height,
        )

    @staticmethod
    def settle(path: BezierPath) -> BezierPath:
        """Renormalize a path whose points were changed in its local space."""
        return PathBounds.apply_renormalize(path, path.to_page_points())

    @staticmethod
    def have_bounds_changed(
        prev_points: Sequence[BezierPoint],
        next_points: Sequence[BezierPoint],
        is_closed: bool = False,
        threshold: Optional[float] = None,
    ) -> bool:
        """
        Check whether the accurate bounds differ by more than _threshold_.

        Width, height and the (xmin, ymin) corner are compared.
        """
        if threshold is None:
            threshold = get_config().bounds.change_threshold
        prev_box = PathBounds.accurate_bounds(prev_points, is_closed)
        next_box = PathBounds.accurate_bounds(next_points, is_closed)
        changed = (
            abs(prev_box.width - next_box.width) > threshold
            or abs(prev_box.height - next_box.height) > threshold
            or abs(prev_box.xmin - next_box.xmin) > threshold
            or abs(prev_box.ymin - next_box.ymin) > threshold
        )
        if changed and logger.isEnabledFor(logging.DEBUG):
            logger.debug("[Bounds] changed from %s to %s", prev_box, next_box)
        return changed

    ###########################################################################
    # Creation mode
    ###########################################################################

    @staticmethod
    def single_point_bounds(point: BezierPoint, padding: Optional[float] = None) -> Renormalized:
        """
        Bounds for a path consisting of one point during creation.

        The box around the anchor and its handles is padded on every side.
        """
        if padding is None:
            padding = get_config().bounds.single_point_padding
        box = PathBox.from_points(point.coordinates())
        min_x = box.xmin - padding
        min_y = box.ymin - padding
        return Renormalized(
            origin=(min_x, min_y),
            local_points=(point.translate(-min_x, -min_y),),
            width=max(1.0, box.width + 2.0 * padding),
            height=max(1.0, box.height + 2.0 * padding),
        )

    @staticmethod
    def multi_point_bounds(
        points: Sequence[BezierPoint],
        stable_origin: Optional[Vec2] = None,
        padding: Optional[float] = None,
    ) -> Renormalized:
        """
        Bounds for a multi-point path during creation.

        The box is symmetric around _stable_origin_ (default: the first point),
        reaching as far as the larger of the two extents per axis plus padding.
        Anchors and handles are considered, not the curve extrema.
        """
        if not points:
            raise ValueError("multi_point_bounds requires at least one point")
        if padding is None:
            padding = get_config().bounds.multi_point_padding
        ox, oy = stable_origin if stable_origin is not None else points[0].anchor

        box = PathBox.from_points(c for p in points for c in p.coordinates())
        reach_x = max(ox - box.xmin, box.xmax - ox)
        reach_y = max(oy - box.ymin, box.ymax - oy)
        min_x = ox - reach_x - padding
        min_y = oy - reach_y - padding
        max_x = ox + reach_x + padding
        max_y = oy + reach_y + padding
        return Renormalized(
            origin=(min_x, min_y),
            local_points=translate_points(points, -min_x, -min_y),
            width=max(1.0, max_x - min_x),
            height=max(1.0, max_y - min_y),
        )

    @staticmethod
    def creation_bounds(points: Sequence[BezierPoint], stable_origin: Optional[Vec2] = None) -> Renormalized:
        """Dispatch to single_point_bounds or multi_point_bounds by point count."""
        if len(points) == 1:
            return PathBounds.single_point_bounds(points[0])
        return PathBounds.multi_point_bounds(points, stable_origin)

    ###########################################################################
    # Shape level
    ###########################################################################

    @staticmethod
    def edit_mode_bounds(path: BezierPath) -> PathBox:
        """Local box (0, 0, w, h) from the live accurate bounds, used while editing."""
        box = PathBounds.accurate_bounds(path.points, path.is_closed)
        return PathBox(0.0, 0.0, max(1.0, box.width), max(1.0, box.height))

    @staticmethod
    def normal_mode_bounds(path: BezierPath) -> PathBox:
        """Local box (0, 0, w, h) from the stored width and height."""
        return PathBox(0.0, 0.0, path.width, path.height)

    @staticmethod
    def shape_center(path: BezierPath) -> Vec2:
        """Local center of the edit mode or normal mode bounds."""
        if path.selection.edit_mode:
            return PathBounds.edit_mode_bounds(path).centroid
        return PathBounds.normal_mode_bounds(path).centroid

    @staticmethod
    def outline_points(path: BezierPath) -> Tuple[Vec2, ...]:
        """Anchor positions in local coordinates."""
        return tuple(p.anchor for p in path.points)
