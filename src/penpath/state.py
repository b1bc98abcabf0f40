"""Pure state transitions of a Bezier path.

Every transition takes a path (plus arguments) and returns a new path. Inputs
are never mutated. When a transition does not apply (invalid index, rule
violation) the very same path object is returned so callers can detect the
no-op with an identity check.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from penpath.bezier import BezierMath, BezierSegment
from penpath.bounds import PathBounds
from penpath.common import HandleRole, Vec2
from penpath.geom import GeomMath
from penpath.handles import HandleRef, parse_handle_id
from penpath.path import BezierPath, BezierPoint

logger = logging.getLogger(__name__)

HandleLike = Union[HandleRef, str]


def _resolve_ref(ref: HandleLike) -> Optional[HandleRef]:
    if isinstance(ref, HandleRef):
        return ref
    return parse_handle_id(ref)


class PathState:
    """Namespace for the pure path transitions."""

    ###########################################################################
    # Edit mode
    ###########################################################################

    @staticmethod
    def enter_edit(path: BezierPath) -> BezierPath:
        """Enter edit mode, keeping an earlier point selection."""
        if path.selection.edit_mode:
            return path
        return path.with_selection(edit_mode=True, segment_index=None)

    @staticmethod
    def exit_edit(path: BezierPath) -> BezierPath:
        """Leave edit mode; point and segment selection are cleared."""
        if not path.selection.edit_mode:
            return path
        return path.with_selection(
            edit_mode=False,
            point_indices=frozenset(),
            segment_index=None,
            hovered_point=None,
            hovered_segment=None,
        )

    @staticmethod
    def toggle_edit(path: BezierPath) -> BezierPath:
        if path.selection.edit_mode:
            return PathState.exit_edit(path)
        return PathState.enter_edit(path)

    ###########################################################################
    # Selection
    ###########################################################################

    @staticmethod
    def select_point(path: BezierPath, index: int, additive: bool = False) -> BezierPath:
        """
        Apply a click on the anchor at _index_.

        Args:
            path: The path.
            index: Index of the clicked point.
            additive: Toggle membership (shift-click) instead of replacing.

        Returns:
            BezierPath: with updated selection; segment selection is cleared.
        """
        if not path.is_valid_index(index):
            logger.debug("[Selection] ignoring invalid point index %s", index)
            return path

        current = path.selection.point_indices
        if additive:
            selected = current - {index} if index in current else current | {index}
        elif current == frozenset({index}):
            selected = frozenset()
        else:
            selected = frozenset({index})

        logger.debug("[Selection] point %s additive=%s -> %s", index, additive, sorted(selected))
        return path.with_selection(point_indices=selected, segment_index=None)

    @staticmethod
    def clear_point_selection(path: BezierPath) -> BezierPath:
        if not path.selection.has_points:
            return path
        return path.with_selection(point_indices=frozenset(), segment_index=None)

    @staticmethod
    def select_segment(path: BezierPath, index: int) -> BezierPath:
        """Select the segment at _index_; point selection is cleared."""
        if index < 0 or index >= path.segment_count:
            logger.debug("[Selection] ignoring invalid segment index %s", index)
            return path
        return path.with_selection(segment_index=index, point_indices=frozenset())

    @staticmethod
    def clear_segment_selection(path: BezierPath) -> BezierPath:
        if path.selection.segment_index is None:
            return path
        return path.with_selection(segment_index=None)

    @staticmethod
    def set_hover(path: BezierPath, point_index: Optional[int] = None, segment_index: Optional[int] = None) -> BezierPath:
        """Record the hovered anchor and/or segment (invalid indices count as none)."""
        if point_index is not None and not path.is_valid_index(point_index):
            point_index = None
        if segment_index is not None and path.segment_endpoints(segment_index) is None:
            segment_index = None
        if path.selection.hovered_point == point_index and path.selection.hovered_segment == segment_index:
            return path
        return path.with_selection(hovered_point=point_index, hovered_segment=segment_index)

    ###########################################################################
    # Point mutation
    ###########################################################################

    @staticmethod
    def delete_points(path: BezierPath) -> BezierPath:
        """
        Delete all selected points and renormalize.

        Rejected (same path returned) if nothing valid is selected or fewer
        than two points would remain. Indices outside the path are ignored.
        """
        n = len(path.points)
        valid = sorted((i for i in path.selection.point_indices if 0 <= i < n), reverse=True)
        if not valid:
            return path
        if n - len(valid) < 2:
            logger.debug("[Delete] cannot delete %s points - would leave < 2 points", len(valid))
            return path

        points: List[BezierPoint] = list(path.points)
        for index in valid:
            del points[index]

        logger.debug("[Delete] deleted points %s", valid)
        deleted = path.replace(points=tuple(points)).with_selection(
            point_indices=frozenset(), segment_index=None, hovered_point=None, hovered_segment=None
        )
        return PathBounds.settle(deleted)

    @staticmethod
    def neighbors(path: BezierPath, index: int) -> Tuple[Optional[BezierPoint], Optional[BezierPoint]]:
        """Previous and next point of _index_ (wrapping around for closed paths)."""
        n = len(path.points)
        if index == 0:
            prev_index = n - 1 if path.is_closed else -1
        else:
            prev_index = index - 1
        if index == n - 1:
            next_index = 0 if path.is_closed else -1
        else:
            next_index = index + 1
        prev_point = path.points[prev_index] if 0 <= prev_index < n and prev_index != index else None
        next_point = path.points[next_index] if 0 <= next_index < n and next_index != index else None
        return prev_point, next_point

    @staticmethod
    def toggle_type(path: BezierPath, index: int) -> BezierPath:
        """
        Toggle the point at _index_ between corner and smooth.

        A point with any handle loses both. A corner gets symmetric handles
        along the direction of its neighbors.
        """
        if not path.is_valid_index(index):
            logger.debug("[PointType] invalid index %s", index)
            return path

        point = path.points[index]
        if point.has_handles:
            updated = point.without_handles()
            logger.debug("[PointType] converted point %s to corner", index)
        else:
            prev_point, next_point = PathState.neighbors(path, index)
            cp1, cp2 = BezierMath.smooth_handles(prev_point, point, next_point)
            updated = point.with_handles(cp1, cp2)
            logger.debug("[PointType] converted point %s to smooth", index)

        points = list(path.points)
        points[index] = updated
        return path.replace(points=tuple(points)).with_selection(segment_index=None)

    @staticmethod
    def insert_point_on_segment(path: BezierPath, segment_index: int, t: float) -> BezierPath:
        """
        Split the segment at parameter _t_ and insert the new point.

        The start and end point of the segment receive the handles of the
        split sub-curves. The inserted point becomes the only selected point.
        Splitting the closing segment updates the first point and appends the
        new point at the end.
        """
        endpoints = path.segment_endpoints(segment_index)
        if endpoints is None:
            logger.debug("[PointAdd] invalid segment index %s", segment_index)
            return path
        start_index, end_index = endpoints

        start, end = path.points[start_index], path.points[end_index]
        result = BezierSegment.from_points(start, end).split(t)
        new_start = start.with_handles(start.cp1, result.start_out if result.start_out is not None else start.cp2)
        new_end = end.with_handles(result.end_in if result.end_in is not None else end.cp1, end.cp2)

        points = list(path.points)
        points[start_index] = new_start
        points[end_index] = new_end
        if end_index == 0:
            points.append(result.split_point)
            new_index = len(points) - 1
        else:
            points.insert(end_index, result.split_point)
            new_index = end_index

        logger.debug("[PointAdd] added point at segment %s index %s", segment_index, new_index)
        return path.replace(points=tuple(points)).with_selection(
            point_indices=frozenset({new_index}), segment_index=None
        )

    @staticmethod
    def move_points(path: BezierPath, indices: Iterable[int], delta: Sequence[float]) -> BezierPath:
        """Translate the points at _indices_ (anchor and handles) by _delta_ and renormalize."""
        dx, dy = float(delta[0]), float(delta[1])
        targets = {i for i in indices if path.is_valid_index(i)}
        if not targets or (dx == 0.0 and dy == 0.0):
            return path
        points = tuple(p.translate(dx, dy) if i in targets else p for i, p in enumerate(path.points))
        return PathBounds.settle(path.replace(points=points))

    @staticmethod
    def set_closed(path: BezierPath, closed: bool) -> BezierPath:
        """Open or close the path. Closing needs at least three points."""
        if path.is_closed == closed:
            return path
        if closed and len(path.points) < 3:
            logger.debug("[Close] cannot close a path with %s points", len(path.points))
            return path
        updated = path.replace(is_closed=closed)
        # the closing segment disappears, drop a selection on it
        if not closed and updated.selection.segment_index is not None:
            if updated.selection.segment_index >= updated.segment_count:
                updated = updated.with_selection(segment_index=None)
        return PathBounds.settle(updated)

    @staticmethod
    def toggle_closed(path: BezierPath) -> BezierPath:
        return PathState.set_closed(path, not path.is_closed)

    ###########################################################################
    # Dragging
    ###########################################################################

    @staticmethod
    def update_from_handle_drag(
        points: Sequence[BezierPoint],
        ref: HandleLike,
        position: Sequence[float],
        break_symmetry: bool = False,
    ) -> Tuple[BezierPoint, ...]:
        """
        Move an anchor or control handle to _position_.

        Moving an anchor moves its handles along. Moving a handle mirrors the
        opposite handle through the anchor unless _break_symmetry_ is set; a
        missing opposite handle is not created.

        Args:
            points: Current points.
            ref: HandleRef or handle identifier such as "bezier-2-cp1".
            position: New position in the points' coordinate space.
            break_symmetry: Move the handle independently of its opposite.

        Returns:
            Tuple[BezierPoint, ...]: updated points (an unchanged copy if the
            reference is malformed or out of range).
        """
        new_points = list(points)
        handle = _resolve_ref(ref)
        if handle is None:
            logger.debug("[HandleDrag] invalid handle reference %r", ref)
            return tuple(new_points)
        if not 0 <= handle.point_index < len(new_points):
            logger.debug("[HandleDrag] point index out of range: %s", handle.point_index)
            return tuple(new_points)

        px, py = float(position[0]), float(position[1])
        point = new_points[handle.point_index]

        if handle.role is HandleRole.ANCHOR:
            updated = point.translate(px - point.x, py - point.y)
        else:
            moved: Vec2 = (px, py)
            opposite = point.handle(handle.role.opposite.value)
            if opposite is not None and not break_symmetry:
                opposite = GeomMath.reflect(moved, point.anchor)
            if handle.role is HandleRole.IN:
                updated = point.with_handles(moved, opposite)
            else:
                updated = point.with_handles(opposite, moved)

        new_points[handle.point_index] = updated
        return tuple(new_points)

    @staticmethod
    def update_path_from_handle_drag(
        path: BezierPath,
        ref: HandleLike,
        position: Sequence[float],
        break_symmetry: bool = False,
        settle: bool = False,
    ) -> BezierPath:
        """
        Apply a handle drag to a path.

        During a continuous drag _settle_ is False and the points stay in the
        current local space. Passing settle=True renormalizes the result.
        """
        points = PathState.update_from_handle_drag(path.points, ref, position, break_symmetry)
        updated = path.replace(points=points)
        if settle:
            return PathBounds.settle(updated)
        return updated

    @staticmethod
    def drag_segment(
        path: BezierPath,
        segment_index: int,
        initial_points: Sequence[BezierPoint],
        delta: Sequence[float],
    ) -> BezierPath:
        """
        Reshape a segment by moving both of its inner handles by _delta_.

        Positions are computed from _initial_points_ (the points when the drag
        started). A missing handle starts at its anchor. The segment becomes
        selected. An invalid segment index, or initial points that do not
        match the path's point count, leave the path unchanged.
        """
        if len(initial_points) != len(path.points):
            logger.debug("[SegmentDrag] initial points do not match the path")
            return path
        endpoints = path.segment_endpoints(segment_index)
        if endpoints is None:
            logger.debug("[SegmentDrag] invalid segment index %s", segment_index)
            return path
        start_index, end_index = endpoints

        dx, dy = float(delta[0]), float(delta[1])
        start_initial = initial_points[start_index]
        end_initial = initial_points[end_index]
        base_start = start_initial.cp2 if start_initial.cp2 is not None else start_initial.anchor
        base_end = end_initial.cp1 if end_initial.cp1 is not None else end_initial.anchor

        points = list(initial_points)
        points[start_index] = points[start_index].with_handles(
            points[start_index].cp1, (base_start[0] + dx, base_start[1] + dy)
        )
        points[end_index] = points[end_index].with_handles(
            (base_end[0] + dx, base_end[1] + dy), points[end_index].cp2
        )
        return path.replace(points=tuple(points)).with_selection(segment_index=segment_index, point_indices=frozenset())
