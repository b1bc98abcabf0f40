"""Hit-testing of anchors, control handles and segments plus snap-to-start hysteresis.

All thresholds are configured in screen pixels and divided by the zoom level,
so hit targets keep the same on-screen size at every zoom. Positions passed in
are shape-local unless stated otherwise.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import shapely.errors
import shapely.geometry

from penpath.bezier import BezierMath
from penpath.common import HandleRole, Vec2
from penpath.config import get_config
from penpath.geom import GeomMath, PathBox
from penpath.handles import HandleRef
from penpath.path import BezierPath, BezierPoint

logger = logging.getLogger(__name__)


def effective_zoom(zoom: float) -> float:
    """Zoom level used for threshold scaling; non-positive or non-finite values count as 1."""
    try:
        zoom = float(zoom)
    except (TypeError, ValueError):
        return 1.0
    if not math.isfinite(zoom) or zoom <= 0.0:
        return 1.0
    return zoom


def scaled_threshold(pixels: float, zoom: float) -> float:
    """Convert a pixel threshold into shape-local units."""
    return pixels / effective_zoom(zoom)


###############################################################################
# Anchors, handles and segments
###############################################################################


def anchor_at(points: Sequence[BezierPoint], local: Sequence[float], zoom: float = 1.0) -> int:
    """
    Index of the anchor nearest to _local_ within the anchor threshold.

    On equal distances the lowest index wins.

    Returns:
        int: point index, or -1 if no anchor is hit.
    """
    return _nearest_anchor(points, local, scaled_threshold(get_config().thresholds.anchor_point, zoom))


def _nearest_anchor(points: Sequence[BezierPoint], local: Sequence[float], threshold: float) -> int:
    best_index = -1
    best_distance = threshold
    for i, point in enumerate(points):
        distance = GeomMath.distance(local, point.anchor)
        if distance < best_distance:
            best_index, best_distance = i, distance
    if best_index != -1:
        logger.debug("[HitTest] found anchor at index %s", best_index)
    return best_index


def control_at(points: Sequence[BezierPoint], local: Sequence[float], zoom: float = 1.0) -> Optional[HandleRef]:
    """
    First control handle closer than the control threshold to _local_.

    Per point cp1 is tested before cp2.
    """
    threshold = scaled_threshold(get_config().thresholds.control_point, zoom)
    for i, point in enumerate(points):
        if point.cp1 is not None and GeomMath.distance(local, point.cp1) < threshold:
            return HandleRef(i, HandleRole.IN)
        if point.cp2 is not None and GeomMath.distance(local, point.cp2) < threshold:
            return HandleRef(i, HandleRole.OUT)
    return None


@dataclass(frozen=True)
class SegmentHit:
    """Segment under the pointer with the projected curve parameter."""

    segment_index: int
    t: float
    distance: float


def segment_at(
    points: Sequence[BezierPoint],
    local: Sequence[float],
    zoom: float = 1.0,
    is_closed: bool = False,
) -> Optional[SegmentHit]:
    """
    First segment whose curve passes closer than the segment threshold to _local_.

    Positions near any anchor (anchor exclusion radius) never produce a
    segment hit, so a click next to an anchor is not mistaken for an insert.
    """
    thresholds = get_config().thresholds
    return _segment_within(
        points,
        local,
        scaled_threshold(thresholds.path_segment, zoom),
        scaled_threshold(thresholds.segment_anchor_exclusion, zoom),
        is_closed,
    )


def _segment_within(
    points: Sequence[BezierPoint],
    local: Sequence[float],
    threshold: float,
    exclusion: float,
    is_closed: bool,
) -> Optional[SegmentHit]:
    for point in points:
        if GeomMath.distance(local, point.anchor) < exclusion:
            logger.debug("[HitTest] too close to anchor point, excluding segment hit")
            return None

    for i, segment in enumerate(BezierMath.all_segments(points, is_closed)):
        projection = segment.closest_point(local)
        if projection.distance < threshold:
            logger.debug("[HitTest] segment %s hit at t=%.4f", i, projection.t)
            return SegmentHit(segment_index=i, t=projection.t, distance=projection.distance)
    return None


@dataclass(frozen=True)
class InteractionContext:
    """What a pointer-down at _local_ would grab."""

    on_handle: bool
    on_anchor: bool
    local: Vec2
    anchor_index: int = -1


def interaction_context(points: Sequence[BezierPoint], local: Sequence[float], zoom: float = 1.0) -> InteractionContext:
    """
    Classify a position as anchor, control handle or neither.

    Points are checked in order; per point the anchor has priority over its
    handles. One radius (the anchor threshold) is used for all three.
    """
    threshold = scaled_threshold(get_config().thresholds.anchor_point, zoom)
    local_vec: Vec2 = (float(local[0]), float(local[1]))
    for i, point in enumerate(points):
        if GeomMath.distance(local_vec, point.anchor) < threshold:
            return InteractionContext(on_handle=True, on_anchor=True, local=local_vec, anchor_index=i)
        for handle in (point.cp1, point.cp2):
            if handle is not None and GeomMath.distance(local_vec, handle) < threshold:
                return InteractionContext(on_handle=True, on_anchor=False, local=local_vec)
    return InteractionContext(on_handle=False, on_anchor=False, local=local_vec)


def hover_at(
    points: Sequence[BezierPoint],
    local: Sequence[float],
    zoom: float = 1.0,
    is_closed: bool = False,
) -> Tuple[Optional[int], Optional[int]]:
    """
    Anchor and segment under the pointer for hover feedback.

    Uses the hover radii, which are slightly larger than the click radii for
    anchors. A hovered anchor suppresses segment hover.

    Returns:
        Tuple of (point index, segment index), each None if nothing is hovered.
    """
    thresholds = get_config().thresholds
    anchor_index = _nearest_anchor(points, local, scaled_threshold(thresholds.anchor_point_hover, zoom))
    if anchor_index != -1:
        return anchor_index, None
    hit = _segment_within(
        points,
        local,
        scaled_threshold(thresholds.segment_hover, zoom),
        scaled_threshold(thresholds.segment_anchor_exclusion, zoom),
        is_closed,
    )
    return None, hit.segment_index if hit is not None else None


###############################################################################
# Shape level
###############################################################################


def is_point_in_bounds(path: BezierPath, page_point: Sequence[float], padding: float = 0.0) -> bool:
    """True if _page_point_ lies within the stored page bounds of the path (grown by _padding_)."""
    box = PathBox(path.x, path.y, path.x + path.width, path.y + path.height).expand(padding)
    return box.contains(page_point)


def _ring_coordinates(points: Sequence[BezierPoint]) -> List[Vec2]:
    return BezierMath.sample_path(points, is_closed=True)


def contains_point(path: BezierPath, local: Sequence[float]) -> bool:
    """
    Fill hit-test: True if _local_ lies inside the filled area of the path.

    The outline is always treated as closed (like an SVG fill). Hole rings
    are cut out of the fill. Paths with fewer than three points have no area.
    """
    if len(path.points) < 3:
        return False
    try:
        fill = shapely.geometry.Polygon(_ring_coordinates(path.points)).buffer(0)
        for ring in path.hole_rings:
            if len(ring) < 3:
                continue
            hole = shapely.geometry.Polygon(_ring_coordinates(ring)).buffer(0)
            if not hole.is_empty:
                fill = fill.difference(hole)
        if fill.is_empty:
            return False
        return bool(fill.covers(shapely.geometry.Point(float(local[0]), float(local[1]))))
    except (shapely.errors.ShapelyError, ValueError, TypeError) as e:
        logger.warning("[HitTest] fill test failed: %s", e)
        return False


def hits_shape(
    path: BezierPath,
    local: Sequence[float],
    zoom: float = 1.0,
    padding: Optional[float] = None,
) -> bool:
    """
    True if _local_ hits the shape: inside its fill or near its outline.

    Args:
        path: The path.
        local: Position in the path's local space.
        zoom: Current zoom level.
        padding: Distance to the outline in pixels that still counts as hit.
            Defaults to the edit mode exit padding.
    """
    if not path.points:
        return False
    if padding is None:
        padding = get_config().bounds.edit_mode_exit_padding
    margin = scaled_threshold(padding, zoom)
    if contains_point(path, local):
        return True
    outline = BezierMath.sample_path(path.points, path.is_closed)
    target = shapely.geometry.Point(float(local[0]), float(local[1]))
    try:
        if len(outline) < 2:
            geometry = shapely.geometry.Point(outline[0])
        else:
            geometry = shapely.geometry.LineString(outline)
        return bool(geometry.distance(target) <= margin)
    except (shapely.errors.ShapelyError, ValueError, TypeError) as e:
        logger.warning("[HitTest] outline distance failed: %s", e)
        return False


###############################################################################
# Snap to start
###############################################################################


@dataclass(frozen=True)
class SnapState:
    """Snap-to-start state of a creation session.

    Attributes:
        snapped: The preview point is locked onto the start anchor.
        snap_origin: Live pointer position at the moment snapping began.
    """

    snapped: bool = False
    snap_origin: Optional[Vec2] = None


def is_near_start(live: Sequence[float], start: Sequence[float], zoom: float, point_count: int) -> bool:
    """True if a click at _live_ would close the path (more than two points, within the close radius)."""
    if point_count <= 2:
        return False
    threshold = scaled_threshold(get_config().thresholds.close_curve, zoom)
    return GeomMath.distance(live, start) < threshold


def update_snap(
    state: SnapState,
    live: Sequence[float],
    start: Sequence[float],
    zoom: float,
    point_count: int,
) -> Tuple[SnapState, Vec2]:
    """
    Advance the snap-to-start state for a new pointer position.

    Snapping starts when the live point comes closer to the start anchor than
    the snap threshold. It is released only when the live point moves farther
    than the release threshold away from where snapping began, which leaves a
    dead zone around the boundary.

    Args:
        state: Current snap state.
        live: Live pointer position.
        start: Position of the first anchor.
        zoom: Current zoom level.
        point_count: Number of placed points; snapping needs more than two.

    Returns:
        Tuple of the new state and the effective preview point (the start
        anchor while snapped, otherwise the live position).
    """
    live_vec: Vec2 = (float(live[0]), float(live[1]))
    start_vec: Vec2 = (float(start[0]), float(start[1]))
    if point_count <= 2:
        return SnapState(), live_vec

    thresholds = get_config().thresholds
    if not state.snapped:
        if GeomMath.distance(live_vec, start_vec) < scaled_threshold(thresholds.snap_to_start, zoom):
            logger.debug("[Snap] snapped to start at %s", live_vec)
            return SnapState(snapped=True, snap_origin=live_vec), start_vec
        return state, live_vec

    origin = state.snap_origin if state.snap_origin is not None else start_vec
    if GeomMath.distance(live_vec, origin) > scaled_threshold(thresholds.snap_release, zoom):
        logger.debug("[Snap] released at %s", live_vec)
        return SnapState(), live_vec
    return state, start_vec
