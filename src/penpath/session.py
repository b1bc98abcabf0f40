"""Creation session for drawing a new path (or extending an existing one) with the pen tool.

A session is one of the frozen states Idle, Placing, Accumulating, Completed
and Cancelled. The functions in this module take a state plus an input event
and return the next state:

    Idle --pointer_down--> Placing (one point, drag decides corner or smooth)
    Placing --pointer_down--> Accumulating (two or more points)
    Accumulating --pointer_down near start / close--> Completed (closed)
    Placing/Accumulating --confirm--> Completed (open) or Cancelled (< 2 points)
    any active state --cancel--> Cancelled

Points inside a session are kept in page coordinates. The path handed out by
preview_path uses the creation bounds with the first placed point as stable
origin; the completed path is renormalized to its accurate bounds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import ClassVar, Optional, Sequence, Tuple, Union

from penpath.bounds import PathBounds
from penpath.common import SessionPhase, Vec2
from penpath.config import get_config
from penpath.geom import GeomMath
from penpath.interaction import SnapState, effective_zoom, is_near_start, update_snap
from penpath.path import BezierPath, BezierPoint, Selection

logger = logging.getLogger(__name__)


###############################################################################
# States
###############################################################################


@dataclass(frozen=True)
class Idle:
    """No point placed yet."""

    phase: ClassVar[SessionPhase] = SessionPhase.IDLE


@dataclass(frozen=True)
class _ActiveSession:
    """Fields shared by the states that hold points.

    Attributes:
        points: Placed points in page coordinates.
        stable_origin: First placed point, origin of the creation bounds.
        drag_start: Pointer-down position of the point being dragged (None when not dragging).
        preview: Position of the next point preview (snapped to start if applicable).
        snap: Snap-to-start state.
        initial_drag_occurred: The first point received handles from a drag.
        extending: The session continues an existing path.
        from_start: The existing path is extended at its first point (points are reversed).
        hole_rings: Hole rings of an extended path in page coordinates.
    """

    points: Tuple[BezierPoint, ...]
    stable_origin: Vec2
    drag_start: Optional[Vec2] = None
    preview: Optional[Vec2] = None
    snap: SnapState = field(default_factory=SnapState)
    initial_drag_occurred: bool = False
    extending: bool = False
    from_start: bool = False
    hole_rings: Tuple[Tuple[BezierPoint, ...], ...] = ()

    @property
    def is_dragging(self) -> bool:
        return self.drag_start is not None


@dataclass(frozen=True)
class Placing(_ActiveSession):
    """Exactly one point placed."""

    phase: ClassVar[SessionPhase] = SessionPhase.PLACING


@dataclass(frozen=True)
class Accumulating(_ActiveSession):
    """Two or more points placed."""

    phase: ClassVar[SessionPhase] = SessionPhase.ACCUMULATING


@dataclass(frozen=True)
class Completed:
    """Terminal state holding the finished, renormalized path."""

    path: BezierPath
    phase: ClassVar[SessionPhase] = SessionPhase.COMPLETED


@dataclass(frozen=True)
class Cancelled:
    """Terminal state; all placed points are discarded."""

    phase: ClassVar[SessionPhase] = SessionPhase.CANCELLED


Session = Union[Idle, Placing, Accumulating, Completed, Cancelled]
ActiveSession = Union[Placing, Accumulating]


def _vec(point: Sequence[float]) -> Vec2:
    return (float(point[0]), float(point[1]))


def _with_points(session: ActiveSession, points: Tuple[BezierPoint, ...], **changes) -> ActiveSession:
    """Copy of _session_ with new points, switching to Accumulating from two points on."""
    cls = Accumulating if len(points) >= 2 else Placing
    fields = {
        "points": points,
        "stable_origin": session.stable_origin,
        "drag_start": session.drag_start,
        "preview": session.preview,
        "snap": session.snap,
        "initial_drag_occurred": session.initial_drag_occurred,
        "extending": session.extending,
        "from_start": session.from_start,
        "hole_rings": session.hole_rings,
    }
    fields.update(changes)
    return cls(**fields)


###############################################################################
# Handle helpers
###############################################################################


def compute_drag_handles(
    start: Sequence[float],
    current: Sequence[float],
    drag_distance: float,
    threshold: Optional[float] = None,
    break_symmetry: bool = False,
    constrain: bool = False,
) -> Tuple[Optional[Vec2], Optional[Vec2]]:
    """
    Handles (cp1, cp2) for a point placed at _start_ and dragged to _current_.

    Args:
        start: Position where the point was placed.
        current: Live pointer position.
        drag_distance: Drag distance in screen pixels.
        threshold: Drag distance up to which the point stays a corner.
        break_symmetry: Only create the outgoing handle.
        constrain: Snap the drag direction to 45-degree steps.

    Returns:
        (None, None) for a corner, otherwise mirrored handles around _start_
        (or only cp2 when breaking symmetry).
    """
    if threshold is None:
        threshold = get_config().thresholds.corner_point_drag
    if drag_distance <= threshold:
        return None, None

    offset = GeomMath.sub(current, start)
    if constrain:
        offset = GeomMath.constrain_angle(offset)

    cp2 = GeomMath.add(start, offset)
    if break_symmetry:
        return None, cp2
    return GeomMath.sub(start, offset), cp2


def smooth_closing_handles(points: Sequence[BezierPoint], tension: Optional[float] = None) -> Tuple[BezierPoint, ...]:
    """
    Add handles so the closing segment joins the path smoothly.

    If the last point has an outgoing handle the first point gets an incoming
    one: the mirror of its outgoing handle, or a handle pointing back towards
    the last point. Likewise, if only the first point has an outgoing handle
    the last point gets one.
    """
    if len(points) < 2:
        return tuple(points)
    if tension is None:
        tension = get_config().handles.tension

    first, last = points[0], points[-1]
    direction = GeomMath.sub(first.anchor, last.anchor)
    length = GeomMath.vector_length(direction)
    dx, dy = GeomMath.normalize(direction)
    reach = length * tension

    if last.cp2 is not None:
        if first.cp2 is not None:
            cp1 = GeomMath.reflect(first.cp2, first.anchor)
        else:
            cp1 = (first.x - dx * reach, first.y - dy * reach)
        first = first.with_handles(cp1, first.cp2)

    if first.cp2 is not None and last.cp2 is None:
        if last.cp1 is not None:
            cp2 = GeomMath.reflect(last.cp1, last.anchor)
        else:
            cp2 = (last.x + dx * reach, last.y + dy * reach)
        last = last.with_handles(last.cp1, cp2)

    result = list(points)
    result[0] = first
    result[-1] = last
    return tuple(result)


###############################################################################
# Transitions
###############################################################################


def begin(point: Optional[Sequence[float]] = None) -> Session:
    """
    Start a session.

    With a _point_ (pointer pressed on the canvas) the first point is placed
    and dragging starts immediately; otherwise the session waits in Idle.
    """
    if point is None:
        return Idle()
    anchor = _vec(point)
    logger.debug("[Session] started at %s", anchor)
    return Placing(points=(BezierPoint(*anchor),), stable_origin=anchor, drag_start=anchor)


def begin_extending(path: BezierPath, from_start: bool = False) -> Session:
    """
    Continue drawing an existing path at its last (or first) point.

    The existing points are taken over in page coordinates. When extending
    from the start they are reversed so new points are always appended; the
    order is restored on completion. Hole rings are carried along and keep
    their page position.
    """
    if not path.points:
        return Idle()
    source = path.reversed() if from_start else path
    points = source.to_page_points()
    logger.debug("[Session] extending path with %s points from_start=%s", len(points), from_start)
    cls = Accumulating if len(points) >= 2 else Placing
    return cls(
        points=points,
        stable_origin=points[0].anchor,
        initial_drag_occurred=True,
        extending=True,
        from_start=from_start,
        hole_rings=path.to_page_hole_rings(),
    )


def pointer_down(session: Session, point: Sequence[float], zoom: float = 1.0) -> Session:
    """
    Handle a pointer press.

    Idle places the first point. With more than two points, a press while
    snapped or near the first point closes the path. Otherwise a new point is
    appended and dragging starts.
    """
    anchor = _vec(point)
    if isinstance(session, Idle):
        return begin(anchor)
    if not isinstance(session, (Placing, Accumulating)):
        return session

    count = len(session.points)
    if count > 2 and (session.snap.snapped or is_near_start(anchor, session.points[0].anchor, zoom, count)):
        logger.debug("[Session] closing at start point")
        return close(session)

    points = session.points + (BezierPoint(*anchor),)
    return _with_points(session, points, drag_start=anchor, preview=None)


def pointer_move(
    session: Session,
    point: Sequence[float],
    zoom: float = 1.0,
    break_symmetry: bool = False,
    constrain: bool = False,
) -> Session:
    """
    Handle pointer movement.

    Updates the snap state and the preview point. While dragging, the last
    placed point gets handles from the drag (see compute_drag_handles).
    """
    if not isinstance(session, (Placing, Accumulating)):
        return session

    live = _vec(point)
    snap, preview = update_snap(session.snap, live, session.points[0].anchor, zoom, len(session.points))
    if session.drag_start is None:
        return replace(session, snap=snap, preview=preview)

    drag_distance = GeomMath.distance(live, session.drag_start) * effective_zoom(zoom)
    cp1, cp2 = compute_drag_handles(
        session.drag_start, live, drag_distance, break_symmetry=break_symmetry, constrain=constrain
    )
    points = list(session.points)
    points[-1] = points[-1].with_handles(cp1, cp2)
    initial_drag_occurred = session.initial_drag_occurred or (len(points) == 1 and cp2 is not None)
    return replace(
        session,
        points=tuple(points),
        snap=snap,
        preview=preview,
        initial_drag_occurred=initial_drag_occurred,
    )


def pointer_up(session: Session) -> Session:
    """End the current drag. The phase does not change."""
    if isinstance(session, (Placing, Accumulating)) and session.drag_start is not None:
        return replace(session, drag_start=None)
    return session


def _complete(session: ActiveSession, points: Tuple[BezierPoint, ...], closed: bool) -> Completed:
    if session.from_start:
        points = tuple(p.swapped() for p in reversed(points))
    # the unsettled path lives in page space, so hole rings shift with the new origin
    path = PathBounds.apply_renormalize(BezierPath(is_closed=closed, hole_rings=session.hole_rings), points)
    logger.debug("[Session] completed with %s points closed=%s", len(points), closed)
    return Completed(path=path)


def confirm(session: Session) -> Session:
    """Finish an open path (Enter / double click); fewer than two points cancel the session."""
    if isinstance(session, (Completed, Cancelled)):
        return session
    if not isinstance(session, (Placing, Accumulating)) or len(session.points) < 2:
        logger.debug("[Session] not enough points, cancelled")
        return Cancelled()
    return _complete(session, session.points, closed=False)


def close(session: Session) -> Session:
    """Finish as closed path with smooth closing handles; needs more than two points."""
    if not isinstance(session, (Placing, Accumulating)) or len(session.points) < 3:
        return session
    return _complete(session, smooth_closing_handles(session.points), closed=True)


def cancel(session: Session) -> Session:
    """Abort the session and discard all points."""
    if isinstance(session, (Completed, Cancelled)):
        return session
    logger.debug("[Session] cancelled")
    return Cancelled()


def preview_path(session: Session) -> Optional[BezierPath]:
    """
    The path to display for the current state.

    Active sessions yield the placed points plus the preview point, laid out
    in creation bounds around the stable origin and in edit mode. Completed
    sessions yield their final path; Idle and Cancelled yield None.
    """
    if isinstance(session, Completed):
        return session.path
    if not isinstance(session, (Placing, Accumulating)):
        return None

    points = session.points
    if session.preview is not None and (session.drag_start is None or len(points) > 1):
        points = points + (BezierPoint(*session.preview),)
    bounds = PathBounds.creation_bounds(points, session.stable_origin)
    return BezierPath(
        points=bounds.local_points,
        is_closed=False,
        x=bounds.origin[0],
        y=bounds.origin[1],
        width=bounds.width,
        height=bounds.height,
        selection=Selection(edit_mode=True),
    )
