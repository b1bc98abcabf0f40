"""Pointer and keyboard handling for a path in edit mode.

Each handler takes the current path (and the transient EditGesture) and
returns the updated pair. Drags update the points in the current local space
on every move; the path is renormalized exactly once, on pointer up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from penpath.bounds import PathBounds
from penpath.common import HandleRole, KeyIntent, Vec2
from penpath.handles import HandleRef
from penpath.interaction import anchor_at, control_at, hits_shape, hover_at, segment_at
from penpath.path import BezierPath, BezierPoint
from penpath.state import PathState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandleDrag:
    """An anchor or control handle being dragged."""

    ref: HandleRef
    initial_points: Tuple[BezierPoint, ...]


@dataclass(frozen=True)
class SegmentDrag:
    """A segment being reshaped (alternate-drag)."""

    segment_index: int
    initial_local: Vec2
    initial_points: Tuple[BezierPoint, ...]


@dataclass(frozen=True)
class EditGesture:
    """Transient state of the pointer gesture in progress.

    Attributes:
        handle_drag: Pending anchor/handle drag.
        segment_drag: Pending segment drag.
        pending_exit: A press missed the shape; edit mode ends on release unless the pointer moves.
    """

    handle_drag: Optional[HandleDrag] = None
    segment_drag: Optional[SegmentDrag] = None
    pending_exit: bool = False

    @property
    def is_dragging(self) -> bool:
        return self.handle_drag is not None or self.segment_drag is not None


def _vec(point: Sequence[float]) -> Vec2:
    return (float(point[0]), float(point[1]))


def pointer_down(
    path: BezierPath,
    gesture: EditGesture,
    local: Sequence[float],
    zoom: float = 1.0,
    additive: bool = False,
    alternate: bool = False,
) -> Tuple[BezierPath, EditGesture]:
    """
    Handle a pointer press at _local_.

    Priority: anchor (select, start dragging it), control handle (start
    dragging it), segment (select, or start a segment drag with _alternate_),
    otherwise clear the selection; a press that also misses the shape (fill
    and padded outline) exits edit mode on release.
    """
    if gesture.is_dragging:
        logger.debug("[Editing] discarding unfinished drag")
    local_vec = _vec(local)
    path = PathState.enter_edit(path)

    anchor_index = anchor_at(path.points, local_vec, zoom)
    if anchor_index != -1:
        logger.debug("[Editing] anchor %s pressed additive=%s", anchor_index, additive)
        path = PathState.select_point(path, anchor_index, additive)
        return path, EditGesture(handle_drag=HandleDrag(HandleRef(anchor_index, HandleRole.ANCHOR), path.points))

    control = control_at(path.points, local_vec, zoom)
    if control is not None:
        logger.debug("[Editing] control %s pressed", control.handle_id)
        return path, EditGesture(handle_drag=HandleDrag(control, path.points))

    hit = segment_at(path.points, local_vec, zoom, path.is_closed)
    if hit is not None:
        path = PathState.select_segment(path, hit.segment_index)
        if alternate:
            logger.debug("[Editing] starting segment drag on %s", hit.segment_index)
            return path, EditGesture(segment_drag=SegmentDrag(hit.segment_index, local_vec, path.points))
        return path, EditGesture()

    path = PathState.clear_segment_selection(PathState.clear_point_selection(path))
    if hits_shape(path, local_vec, zoom):
        logger.debug("[Editing] press inside shape without target, staying in edit mode")
        return path, EditGesture()
    logger.debug("[Editing] press outside shape geometry")
    return path, EditGesture(pending_exit=True)


def hover(path: BezierPath, local: Sequence[float], zoom: float = 1.0) -> BezierPath:
    """Update the hovered anchor and segment for pointer movement without a drag."""
    point_index, segment_index = hover_at(path.points, local, zoom, path.is_closed)
    return PathState.set_hover(path, point_index, segment_index)


def pointer_move(
    path: BezierPath,
    gesture: EditGesture,
    local: Sequence[float],
    break_symmetry: bool = False,
) -> Tuple[BezierPath, EditGesture]:
    """Apply the pending drag for the new pointer position (no renormalization)."""
    local_vec = _vec(local)
    if gesture.handle_drag is not None:
        path = PathState.update_path_from_handle_drag(path, gesture.handle_drag.ref, local_vec, break_symmetry)
    elif gesture.segment_drag is not None:
        drag = gesture.segment_drag
        delta = (local_vec[0] - drag.initial_local[0], local_vec[1] - drag.initial_local[1])
        path = PathState.drag_segment(path, drag.segment_index, drag.initial_points, delta)
    elif gesture.pending_exit:
        # dragging on empty space does not leave edit mode
        gesture = EditGesture()
    return path, gesture


def pointer_up(path: BezierPath, gesture: EditGesture) -> Tuple[BezierPath, EditGesture]:
    """Finish the gesture: settle a drag once, or leave edit mode after a press on empty space."""
    if gesture.handle_drag is not None and path.points != gesture.handle_drag.initial_points:
        path = PathBounds.settle(path)
    elif gesture.segment_drag is not None and path.points != gesture.segment_drag.initial_points:
        path = PathBounds.settle(path)
    elif gesture.pending_exit:
        logger.debug("[Editing] exiting edit mode after click on empty space")
        path = PathState.exit_edit(path)
    return path, EditGesture()


def double_click(path: BezierPath, local: Sequence[float], zoom: float = 1.0) -> BezierPath:
    """Toggle the type of an anchor, or insert a point on a segment."""
    local_vec = _vec(local)
    anchor_index = anchor_at(path.points, local_vec, zoom)
    if anchor_index != -1:
        logger.debug("[Editing] toggling point type for anchor %s", anchor_index)
        updated = PathState.toggle_type(path, anchor_index)
        return updated if updated is path else PathBounds.settle(updated)

    hit = segment_at(path.points, local_vec, zoom, path.is_closed)
    if hit is None:
        return path
    logger.debug("[Editing] adding point to segment %s at t=%.4f", hit.segment_index, hit.t)
    updated = PathState.insert_point_on_segment(path, hit.segment_index, hit.t)
    return updated if updated is path else PathBounds.settle(updated)


def key(path: BezierPath, intent: KeyIntent) -> BezierPath:
    """
    Apply a keyboard intent.

    'delete' removes the selected points, 'toggle-closed' opens or closes the
    path, 'confirm' and 'cancel' leave edit mode.
    """
    if intent == "delete":
        return PathState.delete_points(path)
    if intent == "toggle-closed":
        return PathState.toggle_closed(path)
    if intent in ("confirm", "cancel"):
        if not path.selection.edit_mode:
            return path
        return PathBounds.settle(PathState.exit_edit(path))
    logger.debug("[Editing] ignoring unknown key intent %r", intent)
    return path
