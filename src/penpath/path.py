"""Bezier path data model: points with optional handles, selection state and persisted form."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from penpath.common import HandleName, PointKind, Vec2
from penpath.consts import SYMMETRY_EPS
from penpath.errors import PathDataError

###############################################################################
# Decoding helpers
###############################################################################


def _coerce_float(value: Any, name: str, default: float = 0.0) -> float:
    """Return _value_ as finite float; None yields _default_."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise PathDataError(f"'{name}' must be a number, got bool")
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise PathDataError(f"'{name}' must be a number, got {value!r}") from e
    if not math.isfinite(result):
        raise PathDataError(f"'{name}' must be finite, got {value!r}")
    return result


def _coerce_vec(value: Any, name: str) -> Optional[Vec2]:
    """Decode an optional {x, y} mapping (or [x, y] pair) into a tuple."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        return (_coerce_float(value.get("x"), f"{name}.x"), _coerce_float(value.get("y"), f"{name}.y"))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return (_coerce_float(value[0], f"{name}[0]"), _coerce_float(value[1], f"{name}[1]"))
    raise PathDataError(f"'{name}' must be an {{x, y}} mapping, got {value!r}")


def _vec_to_dict(vec: Vec2) -> dict:
    return {"x": vec[0], "y": vec[1]}


###############################################################################
# BezierPoint
###############################################################################


@dataclass(frozen=True)
class BezierPoint:
    """Anchor point with optional control handles.

    Handles are absolute coordinates in the same space as the anchor, not
    offsets. A point without handles is a corner, a point whose handles are
    mirror images through the anchor is smooth.

    Attributes:
        x: Anchor x-coordinate.
        y: Anchor y-coordinate.
        cp1: Incoming control handle (shapes the curve approaching the anchor).
        cp2: Outgoing control handle (shapes the curve leaving the anchor).
    """

    x: float
    y: float
    cp1: Optional[Vec2] = None
    cp2: Optional[Vec2] = None

    @property
    def anchor(self) -> Vec2:
        """The anchor position as (x, y)."""
        return (self.x, self.y)

    @property
    def has_handles(self) -> bool:
        """True if at least one control handle exists."""
        return self.cp1 is not None or self.cp2 is not None

    @property
    def kind(self) -> PointKind:
        """Classify the point as corner, smooth or asymmetric."""
        if self.cp1 is None and self.cp2 is None:
            return PointKind.CORNER
        if self.cp1 is not None and self.cp2 is not None:
            mirrored_x = 2.0 * self.x - self.cp1[0]
            mirrored_y = 2.0 * self.y - self.cp1[1]
            if abs(mirrored_x - self.cp2[0]) <= SYMMETRY_EPS and abs(mirrored_y - self.cp2[1]) <= SYMMETRY_EPS:
                return PointKind.SMOOTH
        return PointKind.ASYMMETRIC

    def handle(self, name: HandleName) -> Optional[Vec2]:
        """Return the anchor or handle position by name ('anchor', 'cp1', 'cp2')."""
        if name == "anchor":
            return self.anchor
        if name == "cp1":
            return self.cp1
        if name == "cp2":
            return self.cp2
        return None

    def translate(self, dx: float, dy: float) -> BezierPoint:
        """Move anchor and both handles rigidly by (dx, dy)."""
        return BezierPoint(
            x=self.x + dx,
            y=self.y + dy,
            cp1=(self.cp1[0] + dx, self.cp1[1] + dy) if self.cp1 is not None else None,
            cp2=(self.cp2[0] + dx, self.cp2[1] + dy) if self.cp2 is not None else None,
        )

    def with_handles(self, cp1: Optional[Vec2], cp2: Optional[Vec2]) -> BezierPoint:
        """Same anchor, new handles."""
        return BezierPoint(self.x, self.y, cp1, cp2)

    def without_handles(self) -> BezierPoint:
        """Same anchor as a corner point."""
        return BezierPoint(self.x, self.y)

    def swapped(self) -> BezierPoint:
        """Same point with cp1 and cp2 exchanged (for reversed traversal)."""
        return BezierPoint(self.x, self.y, self.cp2, self.cp1)

    def coordinates(self) -> List[Vec2]:
        """Anchor followed by the existing handles."""
        coords = [self.anchor]
        if self.cp1 is not None:
            coords.append(self.cp1)
        if self.cp2 is not None:
            coords.append(self.cp2)
        return coords

    @classmethod
    def from_dict(cls, data: Any) -> BezierPoint:
        """Create a BezierPoint from a persisted {x, y, cp1?, cp2?} mapping.

        Missing fields default (anchor to 0, handles to None).

        Raises:
            PathDataError: If _data_ is not a mapping or holds non-numeric values.
        """
        if not isinstance(data, Mapping):
            raise PathDataError(f"point must be a mapping, got {type(data).__name__}")
        return cls(
            x=_coerce_float(data.get("x"), "x"),
            y=_coerce_float(data.get("y"), "y"),
            cp1=_coerce_vec(data.get("cp1"), "cp1"),
            cp2=_coerce_vec(data.get("cp2"), "cp2"),
        )

    def to_dict(self) -> dict:
        """Convert the BezierPoint to a JSON-serializable dictionary."""
        data: dict = {"x": self.x, "y": self.y}
        if self.cp1 is not None:
            data["cp1"] = _vec_to_dict(self.cp1)
        if self.cp2 is not None:
            data["cp2"] = _vec_to_dict(self.cp2)
        return data


def translate_points(points: Iterable[BezierPoint], dx: float, dy: float) -> Tuple[BezierPoint, ...]:
    """Translate every point (anchor and handles) by (dx, dy)."""
    return tuple(p.translate(dx, dy) for p in points)


###############################################################################
# Selection
###############################################################################


@dataclass(frozen=True)
class Selection:
    """Edit-mode selection state of a path.

    Point selection and segment selection are mutually exclusive.

    Attributes:
        edit_mode: True while the path's points are being edited.
        point_indices: Indices of the selected anchor points.
        segment_index: Index of the selected segment, if any.
        hovered_point: Index of the anchor under the pointer (transient).
        hovered_segment: Index of the segment under the pointer (transient).
    """

    edit_mode: bool = False
    point_indices: FrozenSet[int] = frozenset()
    segment_index: Optional[int] = None
    hovered_point: Optional[int] = None
    hovered_segment: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.point_indices, frozenset):
            object.__setattr__(self, "point_indices", frozenset(self.point_indices))

    @property
    def has_points(self) -> bool:
        """True if at least one point is selected."""
        return bool(self.point_indices)

    @property
    def sorted_points(self) -> List[int]:
        """Selected point indices in ascending order."""
        return sorted(self.point_indices)


###############################################################################
# BezierPath
###############################################################################


@dataclass(frozen=True)
class BezierPath:
    """Immutable piecewise cubic Bezier path in shape-local coordinates.

    Points are stored relative to the shape origin (x, y). A closed path with
    at least three points has an implicit closing segment from the last point
    back to the first one.

    Attributes:
        points: Ordered anchor points.
        is_closed: Whether the path loops back to its first point.
        hole_rings: Closed sub-paths cut out of the fill (same local space).
        x: Page x-coordinate of the local origin.
        y: Page y-coordinate of the local origin.
        width: Stored width of the settled bounds (at least 1).
        height: Stored height of the settled bounds (at least 1).
        selection: Edit-mode selection state.
    """

    points: Tuple[BezierPoint, ...] = ()
    is_closed: bool = False
    hole_rings: Tuple[Tuple[BezierPoint, ...], ...] = ()
    x: float = 0.0
    y: float = 0.0
    width: float = 1.0
    height: float = 1.0
    selection: Selection = field(default_factory=Selection)

    def __post_init__(self):
        if not isinstance(self.points, tuple):
            object.__setattr__(self, "points", tuple(self.points))
        if not isinstance(self.hole_rings, tuple) or any(not isinstance(r, tuple) for r in self.hole_rings):
            object.__setattr__(self, "hole_rings", tuple(tuple(ring) for ring in self.hole_rings))

    def __len__(self) -> int:
        return len(self.points)

    @property
    def origin(self) -> Vec2:
        """Page position of the local origin."""
        return (self.x, self.y)

    @property
    def is_renderable(self) -> bool:
        """A path needs at least one point to be drawn."""
        return len(self.points) >= 1

    @property
    def has_closing_segment(self) -> bool:
        """True if the implicit last-to-first segment exists."""
        return self.is_closed and len(self.points) > 2

    @property
    def segment_count(self) -> int:
        """Number of segments including the closing segment."""
        n = len(self.points)
        if n < 2:
            return 0
        return n if self.has_closing_segment else n - 1

    def segment_endpoints(self, segment_index: int) -> Optional[Tuple[int, int]]:
        """Point indices (start, end) of a segment, or None if the index is invalid."""
        if segment_index < 0 or segment_index >= self.segment_count:
            return None
        end = segment_index + 1
        if end == len(self.points):
            end = 0
        return (segment_index, end)

    def is_valid_index(self, index: int) -> bool:
        """True if _index_ addresses an existing point."""
        return 0 <= index < len(self.points)

    def replace(self, **changes: Any) -> BezierPath:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def with_selection(self, **changes: Any) -> BezierPath:
        """Return a copy whose selection has the given fields replaced."""
        return replace(self, selection=replace(self.selection, **changes))

    def to_page_points(self) -> Tuple[BezierPoint, ...]:
        """Points converted from local to page coordinates."""
        return translate_points(self.points, self.x, self.y)

    def to_page_hole_rings(self) -> Tuple[Tuple[BezierPoint, ...], ...]:
        """Hole rings converted from local to page coordinates."""
        return tuple(translate_points(ring, self.x, self.y) for ring in self.hole_rings)

    def to_local(self, page_point: Sequence[float]) -> Vec2:
        """Convert a page position into this path's local space."""
        return (float(page_point[0]) - self.x, float(page_point[1]) - self.y)

    def to_page(self, local_point: Sequence[float]) -> Vec2:
        """Convert a local position into page space."""
        return (float(local_point[0]) + self.x, float(local_point[1]) + self.y)

    def reversed(self) -> BezierPath:
        """Return the path with reversed drawing direction.

        Handles are swapped on every point so the curve geometry is unchanged.
        Selected point indices are remapped to the new order.
        """
        n = len(self.points)
        points = tuple(p.swapped() for p in reversed(self.points))
        indices = frozenset(n - 1 - i for i in self.selection.point_indices if 0 <= i < n)
        return replace(self, points=points, selection=replace(self.selection, point_indices=indices))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BezierPath:
        """Create a BezierPath from its persisted form.

        Recognized keys: points, isClosed, holeRings, x, y, w, h. Missing keys
        default; unknown keys are ignored.

        Raises:
            PathDataError: If a present value has the wrong structure.
        """
        if not isinstance(data, Mapping):
            raise PathDataError(f"path data must be a mapping, got {type(data).__name__}")

        raw_points = data.get("points") or []
        if not isinstance(raw_points, (list, tuple)):
            raise PathDataError("'points' must be a list")
        points = tuple(BezierPoint.from_dict(p) for p in raw_points)

        raw_rings = data.get("holeRings") or []
        if not isinstance(raw_rings, (list, tuple)):
            raise PathDataError("'holeRings' must be a list of point lists")
        rings = []
        for ring in raw_rings:
            if not isinstance(ring, (list, tuple)):
                raise PathDataError("'holeRings' must be a list of point lists")
            rings.append(tuple(BezierPoint.from_dict(p) for p in ring))

        return cls(
            points=points,
            is_closed=bool(data.get("isClosed", False)),
            hole_rings=tuple(rings),
            x=_coerce_float(data.get("x"), "x"),
            y=_coerce_float(data.get("y"), "y"),
            width=max(1.0, _coerce_float(data.get("w"), "w", 1.0)),
            height=max(1.0, _coerce_float(data.get("h"), "h", 1.0)),
        )

    def to_dict(self) -> dict:
        """Convert the BezierPath to its flat JSON-serializable persisted form.

        Selection state is transient and not part of the persisted form.
        """
        data: dict = {
            "points": [p.to_dict() for p in self.points],
            "isClosed": self.is_closed,
            "x": self.x,
            "y": self.y,
            "w": self.width,
            "h": self.height,
        }
        if self.hole_rings:
            data["holeRings"] = [[p.to_dict() for p in ring] for ring in self.hole_rings]
        return data
