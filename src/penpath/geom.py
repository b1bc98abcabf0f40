"""Handling 2D vectors and axis-aligned boxes"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

from penpath.common import Vec2

Number = Union[int, float]


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to 2D vector handling."""

    @staticmethod
    def distance(p1: Sequence[Number], p2: Sequence[Number]) -> float:
        """
        Euclidean distance between two points.

        Args:
            p1 (Tuple/List[float]): first point - (x, y)
            p2 (Tuple/List[float]): second point - (x, y)

        Returns:
            float: distance in the points' coordinate units
        """
        return math.hypot(float(p1[0]) - float(p2[0]), float(p1[1]) - float(p2[1]))

    @staticmethod
    def vector_length(vector: Sequence[Number]) -> float:
        """Length (magnitude) of a vector."""
        return math.hypot(float(vector[0]), float(vector[1]))

    @staticmethod
    def normalize(vector: Sequence[Number]) -> Vec2:
        """
        Normalize a vector to unit length.

        A zero-length (or non-finite) vector has no direction; the canonical
        horizontal direction (1, 0) is returned instead so callers never see NaN.

        Args:
            vector (Tuple/List[float]): the vector - (dx, dy)

        Returns:
            Tuple[float, float]: unit vector
        """
        length = math.hypot(float(vector[0]), float(vector[1]))
        if length == 0.0 or not math.isfinite(length):
            return (1.0, 0.0)
        return (float(vector[0]) / length, float(vector[1]) / length)

    @staticmethod
    def add(p1: Sequence[Number], p2: Sequence[Number]) -> Vec2:
        """Component-wise sum."""
        return (float(p1[0]) + float(p2[0]), float(p1[1]) + float(p2[1]))

    @staticmethod
    def sub(p1: Sequence[Number], p2: Sequence[Number]) -> Vec2:
        """Component-wise difference p1 - p2."""
        return (float(p1[0]) - float(p2[0]), float(p1[1]) - float(p2[1]))

    @staticmethod
    def scale(vector: Sequence[Number], factor: float) -> Vec2:
        """Vector multiplied by a scalar."""
        return (float(vector[0]) * factor, float(vector[1]) * factor)

    @staticmethod
    def reflect(point: Sequence[Number], center: Sequence[Number]) -> Vec2:
        """
        Point reflection of _point_ through _center_ (2 * center - point).

        Used to mirror a control handle through its anchor.
        """
        return (2.0 * float(center[0]) - float(point[0]), 2.0 * float(center[1]) - float(point[1]))

    @staticmethod
    def constrain_angle(offset: Sequence[Number]) -> Vec2:
        """
        Snap the direction of _offset_ to the nearest 45-degree increment.

        The magnitude is preserved.

        Args:
            offset (Tuple/List[float]): the vector - (dx, dy)

        Returns:
            Tuple[float, float]: the constrained vector
        """
        angle = math.atan2(float(offset[1]), float(offset[0]))
        step = math.pi / 4.0
        constrained = round(angle / step) * step
        magnitude = math.hypot(float(offset[0]), float(offset[1]))
        return (math.cos(constrained) * magnitude, math.sin(constrained) * magnitude)


###############################################################################
# PathBox
###############################################################################
@dataclass(frozen=True)
class PathBox:
    """
    Represents an axis-aligned rectangular box.

    Attributes:
        xmin (float): The minimum x-coordinate.
        ymin (float): The minimum y-coordinate.
        xmax (float): The maximum x-coordinate.
        ymax (float): The maximum y-coordinate.
    """

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    def __post_init__(self):
        # Normalize coordinates to ensure xmin <= xmax and ymin <= ymax
        if self.xmin > self.xmax:
            xmin, xmax = self.xmax, self.xmin
            object.__setattr__(self, "xmin", xmin)
            object.__setattr__(self, "xmax", xmax)
        if self.ymin > self.ymax:
            ymin, ymax = self.ymax, self.ymin
            object.__setattr__(self, "ymin", ymin)
            object.__setattr__(self, "ymax", ymax)

    @classmethod
    def unit(cls) -> PathBox:
        """The (0, 0, 1, 1) box used for empty paths."""
        return cls(0.0, 0.0, 1.0, 1.0)

    @classmethod
    def from_points(cls, points: Iterable[Sequence[Number]]) -> PathBox:
        """Tightest box around the given (x, y) points; unit box if there are none."""
        xs = []
        ys = []
        for point in points:
            xs.append(float(point[0]))
            ys.append(float(point[1]))
        if not xs:
            return cls.unit()
        return cls(min(xs), min(ys), max(xs), max(ys))

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """The extent of the box as Tuple (xmin, ymin, xmax, ymax)."""
        return self.xmin, self.ymin, self.xmax, self.ymax

    @property
    def origin(self) -> Vec2:
        """The (xmin, ymin) corner."""
        return self.xmin, self.ymin

    @property
    def width(self) -> float:
        """float: The width of the box (difference between xmax and xmin)."""
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        """float: The height of the box (difference between ymax and ymin)."""
        return self.ymax - self.ymin

    @property
    def area(self) -> float:
        """float: The area of the box."""
        return self.width * self.height

    @property
    def centroid(self) -> Vec2:
        """
        The centroid of the box.

        Returns:
            Tuple[float, float]: The coordinates of the centroid as (x, y)
        """
        return (self.xmin + self.xmax) / 2, (self.ymin + self.ymax) / 2

    def union(self, other: PathBox) -> PathBox:
        """Smallest box containing both boxes."""
        return PathBox(
            min(self.xmin, other.xmin),
            min(self.ymin, other.ymin),
            max(self.xmax, other.xmax),
            max(self.ymax, other.ymax),
        )

    def expand(self, padding: float) -> PathBox:
        """Box grown by _padding_ on every side."""
        return PathBox(self.xmin - padding, self.ymin - padding, self.xmax + padding, self.ymax + padding)

    def translate(self, dx: float, dy: float) -> PathBox:
        """Box moved by (dx, dy)."""
        return PathBox(self.xmin + dx, self.ymin + dy, self.xmax + dx, self.ymax + dy)

    def contains(self, point: Sequence[Number]) -> bool:
        """True if the point lies inside or on the border of the box."""
        x, y = float(point[0]), float(point[1])
        return self.xmin <= x <= self.xmax and self.ymin <= y <= self.ymax

    def contains_box(self, other: PathBox, tolerance: float = 0.0) -> bool:
        """True if _other_ lies completely inside this box."""
        return (
            self.xmin - tolerance <= other.xmin
            and self.ymin - tolerance <= other.ymin
            and other.xmax <= self.xmax + tolerance
            and other.ymax <= self.ymax + tolerance
        )

    @classmethod
    def from_dict(cls, data: dict) -> PathBox:
        """Create a PathBox instance from a dictionary."""
        return cls(
            xmin=data.get("xmin", 0.0),
            ymin=data.get("ymin", 0.0),
            xmax=data.get("xmax", 0.0),
            ymax=data.get("ymax", 0.0),
        )

    def to_dict(self) -> dict:
        """Convert the PathBox instance to a dictionary."""
        return {
            "xmin": self.xmin,
            "ymin": self.ymin,
            "xmax": self.xmax,
            "ymax": self.ymax,
        }

    def __str__(self):
        """Returns a string representation of the PathBox instance."""
        return (
            f"PathBox(xmin={self.xmin}, ymin={self.ymin}, "
            f"xmax={self.xmax}, ymax={self.ymax}, "
            f"width={self.width}, height={self.height})"
        )
