"""Central module containing shared types and enums for pen-tool path editing."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Tuple

###############################################################################
# Types
###############################################################################


Vec2 = Tuple[float, float]  # (x, y) in shape-local or page coordinates

HandleName = Literal[  # Type-Definition for the draggable handles of a BezierPoint
    # the anchor itself - the curve passes through it
    "anchor",
    # incoming control handle - shapes the curve approaching the anchor
    "cp1",
    # outgoing control handle - shapes the curve leaving the anchor
    "cp2",
]

KeyIntent = Literal[  # Type-Definition for keyboard intents forwarded by the host
    "delete",
    "toggle-closed",
    "confirm",
    "cancel",
]


###############################################################################
# Enums
###############################################################################


class HandleRole(Enum):
    """Enum to define which part of a point a handle drag moves."""

    ANCHOR = "anchor"
    IN = "cp1"
    OUT = "cp2"

    @property
    def opposite(self) -> "HandleRole":
        """The mirrored handle role (anchor has no opposite and returns itself)."""
        if self is HandleRole.IN:
            return HandleRole.OUT
        if self is HandleRole.OUT:
            return HandleRole.IN
        return self


class PointKind(Enum):
    """Enum to classify a point by its handles."""

    CORNER = "corner"
    SMOOTH = "smooth"
    ASYMMETRIC = "asymmetric"


class SessionPhase(Enum):
    """Enum to define the phases of a creation session."""

    IDLE = "idle"
    PLACING = "placing"
    ACCUMULATING = "accumulating"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """True for phases that end a session."""
        return self in (SessionPhase.COMPLETED, SessionPhase.CANCELLED)
