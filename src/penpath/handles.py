"""Handle identifiers of the form "bezier-{index}-{anchor|cp1|cp2}".

Examples:
    "bezier-0-anchor" -> anchor of point 0
    "bezier-2-cp1"    -> incoming control handle of point 2
    "bezier-5-cp2"    -> outgoing control handle of point 5

The roles "in" and "out" are accepted as aliases for "cp1" and "cp2".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from penpath.common import HandleRole

logger = logging.getLogger(__name__)

HANDLE_ID_PREFIX = "bezier"

_ROLE_NAMES: Dict[str, HandleRole] = {
    "anchor": HandleRole.ANCHOR,
    "cp1": HandleRole.IN,
    "cp2": HandleRole.OUT,
    "in": HandleRole.IN,
    "out": HandleRole.OUT,
}


@dataclass(frozen=True)
class HandleRef:
    """Reference to the anchor or one control handle of a path point."""

    point_index: int
    role: HandleRole

    @property
    def name(self) -> str:
        """Field name on BezierPoint ('anchor', 'cp1' or 'cp2')."""
        return self.role.value

    @property
    def handle_id(self) -> str:
        return create_handle_id(self.point_index, self.role)


def role_from_name(name: str) -> Optional[HandleRole]:
    """Map 'anchor', 'cp1', 'cp2', 'in' or 'out' to a HandleRole; None if unknown."""
    return _ROLE_NAMES.get(name)


def parse_handle_id(handle_id: str) -> Optional[HandleRef]:
    """
    Parse a handle identifier.

    Args:
        handle_id: Identifier such as "bezier-3-cp2".

    Returns:
        HandleRef, or None if the identifier is malformed (wrong prefix,
        negative or non-numeric index, unknown role).
    """
    if not isinstance(handle_id, str):
        return None
    parts = handle_id.split("-")
    if len(parts) != 3 or parts[0] != HANDLE_ID_PREFIX or not parts[1].isdigit():
        logger.debug("[Handles] ignoring malformed handle id %r", handle_id)
        return None
    role = role_from_name(parts[2])
    if role is None:
        logger.debug("[Handles] ignoring unknown handle role in %r", handle_id)
        return None
    return HandleRef(int(parts[1]), role)


def create_handle_id(point_index: int, role: Union[HandleRole, str]) -> str:
    """Build the identifier for a point's anchor or handle."""
    if isinstance(role, str):
        resolved = role_from_name(role)
        if resolved is None:
            raise ValueError(f"unknown handle role {role!r}")
        role = resolved
    return f"{HANDLE_ID_PREFIX}-{point_index}-{role.value}"


def is_anchor_handle(handle_id: str) -> bool:
    """True if the identifier addresses an anchor."""
    ref = parse_handle_id(handle_id)
    return ref is not None and ref.role is HandleRole.ANCHOR


def is_control_handle(handle_id: str) -> bool:
    """True if the identifier addresses a control handle."""
    ref = parse_handle_id(handle_id)
    return ref is not None and ref.role is not HandleRole.ANCHOR
