"""Central module containing default constants for hit-testing, handles and bounds.

All distances are in unscaled screen pixels; hit-testing divides them by the
current zoom level before comparing against shape-local distances.
"""

from __future__ import annotations

from dataclasses import dataclass

###############################################################################
# Thresholds
###############################################################################


@dataclass(frozen=True)
class Thresholds:
    """Interaction thresholds in pixels (scaled by 1/zoom at use).

    Attributes:
        anchor_point: Radius for anchor point hits.
        anchor_point_hover: Radius for anchor point hover feedback.
        control_point: Radius for control handle hits.
        segment_hover: Distance for segment hover feedback.
        path_segment: Distance for segment hits.
        segment_anchor_exclusion: Around anchors no segment hit is reported.
        snap_to_start: Distance at which the live point snaps to the start anchor.
        snap_release: Movement from the snap origin that releases the snap.
        close_curve: Click distance to the start anchor that closes the curve.
        corner_point_drag: Drag distance below which a placed point stays a corner.
    """

    anchor_point: float = 10.0
    anchor_point_hover: float = 12.0
    control_point: float = 8.0
    segment_hover: float = 8.0
    path_segment: float = 10.0
    segment_anchor_exclusion: float = 15.0
    snap_to_start: float = 12.0
    snap_release: float = 15.0
    close_curve: float = 10.0
    corner_point_drag: float = 3.0


###############################################################################
# HandleDefaults
###############################################################################


@dataclass(frozen=True)
class HandleDefaults:
    """Defaults for automatically generated control handles.

    Attributes:
        control_offset: Base handle distance for synthesized smooth points.
        tension: Scale factor applied to control_offset (and to the neighbor
            distance for closing handles).
        segment_handle_length: Handle length of a split point as fraction of
            the split segment's arc length.
    """

    control_offset: float = 100.0
    tension: float = 0.3
    segment_handle_length: float = 0.15


###############################################################################
# BoundsDefaults
###############################################################################


@dataclass(frozen=True)
class BoundsDefaults:
    """Defaults for bounds calculation during creation and editing.

    Attributes:
        single_point_padding: Padding around a single in-progress point.
        multi_point_padding: Padding around a multi-point in-progress path.
        change_threshold: Minimum change that counts as a bounds change.
        edit_mode_exit_padding: Padding around the shape in which clicks do not
            leave edit mode.
    """

    single_point_padding: float = 50.0
    multi_point_padding: float = 10.0
    change_threshold: float = 0.01
    edit_mode_exit_padding: float = 20.0


# Tolerance used to decide whether two handles are position-symmetric
SYMMETRY_EPS: float = 1.0e-6

# Number of steps of the lookup table used before refining closest-point projections
PROJECTION_LUT_STEPS: int = 64
