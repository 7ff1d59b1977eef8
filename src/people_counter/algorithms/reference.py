"""
Reference-point extraction.

Reduces one detected body to a single normalized point used for both track
matching and line crossing. Three strategies are available:

- TORSO: midpoint of the two hips. Most stable against limb motion and
  partial occlusion, so it is the default.
- BBOX: center of the box spanning all visible landmarks. Most tolerant of
  missing landmarks.
- SKELETON: mean of all visible landmarks. Most sensitive to detector noise.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from people_counter.errors import ReferenceExtractionFailed
from people_counter.models.landmark import (
    DetectedBody,
    LandmarkLayout,
    MEDIAPIPE_POSE,
    ReferencePoint,
)

VISIBILITY_THRESHOLD = 0.5


class TrackingMode(str, Enum):
    """Which landmarks feed the reference point."""
    BBOX = "bbox"
    SKELETON = "skeleton"
    TORSO = "torso"

    @classmethod
    def parse(cls, value) -> "TrackingMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown tracking mode {value!r}: must be one of bbox, skeleton, torso"
            ) from None


DEFAULT_TRACKING_MODE = TrackingMode.TORSO


def _bbox_center(body: DetectedBody, threshold: float) -> ReferencePoint:
    visible = body.visible(threshold)
    if not visible:
        raise ReferenceExtractionFailed("bbox: no visible landmarks")
    xs = [lm.x for lm in visible]
    ys = [lm.y for lm in visible]
    return ReferencePoint(x=(min(xs) + max(xs)) / 2, y=(min(ys) + max(ys)) / 2)


def _skeleton_mean(body: DetectedBody, threshold: float) -> ReferencePoint:
    visible = body.visible(threshold)
    if not visible:
        raise ReferenceExtractionFailed("skeleton: no visible landmarks")
    n = len(visible)
    return ReferencePoint(
        x=sum(lm.x for lm in visible) / n,
        y=sum(lm.y for lm in visible) / n,
    )


def _torso_midpoint(body: DetectedBody, threshold: float, layout: LandmarkLayout) -> ReferencePoint:
    if len(body) <= max(layout.left_hip, layout.right_hip):
        raise ReferenceExtractionFailed(
            f"torso: body has {len(body)} landmarks, layout '{layout.name}' needs hips "
            f"{layout.left_hip}/{layout.right_hip}"
        )
    left = body[layout.left_hip]
    right = body[layout.right_hip]
    if left.visibility <= threshold or right.visibility <= threshold:
        raise ReferenceExtractionFailed("torso: hips not visible")
    return ReferencePoint(x=(left.x + right.x) / 2, y=(left.y + right.y) / 2)


def extract_reference_point(
    body: DetectedBody,
    mode: TrackingMode = DEFAULT_TRACKING_MODE,
    layout: LandmarkLayout = MEDIAPIPE_POSE,
    visibility_threshold: float = VISIBILITY_THRESHOLD,
) -> ReferencePoint:
    """
    Compute the reference point of one body.

    Args:
        body: Landmarks of one detected person (normalized coordinates).
        mode: Extraction strategy.
        layout: Landmark index semantics (only TORSO depends on it).
        visibility_threshold: Landmarks count as visible when strictly above this.

    Returns:
        The reference point in normalized coordinates.

    Raises:
        ReferenceExtractionFailed: Not enough visible landmarks for the mode.
    """
    if mode is TrackingMode.TORSO:
        return _torso_midpoint(body, visibility_threshold, layout)
    if mode is TrackingMode.SKELETON:
        return _skeleton_mean(body, visibility_threshold)
    if mode is TrackingMode.BBOX:
        return _bbox_center(body, visibility_threshold)
    raise ValueError(f"Unsupported tracking mode: {mode!r}")


def visible_bounds(body: DetectedBody, visibility_threshold: float = VISIBILITY_THRESHOLD) -> Optional[List[float]]:
    """[min_x, min_y, max_x, max_y] of visible landmarks, or None. Used for drawing."""
    visible = body.visible(visibility_threshold)
    if not visible:
        return None
    xs = [lm.x for lm in visible]
    ys = [lm.y for lm in visible]
    return [min(xs), min(ys), max(xs), max(ys)]
