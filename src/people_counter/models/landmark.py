"""
Landmark models for pose detector output.

Coordinates are normalized to [0, 1] relative to the frame; callers convert to
pixels only for drawing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple


@dataclass(frozen=True)
class Landmark:
    """
    A single pose landmark.

    Attributes:
        x: Normalized horizontal position (0 = left edge).
        y: Normalized vertical position (0 = top edge).
        visibility: Detector confidence that the landmark is visible (0-1).
    """
    x: float
    y: float
    visibility: float = 1.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Landmark":
        return cls(
            x=float(d["x"]),
            y=float(d["y"]),
            visibility=float(d.get("visibility", 1.0)),
        )

    def to_pixels(self, frame_width: int, frame_height: int) -> Tuple[int, int]:
        """Return (x, y) in pixel coordinates."""
        return (int(self.x * frame_width), int(self.y * frame_height))


@dataclass(frozen=True)
class DetectedBody:
    """
    One detected person: an ordered, fixed-length sequence of landmarks.

    Index semantics depend on the LandmarkLayout of the detector that
    produced it.
    """
    landmarks: Tuple[Landmark, ...]

    @classmethod
    def from_landmarks(cls, landmarks: Sequence[Landmark]) -> "DetectedBody":
        return cls(landmarks=tuple(landmarks))

    @classmethod
    def from_dicts(cls, items: Sequence[Dict[str, Any]]) -> "DetectedBody":
        return cls(landmarks=tuple(Landmark.from_dict(d) for d in items))

    def __len__(self) -> int:
        return len(self.landmarks)

    def __getitem__(self, index: int) -> Landmark:
        return self.landmarks[index]

    def visible(self, threshold: float) -> List[Landmark]:
        """Landmarks whose visibility is strictly above threshold."""
        return [lm for lm in self.landmarks if lm.visibility > threshold]


@dataclass(frozen=True)
class ReferencePoint:
    """A single normalized point summarizing a body's location."""
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_pixels(self, frame_width: int, frame_height: int) -> Tuple[int, int]:
        return (int(self.x * frame_width), int(self.y * frame_height))


@dataclass(frozen=True)
class LandmarkLayout:
    """
    Index semantics of a pose model's landmark sequence.

    Attributes:
        name: Layout identifier used in config ("mediapipe", "coco").
        num_landmarks: Fixed sequence length produced by the model.
        left_hip: Index of the left hip landmark.
        right_hip: Index of the right hip landmark.
        torso: Indices drawn in torso mode (shoulders and hips).
        connections: Skeleton edges for drawing.
    """
    name: str
    num_landmarks: int
    left_hip: int
    right_hip: int
    torso: Tuple[int, ...] = ()
    connections: Tuple[Tuple[int, int], ...] = field(default_factory=tuple)


MEDIAPIPE_POSE = LandmarkLayout(
    name="mediapipe",
    num_landmarks=33,
    left_hip=23,
    right_hip=24,
    torso=(11, 12, 23, 24),
    connections=(
        (11, 12), (11, 13), (13, 15), (12, 14), (14, 16),
        (11, 23), (12, 24), (23, 24),
        (23, 25), (25, 27), (24, 26), (26, 28),
        (0, 1), (1, 2), (2, 3), (3, 7), (0, 4), (4, 5), (5, 6), (6, 8), (9, 10),
    ),
)

COCO_KEYPOINTS = LandmarkLayout(
    name="coco",
    num_landmarks=17,
    left_hip=11,
    right_hip=12,
    torso=(5, 6, 11, 12),
    connections=(
        (5, 6), (5, 7), (7, 9), (6, 8), (8, 10),
        (5, 11), (6, 12), (11, 12),
        (11, 13), (13, 15), (12, 14), (14, 16),
        (0, 1), (0, 2), (1, 3), (2, 4),
    ),
)

LAYOUTS: Dict[str, LandmarkLayout] = {
    MEDIAPIPE_POSE.name: MEDIAPIPE_POSE,
    COCO_KEYPOINTS.name: COCO_KEYPOINTS,
}


def get_layout(name: str) -> LandmarkLayout:
    """Look up a landmark layout by name."""
    try:
        return LAYOUTS[name]
    except KeyError:
        raise ValueError(
            f"Unknown landmark layout '{name}'. Expected one of: {', '.join(sorted(LAYOUTS))}"
        ) from None
