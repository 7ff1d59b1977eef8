"""
Track models for person tracking state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .landmark import ReferencePoint


@dataclass
class Track:
    """
    A tracked person carried across frames.

    Attributes:
        track_id: Opaque identity, unique within the process lifetime.
        center: Reference point from the most recent matching frame.
        counted: Set once a crossing event was emitted; never reset.
        last_seen: Unix timestamp of the last matching frame.
        frames_since_seen: Frames since last matched (0 when seen this frame).
    """
    track_id: str
    center: ReferencePoint
    counted: bool = False
    last_seen: float = 0.0
    frames_since_seen: int = 0


@dataclass(frozen=True)
class TrackState:
    """
    Immutable snapshot of a track (for display/API).
    """
    track_id: str
    center: Tuple[float, float]
    counted: bool
    last_seen: float
    body_index: Optional[int] = None

    @classmethod
    def from_track(cls, track: Track, body_index: Optional[int] = None) -> "TrackState":
        return cls(
            track_id=track.track_id,
            center=track.center.as_tuple(),
            counted=track.counted,
            last_seen=track.last_seen,
            body_index=body_index,
        )


@dataclass(frozen=True)
class TrackMatch:
    """
    A current-frame point matched to a previous-frame track.

    Handed from the tracker to the counter; the counter reads it but never
    modifies tracker state.
    """
    track_id: str
    previous: ReferencePoint
    current: ReferencePoint
    counted: bool
