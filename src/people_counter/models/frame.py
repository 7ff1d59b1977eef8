"""
Captured video frame handed from a frame source to the pose backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    Attributes:
        frame: BGR image.
        timestamp: Unix time of capture; also the timestamp of any count event in this frame.
        frame_index: 1-based index since the source was opened.
        source: Source identifier.
        mirrored: Frame was flipped horizontally before counting, so left and
            right (and therefore entrance and exit) refer to the mirrored image.
    """
    frame: np.ndarray
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None
    mirrored: bool = False

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
        mirrored: bool = False,
    ) -> "FrameData":
        if frame.ndim < 2 or frame.size == 0:
            raise ValueError(f"Expected a non-empty image array, got shape {frame.shape}")
        return cls(frame=frame, timestamp=timestamp, frame_index=frame_index, source=source, mirrored=mirrored)

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) in pixels."""
        h, w = self.frame.shape[:2]
        return (w, h)
