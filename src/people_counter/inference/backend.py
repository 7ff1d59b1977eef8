"""
Pose backend interface.

Backends return one DetectedBody per person with landmarks normalized to the
frame, in the index order of the backend's LandmarkLayout. An empty list means
no bodies this frame.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from people_counter.models.landmark import DetectedBody, LandmarkLayout


class PoseBackend(Protocol):
    layout: LandmarkLayout

    def detect(self, frame: np.ndarray) -> List[DetectedBody]:
        ...
