"""
Typed models for the people counter.
"""

from .frame import FrameData
from .landmark import (
    Landmark,
    DetectedBody,
    ReferencePoint,
    LandmarkLayout,
    MEDIAPIPE_POSE,
    COCO_KEYPOINTS,
    get_layout,
)
from .track import Track, TrackMatch, TrackState
from .count_event import CountEvent, EventType, HistoryEvent
from .counter import CounterRecord, LocalTotals, StatsBucket
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    TrackingConfig,
    CountingConfig,
    StorageConfig,
    SyncConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Landmarks
    "Landmark",
    "DetectedBody",
    "ReferencePoint",
    "LandmarkLayout",
    "MEDIAPIPE_POSE",
    "COCO_KEYPOINTS",
    "get_layout",
    # Tracking
    "Track",
    "TrackState",
    "TrackMatch",
    # Counting
    "CountEvent",
    "EventType",
    "HistoryEvent",
    "CounterRecord",
    "LocalTotals",
    "StatsBucket",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "TrackingConfig",
    "CountingConfig",
    "StorageConfig",
    "SyncConfig",
    "WebConfig",
]
