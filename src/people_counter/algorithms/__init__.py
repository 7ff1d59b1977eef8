"""
Algorithms: reference-point extraction and line counting.
"""

from .reference import (
    TrackingMode,
    DEFAULT_TRACKING_MODE,
    VISIBILITY_THRESHOLD,
    extract_reference_point,
)

__all__ = [
    "TrackingMode",
    "DEFAULT_TRACKING_MODE",
    "VISIBILITY_THRESHOLD",
    "extract_reference_point",
]
