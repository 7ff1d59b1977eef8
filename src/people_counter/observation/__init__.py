"""
Frame sources for the counting pipeline.
"""

from .base import FrameSource
from .opencv_source import CameraSource, CameraSourceConfig

__all__ = ["FrameSource", "CameraSource", "CameraSourceConfig"]
