"""
OpenCV camera and video file source.

device_id is a webcam index (int) or a path/URL (str). Frames are mirrored
when flip_horizontal is set so that a front-facing webcam behaves like a
mirror; the counting line and directions then follow the mirrored image.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import cv2

from people_counter.models.frame import FrameData
from .base import FrameSource


@dataclass
class CameraSourceConfig:
    """
    Attributes:
        device_id: Camera index or video path/URL.
        resolution: Requested (width, height) for webcams.
        fps: Requested frame rate for webcams.
        flip_horizontal: Mirror frames.
        max_retries: Attempts to open the device.
    """
    device_id: Union[int, str] = 0
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None
    flip_horizontal: bool = False
    max_retries: int = 3

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any]) -> "CameraSourceConfig":
        resolution = camera_cfg.get("resolution")
        return cls(
            device_id=camera_cfg.get("device_id", 0),
            resolution=tuple(resolution) if resolution else None,
            fps=camera_cfg.get("fps"),
            flip_horizontal=bool(camera_cfg.get("flip_horizontal", False)),
            max_retries=int(camera_cfg.get("max_retries", 3)),
        )


class CameraSource(FrameSource):
    """cv2.VideoCapture wrapped as a FrameSource."""

    def __init__(self, config: CameraSourceConfig, source_id: str = "camera"):
        super().__init__(source_id)
        self.config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_file(self) -> bool:
        device = self.config.device_id
        return isinstance(device, str) and os.path.exists(device)

    def open(self) -> None:
        if self._is_open:
            return

        for attempt in range(1, self.config.max_retries + 1):
            self._cap = cv2.VideoCapture(self.config.device_id)
            if self._cap.isOpened():
                break
            self._cap.release()
            self._cap = None
            logging.warning(
                f"Failed to open device {self.config.device_id} "
                f"(attempt {attempt}/{self.config.max_retries})"
            )
            if attempt < self.config.max_retries:
                time.sleep(min(2 ** attempt, 10))
        else:
            raise RuntimeError(
                f"Failed to open device {self.config.device_id} after "
                f"{self.config.max_retries} attempts"
            )

        if isinstance(self.config.device_id, int) and self.config.resolution:
            w, h = self.config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self.config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self.config.fps)

        self._is_open = True
        self._frame_index = 0
        logging.info(
            f"Camera source opened: device={self.config.device_id}, "
            f"resolution={self.config.resolution}"
        )

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                logging.info("End of video file reached")
            else:
                logging.warning("Failed to read frame from camera")
            return None

        if self.config.flip_horizontal:
            frame = cv2.flip(frame, 1)

        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
            mirrored=self.config.flip_horizontal,
        )

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"Camera source closed: {self.source_id}")
        self._is_open = False
