"""
FrameSource interface for the counting pipeline.

A source yields FrameData until it is exhausted or closed. Camera, video file
and test sources all implement the same lifecycle: open, read, close.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from people_counter.models.frame import FrameData


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Can be used as a context manager:
        with CameraSource(config) as source:
            for frame_data in source:
                session.process_frame(...)
    """

    def __init__(self, source_id: str = "camera"):
        self.source_id = source_id
        self._is_open = False
        self._frame_index = 0

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames read since open."""
        return self._frame_index

    @property
    def is_file(self) -> bool:
        """True for finite sources, where a failed read means the end of the stream."""
        return False

    @abstractmethod
    def open(self) -> None:
        """
        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Next frame, or None when no frame is available."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call multiple times."""

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")
        while True:
            frame_data = self.read()
            if frame_data is None:
                break
            yield frame_data
