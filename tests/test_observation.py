"""
Tests for the observation layer.
"""

import time

import numpy as np
import pytest

from people_counter.models.frame import FrameData
from people_counter.observation.base import FrameSource
from people_counter.observation.opencv_source import CameraSource, CameraSourceConfig


class ListSource(FrameSource):
    def __init__(self, frames):
        super().__init__("list")
        self._frames = list(frames)

    def open(self):
        self._is_open = True
        self._frame_index = 0

    def read(self):
        if not self._is_open or self._frame_index >= len(self._frames):
            return None
        frame = self._frames[self._frame_index]
        self._frame_index += 1
        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self._frame_index)

    def close(self):
        self._is_open = False


class TestFrameSource:
    def test_context_manager_and_iteration(self):
        frames = [np.zeros((4, 6, 3), dtype=np.uint8) for _ in range(3)]
        with ListSource(frames) as source:
            assert source.is_open
            indices = [fd.frame_index for fd in source]
        assert indices == [1, 2, 3]
        assert not source.is_open

    def test_iterating_closed_source_fails(self):
        with pytest.raises(RuntimeError):
            list(ListSource([]))


class TestCameraSourceConfig:
    def test_from_camera_config(self):
        config = CameraSourceConfig.from_camera_config({
            "device_id": 1,
            "resolution": [640, 480],
            "fps": 15,
            "flip_horizontal": True,
        })
        assert config.device_id == 1
        assert config.resolution == (640, 480)
        assert config.fps == 15
        assert config.flip_horizontal is True
        assert config.max_retries == 3

    def test_defaults(self):
        config = CameraSourceConfig.from_camera_config({})
        assert config.device_id == 0
        assert config.resolution is None

    def test_read_before_open_returns_none(self):
        source = CameraSource(CameraSourceConfig(device_id="missing.mp4"))
        assert source.read() is None
        assert source.is_file is False


def test_live_sources_are_not_files():
    assert ListSource([]).is_file is False
