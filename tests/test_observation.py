"""
Tests for observation layer.
"""

import time
from typing import Optional
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from observation.base import ObservationSource, ObservationConfig
from observation.opencv_source import OpenCVSource, OpenCVSourceConfig
from models.frame import FrameData


class MockSource(ObservationSource):
    """Mock observation source for testing."""

    def __init__(self, config: ObservationConfig, frames: list = None):
        super().__init__(config)
        self._frames = frames or []
        self._pos = 0

    def open(self) -> None:
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._pos >= len(self._frames):
            return None

        frame = self._frames[self._pos]
        self._pos += 1
        self._frame_index += 1

        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        self._is_open = False


def _capture(frames, opened=True):
    """Fake cv2.VideoCapture yielding the given frames, then failing."""
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.read.side_effect = [(True, f) for f in frames] + [(False, None)]
    return cap


class TestObservationConfig:
    def test_default_config(self):
        config = ObservationConfig()
        assert config.source_id == "default"
        assert config.resolution is None
        assert config.fps is None

    def test_custom_config(self):
        config = ObservationConfig(
            source_id="exam-room-3",
            resolution=(1920, 1080),
            fps=30,
            metadata={"candidate": "A-117"},
        )
        assert config.source_id == "exam-room-3"
        assert config.resolution == (1920, 1080)
        assert config.metadata["candidate"] == "A-117"


class TestOpenCVSourceConfig:
    def test_from_camera_config(self):
        camera_cfg = {
            "device_id": 1,
            "resolution": [1280, 720],
            "fps": 15,
            "mirror": True,
        }
        config = OpenCVSourceConfig.from_camera_config(camera_cfg, source_id="webcam")

        assert config.source_id == "webcam"
        assert config.device_id == 1
        assert config.resolution == (1280, 720)
        assert config.fps == 15
        assert config.mirror is True
        assert config.max_retries == 3

    def test_defaults(self):
        config = OpenCVSourceConfig.from_camera_config({})
        assert config.device_id == 0
        assert config.resolution is None
        assert config.mirror is False


class TestMockSource:
    def test_source_lifecycle(self):
        config = ObservationConfig(source_id="test")
        frames = [np.zeros((100, 100, 3), dtype=np.uint8) for _ in range(3)]
        source = MockSource(config, frames)

        assert not source.is_open
        source.open()
        assert source.is_open
        assert source.frame_index == 0

        fd = source.read()
        assert fd is not None
        assert fd.source == "test"
        assert fd.frame_index == 1
        assert source.frame_index == 1

        source.close()
        assert not source.is_open

    def test_context_manager(self):
        config = ObservationConfig(source_id="ctx-test")
        frames = [np.zeros((50, 50, 3), dtype=np.uint8) for _ in range(2)]

        with MockSource(config, frames) as source:
            assert source.is_open
            count = sum(1 for _ in source)
            assert count == 2

        assert not source.is_open

    def test_empty_source(self):
        with MockSource(ObservationConfig(), []) as source:
            assert source.read() is None

    def test_iteration_requires_open(self):
        source = MockSource(ObservationConfig(), [])
        with pytest.raises(RuntimeError, match="must be open"):
            list(source)


class TestOpenCVSource:
    def test_source_id_property(self):
        source = OpenCVSource(OpenCVSourceConfig(source_id="my-camera", device_id=0))
        assert source.source_id == "my-camera"
        assert source.is_file is False

    def test_read_before_open_returns_none(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        assert source.read() is None

    def test_reads_frames(self):
        frame = np.zeros((720, 1280, 3), dtype=np.uint8)
        cap = _capture([frame, frame])

        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            with OpenCVSource(OpenCVSourceConfig(source_id="webcam", device_id=0)) as source:
                first = source.read()
                second = source.read()
                third = source.read()

        assert first.size == (1280, 720)
        assert first.source == "webcam"
        assert [first.frame_index, second.frame_index] == [1, 2]
        assert third is None
        cap.release.assert_called()

    def test_mirror_flips_horizontally(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        frame[:, 0] = 255
        cap = _capture([frame])

        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            with OpenCVSource(OpenCVSourceConfig(device_id=0, mirror=True)) as source:
                fd = source.read()

        assert fd.frame[:, 2].max() == 255
        assert fd.frame[:, 0].max() == 0

    def test_open_failure_raises_after_retries(self):
        cap = _capture([], opened=False)
        config = OpenCVSourceConfig(device_id=0, max_retries=2)

        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap) as ctor, \
                patch("observation.opencv_source.time.sleep"):
            with pytest.raises(RuntimeError, match="after 2 attempts"):
                OpenCVSource(config).open()

        assert ctor.call_count == 2
