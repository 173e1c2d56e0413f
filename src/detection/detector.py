"""
Object detector wrapper with an explicit load lifecycle.

The wrapped backend is created lazily by a factory because loading a model
is slow and may allocate accelerator memory. Loading and inference run in a
worker thread so the monitoring event loop keeps serving other tasks.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from inference.backend import InferenceBackend
from models.detection import RawDetection
from models.frame import FrameData


class DetectorState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


BackendFactory = Callable[[], InferenceBackend]


class ObjectDetector:
    """
    Loads a detection backend once and runs it on frames.

    Lifecycle:
        UNINITIALIZED -> INITIALIZING -> READY
                                      -> FAILED -> (initialize() again) -> INITIALIZING

    detect() never raises: frames without pixels, an unloaded model and
    backend errors all yield an empty list.
    """

    def __init__(self, backend_factory: BackendFactory):
        self._backend_factory = backend_factory
        self._backend: Optional[InferenceBackend] = None
        self._state = DetectorState.UNINITIALIZED
        self._load_task: Optional[asyncio.Task] = None
        self.last_error: Optional[BaseException] = None

    @property
    def state(self) -> DetectorState:
        return self._state

    def is_ready(self) -> bool:
        return self._state is DetectorState.READY

    async def initialize(self) -> bool:
        """
        Load the backend if needed.

        Concurrent callers share the in-flight load. Returns True once the
        detector is READY, False if loading failed.
        """
        if self._state is DetectorState.READY:
            return True
        if self._load_task is None or self._load_task.done():
            self._load_task = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._load_task)

    async def _load(self) -> bool:
        self._state = DetectorState.INITIALIZING
        logging.info("Loading detection model")
        try:
            backend = await asyncio.to_thread(self._backend_factory)
        except Exception as e:
            self._state = DetectorState.FAILED
            self.last_error = e
            logging.error(f"Failed to load detection model: {e}")
            return False

        self._backend = backend
        self._state = DetectorState.READY
        self.last_error = None
        logging.info("Detection model ready")
        return True

    async def detect(self, frame: FrameData) -> List[RawDetection]:
        if not self.is_ready() or self._backend is None:
            return []
        if not frame.has_pixels:
            return []

        try:
            return list(await asyncio.to_thread(self._backend.detect, frame.frame))
        except Exception as e:
            logging.warning(f"Detection failed on frame {frame.frame_index}: {e}")
            return []
