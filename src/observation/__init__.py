"""
Observation layer for pluggable video sources.

The monitor only needs the current frame and its pixel size; each source
implements the ObservationSource interface and returns FrameData objects.
"""

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
]
