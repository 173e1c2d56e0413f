"""
Area filter for detector output.

Small boxes relative to the frame are almost always background noise
(posters, reflections, far-away shapes), so they are dropped before
classification.
"""

from __future__ import annotations

from typing import List, Sequence

from models.detection import RawDetection


def filter_small_boxes(
    frame_width: int,
    frame_height: int,
    detections: Sequence[RawDetection],
    min_box_area_ratio: float,
) -> List[RawDetection]:
    """
    Keep detections whose box covers at least `min_box_area_ratio` of the frame.

    Args:
        frame_width: Frame width in pixels.
        frame_height: Frame height in pixels.
        detections: Detector output, in detector order.
        min_box_area_ratio: Minimum box area / frame area.

    Returns:
        The surviving detections, order preserved. Empty for a zero-area frame.
    """
    frame_area = frame_width * frame_height
    if frame_area <= 0:
        return []
    return [d for d in detections if d.bbox.area / frame_area >= min_box_area_ratio]
