"""
CPU inference backend.

Uses Ultralytics with a COCO-trained YOLO model, whose vocabulary includes
"person" and "cell phone". Per-class score thresholds are applied later by
the classifier, so only the model-wide floor is passed to predict().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from models.detection import RawDetection
from .backend import InferenceBackend


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    device: Optional[str] = None


def _to_numpy(values) -> np.ndarray:
    return values.cpu().numpy() if hasattr(values, "cpu") else np.asarray(values)


class UltralyticsCpuBackend(InferenceBackend):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or `pip install exam-monitor[yolo]`."
            ) from e

        self._model = YOLO(cfg.model)

    def detect(self, frame: np.ndarray) -> List[RawDetection]:
        kwargs = {
            "source": frame,
            "conf": self.cfg.conf_threshold,
            "iou": self.cfg.iou_threshold,
            "verbose": False,
        }
        if self.cfg.device is not None:
            kwargs["device"] = self.cfg.device
        results = self._model.predict(**kwargs)
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = _to_numpy(boxes.xyxy)
        conf = _to_numpy(boxes.conf)
        cls = _to_numpy(boxes.cls)

        out: List[RawDetection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            out.append(
                RawDetection.from_xywh(
                    float(x1),
                    float(y1),
                    float(x2 - x1),
                    float(y2 - y1),
                    class_name=str(names.get(class_id, class_id)),
                    score=float(c),
                )
            )

        return out
