"""
Ultralytics pose backend.

Runs a YOLO pose model on CPU and converts its COCO keypoints to DetectedBody.
Ultralytics is imported lazily so the rest of the package works without it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from people_counter.errors import DetectionUnavailable
from people_counter.models.landmark import COCO_KEYPOINTS, DetectedBody, Landmark
from .backend import PoseBackend


@dataclass(frozen=True)
class PoseModelConfig:
    model: str = "yolov8n-pose.pt"
    conf_threshold: float = 0.5
    max_people: int = 5


def _to_numpy(value) -> np.ndarray:
    return value.cpu().numpy() if hasattr(value, "cpu") else np.asarray(value)


class UltralyticsPoseBackend(PoseBackend):
    layout = COCO_KEYPOINTS

    def __init__(self, cfg: PoseModelConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install people-counter[pose]`."
            ) from e

        self._model = YOLO(cfg.model)
        logging.info(f"Loaded pose model {cfg.model}")

    def detect(self, frame: np.ndarray) -> List[DetectedBody]:
        """
        Raises:
            DetectionUnavailable: If the model fails on this frame.
        """
        try:
            results = self._model.predict(
                source=frame,
                conf=self.cfg.conf_threshold,
                max_det=self.cfg.max_people,
                verbose=False,
            )
        except Exception as e:
            raise DetectionUnavailable(f"Pose inference failed: {e}") from e

        if not results:
            return []

        keypoints = getattr(results[0], "keypoints", None)
        if keypoints is None or keypoints.xyn is None:
            return []

        xyn = _to_numpy(keypoints.xyn)
        conf = _to_numpy(keypoints.conf) if keypoints.conf is not None else np.ones(xyn.shape[:2])

        bodies: List[DetectedBody] = []
        for points, scores in zip(xyn[: self.cfg.max_people], conf[: self.cfg.max_people]):
            bodies.append(
                DetectedBody.from_landmarks(
                    Landmark(x=float(x), y=float(y), visibility=float(s))
                    for (x, y), s in zip(points, scores)
                )
            )
        return bodies


def create_pose_backend(detection_cfg) -> PoseBackend:
    """Build the configured pose backend from the detection config section."""
    backend = str(detection_cfg.get("backend", "ultralytics")).lower()
    if backend != "ultralytics":
        raise ValueError(f"Unknown detection backend '{backend}'")
    return UltralyticsPoseBackend(
        PoseModelConfig(
            model=detection_cfg.get("model", "yolov8n-pose.pt"),
            conf_threshold=float(detection_cfg.get("conf_threshold", 0.5)),
            max_people=int(detection_cfg.get("max_people", 5)),
        )
    )
