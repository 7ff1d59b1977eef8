"""
Pipeline engine for the people counter.

Frame-paced loop: read a frame, run the pose backend, hand the bodies to the
counting session. Frame N+1 is never read before frame N has been counted.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import cv2
import numpy as np

from people_counter.algorithms.reference import TrackingMode, visible_bounds
from people_counter.errors import DetectionUnavailable
from people_counter.inference.backend import PoseBackend
from people_counter.models.count_event import EventType
from people_counter.models.frame import FrameData
from people_counter.models.landmark import DetectedBody
from people_counter.observation.base import FrameSource
from people_counter.runtime.session import CountingSession, FrameResult

# Colors (BGR)
COLOR_LINE = (0, 255, 255)
COLOR_POINT = (0, 255, 0)
COLOR_BODY = (255, 201, 0)
COLOR_TEXT = (255, 255, 255)


@dataclass
class PipelineConfig:
    """
    Attributes:
        max_consecutive_failures: Frame read failures before stopping.
        stats_log_interval: Seconds between status log messages.
        display: Show an OpenCV window with overlays.
        window_name: Title of the display window.
    """
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    display: bool = False
    window_name: str = "People Counter"


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frame_count: int = 0
    event_count: int = 0
    detection_failures: int = 0
    consecutive_failures: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class PipelineEngine:
    """
    Drives a CountingSession from a FrameSource and a PoseBackend.

    Example:
        source = CameraSource(CameraSourceConfig(device_id=0))
        engine = PipelineEngine(source, backend, session, PipelineConfig(display=True))
        engine.run()
    """

    def __init__(
        self,
        source: FrameSource,
        backend: PoseBackend,
        session: CountingSession,
        config: Optional[PipelineConfig] = None,
    ):
        self.source = source
        self.backend = backend
        self.session = session
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._running = False
        self._callbacks: List[Callable[[FrameData, FrameResult], None]] = []

    @property
    def is_running(self) -> bool:
        return self._running

    def add_callback(self, callback: Callable[[FrameData, FrameResult], None]) -> None:
        """Register a function called with (frame_data, result) after each frame."""
        self._callbacks.append(callback)

    def run(self) -> None:
        """Process frames until stopped, the source is exhausted, or 'q' is pressed."""
        self._running = True
        self.stats = PipelineStats()

        try:
            self.source.open()
            logging.info(f"Pipeline started: source={self.source.source_id}")

            while self._running:
                frame_data = self.source.read()

                if frame_data is None:
                    if self.source.is_file:
                        logging.info("End of stream reached, stopping")
                        break
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    time.sleep(0.5)
                    continue

                self.stats.consecutive_failures = 0
                bodies, result = self.process_frame(frame_data)
                if self.stats.frame_count == 1 and frame_data.mirrored:
                    logging.info("Frames are mirrored: entrance is left-to-right in the mirrored image")

                for callback in self._callbacks:
                    try:
                        callback(frame_data, result)
                    except Exception as e:
                        logging.warning(f"Callback error: {e}")

                if self.config.display:
                    annotated = self.draw_overlays(frame_data.frame.copy(), bodies, result)
                    if not self._handle_display(annotated):
                        break

                self._log_stats()

        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the pipeline to stop after the current frame."""
        self._running = False

    def process_frame(self, frame_data: FrameData):
        """
        Detect bodies in one frame and count them.

        Returns:
            (bodies, FrameResult)
        """
        self.stats.frame_count += 1
        try:
            bodies = self.backend.detect(frame_data.frame)
        except DetectionUnavailable as e:
            self.stats.detection_failures += 1
            logging.debug(f"[DETECT] frame={frame_data.frame_index} no bodies: {e}")
            bodies = []

        result = self.session.process_frame(bodies, timestamp=frame_data.timestamp)
        self.stats.event_count += len(result.events)
        return bodies, result

    def draw_overlays(self, frame: np.ndarray, bodies: Sequence[DetectedBody], result: FrameResult) -> np.ndarray:
        """Draw the counting line, bodies, reference points and the HUD."""
        h, w = frame.shape[:2]
        layout = self.session.layout

        for p1, p2 in self.session.counter.get_lines(w, h):
            cv2.line(frame, p1, p2, COLOR_LINE, 3)

        for body in bodies:
            if result.mode is TrackingMode.BBOX:
                bounds = visible_bounds(body, self.session.visibility_threshold)
                if bounds is not None:
                    x1, y1, x2, y2 = bounds
                    cv2.rectangle(frame, (int(x1 * w), int(y1 * h)), (int(x2 * w), int(y2 * h)), COLOR_BODY, 2)
                continue

            indices = layout.torso if result.mode is TrackingMode.TORSO else range(len(body))
            for a, b in layout.connections:
                if a in indices and b in indices and max(a, b) < len(body):
                    la, lb = body[a], body[b]
                    if la.visibility > self.session.visibility_threshold and lb.visibility > self.session.visibility_threshold:
                        cv2.line(frame, la.to_pixels(w, h), lb.to_pixels(w, h), COLOR_BODY, 2)

        for point in result.reference_points:
            if point is not None:
                cv2.circle(frame, point.to_pixels(w, h), 8, COLOR_POINT, -1)

        snap = self.session.snapshot()
        counter = self.session.counter
        hud = [
            f"{counter.label_for(EventType.ENTRANCE)}: {snap['entrances']}",
            f"{counter.label_for(EventType.EXIT)}: {snap['exits']}",
            f"Inside: {snap['inside']}",
            f"Mode: {snap['mode']}  Bodies: {snap['bodies']}",
        ]
        if not snap["connected"]:
            hud.append("Store offline")
        for i, text in enumerate(hud):
            cv2.putText(frame, text, (10, 30 + i * 28), cv2.FONT_HERSHEY_SIMPLEX, 0.7, COLOR_TEXT, 2)

        return frame

    def _handle_display(self, frame: np.ndarray) -> bool:
        """Returns False if the user pressed 'q' to quit."""
        cv2.imshow(self.config.window_name, frame)
        key = cv2.waitKey(1) & 0xFF
        return key != ord('q')

    def _log_stats(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time < self.config.stats_log_interval:
            return
        snap = self.session.snapshot()
        logging.info(
            f"Pipeline stats: frames={self.stats.frame_count}, events={self.stats.event_count}, "
            f"entrances={snap['entrances']}, exits={snap['exits']}, connected={snap['connected']}"
        )
        self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._running = False
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
        if self.config.display:
            cv2.destroyAllWindows()
        logging.info("Pipeline stopped")
