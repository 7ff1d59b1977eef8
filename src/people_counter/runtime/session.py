"""
Counting session: per-frame orchestration of extraction, tracking and counting.

One session owns its tracker, counter, tracking mode and reconciler (which
holds the local totals). Frames are processed strictly one at a time; a lock
makes reset and mode changes from the web thread land between frames.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from people_counter.algorithms.counting.base import Counter
from people_counter.algorithms.reference import (
    DEFAULT_TRACKING_MODE,
    VISIBILITY_THRESHOLD,
    TrackingMode,
    extract_reference_point,
)
from people_counter.errors import ReferenceExtractionFailed
from people_counter.models.count_event import CountEvent
from people_counter.models.landmark import MEDIAPIPE_POSE, DetectedBody, LandmarkLayout, ReferencePoint
from people_counter.models.track import TrackMatch
from people_counter.sync.reconciler import SyncReconciler
from people_counter.tracking.tracker import PersonTracker


@dataclass
class FrameResult:
    """What one processed frame produced, for drawing and tests."""
    mode: TrackingMode
    reference_points: List[Optional[ReferencePoint]] = field(default_factory=list)
    matches: List[TrackMatch] = field(default_factory=list)
    events: List[CountEvent] = field(default_factory=list)


class CountingSession:
    """
    Runs the per-frame control flow:

    1. read the tracking mode once
    2. extract one reference point per body (failures are skipped)
    3. update the tracker and pass its matches to the counter
    4. mark counted tracks and apply events to the local totals
    """

    def __init__(
        self,
        tracker: PersonTracker,
        counter: Counter,
        reconciler: SyncReconciler,
        mode: Union[TrackingMode, str] = DEFAULT_TRACKING_MODE,
        layout: LandmarkLayout = MEDIAPIPE_POSE,
        visibility_threshold: float = VISIBILITY_THRESHOLD,
    ):
        self.tracker = tracker
        self.counter = counter
        self.reconciler = reconciler
        self.layout = layout
        self.visibility_threshold = visibility_threshold

        self._mode = TrackingMode.parse(mode)
        self._lock = threading.Lock()
        self._frame_count = 0
        self._bodies_in_last_frame = 0
        self._last_frame_ts: Optional[float] = None

    @property
    def mode(self) -> TrackingMode:
        return self._mode

    def set_mode(self, mode: Union[TrackingMode, str]) -> TrackingMode:
        """
        Switch tracking mode; takes effect from the next frame.

        Existing tracks are kept and matched with points from the new mode.
        """
        new_mode = TrackingMode.parse(mode)
        with self._lock:
            if new_mode is not self._mode:
                logging.info(f"Tracking mode changed: {self._mode.value} -> {new_mode.value}")
            self._mode = new_mode
        return new_mode

    def process_frame(self, bodies: Optional[Sequence[DetectedBody]], timestamp: Optional[float] = None) -> FrameResult:
        """
        Process one frame's detected bodies.

        Args:
            bodies: Detector output for this frame; None or empty means no bodies.
            timestamp: Frame timestamp (default: time.time()).
        """
        if timestamp is None:
            timestamp = time.time()
        bodies = bodies or []

        with self._lock:
            mode = self._mode
            points: List[Optional[ReferencePoint]] = []
            for index, body in enumerate(bodies):
                try:
                    points.append(
                        extract_reference_point(
                            body,
                            mode=mode,
                            layout=self.layout,
                            visibility_threshold=self.visibility_threshold,
                        )
                    )
                except ReferenceExtractionFailed as e:
                    logging.debug(f"[EXTRACT] body {index} skipped: {e}")
                    points.append(None)

            matches = self.tracker.update(points, now=timestamp)
            events = self.counter.process(matches, timestamp)

            for event in events:
                self.tracker.mark_counted(event.track_id)
                entrances, exits = self.reconciler.record(event.event_type)
                logging.info(
                    f"Person {event.track_id} counted: {event.event_type.value} "
                    f"(entrances={entrances}, exits={exits})"
                )

            self._frame_count += 1
            self._bodies_in_last_frame = len(bodies)
            self._last_frame_ts = timestamp

        return FrameResult(mode=mode, reference_points=points, matches=matches, events=events)

    def reset(self) -> bool:
        """
        Zero local totals and tracks, then reset the store.

        Only the local part runs under the session lock; the store call is
        made afterwards so the frame loop keeps running during the round-trip.

        Returns:
            True if the store reset succeeded; local state is reset either way.
        """
        with self._lock:
            self.tracker.reset()
            self.reconciler.clear_local()
        return self.reconciler.reset_store()

    def snapshot(self) -> Dict[str, Any]:
        """Session state for the API and the display HUD."""
        entrances, exits = self.reconciler.snapshot()
        last_synced = self.reconciler.last_synced
        return {
            "entrances": entrances,
            "exits": exits,
            "inside": entrances - exits,
            "mode": self._mode.value,
            "layout": self.layout.name,
            "bodies": self._bodies_in_last_frame,
            "tracks": len(self.tracker),
            "frames": self._frame_count,
            "lastFrameTs": self._last_frame_ts,
            "connected": self.reconciler.connected,
            "lastSynced": None if last_synced is None else list(last_synced),
        }
