"""
Person tracking across video frames.

Greedy nearest-neighbour matching of reference points against the previous
frame's tracks. The working set is rebuilt every frame from the bodies seen
in that frame; by default a track that finds no match is dropped at once.

Note: Counting is NOT done here. The tracker reports matches; the counter
decides whether a match is a crossing and the caller marks the track counted.
"""

import itertools
import logging
import math
import time
from typing import Dict, List, Optional, Sequence

from people_counter.models.landmark import ReferencePoint
from people_counter.models.track import Track, TrackMatch, TrackState

DEFAULT_MATCH_THRESHOLD = 0.15


def _distance(p1: ReferencePoint, p2: ReferencePoint) -> float:
    """Euclidean distance in normalized space."""
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


class PersonTracker:
    """
    Tracks people across frames by nearest reference point.

    This tracker is responsible for:
    - Matching current points to previous tracks (distance strictly below threshold)
    - Carrying the counted flag forward for matched identities
    - Allocating new identities for unmatched points

    Matching is greedy in body enumeration order: the first point to claim a
    previous track keeps it. A later point whose nearest track is taken becomes
    a new identity, even if another previous track is within the threshold.
    """

    def __init__(
        self,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        max_missed_frames: int = 0,
    ):
        """
        Initialize the person tracker.

        Args:
            match_threshold: Maximum normalized distance (exclusive) for a match.
            max_missed_frames: Frames an unmatched track is kept as a match
                               candidate. 0 drops it immediately.
        """
        self.match_threshold = match_threshold
        self.max_missed_frames = max_missed_frames

        self.tracked_people: Dict[str, Track] = {}
        self._id_seq = itertools.count()

        logging.info(
            f"Person tracker initialized (threshold={match_threshold}, "
            f"max_missed_frames={max_missed_frames})"
        )

    def _new_track_id(self, body_index: int, now: float) -> str:
        return f"person_{int(now * 1000)}_{body_index}_{next(self._id_seq)}"

    def update(self, points: Sequence[Optional[ReferencePoint]], now: Optional[float] = None) -> List[TrackMatch]:
        """
        Update tracker with this frame's reference points.

        Args:
            points: One entry per detected body in enumeration order; None for
                    bodies whose reference point could not be extracted (they
                    are skipped and never tracked).
            now: Timestamp for last_seen (default: time.time()).

        Returns:
            Matches between previous tracks and current points. New identities
            produce no match on their first frame.
        """
        if now is None:
            now = time.time()

        previous = self.tracked_people
        current: Dict[str, Track] = {}
        claimed = set()
        matches: List[TrackMatch] = []

        for index, center in enumerate(points):
            if center is None:
                continue

            matched_id = None
            min_dist = self.match_threshold
            for track_id, track in previous.items():
                dist = _distance(center, track.center)
                if dist < min_dist:
                    min_dist = dist
                    matched_id = track_id

            # A point whose nearest track was already claimed becomes a new identity
            if matched_id in claimed:
                matched_id = None

            if matched_id is not None:
                prev = previous[matched_id]
                claimed.add(matched_id)
                matches.append(
                    TrackMatch(
                        track_id=matched_id,
                        previous=prev.center,
                        current=center,
                        counted=prev.counted,
                    )
                )
                current[matched_id] = Track(
                    track_id=matched_id,
                    center=center,
                    counted=prev.counted,
                    last_seen=now,
                )
            else:
                new_id = self._new_track_id(index, now)
                current[new_id] = Track(track_id=new_id, center=center, last_seen=now)

        # Optional bounded carry-forward of unmatched tracks
        if self.max_missed_frames > 0:
            for track_id, track in previous.items():
                if track_id in claimed or track_id in current:
                    continue
                missed = track.frames_since_seen + 1
                if missed > self.max_missed_frames:
                    continue
                current[track_id] = Track(
                    track_id=track_id,
                    center=track.center,
                    counted=track.counted,
                    last_seen=track.last_seen,
                    frames_since_seen=missed,
                )

        dropped = len([tid for tid in previous if tid not in current])
        if dropped:
            logging.debug(f"[TRACK] dropped {dropped} unmatched track(s)")

        self.tracked_people = current
        return matches

    def mark_counted(self, track_id: str) -> None:
        """Mark a track counted; the flag is permanent for that identity."""
        track = self.tracked_people.get(track_id)
        if track is not None:
            track.counted = True

    def reset(self) -> None:
        """Drop all tracks."""
        self.tracked_people = {}

    def get_tracks(self) -> List[TrackState]:
        """Snapshots of the working set for display/API."""
        return [TrackState.from_track(t) for t in self.tracked_people.values()]

    def __len__(self) -> int:
        return len(self.tracked_people)
