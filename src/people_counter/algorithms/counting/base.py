"""
Counter interface for counting algorithms.

A counter receives the tracker's per-frame matches (previous and current
reference point plus the track's counted flag) and produces CountEvents with
the standard event types (ENTRANCE, EXIT).

This separation allows tracking and counting to evolve independently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from people_counter.models.count_event import CountEvent, EventType
from people_counter.models.track import TrackMatch


@dataclass
class CounterConfig:
    """
    Base configuration for counting algorithms.

    Attributes:
        direction_labels: Display labels keyed by event type value.
    """
    direction_labels: Dict[str, str] = field(default_factory=lambda: {
        "entrance": "Entrances",
        "exit": "Exits",
    })


class Counter(ABC):
    """
    Abstract base class for counting algorithms.

    Counters do NOT modify tracks. The caller marks a track counted once an
    event has been returned for it, and the tracker carries that flag forward
    in later matches.
    """

    def __init__(self, config: CounterConfig):
        self._config = config

    @property
    def direction_labels(self) -> Dict[str, str]:
        return self._config.direction_labels

    def label_for(self, event_type: EventType) -> str:
        return self.direction_labels.get(event_type.value, event_type.value)

    @abstractmethod
    def process(self, matches: List[TrackMatch], timestamp: float) -> List[CountEvent]:
        """
        Process this frame's matches and produce count events.

        Args:
            matches: Tracks matched between the previous and current frame.
            timestamp: Unix timestamp for emitted events.

        Returns:
            At most one CountEvent per match; none for already counted tracks.
        """
        pass

    @abstractmethod
    def get_lines(self, frame_width: int, frame_height: int) -> List[Tuple[Tuple[int, int], Tuple[int, int]]]:
        """
        Get the counting lines in pixel coordinates for visualization.
        """
        pass
