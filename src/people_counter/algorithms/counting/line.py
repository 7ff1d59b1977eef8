"""
Vertical line counting.

A track crossing the line left-to-right is an entrance, right-to-left an exit
(swapped when invert_direction is set). Each track is counted at most once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from people_counter.models.count_event import CountEvent, EventType
from people_counter.models.track import TrackMatch
from .base import Counter, CounterConfig
from .utils import compute_counting_line


def crossed_vertical_line(prev_x: float, curr_x: float, line_x: float) -> Optional[EventType]:
    """
    Check if movement from prev_x to curr_x crosses the vertical line at line_x.

    The strict/non-strict pairing means a point resting exactly on the line
    cannot satisfy both directions in one comparison.

    Returns:
        ENTRANCE for left-to-right, EXIT for right-to-left, None otherwise.
    """
    if prev_x < line_x and curr_x >= line_x:
        return EventType.ENTRANCE
    if prev_x > line_x and curr_x <= line_x:
        return EventType.EXIT
    return None


@dataclass
class LineCounterConfig(CounterConfig):
    """
    Configuration for vertical line counting.

    Attributes:
        line_x: Normalized x position of the line (0-1).
        invert_direction: Treat right-to-left as entrance.
    """
    line_x: float = 0.5
    invert_direction: bool = False


class LineCounter(Counter):
    """
    Single vertical line counter.

    This counter does NOT modify track objects.
    """

    def __init__(self, config: LineCounterConfig):
        super().__init__(config)
        self._line_config = config

    @property
    def line_x(self) -> float:
        return self._line_config.line_x

    def get_lines(self, frame_width: int, frame_height: int) -> List[Tuple[Tuple[int, int], Tuple[int, int]]]:
        p1, p2 = compute_counting_line(self.line_x, frame_width, frame_height)
        return [(p1, p2)]

    def process(self, matches: List[TrackMatch], timestamp: float) -> List[CountEvent]:
        events: List[CountEvent] = []

        for match in matches:
            if match.counted:
                continue

            event_type = crossed_vertical_line(match.previous.x, match.current.x, self.line_x)
            if event_type is None:
                continue

            if self._line_config.invert_direction:
                event_type = EventType.EXIT if event_type is EventType.ENTRANCE else EventType.ENTRANCE

            events.append(
                CountEvent(
                    track_id=match.track_id,
                    event_type=event_type,
                    timestamp=timestamp,
                    position_x=match.current.x,
                )
            )
            logging.debug(
                f"[COUNT] track={match.track_id} {event_type.value} "
                f"x={match.previous.x:.3f}->{match.current.x:.3f} line={self.line_x:.3f}"
            )

        return events


def create_line_counter_from_config(counting_cfg: Dict[str, Any]) -> LineCounter:
    """
    Factory function to create a LineCounter from the counting config dict.
    """
    config = LineCounterConfig(
        direction_labels=counting_cfg.get("direction_labels") or {
            "entrance": "Entrances",
            "exit": "Exits",
        },
        line_x=float(counting_cfg.get("line_x", 0.5)),
        invert_direction=bool(counting_cfg.get("invert_direction", False)),
    )
    return LineCounter(config)
