"""
CountEvent model for line crossing events and their persisted history.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from people_counter.errors import InvalidEventType


class EventType(str, Enum):
    """Direction of a crossing. Values match the persisted event_type column."""
    ENTRANCE = "entrance"
    EXIT = "exit"

    @classmethod
    def parse(cls, value: Union["EventType", str, None]) -> "EventType":
        """
        Coerce a value to EventType.

        Raises:
            InvalidEventType: If value is not 'entrance' or 'exit'.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidEventType(
            f"Invalid event type {value!r}: must be 'entrance' or 'exit'"
        )


@dataclass(frozen=True)
class CountEvent:
    """
    A counting event emitted when a tracked person crosses the counting line.

    Attributes:
        track_id: Identity of the track that crossed.
        event_type: ENTRANCE or EXIT.
        timestamp: Unix timestamp of the event.
        position_x: Normalized x of the reference point after crossing.
    """
    track_id: str
    event_type: EventType
    timestamp: float
    position_x: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "track_id": self.track_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "position_x": self.position_x,
        }


@dataclass(frozen=True)
class HistoryEvent:
    """An immutable row of the counter history log."""
    id: int
    event_type: EventType
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
        }
