"""
Counter totals: the authoritative store record, the session-local totals and
aggregated stats buckets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .count_event import EventType


@dataclass(frozen=True)
class CounterRecord:
    """
    Snapshot of the authoritative counter record.

    current_inside is always entrances - exits and may be negative when exits
    exceed entrances.
    """
    entrances: int = 0
    exits: int = 0
    last_updated: Optional[float] = None

    @property
    def current_inside(self) -> int:
        return self.entrances - self.exits

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entrances": self.entrances,
            "exits": self.exits,
            "currentInside": self.current_inside,
            "lastUpdated": self.last_updated,
        }


@dataclass
class LocalTotals:
    """Process-local totals updated synchronously by the counting session."""
    entrances: int = 0
    exits: int = 0

    @property
    def inside(self) -> int:
        return self.entrances - self.exits

    def increment(self, event_type: EventType) -> None:
        if event_type is EventType.ENTRANCE:
            self.entrances += 1
        else:
            self.exits += 1

    def as_tuple(self) -> Tuple[int, int]:
        return (self.entrances, self.exits)

    def set(self, entrances: int, exits: int) -> None:
        self.entrances = entrances
        self.exits = exits

    def clear(self) -> None:
        self.entrances = 0
        self.exits = 0


@dataclass(frozen=True)
class StatsBucket:
    """Entrance/exit counts within one period bucket (e.g. '2024-05-01 14:00')."""
    bucket: str
    entrances: int
    exits: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.bucket,
            "entrances": self.entrances,
            "exits": self.exits,
        }
