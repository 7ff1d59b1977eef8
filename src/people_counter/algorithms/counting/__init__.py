"""
Counting algorithms for people-flow monitoring.

Counters turn tracker matches into count events. The tracking layer remains
independent - counters do not modify track state.

Available counters:
- LineCounter: vertical line, left-to-right = entrance, right-to-left = exit
"""

from .base import Counter, CounterConfig
from .line import LineCounter, LineCounterConfig, crossed_vertical_line, create_line_counter_from_config
from .utils import compute_counting_line

__all__ = [
    "Counter",
    "CounterConfig",
    "LineCounter",
    "LineCounterConfig",
    "crossed_vertical_line",
    "create_line_counter_from_config",
    "compute_counting_line",
]
