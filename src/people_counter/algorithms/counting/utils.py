"""
Counting utilities.

Shared geometry helpers for the counting line.
"""

from __future__ import annotations

from typing import List, Tuple


def compute_counting_line(line_x: float, frame_width: int, frame_height: int) -> List[Tuple[int, int]]:
    """
    Convert a normalized vertical line position into pixel endpoints.

    Args:
        line_x: Normalized x position (0 = left edge, 1 = right edge).
        frame_width: Width of the frame in pixels.
        frame_height: Height of the frame in pixels.

    Returns:
        List of two (x, y) tuples: top and bottom of the line.
    """
    x = int(frame_width * float(line_x))
    return [(x, 0), (x, frame_height)]

