"""
Tracking module.

The canonical tracker implementation is in tracking.tracker.
"""

from .tracker import PersonTracker, DEFAULT_MATCH_THRESHOLD

__all__ = ["PersonTracker", "DEFAULT_MATCH_THRESHOLD"]
