"""
Error taxonomy for the people counter.

Detection and extraction errors are recovered inside the frame loop and never
surface to a user. Store errors are non-fatal: local totals stay authoritative
until the store is reachable again.
"""

from __future__ import annotations


class PeopleCounterError(Exception):
    """Base class for all people counter errors."""


class DetectionUnavailable(PeopleCounterError):
    """The pose backend produced no usable result for this frame."""


class ReferenceExtractionFailed(PeopleCounterError):
    """Not enough visible landmarks to compute a reference point."""


class StoreUnavailable(PeopleCounterError):
    """The counter store cannot be reached or has not been initialized."""


class InvalidEventType(PeopleCounterError, ValueError):
    """An event type outside {entrance, exit} was supplied."""
