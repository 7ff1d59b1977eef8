"""
Runtime: counting session and its wiring.
"""

from .session import CountingSession, FrameResult
from .services import create_session, create_store_client

__all__ = ["CountingSession", "FrameResult", "create_session", "create_store_client"]
