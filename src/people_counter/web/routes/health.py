from __future__ import annotations

import platform
import time

from fastapi import APIRouter

from people_counter import __version__
from ..state import state

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    db = state.database
    session = state.session
    return {
        "success": True,
        "data": {
            "version": __version__,
            "python": platform.python_version(),
            "uptime_seconds": int(time.time() - state.start_time),
            "store": "ready" if db is not None and db.is_initialized else "unavailable",
            "session": None if session is None else {
                "mode": session.mode.value,
                "connected": session.reconciler.connected,
            },
        },
    }
