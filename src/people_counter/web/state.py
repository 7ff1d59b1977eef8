"""
Shared state between the counting loop and the web server.
"""

from __future__ import annotations

import threading
import time

from people_counter.errors import StoreUnavailable


class SharedState:
    """
    Singleton holding the counter store and the live counting session if this
    process runs the camera pipeline.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.clear()
        return cls._instance

    def clear(self) -> None:
        self.database = None
        self.session = None
        self.start_time = time.time()

    def set_database(self, db) -> None:
        self.database = db

    def set_session(self, session) -> None:
        self.session = session

    def get_database(self):
        """
        Raises:
            StoreUnavailable: If no database has been attached.
        """
        if self.database is None:
            raise StoreUnavailable("Counter store is not configured")
        return self.database


# Global instance
state = SharedState()
