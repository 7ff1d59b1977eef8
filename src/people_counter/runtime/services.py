"""
Wiring of the counting session from configuration.
"""

from __future__ import annotations

import logging
from typing import Optional

from people_counter.algorithms.counting.line import create_line_counter_from_config
from people_counter.models.config import Config
from people_counter.models.landmark import LandmarkLayout, get_layout
from people_counter.storage.database import Database
from people_counter.sync.client import CounterStoreClient, HttpCounterClient
from people_counter.sync.reconciler import SyncReconciler
from people_counter.tracking.tracker import PersonTracker
from .session import CountingSession


def create_store_client(config: Config, database: Optional[Database]) -> CounterStoreClient:
    """
    Pick the counter store the reconciler writes to.

    "local" uses this process's database, "http" a remote counter API.
    """
    backend = config.sync.backend.lower()
    if backend == "http":
        if not config.sync.api_url:
            raise ValueError("sync.api_url is required when sync.backend is 'http'")
        return HttpCounterClient(config.sync.api_url, timeout=config.sync.timeout_seconds)
    if backend == "local":
        if database is None:
            raise ValueError("sync.backend 'local' requires a database")
        return database
    raise ValueError(f"Unknown sync backend '{config.sync.backend}'")


def create_session(
    config: Config,
    client: CounterStoreClient,
    layout: Optional[LandmarkLayout] = None,
) -> CountingSession:
    """
    Build a CountingSession and hydrate its totals from the store.

    Args:
        config: Typed application config.
        client: Counter store for the reconciler.
        layout: Landmark layout of the pose backend (default: tracking.landmark_layout).
    """
    tracker = PersonTracker(
        match_threshold=config.tracking.match_threshold,
        max_missed_frames=config.tracking.max_missed_frames,
    )
    counter = create_line_counter_from_config(config.counting.to_dict())
    reconciler = SyncReconciler(client, debounce_seconds=config.sync.debounce_seconds)

    session = CountingSession(
        tracker=tracker,
        counter=counter,
        reconciler=reconciler,
        mode=config.tracking.mode,
        layout=layout or get_layout(config.tracking.landmark_layout),
        visibility_threshold=config.tracking.visibility_threshold,
    )

    if not reconciler.start():
        logging.warning("Counting session started detached from the counter store")
    return session
