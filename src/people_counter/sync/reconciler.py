"""
Debounced reconciliation of local totals with the counter store.

Local totals are authoritative for the running session. Changes schedule a
single cancellable timer; when it fires the absolute totals are written with
overwrite() unless they equal the last successfully synced snapshot.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Tuple, Union

from people_counter.errors import StoreUnavailable
from people_counter.models.count_event import EventType
from people_counter.models.counter import LocalTotals
from .client import CounterStoreClient

DEFAULT_DEBOUNCE_SECONDS = 0.5

# Store state unknown after a failed reset; never equal to real totals
_UNSYNCED = (-1, -1)


class SyncReconciler:
    """
    Keeps a counter store eventually consistent with local totals.

    Store calls run on the timer thread, never on the caller's thread, except
    for start(), reset() and explicit flush() calls.
    """

    def __init__(
        self,
        client: CounterStoreClient,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        totals: Optional[LocalTotals] = None,
    ):
        self.client = client
        self.debounce_seconds = debounce_seconds
        self.totals = totals if totals is not None else LocalTotals()

        self._last_synced: Tuple[int, int] = (0, 0)
        self._hydrated = False
        self._connected = False
        self._timer: Optional[threading.Timer] = None

        # _lock guards totals, snapshot and timer; _flush_lock serializes store writes
        self._lock = threading.RLock()
        self._flush_lock = threading.Lock()

    @property
    def connected(self) -> bool:
        """Result of the most recent store call."""
        return self._connected

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    @property
    def last_synced(self) -> Optional[Tuple[int, int]]:
        """Totals of the last successful sync; None while the store state is unknown."""
        with self._lock:
            return None if self._last_synced == _UNSYNCED else self._last_synced

    @property
    def pending(self) -> bool:
        """True while a debounced flush is scheduled."""
        with self._lock:
            return self._timer is not None

    def snapshot(self) -> Tuple[int, int]:
        """Current local (entrances, exits)."""
        with self._lock:
            return self.totals.as_tuple()

    def _hydrate(self, rebase: bool) -> bool:
        try:
            record = self.client.read()
        except StoreUnavailable as e:
            self._connected = False
            logging.warning(f"Counter store unavailable, counting locally: {e}")
            return False

        with self._lock:
            if rebase:
                # Keep counts accumulated while detached on top of the store's totals
                base_e, base_x = self._last_synced
                entrances = record.entrances + (self.totals.entrances - base_e)
                exits = record.exits + (self.totals.exits - base_x)
                self.totals.set(max(entrances, 0), max(exits, 0))
            else:
                self.totals.set(record.entrances, record.exits)
            self._last_synced = (record.entrances, record.exits)
            self._hydrated = True
        self._connected = True
        logging.info(
            f"Hydrated from counter store: entrances={record.entrances}, exits={record.exits}"
        )
        return True

    def start(self) -> bool:
        """
        Hydrate local totals from the store.

        Returns:
            True if hydrated, False if running detached.
        """
        with self._flush_lock:
            return self._hydrate(rebase=False)

    def record(self, event_type: Union[EventType, str]) -> Tuple[int, int]:
        """Apply one crossing to local totals and schedule a sync."""
        event_type = EventType.parse(event_type)
        with self._lock:
            self.totals.increment(event_type)
            totals = self.totals.as_tuple()
        self.notify_change()
        return totals

    def notify_change(self) -> None:
        """Cancel any pending sync and schedule a new one after the debounce delay."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.debounce_seconds, self._on_timer)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _on_timer(self) -> None:
        with self._lock:
            self._timer = None
        self.flush()

    def flush(self) -> bool:
        """
        Write current totals to the store if they differ from the last sync.

        Returns:
            True if the store is in sync afterwards.
        """
        with self._flush_lock:
            if not self._hydrated and not self._hydrate(rebase=True):
                return False

            with self._lock:
                current = self.totals.as_tuple()
                if current == self._last_synced:
                    return True

            try:
                self.client.overwrite(*current)
            except StoreUnavailable as e:
                self._connected = False
                logging.warning(f"Counter sync failed, will retry on next change: {e}")
                return False

            with self._lock:
                self._last_synced = current
            self._connected = True
            logging.debug(f"Counter synced: entrances={current[0]}, exits={current[1]}")
            return True

    def clear_local(self) -> None:
        """
        Zero local totals and drop the pending sync without calling the store.

        The zeroed totals become authoritative: a later flush overwrites the
        store instead of rebasing onto its old record.
        """
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self.totals.clear()
            self._hydrated = True

    def reset_store(self) -> bool:
        """
        Reset the store directly.

        Waits for an in-flight flush, so last_synced cannot be overwritten
        with pre-reset totals after the store was zeroed. If local totals
        moved on meanwhile, or the store call failed, a sync is scheduled.

        Returns:
            True if the store reset succeeded.
        """
        with self._flush_lock:
            try:
                self.client.reset()
            except StoreUnavailable as e:
                self._connected = False
                logging.warning(f"Counter store reset failed, local totals reset anyway: {e}")
                with self._lock:
                    self._last_synced = _UNSYNCED
                ok = False
            else:
                with self._lock:
                    self._last_synced = (0, 0)
                self._connected = True
                ok = True

        with self._lock:
            dirty = self.totals.as_tuple() != self._last_synced
        if dirty:
            self.notify_change()
        if ok:
            logging.info("Counter reset")
        return ok

    def reset(self) -> bool:
        """
        Zero local totals, then reset the store.

        Local state is reset even if the store call fails.

        Returns:
            True if the store reset succeeded.
        """
        self.clear_local()
        return self.reset_store()

    def stop(self, flush: bool = False) -> None:
        """Cancel the pending sync, optionally flushing once."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if flush:
            self.flush()
