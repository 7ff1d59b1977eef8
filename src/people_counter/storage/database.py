"""
Counter store on SQLite.

Holds the authoritative counter record (latest row by id) and the append-only
counter history used for time-bucketed stats.
Schema versioning ensures automatic migration when schema changes.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional, Union

from people_counter.errors import StoreUnavailable
from people_counter.models.count_event import EventType, HistoryEvent
from people_counter.models.counter import CounterRecord, StatsBucket

# Schema version - increment when schema changes
EXPECTED_SCHEMA_VERSION = 1

# strftime formats for stats buckets, keyed by period name
PERIOD_FORMATS = {
    "minute": "%Y-%m-%d %H:%M",
    "hour": "%Y-%m-%d %H:00",
    "day": "%Y-%m-%d",
    "week": "%Y-%W",
    "month": "%Y-%m",
}

_LATEST_ROW = "(SELECT id FROM people_counter ORDER BY id DESC LIMIT 1)"


def _to_ms(ts: Optional[float]) -> Optional[int]:
    return None if ts is None else int(ts * 1000)


def _validate_total(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


class Database:
    """
    Counter store backed by a single SQLite connection.

    Tables:
    - schema_meta: tracks schema version
    - people_counter: counter records; the latest row is authoritative
    - counter_history: one row per entrance/exit increment

    Every mutation runs as one transaction under an RLock, so concurrent
    callers (web threads, reconciler timer) cannot interleave read-modify-write.
    """

    def __init__(self, local_database_path: str, stats_localtime: bool = False):
        """
        Initialize the database.

        Args:
            local_database_path: Path to the SQLite database file (or ":memory:").
            stats_localtime: Bucket stats in server local time instead of UTC.
        """
        self.local_database_path = local_database_path
        self.stats_localtime = stats_localtime
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

        # Create directory if it doesn't exist
        db_dir = os.path.dirname(local_database_path)
        if db_dir and local_database_path != ":memory:":
            os.makedirs(db_dir, exist_ok=True)

        logging.info(f"Database configured at {local_database_path}")

    @property
    def is_initialized(self) -> bool:
        return self.conn is not None

    @contextmanager
    def _transaction(self, action: str) -> Iterator[sqlite3.Cursor]:
        """Run one operation as a single transaction, mapping failures to StoreUnavailable."""
        with self._lock:
            if self.conn is None:
                raise StoreUnavailable(f"Cannot {action}: database not initialized")
            try:
                with self.conn:
                    yield self.conn.cursor()
            except sqlite3.Error as e:
                logging.error(f"Database error during {action}: {e}")
                raise StoreUnavailable(f"Cannot {action}: {e}") from e

    def _get_schema_version(self, cursor: sqlite3.Cursor) -> Optional[int]:
        cursor.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_meta'"
        )
        if cursor.fetchone() is None:
            return None
        cursor.execute("SELECT schema_version FROM schema_meta LIMIT 1")
        row = cursor.fetchone()
        return row[0] if row else None

    def _create_schema(self, cursor: sqlite3.Cursor) -> None:
        for table in ("people_counter", "counter_history", "schema_meta"):
            cursor.execute(f"DROP TABLE IF EXISTS {table}")

        cursor.execute("""
            CREATE TABLE schema_meta (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                schema_version INTEGER NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        cursor.execute("""
            CREATE TABLE people_counter (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entrances INTEGER NOT NULL DEFAULT 0,
                exits INTEGER NOT NULL DEFAULT 0,
                current_inside INTEGER NOT NULL DEFAULT 0,
                last_updated INTEGER,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        cursor.execute("""
            CREATE TABLE counter_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                event_type TEXT NOT NULL CHECK (event_type IN ('entrance', 'exit')),
                ts INTEGER NOT NULL
            )
        """)
        cursor.execute("CREATE INDEX idx_counter_history_ts ON counter_history(ts)")
        cursor.execute("CREATE INDEX idx_counter_history_type ON counter_history(event_type)")
        cursor.execute(
            "INSERT INTO schema_meta (id, schema_version) VALUES (1, ?)",
            (EXPECTED_SCHEMA_VERSION,)
        )
        logging.info(f"Created schema version {EXPECTED_SCHEMA_VERSION}")

    def initialize(self) -> None:
        """
        Open the connection and prepare the schema.

        If schema_meta is missing or the version doesn't match
        EXPECTED_SCHEMA_VERSION, the counter tables are recreated. A zero
        counter record is seeded when none exists.

        Raises:
            StoreUnavailable: If the database cannot be opened.
        """
        with self._lock:
            if self.conn is None:
                try:
                    self.conn = sqlite3.connect(self.local_database_path, check_same_thread=False)
                except sqlite3.Error as e:
                    logging.error(f"Database initialization error: {e}")
                    raise StoreUnavailable(f"Cannot open database: {e}") from e

            with self._transaction("initialize schema") as cursor:
                current_version = self._get_schema_version(cursor)
                if current_version != EXPECTED_SCHEMA_VERSION:
                    if current_version is not None:
                        logging.warning(
                            f"Schema version mismatch: found {current_version}, "
                            f"expected {EXPECTED_SCHEMA_VERSION}. Recreating tables."
                        )
                    else:
                        logging.info("No schema found, creating fresh database.")
                    self._create_schema(cursor)
                else:
                    logging.info(f"Schema version {current_version} is current")

                cursor.execute("SELECT id FROM people_counter LIMIT 1")
                if cursor.fetchone() is None:
                    cursor.execute(
                        "INSERT INTO people_counter (entrances, exits, current_inside, last_updated) "
                        "VALUES (0, 0, 0, ?)",
                        (_to_ms(time.time()),)
                    )
                    logging.info("Seeded zero counter record")

    def close(self) -> None:
        """Close the connection. Later operations raise StoreUnavailable."""
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
                logging.info("Database connection closed")

    # -------------------------------------------------------------------------
    # Counter record
    # -------------------------------------------------------------------------

    def _read_latest(self, cursor: sqlite3.Cursor) -> CounterRecord:
        cursor.execute(
            "SELECT entrances, exits, last_updated FROM people_counter ORDER BY id DESC LIMIT 1"
        )
        row = cursor.fetchone()
        if row is None:
            return CounterRecord()
        entrances, exits, last_updated = row
        return CounterRecord(
            entrances=entrances,
            exits=exits,
            last_updated=None if last_updated is None else last_updated / 1000.0,
        )

    def _write_totals(self, cursor: sqlite3.Cursor, entrances: int, exits: int) -> None:
        now_ms = _to_ms(time.time())
        cursor.execute(
            f"UPDATE people_counter SET entrances = ?, exits = ?, current_inside = ?, "
            f"last_updated = ? WHERE id = {_LATEST_ROW}",
            (entrances, exits, entrances - exits, now_ms)
        )
        if cursor.rowcount == 0:
            cursor.execute(
                "INSERT INTO people_counter (entrances, exits, current_inside, last_updated) "
                "VALUES (?, ?, ?, ?)",
                (entrances, exits, entrances - exits, now_ms)
            )

    def read(self) -> CounterRecord:
        """Latest counter record; a zero record if none exists."""
        with self._transaction("read counter") as cursor:
            return self._read_latest(cursor)

    def overwrite(self, entrances: int, exits: int) -> CounterRecord:
        """
        Set absolute totals. Does not append history.

        Raises:
            ValueError: If a total is not a non-negative integer.
        """
        entrances = _validate_total("entrances", entrances)
        exits = _validate_total("exits", exits)
        with self._transaction("overwrite counter") as cursor:
            self._write_totals(cursor, entrances, exits)
            record = self._read_latest(cursor)
        logging.debug(f"Counter overwritten: entrances={entrances}, exits={exits}")
        return record

    def increment(self, event_type: Union[EventType, str]) -> CounterRecord:
        """
        Increment one total and append a history event of that type.

        Raises:
            InvalidEventType: Before touching the database if the type is unknown.
        """
        event_type = EventType.parse(event_type)
        now = time.time()
        with self._transaction("increment counter") as cursor:
            current = self._read_latest(cursor)
            if event_type is EventType.ENTRANCE:
                self._write_totals(cursor, current.entrances + 1, current.exits)
            else:
                self._write_totals(cursor, current.entrances, current.exits + 1)
            cursor.execute(
                "INSERT INTO counter_history (event_type, ts) VALUES (?, ?)",
                (event_type.value, _to_ms(now))
            )
            record = self._read_latest(cursor)
        logging.debug(f"Counter incremented: {event_type.value}")
        return record

    def reset(self) -> CounterRecord:
        """Zero the totals. History is kept."""
        with self._transaction("reset counter") as cursor:
            self._write_totals(cursor, 0, 0)
            record = self._read_latest(cursor)
        logging.info("Counter reset")
        return record

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @staticmethod
    def _time_filter(start_ts: Optional[float], end_ts: Optional[float]):
        clauses = []
        params: List[int] = []
        if start_ts is not None:
            clauses.append("ts >= ?")
            params.append(_to_ms(start_ts))
        if end_ts is not None:
            clauses.append("ts <= ?")
            params.append(_to_ms(end_ts))
        where = " WHERE " + " AND ".join(clauses) if clauses else ""
        return where, params

    def append_history(self, event_type: Union[EventType, str], timestamp: Optional[float] = None) -> int:
        """
        Log a history event without touching the totals.

        Returns:
            ID of the inserted row.
        """
        event_type = EventType.parse(event_type)
        ts = time.time() if timestamp is None else timestamp
        with self._transaction("append history") as cursor:
            cursor.execute(
                "INSERT INTO counter_history (event_type, ts) VALUES (?, ?)",
                (event_type.value, _to_ms(ts))
            )
            return cursor.lastrowid

    def query_history(
        self,
        start_ts: Optional[float] = None,
        end_ts: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[HistoryEvent]:
        """
        History events within [start_ts, end_ts], most recent first.

        Args:
            start_ts: Inclusive lower bound (Unix seconds).
            end_ts: Inclusive upper bound (Unix seconds).
            limit: Maximum number of events to return.
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")

        where, params = self._time_filter(start_ts, end_ts)
        query = f"SELECT id, event_type, ts FROM counter_history{where} ORDER BY ts DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._transaction("query history") as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()

        return [
            HistoryEvent(id=row[0], event_type=EventType(row[1]), timestamp=row[2] / 1000.0)
            for row in rows
        ]

    def query_stats(
        self,
        period: str,
        start_ts: Optional[float] = None,
        end_ts: Optional[float] = None,
    ) -> List[StatsBucket]:
        """
        Entrance/exit counts grouped by calendar bucket, oldest bucket first.

        Args:
            period: minute, hour, day, week or month.
            start_ts: Inclusive lower bound (Unix seconds).
            end_ts: Inclusive upper bound (Unix seconds).

        Raises:
            ValueError: If period is unknown.
        """
        fmt = PERIOD_FORMATS.get(str(period).lower())
        if fmt is None:
            raise ValueError(
                f"Invalid period {period!r}: must be one of {', '.join(PERIOD_FORMATS)}"
            )

        modifiers = "'unixepoch', 'localtime'" if self.stats_localtime else "'unixepoch'"
        bucket = f"strftime('{fmt}', ts / 1000, {modifiers})"
        where, params = self._time_filter(start_ts, end_ts)

        with self._transaction("query stats") as cursor:
            cursor.execute(f"""
                SELECT {bucket} AS bucket,
                       SUM(CASE WHEN event_type = 'entrance' THEN 1 ELSE 0 END),
                       SUM(CASE WHEN event_type = 'exit' THEN 1 ELSE 0 END)
                FROM counter_history{where}
                GROUP BY bucket
                ORDER BY bucket ASC
            """, params)
            rows = cursor.fetchall()

        return [StatsBucket(bucket=row[0], entrances=row[1], exits=row[2]) for row in rows]

    def count_history(self, event_type: Union[EventType, str, None] = None) -> int:
        """Number of history events, optionally of one type."""
        with self._transaction("count history") as cursor:
            if event_type is None:
                cursor.execute("SELECT COUNT(*) FROM counter_history")
            else:
                cursor.execute(
                    "SELECT COUNT(*) FROM counter_history WHERE event_type = ?",
                    (EventType.parse(event_type).value,)
                )
            return cursor.fetchone()[0]

    def clear_history(self, before_ts: Optional[float] = None) -> int:
        """
        Administrative clear of history events older than before_ts (all if None).

        Returns:
            Number of deleted events.
        """
        with self._transaction("clear history") as cursor:
            if before_ts is None:
                cursor.execute("DELETE FROM counter_history")
            else:
                cursor.execute("DELETE FROM counter_history WHERE ts < ?", (_to_ms(before_ts),))
            deleted = cursor.rowcount
        logging.info(f"Cleared {deleted} history event(s)")
        return deleted
