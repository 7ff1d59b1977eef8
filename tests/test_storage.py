"""
Tests for the SQLite counter store.
"""

import sqlite3
import threading
import time

import pytest

from people_counter.errors import InvalidEventType, StoreUnavailable
from people_counter.models.count_event import EventType
from people_counter.storage.database import Database, EXPECTED_SCHEMA_VERSION

# 2023-11-14 22:13:20 UTC
T0 = 1700000000.0


class TestSchema:
    """Tests for schema creation and versioning."""

    def test_creates_tables(self, db, db_path):
        conn = sqlite3.connect(db_path)
        names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()
        assert {"schema_meta", "people_counter", "counter_history"} <= names

    def test_seeds_zero_record(self, db):
        record = db.read()
        assert (record.entrances, record.exits, record.current_inside) == (0, 0, 0)

    def test_initialize_twice_keeps_data(self, db):
        db.overwrite(3, 1)
        db.initialize()
        assert db.read().entrances == 3

    def test_version_mismatch_recreates_tables(self, db, db_path):
        db.overwrite(5, 2)
        db.close()

        conn = sqlite3.connect(db_path)
        conn.execute("UPDATE schema_meta SET schema_version = 99")
        conn.commit()
        conn.close()

        db2 = Database(db_path)
        db2.initialize()
        try:
            record = db2.read()
            assert (record.entrances, record.exits) == (0, 0)
            conn = sqlite3.connect(db_path)
            version = conn.execute("SELECT schema_version FROM schema_meta").fetchone()[0]
            conn.close()
            assert version == EXPECTED_SCHEMA_VERSION
        finally:
            db2.close()

    def test_data_survives_reopen(self, db, db_path):
        db.overwrite(7, 4)
        db.increment(EventType.EXIT)
        db.close()

        db2 = Database(db_path)
        db2.initialize()
        try:
            record = db2.read()
            assert (record.entrances, record.exits) == (7, 5)
            assert db2.count_history() == 1
        finally:
            db2.close()


class TestAvailability:
    """StoreUnavailable before initialize and after close."""

    def test_read_before_initialize(self, db_path):
        with pytest.raises(StoreUnavailable):
            Database(db_path).read()

    def test_operations_after_close(self, db):
        db.close()
        with pytest.raises(StoreUnavailable):
            db.read()
        with pytest.raises(StoreUnavailable):
            db.increment("entrance")
        with pytest.raises(StoreUnavailable):
            db.query_stats("hour")

    def test_close_is_idempotent(self, db):
        db.close()
        db.close()
        assert not db.is_initialized


class TestCounterRecord:
    """Tests for read/overwrite/increment/reset."""

    def test_overwrite_sets_totals(self, db):
        record = db.overwrite(10, 3)
        assert (record.entrances, record.exits, record.current_inside) == (10, 3, 7)
        assert record.last_updated is not None
        assert db.read() == record

    def test_overwrite_does_not_append_history(self, db):
        db.overwrite(4, 2)
        db.overwrite(4, 2)
        assert db.count_history() == 0

    @pytest.mark.parametrize("entrances,exits", [(-1, 0), (0, -3), (1.5, 0), ("2", 0), (True, 0)])
    def test_overwrite_rejects_invalid_totals(self, db, entrances, exits):
        with pytest.raises(ValueError):
            db.overwrite(entrances, exits)
        assert db.read().entrances == 0

    def test_increment_entrance(self, db):
        db.overwrite(2, 1)
        record = db.increment(EventType.ENTRANCE)

        assert (record.entrances, record.exits, record.current_inside) == (3, 1, 2)
        assert db.count_history() == 1
        assert db.count_history(EventType.ENTRANCE) == 1

    def test_increment_accepts_string(self, db):
        db.increment("exit")
        db.increment("Exit")
        assert db.read().exits == 2
        assert db.count_history("exit") == 2

    def test_increment_rejects_unknown_type(self, db):
        with pytest.raises(InvalidEventType):
            db.increment("sideways")
        assert db.count_history() == 0
        assert db.read().entrances == 0

    def test_current_inside_can_be_negative(self, db):
        db.increment(EventType.EXIT)
        db.increment(EventType.EXIT)
        db.increment(EventType.ENTRANCE)
        assert db.read().current_inside == -1

    def test_reset_keeps_history(self, db):
        db.increment(EventType.ENTRANCE)
        db.increment(EventType.EXIT)

        record = db.reset()

        assert (record.entrances, record.exits, record.current_inside) == (0, 0, 0)
        assert db.read() == record
        assert len(db.query_history()) == 2

    def test_latest_row_is_authoritative(self, db, db_path):
        conn = sqlite3.connect(db_path)
        conn.execute(
            "INSERT INTO people_counter (entrances, exits, current_inside) VALUES (9, 4, 5)"
        )
        conn.commit()
        conn.close()

        assert db.read().entrances == 9
        db.increment(EventType.ENTRANCE)
        assert db.read().entrances == 10

    def test_concurrent_increments_do_not_lose_updates(self, db):
        def worker(event_type):
            for _ in range(25):
                db.increment(event_type)

        threads = [
            threading.Thread(target=worker, args=(t,))
            for t in (EventType.ENTRANCE, EventType.ENTRANCE, EventType.EXIT, EventType.ENTRANCE)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        record = db.read()
        assert (record.entrances, record.exits) == (75, 25)
        assert db.count_history() == 100


class TestHistory:
    """Tests for history queries."""

    @pytest.fixture
    def history(self, db):
        db.append_history(EventType.ENTRANCE, T0)
        db.append_history(EventType.EXIT, T0 + 60)
        db.append_history(EventType.ENTRANCE, T0 + 3600)
        db.append_history(EventType.ENTRANCE, T0 + 86400)
        return db

    def test_append_history_leaves_totals(self, history):
        assert history.read().entrances == 0
        assert history.count_history() == 4

    def test_most_recent_first(self, history):
        events = history.query_history()
        assert [e.timestamp for e in events] == [T0 + 86400, T0 + 3600, T0 + 60, T0]
        assert events[-1].event_type is EventType.ENTRANCE

    def test_inclusive_range(self, history):
        events = history.query_history(start_ts=T0 + 60, end_ts=T0 + 3600)
        assert [e.timestamp for e in events] == [T0 + 3600, T0 + 60]

    def test_limit(self, history):
        events = history.query_history(limit=2)
        assert [e.timestamp for e in events] == [T0 + 86400, T0 + 3600]

    def test_negative_limit_rejected(self, history):
        with pytest.raises(ValueError):
            history.query_history(limit=-1)

    def test_clear_history_before(self, history):
        assert history.clear_history(before_ts=T0 + 3600) == 2
        assert history.count_history() == 2

    def test_clear_all(self, history):
        assert history.clear_history() == 4
        assert history.query_history() == []


class TestStats:
    """Tests for period-bucketed stats (UTC by default)."""

    @pytest.fixture
    def utc_db(self, db_path):
        database = Database(db_path)
        database.initialize()
        database.append_history(EventType.ENTRANCE, T0)
        database.append_history(EventType.EXIT, T0 + 60)
        database.append_history(EventType.ENTRANCE, T0 + 90)
        database.append_history(EventType.ENTRANCE, T0 + 3600)
        database.append_history(EventType.EXIT, T0 + 86400)
        yield database
        database.close()

    def test_hour_buckets(self, utc_db):
        buckets = utc_db.query_stats("hour")
        assert [b.to_dict() for b in buckets] == [
            {"period": "2023-11-14 22:00", "entrances": 2, "exits": 1},
            {"period": "2023-11-14 23:00", "entrances": 1, "exits": 0},
            {"period": "2023-11-15 22:00", "entrances": 0, "exits": 1},
        ]

    def test_hour_buckets_first_event_only(self, utc_db):
        # T0 + 90 is 22:14:50, still the 22:00 bucket
        buckets = utc_db.query_stats("hour", end_ts=T0 + 90)
        assert [(b.bucket, b.entrances, b.exits) for b in buckets] == [("2023-11-14 22:00", 2, 1)]

    def test_minute_buckets(self, utc_db):
        buckets = utc_db.query_stats("minute", end_ts=T0 + 90)
        assert [b.bucket for b in buckets] == ["2023-11-14 22:13", "2023-11-14 22:14"]

    def test_day_buckets(self, utc_db):
        buckets = utc_db.query_stats("day")
        assert [(b.bucket, b.entrances, b.exits) for b in buckets] == [
            ("2023-11-14", 3, 1),
            ("2023-11-15", 0, 1),
        ]

    def test_week_and_month(self, utc_db):
        assert [b.bucket for b in utc_db.query_stats("week")] == ["2023-46"]
        assert [b.bucket for b in utc_db.query_stats("month")] == ["2023-11"]

    def test_range_filter(self, utc_db):
        buckets = utc_db.query_stats("day", start_ts=T0 + 86400)
        assert [b.bucket for b in buckets] == ["2023-11-15"]

    def test_unknown_period(self, utc_db):
        with pytest.raises(ValueError):
            utc_db.query_stats("fortnight")

    def test_empty_history(self, db):
        assert db.query_stats("day") == []


@pytest.fixture
def new_york_tz(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset not available")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


class TestStatsTimezone:
    # 2024-01-01T00:00:00Z, still 2023-12-31 in New York
    NEW_YEAR_UTC = 1704067200.0

    def test_default_buckets_ignore_server_timezone(self, db, new_york_tz):
        db.append_history(EventType.ENTRANCE, self.NEW_YEAR_UTC)

        assert [b.bucket for b in db.query_stats("day")] == ["2024-01-01"]
        assert [b.bucket for b in db.query_stats("hour")] == ["2024-01-01 00:00"]

    def test_localtime_buckets_are_opt_in(self, db_path, new_york_tz):
        database = Database(db_path, stats_localtime=True)
        database.initialize()
        try:
            database.append_history(EventType.ENTRANCE, self.NEW_YEAR_UTC)

            assert [b.bucket for b in database.query_stats("day")] == ["2023-12-31"]
        finally:
            database.close()
