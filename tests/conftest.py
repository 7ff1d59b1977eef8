"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from people_counter.errors import StoreUnavailable
from people_counter.models.counter import CounterRecord
from people_counter.models.landmark import DetectedBody, Landmark, MEDIAPIPE_POSE
from people_counter.storage.database import Database


def make_body(x, y=0.5, visibility=0.9, layout=MEDIAPIPE_POSE, overrides=None):
    """
    Body with every landmark at (x, y); overrides maps index -> Landmark.
    """
    landmarks = [Landmark(x=x, y=y, visibility=visibility) for _ in range(layout.num_landmarks)]
    for index, lm in (overrides or {}).items():
        landmarks[index] = lm
    return DetectedBody.from_landmarks(landmarks)


def wait_for(predicate, timeout=2.0, interval=0.01):
    """Poll predicate until it is true or timeout elapses."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class FakeStore:
    """
    In-memory counter store recording every call.

    Set `available = False` to make every call raise StoreUnavailable.
    """

    def __init__(self, entrances=0, exits=0):
        self.entrances = entrances
        self.exits = exits
        self.available = True
        self.calls = []

    def _check(self):
        if not self.available:
            raise StoreUnavailable("store offline")

    def read(self):
        self.calls.append(("read",))
        self._check()
        return CounterRecord(entrances=self.entrances, exits=self.exits)

    def overwrite(self, entrances, exits):
        self.calls.append(("overwrite", entrances, exits))
        self._check()
        self.entrances = entrances
        self.exits = exits
        return CounterRecord(entrances=entrances, exits=exits)

    def reset(self):
        self.calls.append(("reset",))
        self._check()
        self.entrances = 0
        self.exits = 0
        return CounterRecord()

    def overwrites(self):
        return [c[1:] for c in self.calls if c[0] == "overwrite"]


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "counter.sqlite")


@pytest.fixture
def db(db_path):
    """Initialized database in a temporary directory."""
    database = Database(db_path)
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  backend: "ultralytics"
  model: "yolov8n-pose.pt"

tracking:
  mode: "torso"
  match_threshold: 0.15

counting:
  line_x: 0.5

storage:
  local_database_path: "data/test.sqlite"

sync:
  backend: "local"
  debounce_seconds: 0.5

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "backend": "ultralytics",
            "model": "yolov8n-pose.pt",
            "conf_threshold": 0.5,
        },
        "tracking": {
            "mode": "torso",
            "match_threshold": 0.15,
        },
        "counting": {
            "line_x": 0.5,
        },
        "storage": {
            "local_database_path": "data/test.sqlite",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
