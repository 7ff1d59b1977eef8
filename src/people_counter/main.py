"""
People counter entry point.

Loads the layered configuration, opens the counter store, starts the HTTP API
and runs the camera counting pipeline.

Usage:
    people-counter --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show the annotated camera window
    --no-web: Do not start the HTTP API
    --serve-only: Only serve the counter store API (no camera)
"""

import argparse
import logging
import os
import sys
import threading
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml

from people_counter.algorithms.reference import TrackingMode
from people_counter.models.config import Config
from people_counter.models.landmark import LAYOUTS
from people_counter.ops.logging import setup_logging
from people_counter.storage.database import Database
from people_counter.web.app import create_app

DB_PATH_ENV = "PEOPLE_COUNTER_DB_PATH"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)

    The PEOPLE_COUNTER_DB_PATH environment variable overrides
    storage.local_database_path.
    """
    config_dir = os.path.dirname(config_path)
    base_path = os.path.join(config_dir, "default.yaml")
    local_overrides_path = os.path.join(config_dir, "config.yaml")

    merged: Dict[str, Any] = {}
    if os.path.exists(base_path):
        merged = _read_yaml(base_path)
    if os.path.exists(local_overrides_path):
        merged = _deep_merge(merged, _read_yaml(local_overrides_path))

    # Explicit path last, unless it is one of the files already applied
    if os.path.exists(config_path) and os.path.abspath(config_path) not in (
        os.path.abspath(base_path),
        os.path.abspath(local_overrides_path),
    ):
        merged = _deep_merge(merged, _read_yaml(config_path))

    db_path = os.environ.get(DB_PATH_ENV)
    if db_path:
        merged.setdefault("storage", {})["local_database_path"] = db_path

    return merged


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detection', 'storage', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    camera = config.get('camera') or {}
    device_id = camera.get('device_id', 0)
    if not isinstance(device_id, (int, str)):
        return False, "camera.device_id must be an integer (index) or string (path/URL)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "camera.device_id integer must be non-negative"
    resolution = camera.get('resolution')
    if resolution is not None:
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return False, "camera.resolution values must be positive integers"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    detection = config.get('detection') or {}
    if detection.get('backend', 'ultralytics') != 'ultralytics':
        return False, "detection.backend must be: ultralytics"
    conf = detection.get('conf_threshold', 0.5)
    if not isinstance(conf, (int, float)) or not (0 <= conf <= 1):
        return False, "detection.conf_threshold must be between 0 and 1"
    max_people = detection.get('max_people', 5)
    if not isinstance(max_people, int) or max_people <= 0:
        return False, "detection.max_people must be a positive integer"

    tracking = config.get('tracking') or {}
    if 'mode' in tracking:
        try:
            TrackingMode.parse(tracking['mode'])
        except ValueError:
            return False, "tracking.mode must be one of: bbox, skeleton, torso"
    if tracking.get('landmark_layout', 'mediapipe') not in LAYOUTS:
        return False, f"tracking.landmark_layout must be one of: {', '.join(sorted(LAYOUTS))}"
    threshold = tracking.get('match_threshold', 0.15)
    if not isinstance(threshold, (int, float)) or not (0 < threshold <= 1):
        return False, "tracking.match_threshold must be in (0, 1]"
    visibility = tracking.get('visibility_threshold', 0.5)
    if not isinstance(visibility, (int, float)) or not (0 <= visibility < 1):
        return False, "tracking.visibility_threshold must be in [0, 1)"
    missed = tracking.get('max_missed_frames', 0)
    if not isinstance(missed, int) or missed < 0:
        return False, "tracking.max_missed_frames must be a non-negative integer"

    counting = config.get('counting') or {}
    line_x = counting.get('line_x', 0.5)
    if not isinstance(line_x, (int, float)) or not (0 <= line_x <= 1):
        return False, "counting.line_x must be between 0 and 1"

    storage = config.get('storage') or {}
    if not isinstance(storage.get('local_database_path'), str) or not storage['local_database_path']:
        return False, "Missing storage.local_database_path"

    sync = config.get('sync') or {}
    backend = sync.get('backend', 'local')
    if backend not in ('local', 'http'):
        return False, "sync.backend must be one of: local, http"
    if backend == 'http' and not sync.get('api_url'):
        return False, "sync.api_url is required when sync.backend is 'http'"
    debounce = sync.get('debounce_seconds', 0.5)
    if not isinstance(debounce, (int, float)) or debounce < 0:
        return False, "sync.debounce_seconds must be non-negative"

    web = config.get('web') or {}
    port = web.get('port', 5500)
    if not isinstance(port, int) or not (0 < port < 65536):
        return False, "web.port must be a valid TCP port"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def _start_web(cfg: Config, database: Database, session=None, blocking: bool = False) -> None:
    app = create_app(database=database, counting_session=session)

    def run_web_app():
        uvicorn.run(app, host=cfg.web.host, port=cfg.web.port, log_level="info")

    if blocking:
        run_web_app()
        return
    web_thread = threading.Thread(target=run_web_app, daemon=True)
    web_thread.start()
    logging.info(f"Web API started on {cfg.web.host}:{cfg.web.port}")


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='People Counter')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show the annotated camera window')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the HTTP API')
    parser.add_argument('--serve-only', action='store_true',
                        help='Only serve the counter store API (no camera)')
    args = parser.parse_args()

    try:
        raw_config = load_config(args.config)
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(raw_config['log_path'], raw_config['log_level'])
    cfg = Config.from_dict(raw_config)
    logging.info("Starting People Counter")

    database = Database(cfg.storage.local_database_path, stats_localtime=cfg.storage.stats_localtime)
    database.initialize()

    if args.serve_only:
        _start_web(cfg, database, blocking=True)
        database.close()
        return

    # Camera path: heavy imports only when needed
    from people_counter.inference.pose_backend import create_pose_backend
    from people_counter.observation.opencv_source import CameraSource, CameraSourceConfig
    from people_counter.pipeline.engine import PipelineConfig, PipelineEngine
    from people_counter.runtime.services import create_session, create_store_client

    backend = create_pose_backend(raw_config.get('detection') or {})
    client = create_store_client(cfg, database)
    session = create_session(cfg, client, layout=backend.layout)

    if cfg.web.enabled and not args.no_web:
        _start_web(cfg, database, session=session)

    source = CameraSource(CameraSourceConfig.from_camera_config(raw_config.get('camera') or {}))
    engine = PipelineEngine(source, backend, session, PipelineConfig(display=args.display))
    try:
        engine.run()
    finally:
        session.reconciler.stop(flush=True)
        if client is not database:
            client.close()
        database.close()
        logging.info("People Counter stopped")


if __name__ == "__main__":
    main()
