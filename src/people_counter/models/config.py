"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    flip_horizontal: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            flip_horizontal=d.get("flip_horizontal", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "flip_horizontal": self.flip_horizontal,
        }


@dataclass
class DetectionConfig:
    """Pose detector configuration."""
    backend: str = "ultralytics"
    model: str = "yolov8n-pose.pt"
    conf_threshold: float = 0.5
    max_people: int = 5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            backend=d.get("backend", "ultralytics"),
            model=d.get("model", "yolov8n-pose.pt"),
            conf_threshold=d.get("conf_threshold", 0.5),
            max_people=d.get("max_people", 5),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "max_people": self.max_people,
        }


@dataclass
class TrackingConfig:
    """Tracking configuration."""
    mode: str = "torso"
    landmark_layout: str = "mediapipe"
    match_threshold: float = 0.15
    visibility_threshold: float = 0.5
    max_missed_frames: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackingConfig":
        return cls(
            mode=d.get("mode", "torso"),
            landmark_layout=d.get("landmark_layout", "mediapipe"),
            match_threshold=d.get("match_threshold", 0.15),
            visibility_threshold=d.get("visibility_threshold", 0.5),
            max_missed_frames=d.get("max_missed_frames", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "landmark_layout": self.landmark_layout,
            "match_threshold": self.match_threshold,
            "visibility_threshold": self.visibility_threshold,
            "max_missed_frames": self.max_missed_frames,
        }


@dataclass
class CountingConfig:
    """Counting line configuration (vertical line at normalized x)."""
    line_x: float = 0.5
    invert_direction: bool = False
    direction_labels: Dict[str, str] = field(default_factory=lambda: {
        "entrance": "Entrances",
        "exit": "Exits",
    })

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CountingConfig":
        return cls(
            line_x=d.get("line_x", 0.5),
            invert_direction=d.get("invert_direction", False),
            direction_labels=d.get("direction_labels", {"entrance": "Entrances", "exit": "Exits"}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_x": self.line_x,
            "invert_direction": self.invert_direction,
            "direction_labels": self.direction_labels,
        }


@dataclass
class StorageConfig:
    """Storage configuration."""
    local_database_path: str = "data/database.sqlite"
    stats_localtime: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StorageConfig":
        return cls(
            local_database_path=d.get("local_database_path", "data/database.sqlite"),
            stats_localtime=d.get("stats_localtime", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "local_database_path": self.local_database_path,
            "stats_localtime": self.stats_localtime,
        }


@dataclass
class SyncConfig:
    """
    Counter store synchronization.

    backend "local" writes to this process's database; "http" talks to a
    remote instance of the counter API at api_url.
    """
    backend: str = "local"
    api_url: Optional[str] = None
    debounce_seconds: float = 0.5
    timeout_seconds: float = 5.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SyncConfig":
        return cls(
            backend=d.get("backend", "local"),
            api_url=d.get("api_url"),
            debounce_seconds=d.get("debounce_seconds", 0.5),
            timeout_seconds=d.get("timeout_seconds", 5.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "debounce_seconds": self.debounce_seconds,
            "timeout_seconds": self.timeout_seconds,
        }
        if self.api_url is not None:
            d["api_url"] = self.api_url
        return d


@dataclass
class WebConfig:
    """HTTP API configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5500

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5500),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    counting: CountingConfig = field(default_factory=CountingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/people_counter.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            tracking=TrackingConfig.from_dict(d.get("tracking", {}) or {}),
            counting=CountingConfig.from_dict(d.get("counting", {}) or {}),
            storage=StorageConfig.from_dict(d.get("storage", {}) or {}),
            sync=SyncConfig.from_dict(d.get("sync", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/people_counter.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "tracking": self.tracking.to_dict(),
            "counting": self.counting.to_dict(),
            "storage": self.storage.to_dict(),
            "sync": self.sync.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
