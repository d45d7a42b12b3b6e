"""Configuration management for mindwell."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from mindwell.moods import MOOD_MAPPINGS, MoodAttributes

_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "mindwell"


@dataclass
class TrackerConfig:
    """Settings for the mood tracking pipeline."""

    api_endpoint: str = "/api/mood"
    history_endpoint: str = "/api/mood/history"
    retry_attempts: int = 3
    retry_delay: float = 1.0  # seconds, multiplied by the attempt number
    cache_ttl: float = 300.0  # seconds
    notification_duration: int = 3000  # milliseconds
    retry_client_errors: bool = False  # True retries 4xx like any other failure
    timeout: float = 30.0  # seconds
    moods: dict[str, MoodAttributes] = field(default_factory=lambda: dict(MOOD_MAPPINGS))


@dataclass
class Config:
    api_url: str = "http://localhost:5000"
    credentials_file: Path = field(
        default_factory=lambda: _DEFAULT_CONFIG_DIR / "credentials.json"
    )
    chart_dir: Path | None = field(default_factory=lambda: _DEFAULT_CONFIG_DIR)
    verbose: bool = False
    tracker: TrackerConfig = field(default_factory=TrackerConfig)

    @classmethod
    def load(cls, overrides: dict | None = None, path: Path | None = None) -> Config:
        """Load config from TOML file, then apply CLI overrides."""
        config = cls()

        # Try loading from config file
        config_path = path or _DEFAULT_CONFIG_DIR / "config.toml"
        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            config = cls._apply_dict(config, data)

        # Apply CLI overrides
        if overrides:
            config = cls._apply_dict(config, overrides)

        return config

    @classmethod
    def _apply_dict(cls, config: Config, data: dict) -> Config:
        if "api_url" in data:
            config.api_url = str(data["api_url"])
        if "credentials_file" in data:
            config.credentials_file = Path(data["credentials_file"]).expanduser()
        if "chart_dir" in data:
            chart_dir = data["chart_dir"]
            config.chart_dir = Path(chart_dir).expanduser() if chart_dir else None
        if "verbose" in data:
            config.verbose = bool(data["verbose"])

        if "tracker" in data:
            tracker_data = data["tracker"]
            tracker = config.tracker
            if "api_endpoint" in tracker_data:
                tracker.api_endpoint = str(tracker_data["api_endpoint"])
            if "history_endpoint" in tracker_data:
                tracker.history_endpoint = str(tracker_data["history_endpoint"])
            if "retry_attempts" in tracker_data:
                tracker.retry_attempts = int(tracker_data["retry_attempts"])
            if "retry_delay" in tracker_data:
                tracker.retry_delay = float(tracker_data["retry_delay"])
            if "cache_ttl" in tracker_data:
                tracker.cache_ttl = float(tracker_data["cache_ttl"])
            if "notification_duration" in tracker_data:
                tracker.notification_duration = int(tracker_data["notification_duration"])
            if "retry_client_errors" in tracker_data:
                tracker.retry_client_errors = bool(tracker_data["retry_client_errors"])
            if "timeout" in tracker_data:
                tracker.timeout = float(tracker_data["timeout"])

        return config
