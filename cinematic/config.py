import logging
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CINEMATIC_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Application
    app_name: str = "Route Cinematic"
    app_version: str = "0.1.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Overlay semantics
    # Speed overrides within this many mi/s of the playback default are not overrides
    speed_epsilon: float = 1e-4

    # Overlay activation
    poi_window_mi: float = 0.12

    # Timeline editing
    duplicate_gap_mi: float = 0.02
    nudge_step_mi: float = 0.01
    attach_poi_threshold_mi: float = 0.2
    # Speed overlays created from the editor run at this fraction of the default speed
    created_speed_ratio: float = 0.85

    # Camera path
    # Displayed mode stays on the left keyframe until t reaches this value
    camera_mode_snap_t: float = 0.999
    camera_easing: str = "linear"

    # Playback
    default_frame_rate: int = 24
    # Host loops clamp real-time deltas to this (backgrounded tab protection)
    max_tick_delta_seconds: float = 0.1


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Apply a basic logging configuration for host scripts."""
    logging.basicConfig(level=level or get_settings().log_level)
