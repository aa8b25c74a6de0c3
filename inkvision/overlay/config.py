from __future__ import annotations

import os
from dataclasses import dataclass


DEFAULT_TFHUB_MODEL_HANDLE = "https://tfhub.dev/google/on_device_vision/classifier/landmarks_classifier_europe_V1/1"
DEFAULT_LABEL_MAP_URL = "https://www.gstatic.com/aihub/tfhub/labelmaps/landmarks_classifier_europe_V1_label_map.csv"

BACKEND_MODES = {"pickled_model", "tfhub", "scripted"}
PLAYER_MODES = {"ffplay", "headless"}


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    return float(value)


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    return int(value)


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class OverlayConfig:
    backend_mode: str = "pickled_model"
    model_path: str = ""
    tfhub_model_handle: str = DEFAULT_TFHUB_MODEL_HANDLE
    label_map_url: str = DEFAULT_LABEL_MAP_URL
    script_path: str = ""
    top_k: int = 5
    player_mode: str = "ffplay"
    headless_duration_seconds: float = 0.0
    video_map_path: str = ""
    assets_dir: str = "./assets"
    camera_device: int = 0
    tick_interval_seconds: float = 0.8
    start_threshold: float = 0.85
    keep_threshold: float = 0.75
    start_gap: float = 0.05
    keep_gap: float = 0.03
    confirm_n: int = 3
    max_misses: int = 2
    record_events: bool = False
    artifact_dir: str = "./artifacts"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.backend_mode not in BACKEND_MODES:
            raise ValueError("BACKEND_MODE must be 'pickled_model', 'tfhub' or 'scripted'")
        if self.player_mode not in PLAYER_MODES:
            raise ValueError("PLAYER_MODE must be 'ffplay' or 'headless'")
        for name in ("start_threshold", "keep_threshold", "start_gap", "keep_gap"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name.upper()} must be within [0, 1], got {value}")
        if self.confirm_n < 1:
            raise ValueError("CONFIRM_N must be >= 1")
        if self.max_misses < 1:
            raise ValueError("MAX_MISSES must be >= 1")
        if self.tick_interval_seconds <= 0:
            raise ValueError("TICK_INTERVAL_SECONDS must be > 0")
        if self.headless_duration_seconds < 0:
            raise ValueError("HEADLESS_DURATION_SECONDS must be >= 0")

    @classmethod
    def from_env(cls) -> "OverlayConfig":
        return cls(
            backend_mode=os.getenv("BACKEND_MODE", "pickled_model").strip().lower(),
            model_path=os.getenv("MODEL_PATH", "").strip(),
            tfhub_model_handle=os.getenv("TFHUB_MODEL_HANDLE", DEFAULT_TFHUB_MODEL_HANDLE).strip(),
            label_map_url=os.getenv("LABEL_MAP_URL", DEFAULT_LABEL_MAP_URL).strip(),
            script_path=os.getenv("SCRIPT_PATH", "").strip(),
            top_k=max(1, _int_env("TOP_K", 5)),
            player_mode=os.getenv("PLAYER_MODE", "ffplay").strip().lower(),
            headless_duration_seconds=_float_env("HEADLESS_DURATION_SECONDS", 0.0),
            video_map_path=os.getenv("VIDEO_MAP_PATH", "").strip(),
            assets_dir=os.getenv("ASSETS_DIR", "./assets").strip(),
            camera_device=_int_env("CAMERA_DEVICE", 0),
            tick_interval_seconds=_float_env("TICK_INTERVAL_SECONDS", 0.8),
            start_threshold=_float_env("START_THRESHOLD", 0.85),
            keep_threshold=_float_env("KEEP_THRESHOLD", 0.75),
            start_gap=_float_env("START_GAP", 0.05),
            keep_gap=_float_env("KEEP_GAP", 0.03),
            confirm_n=_int_env("CONFIRM_N", 3),
            max_misses=_int_env("MAX_MISSES", 2),
            record_events=_bool_env("RECORD_EVENTS", False),
            artifact_dir=os.getenv("ARTIFACT_DIR", "./artifacts").strip(),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        )
