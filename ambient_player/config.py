"""Configuration loading from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .utils import (
    env_flag,
    parse_float_env,
    parse_int_env,
    parse_optional_float_env,
    resolve_path,
)

DEFAULT_LLM_MODEL = "gemma-3-27b-it"


@dataclass(frozen=True)
class AppConfig:
    log_level: str
    file_log_level: str
    log_dir: str
    log_file: str
    state_path: str
    gemini_api_key: str
    youtube_api_key: str
    llm_model: str
    gemini_base_url: str
    youtube_base_url: str
    weather_base_url: str
    weather_user_agent: str
    http_timeout_seconds: int
    search_max_results: int
    mic_enabled: bool
    mic_sample_rate: int
    mic_frame_size: int
    audio_tick_ms: int
    camera_enabled: bool
    camera_index: int
    camera_sample_size: int
    camera_tick_ms: int
    visual_update_interval_ms: int
    surface_poll_ms: int
    pause_debounce_ms: int
    play_retry_attempts: int
    play_retry_interval_ms: int
    recommend_progress_ratio: float
    weather_cache_ttl_seconds: int
    status_log_seconds: int
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    location_accuracy_meters: Optional[float] = None
    remember_credentials: bool = False

    @property
    def has_location(self) -> bool:
        return self.location_latitude is not None and self.location_longitude is not None


def load_config() -> AppConfig:
    base_dir = str(Path(__file__).resolve().parents[1])
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    file_log_level = os.getenv("FILE_LOG_LEVEL", "DEBUG").upper()
    log_dir = resolve_path(os.getenv("LOG_DIR", "logs"), base_dir)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(
        log_dir, f"ambient_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.log"
    )
    state_path = resolve_path(
        os.getenv("STATE_PATH", "data/ambient_player_state.json").strip(),
        base_dir,
    )
    gemini_api_key = os.getenv("GEMINI_API_KEY", "").strip()
    youtube_api_key = os.getenv("YOUTUBE_API_KEY", "").strip()
    llm_model = os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL).strip() or DEFAULT_LLM_MODEL
    gemini_base_url = os.getenv(
        "GEMINI_BASE_URL",
        "https://generativelanguage.googleapis.com/v1beta",
    ).strip()
    youtube_base_url = os.getenv(
        "YOUTUBE_BASE_URL",
        "https://www.googleapis.com/youtube/v3",
    ).strip()
    weather_base_url = os.getenv("WEATHER_BASE_URL", "https://api.weather.gov").strip()
    weather_user_agent = (
        os.getenv("WEATHER_USER_AGENT", "AmbientPlayer (local)").strip()
        or "AmbientPlayer (local)"
    )
    http_timeout_seconds = parse_int_env(
        "HTTP_TIMEOUT_SECONDS", 30, min_value=1, max_value=600
    )
    search_max_results = parse_int_env("SEARCH_MAX_RESULTS", 1, min_value=1, max_value=5)
    mic_enabled = env_flag("MIC_ENABLED", "1")
    mic_sample_rate = parse_int_env(
        "MIC_SAMPLE_RATE", 44100, min_value=8000, max_value=192000
    )
    mic_frame_size = parse_int_env("MIC_FRAME_SIZE", 2048, min_value=128, max_value=16384)
    audio_tick_ms = parse_int_env("AUDIO_TICK_MS", 50, min_value=10, max_value=50)
    camera_enabled = env_flag("CAMERA_ENABLED", "1")
    camera_index = parse_int_env("CAMERA_INDEX", 0, min_value=0, max_value=64)
    camera_sample_size = parse_int_env("CAMERA_SAMPLE_SIZE", 24, min_value=4, max_value=24)
    camera_tick_ms = parse_int_env("CAMERA_TICK_MS", 200, min_value=20, max_value=1000)
    visual_update_interval_ms = parse_int_env(
        "VISUAL_UPDATE_INTERVAL_MS", 600, min_value=0, max_value=60000
    )
    surface_poll_ms = parse_int_env("SURFACE_POLL_MS", 500, min_value=50, max_value=1000)
    pause_debounce_ms = parse_int_env(
        "PAUSE_DEBOUNCE_MS", 2000, min_value=0, max_value=30000
    )
    play_retry_attempts = parse_int_env("PLAY_RETRY_ATTEMPTS", 3, min_value=0, max_value=20)
    play_retry_interval_ms = parse_int_env(
        "PLAY_RETRY_INTERVAL_MS", 350, min_value=10, max_value=10000
    )
    recommend_progress_ratio = parse_float_env(
        "RECOMMEND_PROGRESS_RATIO", 0.5, min_value=0.0, max_value=1.0
    )
    weather_cache_ttl_seconds = parse_int_env(
        "WEATHER_CACHE_TTL_SECONDS", 600, min_value=0, max_value=86400
    )
    status_log_seconds = parse_int_env("STATUS_LOG_SECONDS", 30, min_value=0, max_value=3600)
    location_latitude = parse_optional_float_env("LOCATION_LATITUDE")
    location_longitude = parse_optional_float_env("LOCATION_LONGITUDE")
    location_accuracy_meters = parse_optional_float_env("LOCATION_ACCURACY_METERS")
    remember_credentials = env_flag("REMEMBER_CREDENTIALS", "0")
    return AppConfig(
        log_level=log_level,
        file_log_level=file_log_level,
        log_dir=log_dir,
        log_file=log_file,
        state_path=state_path,
        gemini_api_key=gemini_api_key,
        youtube_api_key=youtube_api_key,
        llm_model=llm_model,
        gemini_base_url=gemini_base_url,
        youtube_base_url=youtube_base_url,
        weather_base_url=weather_base_url,
        weather_user_agent=weather_user_agent,
        http_timeout_seconds=http_timeout_seconds,
        search_max_results=search_max_results,
        mic_enabled=mic_enabled,
        mic_sample_rate=mic_sample_rate,
        mic_frame_size=mic_frame_size,
        audio_tick_ms=audio_tick_ms,
        camera_enabled=camera_enabled,
        camera_index=camera_index,
        camera_sample_size=camera_sample_size,
        camera_tick_ms=camera_tick_ms,
        visual_update_interval_ms=visual_update_interval_ms,
        surface_poll_ms=surface_poll_ms,
        pause_debounce_ms=pause_debounce_ms,
        play_retry_attempts=play_retry_attempts,
        play_retry_interval_ms=play_retry_interval_ms,
        recommend_progress_ratio=recommend_progress_ratio,
        weather_cache_ttl_seconds=weather_cache_ttl_seconds,
        status_log_seconds=status_log_seconds,
        location_latitude=location_latitude,
        location_longitude=location_longitude,
        location_accuracy_meters=location_accuracy_meters,
        remember_credentials=remember_credentials,
    )
