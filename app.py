"""Entrypoint facade for the ambient player."""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Any, Mapping, Optional

from ambient_player.application.bootstrap import AppServices, initialize_app_services
from ambient_player.config import AppConfig, load_config
from ambient_player.logging_config import setup_logging
from ambient_player.utils import env_flag

CONFIG = load_config()
logger = setup_logging(CONFIG)

SKIP_APP_INIT = env_flag("AMBIENT_SKIP_APP_INIT")

logger.info("Starting app")
logger.info("Log file: %s", CONFIG.log_file)
logger.debug(
    "Log config: LOG_LEVEL=%s FILE_LOG_LEVEL=%s LOG_DIR=%s STATE_PATH=%s LLM_MODEL=%s "
    "MIC_ENABLED=%s MIC_SAMPLE_RATE=%s MIC_FRAME_SIZE=%s AUDIO_TICK_MS=%s "
    "CAMERA_ENABLED=%s CAMERA_INDEX=%s CAMERA_TICK_MS=%s VISUAL_UPDATE_INTERVAL_MS=%s "
    "SURFACE_POLL_MS=%s PAUSE_DEBOUNCE_MS=%s PLAY_RETRY_ATTEMPTS=%s "
    "PLAY_RETRY_INTERVAL_MS=%s RECOMMEND_PROGRESS_RATIO=%s WEATHER_CACHE_TTL_SECONDS=%s "
    "STATUS_LOG_SECONDS=%s "
    "LOCATION_CONFIGURED=%s REMEMBER_CREDENTIALS=%s",
    CONFIG.log_level,
    CONFIG.file_log_level,
    CONFIG.log_dir,
    CONFIG.state_path,
    CONFIG.llm_model,
    CONFIG.mic_enabled,
    CONFIG.mic_sample_rate,
    CONFIG.mic_frame_size,
    CONFIG.audio_tick_ms,
    CONFIG.camera_enabled,
    CONFIG.camera_index,
    CONFIG.camera_tick_ms,
    CONFIG.visual_update_interval_ms,
    CONFIG.surface_poll_ms,
    CONFIG.pause_debounce_ms,
    CONFIG.play_retry_attempts,
    CONFIG.play_retry_interval_ms,
    CONFIG.recommend_progress_ratio,
    CONFIG.weather_cache_ttl_seconds,
    CONFIG.status_log_seconds,
    CONFIG.has_location,
    CONFIG.remember_credentials,
)


def build_services(
    *,
    microphone: bool = True,
    camera: bool = True,
    config: AppConfig | None = None,
    profile_updates: Optional[Mapping[str, Any]] = None,
) -> AppServices:
    base = config or CONFIG
    effective = dataclasses.replace(
        base,
        mic_enabled=base.mic_enabled and microphone,
        camera_enabled=base.camera_enabled and camera,
    )
    return initialize_app_services(
        config=effective, logger=logger, profile_updates=profile_updates
    )


async def _serve(
    services: AppServices,
    *,
    duration_seconds: Optional[float],
    recommend: bool,
) -> None:
    runtime = services.runtime
    await runtime.start()
    if recommend:
        runtime.request_recommendation()
    await runtime.run(duration_seconds=duration_seconds)


def launch(
    *,
    microphone: bool = True,
    camera: bool = True,
    duration_seconds: Optional[float] = None,
    recommend: bool = False,
    profile_updates: Optional[Mapping[str, Any]] = None,
) -> None:
    if SKIP_APP_INIT:
        logger.info("AMBIENT_SKIP_APP_INIT enabled; launch skipped")
        return
    services = build_services(
        microphone=microphone, camera=camera, profile_updates=profile_updates
    )
    logger.info("Launching ambient player")
    try:
        asyncio.run(
            _serve(services, duration_seconds=duration_seconds, recommend=recommend)
        )
    except KeyboardInterrupt:
        logger.info("Interrupted; player stopped")


if __name__ == "__main__":
    launch()
