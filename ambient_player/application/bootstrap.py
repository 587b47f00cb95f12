"""Application bootstrap assembly for sensors, clients, storage, and the runtime."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..config import AppConfig
from ..domain.audio_signal import AudioEnvelopeTracker
from ..domain.profile import TasteProfile, update_profile
from ..domain.signals import Coordinates, SignalAggregator
from ..domain.tempo import TempoEstimator
from ..domain.visual import VisualFeatureSampler, VisualSettings
from ..integrations.camera import CameraSensor
from ..integrations.gemini import GeminiOracle
from ..integrations.location import ConfiguredLocationSensor
from ..integrations.microphone import MicrophoneSensor
from ..integrations.vlc_surface import VlcPlaybackSurface
from ..integrations.weather import WeatherClient
from ..integrations.youtube_search import YouTubeSearchClient
from ..storage.state_repository import Credentials, PlayerSettings, StateRepository
from .events import RecommendationStatus
from .playback_controller import ControllerSettings, PlaybackQueueController
from .recommendation import RecommendationCycle
from .runtime import AmbientRuntime


@dataclass(frozen=True)
class AppServices:
    state_repository: StateRepository
    profile: TasteProfile
    oracle: GeminiOracle
    search: YouTubeSearchClient
    weather: WeatherClient
    controller: PlaybackQueueController
    cycle: RecommendationCycle
    aggregator: SignalAggregator
    surface: VlcPlaybackSurface
    microphone: Optional[MicrophoneSensor]
    camera: Optional[CameraSensor]
    location: ConfiguredLocationSensor
    runtime: AmbientRuntime


def resolve_credentials(config: AppConfig, stored: Credentials) -> Credentials:
    """Environment keys win; remembered keys fill in whatever is missing."""
    return Credentials(
        gemini_api_key=config.gemini_api_key or stored.gemini_api_key,
        youtube_api_key=config.youtube_api_key or stored.youtube_api_key,
    )


def configured_coordinates(config: AppConfig) -> Optional[Coordinates]:
    if not config.has_location:
        return None
    return Coordinates(
        latitude=float(config.location_latitude),
        longitude=float(config.location_longitude),
        accuracy_meters=config.location_accuracy_meters,
    )


def initialize_app_services(
    *,
    config: AppConfig,
    logger,
    surface: VlcPlaybackSurface | None = None,
    microphone: MicrophoneSensor | None = None,
    camera: CameraSensor | None = None,
    profile_updates: Mapping[str, Any] | None = None,
) -> AppServices:
    """Construct all runtime services and return a typed service bundle."""
    state_repository = StateRepository(config.state_path, logger)
    stored_settings = state_repository.load_settings()
    credentials = resolve_credentials(config, state_repository.load_credentials())
    state_repository.save_settings(
        PlayerSettings(
            llm_model=config.llm_model,
            onboarding_complete=stored_settings.onboarding_complete or not credentials.is_empty,
            remember_credentials=config.remember_credentials,
        ),
        credentials,
    )
    profile = state_repository.load_profile()
    if profile_updates:
        updated = update_profile(profile, profile_updates)
        if updated != profile:
            state_repository.save_profile(updated)
            logger.info(
                "Taste profile updated (genres=%s, excluded=%s, moods=%s)",
                ", ".join(updated.favorite_genres) or "-",
                ", ".join(updated.excluded_genres) or "-",
                ", ".join(updated.primary_moods),
            )
        profile = updated
    initial_queue = state_repository.load_queue()
    logger.info(
        "Player state path: %s (queue=%s items)", config.state_path, len(initial_queue)
    )

    oracle = GeminiOracle(
        api_key=credentials.gemini_api_key,
        base_url=config.gemini_base_url,
        model=config.llm_model,
        timeout_seconds=config.http_timeout_seconds,
    )
    search = YouTubeSearchClient(
        api_key=credentials.youtube_api_key,
        base_url=config.youtube_base_url,
        timeout_seconds=config.http_timeout_seconds,
        default_max_results=config.search_max_results,
    )
    weather = WeatherClient(
        base_url=config.weather_base_url,
        user_agent=config.weather_user_agent,
        timeout_seconds=config.http_timeout_seconds,
        cache_ttl_seconds=config.weather_cache_ttl_seconds,
        logger=logger,
    )

    if oracle.enabled and search.enabled:
        recommendation_status = RecommendationStatus.IDLE
        logger.info("Recommendations enabled (model=%s)", oracle.model)
    else:
        recommendation_status = RecommendationStatus.DISABLED
        logger.warning(
            "Recommendations are disabled; set GEMINI_API_KEY and YOUTUBE_API_KEY to enable them."
        )

    controller = PlaybackQueueController(
        logger,
        settings=ControllerSettings(
            pause_debounce_ms=config.pause_debounce_ms,
            play_retry_attempts=config.play_retry_attempts,
            play_retry_interval_ms=config.play_retry_interval_ms,
            recommend_progress_ratio=config.recommend_progress_ratio,
        ),
        initial_queue=initial_queue,
        recommendation_status=recommendation_status,
    )
    cycle = RecommendationCycle(oracle, search, logger)
    aggregator = SignalAggregator()

    if surface is None:
        surface = VlcPlaybackSurface(logger)
    if microphone is None and config.mic_enabled:
        microphone = MicrophoneSensor(
            logger,
            sample_rate=config.mic_sample_rate,
            frame_size=config.mic_frame_size,
        )
    if camera is None and config.camera_enabled:
        camera = CameraSensor(
            logger,
            index=config.camera_index,
            sample_size=config.camera_sample_size,
        )
    location = ConfiguredLocationSensor(logger, configured_coordinates(config))

    runtime = AmbientRuntime(
        logger=logger,
        controller=controller,
        cycle=cycle,
        aggregator=aggregator,
        surface=surface,
        repository=state_repository,
        profile=profile,
        microphone=microphone,
        camera=camera,
        location=location,
        weather=weather,
        envelope=AudioEnvelopeTracker(),
        tempo=TempoEstimator(),
        visual_sampler=VisualFeatureSampler(
            VisualSettings(update_interval_ms=config.visual_update_interval_ms)
        ),
        audio_tick_ms=config.audio_tick_ms,
        camera_tick_ms=config.camera_tick_ms,
        surface_poll_ms=config.surface_poll_ms,
        weather_refresh_seconds=config.weather_cache_ttl_seconds,
        status_log_seconds=config.status_log_seconds,
    )

    return AppServices(
        state_repository=state_repository,
        profile=profile,
        oracle=oracle,
        search=search,
        weather=weather,
        controller=controller,
        cycle=cycle,
        aggregator=aggregator,
        surface=surface,
        microphone=microphone,
        camera=camera,
        location=location,
        runtime=runtime,
    )
