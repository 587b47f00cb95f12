"""Application layer orchestration."""

from .events import RecommendationStatus, SurfaceState
from .playback_controller import (
    ControllerSettings,
    ControllerState,
    Phase,
    PlaybackQueueController,
    transition,
)
from .ports import (
    FrameSensorPort,
    LocationSensorPort,
    PlaybackSurfacePort,
    RecommendationOraclePort,
    SensorPort,
    TrackSearchPort,
    WeatherPort,
)
from .recommendation import RecommendationCycle, RecommendationOutcome

__all__ = [
    "ControllerSettings",
    "ControllerState",
    "FrameSensorPort",
    "LocationSensorPort",
    "Phase",
    "PlaybackQueueController",
    "PlaybackSurfacePort",
    "RecommendationCycle",
    "RecommendationOraclePort",
    "RecommendationOutcome",
    "RecommendationStatus",
    "SensorPort",
    "SurfaceState",
    "TrackSearchPort",
    "WeatherPort",
    "transition",
]
