"""Domain logic for ambient signal processing and playlist rules."""

from .audio_signal import AudioEnvelopeTracker, AudioReading, NoiseLevel, classify_noise
from .playlist import QueueItem, index_of, merge_unique
from .profile import TasteProfile, update_profile
from .query_policy import (
    BANNED_TERMS,
    TrackQuery,
    build_query_from_parsed,
    fallback_query,
    is_specific_song_query,
    resolve_query,
)
from .sensors import SensorStatus, sensor_value, status_label
from .signals import (
    Coordinates,
    SignalAggregator,
    SignalSnapshot,
    WeatherForecast,
    WeatherPeriod,
    time_of_day_label,
)
from .tempo import TempoEstimator
from .visual import (
    ColorTemperature,
    ColorTone,
    LightLevel,
    VisualDescriptors,
    VisualFeatureSampler,
)

__all__ = [
    "AudioEnvelopeTracker",
    "AudioReading",
    "BANNED_TERMS",
    "ColorTemperature",
    "ColorTone",
    "Coordinates",
    "LightLevel",
    "NoiseLevel",
    "QueueItem",
    "SensorStatus",
    "SignalAggregator",
    "SignalSnapshot",
    "TasteProfile",
    "TempoEstimator",
    "TrackQuery",
    "VisualDescriptors",
    "VisualFeatureSampler",
    "WeatherForecast",
    "WeatherPeriod",
    "build_query_from_parsed",
    "classify_noise",
    "fallback_query",
    "index_of",
    "is_specific_song_query",
    "merge_unique",
    "resolve_query",
    "sensor_value",
    "status_label",
    "time_of_day_label",
    "update_profile",
]
