"""Aggregation of sensor, weather, and playlist signals into one immutable snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from .audio_signal import UNKNOWN_READING, AudioReading
from .sensors import SensorStatus, sensor_value
from .visual import UNKNOWN_DESCRIPTORS, VisualDescriptors


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None


@dataclass(frozen=True)
class WeatherPeriod:
    name: Optional[str] = None
    start_time: Optional[str] = None
    is_daytime: Optional[bool] = None
    temperature: Optional[float] = None
    temperature_unit: Optional[str] = None
    short_forecast: Optional[str] = None
    detailed_forecast: Optional[str] = None
    wind_speed: Optional[str] = None
    wind_direction: Optional[str] = None
    icon: Optional[str] = None


@dataclass(frozen=True)
class WeatherForecast:
    summary: str
    temperature: Optional[float] = None
    temperature_unit: Optional[str] = None
    short_forecast: Optional[str] = None
    detailed_forecast: Optional[str] = None
    updated_at: Optional[str] = None
    periods: tuple[WeatherPeriod, ...] = ()


@dataclass(frozen=True)
class WeatherSignal:
    summary: str
    display: str
    temperature_value: Optional[float]
    temperature_unit: Optional[str]


@dataclass(frozen=True)
class SignalSnapshot:
    period: str
    local_time: str
    location_display: str
    coordinates: Optional[Coordinates]
    weather: WeatherSignal
    noise_level: str
    tempo_bpm: Optional[int]
    ambience_descriptor: str
    lighting: str
    color_tone: str
    color_temperature: str
    scene_mood: str
    past_tracks: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        """Nested JSON-ready structure sent to the recommendation oracle."""
        coordinates = None
        if self.coordinates is not None:
            coordinates = {
                "latitude": self.coordinates.latitude,
                "longitude": self.coordinates.longitude,
                "accuracyMeters": self.coordinates.accuracy_meters,
            }
        return {
            "context": {
                "time": {"period": self.period, "localTime": self.local_time},
                "location": {
                    "display": self.location_display,
                    "coordinates": coordinates,
                },
                "weather": {
                    "summary": self.weather.summary,
                    "temperature": {
                        "value": self.weather.temperature_value,
                        "unit": self.weather.temperature_unit,
                    },
                    "display": self.weather.display,
                },
            },
            "environment": {
                "ambience": {
                    "noiseLevel": self.noise_level,
                    "tempoBpm": self.tempo_bpm,
                    "descriptor": self.ambience_descriptor,
                },
                "visuals": {
                    "lighting": self.lighting,
                    "colorTone": self.color_tone,
                    "colorTemperature": self.color_temperature,
                    "sceneMood": self.scene_mood,
                },
            },
            "playlist": {"pastTracks": [{"name": name} for name in self.past_tracks]},
        }


def time_of_day_label(moment: datetime) -> str:
    hour = moment.hour
    if 5 <= hour < 12:
        return "Morning"
    if 12 <= hour < 17:
        return "Afternoon"
    if 17 <= hour < 21:
        return "Evening"
    return "Night"


def format_clock_time(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def format_location(coordinates: Optional[Coordinates]) -> str:
    if coordinates is None:
        return "Unknown"
    accuracy = ""
    if coordinates.accuracy_meters is not None:
        accuracy = f" ±{int(round(coordinates.accuracy_meters))}m"
    return f"{coordinates.latitude:.3f}, {coordinates.longitude:.3f}{accuracy}"


def format_weather_signal(forecast: Optional[WeatherForecast]) -> WeatherSignal:
    summary = forecast.summary if forecast is not None else "Unknown"
    value = forecast.temperature if forecast is not None else None
    unit = forecast.temperature_unit if forecast is not None else None
    display = summary
    if summary != "Unknown" and value is not None and unit:
        reading = f"{_format_number(value)}°{unit}"
        if not summary.endswith(reading):
            display = f"{summary}, {reading}"
    return WeatherSignal(
        summary=summary,
        display=display,
        temperature_value=value,
        temperature_unit=unit,
    )


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_tempo(status: SensorStatus, bpm: Optional[int]) -> str:
    if status is SensorStatus.ACTIVE:
        return f"{bpm} BPM" if bpm is not None else "Listening..."
    return sensor_value(status, "")


def format_color_tone(status: SensorStatus, descriptors: VisualDescriptors) -> str:
    return sensor_value(
        status,
        f"{descriptors.color_temperature.value} · {descriptors.color_tone.value}",
    )


class SignalAggregator:
    """Collects the latest value from every signal source.

    Sensors push their readings with the ``update_*`` methods. ``snapshot`` builds
    a fresh immutable SignalSnapshot on every call; a sensor that is not ACTIVE
    contributes "Unknown" (or None) rather than a stale or zero value.
    """

    def __init__(self) -> None:
        self.microphone_status = SensorStatus.IDLE
        self.camera_status = SensorStatus.IDLE
        self.location_status = SensorStatus.IDLE
        self.audio: AudioReading = UNKNOWN_READING
        self.tempo_bpm: Optional[int] = None
        self.visuals: VisualDescriptors = UNKNOWN_DESCRIPTORS
        self.coordinates: Optional[Coordinates] = None
        self.forecast: Optional[WeatherForecast] = None

    def update_audio(self, reading: AudioReading, tempo_bpm: Optional[int]) -> None:
        self.audio = reading
        self.tempo_bpm = tempo_bpm

    def update_visuals(self, descriptors: VisualDescriptors) -> None:
        self.visuals = descriptors

    def update_location(self, coordinates: Optional[Coordinates]) -> None:
        self.coordinates = coordinates

    def update_weather(self, forecast: Optional[WeatherForecast]) -> None:
        self.forecast = forecast

    def snapshot(self, now: datetime, past_tracks: Iterable[str] = ()) -> SignalSnapshot:
        mic_active = self.microphone_status is SensorStatus.ACTIVE
        camera_active = self.camera_status is SensorStatus.ACTIVE
        location_active = (
            self.location_status is SensorStatus.ACTIVE and self.coordinates is not None
        )
        coordinates = self.coordinates if location_active else None
        return SignalSnapshot(
            period=time_of_day_label(now),
            local_time=format_clock_time(now),
            location_display=format_location(coordinates) if location_active else "Unknown",
            coordinates=coordinates,
            weather=format_weather_signal(self.forecast),
            noise_level=self.audio.noise_level.value if mic_active else "Unknown",
            tempo_bpm=self.tempo_bpm if mic_active else None,
            ambience_descriptor=(
                self.audio.descriptor if mic_active else UNKNOWN_READING.descriptor
            ),
            lighting=self.visuals.lighting.value if camera_active else "Unknown",
            color_tone=self.visuals.color_tone.value if camera_active else "Unknown",
            color_temperature=(
                self.visuals.color_temperature.value if camera_active else "Unknown"
            ),
            scene_mood=self.visuals.mood if camera_active else "Unknown",
            past_tracks=tuple(past_tracks),
        )

    def display_values(self) -> dict[str, str]:
        """Human-readable values for each signal, as shown on a dashboard."""
        return {
            "ambient_noise": sensor_value(
                self.microphone_status, self.audio.noise_level.value
            ),
            "tempo": format_tempo(self.microphone_status, self.tempo_bpm),
            "lighting": sensor_value(self.camera_status, self.visuals.lighting.value),
            "color_tone": format_color_tone(self.camera_status, self.visuals),
            "mood": sensor_value(self.camera_status, self.visuals.mood),
            "location": sensor_value(self.location_status, format_location(self.coordinates)),
            "weather": sensor_value(
                self.location_status, format_weather_signal(self.forecast).display
            ),
        }
