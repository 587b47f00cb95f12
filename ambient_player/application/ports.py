"""Application-level ports for sensors, collaborators, and the playback surface."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from ..domain.playlist import VideoResult
from ..domain.sensors import SensorStatus
from ..domain.signals import Coordinates, WeatherForecast
from .events import ControllerEvent


class RecommendationOraclePort(Protocol):
    """Asks an external model for one track given signals and a taste profile."""

    def recommend(
        self,
        signals: dict[str, Any],
        profile: dict[str, Any],
    ) -> Optional[dict[str, Any]]: ...


class TrackSearchPort(Protocol):
    def search(self, query: str, *, max_results: int = 1) -> list[VideoResult]: ...


class WeatherPort(Protocol):
    def forecast(self, latitude: float, longitude: float) -> WeatherForecast: ...


class PlaybackSurfacePort(Protocol):
    """Drives an external player; reports lifecycle changes as controller events."""

    def acquire(self) -> list[ControllerEvent]: ...

    def release(self) -> None: ...

    def cue(self, video_id: str) -> None: ...

    def load(self, video_id: str) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def poll(self) -> list[ControllerEvent]: ...


class SensorPort(Protocol):
    status: SensorStatus
    message: Optional[str]

    def request_access(self) -> SensorStatus: ...

    def stop(self) -> None: ...


class FrameSensorPort(SensorPort, Protocol):
    def read_frame(self) -> Any: ...


class LocationSensorPort(SensorPort, Protocol):
    @property
    def coordinates(self) -> Optional[Coordinates]: ...
