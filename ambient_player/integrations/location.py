"""Location sensor fed from configured coordinates."""

from __future__ import annotations

from typing import Optional

from ..domain.sensors import SensorStatus
from ..domain.signals import Coordinates


class ConfiguredLocationSensor:
    """Reports fixed coordinates; UNSUPPORTED when none are configured."""

    def __init__(self, logger, coordinates: Optional[Coordinates] = None) -> None:
        self.logger = logger
        self._configured = coordinates
        self.status = SensorStatus.IDLE
        self.message: Optional[str] = None

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.status is not SensorStatus.ACTIVE:
            return None
        return self._configured

    def request_access(self) -> SensorStatus:
        if self.status in (SensorStatus.REQUESTING, SensorStatus.ACTIVE):
            return self.status
        if self._configured is None:
            self.status = SensorStatus.UNSUPPORTED
            self.message = "Set LOCATION_LATITUDE and LOCATION_LONGITUDE to enable location."
            self.logger.info("Location unavailable: no coordinates configured")
            return self.status
        self.status = SensorStatus.ACTIVE
        self.message = None
        self.logger.info(
            "Location active: %.3f, %.3f",
            self._configured.latitude,
            self._configured.longitude,
        )
        return self.status

    def update(self, coordinates: Optional[Coordinates]) -> bool:
        """Swap the coordinates; returns True when they changed."""
        changed = coordinates != self._configured
        self._configured = coordinates
        if coordinates is None and self.status is SensorStatus.ACTIVE:
            self.status = SensorStatus.UNSUPPORTED
        return changed

    def stop(self) -> None:
        self.status = SensorStatus.IDLE
        self.message = None
