"""Sensor lifecycle status and the display values derived from it."""

from __future__ import annotations

from enum import Enum


class SensorStatus(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    ACTIVE = "active"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"
    ERROR = "error"


_STATUS_LABELS = {
    SensorStatus.ACTIVE: "Active",
    SensorStatus.REQUESTING: "Requesting",
    SensorStatus.DENIED: "Denied",
    SensorStatus.UNSUPPORTED: "Unsupported",
    SensorStatus.ERROR: "Error",
}

_INACTIVE_VALUES = {
    SensorStatus.DENIED: "Permission denied",
    SensorStatus.UNSUPPORTED: "Unsupported",
    SensorStatus.ERROR: "Unavailable",
}

# Values that carry no information for the recommendation oracle.
UNINFORMATIVE_VALUES = frozenset(
    {
        "",
        "Unknown",
        "Unknown ambience",
        "Off",
        "Requesting",
        "Unavailable",
        "Permission denied",
        "Unsupported",
    }
)


def status_label(status: SensorStatus) -> str:
    return _STATUS_LABELS.get(status, "Off")


def sensor_value(status: SensorStatus, active_value: str) -> str:
    """Return the active value, or a human-readable reason the sensor has none."""
    if status is SensorStatus.ACTIVE:
        return active_value
    if status is SensorStatus.REQUESTING:
        return "Requesting"
    return _INACTIVE_VALUES.get(status, "Off")


def is_useful_signal(value: str | None) -> bool:
    return bool(value) and value.strip() not in UNINFORMATIVE_VALUES
