"""Loudness envelope tracking and noise-level classification for microphone frames."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import math

import numpy as np


class NoiseLevel(str, Enum):
    QUIET = "Quiet"
    MODERATE = "Moderate"
    LOUD = "Loud"
    UNKNOWN = "Unknown"


_DESCRIPTORS = {
    NoiseLevel.QUIET: "Quiet room",
    NoiseLevel.MODERATE: "Moderate ambience",
    NoiseLevel.LOUD: "Noisy environment",
}


@dataclass(frozen=True)
class EnvelopeSettings:
    smoothing: float = 0.2
    emit_interval_ms: float = 500.0
    quiet_below: float = 0.03
    loud_from: float = 0.08


@dataclass(frozen=True)
class EnvelopeState:
    envelope: float | None = None
    last_emit_ms: float | None = None
    last_level: NoiseLevel = NoiseLevel.UNKNOWN


@dataclass(frozen=True)
class AudioReading:
    rms: float | None
    smoothed: float | None
    noise_level: NoiseLevel
    descriptor: str


UNKNOWN_READING = AudioReading(
    rms=None,
    smoothed=None,
    noise_level=NoiseLevel.UNKNOWN,
    descriptor="Unknown ambience",
)


def classify_noise(envelope: float, settings: EnvelopeSettings = EnvelopeSettings()) -> NoiseLevel:
    if envelope < settings.quiet_below:
        return NoiseLevel.QUIET
    if envelope < settings.loud_from:
        return NoiseLevel.MODERATE
    return NoiseLevel.LOUD


def describe_noise(level: NoiseLevel) -> str:
    return _DESCRIPTORS.get(level, "Unknown ambience")


def frame_rms(frame: np.ndarray | object) -> float:
    """Root-mean-square amplitude of a frame of samples in [-1, 1]."""
    samples = np.asarray(frame, dtype=np.float64).reshape(-1)
    if samples.size == 0:
        return 0.0
    value = float(np.sqrt(np.mean(np.square(samples))))
    if not math.isfinite(value):
        return 0.0
    return value


def update_envelope(
    state: EnvelopeState,
    rms: float,
    now_ms: float,
    settings: EnvelopeSettings = EnvelopeSettings(),
) -> tuple[EnvelopeState, AudioReading | None]:
    """Smooth one RMS value into the envelope.

    Returns the next state and a reading when one should be emitted: either the
    emit interval elapsed or the noise bucket changed. Otherwise the reading is
    None so consumers are not flooded with no-op updates.
    """
    previous = rms if state.envelope is None else state.envelope
    envelope = previous + settings.smoothing * (rms - previous)
    level = classify_noise(envelope, settings)

    interval_elapsed = (
        state.last_emit_ms is None or now_ms - state.last_emit_ms >= settings.emit_interval_ms
    )
    if not interval_elapsed and level == state.last_level:
        return replace(state, envelope=envelope), None

    reading = AudioReading(
        rms=rms,
        smoothed=envelope,
        noise_level=level,
        descriptor=describe_noise(level),
    )
    return EnvelopeState(envelope=envelope, last_emit_ms=now_ms, last_level=level), reading


class AudioEnvelopeTracker:
    """Owns the loudness envelope for one microphone stream."""

    def __init__(self, settings: EnvelopeSettings | None = None) -> None:
        self.settings = settings or EnvelopeSettings()
        self.state = EnvelopeState()
        self.latest: AudioReading = UNKNOWN_READING

    def process(self, frame, now_ms: float) -> tuple[float, AudioReading | None]:
        """Consume one frame; return its raw RMS and the emitted reading, if any."""
        rms = frame_rms(frame)
        self.state, reading = update_envelope(self.state, rms, now_ms, self.settings)
        if reading is not None:
            self.latest = reading
        return rms, reading

    @property
    def noise_level(self) -> NoiseLevel:
        return self.latest.noise_level

    def reset(self) -> None:
        self.state = EnvelopeState()
        self.latest = UNKNOWN_READING
