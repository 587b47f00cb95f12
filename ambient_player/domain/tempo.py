"""Heuristic tempo estimation from periodic loudness peaks."""

from __future__ import annotations

from dataclasses import dataclass, replace
import math


@dataclass(frozen=True)
class TempoSettings:
    envelope_smoothing: float = 0.5
    window_size: int = 120
    threshold_floor: float = 0.02
    stddev_factor: float = 0.6
    min_interval_ms: float = 300.0
    max_interval_ms: float = 2000.0
    history_size: int = 8
    min_peaks: int = 4
    update_interval_ms: float = 600.0

    @property
    def idle_timeout_ms(self) -> float:
        return self.max_interval_ms * 2


@dataclass(frozen=True)
class TempoState:
    envelope: float | None = None
    window: tuple[float, ...] = ()
    previous: float | None = None
    rising: bool = False
    peaks: tuple[float, ...] = ()
    last_peak_ms: float | None = None
    last_update_ms: float | None = None
    bpm: int | None = None


def adaptive_threshold(window: tuple[float, ...], settings: TempoSettings) -> float:
    if not window:
        return settings.threshold_floor
    mean = math.fsum(window) / len(window)
    variance = math.fsum((value - mean) ** 2 for value in window) / len(window)
    return max(settings.threshold_floor, mean + math.sqrt(variance) * settings.stddev_factor)


def _register_peak(state: TempoState, now_ms: float, settings: TempoSettings) -> TempoState:
    last_peak = state.last_peak_ms
    if last_peak is not None and now_ms - last_peak < settings.min_interval_ms:
        # Double trigger inside one beat.
        return state
    if last_peak is None or now_ms - last_peak <= settings.max_interval_ms:
        peaks = (state.peaks + (now_ms,))[-settings.history_size :]
    else:
        peaks = (now_ms,)
    return replace(state, peaks=peaks, last_peak_ms=now_ms)


def _valid_intervals(peaks: tuple[float, ...], settings: TempoSettings) -> list[float]:
    intervals = []
    for earlier, later in zip(peaks, peaks[1:]):
        delta = later - earlier
        if settings.min_interval_ms <= delta <= settings.max_interval_ms:
            intervals.append(delta)
    return intervals


def _to_bpm(intervals: list[float]) -> int:
    mean_interval = math.fsum(intervals) / len(intervals)
    # Half-up rounding, not banker's rounding.
    return int(math.floor(60000.0 / mean_interval + 0.5))


def update_tempo(
    state: TempoState,
    rms: float,
    now_ms: float,
    settings: TempoSettings = TempoSettings(),
) -> TempoState:
    """Fold one raw RMS sample into the tempo state."""
    previous_envelope = rms if state.envelope is None else state.envelope
    envelope = previous_envelope + settings.envelope_smoothing * (rms - previous_envelope)
    window = (state.window + (envelope,))[-settings.window_size :]
    threshold = adaptive_threshold(window, settings)

    next_state = replace(state, envelope=envelope, window=window)
    if state.previous is not None:
        is_rising = envelope > state.previous
        if state.rising and not is_rising and state.previous >= threshold:
            next_state = _register_peak(next_state, now_ms, settings)
        next_state = replace(next_state, rising=is_rising)
    next_state = replace(next_state, previous=envelope)

    due = (
        next_state.last_update_ms is None
        or now_ms - next_state.last_update_ms >= settings.update_interval_ms
    )
    if len(next_state.peaks) >= settings.min_peaks and due:
        intervals = _valid_intervals(next_state.peaks, settings)
        bpm = _to_bpm(intervals) if intervals else None
        next_state = replace(next_state, bpm=bpm, last_update_ms=now_ms)

    if (
        next_state.last_peak_ms is not None
        and now_ms - next_state.last_peak_ms > settings.idle_timeout_ms
    ):
        next_state = replace(next_state, bpm=None)
    return next_state


class TempoEstimator:
    """Tracks beats-per-minute for one microphone stream."""

    def __init__(self, settings: TempoSettings | None = None) -> None:
        self.settings = settings or TempoSettings()
        self.state = TempoState()

    def update(self, rms: float, now_ms: float) -> int | None:
        self.state = update_tempo(self.state, rms, now_ms, self.settings)
        return self.state.bpm

    @property
    def bpm(self) -> int | None:
        return self.state.bpm

    def reset(self) -> None:
        self.state = TempoState()
