import numpy as np

from ambient_player.domain.audio_signal import (
    AudioEnvelopeTracker,
    EnvelopeSettings,
    EnvelopeState,
    NoiseLevel,
    classify_noise,
    frame_rms,
    update_envelope,
)


def test_classify_noise_buckets_are_fixed():
    assert classify_noise(0.02) is NoiseLevel.QUIET
    assert classify_noise(0.05) is NoiseLevel.MODERATE
    assert classify_noise(0.10) is NoiseLevel.LOUD


def test_classification_depends_only_on_latest_envelope():
    settings = EnvelopeSettings()
    loud_history = EnvelopeState(envelope=0.5, last_emit_ms=0.0, last_level=NoiseLevel.LOUD)
    quiet_history = EnvelopeState(envelope=0.0, last_emit_ms=0.0, last_level=NoiseLevel.QUIET)

    _, from_loud = update_envelope(loud_history, 0.05, 10_000.0, settings)
    _, from_quiet = update_envelope(quiet_history, 0.05, 10_000.0, settings)

    assert from_loud.smoothed > from_quiet.smoothed
    assert from_loud.noise_level is classify_noise(from_loud.smoothed)
    assert from_quiet.noise_level is classify_noise(from_quiet.smoothed)


def test_frame_rms_handles_empty_and_constant_frames():
    assert frame_rms(np.array([], dtype=np.float32)) == 0.0
    assert abs(frame_rms(np.full(512, -0.5, dtype=np.float32)) - 0.5) < 1e-6


def test_tracker_emits_on_interval_or_level_change():
    tracker = AudioEnvelopeTracker()
    quiet = np.full(256, 0.01, dtype=np.float32)
    loud = np.full(256, 0.9, dtype=np.float32)

    _, first = tracker.process(quiet, 0.0)
    assert first is not None
    assert first.noise_level is NoiseLevel.QUIET
    assert first.descriptor == "Quiet room"

    _, repeat = tracker.process(quiet, 50.0)
    assert repeat is None

    _, changed = tracker.process(loud, 100.0)
    assert changed is not None
    assert changed.noise_level is not NoiseLevel.QUIET

    _, later = tracker.process(quiet, 100.0 + 500.0)
    assert later is not None
    assert tracker.latest is later


def test_tracker_reset_returns_to_unknown():
    tracker = AudioEnvelopeTracker()
    tracker.process(np.full(128, 0.2, dtype=np.float32), 0.0)
    assert tracker.noise_level is NoiseLevel.LOUD

    tracker.reset()

    assert tracker.noise_level is NoiseLevel.UNKNOWN
    assert tracker.latest.descriptor == "Unknown ambience"
