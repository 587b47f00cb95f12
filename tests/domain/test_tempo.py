from ambient_player.domain.tempo import (
    TempoEstimator,
    TempoSettings,
    TempoState,
    adaptive_threshold,
    update_tempo,
)

FRAME_MS = 50


def _feed_pulses(estimator, *, period_ms, pulses, start_ms=0):
    now = start_ms
    end = start_ms + period_ms * (pulses + 1)
    while now < end:
        is_pulse = now > start_ms and (now - start_ms) % period_ms == 0
        estimator.update(0.3 if is_pulse else 0.01, float(now))
        now += FRAME_MS
    return now


def test_periodic_pulses_converge_to_expected_bpm():
    estimator = TempoEstimator()

    _feed_pulses(estimator, period_ms=500, pulses=6)

    assert estimator.bpm == 120


def test_slower_pulse_train_is_measured_too():
    estimator = TempoEstimator()

    _feed_pulses(estimator, period_ms=750, pulses=7)

    assert estimator.bpm == 80


def test_tempo_goes_absent_after_idle_room():
    estimator = TempoEstimator()
    now = _feed_pulses(estimator, period_ms=500, pulses=6)
    assert estimator.bpm == 120

    last_peak = estimator.state.last_peak_ms
    while now <= last_peak + 4000:
        estimator.update(0.01, float(now))
        now += FRAME_MS
    estimator.update(0.01, float(now))

    assert estimator.bpm is None


def test_threshold_has_a_floor():
    settings = TempoSettings()
    assert adaptive_threshold((), settings) == settings.threshold_floor
    assert adaptive_threshold((0.0, 0.0, 0.0), settings) == settings.threshold_floor
    assert adaptive_threshold((0.1, 0.3), settings) > 0.2


def test_double_trigger_inside_one_beat_is_ignored():
    settings = TempoSettings()
    state = TempoState(
        envelope=0.2,
        window=(0.01,) * 10,
        previous=0.2,
        rising=True,
        peaks=(1000.0,),
        last_peak_ms=1000.0,
    )

    next_state = update_tempo(state, 0.0, 1100.0, settings)

    assert next_state.peaks == (1000.0,)


def test_long_gap_resets_peak_history():
    settings = TempoSettings()
    state = TempoState(
        envelope=0.2,
        window=(0.01,) * 10,
        previous=0.2,
        rising=True,
        peaks=(0.0, 500.0, 1000.0),
        last_peak_ms=1000.0,
    )

    next_state = update_tempo(state, 0.0, 3500.0, settings)

    assert next_state.peaks == (3500.0,)
