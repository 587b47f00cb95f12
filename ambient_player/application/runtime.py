"""Cooperative asyncio runtime that drives sensors, the controller, and the surface."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Callable, Optional

from ..domain.audio_signal import AudioEnvelopeTracker
from ..domain.profile import TasteProfile
from ..domain.sensors import SensorStatus, status_label
from ..domain.signals import Coordinates, SignalAggregator, SignalSnapshot
from ..domain.tempo import TempoEstimator
from ..domain.visual import VisualFeatureSampler
from ..errors import SurfaceFault, WeatherFailure
from .events import (
    CancelRetry,
    ControllerEffect,
    ControllerEvent,
    CueVideo,
    ItemRemoved,
    ItemSelected,
    ItemsEnqueued,
    LoadVideo,
    PauseVideo,
    PersistQueue,
    PlayVideo,
    QueueCleared,
    QueueNext,
    QueuePrevious,
    RecommendationRequested,
    RecommendationStatus,
    RecommendationStatusChanged,
    ReportError,
    RequestRecommendation,
    RetryTimerFired,
    ScheduleRetry,
    SessionStarted,
    SurfaceFailed,
    TransportToggled,
)
from .playback_controller import PlaybackQueueController
from .ports import (
    FrameSensorPort,
    LocationSensorPort,
    PlaybackSurfacePort,
    WeatherPort,
)
from .recommendation import RecommendationCycle, RecommendationOutcome

WEATHER_REFRESH_MIN_SECONDS = 60.0


class AmbientRuntime:
    """Owns the event loop side of the player.

    Every controller event goes through ``dispatch``, which applies it and then
    executes the returned effects in order. Sensor loops, the surface poll loop
    and the weather refresh run as tasks on the same loop; blocking device reads
    and HTTP calls are pushed to worker threads.
    """

    def __init__(
        self,
        *,
        logger,
        controller: PlaybackQueueController,
        cycle: RecommendationCycle,
        aggregator: SignalAggregator,
        surface: PlaybackSurfacePort,
        repository=None,
        profile: TasteProfile | None = None,
        microphone: FrameSensorPort | None = None,
        camera: FrameSensorPort | None = None,
        location: LocationSensorPort | None = None,
        weather: WeatherPort | None = None,
        envelope: AudioEnvelopeTracker | None = None,
        tempo: TempoEstimator | None = None,
        visual_sampler: VisualFeatureSampler | None = None,
        audio_tick_ms: int = 50,
        camera_tick_ms: int = 200,
        surface_poll_ms: int = 500,
        weather_refresh_seconds: float = 600.0,
        status_log_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.logger = logger
        self.controller = controller
        self.cycle = cycle
        self.aggregator = aggregator
        self.surface = surface
        self.repository = repository
        self.profile = profile or TasteProfile()
        self.microphone = microphone
        self.camera = camera
        self.location = location
        self.weather = weather
        self.envelope = envelope or AudioEnvelopeTracker()
        self.tempo = tempo or TempoEstimator()
        self.visual_sampler = visual_sampler or VisualFeatureSampler()
        self.audio_tick_ms = audio_tick_ms
        self.camera_tick_ms = camera_tick_ms
        self.surface_poll_ms = surface_poll_ms
        self.weather_refresh_seconds = max(WEATHER_REFRESH_MIN_SECONDS, weather_refresh_seconds)
        self.status_log_seconds = max(0.0, float(status_log_seconds))
        self._clock = clock
        self._wall_clock = wall_clock
        self._loop: asyncio.AbstractEventLoop | None = None
        self._retry_handle: asyncio.TimerHandle | None = None
        self._tasks: list[asyncio.Task] = []
        self._weather_task: asyncio.Task | None = None
        self._recommend_tasks: set[asyncio.Task] = set()
        self._stopped = asyncio.Event()
        self.last_error: Optional[str] = None
        self._last_report: dict[str, str] | None = None
        self.started = False

    def now_ms(self) -> float:
        return self._clock() * 1000.0

    # Controller plumbing

    def dispatch(self, event: ControllerEvent) -> None:
        effects = self.controller.dispatch(event, self.now_ms())
        self._execute(effects)

    def _execute(self, effects: tuple[ControllerEffect, ...]) -> None:
        for effect in effects:
            if isinstance(effect, (CueVideo, LoadVideo, PlayVideo, PauseVideo)):
                self._drive_surface(effect)
            elif isinstance(effect, ScheduleRetry):
                self._schedule_retry(effect.delay_ms)
            elif isinstance(effect, CancelRetry):
                self._cancel_retry()
            elif isinstance(effect, RequestRecommendation):
                self._spawn_recommendation(effect.reason)
            elif isinstance(effect, PersistQueue):
                if self.repository is not None:
                    self.repository.save_queue(effect.items)
            elif isinstance(effect, ReportError):
                self.last_error = effect.message
                self.logger.error("Player error: %s", effect.message)
            else:
                raise TypeError(f"Unsupported controller effect: {effect!r}")

    def _drive_surface(self, effect: ControllerEffect) -> None:
        try:
            if isinstance(effect, CueVideo):
                self.surface.cue(effect.video_id)
            elif isinstance(effect, LoadVideo):
                self.surface.load(effect.video_id)
            elif isinstance(effect, PlayVideo):
                self.surface.play()
            else:
                self.surface.pause()
        except SurfaceFault as exc:
            self.logger.error("Playback surface error on %s: %s", type(effect).__name__, exc)
            self.dispatch(SurfaceFailed(str(exc)))

    def _schedule_retry(self, delay_ms: float) -> None:
        self._cancel_retry()
        if self._loop is None:
            return
        self._retry_handle = self._loop.call_later(
            delay_ms / 1000.0, self._fire_retry
        )

    def _fire_retry(self) -> None:
        self._retry_handle = None
        self.dispatch(RetryTimerFired())

    def _cancel_retry(self) -> None:
        handle, self._retry_handle = self._retry_handle, None
        if handle is not None:
            handle.cancel()

    # Recommendations

    def snapshot(self) -> SignalSnapshot:
        return self.aggregator.snapshot(
            self._wall_clock(), self.controller.past_track_titles
        )

    def _spawn_recommendation(self, reason: str) -> None:
        if self._loop is None:
            self.logger.warning("Recommendation (%s) requested before the runtime started", reason)
            return
        task = self._loop.create_task(self.recommend(reason))
        self._recommend_tasks.add(task)
        task.add_done_callback(self._recommend_tasks.discard)

    async def recommend(self, reason: str) -> Optional[RecommendationOutcome]:
        if self.cycle.in_flight:
            self.logger.info("Recommendation already in flight; ignoring %s trigger", reason)
            return None
        self.dispatch(RecommendationStatusChanged(RecommendationStatus.LOADING))
        snapshot = self.snapshot()
        try:
            outcome = await asyncio.to_thread(
                self.cycle.run,
                snapshot,
                self.profile,
                self.controller.existing_ids,
                reason=reason,
            )
        except Exception:
            self.logger.exception("Recommendation cycle crashed (%s)", reason)
            self.dispatch(RecommendationStatusChanged(RecommendationStatus.ERROR))
            return None
        if outcome is None:
            return None
        if outcome.items:
            self.dispatch(ItemsEnqueued(outcome.items))
        if outcome.error:
            self.last_error = outcome.error
        self.dispatch(RecommendationStatusChanged(outcome.status))
        return outcome

    # User commands

    def request_recommendation(self) -> None:
        self.dispatch(RecommendationRequested())

    def next_track(self) -> None:
        self.dispatch(QueueNext())

    def previous_track(self) -> None:
        self.dispatch(QueuePrevious())

    def select(self, video_id: str) -> None:
        self.dispatch(ItemSelected(video_id))

    def remove(self, video_id: str) -> None:
        self.dispatch(ItemRemoved(video_id))

    def clear_queue(self) -> None:
        self.dispatch(QueueCleared())

    def toggle_playback(self, playing: Optional[bool] = None) -> None:
        self.dispatch(TransportToggled(playing))

    # Sensor loops

    def _process_audio(self, frame, now_ms: float) -> None:
        rms, _reading = self.envelope.process(frame, now_ms)
        self.tempo.update(rms, now_ms)
        self.aggregator.update_audio(self.envelope.latest, self.tempo.bpm)

    def _sync_microphone_status(self) -> bool:
        status = self.microphone.status
        if status is not self.aggregator.microphone_status:
            self.aggregator.microphone_status = status
            if status is not SensorStatus.ACTIVE:
                self.envelope.reset()
                self.tempo.reset()
                self.aggregator.update_audio(self.envelope.latest, None)
        return status is SensorStatus.ACTIVE

    async def _audio_loop(self) -> None:
        interval = self.audio_tick_ms / 1000.0
        while True:
            if self._sync_microphone_status():
                frame = self.microphone.read_frame()
                if frame is not None:
                    self._process_audio(frame, self.now_ms())
                else:
                    self._sync_microphone_status()
            await asyncio.sleep(interval)

    def _process_frame(self, pixels, now_ms: float) -> None:
        descriptors = self.visual_sampler.process(pixels, now_ms)
        if descriptors is not None:
            self.aggregator.update_visuals(descriptors)

    async def _camera_loop(self) -> None:
        interval = self.camera_tick_ms / 1000.0
        while True:
            self.aggregator.camera_status = self.camera.status
            if self.camera.status is SensorStatus.ACTIVE:
                pixels = await asyncio.to_thread(self.camera.read_frame)
                self.aggregator.camera_status = self.camera.status
                if pixels is not None:
                    try:
                        self._process_frame(pixels, self.now_ms())
                    except ValueError as exc:
                        self.logger.warning("Skipping camera frame: %s", exc)
            elif self.visual_sampler.latest_sample is not None:
                self.visual_sampler.reset()
            await asyncio.sleep(interval)

    def status_report(self) -> dict[str, str]:
        """Sensor status labels plus the display value of every signal."""
        report = {
            "microphone": status_label(self.aggregator.microphone_status),
            "camera": status_label(self.aggregator.camera_status),
            "location": status_label(self.aggregator.location_status),
        }
        report.update(self.aggregator.display_values())
        sample = self.visual_sampler.latest_sample
        if sample is not None and self.aggregator.camera_status is SensorStatus.ACTIVE:
            report["average_color"] = sample.average_color
        return report

    def log_status(self) -> bool:
        """Log the status report at INFO when it differs from the last one logged."""
        report = self.status_report()
        if report == self._last_report:
            return False
        self._last_report = report
        self.logger.info(
            "Ambient signals: %s",
            ", ".join(f"{key}={value}" for key, value in report.items()),
        )
        return True

    async def _status_loop(self) -> None:
        while True:
            await asyncio.sleep(self.status_log_seconds)
            self.log_status()

    async def _surface_loop(self) -> None:
        interval = self.surface_poll_ms / 1000.0
        while True:
            for event in self.surface.poll():
                self.dispatch(event)
            await asyncio.sleep(interval)

    # Location and weather

    async def _refresh_weather(self, coordinates: Coordinates) -> None:
        while True:
            try:
                forecast = await asyncio.to_thread(
                    self.weather.forecast, coordinates.latitude, coordinates.longitude
                )
            except WeatherFailure as exc:
                self.logger.warning("Weather unavailable: %s", exc)
                self.aggregator.update_weather(None)
            else:
                self.aggregator.update_weather(forecast)
                self.logger.debug("Weather updated: %s", forecast.summary)
            await asyncio.sleep(self.weather_refresh_seconds)

    def _restart_weather(self, coordinates: Optional[Coordinates]) -> None:
        if self._weather_task is not None:
            self._weather_task.cancel()
            self._weather_task = None
        if coordinates is None or self.weather is None or self._loop is None:
            self.aggregator.update_weather(None)
            return
        self._weather_task = self._loop.create_task(self._refresh_weather(coordinates))

    def set_location(self, coordinates: Optional[Coordinates]) -> None:
        """Point the player at new coordinates; a pending weather fetch is dropped."""
        if self.location is None:
            return
        if not self.location.update(coordinates):
            return
        if coordinates is not None:
            self.location.request_access()
        self.aggregator.location_status = self.location.status
        self.aggregator.update_location(self.location.coordinates)
        self._restart_weather(self.location.coordinates)

    # Lifecycle

    def _acquire_surface(self) -> None:
        try:
            events = self.surface.acquire()
        except SurfaceFault as exc:
            self.logger.error("Playback surface unavailable: %s", exc)
            self.dispatch(SurfaceFailed(str(exc)))
            return
        for event in events:
            self.dispatch(event)

    async def start(self) -> None:
        if self.started:
            return
        self.started = True
        self._loop = asyncio.get_running_loop()
        self._stopped = asyncio.Event()

        if self.microphone is not None:
            self.microphone.request_access()
            self.aggregator.microphone_status = self.microphone.status
            self._tasks.append(self._loop.create_task(self._audio_loop()))
        if self.camera is not None:
            await asyncio.to_thread(self.camera.request_access)
            self.aggregator.camera_status = self.camera.status
            self._tasks.append(self._loop.create_task(self._camera_loop()))
        if self.location is not None:
            self.location.request_access()
            self.aggregator.location_status = self.location.status
            self.aggregator.update_location(self.location.coordinates)
            self._restart_weather(self.location.coordinates)

        self._acquire_surface()
        self.dispatch(SessionStarted())
        self._tasks.append(self._loop.create_task(self._surface_loop()))
        if self.status_log_seconds > 0:
            self._tasks.append(self._loop.create_task(self._status_loop()))
        self.logger.info(
            "Ambient runtime started (queue=%s, microphone=%s, camera=%s, location=%s)",
            len(self.controller.queue),
            self.aggregator.microphone_status.value,
            self.aggregator.camera_status.value,
            self.aggregator.location_status.value,
        )

    def stop(self) -> None:
        self._stopped.set()

    async def run(self, *, duration_seconds: float | None = None) -> None:
        await self.start()
        try:
            if duration_seconds is None:
                await self._stopped.wait()
            else:
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=duration_seconds)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        if not self.started:
            return
        self.started = False
        self._cancel_retry()
        pending = list(self._tasks) + list(self._recommend_tasks)
        if self._weather_task is not None:
            pending.append(self._weather_task)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self._recommend_tasks.clear()
        self._weather_task = None

        for sensor in (self.microphone, self.camera, self.location):
            if sensor is not None:
                sensor.stop()
        self.aggregator.microphone_status = SensorStatus.IDLE
        self.aggregator.camera_status = SensorStatus.IDLE
        self.aggregator.location_status = SensorStatus.IDLE
        self.surface.release()
        if self.repository is not None:
            self.repository.save_queue(self.controller.queue)
        self._loop = None
        self._last_report = None
        self.logger.info("Ambient runtime stopped")
