"""Playback queue state machine.

``transition`` is a pure function from (state, event) to (next state, effects).
It never touches the playback surface or the network; the runtime executes the
returned effects. ``PlaybackQueueController`` keeps the current state and logs
each transition.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from ..domain.playlist import QueueItem, index_of, merge_unique
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
    SurfaceProgress,
    SurfaceReady,
    SurfaceState,
    SurfaceStateChanged,
    TransportToggled,
)


class Phase(str, Enum):
    IDLE = "idle"
    CUEING = "cueing"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED_ADVANCING = "ended_advancing"
    ENDED_TERMINAL = "ended_terminal"


_UNUSABLE_ORACLE = frozenset({RecommendationStatus.ERROR, RecommendationStatus.DISABLED})


@dataclass(frozen=True)
class ControllerSettings:
    pause_debounce_ms: float = 2000.0
    play_retry_attempts: int = 3
    play_retry_interval_ms: float = 350.0
    recommend_progress_ratio: float = 0.5


@dataclass(frozen=True)
class ControllerState:
    queue: tuple[QueueItem, ...] = ()
    current_video_id: Optional[str] = None
    intent_playing: bool = True
    phase: Phase = Phase.IDLE
    surface_ready: bool = False
    last_play_command_ms: Optional[float] = None
    retry_attempts: int = 0
    retry_pending: bool = False
    recommendation_status: RecommendationStatus = RecommendationStatus.IDLE
    auto_requested_for: Optional[str] = None
    session_started: bool = False
    current_seconds: float = 0.0
    duration_seconds: float = 0.0

    @property
    def current_index(self) -> Optional[int]:
        return index_of(self.queue, self.current_video_id)

    @property
    def current_item(self) -> Optional[QueueItem]:
        index = self.current_index
        return self.queue[index] if index is not None else None

    @property
    def remaining(self) -> int:
        """Items from the current one to the end, or the whole queue when none is current."""
        if not self.queue:
            return 0
        index = self.current_index
        return len(self.queue) - index if index is not None else len(self.queue)

    @property
    def oracle_usable(self) -> bool:
        return self.recommendation_status not in _UNUSABLE_ORACLE


@dataclass(frozen=True)
class Transition:
    state: ControllerState
    effects: tuple[ControllerEffect, ...] = field(default_factory=tuple)


def _start_retry(
    state: ControllerState, settings: ControllerSettings
) -> tuple[ControllerState, list[ControllerEffect]]:
    effects: list[ControllerEffect] = [PlayVideo()]
    if settings.play_retry_attempts > 0:
        effects.append(ScheduleRetry(settings.play_retry_interval_ms))
    pending = settings.play_retry_attempts > 0
    return replace(state, retry_attempts=0, retry_pending=pending), effects


def _cancel_retry(state: ControllerState) -> tuple[ControllerState, list[ControllerEffect]]:
    if not state.retry_pending and state.retry_attempts == 0:
        return state, []
    return replace(state, retry_attempts=0, retry_pending=False), [CancelRetry()]


def _load(
    state: ControllerState,
    video_id: str,
    now_ms: float,
    settings: ControllerSettings,
    *,
    phase: Phase = Phase.CUEING,
    intent_playing: Optional[bool] = True,
) -> tuple[ControllerState, list[ControllerEffect]]:
    """Point the transport at ``video_id`` and, when the surface is up, load it."""
    playing = state.intent_playing if intent_playing is None else intent_playing
    state = replace(
        state,
        current_video_id=video_id,
        intent_playing=playing,
        phase=phase,
        last_play_command_ms=now_ms if playing else state.last_play_command_ms,
        current_seconds=0.0,
        duration_seconds=0.0,
    )
    if not state.surface_ready:
        return state, []
    if not playing:
        state, effects = _cancel_retry(state)
        return state, effects + [CueVideo(video_id)]
    state, effects = _start_retry(state, settings)
    return state, [LoadVideo(video_id)] + effects


def _on_session_started(state, event, now_ms, settings):
    if state.session_started:
        return state, []
    state = replace(state, session_started=True)
    if state.queue:
        if state.current_video_id is None:
            return _load(state, state.queue[0].video_id, now_ms, settings, intent_playing=None)
        return state, []
    if state.oracle_usable and state.recommendation_status is not RecommendationStatus.LOADING:
        return state, [RequestRecommendation("initial-seed")]
    return state, []


def _on_items_enqueued(state, event, now_ms, settings):
    queue, added = merge_unique(state.queue, event.items)
    if not added:
        return state, []
    was_terminal = state.phase is Phase.ENDED_TERMINAL
    state = replace(state, queue=queue)
    effects: list[ControllerEffect] = [PersistQueue(queue)]
    if was_terminal:
        # Resume where the exhausted queue left off.
        state, load_effects = _load(state, added[0].video_id, now_ms, settings)
        return state, effects + load_effects
    if state.current_video_id is None:
        state, load_effects = _load(
            state, queue[0].video_id, now_ms, settings, intent_playing=None
        )
        return state, effects + load_effects
    return state, effects


def _on_item_selected(state, event, now_ms, settings):
    if index_of(state.queue, event.video_id) is None:
        return state, []
    return _load(state, event.video_id, now_ms, settings)


def _on_queue_step(state, event, now_ms, settings):
    size = len(state.queue)
    if size < 2:
        return state, []
    index = state.current_index
    if isinstance(event, QueueNext):
        target = 0 if index is None else (index + 1) % size
    else:
        target = size - 1 if index is None or index == 0 else index - 1
    return _load(state, state.queue[target].video_id, now_ms, settings, intent_playing=None)


def _on_item_removed(state, event, now_ms, settings):
    if index_of(state.queue, event.video_id) is None:
        return state, []
    queue = tuple(item for item in state.queue if item.video_id != event.video_id)
    state = replace(state, queue=queue)
    effects: list[ControllerEffect] = []
    if state.current_video_id == event.video_id:
        state, effects = _cancel_retry(state)
        state = replace(state, current_video_id=None, phase=Phase.IDLE)
    if state.auto_requested_for == event.video_id:
        state = replace(state, auto_requested_for=None)
    return state, effects + [PersistQueue(queue)]


def _on_queue_cleared(state, event, now_ms, settings):
    state, effects = _cancel_retry(state)
    state = replace(
        state,
        queue=(),
        current_video_id=None,
        phase=Phase.IDLE,
        auto_requested_for=None,
    )
    return state, effects + [PersistQueue(())]


def _on_transport_toggled(state, event, now_ms, settings):
    playing = (not state.intent_playing) if event.playing is None else bool(event.playing)
    if not playing:
        state, effects = _cancel_retry(state)
        phase = Phase.PAUSED if state.current_video_id is not None else Phase.IDLE
        state = replace(state, intent_playing=False, phase=phase)
        if state.surface_ready and state.current_video_id is not None:
            effects.append(PauseVideo())
        return state, effects

    if state.current_video_id is None:
        state = replace(state, intent_playing=True)
        if state.queue:
            return _load(state, state.queue[0].video_id, now_ms, settings)
        return state, []
    state = replace(state, intent_playing=True, last_play_command_ms=now_ms)
    if state.phase is Phase.PAUSED:
        state = replace(state, phase=Phase.CUEING)
    if not state.surface_ready:
        return state, []
    return _start_retry(state, settings)


def _on_surface_ready(state, event, now_ms, settings):
    state = replace(state, surface_ready=True)
    if state.current_video_id is None:
        return state, []
    return _load(state, state.current_video_id, now_ms, settings, intent_playing=None)


def _on_ended(state, event, now_ms, settings):
    state = replace(state, last_play_command_ms=None)
    state, effects = _cancel_retry(state)
    size = len(state.queue)
    if size == 0:
        return replace(state, phase=Phase.IDLE, intent_playing=False), effects

    if event.video_id:
        ended_index = index_of(state.queue, event.video_id)
    else:
        ended_index = state.current_index
    if ended_index is None:
        # Unknown item: restart from the head of the queue.
        state, load_effects = _load(
            state, state.queue[0].video_id, now_ms, settings, phase=Phase.ENDED_ADVANCING
        )
        return state, effects + load_effects

    if ended_index < size - 1:
        state, load_effects = _load(
            state,
            state.queue[ended_index + 1].video_id,
            now_ms,
            settings,
            phase=Phase.ENDED_ADVANCING,
        )
        return state, effects + load_effects

    if not state.oracle_usable:
        state, load_effects = _load(
            state, state.queue[0].video_id, now_ms, settings, phase=Phase.ENDED_ADVANCING
        )
        return state, effects + load_effects

    state = replace(state, phase=Phase.ENDED_TERMINAL, intent_playing=False)
    if state.recommendation_status is not RecommendationStatus.LOADING:
        effects.append(RequestRecommendation("queue-exhausted"))
    return state, effects


def _on_surface_state(state, event, now_ms, settings):
    surface_state = event.state
    if surface_state is SurfaceState.PLAYING:
        state, effects = _cancel_retry(state)
        state = replace(
            state,
            phase=Phase.PLAYING,
            intent_playing=True,
            last_play_command_ms=None,
        )
        return state, effects

    if surface_state in (SurfaceState.CUED, SurfaceState.UNSTARTED):
        if state.intent_playing and state.surface_ready and state.current_video_id is not None:
            return _start_retry(state, settings)
        return state, []

    if surface_state is SurfaceState.PAUSED:
        if (
            state.intent_playing
            and state.last_play_command_ms is not None
            and now_ms - state.last_play_command_ms < settings.pause_debounce_ms
        ):
            return state, []
        state, effects = _cancel_retry(state)
        phase = Phase.PAUSED if state.current_video_id is not None else Phase.IDLE
        return replace(state, intent_playing=False, phase=phase), effects

    if surface_state is SurfaceState.ENDED:
        return _on_ended(state, event, now_ms, settings)

    return state, []


def _on_progress(state, event, now_ms, settings):
    state = replace(
        state,
        current_seconds=max(0.0, float(event.current_seconds)),
        duration_seconds=max(0.0, float(event.duration_seconds)),
    )
    if not state.queue or state.recommendation_status is RecommendationStatus.DISABLED:
        return replace(state, auto_requested_for=None), []
    if state.remaining != 1:
        return replace(state, auto_requested_for=None), []

    last_id = state.queue[-1].video_id
    if state.recommendation_status is RecommendationStatus.LOADING:
        return state, []
    if state.current_video_id != last_id or state.duration_seconds <= 0:
        return state, []
    if state.current_seconds / state.duration_seconds < settings.recommend_progress_ratio:
        return state, []
    if state.auto_requested_for == last_id:
        return state, []
    state = replace(state, auto_requested_for=last_id)
    return state, [RequestRecommendation("queue-running-low")]


def _on_surface_failed(state, event, now_ms, settings):
    state, effects = _cancel_retry(state)
    return state, effects + [ReportError(event.message)]


def _on_retry_timer(state, event, now_ms, settings):
    if not state.retry_pending:
        return state, []
    if state.phase is Phase.PLAYING or not state.intent_playing:
        return replace(state, retry_pending=False, retry_attempts=0), []
    attempts = state.retry_attempts + 1
    more = attempts < settings.play_retry_attempts
    state = replace(state, retry_attempts=attempts, retry_pending=more)
    effects: list[ControllerEffect] = [PlayVideo()]
    if more:
        effects.append(ScheduleRetry(settings.play_retry_interval_ms))
    return state, effects


def _on_recommendation_status(state, event, now_ms, settings):
    state = replace(state, recommendation_status=event.status)
    if (
        event.status in _UNUSABLE_ORACLE
        and state.phase is Phase.ENDED_TERMINAL
        and state.queue
    ):
        # The exhausted queue will not grow; loop from the head.
        return _load(
            state, state.queue[0].video_id, now_ms, settings, phase=Phase.ENDED_ADVANCING
        )
    return state, []


def _on_recommendation_requested(state, event, now_ms, settings):
    if state.recommendation_status is RecommendationStatus.DISABLED:
        return state, [ReportError("Add your API keys to run recommendations.")]
    if state.recommendation_status is RecommendationStatus.LOADING:
        return state, []
    return state, [RequestRecommendation("user-request")]


_HANDLERS = {
    SessionStarted: _on_session_started,
    ItemsEnqueued: _on_items_enqueued,
    ItemSelected: _on_item_selected,
    QueueNext: _on_queue_step,
    QueuePrevious: _on_queue_step,
    ItemRemoved: _on_item_removed,
    QueueCleared: _on_queue_cleared,
    TransportToggled: _on_transport_toggled,
    SurfaceReady: _on_surface_ready,
    SurfaceStateChanged: _on_surface_state,
    SurfaceProgress: _on_progress,
    SurfaceFailed: _on_surface_failed,
    RetryTimerFired: _on_retry_timer,
    RecommendationStatusChanged: _on_recommendation_status,
    RecommendationRequested: _on_recommendation_requested,
}


def transition(
    state: ControllerState,
    event: ControllerEvent,
    now_ms: float,
    settings: ControllerSettings = ControllerSettings(),
) -> Transition:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported controller event: {type(event).__name__}")
    next_state, effects = handler(state, event, now_ms, settings)
    return Transition(state=next_state, effects=tuple(effects))


class PlaybackQueueController:
    """Holds the controller state and applies events to it."""

    def __init__(
        self,
        logger,
        *,
        settings: ControllerSettings | None = None,
        initial_queue: tuple[QueueItem, ...] = (),
        recommendation_status: RecommendationStatus = RecommendationStatus.IDLE,
    ) -> None:
        self.logger = logger
        self.settings = settings or ControllerSettings()
        queue, _ = merge_unique((), initial_queue)
        self.state = ControllerState(queue=queue, recommendation_status=recommendation_status)

    def dispatch(self, event: ControllerEvent, now_ms: float) -> tuple[ControllerEffect, ...]:
        previous = self.state
        result = transition(previous, event, now_ms, self.settings)
        self.state = result.state
        if previous.phase is not result.state.phase:
            self.logger.debug(
                "Playback phase %s -> %s on %s (current=%s)",
                previous.phase.value,
                result.state.phase.value,
                type(event).__name__,
                result.state.current_video_id,
            )
        return result.effects

    @property
    def queue(self) -> tuple[QueueItem, ...]:
        return self.state.queue

    @property
    def existing_ids(self) -> frozenset[str]:
        return frozenset(item.video_id for item in self.state.queue)

    @property
    def past_track_titles(self) -> tuple[str, ...]:
        return tuple(item.title for item in self.state.queue)
