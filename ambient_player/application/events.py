"""Typed events consumed by the playback controller and the effects it emits."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..domain.playlist import QueueItem


class SurfaceState(str, Enum):
    UNSTARTED = "unstarted"
    BUFFERING = "buffering"
    CUED = "cued"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"
    UNKNOWN = "unknown"


class RecommendationStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    DISABLED = "disabled"


# Events


@dataclass(frozen=True)
class SessionStarted:
    pass


@dataclass(frozen=True)
class ItemsEnqueued:
    items: tuple[QueueItem, ...]


@dataclass(frozen=True)
class ItemSelected:
    video_id: str


@dataclass(frozen=True)
class QueueNext:
    pass


@dataclass(frozen=True)
class QueuePrevious:
    pass


@dataclass(frozen=True)
class ItemRemoved:
    video_id: str


@dataclass(frozen=True)
class QueueCleared:
    pass


@dataclass(frozen=True)
class TransportToggled:
    """Flip the transport intent, or force it when ``playing`` is given."""

    playing: Optional[bool] = None


@dataclass(frozen=True)
class SurfaceReady:
    pass


@dataclass(frozen=True)
class SurfaceStateChanged:
    state: SurfaceState
    video_id: Optional[str] = None


@dataclass(frozen=True)
class SurfaceProgress:
    current_seconds: float
    duration_seconds: float


@dataclass(frozen=True)
class SurfaceFailed:
    message: str


@dataclass(frozen=True)
class RetryTimerFired:
    pass


@dataclass(frozen=True)
class RecommendationStatusChanged:
    status: RecommendationStatus


@dataclass(frozen=True)
class RecommendationRequested:
    pass


ControllerEvent = Union[
    SessionStarted,
    ItemsEnqueued,
    ItemSelected,
    QueueNext,
    QueuePrevious,
    ItemRemoved,
    QueueCleared,
    TransportToggled,
    SurfaceReady,
    SurfaceStateChanged,
    SurfaceProgress,
    SurfaceFailed,
    RetryTimerFired,
    RecommendationStatusChanged,
    RecommendationRequested,
]


# Effects


@dataclass(frozen=True)
class CueVideo:
    video_id: str


@dataclass(frozen=True)
class LoadVideo:
    video_id: str


@dataclass(frozen=True)
class PlayVideo:
    pass


@dataclass(frozen=True)
class PauseVideo:
    pass


@dataclass(frozen=True)
class ScheduleRetry:
    delay_ms: float


@dataclass(frozen=True)
class CancelRetry:
    pass


@dataclass(frozen=True)
class RequestRecommendation:
    reason: str


@dataclass(frozen=True)
class ReportError:
    message: str


@dataclass(frozen=True)
class PersistQueue:
    items: tuple[QueueItem, ...]


ControllerEffect = Union[
    CueVideo,
    LoadVideo,
    PlayVideo,
    PauseVideo,
    ScheduleRetry,
    CancelRetry,
    RequestRecommendation,
    ReportError,
    PersistQueue,
]
