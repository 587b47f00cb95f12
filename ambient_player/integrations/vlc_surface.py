"""Playback surface on libVLC, driven by controller effects."""

from __future__ import annotations

import re
import sys

from ..application.events import (
    ControllerEvent,
    SurfaceFailed,
    SurfaceProgress,
    SurfaceReady,
    SurfaceState,
    SurfaceStateChanged,
)
from ..errors import SurfaceFault

try:
    import vlc as _vlc
except Exception:  # pragma: no cover - dependency optional at import time
    _vlc = None

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_STATE_BY_NAME = {
    "NothingSpecial": SurfaceState.UNSTARTED,
    "Opening": SurfaceState.BUFFERING,
    "Buffering": SurfaceState.BUFFERING,
    "Playing": SurfaceState.PLAYING,
    "Paused": SurfaceState.PAUSED,
    "Stopped": SurfaceState.UNSTARTED,
    "Ended": SurfaceState.ENDED,
}


def validate_video_id(video_id: str) -> str:
    value = (video_id or "").strip()
    if not VIDEO_ID_RE.match(value):
        raise SurfaceFault(f"The requested video ID is invalid: {video_id!r}")
    return value


def _state_name(state) -> str:
    return str(state).rsplit(".", 1)[-1]


class VlcPlaybackSurface:
    """libVLC media-list player that opens YouTube watch URLs.

    VLC resolves a watch URL into a playable sub-item, so playback goes through
    a media list player. ``poll`` turns state and time readings into controller
    events; only state changes are reported, progress is reported every poll.
    """

    def __init__(
        self,
        logger,
        *,
        vlc_module=None,
        platform_name: str | None = None,
        show_video: bool = False,
    ) -> None:
        self.logger = logger
        self._vlc = vlc_module if vlc_module is not None else _vlc
        self._platform = platform_name if platform_name is not None else sys.platform
        self._show_video = show_video
        self.instance = None
        self.player = None
        self.list_player = None
        self.media_list = None
        self.video_id: str | None = None
        self._cued = False
        self._last_state: SurfaceState | None = None
        self._has_played = False
        self._error_reported = False

    @property
    def acquired(self) -> bool:
        return self.player is not None

    def acquire(self) -> list[ControllerEvent]:
        if self.acquired:
            return []
        if self._vlc is None:
            raise SurfaceFault("python-vlc is not available")
        args = []
        if str(self._platform).startswith("linux"):
            args.append("--no-xlib")
        if not self._show_video:
            args.append("--no-video")
        try:
            self.instance = self._vlc.Instance(args)
            self.player = self.instance.media_player_new()
            self.list_player = self.instance.media_list_player_new()
            self.list_player.set_media_player(self.player)
        except Exception as exc:
            self.release()
            raise SurfaceFault("VLC player could not be created.") from exc
        self.logger.info("Playback surface ready (libVLC, args=%s)", " ".join(args) or "-")
        return [SurfaceReady()]

    def _require(self):
        if self.list_player is None:
            raise SurfaceFault("Playback surface is not initialized.")
        return self.list_player

    def _set_media(self, video_id: str) -> None:
        list_player = self._require()
        url = WATCH_URL.format(video_id=video_id)
        media_list = self.instance.media_list_new([url])
        list_player.set_media_list(media_list)
        if self.media_list is not None:
            self.media_list.release()
        self.media_list = media_list
        self.video_id = video_id
        self._last_state = None
        self._has_played = False
        self._error_reported = False

    def cue(self, video_id: str) -> None:
        value = validate_video_id(video_id)
        self._set_media(value)
        self._cued = True
        self.logger.debug("Cued video %s", value)

    def load(self, video_id: str) -> None:
        """Swap in ``video_id`` for immediate playback; the following ``play`` starts it."""
        value = validate_video_id(video_id)
        self._set_media(value)
        self._cued = False
        self.logger.debug("Loaded video %s", value)

    def play(self) -> None:
        list_player = self._require()
        if self.video_id is None:
            return
        self._cued = False
        rc = list_player.play()
        if rc is not None and int(rc) == -1:
            raise SurfaceFault("VLC failed to start playback.")

    def pause(self) -> None:
        if self.player is None:
            return
        self.player.set_pause(1)

    def poll(self) -> list[ControllerEvent]:
        if self.player is None or self.video_id is None:
            return []
        events: list[ControllerEvent] = []
        name = _state_name(self.player.get_state())
        if name == "Error":
            if not self._error_reported:
                self._error_reported = True
                events.append(SurfaceFailed("VLC could not play the requested video."))
            return events

        state = _STATE_BY_NAME.get(name, SurfaceState.UNKNOWN)
        if state is SurfaceState.UNSTARTED and self._cued:
            state = SurfaceState.CUED
        if state is SurfaceState.PLAYING:
            self._has_played = True
        elif state is SurfaceState.ENDED and not self._has_played:
            # The watch URL item ends once VLC has resolved it into the playable sub-item.
            state = self._last_state
        if state is not None and state is not self._last_state:
            self._last_state = state
            events.append(SurfaceStateChanged(state, self.video_id))

        length_ms = int(self.player.get_length() or 0)
        if length_ms > 0:
            time_ms = max(0, int(self.player.get_time() or 0))
            events.append(SurfaceProgress(time_ms / 1000.0, length_ms / 1000.0))
        return events

    def release(self) -> None:
        for target, action in (
            (self.list_player, "stop"),
            (self.media_list, "release"),
            (self.list_player, "release"),
            (self.player, "release"),
            (self.instance, "release"),
        ):
            if target is None:
                continue
            try:
                getattr(target, action)()
            except Exception:
                self.logger.debug("VLC %s failed during release", action, exc_info=True)
        self.instance = None
        self.player = None
        self.list_player = None
        self.media_list = None
        self.video_id = None
        self._last_state = None
        self._has_played = False
        self._cued = False
