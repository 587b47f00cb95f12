import pytest

from ambient_player.application.events import (
    SurfaceFailed,
    SurfaceProgress,
    SurfaceReady,
    SurfaceState,
    SurfaceStateChanged,
)
from ambient_player.errors import SurfaceFault
from ambient_player.integrations.vlc_surface import VlcPlaybackSurface, validate_video_id

VIDEO = "dQw4w9WgXcQ"


class _Logger:
    def __init__(self):
        self.messages = []

    def _log(self, message, *args, **kwargs):
        self.messages.append(message % args if args else message)

    debug = info = warning = error = _log


class _State:
    def __init__(self, name):
        self.name = name

    def __str__(self):
        return f"State.{self.name}"


class _Player:
    def __init__(self):
        self.state = "NothingSpecial"
        self.length = 0
        self.time = 0
        self.paused = []
        self.released = 0

    def get_state(self):
        return _State(self.state)

    def get_length(self):
        return self.length

    def get_time(self):
        return self.time

    def set_pause(self, flag):
        self.paused.append(flag)

    def release(self):
        self.released += 1


class _MediaList:
    def __init__(self, urls):
        self.urls = list(urls)
        self.released = False

    def release(self):
        self.released = True


class _ListPlayer:
    def __init__(self):
        self.player = None
        self.media_list = None
        self.plays = 0
        self.stopped = 0
        self.released = 0

    def set_media_player(self, player):
        self.player = player

    def set_media_list(self, media_list):
        self.media_list = media_list

    def play(self):
        self.plays += 1
        return 0

    def stop(self):
        self.stopped += 1

    def release(self):
        self.released += 1


class _Instance:
    def __init__(self, args):
        self.args = args
        self.player = _Player()
        self.list_player = _ListPlayer()
        self.released = 0

    def media_player_new(self):
        return self.player

    def media_list_player_new(self):
        return self.list_player

    def media_list_new(self, urls):
        return _MediaList(urls)

    def release(self):
        self.released += 1


class _FakeVlc:
    def __init__(self):
        self.instances = []

    def Instance(self, args):
        instance = _Instance(args)
        self.instances.append(instance)
        return instance


def _surface(**kwargs):
    vlc = _FakeVlc()
    surface = VlcPlaybackSurface(_Logger(), vlc_module=vlc, platform_name="linux", **kwargs)
    return surface, vlc


def test_validate_video_id_accepts_only_eleven_char_ids():
    assert validate_video_id(f"  {VIDEO} ") == VIDEO
    for bad in ("", "short", "dQw4w9WgXcQ1", "dQw4w9WgXc!"):
        with pytest.raises(SurfaceFault):
            validate_video_id(bad)


def test_acquire_builds_audio_only_player_once():
    surface, vlc = _surface()

    assert surface.acquire() == [SurfaceReady()]
    assert surface.acquire() == []
    assert len(vlc.instances) == 1
    assert vlc.instances[0].args == ["--no-xlib", "--no-video"]
    assert vlc.instances[0].list_player.player is vlc.instances[0].player


def test_acquire_without_vlc_raises_surface_fault():
    surface = VlcPlaybackSurface(_Logger(), platform_name="linux")
    surface._vlc = None

    with pytest.raises(SurfaceFault):
        surface.acquire()


def test_load_then_play_starts_watch_url_once_and_poll_reports_state_changes():
    surface, vlc = _surface()
    surface.acquire()
    instance = vlc.instances[0]

    surface.load(VIDEO)
    assert instance.list_player.media_list.urls == [
        f"https://www.youtube.com/watch?v={VIDEO}"
    ]
    assert instance.list_player.plays == 0
    surface.play()
    assert instance.list_player.plays == 1

    instance.player.state = "Playing"
    instance.player.length = 200_000
    instance.player.time = 50_000
    assert surface.poll() == [
        SurfaceStateChanged(SurfaceState.PLAYING, VIDEO),
        SurfaceProgress(50.0, 200.0),
    ]
    instance.player.time = 51_000
    assert surface.poll() == [SurfaceProgress(51.0, 200.0)]

    instance.player.state = "Ended"
    events = surface.poll()
    assert events[0] == SurfaceStateChanged(SurfaceState.ENDED, VIDEO)


def test_cue_reports_cued_until_played():
    surface, vlc = _surface()
    surface.acquire()
    instance = vlc.instances[0]

    surface.cue(VIDEO)
    assert instance.list_player.plays == 0
    assert surface.poll() == [SurfaceStateChanged(SurfaceState.CUED, VIDEO)]

    surface.play()
    assert instance.list_player.plays == 1
    surface.pause()
    assert instance.player.paused == [1]


def test_replacing_media_releases_previous_list():
    surface, vlc = _surface()
    surface.acquire()
    surface.cue(VIDEO)
    first = surface.media_list

    surface.load("abcdefghijk")

    assert first.released
    assert surface.video_id == "abcdefghijk"


def test_vlc_error_state_is_reported_once_per_video():
    surface, vlc = _surface()
    surface.acquire()
    surface.load(VIDEO)
    vlc.instances[0].player.state = "Error"

    assert surface.poll() == [SurfaceFailed("VLC could not play the requested video.")]
    assert surface.poll() == []


def test_release_is_idempotent():
    surface, vlc = _surface()
    surface.acquire()
    surface.load(VIDEO)
    instance = vlc.instances[0]

    surface.release()
    surface.release()

    assert not surface.acquired
    assert instance.released == 1
    assert instance.player.released == 1
    assert instance.list_player.stopped == 1
    assert surface.poll() == []
    with pytest.raises(SurfaceFault):
        surface.play()


def test_watch_url_parent_ending_before_playback_is_not_reported():
    surface, vlc = _surface()
    surface.acquire()
    player = vlc.instances[0].player
    surface.load(VIDEO)
    surface.play()

    player.state = "Opening"
    assert surface.poll() == [SurfaceStateChanged(SurfaceState.BUFFERING, VIDEO)]
    player.state = "Ended"
    assert surface.poll() == []

    player.state = "Playing"
    player.length = 180_000
    assert surface.poll()[0] == SurfaceStateChanged(SurfaceState.PLAYING, VIDEO)
    player.state = "Ended"
    assert surface.poll()[0] == SurfaceStateChanged(SurfaceState.ENDED, VIDEO)


def test_new_media_waits_for_playback_before_reporting_end():
    surface, vlc = _surface()
    surface.acquire()
    player = vlc.instances[0].player
    surface.load(VIDEO)
    player.state = "Playing"
    surface.poll()

    surface.load("abcdefghijk")
    player.state = "Ended"

    assert surface.poll() == []
