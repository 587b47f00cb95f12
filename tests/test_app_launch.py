import asyncio
import dataclasses
import os
from types import SimpleNamespace

import pytest

os.environ.setdefault("AMBIENT_SKIP_APP_INIT", "1")

import app
from ambient_player import main as app_main


class _Runtime:
    def __init__(self):
        self.calls = []

    async def start(self):
        self.calls.append("start")

    def request_recommendation(self):
        self.calls.append("recommend")

    async def run(self, duration_seconds=None):
        self.calls.append(("run", duration_seconds))


def test_build_parser_defaults_and_flags():
    parser = app_main.build_parser()

    defaults = parser.parse_args([])
    assert defaults.no_microphone is False
    assert defaults.no_camera is False
    assert defaults.duration is None
    assert defaults.recommend is False

    args = parser.parse_args(["--no-microphone", "--duration", "12.5", "--recommend"])
    assert args.no_microphone is True
    assert args.duration == 12.5
    assert args.recommend is True


def test_main_delegates_to_launch(monkeypatch):
    calls = []
    monkeypatch.setattr(app, "launch", lambda **kwargs: calls.append(kwargs))

    app_main.main(["--no-camera", "--duration", "5"])

    assert calls == [
        {
            "microphone": True,
            "camera": False,
            "duration_seconds": 5.0,
            "recommend": False,
            "profile_updates": None,
        }
    ]


def test_main_rejects_non_positive_duration(monkeypatch):
    monkeypatch.setattr(app, "launch", lambda **kwargs: pytest.fail("launched"))

    with pytest.raises(SystemExit):
        app_main.main(["--duration", "0"])


def test_launch_respects_skip_flag(monkeypatch):
    monkeypatch.setattr(app, "SKIP_APP_INIT", True)
    monkeypatch.setattr(app, "build_services", lambda **kwargs: pytest.fail("built"))

    app.launch()


def test_serve_starts_recommends_and_runs():
    runtime = _Runtime()
    services = SimpleNamespace(runtime=runtime)

    asyncio.run(app._serve(services, duration_seconds=3.0, recommend=True))

    assert runtime.calls == ["start", "recommend", ("run", 3.0)]


def test_build_services_honours_sensor_switches(tmp_path):
    config = dataclasses.replace(
        app.CONFIG,
        state_path=str(tmp_path / "state.json"),
        gemini_api_key="",
        youtube_api_key="",
        mic_enabled=True,
        camera_enabled=True,
    )

    services = app.build_services(microphone=False, camera=False, config=config)

    assert services.microphone is None
    assert services.camera is None
    assert services.runtime.microphone is None


def test_main_passes_taste_profile_edits(monkeypatch):
    calls = []
    monkeypatch.setattr(app, "launch", lambda **kwargs: calls.append(kwargs))

    app_main.main(
        [
            "--genres",
            "soul, dub ,",
            "--exclude-genres",
            "",
            "--energy",
            "0.8",
            "--no-explicit",
        ]
    )

    assert calls[0]["profile_updates"] == {
        "favorite_genres": ["soul", "dub"],
        "excluded_genres": [],
        "energy": 0.8,
        "explicit_content": False,
    }


def test_main_rejects_out_of_range_profile_values():
    with pytest.raises(SystemExit):
        app_main.build_parser().parse_args(["--discovery", "1.5"])
    with pytest.raises(SystemExit):
        app_main.build_parser().parse_args(["--energy", "loud"])
