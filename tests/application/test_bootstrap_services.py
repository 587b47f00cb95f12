import dataclasses

from ambient_player.application.bootstrap import (
    configured_coordinates,
    initialize_app_services,
    resolve_credentials,
)
from ambient_player.application.events import RecommendationStatus
from ambient_player.config import load_config
from ambient_player.domain.playlist import QueueItem
from ambient_player.domain.signals import Coordinates
from ambient_player.storage.state_repository import Credentials, StateRepository


class _Logger:
    def __init__(self):
        self.messages = []

    def _log(self, message, *args, **kwargs):
        self.messages.append(message % args if args else message)

    debug = info = warning = error = exception = _log


class _Surface:
    acquired = False


def _config(monkeypatch, tmp_path, **overrides):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    base = load_config()
    values = {
        "state_path": str(tmp_path / "state.json"),
        "gemini_api_key": "",
        "youtube_api_key": "",
        "mic_enabled": False,
        "camera_enabled": False,
        "location_latitude": None,
        "location_longitude": None,
        "remember_credentials": False,
    }
    values.update(overrides)
    return dataclasses.replace(base, **values)


def test_resolve_credentials_prefers_environment():
    config = dataclasses.replace(
        load_config(), gemini_api_key="env-gemini", youtube_api_key=""
    )
    stored = Credentials(gemini_api_key="old", youtube_api_key="stored-yt")

    assert resolve_credentials(config, stored) == Credentials("env-gemini", "stored-yt")


def test_configured_coordinates(monkeypatch, tmp_path):
    assert configured_coordinates(_config(monkeypatch, tmp_path)) is None
    config = _config(
        monkeypatch,
        tmp_path,
        location_latitude=40.7,
        location_longitude=-74.0,
        location_accuracy_meters=25.0,
    )
    assert configured_coordinates(config) == Coordinates(40.7, -74.0, 25.0)


def test_missing_keys_disable_recommendations(monkeypatch, tmp_path):
    logger = _Logger()
    surface = _Surface()

    services = initialize_app_services(
        config=_config(monkeypatch, tmp_path), logger=logger, surface=surface
    )

    assert services.controller.state.recommendation_status is RecommendationStatus.DISABLED
    assert services.surface is surface
    assert services.microphone is None
    assert services.camera is None
    assert services.runtime.surface is surface
    assert any("disabled" in line for line in logger.messages)


def test_services_restore_queue_and_remember_keys(monkeypatch, tmp_path):
    config = _config(
        monkeypatch,
        tmp_path,
        gemini_api_key="g",
        youtube_api_key="y",
        remember_credentials=True,
    )
    seeded = StateRepository(config.state_path, _Logger())
    item = QueueItem("abcdefghijk", "Song", "Channel", "2026-01-01T00:00:00+00:00")
    seeded.save_queue((item,))

    services = initialize_app_services(config=config, logger=_Logger(), surface=_Surface())

    assert services.controller.queue == (item,)
    assert services.controller.state.recommendation_status is RecommendationStatus.IDLE
    assert services.location.request_access().value == "unsupported"
    reloaded = StateRepository(config.state_path, _Logger())
    assert reloaded.load_credentials() == Credentials("g", "y")
    assert reloaded.load_settings().onboarding_complete is True


def test_profile_updates_are_saved_for_later_sessions(monkeypatch, tmp_path):
    config = _config(monkeypatch, tmp_path)
    logger = _Logger()

    services = initialize_app_services(
        config=config,
        logger=logger,
        surface=_Surface(),
        profile_updates={"favorite_genres": ["soul", "dub"], "energy": 0.8},
    )

    assert services.profile.favorite_genres == ("soul", "dub")
    assert services.runtime.profile == services.profile
    stored = StateRepository(config.state_path, _Logger()).load_profile()
    assert stored.favorite_genres == ("soul", "dub")
    assert stored.energy == 0.8
    assert any("Taste profile updated" in line for line in logger.messages)

    later = initialize_app_services(config=config, logger=_Logger(), surface=_Surface())
    assert later.profile.favorite_genres == ("soul", "dub")
