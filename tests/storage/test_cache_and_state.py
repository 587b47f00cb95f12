import json

from ambient_player.domain.playlist import QueueItem
from ambient_player.domain.profile import TasteProfile
from ambient_player.storage.cache import ExpiringCache, stable_key
from ambient_player.storage.state_repository import (
    Credentials,
    PlayerSettings,
    StateRepository,
)


class _Logger:
    def __init__(self):
        self.exceptions = []

    def exception(self, message, *args):
        self.exceptions.append(message % args if args else message)


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _item(video_id):
    return QueueItem(video_id, f"Song {video_id}", "Channel", "2024-01-01T00:00:00+00:00")


def test_expiring_cache_drops_entries_on_read_after_ttl():
    clock = _Clock()
    cache = ExpiringCache(600, clock=clock)
    cache.set("k", "v")

    clock.now = 600.0
    assert cache.get("k") == "v"

    clock.now = 600.5
    assert cache.get("k") is None
    assert len(cache) == 0
    assert cache.get("missing") is None


def test_stable_key_ignores_dict_order():
    assert stable_key({"lat": 1.0, "lon": 2.0}) == stable_key({"lon": 2.0, "lat": 1.0})


def test_queue_and_profile_roundtrip(tmp_path):
    repository = StateRepository(tmp_path / "state" / "player.json", _Logger())
    queue = (_item("a"), _item("b"))
    profile = TasteProfile(favorite_genres=("dub",), valence=0.8)

    repository.save_queue(queue)
    repository.save_profile(profile)

    assert repository.load_queue() == queue
    assert repository.load_profile().favorite_genres == ("dub",)
    assert repository.load_profile().valence == 0.8
    stored = json.loads((tmp_path / "state" / "player.json").read_text(encoding="utf-8"))
    assert set(stored) == {"playlist_queue", "taste_profile"}


def test_missing_and_corrupt_files_fall_back_to_defaults(tmp_path):
    logger = _Logger()
    path = tmp_path / "player.json"
    repository = StateRepository(path, logger)

    assert repository.load_queue() == ()
    assert repository.load_settings() == PlayerSettings()

    path.write_text("{not json", encoding="utf-8")
    assert repository.load_profile() == TasteProfile()
    assert logger.exceptions

    path.write_text("[1, 2]", encoding="utf-8")
    assert repository.load_queue() == ()


def test_credentials_only_written_when_remembered(tmp_path):
    path = tmp_path / "player.json"
    repository = StateRepository(path, _Logger())
    keys = Credentials(gemini_api_key="g-key", youtube_api_key="y-key")

    repository.save_settings(PlayerSettings(llm_model="gemini-2.5-flash"), keys)
    assert "credentials" not in json.loads(path.read_text(encoding="utf-8"))
    assert repository.load_credentials() == Credentials()

    repository.save_settings(PlayerSettings(remember_credentials=True), keys)
    assert repository.load_credentials() == keys

    repository.save_settings(PlayerSettings(remember_credentials=False), keys)
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert "credentials" not in stored
    assert stored["settings"]["remember_credentials"] is False


def test_write_failures_are_logged(tmp_path):
    logger = _Logger()
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    repository = StateRepository(blocker / "player.json", logger)

    repository.save_queue((_item("a"),))

    assert any("Failed to save player state" in line for line in logger.exceptions)
