import pytest

from ambient_player.domain.playlist import (
    QueueItem,
    VideoResult,
    index_of,
    merge_unique,
    queue_from_payload,
)
from ambient_player.domain.profile import DEFAULT_MOODS, TasteProfile, update_profile


def _item(video_id, title=None):
    return QueueItem(
        video_id=video_id,
        title=title or f"Track {video_id}",
        channel_title="Channel",
        added_at="2024-01-01T00:00:00+00:00",
    )


def test_merge_unique_drops_queued_and_repeated_ids():
    queue = (_item("a"),)

    merged, added = merge_unique(queue, [_item("a"), _item("b"), _item("b"), _item("c")])

    assert [item.video_id for item in merged] == ["a", "b", "c"]
    assert [item.video_id for item in added] == ["b", "c"]


def test_merge_unique_keeps_queue_unique_over_many_batches():
    queue = ()
    for batch in (["a", "b"], ["b", "c"], ["a", "c", "d"], ["d"]):
        queue, _ = merge_unique(queue, [_item(video_id) for video_id in batch])

    ids = [item.video_id for item in queue]
    assert ids == ["a", "b", "c", "d"]
    assert len(ids) == len(set(ids))


def test_index_of_and_payload_roundtrip_skips_bad_entries():
    queue = (_item("a"), _item("b"))
    assert index_of(queue, "b") == 1
    assert index_of(queue, "z") is None
    assert index_of(queue, None) is None

    payload = [item.to_payload() for item in queue] + [{"title": "no id"}, "junk", queue[0].to_payload()]
    restored = queue_from_payload(payload)

    assert restored == queue
    assert queue_from_payload({"not": "a list"}) == ()


def test_video_result_fills_defaults_when_converted():
    item = VideoResult("abcdefghijk", title="", channel_title="").to_queue_item(
        query="Artist - Song Name", rationale="", added_at="now"
    )

    assert item.title == "Untitled"
    assert item.channel_title == "Unknown channel"
    assert item.rationale is None
    assert item.source == "llm"
    assert "rationale" not in item.to_payload()


def test_taste_profile_payload_roundtrip_and_defaults():
    profile = TasteProfile(favorite_genres=("soul",), energy=1.0, explicit_content=True)

    payload = profile.to_payload()
    vibe = payload["user_profile"]["vibe_matrix"]
    assert vibe["target_tempo_bpm"] == 160
    assert payload["user_profile"]["identity"]["core_genres"] == ["soul"]

    restored = TasteProfile.from_payload(payload)
    assert restored.favorite_genres == ("soul",)
    assert restored.explicit_content is True
    assert restored.energy == 1.0

    assert TasteProfile.from_payload("garbage") == TasteProfile()


def test_update_profile_applies_only_given_fields():
    base = TasteProfile()

    updated = update_profile(
        base,
        {
            "favorite_genres": ["soul"],
            "excluded_genres": [],
            "primary_moods": [],
            "energy": 1.7,
            "explicit_content": "yes",
            "valence": None,
        },
    )

    assert updated.favorite_genres == ("soul",)
    assert updated.excluded_genres == ()
    assert updated.primary_moods == DEFAULT_MOODS
    assert updated.energy == 1.0
    assert updated.explicit_content is True
    assert updated.valence == base.valence
    with pytest.raises(ValueError):
        update_profile(base, {"tempo": 120})
