"""Queue items and helpers that keep the playback queue free of duplicates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional


@dataclass(frozen=True)
class QueueItem:
    video_id: str
    title: str
    channel_title: str
    added_at: str
    source: str = "llm"
    query: str = ""
    rationale: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "video_id": self.video_id,
            "title": self.title,
            "channel_title": self.channel_title,
            "added_at": self.added_at,
            "source": self.source,
            "query": self.query,
        }
        if self.rationale:
            payload["rationale"] = self.rationale
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Optional["QueueItem"]:
        """Build an item from persisted JSON; returns None when the entry is unusable."""
        if not isinstance(payload, Mapping):
            return None
        video_id = str(payload.get("video_id") or "").strip()
        if not video_id:
            return None
        rationale = payload.get("rationale")
        return cls(
            video_id=video_id,
            title=str(payload.get("title") or "Untitled"),
            channel_title=str(payload.get("channel_title") or "Unknown channel"),
            added_at=str(payload.get("added_at") or ""),
            source=str(payload.get("source") or "llm"),
            query=str(payload.get("query") or ""),
            rationale=str(rationale) if rationale else None,
        )


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    value = moment or datetime.now(timezone.utc)
    return value.isoformat()


def merge_unique(
    queue: tuple[QueueItem, ...],
    incoming: Iterable[QueueItem],
) -> tuple[tuple[QueueItem, ...], tuple[QueueItem, ...]]:
    """Append items whose video id is not queued yet.

    Returns the merged queue and the items that were actually added. A later
    duplicate, including one repeated inside ``incoming``, is dropped.
    """
    seen = {item.video_id for item in queue}
    added: list[QueueItem] = []
    for item in incoming:
        if item.video_id in seen:
            continue
        seen.add(item.video_id)
        added.append(item)
    return queue + tuple(added), tuple(added)


def index_of(queue: tuple[QueueItem, ...], video_id: Optional[str]) -> Optional[int]:
    if video_id is None:
        return None
    for index, item in enumerate(queue):
        if item.video_id == video_id:
            return index
    return None


def queue_from_payload(payload: Any) -> tuple[QueueItem, ...]:
    if not isinstance(payload, list):
        return ()
    items = (QueueItem.from_payload(entry) for entry in payload)
    merged, _ = merge_unique((), (item for item in items if item is not None))
    return merged


@dataclass(frozen=True)
class VideoResult:
    video_id: str
    title: str = "Untitled"
    channel_title: str = "Unknown channel"

    def to_queue_item(
        self,
        *,
        query: str,
        rationale: Optional[str] = None,
        source: str = "llm",
        added_at: Optional[str] = None,
    ) -> QueueItem:
        return QueueItem(
            video_id=self.video_id,
            title=self.title or "Untitled",
            channel_title=self.channel_title or "Unknown channel",
            added_at=added_at or utc_timestamp(),
            source=source,
            query=query,
            rationale=rationale or None,
        )
