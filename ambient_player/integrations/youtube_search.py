"""Track search through the YouTube Data API v3 ``search`` endpoint."""
from __future__ import annotations

import urllib.parse
from typing import Any

from ..domain.playlist import VideoResult
from ..domain.query_policy import clamp_max_results
from ..errors import SearchFailure
from .http import request_json


def parse_search_results(data: Any) -> list[VideoResult]:
    """Convert a search response into results, dropping entries without a video id."""
    if not isinstance(data, dict):
        raise SearchFailure("YouTube search response must be a JSON object.")
    items = data.get("items")
    if items is None:
        return []
    if not isinstance(items, list):
        raise SearchFailure("YouTube search response has an invalid items list.")
    results: list[VideoResult] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        identifier = item.get("id")
        video_id = identifier.get("videoId") if isinstance(identifier, dict) else None
        if not isinstance(video_id, str) or not video_id.strip():
            continue
        snippet = item.get("snippet") if isinstance(item.get("snippet"), dict) else {}
        title = snippet.get("title")
        channel = snippet.get("channelTitle")
        results.append(
            VideoResult(
                video_id=video_id.strip(),
                title=title if isinstance(title, str) and title else "Untitled",
                channel_title=(
                    channel if isinstance(channel, str) and channel else "Unknown channel"
                ),
            )
        )
    return results


class YouTubeSearchClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_seconds: int = 30,
        default_max_results: int = 1,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or "").strip().rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.default_max_results = clamp_max_results(default_max_results)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def search(self, query: str, *, max_results: int | None = None) -> list[VideoResult]:
        text = (query or "").strip()
        if not text:
            raise SearchFailure("Search query is empty.")
        if not self.api_key:
            raise SearchFailure("Missing YOUTUBE_API_KEY.")
        limit = clamp_max_results(
            self.default_max_results if max_results is None else max_results
        )
        params = urllib.parse.urlencode(
            {
                "part": "snippet",
                "type": "video",
                "q": text,
                "maxResults": limit,
                "key": self.api_key,
            }
        )
        data = request_json(
            f"{self.base_url}/search?{params}",
            service="YouTube search",
            error_cls=SearchFailure,
            timeout_seconds=self.timeout_seconds,
        )
        return parse_search_results(data)[:limit]
