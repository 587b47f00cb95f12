"""Recommendation oracle backed by the Gemini ``generateContent`` REST API."""
from __future__ import annotations

import json
import urllib.parse
from typing import Any

from ..config import DEFAULT_LLM_MODEL
from ..errors import OracleFailure
from .http import request_json

WEB_SEARCH_MODELS = frozenset(
    {
        "gemini-3-pro-preview",
        "gemini-3-flash-preview",
        "gemini-2.5-flash",
        "gemini-2.5-pro",
    }
)

CURATOR_PROMPT = """
You are a music curator. Pick the ONE song this room needs right now.

How to choose:
1. Combine location, time of day, weather, ambient noise, tempo, lighting and mood into one picture of the room.
2. Use pastTracks and favorite_genres to infer the listener's sonic DNA. Never repeat a track from pastTracks.
3. Pull on tempo (match or counter the room), texture (warm vs cold, morning vs night) and culture.
4. Now and then pick a left-field track that shares DNA with the history but comes from another decade or region.
5. If a search tool is available, use it to confirm the song and artist exist.

Always return one specific track. Never return a playlist, radio mix, album, artist-only or genre-only search.

Context JSON:
{signals}

User profile JSON:
{profile}

Return JSON only:
{{
  "song_title": "string",
  "artist": "string",
  "query": "string (format: Artist - Song Title)",
  "maxResults": 1,
  "rationale": "short string"
}}
""".strip()


def build_prompt(signals: dict[str, Any], profile: dict[str, Any] | None) -> str:
    return CURATOR_PROMPT.format(
        signals=json.dumps(signals, ensure_ascii=False, indent=2),
        profile=json.dumps(profile, ensure_ascii=False, indent=2),
    )


def supports_web_search(model: str) -> bool:
    return (model or "").strip() in WEB_SEARCH_MODELS


def _extract_response_text(data: Any) -> str:
    if not isinstance(data, dict):
        raise OracleFailure("Gemini response must be a JSON object.")
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise OracleFailure("Gemini response has no candidates.")
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise OracleFailure("Gemini response has no content parts.")
    chunks = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    text = "\n".join(chunk for chunk in chunks if chunk).strip()
    if not text:
        raise OracleFailure("Gemini returned an empty message.")
    return text


def _extract_first_json_object(raw: str) -> dict[str, Any]:
    text = (raw or "").strip()
    if not text:
        raise OracleFailure("Gemini returned an empty message.")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        decoder = json.JSONDecoder()
        for index, char in enumerate(text):
            if char != "{":
                continue
            try:
                payload, _ = decoder.raw_decode(text[index:])
                break
            except json.JSONDecodeError:
                continue
        else:
            raise OracleFailure("Gemini response is not valid JSON.")
    if not isinstance(payload, dict):
        raise OracleFailure("Gemini response must be a JSON object.")
    return payload


class GeminiOracle:
    """Sends the signal snapshot and taste profile to Gemini and returns its JSON answer."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str = DEFAULT_LLM_MODEL,
        timeout_seconds: int = 30,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or "").strip().rstrip("/")
        self.model = (model or "").strip() or DEFAULT_LLM_MODEL
        self.timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _endpoint(self) -> str:
        if not self.base_url:
            raise OracleFailure("Gemini base URL is empty.")
        model = urllib.parse.quote(self.model, safe="-._")
        return f"{self.base_url}/models/{model}:generateContent"

    def _post_generate_content(self, payload: dict[str, Any]) -> Any:
        return request_json(
            self._endpoint(),
            service="Gemini",
            error_cls=OracleFailure,
            method="POST",
            payload=payload,
            headers={"x-goog-api-key": self.api_key},
            timeout_seconds=self.timeout_seconds,
        )

    def recommend(self, signals: dict[str, Any], profile: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise OracleFailure("Missing GEMINI_API_KEY.")
        payload: dict[str, Any] = {
            "contents": [
                {"role": "user", "parts": [{"text": build_prompt(signals, profile)}]}
            ],
        }
        if supports_web_search(self.model):
            payload["tools"] = [{"google_search": {}}]
        response = self._post_generate_content(payload)
        return _extract_first_json_object(_extract_response_text(response))
