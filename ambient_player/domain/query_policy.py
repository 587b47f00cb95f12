"""Rules that turn oracle output into a specific, searchable track query."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .sensors import is_useful_signal

BANNED_TERMS = (
    "playlist",
    "mix",
    "radio",
    "album",
    "discography",
    "top hits",
    "best of",
    "live set",
    "compilation",
)
DEFAULT_TRACK_QUERY = "M83 - Midnight City"
FALLBACK_TRACK_SUFFIX = '"Midnight City" by M83'
FALLBACK_RATIONALE = "Fallback query generated without LLM output."
MAX_SEARCH_RESULTS = 5


@dataclass(frozen=True)
class TrackQuery:
    query: str
    max_results: int
    rationale: str
    used_fallback: bool


def contains_banned_term(value: str) -> bool:
    lowered = value.lower()
    return any(term in lowered for term in BANNED_TERMS)


def is_specific_song_query(value: str) -> bool:
    """True when the query names one track: an artist separator and 3+ words."""
    text = (value or "").strip()
    if not text or contains_banned_term(text):
        return False
    has_separator = " - " in text or " by " in text.lower()
    return has_separator and len(text.split()) >= 3


def build_query_from_parsed(parsed: Optional[Mapping[str, Any]]) -> str:
    if not isinstance(parsed, Mapping):
        return ""
    song_title = parsed.get("song_title")
    artist = parsed.get("artist")
    song_title = song_title.strip() if isinstance(song_title, str) else ""
    artist = artist.strip() if isinstance(artist, str) else ""
    if song_title and artist:
        return f"{artist} - {song_title}"
    query = parsed.get("query")
    return query.strip() if isinstance(query, str) else ""


def clamp_max_results(value: Any, default: int = 1) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = default
    return max(1, min(MAX_SEARCH_RESULTS, parsed))


def fallback_query(hints: Iterable[Optional[str]]) -> str:
    useful = [
        hint.strip()
        for hint in hints
        if is_useful_signal(hint) and not contains_banned_term(hint)
    ]
    context = " ".join(useful).strip()
    if not context:
        return DEFAULT_TRACK_QUERY
    return f"{context} - {FALLBACK_TRACK_SUFFIX}"


def fallback_track_query(hints: Iterable[Optional[str]]) -> TrackQuery:
    return TrackQuery(
        query=fallback_query(hints),
        max_results=1,
        rationale=FALLBACK_RATIONALE,
        used_fallback=True,
    )


def resolve_query(
    parsed: Optional[Mapping[str, Any]],
    hints: Iterable[Optional[str]],
) -> TrackQuery:
    """Accept the oracle's query when it is specific, else build the fallback."""
    query = build_query_from_parsed(parsed)
    if query and is_specific_song_query(query):
        rationale = parsed.get("rationale") if parsed else None
        return TrackQuery(
            query=query,
            max_results=clamp_max_results(parsed.get("maxResults", 1) if parsed else 1),
            rationale=rationale.strip() if isinstance(rationale, str) else "",
            used_fallback=False,
        )
    return fallback_track_query(hints)
