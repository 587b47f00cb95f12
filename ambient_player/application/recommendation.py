"""One oracle -> search -> enqueue round trip."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, Optional

from ..domain.playlist import QueueItem
from ..domain.profile import TasteProfile
from ..domain.query_policy import TrackQuery, fallback_track_query, resolve_query
from ..domain.signals import SignalSnapshot
from ..errors import OracleFailure, SearchFailure
from .events import RecommendationStatus
from .ports import RecommendationOraclePort, TrackSearchPort


@dataclass(frozen=True)
class RecommendationOutcome:
    items: tuple[QueueItem, ...]
    query: str
    rationale: str
    used_fallback: bool
    status: RecommendationStatus
    error: Optional[str] = None


def snapshot_hints(snapshot: SignalSnapshot) -> tuple[str, str, str]:
    return (snapshot.scene_mood, snapshot.ambience_descriptor, snapshot.weather.summary)


class RecommendationCycle:
    """Runs recommendation cycles, at most one at a time.

    A trigger that arrives while a cycle is running is ignored rather than
    queued: ``run`` returns None immediately.
    """

    def __init__(
        self,
        oracle: RecommendationOraclePort,
        search: TrackSearchPort,
        logger,
        *,
        source: str = "llm",
    ) -> None:
        self.oracle = oracle
        self.search = search
        self.logger = logger
        self.source = source
        self._in_flight = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self._in_flight.locked()

    def run(
        self,
        snapshot: SignalSnapshot,
        profile: TasteProfile,
        existing_ids: Iterable[str],
        *,
        reason: str = "user-request",
    ) -> Optional[RecommendationOutcome]:
        if not self._in_flight.acquire(blocking=False):
            self.logger.info("Recommendation already in flight; ignoring %s trigger", reason)
            return None
        try:
            return self._run(snapshot, profile, set(existing_ids), reason)
        finally:
            self._in_flight.release()

    def _ask_oracle(
        self, snapshot: SignalSnapshot, profile: TasteProfile
    ) -> tuple[TrackQuery, Optional[str]]:
        hints = snapshot_hints(snapshot)
        try:
            parsed = self.oracle.recommend(snapshot.to_payload(), profile.to_payload())
        except OracleFailure as exc:
            self.logger.warning("Recommendation oracle failed: %s", exc)
            return fallback_track_query(hints), str(exc)
        track = resolve_query(parsed, hints)
        if track.used_fallback:
            self.logger.info(
                "Oracle answer was not a specific track; using fallback query %r",
                track.query,
            )
        return track, None

    def _run(
        self,
        snapshot: SignalSnapshot,
        profile: TasteProfile,
        existing_ids: set[str],
        reason: str,
    ) -> RecommendationOutcome:
        self.logger.info("Recommendation cycle started (%s)", reason)
        track, oracle_error = self._ask_oracle(snapshot, profile)

        try:
            results = self.search.search(track.query, max_results=track.max_results)
        except SearchFailure as exc:
            self.logger.warning("Track search failed for %r: %s", track.query, exc)
            return self._outcome(track, (), RecommendationStatus.ERROR, str(exc))
        if not results:
            message = "No videos returned for the recommended query."
            self.logger.warning("%s query=%r", message, track.query)
            return self._outcome(track, (), RecommendationStatus.ERROR, message)

        items: list[QueueItem] = []
        for result in results:
            if result.video_id in existing_ids:
                continue
            existing_ids.add(result.video_id)
            items.append(
                result.to_queue_item(
                    query=track.query,
                    rationale=track.rationale,
                    source=self.source,
                )
            )
        if len(items) < len(results):
            self.logger.debug(
                "Skipped %s result(s) already in the queue", len(results) - len(items)
            )

        status = RecommendationStatus.ERROR if oracle_error else RecommendationStatus.READY
        self.logger.info(
            "Recommendation cycle finished: query=%r added=%s fallback=%s",
            track.query,
            len(items),
            track.used_fallback,
        )
        return self._outcome(track, tuple(items), status, oracle_error)

    @staticmethod
    def _outcome(
        track: TrackQuery,
        items: tuple[QueueItem, ...],
        status: RecommendationStatus,
        error: Optional[str],
    ) -> RecommendationOutcome:
        return RecommendationOutcome(
            items=items,
            query=track.query,
            rationale=track.rationale,
            used_fallback=track.used_fallback,
            status=status,
            error=error,
        )
