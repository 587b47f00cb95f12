"""Best-effort JSON persistence for the queue, taste profile, and settings."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from ..domain.playlist import QueueItem, queue_from_payload
from ..domain.profile import TasteProfile
from ..utils import coerce_bool

QUEUE_SECTION = "playlist_queue"
PROFILE_SECTION = "taste_profile"
SETTINGS_SECTION = "settings"
CREDENTIALS_SECTION = "credentials"


@dataclass(frozen=True)
class PlayerSettings:
    llm_model: str = ""
    onboarding_complete: bool = False
    remember_credentials: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "llm_model": self.llm_model,
            "onboarding_complete": self.onboarding_complete,
            "remember_credentials": self.remember_credentials,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> "PlayerSettings":
        if not isinstance(payload, Mapping):
            return cls()
        return cls(
            llm_model=str(payload.get("llm_model") or "").strip(),
            onboarding_complete=coerce_bool(payload.get("onboarding_complete"), default=False),
            remember_credentials=coerce_bool(
                payload.get("remember_credentials"), default=False
            ),
        )


@dataclass(frozen=True)
class Credentials:
    gemini_api_key: str = ""
    youtube_api_key: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.gemini_api_key or self.youtube_api_key)


class StateRepository:
    """Reads and writes named sections of one JSON state file.

    Failures are logged and swallowed: the file is a cache, not a store of
    record. Credentials are written only while ``remember_credentials`` is on;
    otherwise any stored copy is removed on the next save.
    """

    def __init__(self, path: str | Path, logger) -> None:
        self.path = Path(path)
        self.logger = logger

    def _read_all(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            self.logger.exception("Failed to read player state: %s", self.path)
            return {}
        if not isinstance(payload, dict):
            return {}
        return payload

    def _write_all(self, payload: Mapping[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(payload, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError):
            self.logger.exception("Failed to save player state: %s", self.path)

    def _save_section(self, section: str, value: Any) -> None:
        payload = self._read_all()
        payload[section] = value
        self._write_all(payload)

    def load_queue(self) -> tuple[QueueItem, ...]:
        return queue_from_payload(self._read_all().get(QUEUE_SECTION))

    def save_queue(self, items: tuple[QueueItem, ...]) -> None:
        self._save_section(QUEUE_SECTION, [item.to_payload() for item in items])

    def load_profile(self) -> TasteProfile:
        return TasteProfile.from_payload(self._read_all().get(PROFILE_SECTION))

    def save_profile(self, profile: TasteProfile) -> None:
        self._save_section(PROFILE_SECTION, profile.to_payload())

    def load_settings(self) -> PlayerSettings:
        return PlayerSettings.from_payload(self._read_all().get(SETTINGS_SECTION))

    def save_settings(
        self,
        settings: PlayerSettings,
        credentials: Optional[Credentials] = None,
    ) -> None:
        payload = self._read_all()
        payload[SETTINGS_SECTION] = settings.to_payload()
        if settings.remember_credentials and credentials is not None and not credentials.is_empty:
            payload[CREDENTIALS_SECTION] = {
                "gemini_api_key": credentials.gemini_api_key,
                "youtube_api_key": credentials.youtube_api_key,
            }
        else:
            payload.pop(CREDENTIALS_SECTION, None)
        self._write_all(payload)

    def load_credentials(self) -> Credentials:
        payload = self._read_all()
        settings = PlayerSettings.from_payload(payload.get(SETTINGS_SECTION))
        raw = payload.get(CREDENTIALS_SECTION)
        if not settings.remember_credentials or not isinstance(raw, Mapping):
            return Credentials()
        return Credentials(
            gemini_api_key=str(raw.get("gemini_api_key") or "").strip(),
            youtube_api_key=str(raw.get("youtube_api_key") or "").strip(),
        )
