"""Listener taste profile sent alongside the signal snapshot."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from ..utils import coerce_bool, coerce_float, coerce_str_list

DEFAULT_MOODS = ("productive",)
DEFAULT_GENRES = ("jazz", "lo-fi", "modern classical")
DEFAULT_EXCLUDED_GENRES = ("brostep", "hardcore")


def _unit(value: Any, default: float) -> float:
    return round(coerce_float(value, default=default, min_value=0.0, max_value=1.0), 2)


@dataclass(frozen=True)
class TasteProfile:
    primary_moods: tuple[str, ...] = DEFAULT_MOODS
    favorite_genres: tuple[str, ...] = DEFAULT_GENRES
    excluded_genres: tuple[str, ...] = DEFAULT_EXCLUDED_GENRES
    discovery_mode: float = 0.45
    explicit_content: bool = False
    energy_floor: float = 0.2
    valence: float = 0.45
    energy: float = 0.35
    texture: float = 0.6

    @property
    def tempo_bpm(self) -> int:
        # Slider energy maps linearly onto 70-160 BPM.
        return int(round(70 + min(1.0, max(0.0, self.energy)) * 90))

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_profile": {
                "identity": {
                    "primary_mood": list(self.primary_moods),
                    "core_genres": list(self.favorite_genres),
                    "energy_floor": _unit(self.energy_floor, 0.2),
                },
                "taste_profile": {
                    "favorite_genres": list(self.favorite_genres),
                    "excluded_genres": list(self.excluded_genres),
                    "discovery_mode": _unit(self.discovery_mode, 0.45),
                    "explicit_content": bool(self.explicit_content),
                },
                "vibe_matrix": {
                    "target_valence": _unit(self.valence, 0.45),
                    "target_energy": _unit(self.energy, 0.35),
                    "target_tempo_bpm": self.tempo_bpm,
                    "target_acousticness": _unit(self.texture, 0.6),
                    "target_instrumentalness": _unit(self.texture, 0.6),
                },
            }
        }

    @classmethod
    def from_payload(cls, payload: Any) -> "TasteProfile":
        """Rebuild a profile from a stored payload, filling gaps with defaults."""
        if not isinstance(payload, Mapping):
            return cls()
        root = payload.get("user_profile", payload)
        if not isinstance(root, Mapping):
            return cls()
        identity = root.get("identity") if isinstance(root.get("identity"), Mapping) else {}
        taste = (
            root.get("taste_profile") if isinstance(root.get("taste_profile"), Mapping) else {}
        )
        vibe = root.get("vibe_matrix") if isinstance(root.get("vibe_matrix"), Mapping) else {}

        moods = coerce_str_list(identity.get("primary_mood"), default=list(DEFAULT_MOODS))
        genres = coerce_str_list(taste.get("favorite_genres"), default=[])
        if not genres:
            genres = coerce_str_list(identity.get("core_genres"), default=list(DEFAULT_GENRES))
        excluded = coerce_str_list(
            taste.get("excluded_genres"), default=list(DEFAULT_EXCLUDED_GENRES)
        )
        return cls(
            primary_moods=tuple(moods) or DEFAULT_MOODS,
            favorite_genres=tuple(genres),
            excluded_genres=tuple(excluded),
            discovery_mode=_unit(taste.get("discovery_mode"), 0.45),
            explicit_content=coerce_bool(taste.get("explicit_content"), default=False),
            energy_floor=_unit(identity.get("energy_floor"), 0.2),
            valence=_unit(vibe.get("target_valence"), 0.45),
            energy=_unit(vibe.get("target_energy"), 0.35),
            texture=_unit(vibe.get("target_acousticness"), 0.6),
        )


_LIST_FIELDS = ("primary_moods", "favorite_genres", "excluded_genres")
_UNIT_FIELDS = ("discovery_mode", "energy_floor", "valence", "energy", "texture")


def update_profile(profile: TasteProfile, updates: Mapping[str, Any]) -> TasteProfile:
    """Apply user edits on top of ``profile``; None values leave a field unchanged."""
    changes: dict[str, Any] = {}
    for name, value in updates.items():
        if value is None:
            continue
        if name in _LIST_FIELDS:
            changes[name] = tuple(coerce_str_list(value, default=list(getattr(profile, name))))
        elif name in _UNIT_FIELDS:
            changes[name] = _unit(value, getattr(profile, name))
        elif name == "explicit_content":
            changes[name] = coerce_bool(value, default=profile.explicit_content)
        else:
            raise ValueError(f"Unknown taste profile field: {name}")
    if "primary_moods" in changes and not changes["primary_moods"]:
        changes["primary_moods"] = DEFAULT_MOODS
    return replace(profile, **changes)
