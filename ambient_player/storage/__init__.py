"""Storage layer for caches and persisted player state."""

from .cache import ExpiringCache, stable_key
from .state_repository import Credentials, PlayerSettings, StateRepository

__all__ = [
    "Credentials",
    "ExpiringCache",
    "PlayerSettings",
    "StateRepository",
    "stable_key",
]
