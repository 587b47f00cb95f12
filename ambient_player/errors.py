"""Error taxonomy shared by sensors, collaborators, and the playback surface."""
from __future__ import annotations


class AmbientPlayerError(RuntimeError):
    """Base class for recoverable ambient player failures."""


class SensorUnavailable(AmbientPlayerError):
    """Raised when a sensor device is denied or missing.

    Terminal for that sensor until the user retries access.
    """

    def __init__(self, message: str, *, denied: bool = False) -> None:
        super().__init__(message)
        self.denied = bool(denied)


class SensorFault(AmbientPlayerError):
    """Raised on a transient capture error; terminal until stop/restart."""


class OracleFailure(AmbientPlayerError):
    """Raised when the recommendation oracle fails or returns a malformed payload."""


class SearchFailure(AmbientPlayerError):
    """Raised when the search collaborator fails or returns no results."""


class WeatherFailure(AmbientPlayerError):
    """Raised when the weather lookup fails."""


class SurfaceFault(AmbientPlayerError):
    """Raised when the playback surface cannot initialize or play."""
