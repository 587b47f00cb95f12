"""Integrations for external services and devices."""

from .camera import CameraSensor
from .gemini import GeminiOracle, build_prompt, supports_web_search
from .location import ConfiguredLocationSensor
from .microphone import MicrophoneSensor
from .vlc_surface import VlcPlaybackSurface, validate_video_id
from .weather import WeatherClient
from .youtube_search import YouTubeSearchClient, parse_search_results

__all__ = [
    "CameraSensor",
    "ConfiguredLocationSensor",
    "GeminiOracle",
    "MicrophoneSensor",
    "VlcPlaybackSurface",
    "WeatherClient",
    "YouTubeSearchClient",
    "build_prompt",
    "parse_search_results",
    "supports_web_search",
    "validate_video_id",
]
