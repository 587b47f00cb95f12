"""Forecast lookup through api.weather.gov with a per-coordinate cache."""
from __future__ import annotations

from typing import Any, Optional

from ..domain.signals import WeatherForecast, WeatherPeriod
from ..errors import WeatherFailure
from ..storage.cache import ExpiringCache, stable_key
from .http import request_json


def round_coordinate(value: float) -> float:
    return round(float(value), 3)


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as exc:
        raise WeatherFailure("Invalid coordinates.") from exc
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        raise WeatherFailure("Invalid coordinates.")
    return round_coordinate(lat), round_coordinate(lon)


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _format_temperature(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def build_period(period: dict[str, Any]) -> WeatherPeriod:
    is_daytime = period.get("isDaytime")
    return WeatherPeriod(
        name=_text(period.get("name")),
        start_time=_text(period.get("startTime")),
        is_daytime=is_daytime if isinstance(is_daytime, bool) else None,
        temperature=_number(period.get("temperature")),
        temperature_unit=_text(period.get("temperatureUnit")),
        short_forecast=_text(period.get("shortForecast")),
        detailed_forecast=_text(period.get("detailedForecast")),
        wind_speed=_text(period.get("windSpeed")),
        wind_direction=_text(period.get("windDirection")),
        icon=_text(period.get("icon")),
    )


def build_forecast(periods: list[dict[str, Any]]) -> WeatherForecast:
    """Summarize the first forecast period as ``"shortForecast, T°U"``."""
    first = build_period(periods[0])
    parts = [first.short_forecast or first.detailed_forecast or "Unknown"]
    if first.temperature is not None and first.temperature_unit:
        parts.append(f"{_format_temperature(first.temperature)}°{first.temperature_unit}")
    return WeatherForecast(
        summary=", ".join(parts),
        temperature=first.temperature,
        temperature_unit=first.temperature_unit,
        short_forecast=first.short_forecast,
        detailed_forecast=first.detailed_forecast,
        updated_at=first.start_time,
        periods=tuple(build_period(period) for period in periods if isinstance(period, dict)),
    )


class WeatherClient:
    def __init__(
        self,
        *,
        base_url: str,
        user_agent: str,
        timeout_seconds: int = 30,
        cache_ttl_seconds: float = 600,
        cache: ExpiringCache[WeatherForecast] | None = None,
        logger=None,
    ) -> None:
        self.base_url = (base_url or "").strip().rstrip("/")
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self.cache = cache if cache is not None else ExpiringCache(cache_ttl_seconds)
        self.logger = logger

    def _get(self, url: str) -> Any:
        return request_json(
            url,
            service="Weather",
            error_cls=WeatherFailure,
            headers={"User-Agent": self.user_agent, "Accept": "application/geo+json"},
            timeout_seconds=self.timeout_seconds,
        )

    def forecast(self, latitude: float, longitude: float) -> WeatherForecast:
        lat, lon = validate_coordinates(latitude, longitude)
        cache_key = stable_key({"lat": lat, "lon": lon})
        cached = self.cache.get(cache_key)
        if cached is not None:
            if self.logger is not None:
                self.logger.debug("Weather cache hit for %s,%s", lat, lon)
            return cached

        point = self._get(f"{self.base_url}/points/{lat},{lon}")
        properties = point.get("properties") if isinstance(point, dict) else None
        forecast_url = properties.get("forecast") if isinstance(properties, dict) else None
        if not isinstance(forecast_url, str) or not forecast_url:
            raise WeatherFailure("Weather lookup failed: no forecast URL for point.")

        data = self._get(forecast_url)
        properties = data.get("properties") if isinstance(data, dict) else None
        periods = properties.get("periods") if isinstance(properties, dict) else None
        if not isinstance(periods, list) or not periods or not isinstance(periods[0], dict):
            raise WeatherFailure("Weather lookup failed: forecast has no periods.")

        forecast = build_forecast(periods)
        self.cache.set(cache_key, forecast)
        if self.logger is not None:
            self.logger.info("Weather for %s,%s: %s", lat, lon, forecast.summary)
        return forecast
