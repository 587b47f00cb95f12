"""Lighting, color, and mood descriptors derived from downsampled camera frames."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class LightLevel(str, Enum):
    DIM = "Dim"
    SOFT = "Soft"
    BRIGHT = "Bright"
    RADIANT = "Radiant"
    UNKNOWN = "Unknown"


class ColorTone(str, Enum):
    MUTED = "Muted"
    BALANCED = "Balanced"
    VIBRANT = "Vibrant"
    UNKNOWN = "Unknown"


class ColorTemperature(str, Enum):
    WARM = "Warm"
    NEUTRAL = "Neutral"
    COOL = "Cool"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class VisualSettings:
    update_interval_ms: float = 600.0
    dim_below: float = 0.25
    soft_below: float = 0.50
    bright_below: float = 0.78
    muted_below: float = 0.20
    balanced_below: float = 0.45
    temperature_margin: float = 18.0


@dataclass(frozen=True)
class VisualSample:
    brightness: float
    saturation: float
    color_temperature_bias: float
    red: float
    green: float
    blue: float

    @property
    def average_color(self) -> str:
        channels = (self.red, self.green, self.blue)
        return "#" + "".join(f"{max(0, min(255, int(round(value)))):02x}" for value in channels)


@dataclass(frozen=True)
class VisualDescriptors:
    lighting: LightLevel
    color_tone: ColorTone
    color_temperature: ColorTemperature
    mood: str


UNKNOWN_DESCRIPTORS = VisualDescriptors(
    lighting=LightLevel.UNKNOWN,
    color_tone=ColorTone.UNKNOWN,
    color_temperature=ColorTemperature.UNKNOWN,
    mood="Unknown",
)


def measure_pixels(pixels: np.ndarray | object) -> VisualSample:
    """Average an RGB frame (H x W x 3, 0-255) into a VisualSample."""
    rgb = np.asarray(pixels, dtype=np.float64)
    if rgb.ndim != 3 or rgb.shape[-1] < 3:
        raise ValueError(f"Expected an H x W x 3 RGB frame, got shape {rgb.shape}")
    rgb = rgb[..., :3].reshape(-1, 3)
    if rgb.shape[0] == 0:
        raise ValueError("Frame has no pixels")

    red, green, blue = (float(value) for value in rgb.mean(axis=0))
    channel_max = rgb.max(axis=1)
    channel_min = rgb.min(axis=1)
    saturation = np.divide(
        channel_max - channel_min,
        channel_max,
        out=np.zeros_like(channel_max),
        where=channel_max > 0,
    )
    brightness = (0.2126 * red + 0.7152 * green + 0.0722 * blue) / 255.0
    return VisualSample(
        brightness=float(brightness),
        saturation=float(saturation.mean()),
        color_temperature_bias=red - blue,
        red=red,
        green=green,
        blue=blue,
    )


def classify_light(brightness: float, settings: VisualSettings = VisualSettings()) -> LightLevel:
    if brightness < settings.dim_below:
        return LightLevel.DIM
    if brightness < settings.soft_below:
        return LightLevel.SOFT
    if brightness < settings.bright_below:
        return LightLevel.BRIGHT
    return LightLevel.RADIANT


def classify_tone(saturation: float, settings: VisualSettings = VisualSettings()) -> ColorTone:
    if saturation < settings.muted_below:
        return ColorTone.MUTED
    if saturation < settings.balanced_below:
        return ColorTone.BALANCED
    return ColorTone.VIBRANT


def classify_temperature(bias: float, settings: VisualSettings = VisualSettings()) -> ColorTemperature:
    if bias > settings.temperature_margin:
        return ColorTemperature.WARM
    if -bias > settings.temperature_margin:
        return ColorTemperature.COOL
    return ColorTemperature.NEUTRAL


# Evaluated top to bottom; the first match wins.
_MOOD_RULES = (
    ({LightLevel.DIM}, None, {ColorTemperature.WARM}, "Cozy"),
    ({LightLevel.DIM}, None, {ColorTemperature.COOL}, "Moody"),
    ({LightLevel.RADIANT}, None, {ColorTemperature.WARM}, "Uplifting"),
    ({LightLevel.BRIGHT, LightLevel.RADIANT}, None, {ColorTemperature.COOL}, "Focused"),
    ({LightLevel.SOFT}, {ColorTone.MUTED}, None, "Calm"),
    (None, {ColorTone.VIBRANT}, None, "Energetic"),
)


def derive_mood(
    lighting: LightLevel,
    tone: ColorTone,
    temperature: ColorTemperature,
) -> str:
    for lights, tones, temperatures, mood in _MOOD_RULES:
        if lights is not None and lighting not in lights:
            continue
        if tones is not None and tone not in tones:
            continue
        if temperatures is not None and temperature not in temperatures:
            continue
        return mood
    return "Balanced"


def describe(sample: VisualSample, settings: VisualSettings = VisualSettings()) -> VisualDescriptors:
    lighting = classify_light(sample.brightness, settings)
    tone = classify_tone(sample.saturation, settings)
    temperature = classify_temperature(sample.color_temperature_bias, settings)
    return VisualDescriptors(
        lighting=lighting,
        color_tone=tone,
        color_temperature=temperature,
        mood=derive_mood(lighting, tone, temperature),
    )


class VisualFeatureSampler:
    """Rate-limited classifier for a live camera stream."""

    def __init__(self, settings: VisualSettings | None = None) -> None:
        self.settings = settings or VisualSettings()
        self.last_update_ms: float | None = None
        self.latest_sample: VisualSample | None = None
        self.latest: VisualDescriptors = UNKNOWN_DESCRIPTORS

    def process(self, pixels, now_ms: float) -> VisualDescriptors | None:
        """Classify a frame unless the last classification is too recent."""
        if (
            self.last_update_ms is not None
            and now_ms - self.last_update_ms < self.settings.update_interval_ms
        ):
            return None
        self.last_update_ms = now_ms
        sample = measure_pixels(pixels)
        self.latest_sample = sample
        self.latest = describe(sample, self.settings)
        return self.latest

    def reset(self) -> None:
        self.last_update_ms = None
        self.latest_sample = None
        self.latest = UNKNOWN_DESCRIPTORS
