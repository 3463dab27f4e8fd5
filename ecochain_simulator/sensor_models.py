"""Environmental sensor definitions.

Defines the core types (``SensorCategory``, ``SensorDefinition``) and the
``DEFAULT_SENSORS`` catalog used when no custom sensors are configured.
"""

from __future__ import annotations

try:
    from enum import StrEnum
except ImportError:  # Python < 3.11
    from enum import Enum

    class StrEnum(str, Enum):  # type: ignore[no-redef]
        """Minimal backport of ``enum.StrEnum`` for Python 3.10."""

from pydantic import BaseModel, model_validator

__all__ = [
    "DEFAULT_SENSORS",
    "SensorCategory",
    "SensorDefinition",
    "get_sensor",
]


class SensorCategory(StrEnum):
    """Kinds of environmental sensors."""

    AIR_QUALITY = "air_quality"
    WATER_QUALITY = "water_quality"
    NOISE_POLLUTION = "noise_pollution"


class SensorDefinition(BaseModel):
    """Static description of one deployed sensor.

    ``normal_range`` and ``alert_range`` are inclusive ``(lo, hi)`` pairs.
    """

    model_config = {"frozen": True}

    sensor_id: str
    category: SensorCategory
    location: str
    unit: str
    normal_range: tuple[float, float]
    alert_range: tuple[float, float]

    @model_validator(mode="after")
    def _check_ranges(self) -> SensorDefinition:
        for label, (lo, hi) in (("normal_range", self.normal_range), ("alert_range", self.alert_range)):
            if lo > hi:
                raise ValueError(f"{label} lower bound {lo} exceeds upper bound {hi}")
        return self


DEFAULT_SENSORS: list[SensorDefinition] = [
    SensorDefinition(
        sensor_id="air_quality_01",
        category=SensorCategory.AIR_QUALITY,
        location="Downtown District",
        unit="AQI",
        normal_range=(50, 100),
        alert_range=(101, 150),
    ),
    SensorDefinition(
        sensor_id="water_quality_01",
        category=SensorCategory.WATER_QUALITY,
        location="Central Water Treatment",
        unit="pH",
        normal_range=(6.5, 8.5),
        alert_range=(5.0, 6.4),
    ),
    SensorDefinition(
        sensor_id="noise_pollution_01",
        category=SensorCategory.NOISE_POLLUTION,
        location="Commercial Zone",
        unit="dB",
        normal_range=(40, 65),
        alert_range=(66, 85),
    ),
    SensorDefinition(
        sensor_id="air_quality_02",
        category=SensorCategory.AIR_QUALITY,
        location="Industrial Zone",
        unit="AQI",
        normal_range=(60, 110),
        alert_range=(111, 160),
    ),
    SensorDefinition(
        sensor_id="water_quality_02",
        category=SensorCategory.WATER_QUALITY,
        location="Riverside Park",
        unit="pH",
        normal_range=(6.8, 8.2),
        alert_range=(5.5, 6.7),
    ),
]


def get_sensor(sensor_id: str) -> SensorDefinition:
    """Look up a built-in sensor by identifier."""
    for sensor in DEFAULT_SENSORS:
        if sensor.sensor_id == sensor_id:
            return sensor
    raise KeyError(f"Unknown sensor '{sensor_id}'")
