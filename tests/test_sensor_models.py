"""Tests for ecochain_simulator.sensor_models – SensorDefinition and the built-in catalog."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ecochain_simulator.sensor_models import (
    DEFAULT_SENSORS,
    SensorCategory,
    SensorDefinition,
    get_sensor,
)


# -----------------------------------------------------------------------
# SensorDefinition (Pydantic model)
# -----------------------------------------------------------------------


class TestSensorDefinition:
    """Construction, validation and immutability."""

    def test_keyword_construction(self) -> None:
        sensor = SensorDefinition(
            sensor_id="noise_02",
            category=SensorCategory.NOISE_POLLUTION,
            location="Stadium",
            unit="dB",
            normal_range=(45, 70),
            alert_range=(71, 95),
        )
        assert sensor.sensor_id == "noise_02"
        assert sensor.normal_range == (45.0, 70.0)
        assert sensor.category is SensorCategory.NOISE_POLLUTION

    def test_category_from_string(self) -> None:
        sensor = SensorDefinition(
            sensor_id="s",
            category="water_quality",
            location="Lake",
            unit="pH",
            normal_range=(6.5, 8.5),
            alert_range=(5.0, 6.4),
        )
        assert sensor.category is SensorCategory.WATER_QUALITY

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SensorDefinition(
                sensor_id="s",
                category="radiation",
                location="Lab",
                unit="uSv",
                normal_range=(0, 1),
                alert_range=(1, 2),
            )

    def test_inverted_range_rejected(self) -> None:
        with pytest.raises(ValidationError, match="exceeds upper bound"):
            SensorDefinition(
                sensor_id="s",
                category=SensorCategory.AIR_QUALITY,
                location="Depot",
                unit="AQI",
                normal_range=(100, 50),
                alert_range=(101, 150),
            )

    def test_frozen_model(self) -> None:
        sensor = DEFAULT_SENSORS[0]
        with pytest.raises(ValidationError, match="frozen"):
            sensor.location = "elsewhere"  # type: ignore[misc]


# -----------------------------------------------------------------------
# Built-in catalog
# -----------------------------------------------------------------------


class TestDefaultSensors:
    """DEFAULT_SENSORS contents and lookup."""

    def test_catalog_size_and_ids(self) -> None:
        ids = [s.sensor_id for s in DEFAULT_SENSORS]
        assert ids == [
            "air_quality_01",
            "water_quality_01",
            "noise_pollution_01",
            "air_quality_02",
            "water_quality_02",
        ]

    def test_every_category_covered(self) -> None:
        assert {s.category for s in DEFAULT_SENSORS} == set(SensorCategory)

    def test_get_sensor(self) -> None:
        sensor = get_sensor("water_quality_02")
        assert sensor.location == "Riverside Park"
        assert sensor.alert_range == (5.5, 6.7)

    def test_get_sensor_unknown(self) -> None:
        with pytest.raises(KeyError):
            get_sensor("missing")
