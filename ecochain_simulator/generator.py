"""Reading generator - turns sensor definitions into ``SensorReading`` values.

Each reading is drawn from the sensor's normal range, or with
``alert_probability`` from its alert range, after applying time-of-day
modulation for traffic-driven categories.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta

from ecochain_simulator.models import SensorReading
from ecochain_simulator.sensor_models import DEFAULT_SENSORS, SensorCategory, SensorDefinition

__all__ = ["ReadingGenerator", "modulated_range"]

logger = logging.getLogger("ecochain_simulator.generator")

DEFAULT_ALERT_PROBABILITY = 0.15

# (category, hour predicate, lower shift, upper shift)
_TIME_OF_DAY_SHIFTS = (
    (SensorCategory.AIR_QUALITY, lambda h: 7 <= h <= 9 or 17 <= h <= 19, 20.0, 30.0),
    (SensorCategory.NOISE_POLLUTION, lambda h: h >= 22 or h <= 6, -10.0, -20.0),
)


def modulated_range(
    category: SensorCategory,
    bounds: tuple[float, float],
    hour: int,
) -> tuple[float, float]:
    """Return *bounds* shifted for the given local *hour*.

    Air quality rises during the morning and evening rush hours, noise
    drops overnight.  Other categories are unaffected.
    """
    lo, hi = bounds
    for shifted_category, in_window, lo_shift, hi_shift in _TIME_OF_DAY_SHIFTS:
        if category == shifted_category and in_window(hour):
            return lo + lo_shift, hi + hi_shift
    return lo, hi


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ReadingGenerator:
    """Produces :class:`SensorReading` values for a fixed set of sensors.

    Parameters:
        sensors:
            Sensor definitions, in the order readings are produced.
            Defaults to ``DEFAULT_SENSORS``.
        alert_probability:
            Chance that a reading is drawn from the alert range.
        rng:
            Random source; pass a seeded ``random.Random`` for
            reproducible output.
    """

    def __init__(
        self,
        sensors: list[SensorDefinition] | None = None,
        alert_probability: float = DEFAULT_ALERT_PROBABILITY,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= alert_probability <= 1.0:
            raise ValueError(f"alert_probability must be within [0, 1], got {alert_probability}")
        self._sensors = list(DEFAULT_SENSORS if sensors is None else sensors)
        self.alert_probability = alert_probability
        self._rng = rng or random.Random()

        logger.info(
            "ReadingGenerator initialised with %d sensors (alert_probability=%.2f)",
            len(self._sensors),
            alert_probability,
        )

    @property
    def sensors(self) -> list[SensorDefinition]:
        return list(self._sensors)

    @property
    def sensor_count(self) -> int:
        return len(self._sensors)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(
        self,
        sensor: SensorDefinition,
        now: datetime | None = None,
        timestamp: datetime | None = None,
    ) -> SensorReading:
        """Produce exactly one reading for *sensor*.

        *now* drives the time-of-day modulation and is the reading's
        timestamp unless *timestamp* overrides it (historical backfill).
        """
        now = _as_aware(now) if now is not None else _local_now()

        bounds = sensor.normal_range
        is_alert = False
        if self._rng.random() < self.alert_probability:
            bounds = sensor.alert_range
            is_alert = True

        lo, hi = modulated_range(sensor.category, bounds, now.hour)
        value = round(self._rng.uniform(lo, hi), 2)

        return SensorReading(
            sensor_id=sensor.sensor_id,
            category=sensor.category,
            location=sensor.location,
            value=value,
            unit=sensor.unit,
            timestamp=_as_aware(timestamp) if timestamp is not None else now,
            is_alert=is_alert,
        )

    def generate_all(self, now: datetime | None = None) -> list[SensorReading]:
        """One reading per sensor, in definition order."""
        now = _as_aware(now) if now is not None else _local_now()
        return [self.generate(sensor, now=now) for sensor in self._sensors]

    def generate_batch(self, hours: int, now: datetime | None = None) -> list[SensorReading]:
        """Backfill ``hours`` hourly time points of synthetic readings.

        Time points run oldest first, from ``now - hours`` up to
        ``now - 1h``; within each point sensors keep definition order.
        """
        if hours < 0:
            raise ValueError(f"hours must be non-negative, got {hours}")
        now = _as_aware(now) if now is not None else _local_now()

        readings: list[SensorReading] = []
        for offset in range(hours, 0, -1):
            time_point = now - timedelta(hours=offset)
            for sensor in self._sensors:
                readings.append(self.generate(sensor, now=now, timestamp=time_point))

        logger.debug("Generated batch of %d readings over %d hours", len(readings), hours)
        return readings


def _as_aware(value: datetime) -> datetime:
    """Treat naive datetimes as local time."""
    return value if value.tzinfo is not None else value.astimezone()
