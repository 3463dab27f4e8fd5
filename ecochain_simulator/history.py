"""Reading history - bounded in-memory log of generated readings.

The history is append-only from the simulation clock's point of view;
everything else only reads it.  When it grows past ``max_entries`` it is
cut back to the most recent ``retain_entries`` readings.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta

from ecochain_simulator.models import SensorReading, SensorStats
from ecochain_simulator.sensor_models import SensorCategory

__all__ = ["ReadingHistory"]

logger = logging.getLogger("ecochain_simulator.history")


class ReadingHistory:
    """Ordered store of :class:`SensorReading` objects.

    Parameters:
        max_entries: Length above which the history is truncated.
        retain_entries: How many of the newest readings survive truncation.
    """

    def __init__(self, max_entries: int = 1000, retain_entries: int = 500) -> None:
        if not 0 < retain_entries <= max_entries:
            raise ValueError(
                f"retain_entries must be in (0, max_entries], got {retain_entries} with max {max_entries}"
            )
        self.max_entries = max_entries
        self.retain_entries = retain_entries
        self._entries: list[SensorReading] = []

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def record(self, reading: SensorReading) -> None:
        """Append *reading* and enforce the size cap."""
        self._entries.append(reading)
        if len(self._entries) > self.max_entries:
            dropped = len(self._entries) - self.retain_entries
            del self._entries[:dropped]
            logger.debug("History truncated: dropped %d oldest readings", dropped)

    def extend(self, readings: Iterable[SensorReading]) -> None:
        for reading in readings:
            self.record(reading)

    def reset(self) -> None:
        self._entries.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SensorReading]:
        return iter(list(self._entries))

    @property
    def readings(self) -> list[SensorReading]:
        """Snapshot of the history in store order."""
        return list(self._entries)

    def latest_per_sensor(self) -> dict[str, SensorReading]:
        """Most recently *appended* reading for each sensor.

        Store order is used rather than timestamps because backfilled
        readings may carry older timestamps than live ones.
        """
        latest: dict[str, SensorReading] = {}
        for reading in self._entries:
            latest[reading.sensor_id] = reading
        return latest

    def historical(
        self,
        category: SensorCategory | str | None = None,
        window_hours: float = 24,
        now: datetime | None = None,
    ) -> list[SensorReading]:
        """Readings within *window_hours* of *now*, optionally of one category."""
        if now is None:
            now = datetime.now().astimezone()
        elif now.tzinfo is None:
            now = now.astimezone()
        cutoff = now - timedelta(hours=window_hours)

        selected = [r for r in self._entries if r.timestamp >= cutoff]
        if category:
            wanted = SensorCategory(category)
            selected = [r for r in selected if r.category == wanted]
        return selected

    def summary_stats(self) -> dict[str, SensorStats]:
        """Count, mean, min, max and alert share per sensor."""
        grouped: dict[str, list[SensorReading]] = {}
        for reading in self._entries:
            grouped.setdefault(reading.sensor_id, []).append(reading)

        stats: dict[str, SensorStats] = {}
        for sensor_id, readings in grouped.items():
            values = [r.value for r in readings]
            alerts = sum(1 for r in readings if r.is_alert)
            first = readings[0]
            stats[sensor_id] = SensorStats(
                category=first.category,
                location=first.location,
                total_readings=len(readings),
                average_value=f"{sum(values) / len(values):.2f}",
                min_value=f"{min(values):.2f}",
                max_value=f"{max(values):.2f}",
                alert_count=alerts,
                alert_percentage=f"{alerts / len(readings) * 100:.1f}",
            )
        return stats
