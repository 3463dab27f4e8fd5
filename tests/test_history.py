"""Tests for ecochain_simulator.history – truncation, latest, windows and stats."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from ecochain_simulator.history import ReadingHistory
from ecochain_simulator.models import SensorReading
from ecochain_simulator.sensor_models import SensorCategory

_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


def _make_reading(
    sensor_id: str = "air_quality_01",
    value: float = 50.0,
    *,
    category: SensorCategory = SensorCategory.AIR_QUALITY,
    timestamp: datetime = _NOW,
    is_alert: bool = False,
) -> SensorReading:
    return SensorReading(
        sensor_id=sensor_id,
        category=category,
        location="Downtown District",
        value=value,
        unit="AQI",
        timestamp=timestamp,
        is_alert=is_alert,
    )


# -----------------------------------------------------------------------
# Truncation
# -----------------------------------------------------------------------


class TestTruncation:
    """The 1000 -> 500 cap is enforced on every append."""

    def test_thousand_entries_kept(self) -> None:
        history = ReadingHistory()
        history.extend(_make_reading(value=float(i)) for i in range(1000))
        assert len(history) == 1000

    def test_thousand_and_one_truncates_to_newest_500(self) -> None:
        history = ReadingHistory()
        for i in range(1001):
            history.record(_make_reading(value=float(i)))
        assert len(history) == 500
        assert [r.value for r in history] == [float(i) for i in range(501, 1001)]

    def test_custom_thresholds(self) -> None:
        history = ReadingHistory(max_entries=10, retain_entries=3)
        history.extend(_make_reading(value=float(i)) for i in range(11))
        assert [r.value for r in history.readings] == [8.0, 9.0, 10.0]

    def test_invalid_thresholds(self) -> None:
        with pytest.raises(ValueError):
            ReadingHistory(max_entries=10, retain_entries=20)
        with pytest.raises(ValueError):
            ReadingHistory(max_entries=10, retain_entries=0)

    def test_reset(self) -> None:
        history = ReadingHistory()
        history.record(_make_reading())
        history.reset()
        assert len(history) == 0


# -----------------------------------------------------------------------
# latest_per_sensor
# -----------------------------------------------------------------------


class TestLatestPerSensor:
    def test_empty(self) -> None:
        assert ReadingHistory().latest_per_sensor() == {}

    def test_one_entry_per_sensor(self) -> None:
        history = ReadingHistory()
        history.record(_make_reading("a", 1.0))
        history.record(_make_reading("b", 2.0))
        history.record(_make_reading("a", 3.0))
        latest = history.latest_per_sensor()
        assert list(latest) == ["a", "b"]
        assert latest["a"].value == 3.0
        assert latest["b"].value == 2.0

    def test_store_order_beats_timestamp(self) -> None:
        """A backfilled reading appended last wins even with an older timestamp."""
        history = ReadingHistory()
        history.record(_make_reading("a", 1.0, timestamp=_NOW))
        history.record(_make_reading("a", 2.0, timestamp=_NOW - timedelta(hours=6)))
        assert history.latest_per_sensor()["a"].value == 2.0


# -----------------------------------------------------------------------
# historical
# -----------------------------------------------------------------------


class TestHistorical:
    """Time window first, category second, store order preserved."""

    def test_window_and_category(self) -> None:
        history = ReadingHistory()
        history.record(_make_reading("a", 1.0, timestamp=_NOW - timedelta(hours=2)))
        history.record(_make_reading("a", 2.0, timestamp=_NOW - timedelta(minutes=30)))
        result = history.historical("air_quality", 1, now=_NOW)
        assert [r.value for r in result] == [2.0]

    def test_category_filter(self) -> None:
        history = ReadingHistory()
        history.record(_make_reading("a", 1.0))
        history.record(_make_reading("w", 7.0, category=SensorCategory.WATER_QUALITY))
        history.record(_make_reading("a", 2.0))
        result = history.historical(SensorCategory.AIR_QUALITY, 24, now=_NOW)
        assert [r.value for r in result] == [1.0, 2.0]

    def test_no_category_returns_all_in_window(self) -> None:
        history = ReadingHistory()
        history.record(_make_reading("w", 7.0, category=SensorCategory.WATER_QUALITY))
        history.record(_make_reading("a", 2.0))
        history.record(_make_reading("a", 3.0, timestamp=_NOW - timedelta(days=2)))
        assert [r.value for r in history.historical(None, 24, now=_NOW)] == [7.0, 2.0]

    def test_store_order_not_timestamp_order(self) -> None:
        history = ReadingHistory()
        history.record(_make_reading("a", 1.0, timestamp=_NOW - timedelta(minutes=5)))
        history.record(_make_reading("a", 2.0, timestamp=_NOW - timedelta(minutes=50)))
        assert [r.value for r in history.historical(None, 1, now=_NOW)] == [1.0, 2.0]

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(ValueError):
            ReadingHistory().historical("radiation", 1, now=_NOW)


# -----------------------------------------------------------------------
# summary_stats
# -----------------------------------------------------------------------


class TestSummaryStats:
    def test_empty(self) -> None:
        assert ReadingHistory().summary_stats() == {}

    @pytest.mark.parametrize(("is_alert", "expected"), [(False, "0.0"), (True, "100.0")])
    def test_single_reading(self, is_alert: bool, expected: str) -> None:
        history = ReadingHistory()
        history.record(_make_reading("a", 42.5, is_alert=is_alert))
        stats = history.summary_stats()["a"]
        assert stats.total_readings == 1
        assert stats.alert_percentage == expected
        assert stats.min_value == stats.max_value == stats.average_value == "42.50"
        assert float(stats.min_value) == 42.5

    def test_aggregates(self) -> None:
        history = ReadingHistory()
        history.record(_make_reading("a", 10.0))
        history.record(_make_reading("a", 20.0, is_alert=True))
        history.record(_make_reading("a", 33.0))
        history.record(_make_reading("b", 5.0))
        stats = history.summary_stats()
        assert set(stats) == {"a", "b"}
        a = stats["a"]
        assert a.total_readings == 3
        assert a.average_value == "21.00"
        assert a.min_value == "10.00"
        assert a.max_value == "33.00"
        assert a.alert_count == 1
        assert a.alert_percentage == "33.3"
        assert a.category is SensorCategory.AIR_QUALITY
