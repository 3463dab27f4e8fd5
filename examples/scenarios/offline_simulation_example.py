#!/usr/bin/env python3
"""Offline simulation examples -- run the sensor clock without any ledger.

Directly runnable (no node required).

Usage::

    python examples/scenarios/offline_simulation_example.py            # Case 1 (default)
    python examples/scenarios/offline_simulation_example.py --case 2   # Historical backfill
    python examples/scenarios/offline_simulation_example.py --case 3   # Custom sensors
"""

from __future__ import annotations

import argparse
import asyncio
import logging

# ---------------------------------------------------------------------------
# Case 1: Live clock, then query history
# ---------------------------------------------------------------------------


def run_case_1() -> None:
    """Tick every second for a few seconds, then print the latest readings.

    Knobs demonstrated:
      - ledger_enabled=False -> never connects, never submits
      - interval_s=1.0       -> one reading per sensor per second
    """
    from ecochain_simulator import SimulationSession

    print("=== Case 1: Live clock ===\n")

    async def _main() -> None:
        session = SimulationSession(interval_s=1.0, ledger_enabled=False)
        status = await session.start_simulation()
        print(f"  Started: {status.sensors_count} sensors every {status.interval_description}\n")
        await asyncio.sleep(5.5)
        await session.stop_simulation()

        for sensor_id, reading in session.latest_readings().items():
            flag = "ALERT" if reading.is_alert else "ok"
            print(f"  {sensor_id:<20} {reading.value:>8} {reading.unit:<4} {flag}")

        window = session.historical_readings("air_quality", hours=1)
        print(f"\n  Air quality readings in the last hour: {window.count}")
        await session.aclose()

    asyncio.run(_main())


# ---------------------------------------------------------------------------
# Case 2: Historical backfill
# ---------------------------------------------------------------------------


def run_case_2() -> None:
    """Generate a day of hourly readings and load them into a history.

    The demo batch is not recorded by the session; this case records it
    explicitly to compute statistics over it.
    """
    from ecochain_simulator import SimulationSession

    print("=== Case 2: Historical backfill ===\n")

    session = SimulationSession(ledger_enabled=False)
    batch = session.generate_demo_batch(hours=24)
    print(f"  Generated {len(batch.data)} readings for {batch.sensors} sensors\n")

    session.history.extend(batch.data)
    for sensor_id, stats in session.summary_stats().items():
        print(
            f"  {sensor_id:<20} min={stats.min_value:>7} max={stats.max_value:>7} "
            f"avg={stats.average_value:>7} alerts={stats.alert_percentage}%"
        )


# ---------------------------------------------------------------------------
# Case 3: Custom sensors
# ---------------------------------------------------------------------------


def run_case_3() -> None:
    """Replace the built-in catalog with two harbour sensors."""
    from ecochain_simulator import SensorCategory, SensorDefinition, SimulationSession

    print("=== Case 3: Custom sensors ===\n")

    sensors = [
        SensorDefinition(
            sensor_id="noise_harbour",
            category=SensorCategory.NOISE_POLLUTION,
            location="Harbour Front",
            unit="dB",
            normal_range=(45, 70),
            alert_range=(71, 100),
        ),
        SensorDefinition(
            sensor_id="water_harbour",
            category=SensorCategory.WATER_QUALITY,
            location="Harbour Front",
            unit="pH",
            normal_range=(7.0, 8.0),
            alert_range=(5.5, 6.9),
        ),
    ]
    session = SimulationSession(sensors=sensors, interval_s=0.5, alert_probability=0.3, ledger_enabled=False)
    session.run(duration_s=3)
    for sensor_id, stats in session.summary_stats().items():
        print(f"  {sensor_id:<16} {stats.total_readings} readings, {stats.alert_count} alerts")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

CASES = {1: run_case_1, 2: run_case_2, 3: run_case_3}


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline simulation examples")
    parser.add_argument("--case", type=int, default=1, choices=sorted(CASES))
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )
    CASES[args.case]()


if __name__ == "__main__":
    main()
