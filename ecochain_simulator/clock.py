"""Simulation clock - drives the generator and history at a fixed interval."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging

from ecochain_simulator.generator import ReadingGenerator
from ecochain_simulator.history import ReadingHistory
from ecochain_simulator.models import SensorReading

__all__ = ["ClockState", "SimulationClock"]

logger = logging.getLogger("ecochain_simulator.clock")


class ClockState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class SimulationClock:
    """Periodic scheduler that generates one reading per sensor each tick.

    The clock runs as a single asyncio task on the caller's event loop, so
    :meth:`start` must be called from inside a running loop.

    Parameters:
        generator: Source of readings.
        history: Store every generated reading is recorded into.
        interval_s: Seconds between ticks.  The first tick happens one
            interval after :meth:`start`.
    """

    def __init__(
        self,
        generator: ReadingGenerator,
        history: ReadingHistory,
        interval_s: float = 30.0,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self._generator = generator
        self._history = history
        self.interval_s = interval_s
        self._state = ClockState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._tick_count = 0

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ClockState.RUNNING

    @property
    def tick_count(self) -> int:
        return self._tick_count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Start ticking.  Returns ``False`` if the clock was already running."""
        if self.is_running:
            logger.info("Simulation clock already running")
            return False

        loop = asyncio.get_running_loop()
        self._state = ClockState.RUNNING
        self._task = loop.create_task(self._run(), name="simulation-clock")
        logger.info(
            "Starting sensor simulation with %d sensors, interval %.1fs",
            self._generator.sensor_count,
            self.interval_s,
        )
        return True

    async def stop(self) -> None:
        """Cancel the timer and return to idle.  No-op when already idle."""
        if not self.is_running:
            return
        self._state = ClockState.IDLE
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Sensor simulation stopped after %d ticks", self._tick_count)

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(self) -> list[SensorReading]:
        """Generate and record one reading per sensor."""
        readings = self._generator.generate_all()
        for reading in readings:
            self._history.record(reading)
            if reading.is_alert:
                logger.warning(
                    "ALERT: %s at %s: %s %s",
                    reading.category.value,
                    reading.location,
                    reading.value,
                    reading.unit,
                )
            else:
                logger.info(
                    "%s at %s: %s %s",
                    reading.category.value,
                    reading.location,
                    reading.value,
                    reading.unit,
                )
        self._tick_count += 1
        return readings

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval_s
        while self.is_running:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            try:
                self.tick()
            except Exception:
                logger.exception("Simulation tick failed")
            next_tick += self.interval_s
