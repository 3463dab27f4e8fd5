"""Simulation session - wires the generator, history, clock, ledger client
and submission orchestrator together and exposes the operations callers use.

Each :class:`SimulationSession` owns its own state, so several sessions can
run side by side (tests build one per case).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import signal
from datetime import datetime, timezone

from ecochain_simulator.clock import SimulationClock
from ecochain_simulator.config import SimulatorYAMLConfig
from ecochain_simulator.exceptions import SimulationAlreadyRunningError, SubmissionInProgressError
from ecochain_simulator.generator import ReadingGenerator
from ecochain_simulator.history import ReadingHistory
from ecochain_simulator.ledger.client import LedgerClient
from ecochain_simulator.ledger.events import EventObserver
from ecochain_simulator.ledger.settings import LedgerSettings
from ecochain_simulator.models import (
    CitizenReport,
    ComplianceResult,
    DemoBatch,
    HealthStatus,
    HistoricalReadings,
    SensorReading,
    SensorStats,
    SimulationStatus,
    SubmissionOutcome,
    SubmissionResult,
    TokenBalance,
)
from ecochain_simulator.orchestrator import RetryPolicy, SubmissionOrchestrator
from ecochain_simulator.sensor_models import SensorCategory, SensorDefinition

__all__ = ["SimulationSession"]

logger = logging.getLogger("ecochain_simulator")


class SimulationSession:
    """One independent simulation with its own clock, history and ledger link.

    Example::

        session = SimulationSession(interval_s=10)
        status = await session.start_simulation()
        ...
        await session.stop_simulation()
        await session.aclose()

    Parameters:
        sensors:
            Sensor definitions; defaults to the built-in catalog.
        interval_s:
            Seconds between clock ticks.
        alert_probability:
            Chance a reading is drawn from the alert range.
        max_history / retain_history:
            History truncation thresholds.
        ledger:
            Ledger client; one is built from *ledger_settings* when omitted.
        ledger_settings:
            Used only when *ledger* is not given.
        ledger_enabled:
            When ``False`` the simulation never connects to the ledger.
        submission_delay_s:
            Pause between consecutive ledger submissions.
        initial_submission_delay_s:
            Delay after start before the latest readings are submitted once.
        retry:
            Retry policy for submissions (default: no retry).
        event_observer:
            Callback for ledger events; defaults to logging them.
        rng:
            Random source for the generator.
    """

    def __init__(
        self,
        *,
        sensors: list[SensorDefinition] | None = None,
        interval_s: float = 10.0,
        alert_probability: float = 0.15,
        max_history: int = 1000,
        retain_history: int = 500,
        ledger: LedgerClient | None = None,
        ledger_settings: LedgerSettings | None = None,
        ledger_enabled: bool = True,
        submission_delay_s: float = 1.0,
        initial_submission_delay_s: float = 2.0,
        retry: RetryPolicy | None = None,
        event_observer: EventObserver | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._generator = ReadingGenerator(sensors, alert_probability=alert_probability, rng=rng)
        self._history = ReadingHistory(max_entries=max_history, retain_entries=retain_history)
        self._clock = SimulationClock(self._generator, self._history, interval_s=interval_s)
        self._ledger = ledger or LedgerClient(ledger_settings or LedgerSettings.from_env())
        self._ledger_enabled = ledger_enabled
        self._orchestrator = SubmissionOrchestrator(self._ledger, delay_s=submission_delay_s, retry=retry)
        self._initial_submission_delay_s = initial_submission_delay_s
        self._event_observer = event_observer
        self._starting = False
        self._stop_requested = False
        # Initial submission still in its pre-submit delay; stop_simulation() may cancel it.
        self._initial_submission: asyncio.Task[None] | None = None
        self._submitting: set[asyncio.Task[None]] = set()

    @classmethod
    def from_config(cls, config: SimulatorYAMLConfig, **overrides) -> SimulationSession:
        """Create a session from a loaded YAML configuration."""
        kwargs = {
            "sensors": config.sensors or None,
            "interval_s": config.interval_s,
            "alert_probability": config.alert_probability,
            "max_history": config.max_history,
            "retain_history": config.retain_history,
            "ledger_settings": config.ledger,
            "submission_delay_s": config.submission.delay_s,
            "initial_submission_delay_s": config.submission.initial_delay_s,
            "retry": config.submission.retry_policy(),
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def generator(self) -> ReadingGenerator:
        return self._generator

    @property
    def history(self) -> ReadingHistory:
        return self._history

    @property
    def clock(self) -> SimulationClock:
        return self._clock

    @property
    def ledger(self) -> LedgerClient:
        return self._ledger

    @property
    def orchestrator(self) -> SubmissionOrchestrator:
        return self._orchestrator

    @property
    def is_running(self) -> bool:
        return self._clock.is_running

    @property
    def sensor_count(self) -> int:
        return self._generator.sensor_count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_simulation(self) -> SimulationStatus:
        """Connect to the ledger (best effort) and start the clock.

        Raises :class:`SimulationAlreadyRunningError` when already running.
        """
        if self._clock.is_running or self._starting:
            raise SimulationAlreadyRunningError()

        self._starting = True
        self._stop_requested = False
        try:
            connected = await self.connect_ledger() if self._ledger_enabled else False
            started = not self._stop_requested
            if started:
                self._clock.start()
            else:
                logger.info("Stop requested while starting - clock not started")
        finally:
            self._starting = False
            self._stop_requested = False

        if connected and started:
            await self._ledger.subscribe_to_events(self._event_observer)
            self._initial_submission = asyncio.get_running_loop().create_task(
                self._submit_after_delay(), name="initial-submission"
            )
        elif started:
            logger.info("Running without ledger submission")

        return SimulationStatus(
            sensors_count=self.sensor_count,
            interval_description=f"{self._clock.interval_s:g} seconds",
            ledger_connected=connected,
        )

    async def stop_simulation(self) -> str:
        """Stop the clock.  Safe to call when nothing is running.

        A pending initial submission that has not begun is dropped.  One that
        is already submitting runs to completion so every reading gets a
        result; :meth:`aclose` waits for it.
        """
        if self._starting:
            self._stop_requested = True
        await self._clock.stop()
        await self._cancel_initial_submission()
        return "Simulation stopped"

    async def connect_ledger(self) -> bool:
        """Initialise the ledger client if it is not connected yet."""
        if self._ledger.is_connected:
            return True
        return await self._ledger.initialize()

    async def aclose(self) -> None:
        """Stop everything and release the ledger connection."""
        await self.stop_simulation()
        if self._submitting:
            logger.info("Waiting for %d in-flight submission run(s) to finish", len(self._submitting))
            await asyncio.gather(*self._submitting, return_exceptions=True)
        await self._ledger.close()

    # ------------------------------------------------------------------
    # Readings
    # ------------------------------------------------------------------

    def latest_readings(self) -> dict[str, SensorReading]:
        return self._history.latest_per_sensor()

    def historical_readings(
        self,
        category: SensorCategory | str | None = None,
        hours: float = 24,
    ) -> HistoricalReadings:
        data = self._history.historical(category, window_hours=hours)
        return HistoricalReadings(
            category=str(category) if category else "all",
            hours=hours,
            count=len(data),
            data=data,
        )

    def summary_stats(self) -> dict[str, SensorStats]:
        return self._history.summary_stats()

    def generate_demo_batch(self, hours: int = 24) -> DemoBatch:
        """Synthetic backfill; the readings are not recorded to history."""
        data = self._generator.generate_batch(hours)
        logger.info("Generated %d data points for demo", len(data))
        return DemoBatch(hours=hours, sensors=self.sensor_count, data=data)

    # ------------------------------------------------------------------
    # Ledger operations
    # ------------------------------------------------------------------

    async def submit_latest_readings(self) -> list[SubmissionOutcome]:
        """Submit each sensor's latest reading to the ledger, one by one."""
        return await self._orchestrator.submit_latest(self._history)

    async def submit_citizen_report(
        self,
        location: str,
        issue_type: str,
        description: str,
        evidence_hash: str | None = None,
    ) -> SubmissionResult:
        """Validate and submit a citizen report.

        Blank *location*, *issue_type* or *description* raise
        ``pydantic.ValidationError`` before the ledger is touched.
        """
        fields = {"location": location, "issue_type": issue_type, "description": description}
        if evidence_hash:
            fields["evidence_hash"] = evidence_hash
        report = CitizenReport(**fields)

        await self.connect_ledger()
        return await self._ledger.submit_citizen_report(
            report.location,
            report.issue_type,
            report.description,
            report.evidence_hash,
        )

    async def policy_compliance(
        self,
        municipality: str,
        category: SensorCategory | str,
    ) -> ComplianceResult | None:
        """Compliance projection, or ``None`` when not found."""
        await self.connect_ledger()
        return await self._ledger.check_policy_compliance(municipality, str(category))

    async def token_balance(self, address: str) -> TokenBalance:
        await self.connect_ledger()
        balance = await self._ledger.get_token_balance(address)
        return TokenBalance(address=address, balance=balance)

    def health(self) -> HealthStatus:
        return HealthStatus(
            status="healthy",
            timestamp=datetime.now(timezone.utc),
            simulation_active=self.is_running,
            sensors=self.sensor_count,
            ledger_connected=self._ledger.is_connected,
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, duration_s: float | None = None) -> None:
        """Blocking entry point - runs the session until *duration_s* elapses or Ctrl-C."""
        try:
            asyncio.run(self.run_async(duration_s=duration_s))
        except KeyboardInterrupt:
            logger.info("Interrupted by user")

    async def run_async(self, duration_s: float | None = None) -> None:
        """Async entry point - start, wait, then shut down cleanly."""
        status = await self.start_simulation()
        logger.info(
            "Simulation started: %d sensors, interval %s, ledger %s",
            status.sensors_count,
            status.interval_description,
            "connected" if status.ledger_connected else "offline",
        )

        # NotImplementedError: raised on Windows where signal handlers are unsupported.
        # RuntimeError: raised when running in a non-main thread.
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, stop_event.set)

        try:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=duration_s)
                logger.info("Stop signal received - shutting down")
            except asyncio.TimeoutError:
                logger.info("Duration reached (%.1fs) - stopping", duration_s)
        except asyncio.CancelledError:
            logger.info("Simulation cancelled")
        finally:
            await self.aclose()

    # -- internal --

    async def _submit_after_delay(self) -> None:
        await asyncio.sleep(self._initial_submission_delay_s)

        # From here on the run is no longer cancellable by stop_simulation().
        task = asyncio.current_task()
        if self._initial_submission is task:
            self._initial_submission = None
        self._submitting.add(task)
        try:
            await self.submit_latest_readings()
        except SubmissionInProgressError:
            logger.info("Skipping initial submission - a run is already in progress")
        finally:
            self._submitting.discard(task)

    async def _cancel_initial_submission(self) -> None:
        task, self._initial_submission = self._initial_submission, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
