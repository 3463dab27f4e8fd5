"""EcoChain Simulator - simulate environmental sensors and publish their
readings to an EVM ledger.

Quick start::

    import asyncio
    from ecochain_simulator import SimulationSession

    async def main():
        session = SimulationSession(interval_s=10)
        await session.start_simulation()
        await asyncio.sleep(30)
        print(session.summary_stats())
        await session.aclose()

    asyncio.run(main())
"""

from __future__ import annotations

from ecochain_simulator.clock import ClockState, SimulationClock
from ecochain_simulator.generator import ReadingGenerator
from ecochain_simulator.history import ReadingHistory
from ecochain_simulator.ledger import LedgerClient, LedgerSettings
from ecochain_simulator.models import SensorReading, SubmissionResult
from ecochain_simulator.orchestrator import RetryPolicy, SubmissionOrchestrator
from ecochain_simulator.sensor_models import DEFAULT_SENSORS, SensorCategory, SensorDefinition
from ecochain_simulator.simulator import SimulationSession

__all__ = [
    "DEFAULT_SENSORS",
    "ClockState",
    "LedgerClient",
    "LedgerSettings",
    "ReadingGenerator",
    "ReadingHistory",
    "RetryPolicy",
    "SensorCategory",
    "SensorDefinition",
    "SensorReading",
    "SimulationClock",
    "SimulationSession",
    "SubmissionOrchestrator",
    "SubmissionResult",
]

__version__ = "0.1.0"
