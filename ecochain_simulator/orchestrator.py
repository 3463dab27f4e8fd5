"""Submission orchestrator - pushes readings to the ledger one at a time.

Readings from the same signing account are submitted sequentially with a
fixed delay between them; each waits for its own confirmation before the
next goes out.  A failed submission never stops the batch.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from pydantic import BaseModel, Field

from ecochain_simulator.exceptions import SubmissionInProgressError
from ecochain_simulator.history import ReadingHistory
from ecochain_simulator.ledger.client import LedgerClient
from ecochain_simulator.models import SensorReading, SubmissionOutcome, SubmissionResult

__all__ = ["RetryPolicy", "SubmissionOrchestrator"]

logger = logging.getLogger("ecochain_simulator.orchestrator")


class RetryPolicy(BaseModel):
    """How often to re-submit a reading whose submission failed.

    Attributes:
        max_attempts:
            Total attempts per reading.  ``1`` (the default) means no retry.
        backoff_s:
            Wait before the first retry.
        backoff_multiplier:
            Factor applied to the wait after every further retry.
    """

    max_attempts: int = Field(default=1, ge=1)
    backoff_s: float = Field(default=1.0, ge=0.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before *attempt* (2 = first retry)."""
        return self.backoff_s * self.backoff_multiplier ** (attempt - 2)


class SubmissionOrchestrator:
    """Sequences readings into throttled, ordered ledger submissions.

    Parameters:
        client: Ledger client used for every submission.
        delay_s: Pause between consecutive submissions.
        retry: Retry policy; defaults to best-effort, single attempt.
    """

    def __init__(
        self,
        client: LedgerClient,
        *,
        delay_s: float = 1.0,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._client = client
        self.delay_s = delay_s
        self.retry = retry or RetryPolicy()
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def submit_latest(self, history: ReadingHistory) -> list[SubmissionOutcome]:
        """Submit the most recent reading of every sensor in *history*."""
        return await self.submit(history.latest_per_sensor().values())

    async def submit(self, readings: Iterable[SensorReading]) -> list[SubmissionOutcome]:
        """Submit *readings* in iteration order.

        Raises :class:`SubmissionInProgressError` if another run on this
        orchestrator has not finished yet.
        """
        if self._in_flight:
            raise SubmissionInProgressError()
        self._in_flight = True
        try:
            return await self._run(list(readings))
        finally:
            self._in_flight = False

    # -- internal --

    async def _run(self, readings: list[SensorReading]) -> list[SubmissionOutcome]:
        outcomes: list[SubmissionOutcome] = []
        for index, reading in enumerate(readings):
            if index > 0 and self.delay_s > 0:
                await asyncio.sleep(self.delay_s)
            outcomes.append(await self._submit_one(reading))

        succeeded = sum(1 for o in outcomes if o.result.success)
        logger.info("Submission run finished: %d/%d readings confirmed", succeeded, len(outcomes))
        return outcomes

    async def _submit_one(self, reading: SensorReading) -> SubmissionOutcome:
        attempt = 1
        result = await self._send(reading)
        while not result.success and attempt < self.retry.max_attempts:
            attempt += 1
            delay = self.retry.delay_before(attempt)
            logger.warning(
                "Submission for %s failed (attempt %d/%d): %s - retrying in %.1fs",
                reading.sensor_id,
                attempt - 1,
                self.retry.max_attempts,
                result.error,
                delay,
            )
            await asyncio.sleep(delay)
            result = await self._send(reading)

        return SubmissionOutcome(sensor_id=reading.sensor_id, attempts=attempt, result=result)

    async def _send(self, reading: SensorReading) -> SubmissionResult:
        return await self._client.submit_sensor_data(
            reading.category,
            reading.location,
            reading.value,
            reading.unit,
        )
