"""Common data models for the EcoChain simulator.

Defines the ``SensorReading`` produced by the generator, the result types
returned by the ledger client, and the envelopes the session hands to its
callers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ecochain_simulator.sensor_models import SensorCategory

__all__ = [
    "DEFAULT_EVIDENCE_HASH",
    "CitizenReport",
    "CitizenReportRecord",
    "ComplianceResult",
    "DemoBatch",
    "HealthStatus",
    "HistoricalReadings",
    "LedgerEvent",
    "SensorDataRecord",
    "SensorReading",
    "SensorStats",
    "SimulationStatus",
    "SubmissionOutcome",
    "SubmissionResult",
    "TokenBalance",
]

# Placeholder content hash used when a citizen report carries no evidence.
DEFAULT_EVIDENCE_HASH = "QmHashExample123"


class _Record(BaseModel):
    """Shared serialisation helpers."""

    def to_dict(self) -> dict[str, Any]:
        """Return a plain ``dict`` representation (JSON-safe types)."""
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        """Return a compact JSON string."""
        return self.model_dump_json()


class SensorReading(_Record):
    """A single reading produced by the generator.

    Attributes:
        sensor_id: Identifier of the producing sensor, e.g. ``"air_quality_01"``.
        category: Sensor category.
        location: Human-readable location label.
        value: Reading value, rounded to 2 decimal places.
        unit: Unit label, e.g. ``"AQI"``, ``"pH"``, ``"dB"``.
        timestamp: Timezone-aware time the reading refers to.
        is_alert: ``True`` when the value was drawn from the alert range.
    """

    model_config = {"frozen": True}

    sensor_id: str
    category: SensorCategory
    location: str
    value: float
    unit: str
    timestamp: datetime
    is_alert: bool = False

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, value: datetime) -> datetime:
        """Naive timestamps are taken as local time."""
        return value if value.tzinfo is not None else value.astimezone()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SensorReading:
        """Construct a ``SensorReading`` from a plain dict."""
        return cls.model_validate(data)


class SensorStats(_Record):
    """Aggregate statistics for one sensor's history."""

    category: SensorCategory
    location: str
    total_readings: int
    average_value: str
    min_value: str
    max_value: str
    alert_count: int
    alert_percentage: str


# ----------------------------------------------------------------------
# Ledger results
# ----------------------------------------------------------------------


class SubmissionResult(_Record):
    """Outcome of one ledger submission attempt."""

    success: bool
    transaction_hash: str | None = None
    block_number: int | None = None
    error: str | None = None

    @classmethod
    def ok(cls, transaction_hash: str, block_number: int) -> SubmissionResult:
        return cls(success=True, transaction_hash=transaction_hash, block_number=block_number)

    @classmethod
    def failed(cls, error: str) -> SubmissionResult:
        return cls(success=False, error=error)


class ComplianceResult(_Record):
    is_compliant: bool
    actual_value: int
    required_value: int


class CitizenReport(_Record):
    """A citizen-submitted environmental issue.

    ``location``, ``issue_type`` and ``description`` must be non-blank;
    validation happens on construction, before anything reaches the ledger.
    """

    model_config = {"frozen": True, "str_strip_whitespace": True}

    location: str = Field(min_length=1)
    issue_type: str = Field(min_length=1)
    description: str = Field(min_length=1)
    evidence_hash: str = DEFAULT_EVIDENCE_HASH


class SensorDataRecord(_Record):
    """Sensor data as stored on the ledger."""

    timestamp: int
    sensor_type: str
    location: str
    value: int
    unit: str
    submitted_by: str
    verified: bool


class CitizenReportRecord(_Record):
    """Citizen report as stored on the ledger."""

    report_id: int
    reporter: str
    location: str
    issue_type: str
    description: str
    evidence_hash: str
    timestamp: int
    status: int
    validation_count: int


class LedgerEvent(_Record):
    """One event emitted by a bound contract."""

    contract: str
    event: str
    args: dict[str, Any] = Field(default_factory=dict)
    transaction_hash: str | None = None
    block_number: int | None = None


class SubmissionOutcome(_Record):
    """Per-reading result of an orchestration run."""

    sensor_id: str
    attempts: int
    result: SubmissionResult


# ----------------------------------------------------------------------
# Session envelopes
# ----------------------------------------------------------------------


class SimulationStatus(_Record):
    sensors_count: int
    interval_description: str
    ledger_connected: bool = False


class HistoricalReadings(_Record):
    category: str
    hours: float
    count: int
    data: list[SensorReading]


class TokenBalance(_Record):
    address: str
    balance: str
    symbol: str = "ECO"


class DemoBatch(_Record):
    hours: int
    sensors: int
    data: list[SensorReading]


class HealthStatus(_Record):
    status: str
    timestamp: datetime
    simulation_active: bool
    sensors: int
    ledger_connected: bool
