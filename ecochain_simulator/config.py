"""Configuration loader.

Parses YAML files with the following top-level sections::

    simulator:    # clock and history settings
    sensors:      # optional custom sensor definitions (replace the defaults)
    ledger:       # node endpoint, identity, contract addresses
    submission:   # orchestrator throttling and retry

Example:

.. code-block:: yaml

    simulator:
      interval_s: 10
      alert_probability: 0.15

    sensors:
      - sensor_id: air_quality_03
        category: air_quality
        location: Harbour
        unit: AQI
        normal_range: [40, 90]
        alert_range: [91, 140]

    ledger:
      rpc_url: http://localhost:8545
      contracts:
        environmental_data: "0x5FbDB2315678afecb367f032d93F642f64180aa3"

    submission:
      delay_s: 1.0
      max_attempts: 1

Contract addresses, the RPC URL and the private key may also come from
the environment (see :data:`ecochain_simulator.ledger.settings.ENV_ADDRESS_KEYS`);
environment values win over the file.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from ecochain_simulator.ledger.settings import LedgerSettings
from ecochain_simulator.orchestrator import RetryPolicy
from ecochain_simulator.sensor_models import SensorDefinition

__all__ = ["SimulatorYAMLConfig", "SubmissionSettings", "load_yaml_config"]

logger = logging.getLogger("ecochain_simulator.config")


class SubmissionSettings(BaseModel):
    delay_s: float = 1.0
    initial_delay_s: float = 2.0
    max_attempts: int = 1
    backoff_s: float = 1.0

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, backoff_s=self.backoff_s)


class SimulatorYAMLConfig(BaseModel):
    """Parsed representation of the full YAML configuration.

    Attributes:
        interval_s: Seconds between simulation ticks.
        alert_probability: Chance a reading is drawn from the alert range.
        max_history / retain_history: History truncation thresholds.
        sensors: Custom sensor definitions; empty means the built-in catalog.
        ledger: Ledger connection settings.
        submission: Orchestrator settings.
        duration_s: Optional run duration (seconds).
        log_level: Logging level string.
    """

    interval_s: float = 10.0
    alert_probability: float = 0.15
    max_history: int = 1000
    retain_history: int = 500
    sensors: list[SensorDefinition] = Field(default_factory=list)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    submission: SubmissionSettings = Field(default_factory=SubmissionSettings)
    duration_s: float | None = None
    log_level: str = "INFO"


def load_yaml_config(path: str | Path, environ: Mapping[str, str] | None = None) -> SimulatorYAMLConfig:
    """Load and validate a YAML configuration file.

    Returns a :class:`SimulatorYAMLConfig` ready to be passed to
    :meth:`SimulationSession.from_config`.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    # --- simulator section ---
    sim_section = raw.get("simulator", {}) or {}
    duration_s = sim_section.get("duration_s")

    # --- ledger section ---
    ledger_section = dict(raw.get("ledger", {}) or {})
    contracts = {k: v for k, v in (ledger_section.pop("contracts", {}) or {}).items() if v}
    ledger = LedgerSettings(contracts=contracts, **ledger_section).with_env(environ)

    config = SimulatorYAMLConfig(
        interval_s=float(sim_section.get("interval_s", 10.0)),
        alert_probability=float(sim_section.get("alert_probability", 0.15)),
        max_history=int(sim_section.get("max_history", 1000)),
        retain_history=int(sim_section.get("retain_history", 500)),
        sensors=raw.get("sensors", []) or [],
        ledger=ledger,
        submission=SubmissionSettings(**(raw.get("submission", {}) or {})),
        duration_s=float(duration_s) if duration_s is not None else None,
        log_level=sim_section.get("log_level", "INFO"),
    )

    logger.info(
        "Loaded config: %d custom sensors, %d contract addresses, interval %.1fs",
        len(config.sensors),
        len(config.ledger.contracts),
        config.interval_s,
    )
    return config
