"""Tests for ecochain_simulator.config and ledger settings – YAML loading and env overrides."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from ecochain_simulator.config import SimulatorYAMLConfig, SubmissionSettings, load_yaml_config
from ecochain_simulator.ledger.contracts import ContractName
from ecochain_simulator.ledger.settings import LedgerSettings
from ecochain_simulator.sensor_models import SensorCategory

ENV_DATA = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TOKEN = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"

# -----------------------------------------------------------------------
# SimulatorYAMLConfig model
# -----------------------------------------------------------------------


class TestSimulatorYAMLConfig:
    """SimulatorYAMLConfig defaults and construction."""

    def test_defaults(self) -> None:
        cfg = SimulatorYAMLConfig()
        assert cfg.interval_s == 10.0
        assert cfg.alert_probability == 0.15
        assert cfg.max_history == 1000
        assert cfg.retain_history == 500
        assert cfg.sensors == []
        assert cfg.ledger.rpc_url == "http://localhost:8545"
        assert cfg.submission.max_attempts == 1
        assert cfg.duration_s is None
        assert cfg.log_level == "INFO"

    def test_submission_retry_policy(self) -> None:
        policy = SubmissionSettings(max_attempts=3, backoff_s=0.5).retry_policy()
        assert policy.max_attempts == 3
        assert policy.backoff_s == 0.5


# -----------------------------------------------------------------------
# LedgerSettings
# -----------------------------------------------------------------------


class TestLedgerSettings:
    def test_defaults(self) -> None:
        settings = LedgerSettings()
        assert settings.private_key is None
        assert settings.contracts == {}
        assert settings.value_decimals == 0
        assert settings.address_for(ContractName.ENVIRONMENTAL_DATA) is None

    def test_env_overrides(self) -> None:
        settings = LedgerSettings(contracts={ContractName.ECO_TOKEN: "0xold"}).with_env(
            {
                "LEDGER_RPC_URL": "http://node:8545",
                "LEDGER_PRIVATE_KEY": "0xkey",
                "ECO_TOKEN_ADDRESS": TOKEN,
                "ENVIRONMENTAL_DATA_ADDRESS": ENV_DATA,
                "CITIZEN_REPORTING_ADDRESS": "",
            }
        )
        assert settings.rpc_url == "http://node:8545"
        assert settings.private_key == "0xkey"
        assert settings.address_for(ContractName.ECO_TOKEN) == TOKEN
        assert settings.address_for(ContractName.ENVIRONMENTAL_DATA) == ENV_DATA
        assert settings.address_for(ContractName.CITIZEN_REPORTING) is None

    def test_from_env_empty(self) -> None:
        assert LedgerSettings.from_env({}) == LedgerSettings()

    def test_negative_decimals_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LedgerSettings(value_decimals=-1)


# -----------------------------------------------------------------------
# load_yaml_config
# -----------------------------------------------------------------------


class TestLoadYAMLConfig:
    """load_yaml_config() parsing from temporary YAML files."""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_yaml_config(tmp_path / "nonexistent.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "empty.yaml"
        cfg_file.write_text("")
        cfg = load_yaml_config(cfg_file, environ={})
        assert cfg.interval_s == 10.0
        assert cfg.ledger.contracts == {}

    def test_full_config(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "ecochain.yaml"
        cfg_file.write_text(f"""\
simulator:
  interval_s: 5
  alert_probability: 0.3
  max_history: 200
  retain_history: 100
  duration_s: 30
  log_level: DEBUG

sensors:
  - sensor_id: air_quality_03
    category: air_quality
    location: Harbour
    unit: AQI
    normal_range: [40, 90]
    alert_range: [91, 140]

ledger:
  rpc_url: http://127.0.0.1:8545
  value_decimals: 2
  contracts:
    environmental_data: "{ENV_DATA}"
    eco_token:

submission:
  delay_s: 0.5
  max_attempts: 3
""")
        cfg = load_yaml_config(cfg_file, environ={})
        assert cfg.interval_s == 5.0
        assert cfg.alert_probability == 0.3
        assert cfg.max_history == 200
        assert cfg.retain_history == 100
        assert cfg.duration_s == 30.0
        assert cfg.log_level == "DEBUG"

        assert len(cfg.sensors) == 1
        sensor = cfg.sensors[0]
        assert sensor.category is SensorCategory.AIR_QUALITY
        assert sensor.normal_range == (40.0, 90.0)

        assert cfg.ledger.rpc_url == "http://127.0.0.1:8545"
        assert cfg.ledger.value_decimals == 2
        assert cfg.ledger.contracts == {ContractName.ENVIRONMENTAL_DATA: ENV_DATA}

        assert cfg.submission.delay_s == 0.5
        assert cfg.submission.max_attempts == 3
        assert cfg.submission.initial_delay_s == 2.0

    def test_environment_wins_over_file(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "ecochain.yaml"
        cfg_file.write_text(f"""\
ledger:
  rpc_url: http://file:8545
  contracts:
    environmental_data: "{ENV_DATA}"
""")
        cfg = load_yaml_config(
            cfg_file,
            environ={"LEDGER_RPC_URL": "http://env:8545", "ENVIRONMENTAL_DATA_ADDRESS": TOKEN},
        )
        assert cfg.ledger.rpc_url == "http://env:8545"
        assert cfg.ledger.address_for(ContractName.ENVIRONMENTAL_DATA) == TOKEN

    def test_invalid_sensor_rejected(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "bad.yaml"
        cfg_file.write_text("""\
sensors:
  - sensor_id: broken
    category: air_quality
    location: Nowhere
    unit: AQI
    normal_range: [90, 40]
    alert_range: [91, 140]
""")
        with pytest.raises(ValidationError):
            load_yaml_config(cfg_file, environ={})
