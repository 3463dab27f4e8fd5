"""Tests for ecochain_simulator.__main__ - CLI entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from ecochain_simulator.__main__ import _SAMPLE_CONFIG, main
from ecochain_simulator.models import ComplianceResult, SubmissionResult, TokenBalance
from ecochain_simulator.sensor_models import DEFAULT_SENSORS

_SESSION = "ecochain_simulator.simulator.SimulationSession"

# -----------------------------------------------------------------------
# main() dispatch
# -----------------------------------------------------------------------


class TestMainDispatch:
    """CLI argument parsing and sub-command dispatch."""

    def test_no_args_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        main([])
        out = capsys.readouterr().out
        assert "usage" in out.lower() or "commands" in out.lower()

    def test_help_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_list_sensors(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["list-sensors"])
        out = capsys.readouterr().out
        assert "Sensor" in out
        for sensor in DEFAULT_SENSORS:
            assert sensor.sensor_id in out

    def test_list_sensors_from_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        cfg_file = tmp_path / "ecochain.yaml"
        cfg_file.write_text("""\
sensors:
  - sensor_id: noise_harbour
    category: noise_pollution
    location: Harbour
    unit: dB
    normal_range: [45, 70]
    alert_range: [71, 100]
""")
        main(["--config", str(cfg_file), "list-sensors"])
        out = capsys.readouterr().out
        assert "noise_harbour" in out
        assert "air_quality_01" not in out

    def test_generate_batch(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["generate-batch", "--hours", "2"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["hours"] == 2
        assert payload["sensors"] == len(DEFAULT_SENSORS)
        assert len(payload["data"]) == 2 * len(DEFAULT_SENSORS)

    def test_run_subcommand_dispatches(self) -> None:
        with patch("ecochain_simulator.__main__._cmd_run") as mock_run:
            main(["run", "--duration", "0.1", "--no-ledger"])
            mock_run.assert_called_once()
            args = mock_run.call_args.args[0]
            assert args.duration == 0.1
            assert args.no_ledger is True

    def test_run_offline(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["run", "--no-ledger", "--interval", "0.02", "--duration", "0.1"])
        stats = json.loads(capsys.readouterr().out)
        assert set(stats) <= {s.sensor_id for s in DEFAULT_SENSORS}


# -----------------------------------------------------------------------
# Ledger commands
# -----------------------------------------------------------------------


class TestLedgerCommands:
    def test_compliance(self, capsys: pytest.CaptureFixture[str]) -> None:
        result = ComplianceResult(is_compliant=False, actual_value=120, required_value=100)
        with patch(f"{_SESSION}.policy_compliance", new_callable=AsyncMock, return_value=result) as mock:
            main(["compliance", "Springfield", "air_quality"])
        mock.assert_awaited_once_with("Springfield", "air_quality")
        payload = json.loads(capsys.readouterr().out)
        assert payload == {"is_compliant": False, "actual_value": 120, "required_value": 100}

    def test_compliance_not_found(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch(f"{_SESSION}.policy_compliance", new_callable=AsyncMock, return_value=None):
            with pytest.raises(SystemExit) as exc_info:
                main(["compliance", "Springfield", "air_quality"])
        assert exc_info.value.code == 1
        assert "compliance data not found" in capsys.readouterr().out

    def test_balance(self, capsys: pytest.CaptureFixture[str]) -> None:
        balance = TokenBalance(address="0x" + "55" * 20, balance="3.25")
        with patch(f"{_SESSION}.token_balance", new_callable=AsyncMock, return_value=balance):
            main(["balance", "0x" + "55" * 20])
        payload = json.loads(capsys.readouterr().out)
        assert payload["balance"] == "3.25"
        assert payload["symbol"] == "ECO"

    def test_report_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        result = SubmissionResult.ok(transaction_hash="0x" + "ab" * 32, block_number=9)
        with patch(f"{_SESSION}.submit_citizen_report", new_callable=AsyncMock, return_value=result) as mock:
            main(["report", "--location", "Riverside Park", "--issue-type", "dumping", "--description", "Oil"])
        mock.assert_awaited_once_with("Riverside Park", "dumping", "Oil", None)
        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is True
        assert payload["block_number"] == 9

    def test_report_failure_exit_code(self) -> None:
        result = SubmissionResult.failed("CitizenReporting contract not loaded")
        with patch(f"{_SESSION}.submit_citizen_report", new_callable=AsyncMock, return_value=result):
            with pytest.raises(SystemExit) as exc_info:
                main(["report", "--location", "Park", "--issue-type", "noise", "--description", "Loud"])
        assert exc_info.value.code == 1

    def test_report_blank_field(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["report", "--location", "Park", "--issue-type", "noise", "--description", "  "])
        assert exc_info.value.code == 2
        assert "missing required fields" in capsys.readouterr().out


# -----------------------------------------------------------------------
# init-config
# -----------------------------------------------------------------------


class TestInitConfig:
    def test_init_config_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["init-config"])
        out = capsys.readouterr().out
        assert "simulator:" in out
        assert "ledger:" in out

    def test_init_config_to_file(self, tmp_path: Path) -> None:
        outfile = tmp_path / "nested" / "ecochain.yaml"
        main(["init-config", "--output", str(outfile)])
        assert outfile.read_text() == _SAMPLE_CONFIG

    def test_sample_config_loads(self, tmp_path: Path) -> None:
        from ecochain_simulator.config import load_yaml_config

        outfile = tmp_path / "ecochain.yaml"
        outfile.write_text(_SAMPLE_CONFIG)
        cfg = load_yaml_config(outfile, environ={})
        assert cfg.interval_s == 10.0
        assert cfg.ledger.contracts == {}
        assert cfg.submission.max_attempts == 1
