"""CLI entry point for the EcoChain simulator.

Usage::

    ecochain-simulator run --interval 10 --duration 60
    ecochain-simulator run --config ecochain.yaml
    ecochain-simulator generate-batch --hours 24
    ecochain-simulator list-sensors
    ecochain-simulator compliance Springfield air_quality
    ecochain-simulator balance 0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266
    ecochain-simulator report --location "Riverside Park" --issue-type dumping --description "Oil on the bank"
    ecochain-simulator init-config --output ecochain.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import textwrap

from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

# ---------------------------------------------------------------------------
# Sample YAML config template for init-config
# ---------------------------------------------------------------------------
_SAMPLE_CONFIG = """\
# EcoChain simulator configuration

simulator:
  interval_s: 10                      # seconds between sensor ticks
  alert_probability: 0.15             # share of readings drawn from the alert range
  # max_history: 1000                 # truncate history above this many readings
  # retain_history: 500               # ...keeping this many of the newest
  # duration_s: 60                    # optional: auto-stop after N seconds
  # log_level: INFO                   # DEBUG, INFO, WARNING, ERROR

# Optional: replace the built-in sensors
# sensors:
#   - sensor_id: air_quality_03
#     category: air_quality           # air_quality, water_quality, noise_pollution
#     location: Harbour
#     unit: AQI
#     normal_range: [40, 90]
#     alert_range: [91, 140]

ledger:
  rpc_url: http://localhost:8545
  # private_key: "0x..."              # default: the node's first unlocked account
  # abi_dir: ./artifacts/contracts    # default: built-in ABIs
  confirmation_timeout_s: 120
  event_poll_interval_s: 2
  value_decimals: 0                   # values are scaled by 10**value_decimals
  contracts:                          # or ECO_TOKEN_ADDRESS, ENVIRONMENTAL_DATA_ADDRESS, ...
    # eco_token: "0x..."
    # environmental_data: "0x..."
    # citizen_reporting: "0x..."
    # policy_compliance: "0x..."

submission:
  delay_s: 1.0                        # pause between ledger submissions
  initial_delay_s: 2.0                # first submission after start
  max_attempts: 1                     # 1 = no retry
  backoff_s: 1.0
"""


# ======================================================================
# Main entry point
# ======================================================================


def main(argv: list[str] | None = None) -> None:
    epilog = textwrap.dedent("""\
        examples:
          ecochain-simulator run --interval 10 --duration 60
          ecochain-simulator run --config ecochain.yaml --no-ledger
          ecochain-simulator generate-batch --hours 24
          ecochain-simulator compliance Springfield air_quality
          ecochain-simulator init-config --output ecochain.yaml
    """)

    parser = argparse.ArgumentParser(
        prog="ecochain-simulator",
        description="Simulate environmental sensors and publish readings to an EVM ledger.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML config file.",
    )

    subparsers = parser.add_subparsers(dest="command", title="commands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Run the simulation (and submit readings to the ledger).")
    run_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between sensor ticks (default: 10, or the config value).",
    )
    run_parser.add_argument(
        "--duration",
        "-d",
        type=float,
        default=None,
        help="Run duration in seconds (default: indefinite, Ctrl-C to stop).",
    )
    run_parser.add_argument(
        "--no-ledger",
        action="store_true",
        help="Simulate only; never connect to the ledger.",
    )

    # -- generate-batch ----------------------------------------------------
    batch_parser = subparsers.add_parser("generate-batch", help="Print synthetic historical readings as JSON.")
    batch_parser.add_argument("--hours", type=int, default=24, help="Hourly time points to generate (default: 24).")

    # -- list-sensors ------------------------------------------------------
    subparsers.add_parser("list-sensors", help="List the configured sensors.")

    # -- compliance --------------------------------------------------------
    compliance_parser = subparsers.add_parser("compliance", help="Check a municipality's policy compliance.")
    compliance_parser.add_argument("municipality", type=str)
    compliance_parser.add_argument("category", type=str, help="Sensor category, e.g. air_quality.")

    # -- balance -----------------------------------------------------------
    balance_parser = subparsers.add_parser("balance", help="Show an address's ECO token balance.")
    balance_parser.add_argument("address", type=str)

    # -- report ------------------------------------------------------------
    report_parser = subparsers.add_parser("report", help="Submit a citizen report to the ledger.")
    report_parser.add_argument("--location", required=True)
    report_parser.add_argument("--issue-type", required=True)
    report_parser.add_argument("--description", required=True)
    report_parser.add_argument("--evidence-hash", default=None, help="Content hash of supporting evidence.")

    # -- init-config -------------------------------------------------------
    init_parser = subparsers.add_parser("init-config", help="Generate a sample YAML configuration file.")
    init_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write config to this file instead of stdout.",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    if args.command == "init-config":
        _cmd_init_config(args.output)
        return

    load_dotenv(find_dotenv(usecwd=True), override=False)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )

    # -- Dispatch ----------------------------------------------------------
    if args.command == "run":
        _cmd_run(args)
    elif args.command == "generate-batch":
        _cmd_generate_batch(args)
    elif args.command == "list-sensors":
        _cmd_list_sensors(args)
    elif args.command == "compliance":
        asyncio.run(_cmd_compliance(args))
    elif args.command == "balance":
        asyncio.run(_cmd_balance(args))
    elif args.command == "report":
        asyncio.run(_cmd_report(args))
    else:
        parser.print_help()


# ======================================================================
# Command implementations
# ======================================================================


def _build_session(args: argparse.Namespace, **overrides):
    """Create a session from ``--config`` (if given) plus CLI overrides."""
    from ecochain_simulator.config import SimulatorYAMLConfig, load_yaml_config
    from ecochain_simulator.ledger.settings import LedgerSettings
    from ecochain_simulator.simulator import SimulationSession

    if args.config:
        cfg = load_yaml_config(args.config)
        logging.getLogger().setLevel(getattr(logging, cfg.log_level, logging.INFO))
    else:
        cfg = SimulatorYAMLConfig(ledger=LedgerSettings.from_env())
    return cfg, SimulationSession.from_config(cfg, **overrides)


def _cmd_run(args: argparse.Namespace) -> None:
    overrides: dict[str, object] = {"ledger_enabled": not args.no_ledger}
    if args.interval is not None:
        overrides["interval_s"] = args.interval
    cfg, session = _build_session(args, **overrides)

    duration = args.duration if args.duration is not None else cfg.duration_s
    session.run(duration_s=duration)
    _print_json({sensor_id: stats.to_dict() for sensor_id, stats in session.summary_stats().items()})


def _cmd_generate_batch(args: argparse.Namespace) -> None:
    _cfg, session = _build_session(args, ledger_enabled=False)
    batch = session.generate_demo_batch(args.hours)
    _print_json(batch.to_dict())


def _cmd_list_sensors(args: argparse.Namespace) -> None:
    _cfg, session = _build_session(args, ledger_enabled=False)
    sensors = session.generator.sensors

    print(f"\n{'Sensor':<22} {'Category':<16} {'Location':<26} {'Unit':<5} {'Normal':>15} {'Alert':>15}")
    print("-" * 104)
    for sensor in sensors:
        normal = f"{sensor.normal_range[0]:g}-{sensor.normal_range[1]:g}"
        alert = f"{sensor.alert_range[0]:g}-{sensor.alert_range[1]:g}"
        print(
            f"{sensor.sensor_id:<22} {sensor.category.value:<16} {sensor.location:<26} "
            f"{sensor.unit:<5} {normal:>15} {alert:>15}"
        )
    print()


async def _cmd_compliance(args: argparse.Namespace) -> None:
    _cfg, session = _build_session(args)
    try:
        result = await session.policy_compliance(args.municipality, args.category)
    finally:
        await session.aclose()

    if result is None:
        print("Error: compliance data not found.")
        sys.exit(1)
    _print_json(result.to_dict())


async def _cmd_balance(args: argparse.Namespace) -> None:
    _cfg, session = _build_session(args)
    try:
        balance = await session.token_balance(args.address)
    finally:
        await session.aclose()
    _print_json(balance.to_dict())


async def _cmd_report(args: argparse.Namespace) -> None:
    _cfg, session = _build_session(args)
    try:
        result = await session.submit_citizen_report(
            args.location,
            args.issue_type,
            args.description,
            args.evidence_hash,
        )
    except ValidationError as exc:
        print(f"Error: missing required fields - {exc.error_count()} invalid")
        sys.exit(2)
    finally:
        await session.aclose()

    _print_json(result.to_dict())
    if not result.success:
        sys.exit(1)


def _cmd_init_config(output_path: str | None) -> None:
    if output_path:
        from pathlib import Path

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_text(_SAMPLE_CONFIG)
        print(f"Sample config written to {output_path}")
    else:
        print(_SAMPLE_CONFIG)


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2))


# ======================================================================
if __name__ == "__main__":
    main()
