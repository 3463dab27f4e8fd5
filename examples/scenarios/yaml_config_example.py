#!/usr/bin/env python3
"""YAML config-driven example -- load the simulator configuration from a YAML
file and run a session against a local ledger node.

All settings (sensors, ledger endpoint, contract addresses, submission
throttling) live in ``ecochain_config.yaml``; the Python code is minimal.

Needs a node at ``http://localhost:8545`` with the contracts deployed.  If the
node is not reachable the session still runs, just without submissions.

Usage::

    python examples/scenarios/yaml_config_example.py

Equivalent CLI::

    ecochain-simulator run --config examples/configs/ecochain_config.yaml --duration 60
"""

from __future__ import annotations

import logging
from pathlib import Path


def main() -> None:
    print("=== YAML Config-Driven Example ===\n")

    config_path = Path(__file__).parent.parent / "configs" / "ecochain_config.yaml"
    if not config_path.exists():
        print(f"  Config file not found: {config_path}")
        return

    print(f"  Config file: {config_path}\n")

    # --- Load the YAML configuration ---
    from ecochain_simulator.config import load_yaml_config

    cfg = load_yaml_config(config_path)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )

    print(f"  Sensors:         {len(cfg.sensors)}")
    print(f"  Interval:        {cfg.interval_s}s")
    print(f"  Ledger:          {cfg.ledger.rpc_url}")
    for name, address in cfg.ledger.contracts.items():
        print(f"    {name.display_name:<18} {address}")
    print(f"  Max attempts:    {cfg.submission.max_attempts}")
    print()

    # --- Build and run the session ---
    from ecochain_simulator import SimulationSession

    session = SimulationSession.from_config(cfg)
    session.run(duration_s=cfg.duration_s)

    print("\n  Summary:")
    for sensor_id, stats in session.summary_stats().items():
        print(
            f"    {sensor_id:<20} n={stats.total_readings:<4} avg={stats.average_value:>8} "
            f"alerts={stats.alert_percentage}%"
        )


if __name__ == "__main__":
    main()
