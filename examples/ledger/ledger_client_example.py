#!/usr/bin/env python3
"""LedgerClient examples -- talk to the EcoChain contracts directly.

Needs a node at ``LEDGER_RPC_URL`` (default ``http://localhost:8545``) with
contract addresses in the environment or a ``.env`` file::

    ENVIRONMENTAL_DATA_ADDRESS=0x...
    CITIZEN_REPORTING_ADDRESS=0x...
    ECO_TOKEN_ADDRESS=0x...
    POLICY_COMPLIANCE_ADDRESS=0x...

Usage::

    python examples/ledger/ledger_client_example.py            # Case 1 (default)
    python examples/ledger/ledger_client_example.py --case 2   # Event observer
    python examples/ledger/ledger_client_example.py --case 3   # Queries
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Case 1: Submit one reading and one citizen report
# ---------------------------------------------------------------------------


async def run_case_1() -> None:
    """Each submission waits for its receipt and never raises.

    A contract whose address is missing shows up as a failed result with
    ``"<Contract> contract not loaded"``.
    """
    from ecochain_simulator.ledger import LedgerClient, LedgerSettings

    print("=== Case 1: Submissions ===\n")

    client = LedgerClient(LedgerSettings.from_env())
    if not await client.initialize():
        print("  Could not connect to the ledger")
        return

    result = await client.submit_sensor_data("air_quality", "Downtown District", 87.4, "AQI")
    print(f"  Sensor data:    {result.to_dict()}")

    result = await client.submit_citizen_report(
        "Riverside Park", "illegal_dumping", "Oil drums on the river bank", "QmHashExample123"
    )
    print(f"  Citizen report: {result.to_dict()}")
    await client.close()


# ---------------------------------------------------------------------------
# Case 2: Async event observer
# ---------------------------------------------------------------------------


async def run_case_2() -> None:
    """Subscribe with an async observer, submit a reading, watch the event arrive.

    Subscribing twice is harmless: filters and observers are de-duplicated.
    """
    from ecochain_simulator.ledger import LedgerClient, LedgerSettings
    from ecochain_simulator.models import LedgerEvent

    print("=== Case 2: Event observer ===\n")

    async def on_event(event: LedgerEvent) -> None:
        print(f"  [{event.contract}] {event.event} block={event.block_number} args={event.args}")

    client = LedgerClient(LedgerSettings.from_env().model_copy(update={"event_poll_interval_s": 1.0}))
    if not await client.initialize():
        print("  Could not connect to the ledger")
        return

    print(f"  Listeners: {await client.subscribe_to_events(on_event)}")
    print(f"  Again:     {await client.subscribe_to_events(on_event)} (already registered)\n")

    await client.submit_sensor_data("noise_pollution", "Central Park", 72.0, "dB")
    await asyncio.sleep(3)
    await client.close()


# ---------------------------------------------------------------------------
# Case 3: Queries
# ---------------------------------------------------------------------------


async def run_case_3() -> None:
    """Read-only calls return ``None`` (or ``"0"`` for balances) on failure."""
    from ecochain_simulator.ledger import LedgerClient, LedgerSettings

    print("=== Case 3: Queries ===\n")

    client = LedgerClient(LedgerSettings.from_env())
    if not await client.initialize():
        print("  Could not connect to the ledger")
        return

    compliance = await client.check_policy_compliance("Springfield", "air_quality")
    print(f"  Compliance:  {compliance.to_dict() if compliance else 'not found'}")
    print(f"  Balance:     {await client.get_token_balance(client.account_address)} ECO")

    record = await client.get_sensor_data(0)
    print(f"  Data #0:     {record.to_dict() if record else 'not found'}")
    await client.close()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

CASES = {1: run_case_1, 2: run_case_2, 3: run_case_3}


def main() -> None:
    parser = argparse.ArgumentParser(description="LedgerClient examples")
    parser.add_argument("--case", type=int, default=1, choices=sorted(CASES))
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )
    asyncio.run(CASES[args.case]())


if __name__ == "__main__":
    main()
