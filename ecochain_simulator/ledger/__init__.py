"""Ledger access for the EcoChain simulator.

::

    from ecochain_simulator.ledger import LedgerClient, LedgerSettings

    client = LedgerClient(LedgerSettings.from_env())
    if await client.initialize():
        await client.submit_sensor_data("air_quality", "Downtown District", 72.4, "AQI")
"""

from __future__ import annotations

from ecochain_simulator.ledger.client import LedgerClient, format_ether, log_event, to_chain_value
from ecochain_simulator.ledger.contracts import CONTRACT_EVENTS, ContractCapability, ContractName
from ecochain_simulator.ledger.events import EventFanout
from ecochain_simulator.ledger.settings import LedgerSettings

__all__ = [
    "CONTRACT_EVENTS",
    "ContractCapability",
    "ContractName",
    "EventFanout",
    "LedgerClient",
    "LedgerSettings",
    "format_ether",
    "log_event",
    "to_chain_value",
]
