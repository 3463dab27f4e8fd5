"""Connection settings for the ledger client."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from ecochain_simulator.ledger.contracts import ContractName

__all__ = ["ENV_ADDRESS_KEYS", "LedgerSettings"]

# Environment variable holding each contract's deployed address.
ENV_ADDRESS_KEYS: dict[ContractName, str] = {
    ContractName.ECO_TOKEN: "ECO_TOKEN_ADDRESS",
    ContractName.ENVIRONMENTAL_DATA: "ENVIRONMENTAL_DATA_ADDRESS",
    ContractName.CITIZEN_REPORTING: "CITIZEN_REPORTING_ADDRESS",
    ContractName.POLICY_COMPLIANCE: "POLICY_COMPLIANCE_ADDRESS",
}


class LedgerSettings(BaseModel):
    """Where the ledger lives and how to talk to it.

    Attributes:
        rpc_url: JSON-RPC endpoint of the ledger node.
        private_key: Signing key.  When unset, the node's first unlocked
            account signs transactions.
        contracts: Deployed address per contract.  A missing entry leaves
            that contract unavailable.
        abi_dir: Directory of Hardhat artifact JSON files
            (``<ContractName>.json``).  Built-in ABIs are used when unset.
        confirmation_timeout_s: How long to wait for a transaction receipt.
        event_poll_interval_s: Delay between event filter polls.
        value_decimals: Sensor values are multiplied by ``10**value_decimals``
            and rounded to an integer before submission.
    """

    rpc_url: str = "http://localhost:8545"
    private_key: str | None = None
    contracts: dict[ContractName, str] = Field(default_factory=dict)
    abi_dir: Path | None = None
    confirmation_timeout_s: float = 120.0
    event_poll_interval_s: float = 2.0
    value_decimals: int = Field(default=0, ge=0)

    def address_for(self, name: ContractName) -> str | None:
        address = self.contracts.get(name)
        return address or None

    def with_env(self, environ: Mapping[str, str] | None = None) -> LedgerSettings:
        """Return a copy with environment overrides applied."""
        env = os.environ if environ is None else environ
        contracts = dict(self.contracts)
        for name, key in ENV_ADDRESS_KEYS.items():
            if env.get(key):
                contracts[name] = env[key]

        updates: dict[str, object] = {"contracts": contracts}
        if env.get("LEDGER_RPC_URL"):
            updates["rpc_url"] = env["LEDGER_RPC_URL"]
        if env.get("LEDGER_PRIVATE_KEY"):
            updates["private_key"] = env["LEDGER_PRIVATE_KEY"]
        return self.model_copy(update=updates)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LedgerSettings:
        return cls().with_env(environ)
